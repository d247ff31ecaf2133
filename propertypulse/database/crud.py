"""CRUD operations for database models."""

from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement
from datetime import datetime
import logging

from ..models.property_models import Property

logger = logging.getLogger(__name__)


class PropertyCRUD:
    """CRUD operations for Property model."""

    @staticmethod
    def get_by_id(db: Session, property_id: str) -> Optional[Property]:
        """Get property by ID."""
        return db.query(Property).filter(Property.id == property_id).first()

    @staticmethod
    def find(db: Session, criteria: Optional[ColumnElement] = None,
             skip: int = 0, limit: Optional[int] = None) -> List[Property]:
        """Find properties matching a filter, oldest first.

        Args:
            db: Database session
            criteria: Optional filter clause
            skip: Number of matches to skip
            limit: Maximum number of matches to return
        """
        query = db.query(Property)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(Property.created_at, Property.id)
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def count(db: Session, criteria: Optional[ColumnElement] = None) -> int:
        """Count properties matching a filter."""
        query = db.query(Property)
        if criteria is not None:
            query = query.filter(criteria)
        return query.count()

    @staticmethod
    def create(db: Session, values: dict, owner: str) -> Property:
        """Create a new property."""
        db_property = Property(**values, owner=owner)
        db.add(db_property)
        db.commit()
        db.refresh(db_property)
        return db_property

    @staticmethod
    def replace(db: Session, db_property: Property, values: dict) -> Property:
        """Replace the mutable fields of a property."""
        for key, value in values.items():
            setattr(db_property, key, value)

        db_property.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(db_property)
        return db_property

    @staticmethod
    def delete(db: Session, db_property: Property) -> None:
        """Delete a property."""
        logger.info(f"Deleting property {db_property.id}")
        db.delete(db_property)
        db.commit()

    @staticmethod
    def get_featured(db: Session) -> List[Property]:
        """Get properties flagged as featured."""
        return PropertyCRUD.find(db, Property.is_featured.is_(True))

    @staticmethod
    def get_by_owner(db: Session, owner: str) -> List[Property]:
        """Get properties created by an owner."""
        return PropertyCRUD.find(db, Property.owner == owner)
