"""Property data models: the SQLAlchemy table and its pydantic schemas."""

import uuid
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text

from ..database.connection import Base


def new_property_id() -> str:
    """Generate an opaque property identifier."""
    return uuid.uuid4().hex


class Property(Base):
    """A property listing.

    Location, rates and seller info are stored as JSON documents so the
    record keeps the nested shape callers submit and receive.
    """

    __tablename__ = "properties"

    id = Column(String(32), primary_key=True, default=new_property_id)
    owner = Column(String(255), nullable=False, index=True)

    type = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)

    location = Column(JSON, nullable=False, default=dict)
    beds = Column(Integer)
    baths = Column(Float)
    square_feet = Column(Integer)
    amenities = Column(JSON, nullable=False, default=list)
    rates = Column(JSON, nullable=False, default=dict)
    seller_info = Column(JSON, nullable=False, default=dict)
    images = Column(JSON, nullable=False, default=list)

    is_featured = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Property(id={self.id}, name='{self.name}', owner={self.owner})>"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Location(BaseModel):
    """Street address of a property."""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None


class Rates(BaseModel):
    """Rental rates; any of them may be unset."""
    weekly: Optional[float] = None
    monthly: Optional[float] = None
    nightly: Optional[float] = None

    @field_validator("weekly", "monthly", "nightly", mode="before")
    @classmethod
    def blank_rates(cls, value: Any) -> Any:
        return _blank_to_none(value)


class SellerInfo(BaseModel):
    """Contact details of the seller."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class PropertyFields(BaseModel):
    """The mutable field set accepted by create and update."""

    type: str
    name: str
    description: Optional[str] = None
    location: Location = Field(default_factory=Location)
    beds: Optional[int] = None
    baths: Optional[float] = None
    square_feet: Optional[int] = None
    amenities: List[str] = Field(default_factory=list)
    rates: Rates = Field(default_factory=Rates)
    seller_info: SellerInfo = Field(default_factory=SellerInfo)

    @field_validator("type", "name")
    @classmethod
    def required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("beds", "baths", "square_feet", mode="before")
    @classmethod
    def blank_numbers(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("amenities")
    @classmethod
    def unique_amenities(cls, value: List[str]) -> List[str]:
        # Amenities are a set of tags; keep first occurrence of each
        return list(dict.fromkeys(tag for tag in value if tag))

    def to_columns(self) -> dict:
        """Column values for the Property table."""
        return self.model_dump()


class PropertySchema(PropertyFields):
    """Property response model."""

    id: str
    owner: str
    images: List[str] = Field(default_factory=list)
    is_featured: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PropertyPage(BaseModel):
    """Paginated property listing."""
    total: int
    properties: List[PropertySchema]
