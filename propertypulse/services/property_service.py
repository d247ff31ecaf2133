"""Property service: the operations behind the property API."""

import re
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import APISettings, settings
from ..database.crud import PropertyCRUD
from ..exceptions import (
    IngestionError, InvalidRequest, NotFound, PropertyServiceError, UpstreamFailure,
)
from ..models.property_models import Property, PropertyPage, PropertySchema
from ..monitoring.logger import OperationLogger
from ..storage.object_store import StoredObject
from .authorization import authorize, require_identity
from .ingestion import ImageIngestionPipeline, SubmittedImage
from .query_builder import build_search_filter, paginate
from .submission import PropertySubmission

PROPERTY_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class PropertyService:
    """Orchestrates authorization, queries, image ingestion and persistence.

    Persistence is always the last step of create and update, so a failed
    ingestion writes nothing. Images stored before a failure are deleted on
    a best-effort basis when cleanup_on_failure is set.
    """

    def __init__(
        self,
        db: Session,
        pipeline: ImageIngestionPipeline,
        api_settings: Optional[APISettings] = None,
        cleanup_on_failure: Optional[bool] = None,
    ):
        self.db = db
        self.pipeline = pipeline
        self.api_settings = api_settings or settings.api
        if cleanup_on_failure is None:
            cleanup_on_failure = settings.storage.cleanup_on_failure
        self.cleanup_on_failure = cleanup_on_failure

    @contextmanager
    def _operation(self, name: str, property_id: Optional[str] = None,
                   caller: Optional[str] = None) -> Iterator[OperationLogger]:
        """Log failures of an operation and translate unexpected errors to UpstreamFailure."""
        log = OperationLogger(name, property_id=property_id, caller=caller)
        try:
            yield log
        except PropertyServiceError as e:
            log.log_error(e)
            raise
        except Exception as e:
            self.db.rollback()
            reason = "persistent store error" if isinstance(e, SQLAlchemyError) else type(e).__name__
            failure = UpstreamFailure(f"{name} failed: {reason}")
            failure.__cause__ = e
            log.log_error(failure)
            raise failure from e

    def _get_existing(self, property_id: Optional[str]) -> Property:
        if not property_id or not PROPERTY_ID_PATTERN.match(property_id):
            raise NotFound(f"Property {property_id!r} not found")
        record = PropertyCRUD.get_by_id(self.db, property_id)
        if record is None:
            raise NotFound(f"Property {property_id} not found")
        return record

    async def _ingest(self, images: Sequence[SubmittedImage], log: OperationLogger,
                      timeout: Optional[float]) -> List[StoredObject]:
        try:
            stored = await self.pipeline.ingest(images, timeout=timeout)
        except IngestionError as e:
            await self._cleanup(e.stored, log)
            raise
        log.log_ingestion(submitted=len(images), stored=len(stored))
        return stored

    async def _cleanup(self, stored: Sequence[StoredObject], log: OperationLogger) -> None:
        if not stored:
            return
        if not self.cleanup_on_failure:
            log.log_cleanup(removed=0, orphaned=len(stored))
            return
        orphans = await self.pipeline.discard(stored)
        log.log_cleanup(removed=len(stored) - len(orphans), orphaned=len(orphans))

    def list_properties(self, page=None, page_size=None) -> PropertyPage:
        """List all properties, one page at a time.

        Args:
            page: Page number (1-based); invalid values fall back to 1
            page_size: Properties per page; invalid values fall back to the default,
                values above the configured maximum are capped

        Returns:
            PropertyPage: Total count of properties and the requested window
        """
        with self._operation("ListProperties"):
            window = paginate(
                page, page_size,
                default_page_size=self.api_settings.default_page_size,
                max_page_size=self.api_settings.max_page_size,
            )
            total = PropertyCRUD.count(self.db)
            if window.skip >= total:
                records = []
            else:
                records = PropertyCRUD.find(self.db, skip=window.skip, limit=window.limit)
            return PropertyPage(
                total=total,
                properties=[PropertySchema.model_validate(r) for r in records],
            )

    def get_property(self, property_id: str) -> Property:
        with self._operation("GetProperty", property_id=property_id):
            return self._get_existing(property_id)

    def list_featured(self) -> List[Property]:
        with self._operation("ListFeatured"):
            return PropertyCRUD.get_featured(self.db)

    def list_by_owner(self, owner_id: Optional[str]) -> List[Property]:
        """List the properties created by an owner.

        Raises:
            InvalidRequest: If owner_id is missing or blank
        """
        with self._operation("ListByOwner", caller=owner_id):
            if not owner_id or not owner_id.strip():
                raise InvalidRequest("User ID is required")
            return PropertyCRUD.get_by_owner(self.db, owner_id)

    def search_properties(self, location: Optional[str],
                          property_type: Optional[str] = None) -> List[Property]:
        """Search properties by a location token and an optional type."""
        with self._operation("SearchProperties"):
            criteria = build_search_filter(location or "", property_type)
            return PropertyCRUD.find(self.db, criteria)

    async def create_property(self, submission: PropertySubmission, caller: Optional[str],
                              timeout: Optional[float] = None) -> Property:
        """Create a property owned by the caller.

        The submission is validated and its images are read only after the
        caller is identified.

        Args:
            submission: Submitted property form
            caller: Caller identity, None when unauthenticated
            timeout: Optional deadline in seconds for the image uploads

        Returns:
            Property: The persisted property

        Raises:
            AuthenticationRequired: If there is no caller
            InvalidRequest: If the submitted fields are invalid
            IngestionError: If an image upload fails; nothing is persisted
            UpstreamFailure: If the persistent store fails
        """
        with self._operation("CreateProperty", caller=caller) as log:
            owner = require_identity(caller)
            fields = submission.fields()
            stored = await self._ingest(await submission.images(), log, timeout)

            values = fields.to_columns()
            values["images"] = [obj.url for obj in stored]
            try:
                record = PropertyCRUD.create(self.db, values, owner=owner)
            except Exception:
                await self._cleanup(stored, log)
                raise

            log.bind(property_id=record.id).log_success(images=len(stored))
            return record

    async def update_property(self, property_id: str, submission: PropertySubmission,
                              caller: Optional[str], timeout: Optional[float] = None) -> Property:
        """Replace the mutable fields of a property owned by the caller.

        Newly ingested images are appended to the existing ones. The owner
        never changes. The submission is validated only once the caller is
        known to own the property.

        Raises:
            AuthenticationRequired: If there is no caller
            NotFound: If the property does not exist
            AuthorizationDenied: If the caller is not the owner
            InvalidRequest: If the submitted fields are invalid
            IngestionError: If an image upload fails; the property is left unchanged
            UpstreamFailure: If the persistent store fails
        """
        with self._operation("UpdateProperty", property_id=property_id, caller=caller) as log:
            require_identity(caller)
            record = self._get_existing(property_id)
            authorize(caller, record.owner).raise_for_denial()

            fields = submission.fields()
            stored = await self._ingest(await submission.images(), log, timeout)

            values = fields.to_columns()
            values["images"] = list(record.images or []) + [obj.url for obj in stored]
            try:
                record = PropertyCRUD.replace(self.db, record, values)
            except Exception:
                await self._cleanup(stored, log)
                raise

            log.log_success(images=len(stored))
            return record

    def delete_property(self, property_id: str, caller: Optional[str]) -> None:
        """Delete a property owned by the caller.

        Raises:
            AuthenticationRequired: If there is no caller
            NotFound: If the property does not exist
            AuthorizationDenied: If the caller is not the owner
        """
        with self._operation("DeleteProperty", property_id=property_id, caller=caller) as log:
            require_identity(caller)
            record = self._get_existing(property_id)
            authorize(caller, record.owner).raise_for_denial()
            PropertyCRUD.delete(self.db, record)
            log.log_success()
