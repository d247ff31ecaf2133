"""FastAPI dependencies wiring the property service together."""

from functools import lru_cache
from fastapi import Depends
from sqlalchemy.orm import Session

from ..config import settings
from ..database.connection import get_db
from ..services.ingestion import ImageIngestionPipeline
from ..services.property_service import PropertyService
from ..storage.object_store import ObjectStore, S3ObjectStore


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    """Process-wide object store client."""
    return S3ObjectStore(settings.storage)


def get_ingestion_pipeline(object_store: ObjectStore = Depends(get_object_store)) -> ImageIngestionPipeline:
    return ImageIngestionPipeline(
        object_store,
        folder=settings.storage.folder,
        max_concurrency=settings.storage.max_concurrent_uploads,
    )


def get_property_service(
    db: Session = Depends(get_db),
    pipeline: ImageIngestionPipeline = Depends(get_ingestion_pipeline),
) -> PropertyService:
    return PropertyService(db, pipeline)
