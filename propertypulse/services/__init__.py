"""Property service package."""

from .property_service import PropertyService
from .ingestion import ImageIngestionPipeline, SubmittedImage

__all__ = ["PropertyService", "ImageIngestionPipeline", "SubmittedImage"]
