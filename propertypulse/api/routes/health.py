"""Health check routes."""

from datetime import datetime
from fastapi import APIRouter
from pydantic import BaseModel
import logging

from ... import __version__
from ...config import settings
from ...database.connection import check_db_connection

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheck(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str
    database: str
    environment: str


@router.get("/health", response_model=HealthCheck)
async def health_check():
    """Basic health check endpoint.

    Returns:
        HealthCheck: Health check response
    """
    db_status = "healthy" if check_db_connection() else "unhealthy"

    return HealthCheck(
        status=db_status,
        timestamp=datetime.utcnow(),
        version=__version__,
        database=db_status,
        environment=settings.environment
    )


@router.get("/ping")
async def ping():
    """Simple ping endpoint.

    Returns:
        dict: Pong response
    """
    return {"message": "pong", "timestamp": datetime.utcnow()}
