"""Logging configuration and setup."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
import structlog

from ..config import settings


def setup_logging(log_file: Optional[str] = None, log_level: Optional[str] = None) -> None:
    """Set up structured logging for the application.

    Args:
        log_file: Optional log file path, defaults to settings.log_file
        log_level: Logging level, defaults to settings.log_level
    """
    if log_file is None:
        log_file = settings.log_file
    if log_level is None:
        log_level = settings.log_level
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '{"timestamp": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "message": "%(message)s"}'
        ))
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.info(f"Logging configured - Level: {log_level}, File: {log_file}")


class OperationLogger:
    """Specialized logger for property service operations."""

    def __init__(self, operation: str, property_id: Optional[str] = None,
                 caller: Optional[str] = None):
        """Initialize operation logger.

        Args:
            operation: Name of the service operation
            property_id: Optional property ID the operation targets
            caller: Optional caller identity
        """
        self.operation = operation
        self.logger = structlog.get_logger("propertypulse.service").bind(
            operation=operation,
            property_id=property_id,
            caller=caller,
        )

    def bind(self, **context) -> "OperationLogger":
        """Add context (e.g. a newly assigned property id) to subsequent records."""
        self.logger = self.logger.bind(**context)
        return self

    def log_success(self, **details):
        self.logger.info("Operation completed", **details)

    def log_ingestion(self, submitted: int, stored: int):
        self.logger.info("Images ingested", submitted=submitted, stored=stored)

    def log_cleanup(self, removed: int, orphaned: int):
        """Log the outcome of a best-effort object store cleanup.

        Args:
            removed: Objects successfully deleted
            orphaned: Objects that could not be deleted and are left behind
        """
        if orphaned:
            self.logger.warning("Uploaded images orphaned", removed=removed, orphaned=orphaned)
        else:
            self.logger.info("Uploaded images removed", removed=removed)

    def log_error(self, error: Exception, context: dict = None):
        """Log an operation failure with context.

        Args:
            error: Exception that occurred
            context: Additional context information
        """
        self.logger.error(
            "Operation failed",
            error=str(error),
            error_type=type(error).__name__,
            context=context or {},
            exc_info=error if error.__cause__ is not None else False,
        )


class APILogger:
    """Specialized logger for API operations."""

    def __init__(self):
        """Initialize API logger."""
        self.logger = structlog.get_logger("api")

    def log_response(self, method: str, path: str, status_code: int,
                    response_time: float):
        """Log API response.

        Args:
            method: HTTP method
            path: Request path
            status_code: HTTP status code
            response_time: Response time in seconds
        """
        self.logger.info(
            "API response",
            method=method,
            path=path,
            status_code=status_code,
            response_time=response_time
        )

    def log_error(self, method: str, path: str, error: Exception, status_code: int):
        """Log an error surfaced to the client.

        Args:
            method: HTTP method
            path: Request path
            error: Exception that occurred
            status_code: HTTP status code returned
        """
        log = self.logger.error if status_code >= 500 else self.logger.warning
        log(
            "API error",
            method=method,
            path=path,
            status_code=status_code,
            error=str(error),
            error_type=type(error).__name__,
        )
