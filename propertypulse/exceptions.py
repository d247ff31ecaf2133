"""Exception hierarchy for the property service."""

from typing import List, Optional


class PropertyServiceError(Exception):
    """Base exception for all property service errors."""


class InvalidRequest(PropertyServiceError):
    """Raised when a required parameter or field is missing or malformed."""


class AuthenticationRequired(PropertyServiceError):
    """Raised when the caller has no resolvable identity."""


class AuthorizationDenied(PropertyServiceError):
    """Raised when the caller is authenticated but does not own the resource."""


class NotFound(PropertyServiceError):
    """Raised when the requested property does not exist."""


class UpstreamFailure(PropertyServiceError):
    """Raised when the persistent store or object store is unreachable or erroring."""


class ObjectStoreError(PropertyServiceError):
    """Raised by object store clients when an upload or delete fails."""


class IngestionError(PropertyServiceError):
    """Raised when an image upload fails and the ingestion batch is aborted.

    Attributes:
        index: Position of the failing file in the filtered input
        filename: Name of the failing file
        stored_count: Number of files already durably stored when the batch stopped
        stored: The stored objects themselves, for cleanup by the caller
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        filename: Optional[str] = None,
        stored: Optional[List] = None,
    ):
        super().__init__(message)
        self.index = index
        self.filename = filename
        self.stored = list(stored or [])

    @property
    def stored_count(self) -> int:
        return len(self.stored)
