"""Ownership-based authorization."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import AuthenticationRequired, AuthorizationDenied


class DenyReason(str, Enum):
    """Why a caller was refused."""
    NO_IDENTITY = "no_identity"
    NOT_OWNER = "not_owner"


@dataclass(frozen=True)
class AuthDecision:
    """Outcome of an authorization check."""
    allowed: bool
    reason: Optional[DenyReason] = None

    def raise_for_denial(self) -> None:
        """Raise the exception matching the deny reason, if any."""
        if self.reason is DenyReason.NO_IDENTITY:
            raise AuthenticationRequired("Authentication required")
        if self.reason is DenyReason.NOT_OWNER:
            raise AuthorizationDenied("Caller does not own this property")


ALLOW = AuthDecision(allowed=True)


def authorize(caller: Optional[str], resource_owner: str) -> AuthDecision:
    """Decide whether the caller may mutate a resource.

    Args:
        caller: Identity of the caller, None when unauthenticated
        resource_owner: Identity recorded as the resource owner

    Returns:
        AuthDecision: Allow, or Deny with the reason
    """
    if not caller:
        return AuthDecision(allowed=False, reason=DenyReason.NO_IDENTITY)
    if caller != resource_owner:
        return AuthDecision(allowed=False, reason=DenyReason.NOT_OWNER)
    return ALLOW


def require_identity(caller: Optional[str]) -> str:
    """Return the caller identity or raise AuthenticationRequired."""
    if not caller:
        raise AuthenticationRequired("Authentication required")
    return caller
