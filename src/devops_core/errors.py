"""Failure taxonomy for Azure DevOps access.

Branch-local failures (NotFoundError, RateLimitedError, RemoteError met
mid-walk) are absorbed by the hierarchy resolver. Everything else aborts the
whole operation.
"""
import enum
from typing import Optional


class DevOpsError(Exception):
    """Base class for all Azure DevOps access failures."""
    pass


class ValidationError(DevOpsError):
    """Raised for malformed tool input (bad work item id, incomplete credentials)."""
    pass


class AuthFailure(str, enum.Enum):
    """Why the backend rejected the credential."""

    EXPIRED = "expired"
    INVALID = "invalid"
    FORBIDDEN = "forbidden"
    INCOMPLETE = "incomplete"


AUTH_MESSAGES = {
    AuthFailure.EXPIRED: "Azure DevOps Personal Access Token (PAT) has expired, please renew your PAT",
    AuthFailure.INVALID: "Azure DevOps authentication failed, the PAT is invalid or lacks permissions",
    AuthFailure.FORBIDDEN: "Azure DevOps access denied, check the PAT scopes",
    AuthFailure.INCOMPLETE: "Azure DevOps configuration is incomplete, "
                            "provide AZURE_DEVOPS_PAT and AZURE_DEVOPS_ORG_URL",
}


class AuthError(DevOpsError):
    """Raised when the credential is missing, rejected, expired or under-scoped."""

    def __init__(self, reason: AuthFailure, message: Optional[str] = None):
        super().__init__(message or AUTH_MESSAGES[reason])
        self.reason = reason


class CredentialsIncompleteError(AuthError, ValidationError):
    """Raised before any network call when the token or endpoint is missing."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(AuthFailure.INCOMPLETE, message)


class NotFoundError(DevOpsError):
    """Raised when a work item does not exist or is not accessible."""

    def __init__(self, item_id: int):
        super().__init__(f"Work item {item_id} does not exist or you do not have access to it")
        self.item_id = item_id


class RateLimitedError(DevOpsError):
    """Raised when the backend throttles requests."""

    def __init__(self, retry_after: Optional[str] = None):
        message = "Azure DevOps API rate limit reached"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message)
        self.retry_after = retry_after


class RemoteError(DevOpsError):
    """Raised for any other non-2xx response."""

    def __init__(self, status: int, body: str, reason: str = ""):
        detail = f"{status} {reason}".strip()
        super().__init__(f"Azure DevOps API error: {detail} - {body}")
        self.status = status
        self.body = body


class QueryTimeoutError(DevOpsError, TimeoutError):
    """Raised when a hierarchy walk exceeds its wall-clock budget."""

    def __init__(self, seconds: float):
        super().__init__(f"Query timed out ({seconds:g} seconds)")
        self.seconds = seconds
