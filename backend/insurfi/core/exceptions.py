"""
Service-layer exceptions for the claims backend.

Every exception carries a machine-readable ``error_code`` and an optional
``context`` dict that is logged and returned to clients as ``details``.
``StorageFailure`` is the exception to that rule: its context stays in the logs.
"""
from typing import Any, Dict, Optional


class ServiceError(RuntimeError):
    error_code = "SERVICE_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "",
        *,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        if error_code:
            self.error_code = error_code
        self.context: Dict[str, Any] = context or {}


class ValidationError(ServiceError):
    """Malformed or missing input, oversized or disallowed attachment."""
    error_code = "VALIDATION_ERROR"
    status_code = 400


class AuthenticationError(ServiceError):
    error_code = "NOT_AUTHENTICATED"
    status_code = 401


class Forbidden(ServiceError):
    """The wallet does not own the resource it is acting on."""
    error_code = "FORBIDDEN"
    status_code = 403


class PolicyNotFound(ServiceError):
    error_code = "POLICY_NOT_FOUND"
    status_code = 404


class ClaimNotFound(ServiceError):
    error_code = "CLAIM_NOT_FOUND"
    status_code = 404


class InvalidTransition(ServiceError):
    """Status change not permitted from the claim's current status."""
    error_code = "INVALID_TRANSITION"
    status_code = 409


class Conflict(ServiceError):
    """The claim changed underneath a concurrent update."""
    error_code = "CONFLICT"
    status_code = 409


class StorageFailure(ServiceError):
    """The datastore rejected an operation. Reported to callers as an internal error."""
    error_code = "STORAGE_FAILURE"
    status_code = 500
