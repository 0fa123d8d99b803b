import logging

from fastapi import HTTPException

from insurfi.core.exceptions import AuthenticationError, ServiceError, StorageFailure

logger = logging.getLogger(__name__)

INTERNAL_ERROR = {"code": "INTERNAL_ERROR", "message": "Internal server error", "details": {}}


def http_error(exc: ServiceError) -> HTTPException:
    """Translate a service exception into the HTTP error the client sees."""
    if isinstance(exc, StorageFailure):
        # detail already logged where the storage call failed
        return HTTPException(status_code=500, detail=INTERNAL_ERROR)

    logger.warning(
        "%s -> %d | code=%s context=%s",
        type(exc).__name__, exc.status_code, exc.error_code, exc.context,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return HTTPException(
        status_code=exc.status_code,
        detail={"code": exc.error_code, "message": str(exc), "details": exc.context},
        headers=headers,
    )
