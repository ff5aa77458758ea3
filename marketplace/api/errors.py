"""Translation of domain exceptions into HTTP errors."""
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, status
from prometheus_client import Counter

from marketplace.domain.exceptions import (
    AuthenticationException,
    ConflictException,
    DomainException,
    NotFoundException,
    OrderPersistenceException,
    PermissionDeniedException,
    StorageUnavailableException,
    ValidationException,
)

logger = logging.getLogger(__name__)

STATUS_FOR_EXCEPTION = (
    (ValidationException, status.HTTP_400_BAD_REQUEST),
    (AuthenticationException, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedException, status.HTTP_403_FORBIDDEN),
    (NotFoundException, status.HTTP_404_NOT_FOUND),
    (ConflictException, status.HTTP_409_CONFLICT),
    (OrderPersistenceException, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (StorageUnavailableException, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: DomainException) -> int:
    for exc_type, status_code in STATUS_FOR_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def to_http_exception(exc: DomainException) -> HTTPException:
    return HTTPException(
        status_code=status_for(exc),
        detail={"code": exc.code, "message": exc.message},
    )


def internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "INTERNAL_ERROR", "message": "Internal server error"},
    )


@contextmanager
def track(counter: Counter, action: str) -> Iterator[None]:
    """Count the outcome of a route body and map its exceptions to HTTP errors."""
    try:
        yield
    except HTTPException:
        raise
    except DomainException as e:
        status_code = status_for(e)
        if status_code >= 500:
            logger.error(f"Error during {action}: {e.message}")
        else:
            logger.warning(f"{action} rejected: {e.message}")
        counter.labels(status=e.code.lower()).inc()
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Unexpected error during {action}: {e}")
        counter.labels(status="internal_error").inc()
        raise internal_error()
    else:
        counter.labels(status="success").inc()
