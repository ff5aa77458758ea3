"""Auth and user routes."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from prometheus_client import Counter, Histogram

from marketplace.api.dependencies import get_auth_service, get_current_user
from marketplace.api.errors import internal_error, to_http_exception, track
from marketplace.domain.exceptions import DomainException, InvalidCredentialsException
from marketplace.domain.models import LoginRequest, LoginResponse, RegisterRequest, User, UserInfo
from marketplace.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth", "users"])

# Prometheus metrics
register_counter = Counter(
    "auth_register_total", "Total number of registration attempts", ["status"]
)
login_counter = Counter(
    "auth_login_total", "Total number of login attempts", ["status"]
)
login_duration = Histogram(
    "auth_login_duration_seconds", "Time spent on login"
)


def _user_info(user: User) -> UserInfo:
    return UserInfo(**user.model_dump(include=set(UserInfo.model_fields)))


@router.post("/auth/register", response_model=UserInfo, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserInfo:
    """Register a new account."""
    with track(register_counter, "registration"):
        return _user_info(await service.register(request))


@router.post("/auth/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Login endpoint."""
    try:
        with login_duration.time():
            response = await service.login(request)
        login_counter.labels(status="success").inc()
        return response
    except InvalidCredentialsException as e:
        logger.warning(f"Login failed: {e.message}")
        login_counter.labels(status="invalid_credentials").inc()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": e.code, "message": e.message},
        )
    except DomainException as e:
        logger.error(f"Domain error during login: {e}")
        login_counter.labels(status="error").inc()
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Unexpected error during login: {e}")
        login_counter.labels(status="internal_error").inc()
        raise internal_error()


@router.get("/users/me", response_model=UserInfo)
async def get_me(user: User = Depends(get_current_user)) -> UserInfo:
    """Current user profile."""
    return _user_info(user)
