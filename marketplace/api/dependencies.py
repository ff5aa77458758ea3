"""API dependencies with dependency injection."""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.exceptions import DomainException, UserNotFoundException
from marketplace.domain.models import User, UserRole
from marketplace.infrastructure.database import get_async_session
from marketplace.infrastructure.jwt_handler import JWTHandler
from marketplace.infrastructure.repositories_postgres import (
    PostgresCounterRepository,
    PostgresNotificationRepository,
    PostgresOfferRepository,
    PostgresOrderRepository,
    PostgresProductRepository,
    PostgresResponseRepository,
    PostgresUserRepository,
    PostgresWishlistRepository,
)
from marketplace.infrastructure.storage import get_object_storage
from marketplace.services.auction_service import AuctionService
from marketplace.services.auth_service import AuthService
from marketplace.services.catalog_service import ProductService, WishlistService
from marketplace.services.export_service import ExportService
from marketplace.services.notification_service import NotificationService
from marketplace.services.offer_service import OfferService
from marketplace.services.order_service import OrderService
from marketplace.services.scheduler import build_auction_service
from marketplace.services.upload_service import UploadService

bearer_scheme = HTTPBearer(auto_error=False)

# Singleton instances
_jwt_handler: Optional[JWTHandler] = None


def get_jwt_handler() -> JWTHandler:
    """Get JWTHandler singleton."""
    global _jwt_handler
    if _jwt_handler is None:
        _jwt_handler = JWTHandler()
    return _jwt_handler


# --- Services (one database session per request) ---


def get_auth_service(session: AsyncSession = Depends(get_async_session)) -> AuthService:
    return AuthService(
        user_repository=PostgresUserRepository(session),
        jwt_handler=get_jwt_handler(),
    )


def get_notification_service(session: AsyncSession = Depends(get_async_session)) -> NotificationService:
    return NotificationService(PostgresNotificationRepository(session))


def get_offer_service(session: AsyncSession = Depends(get_async_session)) -> OfferService:
    return OfferService(
        offer_repository=PostgresOfferRepository(session),
        response_repository=PostgresResponseRepository(session),
        user_repository=PostgresUserRepository(session),
        notification_service=NotificationService(PostgresNotificationRepository(session)),
    )


def get_auction_service(session: AsyncSession = Depends(get_async_session)) -> AuctionService:
    return build_auction_service(session)


def get_order_service(session: AsyncSession = Depends(get_async_session)) -> OrderService:
    return OrderService(
        order_repository=PostgresOrderRepository(session),
        product_repository=PostgresProductRepository(session),
        counter_repository=PostgresCounterRepository(session),
    )


def get_export_service(session: AsyncSession = Depends(get_async_session)) -> ExportService:
    return ExportService(
        order_repository=PostgresOrderRepository(session),
        product_repository=PostgresProductRepository(session),
    )


def get_product_service(session: AsyncSession = Depends(get_async_session)) -> ProductService:
    return ProductService(PostgresProductRepository(session))


def get_wishlist_service(session: AsyncSession = Depends(get_async_session)) -> WishlistService:
    return WishlistService(
        wishlist_repository=PostgresWishlistRepository(session),
        product_repository=PostgresProductRepository(session),
    )


def get_upload_service() -> UploadService:
    return UploadService(get_object_storage())


# --- Current user ---


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    service: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """Resolve the bearer token if one was sent."""
    if credentials is None:
        return None
    try:
        return await service.get_user_from_token(credentials.credentials)
    except UserNotFoundException:
        raise _unauthorized("INVALID_TOKEN", "Token user no longer exists")
    except DomainException as e:
        raise _unauthorized(e.code, e.message)


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Require an authenticated user."""
    if user is None:
        raise _unauthorized("NOT_AUTHENTICATED", "Missing authorization header")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """Require an admin user."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "ADMIN_REQUIRED", "message": "Admin access required"},
        )
    return user
