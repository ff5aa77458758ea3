"""Pytest configuration and fixtures.

Repositories run against SQLite in-memory; the API tests override the
service dependencies with mocks.
"""
import pytest
from datetime import timedelta
from typing import Optional
from unittest.mock import AsyncMock
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.domain.models import (
    CreateOfferRequest,
    Offer,
    OfferType,
    Product,
    SellerCategory,
    User,
    UserRole,
)
from marketplace.infrastructure.database import Base
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
from marketplace.infrastructure.storage import ObjectStorage
from marketplace.services.auction_service import AuctionService
from marketplace.services.catalog_service import ProductService, WishlistService
from marketplace.services.export_service import ExportService
from marketplace.services.notification_service import NotificationService
from marketplace.services.offer_service import OfferService
from marketplace.services.order_service import OrderService
from marketplace.services.upload_service import UploadService
from marketplace.utils import now


@pytest.fixture
async def async_session():
    """Create async session for testing with SQLite in-memory."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


# --- Repositories ---


@pytest.fixture
def user_repository(async_session: AsyncSession) -> PostgresUserRepository:
    return PostgresUserRepository(async_session)


@pytest.fixture
def product_repository(async_session: AsyncSession) -> PostgresProductRepository:
    return PostgresProductRepository(async_session)


@pytest.fixture
def wishlist_repository(async_session: AsyncSession) -> PostgresWishlistRepository:
    return PostgresWishlistRepository(async_session)


@pytest.fixture
def counter_repository(async_session: AsyncSession) -> PostgresCounterRepository:
    return PostgresCounterRepository(async_session)


@pytest.fixture
def order_repository(async_session: AsyncSession) -> PostgresOrderRepository:
    return PostgresOrderRepository(async_session)


@pytest.fixture
def offer_repository(async_session: AsyncSession) -> PostgresOfferRepository:
    return PostgresOfferRepository(async_session)


@pytest.fixture
def response_repository(async_session: AsyncSession) -> PostgresResponseRepository:
    return PostgresResponseRepository(async_session)


@pytest.fixture
def notification_repository(async_session: AsyncSession) -> PostgresNotificationRepository:
    return PostgresNotificationRepository(async_session)


# --- Users ---


@pytest.fixture
def make_user(user_repository: PostgresUserRepository):
    """Factory storing a user with a placeholder password hash."""

    async def _make(
        email: str,
        role: UserRole = UserRole.SELLER,
        seller_category: Optional[SellerCategory] = None,
    ) -> User:
        return await user_repository.create(
            User(
                email=email,
                password_hash="not-a-real-hash",
                full_name=email.split("@")[0].title(),
                role=role,
                seller_category=seller_category,
            )
        )

    return _make


@pytest.fixture
async def importateur(make_user) -> User:
    """Tier 1 seller."""
    return await make_user("importateur@zst.dz", seller_category=SellerCategory.IMPORTATEUR)


@pytest.fixture
async def grossiste(make_user) -> User:
    """Tier 2 seller, the default buyer of importateur offers."""
    return await make_user("grossiste@zst.dz", seller_category=SellerCategory.GROSSISTE)


@pytest.fixture
async def other_grossiste(make_user) -> User:
    """Second tier 2 seller."""
    return await make_user("grossiste2@zst.dz", seller_category=SellerCategory.GROSSISTE)


@pytest.fixture
async def fournisseur(make_user) -> User:
    """Tier 3 seller."""
    return await make_user("fournisseur@zst.dz", seller_category=SellerCategory.FOURNISSEUR)


@pytest.fixture
async def customer(make_user) -> User:
    """Storefront customer."""
    return await make_user("client@zst.dz", role=UserRole.CUSTOMER)


@pytest.fixture
async def admin(make_user) -> User:
    """Admin user."""
    return await make_user("admin@zst.dz", role=UserRole.ADMIN)


# --- Services ---


@pytest.fixture
def notification_service(notification_repository: PostgresNotificationRepository) -> NotificationService:
    return NotificationService(notification_repository)


@pytest.fixture
def offer_service(
    offer_repository: PostgresOfferRepository,
    response_repository: PostgresResponseRepository,
    user_repository: PostgresUserRepository,
    notification_service: NotificationService,
) -> OfferService:
    """Offer service backed by the SQLite repositories."""
    return OfferService(
        offer_repository=offer_repository,
        response_repository=response_repository,
        user_repository=user_repository,
        notification_service=notification_service,
    )


@pytest.fixture
def auction_service(
    offer_repository: PostgresOfferRepository,
    response_repository: PostgresResponseRepository,
    notification_service: NotificationService,
) -> AuctionService:
    return AuctionService(
        offer_repository=offer_repository,
        response_repository=response_repository,
        notification_service=notification_service,
    )


@pytest.fixture
def order_service(
    order_repository: PostgresOrderRepository,
    product_repository: PostgresProductRepository,
    counter_repository: PostgresCounterRepository,
) -> OrderService:
    return OrderService(
        order_repository=order_repository,
        product_repository=product_repository,
        counter_repository=counter_repository,
    )


@pytest.fixture
def product_service(product_repository: PostgresProductRepository) -> ProductService:
    return ProductService(product_repository)


@pytest.fixture
def wishlist_service(
    wishlist_repository: PostgresWishlistRepository,
    product_repository: PostgresProductRepository,
) -> WishlistService:
    return WishlistService(wishlist_repository, product_repository)


@pytest.fixture
def export_service(
    order_repository: PostgresOrderRepository,
    product_repository: PostgresProductRepository,
) -> ExportService:
    return ExportService(order_repository, product_repository)


@pytest.fixture
def mock_storage() -> AsyncMock:
    """Mock object storage."""
    storage = AsyncMock(spec=ObjectStorage)
    storage.put_object = AsyncMock(side_effect=lambda key, body, content_type: f"https://media.test/{key}")
    return storage


@pytest.fixture
def upload_service(mock_storage: AsyncMock) -> UploadService:
    return UploadService(mock_storage, max_bytes=1024, allowed_prefixes=("image/", "video/"))


# --- Sample data ---


@pytest.fixture
def make_product(product_repository: PostgresProductRepository):
    """Factory storing a catalog product."""

    async def _make(
        name: str = "Sauvage",
        price: float = 12000.0,
        seller_id: Optional[UUID] = None,
        in_stock: bool = True,
        min_quantity: int = 1,
    ) -> Product:
        return await product_repository.create(
            Product(
                seller_id=seller_id,
                slug=f"dior-{name.lower().replace(' ', '-')}",
                name=name,
                brand="Dior",
                price=price,
                category="perfume",
                product_type="eau de parfum",
                description="Notes de bergamote et de poivre.",
                image_url=f"https://media.test/{name.lower()}.jpg",
                in_stock=in_stock,
                min_quantity=min_quantity,
            )
        )

    return _make


@pytest.fixture
def auction_request() -> CreateOfferRequest:
    """Auction ending in two days."""
    return CreateOfferRequest(
        title="Lot de 100 flacons Sauvage",
        description="Stock importé, livraison Alger",
        base_price=1000.0,
        min_quantity=10,
        available_quantity=100,
        offer_type=OfferType.AUCTION,
        ends_at=now() + timedelta(days=2),
    )


@pytest.fixture
def negotiable_request() -> CreateOfferRequest:
    """Open-ended negotiable offer."""
    return CreateOfferRequest(
        title="Bougies parfumées",
        description="Palette de 500 bougies",
        base_price=300.0,
        min_quantity=50,
        available_quantity=500,
        offer_type=OfferType.NEGOTIABLE,
    )


@pytest.fixture
async def auction(offer_service: OfferService, importateur: User, auction_request: CreateOfferRequest) -> Offer:
    """Open auction published by the importateur to grossistes."""
    return await offer_service.create_offer(importateur, auction_request)


@pytest.fixture
async def negotiable_offer(
    offer_service: OfferService, importateur: User, negotiable_request: CreateOfferRequest
) -> Offer:
    """Open negotiable offer published by the importateur to grossistes."""
    return await offer_service.create_offer(importateur, negotiable_request)
