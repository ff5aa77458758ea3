"""PostgreSQL repository implementations."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.models import (
    Notification,
    NotificationType,
    Offer,
    OfferFilter,
    OfferResponse,
    OfferSort,
    OfferStatus,
    OfferType,
    Order,
    OrderItem,
    Product,
    ProductFilter,
    ResponseStatus,
    ResponseType,
    SellerCategory,
    User,
    WishlistItem,
)
from marketplace.infrastructure.models import (
    CounterModel,
    NotificationModel,
    OfferModel,
    OfferResponseModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
    UserModel,
    WishlistModel,
)
from marketplace.infrastructure.repositories import (
    CounterRepository,
    NotificationRepository,
    OfferRepository,
    OrderRepository,
    ProductRepository,
    ResponseRepository,
    UserRepository,
    WishlistRepository,
)
from marketplace.utils import now

logger = logging.getLogger(__name__)


async def _count(session: AsyncSession, stmt) -> int:
    result = await session.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
    return result.scalar_one()


class PostgresUserRepository(UserRepository):
    """PostgreSQL implementation of user repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, model: UserModel) -> User:
        return User(
            user_id=model.user_id,
            email=model.email,
            password_hash=model.password_hash,
            full_name=model.full_name,
            phone=model.phone,
            role=model.role,
            seller_category=model.seller_category,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, user: User) -> User:
        model = UserModel(**user.model_dump())
        self.session.add(model)
        await self.session.flush()
        logger.info(f"Created user {user.user_id} ({user.role.value})")
        return self._to_domain(model)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.user_id == user_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(func.lower(UserModel.email) == email.lower())
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_by_seller_category(self, category: SellerCategory) -> List[User]:
        stmt = select(UserModel).where(UserModel.seller_category == category)
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]


class PostgresProductRepository(ProductRepository):
    """PostgreSQL implementation of product repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, model: ProductModel) -> Product:
        return Product.model_validate(model)

    async def create(self, product: Product) -> Product:
        model = ProductModel(**product.model_dump())
        self.session.add(model)
        await self.session.flush()
        logger.info(f"Created product {product.product_id} ({product.slug})")
        return self._to_domain(model)

    async def get_by_id(self, product_id: UUID) -> Optional[Product]:
        stmt = select(ProductModel).where(ProductModel.product_id == product_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_by_slug(self, slug: str) -> Optional[Product]:
        stmt = select(ProductModel).where(ProductModel.slug == slug)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list(self, filters: ProductFilter) -> Tuple[List[Product], int]:
        stmt = select(ProductModel)
        if filters.category:
            stmt = stmt.where(ProductModel.category == filters.category)
        if filters.brand:
            stmt = stmt.where(ProductModel.brand == filters.brand)
        if filters.in_stock is not None:
            stmt = stmt.where(ProductModel.in_stock == filters.in_stock)
        if filters.seller_id:
            stmt = stmt.where(ProductModel.seller_id == filters.seller_id)
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(or_(ProductModel.name.ilike(pattern), ProductModel.brand.ilike(pattern)))

        total = await _count(self.session, stmt)
        stmt = (
            stmt.order_by(ProductModel.created_at.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()], total

    async def list_all(self) -> List[Product]:
        stmt = select(ProductModel).order_by(ProductModel.created_at.desc())
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def update(self, product: Product) -> Product:
        stmt = select(ProductModel).where(ProductModel.product_id == product.product_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one()
        for field, value in product.model_dump(exclude={"product_id", "created_at"}).items():
            setattr(model, field, value)
        model.updated_at = now()
        await self.session.flush()
        logger.info(f"Updated product {product.product_id}")
        return self._to_domain(model)

    async def delete(self, product_id: UUID) -> None:
        await self.session.execute(delete(WishlistModel).where(WishlistModel.product_id == product_id))
        await self.session.execute(delete(ProductModel).where(ProductModel.product_id == product_id))
        logger.info(f"Deleted product {product_id}")


class PostgresWishlistRepository(WishlistRepository):
    """PostgreSQL implementation of wishlist repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, item: WishlistItem) -> bool:
        if await self.exists(item.user_id, item.product_id):
            return False
        self.session.add(WishlistModel(**item.model_dump()))
        await self.session.flush()
        return True

    async def remove(self, user_id: UUID, product_id: UUID) -> bool:
        stmt = delete(WishlistModel).where(
            WishlistModel.user_id == user_id,
            WishlistModel.product_id == product_id,
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def exists(self, user_id: UUID, product_id: UUID) -> bool:
        stmt = select(WishlistModel.id).where(
            WishlistModel.user_id == user_id,
            WishlistModel.product_id == product_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_by_user(self, user_id: UUID) -> List[WishlistItem]:
        stmt = (
            select(WishlistModel)
            .where(WishlistModel.user_id == user_id)
            .order_by(WishlistModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [WishlistItem.model_validate(model) for model in result.scalars().all()]


class PostgresCounterRepository(CounterRepository):
    """PostgreSQL implementation of named counters."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_value(self, name: str, start: int) -> int:
        stmt = (
            update(CounterModel)
            .where(CounterModel.name == name)
            .values(value=CounterModel.value + 1)
            .returning(CounterModel.value)
        )
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        if value is None:
            self.session.add(CounterModel(name=name, value=start))
            await self.session.flush()
            value = start
        return value


class PostgresOrderRepository(OrderRepository):
    """PostgreSQL implementation of order repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, model: OrderModel, items: Sequence[OrderItemModel] = ()) -> Order:
        return Order(
            order_id=model.order_id,
            order_number=model.order_number,
            user_id=model.user_id,
            seller_id=model.seller_id,
            customer_name=model.customer_name,
            customer_email=model.customer_email,
            customer_phone=model.customer_phone,
            customer_address=model.customer_address,
            customer_wilaya=model.customer_wilaya,
            total=model.total,
            status=model.status,
            payment_status=model.payment_status,
            delivery_date=model.delivery_date,
            tracking_number=model.tracking_number,
            notes=model.notes,
            created_at=model.created_at,
            updated_at=model.updated_at,
            items=[OrderItem.model_validate(item) for item in items],
        )

    async def _with_items(self, models: Sequence[OrderModel]) -> List[Order]:
        if not models:
            return []
        stmt = (
            select(OrderItemModel)
            .where(OrderItemModel.order_id.in_([model.order_id for model in models]))
            .order_by(OrderItemModel.created_at)
        )
        result = await self.session.execute(stmt)
        by_order = {}
        for item in result.scalars().all():
            by_order.setdefault(item.order_id, []).append(item)
        return [self._to_domain(model, by_order.get(model.order_id, [])) for model in models]

    async def create(self, order: Order) -> Order:
        model = OrderModel(**order.model_dump(exclude={"items"}))
        self.session.add(model)
        await self.session.flush()
        logger.info(f"Created order {order.order_number} ({order.order_id})")
        return self._to_domain(model)

    async def add_items(self, order_id: UUID, items: Sequence[OrderItem]) -> List[OrderItem]:
        models = [
            OrderItemModel(**item.model_dump(exclude={"order_id"}), order_id=order_id)
            for item in items
        ]
        # Savepoint keeps the session usable for the caller's compensating delete
        async with self.session.begin_nested():
            self.session.add_all(models)
            await self.session.flush()
        return [OrderItem.model_validate(model) for model in models]

    async def delete(self, order_id: UUID) -> None:
        await self.session.execute(delete(OrderItemModel).where(OrderItemModel.order_id == order_id))
        await self.session.execute(delete(OrderModel).where(OrderModel.order_id == order_id))
        logger.info(f"Deleted order {order_id}")

    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        stmt = select(OrderModel).where(OrderModel.order_id == order_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return (await self._with_items([model]))[0]

    async def get_by_number(self, order_number: str) -> Optional[Order]:
        stmt = select(OrderModel).where(OrderModel.order_number == order_number)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return (await self._with_items([model]))[0]

    async def list_by_user(self, user_id: UUID) -> List[Order]:
        stmt = select(OrderModel).where(OrderModel.user_id == user_id).order_by(OrderModel.created_at.desc())
        result = await self.session.execute(stmt)
        return await self._with_items(result.scalars().all())

    async def list_by_seller(self, seller_id: UUID) -> List[Order]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.seller_id == seller_id)
            .order_by(OrderModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return await self._with_items(result.scalars().all())

    async def list_all(self) -> List[Order]:
        stmt = select(OrderModel).order_by(OrderModel.created_at.desc())
        result = await self.session.execute(stmt)
        return await self._with_items(result.scalars().all())

    async def update(self, order: Order) -> Order:
        stmt = select(OrderModel).where(OrderModel.order_id == order.order_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one()
        old_status = model.status
        model.status = order.status
        model.payment_status = order.payment_status
        model.tracking_number = order.tracking_number
        model.delivery_date = order.delivery_date
        model.notes = order.notes
        model.updated_at = now()
        await self.session.flush()

        logger.info(f"Updated order {order.order_number} status: {old_status} -> {order.status}")
        return (await self._with_items([model]))[0]


class PostgresOfferRepository(OfferRepository):
    """PostgreSQL implementation of B2B offer repository.

    Status changes go through `transition_status`, a conditional UPDATE on
    `status = 'open'`, so that two concurrent closers cannot both win.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, model: OfferModel) -> Offer:
        """Convert SQLAlchemy model to domain model."""
        return Offer(
            offer_id=model.offer_id,
            seller_id=model.seller_id,
            title=model.title,
            description=model.description,
            images=list(model.images or []),
            tags=list(model.tags or []),
            base_price=model.base_price,
            min_quantity=model.min_quantity,
            available_quantity=model.available_quantity,
            offer_type=model.offer_type,
            status=model.status,
            current_bid=model.current_bid,
            highest_bidder_id=model.highest_bidder_id,
            starts_at=model.starts_at,
            ends_at=model.ends_at,
            target_category=model.target_category,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, offer: Offer) -> OfferModel:
        """Convert domain model to SQLAlchemy model."""
        return OfferModel(**offer.model_dump())

    async def _get_model(self, offer_id: UUID, for_update: bool = False) -> Optional[OfferModel]:
        stmt = (
            select(OfferModel)
            .where(OfferModel.offer_id == offer_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, offer: Offer) -> Offer:
        model = self._to_model(offer)
        self.session.add(model)
        await self.session.flush()
        logger.info(f"Created {offer.offer_type.value} offer {offer.offer_id} for {offer.target_category.value}")
        return self._to_domain(model)

    async def get_by_id(self, offer_id: UUID, for_update: bool = False) -> Optional[Offer]:
        model = await self._get_model(offer_id, for_update=for_update)
        return self._to_domain(model) if model else None

    async def list(
        self, filters: OfferFilter, categories: Sequence[SellerCategory]
    ) -> Tuple[List[Offer], int]:
        if not categories:
            return [], 0

        stmt = select(OfferModel).where(
            OfferModel.target_category.in_(list(categories)),
            OfferModel.status == filters.status,
        )
        if filters.offer_type:
            stmt = stmt.where(OfferModel.offer_type == filters.offer_type)
        if filters.min_price is not None:
            stmt = stmt.where(OfferModel.base_price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(OfferModel.base_price <= filters.max_price)
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(or_(OfferModel.title.ilike(pattern), OfferModel.description.ilike(pattern)))

        if filters.sort_by == OfferSort.PRICE_ASC:
            stmt = stmt.order_by(OfferModel.base_price.asc(), OfferModel.created_at.desc())
        elif filters.sort_by == OfferSort.PRICE_DESC:
            stmt = stmt.order_by(OfferModel.base_price.desc(), OfferModel.created_at.desc())
        elif filters.sort_by == OfferSort.ENDING_SOON:
            stmt = stmt.where(
                OfferModel.offer_type == OfferType.AUCTION,
                OfferModel.ends_at.is_not(None),
            ).order_by(OfferModel.ends_at.asc())
        else:
            stmt = stmt.order_by(OfferModel.created_at.desc())

        total = await _count(self.session, stmt)
        stmt = stmt.offset((filters.page - 1) * filters.limit).limit(filters.limit)
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return [self._to_domain(model) for model in result.scalars().all()], total

    async def list_by_seller(
        self,
        seller_id: UUID,
        status: Optional[OfferStatus] = None,
        offer_type: Optional[OfferType] = None,
    ) -> List[Offer]:
        stmt = select(OfferModel).where(OfferModel.seller_id == seller_id)
        if status:
            stmt = stmt.where(OfferModel.status == status)
        if offer_type:
            stmt = stmt.where(OfferModel.offer_type == offer_type)
        stmt = stmt.order_by(OfferModel.created_at.desc()).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_open_ended(self, at: datetime) -> List[Offer]:
        stmt = (
            select(OfferModel)
            .where(
                OfferModel.status == OfferStatus.OPEN,
                OfferModel.ends_at.is_not(None),
                OfferModel.ends_at <= at,
            )
            .order_by(OfferModel.ends_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_open_auctions_ending_between(self, start: datetime, end: datetime) -> List[Offer]:
        stmt = (
            select(OfferModel)
            .where(
                OfferModel.status == OfferStatus.OPEN,
                OfferModel.offer_type == OfferType.AUCTION,
                OfferModel.ends_at > start,
                OfferModel.ends_at <= end,
            )
            .order_by(OfferModel.ends_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def update(self, offer: Offer) -> Offer:
        model = await self._get_model(offer.offer_id)
        model.title = offer.title
        model.description = offer.description
        model.images = list(offer.images)
        model.tags = list(offer.tags)
        model.base_price = offer.base_price
        model.min_quantity = offer.min_quantity
        model.available_quantity = offer.available_quantity
        model.updated_at = now()
        await self.session.flush()
        logger.info(f"Updated offer {offer.offer_id}")
        return self._to_domain(model)

    async def set_current_bid(self, offer_id: UUID, amount: float, bidder_id: UUID) -> None:
        stmt = (
            update(OfferModel)
            .where(OfferModel.offer_id == offer_id)
            .values(current_bid=amount, highest_bidder_id=bidder_id, updated_at=now())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        logger.info(f"Offer {offer_id} current bid is now {amount} by {bidder_id}")

    async def transition_status(self, offer_id: UUID, status: OfferStatus) -> bool:
        stmt = (
            update(OfferModel)
            .where(OfferModel.offer_id == offer_id, OfferModel.status == OfferStatus.OPEN)
            .values(status=status, updated_at=now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning(f"Offer {offer_id} was not open, skipped transition to {status.value}")
            return False

        logger.info(f"Updated offer {offer_id} status: open -> {status.value}")
        return True

    async def delete(self, offer_id: UUID) -> None:
        await self.session.execute(delete(OfferModel).where(OfferModel.offer_id == offer_id))
        logger.info(f"Deleted offer {offer_id}")


class PostgresResponseRepository(ResponseRepository):
    """PostgreSQL implementation of B2B response repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, model: OfferResponseModel) -> OfferResponse:
        return OfferResponse(
            response_id=model.response_id,
            offer_id=model.offer_id,
            buyer_id=model.buyer_id,
            response_type=model.response_type,
            status=model.status,
            amount=model.amount,
            quantity=model.quantity,
            message=model.message,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _filtered(self, stmt, status, response_type):
        if status:
            stmt = stmt.where(OfferResponseModel.status == status)
        if response_type:
            stmt = stmt.where(OfferResponseModel.response_type == response_type)
        return stmt.execution_options(populate_existing=True)

    async def create(self, response: OfferResponse) -> OfferResponse:
        model = OfferResponseModel(**response.model_dump())
        self.session.add(model)
        await self.session.flush()
        logger.info(
            f"Created {response.response_type.value} {response.response_id} "
            f"on offer {response.offer_id} by {response.buyer_id}"
        )
        return self._to_domain(model)

    async def get_by_id(self, response_id: UUID) -> Optional[OfferResponse]:
        stmt = (
            select(OfferResponseModel)
            .where(OfferResponseModel.response_id == response_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_pending(self, offer_id: UUID, buyer_id: UUID) -> Optional[OfferResponse]:
        stmt = self._filtered(
            select(OfferResponseModel).where(
                OfferResponseModel.offer_id == offer_id,
                OfferResponseModel.buyer_id == buyer_id,
            ),
            ResponseStatus.PENDING,
            None,
        )
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model else None

    async def list_by_offer(
        self,
        offer_id: UUID,
        status: Optional[ResponseStatus] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        stmt = self._filtered(
            select(OfferResponseModel).where(OfferResponseModel.offer_id == offer_id),
            status,
            response_type,
        ).order_by(OfferResponseModel.created_at.desc())
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_by_buyer(
        self,
        buyer_id: UUID,
        status: Optional[ResponseStatus] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        stmt = self._filtered(
            select(OfferResponseModel).where(OfferResponseModel.buyer_id == buyer_id),
            status,
            response_type,
        ).order_by(OfferResponseModel.created_at.desc())
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def transition_status(self, response_id: UUID, status: ResponseStatus) -> bool:
        stmt = (
            update(OfferResponseModel)
            .where(
                OfferResponseModel.response_id == response_id,
                OfferResponseModel.status == ResponseStatus.PENDING,
            )
            .values(status=status, updated_at=now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning(f"Response {response_id} was not pending, skipped transition to {status.value}")
            return False

        logger.info(f"Updated response {response_id} status: pending -> {status.value}")
        return True

    async def resolve_pending(
        self,
        offer_id: UUID,
        status: ResponseStatus,
        exclude_id: Optional[UUID] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        stmt = self._filtered(
            select(OfferResponseModel).where(OfferResponseModel.offer_id == offer_id),
            ResponseStatus.PENDING,
            response_type,
        )
        if exclude_id is not None:
            stmt = stmt.where(OfferResponseModel.response_id != exclude_id)
        result = await self.session.execute(stmt)
        models = result.scalars().all()

        timestamp = now()
        for model in models:
            model.status = status
            model.updated_at = timestamp
        await self.session.flush()

        if models:
            logger.info(f"Marked {len(models)} pending responses on offer {offer_id} as {status.value}")
        return [self._to_domain(model) for model in models]

    async def delete_by_offer(self, offer_id: UUID) -> None:
        await self.session.execute(
            delete(OfferResponseModel).where(OfferResponseModel.offer_id == offer_id)
        )


class PostgresNotificationRepository(NotificationRepository):
    """PostgreSQL implementation of notification repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, model: NotificationModel) -> Notification:
        return Notification(
            notification_id=model.notification_id,
            user_id=model.user_id,
            type=model.type,
            title=model.title,
            message=model.message,
            offer_id=model.offer_id,
            response_id=model.response_id,
            metadata=dict(model.metadata_json or {}),
            read=model.read,
            read_at=model.read_at,
            created_at=model.created_at,
        )

    def _to_model(self, notification: Notification) -> NotificationModel:
        return NotificationModel(
            notification_id=notification.notification_id,
            user_id=notification.user_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            offer_id=notification.offer_id,
            response_id=notification.response_id,
            metadata_json=notification.metadata,
            read=notification.read,
            read_at=notification.read_at,
            created_at=notification.created_at,
        )

    async def create(self, notification: Notification) -> Notification:
        model = self._to_model(notification)
        self.session.add(model)
        await self.session.flush()
        logger.debug(f"Created {notification.type.value} notification for user {notification.user_id}")
        return self._to_domain(model)

    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.notification_id == notification_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_by_user(
        self,
        user_id: UUID,
        read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        stmt = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if read is not None:
            stmt = stmt.where(NotificationModel.read == read)
        if notification_type:
            stmt = stmt.where(NotificationModel.type == notification_type)
        stmt = stmt.order_by(NotificationModel.created_at.desc()).execution_options(populate_existing=True)
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def count_unread(self, user_id: UUID) -> int:
        stmt = select(func.count()).select_from(NotificationModel).where(
            NotificationModel.user_id == user_id,
            NotificationModel.read.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def mark_read(self, notification_id: UUID) -> None:
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.notification_id == notification_id)
            .values(read=True, read_at=now())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def mark_all_read(self, user_id: UUID) -> int:
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.read.is_(False))
            .values(read=True, read_at=now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def delete(self, notification_id: UUID) -> None:
        await self.session.execute(
            delete(NotificationModel).where(NotificationModel.notification_id == notification_id)
        )

    async def exists(self, user_id: UUID, offer_id: UUID, notification_type: NotificationType) -> bool:
        stmt = (
            select(NotificationModel.notification_id)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.offer_id == offer_id,
                NotificationModel.type == notification_type,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
