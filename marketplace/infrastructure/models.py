"""SQLAlchemy ORM models for database tables."""
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PostgreSQL_UUID
from sqlalchemy.types import CHAR, JSON, TypeDecorator

from marketplace.domain.models import (
    NotificationType,
    OfferStatus,
    OfferType,
    OrderStatus,
    PaymentStatus,
    ResponseStatus,
    ResponseType,
    SellerCategory,
    UserRole,
)
from marketplace.infrastructure.database import Base
from marketplace.utils import now


class GUID(TypeDecorator):
    """Platform-independent GUID type.

    Uses PostgreSQL UUID, otherwise CHAR(32), storing as stringified hex.
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgreSQL_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return str(value)
        else:
            if not isinstance(value, uuid.UUID):
                return "%.32x" % uuid.UUID(value).int
            else:
                return "%.32x" % value.int

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        else:
            if not isinstance(value, uuid.UUID):
                value = uuid.UUID(str(value))
            return value


def _enum(enum_cls, name: str) -> Enum:
    # Persist the lowercase values, not the member names
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


Money = Numeric(12, 2, asdecimal=False)


class UserModel(Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    user_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(_enum(UserRole, "user_role"), nullable=False, default=UserRole.CUSTOMER, index=True)
    seller_category = Column(_enum(SellerCategory, "seller_category"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now)


class ProductModel(Base):
    """SQLAlchemy model for products table."""

    __tablename__ = "products"

    product_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    seller_id = Column(GUID(), ForeignKey("users.user_id"), nullable=True, index=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=False, index=True)
    price = Column(Money, nullable=False)
    original_price = Column(Money, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    product_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String(1000), nullable=False, default="")
    in_stock = Column(Boolean, nullable=False, default=True)
    is_promo = Column(Boolean, nullable=False, default=False)
    min_quantity = Column(Integer, nullable=False, default=1)
    viewers_count = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now, index=True)
    updated_at = Column(DateTime, nullable=False, default=now)


class WishlistModel(Base):
    """SQLAlchemy model for wishlist table."""

    __tablename__ = "wishlist"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), ForeignKey("users.user_id"), nullable=False, index=True)
    product_id = Column(GUID(), ForeignKey("products.product_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=now)

    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),)


class CounterModel(Base):
    """Named monotonic counters (order numbers)."""

    __tablename__ = "counters"

    name = Column(String(100), primary_key=True)
    value = Column(Integer, nullable=False)


class OrderModel(Base):
    """SQLAlchemy model for orders table."""

    __tablename__ = "orders"

    order_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    user_id = Column(GUID(), nullable=True, index=True)
    seller_id = Column(GUID(), nullable=True, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=False)
    customer_address = Column(Text, nullable=False)
    customer_wilaya = Column(String(100), nullable=False)
    total = Column(Money, nullable=False)
    status = Column(_enum(OrderStatus, "order_status"), nullable=False, default=OrderStatus.PENDING, index=True)
    payment_status = Column(
        _enum(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.PENDING
    )
    delivery_date = Column(String(50), nullable=True)
    tracking_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now, index=True)
    updated_at = Column(DateTime, nullable=False, default=now)

    __table_args__ = (Index("idx_orders_seller_status", "seller_id", "status"),)


class OrderItemModel(Base):
    """SQLAlchemy model for order_items table."""

    __tablename__ = "order_items"

    item_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    order_id = Column(GUID(), ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(GUID(), nullable=True)
    product_name = Column(String(255), nullable=False)
    product_image = Column(String(1000), nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    price = Column(Money, nullable=False)
    subtotal = Column(Money, nullable=False)
    created_at = Column(DateTime, nullable=False, default=now)


class OfferModel(Base):
    """SQLAlchemy model for b2b_offers table."""

    __tablename__ = "b2b_offers"

    offer_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    seller_id = Column(GUID(), ForeignKey("users.user_id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    base_price = Column(Money, nullable=False)
    min_quantity = Column(Integer, nullable=False)
    available_quantity = Column(Integer, nullable=False)
    offer_type = Column(_enum(OfferType, "b2b_offer_type"), nullable=False)
    status = Column(_enum(OfferStatus, "b2b_offer_status"), nullable=False, default=OfferStatus.OPEN, index=True)
    current_bid = Column(Money, nullable=True)
    highest_bidder_id = Column(GUID(), nullable=True)
    starts_at = Column(DateTime, nullable=True)
    ends_at = Column(DateTime, nullable=True, index=True)
    target_category = Column(_enum(SellerCategory, "b2b_target_category"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=now, index=True)
    updated_at = Column(DateTime, nullable=False, default=now)

    __table_args__ = (
        Index("idx_b2b_offers_status_target", "status", "target_category"),
        Index("idx_b2b_offers_status_ends", "status", "ends_at"),
    )


class OfferResponseModel(Base):
    """SQLAlchemy model for b2b_offer_responses table."""

    __tablename__ = "b2b_offer_responses"

    response_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    offer_id = Column(GUID(), ForeignKey("b2b_offers.offer_id", ondelete="CASCADE"), nullable=False, index=True)
    buyer_id = Column(GUID(), ForeignKey("users.user_id"), nullable=False, index=True)
    response_type = Column(_enum(ResponseType, "b2b_response_type"), nullable=False)
    status = Column(
        _enum(ResponseStatus, "b2b_response_status"), nullable=False, default=ResponseStatus.PENDING
    )
    amount = Column(Money, nullable=False)
    quantity = Column(Integer, nullable=False)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now)

    __table_args__ = (
        Index("idx_b2b_responses_offer_buyer", "offer_id", "buyer_id"),
        Index("idx_b2b_responses_offer_status", "offer_id", "status"),
    )


class NotificationModel(Base):
    """SQLAlchemy model for b2b_notifications table."""

    __tablename__ = "b2b_notifications"

    notification_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), nullable=False, index=True)
    type = Column(_enum(NotificationType, "b2b_notification_type"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    offer_id = Column(GUID(), nullable=True, index=True)
    response_id = Column(GUID(), nullable=True)
    metadata_json = Column(JSON, nullable=False, default=dict)
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now, index=True)

    __table_args__ = (Index("idx_b2b_notifications_user_read", "user_id", "read"),)
