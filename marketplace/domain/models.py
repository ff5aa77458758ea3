"""Domain models for the ZST Marketplace Service."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from marketplace.utils import now, to_naive_utc


class UserRole(str, Enum):
    """User role enum."""

    CUSTOMER = "customer"
    SELLER = "seller"
    FREELANCER = "freelancer"
    ADMIN = "admin"


class SellerCategory(str, Enum):
    """Seller tier in the B2B hierarchy (importer > wholesaler > supplier)."""

    IMPORTATEUR = "importateur"
    GROSSISTE = "grossiste"
    FOURNISSEUR = "fournisseur"


class OfferType(str, Enum):
    """B2B offer type enum."""

    AUCTION = "auction"
    NEGOTIABLE = "negotiable"


class OfferStatus(str, Enum):
    """B2B offer status enum."""

    OPEN = "open"
    CLOSED = "closed"
    EXPIRED = "expired"


class ResponseType(str, Enum):
    """B2B response type enum."""

    BID = "bid"
    NEGOTIATION = "negotiation"


class ResponseStatus(str, Enum):
    """B2B response status enum."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    OUTBID = "outbid"
    WITHDRAWN = "withdrawn"


class NotificationType(str, Enum):
    """B2B notification type enum."""

    NEW_OFFER = "new_offer"
    NEW_BID = "new_bid"
    OUTBID = "outbid"
    NEGOTIATION_SUBMITTED = "negotiation_submitted"
    NEGOTIATION_ACCEPTED = "negotiation_accepted"
    NEGOTIATION_REJECTED = "negotiation_rejected"
    AUCTION_WON = "auction_won"
    AUCTION_LOST = "auction_lost"
    AUCTION_ENDING_SOON = "auction_ending_soon"
    OFFER_EXPIRED = "offer_expired"


class OrderStatus(str, Enum):
    """Order status enum."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status enum."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OfferSort(str, Enum):
    """Sort orders for the B2B marketplace listing."""

    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    ENDING_SOON = "ending_soon"


# --- Entities ---


class User(BaseModel):
    """User domain model."""

    user_id: UUID = Field(default_factory=uuid4)
    email: str
    password_hash: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    seller_category: Optional[SellerCategory] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    model_config = {"from_attributes": True}


class Product(BaseModel):
    """Catalog product."""

    product_id: UUID = Field(default_factory=uuid4)
    seller_id: Optional[UUID] = None
    slug: str
    name: str
    brand: str
    price: float
    original_price: Optional[float] = None
    category: str
    product_type: Optional[str] = None
    description: str = ""
    image_url: str = ""
    in_stock: bool = True
    is_promo: bool = False
    min_quantity: int = 1
    viewers_count: int = 0
    rating: Optional[float] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    model_config = {"from_attributes": True}


class WishlistItem(BaseModel):
    """Wishlist entry."""

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    product_id: UUID
    created_at: datetime = Field(default_factory=now)

    model_config = {"from_attributes": True}


class OrderItem(BaseModel):
    """Order line item, a snapshot of the product at checkout time."""

    item_id: UUID = Field(default_factory=uuid4)
    order_id: Optional[UUID] = None
    product_id: Optional[UUID] = None
    product_name: str
    product_image: str = ""
    quantity: int
    price: float
    subtotal: float
    created_at: datetime = Field(default_factory=now)

    model_config = {"from_attributes": True}


class Order(BaseModel):
    """Customer order."""

    order_id: UUID = Field(default_factory=uuid4)
    order_number: str
    user_id: Optional[UUID] = None
    seller_id: Optional[UUID] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: str
    customer_address: str
    customer_wilaya: str
    total: float
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    delivery_date: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    items: List[OrderItem] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class Offer(BaseModel):
    """B2B sell offer (auction or negotiable)."""

    offer_id: UUID = Field(default_factory=uuid4)
    seller_id: UUID
    title: str
    description: str
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    base_price: float
    min_quantity: int
    available_quantity: int
    offer_type: OfferType
    status: OfferStatus = OfferStatus.OPEN
    current_bid: Optional[float] = None
    highest_bidder_id: Optional[UUID] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    target_category: SellerCategory
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    model_config = {"from_attributes": True}

    def has_ended(self, at: datetime) -> bool:
        return self.ends_at is not None and self.ends_at <= at


class OfferResponse(BaseModel):
    """A buyer's bid or negotiation against an offer."""

    response_id: UUID = Field(default_factory=uuid4)
    offer_id: UUID
    buyer_id: UUID
    response_type: ResponseType
    status: ResponseStatus = ResponseStatus.PENDING
    amount: float
    quantity: int
    message: Optional[str] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    model_config = {"from_attributes": True}


class Notification(BaseModel):
    """B2B inbox notification."""

    notification_id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    offer_id: Optional[UUID] = None
    response_id: Optional[UUID] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now)

    model_config = {"from_attributes": True}


# --- Auth API ---


class RegisterRequest(BaseModel):
    """Account registration request."""

    email: str
    password: str = Field(min_length=8)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    seller_category: Optional[SellerCategory] = None


class LoginRequest(BaseModel):
    """Login request model."""

    email: str
    password: str


class LoginResponse(BaseModel):
    """Login response model."""

    access_token: str
    token_type: str = "bearer"
    user_id: UUID


class UserInfo(BaseModel):
    """Public view of a user."""

    user_id: UUID
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    seller_category: Optional[SellerCategory] = None


# --- Catalog API ---


class CreateProductRequest(BaseModel):
    """Request to create a catalog product."""

    name: str = Field(min_length=1)
    brand: str
    price: float = Field(gt=0)
    original_price: Optional[float] = None
    category: str
    product_type: Optional[str] = None
    description: str = ""
    image_url: str = ""
    in_stock: bool = True
    is_promo: bool = False
    min_quantity: int = Field(default=1, ge=1)
    slug: Optional[str] = None


class UpdateProductRequest(BaseModel):
    """Partial product update."""

    name: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    original_price: Optional[float] = None
    category: Optional[str] = None
    product_type: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    in_stock: Optional[bool] = None
    is_promo: Optional[bool] = None
    min_quantity: Optional[int] = Field(default=None, ge=1)


class ProductFilter(BaseModel):
    """Product listing filters."""

    category: Optional[str] = None
    brand: Optional[str] = None
    in_stock: Optional[bool] = None
    seller_id: Optional[UUID] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class WishlistToggleResponse(BaseModel):
    """Result of toggling a wishlist entry."""

    success: bool = True
    is_in_wishlist: bool


class UploadResponse(BaseModel):
    """Stored upload location."""

    url: str
    key: str


# --- Orders API ---


class OrderItemRequest(BaseModel):
    """One line of a checkout request."""

    product_id: UUID
    quantity: int


class CreateOrderRequest(BaseModel):
    """Checkout request.

    Customer fields are optional here so that missing values are reported
    as a 400 by the order service rather than a schema error.
    """

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_wilaya: Optional[str] = None
    items: List[OrderItemRequest] = Field(default_factory=list)
    notes: Optional[str] = None


class CreateOrderResponse(BaseModel):
    """Response after creating an order."""

    success: bool = True
    order_id: UUID
    order_number: str
    total: float


class UpdateOrderStatusRequest(BaseModel):
    """Order status update request."""

    order_id: Optional[UUID] = None
    status: Optional[str] = None
    tracking_number: Optional[str] = None
    delivery_date: Optional[str] = None
    notes: Optional[str] = None


class UpdateOrderStatusResponse(BaseModel):
    """Response after an order status update."""

    success: bool = True
    message: str = "Order status updated successfully"
    order_id: UUID
    new_status: OrderStatus


class ExportRequest(BaseModel):
    """Data export request."""

    type: Optional[str] = None


# --- B2B API ---


class CreateOfferRequest(BaseModel):
    """Request to create a B2B offer."""

    title: str
    description: str
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    base_price: float
    min_quantity: int
    available_quantity: int
    offer_type: OfferType
    target_category: Optional[SellerCategory] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class UpdateOfferRequest(BaseModel):
    """Partial update of an open offer."""

    title: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    base_price: Optional[float] = None
    min_quantity: Optional[int] = None
    available_quantity: Optional[int] = None


class OfferFilter(BaseModel):
    """B2B marketplace listing filters."""

    offer_type: Optional[OfferType] = None
    status: OfferStatus = OfferStatus.OPEN
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    search: Optional[str] = None
    sort_by: OfferSort = OfferSort.NEWEST
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class OfferDetails(Offer):
    """Offer enriched with response statistics."""

    pending_responses_count: int = 0
    total_responses_count: int = 0
    highest_bid_amount: Optional[float] = None
    seconds_remaining: Optional[int] = None


class OfferPage(BaseModel):
    """Paginated offer listing."""

    data: List[OfferDetails]
    page: int
    limit: int
    total: int
    total_pages: int


class SubmitResponseRequest(BaseModel):
    """A bid or negotiation submitted by a buyer."""

    response_type: ResponseType
    amount: float = Field(gt=0)
    quantity: int = Field(ge=1)
    message: Optional[str] = None


class OfferStatistics(BaseModel):
    """Per-offer response statistics."""

    total_responses: int
    total_bids: int
    total_negotiations: int
    pending_responses: int
    highest_bid: Optional[float] = None
    average_bid: Optional[float] = None


class SellerStatistics(BaseModel):
    """Per-seller offer statistics."""

    total_offers: int
    open_offers: int
    closed_offers: int
    expired_offers: int


class TopProduct(BaseModel):
    """A product ranked by paid revenue."""

    product_id: Optional[UUID] = None
    product_name: str
    total_quantity: int
    total_revenue: float


class SellerDashboard(BaseModel):
    """Storefront figures for one seller.

    Revenue counts paid orders only; the monthly figure covers the last
    30 days.
    """

    total_products: int
    active_products: int
    out_of_stock_products: int
    total_orders: int
    pending_orders: int
    orders_by_status: Dict[OrderStatus, int]
    total_revenue: float
    monthly_revenue: float
    average_order_value: float
    recent_orders: List[Order]
    top_products: List[TopProduct]


class AuctionSweepResult(BaseModel):
    """Outcome of one auction-closing sweep."""

    closed: int = 0
    expired: int = 0


class NotifySweepResult(BaseModel):
    """Outcome of one ending-soon notification sweep."""

    notified: int = 0
