"""Domain layer."""
from marketplace.domain.exceptions import (
    AuthenticationException,
    ConflictException,
    DomainException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from marketplace.domain.models import (
    Notification,
    NotificationType,
    Offer,
    OfferResponse,
    OfferStatus,
    OfferType,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    ResponseStatus,
    ResponseType,
    SellerCategory,
    User,
    UserRole,
    WishlistItem,
)

__all__ = [
    # Models
    "User",
    "UserRole",
    "SellerCategory",
    "Product",
    "WishlistItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Offer",
    "OfferType",
    "OfferStatus",
    "OfferResponse",
    "ResponseType",
    "ResponseStatus",
    "Notification",
    "NotificationType",
    # Exceptions
    "DomainException",
    "ValidationException",
    "AuthenticationException",
    "PermissionDeniedException",
    "NotFoundException",
    "ConflictException",
]
