"""Domain exceptions for the ZST Marketplace Service."""


class DomainException(Exception):
    """Base domain exception."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Generic categories, mapped to HTTP status codes by the API layer ---


class ValidationException(DomainException):
    """Invalid input (400)."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR") -> None:
        super().__init__(message=message, code=code)


class AuthenticationException(DomainException):
    """Missing or invalid credentials (401)."""

    def __init__(self, message: str = "Not authenticated", code: str = "NOT_AUTHENTICATED") -> None:
        super().__init__(message=message, code=code)


class PermissionDeniedException(DomainException):
    """Authenticated but not allowed (403)."""

    def __init__(self, message: str = "Not authorized", code: str = "NOT_AUTHORIZED") -> None:
        super().__init__(message=message, code=code)


class NotFoundException(DomainException):
    """Entity not found (404)."""


class ConflictException(DomainException):
    """Operation conflicts with the current state (409)."""


# --- Auth ---


class InvalidCredentialsException(AuthenticationException):
    """Invalid credentials exception."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid email or password",
            code="INVALID_CREDENTIALS",
        )


class InvalidTokenException(AuthenticationException):
    """Invalid token exception."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message=message, code="INVALID_TOKEN")


class TokenExpiredException(AuthenticationException):
    """Token expired exception."""

    def __init__(self) -> None:
        super().__init__(message="Token has expired", code="TOKEN_EXPIRED")


class UserNotFoundException(NotFoundException):
    """User not found exception."""

    def __init__(self, user_id: str = None, email: str = None) -> None:
        if user_id:
            message = f"User with id {user_id} not found"
        elif email:
            message = f"User with email {email} not found"
        else:
            message = "User not found"
        super().__init__(message=message, code="USER_NOT_FOUND")


class EmailAlreadyRegisteredException(ConflictException):
    """Email already in use."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message=f"User with email {email} already exists",
            code="EMAIL_ALREADY_REGISTERED",
        )


# --- Catalog ---


class ProductNotFoundException(NotFoundException):
    """Product not found exception."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            message=f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
        )


class ProductOutOfStockException(ValidationException):
    """Product out of stock exception."""

    def __init__(self, product_name: str) -> None:
        super().__init__(
            message=f"Product out of stock: {product_name}",
            code="PRODUCT_OUT_OF_STOCK",
        )


# --- Orders ---


class OrderNotFoundException(NotFoundException):
    """Order not found exception."""

    def __init__(self, order_ref: str = None) -> None:
        super().__init__(
            message=f"Order not found: {order_ref}" if order_ref else "Order not found",
            code="ORDER_NOT_FOUND",
        )


class InvalidOrderStatusException(ValidationException):
    """Unknown order status value."""

    def __init__(self, status: str) -> None:
        super().__init__(
            message=f"Invalid status value: {status}",
            code="INVALID_ORDER_STATUS",
        )


class OrderPersistenceException(DomainException):
    """Order could not be written; surfaced as 500."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="ORDER_PERSISTENCE_ERROR")


# --- B2B ---


class OfferNotFoundException(NotFoundException):
    """Offer not found exception."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer with id {offer_id} not found",
            code="OFFER_NOT_FOUND",
        )


class OfferNotOpenException(ConflictException):
    """Offer is closed or expired."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer {offer_id} is no longer open",
            code="OFFER_NOT_OPEN",
        )


class OfferExpiredException(ConflictException):
    """Offer end date has passed."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer {offer_id} has expired",
            code="OFFER_EXPIRED",
        )


class ResponseNotFoundException(NotFoundException):
    """Response not found exception."""

    def __init__(self, response_id: str) -> None:
        super().__init__(
            message=f"Response with id {response_id} not found",
            code="RESPONSE_NOT_FOUND",
        )


class ResponseNotPendingException(ConflictException):
    """Response already resolved."""

    def __init__(self, response_id: str) -> None:
        super().__init__(
            message=f"Response {response_id} is not pending",
            code="RESPONSE_NOT_PENDING",
        )


class DuplicatePendingResponseException(ConflictException):
    """Buyer already has a pending response on this offer."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"You already have a pending response on offer {offer_id}; withdraw it first",
            code="DUPLICATE_PENDING_RESPONSE",
        )


class BidTooLowException(ValidationException):
    """Bid does not beat the current minimum."""

    def __init__(self, minimum: float, against_current_bid: bool) -> None:
        reference = "bid" if against_current_bid else "base price"
        super().__init__(
            message=f"Bid must be higher than current {reference} of {minimum} DZD",
            code="BID_TOO_LOW",
        )


class NotificationNotFoundException(NotFoundException):
    """Notification not found exception."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(
            message=f"Notification with id {notification_id} not found",
            code="NOTIFICATION_NOT_FOUND",
        )


# --- Storage ---


class StorageUnavailableException(DomainException):
    """Object storage failed; surfaced as 503."""

    def __init__(self) -> None:
        super().__init__(
            message="Object storage is unavailable",
            code="STORAGE_UNAVAILABLE",
        )
