"""Abstract repository interfaces."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from marketplace.domain.models import (
    Notification,
    NotificationType,
    Offer,
    OfferFilter,
    OfferResponse,
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


class UserRepository(ABC):
    """Abstract user repository interface."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user."""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        pass

    @abstractmethod
    async def list_by_seller_category(self, category: SellerCategory) -> List[User]:
        """Get all users of a seller category."""
        pass


class ProductRepository(ABC):
    """Abstract product repository interface."""

    @abstractmethod
    async def create(self, product: Product) -> Product:
        pass

    @abstractmethod
    async def get_by_id(self, product_id: UUID) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def list(self, filters: ProductFilter) -> Tuple[List[Product], int]:
        """Filtered page of products, newest first, with the total count."""
        pass

    @abstractmethod
    async def list_all(self) -> List[Product]:
        pass

    @abstractmethod
    async def update(self, product: Product) -> Product:
        pass

    @abstractmethod
    async def delete(self, product_id: UUID) -> None:
        pass


class WishlistRepository(ABC):
    """Abstract wishlist repository interface."""

    @abstractmethod
    async def add(self, item: WishlistItem) -> bool:
        """Add an entry. Returns False when it already existed."""
        pass

    @abstractmethod
    async def remove(self, user_id: UUID, product_id: UUID) -> bool:
        pass

    @abstractmethod
    async def exists(self, user_id: UUID, product_id: UUID) -> bool:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID) -> List[WishlistItem]:
        pass


class CounterRepository(ABC):
    """Abstract named-counter repository interface."""

    @abstractmethod
    async def next_value(self, name: str, start: int) -> int:
        """Increment and return the counter, initialising it to `start`."""
        pass


class OrderRepository(ABC):
    """Abstract order repository interface."""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Insert the order row only; items are added separately."""
        pass

    @abstractmethod
    async def add_items(self, order_id: UUID, items: Sequence[OrderItem]) -> List[OrderItem]:
        pass

    @abstractmethod
    async def delete(self, order_id: UUID) -> None:
        pass

    @abstractmethod
    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_by_number(self, order_number: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID) -> List[Order]:
        pass

    @abstractmethod
    async def list_by_seller(self, seller_id: UUID) -> List[Order]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Order]:
        pass

    @abstractmethod
    async def update(self, order: Order) -> Order:
        pass


class OfferRepository(ABC):
    """Abstract B2B offer repository interface."""

    @abstractmethod
    async def create(self, offer: Offer) -> Offer:
        pass

    @abstractmethod
    async def get_by_id(self, offer_id: UUID, for_update: bool = False) -> Optional[Offer]:
        """Get offer by ID, optionally locking the row."""
        pass

    @abstractmethod
    async def list(
        self, filters: OfferFilter, categories: Sequence[SellerCategory]
    ) -> Tuple[List[Offer], int]:
        """Filtered page of offers targeted at `categories`, with the total count."""
        pass

    @abstractmethod
    async def list_by_seller(
        self,
        seller_id: UUID,
        status: Optional[OfferStatus] = None,
        offer_type: Optional[OfferType] = None,
    ) -> List[Offer]:
        pass

    @abstractmethod
    async def list_open_ended(self, at: datetime) -> List[Offer]:
        """Open offers whose end date is at or before `at`."""
        pass

    @abstractmethod
    async def list_open_auctions_ending_between(self, start: datetime, end: datetime) -> List[Offer]:
        """Open auctions with start < ends_at <= end."""
        pass

    @abstractmethod
    async def update(self, offer: Offer) -> Offer:
        """Persist editable fields; never changes the status."""
        pass

    @abstractmethod
    async def set_current_bid(self, offer_id: UUID, amount: float, bidder_id: UUID) -> None:
        pass

    @abstractmethod
    async def transition_status(self, offer_id: UUID, status: OfferStatus) -> bool:
        """Move an open offer to `status`.

        Returns False when the offer was no longer open.
        """
        pass

    @abstractmethod
    async def delete(self, offer_id: UUID) -> None:
        pass


class ResponseRepository(ABC):
    """Abstract B2B response repository interface."""

    @abstractmethod
    async def create(self, response: OfferResponse) -> OfferResponse:
        pass

    @abstractmethod
    async def get_by_id(self, response_id: UUID) -> Optional[OfferResponse]:
        pass

    @abstractmethod
    async def get_pending(self, offer_id: UUID, buyer_id: UUID) -> Optional[OfferResponse]:
        pass

    @abstractmethod
    async def list_by_offer(
        self,
        offer_id: UUID,
        status: Optional[ResponseStatus] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        """Responses on an offer, newest first."""
        pass

    @abstractmethod
    async def list_by_buyer(
        self,
        buyer_id: UUID,
        status: Optional[ResponseStatus] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        pass

    @abstractmethod
    async def transition_status(self, response_id: UUID, status: ResponseStatus) -> bool:
        """Move a pending response to `status`.

        Returns False when the response was no longer pending.
        """
        pass

    @abstractmethod
    async def resolve_pending(
        self,
        offer_id: UUID,
        status: ResponseStatus,
        exclude_id: Optional[UUID] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        """Move pending responses of an offer to `status`; returns those moved."""
        pass

    @abstractmethod
    async def delete_by_offer(self, offer_id: UUID) -> None:
        pass


class NotificationRepository(ABC):
    """Abstract notification repository interface."""

    @abstractmethod
    async def create(self, notification: Notification) -> Notification:
        pass

    @abstractmethod
    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        pass

    @abstractmethod
    async def list_by_user(
        self,
        user_id: UUID,
        read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        pass

    @abstractmethod
    async def count_unread(self, user_id: UUID) -> int:
        pass

    @abstractmethod
    async def mark_read(self, notification_id: UUID) -> None:
        pass

    @abstractmethod
    async def mark_all_read(self, user_id: UUID) -> int:
        pass

    @abstractmethod
    async def delete(self, notification_id: UUID) -> None:
        pass

    @abstractmethod
    async def exists(self, user_id: UUID, offer_id: UUID, notification_type: NotificationType) -> bool:
        pass
