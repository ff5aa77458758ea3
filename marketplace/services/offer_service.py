"""B2B offer and response lifecycle service."""
import logging
import math
from typing import List, Optional
from uuid import UUID

from marketplace.domain import hierarchy
from marketplace.domain.exceptions import (
    BidTooLowException,
    DuplicatePendingResponseException,
    OfferExpiredException,
    OfferNotFoundException,
    OfferNotOpenException,
    PermissionDeniedException,
    ResponseNotFoundException,
    ResponseNotPendingException,
    ValidationException,
)
from marketplace.domain.models import (
    CreateOfferRequest,
    NotificationType,
    Offer,
    OfferDetails,
    OfferFilter,
    OfferPage,
    OfferResponse,
    OfferStatistics,
    OfferStatus,
    OfferType,
    ResponseStatus,
    ResponseType,
    SellerStatistics,
    SubmitResponseRequest,
    UpdateOfferRequest,
    User,
    UserRole,
)
from marketplace.infrastructure.repositories import (
    OfferRepository,
    ResponseRepository,
    UserRepository,
)
from marketplace.services.notification_service import NotificationService
from marketplace.utils import now

logger = logging.getLogger(__name__)

BID_HISTORY_LIMIT = 20


def rejection_type(response: OfferResponse) -> NotificationType:
    """Notification sent to a buyer whose response was turned down."""
    if response.response_type == ResponseType.BID:
        return NotificationType.AUCTION_LOST
    return NotificationType.NEGOTIATION_REJECTED


class OfferService:
    """Service for B2B offers and the bids/negotiations placed on them.

    Every mutation reads the offer row with `for_update=True` and moves it
    out of `open` only through `OfferRepository.transition_status`.
    """

    def __init__(
        self,
        offer_repository: OfferRepository,
        response_repository: ResponseRepository,
        user_repository: UserRepository,
        notification_service: NotificationService,
    ):
        self.offer_repository = offer_repository
        self.response_repository = response_repository
        self.user_repository = user_repository
        self.notification_service = notification_service

    # --- Offers ---

    async def create_offer(self, seller: User, request: CreateOfferRequest) -> Offer:
        """Create an open offer targeted at a lower seller tier."""
        logger.info(f"Creating {request.offer_type.value} offer for seller {seller.user_id}")

        if seller.role != UserRole.SELLER or seller.seller_category is None:
            raise PermissionDeniedException("Only B2B sellers can create offers", code="NOT_A_B2B_SELLER")

        target = request.target_category or hierarchy.default_target(seller.seller_category)
        if target is None or not hierarchy.can_target(seller.seller_category, target):
            raise PermissionDeniedException(
                f"A {seller.seller_category.value} cannot create offers for {target.value if target else 'anyone'}",
                code="TARGET_NOT_ALLOWED",
            )

        if not request.title.strip() or not request.description.strip():
            raise ValidationException("Title and description are required")
        self._validate_terms(request.base_price, request.min_quantity, request.available_quantity)

        current_time = now()
        starts_at = request.starts_at
        if request.offer_type == OfferType.AUCTION:
            if request.ends_at is None:
                raise ValidationException("Auctions require an end date")
            starts_at = starts_at or current_time
            if starts_at >= request.ends_at:
                raise ValidationException("End date must be after start date")
        if request.ends_at is not None and request.ends_at <= current_time:
            raise ValidationException("End date must be in the future")

        offer = Offer(
            seller_id=seller.user_id,
            title=request.title.strip(),
            description=request.description.strip(),
            images=request.images,
            tags=request.tags,
            base_price=request.base_price,
            min_quantity=request.min_quantity,
            available_quantity=request.available_quantity,
            offer_type=request.offer_type,
            status=OfferStatus.OPEN,
            starts_at=starts_at,
            ends_at=request.ends_at,
            target_category=target,
        )
        created = await self.offer_repository.create(offer)

        recipients = await self.user_repository.list_by_seller_category(target)
        for recipient in recipients:
            if recipient.user_id == seller.user_id:
                continue
            await self.notification_service.notify(
                recipient.user_id,
                NotificationType.NEW_OFFER,
                "Nouvelle offre disponible",
                f"Une nouvelle offre \"{created.title}\" est disponible.",
                offer_id=created.offer_id,
                metadata={"offer_type": created.offer_type.value, "base_price": created.base_price},
            )

        logger.info(f"Created offer {created.offer_id}, notified {len(recipients)} sellers")
        return created

    def _validate_terms(self, base_price: float, min_quantity: int, available_quantity: int) -> None:
        if base_price <= 0:
            raise ValidationException("Base price must be positive")
        if min_quantity < 1:
            raise ValidationException("Minimum quantity must be at least 1")
        if available_quantity < min_quantity:
            raise ValidationException("Available quantity must be at least the minimum quantity")

    async def _get_owned_offer(self, seller: User, offer_id: UUID, for_update: bool = False) -> Offer:
        offer = await self.offer_repository.get_by_id(offer_id, for_update=for_update)
        if offer is None:
            raise OfferNotFoundException(str(offer_id))
        if offer.seller_id != seller.user_id:
            raise PermissionDeniedException("Only the offer owner can do this", code="NOT_OFFER_OWNER")
        return offer

    async def update_offer(self, seller: User, offer_id: UUID, request: UpdateOfferRequest) -> Offer:
        offer = await self._get_owned_offer(seller, offer_id, for_update=True)
        if offer.status != OfferStatus.OPEN:
            raise OfferNotOpenException(str(offer_id))

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        updated = offer.model_copy(update=changes)
        if not updated.title.strip() or not updated.description.strip():
            raise ValidationException("Title and description are required")
        self._validate_terms(updated.base_price, updated.min_quantity, updated.available_quantity)

        return await self.offer_repository.update(updated)

    async def delete_offer(self, seller: User, offer_id: UUID) -> None:
        await self._get_owned_offer(seller, offer_id, for_update=True)
        await self.response_repository.delete_by_offer(offer_id)
        await self.offer_repository.delete(offer_id)
        logger.info(f"Offer {offer_id} deleted by seller {seller.user_id}")

    async def close_offer(self, seller: User, offer_id: UUID) -> Offer:
        """Close an open offer by hand, rejecting everything still pending."""
        offer = await self._get_owned_offer(seller, offer_id, for_update=True)
        if not await self.offer_repository.transition_status(offer_id, OfferStatus.CLOSED):
            raise OfferNotOpenException(str(offer_id))

        rejected = await self.response_repository.resolve_pending(offer_id, ResponseStatus.REJECTED)
        for response in rejected:
            await self.notification_service.notify(
                response.buyer_id,
                rejection_type(response),
                "Offre clôturée",
                f"L'offre \"{offer.title}\" a été clôturée par le vendeur.",
                offer_id=offer_id,
                response_id=response.response_id,
            )

        logger.info(f"Offer {offer_id} closed manually, {len(rejected)} responses rejected")
        return offer.model_copy(update={"status": OfferStatus.CLOSED})

    async def _details(self, offer: Offer) -> OfferDetails:
        responses = await self.response_repository.list_by_offer(offer.offer_id)
        bids = [
            r.amount
            for r in responses
            if r.response_type == ResponseType.BID and r.status != ResponseStatus.WITHDRAWN
        ]
        seconds_remaining = None
        if offer.ends_at is not None:
            seconds_remaining = max(0, int((offer.ends_at - now()).total_seconds()))

        return OfferDetails(
            **offer.model_dump(),
            pending_responses_count=sum(1 for r in responses if r.status == ResponseStatus.PENDING),
            total_responses_count=len(responses),
            highest_bid_amount=max(bids) if bids else None,
            seconds_remaining=seconds_remaining,
        )

    async def list_available_offers(self, user: User, filters: OfferFilter) -> OfferPage:
        """Marketplace listing restricted to the categories the caller can see."""
        categories = hierarchy.visible_categories(user.seller_category) if user.seller_category else []
        offers, total = await self.offer_repository.list(filters, categories)

        return OfferPage(
            data=[await self._details(offer) for offer in offers],
            page=filters.page,
            limit=filters.limit,
            total=total,
            total_pages=math.ceil(total / filters.limit) if total else 0,
        )

    async def list_my_offers(
        self,
        seller: User,
        status: Optional[OfferStatus] = None,
        offer_type: Optional[OfferType] = None,
    ) -> List[OfferDetails]:
        offers = await self.offer_repository.list_by_seller(seller.user_id, status=status, offer_type=offer_type)
        return [await self._details(offer) for offer in offers]

    def _can_view(self, user: User, offer: Offer) -> bool:
        if user.role == UserRole.ADMIN or offer.seller_id == user.user_id:
            return True
        return user.seller_category is not None and hierarchy.can_see_target(
            user.seller_category, offer.target_category
        )

    async def get_offer(self, user: User, offer_id: UUID) -> OfferDetails:
        offer = await self.offer_repository.get_by_id(offer_id)
        # Offers outside the caller's tiers are reported as missing
        if offer is None or not self._can_view(user, offer):
            raise OfferNotFoundException(str(offer_id))
        return await self._details(offer)

    async def get_offer_statistics(self, seller: User, offer_id: UUID) -> OfferStatistics:
        await self._get_owned_offer(seller, offer_id)
        responses = await self.response_repository.list_by_offer(offer_id)
        bids = [r.amount for r in responses if r.response_type == ResponseType.BID]

        return OfferStatistics(
            total_responses=len(responses),
            total_bids=len(bids),
            total_negotiations=sum(1 for r in responses if r.response_type == ResponseType.NEGOTIATION),
            pending_responses=sum(1 for r in responses if r.status == ResponseStatus.PENDING),
            highest_bid=max(bids) if bids else None,
            average_bid=sum(bids) / len(bids) if bids else None,
        )

    async def get_seller_statistics(self, seller: User) -> SellerStatistics:
        offers = await self.offer_repository.list_by_seller(seller.user_id)
        return SellerStatistics(
            total_offers=len(offers),
            open_offers=sum(1 for o in offers if o.status == OfferStatus.OPEN),
            closed_offers=sum(1 for o in offers if o.status == OfferStatus.CLOSED),
            expired_offers=sum(1 for o in offers if o.status == OfferStatus.EXPIRED),
        )

    # --- Responses ---

    async def submit_response(
        self, buyer: User, offer_id: UUID, request: SubmitResponseRequest
    ) -> OfferResponse:
        """Place a bid or a negotiation on an open offer."""
        logger.info(f"Buyer {buyer.user_id} submitting {request.response_type.value} on offer {offer_id}")

        offer = await self.offer_repository.get_by_id(offer_id, for_update=True)
        if offer is None:
            raise OfferNotFoundException(str(offer_id))
        if offer.seller_id == buyer.user_id:
            raise PermissionDeniedException("You cannot respond to your own offer", code="OWN_OFFER")
        if offer.status != OfferStatus.OPEN:
            raise OfferNotOpenException(str(offer_id))

        current_time = now()
        if offer.has_ended(current_time):
            raise OfferExpiredException(str(offer_id))
        if not hierarchy.can_respond(buyer.seller_category, offer.target_category):
            raise PermissionDeniedException(
                f"This offer is reserved for {offer.target_category.value} sellers",
                code="CATEGORY_NOT_ALLOWED",
            )
        if await self.response_repository.get_pending(offer_id, buyer.user_id):
            raise DuplicatePendingResponseException(str(offer_id))

        if request.response_type == ResponseType.BID:
            if offer.offer_type != OfferType.AUCTION:
                raise ValidationException("Bids are only allowed on auction offers", code="BID_NOT_ALLOWED")
            if offer.starts_at is not None and offer.starts_at > current_time:
                raise ValidationException("Auction has not started yet", code="AUCTION_NOT_STARTED")
        elif offer.offer_type != OfferType.NEGOTIABLE:
            raise ValidationException(
                "Negotiations are only allowed on negotiable offers", code="NEGOTIATION_NOT_ALLOWED"
            )

        if request.quantity < offer.min_quantity:
            raise ValidationException(f"Minimum quantity is {offer.min_quantity}", code="QUANTITY_TOO_LOW")
        if request.quantity > offer.available_quantity:
            raise ValidationException(
                f"Only {offer.available_quantity} units available", code="QUANTITY_TOO_HIGH"
            )

        if request.response_type == ResponseType.BID:
            minimum = offer.current_bid if offer.current_bid is not None else offer.base_price
            if request.amount <= minimum:
                raise BidTooLowException(minimum, against_current_bid=offer.current_bid is not None)

        response = await self.response_repository.create(
            OfferResponse(
                offer_id=offer_id,
                buyer_id=buyer.user_id,
                response_type=request.response_type,
                status=ResponseStatus.PENDING,
                amount=request.amount,
                quantity=request.quantity,
                message=request.message,
            )
        )

        if request.response_type == ResponseType.BID:
            await self.offer_repository.set_current_bid(offer_id, request.amount, buyer.user_id)
            outbid = await self.response_repository.resolve_pending(
                offer_id,
                ResponseStatus.OUTBID,
                exclude_id=response.response_id,
                response_type=ResponseType.BID,
            )
            for previous in outbid:
                await self.notification_service.notify(
                    previous.buyer_id,
                    NotificationType.OUTBID,
                    "Vous avez été surenchéri",
                    f"Une offre de {request.amount} DA a dépassé votre enchère sur \"{offer.title}\".",
                    offer_id=offer_id,
                    response_id=previous.response_id,
                    metadata={"amount": request.amount},
                )
            await self.notification_service.notify(
                offer.seller_id,
                NotificationType.NEW_BID,
                "Nouvelle enchère",
                f"Nouvelle enchère de {request.amount} DA sur \"{offer.title}\".",
                offer_id=offer_id,
                response_id=response.response_id,
                metadata={"amount": request.amount, "quantity": request.quantity},
            )
        else:
            await self.notification_service.notify(
                offer.seller_id,
                NotificationType.NEGOTIATION_SUBMITTED,
                "Nouvelle proposition",
                f"Nouvelle proposition de {request.amount} DA pour {request.quantity} unités sur \"{offer.title}\".",
                offer_id=offer_id,
                response_id=response.response_id,
                metadata={"amount": request.amount, "quantity": request.quantity},
            )

        logger.info(f"Response {response.response_id} recorded on offer {offer_id}")
        return response

    async def _get_response(self, response_id: UUID) -> OfferResponse:
        response = await self.response_repository.get_by_id(response_id)
        if response is None:
            raise ResponseNotFoundException(str(response_id))
        return response

    async def accept_response(self, seller: User, response_id: UUID) -> OfferResponse:
        """Accept one pending response, rejecting the rest and closing the offer."""
        response = await self._get_response(response_id)
        offer = await self._get_owned_offer(seller, response.offer_id, for_update=True)
        if response.status != ResponseStatus.PENDING:
            raise ResponseNotPendingException(str(response_id))
        if offer.status != OfferStatus.OPEN:
            raise OfferNotOpenException(str(offer.offer_id))

        if not await self.response_repository.transition_status(response_id, ResponseStatus.ACCEPTED):
            raise ResponseNotPendingException(str(response_id))
        if not await self.offer_repository.transition_status(offer.offer_id, OfferStatus.CLOSED):
            raise OfferNotOpenException(str(offer.offer_id))

        rejected = await self.response_repository.resolve_pending(
            offer.offer_id, ResponseStatus.REJECTED, exclude_id=response_id
        )

        accepted_type = (
            NotificationType.AUCTION_WON
            if response.response_type == ResponseType.BID
            else NotificationType.NEGOTIATION_ACCEPTED
        )
        await self.notification_service.notify(
            response.buyer_id,
            accepted_type,
            "Proposition acceptée",
            f"Votre proposition de {response.amount} DA sur \"{offer.title}\" a été acceptée.",
            offer_id=offer.offer_id,
            response_id=response_id,
            metadata={"amount": response.amount, "quantity": response.quantity},
        )
        for other in rejected:
            await self.notification_service.notify(
                other.buyer_id,
                rejection_type(other),
                "Proposition refusée",
                f"Une autre proposition a été retenue pour \"{offer.title}\".",
                offer_id=offer.offer_id,
                response_id=other.response_id,
            )

        logger.info(f"Response {response_id} accepted, offer {offer.offer_id} closed")
        return response.model_copy(update={"status": ResponseStatus.ACCEPTED})

    async def reject_response(self, seller: User, response_id: UUID) -> OfferResponse:
        response = await self._get_response(response_id)
        offer = await self._get_owned_offer(seller, response.offer_id, for_update=True)
        if response.status != ResponseStatus.PENDING:
            raise ResponseNotPendingException(str(response_id))

        if not await self.response_repository.transition_status(response_id, ResponseStatus.REJECTED):
            raise ResponseNotPendingException(str(response_id))
        await self.notification_service.notify(
            response.buyer_id,
            rejection_type(response),
            "Proposition refusée",
            f"Votre proposition de {response.amount} DA sur \"{offer.title}\" a été refusée.",
            offer_id=offer.offer_id,
            response_id=response_id,
        )
        return response.model_copy(update={"status": ResponseStatus.REJECTED})

    async def withdraw_response(self, buyer: User, response_id: UUID) -> OfferResponse:
        """Withdraw a pending response. The offer's current bid is left as is."""
        response = await self._get_response(response_id)
        if response.buyer_id != buyer.user_id:
            raise PermissionDeniedException("Only the buyer can withdraw this response", code="NOT_RESPONSE_OWNER")
        if response.status != ResponseStatus.PENDING:
            raise ResponseNotPendingException(str(response_id))

        # Serializes with accept, close and the closer, which all lock the offer
        await self.offer_repository.get_by_id(response.offer_id, for_update=True)
        if not await self.response_repository.transition_status(response_id, ResponseStatus.WITHDRAWN):
            raise ResponseNotPendingException(str(response_id))
        logger.info(f"Response {response_id} withdrawn by buyer {buyer.user_id}")
        return response.model_copy(update={"status": ResponseStatus.WITHDRAWN})

    async def list_offer_responses(
        self,
        seller: User,
        offer_id: UUID,
        status: Optional[ResponseStatus] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        await self._get_owned_offer(seller, offer_id)
        return await self.response_repository.list_by_offer(offer_id, status=status, response_type=response_type)

    async def list_my_responses(
        self,
        buyer: User,
        status: Optional[ResponseStatus] = None,
        response_type: Optional[ResponseType] = None,
    ) -> List[OfferResponse]:
        return await self.response_repository.list_by_buyer(
            buyer.user_id, status=status, response_type=response_type
        )

    async def get_bid_history(self, user: User, offer_id: UUID) -> List[OfferResponse]:
        """Top bids on an offer, highest first."""
        offer = await self.offer_repository.get_by_id(offer_id)
        if offer is None or not self._can_view(user, offer):
            raise OfferNotFoundException(str(offer_id))

        bids = await self.response_repository.list_by_offer(offer_id, response_type=ResponseType.BID)
        bids.sort(key=lambda r: (-r.amount, r.created_at))
        return bids[:BID_HISTORY_LIMIT]

    async def has_user_responded(self, user: User, offer_id: UUID) -> bool:
        """Whether the user has a pending response on the offer."""
        return await self.response_repository.get_pending(offer_id, user.user_id) is not None
