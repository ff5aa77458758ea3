"""Periodic B2B sweeps: closing ended offers and warning about ending auctions."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from marketplace.config import settings
from marketplace.domain.exceptions import OfferNotOpenException
from marketplace.domain.models import (
    AuctionSweepResult,
    NotificationType,
    NotifySweepResult,
    Offer,
    OfferStatus,
    ResponseStatus,
    ResponseType,
)
from marketplace.infrastructure.repositories import OfferRepository, ResponseRepository
from marketplace.services.notification_service import NotificationService
from marketplace.services.offer_service import rejection_type
from marketplace.utils import now

logger = logging.getLogger(__name__)


class AuctionService:
    """Auction closer and ending-soon dispatcher."""

    def __init__(
        self,
        offer_repository: OfferRepository,
        response_repository: ResponseRepository,
        notification_service: NotificationService,
    ):
        self.offer_repository = offer_repository
        self.response_repository = response_repository
        self.notification_service = notification_service

    async def close_expired_auctions(self, at: Optional[datetime] = None) -> AuctionSweepResult:
        """Settle every open offer whose end date has passed.

        The highest pending bid wins (earliest on equal amounts) and the
        offer is closed; with no bid the offer expires. Remaining pending
        responses are rejected either way.
        """
        at = at or now()
        result = AuctionSweepResult()

        for offer in await self.offer_repository.list_open_ended(at):
            locked = await self.offer_repository.get_by_id(offer.offer_id, for_update=True)
            if locked is None or locked.status != OfferStatus.OPEN:
                continue

            bids = await self.response_repository.list_by_offer(
                offer.offer_id, status=ResponseStatus.PENDING, response_type=ResponseType.BID
            )
            if bids:
                winner = min(bids, key=lambda r: (-r.amount, r.created_at))
                if await self._close_with_winner(locked, winner.response_id, winner.buyer_id, winner.amount):
                    result.closed += 1
            elif await self._expire(locked):
                result.expired += 1

        logger.info(f"Auction sweep at {at.isoformat()}: {result.closed} closed, {result.expired} expired")
        return result

    async def _close_with_winner(self, offer: Offer, winner_id: UUID, buyer_id: UUID, amount: float) -> bool:
        if not await self.response_repository.transition_status(winner_id, ResponseStatus.ACCEPTED):
            logger.warning(f"Winning response {winner_id} was no longer pending, offer {offer.offer_id} left open")
            return False
        if not await self.offer_repository.transition_status(offer.offer_id, OfferStatus.CLOSED):
            raise OfferNotOpenException(str(offer.offer_id))

        losers = await self.response_repository.resolve_pending(
            offer.offer_id, ResponseStatus.REJECTED, exclude_id=winner_id
        )

        await self.notification_service.notify(
            buyer_id,
            NotificationType.AUCTION_WON,
            "Enchère remportée",
            f"Vous avez remporté l'enchère \"{offer.title}\" avec {amount} DA.",
            offer_id=offer.offer_id,
            response_id=winner_id,
            metadata={"amount": amount},
        )
        for loser in losers:
            await self.notification_service.notify(
                loser.buyer_id,
                rejection_type(loser),
                "Enchère terminée",
                f"L'enchère \"{offer.title}\" est terminée, votre offre n'a pas été retenue.",
                offer_id=offer.offer_id,
                response_id=loser.response_id,
            )

        logger.info(f"Offer {offer.offer_id} closed, winning response {winner_id} at {amount}")
        return True

    async def _expire(self, offer: Offer) -> bool:
        if not await self.offer_repository.transition_status(offer.offer_id, OfferStatus.EXPIRED):
            return False

        rejected = await self.response_repository.resolve_pending(offer.offer_id, ResponseStatus.REJECTED)
        for response in rejected:
            await self.notification_service.notify(
                response.buyer_id,
                rejection_type(response),
                "Offre expirée",
                f"L'offre \"{offer.title}\" a expiré.",
                offer_id=offer.offer_id,
                response_id=response.response_id,
            )
        await self.notification_service.notify(
            offer.seller_id,
            NotificationType.OFFER_EXPIRED,
            "Offre expirée",
            f"Votre offre \"{offer.title}\" a expiré sans être conclue.",
            offer_id=offer.offer_id,
        )

        logger.info(f"Offer {offer.offer_id} expired, {len(rejected)} responses rejected")
        return True

    async def notify_expiring_auctions(
        self,
        at: Optional[datetime] = None,
        window_seconds: int = settings.auction_ending_soon_window_seconds,
    ) -> NotifySweepResult:
        """Warn sellers and bidders of auctions ending within the window.

        Each user gets at most one ending-soon notification per offer.
        """
        at = at or now()
        notified = 0

        auctions = await self.offer_repository.list_open_auctions_ending_between(
            at, at + timedelta(seconds=window_seconds)
        )
        for auction in auctions:
            responses = await self.response_repository.list_by_offer(auction.offer_id)
            bidders: List[UUID] = []
            for response in responses:
                if response.buyer_id not in bidders:
                    bidders.append(response.buyer_id)

            sent = 0
            for user_id in [auction.seller_id] + bidders:
                if await self.notification_service.already_notified(
                    user_id, auction.offer_id, NotificationType.AUCTION_ENDING_SOON
                ):
                    continue
                if user_id == auction.seller_id:
                    message = f"Votre enchère \"{auction.title}\" se termine dans moins d'une heure."
                else:
                    message = f"L'enchère \"{auction.title}\" se termine dans moins d'une heure."
                await self.notification_service.notify(
                    user_id,
                    NotificationType.AUCTION_ENDING_SOON,
                    "Enchère bientôt terminée",
                    message,
                    offer_id=auction.offer_id,
                )
                sent += 1

            if sent:
                notified += 1

        logger.info(f"Ending-soon sweep at {at.isoformat()}: {notified} auctions notified")
        return NotifySweepResult(notified=notified)
