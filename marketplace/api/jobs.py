"""On-demand triggers for the periodic B2B sweeps."""
import logging

from fastapi import APIRouter, Depends
from prometheus_client import Counter

from marketplace.api.dependencies import get_auction_service, get_current_admin
from marketplace.api.errors import track
from marketplace.domain.models import AuctionSweepResult, NotifySweepResult, User
from marketplace.services.auction_service import AuctionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal/jobs", tags=["jobs"])

job_trigger_counter = Counter(
    "b2b_job_trigger_total", "Total number of manually triggered sweeps", ["status"]
)


@router.post("/close-expired-auctions", response_model=AuctionSweepResult)
async def close_expired_auctions(
    admin: User = Depends(get_current_admin),
    service: AuctionService = Depends(get_auction_service),
) -> AuctionSweepResult:
    """Run the auction closer now."""
    with track(job_trigger_counter, "auction close sweep"):
        logger.info(f"Auction close sweep triggered by {admin.user_id}")
        return await service.close_expired_auctions()


@router.post("/notify-expiring-auctions", response_model=NotifySweepResult)
async def notify_expiring_auctions(
    admin: User = Depends(get_current_admin),
    service: AuctionService = Depends(get_auction_service),
) -> NotifySweepResult:
    """Run the ending-soon dispatcher now."""
    with track(job_trigger_counter, "ending-soon sweep"):
        logger.info(f"Ending-soon sweep triggered by {admin.user_id}")
        return await service.notify_expiring_auctions()
