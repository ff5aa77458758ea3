"""Background loops for the periodic B2B sweeps."""
import asyncio
import logging
from typing import Awaitable, Callable

from prometheus_client import Counter, Histogram
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import settings
from marketplace.infrastructure.database import async_session_factory, session_scope
from marketplace.infrastructure.repositories_postgres import (
    PostgresNotificationRepository,
    PostgresOfferRepository,
    PostgresResponseRepository,
)
from marketplace.services.auction_service import AuctionService
from marketplace.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

sweep_runs_counter = Counter(
    "b2b_sweep_runs_total", "Total number of B2B sweep runs", ["job", "status"]
)
sweep_duration = Histogram(
    "b2b_sweep_duration_seconds", "Time spent in a B2B sweep", ["job"]
)


def build_auction_service(session: AsyncSession) -> AuctionService:
    return AuctionService(
        offer_repository=PostgresOfferRepository(session),
        response_repository=PostgresResponseRepository(session),
        notification_service=NotificationService(PostgresNotificationRepository(session)),
    )


async def run_sweep(job: str, sweep: Callable[[AuctionService], Awaitable]) -> None:
    """Run one sweep in its own transaction."""
    try:
        with sweep_duration.labels(job=job).time():
            async with session_scope(async_session_factory) as session:
                result = await sweep(build_auction_service(session))
    except Exception:
        sweep_runs_counter.labels(job=job, status="error").inc()
        raise
    sweep_runs_counter.labels(job=job, status="success").inc()
    logger.info(f"[Scheduler] {job}: {result.model_dump()}")


async def run_periodically(job: str, sweep: Callable[[AuctionService], Awaitable], interval_seconds: int) -> None:
    """Run a sweep forever, sleeping `interval_seconds` between runs."""
    logger.info(f"[Scheduler] {job} every {interval_seconds}s")
    while True:
        try:
            await run_sweep(job, sweep)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"[Scheduler] {job} failed: {e}")

        await asyncio.sleep(interval_seconds)


def start_sweeps() -> list:
    """Create the auction closer and ending-soon dispatcher tasks."""
    return [
        asyncio.create_task(
            run_periodically(
                "close_expired_auctions",
                lambda service: service.close_expired_auctions(),
                settings.auction_close_interval_seconds,
            )
        ),
        asyncio.create_task(
            run_periodically(
                "notify_expiring_auctions",
                lambda service: service.notify_expiring_auctions(),
                settings.auction_notify_interval_seconds,
            )
        ),
    ]
