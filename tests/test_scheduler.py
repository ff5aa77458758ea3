"""Tests for the background sweep runner."""
import asyncio
import pytest
from unittest.mock import AsyncMock

from marketplace.domain.models import AuctionSweepResult
from marketplace.infrastructure.database import build_engine, build_session_factory, create_schema
from marketplace.services import scheduler
from marketplace.services.auction_service import AuctionService


@pytest.fixture
async def session_factory(monkeypatch: pytest.MonkeyPatch):
    """Point the scheduler at an in-memory database."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_schema(engine)

    factory = build_session_factory(engine)
    monkeypatch.setattr(scheduler, "async_session_factory", factory)
    yield factory

    await engine.dispose()


@pytest.mark.asyncio
async def test_run_sweep_builds_service(session_factory) -> None:
    """Test a sweep receives an auction service bound to a fresh session."""
    # Arrange
    received = []

    async def sweep(service: AuctionService) -> AuctionSweepResult:
        received.append(service)
        return await service.close_expired_auctions()

    before = scheduler.sweep_runs_counter.labels(job="test_ok", status="success")._value.get()

    # Act
    await scheduler.run_sweep("test_ok", sweep)

    # Assert
    assert len(received) == 1
    assert isinstance(received[0], AuctionService)
    assert scheduler.sweep_runs_counter.labels(job="test_ok", status="success")._value.get() == before + 1


@pytest.mark.asyncio
async def test_run_sweep_failure(session_factory) -> None:
    """Test a failing sweep is counted and re-raised."""
    sweep = AsyncMock(side_effect=RuntimeError("db down"))
    before = scheduler.sweep_runs_counter.labels(job="test_fail", status="error")._value.get()

    with pytest.raises(RuntimeError):
        await scheduler.run_sweep("test_fail", sweep)

    assert scheduler.sweep_runs_counter.labels(job="test_fail", status="error")._value.get() == before + 1


@pytest.mark.asyncio
async def test_run_periodically_survives_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the loop keeps going after a failed run."""
    run_sweep = AsyncMock(side_effect=[RuntimeError("boom"), None])
    sleeps = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) == 2:
            raise asyncio.CancelledError()

    monkeypatch.setattr(scheduler, "run_sweep", run_sweep)
    monkeypatch.setattr(scheduler.asyncio, "sleep", fake_sleep)

    with pytest.raises(asyncio.CancelledError):
        await scheduler.run_periodically("job", AsyncMock(), 300)

    assert run_sweep.call_count == 2
    assert sleeps == [300, 300]
