"""Monitoring endpoints."""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from marketplace.config import settings
from marketplace.infrastructure.database import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["monitoring"])


@router.get("/health")
async def health(session: AsyncSession = Depends(get_async_session)) -> JSONResponse:
    """Liveness plus a database round trip; 503 when the database is unreachable."""
    body = {
        "service": settings.app_name,
        "version": settings.app_version,
        "scheduler": "enabled" if settings.scheduler_enabled else "disabled",
    }
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database ping failed: {e}")
        await session.rollback()
        body.update(status="unhealthy", database="unavailable")
        return JSONResponse(body, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    body.update(status="healthy", database="ok")
    return JSONResponse(body)


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )
