"""Main application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api import auth, b2b, catalog, jobs, monitoring, notifications, orders
from marketplace.config import settings
from marketplace.infrastructure.database import close_db, init_db
from marketplace.logging_config import configure_logging
from marketplace.services.scheduler import start_sweeps

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    logger.info("Initializing PostgreSQL database")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    tasks = start_sweeps() if settings.scheduler_enabled else []
    if not tasks:
        logger.info("B2B sweeps disabled")

    yield

    logger.info("Shutting down")
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    logger.info("Closing database connections")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Orders, catalog and B2B marketplace service for ZST",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(catalog.router)
app.include_router(orders.functions_router)
app.include_router(orders.router)
app.include_router(b2b.router)
app.include_router(notifications.router)
app.include_router(jobs.router)
app.include_router(monitoring.router)


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "storage": "PostgreSQL",
    }


def run() -> None:
    """Serve the app with uvicorn (`zst-marketplace`)."""
    uvicorn.run("marketplace.main:app", host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    run()
