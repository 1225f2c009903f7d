"""FastAPI main application."""

import contextlib
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from dicetable import __version__
from dicetable.api.routes import router
from dicetable.api.table_manager import table_manager
from dicetable.config import settings
from dicetable.repositories.round_repository import RoundRepository
from dicetable.services.redis_channel import RedisReplicationChannel
from dicetable.services.replication import InMemoryReplicationChannel, ReplicationChannel
from dicetable.services.snapshot_service import SnapshotService

# Configure logging for the app (must be after imports but before app usage)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)
logging.getLogger("dicetable").setLevel(logging.INFO)
logger = logging.getLogger(__name__)


async def _connect_channel() -> ReplicationChannel:
    channel = RedisReplicationChannel()
    try:
        await channel.connect()
    except (RedisError, TimeoutError, OSError):
        logger.warning("Redis not available, replicating in memory only")
        return InMemoryReplicationChannel()
    return channel


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown events.

    Handles:
    - Replication channel setup (Redis, falling back to in-memory)
    - Database connection initialization
    - Table restoration from MongoDB
    - Periodic snapshot service
    - Cleanup on shutdown
    """
    app.state.channel = await _connect_channel()

    # Hand history is optional
    app.state.repository = RoundRepository()
    try:
        await app.state.repository.connect()
    except (ConnectionError, TimeoutError, OSError, PyMongoError):
        logger.warning("MongoDB not available, running without persistence")
        app.state.repository = None

    table_manager.set_services(app.state.channel, app.state.repository)

    app.state.snapshot_service = SnapshotService(table_manager, app.state.repository)
    if app.state.repository:
        await app.state.snapshot_service.restore_tables()
    await app.state.snapshot_service.start()

    yield

    await app.state.snapshot_service.snapshot_all_tables()
    await app.state.snapshot_service.stop()
    await table_manager.reset()

    if app.state.repository:
        with contextlib.suppress(PyMongoError):
            await app.state.repository.disconnect()

    with contextlib.suppress(RedisError, OSError):
        await app.state.channel.close()


# Create FastAPI app
app = FastAPI(
    title="Dice Table API",
    description="Turn-based multiplayer dice games with a host-authoritative round engine",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url, "http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root() -> dict[str, str]:
    """API info."""
    return {
        "message": "Dice Table API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "dicetable.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info",
    )


if __name__ == "__main__":
    main()
