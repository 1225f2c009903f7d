"""Table snapshot service for periodic persistence.

Periodically saves tables (seats, chips, button, pot) to MongoDB so they
survive a restart. Rounds in flight are not resumed after a restart.
"""

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from pymongo.errors import PyMongoError

if TYPE_CHECKING:
    from dicetable.api.table_manager import TableManager
    from dicetable.repositories.round_repository import RoundRepository

logger = logging.getLogger(__name__)

# Snapshot interval in seconds
SNAPSHOT_INTERVAL = 30


class SnapshotService:
    """Saves every table every SNAPSHOT_INTERVAL seconds."""

    def __init__(
        self,
        table_manager: "TableManager",
        repository: "RoundRepository | None",
        interval: float = SNAPSHOT_INTERVAL,
    ) -> None:
        """Initialize snapshot service.

        Args:
            table_manager: Manager holding the live tables
            repository: MongoDB repository, snapshots are skipped when None
            interval: Seconds between snapshots

        """
        self.table_manager = table_manager
        self.repository = repository
        self.interval = interval
        self._running = False
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the background snapshot task."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Snapshot service started (interval: %ss)", self.interval)

    async def stop(self) -> None:
        """Stop the background snapshot task."""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("Snapshot service stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval)
                await self.snapshot_all_tables()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in snapshot loop")
                await asyncio.sleep(5)

    async def snapshot_all_tables(self) -> int:
        """Save every table.

        Returns:
            Number of tables saved

        """
        if not self.repository:
            return 0

        tables = list(self.table_manager.tables.values())
        if not tables:
            return 0

        saved = await self.repository.save_tables(tables)
        if saved > 0:
            logger.info("Snapshot: saved %d tables to MongoDB", saved)
        return saved

    async def restore_tables(self) -> int:
        """Load saved tables into the manager on startup.

        Returns:
            Number of tables restored

        """
        if not self.repository:
            return 0

        try:
            tables = await self.repository.find_tables()
        except PyMongoError:
            logger.exception("Error restoring tables from database")
            return 0

        restored = 0
        for table in tables:
            if table.id in self.table_manager.tables:
                continue
            if table.current_round_id:
                logger.info(
                    "Table %s was mid-round (%s), round abandoned",
                    table.id,
                    table.current_round_id,
                )
                table.current_round_id = None
            self.table_manager.add_table(table)
            restored += 1

        if restored:
            logger.info("Restored %d tables from MongoDB", restored)
        return restored
