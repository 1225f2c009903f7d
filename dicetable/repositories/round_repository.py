"""Table and hand history repository for MongoDB persistence."""

import logging
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReplaceOne
from pymongo.errors import PyMongoError

from dicetable.config import settings
from dicetable.models.round_state import RoundState
from dicetable.models.table import Table
from dicetable.services.settlement_service import SettlementResult
from dicetable.services.table_serializer import (
    deserialize_table,
    serialize_round_record,
    serialize_table,
)

logger = logging.getLogger(__name__)


class RoundRepository:
    """Repository for tables and completed rounds using MongoDB.

    Tables are snapshotted between hands so they survive restarts. Every
    finished round is appended to the hand history. Live round documents
    are never stored here; they belong to the replication channel.
    """

    def __init__(self) -> None:
        """Initialize repository."""
        self.client: AsyncIOMotorClient[dict[str, Any]] | None = None
        self.db: AsyncIOMotorDatabase[dict[str, Any]] | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and create indexes."""
        try:
            self.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                serverSelectionTimeoutMS=2000,
            )
            self.db = self.client[settings.mongodb_database]

            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_database)

            await self._create_indexes()

        except PyMongoError:
            logger.warning("MongoDB not available")
            raise

    async def _create_indexes(self) -> None:
        """Create indexes for efficient queries."""
        if self.db is None:
            return

        try:
            await self.db.rounds.create_index(
                [("table_id", ASCENDING), ("completed_at", DESCENDING)]
            )
            await self.db.tables.create_index([("updated_at", DESCENDING)])
            logger.info("MongoDB indexes created successfully")
        except PyMongoError:
            logger.exception("Error creating indexes")

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def save_table(self, table: Table) -> bool:
        """Save or update a table (upsert).

        Returns:
            True if successful

        """
        if self.db is None:
            return False

        try:
            result = await self.db.tables.replace_one(
                {"_id": table.id},
                serialize_table(table),
                upsert=True,
            )
            success = result.acknowledged
        except PyMongoError:
            logger.exception("Error saving table %s", table.id)
            return False
        else:
            if success:
                logger.debug("Table %s saved to database", table.id)
            return success

    async def save_tables(self, tables: list[Table]) -> int:
        """Save multiple tables in bulk.

        Returns:
            Number of tables saved

        """
        if self.db is None or not tables:
            return 0

        try:
            operations = [
                ReplaceOne({"_id": table.id}, serialize_table(table), upsert=True)
                for table in tables
            ]
            result = await self.db.tables.bulk_write(operations)
            saved_count = result.upserted_count + result.modified_count
            logger.debug("Bulk saved %d tables", saved_count)
        except PyMongoError:
            logger.exception("Error bulk saving tables")
            return 0
        else:
            return saved_count

    async def find_table(self, table_id: str) -> Table | None:
        """Find and restore a table by ID."""
        if self.db is None:
            return None

        try:
            result = await self.db.tables.find_one({"_id": table_id})
        except PyMongoError:
            logger.exception("Error finding table %s", table_id)
            return None
        else:
            return deserialize_table(result) if result else None

    async def find_tables(self, limit: int = 100) -> list[Table]:
        """Find recently updated tables, for restoring after a restart."""
        if self.db is None:
            return []

        try:
            cursor = self.db.tables.find({}).sort("updated_at", DESCENDING).limit(limit)
            tables = []
            async for doc in cursor:
                try:
                    tables.append(deserialize_table(doc))
                except (KeyError, ValueError) as e:
                    logger.warning("Error deserializing table %s: %s", doc.get("_id"), e)
        except PyMongoError:
            logger.exception("Error finding tables")
            return []
        else:
            return tables

    async def save_round(
        self,
        table: Table,
        state: RoundState,
        settlement: SettlementResult | None = None,
    ) -> bool:
        """Append a finished round to the hand history.

        Returns:
            True if successful

        """
        if self.db is None:
            return False

        try:
            result = await self.db.rounds.replace_one(
                {"_id": state.round_id},
                serialize_round_record(table, state, settlement),
                upsert=True,
            )
        except PyMongoError:
            logger.exception("Error saving round %s", state.round_id)
            return False
        else:
            return result.acknowledged

    async def find_rounds(self, table_id: str, limit: int = 20) -> list[dict[str, Any]]:
        """Get the most recent finished rounds for a table."""
        if self.db is None:
            return []

        try:
            cursor = (
                self.db.rounds.find({"table_id": table_id})
                .sort("completed_at", DESCENDING)
                .limit(limit)
            )
            return [doc async for doc in cursor]
        except PyMongoError:
            logger.exception("Error finding rounds for table %s", table_id)
            return []
