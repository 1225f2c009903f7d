"""In-process registry of tables and the rounds hosted for them."""

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from dicetable.api.responses import ErrorCode
from dicetable.bots import BaseBot, BotDifficulty, create_bot
from dicetable.config import settings
from dicetable.engine.dealer_selection import DealerSelectionProtocol
from dicetable.engine.host import HostSession
from dicetable.errors import DiceTableError
from dicetable.models.dealer_selection import DealerSelectionState
from dicetable.models.enums import GameVariant, RoundPhase
from dicetable.models.hand import HandResult
from dicetable.models.player import Seat
from dicetable.models.round_state import PlayerAction, RoundState
from dicetable.models.table import Table
from dicetable.repositories.round_repository import RoundRepository
from dicetable.services.log_service import LogService
from dicetable.services.replication import InMemoryReplicationChannel, ReplicationChannel
from dicetable.services.settlement_service import SettlementResult, SettlementService

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[str, RoundState], Awaitable[None]]
DealerListener = Callable[[str, DealerSelectionState], Awaitable[None]]


class TableError(DiceTableError):
    """A table request that cannot be served."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        """Initialize with an error code and detail."""
        super().__init__(message)
        self.code = code
        self.message = message


class TableManager:
    """Owns every table in this process and hosts their rounds.

    This process is the elected host for its tables. Its host_epoch is taken
    from the start time, so a restarted process fences out writes from the
    process it replaces.
    """

    def __init__(self) -> None:
        """Initialize the manager."""
        self.tables: dict[str, Table] = {}
        self.hosts: dict[str, HostSession] = {}
        self.bots: dict[str, dict[str, BaseBot]] = {}
        self.dealer_selections: dict[str, DealerSelectionState] = {}
        self.channel: ReplicationChannel = InMemoryReplicationChannel()
        self.repository: RoundRepository | None = None
        self.log = LogService()
        self.host_epoch = int(time.time() * 1000)
        self.bot_think_time = settings.bot_think_time
        self._snapshot_listeners: list[SnapshotListener] = []
        self._dealer_listeners: list[DealerListener] = []
        self._round_unsubscribes: dict[str, Callable[[], Awaitable[None]]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def set_services(
        self,
        channel: ReplicationChannel | None,
        repository: RoundRepository | None,
    ) -> None:
        """Set external services for replication and persistence.

        Args:
            channel: Replication channel, in-memory when None
            repository: MongoDB repository, no history when None

        """
        self.channel = channel or InMemoryReplicationChannel()
        self.repository = repository

    def add_snapshot_listener(self, listener: SnapshotListener) -> None:
        """Receive every replicated round document as (table_id, state)."""
        self._snapshot_listeners.append(listener)

    def add_dealer_listener(self, listener: DealerListener) -> None:
        """Receive dealer selection updates as (table_id, state)."""
        self._dealer_listeners.append(listener)

    async def reset(self) -> None:
        """Drop every table and round."""
        for host in list(self.hosts.values()):
            await host.close()
        for unsubscribe in list(self._round_unsubscribes.values()):
            await unsubscribe()
        self.tables.clear()
        self.hosts.clear()
        self.bots.clear()
        self.dealer_selections.clear()
        self._round_unsubscribes.clear()

    # ------------------------------------------------------------------
    # Tables and seats
    # ------------------------------------------------------------------

    def create_table(self, variant: GameVariant | None = None, ante: int | None = None) -> Table:
        """Create an empty table."""
        table = Table(
            id=uuid.uuid4().hex[:8],
            variant=variant or settings.default_variant,
            ante=settings.ante_amount if ante is None else ante,
            created_at=datetime.now(UTC).isoformat(),
        )
        self.tables[table.id] = table
        self.bots[table.id] = {}
        self.log.info("table_created", table_id=table.id, variant=table.variant.value)
        return table

    def add_table(self, table: Table) -> None:
        """Register a table restored from storage."""
        self.tables.setdefault(table.id, table)
        self.bots.setdefault(table.id, {})
        for seat in table.seats:
            if seat.is_bot and seat.id not in self.bots[table.id]:
                self.bots[table.id][seat.id] = create_bot(seat.id, table.variant)

    def get_table(self, table_id: str) -> Table:
        """Get a table.

        Raises:
            TableError: If the table does not exist

        """
        table = self.tables.get(table_id)
        if table is None:
            raise TableError(ErrorCode.TABLE_NOT_FOUND, f"Table {table_id} not found")
        return table

    def get_seat(self, table_id: str, seat_id: str) -> Seat:
        """Get a seat at a table."""
        seat = self.get_table(table_id).get_seat(seat_id)
        if seat is None:
            raise TableError(ErrorCode.SEAT_NOT_FOUND, f"Seat {seat_id} not found")
        return seat

    def add_seat(
        self,
        table_id: str,
        username: str,
        client_id: str | None = None,
        seat_id: str | None = None,
    ) -> Seat:
        """Seat a human player."""
        table = self.get_table(table_id)
        seat = Seat(
            id=seat_id or uuid.uuid4().hex[:8],
            username=username,
            chips=settings.starting_chips,
            client_id=client_id,
        )
        if not table.add_seat(seat):
            raise TableError(ErrorCode.TABLE_IS_FULL, f"Table {table_id} is full")
        self.log.info("seat_added", table_id=table_id, seat_id=seat.id, position=seat.position)
        return seat

    def add_bot(self, table_id: str, difficulty: str | None = None) -> Seat:
        """Seat a bot."""
        if not settings.enable_bots:
            raise TableError(ErrorCode.BOTS_DISABLED, "Bots are disabled")

        table = self.get_table(table_id)
        level = BotDifficulty(difficulty or settings.default_bot_difficulty)
        seat = Seat(
            id=f"bot_{uuid.uuid4().hex[:6]}",
            username=f"Bot {len(self.bots[table_id]) + 1}",
            is_bot=True,
            chips=settings.starting_chips,
        )
        if not table.add_seat(seat):
            raise TableError(ErrorCode.TABLE_IS_FULL, f"Table {table_id} is full")

        self.bots[table_id][seat.id] = create_bot(seat.id, table.variant, level)
        self.log.info("bot_added", table_id=table_id, seat_id=seat.id, difficulty=level.value)
        return seat

    def remove_seat(self, table_id: str, seat_id: str) -> None:
        """Remove a seat between rounds."""
        table = self.get_table(table_id)
        self._require_no_round(table_id)
        if not table.remove_seat(seat_id):
            raise TableError(ErrorCode.SEAT_NOT_FOUND, f"Seat {seat_id} not found")
        self.bots[table_id].pop(seat_id, None)

    def set_sitting_out(self, table_id: str, seat_id: str, sitting_out: bool) -> Seat:
        """Sit a seat out of (or back into) the next rounds."""
        seat = self.get_seat(table_id, seat_id)
        seat.sitting_out = sitting_out
        return seat

    # ------------------------------------------------------------------
    # Dealer selection
    # ------------------------------------------------------------------

    async def select_dealer(self, table_id: str) -> DealerSelectionState:
        """Run high-card dealer selection and move the button."""
        table = self.get_table(table_id)
        self._require_no_round(table_id)

        def on_selected(position: int) -> None:
            table.dealer_position = position
            self.log.info("dealer_selected", table_id=table_id, position=position)

        protocol = DealerSelectionProtocol(
            table,
            allow_bot_dealers=settings.allow_bot_dealers,
            on_dealer_selected=on_selected,
        )
        protocol.run()
        self.dealer_selections[table_id] = protocol.state

        for listener in self._dealer_listeners:
            await listener(table_id, protocol.state)
        return protocol.state

    def get_dealer_selection(self, table_id: str) -> DealerSelectionState | None:
        """Get the last dealer selection for a table."""
        self.get_table(table_id)
        return self.dealer_selections.get(table_id)

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    async def start_round(self, table_id: str) -> RoundState:
        """Collect antes and start a round hosted by this process."""
        table = self.get_table(table_id)
        self._require_no_round(table_id)
        if not table.can_start():
            raise TableError(ErrorCode.NOT_ENOUGH_PLAYERS, "No active seats")
        if table.dealer_position is None:
            raise TableError(ErrorCode.DEALER_NOT_SELECTED, "Select a dealer first")

        previous = self.hosts.pop(table_id, None)
        if previous:
            await previous.close()
        stale = self._round_unsubscribes.pop(table_id, None)
        if stale:
            await stale()

        round_id = f"{table_id}-{table.hand_number + 1}-{uuid.uuid4().hex[:6]}"
        self._round_unsubscribes[table_id] = await self.channel.subscribe(
            round_id, lambda state: self._broadcast(table_id, state)
        )

        host = HostSession(
            table,
            self.channel,
            round_id=round_id,
            bots=self.bots[table_id],
            settlement=SettlementService(settings.tie_policy, log_service=self.log),
            bot_think_time=self.bot_think_time,
            host_epoch=self.host_epoch,
            on_round_complete=lambda w, r, s: self._on_round_complete(table_id, w, r, s),
        )
        self.hosts[table_id] = host
        return await host.start()

    async def submit_action(self, table_id: str, action: PlayerAction) -> RoundState:
        """Apply a client action to the table's round."""
        table = self.get_table(table_id)
        host = self.hosts.get(table_id)
        if host is None or host.state.phase != RoundPhase.PLAYING:
            raise TableError(ErrorCode.NO_ACTIVE_ROUND, "No round in progress")

        seat = table.get_seat(action.player_id)
        if seat is None:
            raise TableError(ErrorCode.SEAT_NOT_FOUND, f"Seat {action.player_id} not found")
        if seat.is_bot or seat.client_id is None or seat.client_id != action.client_id:
            raise TableError(ErrorCode.NOT_YOUR_SEAT, "Seat is not bound to this client")

        return await host.handle_action(action)

    def get_round(self, table_id: str) -> RoundState | None:
        """Get the current (or last) round document for a table."""
        self.get_table(table_id)
        host = self.hosts.get(table_id)
        return host.state if host else None

    async def flush(self, table_id: str) -> None:
        """Wait for the table's pending writes, bot turns and history saves."""
        host = self.hosts.get(table_id)
        if host:
            await host.flush()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _require_no_round(self, table_id: str) -> None:
        host = self.hosts.get(table_id)
        if host is not None and host.state.phase != RoundPhase.COMPLETE:
            raise TableError(ErrorCode.ROUND_IN_PROGRESS, "A round is in progress")

    async def _broadcast(self, table_id: str, state: RoundState) -> None:
        for listener in self._snapshot_listeners:
            await listener(table_id, state)

    def _on_round_complete(
        self,
        table_id: str,
        winners: list[str],
        results: list[HandResult],
        settlement: SettlementResult | None,
    ) -> None:
        table = self.tables.get(table_id)
        host = self.hosts.get(table_id)
        self.log.info(
            "round_complete",
            table_id=table_id,
            winners=",".join(winners) or "-",
            hands=len(results),
            pot=table.pot if table else 0,
        )
        if table is None or host is None or self.repository is None:
            return

        task = asyncio.create_task(self.repository.save_round(table, host.state, settlement))
        self._tasks.add(task)
        task.add_done_callback(self._save_done)

    def _save_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Saving round history failed", exc_info=task.exception())


# Global table manager instance
table_manager = TableManager()
