"""Host side of a round: the single writer of the round document."""

import asyncio
import logging
import uuid
from collections.abc import Callable, Coroutine, Mapping
from typing import Any

from dicetable.bots.base_bot import BaseBot
from dicetable.engine.bot_driver import BotDriver
from dicetable.engine.clock import Clock
from dicetable.engine.round_context import RoundContext
from dicetable.engine.turn_machine import TurnStateMachine
from dicetable.errors import WriteFailure
from dicetable.evaluators import get_evaluator
from dicetable.evaluators.base import HandEvaluator
from dicetable.models.die import FaceSource
from dicetable.models.hand import HandResult
from dicetable.models.round_state import PlayerAction, RoundState
from dicetable.models.table import Table
from dicetable.services.replication import ReplicationChannel, Unsubscribe
from dicetable.services.settlement_service import SettlementResult, SettlementService

logger = logging.getLogger(__name__)

RoundCompleteCallback = Callable[[list[str], list[HandResult], SettlementResult | None], None]


class HostSession:
    """Runs one round on the host.

    Every accepted change is written through the replication channel in a
    background task. Writes are serialized so documents reach the store in
    version order; a failed write is logged and left to the next change to
    supersede. Bot seats are played through BotDriver whenever the turn
    reaches them.
    """

    def __init__(
        self,
        table: Table,
        channel: ReplicationChannel,
        *,
        round_id: str | None = None,
        evaluator: HandEvaluator | None = None,
        bots: Mapping[str, BaseBot] | None = None,
        settlement: SettlementService | None = None,
        face_source: FaceSource | None = None,
        clock: Clock | None = None,
        bot_think_time: float = 0.0,
        host_epoch: int = 0,
        on_round_complete: RoundCompleteCallback | None = None,
    ) -> None:
        """Initialize the host session.

        Args:
            table: Table the round is played at
            channel: Replication channel to write documents to
            round_id: Round identifier, generated when omitted
            evaluator: Evaluator, chosen from the table's variant when omitted
            bots: Bot policy per bot seat id
            settlement: Ante and pot handling, skipped when None
            face_source: Die roller for the round
            clock: Clock used for bot pacing
            bot_think_time: Pause before each bot step, in seconds
            host_epoch: Fencing token for this host's writes
            on_round_complete: Called once with winners, results and the settlement

        """
        self.table = table
        self.channel = channel
        self.round_id = round_id or uuid.uuid4().hex[:12]
        self.settlement = settlement
        self.on_round_complete = on_round_complete
        self.settlement_result: SettlementResult | None = None
        self.write_failures = 0

        self.context = RoundContext(self.round_id)
        self.machine = TurnStateMachine(
            self.round_id,
            table.turn_order(),
            evaluator or get_evaluator(table.variant),
            face_source=face_source,
            context=self.context,
            host_epoch=host_epoch,
            on_change=self._on_change,
            on_round_complete=self._on_complete,
        )
        self.bot_driver = BotDriver(self.machine, bots or {}, clock, bot_think_time)

        self._write_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._unsubscribe: Unsubscribe | None = None

    @property
    def state(self) -> RoundState:
        """Current round document."""
        return self.machine.state

    async def start(self) -> RoundState:
        """Collect antes, listen for client actions and start the round."""
        self._unsubscribe = await self.channel.subscribe_actions(self.round_id, self.handle_action)
        self.table.current_round_id = self.round_id
        if self.settlement:
            self.settlement.collect_antes(self.table)

        logger.info(
            "Starting round %s at table %s with turn order %s",
            self.round_id,
            self.table.id,
            list(self.machine.state.turn_order),
        )
        return self.machine.start_round()

    async def handle_action(self, action: PlayerAction) -> RoundState:
        """Apply an action submitted by a client."""
        if self.bot_driver.is_bot(action.player_id):
            logger.debug("Ignoring client action for bot seat %s", action.player_id)
            return self.machine.state
        return self.machine.apply(action)

    async def flush(self) -> None:
        """Wait until every pending write and bot turn has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Finish pending work and stop listening for actions."""
        await self.flush()
        if self._unsubscribe:
            await self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, state: RoundState) -> None:
        self._spawn(self._write(state))
        if self.bot_driver.is_bot(state.current_turn_player_id):
            self._spawn(self.bot_driver.play_turn(state.current_turn_player_id))

    def _on_complete(self, winners: list[str], results: list[HandResult]) -> None:
        if self.settlement:
            self.settlement_result = self.settlement.settle(self.table, winners, results)
        if self.on_round_complete:
            self.on_round_complete(winners, results, self.settlement_result)

    async def _write(self, state: RoundState) -> None:
        async with self._write_lock:
            try:
                await self.channel.write(self.round_id, state)
            except WriteFailure as e:
                self.write_failures += 1
                logger.warning("Replication write failed for v%s: %s", state.version, e)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Background task failed in round %s", self.round_id, exc_info=task.exception()
            )
