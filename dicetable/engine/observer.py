"""Client side of a round: renders replicated snapshots and submits actions."""

import logging

from dicetable.engine.clock import Clock
from dicetable.engine.reconciler import OptimisticLocalReconciler
from dicetable.engine.turn_machine import TurnStateMachine
from dicetable.evaluators import get_evaluator
from dicetable.models.die import FaceSource
from dicetable.models.enums import ActionKind, ReconcileMode
from dicetable.models.round_state import PlayerAction, RoundState
from dicetable.services.replication import ReplicationChannel, Unsubscribe

logger = logging.getLogger(__name__)


class ObserverSession:
    """A client's read-only view of a round, plus optimistic actions for its own seat.

    Actions are applied to a local copy of the state at once and submitted to
    the host with an edit token. The reconciler decides when replicated
    snapshots take over again.
    """

    def __init__(
        self,
        round_id: str,
        channel: ReplicationChannel,
        *,
        client_id: str,
        player_id: str | None = None,
        clock: Clock | None = None,
        protection_window: float = 1.5,
        mode: ReconcileMode = ReconcileMode.TOKEN,
        face_source: FaceSource | None = None,
    ) -> None:
        """Initialize the observer.

        Args:
            round_id: Round to follow
            channel: Replication channel to read from
            client_id: This client's id
            player_id: Seat this client plays, None for a spectator
            clock: Monotonic clock for the protection window
            protection_window: Seconds a local edit masks snapshots
            mode: window or token reconciliation
            face_source: Die roller for local rolls

        """
        self.round_id = round_id
        self.channel = channel
        self.client_id = client_id
        self.player_id = player_id
        self.face_source = face_source
        self.reconciler = OptimisticLocalReconciler(
            client_id, player_id, clock, protection_window, mode
        )
        self._unsubscribe: Unsubscribe | None = None

    @property
    def view(self) -> RoundState | None:
        """State to render."""
        return self.reconciler.view

    async def start(self) -> RoundState | None:
        """Load the current document and subscribe to changes."""
        current = await self.channel.read(self.round_id)
        if current is not None:
            self.reconciler.on_snapshot(current)
        self._unsubscribe = await self.channel.subscribe(self.round_id, self.on_snapshot)
        return self.view

    def on_snapshot(self, snapshot: RoundState) -> None:
        """Feed a replicated snapshot through the reconciler."""
        self.reconciler.on_snapshot(snapshot)

    async def close(self) -> None:
        """Stop following the round."""
        if self._unsubscribe:
            await self._unsubscribe()
            self._unsubscribe = None

    async def roll(self) -> RoundState | None:
        """Roll locally and submit the rolled faces."""
        return await self._submit(ActionKind.ROLL)

    async def toggle_hold(self, die_index: int) -> RoundState | None:
        """Toggle a hold locally and submit it."""
        return await self._submit(ActionKind.TOGGLE_HOLD, die_index)

    async def lock_in(self) -> RoundState | None:
        """Lock in locally and submit it."""
        return await self._submit(ActionKind.LOCK_IN)

    async def _submit(self, kind: ActionKind, die_index: int | None = None) -> RoundState | None:
        view = self.view
        if view is None or self.player_id is None:
            logger.debug("Client %s has nothing to act on", self.client_id)
            return view

        machine = TurnStateMachine.from_state(
            view, get_evaluator(view.variant), face_source=self.face_source
        )
        faces: tuple[int, ...] = ()
        if kind == ActionKind.ROLL:
            state = machine.roll(self.player_id)
            if state is not view:
                before = view.get_player_state(self.player_id).dice
                after = state.get_player_state(self.player_id).dice
                faces = tuple(new.value for old, new in zip(before, after, strict=True) if not old.held)
        elif kind == ActionKind.TOGGLE_HOLD:
            state = machine.toggle_hold(self.player_id, die_index)
        else:
            state = machine.lock_in(self.player_id)

        if state is view:
            return view

        token = self.reconciler.record_local_edit(state)
        action = PlayerAction(
            client_id=self.client_id,
            player_id=self.player_id,
            kind=kind,
            die_index=die_index,
            faces=faces,
            edit_token=token,
        )
        if not await self.channel.publish_action(self.round_id, action):
            logger.warning("Action %s from %s reached no host", kind.value, self.client_id)
        return self.view
