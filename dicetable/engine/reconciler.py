"""Merges a client's optimistic local edits with replicated snapshots."""

import logging
from dataclasses import replace

from dicetable.engine.clock import Clock, MonotonicClock
from dicetable.models.enums import ReconcileMode
from dicetable.models.round_state import RoundState

logger = logging.getLogger(__name__)


class OptimisticLocalReconciler:
    """Decides, per snapshot, whether the client's own pending edit or the
    replicated document is the truth for the client's seat.

    window mode:
        For protection_window seconds after a local edit, the seat's part of
        every incoming snapshot is treated as a stale echo and the local
        version kept. After the window the next snapshot wins.
    token mode:
        Every local edit gets a monotonically increasing token. The host
        echoes the last token it applied in RoundState.acks, and a snapshot
        that acknowledges the latest token wins immediately. The window
        still caps how long an unacknowledged edit can mask the document.

    Snapshots older than the newest accepted one, by (host_epoch, version),
    are dropped in both modes. The local view is never rolled back because
    a write failed; the next accepted snapshot settles any divergence.
    """

    def __init__(
        self,
        client_id: str,
        player_id: str | None,
        clock: Clock | None = None,
        protection_window: float = 1.5,
        mode: ReconcileMode = ReconcileMode.TOKEN,
    ) -> None:
        """Initialize the reconciler.

        Args:
            client_id: This client's id, the key in RoundState.acks
            player_id: Seat this client plays, None for a spectator
            clock: Monotonic clock
            protection_window: Seconds a local edit masks incoming snapshots
            mode: window or token reconciliation

        """
        self.client_id = client_id
        self.player_id = player_id
        self.clock = clock or MonotonicClock()
        self.protection_window = protection_window
        self.mode = ReconcileMode(mode)
        self._view: RoundState | None = None
        self._last_token = 0
        self._last_edit_at: float | None = None
        self._last_seen: tuple[int, int] | None = None

    @property
    def view(self) -> RoundState | None:
        """The state this client should render."""
        return self._view

    @property
    def last_token(self) -> int:
        """Token of the latest local edit."""
        return self._last_token

    @property
    def has_pending_edit(self) -> bool:
        """Check if a local edit is still masking snapshots."""
        return self._last_edit_at is not None

    def record_local_edit(self, state: RoundState) -> int:
        """Show a locally applied edit right away.

        Args:
            state: Local state with the edit applied

        Returns:
            Edit token to submit with the action

        """
        self._last_token += 1
        self._last_edit_at = self.clock.now()
        self._view = state
        return self._last_token

    def on_snapshot(self, snapshot: RoundState) -> bool:
        """Feed a replicated snapshot.

        Returns:
            True if the snapshot became the view in full, False if it was
            dropped or merged under a pending local edit

        """
        order = (snapshot.host_epoch, snapshot.version)
        if self._last_seen is not None and order < self._last_seen:
            logger.debug(
                "Dropping out-of-order snapshot v%s for round %s", snapshot.version, snapshot.round_id
            )
            return False
        self._last_seen = order

        if self._is_protected(snapshot):
            self._view = self._merge(snapshot)
            return False

        if self._last_edit_at is not None:
            logger.debug("Client %s edit settled at v%s", self.client_id, snapshot.version)
        self._last_edit_at = None
        self._view = snapshot
        return True

    def _is_protected(self, snapshot: RoundState) -> bool:
        if self._last_edit_at is None or self._view is None or self.player_id is None:
            return False

        if self.clock.now() - self._last_edit_at >= self.protection_window:
            logger.debug("Protection window elapsed for client %s", self.client_id)
            return False

        if self.mode == ReconcileMode.TOKEN:
            return snapshot.acks.get(self.client_id, 0) < self._last_token
        return True

    def _merge(self, snapshot: RoundState) -> RoundState:
        """Keep the local seat state on top of an otherwise newer snapshot."""
        local_turn = self._view.get_player_state(self.player_id)
        if local_turn is None:
            return snapshot

        merged = snapshot.with_player_state(self.player_id, local_turn)
        if local_turn.is_complete and snapshot.current_turn_player_id == self.player_id:
            merged = replace(
                merged,
                current_turn_player_id=self._view.current_turn_player_id,
                phase=self._view.phase,
                winners=self._view.winners,
            )
        return merged
