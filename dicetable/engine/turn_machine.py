"""Host-authoritative turn state machine for a single round.

Round:  waiting -> playing -> complete
Seat:   not started -> rolling (0 < rolls_remaining < 3) -> complete

Every accepted mutation produces a new RoundState with version + 1 and is
handed to on_change. Illegal calls are no-ops: they log at debug and return
the current state, so a racing UI that double-submits does no harm.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from dicetable.constants import MAX_FACE, MAX_ROLLS, MIN_FACE
from dicetable.engine.round_context import RoundContext
from dicetable.errors import IllegalTransition, InvariantViolation
from dicetable.evaluators.base import HandEvaluator
from dicetable.models.die import FaceSource, PresetFaceSource, RandomFaceSource, roll_unheld
from dicetable.models.enums import ActionKind, RoundPhase
from dicetable.models.hand import HandResult
from dicetable.models.round_state import (
    PlayerAction,
    PlayerTurnState,
    RoundState,
    initial_player_states,
)

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[RoundState], None]
CompletionCallback = Callable[[list[str], list[HandResult]], None]


def best_completed_result(state: RoundState, evaluator: HandEvaluator) -> HandResult | None:
    """Get the best hand finished so far this round, or None."""
    best = None
    for result in state.completed_results().values():
        if best is None or evaluator.compare(result, best) > 0:
            best = result
    return best


class TurnStateMachine:
    """Drives one round. Game-agnostic: variant rules live in the evaluator."""

    def __init__(
        self,
        round_id: str,
        turn_order: Sequence[str],
        evaluator: HandEvaluator,
        *,
        face_source: FaceSource | None = None,
        context: RoundContext | None = None,
        host_epoch: int = 0,
        on_change: ChangeCallback | None = None,
        on_round_complete: CompletionCallback | None = None,
    ) -> None:
        """Initialize a round in the waiting phase.

        Args:
            round_id: Round identifier
            turn_order: Active seat ids, starting left of the dealer
            evaluator: Evaluator for the table's variant
            face_source: Die roller, random by default
            context: Per-round flags, created when omitted
            host_epoch: Fencing token stamped on every document
            on_change: Called with each accepted state
            on_round_complete: Called once with (winner ids, results in turn order)

        """
        self.evaluator = evaluator
        self.face_source = face_source or RandomFaceSource()
        self.context = context or RoundContext(round_id)
        self.on_change = on_change
        self.on_round_complete = on_round_complete
        self._pending_ack: tuple[str, int] | None = None
        self._state = RoundState(
            round_id=round_id,
            variant=evaluator.variant,
            turn_order=tuple(turn_order),
            host_epoch=host_epoch,
        )

    @classmethod
    def from_state(
        cls,
        state: RoundState,
        evaluator: HandEvaluator,
        **kwargs: Any,
    ) -> "TurnStateMachine":
        """Build a machine positioned at an existing state, e.g. a replicated snapshot."""
        machine = cls(state.round_id, state.turn_order, evaluator, **kwargs)
        machine._state = state
        return machine

    @property
    def state(self) -> RoundState:
        """Current round state."""
        return self._state

    @property
    def round_id(self) -> str:
        """Round identifier."""
        return self._state.round_id

    def restore(self, state: RoundState) -> None:
        """Replace the current state without notifying listeners."""
        self._state = state

    def current_best(self) -> HandResult | None:
        """Best finished hand so far."""
        return best_completed_result(self._state, self.evaluator)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_round(self) -> RoundState:
        """Move from waiting to playing and hand the first turn out."""
        state = self._state
        if state.phase != RoundPhase.WAITING:
            error = IllegalTransition("start_round", None, f"phase is {state.phase.value}")
            return self._reject(error)

        if not state.turn_order:
            logger.warning("Round %s started with no participants, completing", state.round_id)
            state = self._commit(
                replace(state, phase=RoundPhase.COMPLETE, current_turn_player_id=None, winners=())
            )
            self._fire_completion(state)
            return state

        return self._commit(
            replace(
                state,
                player_states=initial_player_states(state.turn_order, self.evaluator.num_dice),
                phase=RoundPhase.PLAYING,
                current_turn_player_id=state.turn_order[0],
            )
        )

    def roll(self, player_id: str, faces: Sequence[int] | None = None) -> RoundState:
        """Roll every unheld die for the current seat.

        Args:
            player_id: Seat rolling
            faces: Faces the client already rolled for its unheld dice, replayed
                by the host instead of rolling fresh ones

        """
        try:
            turn = self._require_turn("roll", player_id)
            if turn.rolls_remaining <= 0:
                raise IllegalTransition("roll", player_id, "no rolls remaining")
            dice = roll_unheld(turn.dice, self._source_for(player_id, turn, faces))
        except IllegalTransition as e:
            return self._reject(e)

        dice = self.evaluator.apply_roll_rules(dice)
        turn = replace(turn, dice=dice, rolls_remaining=turn.rolls_remaining - 1)
        if turn.rolls_remaining == 0:
            turn = self._finalize(turn)

        return self._complete_step(player_id, turn)

    def toggle_hold(self, player_id: str, die_index: int) -> RoundState:
        """Flip the hold flag on one die between rolls."""
        try:
            turn = self._require_turn("toggle_hold", player_id)
            if not turn.can_act_between_rolls:
                raise IllegalTransition(
                    "toggle_hold", player_id, f"rolls_remaining is {turn.rolls_remaining}"
                )
            if (
                not isinstance(die_index, int)
                or isinstance(die_index, bool)
                or not 0 <= die_index < len(turn.dice)
            ):
                raise IllegalTransition("toggle_hold", player_id, f"bad die index {die_index}")
            if not self.evaluator.can_hold(turn.dice[die_index]):
                raise IllegalTransition("toggle_hold", player_id, f"die {die_index} is not holdable")
        except IllegalTransition as e:
            return self._reject(e)

        dice = list(turn.dice)
        dice[die_index] = dice[die_index].toggled()
        turn = replace(turn, dice=tuple(dice))
        return self._commit(self._state.with_player_state(player_id, turn))

    def lock_in(self, player_id: str) -> RoundState:
        """Finish the current seat's turn with the dice showing."""
        try:
            turn = self._require_turn("lock_in", player_id)
            if not turn.can_act_between_rolls:
                raise IllegalTransition(
                    "lock_in", player_id, f"rolls_remaining is {turn.rolls_remaining}"
                )
            if not self.evaluator.can_lock_in(turn):
                raise IllegalTransition("lock_in", player_id, "variant refuses lock-in")
        except IllegalTransition as e:
            return self._reject(e)

        return self._complete_step(player_id, self._finalize(turn))

    def apply(self, action: PlayerAction) -> RoundState:
        """Apply a client's action and acknowledge its edit token.

        The token is acknowledged even when the action turns out to be a
        no-op, so the client stops waiting for an echo that will never come.
        """
        acked = self._state.acks.get(action.client_id, 0)
        self._pending_ack = (action.client_id, action.edit_token) if action.edit_token > acked else None
        try:
            if action.kind == ActionKind.ROLL:
                self.roll(action.player_id, action.faces or None)
            elif action.kind == ActionKind.TOGGLE_HOLD:
                self.toggle_hold(action.player_id, action.die_index)
            elif action.kind == ActionKind.LOCK_IN:
                self.lock_in(action.player_id)

            if self._pending_ack is not None:
                self._commit(self._state)
        finally:
            self._pending_ack = None
        return self._state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_turn(self, operation: str, player_id: str) -> PlayerTurnState:
        state = self._state
        if state.phase != RoundPhase.PLAYING:
            raise IllegalTransition(operation, player_id, f"phase is {state.phase.value}")
        if state.current_turn_player_id != player_id:
            raise IllegalTransition(
                operation, player_id, f"turn belongs to {state.current_turn_player_id}"
            )
        turn = state.get_player_state(player_id)
        if turn is None or turn.is_complete:
            raise IllegalTransition(operation, player_id, "turn already complete")
        return turn

    def _source_for(
        self, player_id: str, turn: PlayerTurnState, faces: Sequence[int] | None
    ) -> FaceSource:
        if faces is None:
            return self.face_source
        unheld = sum(1 for d in turn.dice if not d.held)
        if len(faces) != unheld or not all(MIN_FACE <= f <= MAX_FACE for f in faces):
            raise IllegalTransition("roll", player_id, f"faces {list(faces)} do not fit {unheld} dice")
        return PresetFaceSource(faces)

    def _finalize(self, turn: PlayerTurnState) -> PlayerTurnState:
        dice = tuple(replace(d, held=True) for d in turn.dice)
        return replace(
            turn,
            dice=dice,
            rolls_remaining=0,
            is_complete=True,
            result=self.evaluator.evaluate(dice),
        )

    def _complete_step(self, player_id: str, turn: PlayerTurnState) -> RoundState:
        state = self._state.with_player_state(player_id, turn)
        if not turn.is_complete:
            return self._commit(state)

        logger.debug("Seat %s finished round %s with %s", player_id, state.round_id, turn.result)
        state = self._commit(self._advance(state, player_id))
        if state.phase == RoundPhase.COMPLETE:
            self._fire_completion(state)
        return state

    def _advance(self, state: RoundState, player_id: str) -> RoundState:
        index = state.turn_order.index(player_id)
        if index + 1 < len(state.turn_order):
            return replace(state, current_turn_player_id=state.turn_order[index + 1])

        results = [state.player_states[pid].result for pid in state.turn_order]
        winner_indices = self.evaluator.determine_winners(results)
        winners = tuple(state.turn_order[i] for i in winner_indices)
        logger.info("Round %s complete, winners: %s", state.round_id, ", ".join(winners))
        return replace(state, phase=RoundPhase.COMPLETE, current_turn_player_id=None, winners=winners)

    def _fire_completion(self, state: RoundState) -> None:
        if not self.context.mark_complete():
            return
        if self.on_round_complete:
            results = [state.player_states[pid].result for pid in state.turn_order]
            self.on_round_complete(list(state.winners), results)

    def _commit(self, state: RoundState) -> RoundState:
        if self._pending_ack is not None:
            client_id, token = self._pending_ack
            state = replace(state, acks={**state.acks, client_id: token})
            self._pending_ack = None

        state = replace(state, version=self._state.version + 1)
        self._check_invariants(self._state, state)
        self._state = state

        if self.on_change:
            self.on_change(state)
        return state

    def _reject(self, error: IllegalTransition) -> RoundState:
        logger.debug("Ignoring illegal transition in round %s: %s", self._state.round_id, error)
        return self._state

    def _check_invariants(self, previous: RoundState, state: RoundState) -> None:
        if len(set(state.turn_order)) != len(state.turn_order):
            msg = f"Duplicate seats in turn order: {state.turn_order}"
            raise InvariantViolation(msg)

        if state.phase == RoundPhase.PLAYING and state.current_turn_player_id not in state.turn_order:
            msg = f"Current turn {state.current_turn_player_id} is not in the turn order"
            raise InvariantViolation(msg)

        for pid, turn in state.player_states.items():
            if len(turn.dice) != self.evaluator.num_dice:
                msg = f"Seat {pid} has {len(turn.dice)} dice"
                raise InvariantViolation(msg)
            if not 0 <= turn.rolls_remaining <= MAX_ROLLS:
                msg = f"Seat {pid} has {turn.rolls_remaining} rolls remaining"
                raise InvariantViolation(msg)
            if turn.is_complete and (turn.rolls_remaining != 0 or turn.result is None):
                msg = f"Seat {pid} is complete without a final hand"
                raise InvariantViolation(msg)

            before = previous.player_states.get(pid)
            if before is not None and turn.rolls_remaining > before.rolls_remaining:
                msg = f"Seat {pid} rolls_remaining went up"
                raise InvariantViolation(msg)
