"""Round state models replicated from the host to every client."""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from dicetable.constants import MAX_ROLLS, NUM_DICE
from dicetable.models.die import Die, unrolled_dice
from dicetable.models.enums import ActionKind, GameVariant, RoundPhase
from dicetable.models.hand import HandResult


@dataclass(frozen=True)
class PlayerTurnState:
    """One seat's dice for the current round.

    Owned by the seat's player while their turn is live; frozen once complete.

    Attributes:
        dice: Fixed-length dice for this game
        rolls_remaining: Rolls left this turn (3 down to 0)
        is_complete: Turn finished by exhausting rolls or locking in
        result: Evaluated hand, set when the turn completes

    """

    dice: tuple[Die, ...] = field(default_factory=unrolled_dice)
    rolls_remaining: int = MAX_ROLLS
    is_complete: bool = False
    result: HandResult | None = None

    @property
    def has_rolled(self) -> bool:
        """Check if at least one roll has been taken."""
        return self.rolls_remaining < MAX_ROLLS

    @property
    def can_act_between_rolls(self) -> bool:
        """Check if holds and lock-in are allowed (0 < rolls_remaining < 3)."""
        return not self.is_complete and 0 < self.rolls_remaining < MAX_ROLLS

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "dice": [d.to_dict() for d in self.dice],
            "rolls_remaining": self.rolls_remaining,
            "is_complete": self.is_complete,
            "result": self.result.to_dict() if self.result else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerTurnState":
        """Create from dictionary."""
        result = data.get("result")
        return cls(
            dice=tuple(Die.from_dict(d) for d in data.get("dice", [])) or unrolled_dice(),
            rolls_remaining=data.get("rolls_remaining", MAX_ROLLS),
            is_complete=data.get("is_complete", False),
            result=HandResult.from_dict(result) if result else None,
        )


@dataclass(frozen=True)
class RoundState:
    """The canonical round document. Exactly one per round, written only by the host.

    Attributes:
        round_id: Round identifier
        variant: Game variant whose evaluator ranks the hands
        turn_order: Active seat ids, starting left of the dealer
        current_turn_player_id: Seat whose turn it is, None outside play
        player_states: Per-seat dice state
        phase: waiting, playing or complete
        winners: Winning seat ids once complete (several on a tie)
        version: Incremented by the host on every accepted change
        host_epoch: Fencing token of the writer that produced this document
        acks: Last edit token applied per client id

    """

    round_id: str
    variant: GameVariant = GameVariant.HORSES
    turn_order: tuple[str, ...] = ()
    current_turn_player_id: str | None = None
    player_states: dict[str, PlayerTurnState] = field(default_factory=dict)
    phase: RoundPhase = RoundPhase.WAITING
    winners: tuple[str, ...] = ()
    version: int = 0
    host_epoch: int = 0
    acks: dict[str, int] = field(default_factory=dict)

    def get_player_state(self, player_id: str) -> PlayerTurnState | None:
        """Get a seat's turn state."""
        return self.player_states.get(player_id)

    def with_player_state(self, player_id: str, turn: PlayerTurnState) -> "RoundState":
        """Return a copy with one seat's turn state replaced."""
        return replace(self, player_states={**self.player_states, player_id: turn})

    def completed_results(self) -> dict[str, HandResult]:
        """Get results for every seat that has finished, in turn order."""
        results = {}
        for player_id in self.turn_order:
            turn = self.player_states.get(player_id)
            if turn and turn.is_complete and turn.result:
                results[player_id] = turn.result
        return results

    def is_turn_of(self, player_id: str) -> bool:
        """Check if it is this seat's turn in a live round."""
        return self.phase == RoundPhase.PLAYING and self.current_turn_player_id == player_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "round_id": self.round_id,
            "variant": self.variant.value,
            "turn_order": list(self.turn_order),
            "current_turn_player_id": self.current_turn_player_id,
            "player_states": {pid: s.to_dict() for pid, s in self.player_states.items()},
            "phase": self.phase.value,
            "winners": list(self.winners),
            "version": self.version,
            "host_epoch": self.host_epoch,
            "acks": dict(self.acks),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoundState":
        """Create from dictionary."""
        return cls(
            round_id=data["round_id"],
            variant=GameVariant(data.get("variant", GameVariant.HORSES.value)),
            turn_order=tuple(data.get("turn_order", [])),
            current_turn_player_id=data.get("current_turn_player_id"),
            player_states={
                pid: PlayerTurnState.from_dict(s)
                for pid, s in data.get("player_states", {}).items()
            },
            phase=RoundPhase(data.get("phase", RoundPhase.WAITING.value)),
            winners=tuple(data.get("winners", [])),
            version=data.get("version", 0),
            host_epoch=data.get("host_epoch", 0),
            acks=dict(data.get("acks", {})),
        )

    def __str__(self) -> str:
        """Return string representation."""
        return (
            f"Round {self.round_id} v{self.version}: {self.phase.value}, "
            f"turn={self.current_turn_player_id}"
        )


@dataclass(frozen=True)
class PlayerAction:
    """An action a client submits to the host.

    Attributes:
        client_id: Submitting client
        player_id: Seat the action is for
        kind: roll, toggle_hold or lock_in
        die_index: Die to toggle (toggle_hold only)
        faces: Faces the client rolled locally for its unheld dice (roll only)
        edit_token: Monotonic per-client token echoed back in RoundState.acks

    """

    client_id: str
    player_id: str
    kind: ActionKind
    die_index: int | None = None
    faces: tuple[int, ...] = ()
    edit_token: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "client_id": self.client_id,
            "player_id": self.player_id,
            "kind": self.kind.value,
            "die_index": self.die_index,
            "faces": list(self.faces),
            "edit_token": self.edit_token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerAction":
        """Create from dictionary."""
        return cls(
            client_id=data["client_id"],
            player_id=data["player_id"],
            kind=ActionKind(data["kind"]),
            die_index=data.get("die_index"),
            faces=tuple(data.get("faces", [])),
            edit_token=data.get("edit_token", 0),
        )


def initial_player_states(
    turn_order: Sequence[str], num_dice: int = NUM_DICE
) -> dict[str, PlayerTurnState]:
    """Create unrolled turn states for every seat in the turn order."""
    return {pid: PlayerTurnState(dice=unrolled_dice(num_dice)) for pid in turn_order}
