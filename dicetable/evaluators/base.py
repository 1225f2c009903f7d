"""Hand evaluator capability shared by every dice variant."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from dicetable.constants import MAX_FACE, MIN_FACE, NUM_DICE
from dicetable.models.die import Die, faces_of
from dicetable.models.enums import GameVariant
from dicetable.models.hand import HandResult
from dicetable.models.round_state import PlayerTurnState


class HandEvaluator(ABC):
    """Ranks finished hands for one game variant.

    Evaluators are pure: the same faces always produce the same result,
    whatever order the dice are in. The turn engine only talks to this
    interface, so adding a variant never touches the state machine.
    """

    variant: GameVariant
    num_dice: int = NUM_DICE

    @abstractmethod
    def evaluate(self, dice: Sequence[Die | int]) -> HandResult:
        """Evaluate a finished hand.

        Args:
            dice: Dice (or plain face values) showing rolled faces

        Returns:
            HandResult whose rank is comparable with any other result of this variant

        Raises:
            ValueError: If a die is unrolled or the dice count is wrong

        """

    def compare(self, a: HandResult, b: HandResult) -> int:
        """Compare two results.

        Returns:
            1 if a wins, -1 if b wins, 0 on a tie

        """
        return (a.rank > b.rank) - (a.rank < b.rank)

    def determine_winners(self, results: Sequence[HandResult]) -> list[int]:
        """Get the index of every result tied for the best rank.

        Ties are never broken here; several indices mean several winners.
        """
        if not results:
            return []
        best = max(r.rank for r in results)
        return [i for i, r in enumerate(results) if r.rank == best]

    def apply_roll_rules(self, dice: Sequence[Die]) -> tuple[Die, ...]:
        """Apply variant rules after a roll. Identity unless overridden."""
        return tuple(dice)

    def can_lock_in(self, turn: PlayerTurnState) -> bool:
        """Check if the variant lets this turn end before rolls run out."""
        return turn.has_rolled

    def can_hold(self, die: Die) -> bool:
        """Check if a player may toggle the hold flag on this die."""
        return not die.frozen

    def _checked_faces(self, dice: Sequence[Die | int]) -> list[int]:
        faces = faces_of(dice)
        if len(faces) != self.num_dice:
            msg = f"Expected {self.num_dice} dice, got {len(faces)}"
            raise ValueError(msg)
        for face in faces:
            if not MIN_FACE <= face <= MAX_FACE:
                msg = f"Cannot evaluate unrolled or invalid face: {face}"
                raise ValueError(msg)
        return faces
