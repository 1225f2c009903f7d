"""Ship, Captain and Crew: freeze a 6, 5 and 4 in order, then score the cargo."""

from collections.abc import Sequence
from dataclasses import replace

from dicetable.constants import CAPTAIN_FACE, CREW_FACE, SHIP_FACE
from dicetable.evaluators.base import HandEvaluator
from dicetable.models.die import Die
from dicetable.models.enums import GameVariant
from dicetable.models.hand import HandResult
from dicetable.models.round_state import PlayerTurnState

FREEZE_SEQUENCE = (SHIP_FACE, CAPTAIN_FACE, CREW_FACE)
QUALIFIED_BASE_RANK = 100
QUALIFIED = "ship_captain_crew"
NOT_QUALIFIED = "not_qualified"


class ShipCaptainCrewEvaluator(HandEvaluator):
    """Evaluator for Ship, Captain and Crew.

    After each roll the first 6 freezes, then a 5 once the ship is in,
    then a 4 once the captain is in. Frozen dice never re-roll. A hand
    holding all three is qualified and ranks by the sum of the two cargo
    dice; anything else is NQ, ranks 0 and loses to every qualified hand.
    Players cannot hold cargo: it is re-rolled together or locked in.
    """

    variant = GameVariant.SHIP_CAPTAIN_CREW

    def apply_roll_rules(self, dice: Sequence[Die]) -> tuple[Die, ...]:
        """Freeze ship, captain and crew in sequence."""
        result = list(dice)
        frozen_faces = {d.value for d in result if d.frozen}

        for face in FREEZE_SEQUENCE:
            if face in frozen_faces:
                continue
            index = next(
                (i for i, d in enumerate(result) if d.value == face and not d.frozen), None
            )
            if index is None:
                break
            result[index] = replace(result[index], held=True, frozen=True)
            frozen_faces.add(face)

        return tuple(result)

    def is_qualified(self, dice: Sequence[Die]) -> bool:
        """Check if ship, captain and crew are all frozen."""
        return sum(1 for d in dice if d.frozen) == len(FREEZE_SEQUENCE)

    def evaluate(self, dice: Sequence[Die | int]) -> HandResult:
        """Evaluate a Ship, Captain and Crew hand."""
        faces = self._checked_faces(dice)
        source = [
            d if isinstance(d, Die) else Die(value=f) for d, f in zip(dice, faces, strict=True)
        ]
        settled = self.apply_roll_rules(source)

        cargo_indices = tuple(i for i, d in enumerate(settled) if not d.frozen)
        if not self.is_qualified(settled):
            return HandResult(
                rank=0,
                of_a_kind_count=0,
                description="NQ",
                category=NOT_QUALIFIED,
                unused=cargo_indices,
            )

        cargo = sum(settled[i].value for i in cargo_indices)
        return HandResult(
            rank=QUALIFIED_BASE_RANK + cargo,
            of_a_kind_count=0,
            description=f"Cargo {cargo}",
            category=QUALIFIED,
            face_value=cargo,
        )

    def can_lock_in(self, turn: PlayerTurnState) -> bool:
        """Lock-in is only allowed once qualified."""
        return turn.has_rolled and self.is_qualified(turn.dice)

    def can_hold(self, die: Die) -> bool:
        """Nothing is toggleable: frozen dice stay frozen and cargo always re-rolls."""
        return False
