"""Hand evaluators, one per game variant."""

from dicetable.evaluators.base import HandEvaluator
from dicetable.evaluators.category import CategoryEvaluator
from dicetable.evaluators.horses import HorsesEvaluator
from dicetable.evaluators.ship_captain_crew import ShipCaptainCrewEvaluator
from dicetable.models.enums import GameVariant

_EVALUATORS: dict[GameVariant, type[HandEvaluator]] = {
    GameVariant.HORSES: HorsesEvaluator,
    GameVariant.SHIP_CAPTAIN_CREW: ShipCaptainCrewEvaluator,
    GameVariant.CATEGORY: CategoryEvaluator,
}


def get_evaluator(variant: GameVariant | str) -> HandEvaluator:
    """Get the evaluator for a game variant.

    Raises:
        ValueError: If the variant is unknown

    """
    return _EVALUATORS[GameVariant(variant)]()


__all__ = [
    "CategoryEvaluator",
    "HandEvaluator",
    "HorsesEvaluator",
    "ShipCaptainCrewEvaluator",
    "get_evaluator",
]
