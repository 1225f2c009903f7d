"""Random bot that makes random valid decisions."""

import random
from collections.abc import Sequence

from dicetable.bots.base_bot import BaseBot, BotDifficulty
from dicetable.evaluators.base import HandEvaluator
from dicetable.models.die import Die
from dicetable.models.enums import GameVariant
from dicetable.models.hand import HandResult

STOP_PROBABILITY = 0.3


class RandomBot(BaseBot):
    """Bot that makes random decisions.

    Useful as a baseline and for testing that the engine copes with any
    legal sequence of actions.
    """

    def __init__(
        self,
        player_id: str,
        variant: GameVariant = GameVariant.HORSES,
        evaluator: HandEvaluator | None = None,
        seed: int | None = None,
    ) -> None:
        """Initialize random bot."""
        self.variant = variant
        super().__init__(player_id, BotDifficulty.RANDOM, evaluator)
        self._random = random.Random(seed)  # noqa: S311

    def should_stop_rolling(
        self,
        dice: Sequence[Die],
        rolls_remaining: int,
        current_best: HandResult | None,
    ) -> bool:
        """Stop at random."""
        if rolls_remaining <= 0:
            return True
        return self._random.random() < STOP_PROBABILITY

    def choose_holds(self, dice: Sequence[Die], current_best: HandResult | None) -> list[bool]:
        """Hold random dice."""
        return [self._random.choice([True, False]) for _ in dice]
