"""Base class for all bot strategies."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum

from dicetable.evaluators import get_evaluator
from dicetable.evaluators.base import HandEvaluator
from dicetable.models.die import Die
from dicetable.models.enums import GameVariant
from dicetable.models.hand import HandResult


class BotDifficulty(str, Enum):
    """Bot difficulty levels."""

    RANDOM = "random"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class BaseBot(ABC):
    """Abstract base class for bot dice policies.

    All bot implementations must inherit from this class and implement
    the should_stop_rolling() and choose_holds() methods. Policies are
    pure decisions; BotDriver applies them to the round.
    """

    variant: GameVariant = GameVariant.HORSES

    def __init__(
        self,
        player_id: str,
        difficulty: BotDifficulty = BotDifficulty.MEDIUM,
        evaluator: HandEvaluator | None = None,
    ) -> None:
        """Initialize the bot.

        Args:
            player_id: ID of the seat this bot controls
            difficulty: Bot difficulty level
            evaluator: Evaluator for the bot's variant

        """
        self.player_id = player_id
        self.difficulty = difficulty
        self.evaluator = evaluator or get_evaluator(self.variant)

    @abstractmethod
    def should_stop_rolling(
        self,
        dice: Sequence[Die],
        rolls_remaining: int,
        current_best: HandResult | None,
    ) -> bool:
        """Decide whether to lock in instead of rolling again.

        Args:
            dice: Dice after the latest roll
            rolls_remaining: Rolls left this turn
            current_best: Best hand completed by an earlier seat this round

        Returns:
            True to lock in

        """

    @abstractmethod
    def choose_holds(self, dice: Sequence[Die], current_best: HandResult | None) -> list[bool]:
        """Choose which dice to hold for the next roll.

        Args:
            dice: Dice after the latest roll
            current_best: Best hand completed by an earlier seat this round

        Returns:
            Hold flag per die

        """

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.__class__.__name__} ({self.difficulty.value})"
