"""Bot policies for computer-controlled seats."""

from dicetable.bots.base_bot import BaseBot, BotDifficulty
from dicetable.bots.random_bot import RandomBot
from dicetable.bots.rule_based_bot import (
    CategoryBot,
    HorsesBot,
    RuleBasedBot,
    ShipCaptainCrewBot,
)
from dicetable.models.enums import GameVariant

_RULE_BASED_BOTS: dict[GameVariant, type[RuleBasedBot]] = {
    GameVariant.HORSES: HorsesBot,
    GameVariant.SHIP_CAPTAIN_CREW: ShipCaptainCrewBot,
    GameVariant.CATEGORY: CategoryBot,
}


def create_bot(
    player_id: str,
    variant: GameVariant,
    difficulty: BotDifficulty = BotDifficulty.MEDIUM,
) -> BaseBot:
    """Create the bot policy for a seat.

    Args:
        player_id: Seat the bot plays
        variant: Game played at the table
        difficulty: RANDOM gives a RandomBot, anything else the variant's rule-based bot

    """
    if difficulty == BotDifficulty.RANDOM:
        return RandomBot(player_id, variant)
    return _RULE_BASED_BOTS[GameVariant(variant)](player_id, difficulty)


__all__ = [
    "BaseBot",
    "BotDifficulty",
    "CategoryBot",
    "HorsesBot",
    "RandomBot",
    "RuleBasedBot",
    "ShipCaptainCrewBot",
    "create_bot",
]
