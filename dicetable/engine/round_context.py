"""Per-round bookkeeping passed through the engine instead of global maps."""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class RoundContext:
    """Flags that must hold exactly once per round.

    Attributes:
        round_id: Round this context belongs to
        bot_turns: Seats whose bot turn has been claimed by a driver
        completion_fired: Completion notification already delivered

    """

    round_id: str
    bot_turns: set[str] = field(default_factory=set)
    completion_fired: bool = False

    def claim_bot_turn(self, player_id: str) -> bool:
        """Claim a seat's bot turn. Returns False if it was already claimed."""
        if player_id in self.bot_turns:
            logger.debug("Bot turn for %s in round %s already claimed", player_id, self.round_id)
            return False
        self.bot_turns.add(player_id)
        return True

    def release_bot_turn(self, player_id: str) -> None:
        """Release a claim so the turn can be driven again."""
        self.bot_turns.discard(player_id)

    def mark_complete(self) -> bool:
        """Mark the round complete. Returns True only the first time."""
        if self.completion_fired:
            return False
        self.completion_fired = True
        return True
