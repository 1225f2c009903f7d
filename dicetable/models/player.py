"""Seat model."""

from dataclasses import dataclass


@dataclass
class Seat:
    """A seat at the dice table.

    Attributes:
        id: Unique seat identifier, used as the player id in round state
        username: Display name
        position: Table position (1-based, clockwise)
        is_bot: Computer-controlled seat
        sitting_out: Skips rounds and dealer selection
        chips: Chip balance
        client_id: Client currently controlling this seat

    """

    id: str
    username: str
    position: int = 1
    is_bot: bool = False
    sitting_out: bool = False
    chips: int = 0
    client_id: str | None = None

    @property
    def is_active(self) -> bool:
        """Check if the seat plays rounds."""
        return not self.sitting_out

    def update_chips(self, amount: int) -> None:
        """Add (or with a negative amount, remove) chips."""
        self.chips += amount

    def __str__(self) -> str:
        """Return string representation."""
        bot_str = " (Bot)" if self.is_bot else ""
        return f"{self.username}{bot_str} - Chips: {self.chips}"
