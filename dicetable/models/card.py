"""Playing cards used for high-card dealer selection."""

import random
from dataclasses import dataclass
from typing import Any

SUITS = ("spades", "hearts", "diamonds", "clubs")
RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
RANK_VALUES = {rank: value for value, rank in enumerate(RANKS, start=2)}


@dataclass(frozen=True)
class Card:
    """A standard playing card. Aces are high."""

    rank: str
    suit: str

    @property
    def value(self) -> int:
        """Numeric rank (2-14)."""
        return RANK_VALUES[self.rank]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"rank": self.rank, "suit": self.suit}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        """Create from dictionary."""
        return cls(rank=data["rank"], suit=data["suit"])

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.rank} of {self.suit}"


class Deck:
    """A 52-card deck for dealer selection draws."""

    def __init__(self, cards: list[Card] | None = None) -> None:
        """Initialize the deck.

        Args:
            cards: Cards in draw order. When omitted the deck starts empty
                and is filled on the first shuffle.

        """
        self.cards: list[Card] = list(cards) if cards else []

    def fill(self) -> None:
        """Fill the deck with all 52 cards."""
        self.cards = [Card(rank, suit) for suit in SUITS for rank in RANKS]

    def shuffle(self, rng: random.Random | None = None) -> None:
        """Fill and shuffle the deck."""
        self.fill()
        (rng or random).shuffle(self.cards)

    def draw(self, rng: random.Random | None = None) -> Card:
        """Draw the top card, refilling and reshuffling if the deck ran out."""
        if not self.cards:
            self.shuffle(rng)
        return self.cards.pop(0)

    def __len__(self) -> int:
        """Return number of cards left."""
        return len(self.cards)
