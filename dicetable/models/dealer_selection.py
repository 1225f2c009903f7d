"""Dealer selection state. Transient: exists only while deciding who deals."""

from dataclasses import dataclass, field
from typing import Any

from dicetable.models.card import Card
from dicetable.models.enums import DealerSelectionPhase


@dataclass
class DealtCard:
    """A card dealt to a candidate in one selection round.

    Attributes:
        player_id: Candidate seat
        position: Candidate's table position
        card: The card drawn
        round_number: Deal round (1 is the initial deal, 2+ are tiebreakers)
        is_winner: Holds the highest card of its round
        is_dimmed: Eliminated in its round

    """

    player_id: str
    position: int
    card: Card
    round_number: int
    is_winner: bool = False
    is_dimmed: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "player_id": self.player_id,
            "position": self.position,
            "card": self.card.to_dict(),
            "round_number": self.round_number,
            "is_winner": self.is_winner,
            "is_dimmed": self.is_dimmed,
        }


@dataclass
class DealerSelectionState:
    """Progress of a high-card dealer selection.

    Attributes:
        phase: Protocol phase
        round_number: Current deal round, 0 when no cards were dealt
        contenders: Seat ids still in contention this round
        dealt: Every card dealt so far, across rounds
        winner_id: Seat that won the deal
        winner_position: Table position of the new dealer
        announcement: Text for the presentation layer

    """

    phase: DealerSelectionPhase = DealerSelectionPhase.IDLE
    round_number: int = 0
    contenders: list[str] = field(default_factory=list)
    dealt: list[DealtCard] = field(default_factory=list)
    winner_id: str | None = None
    winner_position: int | None = None
    announcement: str | None = None

    def cards_for_round(self, round_number: int) -> list[DealtCard]:
        """Get the cards dealt in one round."""
        return [dc for dc in self.dealt if dc.round_number == round_number]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a read-only snapshot for presentation layers."""
        return {
            "phase": self.phase.value,
            "round_number": self.round_number,
            "contenders": list(self.contenders),
            "dealt": [dc.to_dict() for dc in self.dealt],
            "winner_id": self.winner_id,
            "winner_position": self.winner_position,
            "announcement": self.announcement,
        }
