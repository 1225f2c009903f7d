"""Table model holding seats, dealer button and pot."""

from dataclasses import dataclass, field

from dicetable.constants import MAX_SEATS, MIN_SEATS
from dicetable.models.enums import GameVariant
from dicetable.models.player import Seat


@dataclass
class Table:
    """A dice table that plays a series of hands.

    Attributes:
        id: Unique table identifier
        variant: Game played at the table
        seats: Seats in join order
        dealer_position: Position of the current dealer, None before selection
        ante: Chips each active seat antes per hand
        pot: Chips in the pot (carried over after a rollover tie)
        hand_number: Hands played so far
        current_round_id: Round in progress, if any
        created_at: Timestamp when the table was created

    """

    id: str
    variant: GameVariant = GameVariant.HORSES
    seats: list[Seat] = field(default_factory=list)
    dealer_position: int | None = None
    ante: int = 2
    pot: int = 0
    hand_number: int = 0
    current_round_id: str | None = None
    created_at: str | None = None

    def add_seat(self, seat: Seat) -> bool:
        """Seat a player at the next free position."""
        if self.is_full():
            return False
        if any(s.id == seat.id for s in self.seats):
            return False

        taken = {s.position for s in self.seats}
        seat.position = next(p for p in range(1, MAX_SEATS + 1) if p not in taken)
        self.seats.append(seat)
        return True

    def remove_seat(self, seat_id: str) -> bool:
        """Remove a seat from the table."""
        for i, seat in enumerate(self.seats):
            if seat.id == seat_id:
                self.seats.pop(i)
                return True
        return False

    def get_seat(self, seat_id: str) -> Seat | None:
        """Get a seat by ID."""
        for seat in self.seats:
            if seat.id == seat_id:
                return seat
        return None

    def get_seat_by_position(self, position: int) -> Seat | None:
        """Get a seat by table position."""
        for seat in self.seats:
            if seat.position == position:
                return seat
        return None

    def sorted_seats(self) -> list[Seat]:
        """Get seats ordered by position."""
        return sorted(self.seats, key=lambda s: s.position)

    def active_seats(self) -> list[Seat]:
        """Get seats that are not sitting out, ordered by position."""
        return [s for s in self.sorted_seats() if s.is_active]

    def eligible_dealers(self, *, allow_bots: bool = False) -> list[Seat]:
        """Get seats that may win the deal."""
        return [s for s in self.active_seats() if allow_bots or not s.is_bot]

    def turn_order(self) -> list[str]:
        """Get active seat ids starting left of the dealer; the dealer acts last."""
        active = self.active_seats()
        if not active:
            return []

        dealer_idx = next(
            (i for i, s in enumerate(active) if s.position == self.dealer_position), None
        )
        if dealer_idx is None:
            return [s.id for s in active]

        count = len(active)
        return [active[(dealer_idx + i) % count].id for i in range(1, count + 1)]

    def is_full(self) -> bool:
        """Check if the table is at capacity."""
        return len(self.seats) >= MAX_SEATS

    def can_start(self) -> bool:
        """Check if enough seats are active to play a hand."""
        return len(self.active_seats()) >= MIN_SEATS

    def get_leaderboard(self) -> list[dict[str, object]]:
        """Get seats sorted by chips."""
        return [
            {
                "seat_id": s.id,
                "username": s.username,
                "chips": s.chips,
                "is_bot": s.is_bot,
            }
            for s in sorted(self.seats, key=lambda s: s.chips, reverse=True)
        ]

    def __str__(self) -> str:
        """Return string representation."""
        return (
            f"Table {self.id} ({self.variant.value}): {len(self.seats)} seats, "
            f"hand {self.hand_number}, pot {self.pot}"
        )
