"""Hand result model."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class HandResult:
    """Ranked outcome of a finished hand. Never mutated after creation.

    Attributes:
        rank: Total-order ordinal, higher is better, comparable within a variant
        of_a_kind_count: Size of the best of-a-kind group (wilds included)
        description: Human-readable summary, e.g. "Four 6s"
        category: Variant category, e.g. "full_house" or "not_qualified"
        face_value: Face the hand is built on (0 when not applicable)
        wilds_used: Wild dice consumed to build the hand
        unused: Indices of dice that do not contribute, for display

    """

    rank: int
    of_a_kind_count: int
    description: str
    category: str | None = None
    face_value: int = 0
    wilds_used: int = 0
    unused: tuple[int, ...] = field(default_factory=tuple)

    def beats(self, other: "HandResult | None") -> bool:
        """Check if this hand strictly beats another (or no hand at all)."""
        return other is None or self.rank > other.rank

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "rank": self.rank,
            "of_a_kind_count": self.of_a_kind_count,
            "description": self.description,
            "category": self.category,
            "face_value": self.face_value,
            "wilds_used": self.wilds_used,
            "unused": list(self.unused),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HandResult":
        """Create from dictionary."""
        return cls(
            rank=data["rank"],
            of_a_kind_count=data.get("of_a_kind_count", 0),
            description=data.get("description", ""),
            category=data.get("category"),
            face_value=data.get("face_value", 0),
            wilds_used=data.get("wilds_used", 0),
            unused=tuple(data.get("unused", [])),
        )

    def __str__(self) -> str:
        """Return string representation."""
        return self.description
