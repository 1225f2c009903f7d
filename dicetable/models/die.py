"""Die model and face sources."""

import random
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from dicetable.constants import MAX_FACE, MIN_FACE, NUM_DICE, UNROLLED


@dataclass(frozen=True)
class Die:
    """A single die.

    Attributes:
        value: Face showing (1-6), or 0 before the first roll
        held: Excluded from the next roll
        frozen: Locked by a variant rule; always held and cannot be toggled

    """

    value: int = UNROLLED
    held: bool = False
    frozen: bool = False

    @property
    def is_rolled(self) -> bool:
        """Check if the die has been rolled at least once."""
        return self.value != UNROLLED

    def toggled(self) -> "Die":
        """Return a copy with the hold flag flipped."""
        return replace(self, held=not self.held)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {"value": self.value, "held": self.held, "frozen": self.frozen}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Die":
        """Create from dictionary."""
        return cls(
            value=data.get("value", UNROLLED),
            held=data.get("held", False),
            frozen=data.get("frozen", False),
        )


def unrolled_dice(count: int = NUM_DICE) -> tuple[Die, ...]:
    """Create a fresh set of unrolled dice."""
    return tuple(Die() for _ in range(count))


def dice_from_faces(faces: Iterable[int]) -> tuple[Die, ...]:
    """Build dice showing the given faces, none held."""
    return tuple(Die(value=face) for face in faces)


def faces_of(dice: Sequence["Die | int"]) -> list[int]:
    """Get face values from dice or plain ints."""
    return [d.value if isinstance(d, Die) else int(d) for d in dice]


class FaceSource(ABC):
    """Produces uniformly random die faces."""

    @abstractmethod
    def roll_face(self) -> int:
        """Return a face value between 1 and 6."""


class RandomFaceSource(FaceSource):
    """Face source backed by random.Random."""

    def __init__(self, seed: int | None = None) -> None:
        """Initialize with an optional seed for reproducible games."""
        self._random = random.Random(seed)  # noqa: S311

    def roll_face(self) -> int:
        """Roll one die."""
        return self._random.randint(MIN_FACE, MAX_FACE)


class PresetFaceSource(FaceSource):
    """Face source that replays fixed faces before falling back.

    Used when a client already rolled its own dice and the host replays
    those faces, and by tests that need a known sequence.
    """

    def __init__(self, faces: Iterable[int], fallback: FaceSource | None = None) -> None:
        """Initialize with the faces to replay.

        Args:
            faces: Faces returned in order
            fallback: Source used once the preset faces run out

        """
        self._faces = list(faces)
        self._fallback = fallback

    def roll_face(self) -> int:
        """Return the next preset face."""
        if self._faces:
            face = self._faces.pop(0)
            if not MIN_FACE <= face <= MAX_FACE:
                msg = f"Face out of range: {face}"
                raise ValueError(msg)
            return face
        if self._fallback is None:
            msg = "Preset faces exhausted"
            raise ValueError(msg)
        return self._fallback.roll_face()

    @property
    def remaining(self) -> int:
        """Number of preset faces not yet used."""
        return len(self._faces)


def roll_unheld(dice: Sequence[Die], source: FaceSource) -> tuple[Die, ...]:
    """Re-roll every die that is not held."""
    return tuple(die if die.held else replace(die, value=source.roll_face()) for die in dice)
