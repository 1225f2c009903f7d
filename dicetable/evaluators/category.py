"""Category showdown: each hand scores under its best Yahtzee category."""

from collections import Counter
from collections.abc import Sequence

from dicetable.evaluators.base import HandEvaluator
from dicetable.models.die import Die
from dicetable.models.enums import GameVariant
from dicetable.models.hand import HandResult

UPPER_CATEGORIES = ("ones", "twos", "threes", "fours", "fives", "sixes")
LOWER_CATEGORIES = (
    "three_of_a_kind",
    "four_of_a_kind",
    "full_house",
    "small_straight",
    "large_straight",
    "yahtzee",
    "chance",
)
ALL_CATEGORIES = UPPER_CATEGORIES + LOWER_CATEGORIES

FULL_HOUSE_SCORE = 25
SMALL_STRAIGHT_SCORE = 30
LARGE_STRAIGHT_SCORE = 40
YAHTZEE_SCORE = 50

SMALL_STRAIGHTS = ({1, 2, 3, 4}, {2, 3, 4, 5}, {3, 4, 5, 6})
LARGE_STRAIGHTS = ({1, 2, 3, 4, 5}, {2, 3, 4, 5, 6})


def category_score(category: str, faces: Sequence[int]) -> int:  # noqa: PLR0911
    """Score faces under one category.

    Args:
        category: One of ALL_CATEGORIES
        faces: Five rolled faces

    Returns:
        Points the faces earn in that category (0 when they do not qualify)

    """
    counts = Counter(faces)
    total = sum(faces)
    unique = set(faces)

    if category in UPPER_CATEGORIES:
        face = UPPER_CATEGORIES.index(category) + 1
        return counts[face] * face
    if category == "three_of_a_kind":
        return total if max(counts.values()) >= 3 else 0  # noqa: PLR2004
    if category == "four_of_a_kind":
        return total if max(counts.values()) >= 4 else 0  # noqa: PLR2004
    if category == "full_house":
        return FULL_HOUSE_SCORE if sorted(counts.values()) == [2, 3] else 0
    if category == "small_straight":
        return SMALL_STRAIGHT_SCORE if any(s <= unique for s in SMALL_STRAIGHTS) else 0
    if category == "large_straight":
        return LARGE_STRAIGHT_SCORE if unique in LARGE_STRAIGHTS else 0
    if category == "yahtzee":
        return YAHTZEE_SCORE if len(unique) == 1 else 0
    if category == "chance":
        return total
    msg = f"Unknown category: {category}"
    raise ValueError(msg)


class CategoryEvaluator(HandEvaluator):
    """Evaluator for a single-hand Yahtzee showdown.

    The hand is scored under every category and keeps the best one. Rank is
    that score. When two categories score the same, the later category in
    the scorecard wins, so lower-section names are preferred.
    """

    variant = GameVariant.CATEGORY

    def score_all(self, dice: Sequence[Die | int]) -> dict[str, int]:
        """Score the dice under every category."""
        faces = self._checked_faces(dice)
        return {category: category_score(category, faces) for category in ALL_CATEGORIES}

    def evaluate(self, dice: Sequence[Die | int]) -> HandResult:
        """Evaluate a hand by its best category."""
        faces = self._checked_faces(dice)
        scores = self.score_all(faces)
        best = max(ALL_CATEGORIES, key=lambda c: (scores[c], ALL_CATEGORIES.index(c)))

        counts = Counter(faces)
        top_face, top_count = max(counts.items(), key=lambda item: (item[1], item[0]))

        return HandResult(
            rank=scores[best],
            of_a_kind_count=top_count,
            description=f"{best.replace('_', ' ').title()} ({scores[best]})",
            category=best,
            face_value=top_face,
            unused=self._unused(best, faces),
        )

    def _unused(self, category: str, faces: list[int]) -> tuple[int, ...]:
        if category in UPPER_CATEGORIES:
            face = UPPER_CATEGORIES.index(category) + 1
            return tuple(i for i, f in enumerate(faces) if f != face)
        if category == "small_straight":
            run = next(s for s in SMALL_STRAIGHTS if s <= set(faces))
            seen: set[int] = set()
            unused = []
            for i, f in enumerate(faces):
                if f in run and f not in seen:
                    seen.add(f)
                else:
                    unused.append(i)
            return tuple(unused)
        return ()
