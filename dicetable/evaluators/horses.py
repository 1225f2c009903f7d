"""Horses: five dice, 1s are wild, best of-a-kind wins."""

from collections import Counter
from collections.abc import Sequence

from dicetable.constants import MAX_FACE, NUM_DICE, WILD_FACE
from dicetable.evaluators.base import HandEvaluator
from dicetable.models.die import Die
from dicetable.models.enums import GameVariant, HandTier
from dicetable.models.hand import HandResult

# Rank layout: tier * 100 + effective face * 10 + natural dice in the group.
# Five wilds use an effective face above 6 so they outrank five 6s.
TIER_WEIGHT = 100
FACE_WEIGHT = 10
ALL_WILD_FACE = MAX_FACE + 1

TIER_NAMES = {
    HandTier.FIVE_OF_A_KIND: "Five",
    HandTier.FOUR_OF_A_KIND: "Four",
    HandTier.THREE_OF_A_KIND: "Three",
    HandTier.PAIR: "Pair of",
}


def _rank(tier: HandTier, face: int, naturals: int) -> int:
    return tier * TIER_WEIGHT + face * FACE_WEIGHT + naturals


def best_target_face(faces: Sequence[int]) -> tuple[int, int]:
    """Get the face with the greatest natural + wild count, ties to the higher face.

    Returns:
        (face, total) where total is capped at five

    """
    counts = Counter(faces)
    wilds = counts[WILD_FACE]
    return max(
        ((face, min(NUM_DICE, counts[face] + wilds)) for face in range(2, MAX_FACE + 1)),
        key=lambda candidate: (candidate[1], candidate[0]),
    )


class HorsesEvaluator(HandEvaluator):
    """Evaluator for Horses.

    Rules:
    - Count naturals for each face 2-6 and add every wild to each candidate
    - The best candidate has the highest total (capped at five), then the higher face
    - Five 1s is the best possible hand
    - No pair possible means a high-card hand on the highest non-wild face
    - Within a tier and face, a hand using fewer wilds ranks higher
    """

    variant = GameVariant.HORSES

    def evaluate(self, dice: Sequence[Die | int]) -> HandResult:
        """Evaluate a Horses hand."""
        faces = self._checked_faces(dice)
        counts = Counter(faces)
        wilds = counts[WILD_FACE]

        if wilds == NUM_DICE:
            return HandResult(
                rank=_rank(HandTier.FIVE_OF_A_KIND, ALL_WILD_FACE, 0),
                of_a_kind_count=NUM_DICE,
                description="Five 1s",
                category=HandTier.FIVE_OF_A_KIND.name.lower(),
                face_value=WILD_FACE,
                wilds_used=NUM_DICE,
                unused=(),
            )

        best_face, best_total = best_target_face(faces)

        if best_total < HandTier.PAIR:
            return self._high_card(faces)

        naturals = counts[best_face]
        wilds_used = best_total - naturals
        tier = HandTier(best_total)

        unused = []
        consumed = 0
        for i, face in enumerate(faces):
            if face == best_face:
                continue
            if face == WILD_FACE and consumed < wilds_used:
                consumed += 1
                continue
            unused.append(i)

        return HandResult(
            rank=_rank(tier, best_face, naturals),
            of_a_kind_count=best_total,
            description=f"{TIER_NAMES[tier]} {best_face}s",
            category=tier.name.lower(),
            face_value=best_face,
            wilds_used=wilds_used,
            unused=tuple(unused),
        )

    def _high_card(self, faces: list[int]) -> HandResult:
        high = max(f for f in faces if f != WILD_FACE)
        high_index = faces.index(high)
        return HandResult(
            rank=_rank(HandTier.HIGH_CARD, high, 1),
            of_a_kind_count=1,
            description=f"{high} high",
            category=HandTier.HIGH_CARD.name.lower(),
            face_value=high,
            wilds_used=0,
            unused=tuple(i for i in range(len(faces)) if i != high_index),
        )
