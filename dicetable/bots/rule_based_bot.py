"""Rule-based bots with heuristic strategies for each dice variant."""

import logging
from collections import Counter
from collections.abc import Sequence

from dicetable.bots.base_bot import BaseBot
from dicetable.constants import (
    BOT_SAFETY_MARGIN,
    MAX_FACE,
    NUM_DICE,
    SCC_HOLD_CARGO,
    WILD_FACE,
)
from dicetable.evaluators.category import LARGE_STRAIGHTS, SMALL_STRAIGHTS
from dicetable.evaluators.horses import best_target_face
from dicetable.evaluators.ship_captain_crew import QUALIFIED
from dicetable.models.die import Die, faces_of
from dicetable.models.enums import GameVariant, HandTier
from dicetable.models.hand import HandResult

logger = logging.getLogger(__name__)

# Four of a kind on these faces is worth keeping with nobody to beat
STRONG_FOUR_FACE = 5


class RuleBasedBot(BaseBot):
    """Common base for the heuristic bots."""

    def _rolled(self, dice: Sequence[Die]) -> bool:
        return all(d.is_rolled for d in dice)


class HorsesBot(RuleBasedBot):
    """Horses bot.

    Stopping:
    - Always stop on five of a kind
    - Stop on four of a kind that already beats the leader, or on four 5s/6s
      when nobody has finished yet
    - Stop on anything that beats the leader by a full tier

    Holding:
    - Keep wilds and the face with the most naturals + wilds (ties to higher)
    - When that cannot reach the leader, chase the face needing the fewest
      extra dice to beat them
    """

    variant = GameVariant.HORSES

    def should_stop_rolling(
        self,
        dice: Sequence[Die],
        rolls_remaining: int,
        current_best: HandResult | None,
    ) -> bool:
        """Decide whether to lock in."""
        if rolls_remaining <= 0:
            return True
        if not self._rolled(dice):
            return False

        result = self.evaluator.evaluate(dice)
        if result.of_a_kind_count == HandTier.FIVE_OF_A_KIND:
            return True

        if current_best is None:
            return (
                result.of_a_kind_count == HandTier.FOUR_OF_A_KIND
                and result.face_value >= STRONG_FOUR_FACE
            )

        if result.of_a_kind_count == HandTier.FOUR_OF_A_KIND and result.rank >= current_best.rank:
            return True
        return result.rank >= current_best.rank + BOT_SAFETY_MARGIN

    def choose_holds(self, dice: Sequence[Die], current_best: HandResult | None) -> list[bool]:
        """Hold wilds plus the target face."""
        faces = faces_of(dice)
        target = self.target_face(faces, current_best)
        logger.debug("Bot %s targeting %ss with %s", self.player_id, target, faces)
        return [face in (WILD_FACE, target) for face in faces]

    def target_face(self, faces: Sequence[int], current_best: HandResult | None) -> int:
        """Pick the face to collect."""
        best_face, _ = best_target_face(faces)
        if current_best is None:
            return best_face
        if self.evaluator.evaluate(faces).rank >= current_best.rank:
            return best_face

        counts = Counter(faces)
        wilds = counts[WILD_FACE]
        leader_count = current_best.of_a_kind_count
        leader_face = current_best.face_value

        best_score = -1
        target = MAX_FACE
        for face in range(MAX_FACE, 1, -1):
            needed = leader_count if face > leader_face else leader_count + 1
            shortfall = max(0, min(needed, NUM_DICE) - (counts[face] + wilds))
            score = (NUM_DICE - shortfall) * 10 + face
            if score > best_score:
                best_score = score
                target = face
        return target


class ShipCaptainCrewBot(RuleBasedBot):
    """Ship, Captain and Crew bot.

    Keeps rolling until qualified. Once qualified, holds a cargo of 8 or
    more unless an earlier qualified hand is already ahead of it.
    """

    variant = GameVariant.SHIP_CAPTAIN_CREW

    def should_stop_rolling(
        self,
        dice: Sequence[Die],
        rolls_remaining: int,
        current_best: HandResult | None,
    ) -> bool:
        """Decide whether to lock in."""
        if rolls_remaining <= 0:
            return True
        if not self._rolled(dice):
            return False

        result = self.evaluator.evaluate(dice)
        if result.category != QUALIFIED:
            return False

        if current_best is not None and current_best.category == QUALIFIED:
            if result.face_value < current_best.face_value:
                return False
        return result.face_value >= SCC_HOLD_CARGO

    def choose_holds(self, dice: Sequence[Die], current_best: HandResult | None) -> list[bool]:
        """Frozen dice stay held; cargo always re-rolls."""
        return [d.frozen for d in dice]


class CategoryBot(RuleBasedBot):
    """Category showdown bot.

    Stops on a yahtzee or a large straight, or when already beating the
    leader by a wide margin. Otherwise keeps a straight draw, or the most
    frequent face.
    """

    variant = GameVariant.CATEGORY

    # Category points, not Horses rank units
    SAFETY_MARGIN = 10

    def should_stop_rolling(
        self,
        dice: Sequence[Die],
        rolls_remaining: int,
        current_best: HandResult | None,
    ) -> bool:
        """Decide whether to lock in."""
        if rolls_remaining <= 0:
            return True
        if not self._rolled(dice):
            return False

        result = self.evaluator.evaluate(dice)
        if result.category in ("yahtzee", "large_straight"):
            return True
        return current_best is not None and result.rank >= current_best.rank + self.SAFETY_MARGIN

    def choose_holds(self, dice: Sequence[Die], current_best: HandResult | None) -> list[bool]:
        """Hold a straight draw, or every die of the most frequent face."""
        faces = faces_of(dice)
        unique = set(faces)

        draw = next((s for s in LARGE_STRAIGHTS if len(s & unique) >= 4), None)  # noqa: PLR2004
        if draw is None:
            draw = next((s for s in SMALL_STRAIGHTS if s <= unique), None)
        if draw is not None and not self._has_big_group(faces):
            return self._hold_run(faces, draw)

        counts = Counter(faces)
        face, _ = max(counts.items(), key=lambda item: (item[1], item[0]))
        return [f == face for f in faces]

    def _has_big_group(self, faces: Sequence[int]) -> bool:
        return max(Counter(faces).values()) >= 3  # noqa: PLR2004

    def _hold_run(self, faces: Sequence[int], run: set[int]) -> list[bool]:
        seen: set[int] = set()
        holds = []
        for face in faces:
            keep = face in run and face not in seen
            if keep:
                seen.add(face)
            holds.append(keep)
        return holds
