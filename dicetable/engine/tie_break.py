"""Recursive elimination among tied candidates."""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from dicetable.errors import InvariantViolation, MissingParticipant

logger = logging.getLogger(__name__)

# A fair draw ties forever with probability zero; this only catches rigged draws.
MAX_TIE_BREAK_ROUNDS = 1000


@dataclass
class TieBreakOutcome:
    """Result of a tie-break.

    Attributes:
        winner: Winning candidate
        rounds: Draw rounds needed (0 when a single candidate won outright)
        history: Draw values per round, in round order

    """

    winner: str
    rounds: int = 0
    history: list[dict[str, int]] = field(default_factory=list)


class TieBreakResolver:
    """Draws for every candidate and repeats among the leaders until one remains."""

    @staticmethod
    def leaders(draws: Mapping[str, int]) -> list[str]:
        """Get every candidate holding the highest draw, in draw order."""
        if not draws:
            return []
        best = max(draws.values())
        return [candidate for candidate, value in draws.items() if value == best]

    def resolve(
        self,
        candidates: Sequence[str],
        draw: Callable[[str, int], int],
        max_rounds: int = MAX_TIE_BREAK_ROUNDS,
    ) -> TieBreakOutcome:
        """Resolve a winner.

        Args:
            candidates: Candidate ids in seating order
            draw: Called as draw(candidate, round_number), returns a comparable value
            max_rounds: Rounds allowed before the draw is considered broken

        Returns:
            TieBreakOutcome with the single winner

        Raises:
            MissingParticipant: If there are no candidates
            InvariantViolation: If the draw keeps tying past max_rounds

        """
        remaining = list(dict.fromkeys(candidates))
        if not remaining:
            msg = "Tie-break started with no candidates"
            raise MissingParticipant(msg)

        outcome = TieBreakOutcome(winner=remaining[0])
        while len(remaining) > 1:
            if outcome.rounds >= max_rounds:
                msg = f"Tie-break did not converge after {max_rounds} rounds"
                raise InvariantViolation(msg)

            outcome.rounds += 1
            draws = {candidate: draw(candidate, outcome.rounds) for candidate in remaining}
            outcome.history.append(draws)
            remaining = self.leaders(draws)
            logger.debug("Tie-break round %s: %s -> %s", outcome.rounds, draws, remaining)

        outcome.winner = remaining[0]
        return outcome
