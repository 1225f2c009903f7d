"""Antes, pots and tie settlement."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from dicetable.engine.tie_break import TieBreakOutcome, TieBreakResolver
from dicetable.models.die import FaceSource, RandomFaceSource
from dicetable.models.enums import TiePolicy
from dicetable.models.hand import HandResult
from dicetable.models.table import Table
from dicetable.services.log_service import LogService

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    """Outcome of settling a finished round.

    Attributes:
        winners: Seats tied for the best hand
        pot_winner: Seat paid the pot, None when the pot rolled over
        amount: Chips paid out
        rolled_over: Pot carried to the next hand
        roll_off: Roll-off draws when a tie was broken by dice

    """

    winners: list[str] = field(default_factory=list)
    pot_winner: str | None = None
    amount: int = 0
    rolled_over: bool = False
    roll_off: TieBreakOutcome | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary."""
        return {
            "winners": list(self.winners),
            "pot_winner": self.pot_winner,
            "amount": self.amount,
            "rolled_over": self.rolled_over,
            "roll_off": self.roll_off.history if self.roll_off else None,
        }


class SettlementService:
    """Collects antes into the pot and pays it out after each round."""

    def __init__(
        self,
        tie_policy: TiePolicy = TiePolicy.ROLLOVER,
        face_source: FaceSource | None = None,
        log_service: LogService | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            tie_policy: rollover keeps the pot for a re-ante, roll_off breaks ties with dice
            face_source: Die roller for roll-offs
            log_service: Event log

        """
        self.tie_policy = TiePolicy(tie_policy)
        self.face_source = face_source or RandomFaceSource()
        self.log = log_service or LogService()
        self.resolver = TieBreakResolver()

    def collect_antes(self, table: Table) -> int:
        """Move the ante from every active seat into the pot.

        Seats may go below zero; chip balances track who owes what.

        Returns:
            Chips collected

        """
        collected = 0
        for seat in table.active_seats():
            seat.update_chips(-table.ante)
            collected += table.ante
        table.pot += collected
        self.log.info(
            "antes_collected",
            table_id=table.id,
            seats=len(table.active_seats()),
            amount=collected,
            pot=table.pot,
        )
        return collected

    def settle(
        self,
        table: Table,
        winners: Sequence[str],
        results: Sequence[HandResult] | None = None,
    ) -> SettlementResult:
        """Pay the pot for a finished round.

        Args:
            table: Table the round was played at
            winners: Seats tied for the best hand
            results: Final hands in turn order, for the event log

        """
        settlement = SettlementResult(winners=list(winners))
        table.hand_number += 1
        table.current_round_id = None

        if not winners:
            settlement.rolled_over = True
            self.log.warning("pot_rolled_over", table_id=table.id, reason="no_winners", pot=table.pot)
            return settlement

        pot_winner = winners[0]
        if len(winners) > 1:
            if self.tie_policy == TiePolicy.ROLLOVER:
                settlement.rolled_over = True
                self.log.info(
                    "pot_rolled_over",
                    table_id=table.id,
                    reason="tie",
                    tied=",".join(winners),
                    pot=table.pot,
                )
                return settlement

            settlement.roll_off = self.resolver.resolve(
                winners, lambda _seat, _round: self.face_source.roll_face()
            )
            pot_winner = settlement.roll_off.winner
            logger.info(
                "Roll-off among %s won by %s after %s rounds",
                winners,
                pot_winner,
                settlement.roll_off.rounds,
            )

        seat = table.get_seat(pot_winner)
        if seat is None:
            logger.warning("Pot winner %s left table %s, pot rolls over", pot_winner, table.id)
            settlement.rolled_over = True
            return settlement

        amount = table.pot
        seat.update_chips(amount)
        table.pot = 0

        settlement.pot_winner = pot_winner
        settlement.amount = amount
        self.log.info(
            "pot_awarded",
            table_id=table.id,
            winner=pot_winner,
            amount=amount,
            hands=len(results) if results is not None else 0,
        )
        return settlement
