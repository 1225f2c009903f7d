"""High-card dealer selection.

idle -> announcing -> dealt -> revealed -> resolved, looping from revealed
back to announcing among the tied seats until a single high card remains.
Each step is exposed separately so a presentation layer can pace the
reveal; run() drives the whole protocol at once.
"""

import logging
import random
from collections.abc import Callable

from dicetable.engine.tie_break import TieBreakResolver
from dicetable.errors import IllegalTransition
from dicetable.models.card import Deck
from dicetable.models.dealer_selection import DealerSelectionState, DealtCard
from dicetable.models.enums import DealerSelectionPhase
from dicetable.models.player import Seat
from dicetable.models.table import Table

logger = logging.getLogger(__name__)

FIRST_ROUND_ANNOUNCEMENT = "High card wins deal"
TIE_ANNOUNCEMENT = "Tie! Drawing again..."


class DealerSelectionProtocol:
    """Chooses the dealer by repeated high-card draws."""

    def __init__(
        self,
        table: Table,
        *,
        deck: Deck | None = None,
        rng: random.Random | None = None,
        allow_bot_dealers: bool = False,
        on_dealer_selected: Callable[[int], None] | None = None,
        on_update: Callable[[DealerSelectionState], None] | None = None,
    ) -> None:
        """Initialize the protocol.

        Args:
            table: Table whose seats compete for the deal
            deck: Deck to draw from in its current order; a shuffled deck when omitted
            rng: Random source used for shuffling
            allow_bot_dealers: Let bot seats win the deal
            on_dealer_selected: Called once with the winning position
            on_update: Called after every step with the current state

        """
        self.table = table
        self.rng = rng or random.Random()  # noqa: S311
        self.allow_bot_dealers = allow_bot_dealers
        self.on_dealer_selected = on_dealer_selected
        self.on_update = on_update
        self.state = DealerSelectionState()
        self._deck = deck
        self._seats: dict[str, Seat] = {}
        self._announced = False

    def begin(self) -> DealerSelectionState:
        """Pick the contenders, short-circuiting when fewer than two are eligible."""
        if self.state.phase != DealerSelectionPhase.IDLE:
            return self._out_of_phase("begin")

        eligible = self.table.eligible_dealers(allow_bots=self.allow_bot_dealers)
        self._seats = {seat.id: seat for seat in eligible}

        if not eligible:
            logger.warning("No eligible dealers at table %s, falling back to first seat", self.table.id)
            return self._resolve(self._fallback_seat())

        if len(eligible) == 1:
            logger.info("Only one eligible dealer at table %s, bypassing selection", self.table.id)
            return self._resolve(eligible[0])

        if self._deck is None:
            self._deck = Deck()
            self._deck.shuffle(self.rng)

        logger.info(
            "Starting high card dealer selection at table %s with %s players",
            self.table.id,
            len(eligible),
        )
        self.state.contenders = [seat.id for seat in eligible]
        return self._announce()

    def deal(self) -> DealerSelectionState:
        """Deal one face-up card to each contender."""
        if self.state.phase != DealerSelectionPhase.ANNOUNCING:
            return self._out_of_phase("deal")

        self.state.round_number += 1
        for player_id in self.state.contenders:
            seat = self._seats[player_id]
            self.state.dealt.append(
                DealtCard(
                    player_id=player_id,
                    position=seat.position,
                    card=self._deck.draw(self.rng),
                    round_number=self.state.round_number,
                )
            )
        self.state.phase = DealerSelectionPhase.DEALT
        return self._notify()

    def reveal(self) -> DealerSelectionState:
        """Highlight the highest cards of the round and dim the rest."""
        if self.state.phase != DealerSelectionPhase.DEALT:
            return self._out_of_phase("reveal")

        cards = self.state.cards_for_round(self.state.round_number)
        leaders = set(TieBreakResolver.leaders({dc.player_id: dc.card.value for dc in cards}))
        for dc in cards:
            dc.is_winner = dc.player_id in leaders
            dc.is_dimmed = not dc.is_winner

        logger.debug(
            "Dealer selection round %s: %s",
            self.state.round_number,
            ", ".join(f"{dc.player_id}={dc.card}" for dc in cards),
        )
        self.state.phase = DealerSelectionPhase.REVEALED
        return self._notify()

    def advance(self) -> DealerSelectionState:
        """Resolve on a single high card, otherwise restart among the tied seats."""
        if self.state.phase != DealerSelectionPhase.REVEALED:
            return self._out_of_phase("advance")

        cards = self.state.cards_for_round(self.state.round_number)
        tied = [dc.player_id for dc in cards if dc.is_winner]
        if len(tied) == 1:
            return self._resolve(self._seats[tied[0]])

        self.state.contenders = tied
        return self._announce()

    def step(self) -> DealerSelectionState:
        """Run the next step for the current phase."""
        steps = {
            DealerSelectionPhase.IDLE: self.begin,
            DealerSelectionPhase.ANNOUNCING: self.deal,
            DealerSelectionPhase.DEALT: self.reveal,
            DealerSelectionPhase.REVEALED: self.advance,
        }
        step = steps.get(self.state.phase)
        return step() if step else self.state

    def run(self) -> int | None:
        """Run the protocol to completion.

        Returns:
            Position of the new dealer, or None if the table has no seats

        """
        while self.state.phase != DealerSelectionPhase.RESOLVED:
            self.step()
        return self.state.winner_position

    def _announce(self) -> DealerSelectionState:
        self.state.phase = DealerSelectionPhase.ANNOUNCING
        self.state.announcement = (
            FIRST_ROUND_ANNOUNCEMENT if self.state.round_number == 0 else TIE_ANNOUNCEMENT
        )
        return self._notify()

    def _fallback_seat(self) -> Seat | None:
        active = self.table.active_seats()
        if active:
            return active[0]
        seats = self.table.sorted_seats()
        return seats[0] if seats else None

    def _resolve(self, seat: Seat | None) -> DealerSelectionState:
        self.state.phase = DealerSelectionPhase.RESOLVED
        self.state.contenders = [seat.id] if seat else []
        if seat is None:
            logger.warning("Table %s has no seats, no dealer selected", self.table.id)
            self.state.announcement = None
            return self._notify()

        self.state.winner_id = seat.id
        self.state.winner_position = seat.position
        self.state.announcement = f"{seat.username} wins the deal!"
        logger.info("Seat %s at position %s wins the deal", seat.id, seat.position)
        self._notify()

        if not self._announced:
            self._announced = True
            if self.on_dealer_selected:
                self.on_dealer_selected(seat.position)
        return self.state

    def _notify(self) -> DealerSelectionState:
        if self.on_update:
            self.on_update(self.state)
        return self.state

    def _out_of_phase(self, operation: str) -> DealerSelectionState:
        error = IllegalTransition(operation, None, f"phase is {self.state.phase.value}")
        logger.debug("Ignoring illegal dealer selection step: %s", error)
        return self.state
