"""Autoplays computer-controlled seats on the host."""

import logging
from collections.abc import Mapping

from dicetable.bots.base_bot import BaseBot
from dicetable.constants import MAX_ROLLS
from dicetable.engine.clock import Clock, MonotonicClock
from dicetable.engine.turn_machine import TurnStateMachine
from dicetable.models.hand import HandResult
from dicetable.models.round_state import PlayerTurnState, RoundState

logger = logging.getLogger(__name__)


class BotDriver:
    """Plays a bot seat's turn through the state machine's public operations.

    A seat-turn is claimed in the round context before the first roll, so a
    change notification that fires again mid-turn cannot start a second
    roll sequence. The claim is only released if the turn fails.
    """

    def __init__(
        self,
        machine: TurnStateMachine,
        bots: Mapping[str, BaseBot],
        clock: Clock | None = None,
        think_time: float = 0.0,
    ) -> None:
        """Initialize the driver.

        Args:
            machine: Machine for the round being played
            bots: Bot policy per seat id
            clock: Clock used for pacing
            think_time: Pause before each bot step, in seconds

        """
        self.machine = machine
        self.bots = bots
        self.clock = clock or MonotonicClock()
        self.think_time = think_time

    def is_bot(self, player_id: str | None) -> bool:
        """Check if a seat is driven by this driver."""
        return player_id in self.bots

    async def play_turn(self, player_id: str) -> RoundState:
        """Play a bot seat's whole turn.

        Returns:
            State after the turn, unchanged if it was not this seat's turn
            or the turn was already claimed

        """
        machine = self.machine
        bot = self.bots.get(player_id)
        if bot is None or not machine.state.is_turn_of(player_id):
            return machine.state
        if not machine.context.claim_bot_turn(player_id):
            return machine.state

        finished = False
        try:
            await self._play(bot)
            finished = True
        finally:
            if not finished:
                machine.context.release_bot_turn(player_id)
        return machine.state

    async def _play(self, bot: BaseBot) -> None:
        machine = self.machine
        player_id = bot.player_id

        for roll_number in range(1, MAX_ROLLS + 1):
            await self.clock.sleep(self.think_time)
            before = machine.state
            state = machine.roll(player_id)
            if state is before:
                logger.warning("Bot %s could not roll in round %s", player_id, state.round_id)
                return

            turn = state.get_player_state(player_id)
            if turn.is_complete:
                logger.info(
                    "Bot %s finished after %s rolls: %s", player_id, roll_number, turn.result
                )
                return

            current_best = machine.current_best()
            if bot.should_stop_rolling(turn.dice, turn.rolls_remaining, current_best):
                await self.clock.sleep(self.think_time)
                state = machine.lock_in(player_id)
                if state.get_player_state(player_id).is_complete:
                    logger.info(
                        "Bot %s locked in after %s rolls: %s",
                        player_id,
                        roll_number,
                        state.get_player_state(player_id).result,
                    )
                    return
                logger.debug("Bot %s cannot lock in yet, rolling on", player_id)

            self._apply_holds(bot, machine.state.get_player_state(player_id), current_best)

    def _apply_holds(
        self, bot: BaseBot, turn: PlayerTurnState, current_best: HandResult | None
    ) -> None:
        mask = bot.choose_holds(turn.dice, current_best)
        for index, (die, hold) in enumerate(zip(turn.dice, mask, strict=False)):
            if die.held != hold and self.machine.evaluator.can_hold(die):
                self.machine.toggle_hold(bot.player_id, index)
