"""Enums for the dice table."""

from enum import Enum, IntEnum


class GameVariant(str, Enum):
    """Dice games that share the turn engine."""

    HORSES = "horses"
    SHIP_CAPTAIN_CREW = "ship_captain_crew"
    CATEGORY = "category"


class RoundPhase(str, Enum):
    """Lifecycle of a single round."""

    WAITING = "waiting"
    PLAYING = "playing"
    COMPLETE = "complete"


class DealerSelectionPhase(str, Enum):
    """High-card dealer selection states."""

    IDLE = "idle"
    ANNOUNCING = "announcing"
    DEALT = "dealt"
    REVEALED = "revealed"
    RESOLVED = "resolved"


class HandTier(IntEnum):
    """Of-a-kind tiers for Horses, ordered weakest to strongest."""

    HIGH_CARD = 1
    PAIR = 2
    THREE_OF_A_KIND = 3
    FOUR_OF_A_KIND = 4
    FIVE_OF_A_KIND = 5


class ActionKind(str, Enum):
    """Player actions submitted to the host."""

    ROLL = "roll"
    TOGGLE_HOLD = "toggle_hold"
    LOCK_IN = "lock_in"


class TiePolicy(str, Enum):
    """How a tied round is settled."""

    ROLLOVER = "rollover"  # Everyone re-antes, pot carries over
    ROLL_OFF = "roll_off"  # Tied seats roll one die until a single winner


class ReconcileMode(str, Enum):
    """How a client decides between its own edit and a replicated snapshot."""

    WINDOW = "window"
    TOKEN = "token"


class Command(str, Enum):
    """WebSocket commands."""

    # Commands sent to clients
    ROUND_STATE = "ROUND_STATE"
    DEALER_SELECTION = "DEALER_SELECTION"
    DEALER_SELECTED = "DEALER_SELECTED"
    ROUND_COMPLETE = "ROUND_COMPLETE"
    REPORT_ERROR = "REPORT_ERROR"

    # Commands from clients
    ROLL = "ROLL"
    TOGGLE_HOLD = "TOGGLE_HOLD"
    LOCK_IN = "LOCK_IN"
    SYNC_STATE = "SYNC_STATE"
