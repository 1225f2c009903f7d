"""Request and response models."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from dicetable.models.enums import ActionKind, Command, GameVariant
from dicetable.models.player import Seat
from dicetable.models.table import Table

__all__ = [
    "ActionRequest",
    "AddBotRequest",
    "AddSeatRequest",
    "Command",
    "CreateTableRequest",
    "CreateTableResponse",
    "ErrorCode",
    "ErrorResponse",
    "SeatInfo",
    "ServerMessage",
    "SitOutRequest",
    "TableInfo",
]


class ErrorCode(StrEnum):
    """Error codes for i18n translation on the frontend."""

    # Table errors
    TABLE_NOT_FOUND = "error.tableNotFound"
    TABLE_IS_FULL = "error.tableIsFull"
    NOT_ENOUGH_PLAYERS = "error.notEnoughPlayers"
    ROUND_IN_PROGRESS = "error.roundInProgress"
    NO_ACTIVE_ROUND = "error.noActiveRound"
    DEALER_NOT_SELECTED = "error.dealerNotSelected"

    # Seat errors
    SEAT_NOT_FOUND = "error.seatNotFound"
    NOT_YOUR_SEAT = "error.notYourSeat"
    BOTS_DISABLED = "error.botsDisabled"

    # Message errors
    UNKNOWN_COMMAND = "error.unknownCommand"
    INVALID_MESSAGE = "error.invalidMessage"


class CreateTableRequest(BaseModel):
    """Request to create a new table."""

    variant: GameVariant | None = None
    ante: int | None = Field(default=None, ge=0)


class CreateTableResponse(BaseModel):
    """Response for table creation."""

    table_id: str
    variant: GameVariant
    message: str = "Table created successfully"


class AddSeatRequest(BaseModel):
    """Request to seat a player."""

    username: str = Field(min_length=1, max_length=32)
    client_id: str | None = None
    seat_id: str | None = None


class AddBotRequest(BaseModel):
    """Request to seat a bot."""

    difficulty: str | None = None


class SitOutRequest(BaseModel):
    """Request to toggle sitting out."""

    sitting_out: bool = True


class ActionRequest(BaseModel):
    """A player action submitted over HTTP."""

    client_id: str
    seat_id: str
    kind: ActionKind
    die_index: int | None = Field(default=None, ge=0)
    faces: list[int] = Field(default_factory=list)
    edit_token: int = Field(default=0, ge=0)


class SeatInfo(BaseModel):
    """Seat information for responses."""

    id: str
    username: str
    position: int
    is_bot: bool
    sitting_out: bool
    chips: int

    @classmethod
    def from_seat(cls, seat: Seat) -> "SeatInfo":
        """Build from a Seat."""
        return cls(
            id=seat.id,
            username=seat.username,
            position=seat.position,
            is_bot=seat.is_bot,
            sitting_out=seat.sitting_out,
            chips=seat.chips,
        )


class TableInfo(BaseModel):
    """Table information response."""

    id: str
    variant: GameVariant
    seats: list[SeatInfo]
    dealer_position: int | None
    ante: int
    pot: int
    hand_number: int
    current_round_id: str | None

    @classmethod
    def from_table(cls, table: Table) -> "TableInfo":
        """Build from a Table."""
        return cls(
            id=table.id,
            variant=table.variant,
            seats=[SeatInfo.from_seat(s) for s in table.sorted_seats()],
            dealer_position=table.dealer_position,
            ante=table.ante,
            pot=table.pot,
            hand_number=table.hand_number,
            current_round_id=table.current_round_id,
        )


@dataclass
class ServerMessage:
    """Message sent from server to clients via WebSocket.

    Attributes:
        command: Command type
        table_id: Table identifier
        content: Message payload (varies by command)
        receiver_id: Specific client to receive (empty = broadcast)

    """

    command: Command
    table_id: str
    content: Any
    receiver_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "command": self.command.value,
            "table_id": self.table_id,
            "content": self.content,
        }


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: str | None = None
