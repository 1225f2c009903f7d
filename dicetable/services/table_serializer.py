"""Table and round history serialization for MongoDB persistence.

Handles conversion between Table objects, finished rounds and MongoDB documents.
"""

from datetime import UTC, datetime
from typing import Any

from dicetable.models.enums import GameVariant
from dicetable.models.player import Seat
from dicetable.models.round_state import RoundState
from dicetable.models.table import Table
from dicetable.services.settlement_service import SettlementResult


def serialize_seat(seat: Seat) -> dict[str, Any]:
    """Serialize a Seat to a dictionary."""
    return {
        "id": seat.id,
        "username": seat.username,
        "position": seat.position,
        "is_bot": seat.is_bot,
        "sitting_out": seat.sitting_out,
        "chips": seat.chips,
        "client_id": seat.client_id,
    }


def deserialize_seat(data: dict[str, Any]) -> Seat:
    """Deserialize a Seat from a dictionary."""
    return Seat(
        id=data["id"],
        username=data["username"],
        position=data.get("position", 1),
        is_bot=data.get("is_bot", False),
        sitting_out=data.get("sitting_out", False),
        chips=data.get("chips", 0),
        client_id=data.get("client_id"),
    )


def serialize_table(table: Table) -> dict[str, Any]:
    """Serialize a Table to a MongoDB document.

    Args:
        table: Table instance to serialize

    Returns:
        Dictionary suitable for MongoDB storage

    """
    return {
        "_id": table.id,
        "variant": table.variant.value,
        "seats": [serialize_seat(s) for s in table.seats],
        "dealer_position": table.dealer_position,
        "ante": table.ante,
        "pot": table.pot,
        "hand_number": table.hand_number,
        "created_at": table.created_at or datetime.now(UTC).isoformat(),
        "updated_at": datetime.now(UTC).isoformat(),
    }


def deserialize_table(data: dict[str, Any]) -> Table:
    """Deserialize a Table from a MongoDB document.

    A round in progress is not restored; the table comes back between hands.
    """
    return Table(
        id=data["_id"],
        variant=GameVariant(data.get("variant", GameVariant.HORSES.value)),
        seats=[deserialize_seat(s) for s in data.get("seats", [])],
        dealer_position=data.get("dealer_position"),
        ante=data.get("ante", 0),
        pot=data.get("pot", 0),
        hand_number=data.get("hand_number", 0),
        created_at=data.get("created_at"),
    )


def serialize_round_record(
    table: Table,
    state: RoundState,
    settlement: SettlementResult | None = None,
) -> dict[str, Any]:
    """Serialize a finished round for the hand history.

    Args:
        table: Table the round was played at
        state: Final round document
        settlement: How the pot was settled

    Returns:
        Dictionary suitable for MongoDB storage

    """
    return {
        "_id": state.round_id,
        "table_id": table.id,
        "variant": state.variant.value,
        "hand_number": table.hand_number,
        "dealer_position": table.dealer_position,
        "state": state.to_dict(),
        "settlement": settlement.to_dict() if settlement else None,
        "completed_at": datetime.now(UTC).isoformat(),
    }
