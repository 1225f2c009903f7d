"""API routes."""

import uuid
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Query, WebSocket

from dicetable.api.responses import (
    ActionRequest,
    AddBotRequest,
    AddSeatRequest,
    CreateTableRequest,
    CreateTableResponse,
    ErrorCode,
    SeatInfo,
    SitOutRequest,
    TableInfo,
)
from dicetable.api.table_manager import TableError, table_manager
from dicetable.api.websocket import websocket_manager
from dicetable.models.round_state import PlayerAction

router = APIRouter()

_STATUS_CODES = {
    ErrorCode.TABLE_NOT_FOUND: 404,
    ErrorCode.SEAT_NOT_FOUND: 404,
    ErrorCode.NO_ACTIVE_ROUND: 404,
    ErrorCode.NOT_YOUR_SEAT: 403,
    ErrorCode.BOTS_DISABLED: 403,
}


def _http_error(error: TableError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_CODES.get(error.code, 409),
        detail={"code": error.code.value, "message": error.message},
    )


# ============================================
#  Tables & Seats
# ============================================


@router.post("/tables")
async def create_table(request: CreateTableRequest) -> CreateTableResponse:
    """Create a new table."""
    table = table_manager.create_table(request.variant, request.ante)
    return CreateTableResponse(table_id=table.id, variant=table.variant)


@router.get("/tables")
async def list_tables() -> dict[str, Any]:
    """List every table hosted by this process."""
    tables = [TableInfo.from_table(t).model_dump(mode="json") for t in table_manager.tables.values()]
    return {"tables": tables, "count": len(tables)}


@router.get("/tables/{table_id}")
async def get_table(table_id: str) -> TableInfo:
    """Get a table.

    Args:
        table_id: Table identifier

    Returns:
        Seats, dealer button, pot and hand number

    """
    try:
        return TableInfo.from_table(table_manager.get_table(table_id))
    except TableError as e:
        raise _http_error(e) from e


@router.post("/tables/{table_id}/seats")
async def add_seat(table_id: str, request: AddSeatRequest) -> SeatInfo:
    """Seat a human player."""
    try:
        seat = table_manager.add_seat(table_id, request.username, request.client_id, request.seat_id)
    except TableError as e:
        raise _http_error(e) from e
    return SeatInfo.from_seat(seat)


@router.delete("/tables/{table_id}/seats/{seat_id}")
async def remove_seat(table_id: str, seat_id: str) -> dict[str, Any]:
    """Remove a seat between rounds."""
    try:
        table_manager.remove_seat(table_id, seat_id)
    except TableError as e:
        raise _http_error(e) from e
    return {"removed": seat_id}


@router.post("/tables/{table_id}/seats/{seat_id}/sit-out")
async def sit_out(table_id: str, seat_id: str, request: SitOutRequest) -> SeatInfo:
    """Sit a seat out of upcoming rounds, or bring it back."""
    try:
        seat = table_manager.set_sitting_out(table_id, seat_id, request.sitting_out)
    except TableError as e:
        raise _http_error(e) from e
    return SeatInfo.from_seat(seat)


@router.post("/tables/{table_id}/bots")
async def add_bot(table_id: str, request: AddBotRequest) -> SeatInfo:
    """Seat a bot."""
    try:
        seat = table_manager.add_bot(table_id, request.difficulty)
    except TableError as e:
        raise _http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return SeatInfo.from_seat(seat)


# ============================================
#  Dealer Selection & Rounds
# ============================================


@router.post("/tables/{table_id}/dealer")
async def select_dealer(table_id: str) -> dict[str, Any]:
    """Run high-card dealer selection."""
    try:
        selection = await table_manager.select_dealer(table_id)
    except TableError as e:
        raise _http_error(e) from e
    return selection.to_dict()


@router.get("/tables/{table_id}/dealer")
async def get_dealer_selection(table_id: str) -> dict[str, Any]:
    """Get the last dealer selection."""
    try:
        selection = table_manager.get_dealer_selection(table_id)
    except TableError as e:
        raise _http_error(e) from e
    if selection is None:
        raise HTTPException(
            status_code=404,
            detail={"code": ErrorCode.DEALER_NOT_SELECTED.value, "message": "No dealer selected"},
        )
    return selection.to_dict()


@router.post("/tables/{table_id}/rounds")
async def start_round(table_id: str) -> dict[str, Any]:
    """Collect antes and start a round."""
    try:
        state = await table_manager.start_round(table_id)
    except TableError as e:
        raise _http_error(e) from e
    return state.to_dict()


@router.get("/tables/{table_id}/rounds/current")
async def get_current_round(table_id: str) -> dict[str, Any]:
    """Get the current (or last) round document."""
    try:
        state = table_manager.get_round(table_id)
    except TableError as e:
        raise _http_error(e) from e
    if state is None:
        raise HTTPException(
            status_code=404,
            detail={"code": ErrorCode.NO_ACTIVE_ROUND.value, "message": "No round yet"},
        )
    return state.to_dict()


@router.post("/tables/{table_id}/actions")
async def submit_action(table_id: str, request: ActionRequest) -> dict[str, Any]:
    """Submit a roll, hold toggle or lock-in for a seat.

    Illegal actions are ignored by the host; the returned document is the
    host's current state either way, with the edit token acknowledged.
    """
    action = PlayerAction(
        client_id=request.client_id,
        player_id=request.seat_id,
        kind=request.kind,
        die_index=request.die_index,
        faces=tuple(request.faces),
        edit_token=request.edit_token,
    )
    try:
        state = await table_manager.submit_action(table_id, action)
    except TableError as e:
        raise _http_error(e) from e
    return state.to_dict()


# ============================================
#  Hand History
# ============================================


@router.get("/tables/{table_id}/history")
async def get_history(
    table_id: str, limit: Annotated[int, Query(ge=1, le=50)] = 20
) -> dict[str, Any]:
    """Get recently finished rounds for a table.

    Empty when MongoDB is not configured.
    """
    repository = table_manager.repository
    rounds = await repository.find_rounds(table_id, limit) if repository else []
    return {"rounds": rounds, "count": len(rounds)}


# ============================================
#  WebSocket
# ============================================


@router.websocket("/tables/{table_id}/ws")
async def table_socket(
    websocket: WebSocket,
    table_id: str,
    client_id: str = Query(default="", description="Client ID"),
    seat_id: str | None = Query(default=None, description="Seat this client plays"),
) -> None:
    """WebSocket endpoint streaming round documents for a table.

    Args:
        websocket: WebSocket connection
        table_id: Table to watch
        client_id: Client identifier, generated when empty
        seat_id: Seat this client plays, None to spectate

    """
    if table_id not in table_manager.tables:
        await websocket.accept()
        await websocket.close(code=4004, reason="Table not found")
        return

    client_id = client_id or uuid.uuid4().hex[:8]
    await websocket_manager.connect(websocket, table_id, client_id, seat_id)
    await websocket_manager.handle_client_message(websocket, table_id, client_id)
