"""WebSocket connection manager for tables."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from dicetable.api.responses import ErrorCode, ServerMessage
from dicetable.api.table_manager import TableError, TableManager, table_manager
from dicetable.models.dealer_selection import DealerSelectionState
from dicetable.models.enums import ActionKind, Command, RoundPhase
from dicetable.models.round_state import PlayerAction, RoundState

logger = logging.getLogger(__name__)

_ACTION_COMMANDS = {
    Command.ROLL: ActionKind.ROLL,
    Command.TOGGLE_HOLD: ActionKind.TOGGLE_HOLD,
    Command.LOCK_IN: ActionKind.LOCK_IN,
}

_SEND_ERRORS = (WebSocketDisconnect, RuntimeError, ConnectionError, OSError)


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


class ConnectionManager:
    """Manages WebSocket connections per table.

    Handles:
    - Client connections per table
    - Broadcasting replicated round documents
    - Client commands (roll, hold, lock-in, resync)
    """

    def __init__(self, manager: TableManager) -> None:
        """Initialize the connection manager.

        Args:
            manager: Table manager whose rounds are broadcast

        """
        self.manager = manager
        # table_id -> client_id -> WebSocket
        self.active_connections: dict[str, dict[str, WebSocket]] = {}
        # client_id -> seat_id
        self.seats: dict[str, str | None] = {}

        manager.add_snapshot_listener(self.broadcast_round_state)
        manager.add_dealer_listener(self.broadcast_dealer_selection)

    async def connect(
        self, websocket: WebSocket, table_id: str, client_id: str, seat_id: str | None
    ) -> None:
        """Accept a connection and send the current round document."""
        await websocket.accept()
        self.active_connections.setdefault(table_id, {})[client_id] = websocket
        self.seats[client_id] = seat_id
        logger.info("Client %s connected to table %s", client_id, table_id)

        state = self.manager.get_round(table_id)
        if state is not None:
            await self.send_personal_message(
                ServerMessage(Command.ROUND_STATE, table_id, state.to_dict(), client_id),
                table_id,
                client_id,
            )

    def disconnect(self, table_id: str, client_id: str) -> None:
        """Remove a connection."""
        connections = self.active_connections.get(table_id)
        if connections and client_id in connections:
            del connections[client_id]
            self.seats.pop(client_id, None)
            logger.info("Client %s disconnected from table %s", client_id, table_id)
            if not connections:
                del self.active_connections[table_id]

    def get_connection_count(self, table_id: str) -> int:
        """Get the number of clients watching a table."""
        return len(self.active_connections.get(table_id, {}))

    async def send_personal_message(
        self, message: ServerMessage, table_id: str, client_id: str
    ) -> None:
        """Send a message to one client."""
        websocket = self.active_connections.get(table_id, {}).get(client_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message.to_dict())
        except _SEND_ERRORS:
            logger.warning("Connection lost to %s", client_id)
            self.disconnect(table_id, client_id)

    async def broadcast_to_table(self, message: ServerMessage, table_id: str) -> None:
        """Send a message to every client at a table."""
        disconnected = []
        for client_id, websocket in list(self.active_connections.get(table_id, {}).items()):
            try:
                await websocket.send_json(message.to_dict())
            except _SEND_ERRORS:
                logger.warning("Connection lost to client %s", client_id)
                disconnected.append(client_id)

        for client_id in disconnected:
            self.disconnect(table_id, client_id)

    async def broadcast_round_state(self, table_id: str, state: RoundState) -> None:
        """Forward a replicated round document to the table."""
        await self.broadcast_to_table(
            ServerMessage(Command.ROUND_STATE, table_id, state.to_dict()), table_id
        )
        if state.phase == RoundPhase.COMPLETE:
            table = self.manager.tables.get(table_id)
            await self.broadcast_to_table(
                ServerMessage(
                    Command.ROUND_COMPLETE,
                    table_id,
                    {
                        "round_id": state.round_id,
                        "winners": list(state.winners),
                        "pot": table.pot if table else 0,
                    },
                ),
                table_id,
            )

    async def broadcast_dealer_selection(
        self, table_id: str, selection: DealerSelectionState
    ) -> None:
        """Forward a dealer selection result to the table."""
        await self.broadcast_to_table(
            ServerMessage(Command.DEALER_SELECTION, table_id, selection.to_dict()), table_id
        )
        if selection.winner_position is not None:
            await self.broadcast_to_table(
                ServerMessage(
                    Command.DEALER_SELECTED,
                    table_id,
                    {"seat_id": selection.winner_id, "position": selection.winner_position},
                ),
                table_id,
            )

    async def send_error(self, table_id: str, client_id: str, code: ErrorCode, detail: str) -> None:
        """Report a failed command back to its sender."""
        await self.send_personal_message(
            ServerMessage(
                Command.REPORT_ERROR, table_id, {"code": code.value, "detail": detail}, client_id
            ),
            table_id,
            client_id,
        )

    async def handle_client_message(self, websocket: WebSocket, table_id: str, client_id: str) -> None:
        """Handle incoming messages from a client until it disconnects."""
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await self.send_error(table_id, client_id, ErrorCode.INVALID_MESSAGE, "Bad JSON")
                    continue

                if not isinstance(message, dict):
                    await self.send_error(table_id, client_id, ErrorCode.INVALID_MESSAGE, "Expected an object")
                    continue

                command = message.get("command", "")
                content = message.get("content") or {}
                logger.info("Received %s from client %s at table %s", command, client_id, table_id)
                await self.handle_command(table_id, client_id, command, content)

        except WebSocketDisconnect:
            self.disconnect(table_id, client_id)

        except (RuntimeError, ConnectionError, OSError) as e:
            logger.warning("Error handling message from %s: %s", client_id, e)
            self.disconnect(table_id, client_id)

    async def handle_command(
        self, table_id: str, client_id: str, command: str, content: dict[str, Any]
    ) -> None:
        """Dispatch one client command."""
        if command == Command.SYNC_STATE:
            state = self.manager.get_round(table_id)
            if state is not None:
                await self.send_personal_message(
                    ServerMessage(Command.ROUND_STATE, table_id, state.to_dict(), client_id),
                    table_id,
                    client_id,
                )
            return

        kind = _ACTION_COMMANDS.get(command) if isinstance(command, str) else None
        if kind is None:
            await self.send_error(table_id, client_id, ErrorCode.UNKNOWN_COMMAND, str(command))
            return
        if not isinstance(content, dict):
            await self.send_error(table_id, client_id, ErrorCode.INVALID_MESSAGE, "Content must be an object")
            return

        seat_id = self.seats.get(client_id) or content.get("seat_id")
        if not seat_id:
            await self.send_error(table_id, client_id, ErrorCode.NOT_YOUR_SEAT, "No seat bound")
            return

        try:
            action = PlayerAction(
                client_id=client_id,
                player_id=seat_id,
                kind=kind,
                die_index=_optional_int(content.get("die_index")),
                faces=tuple(int(f) for f in content.get("faces") or ()),
                edit_token=int(content.get("edit_token", 0)),
            )
        except (TypeError, ValueError) as e:
            await self.send_error(table_id, client_id, ErrorCode.INVALID_MESSAGE, str(e))
            return

        try:
            await self.manager.submit_action(table_id, action)
        except TableError as e:
            await self.send_error(table_id, client_id, e.code, e.message)


# Global WebSocket manager instance
websocket_manager = ConnectionManager(table_manager)
