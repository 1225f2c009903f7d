"""Replication channel carrying round documents from the host to every client.

Semantics: at-least-once delivery, whole-document last-write-wins, and
writer fencing on host_epoch: a write whose epoch is lower than the stored
document's is rejected with WriteFailure.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from dicetable.errors import WriteFailure
from dicetable.models.round_state import PlayerAction, RoundState

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[RoundState], Awaitable[None] | None]
ActionHandler = Callable[[PlayerAction], Awaitable[None] | None]
Unsubscribe = Callable[[], Awaitable[None]]


async def call_handler(handler: Callable[[Any], Awaitable[None] | None], payload: Any) -> None:
    """Call a sync or async handler, logging anything it raises."""
    try:
        result = handler(payload)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Error in replication handler")


class ReplicationChannel(ABC):
    """Shared store plus change notifications for round documents."""

    @abstractmethod
    async def write(self, round_id: str, state: RoundState) -> bool:
        """Store a round document and notify subscribers.

        Raises:
            WriteFailure: If the store rejects the write (stale epoch, unavailable)

        """

    @abstractmethod
    async def read(self, round_id: str) -> RoundState | None:
        """Get the stored round document."""

    @abstractmethod
    async def subscribe(self, round_id: str, on_change: SnapshotHandler) -> Unsubscribe:
        """Receive every document written for a round.

        Returns:
            Coroutine function that removes the subscription

        """

    @abstractmethod
    async def publish_action(self, round_id: str, action: PlayerAction) -> bool:
        """Send a client action to the round's host."""

    @abstractmethod
    async def subscribe_actions(self, round_id: str, on_action: ActionHandler) -> Unsubscribe:
        """Receive client actions for a round (host side)."""

    async def close(self) -> None:
        """Release connections."""


class InMemoryReplicationChannel(ReplicationChannel):
    """Single-process channel.

    Documents are stored and delivered as JSON-compatible dicts, so every
    subscriber gets its own copy, as it would over the network.
    """

    def __init__(self, *, duplicate_delivery: bool = False) -> None:
        """Initialize the channel.

        Args:
            duplicate_delivery: Deliver every write twice, to exercise at-least-once handling

        """
        self.duplicate_delivery = duplicate_delivery
        self._documents: dict[str, dict[str, Any]] = {}
        self._subscribers: dict[str, list[SnapshotHandler]] = {}
        self._action_subscribers: dict[str, list[ActionHandler]] = {}
        self.write_count = 0

    async def write(self, round_id: str, state: RoundState) -> bool:
        """Store and deliver a round document."""
        stored = self._documents.get(round_id)
        if stored is not None and state.host_epoch < stored.get("host_epoch", 0):
            raise WriteFailure(
                round_id, f"stale host epoch {state.host_epoch} < {stored['host_epoch']}"
            )

        document = state.to_dict()
        self._documents[round_id] = document
        self.write_count += 1

        deliveries = 2 if self.duplicate_delivery else 1
        for _ in range(deliveries):
            for handler in list(self._subscribers.get(round_id, [])):
                await call_handler(handler, RoundState.from_dict(document))
        return True

    async def read(self, round_id: str) -> RoundState | None:
        """Get the stored round document."""
        document = self._documents.get(round_id)
        return RoundState.from_dict(document) if document else None

    async def subscribe(self, round_id: str, on_change: SnapshotHandler) -> Unsubscribe:
        """Register a snapshot handler."""
        self._subscribers.setdefault(round_id, []).append(on_change)

        async def unsubscribe() -> None:
            handlers = self._subscribers.get(round_id, [])
            if on_change in handlers:
                handlers.remove(on_change)

        return unsubscribe

    async def publish_action(self, round_id: str, action: PlayerAction) -> bool:
        """Deliver an action to the host's handlers."""
        handlers = list(self._action_subscribers.get(round_id, []))
        for handler in handlers:
            await call_handler(handler, PlayerAction.from_dict(action.to_dict()))
        return bool(handlers)

    async def subscribe_actions(self, round_id: str, on_action: ActionHandler) -> Unsubscribe:
        """Register an action handler."""
        self._action_subscribers.setdefault(round_id, []).append(on_action)

        async def unsubscribe() -> None:
            handlers = self._action_subscribers.get(round_id, [])
            if on_action in handlers:
                handlers.remove(on_action)

        return unsubscribe
