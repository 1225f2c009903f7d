"""Redis replication channel for round documents.

Documents live under a key per round and every write is broadcast on a
per-round pub/sub channel, so hosts and observers on different instances
stay synchronized. The store and publish happen in one Lua script that
also fences writers on host_epoch.
"""

import asyncio
import contextlib
import json
import logging
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from dicetable.config import settings
from dicetable.constants import (
    REDIS_PUBLISH_TIMEOUT,
    ROUND_ACTION_CHANNEL,
    ROUND_STATE_CHANNEL,
    ROUND_STATE_KEY,
)
from dicetable.errors import WriteFailure
from dicetable.models.round_state import PlayerAction, RoundState
from dicetable.services.replication import (
    ActionHandler,
    ReplicationChannel,
    SnapshotHandler,
    Unsubscribe,
    call_handler,
)

logger = logging.getLogger(__name__)

# KEYS[1] = document key, KEYS[2] = channel
# ARGV[1] = document JSON, ARGV[2] = writer's host_epoch
FENCED_WRITE_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if current then
  local stored_epoch = tonumber(cjson.decode(current)['host_epoch'] or 0)
  if stored_epoch > tonumber(ARGV[2]) then
    return 0
  end
end
redis.call('SET', KEYS[1], ARGV[1])
redis.call('PUBLISH', KEYS[2], ARGV[1])
return 1
"""


class RedisReplicationChannel(ReplicationChannel):
    """Replication channel backed by Redis keys and pub/sub."""

    def __init__(self, url: str | None = None) -> None:
        """Initialize the channel.

        Args:
            url: Redis URL, settings.redis_url when omitted

        """
        self.url = url or settings.redis_url
        self.redis_client: redis.Redis | None = None
        self.pubsub: redis.client.PubSub | None = None
        self._write_script: Any = None
        self._handlers: dict[str, list[Callable[[str], Any]]] = {}
        self._subscriber_task: asyncio.Task[None] | None = None
        self._running = False

    async def connect(self) -> None:
        """Connect to Redis and verify the connection.

        Raises:
            RedisError: If Redis is not reachable

        """
        self.redis_client = redis.from_url(
            self.url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=REDIS_PUBLISH_TIMEOUT,
        )
        try:
            await self.redis_client.ping()
        except (RedisError, TimeoutError, OSError):
            logger.warning("Redis not available at %s", self.url)
            await self.redis_client.aclose()
            self.redis_client = None
            raise
        self._write_script = self.redis_client.register_script(FENCED_WRITE_SCRIPT)
        logger.info("Connected to Redis replication channel")

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected."""
        return self.redis_client is not None

    async def write(self, round_id: str, state: RoundState) -> bool:
        """Store and broadcast a round document, fenced on host_epoch."""
        if not self.redis_client:
            raise WriteFailure(round_id, "not connected")

        try:
            written = await self._write_script(
                keys=[
                    ROUND_STATE_KEY.format(round_id=round_id),
                    ROUND_STATE_CHANNEL.format(round_id=round_id),
                ],
                args=[json.dumps(state.to_dict()), state.host_epoch],
            )
        except (RedisError, TimeoutError, OSError) as e:
            raise WriteFailure(round_id, str(e)) from e

        if not written:
            raise WriteFailure(round_id, f"stale host epoch {state.host_epoch}")
        logger.debug("Wrote round %s v%s", round_id, state.version)
        return True

    async def read(self, round_id: str) -> RoundState | None:
        """Get the stored round document."""
        if not self.redis_client:
            return None
        try:
            raw = await self.redis_client.get(ROUND_STATE_KEY.format(round_id=round_id))
        except RedisError:
            logger.exception("Error reading round %s", round_id)
            return None
        return RoundState.from_dict(json.loads(raw)) if raw else None

    async def subscribe(self, round_id: str, on_change: SnapshotHandler) -> Unsubscribe:
        """Receive every document written for a round."""

        async def handle(data: str) -> None:
            await call_handler(on_change, RoundState.from_dict(json.loads(data)))

        return await self._register(ROUND_STATE_CHANNEL.format(round_id=round_id), handle)

    async def publish_action(self, round_id: str, action: PlayerAction) -> bool:
        """Publish a client action for the round's host."""
        if not self.redis_client:
            return False
        try:
            receivers = await self.redis_client.publish(
                ROUND_ACTION_CHANNEL.format(round_id=round_id), json.dumps(action.to_dict())
            )
        except (RedisError, TypeError):
            logger.exception("Error publishing action for round %s", round_id)
            return False
        return receivers > 0

    async def subscribe_actions(self, round_id: str, on_action: ActionHandler) -> Unsubscribe:
        """Receive client actions for a round."""

        async def handle(data: str) -> None:
            await call_handler(on_action, PlayerAction.from_dict(json.loads(data)))

        return await self._register(ROUND_ACTION_CHANNEL.format(round_id=round_id), handle)

    async def _register(self, channel: str, handler: Callable[[str], Any]) -> Unsubscribe:
        if not self.redis_client:
            msg = "Redis replication channel is not connected"
            raise RuntimeError(msg)

        if self.pubsub is None:
            self.pubsub = self.redis_client.pubsub()

        first = channel not in self._handlers
        self._handlers.setdefault(channel, []).append(handler)
        if first:
            await self.pubsub.subscribe(channel)
            logger.info("Subscribed to channel: %s", channel)
        self._start_subscriber()

        async def unsubscribe() -> None:
            handlers = self._handlers.get(channel, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers and channel in self._handlers:
                del self._handlers[channel]
                if self.pubsub:
                    await self.pubsub.unsubscribe(channel)

        return unsubscribe

    def _start_subscriber(self) -> None:
        if self._running:
            return
        self._running = True
        self._subscriber_task = asyncio.create_task(self._subscriber_loop())
        logger.info("Redis subscriber started")

    async def _subscriber_loop(self) -> None:
        """Background loop dispatching incoming messages."""
        while self._running and self.pubsub:
            try:
                message = await self.pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )
                if message and message["type"] == "message":
                    await self._handle_message(message)
            except asyncio.CancelledError:
                break
            except (RedisError, ConnectionError):
                logger.warning("Redis connection lost, retrying subscriptions...")
                await asyncio.sleep(5)
                with contextlib.suppress(RedisError, ConnectionError, OSError):
                    for channel in self._handlers:
                        await self.pubsub.subscribe(channel)
            except Exception:
                logger.exception("Error in subscriber loop")
                await asyncio.sleep(1)

    async def _handle_message(self, message: dict[str, Any]) -> None:
        channel = message.get("channel", "")
        if isinstance(channel, bytes):
            channel = channel.decode()
        for handler in list(self._handlers.get(channel, [])):
            try:
                await handler(message.get("data", "{}"))
            except json.JSONDecodeError:
                logger.warning("Invalid JSON on channel %s", channel)

    async def close(self) -> None:
        """Stop the subscriber and close the connection."""
        self._running = False
        if self._subscriber_task:
            self._subscriber_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._subscriber_task
            self._subscriber_task = None

        if self.pubsub:
            await self.pubsub.aclose()
            self.pubsub = None

        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("Redis connection closed")
