"""Tests for the in-memory replication channel."""

import pytest

from dicetable.errors import WriteFailure
from dicetable.models.enums import ActionKind
from dicetable.models.round_state import PlayerAction, RoundState
from dicetable.services.replication import InMemoryReplicationChannel, call_handler

pytestmark = pytest.mark.anyio


async def test_write_then_read():
    channel = InMemoryReplicationChannel()
    state = RoundState(round_id="r", version=3, host_epoch=1)
    assert await channel.write("r", state)
    assert await channel.read("r") == state
    assert await channel.read("other") is None


async def test_subscribers_get_independent_copies():
    channel = InMemoryReplicationChannel()
    first, second = [], []
    await channel.subscribe("r", first.append)
    await channel.subscribe("r", second.append)

    await channel.write("r", RoundState(round_id="r", acks={"c": 1}))

    assert first == second
    assert first[0] is not second[0]
    first[0].acks["c"] = 99
    assert second[0].acks["c"] == 1


async def test_unsubscribe():
    channel = InMemoryReplicationChannel()
    seen = []
    unsubscribe = await channel.subscribe("r", seen.append)
    await unsubscribe()
    await channel.write("r", RoundState(round_id="r"))
    assert seen == []


async def test_lower_epoch_rejected():
    channel = InMemoryReplicationChannel()
    await channel.write("r", RoundState(round_id="r", host_epoch=2, version=5))

    with pytest.raises(WriteFailure, match="stale host epoch"):
        await channel.write("r", RoundState(round_id="r", host_epoch=1, version=6))
    assert (await channel.read("r")).version == 5

    # Same or newer epoch is accepted
    await channel.write("r", RoundState(round_id="r", host_epoch=3, version=1))
    assert (await channel.read("r")).host_epoch == 3


async def test_duplicate_delivery():
    channel = InMemoryReplicationChannel(duplicate_delivery=True)
    seen = []
    await channel.subscribe("r", seen.append)
    await channel.write("r", RoundState(round_id="r", version=1))
    assert [s.version for s in seen] == [1, 1]
    assert channel.write_count == 1


async def test_actions_reach_async_handlers():
    channel = InMemoryReplicationChannel()
    received = []

    async def on_action(action):
        received.append(action)

    await channel.subscribe_actions("r", on_action)
    action = PlayerAction("c", "p", ActionKind.TOGGLE_HOLD, die_index=2, edit_token=7)
    assert await channel.publish_action("r", action)
    assert received == [action]


async def test_publish_without_host():
    channel = InMemoryReplicationChannel()
    assert not await channel.publish_action("r", PlayerAction("c", "p", ActionKind.ROLL))


async def test_failing_handler_does_not_stop_delivery(caplog):
    channel = InMemoryReplicationChannel()
    seen = []

    def broken(_state):
        raise RuntimeError("boom")

    await channel.subscribe("r", broken)
    await channel.subscribe("r", seen.append)
    await channel.write("r", RoundState(round_id="r"))

    assert len(seen) == 1
    assert "Error in replication handler" in caplog.text


async def test_call_handler_accepts_sync_and_async():
    calls = []

    async def async_handler(value):
        calls.append(("async", value))

    await call_handler(lambda v: calls.append(("sync", v)), 1)
    await call_handler(async_handler, 2)
    assert calls == [("sync", 1), ("async", 2)]
