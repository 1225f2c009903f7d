"""Tests for the table manager."""

import pytest

from dicetable.api.responses import ErrorCode
from dicetable.api.table_manager import TableError, TableManager
from dicetable.config import settings
from dicetable.models.enums import ActionKind, GameVariant, RoundPhase
from dicetable.models.round_state import PlayerAction

pytestmark = pytest.mark.anyio


class FakeRepository:
    def __init__(self):
        self.rounds = []

    async def save_round(self, table, state, settlement):
        self.rounds.append((table.id, state, settlement))
        return True


@pytest.fixture
def manager():
    manager = TableManager()
    manager.bot_think_time = 0
    return manager


async def started(manager, *names):
    table = manager.create_table(GameVariant.HORSES, ante=1)
    for name in names:
        manager.add_seat(table.id, name, client_id=f"c-{name}", seat_id=name)
    await manager.select_dealer(table.id)
    await manager.start_round(table.id)
    return table


def action(seat_id, kind, token=0, faces=()):
    return PlayerAction(client_id=f"c-{seat_id}", player_id=seat_id, kind=kind, faces=faces, edit_token=token)


async def test_create_table(manager):
    table = manager.create_table()
    assert table.variant == settings.default_variant
    assert table.ante == settings.ante_amount
    assert manager.bots[table.id] == {}


async def test_errors_carry_codes(manager):
    with pytest.raises(TableError) as exc_info:
        manager.get_table("missing")
    assert exc_info.value.code == ErrorCode.TABLE_NOT_FOUND

    table = manager.create_table()
    with pytest.raises(TableError) as exc_info:
        manager.get_seat(table.id, "nobody")
    assert exc_info.value.code == ErrorCode.SEAT_NOT_FOUND


async def test_bots_disabled(manager, monkeypatch):
    monkeypatch.setattr(settings, "enable_bots", False)
    table = manager.create_table()
    with pytest.raises(TableError) as exc_info:
        manager.add_bot(table.id)
    assert exc_info.value.code == ErrorCode.BOTS_DISABLED


async def test_seats_locked_during_round(manager):
    table = await started(manager, "ann", "bea")

    with pytest.raises(TableError) as exc_info:
        manager.remove_seat(table.id, "bea")
    assert exc_info.value.code == ErrorCode.ROUND_IN_PROGRESS
    await manager.flush(table.id)


async def test_snapshot_listeners_see_every_version(manager):
    seen = []

    async def listener(table_id, state):
        seen.append((table_id, state.version))

    manager.add_snapshot_listener(listener)
    table = await started(manager, "ann")
    await manager.submit_action(table.id, action("ann", ActionKind.ROLL, 1, (2, 2, 3, 3, 5)))
    await manager.flush(table.id)

    assert seen[-1] == (table.id, 2)
    assert [v for _, v in seen] == sorted(v for _, v in seen)


async def test_bot_seat_not_playable_by_clients(manager):
    table = manager.create_table()
    manager.add_seat(table.id, "ann", client_id="c-ann", seat_id="ann")
    bot = manager.add_bot(table.id, "easy")
    await manager.select_dealer(table.id)
    await manager.start_round(table.id)

    with pytest.raises(TableError) as exc_info:
        await manager.submit_action(table.id, action(bot.id, ActionKind.ROLL))
    assert exc_info.value.code == ErrorCode.NOT_YOUR_SEAT
    await manager.flush(table.id)


async def test_completed_round_is_saved(manager):
    repository = FakeRepository()
    manager.set_services(None, repository)
    table = await started(manager, "ann")

    await manager.submit_action(table.id, action("ann", ActionKind.ROLL, 1, (6, 6, 1, 2, 3)))
    await manager.submit_action(table.id, action("ann", ActionKind.LOCK_IN, 2))
    await manager.flush(table.id)

    assert manager.get_round(table.id).phase == RoundPhase.COMPLETE
    [(table_id, state, settlement)] = repository.rounds
    assert table_id == table.id
    assert state.winners == ("ann",)
    assert settlement.pot_winner == "ann"
    assert table.pot == 0
    assert table.get_seat("ann").chips == settings.starting_chips

    with pytest.raises(TableError) as exc_info:
        await manager.submit_action(table.id, action("ann", ActionKind.ROLL, 3))
    assert exc_info.value.code == ErrorCode.NO_ACTIVE_ROUND


async def test_next_round_replaces_host(manager):
    table = await started(manager, "ann")
    first = manager.get_round(table.id).round_id
    await manager.submit_action(table.id, action("ann", ActionKind.LOCK_IN, 1))
    await manager.submit_action(table.id, action("ann", ActionKind.ROLL, 2, (1, 1, 1, 1, 1)))
    await manager.submit_action(table.id, action("ann", ActionKind.LOCK_IN, 3))
    await manager.flush(table.id)

    state = await manager.start_round(table.id)
    assert state.round_id != first
    assert state.round_id.startswith(f"{table.id}-2-")
    await manager.flush(table.id)


async def test_unbound_seat_not_playable(manager):
    table = manager.create_table()
    manager.add_seat(table.id, "ann", seat_id="ann")
    await manager.select_dealer(table.id)
    await manager.start_round(table.id)

    with pytest.raises(TableError) as exc_info:
        await manager.submit_action(table.id, action("ann", ActionKind.ROLL, 1))
    assert exc_info.value.code == ErrorCode.NOT_YOUR_SEAT
    assert manager.get_round(table.id).acks == {}
    await manager.flush(table.id)


class BrokenRepository:
    async def save_round(self, table, state, settlement):
        raise RuntimeError("disk full")


async def test_failed_history_save_is_logged(manager, caplog):
    manager.set_services(None, BrokenRepository())
    table = await started(manager, "ann")

    await manager.submit_action(table.id, action("ann", ActionKind.ROLL, 1, (3, 3, 3, 2, 2)))
    await manager.submit_action(table.id, action("ann", ActionKind.LOCK_IN, 2))
    await manager.flush(table.id)

    assert manager.get_round(table.id).phase == RoundPhase.COMPLETE
    assert "Saving round history failed" in caplog.text
    assert not manager._tasks
