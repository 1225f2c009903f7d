"""Tests for the Table and Seat models."""

from dicetable.constants import MAX_SEATS
from dicetable.models.player import Seat
from dicetable.models.table import Table


class TestSeating:
    def test_positions_assigned_in_join_order(self):
        table = Table(id="t")
        for i in range(3):
            assert table.add_seat(Seat(id=f"s{i}", username=f"P{i}"))
        assert [s.position for s in table.sorted_seats()] == [1, 2, 3]

    def test_freed_position_is_reused(self):
        table = Table(id="t")
        for i in range(3):
            table.add_seat(Seat(id=f"s{i}", username=f"P{i}"))
        table.remove_seat("s1")

        seat = Seat(id="new", username="New")
        table.add_seat(seat)
        assert seat.position == 2

    def test_duplicate_seat_rejected(self):
        table = Table(id="t")
        assert table.add_seat(Seat(id="s1", username="A"))
        assert not table.add_seat(Seat(id="s1", username="A again"))
        assert len(table.seats) == 1

    def test_full_table_rejects_seat(self):
        table = Table(id="t")
        for i in range(MAX_SEATS):
            table.add_seat(Seat(id=f"s{i}", username=f"P{i}"))
        assert table.is_full()
        assert not table.add_seat(Seat(id="late", username="Late"))

    def test_remove_unknown_seat(self):
        assert not Table(id="t").remove_seat("ghost")

    def test_lookup_by_position(self, table):
        assert table.get_seat_by_position(2).id == "s2"
        assert table.get_seat_by_position(7) is None


class TestTurnOrder:
    def test_starts_left_of_dealer(self, table):
        table.dealer_position = 1
        assert table.turn_order() == ["s2", "s3", "s1"]

    def test_dealer_acts_last(self, table):
        table.dealer_position = 3
        assert table.turn_order()[-1] == "s3"

    def test_sitting_out_skipped(self, table):
        table.get_seat("s2").sitting_out = True
        assert table.turn_order() == ["s3", "s1"]

    def test_no_dealer_uses_position_order(self, table):
        table.dealer_position = None
        assert table.turn_order() == ["s1", "s2", "s3"]

    def test_dealer_sitting_out_uses_position_order(self, table):
        table.get_seat("s1").sitting_out = True
        assert table.turn_order() == ["s2", "s3"]

    def test_empty_table(self):
        assert Table(id="t").turn_order() == []


class TestEligibleDealers:
    def test_bots_excluded_by_default(self, table):
        table.add_seat(Seat(id="bot", username="Bot", is_bot=True))
        ids = [s.id for s in table.eligible_dealers()]
        assert "bot" not in ids
        assert ids == ["s1", "s2", "s3"]

    def test_bots_allowed(self, table):
        table.add_seat(Seat(id="bot", username="Bot", is_bot=True))
        assert "bot" in [s.id for s in table.eligible_dealers(allow_bots=True)]

    def test_sitting_out_excluded(self, table):
        table.get_seat("s3").sitting_out = True
        assert [s.id for s in table.eligible_dealers()] == ["s1", "s2"]


class TestChips:
    def test_update_chips(self):
        seat = Seat(id="s", username="S", chips=10)
        seat.update_chips(-12)
        assert seat.chips == -2

    def test_leaderboard_sorted_by_chips(self, table):
        table.get_seat("s2").chips = 150
        board = table.get_leaderboard()
        assert board[0]["seat_id"] == "s2"

    def test_can_start(self, table):
        assert table.can_start()
        for seat in table.seats:
            seat.sitting_out = True
        assert not table.can_start()
