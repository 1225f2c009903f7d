"""Tests for the rule-based and random bot policies."""

import pytest

from dicetable.bots import (
    BotDifficulty,
    CategoryBot,
    HorsesBot,
    RandomBot,
    ShipCaptainCrewBot,
    create_bot,
)
from dicetable.evaluators.horses import HorsesEvaluator
from dicetable.evaluators.ship_captain_crew import ShipCaptainCrewEvaluator
from dicetable.models.die import Die, dice_from_faces
from dicetable.models.enums import GameVariant


def dice(*faces):
    return dice_from_faces(faces)


class TestCreateBot:
    """Test bot factory."""

    @pytest.mark.parametrize(
        ("variant", "cls"),
        [
            (GameVariant.HORSES, HorsesBot),
            (GameVariant.SHIP_CAPTAIN_CREW, ShipCaptainCrewBot),
            (GameVariant.CATEGORY, CategoryBot),
        ],
    )
    def test_rule_based_per_variant(self, variant, cls):
        bot = create_bot("b", variant, BotDifficulty.HARD)
        assert isinstance(bot, cls)
        assert bot.evaluator.variant == variant

    def test_random_difficulty(self):
        bot = create_bot("b", GameVariant.CATEGORY, BotDifficulty.RANDOM)
        assert isinstance(bot, RandomBot)
        assert bot.evaluator.variant == GameVariant.CATEGORY


class TestHorsesBot:
    """Test Horses stopping and holding."""

    @pytest.fixture
    def bot(self):
        return HorsesBot("b")

    def test_always_stops_on_five_of_a_kind(self, bot):
        assert bot.should_stop_rolling(dice(4, 4, 4, 1, 4), 2, None)

    def test_stops_on_strong_four_with_no_leader(self, bot):
        assert bot.should_stop_rolling(dice(6, 6, 6, 1, 2), 2, None)
        assert not bot.should_stop_rolling(dice(3, 3, 3, 1, 2), 2, None)

    def test_stops_on_four_that_beats_leader(self, bot):
        leader = HorsesEvaluator().evaluate([3, 3, 3, 2, 4])
        assert bot.should_stop_rolling(dice(2, 2, 2, 2, 5), 2, leader)

    def test_rolls_on_when_behind(self, bot):
        leader = HorsesEvaluator().evaluate([6, 6, 6, 6, 2])
        assert not bot.should_stop_rolling(dice(5, 5, 5, 1, 2), 2, leader)

    def test_needs_a_full_tier_margin(self, bot):
        leader = HorsesEvaluator().evaluate([2, 2, 3, 4, 5])
        assert not bot.should_stop_rolling(dice(3, 3, 2, 4, 5), 2, leader)
        assert bot.should_stop_rolling(dice(3, 3, 3, 4, 5), 2, leader)

    def test_last_roll_always_stops(self, bot):
        assert bot.should_stop_rolling(dice(2, 3, 4, 5, 6), 0, None)

    def test_unrolled_dice_never_stop(self, bot):
        assert not bot.should_stop_rolling((Die(),) * 5, 3, None)

    def test_holds_wilds_and_best_face(self, bot):
        assert bot.choose_holds(dice(5, 1, 5, 2, 3), None) == [True, True, True, False, False]

    def test_chases_face_that_can_beat_leader(self, bot):
        leader = HorsesEvaluator().evaluate([4, 4, 4, 2, 3])
        # Pair of 3s cannot beat three 4s without reaching four 3s; 5s and 6s need only three
        target = bot.target_face([3, 3, 5, 2, 6], leader)
        assert target in (5, 6)


class TestShipCaptainCrewBot:
    @pytest.fixture
    def bot(self):
        return ShipCaptainCrewBot("b")

    def settle(self, *faces):
        return ShipCaptainCrewEvaluator().apply_roll_rules(dice(*faces))

    def test_keeps_rolling_until_qualified(self, bot):
        assert not bot.should_stop_rolling(self.settle(6, 5, 3, 3, 3), 2, None)

    def test_holds_good_cargo(self, bot):
        assert bot.should_stop_rolling(self.settle(6, 5, 4, 4, 5), 2, None)
        assert not bot.should_stop_rolling(self.settle(6, 5, 4, 1, 2), 2, None)

    def test_rolls_on_when_behind_leader(self, bot):
        leader = ShipCaptainCrewEvaluator().evaluate([6, 5, 4, 6, 6])
        assert not bot.should_stop_rolling(self.settle(6, 5, 4, 4, 5), 2, leader)

    def test_holds_are_frozen_dice(self, bot):
        settled = self.settle(6, 5, 2, 2, 2)
        assert bot.choose_holds(settled, None) == [True, True, False, False, False]


class TestCategoryBot:
    @pytest.fixture
    def bot(self):
        return CategoryBot("b")

    def test_stops_on_yahtzee_and_large_straight(self, bot):
        assert bot.should_stop_rolling(dice(4, 4, 4, 4, 4), 2, None)
        assert bot.should_stop_rolling(dice(2, 3, 4, 5, 6), 2, None)

    def test_stops_when_far_ahead(self, bot):
        leader = bot.evaluator.evaluate([1, 1, 2, 2, 3])
        assert bot.should_stop_rolling(dice(6, 6, 5, 5, 4), 2, leader)

    def test_holds_straight_draw(self, bot):
        assert bot.choose_holds(dice(2, 3, 4, 5, 5), None) == [True, True, True, True, False]

    def test_holds_biggest_group(self, bot):
        assert bot.choose_holds(dice(6, 2, 6, 6, 3), None) == [True, False, True, True, False]


class TestRandomBot:
    def test_seeded_decisions_repeat(self):
        a = RandomBot("b", seed=4)
        b = RandomBot("b", seed=4)
        faces = dice(2, 3, 4, 5, 6)
        assert a.choose_holds(faces, None) == b.choose_holds(faces, None)
        assert a.should_stop_rolling(faces, 2, None) == b.should_stop_rolling(faces, 2, None)

    def test_last_roll_stops(self):
        assert RandomBot("b").should_stop_rolling(dice(2, 3, 4, 5, 6), 0, None)
