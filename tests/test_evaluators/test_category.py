"""Tests for the category showdown evaluator."""

import pytest

from dicetable.evaluators import get_evaluator
from dicetable.evaluators.category import ALL_CATEGORIES, CategoryEvaluator, category_score
from dicetable.models.enums import GameVariant


@pytest.fixture
def evaluator():
    return CategoryEvaluator()


@pytest.mark.parametrize(
    ("faces", "category", "rank"),
    [
        ([3, 3, 3, 3, 3], "yahtzee", 50),
        ([2, 3, 4, 5, 6], "large_straight", 40),
        ([1, 2, 3, 4, 6], "small_straight", 30),
        ([2, 2, 3, 3, 3], "full_house", 25),
    ],
)
def test_best_category(evaluator, faces, category, rank):
    result = evaluator.evaluate(faces)
    assert result.category == category
    assert result.rank == rank


def test_equal_scores_prefer_later_category(evaluator):
    """Three of a kind and chance both score 28; chance comes later."""
    result = evaluator.evaluate([6, 6, 6, 5, 5])
    assert result.rank == 28
    assert result.category == "chance"


def test_small_straight_unused_die(evaluator):
    result = evaluator.evaluate([1, 2, 3, 4, 6])
    assert result.unused == (4,)


def test_score_all_covers_scorecard(evaluator):
    scores = evaluator.score_all([1, 1, 2, 2, 2])
    assert set(scores) == set(ALL_CATEGORIES)
    assert scores["ones"] == 2
    assert scores["twos"] == 6
    assert scores["full_house"] == 25
    assert scores["yahtzee"] == 0


def test_unknown_category():
    with pytest.raises(ValueError, match="Unknown category"):
        category_score("bonus", [1, 2, 3, 4, 5])


def test_registry():
    assert isinstance(get_evaluator("category"), CategoryEvaluator)
    assert get_evaluator(GameVariant.HORSES).variant == GameVariant.HORSES
    with pytest.raises(ValueError):
        get_evaluator("poker")
