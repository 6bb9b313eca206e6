import pytest

from chessreview.services.accuracy import (
    SideTally,
    empty_counts,
    estimate_rating,
    fold,
    round_half_up,
)
from chessreview.services.evaluation import Classification


def test_rating_curve_segments():
    assert estimate_rating(0) == 200
    assert estimate_rating(19.9) == 200
    assert estimate_rating(20) == 600
    assert estimate_rating(30) == 700
    assert estimate_rating(49.5) == 895
    assert estimate_rating(100) == 800


def test_rating_halves_round_up():
    assert estimate_rating(22.25) == 623
    assert estimate_rating(22.24) == 622


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(37.5) == 38
    assert round_half_up(12.49) == 12
    assert round_half_up(100.0) == 100


def test_rating_has_floor():
    for accuracy in (0, 5, 12.5, 19.99):
        assert estimate_rating(accuracy) >= 200


def test_fold_empty_side():
    stats = fold([])
    assert stats.accuracy == 0.0
    assert stats.rating_estimate == 200
    assert stats.moves_played == 0
    assert set(stats.counts) == set(Classification)


def test_fold_averages_move_accuracy():
    stats = fold([100.0, 50.0], {Classification.BEST: 1, Classification.MISTAKE: 1})
    assert stats.accuracy == pytest.approx(75.0)
    assert stats.counts[Classification.BEST] == 1
    assert stats.counts[Classification.MISTAKE] == 1
    assert stats.counts[Classification.BLUNDER] == 0


def test_tally_counts_sum_to_moves_played():
    tally = SideTally()
    tally.record(Classification.BEST, 100.0)
    tally.record(Classification.GOOD, 90.0)
    tally.record(Classification.BLUNDER, 10.0)

    stats = tally.to_stats()
    assert stats.moves_played == 3
    assert sum(stats.counts.values()) == 3
    assert stats.accuracy == pytest.approx(200.0 / 3)


def test_empty_counts_covers_every_label():
    counts = empty_counts()
    assert len(counts) == len(Classification)
    assert all(value == 0 for value in counts.values())
