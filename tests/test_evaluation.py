import pytest

from chessreview.services.evaluation import (
    BLACK,
    WHITE,
    Classification,
    classify,
    classify_loss,
    evaluate_move,
    move_accuracy,
    win_percent,
    win_percent_for,
)


def test_win_percent_is_symmetric_and_centered():
    assert win_percent(0) == pytest.approx(50.0)
    for score in (35, 180, 600, 10000):
        assert win_percent(score) + win_percent(-score) == pytest.approx(100.0)
        assert 0 <= win_percent(-score) < 50 < win_percent(score) <= 100


def test_win_percent_is_monotonic():
    scores = [-10000, -900, -300, -50, 0, 50, 300, 900, 10000]
    values = [win_percent(score) for score in scores]
    assert values == sorted(values)


def test_win_percent_for_black_flips_sign():
    assert win_percent_for(200, BLACK) == pytest.approx(win_percent(-200))
    assert win_percent_for(200, WHITE) == pytest.approx(win_percent(200))


def test_classify_loss_thresholds():
    assert classify_loss(0.0) == Classification.EXCELLENT
    assert classify_loss(2.0) == Classification.EXCELLENT
    assert classify_loss(2.01) == Classification.GOOD
    assert classify_loss(8.0) == Classification.GOOD
    assert classify_loss(15.0) == Classification.INACCURACY
    assert classify_loss(25.0) == Classification.MISTAKE
    assert classify_loss(25.01) == Classification.BLUNDER


def test_engine_best_move_is_always_best():
    assert classify(0, -900, WHITE, was_engine_best=True) == Classification.BEST


def test_quiet_best_move_from_start_position():
    judgement = evaluate_move(20, 20, WHITE, was_engine_best=True)
    assert judgement.classification == Classification.BEST
    assert judgement.accuracy == pytest.approx(100.0)


def test_white_blunder_from_equal_position():
    judgement = evaluate_move(0, -600, WHITE, was_engine_best=False)
    assert judgement.classification == Classification.BLUNDER
    assert judgement.win_before == pytest.approx(50.0)
    assert judgement.win_after == pytest.approx(8.32, abs=0.01)
    assert judgement.accuracy == pytest.approx(16.64, abs=0.05)


def test_black_blunder_is_judged_from_black_side():
    assert classify(0, 600, BLACK, was_engine_best=False) == Classification.BLUNDER
    assert classify(0, -600, BLACK, was_engine_best=False) == Classification.EXCELLENT


def test_improving_move_keeps_full_accuracy():
    assert move_accuracy(-100, 150, WHITE) == pytest.approx(100.0)
    assert evaluate_move(-100, 150, WHITE, was_engine_best=False).loss == 0.0


def test_accuracy_never_negative():
    assert move_accuracy(10000, -10000, WHITE) == 0.0


def test_worse_outcome_never_improves_classification():
    order = [
        Classification.EXCELLENT,
        Classification.GOOD,
        Classification.INACCURACY,
        Classification.MISTAKE,
        Classification.BLUNDER,
    ]
    previous = 0
    for curr in range(100, -1200, -50):
        rank = order.index(classify(100, curr, WHITE, was_engine_best=False))
        assert rank >= previous
        previous = rank
