from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

WIN_CURVE_K = 0.004

EXCELLENT_LOSS_THRESHOLD = 2.0
GOOD_LOSS_THRESHOLD = 8.0
INACCURACY_LOSS_THRESHOLD = 15.0
MISTAKE_LOSS_THRESHOLD = 25.0

ACCURACY_LOSS_WEIGHT = 2.0

WHITE = "white"
BLACK = "black"


class Classification(str, Enum):
    BRILLIANT = "BRILLIANT"
    GREAT = "GREAT"
    BEST = "BEST"
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    BOOK = "BOOK"
    INACCURACY = "INACCURACY"
    MISTAKE = "MISTAKE"
    MISS = "MISS"
    BLUNDER = "BLUNDER"


# BRILLIANT, GREAT, BOOK and MISS are reserved labels; nothing below produces them.
SEVERITY_ORDER = (
    Classification.EXCELLENT,
    Classification.GOOD,
    Classification.INACCURACY,
    Classification.MISTAKE,
    Classification.BLUNDER,
)


@dataclass(frozen=True)
class MoveJudgement:
    classification: Classification
    accuracy: float
    win_before: float
    win_after: float
    loss: float


def win_percent(score_cp: float) -> float:
    """Map a centipawn score to a 0-100 winning chance on a logistic curve."""
    return 50 + 50 * (2 / (1 + math.exp(-WIN_CURVE_K * score_cp)) - 1)


def win_percent_for(score_cp: float, side: str) -> float:
    return win_percent(score_cp if side == WHITE else -score_cp)


def win_loss(prev_score: float, curr_score: float, side: str) -> float:
    return max(0.0, win_percent_for(prev_score, side) - win_percent_for(curr_score, side))


def classify_loss(loss: float) -> Classification:
    if loss <= EXCELLENT_LOSS_THRESHOLD:
        return Classification.EXCELLENT
    if loss <= GOOD_LOSS_THRESHOLD:
        return Classification.GOOD
    if loss <= INACCURACY_LOSS_THRESHOLD:
        return Classification.INACCURACY
    if loss <= MISTAKE_LOSS_THRESHOLD:
        return Classification.MISTAKE
    return Classification.BLUNDER


def classify(
    prev_score: float,
    curr_score: float,
    side: str,
    was_engine_best: bool,
) -> Classification:
    """Judge one move from the white-positive scores around it.

    Playing the engine's own choice is always BEST; otherwise the label comes
    from how many win-percentage points the mover gave away.
    """
    if was_engine_best:
        return Classification.BEST
    return classify_loss(win_loss(prev_score, curr_score, side))


def move_accuracy(prev_score: float, curr_score: float, side: str) -> float:
    before = win_percent_for(prev_score, side)
    after = win_percent_for(curr_score, side)
    # Stands in for the best alternative's evaluation, which is never searched.
    ideal = max(before, after)
    return max(0.0, 100 - ACCURACY_LOSS_WEIGHT * (ideal - after))


def evaluate_move(
    prev_score: float,
    curr_score: float,
    side: str,
    was_engine_best: bool,
) -> MoveJudgement:
    before = win_percent_for(prev_score, side)
    after = win_percent_for(curr_score, side)
    return MoveJudgement(
        classification=classify(prev_score, curr_score, side, was_engine_best),
        accuracy=move_accuracy(prev_score, curr_score, side),
        win_before=before,
        win_after=after,
        loss=max(0.0, before - after),
    )
