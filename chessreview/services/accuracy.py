from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from chessreview.services.evaluation import Classification

RATING_FLOOR = 200


@dataclass(frozen=True)
class SideStats:
    accuracy: float
    counts: dict[Classification, int]
    rating_estimate: int

    @property
    def moves_played(self) -> int:
        return sum(self.counts.values())


def empty_counts() -> dict[Classification, int]:
    return {classification: 0 for classification in Classification}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def estimate_rating(accuracy: float) -> int:
    """Rough Elo guess from average accuracy.

    The middle segment, 400 + 10 * accuracy, is rounded as well so every
    estimate is a whole rating. Halves round up.
    """
    if accuracy < 20:
        rating = 200
    elif accuracy < 50:
        rating = round_half_up(400 + accuracy * 10)
    else:
        rating = round_half_up(600 + accuracy**1.65 / 10)
    return max(RATING_FLOOR, rating)


def fold(
    per_move_accuracy: Sequence[float],
    counts: Optional[Mapping[Classification, int]] = None,
) -> SideStats:
    accuracy = sum(per_move_accuracy) / len(per_move_accuracy) if per_move_accuracy else 0.0
    merged = empty_counts()
    for classification, count in (counts or {}).items():
        merged[Classification(classification)] += count
    return SideStats(
        accuracy=accuracy,
        counts=merged,
        rating_estimate=estimate_rating(accuracy),
    )


@dataclass
class SideTally:
    accuracies: list[float] = field(default_factory=list)
    counts: dict[Classification, int] = field(default_factory=empty_counts)

    def record(self, classification: Classification, accuracy: float) -> None:
        self.counts[classification] += 1
        self.accuracies.append(accuracy)

    def to_stats(self) -> SideStats:
        return fold(self.accuracies, self.counts)
