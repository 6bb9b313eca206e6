from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from chessreview.core.logging import get_logger
from chessreview.services.engine import EngineClient
from chessreview.services.navigator import ReviewNavigator
from chessreview.services.review import GameReview, analyze_game

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_DONE = "done"
STATUS_FAILED = "failed"

logger = get_logger("chessreview.review_state")


class AnalysisInProgress(RuntimeError):
    pass


@dataclass(frozen=True)
class AnalysisProgress:
    status: str
    percent: int
    error_message: Optional[str] = None


class ReviewState:
    """The single review record held in memory, plus its navigation cursor."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._review: Optional[GameReview] = None
        self._navigator: Optional[ReviewNavigator] = None
        self._progress = AnalysisProgress(status=STATUS_IDLE, percent=0)

    @property
    def review(self) -> Optional[GameReview]:
        return self._review

    @property
    def navigator(self) -> Optional[ReviewNavigator]:
        return self._navigator

    @property
    def progress(self) -> AnalysisProgress:
        return self._progress

    def load(self, review: GameReview) -> ReviewNavigator:
        with self._lock:
            self._review = review
            self._navigator = ReviewNavigator(review)
            return self._navigator

    def clear(self) -> None:
        with self._lock:
            self._review = None
            self._navigator = None
            self._progress = AnalysisProgress(status=STATUS_IDLE, percent=0)

    def _set_percent(self, percent: int) -> None:
        with self._lock:
            if percent > self._progress.percent:
                self._progress = AnalysisProgress(status=STATUS_RUNNING, percent=percent)

    def run_analysis(self, pgn: str, client: EngineClient, depth: int) -> GameReview:
        with self._lock:
            if self._progress.status == STATUS_RUNNING:
                raise AnalysisInProgress("A game is already being analyzed.")
            self._progress = AnalysisProgress(status=STATUS_RUNNING, percent=0)

        try:
            review = analyze_game(pgn, client, depth, on_progress=self._set_percent)
        except Exception as exc:
            with self._lock:
                self._progress = AnalysisProgress(
                    status=STATUS_FAILED, percent=self._progress.percent, error_message=str(exc)
                )
            logger.warning(
                "review.failed",
                extra={"event": "review.failed", "error_message": str(exc)},
            )
            raise

        self.load(review)
        with self._lock:
            self._progress = AnalysisProgress(status=STATUS_DONE, percent=100)
        return review


_state = ReviewState()


def get_review_state() -> ReviewState:
    return _state
