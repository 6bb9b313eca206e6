from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional
from uuid import uuid4

from chessreview.core.errors import SearchPreempted
from chessreview.core.logging import bind_review, get_logger
from chessreview.services.accuracy import SideStats, SideTally, round_half_up
from chessreview.services.engine import AnalysisSample, EngineClient
from chessreview.services.evaluation import BLACK, WHITE, Classification, evaluate_move
from chessreview.services.pgn import ParsedGame, parse_pgn

logger = get_logger("chessreview.review")

ProgressCallback = Callable[[int], None]

PREEMPTED_RETRIES = 3


@dataclass(frozen=True)
class MoveRecord:
    san: str
    uci: str
    side: str
    classification: Classification
    accuracy: float


@dataclass(frozen=True)
class GameReview:
    review_id: str
    starting_fen: str
    white: SideStats
    black: SideStats
    evaluation_history: tuple[int, ...]
    moves: tuple[MoveRecord, ...]
    best_moves: tuple[Optional[str], ...]
    depth: int

    def __post_init__(self) -> None:
        if len(self.evaluation_history) != len(self.moves) + 1:
            raise ValueError("evaluation_history must hold one score per position.")
        if len(self.best_moves) != len(self.moves) + 1:
            raise ValueError("best_moves must hold one entry per position.")

    @property
    def move_count(self) -> int:
        return len(self.moves)


def build_review(
    game: ParsedGame,
    samples: list[AnalysisSample],
    depth: int,
    review_id: Optional[str] = None,
) -> GameReview:
    """Assemble a review from one engine sample per position (start + after each move)."""
    if len(samples) != len(game.moves) + 1:
        raise ValueError("Need one engine sample per position.")

    tallies = {WHITE: SideTally(), BLACK: SideTally()}
    records: list[MoveRecord] = []
    for index, move in enumerate(game.moves):
        before, after = samples[index], samples[index + 1]
        judgement = evaluate_move(
            before.score_cp,
            after.score_cp,
            move.side,
            was_engine_best=before.best_move == move.move_uci,
        )
        tallies[move.side].record(judgement.classification, judgement.accuracy)
        records.append(
            MoveRecord(
                san=move.move_san,
                uci=move.move_uci,
                side=move.side,
                classification=judgement.classification,
                accuracy=judgement.accuracy,
            )
        )

    return GameReview(
        review_id=review_id or uuid4().hex,
        starting_fen=game.starting_fen,
        white=tallies[WHITE].to_stats(),
        black=tallies[BLACK].to_stats(),
        evaluation_history=tuple(sample.score_cp for sample in samples),
        moves=tuple(records),
        best_moves=tuple(sample.best_move for sample in samples),
        depth=depth,
    )


def _evaluate_position(
    client: EngineClient, fen: str, depth: int, review_id: str
) -> AnalysisSample:
    # A live request may stop a batch search before it scores; queue it again.
    attempt = 0
    while True:
        try:
            return client.evaluate(fen, depth, preempt=False, game=review_id)
        except SearchPreempted:
            attempt += 1
            if attempt > PREEMPTED_RETRIES:
                raise
            logger.info(
                "review.search_requeued",
                extra={"event": "review.search_requeued", "fen": fen, "attempt": attempt},
            )


def analyze_game(
    pgn: str,
    client: EngineClient,
    depth: int,
    on_progress: Optional[ProgressCallback] = None,
) -> GameReview:
    game = parse_pgn(pgn)
    review_id = uuid4().hex

    with bind_review(review_id):
        client.init()
        logger.info(
            "review.start",
            extra={"event": "review.start", "move_count": len(game.moves), "depth": depth},
        )

        samples = [_evaluate_position(client, game.starting_fen, depth, review_id)]
        total = len(game.moves)
        for index, move in enumerate(game.moves):
            samples.append(_evaluate_position(client, move.fen_after, depth, review_id))
            if on_progress is not None:
                on_progress(round_half_up((index + 1) / total * 100))

        review = build_review(game, samples, depth, review_id=review_id)
        logger.info(
            "review.complete",
            extra={
                "event": "review.complete",
                "move_count": review.move_count,
                "white_accuracy": round(review.white.accuracy, 1),
                "black_accuracy": round(review.black.accuracy, 1),
            },
        )
        return review
