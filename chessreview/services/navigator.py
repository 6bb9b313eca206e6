from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import chess

from chessreview.services.evaluation import Classification
from chessreview.services.review import GameReview


@dataclass(frozen=True)
class ReviewFrame:
    move_index: int
    fen: str
    evaluation: int
    san: Optional[str]
    from_square: Optional[str]
    to_square: Optional[str]
    classification: Optional[Classification]
    best_move: Optional[str]
    next_best_move: Optional[str]


class ReviewNavigator:
    """Cursor over a finished review.

    The cursor runs from -1 (starting position) to N-1 (after the last move).
    Every position is rebuilt by replaying the game from the start, so the
    board never depends on how the cursor got where it is.
    """

    def __init__(self, review: GameReview) -> None:
        self.review = review
        self.move_index = -1

    @property
    def last_index(self) -> int:
        return self.review.move_count - 1

    def board(self, index: Optional[int] = None) -> chess.Board:
        target = self.move_index if index is None else index
        board = chess.Board(self.review.starting_fen)
        for record in self.review.moves[: target + 1]:
            board.push_uci(record.uci)
        return board

    def current(self) -> ReviewFrame:
        index = self.move_index
        board = self.board(index)
        next_best = self.review.best_moves[index + 1]
        if index < 0:
            return ReviewFrame(
                move_index=index,
                fen=board.fen(),
                evaluation=self.review.evaluation_history[0],
                san=None,
                from_square=None,
                to_square=None,
                classification=None,
                best_move=None,
                next_best_move=next_best,
            )

        record = self.review.moves[index]
        last_move = chess.Move.from_uci(record.uci)
        return ReviewFrame(
            move_index=index,
            fen=board.fen(),
            evaluation=self.review.evaluation_history[index + 1],
            san=record.san,
            from_square=chess.square_name(last_move.from_square),
            to_square=chess.square_name(last_move.to_square),
            classification=record.classification,
            best_move=self.review.best_moves[index],
            next_best_move=next_best,
        )

    def jump_to(self, index: int) -> ReviewFrame:
        if index < -1 or index > self.last_index:
            raise ValueError(f"Move index {index} is outside [-1, {self.last_index}].")
        self.move_index = index
        return self.current()

    def advance(self) -> bool:
        if self.move_index >= self.last_index:
            return False
        self.jump_to(self.move_index + 1)
        return True

    def retreat(self) -> bool:
        if self.move_index <= -1:
            return False
        self.jump_to(self.move_index - 1)
        return True

    def start(self) -> ReviewFrame:
        return self.jump_to(0)

    def reset(self) -> ReviewFrame:
        return self.jump_to(-1)
