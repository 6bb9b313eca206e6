from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional, Protocol
from uuid import uuid4

import chess

from chessreview.core.errors import IllegalMoveAttempt, InvalidInputFormat
from chessreview.core.logging import get_logger

logger = get_logger("chessreview.puzzles")


class Cancellable(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> Cancellable:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class PuzzleStatus(str, Enum):
    SOLVING = "solving"
    SOLVED = "solved"
    FAILED = "failed"


class SubmitResult(str, Enum):
    IGNORED = "ignored"
    CORRECT = "correct"
    SOLVED = "solved"
    FAILED = "failed"


@dataclass(frozen=True)
class PuzzleDefinition:
    id: str
    fen: str
    solution: tuple[str, ...]
    rating: int
    theme: str
    title: str
    description: str = ""


@dataclass(frozen=True)
class PuzzleSessionState:
    session_id: str
    puzzle_id: str
    status: PuzzleStatus
    solved_move_count: int
    solution_length: int
    hint_square: Optional[str]
    fen: str
    white_to_move: bool
    awaiting_reply: bool


def validate_solution(puzzle: PuzzleDefinition) -> None:
    if not puzzle.solution:
        raise InvalidInputFormat(f"Puzzle {puzzle.id} has no solution moves.")
    try:
        board = chess.Board(puzzle.fen)
    except ValueError as exc:
        raise InvalidInputFormat(f"Puzzle {puzzle.id} has an invalid FEN.") from exc
    for index, uci in enumerate(puzzle.solution):
        try:
            move = chess.Move.from_uci(uci)
        except ValueError as exc:
            raise InvalidInputFormat(f"Puzzle {puzzle.id} move {index} is not UCI: {uci}") from exc
        if move not in board.legal_moves:
            raise InvalidInputFormat(f"Puzzle {puzzle.id} move {index} is illegal: {uci}")
        board.push(move)


class PuzzleSession:
    def __init__(
        self,
        puzzle: PuzzleDefinition,
        *,
        reply_delay: float = 0.5,
        scheduler: Scheduler = timer_scheduler,
        validate: bool = True,
        session_id: Optional[str] = None,
    ) -> None:
        if validate:
            validate_solution(puzzle)
        self.puzzle = puzzle
        self.session_id = session_id or uuid4().hex
        self.reply_delay = reply_delay
        self.status = PuzzleStatus.SOLVING
        self.solved_move_count = 0
        self.hint_square: Optional[str] = None
        self._scheduler = scheduler
        self._board = chess.Board(puzzle.fen)
        self._lock = threading.RLock()
        self._generation = 0
        self._pending: Optional[Cancellable] = None

    @property
    def board(self) -> chess.Board:
        return self._board.copy()

    @property
    def awaiting_reply(self) -> bool:
        return self._pending is not None

    def _log_extra(self, event: str, **fields) -> dict:
        return {
            "event": event,
            "session_id": self.session_id,
            "puzzle_id": self.puzzle.id,
            "solved_move_count": self.solved_move_count,
            **fields,
        }

    def submit_move(self, move: str) -> SubmitResult:
        with self._lock:
            if self.status != PuzzleStatus.SOLVING or self._pending is not None:
                return SubmitResult.IGNORED

            try:
                parsed = chess.Move.from_uci(move.strip().lower())
            except ValueError as exc:
                raise IllegalMoveAttempt(f"Not a UCI move: {move}") from exc
            if parsed not in self._board.legal_moves:
                raise IllegalMoveAttempt(f"Illegal move in this position: {move}")

            expected = self.puzzle.solution[self.solved_move_count]
            self._board.push(parsed)
            if parsed.uci() != expected.lower():
                self.status = PuzzleStatus.FAILED
                logger.info(
                    "puzzle.failed",
                    extra=self._log_extra("puzzle.failed", played=parsed.uci(), expected=expected),
                )
                return SubmitResult.FAILED

            self.solved_move_count += 1
            self.hint_square = None
            if self.solved_move_count == len(self.puzzle.solution):
                self.status = PuzzleStatus.SOLVED
                logger.info("puzzle.solved", extra=self._log_extra("puzzle.solved"))
                return SubmitResult.SOLVED

            generation = self._generation
            self._pending = self._scheduler(
                self.reply_delay, lambda: self._play_reply(generation)
            )
            return SubmitResult.CORRECT

    def _play_reply(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self.status != PuzzleStatus.SOLVING:
                logger.debug("puzzle.reply_stale", extra=self._log_extra("puzzle.reply_stale"))
                return
            self._pending = None

            expected = self.puzzle.solution[self.solved_move_count]
            try:
                reply: Optional[chess.Move] = chess.Move.from_uci(expected)
            except ValueError:
                reply = None
            if reply is None or reply not in self._board.legal_moves:
                # Skipped on purpose: the session stays in solving and the
                # counter keeps pointing at the opponent's entry.
                logger.error(
                    "puzzle.reply_illegal",
                    extra=self._log_extra("puzzle.reply_illegal", reply=expected),
                )
                return

            self._board.push(reply)
            self.solved_move_count += 1
            if self.solved_move_count == len(self.puzzle.solution):
                self.status = PuzzleStatus.SOLVED
                logger.info("puzzle.solved", extra=self._log_extra("puzzle.solved"))

    def _invalidate_pending(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def retry(self) -> bool:
        with self._lock:
            if self.status != PuzzleStatus.FAILED:
                return False
            self._invalidate_pending()
            board = chess.Board(self.puzzle.fen)
            for uci in self.puzzle.solution[: self.solved_move_count]:
                board.push_uci(uci)
            self._board = board
            self.status = PuzzleStatus.SOLVING
            self.hint_square = None
            logger.info("puzzle.retry", extra=self._log_extra("puzzle.retry"))
            return True

    def hint(self) -> Optional[str]:
        with self._lock:
            if self.status != PuzzleStatus.SOLVING or self._pending is not None:
                return None
            expected = chess.Move.from_uci(self.puzzle.solution[self.solved_move_count])
            self.hint_square = chess.square_name(expected.from_square)
            return self.hint_square

    def close(self) -> None:
        with self._lock:
            self._invalidate_pending()

    def snapshot(self) -> PuzzleSessionState:
        with self._lock:
            return PuzzleSessionState(
                session_id=self.session_id,
                puzzle_id=self.puzzle.id,
                status=self.status,
                solved_move_count=self.solved_move_count,
                solution_length=len(self.puzzle.solution),
                hint_square=self.hint_square,
                fen=self._board.fen(),
                white_to_move=self._board.turn == chess.WHITE,
                awaiting_reply=self._pending is not None,
            )


class PuzzleSessionManager:
    """Holds the one active puzzle session; loading another closes it."""

    def __init__(
        self,
        catalog: Mapping[str, PuzzleDefinition],
        *,
        reply_delay: float = 0.5,
        scheduler: Scheduler = timer_scheduler,
    ) -> None:
        self.catalog = catalog
        self.reply_delay = reply_delay
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._active: Optional[PuzzleSession] = None

    def start(self, puzzle_id: str) -> PuzzleSession:
        puzzle = self.catalog.get(puzzle_id)
        if puzzle is None:
            raise KeyError(puzzle_id)
        session = PuzzleSession(
            puzzle, reply_delay=self.reply_delay, scheduler=self._scheduler
        )
        with self._lock:
            previous, self._active = self._active, session
        if previous is not None:
            previous.close()
        logger.info(
            "puzzle.start",
            extra={"event": "puzzle.start", "session_id": session.session_id, "puzzle_id": puzzle_id},
        )
        return session

    def get(self, session_id: str) -> Optional[PuzzleSession]:
        with self._lock:
            active = self._active
        if active is None or active.session_id != session_id:
            return None
        return active
