import chess
import pytest

from chessreview.core.errors import IllegalMoveAttempt, InvalidInputFormat
from chessreview.services.puzzle_catalog import PUZZLES_BY_ID, SAMPLE_PUZZLES
from chessreview.services.puzzles import (
    PuzzleDefinition,
    PuzzleSession,
    PuzzleSessionManager,
    PuzzleStatus,
    SubmitResult,
    validate_solution,
)

from tests.fakes import ManualScheduler

BACK_RANK = PUZZLES_BY_ID["12"]


def make_session(puzzle, **kwargs):
    scheduler = ManualScheduler()
    return PuzzleSession(puzzle, reply_delay=0.5, scheduler=scheduler, **kwargs), scheduler


def test_catalog_is_valid():
    assert len({puzzle.id for puzzle in SAMPLE_PUZZLES}) == len(SAMPLE_PUZZLES)
    for puzzle in SAMPLE_PUZZLES:
        validate_solution(puzzle)


def test_catalog_keeps_every_playable_classic():
    assert len(SAMPLE_PUZZLES) == 19
    assert "6" not in PUZZLES_BY_ID
    assert "15" not in PUZZLES_BY_ID
    assert PUZZLES_BY_ID["11"].title == "Lolli's Mate"
    assert PUZZLES_BY_ID["13"].solution == ("f3f6", "g8f6", "d6e7")


def test_single_move_puzzle_solves_immediately():
    session, scheduler = make_session(PUZZLES_BY_ID["7"])

    assert session.submit_move("b7h7") == SubmitResult.SOLVED
    assert session.status == PuzzleStatus.SOLVED
    assert session.solved_move_count == 1
    assert scheduler.timers == []
    assert session.board.is_checkmate()
    assert session.submit_move("h1g1") == SubmitResult.IGNORED


def test_multi_move_puzzle_with_scripted_reply():
    session, scheduler = make_session(BACK_RANK)

    assert session.submit_move("d1d8") == SubmitResult.CORRECT
    assert session.solved_move_count == 1
    assert session.awaiting_reply
    assert scheduler.timers[0].delay == 0.5
    assert session.submit_move("d8e8") == SubmitResult.IGNORED
    assert session.hint() is None

    scheduler.fire_pending()

    assert not session.awaiting_reply
    assert session.solved_move_count == 2
    assert session.board.piece_at(chess.E8) == chess.Piece(chess.QUEEN, chess.BLACK)
    assert session.submit_move("d8e8") == SubmitResult.SOLVED
    assert session.status == PuzzleStatus.SOLVED
    assert session.solved_move_count == 3


def test_wrong_move_fails_without_advancing():
    session, _ = make_session(BACK_RANK)

    assert session.submit_move("d1d2") == SubmitResult.FAILED
    assert session.status == PuzzleStatus.FAILED
    assert session.solved_move_count == 0
    assert session.board.piece_at(chess.D2) == chess.Piece(chess.QUEEN, chess.WHITE)
    assert session.hint() is None


def test_retry_restores_last_correct_position():
    session, scheduler = make_session(BACK_RANK)
    session.submit_move("d1d8")
    scheduler.fire_pending()
    expected_fen = session.board.fen()

    assert session.submit_move("d8d7") == SubmitResult.FAILED
    assert session.retry() is True

    assert session.status == PuzzleStatus.SOLVING
    assert session.solved_move_count == 2
    assert session.board.fen() == expected_fen
    assert session.retry() is False


def test_illegal_move_leaves_session_untouched():
    session, _ = make_session(BACK_RANK)
    before = session.snapshot()

    with pytest.raises(IllegalMoveAttempt):
        session.submit_move("a2a5")
    with pytest.raises(IllegalMoveAttempt):
        session.submit_move("zz99")

    assert session.snapshot() == before


def test_hint_names_origin_square():
    session, scheduler = make_session(BACK_RANK)
    assert session.hint() == "d1"
    assert session.snapshot().hint_square == "d1"

    session.submit_move("d1d8")
    assert session.snapshot().hint_square is None
    scheduler.fire_pending()
    assert session.hint() == "d8"


def test_closed_session_ignores_late_reply():
    session, scheduler = make_session(BACK_RANK)
    session.submit_move("d1d8")
    timer = scheduler.timers[0]

    session.close()

    assert timer.cancelled
    timer.callback()
    assert session.solved_move_count == 1
    assert session.board.piece_at(chess.E4) == chess.Piece(chess.QUEEN, chess.BLACK)


def test_pending_reply_discarded_after_close():
    puzzle = PuzzleDefinition(
        id="blind-swine",
        fen="1r5k/2RR4/8/8/8/8/8/7K w - - 0 1",
        solution=("d7h7", "h8g8", "c7g7"),
        rating=1300,
        theme="Rook Battery",
        title="Blind Swine",
    )
    session, scheduler = make_session(puzzle)
    session.submit_move("d7h7")
    stale = scheduler.timers[0]
    session.close()
    stale.callback()
    assert session.solved_move_count == 1
    assert session.board.turn == chess.BLACK


def test_black_to_move_puzzle():
    session, _ = make_session(PUZZLES_BY_ID["16"])
    assert session.snapshot().white_to_move is False
    assert session.submit_move("d8h4") == SubmitResult.SOLVED


def test_invalid_definition_is_rejected():
    broken = PuzzleDefinition(
        id="broken",
        fen=BACK_RANK.fen,
        solution=("d1d8", "a1a2", "d8e8"),
        rating=800,
        theme="Basic Checkmate",
        title="Broken",
    )
    with pytest.raises(InvalidInputFormat):
        PuzzleSession(broken, scheduler=ManualScheduler())


def test_unvalidated_illegal_reply_is_skipped():
    broken = PuzzleDefinition(
        id="broken",
        fen=BACK_RANK.fen,
        solution=("d1d8", "a1a2", "d8e8"),
        rating=800,
        theme="Basic Checkmate",
        title="Broken",
    )
    session, scheduler = make_session(broken, validate=False)

    assert session.submit_move("d1d8") == SubmitResult.CORRECT
    scheduler.fire_pending()

    assert session.status == PuzzleStatus.SOLVING
    assert session.solved_move_count == 1
    assert not session.awaiting_reply
    assert session.board.turn == chess.BLACK


def test_manager_replaces_active_session():
    scheduler = ManualScheduler()
    manager = PuzzleSessionManager(PUZZLES_BY_ID, reply_delay=0.5, scheduler=scheduler)

    first = manager.start("12")
    first.submit_move("d1d8")
    second = manager.start("7")

    assert scheduler.timers[0].cancelled
    assert manager.get(first.session_id) is None
    assert manager.get(second.session_id) is second
    with pytest.raises(KeyError):
        manager.start("does-not-exist")
