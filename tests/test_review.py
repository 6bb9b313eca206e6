import pytest

from chessreview.core.errors import EngineUnavailable, InvalidInputFormat, SearchPreempted
from chessreview.services.evaluation import Classification
from chessreview.services.review import analyze_game
from chessreview.services.review_state import (
    STATUS_DONE,
    STATUS_FAILED,
    STATUS_IDLE,
    AnalysisInProgress,
    ReviewState,
)

from tests.fakes import ScriptedEngineClient

PGN = '[Event "Casual"]\n\n1. e4 e5 2. Nf3 Nc6 *\n'
SCORES = [20, 30, 25, 30, 600]
BEST_MOVES = ["e2e4", "e7e5", "b1c3", "g8f6", "f1b5"]


def test_analyze_game_builds_review():
    client = ScriptedEngineClient(SCORES, BEST_MOVES)
    progress = []

    review = analyze_game(PGN, client, 12, on_progress=progress.append)

    assert client.init_calls == 1
    assert review.move_count == 4
    assert review.evaluation_history == tuple(SCORES)
    assert review.best_moves == tuple(BEST_MOVES)
    assert [move.san for move in review.moves] == ["e4", "e5", "Nf3", "Nc6"]
    assert [move.classification for move in review.moves] == [
        Classification.BEST,
        Classification.BEST,
        Classification.EXCELLENT,
        Classification.BLUNDER,
    ]
    assert progress == [25, 50, 75, 100]
    assert review.depth == 12


def test_analysis_is_sequential_and_tagged_with_review():
    client = ScriptedEngineClient(SCORES, BEST_MOVES)
    review = analyze_game(PGN, client, 12)

    assert len(client.calls) == 5
    assert all(call["preempt"] is False for call in client.calls)
    assert all(call["game"] == review.review_id for call in client.calls)
    assert client.calls[0]["fen"] == review.starting_fen


def test_side_stats_are_split_by_mover():
    review = analyze_game(PGN, ScriptedEngineClient(SCORES, BEST_MOVES), 12)

    assert review.white.moves_played == 2
    assert review.black.moves_played == 2
    assert review.white.counts[Classification.BEST] == 1
    assert review.white.counts[Classification.EXCELLENT] == 1
    assert review.white.accuracy == pytest.approx(100.0)
    assert review.white.rating_estimate == 800
    assert review.black.counts[Classification.BLUNDER] == 1
    assert review.black.accuracy < 70


def test_preempted_position_is_searched_again():
    client = ScriptedEngineClient(SCORES, BEST_MOVES, preempted_calls=(2,))

    review = analyze_game(PGN, client, 12)

    assert len(client.calls) == 6
    assert client.calls[2]["fen"] == client.calls[3]["fen"]
    assert review.evaluation_history == tuple(SCORES)
    assert review.best_moves == tuple(BEST_MOVES)


def test_position_preempted_every_time_fails_the_review():
    client = ScriptedEngineClient(SCORES, BEST_MOVES, preempted_calls=(1, 2, 3, 4))

    with pytest.raises(SearchPreempted):
        analyze_game(PGN, client, 12)
    assert len(client.calls) == 5


def test_progress_rounds_halves_up():
    pgn = "1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5 4. O-O Nf6 *"
    progress = []

    analyze_game(pgn, ScriptedEngineClient(), 12, on_progress=progress.append)

    assert progress == [13, 25, 38, 50, 63, 75, 88, 100]


def test_invalid_pgn_never_reaches_engine():
    client = ScriptedEngineClient()
    with pytest.raises(InvalidInputFormat):
        analyze_game("this is not a game", client, 12)
    assert client.init_calls == 0
    assert client.calls == []


def test_review_state_records_success():
    state = ReviewState()
    review = state.run_analysis(PGN, ScriptedEngineClient(SCORES, BEST_MOVES), 10)

    assert state.review is review
    assert state.navigator is not None
    assert state.navigator.move_index == -1
    assert state.progress.status == STATUS_DONE
    assert state.progress.percent == 100


def test_review_state_keeps_previous_review_on_failure():
    state = ReviewState()
    previous = state.run_analysis(PGN, ScriptedEngineClient(SCORES, BEST_MOVES), 10)

    failing = ScriptedEngineClient(SCORES, BEST_MOVES, fail_with=EngineUnavailable("gone"), fail_at=2)
    with pytest.raises(EngineUnavailable):
        state.run_analysis(PGN, failing, 10)

    assert state.review is previous
    assert state.progress.status == STATUS_FAILED
    assert state.progress.error_message == "gone"
    assert state.progress.percent == 25


def test_review_state_rejects_concurrent_runs():
    state = ReviewState()

    class ReentrantClient(ScriptedEngineClient):
        def init(self):
            with pytest.raises(AnalysisInProgress):
                state.run_analysis(PGN, ScriptedEngineClient(), 10)
            return super().init()

    state.run_analysis(PGN, ReentrantClient(SCORES, BEST_MOVES), 10)
    assert state.progress.status == STATUS_DONE


def test_review_state_clear():
    state = ReviewState()
    state.run_analysis(PGN, ScriptedEngineClient(SCORES, BEST_MOVES), 10)
    state.clear()
    assert state.review is None
    assert state.navigator is None
    assert state.progress.status == STATUS_IDLE
