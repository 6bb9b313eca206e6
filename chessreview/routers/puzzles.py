from fastapi import APIRouter, Depends, HTTPException

from chessreview.core.errors import IllegalMoveAttempt, InvalidInputFormat
from chessreview.schemas.puzzles import (
    PuzzleHintResponse,
    PuzzleMoveRequest,
    PuzzleMoveResponse,
    PuzzleOut,
    PuzzleSessionOut,
)
from chessreview.services.puzzle_catalog import SAMPLE_PUZZLES, get_puzzle_manager
from chessreview.services.puzzles import PuzzleSession, PuzzleSessionManager

router = APIRouter(tags=["puzzles"])


def _session_out(session: PuzzleSession) -> PuzzleSessionOut:
    return PuzzleSessionOut.model_validate(session.snapshot())


def _require_session(manager: PuzzleSessionManager, session_id: str) -> PuzzleSession:
    session = manager.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Puzzle session not found.")
    return session


@router.get("/puzzles", response_model=list[PuzzleOut])
def list_puzzles() -> list[PuzzleOut]:
    return [
        PuzzleOut(
            id=puzzle.id,
            title=puzzle.title,
            description=puzzle.description,
            rating=puzzle.rating,
            theme=puzzle.theme,
            fen=puzzle.fen,
            solution_length=len(puzzle.solution),
        )
        for puzzle in SAMPLE_PUZZLES
    ]


@router.post("/puzzles/{puzzle_id}/session", response_model=PuzzleSessionOut)
def start_session(
    puzzle_id: str,
    manager: PuzzleSessionManager = Depends(get_puzzle_manager),
) -> PuzzleSessionOut:
    try:
        session = manager.start(puzzle_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Puzzle not found.") from exc
    except InvalidInputFormat as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _session_out(session)


@router.get("/puzzle-sessions/{session_id}", response_model=PuzzleSessionOut)
def get_session(
    session_id: str,
    manager: PuzzleSessionManager = Depends(get_puzzle_manager),
) -> PuzzleSessionOut:
    return _session_out(_require_session(manager, session_id))


@router.post("/puzzle-sessions/{session_id}/moves", response_model=PuzzleMoveResponse)
def submit_move(
    session_id: str,
    payload: PuzzleMoveRequest,
    manager: PuzzleSessionManager = Depends(get_puzzle_manager),
) -> PuzzleMoveResponse:
    session = _require_session(manager, session_id)
    try:
        result = session.submit_move(payload.move)
    except IllegalMoveAttempt as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return PuzzleMoveResponse(result=result, session=_session_out(session))


@router.post("/puzzle-sessions/{session_id}/retry", response_model=PuzzleSessionOut)
def retry_session(
    session_id: str,
    manager: PuzzleSessionManager = Depends(get_puzzle_manager),
) -> PuzzleSessionOut:
    session = _require_session(manager, session_id)
    if not session.retry():
        raise HTTPException(status_code=409, detail="Only a failed puzzle can be retried.")
    return _session_out(session)


@router.post("/puzzle-sessions/{session_id}/hint", response_model=PuzzleHintResponse)
def request_hint(
    session_id: str,
    manager: PuzzleSessionManager = Depends(get_puzzle_manager),
) -> PuzzleHintResponse:
    session = _require_session(manager, session_id)
    square = session.hint()
    return PuzzleHintResponse(square=square, session=_session_out(session))
