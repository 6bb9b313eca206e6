from fastapi import APIRouter, Depends, HTTPException

from chessreview.core.config import get_settings
from chessreview.core.errors import (
    EngineTimeout,
    EngineUnavailable,
    InvalidInputFormat,
    SearchPreempted,
)
from chessreview.schemas.review import (
    AnalysisSampleOut,
    EvaluateRequest,
    FrameOut,
    GameReviewOut,
    NavigateRequest,
    ReviewRequest,
    ReviewStatusOut,
)
from chessreview.services.engine import EngineClient, get_engine_client
from chessreview.services.navigator import ReviewNavigator
from chessreview.services.review_state import AnalysisInProgress, ReviewState, get_review_state

router = APIRouter(tags=["review"])


def _engine_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, EngineTimeout):
        return HTTPException(status_code=504, detail=str(exc))
    return HTTPException(status_code=503, detail=str(exc))


def _require_navigator(state: ReviewState) -> ReviewNavigator:
    navigator = state.navigator
    if navigator is None:
        raise HTTPException(status_code=404, detail="No game has been reviewed yet.")
    return navigator


@router.post("/review", response_model=GameReviewOut)
def create_review(
    payload: ReviewRequest,
    state: ReviewState = Depends(get_review_state),
    client: EngineClient = Depends(get_engine_client),
) -> GameReviewOut:
    depth = payload.depth or get_settings().analysis_depth
    try:
        review = state.run_analysis(payload.pgn, client, depth)
    except InvalidInputFormat as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (AnalysisInProgress, SearchPreempted) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (EngineUnavailable, EngineTimeout) as exc:
        raise _engine_http_error(exc) from exc
    return GameReviewOut.model_validate(review)


@router.get("/review", response_model=GameReviewOut)
def get_review(state: ReviewState = Depends(get_review_state)) -> GameReviewOut:
    if state.review is None:
        raise HTTPException(status_code=404, detail="No game has been reviewed yet.")
    return GameReviewOut.model_validate(state.review)


@router.get("/review/status", response_model=ReviewStatusOut)
def get_review_status(state: ReviewState = Depends(get_review_state)) -> ReviewStatusOut:
    return ReviewStatusOut.model_validate(state.progress)


@router.get("/review/frame", response_model=FrameOut)
def get_frame(state: ReviewState = Depends(get_review_state)) -> FrameOut:
    return FrameOut.model_validate(_require_navigator(state).current())


@router.post("/review/navigate", response_model=FrameOut)
def navigate(
    payload: NavigateRequest,
    state: ReviewState = Depends(get_review_state),
) -> FrameOut:
    navigator = _require_navigator(state)
    if payload.action == "start":
        frame = navigator.start()
    elif payload.action == "reset":
        frame = navigator.reset()
    elif payload.action == "next":
        if not navigator.advance():
            raise HTTPException(status_code=409, detail="Already at the last move.")
        frame = navigator.current()
    elif payload.action == "prev":
        if not navigator.retreat():
            raise HTTPException(status_code=409, detail="Already at the starting position.")
        frame = navigator.current()
    else:
        if payload.index is None:
            raise HTTPException(status_code=400, detail="index is required for jump.")
        try:
            frame = navigator.jump_to(payload.index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return FrameOut.model_validate(frame)


@router.post("/evaluate", response_model=AnalysisSampleOut)
def evaluate_position(
    payload: EvaluateRequest,
    client: EngineClient = Depends(get_engine_client),
) -> AnalysisSampleOut:
    depth = payload.depth or get_settings().live_depth
    try:
        sample = client.evaluate(payload.fen, depth)
    except InvalidInputFormat as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SearchPreempted as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (EngineUnavailable, EngineTimeout) as exc:
        raise _engine_http_error(exc) from exc
    return AnalysisSampleOut.model_validate(sample)
