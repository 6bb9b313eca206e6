from fastapi import APIRouter, Depends, HTTPException

from chessreview.schemas.coach import CoachHintRequest, CoachHintResponse
from chessreview.services.coach_client import (
    CoachClient,
    CoachNotConfigured,
    CoachResponseError,
    get_coach_client,
)

router = APIRouter(tags=["coach"])


@router.post("/coach/hint", response_model=CoachHintResponse)
def coach_hint(
    payload: CoachHintRequest,
    client: CoachClient = Depends(get_coach_client),
) -> CoachHintResponse:
    try:
        text = client.hint(payload.fen, payload.last_move, payload.history, payload.best_move)
    except CoachNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except CoachResponseError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return CoachHintResponse(status="ok", model=client.model, text=text)
