from fastapi import APIRouter, Depends

from chessreview.schemas.health import HealthResponse
from chessreview.services.engine import EngineClient, get_engine_client

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(client: EngineClient = Depends(get_engine_client)) -> HealthResponse:
    if client.is_ready and client.metadata is not None:
        return HealthResponse(status="ok", engine="ready", engine_name=client.metadata.name)
    return HealthResponse(status="ok", engine="idle")
