from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chessreview.core.config import get_settings
from chessreview.core.logging import configure_logging
from chessreview.core.middleware import RequestIdMiddleware
from chessreview.routers.coach import router as coach_router
from chessreview.routers.health import router as health_router
from chessreview.routers.puzzles import router as puzzles_router
from chessreview.routers.review import router as review_router
from chessreview.services.coach_client import shutdown_coach_client
from chessreview.services.engine import shutdown_engine_client

settings = get_settings()
configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    shutdown_engine_client()
    shutdown_coach_client()


app = FastAPI(title="Chess Review API", version="0.1.0", lifespan=lifespan)

origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

app.include_router(health_router, prefix="/api")
app.include_router(review_router, prefix="/api")
app.include_router(puzzles_router, prefix="/api")
app.include_router(coach_router, prefix="/api")
