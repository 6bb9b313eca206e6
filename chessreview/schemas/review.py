from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from chessreview.services.evaluation import Classification


class ReviewRequest(BaseModel):
    pgn: str
    depth: Optional[int] = Field(default=None, ge=1, le=40)


class SideStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    accuracy: float
    counts: dict[Classification, int]
    rating_estimate: int
    moves_played: int


class MoveRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    san: str
    uci: str
    side: str
    classification: Classification
    accuracy: float


class GameReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: str
    starting_fen: str
    depth: int
    white: SideStatsOut
    black: SideStatsOut
    evaluation_history: list[int]
    moves: list[MoveRecordOut]
    best_moves: list[Optional[str]]


class ReviewStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    percent: int
    error_message: Optional[str] = None


class FrameOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    move_index: int
    fen: str
    evaluation: int
    san: Optional[str] = None
    from_square: Optional[str] = None
    to_square: Optional[str] = None
    classification: Optional[Classification] = None
    best_move: Optional[str] = None
    next_best_move: Optional[str] = None


class NavigateRequest(BaseModel):
    action: Literal["start", "next", "prev", "reset", "jump"]
    index: Optional[int] = None


class EvaluateRequest(BaseModel):
    fen: str
    depth: Optional[int] = Field(default=None, ge=1, le=40)


class AnalysisSampleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    fen: str
    score_cp: int
    best_move: Optional[str] = None
    depth: int
    pv: list[str]
