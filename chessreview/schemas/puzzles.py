from typing import Optional

from pydantic import BaseModel, ConfigDict

from chessreview.services.puzzles import PuzzleStatus, SubmitResult


class PuzzleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    rating: int
    theme: str
    fen: str
    solution_length: int


class PuzzleSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    session_id: str
    puzzle_id: str
    status: PuzzleStatus
    solved_move_count: int
    solution_length: int
    hint_square: Optional[str] = None
    fen: str
    white_to_move: bool
    awaiting_reply: bool


class PuzzleMoveRequest(BaseModel):
    move: str


class PuzzleMoveResponse(BaseModel):
    result: SubmitResult
    session: PuzzleSessionOut


class PuzzleHintResponse(BaseModel):
    square: Optional[str] = None
    session: PuzzleSessionOut
