from typing import Any, Optional

from pydantic import BaseModel, Field


class CoachHintRequest(BaseModel):
    fen: str
    last_move: str = ""
    history: list[Any] = Field(default_factory=list)
    best_move: Optional[str] = None


class CoachHintResponse(BaseModel):
    status: str
    model: str
    text: str
