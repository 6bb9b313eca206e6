from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    engine: str
    engine_name: Optional[str] = None
