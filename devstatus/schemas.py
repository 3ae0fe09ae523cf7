from pydantic import BaseModel
from typing import Any

class StatusCreated(BaseModel):
    id: int

class StatusOut(BaseModel):
    id: int
    serialNo: str
    name: str | None = None
    timestamp: str
    data: Any
