from typing import Dict

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"


class StatsResponse(BaseModel):
    connections: int
    queued: int
    queue_depths: Dict[str, Dict[str, int]]
    open_rooms: int
    active_sessions: int
