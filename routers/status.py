from fastapi import APIRouter, Request

from schemas.status import HealthResponse, StatsResponse

status_router = APIRouter(tags=["status"])


@status_router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse()


@status_router.get("/stats", response_model=StatsResponse)
async def stats(request: Request):
    """Counts only; never exposes connection ids or room codes."""
    return StatsResponse(**request.app.state.backend.stats())
