from fastapi import APIRouter, HTTPException, Request

from logging_config import get_logger
from schemas.rooms import RoomStatusResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/{code}", response_model=RoomStatusResponse)
async def get_room_status(code: str, request: Request):
    """
    Check whether a rendezvous code can still be joined.

    Returns:
    - code: The room code
    - occupants: Number of participants currently in the room (1 or 2)
    - locked: Whether a second participant already joined
    - joinable: Whether a join_room with this code would succeed now
    - created_at: Room creation timestamp
    """
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Room status request for {code} from {client_host}")

    room = request.app.state.backend.rooms.get(code)
    if not room:
        logger.warning(f"Room status failed: Room {code} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomStatusResponse(
        code=room.code,
        occupants=len(room.occupants),
        locked=room.locked,
        joinable=not room.is_full,
        created_at=room.created_at,
    )
