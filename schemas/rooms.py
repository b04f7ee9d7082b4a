from pydantic import BaseModel


class RoomStatusResponse(BaseModel):
    code: str
    occupants: int
    locked: bool
    joinable: bool
    created_at: str
