import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from broker.errors import RoomCodeExhausted, RoomFull, RoomNotFound
from broker.sessions import ORIGIN_ROOM, Session
from logging_config import get_logger

logger = get_logger(__name__)

ROOM_CAPACITY = 2


def generate_room_code(length: int = 6) -> str:
    """Uniform random numeric code without a leading zero, e.g. 100000-999999."""
    return random.choice(string.digits[1:]) + "".join(random.choices(string.digits, k=length - 1))


@dataclass
class Room:
    code: str
    occupants: List[str]
    locked: bool = False
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def owner(self) -> str:
        return self.occupants[0]

    @property
    def is_full(self) -> bool:
        return self.locked or len(self.occupants) >= ROOM_CAPACITY


class RoomDirectory:
    """Code-keyed rendezvous rooms, locked once a second participant joins."""

    def __init__(self, code_factory: Callable[[], str] = None, max_attempts: int = 20):
        self._code_factory = code_factory or generate_room_code
        self._max_attempts = max_attempts
        self._rooms: Dict[str, Room] = {}
        # occupant connection id -> room code
        self._occupancy: Dict[str, str] = {}

    def create_room(self, creator_id: str) -> str:
        # Codes of live rooms are never reissued; retry instead of overwriting.
        for _ in range(self._max_attempts):
            code = self._code_factory()
            if code not in self._rooms:
                break
            logger.debug(f"Room code {code} collided with a live room, retrying")
        else:
            logger.error(f"No free room code after {self._max_attempts} attempts ({len(self._rooms)} open rooms)")
            raise RoomCodeExhausted()

        self._rooms[code] = Room(code=code, occupants=[creator_id])
        self._occupancy[creator_id] = code
        logger.info(f"Room {code} created by {creator_id}")
        return code

    def join_room(self, code: str, joiner_id: str) -> Session:
        room = self._rooms.get(code)
        if room is None:
            logger.warning(f"Join room failed: Room {code} not found")
            raise RoomNotFound()
        if room.is_full or joiner_id in room.occupants:
            logger.warning(f"Join room failed: Room {code} is full (locked={room.locked}, occupants={len(room.occupants)})")
            raise RoomFull()

        room.occupants.append(joiner_id)
        room.locked = True
        self._occupancy[joiner_id] = code
        logger.info(f"Connection {joiner_id} joined room {code}, room locked")
        return Session(members=(room.occupants[0], room.occupants[1]), origin=ORIGIN_ROOM, room_code=code)

    def delete(self, code: str) -> bool:
        room = self._rooms.pop(code, None)
        if room is None:
            return False
        for occupant in room.occupants:
            if self._occupancy.get(occupant) == code:
                del self._occupancy[occupant]
        logger.info(f"Room {code} deleted")
        return True

    def get(self, code: str) -> Optional[Room]:
        return self._rooms.get(code)

    def room_of(self, connection_id: str) -> Optional[str]:
        return self._occupancy.get(connection_id)

    def __contains__(self, code: str) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
