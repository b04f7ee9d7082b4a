import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Tuple

from broker.errors import StaleReference
from broker.outbound import Outbound
from event_names import MATCH_FOUND, PARTNER_LEFT, PARTNER_TYPING, RECEIVE_MESSAGE, START_CHAT
from logging_config import get_logger

logger = get_logger(__name__)

ORIGIN_MATCH = "match"
ORIGIN_ROOM = "room"


@dataclass
class Session:
    """Two connections paired by either strategy.

    Membership is symmetric: ``peer_of`` works from either side.
    """

    members: Tuple[str, str]
    origin: str = ORIGIN_MATCH
    room_code: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        if len(self.members) != 2 or self.members[0] == self.members[1]:
            raise ValueError(f"A session needs two distinct members, got {self.members}")

    def peer_of(self, connection_id: str) -> str:
        first, second = self.members
        if connection_id == first:
            return second
        if connection_id == second:
            return first
        raise StaleReference(f"{connection_id} is not a member of session {self.id}")


class SessionIndex:
    """Live sessions by id."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def add(self, session: Session) -> Session:
        self._sessions[session.id] = session
        return session

    def discard(self, session: Session) -> bool:
        return self._sessions.pop(session.id, None) is not None

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def __contains__(self, session: Session) -> bool:
        return self._sessions.get(session.id) is session

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))


class Relay:
    """Opens, relays over and tears down sessions.

    Every method returns the outbound events it produced instead of sending
    them, so callers can apply a whole state change before any I/O happens.
    """

    def __init__(self, registry, sessions: SessionIndex, rooms):
        self.registry = registry
        self.sessions = sessions
        self.rooms = rooms

    def open(self, session: Session) -> list:
        self.sessions.add(session)
        self.registry.attach_session(session)
        if session.origin == ORIGIN_ROOM:
            logger.info(f"Session {session.id} started from room {session.room_code}")
            return [Outbound(member, START_CHAT) for member in session.members]
        logger.info(f"Session {session.id} started from matchmaking")
        return [Outbound(member, MATCH_FOUND, {"sessionId": session.id}) for member in session.members]

    def relay(self, from_id: str, payload: Any) -> list:
        session = self.registry.session_of(from_id)
        if session is None:
            raise StaleReference(f"{from_id} has no session to relay to")
        peer_id = session.peer_of(from_id)
        logger.debug(f"Relaying message in session {session.id} from {from_id} to {peer_id}")
        return [Outbound(peer_id, RECEIVE_MESSAGE, payload)]

    def signal_typing(self, from_id: str, is_typing: bool) -> list:
        session = self.registry.session_of(from_id)
        if session is None:
            raise StaleReference(f"{from_id} has no session to signal typing in")
        return [Outbound(session.peer_of(from_id), PARTNER_TYPING, bool(is_typing))]

    def leave(self, from_id: str, notice: str = PARTNER_LEFT) -> list:
        session = self.registry.session_of(from_id)
        if session is None:
            return []
        peer_id = session.peer_of(from_id)

        self.registry.detach_session(session)
        self.sessions.discard(session)
        if session.room_code:
            self.rooms.delete(session.room_code)
        logger.info(f"Session {session.id} ended: {from_id} left, notifying {peer_id} with {notice}")

        if not self.registry.is_live(peer_id):
            return []
        return [Outbound(peer_id, notice)]
