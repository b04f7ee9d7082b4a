import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from broker.sessions import Session
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Connection:
    id: str
    connected_at: str = field(default_factory=lambda: datetime.now().isoformat())
    session: Optional[Session] = None


class ConnectionRegistry:
    """Live connections and the explicit connection -> session index.

    Lookups on unknown ids return None instead of raising, since late events
    from a torn-down connection are expected.
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, connection_id: Optional[str] = None) -> str:
        connection_id = connection_id or str(uuid.uuid4())
        if connection_id in self._connections:
            raise ValueError(f"Connection {connection_id} is already registered")
        self._connections[connection_id] = Connection(id=connection_id)
        logger.debug(f"Registered connection {connection_id} ({len(self._connections)} live)")
        return connection_id

    def unregister(self, connection_id: str) -> bool:
        removed = self._connections.pop(connection_id, None)
        if removed:
            logger.debug(f"Unregistered connection {connection_id} ({len(self._connections)} live)")
        return removed is not None

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def is_live(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def session_of(self, connection_id: str) -> Optional[Session]:
        conn = self._connections.get(connection_id)
        return conn.session if conn else None

    def attach_session(self, session: Session) -> None:
        for member in session.members:
            self._connections[member].session = session

    def detach_session(self, session: Session) -> None:
        for member in session.members:
            conn = self._connections.get(member)
            if conn and conn.session is session:
                conn.session = None

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
