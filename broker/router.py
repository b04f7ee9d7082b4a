from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from broker.errors import AlreadyEngaged, BrokerError, InvalidPayload, StaleReference
from broker.match_queue import MatchQueue
from broker.outbound import Outbound
from broker.registry import ConnectionRegistry
from broker.rooms import RoomDirectory
from broker.sessions import ORIGIN_ROOM, Relay
import event_names
from logging_config import get_logger
from schemas.events import JoinQueueRequest, JoinRoomRequest

logger = get_logger(__name__)


class EventRouter:
    """Single entry point for participant actions.

    Each call runs to completion without awaiting, so on the asyncio loop an
    event is applied atomically: no other event can observe a half-formed
    match, a room mid-join, or a session mid-teardown.
    """

    def __init__(self, registry: ConnectionRegistry, queue: MatchQueue, rooms: RoomDirectory, relay: Relay):
        self.registry = registry
        self.queue = queue
        self.rooms = rooms
        self.relay = relay
        self._handlers = {
            event_names.JOIN_QUEUE: self._join_queue,
            event_names.CREATE_ROOM: self._create_room,
            event_names.JOIN_ROOM: self._join_room,
            event_names.SEND_MESSAGE: self._send_message,
            event_names.TYPING_START: self._typing_start,
            event_names.TYPING_STOP: self._typing_stop,
            event_names.LEAVE: self._leave,
        }

    def connect(self, connection_id: Optional[str] = None) -> Tuple[str, List[Outbound]]:
        connection_id = self.registry.register(connection_id)
        logger.info(f"Connection {connection_id} registered")
        return connection_id, [Outbound(connection_id, event_names.CONNECTED, {"connectionId": connection_id})]

    def dispatch(self, connection_id: str, event: str, data: Any = None) -> List[Outbound]:
        if connection_id not in self.registry:
            logger.debug(f"Ignoring {event} from unknown connection {connection_id}")
            return []

        handler = self._handlers.get(event)
        if handler is None:
            logger.warning(f"Unknown event '{event}' from connection {connection_id}")
            return [Outbound(connection_id, event_names.ERROR, f"Unknown event '{event}'")]

        try:
            return handler(connection_id, data)
        except StaleReference as e:
            logger.debug(f"Dropped {event} from {connection_id}: {e}")
            return []
        except BrokerError as e:
            logger.warning(f"{event} from {connection_id} rejected ({e.code}): {e.message}")
            return [Outbound(connection_id, event_names.ERROR, e.message)]

    def disconnect(self, connection_id: str) -> List[Outbound]:
        """Tear down everything a closed connection held. Safe to call repeatedly."""
        if connection_id not in self.registry:
            return []
        outbound = self._release(connection_id, disconnected=True)
        self.registry.unregister(connection_id)
        logger.info(f"Connection {connection_id} disconnected")
        return outbound

    def _release(self, connection_id: str, disconnected: bool = False) -> List[Outbound]:
        # Order matters: queue, then room, then session.
        self.queue.remove(connection_id)

        code = self.rooms.room_of(connection_id)
        if code is not None:
            self.rooms.delete(code)

        session = self.registry.session_of(connection_id)
        if session is None:
            return []
        notice = event_names.PARTNER_LEFT
        if disconnected and session.origin != ORIGIN_ROOM:
            notice = event_names.PARTNER_DISCONNECTED
        return self.relay.leave(connection_id, notice)

    def _ensure_idle(self, connection_id: str):
        if (
            self.queue.is_waiting(connection_id)
            or self.rooms.room_of(connection_id) is not None
            or self.registry.session_of(connection_id) is not None
        ):
            raise AlreadyEngaged()

    @staticmethod
    def _parse(model, data):
        try:
            return model.model_validate(data if isinstance(data, dict) else {})
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise InvalidPayload(f"Invalid request: {fields or 'payload'}")

    def _join_queue(self, connection_id: str, data: Any) -> List[Outbound]:
        request = self._parse(JoinQueueRequest, data)
        self._ensure_idle(connection_id)
        session = self.queue.request_match(connection_id, request.role, request.tag)
        if session is None:
            return []
        return self.relay.open(session)

    def _create_room(self, connection_id: str, data: Any) -> List[Outbound]:
        self._ensure_idle(connection_id)
        code = self.rooms.create_room(connection_id)
        return [Outbound(connection_id, event_names.ROOM_CREATED, code)]

    def _join_room(self, connection_id: str, data: Any) -> List[Outbound]:
        request = self._parse(JoinRoomRequest, data)
        self._ensure_idle(connection_id)
        session = self.rooms.join_room(request.code, connection_id)
        return self.relay.open(session)

    def _send_message(self, connection_id: str, data: Any) -> List[Outbound]:
        return self.relay.relay(connection_id, data)

    def _typing_start(self, connection_id: str, data: Any) -> List[Outbound]:
        return self.relay.signal_typing(connection_id, True)

    def _typing_stop(self, connection_id: str, data: Any) -> List[Outbound]:
        return self.relay.signal_typing(connection_id, False)

    def _leave(self, connection_id: str, data: Any) -> List[Outbound]:
        return self._release(connection_id)
