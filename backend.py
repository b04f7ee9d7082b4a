import asyncio
from functools import partial
from typing import Callable, Dict, Iterable, Sequence

from fastapi import WebSocket

from broker.match_queue import MatchQueue
from broker.outbound import Outbound
from broker.registry import ConnectionRegistry
from broker.rooms import RoomDirectory, generate_room_code
from broker.router import EventRouter
from broker.sessions import Relay, SessionIndex
from constants import MATCH_ROLES, ROOM_CODE_ATTEMPTS, ROOM_CODE_LENGTH
from event_names import ERROR
from logging_config import get_logger

logger = get_logger(__name__)


class BrokerBackend:
    """Owns all broker state for one process and delivers outbound events.

    State changes go through ``router`` synchronously. Delivery is queued per
    connection and drained by one writer task each, so a peer receives events
    in the order they were produced.
    """

    def __init__(self, roles: Sequence[str] = MATCH_ROLES, code_factory: Callable[[], str] = None,
                 max_code_attempts: int = ROOM_CODE_ATTEMPTS, code_length: int = ROOM_CODE_LENGTH):
        self.registry = ConnectionRegistry()
        self.queue = MatchQueue(roles=roles, is_live=self.registry.is_live)
        self.rooms = RoomDirectory(code_factory=code_factory or partial(generate_room_code, code_length), max_attempts=max_code_attempts)
        self.sessions = SessionIndex()
        self.relay = Relay(self.registry, self.sessions, self.rooms)
        self.router = EventRouter(self.registry, self.queue, self.rooms, self.relay)
        logger.info(f"Initializing BrokerBackend with roles {tuple(roles)}")

        # Format: {connection_id: websocket}
        self.connections: Dict[str, WebSocket] = {}
        # Format: {connection_id: queue of outbound text frames}
        self.outboxes: Dict[str, asyncio.Queue] = {}
        # Format: {connection_id: writer task}
        self.writer_tasks: Dict[str, asyncio.Task] = {}

    def attach(self, websocket: WebSocket) -> str:
        connection_id, welcome = self.router.connect()
        self.connections[connection_id] = websocket
        self.outboxes[connection_id] = asyncio.Queue()
        self.writer_tasks[connection_id] = asyncio.create_task(self._write_loop(connection_id, websocket))
        self.deliver(welcome)
        return connection_id

    def handle(self, connection_id: str, event: str, data=None):
        self.deliver(self.router.dispatch(connection_id, event, data))

    async def detach(self, connection_id: str):
        self.deliver(self.router.disconnect(connection_id))
        self.connections.pop(connection_id, None)
        self.outboxes.pop(connection_id, None)
        task = self.writer_tasks.pop(connection_id, None)
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.debug(f"Cancelled writer task for connection {connection_id}")

    def deliver(self, outbound: Iterable[Outbound]):
        for item in outbound:
            outbox = self.outboxes.get(item.connection_id)
            if outbox is None:
                logger.debug(f"Dropping {item.event} for gone connection {item.connection_id}")
                continue
            outbox.put_nowait(item.to_text())

    def send_error(self, connection_id: str, message: str):
        self.deliver([Outbound(connection_id, ERROR, message)])

    async def _write_loop(self, connection_id: str, websocket: WebSocket):
        outbox = self.outboxes[connection_id]
        while True:
            text = await outbox.get()
            try:
                await websocket.send_text(text)
            except Exception as e:
                # The reader side notices the close and runs the disconnect cascade
                logger.warning(f"Error sending to connection {connection_id}: {e}")
                return

    def stats(self) -> dict:
        return {
            "connections": len(self.registry),
            "queued": len(self.queue),
            "queue_depths": self.queue.depths(),
            "open_rooms": len(self.rooms),
            "active_sessions": len(self.sessions),
        }
