from collections import deque
from typing import Callable, Deque, Dict, Optional, Sequence, Tuple

from broker.errors import AlreadyEngaged, InvalidPayload, InvalidRole
from broker.sessions import ORIGIN_MATCH, Session
from logging_config import get_logger

logger = get_logger(__name__)

QueueKey = Tuple[str, str]


class MatchQueue:
    """Per-(role, tag) FIFO waiting lists for attribute matchmaking.

    A request first looks for the longest-waiting participant with the
    complementary role and the same tag. Only when none is waiting is the
    requester appended to its own (role, tag) list, so nobody can be matched
    with themselves or with someone of the same role.
    """

    def __init__(self, roles: Sequence[str] = ("vent", "listen"), is_live: Callable[[str], bool] = None):
        roles = tuple(roles)
        if len(roles) != 2 or roles[0] == roles[1]:
            raise ValueError(f"Matchmaking needs exactly two distinct roles, got {roles}")
        self.roles = roles
        self._complements = {roles[0]: roles[1], roles[1]: roles[0]}
        self._is_live = is_live or (lambda connection_id: True)
        self._queues: Dict[QueueKey, Deque[str]] = {}
        # connection id -> key of the list it waits in
        self._positions: Dict[str, QueueKey] = {}

    def complement(self, role: str) -> str:
        try:
            return self._complements[role]
        except KeyError:
            raise InvalidRole(f"Unknown role '{role}', expected one of: {', '.join(self.roles)}")

    def request_match(self, connection_id: str, role: str, tag: str) -> Optional[Session]:
        target_role = self.complement(role)
        tag = (tag or "").strip()
        if not tag:
            raise InvalidPayload("A tag is required to join the queue")
        if connection_id in self._positions:
            raise AlreadyEngaged()

        partner_id = self._pop_head((target_role, tag))
        if partner_id is not None:
            logger.info(f"Matched {connection_id} ({role}) with {partner_id} ({target_role}) on '{tag}'")
            return Session(members=(partner_id, connection_id), origin=ORIGIN_MATCH)

        key = (role, tag)
        self._queues.setdefault(key, deque()).append(connection_id)
        self._positions[connection_id] = key
        logger.info(f"Connection {connection_id} waiting as {role} for '{tag}' (position {len(self._queues[key])})")
        return None

    def _pop_head(self, key: QueueKey) -> Optional[str]:
        waiting = self._queues.get(key)
        while waiting:
            candidate = waiting.popleft()
            self._positions.pop(candidate, None)
            if self._is_live(candidate):
                self._drop_if_empty(key)
                return candidate
            logger.warning(f"Discarded stale waiter {candidate} from {key}")
        self._drop_if_empty(key)
        return None

    def remove(self, connection_id: str) -> bool:
        key = self._positions.pop(connection_id, None)
        if key is None:
            return False
        waiting = self._queues.get(key)
        if waiting is not None:
            try:
                waiting.remove(connection_id)
            except ValueError:
                pass
            self._drop_if_empty(key)
        logger.info(f"Removed {connection_id} from {key[0]} queue for '{key[1]}'")
        return True

    def _drop_if_empty(self, key: QueueKey):
        if key in self._queues and not self._queues[key]:
            del self._queues[key]

    def is_waiting(self, connection_id: str) -> bool:
        return connection_id in self._positions

    def key_of(self, connection_id: str) -> Optional[QueueKey]:
        return self._positions.get(connection_id)

    def waiting(self, role: str, tag: str) -> list:
        return list(self._queues.get((role, tag), ()))

    def depths(self) -> Dict[str, Dict[str, int]]:
        result = {role: {} for role in self.roles}
        for (role, tag), waiting in self._queues.items():
            result[role][tag] = len(waiting)
        return result

    def __len__(self) -> int:
        return len(self._positions)
