import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Outbound:
    """One event addressed to one connection."""

    connection_id: str
    event: str
    data: Any = None

    def to_frame(self) -> dict:
        frame = {"event": self.event}
        if self.data is not None:
            frame["data"] = self.data
        return frame

    def to_text(self) -> str:
        return json.dumps(self.to_frame())
