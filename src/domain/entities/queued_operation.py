"""Deferred write awaiting connectivity."""

from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import uuid4

from core.clock import utcnow


@dataclass
class QueuedOperation:
    """A replay descriptor persisted by the offline queue.

    ``operation`` names a registered handler and ``payload`` holds its
    JSON-serialisable arguments.
    """

    operation: str
    payload: dict[str, Any]
    id: str = field(default_factory=lambda: uuid4().hex[:12])
    enqueued_at: str = field(default_factory=lambda: utcnow().isoformat())
    retries: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueuedOperation":
        return cls(
            operation=data["operation"],
            payload=dict(data.get("payload") or {}),
            id=data["id"],
            enqueued_at=data["enqueued_at"],
            retries=int(data.get("retries", 0)),
        )
