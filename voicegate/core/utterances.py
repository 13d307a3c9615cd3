"""In-memory utterance queue.

Every utterance moves strictly forward through three states::

    pending -> delivered -> responded

``pending`` utterances have been captured from the browser but not yet shown to
the agent. Draining (explicit dequeue, the gate's auto-drain, or a successful
wait) moves them to ``delivered``. A successful speak moves *every* delivered
utterance to ``responded`` in one step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Literal, Optional
from uuid import uuid4

from voicegate.core.errors import InvalidInput
from voicegate.core.logger import get_logger
from voicegate.core.metrics import inc_utterances

UtteranceStatus = Literal["pending", "delivered", "responded"]

PENDING: UtteranceStatus = "pending"
DELIVERED: UtteranceStatus = "delivered"
RESPONDED: UtteranceStatus = "responded"

logger = get_logger("queue")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so every timestamp stays comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Utterance:
    text: str
    timestamp: datetime
    id: str = field(default_factory=lambda: str(uuid4()))
    status: UtteranceStatus = PENDING

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status,
        }


class UtteranceQueue:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._items: List[Utterance] = []

    def __len__(self) -> int:
        return len(self._items)

    def add(self, text: str, timestamp: Optional[datetime] = None) -> Utterance:
        cleaned = (text or "").strip()
        if not cleaned:
            raise InvalidInput("Text is required")
        utterance = Utterance(
            text=cleaned,
            timestamp=as_utc(timestamp) if timestamp is not None else self._clock(),
        )
        self._items.append(utterance)
        inc_utterances()
        logger.info("Added utterance %s (%d chars)", utterance.id, len(cleaned))
        return utterance

    def recent(self, limit: int = 10) -> List[Utterance]:
        if limit <= 0:
            return []
        return sorted(self._items, key=lambda u: u.timestamp, reverse=True)[:limit]

    def pending(self) -> List[Utterance]:
        return [u for u in self._items if u.status == PENDING]

    def delivered(self) -> List[Utterance]:
        return [u for u in self._items if u.status == DELIVERED]

    def responded(self) -> List[Utterance]:
        return [u for u in self._items if u.status == RESPONDED]

    def counts(self) -> Dict[str, int]:
        counts = {"total": len(self._items), PENDING: 0, DELIVERED: 0, RESPONDED: 0}
        for u in self._items:
            counts[u.status] += 1
        return counts

    def mark_delivered(self, utterance_id: str) -> None:
        for u in self._items:
            if u.id == utterance_id:
                if u.status == PENDING:
                    u.status = DELIVERED
                    logger.info("Marked utterance %s as delivered", utterance_id)
                return

    def drain_pending(self) -> List[Utterance]:
        """Deliver every pending utterance at once, oldest first.

        Snapshot and transition happen without yielding to the event loop, so no
        other handler can observe or deliver part of the batch.
        """
        batch = sorted(self.pending(), key=lambda u: u.timestamp)
        for u in batch:
            u.status = DELIVERED
        if batch:
            logger.info("Delivered %d pending utterance(s)", len(batch))
        return batch

    def mark_all_delivered_as_responded(self) -> int:
        delivered = self.delivered()
        for u in delivered:
            u.status = RESPONDED
        if delivered:
            logger.info("Marked %d delivered utterance(s) as responded", len(delivered))
        return len(delivered)

    def has_arrived_since(self, instant: datetime) -> bool:
        return any(u.timestamp > instant for u in self._items)

    def clear(self) -> int:
        count = len(self._items)
        self._items = []
        logger.info("Cleared %d utterances", count)
        return count
