"""
Review queue builder

Selects the due items for one learner and orders them by review priority:

    priority = overdue_days * 10 + (1 - retrievability) * 5 + (1 if new else 0)

Overdue items dominate, then items whose live retrievability has decayed the
furthest, with a small bonus that lets unseen items into a quiet queue.
Building a queue is read-only; recording which items were shown is up to the
caller.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
import logging

from hemisphere.adaptive.fsrs.memory_model import MemorySnapshot
from hemisphere.adaptive.fsrs.retrievability import current_retrievability, is_due
from hemisphere.core.config import Settings, settings as default_settings
from hemisphere.core.exceptions import InvalidQueueLimitError
from hemisphere.core.timestamps import days_between, ensure_aware, format_timestamp

logger = logging.getLogger(__name__)

OVERDUE_WEIGHT = 10.0
DECAY_WEIGHT = 5.0
NEW_ITEM_BONUS = 1.0


@dataclass(frozen=True)
class QueueCandidate:
    """A memory snapshot plus the identifiers and due date stored alongside it"""
    item_id: str
    kc_id: str
    card: MemorySnapshot
    due_date: Optional[datetime] = None


@dataclass(frozen=True)
class QueueItem:
    item_id: str
    kc_id: str
    due_date: datetime
    retrievability: float
    overdue_days: float
    is_new: bool
    priority: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "kcId": self.kc_id,
            "dueDate": format_timestamp(self.due_date),
            "retrievability": self.retrievability,
            "overdueDays": self.overdue_days,
            "isNew": self.is_new,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class QueueMeta:
    total: int  # due candidates before truncation
    new_count: int
    due_count: int
    generated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "newCount": self.new_count,
            "dueCount": self.due_count,
            "generatedAt": self.generated_at,
        }


@dataclass(frozen=True)
class ReviewQueue:
    items: List[QueueItem] = field(default_factory=list)
    meta: QueueMeta = field(default_factory=lambda: QueueMeta(0, 0, 0, ""))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queue": [item.to_dict() for item in self.items],
            "meta": self.meta.to_dict(),
        }


def compute_priority(overdue_days: float, retrievability: float, is_new: bool) -> float:
    return (
        overdue_days * OVERDUE_WEIGHT
        + (1 - retrievability) * DECAY_WEIGHT
        + (NEW_ITEM_BONUS if is_new else 0.0)
    )


def _sort_key(item: QueueItem):
    # Highest priority first; equal priorities fall back to the same terms
    # and finally the item id so the order never depends on input order.
    return (-item.priority, -item.overdue_days, item.retrievability, not item.is_new, item.item_id)


class ReviewQueueBuilder:
    """
    Builds prioritised review queues from due-candidate snapshots
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def resolve_limit(self, limit: Optional[int]) -> int:
        """
        Clamp a requested limit to [1, QUEUE_MAX_LIMIT]; None means the default
        """
        if limit is None:
            return self.config.QUEUE_DEFAULT_LIMIT
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidQueueLimitError(f"limit must be an integer, got {limit!r}")
        return max(1, min(self.config.QUEUE_MAX_LIMIT, limit))

    def score_candidate(self, candidate: QueueCandidate, now: datetime) -> Optional[QueueItem]:
        """
        Rank one candidate, or return None if it is not due at now
        """
        card = candidate.card
        if not is_due(card, candidate.due_date, now):
            return None

        live_r = current_retrievability(card, now)
        if card.is_new or candidate.due_date is None:
            overdue_days = 0.0
        else:
            overdue_days = max(0.0, days_between(candidate.due_date, now))

        return QueueItem(
            item_id=candidate.item_id,
            kc_id=candidate.kc_id,
            due_date=candidate.due_date or now,
            retrievability=live_r,
            overdue_days=overdue_days,
            is_new=card.is_new,
            priority=compute_priority(overdue_days, live_r, card.is_new),
        )

    def build_queue(
        self,
        candidates: Sequence[QueueCandidate],
        now: datetime,
        limit: Optional[int] = None,
    ) -> ReviewQueue:
        """
        Select due candidates and order them by priority

        Args:
            candidates: Snapshots that may be due
            now: Time the queue is built for (timezone-aware)
            limit: Maximum items to return; clamped to [1, 50], default 20

        Returns:
            ReviewQueue with the truncated items and untruncated counts
        """
        ensure_aware(now, "now")
        resolved_limit = self.resolve_limit(limit)

        due_items = [
            item
            for item in (self.score_candidate(c, now) for c in candidates)
            if item is not None
        ]
        due_items.sort(key=_sort_key)

        new_count = sum(1 for item in due_items if item.is_new)
        meta = QueueMeta(
            total=len(due_items),
            new_count=new_count,
            due_count=len(due_items) - new_count,
            generated_at=format_timestamp(now),
        )

        logger.debug(
            f"Built review queue: {len(due_items)} due of {len(candidates)} candidates, "
            f"returning {min(resolved_limit, len(due_items))}"
        )
        return ReviewQueue(items=due_items[:resolved_limit], meta=meta)


def build_queue(
    candidates: Sequence[QueueCandidate],
    now: datetime,
    limit: Optional[int] = None,
    config: Optional[Settings] = None,
) -> ReviewQueue:
    """Build a queue with the given (or default) settings"""
    return ReviewQueueBuilder(config).build_queue(candidates, now, limit)
