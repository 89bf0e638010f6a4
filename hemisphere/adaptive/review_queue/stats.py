"""
Review statistics for the learner dashboard
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Sequence

from hemisphere.adaptive.fsrs.memory_model import CardState
from hemisphere.adaptive.fsrs.retrievability import current_retrievability, is_due
from hemisphere.core.timestamps import ensure_aware

from .queue_builder import QueueCandidate


@dataclass(frozen=True)
class ReviewStats:
    due_today: int
    due_this_week: int
    average_retention: Optional[float]  # None until something has been reviewed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dueToday": self.due_today,
            "dueThisWeek": self.due_this_week,
            "averageRetention": self.average_retention,
        }


def end_of_utc_day(now: datetime) -> datetime:
    utc = ensure_aware(now, "now").astimezone(timezone.utc)
    return utc.replace(hour=23, minute=59, second=59, microsecond=999000)


def review_stats(candidates: Sequence[QueueCandidate], now: datetime) -> ReviewStats:
    """
    Count items due by the end of the UTC day and within a rolling week,
    and average live retrievability over reviewed cards
    """
    end_of_today = end_of_utc_day(now)
    end_of_week = now + timedelta(days=7)

    due_today = 0
    due_this_week = 0
    retention_sum = 0.0
    retention_count = 0

    for candidate in candidates:
        card = candidate.card
        due_date = candidate.due_date or now

        if is_due(card, due_date, end_of_today):
            due_today += 1
        if is_due(card, due_date, end_of_week):
            due_this_week += 1

        if card.state != CardState.NEW and card.last_review is not None and card.stability > 0:
            retention_sum += current_retrievability(card, now)
            retention_count += 1

    average = retention_sum / retention_count if retention_count else None
    return ReviewStats(due_today=due_today, due_this_week=due_this_week, average_retention=average)
