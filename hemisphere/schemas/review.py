"""
Review request, queue query and memory-state row schemas
"""
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from hemisphere.adaptive.fsrs.memory_model import CardState, MemorySnapshot
from hemisphere.adaptive.review_queue.queue_builder import QueueCandidate
from hemisphere.adaptive.zombie.sweep import SweepCandidate


class ScheduleReviewRequest(BaseModel):
    """Inbound review rating; validated before the scheduler is called"""
    item_id: UUID
    rating: Literal[1, 2, 3, 4]


class QueueQuery(BaseModel):
    limit: Optional[int] = None  # parsed from the query string; clamped by the builder


class MemoryStateRecord(BaseModel):
    """Persisted memory-state row for one (user, item) pair"""
    user_id: str
    item_id: str
    kc_id: str
    stability: float = Field(1.0, ge=0)
    difficulty: float = Field(0.5, ge=0)
    retrievability: float = Field(1.0, ge=0, le=1)
    state: CardState = CardState.NEW
    last_review: Optional[datetime] = None
    next_review: Optional[datetime] = None
    review_count: int = Field(0, ge=0)
    lapse_count: int = Field(0, ge=0)

    @field_validator("last_review", "next_review")
    @classmethod
    def _require_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            raise ValueError("timestamps must carry a timezone")
        return value

    def to_snapshot(self) -> MemorySnapshot:
        # New rows keep their column defaults in storage but enter the core
        # as an unreviewed card.
        if self.state == CardState.NEW:
            return MemorySnapshot.new()
        return MemorySnapshot(
            stability=self.stability,
            difficulty=self.difficulty,
            retrievability=self.retrievability,
            state=self.state,
            last_review=self.last_review,
            review_count=self.review_count,
            lapse_count=self.lapse_count,
        )

    def to_queue_candidate(self) -> QueueCandidate:
        return QueueCandidate(
            item_id=self.item_id,
            kc_id=self.kc_id,
            card=self.to_snapshot(),
            due_date=self.next_review,
        )

    def to_sweep_candidate(self) -> SweepCandidate:
        return SweepCandidate(
            user_id=self.user_id,
            item_id=self.item_id,
            kc_id=self.kc_id,
            card=self.to_snapshot(),
        )
