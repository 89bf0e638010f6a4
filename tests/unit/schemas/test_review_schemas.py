"""
Tests for the pydantic boundary schemas
"""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from hemisphere.adaptive.fsrs import CardState
from hemisphere.schemas.remediation import RemediationEntry, RemediationType, ZombieSignals
from hemisphere.schemas.review import MemoryStateRecord, QueueQuery, ScheduleReviewRequest


class TestScheduleReviewRequest:

    def test_valid(self):
        item_id = uuid4()
        request = ScheduleReviewRequest(item_id=str(item_id), rating=4)

        assert request.item_id == item_id
        assert request.rating == 4

    @pytest.mark.parametrize("rating", [0, 5, "good"])
    def test_invalid_rating(self, rating):
        with pytest.raises(ValidationError):
            ScheduleReviewRequest(item_id=uuid4(), rating=rating)

    def test_invalid_item_id(self):
        with pytest.raises(ValidationError):
            ScheduleReviewRequest(item_id="not-a-uuid", rating=3)


class TestQueueQuery:

    def test_limit_optional(self):
        assert QueueQuery().limit is None
        assert QueueQuery(limit="15").limit == 15


class TestMemoryStateRecord:

    def _record(self, now, **overrides):
        data = {
            "user_id": "u1",
            "item_id": "i1",
            "kc_id": "kc1",
            "stability": 4.0,
            "difficulty": 6.0,
            "retrievability": 0.95,
            "state": "review",
            "last_review": (now - timedelta(days=2)).isoformat(),
            "next_review": (now + timedelta(days=2)).isoformat(),
            "review_count": 4,
            "lapse_count": 1,
        }
        data.update(overrides)
        return MemoryStateRecord(**data)

    def test_to_snapshot(self, now):
        card = self._record(now).to_snapshot()

        assert card.state == CardState.REVIEW
        assert card.stability == 4.0
        assert card.last_review == now - timedelta(days=2)
        assert card.lapse_count == 1

    def test_new_row_defaults(self):
        record = MemoryStateRecord(user_id="u1", item_id="i1", kc_id="kc1")
        card = record.to_snapshot()

        assert record.stability == 1.0
        assert record.difficulty == 0.5
        assert card.is_new
        assert card.stability == 0.0

    def test_unknown_state(self, now):
        with pytest.raises(ValidationError):
            self._record(now, state="suspended")

    def test_naive_timestamp(self, now):
        with pytest.raises(ValidationError):
            self._record(now, last_review="2025-01-01T00:00:00")

    def test_to_queue_candidate(self, now):
        candidate = self._record(now).to_queue_candidate()

        assert candidate.item_id == "i1"
        assert candidate.kc_id == "kc1"
        assert candidate.due_date == now + timedelta(days=2)

    def test_to_sweep_candidate(self, now):
        candidate = self._record(now).to_sweep_candidate()

        assert candidate.user_id == "u1"
        assert candidate.card.review_count == 4


class TestRemediationSchemas:

    def test_signals_frozen(self):
        signals = ZombieSignals(format_dependence=True)
        with pytest.raises(ValidationError):
            signals.format_dependence = False

    def test_entry_key_and_json(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        entry = RemediationEntry(
            user_id="u1",
            item_id="i1",
            kc_id="kc1",
            zombie_score=0.7,
            remediation_type="format_shift",
            created_at=now,
            updated_at=now,
        )

        assert entry.key == ("u1", "i1", "zombie_item")
        assert entry.remediation_type is RemediationType.FORMAT_SHIFT
        dumped = entry.model_dump(mode="json")
        assert dumped["status"] == "pending"
        assert dumped["remediation_type"] == "format_shift"

    def test_score_bounds(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        with pytest.raises(ValidationError):
            RemediationEntry(
                user_id="u1", item_id="i1", kc_id="kc1", zombie_score=1.5,
                remediation_type="elaboration", created_at=now, updated_at=now,
            )
