"""
Tests for the zombie sweep job and the remediation queue store
"""
from datetime import timedelta

import pytest

from hemisphere.adaptive.fsrs import CardState, MemorySnapshot
from hemisphere.adaptive.zombie import (
    AssessmentEvent,
    InMemoryRemediationStore,
    InMemorySweepDataSource,
    KnowledgeComponentState,
    SweepCandidate,
    ZombieSweep,
)
from hemisphere.core.exceptions import InvalidThresholdError
from hemisphere.schemas.remediation import (
    ZOMBIE_DETECTION_TYPE,
    RemediationEntry,
    RemediationStatus,
    RemediationType,
)

ZOMBIE_KC = KnowledgeComponentState(lh_accuracy=0.9, rh_score=0.2, difficulty_tier=1)
HEALTHY_KC = KnowledgeComponentState(lh_accuracy=0.6, rh_score=0.8, difficulty_tier=4)


def _card(now, reviews=10, state=CardState.REVIEW):
    return MemorySnapshot(
        stability=20.0,
        difficulty=5.0,
        state=state,
        last_review=now - timedelta(days=3),
        review_count=reviews,
    )


def _candidate(now, user="u1", item="i1", kc="kc1", **card_kwargs):
    return SweepCandidate(user_id=user, item_id=item, kc_id=kc, card=_card(now, **card_kwargs))


def _entry(now, status=RemediationStatus.PENDING, user="u1", item="i1"):
    return RemediationEntry(
        user_id=user,
        item_id=item,
        kc_id="kc1",
        zombie_score=0.5,
        signals={"lh_rh_divergence": True},
        remediation_type=RemediationType.ELABORATION,
        status=status,
        created_at=now - timedelta(days=7),
        updated_at=now - timedelta(days=7),
    )


@pytest.fixture
def store():
    return InMemoryRemediationStore()


def _sweep(store, kc_states, events=None, **kwargs):
    return ZombieSweep(
        store=store,
        data_source=InMemorySweepDataSource(kc_states, events or {}),
        **kwargs,
    )


class TestCandidateSelection:

    def test_requires_review_state_and_min_reviews(self, store, now):
        sweep = _sweep(store, {}, min_reviews=8)
        candidates = [
            _candidate(now, item="ok", reviews=8),
            _candidate(now, item="too-few", reviews=7),
            _candidate(now, item="relearning", state=CardState.RELEARNING),
            SweepCandidate("u1", "new", "kc1", MemorySnapshot.new()),
        ]

        assert [c.item_id for c in sweep.select_candidates(candidates)] == ["ok"]

    def test_limit(self, store, now):
        sweep = _sweep(store, {})
        candidates = [_candidate(now, item=f"i{n}") for n in range(5)]

        assert len(sweep.select_candidates(candidates, limit=2)) == 2


class TestSweepRun:

    def test_flags_zombie(self, store, now):
        # lh/rh divergence (0.4) plus stalled difficulty (0.1)
        sweep = _sweep(store, {("u1", "kc1"): ZOMBIE_KC})
        report = sweep.run([_candidate(now)], now)

        assert report.scanned == 1
        assert report.flagged == 1
        assert report.flagged_keys == [("u1", "i1")]

        entry = store.get(("u1", "i1", ZOMBIE_DETECTION_TYPE))
        assert entry.status == RemediationStatus.PENDING
        assert entry.zombie_score == pytest.approx(0.5)
        assert entry.remediation_type == RemediationType.ELABORATION
        assert entry.signals["lh_rh_divergence"] is True
        assert entry.created_at == now

    def test_healthy_item_not_flagged(self, store, now):
        report = _sweep(store, {("u1", "kc1"): HEALTHY_KC}).run([_candidate(now)], now)

        assert report.flagged == 0
        assert len(store) == 0

    def test_missing_kc_state_skipped(self, store, now):
        report = _sweep(store, {}).run([_candidate(now)], now)

        assert report.skipped == 1
        assert report.flagged == 0

    def test_rerun_is_idempotent(self, store, now):
        sweep = _sweep(store, {("u1", "kc1"): ZOMBIE_KC})
        sweep.run([_candidate(now)], now)
        sweep.run([_candidate(now)], now + timedelta(days=1))

        (entry,) = store.list_entries()
        assert entry.created_at == now
        assert entry.updated_at == now + timedelta(days=1)

    def test_reflag_resets_resolved_entry(self, now):
        store = InMemoryRemediationStore([_entry(now, RemediationStatus.RESOLVED)])
        _sweep(store, {("u1", "kc1"): ZOMBIE_KC}).run([_candidate(now)], now)

        entry = store.get(("u1", "i1", ZOMBIE_DETECTION_TYPE))
        assert entry.status == RemediationStatus.PENDING
        assert entry.resolved_at is None
        assert entry.created_at == now - timedelta(days=7)

    def test_recovered_item_dismissed(self, now):
        store = InMemoryRemediationStore([_entry(now, RemediationStatus.IN_PROGRESS)])
        report = _sweep(store, {("u1", "kc1"): HEALTHY_KC}).run([_candidate(now)], now)

        entry = store.get(("u1", "i1", ZOMBIE_DETECTION_TYPE))
        assert report.dismissed == 1
        assert entry.status == RemediationStatus.DISMISSED
        assert entry.resolved_at == now

    def test_resolved_entry_left_alone(self, now):
        store = InMemoryRemediationStore([_entry(now, RemediationStatus.RESOLVED)])
        report = _sweep(store, {("u1", "kc1"): HEALTHY_KC}).run([_candidate(now)], now)

        assert report.dismissed == 0
        assert store.get(("u1", "i1", ZOMBIE_DETECTION_TYPE)).status == RemediationStatus.RESOLVED

    def test_dry_run_writes_nothing(self, now):
        store = InMemoryRemediationStore([_entry(now, RemediationStatus.PENDING, item="i2")])
        kc_states = {("u1", "kc1"): ZOMBIE_KC, ("u1", "kc2"): HEALTHY_KC}
        candidates = [_candidate(now), _candidate(now, item="i2", kc="kc2")]

        report = _sweep(store, kc_states).run(candidates, now, dry_run=True)

        assert report.dry_run
        assert report.flagged == 1
        assert report.dismissed == 0
        assert len(store) == 1
        assert store.get(("u1", "i2", ZOMBIE_DETECTION_TYPE)).status == RemediationStatus.PENDING

    def test_threshold_override(self, store, now):
        sweep = _sweep(store, {("u1", "kc1"): ZOMBIE_KC}, threshold=0.6)
        assert sweep.run([_candidate(now)], now).flagged == 0

    def test_invalid_threshold(self, store):
        with pytest.raises(InvalidThresholdError):
            _sweep(store, {}, threshold=1.5)

    def test_uses_item_events(self, store, now):
        events = {
            ("u1", "i1"): [AssessmentEvent("multiple_choice", True, 3000)] * 4
            + [AssessmentEvent("free_text", False, 3000)] * 2,
        }
        kc = KnowledgeComponentState(lh_accuracy=0.9, rh_score=0.9, difficulty_tier=5)
        # format dependence (0.3) alone stays below the default threshold
        sweep = _sweep(store, {("u1", "kc1"): kc}, events, threshold=0.3)
        sweep.run([_candidate(now)], now)

        entry = store.get(("u1", "i1", ZOMBIE_DETECTION_TYPE))
        assert entry.remediation_type == RemediationType.FORMAT_SHIFT

    def test_report_to_dict(self, store, now):
        report = _sweep(store, {}).run([], now)
        assert report.to_dict() == {
            "scanned": 0,
            "flagged": 0,
            "dismissed": 0,
            "skipped": 0,
            "dry_run": False,
        }


class TestInMemoryRemediationStore:

    def test_dismiss_missing(self, store, now):
        assert not store.dismiss(("u", "i", ZOMBIE_DETECTION_TYPE), now)

    def test_list_by_status(self, now):
        store = InMemoryRemediationStore([
            _entry(now, RemediationStatus.PENDING, item="a"),
            _entry(now, RemediationStatus.DISMISSED, item="b"),
        ])

        assert [e.item_id for e in store.list_entries(RemediationStatus.PENDING)] == ["a"]
        assert [e.item_id for e in store.list_entries()] == ["a", "b"]

    def test_returns_copies(self, store, now):
        store.upsert(_entry(now))
        entry = store.get(("u1", "i1", ZOMBIE_DETECTION_TYPE))
        entry.signals["tampered"] = True

        assert "tampered" not in store.get(("u1", "i1", ZOMBIE_DETECTION_TYPE)).signals
