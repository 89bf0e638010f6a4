"""
Zombie detection sweep

Periodic batch job over (learner, item) pairs in review. Each candidate is
classified independently; per-learner latency baselines and per-KC states are
cached for the duration of one run. A sweep is idempotent: rerunning it from
scratch updates existing remediation entries instead of adding new ones, and
pairs that no longer look like zombies have their active entries dismissed.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from hemisphere.adaptive.fsrs.memory_model import CardState, MemorySnapshot
from hemisphere.core.config import Settings, settings as default_settings
from hemisphere.core.timestamps import ensure_aware
from hemisphere.schemas.remediation import (
    ACTIVE_STATUSES,
    ZOMBIE_DETECTION_TYPE,
    RemediationEntry,
)

from .remediation_store import RemediationStore
from .signal_aggregator import AssessmentEvent, KnowledgeComponentState, aggregate_signals
from .zombie_detector import check_threshold, detect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepCandidate:
    user_id: str
    item_id: str
    kc_id: str
    card: MemorySnapshot


class SweepDataSource(ABC):
    """Read access to the analytics aggregates a sweep needs"""

    @abstractmethod
    def kc_state(self, user_id: str, kc_id: str) -> Optional[KnowledgeComponentState]:
        ...

    @abstractmethod
    def item_events(self, user_id: str, item_id: str) -> Sequence[AssessmentEvent]:
        ...

    @abstractmethod
    def learner_latencies(self, user_id: str) -> Sequence[float]:
        ...


class InMemorySweepDataSource(SweepDataSource):
    """
    Data source over preloaded events and KC states

    Args:
        kc_states: (user_id, kc_id) -> KnowledgeComponentState
        events: (user_id, item_id) -> assessment events on that item
    """

    def __init__(
        self,
        kc_states: Mapping[Tuple[str, str], KnowledgeComponentState],
        events: Mapping[Tuple[str, str], Sequence[AssessmentEvent]],
    ):
        self._kc_states = dict(kc_states)
        self._events = {key: list(value) for key, value in events.items()}

    def kc_state(self, user_id: str, kc_id: str) -> Optional[KnowledgeComponentState]:
        return self._kc_states.get((user_id, kc_id))

    def item_events(self, user_id: str, item_id: str) -> Sequence[AssessmentEvent]:
        return self._events.get((user_id, item_id), [])

    def learner_latencies(self, user_id: str) -> Sequence[float]:
        return [
            event.latency_ms
            for (owner, _), events in self._events.items()
            if owner == user_id
            for event in events
        ]


@dataclass
class SweepReport:
    scanned: int = 0
    flagged: int = 0
    dismissed: int = 0
    skipped: int = 0  # candidates without KC state
    dry_run: bool = False
    flagged_keys: List[Tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "scanned": self.scanned,
            "flagged": self.flagged,
            "dismissed": self.dismissed,
            "skipped": self.skipped,
            "dry_run": self.dry_run,
        }


class ZombieSweep:
    """
    Runs zombie detection over candidates and keeps the remediation queue in sync
    """

    def __init__(
        self,
        store: RemediationStore,
        data_source: SweepDataSource,
        config: Optional[Settings] = None,
        threshold: Optional[float] = None,
        min_reviews: Optional[int] = None,
    ):
        self.store = store
        self.data_source = data_source
        self.config = config or default_settings
        self.threshold = check_threshold(
            self.config.ZOMBIE_THRESHOLD if threshold is None else threshold
        )
        self.min_reviews = self.config.ZOMBIE_MIN_REVIEWS if min_reviews is None else min_reviews

    def select_candidates(
        self,
        candidates: Sequence[SweepCandidate],
        limit: Optional[int] = None,
    ) -> List[SweepCandidate]:
        """Only review-state pairs with enough reviews are eligible"""
        eligible = [
            c for c in candidates
            if c.card.state == CardState.REVIEW and c.card.review_count >= self.min_reviews
        ]
        return eligible[:limit] if limit is not None else eligible

    def run(
        self,
        candidates: Sequence[SweepCandidate],
        now: datetime,
        dry_run: bool = False,
        limit: Optional[int] = None,
    ) -> SweepReport:
        ensure_aware(now, "now")
        selected = self.select_candidates(candidates, limit)
        report = SweepReport(scanned=len(selected), dry_run=dry_run)

        if not selected:
            logger.info(
                f"No candidate items (min_reviews={self.min_reviews}, limit={limit or 'all'})"
            )
            return report

        latency_cache: Dict[str, Sequence[float]] = {}
        kc_cache: Dict[Tuple[str, str], Optional[KnowledgeComponentState]] = {}

        for candidate in selected:
            kc_key = (candidate.user_id, candidate.kc_id)
            if kc_key not in kc_cache:
                kc_cache[kc_key] = self.data_source.kc_state(*kc_key)
            kc_state = kc_cache[kc_key]
            if kc_state is None:
                report.skipped += 1
                continue

            if candidate.user_id not in latency_cache:
                latency_cache[candidate.user_id] = self.data_source.learner_latencies(candidate.user_id)

            signals = aggregate_signals(
                review_count=candidate.card.review_count,
                kc_state=kc_state,
                item_events=self.data_source.item_events(candidate.user_id, candidate.item_id),
                learner_latencies=latency_cache[candidate.user_id],
            )
            decision = detect(signals, self.threshold)
            key = (candidate.user_id, candidate.item_id, ZOMBIE_DETECTION_TYPE)

            if not decision.is_zombie:
                existing = self.store.get(key)
                if existing and existing.status in ACTIVE_STATUSES and not dry_run:
                    if self.store.dismiss(key, now):
                        report.dismissed += 1
                continue

            report.flagged += 1
            report.flagged_keys.append((candidate.user_id, candidate.item_id))

            if dry_run:
                logger.info(
                    f"[dry-run] zombie user={candidate.user_id} item={candidate.item_id} "
                    f"score={decision.score:.2f} remediation={decision.remediation_type.value}"
                )
                continue

            self.store.upsert(
                RemediationEntry(
                    user_id=candidate.user_id,
                    item_id=candidate.item_id,
                    kc_id=candidate.kc_id,
                    detection_type=ZOMBIE_DETECTION_TYPE,
                    zombie_score=decision.score,
                    signals=signals.model_dump(),
                    remediation_type=decision.remediation_type,
                    created_at=now,
                    updated_at=now,
                )
            )

        logger.info(
            f"Zombie sweep scanned={report.scanned} flagged={report.flagged} "
            f"dismissed={report.dismissed} skipped={report.skipped} dry_run={dry_run}"
        )
        return report
