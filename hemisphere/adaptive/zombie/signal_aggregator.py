"""
Zombie Signal Aggregation

Turns raw interaction history into the four boolean zombie signals:

1. LH/RH divergence: structured-recall accuracy on the knowledge component is
   high while free-form/transfer performance is low
2. Format dependence: accurate on the learner's dominant response type but
   weak (< 50%) on an alternate type with enough attempts
3. Speed without depth: the item is answered faster than the learner's own
   25th-percentile latency while elaboration answers stay shallow
4. Stalled difficulty: many accurate reviews, yet the difficulty tier has not
   advanced
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
import json
import logging

import numpy as np

from hemisphere.schemas.remediation import ZombieSignals

logger = logging.getLogger(__name__)

# LH/RH divergence
LH_ACCURACY_HIGH = 0.8
RH_SCORE_LOW = 0.4

# Stalled difficulty
STALLED_MIN_REVIEWS = 8
STALLED_MAX_TIER = 2
STALLED_LH_ACCURACY = 0.75

# Format dependence
PRIMARY_ACCURACY_HIGH = 0.8
ALTERNATE_MIN_ATTEMPTS = 2
ALTERNATE_ACCURACY_LOW = 0.5

# Speed without depth
LATENCY_PERCENTILE = 25
ELABORATION_RESPONSE_TYPE = "free_text"
ELABORATION_SCORE_LOW = 0.5
ELABORATION_LENGTH_LOW = 40
DEFAULT_ELABORATION_SCORE = 1.0
DEFAULT_ELABORATION_LENGTH = 100


@dataclass(frozen=True)
class AssessmentEvent:
    """One graded (or ungraded) response to an item"""
    response_type: str
    is_correct: Optional[bool]
    latency_ms: int
    score: Optional[float] = None
    learner_response: Any = None


@dataclass(frozen=True)
class KnowledgeComponentState:
    """Learner's aggregate standing on the item's knowledge component"""
    lh_accuracy: float
    rh_score: float
    difficulty_tier: int


@dataclass
class _TypeStats:
    attempts: int = 0
    correct: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.attempts if self.attempts else 0.0


def latency_percentile(latencies: Sequence[float], percentile: float = LATENCY_PERCENTILE) -> float:
    """
    Lower-index percentile, sorted[floor(p * (n - 1))]; 0 for no data
    """
    if len(latencies) == 0:
        return 0.0
    return float(np.percentile(np.asarray(latencies, dtype=float), percentile, method="lower"))


def response_length(value: Any) -> int:
    if isinstance(value, str):
        return len(value)
    try:
        return len(json.dumps(value, separators=(",", ":")))
    except (TypeError, ValueError):
        return 0


def detect_lh_rh_divergence(kc_state: KnowledgeComponentState) -> bool:
    return kc_state.lh_accuracy >= LH_ACCURACY_HIGH and kc_state.rh_score < RH_SCORE_LOW


def detect_stalled_difficulty(review_count: int, kc_state: KnowledgeComponentState) -> bool:
    return (
        review_count >= STALLED_MIN_REVIEWS
        and kc_state.difficulty_tier <= STALLED_MAX_TIER
        and kc_state.lh_accuracy >= STALLED_LH_ACCURACY
    )


def detect_format_dependence(events: Sequence[AssessmentEvent]) -> bool:
    """
    Compare accuracy on the most-attempted response type with the others

    Ungraded events (is_correct is None) are ignored.
    """
    stats: Dict[str, _TypeStats] = {}
    for event in events:
        if event.is_correct is None:
            continue
        entry = stats.setdefault(event.response_type, _TypeStats())
        entry.attempts += 1
        if event.is_correct:
            entry.correct += 1

    if len(stats) < 2:
        return False

    # Stable sort keeps first-seen order among equally attempted types
    ranked = sorted(stats.items(), key=lambda kv: kv[1].attempts, reverse=True)
    primary_type, primary = ranked[0]
    alternate_weak = any(
        s.attempts >= ALTERNATE_MIN_ATTEMPTS and s.accuracy < ALTERNATE_ACCURACY_LOW
        for response_type, s in ranked[1:]
        if response_type != primary_type
    )
    return primary.accuracy >= PRIMARY_ACCURACY_HIGH and alternate_weak


def detect_speed_without_depth(
    events: Sequence[AssessmentEvent],
    learner_latencies: Sequence[float],
) -> bool:
    """
    Item answered faster than the learner's 25th-percentile latency with shallow elaboration
    """
    if not events:
        return False

    avg_item_latency = float(np.mean([e.latency_ms for e in events]))
    latency_p25 = latency_percentile(learner_latencies)

    elaborations = [e for e in events if e.response_type == ELABORATION_RESPONSE_TYPE]
    if elaborations:
        score_avg = float(np.mean([e.score if e.score is not None else 0.0 for e in elaborations]))
        length_avg = float(np.mean([response_length(e.learner_response) for e in elaborations]))
    else:
        score_avg = DEFAULT_ELABORATION_SCORE
        length_avg = DEFAULT_ELABORATION_LENGTH

    low_depth = score_avg < ELABORATION_SCORE_LOW or length_avg < ELABORATION_LENGTH_LOW
    return 0 < avg_item_latency < latency_p25 and low_depth


def aggregate_signals(
    review_count: int,
    kc_state: KnowledgeComponentState,
    item_events: Sequence[AssessmentEvent],
    learner_latencies: Sequence[float],
) -> ZombieSignals:
    """
    Compute all four signals for one (learner, item) pair

    Args:
        review_count: Reviews recorded on the item's memory state
        kc_state: Learner state on the item's knowledge component
        item_events: Learner's assessment events on this item
        learner_latencies: Latencies of all the learner's events, for the percentile baseline
    """
    return ZombieSignals(
        lh_rh_divergence=detect_lh_rh_divergence(kc_state),
        format_dependence=detect_format_dependence(item_events),
        speed_without_depth=detect_speed_without_depth(item_events, learner_latencies),
        stalled_difficulty=detect_stalled_difficulty(review_count, kc_state),
    )
