"""
FSRS Parameter Personalisation

Weekly batch tuning of per-learner FSRS weights. Instead of a full maximum
likelihood fit, the optimizer applies small, bounded adjustments to the
weights that control recall growth, lapse penalties and the Hard/Easy
modifiers, driven by three learner-level signals:

1. Lapse rate (lapses / reviews)
2. Average cached retrievability
3. Average difficulty

A positive adjustment score tightens scheduling (shorter intervals, higher
target retention); a negative one relaxes it.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Any
import logging

from .memory_model import DIFFICULTY_MAX, DIFFICULTY_MIN, MemorySnapshot
from .weights import DEFAULT_WEIGHTS, FSRSWeights

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class LearnerAggregate:
    """Review totals and memory-state sums for one learner"""
    user_id: str
    total_reviews: int = 0
    total_lapses: int = 0
    retrievability_sum: float = 0.0
    stability_sum: float = 0.0
    difficulty_sum: float = 0.0
    card_count: int = 0

    def add(self, card: MemorySnapshot) -> None:
        self.total_reviews += card.review_count
        self.total_lapses += card.lapse_count
        self.retrievability_sum += card.retrievability
        self.stability_sum += card.stability
        self.difficulty_sum += card.difficulty
        self.card_count += 1

    @property
    def average_retrievability(self) -> float:
        return self.retrievability_sum / self.card_count if self.card_count else 1.0

    @property
    def average_stability(self) -> float:
        return self.stability_sum / self.card_count if self.card_count else 1.0

    @property
    def average_difficulty(self) -> float:
        return self.difficulty_sum / self.card_count if self.card_count else 5.0


@dataclass
class LearnerOptimizationResult:
    """Result of one learner's weight adjustment"""
    user_id: str
    optimized_weights: FSRSWeights
    target_retention: float
    lapse_rate: float
    adjustment_score: float
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "weights": self.optimized_weights.to_list(),
            "target_retention": self.target_retention,
            "lapse_rate": self.lapse_rate,
            "adjustment_score": self.adjustment_score,
            "metrics": dict(self.metrics),
        }


def aggregate_learners(
    records: Iterable[Tuple[str, MemorySnapshot]],
    min_reviews: int = 50,
) -> List[LearnerAggregate]:
    """
    Group (user_id, card) rows per learner

    Cards that were never reviewed are ignored. Learners below min_reviews
    are dropped; the rest are ordered by total reviews, busiest first.
    """
    by_user: Dict[str, LearnerAggregate] = {}
    for user_id, card in records:
        if card.review_count <= 0:
            continue
        by_user.setdefault(user_id, LearnerAggregate(user_id=user_id)).add(card)

    selected = [agg for agg in by_user.values() if agg.total_reviews >= min_reviews]
    selected.sort(key=lambda agg: (-agg.total_reviews, agg.user_id))
    return selected


def optimize_learner_parameters(
    aggregate: LearnerAggregate,
    base_weights: Optional[FSRSWeights] = None,
) -> LearnerOptimizationResult:
    """
    Personalise weights for one learner

    Args:
        aggregate: Learner-level review statistics
        base_weights: Weights to adjust (learner's current or platform defaults)

    Returns:
        LearnerOptimizationResult with bounded weight changes and a target retention
    """
    base = base_weights or DEFAULT_WEIGHTS

    total_reviews = max(0, aggregate.total_reviews)
    total_lapses = max(0, aggregate.total_lapses)
    lapse_rate = total_lapses / total_reviews if total_reviews > 0 else 0.0
    average_retrievability = _clamp(aggregate.average_retrievability, 0.0, 1.0)
    average_difficulty = _clamp(aggregate.average_difficulty, DIFFICULTY_MIN, DIFFICULTY_MAX)

    # Positive score => tighten scheduling; negative score => relax scheduling.
    lapse_pressure = _clamp((lapse_rate - 0.15) / 0.2, -1.0, 1.0)
    retrievability_pressure = _clamp((average_retrievability - 0.82) / 0.25, -1.0, 1.0)
    difficulty_pressure = _clamp((average_difficulty - 5.5) / 3, -1.0, 1.0)
    adjustment_score = _clamp(
        lapse_pressure - retrievability_pressure * 0.5 + difficulty_pressure * 0.15,
        -1.0,
        1.0,
    )

    growth_scale = _clamp(1 - adjustment_score * 0.12, 0.85, 1.15)
    lapse_scale = _clamp(1 + adjustment_score * 0.15, 0.85, 1.2)
    easy_scale = _clamp(1 - adjustment_score * 0.1, 0.85, 1.15)
    hard_scale = _clamp(1 - adjustment_score * 0.1, 0.8, 1.2)

    optimized = base.with_overrides(
        # Recall-growth controls
        recall_stability_base=_clamp(base.recall_stability_base * growth_scale, 0.8, 3.5),
        recall_retrievability_factor=_clamp(base.recall_retrievability_factor * growth_scale, 0.5, 2.5),
        # Lapse penalty controls
        lapse_stability_coefficient=_clamp(base.lapse_stability_coefficient * lapse_scale, 0.8, 3.5),
        lapse_retrievability_factor=_clamp(base.lapse_retrievability_factor * lapse_scale, 1.0, 3.5),
        # Hard/Easy scaling controls
        hard_penalty=_clamp(base.hard_penalty * hard_scale, 0.08, 0.9),
        easy_bonus=_clamp(base.easy_bonus * easy_scale, 1.5, 4.5),
    )

    target_retention = _clamp(0.9 + adjustment_score * 0.05, 0.82, 0.95)

    logger.debug(
        f"Optimized {aggregate.user_id}: lapse_rate={lapse_rate:.3f} "
        f"score={adjustment_score:.3f} target_retention={target_retention:.3f}"
    )

    return LearnerOptimizationResult(
        user_id=aggregate.user_id,
        optimized_weights=optimized,
        target_retention=target_retention,
        lapse_rate=lapse_rate,
        adjustment_score=adjustment_score,
        metrics={
            "average_retrievability": average_retrievability,
            "average_stability": aggregate.average_stability,
            "average_difficulty": average_difficulty,
            "total_reviews": float(total_reviews),
        },
    )
