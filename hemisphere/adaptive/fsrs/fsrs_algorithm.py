"""
FSRS-5 (Free Spaced Repetition Scheduler) Algorithm

Difficulty-Stability-Retrievability scheduling:
- Retrievability R(t,S) = (1 + 19/81 * t/S)^(-0.5)
- Stability S grows on successful recall (less for difficult items, more when
  the review came late) and drops after a lapse
- Difficulty D moves with each rating and stays within [1, 10]

The scheduler is pure: it reads a MemorySnapshot and returns the next values.
The caller owns persistence and must allow at most one in-flight update per
(learner, item) pair.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple, Union
import logging
import math

from hemisphere.core.config import Settings, settings as default_settings
from hemisphere.core.exceptions import InvalidMemoryStateError
from hemisphere.core.timestamps import ensure_aware, format_timestamp

from .memory_model import (
    CardState,
    MemorySnapshot,
    Rating,
    clamp_difficulty,
    is_lapse,
    next_state,
)
from .retrievability import (
    check_target_retention,
    current_retrievability,
    next_interval,
)
from .weights import FSRSWeights, coerce_weights

logger = logging.getLogger(__name__)

STABILITY_MIN = 1.0
STABILITY_MAX = 36500.0


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of one scheduling call"""
    next_due: datetime
    interval: float  # whole days
    stability: float
    difficulty: float
    retrievability: float  # live retrievability at review time
    state: CardState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextDue": format_timestamp(self.next_due),
            "interval": self.interval,
            "stability": self.stability,
            "difficulty": self.difficulty,
            "retrievability": self.retrievability,
            "state": self.state.value,
        }


def clamp_stability(stability: float) -> float:
    return min(STABILITY_MAX, max(STABILITY_MIN, stability))


class FSRSScheduler:
    """
    FSRS-5 Scheduler

    Weights and target retention default to the platform constants and may be
    overridden per learner, either at construction or per call.
    """

    def __init__(
        self,
        weights: Union[FSRSWeights, None, Any] = None,
        config: Optional[Settings] = None,
    ):
        self.weights = coerce_weights(weights)
        self.config = config or default_settings

    # === Initial state ===

    def init_stability(self, rating: Rating, w: FSRSWeights) -> float:
        """
        S0(G) = w[G-1]
        """
        return clamp_stability(w.initial_stability(rating))

    def init_difficulty(self, rating: Rating, w: FSRSWeights) -> float:
        """
        D0(G) = w4 - exp(w5 * (G - 1)) + 1, clamped to [1, 10]
        """
        d = w.initial_difficulty_base - math.exp(w.initial_difficulty_rating_factor * (rating - 1)) + 1
        return clamp_difficulty(d)

    # === Updates ===

    def next_difficulty(self, difficulty: float, rating: Rating, w: FSRSWeights) -> float:
        """
        D' = w7 * D0(3) + (1 - w7) * (D - w6 * (G - 3)), clamped to [1, 10]

        Again/Hard push difficulty up, Easy pulls it down; w7 reverts toward
        the difficulty of a first Good rating.
        """
        target = self.init_difficulty(Rating.GOOD, w)
        reverted = w.difficulty_mean_reversion * target + (1 - w.difficulty_mean_reversion) * (
            difficulty - w.difficulty_delta * (rating - 3)
        )
        return clamp_difficulty(reverted)

    def next_recall_stability(
        self,
        difficulty: float,
        stability: float,
        retrievability: float,
        rating: Rating,
        w: FSRSWeights,
    ) -> float:
        """
        S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1) * hard * easy)
        """
        hard_penalty = w.hard_penalty if rating == Rating.HARD else 1.0
        easy_bonus = w.easy_bonus if rating == Rating.EASY else 1.0

        growth = (
            math.exp(w.recall_stability_base)
            * (11 - difficulty)
            * math.pow(stability, -w.recall_stability_decay)
            * (math.exp(w.recall_retrievability_factor * (1 - retrievability)) - 1)
            * hard_penalty
            * easy_bonus
        )
        return clamp_stability(stability * (1 + growth))

    def next_lapse_stability(
        self,
        difficulty: float,
        stability: float,
        retrievability: float,
        w: FSRSWeights,
    ) -> float:
        """
        S' = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))
        """
        s = (
            w.lapse_stability_coefficient
            * math.pow(difficulty, -w.lapse_difficulty_exponent)
            * (math.pow(stability + 1, w.lapse_stability_exponent) - 1)
            * math.exp(w.lapse_retrievability_factor * (1 - retrievability))
        )
        return clamp_stability(s)

    # === Scheduling ===

    def schedule(
        self,
        card: MemorySnapshot,
        rating: Union[Rating, int],
        now: datetime,
        weights: Union[FSRSWeights, None, Any] = None,
        target_retention: Optional[float] = None,
    ) -> ScheduleResult:
        """
        Compute the next memory state and due date for a rated card

        Args:
            card: Memory state before the review
            rating: 1=Again, 2=Hard, 3=Good, 4=Easy
            now: Review time (timezone-aware)
            weights: Per-learner weights; defaults to the scheduler's weights
            target_retention: Recall probability to schedule against

        Returns:
            ScheduleResult with the new stability, difficulty, state and due date
        """
        rating = Rating.parse(rating)
        ensure_aware(now, "now")
        w = self.weights if weights is None else coerce_weights(weights)
        retention = check_target_retention(
            self.config.TARGET_RETENTION if target_retention is None else target_retention
        )
        if card.stability < 0 or card.difficulty < 0:
            raise InvalidMemoryStateError("stability and difficulty must be non-negative")

        state = next_state(card.state, rating)

        if card.is_new:
            r = 1.0
            stability = self.init_stability(rating, w)
            difficulty = self.init_difficulty(rating, w)
        else:
            r = current_retrievability(card, now)
            # Rows written before the first rating may sit below the difficulty floor
            prior_difficulty = clamp_difficulty(card.difficulty)
            difficulty = self.next_difficulty(prior_difficulty, rating, w)
            # Learning + Again takes the lapse formula but is not counted as a lapse
            if rating == Rating.AGAIN:
                stability = self.next_lapse_stability(prior_difficulty, card.stability, r, w)
            else:
                stability = self.next_recall_stability(
                    prior_difficulty, card.stability, r, rating, w
                )

        interval = next_interval(stability, retention, self.config.MAXIMUM_INTERVAL_DAYS)
        if state in (CardState.LEARNING, CardState.RELEARNING):
            interval = min(interval, self.config.RELEARNING_MAX_INTERVAL_DAYS)

        result = ScheduleResult(
            next_due=now + timedelta(days=interval),
            interval=float(interval),
            stability=stability,
            difficulty=difficulty,
            retrievability=r,
            state=state,
        )
        logger.debug(
            f"Scheduled {card.state.value}->{state.value} rating={rating.name} "
            f"S={stability:.4f} D={difficulty:.4f} R={r:.4f} interval={interval}d"
        )
        return result

    def review(
        self,
        card: MemorySnapshot,
        rating: Union[Rating, int],
        now: datetime,
        weights: Union[FSRSWeights, None, Any] = None,
        target_retention: Optional[float] = None,
    ) -> Tuple[ScheduleResult, MemorySnapshot]:
        """
        Schedule a review and build the snapshot the caller should persist
        """
        result = self.schedule(card, rating, now, weights, target_retention)
        return result, apply_schedule_result(card, result, rating, now)

    def preview(
        self,
        card: MemorySnapshot,
        now: datetime,
        weights: Union[FSRSWeights, None, Any] = None,
        target_retention: Optional[float] = None,
    ) -> Dict[Rating, ScheduleResult]:
        """
        Preview what would happen for each rating
        Useful for showing users predicted intervals
        """
        return {
            rating: self.schedule(card, rating, now, weights, target_retention)
            for rating in Rating
        }


def apply_schedule_result(
    card: MemorySnapshot,
    result: ScheduleResult,
    rating: Union[Rating, int],
    now: datetime,
) -> MemorySnapshot:
    """
    Produce the next snapshot from a schedule result without mutating card
    """
    rating = Rating.parse(rating)
    return MemorySnapshot(
        stability=result.stability,
        difficulty=result.difficulty,
        retrievability=result.retrievability,
        state=result.state,
        last_review=ensure_aware(now, "now"),
        review_count=card.review_count + 1,
        lapse_count=card.lapse_count + (1 if is_lapse(card.state, rating) else 0),
    )


default_scheduler = FSRSScheduler()


def schedule(
    card: MemorySnapshot,
    rating: Union[Rating, int],
    now: datetime,
    weights: Union[FSRSWeights, None, Any] = None,
    target_retention: Optional[float] = None,
) -> ScheduleResult:
    """Schedule with the platform defaults"""
    return default_scheduler.schedule(card, rating, now, weights, target_retention)
