"""
FSRS Spaced Repetition System

Includes:
- FSRSScheduler: Core FSRS-5 scheduling algorithm
- MemorySnapshot: Card memory state (stability, difficulty, retrievability)
- Rating / CardState: Review rating and state-machine enums
- FSRSWeights: Named 19-coefficient weight record
- Retrievability estimation and due checks
- Parameter personalisation: bounded per-learner weight tuning
"""
from .memory_model import CardState, MemorySnapshot, Rating, is_lapse, next_state
from .weights import DEFAULT_WEIGHTS, FSRSWeights, coerce_weights
from .retrievability import (
    current_retrievability,
    elapsed_days,
    is_due,
    next_interval,
    retrievability,
)
from .fsrs_algorithm import (
    FSRSScheduler,
    ScheduleResult,
    apply_schedule_result,
    schedule,
)
from .parameter_learning import (
    LearnerAggregate,
    LearnerOptimizationResult,
    aggregate_learners,
    optimize_learner_parameters,
)

__all__ = [
    # Memory model
    "CardState",
    "MemorySnapshot",
    "Rating",
    "is_lapse",
    "next_state",
    # Weights
    "DEFAULT_WEIGHTS",
    "FSRSWeights",
    "coerce_weights",
    # Retrievability
    "current_retrievability",
    "elapsed_days",
    "is_due",
    "next_interval",
    "retrievability",
    # Core algorithm
    "FSRSScheduler",
    "ScheduleResult",
    "apply_schedule_result",
    "schedule",
    # Parameter personalisation
    "LearnerAggregate",
    "LearnerOptimizationResult",
    "aggregate_learners",
    "optimize_learner_parameters",
]
