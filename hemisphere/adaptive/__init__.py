"""
Adaptive Learning Engine

- FSRS (Free Spaced Repetition Scheduler) - FSRS-5 memory model with per-learner weight tuning
- Review Queue - due-item selection ordered by overdue days and retrievability decay
- Zombie Detection - flags items answered correctly without durable understanding
"""
from .fsrs import (
    CardState,
    FSRSScheduler,
    FSRSWeights,
    MemorySnapshot,
    Rating,
    ScheduleResult,
)
from .review_queue import ReviewQueue, ReviewQueueBuilder, build_queue, review_stats
from .zombie import ZombieSweep, aggregate_signals, detect

__all__ = [
    "CardState",
    "FSRSScheduler",
    "FSRSWeights",
    "MemorySnapshot",
    "Rating",
    "ScheduleResult",
    "ReviewQueue",
    "ReviewQueueBuilder",
    "build_queue",
    "review_stats",
    "ZombieSweep",
    "aggregate_signals",
    "detect",
]
