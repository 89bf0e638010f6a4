"""
Review Queue

Due-item selection and priority ordering on top of live FSRS retrievability,
plus dashboard statistics.
"""
from .queue_builder import (
    QueueCandidate,
    QueueItem,
    QueueMeta,
    ReviewQueue,
    ReviewQueueBuilder,
    build_queue,
    compute_priority,
)
from .stats import ReviewStats, review_stats

__all__ = [
    "QueueCandidate",
    "QueueItem",
    "QueueMeta",
    "ReviewQueue",
    "ReviewQueueBuilder",
    "build_queue",
    "compute_priority",
    "ReviewStats",
    "review_stats",
]
