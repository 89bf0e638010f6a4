"""
Zombie Item Detection

Finds items whose accuracy suggests mastery but whose behavioural signals
indicate shallow, format-dependent or stalled learning, and routes them to a
remediation strategy.
"""
from .zombie_detector import (
    DEFAULT_THRESHOLD,
    SIGNAL_WEIGHTS,
    classify,
    detect,
    remediate,
    score,
)
from .signal_aggregator import (
    AssessmentEvent,
    KnowledgeComponentState,
    aggregate_signals,
    latency_percentile,
)
from .remediation_store import InMemoryRemediationStore, RemediationStore
from .sweep import (
    InMemorySweepDataSource,
    SweepCandidate,
    SweepDataSource,
    SweepReport,
    ZombieSweep,
)

__all__ = [
    "DEFAULT_THRESHOLD",
    "SIGNAL_WEIGHTS",
    "classify",
    "detect",
    "remediate",
    "score",
    "AssessmentEvent",
    "KnowledgeComponentState",
    "aggregate_signals",
    "latency_percentile",
    "InMemoryRemediationStore",
    "RemediationStore",
    "InMemorySweepDataSource",
    "SweepCandidate",
    "SweepDataSource",
    "SweepReport",
    "ZombieSweep",
]
