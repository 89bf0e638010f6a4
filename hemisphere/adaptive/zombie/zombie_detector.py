"""
Zombie item detection

A zombie item looks mastered by accuracy but is not actually retained. Four
independent signals are combined into a weighted score:

    score = 0.4 * lh_rh_divergence + 0.3 * format_dependence
          + 0.2 * speed_without_depth + 0.1 * stalled_difficulty

The remediation type is chosen by a fixed precedence over the signals, not by
the score, so two signal sets with equal scores can get different treatments.
"""
from typing import Dict
import math

from hemisphere.core.exceptions import InvalidThresholdError
from hemisphere.schemas.remediation import (
    RemediationDecision,
    RemediationType,
    ZombieSignals,
)

SIGNAL_WEIGHTS: Dict[str, float] = {
    "lh_rh_divergence": 0.4,
    "format_dependence": 0.3,
    "speed_without_depth": 0.2,
    "stalled_difficulty": 0.1,
}

DEFAULT_THRESHOLD = 0.5


def score(signals: ZombieSignals) -> float:
    """Weighted sum of the active signals, in [0, 1]"""
    # fsum keeps the all-signals case at exactly 1.0
    return math.fsum(
        weight for name, weight in SIGNAL_WEIGHTS.items() if getattr(signals, name)
    )


def check_threshold(threshold: float) -> float:
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise InvalidThresholdError(f"threshold must be a number, got {threshold!r}")
    if not 0 <= threshold <= 1:
        raise InvalidThresholdError(f"threshold must be in [0, 1], got {threshold}")
    return float(threshold)


def classify(signals: ZombieSignals, threshold: float = DEFAULT_THRESHOLD) -> bool:
    return score(signals) >= check_threshold(threshold)


def remediate(signals: ZombieSignals) -> RemediationType:
    """
    First matching signal wins:
    lh/rh divergence -> elaboration, format dependence -> format shift,
    speed without depth -> novel context, otherwise encoding reset.
    """
    if signals.lh_rh_divergence:
        return RemediationType.ELABORATION
    if signals.format_dependence:
        return RemediationType.FORMAT_SHIFT
    if signals.speed_without_depth:
        return RemediationType.NOVEL_CONTEXT
    return RemediationType.ENCODING_RESET


def detect(signals: ZombieSignals, threshold: float = DEFAULT_THRESHOLD) -> RemediationDecision:
    """Score, classify and pick a remediation in one pass"""
    value = score(signals)
    return RemediationDecision(
        score=value,
        is_zombie=value >= check_threshold(threshold),
        remediation_type=remediate(signals),
    )
