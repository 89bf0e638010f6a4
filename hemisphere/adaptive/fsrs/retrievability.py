"""
Retrievability estimator

FSRS-5 power-law forgetting curve:

    R(t, S) = (1 + FACTOR * t / S) ^ DECAY,   DECAY = -0.5, FACTOR = 19/81

FACTOR is chosen so that R(S, S) = 0.9, i.e. stability is the number of days
until recall probability falls to 90%. Solving for t gives the interval that
hits a requested retention:

    t = S / FACTOR * (R ^ (1 / DECAY) - 1)
"""
from datetime import datetime
from typing import Optional
import math

from hemisphere.core.exceptions import InvalidMemoryStateError, InvalidTargetRetentionError
from hemisphere.core.timestamps import days_between, ensure_aware

from .memory_model import CardState, MemorySnapshot

DECAY = -0.5
FACTOR = 19 / 81

MIN_INTERVAL_DAYS = 1


def retrievability(stability: float, elapsed_days: float) -> float:
    """
    Probability of recall after elapsed_days given stability

    Args:
        stability: Memory stability in days, must be positive
        elapsed_days: Days since the last review; negative values count as 0

    Returns:
        Retrievability in [0, 1]; exactly 1.0 at elapsed_days == 0
    """
    if not stability > 0 or not math.isfinite(stability):
        raise InvalidMemoryStateError(f"stability must be positive, got {stability}")
    t = max(0.0, elapsed_days)
    if t == 0:
        return 1.0
    r = math.pow(1 + FACTOR * t / stability, DECAY)
    return min(1.0, max(0.0, r))


def check_target_retention(target_retention: float) -> float:
    if isinstance(target_retention, bool) or not isinstance(target_retention, (int, float)):
        raise InvalidTargetRetentionError(f"target retention must be a number, got {target_retention!r}")
    if not (0 < target_retention <= 1):
        raise InvalidTargetRetentionError(f"target retention must be in (0, 1], got {target_retention}")
    return float(target_retention)


def next_interval(
    stability: float,
    target_retention: float,
    maximum_interval: int = 36500,
) -> int:
    """
    Whole days until retrievability falls to target_retention

    Rounded half-up, at least one day, at most maximum_interval.
    """
    check_target_retention(target_retention)
    if not stability > 0:
        raise InvalidMemoryStateError(f"stability must be positive, got {stability}")
    raw = (stability / FACTOR) * (math.pow(target_retention, 1 / DECAY) - 1)
    interval = math.floor(raw + 0.5)
    return int(min(maximum_interval, max(MIN_INTERVAL_DAYS, interval)))


def elapsed_days(last_review: Optional[datetime], now: datetime) -> float:
    """Fractional days since last_review, floored at 0"""
    if last_review is None:
        return 0.0
    return max(0.0, days_between(last_review, now))


def current_retrievability(card: MemorySnapshot, now: datetime) -> float:
    """
    Live retrievability of a card at now

    Returns 1 for cards that have never been reviewed.
    """
    ensure_aware(now, "now")
    if card.state == CardState.NEW or card.last_review is None or card.stability <= 0:
        return 1.0
    return retrievability(card.stability, elapsed_days(card.last_review, now))


def is_due(card: MemorySnapshot, stored_due_date: Optional[datetime], as_of: datetime) -> bool:
    """
    New cards are always due; others are due once stored_due_date <= as_of

    A reviewed card without a stored due date is treated as due.
    """
    ensure_aware(as_of, "as_of")
    if card.state == CardState.NEW or stored_due_date is None:
        return True
    return ensure_aware(stored_due_date, "stored_due_date") <= as_of
