"""
FSRS-5 weight vector

The model has 19 coefficients (w0..w18). They are carried as a named record so
that call sites never index into a bare list; the flat form only exists at
serialization boundaries (to_list / from_list).
"""
from dataclasses import astuple, dataclass, fields, replace
from typing import Any, List, Sequence
import math

from hemisphere.core.exceptions import InvalidWeightsError

from .memory_model import Rating

WEIGHT_COUNT = 19


@dataclass(frozen=True)
class FSRSWeights:
    """
    Default values are the platform-wide FSRS-5 constants
    """
    initial_stability_again: float = 0.4072   # w0
    initial_stability_hard: float = 1.1829    # w1
    initial_stability_good: float = 3.1262    # w2
    initial_stability_easy: float = 15.4722   # w3
    initial_difficulty_base: float = 7.2102   # w4
    initial_difficulty_rating_factor: float = 0.5316  # w5
    difficulty_delta: float = 1.0651          # w6
    difficulty_mean_reversion: float = 0.0    # w7
    recall_stability_base: float = 1.5546     # w8
    recall_stability_decay: float = 0.1192    # w9
    recall_retrievability_factor: float = 1.0100  # w10
    lapse_stability_coefficient: float = 1.9395   # w11
    lapse_difficulty_exponent: float = 0.1100     # w12
    lapse_stability_exponent: float = 0.2939      # w13
    lapse_retrievability_factor: float = 2.0091   # w14
    hard_penalty: float = 0.2415              # w15, < 1
    easy_bonus: float = 2.9898                # w16, > 1
    short_term_stability: float = 0.5100      # w17
    short_term_offset: float = 0.6000         # w18

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidWeightsError(f"{f.name} must be a finite number, got {value!r}")

    def initial_stability(self, rating: Rating) -> float:
        """w[rating - 1]"""
        return (
            self.initial_stability_again,
            self.initial_stability_hard,
            self.initial_stability_good,
            self.initial_stability_easy,
        )[Rating.parse(rating) - 1]

    def to_list(self) -> List[float]:
        return [float(v) for v in astuple(self)]

    @classmethod
    def from_list(cls, values: Sequence[Any]) -> "FSRSWeights":
        """Build from the flat w0..w18 form"""
        if isinstance(values, (str, bytes)):
            raise InvalidWeightsError("weights must be a sequence of numbers")
        values = list(values)
        if len(values) != WEIGHT_COUNT:
            raise InvalidWeightsError(f"FSRS-5 expects {WEIGHT_COUNT} weights, got {len(values)}")
        return cls(*values)

    def with_overrides(self, **changes: float) -> "FSRSWeights":
        return replace(self, **changes)


DEFAULT_WEIGHTS = FSRSWeights()


def coerce_weights(weights: Any) -> FSRSWeights:
    """Accept a weight record, a flat sequence, or None (platform defaults)"""
    if weights is None:
        return DEFAULT_WEIGHTS
    if isinstance(weights, FSRSWeights):
        return weights
    return FSRSWeights.from_list(weights)
