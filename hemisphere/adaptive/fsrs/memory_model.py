"""
Per-item memory model and its state machine

A MemorySnapshot is the persisted belief about one learner's retention of
one content item. Snapshots are immutable; the scheduler produces the next
one and the caller persists it.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union
import math

from hemisphere.core.exceptions import (
    InvalidMemoryStateError,
    InvalidRatingError,
    UnknownCardStateError,
)
from hemisphere.core.timestamps import format_timestamp, parse_timestamp


DIFFICULTY_MIN = 1.0
DIFFICULTY_MAX = 10.0


class Rating(IntEnum):
    """Review rating options"""
    AGAIN = 1  # Completely forgot
    HARD = 2   # Difficult to recall
    GOOD = 3   # Recalled correctly
    EASY = 4   # Recalled easily

    @classmethod
    def parse(cls, value: Union[int, "Rating"]) -> "Rating":
        """Convert an inbound rating, failing fast on anything outside 1..4"""
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidRatingError(f"Rating must be an integer in 1..4, got {value!r}")
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidRatingError(f"Rating must be in 1..4, got {value}") from e


class CardState(str, Enum):
    """Memory state of a card"""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"

    @classmethod
    def parse(cls, value: Union[str, "CardState"]) -> "CardState":
        """Convert a persisted state string; unknown values are rejected"""
        if isinstance(value, CardState):
            return value
        try:
            return cls(value)
        except ValueError as e:
            raise UnknownCardStateError(f"Unknown card state: {value!r}") from e


_TRANSITIONS: Dict[CardState, Dict[Rating, CardState]] = {
    CardState.NEW: {
        Rating.AGAIN: CardState.LEARNING,
        Rating.HARD: CardState.LEARNING,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.LEARNING: {
        Rating.AGAIN: CardState.LEARNING,
        Rating.HARD: CardState.REVIEW,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.REVIEW: {
        Rating.AGAIN: CardState.RELEARNING,
        Rating.HARD: CardState.REVIEW,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.RELEARNING: {
        Rating.AGAIN: CardState.RELEARNING,
        Rating.HARD: CardState.REVIEW,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
}


def next_state(state: CardState, rating: Rating) -> CardState:
    """Look up the state a card moves to after being rated"""
    return _TRANSITIONS[state][rating]


def is_lapse(state: CardState, rating: Rating) -> bool:
    """A lapse is an Again rating on a card that had reached review"""
    return rating == Rating.AGAIN and state in (CardState.REVIEW, CardState.RELEARNING)


def clamp_difficulty(difficulty: float) -> float:
    return min(DIFFICULTY_MAX, max(DIFFICULTY_MIN, difficulty))


@dataclass(frozen=True)
class MemorySnapshot:
    """
    Memory state of one (learner, item) pair

    Attributes:
        stability: Days until retrievability decays to ~90% (0 only for new cards)
        difficulty: Item difficulty on a 1-10 scale (0 only for new cards)
        retrievability: Recall probability cached at last_review, not a live value
        state: Position in the learning state machine
        last_review: Time of the last review; None only for new cards
        review_count: Number of scheduling calls applied so far
        lapse_count: Number of Again ratings received while in review/relearning
    """
    stability: float = 0.0
    difficulty: float = 0.0
    retrievability: float = 1.0
    state: CardState = CardState.NEW
    last_review: Optional[datetime] = None
    review_count: int = 0
    lapse_count: int = 0

    def __post_init__(self):
        # Accept persisted strings but store the closed enum
        object.__setattr__(self, "state", CardState.parse(self.state))
        if self.last_review is not None:
            object.__setattr__(self, "last_review", parse_timestamp(self.last_review))
        self._validate()

    def _validate(self) -> None:
        for name in ("stability", "difficulty", "retrievability"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidMemoryStateError(f"{name} must be finite, got {value}")

        if self.stability < 0:
            raise InvalidMemoryStateError(f"stability must be non-negative, got {self.stability}")
        if self.difficulty < 0:
            raise InvalidMemoryStateError(f"difficulty must be non-negative, got {self.difficulty}")
        if not 0.0 <= self.retrievability <= 1.0:
            raise InvalidMemoryStateError(
                f"retrievability must be in [0, 1], got {self.retrievability}"
            )
        if self.review_count < 0 or self.lapse_count < 0:
            raise InvalidMemoryStateError("review_count and lapse_count must be non-negative")
        if self.lapse_count > self.review_count:
            raise InvalidMemoryStateError(
                f"lapse_count ({self.lapse_count}) cannot exceed review_count ({self.review_count})"
            )

        if self.state == CardState.NEW:
            if self.last_review is not None or self.review_count != 0:
                raise InvalidMemoryStateError(
                    "a new card must have no last_review and a review_count of 0"
                )
        else:
            if self.stability <= 0:
                raise InvalidMemoryStateError(
                    f"stability must be positive once reviewed, got {self.stability}"
                )
            if self.last_review is None:
                raise InvalidMemoryStateError(f"a {self.state.value} card must have a last_review")

    @property
    def is_new(self) -> bool:
        return self.state == CardState.NEW

    @classmethod
    def new(cls) -> "MemorySnapshot":
        """Initial state for an item the learner has never seen"""
        return cls()

    def evolve(self, **changes: Any) -> "MemorySnapshot":
        """Copy with changes; invariants are re-checked"""
        return replace(self, **changes)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "MemorySnapshot":
        """Build from a persistence row (snake_case keys)"""
        return cls(
            stability=float(record.get("stability", 0.0)),
            difficulty=float(record.get("difficulty", 0.0)),
            retrievability=float(record.get("retrievability", 1.0)),
            state=CardState.parse(record.get("state", CardState.NEW.value)),
            last_review=parse_timestamp(record.get("last_review")),
            review_count=int(record.get("review_count", 0)),
            lapse_count=int(record.get("lapse_count", 0)),
        )

    def to_record(self) -> Dict[str, Any]:
        """Convert to a persistence row"""
        return {
            "stability": self.stability,
            "difficulty": self.difficulty,
            "retrievability": self.retrievability,
            "state": self.state.value,
            "last_review": format_timestamp(self.last_review) if self.last_review else None,
            "review_count": self.review_count,
            "lapse_count": self.lapse_count,
        }
