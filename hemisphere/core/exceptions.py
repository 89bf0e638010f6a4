"""
Error types raised by the memory core

Every precondition violation is a programmer error on the caller's side:
the core fails fast instead of clamping bad input, so upstream validation
bugs surface immediately.
"""


class HemisphereError(Exception):
    """Base class for all memory core errors"""


class PreconditionError(HemisphereError, ValueError):
    """A caller passed input that violates a documented contract"""


class InvalidRatingError(PreconditionError):
    """Rating outside {1, 2, 3, 4}"""


class InvalidTargetRetentionError(PreconditionError):
    """Target retention outside (0, 1]"""


class InvalidWeightsError(PreconditionError):
    """Weight vector of the wrong length or with non-finite values"""


class InvalidMemoryStateError(PreconditionError):
    """Memory snapshot that breaks one of its invariants"""


class UnknownCardStateError(PreconditionError):
    """Persisted state string that is not a known card state"""


class InvalidQueueLimitError(PreconditionError):
    """Queue limit that is not an integer"""


class InvalidThresholdError(PreconditionError):
    """Zombie threshold outside [0, 1]"""


class NaiveDatetimeError(PreconditionError):
    """Timestamp without timezone information"""
