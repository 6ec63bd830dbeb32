"""
Custom exception classes for the voice profile core.

Validation failures (short samples, too few samples) surface immediately to
the caller.  Persistent-store failures are raised inside the cache layer and
converted to "no data" at its boundary, so UI-facing code can fall back to a
no-profile path instead of crashing.

Hierarchy:
    Exception
    +-- VoiceprintError (base for all voice profile errors)
    |   +-- VectorLengthMismatchError
    +-- ValidationError (ValueError)
    |   +-- SampleTooShortError
    |   +-- InsufficientSamplesError
    +-- DatabaseError
    |   +-- StoreUnavailableError
    +-- ConfigurationError
"""

from typing import Optional


# =============================================================================
# BASE EXCEPTION
# =============================================================================


class VoiceprintError(Exception):
    """Base exception for voice profile errors."""

    pass


# =============================================================================
# CORE EXCEPTIONS
# =============================================================================


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


class DatabaseError(Exception):
    """Raised when database operations fail."""

    pass


class ConfigurationError(Exception):
    """Raised when system configuration is invalid."""

    pass


# =============================================================================
# ANALYSIS EXCEPTIONS
# =============================================================================


class SampleTooShortError(ValidationError):
    """Raised when a writing sample has too few words to analyse.

    Attributes:
        word_count: Number of words found in the sample.
        minimum: Minimum number of words required.
    """

    def __init__(self, word_count: int, minimum: int):
        self.word_count = word_count
        self.minimum = minimum
        super().__init__(
            f"Sample too short for analysis: {word_count} words "
            f"(minimum {minimum})"
        )


class InsufficientSamplesError(ValidationError):
    """Raised when a fingerprint is requested from too few samples.

    Attributes:
        got: Number of samples supplied.
        required: Minimum number of samples required.
    """

    def __init__(self, got: int, required: int):
        self.got = got
        self.required = required
        super().__init__(f"Need at least {required} samples, got {got}")


class VectorLengthMismatchError(VoiceprintError):
    """Describes a DNA vector whose length differs from the stored one.

    The cache never raises this to its callers; it logs the condition and
    degrades (cosine similarity of 0, or wholesale vector replacement).

    Attributes:
        expected: Length of the existing vector.
        got: Length of the incoming vector.
    """

    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(f"Vector length mismatch: expected {expected}, got {got}")


# =============================================================================
# STORE EXCEPTIONS
# =============================================================================


class StoreUnavailableError(DatabaseError):
    """Raised when a persistent-store call fails or misses its deadline.

    Attributes:
        operation: Name of the store operation that failed.
        cause: The underlying exception, if any.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Store operation '{operation}' failed{detail}")


# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    # Base
    "VoiceprintError",
    # Core
    "ValidationError",
    "DatabaseError",
    "ConfigurationError",
    # Analysis
    "SampleTooShortError",
    "InsufficientSamplesError",
    "VectorLengthMismatchError",
    # Store
    "StoreUnavailableError",
]
