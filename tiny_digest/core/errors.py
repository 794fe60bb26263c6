"""
Exception hierarchy for TinyDigest.

Every error a sketch reports derives from SketchError, which is itself a
ValueError so callers that only guard against bad input keep working.
"""


class SketchError(ValueError):
    """Base class for all errors raised by TinyDigest sketches."""


class InvalidConfigError(SketchError):
    """A constructor argument is outside its permitted range."""


class InvalidValueError(SketchError):
    """An observation or weight cannot be ingested (NaN, infinite, or non-positive weight)."""


class InvalidQueryError(SketchError):
    """A query argument is outside its domain."""


class EmptySketchError(SketchError):
    """A query was issued against a sketch holding no weight."""


class CorruptDataError(SketchError):
    """Serialized sketch data failed validation while decoding."""
