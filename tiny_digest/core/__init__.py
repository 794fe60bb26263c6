"""
Core functionality for TinyDigest.
"""

from tiny_digest.core.base import QuantileEstimator, StreamSummary
from tiny_digest.core.errors import (
    CorruptDataError,
    EmptySketchError,
    InvalidConfigError,
    InvalidQueryError,
    InvalidValueError,
    SketchError,
)

__all__ = [
    # Base classes
    "StreamSummary",
    "QuantileEstimator",
    # Errors
    "SketchError",
    "InvalidConfigError",
    "InvalidValueError",
    "InvalidQueryError",
    "EmptySketchError",
    "CorruptDataError",
]
