"""
tiny-digest - Streaming Quantile Estimation

tiny-digest is a Python library for estimating quantiles of unbounded numeric
streams in bounded memory using the t-digest sketch.
"""

__version__ = "0.1.0"

# Import main classes to make them available at the top level
from tiny_digest.algorithms.tdigest import Centroid, TDigest
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
    # Core base classes
    "StreamSummary",
    "QuantileEstimator",
    # Errors
    "SketchError",
    "InvalidConfigError",
    "InvalidValueError",
    "InvalidQueryError",
    "EmptySketchError",
    "CorruptDataError",
    # Algorithm implementations
    "TDigest",
    "Centroid",
]
