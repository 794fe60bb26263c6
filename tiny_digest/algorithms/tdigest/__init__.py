"""
T-Digest quantile sketch for TinyDigest.
"""

from tiny_digest.algorithms.tdigest.centroid import Centroid
from tiny_digest.algorithms.tdigest.digest import TDigest
from tiny_digest.algorithms.tdigest.exporters import export_clickhouse
from tiny_digest.algorithms.tdigest.scale import (
    K1ScaleFunction,
    K2ScaleFunction,
    ScaleFunction,
    get_scale_function,
)

__all__ = [
    "Centroid",
    "TDigest",
    "ScaleFunction",
    "K1ScaleFunction",
    "K2ScaleFunction",
    "get_scale_function",
    "export_clickhouse",
]
