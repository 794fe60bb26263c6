"""
Algorithm implementations for TinyDigest.
"""

from tiny_digest.algorithms.tdigest import TDigest

__all__ = [
    "TDigest",
]
