"""
Centroid record used by the T-Digest.

A centroid summarizes `weight` observations whose weighted mean is `mean`.
Centroids are treated as immutable once they are handed to a digest.
"""

import math
from typing import Dict

from tiny_digest.core.errors import InvalidValueError


class Centroid:
    """A (mean, weight) pair summarizing a cluster of observations."""

    __slots__ = ["mean", "weight"]

    def __init__(self, mean: float, weight: float = 1.0):
        """
        Initialize a centroid.

        Args:
            mean: Weighted mean of the summarized observations. Must be finite.
            weight: Total weight of the observations. Must be finite and positive.

        Raises:
            InvalidValueError: If the mean is NaN or infinite, or the weight is
                not a finite positive number.
        """
        mean = float(mean)
        weight = float(weight)
        if not math.isfinite(mean):
            raise InvalidValueError(f"Centroid mean must be finite, got {mean}")
        if not math.isfinite(weight) or weight <= 0:
            raise InvalidValueError(
                f"Centroid weight must be finite and positive, got {weight}"
            )
        self.mean = mean
        self.weight = weight

    def __lt__(self, other: "Centroid") -> bool:
        """Allow centroids to be sorted by mean value."""
        return self.mean < other.mean

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Centroid):
            return NotImplemented
        return self.mean == other.mean and self.weight == other.weight

    def __hash__(self) -> int:
        return hash((self.mean, self.weight))

    def __repr__(self) -> str:
        """Provide a readable representation of the centroid."""
        return f"Centroid(mean={self.mean:.4g}, weight={self.weight:.4g})"

    def to_dict(self) -> Dict[str, float]:
        """Serialize the centroid to a dictionary."""
        return {"mean": self.mean, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "Centroid":
        """Deserialize a centroid from a dictionary."""
        if "mean" not in data or "weight" not in data:
            raise ValueError("Centroid dictionary missing 'mean' or 'weight'")
        return cls(mean=data["mean"], weight=data["weight"])
