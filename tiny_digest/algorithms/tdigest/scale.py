"""
Scale functions for the T-Digest.

A scale function maps a rank fraction q in [0, 1] to a potential k(q). The
compressor only lets a centroid grow while the potential it spans stays within
one unit, so the slope of k decides how large clusters may become at each
rank. Both functions here are steep near q = 0 and q = 1, which keeps tail
centroids small and makes extreme quantiles accurate.

References:
    - Dunning, T., & Ertl, O. (2019).
      Computing Extremely Accurate Quantiles Using t-Digests.
      arXiv:1902.04023.
"""

import abc
import math
from typing import Dict, Type

from tiny_digest.core.errors import InvalidConfigError


class ScaleFunction(abc.ABC):
    """
    Monotone potential k(q) and its inverse, parameterized by the compression.

    The total weight n is passed to every call so that functions whose shape
    depends on the stream size (K2) can be recomputed at each compression.
    """

    #: Short identifier used in serialized sketches.
    name: str = ""
    #: Stable numeric identifier used by the binary encoding.
    code: int = 0

    def __init__(self, compression: float):
        self.compression = float(compression)

    @abc.abstractmethod
    def k(self, q: float, n: float) -> float:
        """Map a rank fraction to its potential."""

    @abc.abstractmethod
    def k_inv(self, k: float, n: float) -> float:
        """Map a potential back to a rank fraction in [0, 1]."""

    def q_limit(self, q0: float, n: float) -> float:
        """
        Rank fraction at which a centroid starting at q0 must close.

        Args:
            q0: Rank fraction at the left edge of the centroid.
            n: Total weight being compressed.

        Returns:
            The largest right edge that keeps the centroid within one unit of k.
        """
        return self.k_inv(self.k(q0, n) + 1.0, n)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(compression={self.compression:g})"


class K1ScaleFunction(ScaleFunction):
    """
    Arcsine scale function.

    k(q) = (δ / 2π) · asin(2q − 1), k_inv(k) = (sin(2πk / δ) + 1) / 2.

    The potential spans [−δ/4, δ/4], so at most about δ centroids survive a
    compression.
    """

    name = "k1"
    code = 1

    def __init__(self, compression: float):
        super().__init__(compression)
        self._k_scale = self.compression / (2.0 * math.pi)
        self._q_scale = 2.0 * math.pi / self.compression
        self._k_max = self.compression / 4.0

    def k(self, q: float, n: float) -> float:
        x = 2.0 * q - 1.0
        # Rounding can push 2q - 1 a hair outside asin's domain
        x = max(-1.0, min(1.0, x))
        return self._k_scale * math.asin(x)

    def k_inv(self, k: float, n: float) -> float:
        # sin() turns back down past ±δ/4, so the potential is clamped first
        k = max(-self._k_max, min(self._k_max, k))
        return (math.sin(k * self._q_scale) + 1.0) / 2.0


class K2ScaleFunction(ScaleFunction):
    """
    Logistic scale function.

    k(q) = δ · log(q / (1 − q)) / Z(n) with Z(n) = 4 · log(n / δ) + 24.

    Z depends on the total weight, so the shape tightens as the stream grows.
    n / δ is floored at 1 to keep Z positive for short streams.
    """

    name = "k2"
    code = 2

    def _normalizer(self, n: float) -> float:
        ratio = max(n / self.compression, 1.0)
        return self.compression / (4.0 * math.log(ratio) + 24.0)

    def k(self, q: float, n: float) -> float:
        if q <= 0.0:
            return -math.inf
        if q >= 1.0:
            return math.inf
        return self._normalizer(n) * math.log(q / (1.0 - q))

    def k_inv(self, k: float, n: float) -> float:
        x = k / self._normalizer(n)
        # Split on sign so exp() never overflows
        if x >= 0:
            return 1.0 / (1.0 + math.exp(-x))
        z = math.exp(x)
        return z / (1.0 + z)


SCALE_FUNCTIONS: Dict[str, Type[ScaleFunction]] = {
    K1ScaleFunction.name: K1ScaleFunction,
    K2ScaleFunction.name: K2ScaleFunction,
}


def get_scale_function(name: str, compression: float) -> ScaleFunction:
    """
    Build the scale function registered under `name`.

    Args:
        name: "k1" or "k2" (case-insensitive).
        compression: Compression parameter δ of the owning digest.

    Returns:
        A scale function bound to the given compression.

    Raises:
        InvalidConfigError: If no scale function has that name.
    """
    try:
        factory = SCALE_FUNCTIONS[str(name).lower()]
    except KeyError:
        raise InvalidConfigError(
            f"Unknown scale function {name!r}; expected one of {sorted(SCALE_FUNCTIONS)}"
        ) from None
    return factory(compression)


def scale_name_for_code(code: int) -> str:
    """Return the registered name of a scale function's binary code."""
    for factory in SCALE_FUNCTIONS.values():
        if factory.code == code:
            return factory.name
    raise KeyError(code)
