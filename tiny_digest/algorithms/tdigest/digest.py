# tiny_digest/algorithms/tdigest/digest.py

import bisect
import heapq
import logging
import math
import sys
from operator import attrgetter
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar, Union

from tiny_digest.algorithms.tdigest import serde
from tiny_digest.algorithms.tdigest.centroid import Centroid
from tiny_digest.algorithms.tdigest.scale import (
    ScaleFunction,
    get_scale_function,
    scale_name_for_code,
)
from tiny_digest.core.base import QuantileEstimator
from tiny_digest.core.errors import (
    CorruptDataError,
    EmptySketchError,
    InvalidConfigError,
    InvalidQueryError,
    InvalidValueError,
)

logger = logging.getLogger(__name__)

# Type variable for the class itself (for from_dict)
TDigestType = TypeVar("TDigestType", bound="TDigest")

_mean_of = attrgetter("mean")


def _sort_key(c: Centroid) -> Tuple[float, float]:
    return (c.mean, c.weight)


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite_float(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is not a finite real."""
    if not _is_real(value):
        return None
    try:
        converted = float(value)
    except OverflowError:
        return None
    return converted if math.isfinite(converted) else None


class TDigest(QuantileEstimator):
    """
    T-Digest for efficient and accurate quantile estimation over data streams.

    The T-Digest (Dunning & Ertl, 2019) summarizes a stream as a sorted list of
    centroids, each holding the mean and total weight of a cluster of
    observations. Key properties:

    1. Memory usage is controlled by the compression parameter, not data size
    2. Accuracy is non-uniform: extreme quantiles (near 0 or 1) are more precise
    3. Cluster sizes are bounded by a scale function that is steep at the tails
    4. Mergeable: digests built on separate streams can be combined

    New observations land in an unprocessed buffer. When the buffer fills, or
    before any query, the buffer is sorted and merged into the processed
    centroids in one linear pass that absorbs neighbours while the scale
    function allows it.

    The digest is not thread-safe. Queries flush the buffer and therefore
    mutate internal state, although they never change any answer.
    """

    DEFAULT_COMPRESSION: int = 100
    MIN_COMPRESSION: int = 20
    MAX_COMPRESSION: int = 10000
    DEFAULT_BUFFER_FACTOR: int = 5
    MIN_BUFFER_SIZE: int = 100
    DEFAULT_SCALE: str = "k1"

    def __init__(
        self,
        compression: float = DEFAULT_COMPRESSION,
        scale: str = DEFAULT_SCALE,
        buffer_factor: float = DEFAULT_BUFFER_FACTOR,
        memory_limit_bytes: Optional[int] = None,
    ):
        """
        Initialize a TDigest sketch.

        Args:
            compression: Controls accuracy and memory usage (δ). Higher values
                keep more centroids and give tighter estimates. Must lie in
                [20, 10000]. Default: 100.
            scale: Scale function governing centroid sizes, "k1" (arcsine,
                default) or "k2" (logistic).
            buffer_factor: Unprocessed buffer capacity as a multiple of the
                compression. The buffer never holds fewer than 100 entries.
            memory_limit_bytes: Optional memory budget reported by
                check_memory_limit().

        Raises:
            InvalidConfigError: If any argument is out of range.
        """
        super().__init__(memory_limit_bytes=memory_limit_bytes)
        self.compression: float = self._validate_compression(compression)

        factor = _finite_float(buffer_factor)
        if factor is None or factor < 1:
            raise InvalidConfigError(
                f"Buffer factor must be a finite number >= 1, got {buffer_factor!r}"
            )
        self.buffer_factor = buffer_factor
        self._buffer_size: int = max(
            self.MIN_BUFFER_SIZE, math.ceil(buffer_factor * self.compression)
        )
        self._scale: ScaleFunction = get_scale_function(scale, self.compression)

        self._processed: List[Centroid] = []
        self._processed_weight: float = 0.0
        self._unprocessed: List[Centroid] = []
        self._unprocessed_weight: float = 0.0
        self._min_val: Optional[float] = None
        self._max_val: Optional[float] = None

        # Query tables, rebuilt after every compression
        self._cumulative: List[float] = [0.0]
        self._midpoints: List[float] = []
        self._means: List[float] = []

    @classmethod
    def _validate_compression(cls, compression: Any) -> float:
        converted = _finite_float(compression)
        if converted is None:
            raise InvalidConfigError(
                f"Compression must be a finite number, got {compression!r}"
            )
        if not (cls.MIN_COMPRESSION <= converted <= cls.MAX_COMPRESSION):
            raise InvalidConfigError(
                f"Compression must be between {cls.MIN_COMPRESSION} and "
                f"{cls.MAX_COMPRESSION}, got {compression}"
            )
        return converted

    @property
    def scale(self) -> str:
        """Name of the scale function in use."""
        return self._scale.name

    @property
    def min(self) -> Optional[float]:
        """Smallest value observed, or None while the digest is empty."""
        return self._min_val

    @property
    def max(self) -> Optional[float]:
        """Largest value observed, or None while the digest is empty."""
        return self._max_val

    #
    # Ingest
    #
    def add(self, value: float, weight: float = 1.0) -> None:
        """
        Add a weighted observation to the sketch.

        The observation lands in the unprocessed buffer. When the buffer
        reaches its capacity it is compressed before this call returns.

        Args:
            value: Finite numeric observation.
            weight: Finite, strictly positive weight. Default: 1.0.

        Raises:
            InvalidValueError: If value is NaN, infinite or not numeric, or the
                weight is not a finite positive number. The sketch is left
                unchanged.
        """
        centroid = self._checked_centroid(value, weight)
        started = self._start_timer()
        self._ingest(centroid)
        self._record_update(started)

    def add_centroids(self, centroids: Iterable[Tuple[float, float]]) -> None:
        """
        Add pre-aggregated centroids to the sketch.

        Every pair is validated before any is ingested, so a bad entry leaves
        the sketch unchanged. Each centroid counts as one processed item.

        Args:
            centroids: Iterable of (mean, weight) pairs or Centroid objects.

        Raises:
            InvalidValueError: If any entry is not a (mean, weight) pair with a
                finite mean and a finite positive weight.
        """
        pending: List[Centroid] = []
        for entry in centroids:
            if isinstance(entry, Centroid):
                pending.append(entry)
                continue
            try:
                mean, weight = entry
            except (TypeError, ValueError):
                raise InvalidValueError(
                    f"Centroid must be a (mean, weight) pair, got {entry!r}"
                ) from None
            pending.append(self._checked_centroid(mean, weight))

        for centroid in pending:
            started = self._start_timer()
            self._ingest(centroid)
            self._record_update(started)

    @staticmethod
    def _checked_centroid(value: Any, weight: Any) -> Centroid:
        converted = _finite_float(value)
        if converted is None:
            raise InvalidValueError(f"Value must be a finite number, got {value!r}")
        converted_weight = _finite_float(weight)
        if converted_weight is None or converted_weight <= 0:
            raise InvalidValueError(
                f"Weight must be a finite positive number, got {weight!r}"
            )
        return Centroid(converted, converted_weight)

    def _ingest(self, centroid: Centroid) -> None:
        """Buffer a validated centroid, compressing when the buffer is full."""
        self._unprocessed.append(centroid)
        self._unprocessed_weight += centroid.weight

        if self._min_val is None or centroid.mean < self._min_val:
            self._min_val = centroid.mean
        if self._max_val is None or centroid.mean > self._max_val:
            self._max_val = centroid.mean

        if len(self._unprocessed) >= self._buffer_size:
            self._compress()

    def update(self, item: float) -> None:
        """
        Add a single observation with weight 1.

        Args:
            item: Finite numeric observation.

        Raises:
            InvalidValueError: If the item is NaN, infinite or not numeric.
        """
        self.add(item)

    def merge(self: TDigestType, other: TDigestType) -> TDigestType:
        """
        Merge another T-Digest into this one.

        Every centroid of `other`, processed or still buffered, is copied into
        this digest's unprocessed buffer and the result is compressed. The
        receiver keeps its own compression and scale function; `other` is not
        modified. The merge is commutative up to centroid-boundary noise.

        Args:
            other: Another TDigest.

        Returns:
            This digest, to allow chaining.

        Raises:
            TypeError: If 'other' is not a TDigest.
        """
        self._check_same_type(other)

        incoming = list(other._processed) + list(other._unprocessed)
        if not incoming:
            return self

        self._unprocessed.extend(incoming)
        self._unprocessed_weight += math.fsum(c.weight for c in incoming)
        self._items_processed += other._items_processed

        if other._min_val is not None and (
            self._min_val is None or other._min_val < self._min_val
        ):
            self._min_val = other._min_val
        if other._max_val is not None and (
            self._max_val is None or other._max_val > self._max_val
        ):
            self._max_val = other._max_val

        logger.debug(
            "Merging %d centroids (compression %g) into digest with compression %g",
            len(incoming),
            other.compression,
            self.compression,
        )
        self._compress()
        return self

    def clone(self: TDigestType) -> TDigestType:
        """
        Return an independent copy of this digest.

        The copy keeps the configuration, both centroid buffers, the observed
        extrema and the processed-item count. Later updates to either digest
        do not affect the other. Performance tracking state is not copied.
        """
        other = self.__class__(
            compression=self.compression,
            scale=self.scale,
            buffer_factor=self.buffer_factor,
            memory_limit_bytes=self._memory_limit_bytes,
        )
        # Centroids are never mutated in place, so the lists can share them
        other._processed = list(self._processed)
        other._unprocessed = list(self._unprocessed)
        other._unprocessed_weight = self._unprocessed_weight
        other._min_val = self._min_val
        other._max_val = self._max_val
        other._items_processed = self._items_processed
        other._rebuild_tables()
        return other

    #
    # Compression
    #
    def _compress(self) -> None:
        """
        Fold the unprocessed buffer into the processed centroids.

        The buffer is sorted by mean (weight breaks ties, stably), merged with
        the processed centroids into one sorted stream, and swept once from
        left to right. The open centroid absorbs the next element while the
        rank fraction at its right edge stays within the scale function's
        limit; otherwise it is emitted and the element opens a new centroid.
        """
        if not self._unprocessed:
            return

        self._unprocessed.sort(key=_sort_key)
        ordered = list(
            heapq.merge(self._processed, self._unprocessed, key=_mean_of)
        )
        total = self._processed_weight + self._unprocessed_weight

        merged = self._merge_sorted(ordered, total)

        self._processed = merged
        self._unprocessed.clear()
        self._unprocessed_weight = 0.0
        self._rebuild_tables()

        logger.debug(
            "Compressed %d centroids into %d (total weight %g, compression %g)",
            len(ordered),
            len(merged),
            self._processed_weight,
            self.compression,
        )

    def _merge_sorted(self, ordered: List[Centroid], total: float) -> List[Centroid]:
        """Collapse a mean-sorted centroid stream under the scale function bound."""
        scale = self._scale
        last_index = len(ordered) - 1
        result: List[Centroid] = []

        first = ordered[0]
        open_mean = first.mean
        open_weight = first.weight
        closed_weight = 0.0
        q_limit = scale.q_limit(0.0, total)

        for index in range(1, len(ordered)):
            c = ordered[index]
            projected = open_weight + c.weight

            absorb = (closed_weight + projected) / total <= q_limit
            if absorb and index == 1 and first.weight == 1.0:
                # A singleton minimum stays on its own
                absorb = False
            elif absorb and index == last_index and c.weight == 1.0:
                # So does a singleton maximum
                absorb = False

            if absorb:
                mean = open_mean + (c.mean - open_mean) * c.weight / projected
                if open_mean <= c.mean:
                    open_mean = min(max(mean, open_mean), c.mean)
                else:
                    open_mean = min(max(mean, c.mean), open_mean)
                open_weight = projected
            else:
                result.append(Centroid(open_mean, open_weight))
                closed_weight += open_weight
                open_mean = c.mean
                open_weight = c.weight
                q_limit = scale.q_limit(closed_weight / total, total)

        result.append(Centroid(open_mean, open_weight))
        return result

    def _rebuild_tables(self) -> None:
        """Recompute prefix weights, midpoints and means of processed centroids."""
        cumulative = [0.0]
        midpoints = []
        running = 0.0
        for c in self._processed:
            midpoints.append(running + c.weight / 2.0)
            running += c.weight
            cumulative.append(running)

        self._cumulative = cumulative
        self._midpoints = midpoints
        self._means = [c.mean for c in self._processed]
        self._processed_weight = running

    def flush(self) -> None:
        """Compress any buffered observations immediately."""
        self._compress()

    #
    # Queries
    #
    def _clamp(self, value: float) -> float:
        return min(max(value, self._min_val), self._max_val)

    def _require_data(self) -> None:
        self._compress()
        if not self._processed:
            raise EmptySketchError("Cannot query an empty sketch")

    def quantile(self, q: float) -> float:
        """
        Estimate the value at the given rank fraction.

        Args:
            q: Target quantile between 0.0 and 1.0.
               0.0 returns the minimum value.
               0.5 returns the estimated median.
               1.0 returns the maximum value.

        Returns:
            Estimated value at the specified quantile, within [min, max].

        Raises:
            InvalidQueryError: If q is not a number between 0.0 and 1.0.
            EmptySketchError: If the sketch holds no data.
        """
        if not _is_real(q) or not (0.0 <= q <= 1.0):
            raise InvalidQueryError(f"Quantile must be between 0.0 and 1.0, got {q!r}")

        self._require_data()

        if q == 0.0:
            return self._min_val
        if q == 1.0:
            return self._max_val

        centroids = self._processed
        if len(centroids) == 1:
            return centroids[0].mean

        midpoints = self._midpoints
        total = self._processed_weight
        target = q * total

        # Left of the first midpoint: anchor on the observed minimum
        first = centroids[0]
        if target < midpoints[0]:
            if first.weight == 1.0:
                return first.mean
            fraction = target / midpoints[0]
            return self._clamp(self._min_val + (first.mean - self._min_val) * fraction)

        # Right of the last midpoint: anchor on the observed maximum
        last = centroids[-1]
        if target > midpoints[-1]:
            if last.weight == 1.0:
                return last.mean
            fraction = (target - midpoints[-1]) / (total - midpoints[-1])
            return self._clamp(last.mean + (self._max_val - last.mean) * fraction)

        # Bracket m_i <= target <= m_{i+1}
        index = bisect.bisect_right(midpoints, target) - 1
        if index >= len(centroids) - 1:
            return last.mean

        left = centroids[index]
        right = centroids[index + 1]
        span = midpoints[index + 1] - midpoints[index]
        if span <= 0:
            return left.mean

        fraction = (target - midpoints[index]) / span
        return self._clamp(left.mean + (right.mean - left.mean) * fraction)

    def cdf(self, x: float) -> float:
        """
        Estimate the fraction of observed weight at or below x.

        Args:
            x: The value to rank.

        Returns:
            A rank fraction in [0.0, 1.0]: 0.0 at or below the minimum, 1.0 at
            or above the maximum.

        Raises:
            InvalidQueryError: If x is NaN or not numeric.
            EmptySketchError: If the sketch holds no data.
        """
        if not _is_real(x):
            raise InvalidQueryError(f"CDF argument must be a number, got {x!r}")
        try:
            x = float(x)
        except OverflowError:
            # Integers beyond float range sit past every observation
            x = math.inf if x > 0 else -math.inf
        if math.isnan(x):
            raise InvalidQueryError(f"CDF argument must be a number, got {x!r}")

        self._require_data()

        lo = self._min_val
        hi = self._max_val
        if x <= lo:
            return 0.0
        if x >= hi:
            return 1.0

        centroids = self._processed
        total = self._processed_weight
        if len(centroids) == 1:
            return (x - lo) / (hi - lo)

        first = centroids[0]
        if x < first.mean:
            fraction = (x - lo) / (first.mean - lo)
            return fraction * (first.weight / 2.0) / total

        last = centroids[-1]
        if x > last.mean:
            fraction = (hi - x) / (hi - last.mean)
            return 1.0 - fraction * (last.weight / 2.0) / total

        cumulative = self._cumulative
        left_index = bisect.bisect_left(self._means, x)
        right_index = bisect.bisect_right(self._means, x)
        if left_index < right_index:
            # x sits exactly on one or more centroid means
            tied = cumulative[right_index] - cumulative[left_index]
            return (cumulative[left_index] + tied / 2.0) / total

        left = centroids[left_index - 1]
        right = centroids[left_index]

        # Singletons keep half their weight on each side of their mean
        left_excluded = 0.5 if left.weight == 1.0 else 0.0
        right_excluded = 0.5 if right.weight == 1.0 else 0.0
        base = self._midpoints[left_index - 1] + left_excluded
        span = (left.weight + right.weight) / 2.0 - left_excluded - right_excluded

        fraction = (x - left.mean) / (right.mean - left.mean)
        rank = (base + span * fraction) / total
        return min(max(rank, 0.0), 1.0)

    def count(self) -> float:
        """Return the total weight ingested, buffered or not."""
        return self._processed_weight + self._unprocessed_weight

    def centroid_count(self) -> int:
        """Return the number of processed centroids after flushing the buffer."""
        self._compress()
        return len(self._processed)

    def get_centroids(self) -> List[Tuple[float, float]]:
        """
        Return the current centroids as (mean, weight) tuples.

        This is primarily for debugging and inspection purposes.

        Returns:
            List of centroids as (mean, weight) tuples, sorted by mean.
        """
        self._compress()
        return [(c.mean, c.weight) for c in self._processed]

    def __len__(self) -> int:
        """Return the number of observations added to the sketch."""
        return self.items_processed

    @property
    def is_empty(self) -> bool:
        """Check if the sketch contains any data."""
        return self.count() == 0

    #
    # Serialization
    #
    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the T-Digest to a dictionary.

        Compresses the buffer first to ensure a complete state snapshot.

        Returns:
            Dictionary containing the sketch configuration and internal state.
        """
        self._compress()

        state = self._base_dict()
        state.update(
            {
                "compression": self.compression,
                "scale": self.scale,
                "buffer_factor": self.buffer_factor,
                "total_weight": self._processed_weight,
                "min_val": self._min_val,
                "max_val": self._max_val,
                "centroids": [c.to_dict() for c in self._processed],
            }
        )
        return state

    @classmethod
    def from_dict(cls: Type[TDigestType], data: Dict[str, Any]) -> TDigestType:
        """
        Deserialize a T-Digest from a dictionary representation.

        Args:
            data: Dictionary created by to_dict().

        Returns:
            A reconstructed TDigest instance.

        Raises:
            ValueError: If the dictionary is missing required keys.
            CorruptDataError: If the stored state is inconsistent.
            InvalidConfigError: If the stored configuration is out of range.
        """
        if "type" not in data:
            raise ValueError("Invalid dictionary format for TDigest. Missing 'type'")

        if data.get("type") != cls.__name__:
            raise ValueError(
                f"Dictionary represents class '{data.get('type')}' but expected '{cls.__name__}'"
            )

        required_keys = {
            "compression",
            "total_weight",
            "centroids",
            "items_processed",
        }

        missing_keys = required_keys - data.keys()
        if missing_keys:
            raise ValueError(
                f"Invalid dictionary format for TDigest. Missing keys: {missing_keys}"
            )

        instance = cls(
            compression=data["compression"],
            scale=data.get("scale", cls.DEFAULT_SCALE),
            buffer_factor=data.get("buffer_factor", cls.DEFAULT_BUFFER_FACTOR),
            memory_limit_bytes=data.get("memory_limit_bytes"),
        )

        try:
            centroids = [Centroid.from_dict(c_data) for c_data in data["centroids"]]
        except (ValueError, KeyError, TypeError) as e:
            raise CorruptDataError(f"Error deserializing centroids: {e}") from e

        min_val = data.get("min_val")
        max_val = data.get("max_val")
        for key, value in (("min_val", min_val), ("max_val", max_val)):
            if value is not None and _finite_float(value) is None:
                raise CorruptDataError(
                    f"Stored {key} must be a finite number or None, got {value!r}"
                )
        if _finite_float(data["total_weight"]) is None:
            raise CorruptDataError(
                f"Stored total weight must be a finite number, got {data['total_weight']!r}"
            )
        items_processed = data["items_processed"]
        if (
            not isinstance(items_processed, int)
            or isinstance(items_processed, bool)
            or items_processed < 0
        ):
            raise CorruptDataError(
                f"Stored items_processed must be a non-negative integer, got {items_processed!r}"
            )

        instance._restore(centroids, min_val, max_val)

        if not math.isclose(
            instance._processed_weight, data["total_weight"], rel_tol=1e-9
        ):
            raise CorruptDataError(
                f"Stored total weight {data['total_weight']} does not match "
                f"centroid weights {instance._processed_weight}"
            )

        instance._items_processed = items_processed
        return instance

    def _restore(
        self,
        centroids: List[Centroid],
        min_val: Optional[float],
        max_val: Optional[float],
    ) -> None:
        """Install decoded centroids and extrema after checking they agree."""
        centroids = sorted(centroids, key=_mean_of)

        if centroids:
            if min_val is None or max_val is None:
                raise CorruptDataError("Non-empty digest is missing min/max values")
            if not (
                min_val <= centroids[0].mean and centroids[-1].mean <= max_val
            ):
                raise CorruptDataError(
                    f"Centroid means [{centroids[0].mean}, {centroids[-1].mean}] "
                    f"fall outside min/max [{min_val}, {max_val}]"
                )
            self._min_val = float(min_val)
            self._max_val = float(max_val)
        elif min_val is not None or max_val is not None:
            raise CorruptDataError("Empty digest must not carry min/max values")

        self._processed = centroids
        self._rebuild_tables()

    def to_bytes(self) -> bytes:
        """
        Encode the digest in the compact little-endian binary format.

        Returns:
            The encoded digest.
        """
        self._compress()
        return serde.encode(
            scale_code=self._scale.code,
            compression=self.compression,
            buffer_factor=self.buffer_factor,
            items_processed=self._items_processed,
            min_val=self._min_val,
            max_val=self._max_val,
            centroids=self._processed,
        )

    @classmethod
    def from_bytes(cls: Type[TDigestType], data: bytes) -> TDigestType:
        """
        Decode a digest produced by to_bytes().

        Args:
            data: Encoded digest.

        Returns:
            A reconstructed TDigest instance.

        Raises:
            CorruptDataError: If the data fails validation.
        """
        decoded = serde.decode(data)
        try:
            instance = cls(
                compression=decoded.compression,
                scale=scale_name_for_code(decoded.scale_code),
                buffer_factor=decoded.buffer_factor,
            )
        except (InvalidConfigError, KeyError) as e:
            raise CorruptDataError(f"Invalid digest configuration: {e}") from e

        instance._restore(decoded.centroids, decoded.min_val, decoded.max_val)
        instance._items_processed = decoded.items_processed
        return instance

    def estimate_size(self) -> int:
        """
        Estimate the memory footprint of the T-Digest in bytes.

        Returns:
            Estimated size in bytes.
        """
        size = super().estimate_size()

        size += sys.getsizeof(self.compression)
        size += sys.getsizeof(self._buffer_size)
        size += sys.getsizeof(self._processed_weight)
        size += sys.getsizeof(self._unprocessed_weight)

        for centroids in (self._processed, self._unprocessed):
            size += sys.getsizeof(centroids)
            if centroids:
                # Every centroid has the same slotted layout
                per_centroid = sys.getsizeof(centroids[0]) + 2 * sys.getsizeof(0.0)
                size += len(centroids) * per_centroid

        for table in (self._cumulative, self._midpoints, self._means):
            size += sys.getsizeof(table) + len(table) * sys.getsizeof(0.0)

        return size

    #
    # Benchmarking hooks
    #
    def get_stats(self) -> Dict[str, Any]:
        """
        Get detailed statistics about the current state of the T-Digest.

        Returns:
            A dictionary containing structural, accuracy and memory statistics.
        """
        self._compress()

        stats = super().get_stats()
        stats.update(
            {
                "compression": self.compression,
                "scale": self.scale,
                "buffer_size": self._buffer_size,
                "num_centroids": len(self._processed),
                "buffer_items": len(self._unprocessed),
                "compression_ratio": len(self._processed) / self.compression,
            }
        )

        if self._min_val is not None:
            stats["min_value"] = self._min_val
            stats["max_value"] = self._max_val

        if self._processed:
            weights = [c.weight for c in self._processed]
            stats.update(
                {
                    "min_weight": min(weights),
                    "max_weight": max(weights),
                    "avg_weight": self._processed_weight / len(weights),
                    "singleton_centroids": sum(1 for w in weights if w == 1.0),
                }
            )

        if self.items_processed > 0:
            stats["bytes_per_item"] = self.estimate_size() / self.items_processed

        return stats

    def error_bounds(self) -> Dict[str, Union[str, float, Dict[str, float]]]:
        """
        Calculate the theoretical error bounds for this T-Digest.

        A centroid starting at rank fraction q may grow until the scale
        function potential rises by one unit, so the rank span it can cover
        bounds the rank error of an estimate near q.

        Returns:
            A dictionary with the accuracy model and the maximum centroid rank
            span at a range of quantiles.
        """
        bounds: Dict[str, Union[str, float, Dict[str, float]]] = {}

        if self.is_empty:
            bounds["state"] = "empty"
            return bounds

        n = self.count()
        bounds["accuracy_model"] = "non-uniform (higher at tails)"
        bounds["theoretical_max_centroids"] = float(math.ceil(2 * self.compression))

        spans: Dict[str, float] = {}
        for q in (0.001, 0.01, 0.05, 0.25, 0.5, 0.75, 0.95, 0.99, 0.999):
            # Measure outward from the nearer tail so both sides are symmetric
            if q <= 0.5:
                spans[f"q{q:.3f}"] = self._scale.q_limit(q, n) - q
            else:
                mirrored = 1.0 - q
                spans[f"q{q:.3f}"] = self._scale.q_limit(mirrored, n) - mirrored
        bounds["max_rank_span"] = spans

        return bounds

    def analyze_quantile_accuracy(
        self, reference_data: Iterable[float]
    ) -> Dict[str, Any]:
        """
        Compare quantile estimates against exact quantiles of reference data.

        Args:
            reference_data: The values to compare against, typically the same
                values that were fed to the digest.

        Returns:
            A dictionary with exact values, estimates and their absolute errors.

        Raises:
            ValueError: If the reference data is empty.
        """
        sorted_data = sorted(reference_data)
        data_len = len(sorted_data)
        if data_len == 0:
            raise ValueError("Reference data is empty")

        quantiles = [0.001, 0.01, 0.1, 0.25, 0.5, 0.75, 0.9, 0.99, 0.999]
        exact: Dict[str, float] = {}
        estimates: Dict[str, float] = {}
        abs_errors: Dict[str, float] = {}
        for q in quantiles:
            key = f"q{q:.3f}"
            exact[key] = sorted_data[min(int(q * data_len), data_len - 1)]
            estimates[key] = self.quantile(q)
            abs_errors[key] = abs(estimates[key] - exact[key])

        return {
            "algorithm": "T-Digest",
            "compression": self.compression,
            "num_centroids": self.centroid_count(),
            "reference_data_size": data_len,
            "exact_quantiles": exact,
            "tdigest_estimates": estimates,
            "absolute_errors": abs_errors,
            "max_absolute_error": max(abs_errors.values()),
        }

    def clear(self) -> None:
        """
        Reset the T-Digest to its initial empty state.

        Configuration parameters are preserved.
        """
        super().clear()
        self._processed = []
        self._processed_weight = 0.0
        self._unprocessed = []
        self._unprocessed_weight = 0.0
        self._min_val = None
        self._max_val = None
        self._rebuild_tables()

    @classmethod
    def create_from_accuracy_target(
        cls, accuracy_target: float, tail_focus: bool = True, scale: str = DEFAULT_SCALE
    ) -> "TDigest":
        """
        Create a T-Digest with a compression sized for a target rank error.

        With the arcsine scale a centroid near rank q spans about
        2π·sqrt(q(1−q))/δ of the rank, and interpolation error is at most half
        of that span.

        Args:
            accuracy_target: Target rank error (0.0-1.0).
            tail_focus: If True, size for q = 0.01 / 0.99; otherwise for the median.
            scale: Scale function for the new digest.

        Returns:
            A new T-Digest configured for the target accuracy.

        Raises:
            InvalidConfigError: If accuracy_target is not between 0 and 1.
        """
        if not _is_real(accuracy_target) or not (0.0 < accuracy_target < 1.0):
            raise InvalidConfigError("Accuracy target must be between 0 and 1")

        q = 0.01 if tail_focus else 0.5
        compression = math.ceil(math.pi * math.sqrt(q * (1.0 - q)) / accuracy_target)
        compression = max(cls.MIN_COMPRESSION, min(cls.MAX_COMPRESSION, compression))

        return cls(compression=compression, scale=scale)
