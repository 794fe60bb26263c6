"""
Base classes and interfaces for TinyDigest streaming summaries.

This module defines the abstract base classes that streaming summaries
implement to provide a consistent interface: updating with new items,
querying, merging, serialization, and benchmarking hooks for measuring
performance characteristics.
"""

import abc
import json
import sys
import time
from collections import deque
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

T = TypeVar("T")  # Type for the items being processed
R = TypeVar("R")  # Type for the result of queries


class StreamSummary(Generic[T, R], abc.ABC):
    """
    Abstract base class for all streaming data structures.

    This class defines the common interface that streaming summaries must
    implement, including methods for updating with new items, querying results,
    merging with other summaries, and serialization. It also provides benchmarking
    hooks for measuring performance characteristics.
    """

    def __init__(self, memory_limit_bytes: Optional[int] = None):
        """
        Initialize a new stream summary.

        Args:
            memory_limit_bytes: Optional maximum memory usage in bytes.
                                None means no explicit limit.
        """
        self._memory_limit_bytes = memory_limit_bytes
        self._items_processed = 0

        # Performance tracking attributes
        self._last_update_time: float = 0.0
        self._total_update_time: float = 0.0
        self._update_count: int = 0

        # Optional performance tracking buffer for recent updates
        self._track_recent_updates: bool = False
        self._recent_update_times: Optional[deque] = None
        self._max_update_history: int = 100

    @abc.abstractmethod
    def update(self, item: T) -> None:
        """
        Update the summary with a new item from the stream.

        Implementations call _record_update() once the item has been accepted.

        Args:
            item: The new item to process.
        """

    def _start_timer(self) -> Optional[float]:
        """Return a start timestamp when performance tracking is enabled."""
        if self._track_recent_updates:
            return time.perf_counter()
        return None

    def _record_update(self, started: Optional[float] = None) -> None:
        """
        Account for one accepted update.

        Args:
            started: Timestamp returned by _start_timer() before the update
                     began, or None when the update was not timed.
        """
        self._items_processed += 1

        if started is None:
            return

        self._last_update_time = time.perf_counter() - started
        self._total_update_time += self._last_update_time
        self._update_count += 1

        if self._recent_update_times is None:
            self._recent_update_times = deque(maxlen=self._max_update_history)
        self._recent_update_times.append(self._last_update_time)

    @abc.abstractmethod
    def query(self, *args: Any, **kwargs: Any) -> R:
        """
        Query the current state of the summary.

        The parameters and return value depend on the specific algorithm.

        Returns:
            The result of the query, which depends on the specific algorithm.
        """

    @abc.abstractmethod
    def merge(self, other: "StreamSummary[T, R]") -> "StreamSummary[T, R]":
        """
        Merge another summary of the same type into this one.

        The receiver absorbs the state of `other`; `other` is left untouched.

        Args:
            other: Another stream summary of the same type.

        Returns:
            This summary, to allow chaining.

        Raises:
            TypeError: If other is not of the same type.
        """

    def _check_same_type(self, other: "StreamSummary[T, R]") -> None:
        """
        Helper method to check if another summary is of the same type.

        Args:
            other: Another stream summary to check.

        Raises:
            TypeError: If other is not of the same type.
        """
        if not isinstance(other, self.__class__):
            raise TypeError(f"Cannot merge with {other.__class__.__name__}")

    @abc.abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the summary to a dictionary for serialization.

        Returns:
            A dictionary representation of the summary.
        """

    def _base_dict(self) -> Dict[str, Any]:
        """
        Create a dictionary with base attributes common to all summaries.

        Returns:
            A dictionary with base attributes.
        """
        return {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_limit_bytes": self._memory_limit_bytes,
        }

    @classmethod
    @abc.abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreamSummary[T, R]":
        """
        Create a summary from a dictionary representation.

        Args:
            data: The dictionary containing the summary state.

        Returns:
            A new stream summary initialized with the given state.
        """

    @abc.abstractmethod
    def to_bytes(self) -> bytes:
        """
        Encode the summary in its compact binary format.

        Returns:
            The binary representation of the summary.
        """

    @classmethod
    @abc.abstractmethod
    def from_bytes(cls, data: bytes) -> "StreamSummary[T, R]":
        """
        Decode a summary from its compact binary format.

        Args:
            data: Bytes produced by to_bytes().

        Returns:
            A new stream summary.
        """

    def serialize(self, format: str = "json") -> Union[str, bytes]:
        """
        Serialize the summary to a string or bytes.

        Args:
            format: The serialization format ('json' or 'binary').

        Returns:
            The serialized representation of the summary.

        Raises:
            ValueError: If the format is not supported.
        """
        if format == "json":
            return json.dumps(self.to_dict())
        elif format == "binary":
            return self.to_bytes()
        else:
            raise ValueError(f"Unsupported serialization format: {format}")

    @classmethod
    def deserialize(
        cls, data: Union[str, bytes], format: str = "json"
    ) -> "StreamSummary[T, R]":
        """
        Deserialize a summary from a string or bytes.

        Args:
            data: The serialized summary.
            format: The serialization format ('json' or 'binary').

        Returns:
            A new stream summary.

        Raises:
            ValueError: If the format is not supported.
        """
        if format == "json":
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            return cls.from_dict(json.loads(data))
        elif format == "binary":
            if isinstance(data, str):
                raise ValueError("Binary deserialization requires bytes input")
            return cls.from_bytes(data)
        else:
            raise ValueError(f"Unsupported serialization format: {format}")

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this summary in bytes.

        Accounts for the base object size and the performance tracking
        buffer. Derived classes add their own data structures.

        Returns:
            Estimated memory usage in bytes.
        """
        size = sys.getsizeof(self)

        if hasattr(self, "__dict__"):
            size += sys.getsizeof(self.__dict__)

        if self._recent_update_times is not None:
            size += sys.getsizeof(self._recent_update_times)
            size += len(self._recent_update_times) * sys.getsizeof(0.0)

        return size

    def check_memory_limit(self) -> bool:
        """
        Check if the current memory usage exceeds the limit.

        Returns:
            True if the memory usage is within limits, False otherwise.
        """
        if self._memory_limit_bytes is None:
            return True

        return self.estimate_size() <= self._memory_limit_bytes

    def clear(self) -> None:
        """
        Reset the summary to its initial empty state.

        Derived classes must override this method to clear their specific
        data structures while calling super().clear() to reset base metrics.
        """
        self._items_processed = 0
        self._total_update_time = 0.0
        self._update_count = 0
        self._last_update_time = 0.0

        if self._recent_update_times is not None:
            self._recent_update_times.clear()

    def enable_performance_tracking(
        self, track_recent_updates: bool = True, max_history: int = 100
    ) -> None:
        """
        Enable detailed performance tracking for benchmarking.

        Performance tracking adds some overhead, so it should only be
        enabled when benchmarking or debugging performance issues.

        Args:
            track_recent_updates: Whether to time updates.
            max_history: Maximum number of recent updates to keep.
        """
        self._track_recent_updates = track_recent_updates
        self._max_update_history = max(1, max_history)

        if track_recent_updates:
            self._recent_update_times = deque(maxlen=self._max_update_history)

    def disable_performance_tracking(self) -> None:
        """Disable performance tracking to reduce overhead."""
        self._track_recent_updates = False
        self._recent_update_times = None

    def get_performance_stats(self) -> Dict[str, Any]:
        """
        Get performance statistics for this summary.

        Returns:
            A dictionary containing the item count, memory usage and, when
            tracking is enabled, update timings in nanoseconds.
        """
        stats: Dict[str, Any] = {
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }

        if self._update_count > 0:
            stats["avg_update_time_ns"] = (
                self._total_update_time / self._update_count
            ) * 1e9
            stats["last_update_time_ns"] = self._last_update_time * 1e9

        if self._recent_update_times:
            recent_times_ns: List[float] = [t * 1e9 for t in self._recent_update_times]
            stats["recent_update_times_ns"] = recent_times_ns
            stats["min_update_time_ns"] = min(recent_times_ns)
            stats["max_update_time_ns"] = max(recent_times_ns)

        return stats

    def get_stats(self) -> Dict[str, Any]:
        """
        Get detailed statistics about the current state of the summary.

        Derived classes should override this method to include their specific
        statistics while calling super().get_stats() to include base metrics.

        Returns:
            A dictionary containing various statistics about the summary state.
        """
        stats: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }

        if self._memory_limit_bytes is not None:
            stats["memory_limit_bytes"] = self._memory_limit_bytes
            stats["memory_usage_pct"] = (
                self.estimate_size() / self._memory_limit_bytes
            ) * 100

        if self._update_count > 0:
            stats["avg_update_time_ns"] = (
                self._total_update_time / self._update_count
            ) * 1e9

        error_bounds = self.error_bounds()
        if error_bounds:
            stats.update(error_bounds)

        return stats

    def error_bounds(self) -> Dict[str, Any]:
        """
        Get the theoretical error bounds for this summary.

        The base implementation returns an empty dictionary.

        Returns:
            A dictionary containing error bound information specific to the algorithm.
        """
        return {}

    @property
    def items_processed(self) -> int:
        """Get the total number of items processed by this summary."""
        return self._items_processed


class QuantileEstimator(StreamSummary[float, float], abc.ABC):
    """
    Abstract base class for quantile estimation algorithms over numeric streams.

    Examples include the T-Digest.
    """

    @abc.abstractmethod
    def quantile(self, q: float) -> float:
        """
        Estimate the value at rank fraction q.

        Args:
            q: Rank fraction between 0.0 and 1.0.

        Returns:
            The estimated value.
        """

    @abc.abstractmethod
    def cdf(self, x: float) -> float:
        """
        Estimate the fraction of observed weight at or below x.

        Args:
            x: The value to rank.

        Returns:
            A rank fraction between 0.0 and 1.0.
        """

    @abc.abstractmethod
    def count(self) -> float:
        """
        Get the total weight ingested.

        Returns:
            The sum of all weights added or merged into the estimator.
        """

    def query(self, q: float) -> float:
        """Alias of quantile() for the generic stream summary interface."""
        return self.quantile(q)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the current state of the quantile estimator.

        Returns:
            A dictionary with the total weight and, when the estimator holds
            data, its quartiles.
        """
        stats = super().get_stats()

        total = self.count()
        stats["total_weight"] = total
        if total > 0:
            stats["p25"] = self.quantile(0.25)
            stats["p50"] = self.quantile(0.5)
            stats["p75"] = self.quantile(0.75)

        return stats
