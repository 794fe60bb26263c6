"""
Basic example of using tiny-digest for stream processing.

This example demonstrates how to use the T-Digest to track latency
percentiles of a data stream, combine digests built in parallel, and ship
them between processes.
"""

import io
import random
import time

from tiny_digest import TDigest
from tiny_digest.algorithms.tdigest import export_clickhouse


def simulated_latency(rng):
    """Mostly fast requests with an occasional slow one."""
    if rng.random() < 0.02:
        return rng.uniform(200.0, 2000.0)
    return rng.lognormvariate(3.0, 0.4)


def demonstrate_basic_digest():
    """Demonstrate percentile tracking on a simulated latency stream."""
    print("\n=== Basic T-Digest Demo ===")

    rng = random.Random(42)
    digest = TDigest(compression=100)

    print("Processing 100000 request latencies...")
    exact = []
    for i in range(100000):
        latency = simulated_latency(rng)
        digest.update(latency)
        exact.append(latency)

        if i % 20000 == 0:
            print(f"  Processed {i} items")

    exact.sort()
    print("\nPercentile   estimate      exact")
    for q in [0.5, 0.9, 0.99, 0.999]:
        truth = exact[int(q * len(exact))]
        print(f"  p{q * 100:<8g} {digest.quantile(q):9.2f}  {truth:9.2f}")

    print(f"\nFraction of requests under 50ms: {digest.cdf(50.0):.4f}")
    print(f"Centroids kept: {digest.centroid_count()}")
    print(f"Approximate memory usage: {digest.estimate_size()} bytes")


def demonstrate_merging():
    """Demonstrate building digests per worker and merging them."""
    print("\n=== Merge Demo ===")

    workers = []
    for worker_id in range(4):
        rng = random.Random(worker_id)
        digest = TDigest(compression=100)
        start_time = time.time()
        for _ in range(25000):
            digest.update(simulated_latency(rng))
        elapsed = time.time() - start_time
        print(f"  Worker {worker_id}: 25000 items in {elapsed:.3f} seconds")
        workers.append(digest)

    combined = TDigest(compression=100)
    for digest in workers:
        combined.merge(digest)

    print(f"\nCombined weight: {combined.count():g}")
    print(f"Combined p99: {combined.quantile(0.99):.2f}")


def demonstrate_serialization():
    """Demonstrate the JSON, binary and ClickHouse encodings."""
    print("\n=== Serialization Demo ===")

    rng = random.Random(7)
    digest = TDigest(compression=200, scale="k2")
    for _ in range(50000):
        digest.update(rng.gauss(100.0, 15.0))

    as_json = digest.serialize(format="json")
    as_binary = digest.serialize(format="binary")
    print(f"JSON size: {len(as_json)} bytes")
    print(f"Binary size: {len(as_binary)} bytes")

    restored = TDigest.deserialize(as_binary, format="binary")
    print(f"Restored median: {restored.quantile(0.5):.3f}")

    buf = io.BytesIO()
    written = export_clickhouse(digest, buf)
    print(f"ClickHouse state: {written} bytes")


if __name__ == "__main__":
    demonstrate_basic_digest()
    demonstrate_merging()
    demonstrate_serialization()
