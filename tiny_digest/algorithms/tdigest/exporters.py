"""
Exporters writing T-Digest state in formats understood by other systems.
"""

import struct
from typing import BinaryIO

from tiny_digest.algorithms.tdigest.digest import TDigest

_CLICKHOUSE_CENTROID = struct.Struct("<ff")


def encode_uvarint(value: int) -> bytes:
    """Encode a non-negative integer as an unsigned LEB128 varint."""
    if value < 0:
        raise ValueError("Varint value must be non-negative")
    out = bytearray()
    while True:
        c = value & 0x7F
        value >>= 7
        if value:
            out.append(c | 0x80)
        else:
            out.append(c)
            return bytes(out)


def export_clickhouse(digest: TDigest, stream: BinaryIO) -> int:
    """
    Write the digest as a ClickHouse quantileTDigest aggregate state.

    The state is the centroid count as an unsigned varint followed by each
    centroid's mean and weight as little-endian float32, lowest mean first.
    Buffered observations are compressed first.

    Args:
        digest: The digest to export.
        stream: Binary stream receiving the state.

    Returns:
        The number of bytes written.
    """
    centroids = digest.get_centroids()

    written = stream.write(encode_uvarint(len(centroids)))
    for mean, weight in centroids:
        written += stream.write(_CLICKHOUSE_CENTROID.pack(mean, weight))
    return written
