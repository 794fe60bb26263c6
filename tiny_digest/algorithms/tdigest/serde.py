"""
Binary encoding for T-Digest state.

Layout (little-endian, version 1):

    int16    magic (0x0c80)
    int32    encoding version
    uint8    scale function code
    float64  compression
    float64  buffer factor
    uint64   items processed
    float64  min (NaN when empty)
    float64  max (NaN when empty)
    uint32   number of centroids n
    n x (float64 mean, float64 weight)

The encoding is not guaranteed to stay stable across library versions; the
version field only lets a decoder reject data it does not understand.
"""

import math
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from tiny_digest.algorithms.tdigest.centroid import Centroid
from tiny_digest.core.errors import CorruptDataError

MAGIC = 0x0C80
ENCODING_VERSION = 1
MAX_CENTROIDS = 1 << 20

_HEADER = struct.Struct("<hiBddQddI")
_CENTROID = struct.Struct("<dd")


@dataclass
class DecodedDigest:
    """Validated contents of an encoded digest."""

    scale_code: int
    compression: float
    buffer_factor: float
    items_processed: int
    min_val: Optional[float]
    max_val: Optional[float]
    centroids: List[Centroid] = field(default_factory=list)


def encode(
    scale_code: int,
    compression: float,
    buffer_factor: float,
    items_processed: int,
    min_val: Optional[float],
    max_val: Optional[float],
    centroids: Sequence[Centroid],
) -> bytes:
    """
    Encode digest state.

    Args:
        scale_code: Binary code of the digest's scale function.
        compression: Compression parameter.
        buffer_factor: Unprocessed buffer capacity as a multiple of compression.
        items_processed: Number of observations added.
        min_val: Smallest observed value, or None when empty.
        max_val: Largest observed value, or None when empty.
        centroids: Processed centroids sorted by mean.

    Returns:
        The encoded bytes.
    """
    parts = [
        _HEADER.pack(
            MAGIC,
            ENCODING_VERSION,
            scale_code,
            compression,
            buffer_factor,
            items_processed,
            math.nan if min_val is None else min_val,
            math.nan if max_val is None else max_val,
            len(centroids),
        )
    ]
    parts.extend(_CENTROID.pack(c.mean, c.weight) for c in centroids)
    return b"".join(parts)


def decode(data: bytes) -> DecodedDigest:
    """
    Decode and validate digest state.

    Args:
        data: Bytes produced by encode().

    Returns:
        The decoded state.

    Raises:
        CorruptDataError: If the data is truncated, has trailing bytes, an
            unknown magic or version, or centroids that violate the digest
            invariants.
    """
    data = bytes(data)
    if len(data) < _HEADER.size:
        raise CorruptDataError(
            f"Truncated digest: need {_HEADER.size} header bytes, have {len(data)}"
        )

    (
        magic,
        version,
        scale_code,
        compression,
        buffer_factor,
        items_processed,
        min_val,
        max_val,
        n,
    ) = _HEADER.unpack_from(data, 0)

    if magic != MAGIC:
        raise CorruptDataError(f"Invalid header magic value 0x{magic & 0xFFFF:04x}")
    if version != ENCODING_VERSION:
        raise CorruptDataError(f"Invalid encoding version {version}")
    if n > MAX_CENTROIDS:
        raise CorruptDataError(f"Invalid centroid count {n}, cannot exceed {MAX_CENTROIDS}")

    expected = _HEADER.size + n * _CENTROID.size
    if len(data) < expected:
        raise CorruptDataError(
            f"Truncated digest: expected {expected} bytes, have {len(data)}"
        )
    if len(data) > expected:
        raise CorruptDataError(
            f"Found {len(data) - expected} unexpected bytes trailing the digest"
        )

    centroids: List[Centroid] = []
    offset = _HEADER.size
    for i in range(n):
        mean, weight = _CENTROID.unpack_from(data, offset)
        offset += _CENTROID.size

        if math.isnan(mean):
            raise CorruptDataError(f"Centroid {i} has a NaN mean")
        if math.isinf(mean):
            raise CorruptDataError(f"Centroid {i} has an infinite mean")
        if not math.isfinite(weight) or weight <= 0:
            raise CorruptDataError(f"Centroid {i} has invalid weight {weight}")
        if centroids and mean < centroids[-1].mean:
            raise CorruptDataError(
                f"Centroid {i} has lower mean ({mean}) than preceding centroid "
                f"{i - 1} ({centroids[-1].mean})"
            )
        centroids.append(Centroid(mean, weight))

    if centroids:
        if not (math.isfinite(min_val) and math.isfinite(max_val)):
            raise CorruptDataError("Non-empty digest has non-finite min/max values")
        decoded_min: Optional[float] = min_val
        decoded_max: Optional[float] = max_val
    else:
        decoded_min = None
        decoded_max = None

    return DecodedDigest(
        scale_code=scale_code,
        compression=compression,
        buffer_factor=buffer_factor,
        items_processed=items_processed,
        min_val=decoded_min,
        max_val=decoded_max,
        centroids=centroids,
    )
