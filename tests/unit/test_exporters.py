"""
Unit tests for the ClickHouse exporter.
"""

import io
import random
import struct
import unittest

from tiny_digest.algorithms.tdigest import TDigest, export_clickhouse
from tiny_digest.algorithms.tdigest.exporters import encode_uvarint


class TestUvarint(unittest.TestCase):
    def test_small_values(self):
        self.assertEqual(encode_uvarint(0), b"\x00")
        self.assertEqual(encode_uvarint(1), b"\x01")
        self.assertEqual(encode_uvarint(127), b"\x7f")

    def test_multi_byte(self):
        self.assertEqual(encode_uvarint(128), b"\x80\x01")
        self.assertEqual(encode_uvarint(300), b"\xac\x02")
        self.assertEqual(encode_uvarint(1 << 20), b"\x80\x80\x40")

    def test_negative(self):
        with self.assertRaises(ValueError):
            encode_uvarint(-1)


class TestExportClickHouse(unittest.TestCase):
    """Tests for the quantileTDigest state exporter."""

    def export(self, digest):
        buf = io.BytesIO()
        written = export_clickhouse(digest, buf)
        data = buf.getvalue()
        self.assertEqual(written, len(data))
        return data

    def test_empty(self):
        self.assertEqual(self.export(TDigest()), b"\x00")

    def test_single_value(self):
        td = TDigest()
        td.add(1.0)
        self.assertEqual(
            list(self.export(td)), [1, 0, 0, 128, 63, 0, 0, 128, 63]
        )

    def test_singletons_in_order(self):
        td = TDigest(compression=1000)
        for i in reversed(range(20)):
            td.add(float(i))

        data = self.export(td)

        expected = b"\x14" + b"".join(struct.pack("<ff", i, 1) for i in range(20))
        self.assertEqual(data, expected)

    def test_matches_centroids(self):
        rng = random.Random(23)
        td = TDigest(compression=100)
        for _ in range(5000):
            td.add(rng.uniform(0, 1000))

        data = self.export(td)
        centroids = td.get_centroids()

        count = len(centroids)
        header = encode_uvarint(count)
        self.assertTrue(data.startswith(header))
        self.assertEqual(len(data), len(header) + 8 * count)

        pairs = list(struct.iter_unpack("<ff", data[len(header):]))
        total = sum(w for _, w in pairs)
        self.assertAlmostEqual(total, 5000.0, delta=0.01)
        for (mean, weight), (exported_mean, exported_weight) in zip(centroids, pairs):
            self.assertAlmostEqual(exported_mean, mean, delta=abs(mean) * 1e-6)
            self.assertEqual(exported_weight, weight)


if __name__ == "__main__":
    unittest.main()
