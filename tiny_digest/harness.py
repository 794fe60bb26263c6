#!/usr/bin/env python3
"""tiny-digest reference harness.

Feeds data files into a T-Digest and writes the estimated quantiles, or
compares two result files produced by different implementations.

Usage:
    tiny-digest-harness run small.dat uniform.dat normal.dat
    tiny-digest-harness compare normal.dat.py.quantiles normal.dat.go.quantiles
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from tiny_digest.algorithms.tdigest import TDigest
from tiny_digest.core.errors import SketchError

logger = logging.getLogger(__name__)

QUANTILES = [0.1, 0.2, 0.5, 0.75, 0.9, 0.99, 0.999]
DEFAULT_COMPRESSION = 1000
DEFAULT_SUFFIX = ".py.quantiles"
DEFAULT_EPSILON = 1e-6


class HarnessError(Exception):
    """Raised when result files cannot be produced or disagree."""


def load_data(path: Path) -> List[float]:
    """Read whitespace-separated decimal numbers from a file."""
    values = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            for token in line.split():
                try:
                    values.append(float(token))
                except ValueError:
                    raise HarnessError(
                        f"{path}:{line_number}: not a number: {token!r}"
                    ) from None
    return values


def compute_quantiles(
    data: Sequence[float],
    quantiles: Sequence[float] = QUANTILES,
    compression: float = DEFAULT_COMPRESSION,
) -> List[float]:
    """Feed every value with weight 1 and query each quantile in order."""
    digest = TDigest(compression=compression)
    for x in data:
        digest.add(x)
    return [digest.quantile(q) for q in quantiles]


def format_results(results: Sequence[float], quantiles: Sequence[float]) -> str:
    """Render `<value> <q>` lines in full round-trip precision."""
    return "".join(f"{value!r} {q!r}\n" for value, q in zip(results, quantiles))


def write_results(
    path: Path, results: Sequence[float], quantiles: Sequence[float] = QUANTILES
) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(format_results(results, quantiles))


def load_quantiles(path: Path) -> List[float]:
    """Read the value column of a result file."""
    values = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            parts = line.split()
            if not parts:
                continue
            try:
                values.append(float(parts[0]))
            except ValueError:
                raise HarnessError(
                    f"{path}:{line_number}: not a number: {parts[0]!r}"
                ) from None
    return values


def compare_results(
    left: Sequence[float], right: Sequence[float], epsilon: float = DEFAULT_EPSILON
) -> None:
    """
    Check two result columns agree within an absolute tolerance.

    Raises:
        HarnessError: If the lengths differ or any pair differs by more than epsilon.
    """
    if len(left) != len(right):
        raise HarnessError(
            f"Differing number of quantiles: {len(left)} != {len(right)}"
        )
    for i, (a, b) in enumerate(zip(left, right)):
        if abs(a - b) > epsilon:
            raise HarnessError(f"Differing quantile result at line {i + 1}: {a!r} vs {b!r}")


def cmd_run(args: argparse.Namespace) -> int:
    """Compute quantiles for each data file."""
    for name in args.files:
        path = Path(name)
        data = load_data(path)
        logger.info("Loaded %d values from %s", len(data), path)

        results = compute_quantiles(data, compression=args.compression)
        output = path.with_name(path.name + args.suffix)
        write_results(output, results)
        logger.info("Wrote %d quantiles to %s", len(results), output)
    return 0


def cmd_compare(args: argparse.Namespace) -> int:
    """Compare two result files."""
    left = load_quantiles(Path(args.left))
    right = load_quantiles(Path(args.right))
    compare_results(left, right, epsilon=args.epsilon)
    logger.info("%s and %s agree within %g", args.left, args.right, args.epsilon)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tiny-digest-harness",
        description="Reference harness for the tiny-digest quantile sketch",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    run_parser = subparsers.add_parser("run", help="Compute quantiles for data files")
    run_parser.add_argument("files", nargs="+", help="Whitespace-separated data files")
    run_parser.add_argument(
        "--compression",
        type=float,
        default=DEFAULT_COMPRESSION,
        help=f"Digest compression (default {DEFAULT_COMPRESSION})",
    )
    run_parser.add_argument(
        "--suffix",
        default=DEFAULT_SUFFIX,
        help=f"Suffix appended to each data file name (default {DEFAULT_SUFFIX})",
    )
    run_parser.set_defaults(func=cmd_run)

    compare_parser = subparsers.add_parser("compare", help="Compare two result files")
    compare_parser.add_argument("left", help="First result file")
    compare_parser.add_argument("right", help="Second result file")
    compare_parser.add_argument(
        "--epsilon",
        type=float,
        default=DEFAULT_EPSILON,
        help=f"Maximum absolute difference (default {DEFAULT_EPSILON})",
    )
    compare_parser.set_defaults(func=cmd_compare)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except (HarnessError, SketchError, OSError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
