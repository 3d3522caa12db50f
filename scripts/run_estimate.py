"""Helper script to run an estimate session from a checkout."""
from __future__ import annotations

import argparse

from mokuest.cli import main


def _parse_args(argv: list[str] | None = None) -> tuple[argparse.Namespace, list[str]]:
    parser = argparse.ArgumentParser(description="Run an estimate session")
    parser.add_argument(
        "--sample",
        action="store_true",
        help="Use the sample project (防火地域, 3 floors, 10.5m x 15m) and export a PDF.",
    )
    return parser.parse_known_args(argv)


if __name__ == "__main__":  # pragma: no cover
    args, remaining = _parse_args()
    forward_args: list[str] = list(remaining)
    if args.sample:
        forward_args.extend(
            ["--fire-prevention-area", "防火地域", "--floors", "3", "--span", "10.5", "--depth", "15", "--pdf"]
        )
    raise SystemExit(main(forward_args))
