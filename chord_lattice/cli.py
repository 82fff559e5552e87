"""Command line driver for the chord progression search.

For each target pitch class the driver runs :meth:`Markov.shortest_path` and
prints the shortest progression found. Without ``--target`` it sweeps the
thirteen notes ``Ab`` through ``G#`` along the line of fifths.

Example
-------
Running ``python -m chord_lattice --target D0 --seed 7 --iterations 2000``
prints::

    D
    Found path with length: 9
    ['Dmin D', 'A7 E', 'Dmin F', ...]

Transition tables can be supplied as JSON via ``--table`` (see
:mod:`chord_lattice.config`) or the ``CHORD_LATTICE_TABLE`` environment
variable. Invalid input is logged and the process exits with status ``1``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from .config import resolve_table
from .lattice import Note
from .markov import NumpyRandomSource, PythonRandomSource, RandomSource
from .progressions import sweep_targets

__all__ = ["build_parser", "run_cli", "main"]

_RNG_SOURCES = {
    "python": PythonRandomSource,
    "numpy": NumpyRandomSource,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Search a chord transition graph for the shortest progression "
            "ending on each target pitch class."
        )
    )
    parser.add_argument("--target", action="append", metavar="NOTE", help="Target note such as F#0; may be repeated. Defaults to a sweep over all pitch classes.")
    parser.add_argument("--root", type=str, help="Root note the start chord is built on (default: table root, D0).")
    parser.add_argument("--start", type=str, help="Name of the start template (default: table start).")
    parser.add_argument("--iterations", type=int, default=100000, help="Random walks per target (default: 100000).")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--rng", choices=sorted(_RNG_SOURCES), default="python", help="Random number generator backend (default: python).")
    parser.add_argument("--table", type=str, help="Path to a JSON transition table")
    parser.add_argument("--stop-at-end", action="store_true", help="Stop walks after transitions marked as cadence endings")
    parser.add_argument("--slash-bass", action="store_true", help="Show the bass note in chord symbols when it differs from the root")
    parser.add_argument("--list-templates", action="store_true", help="List the template names of the table and exit")
    return parser


def _make_rng(kind: str, seed: Optional[int]) -> RandomSource:
    if seed is not None:
        logging.info("Using %s random source with seed %d", kind, seed)
    return _RNG_SOURCES[kind](seed)


def _format_path(path: Sequence, slash_bass: bool) -> List[str]:
    return [chord.symbol(slash_bass=slash_bass) for chord in path]


def run_cli(argv: Optional[Sequence[str]] = None) -> None:
    """Parse ``argv`` and print the shortest progression for each target."""

    args = build_parser().parse_args(argv)

    # Validate numeric options before doing any work.
    if args.iterations < 0:
        logging.error("Iterations must be a non-negative integer.")
        sys.exit(1)

    # An explicit --table wins over CHORD_LATTICE_TABLE and the built-in table.
    try:
        table = resolve_table(Path(args.table).expanduser() if args.table else None)
    except ValueError as exc:
        logging.error("Could not load transition table: %s", exc)
        sys.exit(1)

    if args.list_templates:
        print("\n".join(table.templates))
        return

    # --start must name a template defined by the loaded table.
    start = table.start
    if args.start:
        if args.start not in table.templates:
            logging.error(f"Unknown start template: {args.start}")
            sys.exit(1)
        start = table.templates[args.start]

    # Note names are parsed up front so a typo fails before any search.
    try:
        root = Note.from_name(args.root) if args.root else table.root
        targets = [Note.from_name(t) for t in args.target] if args.target else sweep_targets()
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    # Command line overrides replace the table defaults before building.
    table = replace(table, root=root, start=start)
    markov = table.build_markov(
        rng=_make_rng(args.rng, args.seed), stop_at_end=args.stop_at_end
    )

    for target in targets:
        print(target.base_name())
        length, path = markov.shortest_path(target, args.iterations)
        if path is None:
            print("No path found")
        else:
            print("Found path with length:", length)
            print(_format_path(path, args.slash_bass))
        print()
    logging.info("Search complete for %d target(s).", len(targets))


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Console entry point configuring logging before running the CLI."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli(argv)
