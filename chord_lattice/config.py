"""Loading transition tables from JSON files.

A table file names its templates once and refers to them by name in the
transition list::

    {
      "root": "D0",
      "start": "minor1",
      "templates": {
        "minor1": {"notes": ["D0", "F0", "A1"], "root": "D0",
                   "treble": "D1", "quality": "min"},
        "dom5": {"notes": ["A0", "C#0", "E0", "G0"], "root": "A0",
                 "treble": "E1", "quality": "7"}
      },
      "transitions": [
        {"from": "minor1", "to": [{"degree": "fifth", "chord": "dom5"}]}
      ]
    }

A ``degree`` is either one of the named intervals in
:data:`~chord_lattice.lattice.INTERVAL_NAMES` or a ``[from, to]`` pair of note
names. ``root`` and ``start`` are optional and default to ``D0`` and the first
template.

The environment variable ``CHORD_LATTICE_TABLE`` points at a table used when
no explicit path is supplied. Without it the built-in table from
:mod:`chord_lattice.progressions` is used.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .chords import ChordTemplate
from .lattice import Interval, Note
from .markov import Markov, RandomSource, Transition, TransitionEntry
from .progressions import (
    DEFAULT_ROOT,
    DEFAULT_START,
    default_templates,
    default_transitions,
)

__all__ = [
    "DEFAULT_TABLE_FILE",
    "TableConfig",
    "TableConfigError",
    "load_table",
    "parse_table",
    "resolve_table",
]

env_path = os.environ.get("CHORD_LATTICE_TABLE")
DEFAULT_TABLE_FILE: Optional[Path] = Path(env_path).expanduser() if env_path else None


class TableConfigError(ValueError):
    """Raised when a transition table file is missing or malformed."""


@dataclass(frozen=True)
class TableConfig:
    """Everything needed to build a :class:`Markov` engine."""

    root: Note
    start: ChordTemplate
    templates: Dict[str, ChordTemplate]
    transitions: Tuple[TransitionEntry, ...]

    def build_markov(
        self, *, rng: Optional[RandomSource] = None, stop_at_end: bool = False
    ) -> Markov:
        return Markov(
            self.root,
            self.start,
            self.transitions,
            rng=rng,
            stop_at_end=stop_at_end,
        )


def _fail(message: str) -> TableConfigError:
    logging.error("Invalid transition table: %s", message)
    return TableConfigError(message)


def _parse_degree(raw: Any) -> Interval:
    if isinstance(raw, str):
        try:
            return Interval.named(raw)
        except ValueError as exc:
            raise _fail(str(exc)) from exc
    if isinstance(raw, list) and len(raw) == 2 and all(isinstance(n, str) for n in raw):
        try:
            return Interval.between(raw[0], raw[1])
        except ValueError as exc:
            raise _fail(f"Invalid degree {raw}: {exc}") from exc
    raise _fail(f"Degree must be an interval name or a pair of note names, got {raw!r}")


def _parse_template(name: str, raw: Any) -> ChordTemplate:
    if not isinstance(raw, dict):
        raise _fail(f"Template '{name}' must be an object")
    try:
        notes = raw["notes"]
        root = raw["root"]
        treble = raw["treble"]
        quality = raw["quality"]
    except KeyError as exc:
        raise _fail(f"Template '{name}' is missing {exc.args[0]!r}") from exc
    if not isinstance(notes, list) or not notes:
        raise _fail(f"Template '{name}' needs a non-empty 'notes' list")
    try:
        return ChordTemplate.from_notes(notes, root, treble, str(quality), name=name)
    except (TypeError, ValueError) as exc:
        raise _fail(f"Template '{name}': {exc}") from exc


def _lookup(templates: Dict[str, ChordTemplate], name: Any) -> ChordTemplate:
    try:
        return templates[name]
    except (KeyError, TypeError):
        raise _fail(f"Unknown template: {name!r}") from None


def parse_table(data: Any) -> TableConfig:
    """Validate decoded JSON ``data`` and build a :class:`TableConfig`.

    Raises
    ------
    TableConfigError
        If any part of ``data`` does not follow the table format.
    """

    if not isinstance(data, dict):
        raise _fail("Top level must be an object")

    # Templates come first so transitions can refer to them by name.
    raw_templates = data.get("templates")
    if not isinstance(raw_templates, dict) or not raw_templates:
        raise _fail("'templates' must be a non-empty object")
    templates = {name: _parse_template(name, raw) for name, raw in raw_templates.items()}

    # Each entry maps a source template to equally likely targets.
    raw_transitions = data.get("transitions", [])
    if not isinstance(raw_transitions, list):
        raise _fail("'transitions' must be a list")
    entries: List[TransitionEntry] = []
    for raw in raw_transitions:
        if not isinstance(raw, dict) or not isinstance(raw.get("to", []), list):
            raise _fail(f"Malformed transition entry: {raw!r}")
        targets = []
        for edge in raw.get("to", []):
            if not isinstance(edge, dict):
                raise _fail(f"Malformed transition target: {edge!r}")
            # JSON strings like "false" are truthy, so only real booleans pass.
            end = edge.get("end", False)
            if not isinstance(end, bool):
                raise _fail(f"'end' must be a boolean, got {end!r}")
            targets.append(
                Transition(
                    _parse_degree(edge.get("degree")),
                    _lookup(templates, edge.get("chord")),
                    end,
                )
            )
        entries.append(TransitionEntry(_lookup(templates, raw.get("from")), tuple(targets)))

    # Root and start are optional and fall back to D0 and the first template.
    try:
        root = Note.from_name(data.get("root", DEFAULT_ROOT))
    except (TypeError, ValueError) as exc:
        raise _fail(f"Invalid root note: {exc}") from exc
    start = _lookup(templates, data.get("start", next(iter(templates))))
    return TableConfig(root, start, templates, tuple(entries))


def load_table(path: Path) -> TableConfig:
    """Load and validate the transition table stored at ``path``.

    Raises
    ------
    TableConfigError
        If the file cannot be read, is not valid JSON or does not follow the
        table format.
    """

    path = Path(path)
    if not path.is_file():
        raise _fail(f"Table file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise _fail(f"Could not read {path}: {exc}") from exc
    logging.info("Loaded transition table from %s", path)
    return parse_table(data)


def resolve_table(path: Optional[Path] = None) -> TableConfig:
    """Return the table at ``path``, ``DEFAULT_TABLE_FILE`` or the built-in one.

    An explicit ``path`` must exist. The environment default is only used when
    the file is present so a stale variable does not break the CLI.
    """

    if path is not None:
        return load_table(path)
    if DEFAULT_TABLE_FILE is not None and DEFAULT_TABLE_FILE.is_file():
        return load_table(DEFAULT_TABLE_FILE)
    templates = default_templates()
    return TableConfig(
        Note.from_name(DEFAULT_ROOT),
        templates[DEFAULT_START],
        templates,
        tuple(default_transitions(templates)),
    )
