"""Chord Lattice library.

Pitches live on a two dimensional integer lattice so that notes and intervals
can be named, compared and transposed with exact integer arithmetic while
keeping their enharmonic spelling. A small Markov engine walks a graph of
chord templates on top of that model to generate progressions and to search
for the shortest progression ending on a chosen pitch class.

Typical use::

    from chord_lattice import Note, PythonRandomSource, default_markov

    markov = default_markov(rng=PythonRandomSource(seed=3))
    length, path = markov.shortest_path(Note.from_name("D0"), iterations=1000)
    print(length, [str(chord) for chord in path])

Modules
-------
``lattice``
    :class:`Note`, :class:`Interval` and the ``symmod`` primitive.
``chords``
    :class:`ChordTemplate` and :class:`Chord`.
``markov``
    The random-walk engine and pluggable random sources.
``progressions``
    The built-in minor-key transition graph.
``config``
    JSON transition table loading.
``cli``
    Console driver used by ``python -m chord_lattice``.
"""

__version__ = "0.1.0"

from .lattice import (  # noqa: F401
    INTERVAL_NAMES,
    Interval,
    InvalidAccidental,
    InvalidNoteName,
    Note,
    NoteNameError,
    symmod,
)
from .chords import Chord, ChordTemplate  # noqa: F401
from .markov import (  # noqa: F401
    Markov,
    NumpyRandomSource,
    PythonRandomSource,
    RandomSource,
    ShortestPath,
    Transition,
    TransitionEntry,
    WalkState,
)
from .progressions import (  # noqa: F401
    default_markov,
    default_templates,
    default_transitions,
    sweep_targets,
)
from .config import TableConfig, TableConfigError, load_table, resolve_table  # noqa: F401


def main() -> None:
    """Entry point used by ``python -m chord_lattice``."""

    from .cli import main as _main

    _main()
