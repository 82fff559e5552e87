"""Built-in minor-key progression graph.

The table below describes a short cadential progression in a minor key:
i - V7 - i/III loops that eventually escape through a dominant with the
seventh in the bass, a major chord in first inversion, an augmented sixth and
a cadential six-four before resolving on the final tonic (``cadenceMinor1``).
Only the final tonic has no outgoing transitions, so every walk ends there.

The graph is assembled on demand by the factory functions rather than at
import time, and :func:`default_markov` hands it to :class:`Markov`
explicitly.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .chords import ChordTemplate
from .lattice import Interval, Note
from .markov import Markov, RandomSource, Transition, TransitionEntry

__all__ = [
    "DEFAULT_ROOT",
    "DEFAULT_START",
    "default_templates",
    "default_transitions",
    "default_markov",
    "sweep_targets",
]

DEFAULT_ROOT = "D0"
DEFAULT_START = "minor1"

# name -> (voicing, bass, treble, quality)
_TEMPLATE_DATA = {
    "minor1": (["D0", "F0", "A1"], "D0", "D1", "min"),
    "dom3Over7": (["A0", "C#0", "E0", "G0"], "G-1", "C#1", "7/3"),
    "dom5": (["A0", "C#0", "E0", "G0"], "A0", "E1", "7"),
    "minor3": (["D0", "F0", "A1"], "D0", "F1", "min"),
    "major3": (["D0", "F#0", "A1"], "D0", "F#1", "maj"),
    "majorOver3": (["D0", "F#0", "A1"], "F#0", "D1", "maj/3"),
    "dim7Over5": (["F#-1", "A0", "C0", "Eb0"], "C0", "F#1", "dim7/5"),
    "aug6": (["Bb0", "D0", "F0", "G#0"], "Bb0", "G#1", "aug6"),
    "min5Over5": (["A0", "C0", "E0"], "E-1", "E1", "min/5"),
    "dom3": (["A0", "C#0", "E0", "G0"], "A0", "C#1", "7"),
    "cadenceMinor1": (["D0", "F0", "A1"], "D0", "D1", "min (END)"),
}

# source -> [(interval name, target, end)]
_TRANSITION_DATA = [
    ("minor1", [("fifth", "dom5", False)]),
    ("dom5", [("fourth", "minor3", False), ("fourth", "major3", False)]),
    ("minor3", [("min7", "dom5", False), ("unison", "dom3Over7", False)]),
    ("major3", [("maj7", "dom5", False)]),
    ("dom3Over7", [("fourth", "majorOver3", False)]),
    ("majorOver3", [("aug1", "dim7Over5", False), ("min3", "aug6", False)]),
    ("dim7Over5", [("min2", "majorOver3", False)]),
    ("aug6", [("maj3", "min5Over5", False)]),
    ("min5Over5", [("fifth", "dom3", False)]),
    ("dom3", [("fourth", "cadenceMinor1", True)]),
]


def default_templates() -> Dict[str, ChordTemplate]:
    """Return the built-in templates keyed by name, in table order."""

    return {
        name: ChordTemplate.from_notes(notes, root, treble, quality, name=name)
        for name, (notes, root, treble, quality) in _TEMPLATE_DATA.items()
    }


def default_transitions(templates: Dict[str, ChordTemplate]) -> List[TransitionEntry]:
    """Return the built-in transition table over ``templates``."""

    return [
        TransitionEntry(
            templates[source],
            tuple(
                Transition(Interval.named(degree), templates[target], end)
                for degree, target, end in targets
            ),
        )
        for source, targets in _TRANSITION_DATA
    ]


def default_markov(
    root: str = DEFAULT_ROOT,
    *,
    rng: Optional[RandomSource] = None,
    stop_at_end: bool = False,
) -> Markov:
    """Return a :class:`Markov` engine over the built-in table.

    Walks start from ``minor1`` applied to ``root``.
    """

    templates = default_templates()
    return Markov(
        Note.from_name(root),
        templates[DEFAULT_START],
        default_transitions(templates),
        rng=rng,
        stop_at_end=stop_at_end,
    )


def sweep_targets(low: int = -6, high: int = 6) -> List[Note]:
    """Return the notes ``(0, y)`` for ``low <= y <= high``.

    The default thirteen fifths cover all twelve pitch classes. The tritone
    above ``D`` shows up twice, spelled ``Ab`` and ``G#``.
    """

    return [Note(0, y) for y in range(low, high + 1)]
