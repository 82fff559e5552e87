"""Random-walk chord progression engine.

The engine walks a directed graph whose nodes are
:class:`~chord_lattice.chords.ChordTemplate` objects. Each
:class:`TransitionEntry` lists the equally likely successors of one template
together with the interval by which the chord root moves. A walk begins with
the start template applied to the root note and keeps stepping until the
current template has no outgoing entry.

:meth:`Markov.shortest_path` estimates the shortest walk ending on a given
pitch class by running many independent walks and keeping the shortest hit.
This is a Monte Carlo search. With a small iteration budget it may miss the
true minimum or find nothing at all.

Walk state is an immutable :class:`WalkState` rebuilt for every trial, and all
randomness flows through an injected :class:`RandomSource` so walks can be
reproduced in tests.

Example
-------
>>> from chord_lattice.progressions import default_markov
>>> from chord_lattice.lattice import Note
>>> markov = default_markov(rng=PythonRandomSource(seed=1))
>>> result = markov.shortest_path(Note.from_name("D0"), iterations=200)
>>> result.length
9
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import NamedTuple, Optional, Protocol, Sequence, Tuple, TypeVar

import numpy as np

from .chords import Chord, ChordTemplate
from .lattice import Interval, Note

__all__ = [
    "RandomSource",
    "PythonRandomSource",
    "NumpyRandomSource",
    "Transition",
    "TransitionEntry",
    "WalkState",
    "ShortestPath",
    "Markov",
]

T = TypeVar("T")


class RandomSource(Protocol):
    """Interface for the uniform choice used when sampling successors."""

    def choice(self, seq: Sequence[T]) -> T:
        """Return one element of the non-empty ``seq`` uniformly at random."""


class PythonRandomSource:
    """:class:`RandomSource` backed by a private :class:`random.Random`."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)


class NumpyRandomSource:
    """:class:`RandomSource` backed by :func:`numpy.random.default_rng`."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = np.random.default_rng(seed)

    def choice(self, seq: Sequence[T]) -> T:
        # ``Generator.choice`` would coerce the dataclass items into an
        # object array, so draw an index instead.
        return seq[int(self._rng.integers(len(seq)))]


@dataclass(frozen=True)
class Transition:
    """Edge to ``chord`` with the root moved by ``degree``.

    ``end`` marks cadential edges. The engine ignores it unless created with
    ``stop_at_end=True``.
    """

    degree: Interval
    chord: ChordTemplate
    end: bool = False


@dataclass(frozen=True)
class TransitionEntry:
    """All outgoing edges of ``source``."""

    source: ChordTemplate
    targets: Tuple[Transition, ...]


@dataclass(frozen=True)
class WalkState:
    """Snapshot of a walk: the current chord and the path leading to it."""

    chord: Chord
    path: Tuple[Chord, ...]
    finished: bool = False

    def advance(self, chord: Chord, *, finished: bool = False) -> "WalkState":
        return WalkState(chord, self.path + (chord,), finished)


class ShortestPath(NamedTuple):
    """Result of :meth:`Markov.shortest_path`; both fields are ``None`` on a miss."""

    length: Optional[int]
    path: Optional[Tuple[Chord, ...]]


class Markov:
    """Random walker over a chord template transition table."""

    def __init__(
        self,
        root_note: Note,
        start: ChordTemplate,
        transitions: Sequence[TransitionEntry],
        *,
        rng: Optional[RandomSource] = None,
        stop_at_end: bool = False,
    ) -> None:
        """Create a new engine.

        Parameters
        ----------
        root_note:
            Note the start template is applied to at the beginning of every
            walk.
        start:
            Template of the first chord.
        transitions:
            Ordered transition table. When several entries match a chord the
            first one wins.
        rng:
            Source of randomness. Defaults to an unseeded
            :class:`PythonRandomSource`.
        stop_at_end:
            Stop a walk right after it takes a transition flagged ``end``.
            When ``False`` the flag is ignored and walks only end on templates
            without outgoing transitions.
        """

        self.root_note = root_note
        self.start = start
        self.transitions = tuple(transitions)
        self.rng = rng if rng is not None else PythonRandomSource()
        self.stop_at_end = stop_at_end

    def initial_state(self) -> WalkState:
        chord = self.start.apply_to_note(self.root_note)
        return WalkState(chord, (chord,))

    def possibilities(self, state: WalkState) -> Tuple[Transition, ...]:
        """Return the successors of ``state.chord`` or ``()`` at a dead end."""

        # Matching is by template shape, so the first equal source wins.
        for entry in self.transitions:
            if state.chord.matches(entry.source):
                return entry.targets
        return ()

    def sample(self, state: WalkState) -> Optional[Transition]:
        """Pick one successor uniformly, or ``None`` when there is none."""

        options = self.possibilities(state)
        if not options:
            return None
        return self.rng.choice(options)

    def next_random(self, state: WalkState) -> Optional[WalkState]:
        """Take one random step from ``state``.

        Returns ``None`` when the walk cannot continue.
        """

        # A walk that took an end edge under stop_at_end never moves again.
        if state.finished:
            return None
        step = self.sample(state)
        if step is None:
            return None
        # The degree moves the root; the new template is built on top of it.
        new_root = state.chord.root + step.degree
        chord = step.chord.apply_to_note(new_root)
        return state.advance(chord, finished=self.stop_at_end and step.end)

    def walk(self, state: Optional[WalkState] = None) -> WalkState:
        """Step from ``state`` (or a fresh start) until the walk terminates."""

        current = state if state is not None else self.initial_state()
        while True:
            following = self.next_random(current)
            if following is None:
                return current
            current = following

    def shortest_path(self, note: Note, iterations: int = 100000) -> ShortestPath:
        """Estimate the shortest walk whose last root shares ``note``'s pitch class.

        Parameters
        ----------
        note:
            Target note. Only its pitch class matters.
        iterations:
            Number of independent walks to run.

        Returns
        -------
        ShortestPath
            ``(length, path)`` of the shortest hit, or ``(None, None)`` when no
            walk ended on the target.

        Raises
        ------
        ValueError
            If ``iterations`` is negative.
        """

        if iterations < 0:
            raise ValueError("iterations must be non-negative")

        best_length: Optional[int] = None
        best_path: Optional[Tuple[Chord, ...]] = None
        for _ in range(iterations):
            final = self.walk()
            # Only the final root counts, compared by pitch class.
            if not final.chord.root.equivalent_note(note):
                continue
            # Ties keep the earlier path.
            if best_length is None or len(final.path) < best_length:
                best_length = len(final.path)
                best_path = final.path
                logging.debug("New shortest path to %s: %d chords", note.base_name(), best_length)

        if best_length is None:
            logging.info(
                "No path to %s found in %d iterations", note.base_name(), iterations
            )
        return ShortestPath(best_length, best_path)
