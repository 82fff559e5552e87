"""Lattice representation of pitches and intervals.

Every note is a point ``(x, y)`` on a two dimensional integer lattice. The
``y`` axis walks the line of fifths centred on ``D`` (``F=-3 ... B=3``) while
``x`` absorbs the octave, so both coordinates together identify a note's
letter, accidental and octave exactly. Octave numbers change between ``G``
and ``A``: ``A1`` is the fifth above ``D0``.

Intervals are plain displacements between two lattice points. Transposition
is integer addition and enharmonic spelling survives it (``C#`` and ``Db``
land on different points).

Example
-------
>>> from chord_lattice.lattice import Interval, Note
>>> d = Note.from_name("D0")
>>> str(d + Interval.fifth())
'A1'
>>> Note.from_name("C#4") == Note.from_name("Db4")
False
>>> Note.from_name("C#4").equivalent_note(Note.from_name("Db4"))
True
"""

# Modification Summary
# ---------------------
# * ``Note.from_name`` raises ``InvalidNoteName`` for empty names and for a
#   missing or malformed octave instead of producing a note with an undefined
#   octave.
# * Only ASCII letters and digits are accepted in note names.
# * Named intervals can be looked up by string through ``Interval.named`` so
#   JSON transition tables can reference them.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Tuple

__all__ = [
    "symmod",
    "NoteNameError",
    "InvalidNoteName",
    "InvalidAccidental",
    "Interval",
    "Note",
    "INTERVAL_NAMES",
]

# Letters in lattice order. Index ``n + 3`` yields the letter for offset ``n``
# because ``D`` sits at offset zero.
_LETTERS = "ABCDEFG"
_OCTAVE_RE = re.compile(r"-?[0-9]+")


class NoteNameError(ValueError):
    """Base class for errors raised while parsing a note name."""


class InvalidNoteName(NoteNameError):
    """Raised when a note name has no valid letter or octave."""


class InvalidAccidental(NoteNameError):
    """Raised when a character between letter and octave is not ``#`` or ``b``."""


def symmod(a: int, b: int) -> int:
    """Return ``a`` modulo ``b`` in a range centred on zero.

    For odd ``b`` the result lies in ``[-(b // 2), b // 2]``. For even ``b``
    the half-way residue maps to ``-b / 2``, so the range is
    ``[-b / 2, b / 2 - 1]``.

    Parameters
    ----------
    a:
        Value to reduce.
    b:
        Positive modulus. Both odd and even values are supported.

    Examples
    --------
    >>> symmod(4, 7)
    -3
    >>> symmod(5, 12)
    5
    >>> symmod(6, 12)
    -6
    >>> symmod(-8, 12)
    4
    """

    if a < 0:
        # Smallest multiple of ``b`` lifting ``a`` to a non-negative value,
        # i.e. ``ceil(-a / b) * b``.
        a += -(a // b) * b
    half = b // 2
    return (a + half) % b - half


def _round_div(p: int, q: int) -> int:
    """Return ``p / q`` rounded half up using integer arithmetic only."""

    return (2 * p + q) // (2 * q)


@dataclass(frozen=True, eq=False)
class Interval:
    """Displacement between two lattice points.

    Equality and hashing only consider ``y``. Two spellings of the same shape
    that differ solely in ``x`` therefore compare equal, which is what
    template matching relies on.
    """

    x: int
    y: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Interval):
            return NotImplemented
        return self.y == other.y

    def __hash__(self) -> int:
        return hash(self.y)

    @staticmethod
    def between(name1: str, name2: str) -> "Interval":
        """Return the interval leading from ``name1`` to ``name2``."""

        return Note.from_name(name2) - Note.from_name(name1)

    @staticmethod
    def unison() -> "Interval":
        return Interval.between("C0", "C0")

    @staticmethod
    def aug1() -> "Interval":
        return Interval.between("C0", "C#0")

    @staticmethod
    def min2() -> "Interval":
        return Interval.between("C0", "Db0")

    @staticmethod
    def min3() -> "Interval":
        return Interval.between("C0", "Eb0")

    @staticmethod
    def maj3() -> "Interval":
        return Interval.between("C0", "E0")

    @staticmethod
    def fourth() -> "Interval":
        return Interval.between("C0", "F0")

    @staticmethod
    def fifth() -> "Interval":
        return Interval.between("C0", "G0")

    @staticmethod
    def min7() -> "Interval":
        return Interval.between("C0", "Bb1")

    @staticmethod
    def maj7() -> "Interval":
        return Interval.between("C0", "B1")

    @staticmethod
    def named(name: str) -> "Interval":
        """Return the named interval constant ``name``.

        Raises
        ------
        ValueError
            If ``name`` is not one of :data:`INTERVAL_NAMES`.
        """

        try:
            first, second = INTERVAL_NAMES[name]
        except KeyError:
            raise ValueError(f"Unknown interval name: {name}") from None
        return Interval.between(first, second)


# Note-name pairs behind each named interval, all anchored at ``C0``.
INTERVAL_NAMES: Dict[str, Tuple[str, str]] = {
    "unison": ("C0", "C0"),
    "aug1": ("C0", "C#0"),
    "min2": ("C0", "Db0"),
    "min3": ("C0", "Eb0"),
    "maj3": ("C0", "E0"),
    "fourth": ("C0", "F0"),
    "fifth": ("C0", "G0"),
    "min7": ("C0", "Bb1"),
    "maj7": ("C0", "B1"),
}


@dataclass(frozen=True)
class Note:
    """A pitch located at lattice point ``(x, y)``.

    The derived attributes ``n`` (letter offset from ``D``), ``a`` (signed
    accidental count) and ``o`` (octave) are computed from the coordinates on
    demand.
    """

    x: int
    y: int

    @property
    def n(self) -> int:
        # Inverse of the y encoding: 11 is the inverse of 2 modulo 7.
        return symmod(11 * self.y, 7)

    @property
    def a(self) -> int:
        return _round_div(self.y, 7)

    @property
    def o(self) -> int:
        return _round_div(11 * self.y, 7) + self.x

    @property
    def nao(self) -> Tuple[int, int, int]:
        """Return the ``(n, a, o)`` triple describing this note."""

        return self.n, self.a, self.o

    @staticmethod
    def derive_xy(n: int, a: int, o: int) -> Tuple[int, int]:
        """Encode letter offset ``n``, accidentals ``a`` and octave ``o``."""

        # A sharp adds seven fifths to y and takes eleven from x to keep the
        # octave.
        x = symmod(-3 * n, 11) - 11 * a + o
        y = symmod(2 * n, 7) + 7 * a
        return x, y

    @classmethod
    def from_nao(cls, n: int, a: int, o: int) -> "Note":
        return cls(*cls.derive_xy(n, a, o))

    @classmethod
    def from_interval(cls, base: "Note", interval: Interval) -> "Note":
        """Return ``base`` transposed by ``interval``."""

        return cls(base.x + interval.x, base.y + interval.y)

    @staticmethod
    def get_interval(note1: "Note", note2: "Note") -> Interval:
        """Return the interval leading from ``note1`` to ``note2``."""

        return Interval(note2.x - note1.x, note2.y - note1.y)

    @staticmethod
    def from_name(name: str) -> "Note":
        """Parse a note name such as ``C#4``, ``Bb-1`` or ``Fbb2``.

        Parameters
        ----------
        name:
            Letter ``A``-``G`` (either case), any number of ``#`` or ``b``
            accidentals and a signed integer octave.

        Returns
        -------
        Note
            Lattice point for ``name``.

        Raises
        ------
        InvalidNoteName
            If the letter is not ``A``-``G`` or the octave is missing.
        InvalidAccidental
            If an accidental character is neither ``#`` nor ``b``.
        """

        return _parse_name(name)

    def equivalent_note(self, other: "Note") -> bool:
        """Return ``True`` when both notes share a pitch class.

        Octave and spelling are ignored; only the distance along the line of
        fifths matters.
        """

        return symmod(self.y - other.y, 12) == 0

    def base_name(self) -> str:
        """Return the letter and accidentals without the octave."""

        letter = _LETTERS[self.n + 3]
        accidentals = self.a
        if accidentals > 0:
            return letter + "#" * accidentals
        if accidentals < 0:
            return letter + "b" * -accidentals
        return letter

    def __add__(self, interval: Interval) -> "Note":
        if not isinstance(interval, Interval):
            return NotImplemented
        return Note.from_interval(self, interval)

    def __sub__(self, other: "Note") -> Interval:
        if not isinstance(other, Note):
            return NotImplemented
        return Note.get_interval(other, self)

    def __str__(self) -> str:
        return f"{self.base_name()}{self.o}"


@lru_cache(maxsize=None)
def _parse_name(name: str) -> Note:
    if not name:
        logging.error("Empty note name")
        raise InvalidNoteName("Empty note name")

    # Only the ASCII letters A-G are accepted. Some characters upper-case to
    # two letters (``"ß"`` becomes ``"SS"``), so check membership first.
    if name[0] not in "ABCDEFGabcdefg":
        logging.error("Invalid note name: %s", name)
        raise InvalidNoteName(f"Invalid note name: {name}")
    offset = ord(name[0].upper()) - ord("D")

    # Accidentals run until the octave starts with a sign or a digit.
    accidental = 0
    idx = 1
    while idx < len(name) and name[idx] not in "-0123456789":
        char = name[idx]
        if char == "b":
            accidental -= 1
        elif char == "#":
            accidental += 1
        else:
            logging.error("Invalid accidental %r in note name: %s", char, name)
            raise InvalidAccidental(f"Invalid accidental '{char}' in note name: {name}")
        idx += 1

    # The remainder must be a plain ASCII integer; "C#" or "C4.5" is rejected.
    octave = name[idx:]
    if not _OCTAVE_RE.fullmatch(octave):
        logging.error("Missing or malformed octave in note name: %s", name)
        raise InvalidNoteName(f"Missing or malformed octave in note name: {name}")

    return Note.from_nao(offset, accidental, int(octave))
