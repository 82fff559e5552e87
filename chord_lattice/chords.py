"""Chord shapes and their instantiation on concrete roots.

A :class:`ChordTemplate` records a chord as intervals measured from a base
note, independent of absolute pitch. Applying it to a :class:`Note` yields a
:class:`Chord` with real lattice points for every voice. Templates compare by
shape (see :class:`~chord_lattice.lattice.Interval` for the equality rule), so
a chord always knows which template it came from and the Markov engine can
look up its successors.

Example
-------
>>> minor = ChordTemplate.from_notes(["D0", "F0", "A1"], "D0", "D1", "min")
>>> chord = minor.apply_to_note(Note.from_name("D0"))
>>> [str(n) for n in chord.notes]
['D0', 'F0', 'A1']
>>> str(chord)
'Dmin D'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

from .lattice import Interval, Note

__all__ = ["ChordTemplate", "Chord"]


@dataclass(frozen=True)
class ChordTemplate:
    """Chord shape expressed relative to a base note.

    ``intervals`` lists every voice above the base. Despite its name
    ``root`` locates the bass note, while ``treble`` locates the top voice.
    ``name`` is a display label only and does not take part in equality.
    """

    intervals: Tuple[Interval, ...]
    root: Interval
    treble: Interval
    quality: str
    name: str = field(default="", compare=False)

    @classmethod
    def from_notes(
        cls,
        notes: Sequence[str],
        root_note: str,
        treble_note: str,
        quality: str,
        name: str = "",
    ) -> "ChordTemplate":
        """Build a template from literal note names.

        Parameters
        ----------
        notes:
            Note names of the voicing. The first entry is the base note all
            intervals are measured from.
        root_note, treble_note:
            Names of the bass and top voice.
        quality:
            Label printed after the root, e.g. ``"min"`` or ``"7/3"``.
        name:
            Optional display name such as ``"minor1"``.

        Raises
        ------
        ValueError
            If ``notes`` is empty or any name fails to parse.
        """

        if not notes:
            raise ValueError("notes must not be empty")
        base = notes[0]
        return cls(
            tuple(Interval.between(base, n) for n in notes[1:]),
            Interval.between(base, root_note),
            Interval.between(base, treble_note),
            quality,
            name,
        )

    def apply_to_note(self, note: Note) -> "Chord":
        """Return this shape instantiated with its base on ``note``."""

        return Chord(
            template=self,
            notes=(note,) + tuple(note + i for i in self.intervals),
            root=note,
            bass=note + self.root,
            treble=note + self.treble,
            quality=self.quality,
        )

    def equals(self, other: "ChordTemplate") -> bool:
        return self == other


@dataclass(frozen=True)
class Chord:
    """A :class:`ChordTemplate` applied to a concrete note."""

    template: ChordTemplate
    notes: Tuple[Note, ...]
    root: Note
    bass: Note
    treble: Note
    quality: str

    def matches(self, template: ChordTemplate) -> bool:
        """Return ``True`` when this chord was built from an equal template."""

        return self.template.equals(template)

    def symbol(self, *, slash_bass: bool = False) -> str:
        """Return a printable chord symbol.

        The default output is ``"{root}{quality} {treble}"``. With
        ``slash_bass`` a ``/{bass}`` clause is inserted whenever the bass note
        differs from the root.
        """

        text = f"{self.root.base_name()}{self.quality}"
        if slash_bass and self.bass != self.root:
            text += f"/{self.bass.base_name()}"
        return f"{text} {self.treble.base_name()}"

    def __str__(self) -> str:
        return self.symbol()
