"""Tests for the Markov chord progression engine.

Walks are driven either by a scripted random source, which makes every step
explicit, or by seeded sources for the end-to-end shortest path search over
the built-in table.
"""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

markov_mod = importlib.import_module("chord_lattice.markov")
progressions = importlib.import_module("chord_lattice.progressions")
chords = importlib.import_module("chord_lattice.chords")
lattice = importlib.import_module("chord_lattice.lattice")

Markov = markov_mod.Markov
Transition = markov_mod.Transition
TransitionEntry = markov_mod.TransitionEntry
ChordTemplate = chords.ChordTemplate
Interval = lattice.Interval
Note = lattice.Note

# Symbols of the unique nine-chord progression from Dmin back to D.
SHORTEST_TO_D = [
    "Dmin D",
    "A7 E",
    "Dmin F",
    "D7/3 F#",
    "Gmaj/3 G",
    "Bbaug6 G#",
    "Dmin/5 A",
    "A7 C#",
    "Dmin (END) D",
]


class ScriptedSource:
    """Random source returning ``seq[index]`` for a fixed list of indices."""

    def __init__(self, indices):
        self.indices = list(indices)
        self.calls = 0

    def choice(self, seq):
        index = self.indices[self.calls]
        self.calls += 1
        return seq[index]


@pytest.fixture()
def templates():
    return progressions.default_templates()


@pytest.fixture()
def table(templates):
    return progressions.default_transitions(templates)


def _symbols(path):
    return [str(chord) for chord in path]


def test_initial_state(templates, table):
    """The walk starts with the start template applied to the root note."""

    engine = Markov(Note.from_name("D0"), templates["minor1"], table)
    state = engine.initial_state()
    assert state.path == (state.chord,)
    assert str(state.chord) == "Dmin D"
    assert state.chord.matches(templates["minor1"])


def test_possibilities_first_matching_entry_wins(templates):
    """Entries are scanned in order; later matches are ignored."""

    minor1 = templates["minor1"]
    first = (Transition(Interval.fifth(), templates["dom5"]),)
    second = (Transition(Interval.fourth(), templates["dom3"]),)
    engine = Markov(
        Note.from_name("D0"),
        minor1,
        [TransitionEntry(minor1, first), TransitionEntry(minor1, second)],
    )
    assert engine.possibilities(engine.initial_state()) == first


def test_dead_end_has_no_possibilities(templates):
    """A template without an entry yields no successors and no sample."""

    engine = Markov(Note.from_name("D0"), templates["cadenceMinor1"], [])
    state = engine.initial_state()
    assert engine.possibilities(state) == ()
    assert engine.sample(state) is None
    assert engine.next_random(state) is None


def test_next_random_moves_root_by_degree(templates, table):
    """Each step transposes the current root by the chosen degree."""

    engine = Markov(Note.from_name("D0"), templates["minor1"], table, rng=ScriptedSource([0, 1]))
    state = engine.initial_state()
    state = engine.next_random(state)
    assert str(state.chord.root) == "A1"
    assert state.chord.matches(templates["dom5"])
    state = engine.next_random(state)
    assert state.chord.matches(templates["major3"])
    assert state.chord.root.base_name() == "D"
    assert len(state.path) == 3


def test_next_random_leaves_previous_state_untouched(templates, table):
    """Walk states are immutable snapshots."""

    engine = Markov(Note.from_name("D0"), templates["minor1"], table, rng=ScriptedSource([0]))
    start = engine.initial_state()
    following = engine.next_random(start)
    assert len(start.path) == 1
    assert len(following.path) == 2
    assert following.path[0] is start.chord


def test_scripted_walk_reaches_cadence(templates, table):
    """A walk stops only at the final template, which has no successors."""

    source = ScriptedSource([0, 0, 1, 0, 1, 0, 0, 0])
    engine = Markov(Note.from_name("D0"), templates["minor1"], table, rng=source)
    final = engine.walk()
    assert _symbols(final.path) == SHORTEST_TO_D
    assert final.chord.matches(templates["cadenceMinor1"])
    # One sample per step; the dead end does not consult the source.
    assert source.calls == 8


def test_dim7_loop_lengthens_the_walk(templates, table):
    """Taking the diminished-seventh detour adds two chords and moves the root."""

    source = ScriptedSource([0, 0, 1, 0, 0, 0, 1, 0, 0, 0])
    engine = Markov(Note.from_name("D0"), templates["minor1"], table, rng=source)
    final = engine.walk()
    assert len(final.path) == 11
    assert _symbols(final.path)[4:7] == ["Gmaj/3 G", "G#dim7/5 G#", "Amaj/3 A"]
    assert final.chord.root.base_name() == "E"


def test_shortest_path_zero_iterations(templates, table):
    """No trials means no result."""

    engine = Markov(Note.from_name("D0"), templates["minor1"], table)
    assert engine.shortest_path(Note.from_name("D0"), iterations=0) == (None, None)


def test_shortest_path_negative_iterations(templates, table):
    engine = Markov(Note.from_name("D0"), templates["minor1"], table)
    with pytest.raises(ValueError):
        engine.shortest_path(Note.from_name("D0"), iterations=-1)


def test_shortest_path_unreachable_target(templates):
    """A walk that never leaves the start cannot reach another pitch class."""

    engine = Markov(Note.from_name("D0"), templates["cadenceMinor1"], [])
    assert engine.shortest_path(Note.from_name("E0"), iterations=5) == (None, None)


def test_shortest_path_single_chord(templates):
    """A start chord at a dead end on the target yields a length-one path."""

    engine = Markov(Note.from_name("D0"), templates["cadenceMinor1"], [])
    length, path = engine.shortest_path(Note.from_name("D3"), iterations=3)
    assert length == 1
    assert _symbols(path) == ["Dmin (END) D"]


def test_shortest_path_keeps_strictly_shorter(templates, table):
    """Only strictly shorter hits replace the recorded best path."""

    # One major-third loop plus four diminished-seventh loops also returns
    # to D, in nineteen chords.
    detour = [0, 1, 0, 0, 1, 0] + [0, 0] * 4 + [1, 0, 0, 0]
    direct = [0, 0, 1, 0, 1, 0, 0, 0]

    engine = Markov(
        Note.from_name("D0"), templates["minor1"], table, rng=ScriptedSource(detour)
    )
    assert engine.shortest_path(Note.from_name("D0"), iterations=1).length == 19

    source = ScriptedSource(detour + direct + detour)
    engine = Markov(Note.from_name("D0"), templates["minor1"], table, rng=source)
    length, path = engine.shortest_path(Note.from_name("D0"), iterations=3)
    assert length == 9
    assert _symbols(path) == SHORTEST_TO_D
    assert source.calls == len(detour + direct + detour)


@pytest.mark.parametrize(
    "source_cls", [markov_mod.PythonRandomSource, markov_mod.NumpyRandomSource]
)
def test_seeded_shortest_path_to_d(source_cls):
    """The seeded search over the built-in table finds the nine-chord cadence."""

    engine = progressions.default_markov("D0", rng=source_cls(seed=2024))
    result = engine.shortest_path(Note.from_name("D0"), iterations=500)
    assert result.length == 9
    assert _symbols(result.path) == SHORTEST_TO_D
    assert result.path[-1].matches(progressions.default_templates()["cadenceMinor1"])


def test_seeded_search_is_reproducible():
    """Identical seeds yield identical results for any target."""

    target = Note.from_name("A0")
    first = progressions.default_markov(rng=markov_mod.PythonRandomSource(seed=5))
    second = progressions.default_markov(rng=markov_mod.PythonRandomSource(seed=5))
    assert first.shortest_path(target, 300) == second.shortest_path(target, 300)


def test_every_search_ends_on_the_cadence():
    """Whatever the target, found paths end on the final tonic template."""

    engine = progressions.default_markov(rng=markov_mod.PythonRandomSource(seed=11))
    cadence = progressions.default_templates()["cadenceMinor1"]
    for target in progressions.sweep_targets():
        length, path = engine.shortest_path(target, iterations=200)
        if path is None:
            continue
        assert length == len(path)
        assert path[-1].matches(cadence)
        assert path[-1].root.equivalent_note(target)


def test_stop_at_end_honours_end_marker(templates):
    """With ``stop_at_end`` a walk stops after an edge flagged ``end``."""

    minor1, dom5 = templates["minor1"], templates["dom5"]
    cyclic = [
        TransitionEntry(minor1, (Transition(Interval.fifth(), dom5),)),
        TransitionEntry(dom5, (Transition(Interval.fourth(), minor1, end=True),)),
    ]
    engine = Markov(Note.from_name("D0"), minor1, cyclic, stop_at_end=True)
    final = engine.walk()
    assert _symbols(final.path) == ["Dmin D", "A7 E", "Dmin D"]
    assert final.finished


def test_end_marker_ignored_by_default(templates, table):
    """Without ``stop_at_end`` the default table still ends at the cadence."""

    source = ScriptedSource([0, 0, 1, 0, 1, 0, 0, 0])
    engine = Markov(Note.from_name("D0"), templates["minor1"], table, rng=source)
    assert engine.walk().finished is False


def test_random_sources_are_seedable():
    """Both random sources repeat their choices for the same seed."""

    options = list(range(10))
    for source_cls in (markov_mod.PythonRandomSource, markov_mod.NumpyRandomSource):
        first = source_cls(seed=3)
        second = source_cls(seed=3)
        picks = [first.choice(options) for _ in range(20)]
        assert picks == [second.choice(options) for _ in range(20)]
        assert set(picks) <= set(options)
