"""Global tempo map derived from Set Tempo meta events."""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from .errors import MalformedTempoEvent, NonMonotonicTempoEvents
from .events import DEFAULT_TEMPO, MetaEvent, MidiFile

logger = logging.getLogger(__name__)

MICROSECONDS_PER_MINUTE = 60_000_000


@dataclass(frozen=True)
class TempoMapEntry:
    start_tick: int
    microseconds_per_quarter_note: int

    @property
    def bpm(self) -> float:
        return MICROSECONDS_PER_MINUTE / self.microseconds_per_quarter_note


@dataclass(frozen=True)
class TempoMap:
    """Tempo breakpoints ordered by strictly increasing ``start_tick``.

    The first entry always starts at tick 0; the last one is open-ended.
    """

    entries: Tuple[TempoMapEntry, ...]

    def __post_init__(self) -> None:
        if not self.entries:
            raise ValueError("tempo map needs at least one entry")
        if self.entries[0].start_tick != 0:
            raise ValueError("first tempo map entry must start at tick 0")
        for prev, entry in zip(self.entries, self.entries[1:]):
            if entry.start_tick <= prev.start_tick:
                raise ValueError(
                    f"tempo map ticks not strictly increasing: "
                    f"{prev.start_tick} then {entry.start_tick}"
                )
        for entry in self.entries:
            if entry.microseconds_per_quarter_note <= 0:
                raise ValueError(
                    f"tempo at tick {entry.start_tick} must be positive, "
                    f"got {entry.microseconds_per_quarter_note}"
                )

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TempoMapEntry]:
        return iter(self.entries)

    def tempo_at(self, tick: int) -> int:
        """Microseconds per quarter note in effect at ``tick``."""

        starts = [entry.start_tick for entry in self.entries]
        index = bisect_right(starts, tick) - 1
        return self.entries[max(index, 0)].microseconds_per_quarter_note

    @classmethod
    def constant(cls, microseconds_per_quarter_note: int = DEFAULT_TEMPO) -> "TempoMap":
        return cls(entries=(TempoMapEntry(0, microseconds_per_quarter_note),))


def build_tempo_map(
    midi_file: MidiFile,
    source_track: int = 0,
    default_tempo: int = DEFAULT_TEMPO,
) -> TempoMap:
    """Collect the Set Tempo events of ``source_track`` into a :class:`TempoMap`.

    Parameters
    ----------
    midi_file : MidiFile
        Parsed file.
    source_track : int
        Index of the tempo-bearing track (track 0 by convention).
    default_tempo : int
        Tempo in effect before the first Set Tempo event.

    Raises
    ------
    NonMonotonicTempoEvents
        If tempo events in the scanned track go backwards in time.
    """
    if not 0 <= source_track < len(midi_file.tracks):
        if not midi_file.tracks and source_track == 0:
            return TempoMap.constant(default_tempo)
        raise ValueError(
            f"tempo source track {source_track} out of range "
            f"(file has {len(midi_file.tracks)} tracks)"
        )

    entries: List[TempoMapEntry] = [TempoMapEntry(0, default_tempo)]
    last_tick = 0
    for event in midi_file.tracks[source_track]:
        payload = event.payload
        if not isinstance(payload, MetaEvent) or not payload.is_tempo:
            continue
        tick = event.absolute_ticks
        if tick < last_tick:
            raise NonMonotonicTempoEvents(
                f"tempo event at tick {tick} follows one at tick {last_tick}",
                event.offset,
            )
        last_tick = tick

        tempo = payload.tempo
        if tempo == 0:
            raise MalformedTempoEvent(f"zero tempo at tick {tick}", event.offset)
        if entries[-1].start_tick == tick:
            # Later events at the same tick win.
            entries.pop()
        if entries and entries[-1].microseconds_per_quarter_note == tempo:
            continue
        entries.append(TempoMapEntry(tick, tempo))

    logger.debug("tempo map from track %d: %d entries", source_track, len(entries))
    return TempoMap(entries=tuple(entries))
