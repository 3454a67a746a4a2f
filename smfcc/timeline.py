"""Project tick positions onto wall-clock time and pull out timed events.

Elapsed time up to ``tick`` is the sum over tempo segments::

  sum(ticks_in_segment * us_per_quarter) / ticks_per_quarter_note

Every segment shares the file's ticks-per-quarter-note, so the sum is kept
as an exact integer and divided once at the end.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .events import ChannelEvent, MetaEvent, MidiFile
from .tempo_map import MICROSECONDS_PER_MINUTE, TempoMap

CC_HAPTIC = 22
MAX_DATA_VALUE = 127


@dataclass(frozen=True)
class ControllerRecord:
    track_index: int
    channel: int  # 0-15
    timestamp_ms: float
    value: int  # 0-127

    @property
    def level(self) -> float:
        """Controller value scaled to 0.0-1.0."""

        return self.value / MAX_DATA_VALUE


@dataclass(frozen=True)
class TempoChangeRecord:
    track_index: int
    tick: int
    timestamp_ms: float
    microseconds_per_quarter_note: int

    @property
    def bpm(self) -> float:
        return MICROSECONDS_PER_MINUTE / self.microseconds_per_quarter_note


def ticks_to_ms(
    absolute_ticks: int, tempo_map: TempoMap, ticks_per_quarter_note: int
) -> float:
    """Return the time of ``absolute_ticks`` in milliseconds (unrounded)."""

    if ticks_per_quarter_note <= 0:
        raise ValueError(f"ticks per quarter note must be positive, got {ticks_per_quarter_note}")
    if absolute_ticks < 0:
        raise ValueError(f"negative tick position {absolute_ticks}")

    entries = tempo_map.entries
    tick_microseconds = 0  # sum of ticks * us_per_quarter
    for index, entry in enumerate(entries):
        is_last = index + 1 == len(entries)
        if is_last or absolute_ticks < entries[index + 1].start_tick:
            span = absolute_ticks - entry.start_tick
            tick_microseconds += span * entry.microseconds_per_quarter_note
            break
        span = entries[index + 1].start_tick - entry.start_tick
        tick_microseconds += span * entry.microseconds_per_quarter_note

    return tick_microseconds / (ticks_per_quarter_note * 1000)


def extract_controller_events(
    midi_file: MidiFile,
    tempo_map: TempoMap,
    controller_number: int = CC_HAPTIC,
    ticks_per_quarter_note: int | None = None,
) -> List[ControllerRecord]:
    """Return every Control Change for ``controller_number`` with its timestamp.

    Records are ordered by track index, then by position within the track.
    ``ticks_per_quarter_note`` overrides the header resolution when given.
    """
    if not 0 <= controller_number <= MAX_DATA_VALUE:
        raise ValueError(f"controller number out of range: {controller_number}")

    ppq = ticks_per_quarter_note or midi_file.ticks_per_quarter_note
    records: List[ControllerRecord] = []
    for track_index, track in enumerate(midi_file.tracks):
        for event in track:
            payload = event.payload
            if not isinstance(payload, ChannelEvent) or not payload.is_controller:
                continue
            if payload.controller_number != controller_number:
                continue
            records.append(
                ControllerRecord(
                    track_index=track_index,
                    channel=payload.channel,
                    timestamp_ms=ticks_to_ms(event.absolute_ticks, tempo_map, ppq),
                    value=payload.controller_value,
                )
            )
    return records


def extract_tempo_changes(
    midi_file: MidiFile,
    tempo_map: TempoMap,
    source_track: int = 0,
    ticks_per_quarter_note: int | None = None,
) -> List[TempoChangeRecord]:
    """List the Set Tempo events of ``source_track`` with their timestamps."""

    if not 0 <= source_track < len(midi_file.tracks):
        return []

    ppq = ticks_per_quarter_note or midi_file.ticks_per_quarter_note
    records: List[TempoChangeRecord] = []
    for event in midi_file.tracks[source_track]:
        payload = event.payload
        if isinstance(payload, MetaEvent) and payload.is_tempo:
            records.append(
                TempoChangeRecord(
                    track_index=source_track,
                    tick=event.absolute_ticks,
                    timestamp_ms=ticks_to_ms(event.absolute_ticks, tempo_map, ppq),
                    microseconds_per_quarter_note=payload.tempo,
                )
            )
    return records
