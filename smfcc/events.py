"""Decoded Standard MIDI File structures.

Event payloads form a closed set:

  ChannelEvent — channel voice / mode message (status 0x80-0xEF)
  MetaEvent    — 0xFF <type> <len> <data>
  SysExEvent   — 0xF0 / 0xF7 <len> <data>, bytes kept verbatim

Consumers dispatch with ``isinstance`` over exactly these three classes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

HEADER_TAG = b"MThd"
TRACK_TAG = b"MTrk"
HEADER_LENGTH = 6

NOTE_OFF = 0x8
NOTE_ON = 0x9
POLY_PRESSURE = 0xA
CONTROL_CHANGE = 0xB
PROGRAM_CHANGE = 0xC
CHANNEL_PRESSURE = 0xD
PITCH_BEND = 0xE

# Status types carrying a single data byte; the rest carry two.
SINGLE_DATA_TYPES = frozenset({PROGRAM_CHANGE, CHANNEL_PRESSURE})

CHANNEL_EVENT_NAMES = {
    NOTE_OFF: "note_off",
    NOTE_ON: "note_on",
    POLY_PRESSURE: "poly_pressure",
    CONTROL_CHANGE: "control_change",
    PROGRAM_CHANGE: "program_change",
    CHANNEL_PRESSURE: "channel_pressure",
    PITCH_BEND: "pitch_bend",
}

META_STATUS = 0xFF
SYSEX_START = 0xF0
SYSEX_ESCAPE = 0xF7

META_END_OF_TRACK = 0x2F
META_SET_TEMPO = 0x51
META_TRACK_NAME = 0x03

DEFAULT_TEMPO = 500_000  # µs per quarter note (120 BPM)


@dataclass(frozen=True)
class ChannelEvent:
    status_type: int  # high nibble, 0x8-0xE
    channel: int  # 0-15
    data1: int
    data2: Optional[int] = None

    @property
    def name(self) -> str:
        return CHANNEL_EVENT_NAMES[self.status_type]

    @property
    def status(self) -> int:
        return (self.status_type << 4) | self.channel

    @property
    def is_controller(self) -> bool:
        return self.status_type == CONTROL_CHANGE

    @property
    def controller_number(self) -> int:
        if not self.is_controller:
            raise ValueError(f"{self.name} event has no controller number")
        return self.data1

    @property
    def controller_value(self) -> int:
        if not self.is_controller or self.data2 is None:
            raise ValueError(f"{self.name} event has no controller value")
        return self.data2


@dataclass(frozen=True)
class MetaEvent:
    meta_type: int
    data: bytes

    @property
    def is_tempo(self) -> bool:
        return self.meta_type == META_SET_TEMPO

    @property
    def is_end_of_track(self) -> bool:
        return self.meta_type == META_END_OF_TRACK

    @property
    def tempo(self) -> int:
        """Microseconds per quarter note carried by a Set Tempo event."""

        if not self.is_tempo:
            raise ValueError(f"meta event 0x{self.meta_type:02X} is not a tempo event")
        return int.from_bytes(self.data, "big")


@dataclass(frozen=True)
class SysExEvent:
    status: int  # 0xF0 or 0xF7
    data: bytes


Payload = Union[ChannelEvent, MetaEvent, SysExEvent]


@dataclass(frozen=True)
class TimedEvent:
    delta_ticks: int
    absolute_ticks: int
    payload: Payload
    offset: int = 0  # byte offset of the event (delta-time start) in the file


@dataclass(frozen=True)
class Track:
    events: Tuple[TimedEvent, ...]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[TimedEvent]:
        return iter(self.events)

    @property
    def end_tick(self) -> int:
        return self.events[-1].absolute_ticks if self.events else 0

    @property
    def name(self) -> str | None:
        for event in self.events:
            payload = event.payload
            if isinstance(payload, MetaEvent) and payload.meta_type == META_TRACK_NAME:
                return payload.data.decode("latin-1")
        return None


@dataclass(frozen=True)
class MidiFile:
    """A parsed SMF.  ``num_tracks`` is the header value."""

    format: int
    num_tracks: int
    ticks_per_quarter_note: int
    tracks: Tuple[Track, ...]
