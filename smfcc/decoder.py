"""Decode Standard MIDI File bytes into :class:`~smfcc.events.MidiFile`.

File layout::

  "MThd" <len:u32=6> <format:u16> <ntrks:u16> <division:u16>
  "MTrk" <len:u32> <event>*          (repeated ntrks times)

  event := <delta:vlq> <status?> <body>

Channel messages may omit the status byte when it repeats the previous
channel status (running status); the first byte after the delta is then a
data byte (high bit clear).  Running status is carried explicitly in a
:class:`DecoderState` that every event read takes and returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .cursor import ByteCursor
from .errors import (
    InvalidHeaderTag,
    MalformedTempoEvent,
    MalformedVLQ,
    TruncatedTrack,
    UnexpectedEndOfBuffer,
    UnknownEventType,
    UnsupportedTimingMode,
)
from .events import (
    HEADER_LENGTH,
    HEADER_TAG,
    META_SET_TEMPO,
    META_STATUS,
    SINGLE_DATA_TYPES,
    SYSEX_ESCAPE,
    SYSEX_START,
    TRACK_TAG,
    ChannelEvent,
    MetaEvent,
    MidiFile,
    Payload,
    SysExEvent,
    TimedEvent,
    Track,
)

logger = logging.getLogger(__name__)

SMPTE_DIVISION_FLAG = 0x8000
TEMPO_DATA_LENGTH = 3


@dataclass(frozen=True)
class DecoderState:
    """Per-track decoding accumulator."""

    running_status: Optional[int] = None
    ticks: int = 0


@dataclass(frozen=True)
class MidiHeader:
    format: int
    num_tracks: int
    ticks_per_quarter_note: int


def read_header(cursor: ByteCursor) -> MidiHeader:
    start = cursor.position
    tag = cursor.read_bytes(4)
    if tag != HEADER_TAG:
        raise InvalidHeaderTag(f"expected {HEADER_TAG!r} chunk, found {tag!r}", start)
    length = cursor.read_uint32()
    if length < HEADER_LENGTH:
        raise InvalidHeaderTag(f"header chunk length {length} is shorter than 6", start)

    body = cursor.sub_cursor(length)
    fmt = body.read_uint16()
    num_tracks = body.read_uint16()
    division_offset = body.position
    division = body.read_uint16()
    if division & SMPTE_DIVISION_FLAG:
        raise UnsupportedTimingMode(
            f"SMPTE time division 0x{division:04X} is not supported", division_offset
        )
    if length > HEADER_LENGTH:
        logger.debug("ignoring %d extra header bytes", length - HEADER_LENGTH)
    return MidiHeader(format=fmt, num_tracks=num_tracks, ticks_per_quarter_note=division)


def _read_data_byte(cursor: ByteCursor) -> int:
    offset = cursor.position
    value = cursor.read_uint8()
    if value & 0x80:
        raise UnknownEventType(f"status byte 0x{value:02X} where a data byte was expected", offset)
    return value


def _read_channel_body(cursor: ByteCursor, status: int) -> ChannelEvent:
    status_type = status >> 4
    channel = status & 0x0F
    data1 = _read_data_byte(cursor)
    data2 = None if status_type in SINGLE_DATA_TYPES else _read_data_byte(cursor)
    return ChannelEvent(status_type=status_type, channel=channel, data1=data1, data2=data2)


def _read_meta_body(cursor: ByteCursor, status_offset: int) -> MetaEvent:
    meta_type = cursor.read_uint8()
    length = cursor.read_vlq()
    if meta_type == META_SET_TEMPO and length != TEMPO_DATA_LENGTH:
        raise MalformedTempoEvent(
            f"set-tempo event with {length} data bytes (expected {TEMPO_DATA_LENGTH})",
            status_offset,
        )
    return MetaEvent(meta_type=meta_type, data=cursor.read_bytes(length))


def read_event(cursor: ByteCursor, state: DecoderState) -> Tuple[TimedEvent, DecoderState]:
    """Read one event and return it with the updated decoder state."""

    event_offset = cursor.position
    delta = cursor.read_vlq()
    ticks = state.ticks + delta
    running_status = state.running_status

    status_offset = cursor.position
    peeked = cursor.peek_uint8()
    if peeked & 0x80:
        status = cursor.read_uint8()
    elif running_status is None:
        raise UnknownEventType(
            f"data byte 0x{peeked:02X} with no running status", status_offset
        )
    else:
        status = running_status

    payload: Payload
    if status < 0xF0:
        payload = _read_channel_body(cursor, status)
        running_status = status
    elif status == META_STATUS:
        payload = _read_meta_body(cursor, status_offset)
    elif status in (SYSEX_START, SYSEX_ESCAPE):
        length = cursor.read_vlq()
        payload = SysExEvent(status=status, data=cursor.read_bytes(length))
    else:
        raise UnknownEventType(f"unknown status byte 0x{status:02X}", status_offset)

    event = TimedEvent(
        delta_ticks=delta, absolute_ticks=ticks, payload=payload, offset=event_offset
    )
    return event, DecoderState(running_status=running_status, ticks=ticks)


def read_track(cursor: ByteCursor, index: int = 0) -> Track:
    """Decode every event in a track chunk body.

    ``cursor`` must cover exactly the chunk body; the whole window has to
    be consumed by complete events.
    """

    events: List[TimedEvent] = []
    state = DecoderState()
    while cursor.remaining():
        start = cursor.position
        try:
            event, state = read_event(cursor, state)
        except UnexpectedEndOfBuffer as exc:
            raise TruncatedTrack(
                f"track {index} ends inside an event starting at 0x{start:X}",
                exc.offset,
            ) from exc
        except MalformedVLQ as exc:
            if cursor.remaining():
                raise
            # Chunk ended inside a delta-time or length quantity.
            raise TruncatedTrack(
                f"track {index} ends inside an event starting at 0x{start:X}",
                exc.offset,
            ) from exc
        events.append(event)
    logger.debug("track %d: %d events, end tick %d", index, len(events), state.ticks)
    return Track(events=tuple(events))


def parse(data: bytes) -> MidiFile:
    """Parse a complete Standard MIDI File held in memory."""

    data = bytes(data)
    cursor = ByteCursor(data)
    header = read_header(cursor)
    logger.debug(
        "header: format %d, %d tracks, %d ticks per quarter note",
        header.format,
        header.num_tracks,
        header.ticks_per_quarter_note,
    )

    tracks: List[Track] = []
    while len(tracks) < header.num_tracks:
        chunk_offset = cursor.position
        if cursor.remaining() < 8:
            raise TruncatedTrack(
                f"file ends after {len(tracks)} of {header.num_tracks} tracks",
                chunk_offset,
            )
        tag = cursor.read_bytes(4)
        if tag != TRACK_TAG:
            raise InvalidHeaderTag(f"expected {TRACK_TAG!r} chunk, found {tag!r}", chunk_offset)
        length = cursor.read_uint32()
        if length > cursor.remaining():
            raise TruncatedTrack(
                f"chunk {tag!r} declares {length} bytes, {cursor.remaining()} remain",
                chunk_offset,
            )
        tracks.append(read_track(cursor.sub_cursor(length), len(tracks)))

    if cursor.remaining():
        logger.debug("ignoring %d trailing bytes after last track", cursor.remaining())

    return MidiFile(
        format=header.format,
        num_tracks=header.num_tracks,
        ticks_per_quarter_note=header.ticks_per_quarter_note,
        tracks=tuple(tracks),
    )


def parse_file(path: str | Path) -> MidiFile:
    """Read ``path`` and parse it."""

    return parse(Path(path).read_bytes())
