"""Parse failures raised while decoding Standard MIDI Files.

Every failure is terminal for the file being decoded: once an offset is
misread, every later read in the same track is garbage, so nothing here is
recoverable.  Each error carries the byte offset where it was detected
(``None`` when the failure is not tied to a position in the buffer).
"""

from __future__ import annotations


class MidiParseError(ValueError):
    """Base class for all decoder failures."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} at offset 0x{offset:X}"
        super().__init__(message)
        self.offset = offset

    @property
    def kind(self) -> str:
        return type(self).__name__


class UnexpectedEndOfBuffer(MidiParseError):
    pass


class MalformedVLQ(MidiParseError):
    pass


class UnsupportedTimingMode(MidiParseError):
    pass


class TruncatedTrack(MidiParseError):
    pass


class UnknownEventType(MidiParseError):
    pass


class MalformedTempoEvent(MidiParseError):
    pass


class NonMonotonicTempoEvents(MidiParseError):
    pass


class InvalidHeaderTag(MidiParseError):
    pass
