"""Decode Standard MIDI Files and extract tempo-aware controller events."""

from .config import ExtractionConfig  # noqa: F401
from .cursor import ByteCursor, encode_vlq  # noqa: F401
from .decoder import DecoderState, parse, parse_file, read_event, read_track  # noqa: F401
from .errors import (  # noqa: F401
    InvalidHeaderTag,
    MalformedTempoEvent,
    MalformedVLQ,
    MidiParseError,
    NonMonotonicTempoEvents,
    TruncatedTrack,
    UnexpectedEndOfBuffer,
    UnknownEventType,
    UnsupportedTimingMode,
)
from .events import (  # noqa: F401
    DEFAULT_TEMPO,
    ChannelEvent,
    MetaEvent,
    MidiFile,
    SysExEvent,
    TimedEvent,
    Track,
)
from .tempo_map import TempoMap, TempoMapEntry, build_tempo_map  # noqa: F401
from .timeline import (  # noqa: F401
    ControllerRecord,
    TempoChangeRecord,
    extract_controller_events,
    extract_tempo_changes,
    ticks_to_ms,
)
