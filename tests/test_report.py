"""Tests for report rendering and extraction config."""

from __future__ import annotations

import json
from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from smfcc.config import ExtractionConfig  # noqa: E402
from smfcc.events import (  # noqa: E402
    CONTROL_CHANGE,
    ChannelEvent,
    MetaEvent,
    MidiFile,
    TimedEvent,
    Track,
)
from smfcc.report import banner, format_timestamp, records_to_json, render_report  # noqa: E402
from smfcc.timeline import ControllerRecord, TempoChangeRecord  # noqa: E402


def _file(ppq: int = 480) -> MidiFile:
    conductor = Track(
        (
            TimedEvent(0, 0, MetaEvent(0x51, (500_000).to_bytes(3, "big"))),
            TimedEvent(960, 960, MetaEvent(0x51, (250_000).to_bytes(3, "big"))),
            TimedEvent(0, 960, ChannelEvent(CONTROL_CHANGE, 1, 22, 5)),
        )
    )
    lane = Track(
        (
            TimedEvent(480, 480, ChannelEvent(CONTROL_CHANGE, 4, 22, 99)),
            TimedEvent(0, 480, ChannelEvent(CONTROL_CHANGE, 4, 7, 80)),
            TimedEvent(120_000, 120_480, ChannelEvent(CONTROL_CHANGE, 4, 22, 1)),
        )
    )
    return MidiFile(format=1, num_tracks=2, ticks_per_quarter_note=ppq, tracks=(conductor, lane))


@pytest.mark.parametrize(
    "ms,expected",
    [
        (0.0, "0:00.000"),
        (500.0, "0:00.500"),
        (1250.25, "0:01.250"),
        (59_999.0, "0:59.999"),
        (60_000.0, "1:00.000"),
        (61_500.0, "1:01.500"),
        (3_725_042.0, "62:05.042"),
    ],
)
def test_format_timestamp(ms: float, expected: str) -> None:
    assert format_timestamp(ms) == expected


def test_banner() -> None:
    assert banner(22) == ["MIDI CC22 Parser", "================"]


def test_render_report() -> None:
    lines = render_report(_file())
    assert lines == [
        "MIDI Format: 1",
        "Tracks: 2",
        "Time division: 480 ticks per quarter note",
        "",
        "=== Track 0 ===",
        "[0:00.000] Tempo change: 120 BPM",
        "[0:01.000] Tempo change: 240 BPM",
        "[0:01.000] CC22 (Channel 1): 5",
        "=== Track 1 ===",
        "[0:00.500] CC22 (Channel 4): 99",
        "[1:03.250] CC22 (Channel 4): 1",
        "",
        "=== Summary ===",
        "Total CC22 messages found: 3",
    ]


def test_render_report_without_matches() -> None:
    lines = render_report(_file(), ExtractionConfig(controller_number=11))
    assert lines[-3:] == [
        "Total CC11 messages found: 0",
        "No CC11 messages found in the MIDI file.",
        "Note: CC11 refers to Control Change messages with controller number 11.",
    ]


def test_render_report_uses_fallback_resolution() -> None:
    lines = render_report(_file(ppq=0))
    assert "Time division: 480 ticks per quarter note" in lines


def test_records_to_json() -> None:
    payload = json.loads(records_to_json([ControllerRecord(1, 4, 500.0, 127)]))
    assert payload == [
        {"track_index": 1, "channel": 4, "timestamp_ms": 500.0, "value": 127, "level": 1.0}
    ]


def test_tempo_records_to_json_include_bpm() -> None:
    payload = json.loads(records_to_json([TempoChangeRecord(0, 960, 1000.0, 250_000)]))
    assert payload == [
        {
            "track_index": 0,
            "tick": 960,
            "timestamp_ms": 1000.0,
            "microseconds_per_quarter_note": 250_000,
            "bpm": 240.0,
        }
    ]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"controller_number": 128},
        {"controller_number": -1},
        {"tempo_source_track": -1},
        {"default_tempo": 0},
        {"default_tempo": 0x1000000},
        {"fallback_ticks_per_quarter": 0},
    ],
)
def test_config_validation(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        ExtractionConfig(**kwargs)


def test_config_defaults() -> None:
    config = ExtractionConfig()
    assert config.controller_number == 22
    assert config.tempo_source_track == 0
    assert config.default_tempo == 500_000
    assert config.ticks_per_quarter(_file(ppq=96)) == 96
