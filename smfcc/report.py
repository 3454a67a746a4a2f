"""Human-readable and JSON renderings of an extraction run."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, List, Sequence, Tuple, Union

from .config import ExtractionConfig
from .events import MidiFile
from .tempo_map import build_tempo_map
from .timeline import (
    ControllerRecord,
    TempoChangeRecord,
    extract_controller_events,
    extract_tempo_changes,
)

TITLE = "MIDI CC{number} Parser"


def format_timestamp(ms: float) -> str:
    """Format milliseconds as ``m:ss.sss``."""

    total_seconds = ms / 1000
    minutes = int(total_seconds // 60)
    seconds = total_seconds - minutes * 60
    return f"{minutes}:{seconds:06.3f}"


def banner(controller_number: int) -> List[str]:
    title = TITLE.format(number=controller_number)
    return [title, "=" * len(title)]


def _controller_line(record: ControllerRecord, controller_number: int) -> str:
    return (
        f"[{format_timestamp(record.timestamp_ms)}] CC{controller_number} "
        f"(Channel {record.channel}): {record.value}"
    )


def _tempo_line(record: TempoChangeRecord) -> str:
    return f"[{format_timestamp(record.timestamp_ms)}] Tempo change: {round(record.bpm)} BPM"


def render_report(midi_file: MidiFile, config: ExtractionConfig | None = None) -> List[str]:
    """Return the text report lines for ``midi_file``.

    Each track gets a section listing its tempo changes (tempo source track
    only) and matching controller events in time order, followed by a
    summary.
    """
    config = config or ExtractionConfig()
    number = config.controller_number
    ppq = config.ticks_per_quarter(midi_file)
    tempo_map = build_tempo_map(midi_file, config.tempo_source_track, config.default_tempo)
    controllers = extract_controller_events(midi_file, tempo_map, number, ppq)
    tempos = extract_tempo_changes(midi_file, tempo_map, config.tempo_source_track, ppq)

    lines = [
        f"MIDI Format: {midi_file.format}",
        f"Tracks: {midi_file.num_tracks}",
        f"Time division: {ppq} ticks per quarter note",
        "",
    ]
    for track_index in range(len(midi_file.tracks)):
        lines.append(f"=== Track {track_index} ===")
        timed: List[Tuple[float, int, str]] = []
        timed.extend(
            (record.timestamp_ms, 0, _tempo_line(record))
            for record in tempos
            if record.track_index == track_index
        )
        timed.extend(
            (record.timestamp_ms, 1, _controller_line(record, number))
            for record in controllers
            if record.track_index == track_index
        )
        lines.extend(text for _, _, text in sorted(timed, key=lambda item: item[:2]))

    lines.extend(["", "=== Summary ===", f"Total CC{number} messages found: {len(controllers)}"])
    if not controllers:
        lines.append(f"No CC{number} messages found in the MIDI file.")
        lines.append(
            f"Note: CC{number} refers to Control Change messages with controller number {number}."
        )
    return lines


def record_to_dict(record: Union[ControllerRecord, TempoChangeRecord]) -> Dict[str, Any]:
    """Dataclass fields plus the derived ``level`` or ``bpm``."""

    payload = asdict(record)
    if isinstance(record, ControllerRecord):
        payload["level"] = record.level
    else:
        payload["bpm"] = record.bpm
    return payload


def records_to_json(
    records: Sequence[Union[ControllerRecord, TempoChangeRecord]], indent: int | None = 2
) -> str:
    return json.dumps([record_to_dict(record) for record in records], indent=indent)
