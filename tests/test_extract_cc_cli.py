"""CLI integration tests for tools/extract_cc.py and tools/crosscheck_mido.py."""

from __future__ import annotations

import importlib.util
import json
import os
from pathlib import Path
import struct
import subprocess
import sys

import mido

REPO_ROOT = Path(__file__).resolve().parents[1]
SCRIPT = REPO_ROOT / "tools" / "extract_cc.py"


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = str(REPO_ROOT)
    return subprocess.run(
        [sys.executable, str(SCRIPT), *args],
        cwd=str(REPO_ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def _load_crosscheck_module():
    module_path = REPO_ROOT / "tools" / "crosscheck_mido.py"
    spec = importlib.util.spec_from_file_location("crosscheck_mido_tool", module_path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


def _write_song(path: Path) -> Path:
    mid = mido.MidiFile(type=1, ticks_per_beat=480)
    conductor = mido.MidiTrack()
    conductor.append(mido.MetaMessage("set_tempo", tempo=500_000, time=0))
    conductor.append(mido.MetaMessage("set_tempo", tempo=250_000, time=960))
    mid.tracks.append(conductor)
    lane = mido.MidiTrack()
    lane.append(mido.Message("control_change", channel=3, control=22, value=10, time=480))
    lane.append(mido.Message("control_change", channel=3, control=7, value=90, time=0))
    lane.append(mido.Message("control_change", channel=3, control=22, value=120, time=960))
    mid.tracks.append(lane)
    mid.save(str(path))
    return path


def test_text_report(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run_cli(str(song))
    assert result.returncode == 0, result.stderr
    lines = result.stdout.splitlines()
    assert lines[:2] == ["MIDI CC22 Parser", "================"]
    assert f"Parsing MIDI file: {song}" in lines
    assert "[0:00.000] Tempo change: 120 BPM" in lines
    assert "[0:01.000] Tempo change: 240 BPM" in lines
    assert "[0:00.500] CC22 (Channel 3): 10" in lines
    assert "[0:01.250] CC22 (Channel 3): 120" in lines
    assert lines[-1] == "Total CC22 messages found: 2"


def test_json_output(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run_cli(str(song), "--json", "--controller", "7")
    assert result.returncode == 0, result.stderr
    assert json.loads(result.stdout) == [
        {"track_index": 1, "channel": 3, "timestamp_ms": 500.0, "value": 90, "level": 90 / 127}
    ]


def test_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "nope.mid"
    result = _run_cli(str(missing))
    assert result.returncode == 1
    assert f"Error: MIDI file not found at {missing}" in result.stderr
    assert result.stdout.splitlines()[:2] == ["MIDI CC22 Parser", "================"]


def test_corrupt_file_reports_parse_error(tmp_path: Path) -> None:
    bad = tmp_path / "smpte.mid"
    bad.write_bytes(b"MThd" + struct.pack(">IHHH", 6, 0, 1, 0xE728))
    result = _run_cli(str(bad))
    assert result.returncode == 1
    assert "Error parsing MIDI file: SMPTE time division" in result.stderr
    assert result.stdout.splitlines() == [
        "MIDI CC22 Parser",
        "================",
        f"Parsing MIDI file: {bad}",
    ]


def test_corrupt_file_json_mode_prints_nothing(tmp_path: Path) -> None:
    bad = tmp_path / "alien.mid"
    bad.write_bytes(b"MThd" + struct.pack(">IHHH", 6, 0, 1, 480) + b"XFIH\x00\x00\x00\x00")
    result = _run_cli(str(bad), "--json")
    assert result.returncode == 1
    assert "expected b'MTrk' chunk" in result.stderr
    assert result.stdout == ""


def test_bad_tempo_track(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run_cli(str(song), "--tempo-track", "5")
    assert result.returncode == 1
    assert "out of range" in result.stderr


def test_invalid_controller_is_usage_error(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run_cli(str(song), "--controller", "200")
    assert result.returncode == 2
    assert "controller number must be 0-127" in result.stderr


def test_verbose_logs_decoder_details(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run_cli(str(song), "--verbose")
    assert result.returncode == 0
    assert "DEBUG smfcc.decoder: header: format 1, 2 tracks" in result.stderr


def test_crosscheck_agrees_with_mido(tmp_path: Path, capsys) -> None:
    module = _load_crosscheck_module()
    song = _write_song(tmp_path / "song.mid")
    assert module.main([str(song)]) == 0
    assert "ok: 2 CC22 events agree" in capsys.readouterr().out


def test_crosscheck_reports_mismatch() -> None:
    module = _load_crosscheck_module()
    problems = module.compare([(0.0, 1, 5), (500.0, 1, 6)], [(0.0, 1, 5), (510.0, 1, 6)])
    assert len(problems) == 1
    assert "#1" in problems[0]
