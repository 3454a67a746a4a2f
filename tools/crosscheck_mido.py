#!/usr/bin/env python3
"""Cross-check controller timestamps against mido's own timing.

mido merges all tracks and applies every Set Tempo it meets, so for
format 0/1 files with the tempo map in track 0 both readers must agree.

Requirements:
  pip install mido

Usage:
  python tools/crosscheck_mido.py song.mid [--controller 22]
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import List, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import mido  # noqa: E402

from smfcc.decoder import parse  # noqa: E402
from smfcc.tempo_map import build_tempo_map  # noqa: E402
from smfcc.timeline import CC_HAPTIC, extract_controller_events  # noqa: E402

TOLERANCE_MS = 0.001

Sample = Tuple[float, int, int]  # (timestamp_ms, channel, value)


def mido_samples(path: Path, controller: int) -> List[Sample]:
    mid = mido.MidiFile(str(path))
    if mid.type == 2:
        raise ValueError("mido cannot merge format 2 files")
    samples: List[Sample] = []
    elapsed = 0.0
    for msg in mid:
        elapsed += msg.time
        if msg.type == "control_change" and msg.control == controller:
            samples.append((elapsed * 1000.0, msg.channel, msg.value))
    return samples


def smfcc_samples(path: Path, controller: int) -> List[Sample]:
    midi_file = parse(path.read_bytes())
    tempo_map = build_tempo_map(midi_file)
    records = extract_controller_events(midi_file, tempo_map, controller)
    return [(r.timestamp_ms, r.channel, r.value) for r in records]


def compare(ours: List[Sample], theirs: List[Sample]) -> List[str]:
    problems: List[str] = []
    if len(ours) != len(theirs):
        problems.append(f"event count differs: smfcc={len(ours)} mido={len(theirs)}")
    for idx, (a, b) in enumerate(zip(sorted(ours), sorted(theirs))):
        if a[1:] != b[1:] or abs(a[0] - b[0]) > TOLERANCE_MS:
            problems.append(
                f"#{idx}: smfcc=({a[0]:.3f} ms ch{a[1]} {a[2]}) "
                f"mido=({b[0]:.3f} ms ch{b[1]} {b[2]})"
            )
    return problems


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Compare smfcc CC timing with mido")
    parser.add_argument("path", type=Path, help="MIDI file to check")
    parser.add_argument("-c", "--controller", type=int, default=CC_HAPTIC)
    args = parser.parse_args(argv)

    ours = smfcc_samples(args.path, args.controller)
    theirs = mido_samples(args.path, args.controller)
    problems = compare(ours, theirs)
    if problems:
        print(f"{len(problems)} mismatches:")
        for line in problems:
            print(f"  {line}")
        return 2
    print(f"ok: {len(ours)} CC{args.controller} events agree")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
