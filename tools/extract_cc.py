#!/usr/bin/env python3
"""Print timestamped Control Change events from a Standard MIDI File.

Examples
--------
    python tools/extract_cc.py haptic.mid
    python tools/extract_cc.py haptic.mid --controller 64 --json
    python tools/extract_cc.py song.mid --tempo-track 1 --verbose
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from smfcc.config import ExtractionConfig  # noqa: E402
from smfcc.decoder import parse  # noqa: E402
from smfcc.errors import MidiParseError  # noqa: E402
from smfcc.report import banner, records_to_json, render_report  # noqa: E402
from smfcc.tempo_map import build_tempo_map  # noqa: E402
from smfcc.timeline import extract_controller_events  # noqa: E402

DEFAULT_MIDI_PATH = REPO_ROOT / "haptic.mid"

log = logging.getLogger("extract_cc")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract timestamped Control Change events from a MIDI file",
    )
    parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=DEFAULT_MIDI_PATH,
        help=f"MIDI file to read (default: {DEFAULT_MIDI_PATH.name} in the repo root)",
    )
    parser.add_argument(
        "-c",
        "--controller",
        type=int,
        default=ExtractionConfig.controller_number,
        help="Controller number to report (default: 22)",
    )
    parser.add_argument(
        "--tempo-track",
        type=int,
        default=ExtractionConfig.tempo_source_track,
        help="Track holding the tempo map (default: 0)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit matching events as a JSON array instead of the text report",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log decoder details to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = ExtractionConfig(
            controller_number=args.controller,
            tempo_source_track=args.tempo_track,
        )
    except ValueError as err:
        parser.error(str(err))

    if not args.json:
        for line in banner(config.controller_number):
            print(line)

    path: Path = args.path
    if not path.exists():
        print(f"Error: MIDI file not found at {path}", file=sys.stderr)
        return 1

    if not args.json:
        print(f"Parsing MIDI file: {path}")

    try:
        midi_file = parse(path.read_bytes())
        if args.json:
            tempo_map = build_tempo_map(
                midi_file, config.tempo_source_track, config.default_tempo
            )
            records = extract_controller_events(
                midi_file,
                tempo_map,
                config.controller_number,
                config.ticks_per_quarter(midi_file),
            )
            print(records_to_json(records))
            return 0
        lines = render_report(midi_file, config)
    except (MidiParseError, OSError) as err:
        log.debug("failed to read %s", path, exc_info=True)
        print(f"Error parsing MIDI file: {err}", file=sys.stderr)
        return 1
    except ValueError as err:
        # Tempo source track out of range, zero resolution.
        print(f"Error: {err}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
