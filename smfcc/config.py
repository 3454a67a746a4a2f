"""Tunable inputs for controller extraction."""

from __future__ import annotations

from dataclasses import dataclass

from .events import DEFAULT_TEMPO, MidiFile
from .timeline import CC_HAPTIC, MAX_DATA_VALUE

FALLBACK_TICKS_PER_QUARTER = 480


@dataclass(frozen=True)
class ExtractionConfig:
    controller_number: int = CC_HAPTIC
    tempo_source_track: int = 0
    default_tempo: int = DEFAULT_TEMPO  # µs per quarter note before any Set Tempo
    fallback_ticks_per_quarter: int = FALLBACK_TICKS_PER_QUARTER

    def __post_init__(self) -> None:
        if not 0 <= self.controller_number <= MAX_DATA_VALUE:
            raise ValueError(f"controller number must be 0-127, got {self.controller_number}")
        if self.tempo_source_track < 0:
            raise ValueError(f"tempo source track must be >= 0, got {self.tempo_source_track}")
        if not 0 < self.default_tempo <= 0xFFFFFF:
            raise ValueError(f"default tempo must fit in 24 bits, got {self.default_tempo}")
        if self.fallback_ticks_per_quarter <= 0:
            raise ValueError(
                f"fallback ticks per quarter must be positive, got {self.fallback_ticks_per_quarter}"
            )

    def ticks_per_quarter(self, midi_file: MidiFile) -> int:
        """Header resolution, or the fallback when the header says 0."""

        return midi_file.ticks_per_quarter_note or self.fallback_ticks_per_quarter
