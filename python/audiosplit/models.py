from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AudioMetadata:
    duration_seconds: float
    bitrate_kbps: float


@dataclass(frozen=True, slots=True)
class Window:
    start_seconds: float
    duration_seconds: float

    @property
    def end_seconds(self) -> float:
        return self.start_seconds + self.duration_seconds

    def to_dict(self) -> dict[str, float]:
        return {
            "startSec": round(self.start_seconds, 3),
            "durationSec": round(self.duration_seconds, 3),
        }


@dataclass(frozen=True, slots=True)
class SegmentResult:
    index: int
    window: Window
    path: Path
    size_bytes: int

    def to_dict(self) -> dict[str, object]:
        return {
            "index": self.index,
            "path": str(self.path),
            "sizeBytes": self.size_bytes,
            **self.window.to_dict(),
        }
