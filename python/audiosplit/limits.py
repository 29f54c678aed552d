from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import LimitExceeded

MAX_CHUNK_BYTES = 25 * 1024 * 1024
MAX_TRANSCRIPTION_DURATION_SECONDS = 1400.0
CHUNK_DURATION_BUFFER_SECONDS = 100.0
SAFETY_MARGIN = 0.94


@dataclass(frozen=True, slots=True)
class Limits:
    max_chunk_bytes: int = MAX_CHUNK_BYTES
    max_transcription_duration_seconds: float = MAX_TRANSCRIPTION_DURATION_SECONDS
    chunk_duration_buffer_seconds: float = CHUNK_DURATION_BUFFER_SECONDS
    safety_margin: float = SAFETY_MARGIN

    @property
    def planned_max_duration_seconds(self) -> float:
        # Headroom below the service ceiling, used only when planning chunks.
        return self.max_transcription_duration_seconds - self.chunk_duration_buffer_seconds

    @property
    def max_chunk_mb(self) -> float:
        return self.max_chunk_bytes / (1024 * 1024)


DEFAULT_LIMITS = Limits()


def within_size_limit(file_size_bytes: int, limits: Limits = DEFAULT_LIMITS) -> bool:
    return file_size_bytes <= limits.max_chunk_bytes


def within_duration_limit(duration_seconds: float, limits: Limits = DEFAULT_LIMITS) -> bool:
    return duration_seconds <= limits.max_transcription_duration_seconds


def ensure_within_limits(
    path: Path,
    size_bytes: int,
    duration_seconds: float,
    limits: Limits = DEFAULT_LIMITS,
) -> None:
    """Raise ``LimitExceeded`` if a measured file breaks either ceiling.

    The planners only estimate encoded size, so every file produced by ffmpeg
    is measured again before it is handed to the transcription step.
    """

    if not within_size_limit(size_bytes, limits):
        raise LimitExceeded(
            f"'{path.name}' is {size_bytes} bytes, larger than the "
            f"{limits.max_chunk_mb:g} MB limit"
        )
    if not within_duration_limit(duration_seconds, limits):
        raise LimitExceeded(
            f"'{path.name}' is {duration_seconds:.3f}s long, over the "
            f"{limits.max_transcription_duration_seconds:g} second limit for transcription"
        )


def ensure_ready_for_split(
    path: Path,
    size_bytes: int,
    duration_seconds: float,
    limits: Limits = DEFAULT_LIMITS,
) -> None:
    if within_size_limit(size_bytes, limits) and within_duration_limit(duration_seconds, limits):
        return
    raise LimitExceeded(
        f"input '{path}' exceeds the chunk limits; run `audio-splitter chunk {path}` first"
    )
