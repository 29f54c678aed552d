from __future__ import annotations

import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable

from . import audio, openai_engine
from .errors import AudioSplitError, InputNotFound, InvalidInput
from .limits import DEFAULT_LIMITS, Limits, ensure_ready_for_split, ensure_within_limits
from .models import SegmentResult, Window
from .paths import chunk_output_path, part_output_path, transcript_output_path
from .planning import plan_chunks, plan_equal_split

log = logging.getLogger(__name__)

SegmentCallback = Callable[[SegmentResult], None]


def ensure_input_exists(path: Path) -> None:
    if path.exists():
        return
    raise InputNotFound(f"input file '{path}' was not found")


def validate_segment(
    path: Path,
    limits: Limits = DEFAULT_LIMITS,
    *,
    planned: Window | None = None,
) -> int:
    """Measure a produced file and check it against both ceilings; return its size.

    A planned window too short to express as an ffmpeg timestamp is checked
    against its planned duration; the near-empty file it produces cannot be
    probed.
    """

    size_bytes = audio.measure_file_size(path)
    if planned is not None and audio.below_timestamp_resolution(planned.duration_seconds):
        duration = planned.duration_seconds
    else:
        duration = audio.probe_metadata(path).duration_seconds
    ensure_within_limits(path, size_bytes, duration, limits)
    return size_bytes


def chunk_limits(max_size_mb: float, limits: Limits = DEFAULT_LIMITS) -> Limits:
    """Return ``limits`` with the byte ceiling lowered to the requested chunk size."""

    if not (math.isfinite(max_size_mb) and max_size_mb > 0):
        raise InvalidInput("max_size_mb must be a finite number greater than zero")
    if max_size_mb > limits.max_chunk_mb:
        raise InvalidInput(
            f"max_size_mb must not exceed the {limits.max_chunk_mb:g} MB transcription limit"
        )
    return replace(limits, max_chunk_bytes=int(max_size_mb * 1024 * 1024))


def _cut_plan(
    source: Path,
    plan: Iterable[Window],
    name_for: Callable[[Path, int], Path],
    *,
    limits: Limits,
    on_segment: SegmentCallback | None,
) -> list[SegmentResult]:
    # Windows are cut in plan order; the first failure stops the run.
    results: list[SegmentResult] = []
    for index, window in enumerate(plan):
        out_path = name_for(source, index)
        audio.cut_window(source, window, out_path)
        size_bytes = validate_segment(out_path, limits, planned=window)
        result = SegmentResult(index=index, window=window, path=out_path, size_bytes=size_bytes)
        log.info(
            "Created %s (start: %.3fs, duration: %.3fs)",
            out_path.name,
            window.start_seconds,
            window.duration_seconds,
        )
        if on_segment is not None:
            on_segment(result)
        results.append(result)
    return results


def chunk_audio(
    source: Path,
    max_size_mb: float = DEFAULT_LIMITS.max_chunk_mb,
    *,
    limits: Limits = DEFAULT_LIMITS,
    on_segment: SegmentCallback | None = None,
) -> list[SegmentResult]:
    budget = chunk_limits(max_size_mb, limits)
    ensure_input_exists(source)

    metadata = audio.probe_metadata(source)
    plan = plan_chunks(metadata.duration_seconds, metadata.bitrate_kbps, max_size_mb, limits=limits)
    log.info("Planned %d chunks for %s", len(plan), source.name)
    return _cut_plan(source, plan, chunk_output_path, limits=budget, on_segment=on_segment)


def split_chunk(
    source: Path,
    parts: int,
    *,
    limits: Limits = DEFAULT_LIMITS,
    on_segment: SegmentCallback | None = None,
) -> list[SegmentResult]:
    if parts < 2:
        raise InvalidInput("parts must be at least 2")
    ensure_input_exists(source)

    metadata = audio.probe_metadata(source)
    ensure_ready_for_split(source, audio.measure_file_size(source), metadata.duration_seconds, limits)

    plan = plan_equal_split(metadata.duration_seconds, parts)
    return _cut_plan(source, plan, part_output_path, limits=limits, on_segment=on_segment)


def preview_plan(
    source: Path,
    *,
    max_size_mb: float = DEFAULT_LIMITS.max_chunk_mb,
    parts: int | None = None,
    limits: Limits = DEFAULT_LIMITS,
) -> list[Window]:
    if parts is None:
        chunk_limits(max_size_mb, limits)
    ensure_input_exists(source)
    metadata = audio.probe_metadata(source)
    if parts is not None:
        return plan_equal_split(metadata.duration_seconds, parts)
    return plan_chunks(metadata.duration_seconds, metadata.bitrate_kbps, max_size_mb, limits=limits)


def transcribe_file(source: Path, *, limits: Limits = DEFAULT_LIMITS) -> Path:
    ensure_input_exists(source)
    validate_segment(source, limits)

    transcript = openai_engine.transcribe_chunk_openai(source)

    output_path = transcript_output_path(source)
    try:
        output_path.write_text(transcript, encoding="utf-8")
    except OSError as exc:
        raise AudioSplitError(f"failed to write transcript to '{output_path}': {exc}") from exc
    log.info("Transcript saved to %s", output_path)
    return output_path
