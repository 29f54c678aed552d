from __future__ import annotations

from pathlib import Path

DEFAULT_STEM = "chunk"


def _stem_and_ext(source: Path) -> tuple[str, str]:
    return source.stem or DEFAULT_STEM, source.suffix


def chunk_output_path(source: Path, index: int) -> Path:
    stem, ext = _stem_and_ext(source)
    return source.parent / f"{stem}_chunk{index:03d}{ext}"


def part_output_path(source: Path, index: int) -> Path:
    # Parts are numbered from 1 on disk.
    stem, ext = _stem_and_ext(source)
    return source.parent / f"{stem}_part{index + 1:03d}{ext}"


def transcript_output_path(source: Path) -> Path:
    name = source.name or "transcript"
    return source.parent / f"{name}.txt"
