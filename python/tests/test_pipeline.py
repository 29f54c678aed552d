from __future__ import annotations

import dataclasses
from pathlib import Path

from audiosplit import audio, openai_engine, pipeline
from audiosplit.errors import InputNotFound, InvalidInput, LimitExceeded, ProbeError
from audiosplit.models import AudioMetadata, Window


class FakeMedia:
    """Stands in for ffprobe/ffmpeg; cut files get durations from their windows."""

    def __init__(self, source_metadata: AudioMetadata, bytes_per_second: int = 10):
        self.source_metadata = source_metadata
        self.bytes_per_second = bytes_per_second
        self.durations: dict[Path, float] = {}
        self.cuts: list[tuple[Path, Window, Path]] = []

    def probe(self, path: Path) -> AudioMetadata:
        if path in self.durations:
            if self.durations[path] < 0.0005:
                raise ProbeError(f"{path.name}: no audio stream found")
            return AudioMetadata(self.durations[path], self.source_metadata.bitrate_kbps)
        return self.source_metadata

    def cut(self, source: Path, window: Window, out_path: Path) -> None:
        self.cuts.append((source, window, out_path))
        self.durations[out_path] = window.duration_seconds
        out_path.write_bytes(b"x" * int(window.duration_seconds * self.bytes_per_second))


def _install(monkeypatch, media: FakeMedia) -> None:
    monkeypatch.setattr(audio, "probe_metadata", media.probe)
    monkeypatch.setattr(audio, "cut_window", media.cut)


def _source(tmp_path: Path, name: str = "lecture.mp3", size: int = 1024) -> Path:
    path = tmp_path / name
    path.write_bytes(b"\0" * size)
    return path


def test_chunk_audio_cuts_every_window_in_plan_order(monkeypatch, tmp_path: Path):
    media = FakeMedia(AudioMetadata(3600.0, 228.0))
    _install(monkeypatch, media)
    source = _source(tmp_path)
    seen: list[int] = []

    results = pipeline.chunk_audio(source, 25.0, on_segment=lambda r: seen.append(r.index))

    assert [r.path.name for r in results] == [f"lecture_chunk{i:03d}.mp3" for i in range(5)]
    assert seen == [0, 1, 2, 3, 4]
    assert [round(w.start_seconds) for _, w, _ in media.cuts] == [0, 864, 1728, 2592, 3456]
    assert results[-1].window.duration_seconds == 144.0
    assert results[0].size_bytes == 8640


def test_chunk_audio_rejects_non_positive_size(monkeypatch, tmp_path: Path):
    _install(monkeypatch, FakeMedia(AudioMetadata(10.0, 128.0)))
    try:
        pipeline.chunk_audio(_source(tmp_path), 0.0)
    except InvalidInput as exc:
        assert "max_size_mb" in str(exc)
    else:
        raise AssertionError("Expected InvalidInput for max_size_mb=0")


def test_chunk_audio_reports_missing_input(tmp_path: Path):
    try:
        pipeline.chunk_audio(tmp_path / "missing.mp3")
    except InputNotFound as exc:
        assert "was not found" in str(exc)
        assert isinstance(exc, FileNotFoundError)
    else:
        raise AssertionError("Expected InputNotFound for a missing file")


def test_chunk_audio_stops_at_first_oversized_segment(monkeypatch, tmp_path: Path):
    # Pretend the encoder produced far more bytes than the bitrate suggests.
    media = FakeMedia(AudioMetadata(3600.0, 228.0), bytes_per_second=40_000)
    _install(monkeypatch, media)

    try:
        pipeline.chunk_audio(_source(tmp_path))
    except LimitExceeded as exc:
        assert "lecture_chunk000.mp3" in str(exc)
    else:
        raise AssertionError("Expected LimitExceeded when a produced chunk is too large")

    assert len(media.cuts) == 1


def test_split_chunk_names_parts_from_one(monkeypatch, tmp_path: Path):
    media = FakeMedia(AudioMetadata(100.0, 128.0))
    _install(monkeypatch, media)

    results = pipeline.split_chunk(_source(tmp_path, "lecture_chunk002.mp3"), 3)

    assert [r.path.name for r in results] == [
        "lecture_chunk002_part001.mp3",
        "lecture_chunk002_part002.mp3",
        "lecture_chunk002_part003.mp3",
    ]
    assert abs(sum(r.window.duration_seconds for r in results) - 100.0) < 1e-6


def test_split_chunk_requires_compliant_input(monkeypatch, tmp_path: Path):
    media = FakeMedia(AudioMetadata(3600.0, 128.0))
    _install(monkeypatch, media)

    try:
        pipeline.split_chunk(_source(tmp_path), 2)
    except LimitExceeded as exc:
        assert "run `audio-splitter chunk" in str(exc)
    else:
        raise AssertionError("Expected LimitExceeded for an input over the duration limit")
    assert media.cuts == []


def test_split_chunk_rejects_too_few_parts(tmp_path: Path):
    try:
        pipeline.split_chunk(_source(tmp_path), 1)
    except InvalidInput as exc:
        assert "at least 2" in str(exc)
    else:
        raise AssertionError("Expected InvalidInput for parts=1")


def test_preview_plan_does_not_cut(monkeypatch, tmp_path: Path):
    media = FakeMedia(AudioMetadata(4000.0, 128.0))
    _install(monkeypatch, media)
    source = _source(tmp_path)

    chunk_plan = pipeline.preview_plan(source)
    split_plan = pipeline.preview_plan(source, parts=4)

    assert [w.duration_seconds for w in chunk_plan] == [1300.0, 1300.0, 1300.0, 100.0]
    assert len(split_plan) == 4
    assert media.cuts == []


def test_transcribe_file_writes_transcript_beside_input(monkeypatch, tmp_path: Path):
    media = FakeMedia(AudioMetadata(600.0, 128.0))
    _install(monkeypatch, media)
    submitted: list[Path] = []

    def fake_transcribe(path: Path) -> str:
        submitted.append(path)
        return "hello from the chunk"

    monkeypatch.setattr(openai_engine, "transcribe_chunk_openai", fake_transcribe)
    source = _source(tmp_path, "lecture_chunk000.mp3")

    output_path = pipeline.transcribe_file(source)

    assert output_path == tmp_path / "lecture_chunk000.mp3.txt"
    assert output_path.read_text(encoding="utf-8") == "hello from the chunk"
    assert submitted == [source]


def test_transcribe_file_refuses_overlong_input(monkeypatch, tmp_path: Path):
    _install(monkeypatch, FakeMedia(AudioMetadata(1500.0, 128.0)))

    def fail(path: Path) -> str:
        raise AssertionError("transcription must not be attempted")

    monkeypatch.setattr(openai_engine, "transcribe_chunk_openai", fail)
    try:
        pipeline.transcribe_file(_source(tmp_path))
    except LimitExceeded as exc:
        assert "1400 second limit" in str(exc)
    else:
        raise AssertionError("Expected LimitExceeded for an overlong input")


def test_chunk_audio_validates_against_requested_size(monkeypatch, tmp_path: Path):
    # 34s chunks at 40 kB/s come out around 1.3 MB, over a 1 MB request.
    media = FakeMedia(AudioMetadata(3600.0, 228.0), bytes_per_second=40_000)
    _install(monkeypatch, media)

    try:
        pipeline.chunk_audio(_source(tmp_path), 1.0)
    except LimitExceeded as exc:
        assert "lecture_chunk000.mp3" in str(exc)
        assert "1 MB" in str(exc)
    else:
        raise AssertionError("Expected LimitExceeded for chunks over the requested size")

    assert len(media.cuts) == 1


def test_chunk_audio_rejects_size_above_transcription_limit(monkeypatch, tmp_path: Path):
    media = FakeMedia(AudioMetadata(3600.0, 320.0))
    _install(monkeypatch, media)

    try:
        pipeline.chunk_audio(_source(tmp_path), 50.0)
    except InvalidInput as exc:
        assert "25 MB" in str(exc)
    else:
        raise AssertionError("Expected InvalidInput for max_size_mb above the limit")

    assert media.cuts == []
    assert not (tmp_path / "lecture_chunk000.mp3").exists()


def test_chunk_audio_rejects_non_finite_size(tmp_path: Path):
    try:
        pipeline.chunk_audio(_source(tmp_path), float("inf"))
    except InvalidInput as exc:
        assert "finite" in str(exc)
    else:
        raise AssertionError("Expected InvalidInput for an infinite max_size_mb")


def test_chunk_audio_keeps_sub_millisecond_tail_without_probing_it(monkeypatch, tmp_path: Path):
    media = FakeMedia(AudioMetadata(864.0003, 228.0))
    _install(monkeypatch, media)

    results = pipeline.chunk_audio(_source(tmp_path))

    assert [r.path.name for r in results] == ["lecture_chunk000.mp3", "lecture_chunk001.mp3"]
    assert 0 < results[1].window.duration_seconds < 0.0005


def test_split_chunk_stops_at_first_oversized_part(monkeypatch, tmp_path: Path):
    # 50s parts at 600 kB/s are about 30 MB each.
    media = FakeMedia(AudioMetadata(100.0, 128.0), bytes_per_second=600_000)
    _install(monkeypatch, media)

    try:
        pipeline.split_chunk(_source(tmp_path), 2)
    except LimitExceeded as exc:
        assert "lecture_part001.mp3" in str(exc)
        assert "25 MB" in str(exc)
    else:
        raise AssertionError("Expected LimitExceeded when a produced part is too large")

    assert len(media.cuts) == 1


def test_segment_results_are_immutable(monkeypatch, tmp_path: Path):
    _install(monkeypatch, FakeMedia(AudioMetadata(100.0, 128.0)))
    result = pipeline.split_chunk(_source(tmp_path), 2)[0]

    try:
        result.size_bytes = 0
    except dataclasses.FrozenInstanceError:
        pass
    else:
        raise AssertionError("Expected SegmentResult to be frozen")


def test_preview_plan_rejects_size_above_transcription_limit(monkeypatch, tmp_path: Path):
    _install(monkeypatch, FakeMedia(AudioMetadata(100.0, 128.0)))

    try:
        pipeline.preview_plan(_source(tmp_path), max_size_mb=30.0)
    except InvalidInput as exc:
        assert "must not exceed" in str(exc)
    else:
        raise AssertionError("Expected InvalidInput for max_size_mb above the limit")
