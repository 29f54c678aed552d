from __future__ import annotations

import json
import logging
import math
import os
import subprocess
from pathlib import Path

from .errors import CutError, ProbeError
from .models import AudioMetadata, Window

log = logging.getLogger(__name__)


def ffmpeg_bin() -> str:
    return os.environ.get("FFMPEG_BIN", "ffmpeg")


def ffprobe_bin() -> str:
    return os.environ.get("FFPROBE_BIN", "ffprobe")


def run(cmd: list[str]) -> subprocess.CompletedProcess[bytes]:
    log.debug("Running %s", " ".join(cmd))
    return subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)


def _stderr_text(exc: subprocess.CalledProcessError) -> str:
    stderr = exc.stderr or b""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr.strip()


def measure_file_size(path: Path) -> int:
    return path.stat().st_size


def _parse_number(raw: object, field: str) -> float:
    try:
        value = float(str(raw))
    except (TypeError, ValueError) as exc:
        raise ProbeError(f"failed to parse {field} from ffprobe output: {raw!r}") from exc
    if not math.isfinite(value):
        raise ProbeError(f"failed to parse {field} from ffprobe output: {raw!r}")
    return value


def parse_probe_output(raw: bytes | str) -> AudioMetadata:
    """Read duration and bitrate out of ``ffprobe -of json`` output.

    The container bitrate is preferred; some formats only report it on the
    first audio stream.
    """

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ProbeError("failed to parse ffprobe JSON output") from exc
    if not isinstance(payload, dict):
        raise ProbeError("failed to parse ffprobe JSON output")

    fmt = payload.get("format") or {}
    streams = payload.get("streams") or []

    duration = fmt.get("duration")
    if duration is None:
        raise ProbeError("duration missing from ffprobe output")

    bit_rate = fmt.get("bit_rate")
    if bit_rate is None and streams and isinstance(streams[0], dict):
        bit_rate = streams[0].get("bit_rate")
    if bit_rate is None:
        raise ProbeError("bitrate missing from ffprobe output")

    return AudioMetadata(
        duration_seconds=_parse_number(duration, "duration"),
        bitrate_kbps=_parse_number(bit_rate, "bitrate") / 1000.0,
    )


def probe_metadata(source: Path) -> AudioMetadata:
    cmd = [
        ffprobe_bin(),
        "-v",
        "error",
        "-select_streams",
        "a:0",
        "-show_entries",
        "format=duration,bit_rate:stream=bit_rate",
        "-of",
        "json",
        str(source),
    ]
    try:
        completed = run(cmd)
    except FileNotFoundError as exc:
        raise ProbeError("failed to run ffprobe, is it installed and on PATH?") from exc
    except subprocess.CalledProcessError as exc:
        raise ProbeError(f"ffprobe returned a non-zero status:\n{_stderr_text(exc)}") from exc

    metadata = parse_probe_output(completed.stdout)
    log.info(
        "Probed %s: %.3fs at %.1f kbps",
        source.name,
        metadata.duration_seconds,
        metadata.bitrate_kbps,
    )
    return metadata


def inspect_media(source: Path) -> str:
    cmd = [ffmpeg_bin(), "-hide_banner", "-i", str(source), "-f", "null", "-"]
    try:
        completed = run(cmd)
    except FileNotFoundError as exc:
        raise ProbeError("failed to run ffmpeg, is it installed and on PATH?") from exc
    except subprocess.CalledProcessError as exc:
        raise ProbeError(
            f"ffmpeg returned a non-zero status while inspecting the file:\n{_stderr_text(exc)}"
        ) from exc
    return completed.stderr.decode("utf-8", errors="replace")


def below_timestamp_resolution(seconds: float) -> bool:
    # ffmpeg gets timestamps with millisecond precision, see cut_window.
    return f"{seconds:.3f}" == "0.000"


def cut_window(source: Path, window: Window, out_path: Path) -> None:
    """Copy ``window`` of ``source`` into ``out_path`` without re-encoding."""

    out_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        ffmpeg_bin(),
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(source),
        "-ss",
        f"{window.start_seconds:.3f}",
        "-t",
        f"{window.duration_seconds:.3f}",
        "-c",
        "copy",
        str(out_path),
    ]
    try:
        run(cmd)
    except FileNotFoundError as exc:
        raise CutError(f"failed to run ffmpeg while creating {out_path.name}") from exc
    except subprocess.CalledProcessError as exc:
        raise CutError(f"ffmpeg failed to create {out_path.name}:\n{_stderr_text(exc)}") from exc
