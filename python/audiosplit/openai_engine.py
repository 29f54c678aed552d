from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .errors import TranscriptionError

log = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-transcribe"


def transcribe_model() -> str:
    return os.environ.get("OPENAI_TRANSCRIBE_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL


def request_timeout_sec() -> float:
    raw = os.environ.get("OPENAI_REQUEST_TIMEOUT_SEC", "600")
    try:
        return float(raw)
    except ValueError as exc:
        raise TranscriptionError(f"OPENAI_REQUEST_TIMEOUT_SEC is not a number: {raw!r}") from exc


def load_api_key() -> str:
    value = os.environ.get("OPENAI_API_KEY")
    if value is None:
        raise TranscriptionError("OPENAI_API_KEY environment variable is required for transcription")
    if not value.strip():
        raise TranscriptionError("OPENAI_API_KEY cannot be empty")
    return value.strip()


def _response_text(response: Any) -> str:
    if isinstance(response, str):
        return response
    if isinstance(response, dict):
        return str(response.get("text", ""))
    text = getattr(response, "text", None)
    if isinstance(text, str):
        return text
    if hasattr(response, "model_dump"):
        return str(response.model_dump().get("text", ""))  # pydantic style
    raise TranscriptionError(f"unexpected transcription response type: {type(response).__name__}")


def transcribe_chunk_openai(chunk_path: Path, *, model: str | None = None) -> str:
    """Submit one compliant chunk and return its transcript text.

    The request is sent once; failures are reported, never retried.
    """

    try:
        from openai import OpenAI
    except ImportError as exc:  # pragma: no cover - env dependent
        raise TranscriptionError("the openai package is missing; install the project dependencies") from exc

    api_key = load_api_key()
    model = model or transcribe_model()
    timeout = request_timeout_sec()

    try:
        audio_bytes = chunk_path.read_bytes()
    except OSError as exc:
        raise TranscriptionError(f"failed to read '{chunk_path}': {exc}") from exc

    client = OpenAI(api_key=api_key)
    log.info("Transcribing %s with %s (%d bytes)", chunk_path.name, model, len(audio_bytes))
    try:
        response = client.audio.transcriptions.create(
            model=model,
            file=(chunk_path.name, audio_bytes),
            timeout=timeout,
        )
    except Exception as exc:  # noqa: BLE001 - provider error typing is broad
        raise TranscriptionError(f"transcription request for '{chunk_path.name}' failed: {exc}") from exc

    return _response_text(response)
