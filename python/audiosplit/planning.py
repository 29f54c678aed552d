from __future__ import annotations

import math

from .errors import DurationTooSmall, InvalidInput
from .limits import DEFAULT_LIMITS, Limits
from .models import Window

_UNSET = object()


def _require_positive(name: str, value: float) -> None:
    if not (math.isfinite(value) and value > 0):
        raise InvalidInput(f"{name} must be a finite number greater than zero")


def chunk_duration_seconds(
    bitrate_kbps: float,
    max_size_mb: float,
    *,
    safety_margin: float | None,
    max_chunk_duration: float | None,
) -> float:
    bits_per_second = bitrate_kbps * 1000.0
    max_bits_per_chunk = max_size_mb * 1024.0 * 1024.0 * 8.0
    # Encoded size is only roughly bitrate * duration; container overhead eats into the budget.
    safe_bits_per_chunk = max_bits_per_chunk * (1.0 if safety_margin is None else safety_margin)
    duration = float(math.floor(safe_bits_per_chunk / bits_per_second))
    if max_chunk_duration is not None:
        duration = min(duration, max_chunk_duration)
    return duration


def plan_chunks(
    duration_seconds: float,
    bitrate_kbps: float,
    max_size_mb: float,
    *,
    limits: Limits = DEFAULT_LIMITS,
    safety_margin: float | None | object = _UNSET,
    max_chunk_duration: float | None | object = _UNSET,
) -> list[Window]:
    """Plan contiguous windows that each stay under ``max_size_mb``.

    ``safety_margin`` and ``max_chunk_duration`` default to the values carried
    by ``limits``. Pass ``None`` for either to plan without that policy, e.g.
    the plain size-only plan is ``plan_chunks(d, b, mb, safety_margin=None,
    max_chunk_duration=None)``.

    Every window but the last has the same duration; the last one takes
    whatever remains, however short.
    """

    _require_positive("duration_seconds", duration_seconds)
    _require_positive("bitrate_kbps", bitrate_kbps)
    _require_positive("max_size_mb", max_size_mb)

    margin = limits.safety_margin if safety_margin is _UNSET else safety_margin
    ceiling = limits.planned_max_duration_seconds if max_chunk_duration is _UNSET else max_chunk_duration
    if margin is not None:
        _require_positive("safety_margin", margin)
    if ceiling is not None:
        _require_positive("max_chunk_duration", ceiling)

    chunk = chunk_duration_seconds(
        bitrate_kbps,
        max_size_mb,
        safety_margin=margin,
        max_chunk_duration=ceiling,
    )
    if chunk < 1.0:
        raise DurationTooSmall("calculated chunk duration is less than one second; adjust inputs")

    plan: list[Window] = []
    start = 0.0
    while start < duration_seconds:
        remaining = duration_seconds - start
        duration = min(chunk, remaining)
        plan.append(Window(start_seconds=start, duration_seconds=duration))
        start += duration
    return plan


def plan_equal_split(duration_seconds: float, parts: int) -> list[Window]:
    """Split ``duration_seconds`` into ``parts`` contiguous windows of near-equal length.

    Each step divides what is left by the number of windows still to emit, so
    rounding error is spread out; the last window takes exactly the remainder.
    """

    _require_positive("duration_seconds", duration_seconds)
    if isinstance(parts, bool) or not isinstance(parts, int):
        raise InvalidInput("parts must be a whole number")
    if parts < 2:
        raise InvalidInput("parts must be at least 2")

    plan: list[Window] = []
    start = 0.0
    for i in range(parts):
        remaining = duration_seconds - start
        segments_left = parts - i
        duration = remaining if segments_left == 1 else remaining / segments_left
        plan.append(Window(start_seconds=start, duration_seconds=duration))
        start += duration
    return plan
