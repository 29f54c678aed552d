from __future__ import annotations


class AudioSplitError(RuntimeError):
    pass


class InvalidInput(AudioSplitError, ValueError):
    pass


class DurationTooSmall(AudioSplitError):
    pass


class InputNotFound(AudioSplitError, FileNotFoundError):
    pass


class ProbeError(AudioSplitError):
    pass


class CutError(AudioSplitError):
    pass


class TranscriptionError(AudioSplitError):
    pass


class LimitExceeded(AudioSplitError):
    """A produced or supplied file is over the byte or duration ceiling."""
