"""Error taxonomy for the waveform and tempo pipeline.

None of these are fatal to a caller: the engine converts each one into a
fallback value (placeholder envelope, ``bpm=None``) plus a user notice.
"""


class TrackwaveError(Exception):
    """Base class for recoverable analysis failures."""


class AudioDecodeError(TrackwaveError):
    """Input bytes could not be decoded (corrupt file or unsupported codec)."""


class InconclusiveTempoError(TrackwaveError):
    """Too few onset peaks, or degenerate interval statistics."""


class EmptyAudioWarning(UserWarning):
    """Zero-length or all-silent input; the placeholder envelope is used."""
