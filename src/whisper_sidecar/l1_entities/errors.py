"""Domain error types."""


class SidecarError(Exception):
    """Base class for every error the sidecar reports."""


class InvalidRequestError(SidecarError):
    """Raised when an input line cannot be parsed into a Command."""


class ModelLoadError(SidecarError):
    """Raised when a model cannot be loaded from the given path."""


class NoModelLoadedError(SidecarError):
    """Raised when transcription is attempted while no model is loaded."""


class TranscriptionError(SidecarError):
    """Raised when reading audio or running inference fails."""


class AudioDecodeError(TranscriptionError):
    """Raised when an audio file cannot be decoded into samples."""


class AudioTooLargeError(AudioDecodeError):
    """Raised when an audio file exceeds the configured size limit."""
