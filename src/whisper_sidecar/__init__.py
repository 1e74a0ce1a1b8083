"""whisper-sidecar: out-of-process whisper.cpp transcription worker."""

__version__ = '0.1.0'
