"""Port: speech model loading and the opaque session it returns."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from whisper_sidecar.l1_entities.decoding import DecodingOptions
from whisper_sidecar.l1_entities.transcript import TranscriptSegment


class ModelSession(Protocol):
    """An exclusively-owned, loaded speech model. Zero framework types leak through."""

    def transcribe(self, audio: np.ndarray, options: DecodingOptions) -> list[TranscriptSegment]:
        """Transcribe a float32 mono buffer into segments."""
        ...

    def close(self) -> None:
        """Release the model's memory."""
        ...


class ModelLoader(Protocol):
    """Turns a filesystem path into a ModelSession using a fixed configuration."""

    def load(self, model_path: str) -> ModelSession:
        """Load a model. Raises ModelLoadError on failure."""
        ...
