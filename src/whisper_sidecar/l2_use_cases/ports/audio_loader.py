"""Port: audio file decoding."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class AudioLoader(Protocol):
    """Reads an audio file into a float32 mono buffer."""

    def load(self, audio_path: str) -> np.ndarray:
        """Decode *audio_path*. Raises OSError or AudioDecodeError on failure."""
        ...
