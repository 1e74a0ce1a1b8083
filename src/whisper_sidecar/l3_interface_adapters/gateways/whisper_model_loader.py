"""Gateway: whisper.cpp model loader and session: implements ModelLoader / ModelSession ports."""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path

import numpy as np
from pywhispercpp.model import Model

from whisper_sidecar.l1_entities.decoding import AUTO_LANGUAGE, DecodingOptions
from whisper_sidecar.l1_entities.errors import ModelLoadError
from whisper_sidecar.l1_entities.transcript import TranscriptSegment

log = logging.getLogger('sidecar.whisper')


@contextlib.contextmanager
def _suppress_c_stdout():
    """Redirect C-level stdout and stderr to /dev/null.

    whisper.cpp prints init/progress messages directly via C fprintf,
    bypassing Python's sys.stdout. On fd 1 that would corrupt the reply stream.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    old_stdout = os.dup(1)
    old_stderr = os.dup(2)
    try:
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
        yield
    finally:
        os.dup2(old_stdout, 1)
        os.dup2(old_stderr, 2)
        os.close(devnull)
        os.close(old_stdout)
        os.close(old_stderr)


def resolve_model_file(model_path: str) -> Path:
    """Map a model file or a model directory to the ggml file to load."""
    path = Path(model_path)
    if not path.exists():
        raise ModelLoadError(f'Model path not found: {model_path}')
    if path.is_file():
        return path

    candidates = sorted(path.glob('*.bin'), key=lambda p: (not p.name.startswith('ggml'), p.name))
    if not candidates:
        raise ModelLoadError(f'No ggml model file found in {model_path}')
    if len(candidates) > 1:
        log.warning('Multiple model files in %s, using %s', model_path, candidates[0].name)
    return candidates[0]


class WhisperCppSession:
    """pywhispercpp adapter. Handles C stdout suppression and centisecond-to-seconds conversion."""

    def __init__(self, model: Model) -> None:
        self._model: Model | None = model

    def transcribe(self, audio: np.ndarray, options: DecodingOptions) -> list[TranscriptSegment]:
        if self._model is None:
            raise RuntimeError('Model session already closed')

        kwargs: dict = {
            'language': options.language or AUTO_LANGUAGE,
            'no_timestamps': options.without_timestamps,
            'print_special': not options.skip_special_tokens,
        }

        with _suppress_c_stdout():
            raw_segments = self._model.transcribe(audio, **kwargs)

        return [TranscriptSegment(text=seg.text, start=seg.t0 / 100.0, end=seg.t1 / 100.0) for seg in raw_segments]

    def close(self) -> None:
        """Explicitly release the model, suppressing C-level teardown noise."""
        if self._model is not None:
            with _suppress_c_stdout():
                del self._model
                self._model = None


class WhisperCppModelLoader:
    """Builds WhisperCppSession instances with a fixed, quiet configuration."""

    def __init__(self, n_threads: int | None = None) -> None:
        self._n_threads = n_threads

    def load(self, model_path: str) -> WhisperCppSession:
        model_file = resolve_model_file(model_path)
        params: dict = {'print_progress': False, 'print_realtime': False}
        if self._n_threads is not None:
            params['n_threads'] = self._n_threads

        log.debug('Loading ggml file %s', model_file)
        try:
            with _suppress_c_stdout():
                model = Model(str(model_file), **params)
        except Exception as e:
            raise ModelLoadError(f'Failed to load model {model_file}: {e}') from e
        return WhisperCppSession(model)
