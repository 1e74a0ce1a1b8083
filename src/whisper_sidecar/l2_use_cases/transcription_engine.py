"""Use case: model lifecycle owner and transcription dispatch."""

from __future__ import annotations

import logging
import threading

from whisper_sidecar.l1_entities.decoding import DecodingOptions
from whisper_sidecar.l1_entities.engine_state import EngineState
from whisper_sidecar.l1_entities.errors import ModelLoadError, NoModelLoadedError, TranscriptionError
from whisper_sidecar.l1_entities.transcript import join_segment_text
from whisper_sidecar.l2_use_cases.ports.audio_loader import AudioLoader
from whisper_sidecar.l2_use_cases.ports.model_loader import ModelLoader, ModelSession

log = logging.getLogger('sidecar.engine')


class TranscriptionEngine:
    """Sole owner of the loaded model session.

    Every operation that touches the session runs under one lock, so a
    ``transcribe`` never observes a half-finished ``load`` or ``unload`` even
    when the engine is driven from several threads. ``is_loaded`` reads the
    reference without locking and never blocks.
    """

    def __init__(self, model_loader: ModelLoader, audio_loader: AudioLoader) -> None:
        self._model_loader = model_loader
        self._audio_loader = audio_loader
        self._lock = threading.Lock()
        self._session: ModelSession | None = None
        self._model_path: str | None = None
        self._state = EngineState.UNLOADED

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def model_path(self) -> str | None:
        return self._model_path

    def is_loaded(self) -> bool:
        return self._session is not None

    def load(self, model_path: str) -> None:
        """Load *model_path*, replacing any current session.

        On failure the previous session (if any) stays loaded and the state
        is restored. Raises ModelLoadError.
        """
        with self._lock:
            previous_state = self._state
            self._state = EngineState.LOADING
            log.info('Loading model from: %s', model_path)
            try:
                session = self._model_loader.load(model_path)
            except ModelLoadError:
                self._state = previous_state
                raise
            except Exception as e:
                self._state = previous_state
                raise ModelLoadError(str(e)) from e

            old_session = self._session
            self._session = session
            self._model_path = model_path
            self._state = EngineState.LOADED
            if old_session is not None:
                log.info('Releasing previously loaded model')
                try:
                    old_session.close()
                except Exception:  # noqa: BLE001 -- best-effort; the new session is already in place
                    log.warning('Failed to release previous model', exc_info=True)
            log.info('Model loaded successfully')

    def transcribe(self, audio_path: str, language: str | None = None) -> str:
        """Decode *audio_path* and return the joined, trimmed transcript.

        Raises NoModelLoadedError before touching the file when nothing is
        loaded, TranscriptionError for any read, decode or inference failure.
        """
        with self._lock:
            session = self._session
            if session is None:
                raise NoModelLoadedError('No model loaded')

            log.info('Transcribing: %s, language: %s', audio_path, language or 'auto')
            self._state = EngineState.TRANSCRIBING
            try:
                audio = self._audio_loader.load(audio_path)
                options = DecodingOptions.for_language(language)
                segments = session.transcribe(audio, options)
            except TranscriptionError:
                raise
            except Exception as e:
                raise TranscriptionError(str(e)) from e
            finally:
                self._state = EngineState.LOADED

        text = join_segment_text(segments)
        log.info('Transcription result: %s', text)
        return text

    def unload(self) -> None:
        """Release the session. Unloading when nothing is loaded is a no-op."""
        with self._lock:
            session = self._session
            if session is None:
                return
            self._state = EngineState.UNLOADING
            self._session = None
            self._model_path = None
            try:
                session.close()
            except Exception:  # noqa: BLE001 -- the session is already dropped; unload still succeeds
                log.warning('Failed to release model cleanly', exc_info=True)
            self._state = EngineState.UNLOADED
            log.info('Model unloaded')
