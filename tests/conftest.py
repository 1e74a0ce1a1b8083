"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest

from whisper_sidecar.l1_entities.decoding import DecodingOptions
from whisper_sidecar.l1_entities.errors import ModelLoadError
from whisper_sidecar.l1_entities.transcript import TranscriptSegment
from whisper_sidecar.l2_use_cases.dispatch_command_use_case import DispatchCommandUseCase
from whisper_sidecar.l2_use_cases.transcription_engine import TranscriptionEngine
from whisper_sidecar.l4_frameworks_and_drivers.infra_config import build_sidecar_config

# --- Protocol-conforming Fakes ---


class FakeModelSession:
    """Fake model session: returns canned segments and records every call."""

    def __init__(self, model_path: str, segments: list[TranscriptSegment] | None = None) -> None:
        self.model_path = model_path
        self._segments = segments if segments is not None else []
        self.transcribe_calls: list[tuple[np.ndarray, DecodingOptions]] = []
        self.closed = False
        self.error: Exception | None = None
        self.close_error: Exception | None = None

    def transcribe(self, audio: np.ndarray, options: DecodingOptions) -> list[TranscriptSegment]:
        self.transcribe_calls.append((audio, options))
        if self.error is not None:
            raise self.error
        return self._segments

    def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeModelLoader:
    """Fake model loader: paths listed in ``bad_paths`` fail, everything else loads."""

    def __init__(self, segments: list[TranscriptSegment] | None = None) -> None:
        self._segments = segments
        self.bad_paths: set[str] = set()
        self.sessions: list[FakeModelSession] = []

    def load(self, model_path: str) -> FakeModelSession:
        if model_path in self.bad_paths:
            raise ModelLoadError(f'Model path not found: {model_path}')
        session = FakeModelSession(model_path, self._segments)
        self.sessions.append(session)
        return session

    def set_segments(self, segments: list[TranscriptSegment]) -> None:
        self._segments = segments


class FakeAudioLoader:
    """Fake audio loader: returns a fixed buffer, or raises ``error`` if set."""

    def __init__(self, audio: np.ndarray | None = None) -> None:
        self._audio = audio if audio is not None else np.zeros(16000, dtype=np.float32)
        self.load_calls: list[str] = []
        self.error: Exception | None = None

    def load(self, audio_path: str) -> np.ndarray:
        self.load_calls.append(audio_path)
        if self.error is not None:
            raise self.error
        return self._audio


def segments(*texts: str) -> list[TranscriptSegment]:
    return [TranscriptSegment(text=t, start=float(i), end=float(i + 1)) for i, t in enumerate(texts)]


def run_lines(loop_factory, lines: list[str]) -> tuple[int, list[str]]:
    """Feed *lines* through a ProtocolLoop built by *loop_factory*; return (exit code, output lines)."""
    stdin = io.StringIO(''.join(line + '\n' for line in lines))
    stdout = io.StringIO()
    code = loop_factory(stdin, stdout).run()
    return code, stdout.getvalue().splitlines()


# --- Standard Fixtures ---


@pytest.fixture
def fake_model_loader() -> FakeModelLoader:
    return FakeModelLoader(segments=segments(' Hello', ' world.'))


@pytest.fixture
def fake_audio_loader() -> FakeAudioLoader:
    return FakeAudioLoader()


@pytest.fixture
def engine(fake_model_loader: FakeModelLoader, fake_audio_loader: FakeAudioLoader) -> TranscriptionEngine:
    return TranscriptionEngine(fake_model_loader, fake_audio_loader)


@pytest.fixture
def dispatcher(engine: TranscriptionEngine) -> DispatchCommandUseCase:
    return DispatchCommandUseCase(engine)


@pytest.fixture
def default_config():
    return build_sidecar_config({})


@pytest.fixture
def f32_audio_file(tmp_path: Path) -> Path:
    p = tmp_path / 'audio.raw'
    p.write_bytes(np.array([0.0, 0.5, -0.5, 1.0], dtype='<f4').tobytes())
    return p
