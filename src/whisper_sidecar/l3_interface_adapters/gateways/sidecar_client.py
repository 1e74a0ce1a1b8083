"""Gateway: host-side client that spawns the sidecar and speaks its line protocol."""

from __future__ import annotations

import contextlib
import logging
import subprocess  # noqa: S404 -- intentional: spawns the sidecar with a fixed arg list, not shell=True
import sys
import tempfile
import wave
from pathlib import Path

import numpy as np

from whisper_sidecar.l1_entities.audio_constants import SAMPLE_RATE
from whisper_sidecar.l1_entities.errors import (
    InvalidRequestError,
    ModelLoadError,
    SidecarError,
    TranscriptionError,
)
from whisper_sidecar.l1_entities.protocol import Command, CommandKind, Reply

log = logging.getLogger('sidecar.client')

_SILENCE_RMS = 0.01
_SHUTDOWN_TIMEOUT = 5.0  # seconds


def default_command() -> list[str]:
    return [sys.executable, '-m', 'whisper_sidecar']


def audio_rms(audio: np.ndarray) -> float:
    if len(audio) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(audio, dtype=np.float64))))


def write_wav_file(path: Path, audio: np.ndarray) -> None:
    """Write *audio* as 16 kHz mono PCM16 WAV."""
    pcm = np.clip(audio, -1.0, 1.0)
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)  # int16
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes((pcm * 32767).astype('<i2').tobytes())


def write_raw_f32_file(path: Path, audio: np.ndarray) -> None:
    """Write *audio* as consecutive little-endian float32 samples."""
    path.write_bytes(np.asarray(audio, dtype='<f4').tobytes())


class SidecarClient:
    """Drives a sidecar child process over stdin/stdout, one request at a time.

    The sidecar's stderr is inherited so its diagnostics land in the host's
    log. If the child dies, the next request restarts it and reloads the last
    model that loaded successfully.
    """

    def __init__(self, command: list[str] | None = None) -> None:
        self._command = command or default_command()
        self._process: subprocess.Popen | None = None
        self._loaded_model_path: str | None = None

    @property
    def loaded_model_path(self) -> str | None:
        return self._loaded_model_path

    def start(self) -> None:
        if self.is_running():
            log.debug('Sidecar already running')
            return

        log.info('Starting sidecar: %s', ' '.join(self._command))
        try:
            self._process = subprocess.Popen(  # noqa: S603
                self._command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                encoding='utf-8',
                bufsize=1,
            )
        except OSError as e:
            raise SidecarError(f'Failed to spawn sidecar: {e}') from e
        log.info('Sidecar started (pid: %d)', self._process.pid)

    def is_running(self) -> bool:
        if self._process is None:
            return False
        status = self._process.poll()
        if status is None:
            return True
        log.warning('Sidecar exited with status: %s', status)
        self._release_process()
        return False

    def load_model(self, model_path: str) -> None:
        self._ensure_running()
        self._send_load(model_path)
        self._loaded_model_path = model_path
        log.info('Model loaded: %s', model_path)

    def health(self) -> bool:
        """Return whether the sidecar reports a loaded model."""
        self._ensure_running()
        return bool(self._request(Command(type=CommandKind.HEALTH.value)).model_loaded)

    def transcribe(self, audio: np.ndarray, language: str = 'auto') -> str:
        """Transcribe *audio* (float32 mono, 16 kHz).

        Sends a PCM16 WAV first. If that fails, or returns nothing for audio
        that is clearly not silent, retries once with raw float32 PCM.
        """
        self._ensure_running()
        with tempfile.TemporaryDirectory(prefix='whisper_sidecar_') as tmp:
            wav_path = Path(tmp) / 'audio.wav'
            write_wav_file(wav_path, audio)
            try:
                reply: Reply | None = self._send_transcribe(wav_path, language)
            except SidecarError as e:
                log.warning('WAV request failed (%s); retrying raw PCM fallback', e)
                reply = None

            if reply is not None and reply.success:
                text = reply.text or ''
                rms = audio_rms(audio)
                if text.strip() or rms <= _SILENCE_RMS:
                    return text
                log.warning('Empty WAV transcript for non-silent audio (rms %.5f); retrying raw PCM fallback', rms)
            elif reply is not None:
                log.warning('WAV transcription failed (%s); retrying raw PCM fallback', reply.error or 'unknown error')

            raw_path = Path(tmp) / 'audio.raw'
            write_raw_f32_file(raw_path, audio)
            self._ensure_running()
            reply = self._send_transcribe(raw_path, language)

        if not reply.success:
            raise TranscriptionError(f'Sidecar transcription failed: {reply.error or "Unknown transcription error"}')
        return reply.text or ''

    def unload_model(self) -> None:
        self._loaded_model_path = None
        if not self.is_running():
            return
        try:
            self._request(Command(type=CommandKind.UNLOAD.value))
            log.info('Model unloaded')
        except SidecarError as e:
            log.warning('Failed to unload model: %s', e)

    def shutdown(self) -> None:
        """Ask the sidecar to exit; kill it if it does not acknowledge in time."""
        if not self.is_running():
            return
        process = self._process
        try:
            self._request(Command(type=CommandKind.SHUTDOWN.value))
            process.wait(timeout=_SHUTDOWN_TIMEOUT)
        except (SidecarError, subprocess.TimeoutExpired) as e:
            log.warning('Graceful shutdown failed (%s); killing sidecar', e)
            process.kill()
            process.wait()
        self._release_process()
        log.info('Sidecar shut down')

    def close(self) -> None:
        self.shutdown()

    def _ensure_running(self) -> None:
        if self.is_running():
            return
        self.start()
        if self._loaded_model_path is not None:
            log.info('Restoring model after sidecar restart: %s', self._loaded_model_path)
            try:
                self._send_load(self._loaded_model_path)
            except SidecarError as e:
                raise SidecarError(
                    f'Failed to restore model after sidecar restart: {self._loaded_model_path}: {e}'
                ) from e

    def _send_load(self, model_path: str) -> None:
        reply = self._request(Command(type=CommandKind.LOAD.value, model_path=model_path))
        if not reply.success:
            raise ModelLoadError(f'Sidecar load failed: {reply.error or "Unknown error loading model"}')

    def _send_transcribe(self, audio_path: Path, language: str) -> Reply:
        command = Command(type=CommandKind.TRANSCRIBE.value, audio_path=str(audio_path), language=language)
        return self._request(command)

    def _request(self, command: Command) -> Reply:
        """Write one command line and read exactly one reply line."""
        process = self._process
        if process is None or process.stdin is None or process.stdout is None:
            raise SidecarError('Sidecar not running')

        try:
            process.stdin.write(command.to_line() + '\n')
            process.stdin.flush()
        except OSError as e:
            raise SidecarError(f'Failed to write to sidecar stdin: {e}') from e

        try:
            line = process.stdout.readline()
        except OSError as e:
            raise SidecarError(f'Failed to read from sidecar stdout: {e}') from e

        if not line:
            raise SidecarError('Sidecar returned empty response (process may have crashed)')

        try:
            reply = Reply.from_line(line.strip())
        except InvalidRequestError as e:
            raise SidecarError(f'Failed to parse sidecar response: {line.strip()}') from e

        log.debug('Sidecar response: %s', reply)
        return reply

    def _release_process(self) -> None:
        process = self._process
        self._process = None
        if process is None:
            return
        for stream in (process.stdin, process.stdout):
            if stream is not None:
                with contextlib.suppress(OSError):  # pipe may already be broken
                    stream.close()
