"""Gateway: audio file loader: raw little-endian float32 PCM, or 16-bit WAV."""

from __future__ import annotations

import io
import logging
import wave
from pathlib import Path

import numpy as np

from whisper_sidecar.l1_entities.audio_constants import SAMPLE_RATE, SAMPLE_WIDTH
from whisper_sidecar.l1_entities.errors import AudioDecodeError, AudioTooLargeError

log = logging.getLogger('sidecar.audio')

_F32LE = np.dtype('<f4')


def is_wav(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b'RIFF' and data[8:12] == b'WAVE'


def decode_f32le(data: bytes) -> np.ndarray:
    """Reinterpret *data* as consecutive little-endian float32 samples.

    Trailing bytes that do not make up a whole sample are dropped.
    """
    count = len(data) // SAMPLE_WIDTH
    remainder = len(data) % SAMPLE_WIDTH
    if remainder:
        log.debug('Ignoring %d trailing byte(s) after %d samples', remainder, count)
    if count == 0:
        return np.zeros(0, dtype=np.float32)
    return np.frombuffer(data, dtype=_F32LE, count=count).astype(np.float32)


def decode_wav_pcm16(data: bytes) -> np.ndarray:
    """Decode a 16-bit PCM WAV into float32 mono at SAMPLE_RATE."""
    try:
        with wave.open(io.BytesIO(data), 'rb') as wf:
            channels = wf.getnchannels()
            sample_width = wf.getsampwidth()
            frame_rate = wf.getframerate()
            frames = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise AudioDecodeError(f'Invalid WAV file: {e}') from e

    if sample_width != 2:
        raise AudioDecodeError(f'Unsupported WAV sample width: {sample_width * 8}-bit (expected 16-bit)')

    pcm = np.frombuffer(frames, dtype='<i2', count=len(frames) // 2)
    pcm = pcm[: len(pcm) - len(pcm) % channels]
    audio = pcm.astype(np.float32) / 32768.0
    if channels > 1:
        audio = audio.reshape(-1, channels).mean(axis=1).astype(np.float32)

    if frame_rate != SAMPLE_RATE and len(audio) > 0:
        log.warning('Resampling WAV from %d Hz to %d Hz', frame_rate, SAMPLE_RATE)
        target_length = int(len(audio) * SAMPLE_RATE / frame_rate)
        audio = np.interp(
            np.linspace(0, len(audio), target_length, endpoint=False),
            np.arange(len(audio)),
            audio,
        ).astype(np.float32)

    return audio


class RawAudioLoader:
    """Implements the AudioLoader port. Reads the whole file into memory."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self._max_bytes = max_bytes

    def load(self, audio_path: str) -> np.ndarray:
        path = Path(audio_path)
        if self._max_bytes is not None:
            size = path.stat().st_size
            if size > self._max_bytes:
                raise AudioTooLargeError(f'Audio file too large: {size} bytes exceeds limit of {self._max_bytes} bytes')

        data = path.read_bytes()
        audio = None
        if is_wav(data):
            try:
                audio = decode_wav_pcm16(data)
            except AudioDecodeError as e:
                log.debug('%s; reading %s as raw float32 instead', e, path)
        if audio is None:
            audio = decode_f32le(data)
        log.debug('Decoded %d samples from %s', len(audio), path)
        return audio
