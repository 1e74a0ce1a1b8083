"""Dependency container: composition root for wiring all layers together."""

from __future__ import annotations

import logging
from typing import TextIO

from whisper_sidecar.l1_entities.config import SidecarConfig
from whisper_sidecar.l2_use_cases.dispatch_command_use_case import DispatchCommandUseCase
from whisper_sidecar.l2_use_cases.ports.audio_loader import AudioLoader
from whisper_sidecar.l2_use_cases.ports.model_loader import ModelLoader
from whisper_sidecar.l2_use_cases.transcription_engine import TranscriptionEngine
from whisper_sidecar.l3_interface_adapters.controllers.protocol_loop import ProtocolLoop
from whisper_sidecar.l3_interface_adapters.gateways.raw_audio_loader import RawAudioLoader
from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import WhisperCppModelLoader

log = logging.getLogger('sidecar.cli')


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(
        self,
        config: SidecarConfig,
        model_loader: ModelLoader | None = None,
        audio_loader: AudioLoader | None = None,
    ) -> None:
        self.config = config
        self.model_loader: ModelLoader = model_loader or WhisperCppModelLoader(n_threads=config.engine.n_threads)
        self.audio_loader: AudioLoader = audio_loader or RawAudioLoader(max_bytes=config.audio.max_bytes)
        self.engine = TranscriptionEngine(self.model_loader, self.audio_loader)
        self.dispatcher = DispatchCommandUseCase(self.engine)

    def build_loop(self, input_stream: TextIO, output_stream: TextIO) -> ProtocolLoop:
        return ProtocolLoop(self.dispatcher, input_stream, output_stream)

    def close(self) -> None:
        """Release the model, if any. Safe to call more than once."""
        if self.engine.is_loaded():
            log.info('Releasing model before exit')
        self.engine.unload()
