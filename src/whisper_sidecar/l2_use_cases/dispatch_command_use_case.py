"""Use case: map one parsed Command onto the engine and build its Reply."""

from __future__ import annotations

import logging

from whisper_sidecar.l1_entities.errors import SidecarError
from whisper_sidecar.l1_entities.protocol import REPLY_KIND_FOR, Command, CommandKind, Reply, ReplyKind
from whisper_sidecar.l2_use_cases.transcription_engine import TranscriptionEngine

log = logging.getLogger('sidecar.dispatch')


class DispatchCommandUseCase:
    """Turns every Command into exactly one Reply.

    Missing arguments and engine failures come back as a failed reply of the
    command's own type so the host can correlate it. Unknown command types
    yield an ``error`` reply. Does NO I/O itself.
    """

    def __init__(self, engine: TranscriptionEngine) -> None:
        self._engine = engine
        self._handlers = {
            CommandKind.LOAD: self._load,
            CommandKind.TRANSCRIBE: self._transcribe,
            CommandKind.UNLOAD: self._unload,
            CommandKind.HEALTH: self._health,
            CommandKind.SHUTDOWN: self._shutdown,
        }

    def execute(self, command: Command) -> Reply:
        kind = command.kind
        if kind is None:
            log.warning('Unknown command: %s', command.type)
            return Reply.failure(ReplyKind.ERROR, f'Unknown command: {command.type}')

        log.debug('Dispatching %s', kind.value)
        try:
            return self._handlers[kind](command)
        except SidecarError as e:
            log.error('%s failed: %s', kind.value, e)
            return Reply.failure(REPLY_KIND_FOR[kind], str(e))
        except Exception as e:
            log.exception('Unexpected failure while handling %s', kind.value)
            return Reply.failure(REPLY_KIND_FOR[kind], str(e) or type(e).__name__)

    def _load(self, command: Command) -> Reply:
        if command.model_path is None:
            return Reply.failure(ReplyKind.LOADED, 'Missing model_path')
        self._engine.load(command.model_path)
        return Reply.ok(ReplyKind.LOADED)

    def _transcribe(self, command: Command) -> Reply:
        if command.audio_path is None:
            return Reply.failure(ReplyKind.TRANSCRIPTION, 'Missing audio_path')
        text = self._engine.transcribe(command.audio_path, command.language)
        return Reply.ok(ReplyKind.TRANSCRIPTION, text=text)

    def _unload(self, command: Command) -> Reply:
        self._engine.unload()
        return Reply.ok(ReplyKind.UNLOADED)

    def _health(self, command: Command) -> Reply:
        return Reply.health(model_loaded=self._engine.is_loaded())

    def _shutdown(self, command: Command) -> Reply:
        return Reply.ok(ReplyKind.SHUTDOWN_ACK)
