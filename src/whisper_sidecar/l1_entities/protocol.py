"""Wire protocol entities: one Command per input line, one Reply per output line."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ValidationError

from whisper_sidecar.l1_entities.errors import InvalidRequestError

INVALID_REQUEST_MESSAGE = 'Invalid JSON request'


class CommandKind(str, enum.Enum):
    LOAD = 'load'
    TRANSCRIBE = 'transcribe'
    UNLOAD = 'unload'
    HEALTH = 'health'
    SHUTDOWN = 'shutdown'


class ReplyKind(str, enum.Enum):
    LOADED = 'loaded'
    TRANSCRIPTION = 'transcription'
    UNLOADED = 'unloaded'
    HEALTH = 'health'
    SHUTDOWN_ACK = 'shutdown_ack'
    ERROR = 'error'


REPLY_KIND_FOR: dict[CommandKind, ReplyKind] = {
    CommandKind.LOAD: ReplyKind.LOADED,
    CommandKind.TRANSCRIBE: ReplyKind.TRANSCRIPTION,
    CommandKind.UNLOAD: ReplyKind.UNLOADED,
    CommandKind.HEALTH: ReplyKind.HEALTH,
    CommandKind.SHUTDOWN: ReplyKind.SHUTDOWN_ACK,
}


class Command(BaseModel):
    """An inbound instruction. Unknown ``type`` values parse fine and fail at dispatch."""

    type: str
    model_path: str | None = None
    audio_path: str | None = None
    language: str | None = None

    @classmethod
    def from_line(cls, line: str) -> Command:
        try:
            return cls.model_validate_json(line)
        except ValidationError as e:
            raise InvalidRequestError(INVALID_REQUEST_MESSAGE) from e

    @property
    def kind(self) -> CommandKind | None:
        """The recognised command kind, or None for an unknown ``type``."""
        try:
            return CommandKind(self.type)
        except ValueError:
            return None

    def to_line(self) -> str:
        return self.model_dump_json(exclude_none=True)


class Reply(BaseModel):
    """An outbound result. Fields that do not apply stay None and are omitted on the wire."""

    type: str
    success: bool | None = None
    text: str | None = None
    error: str | None = None
    model_loaded: bool | None = None

    @classmethod
    def ok(cls, kind: ReplyKind, text: str | None = None) -> Reply:
        return cls(type=kind.value, success=True, text=text)

    @classmethod
    def failure(cls, kind: ReplyKind, error: str) -> Reply:
        return cls(type=kind.value, success=False, error=error)

    @classmethod
    def health(cls, model_loaded: bool) -> Reply:
        return cls(type=ReplyKind.HEALTH.value, model_loaded=model_loaded)

    @classmethod
    def invalid_request(cls) -> Reply:
        return cls.failure(ReplyKind.ERROR, INVALID_REQUEST_MESSAGE)

    @classmethod
    def from_line(cls, line: str) -> Reply:
        try:
            return cls.model_validate_json(line)
        except ValidationError as e:
            raise InvalidRequestError(f'Unparseable reply: {line}') from e

    def to_line(self) -> str:
        """Compact single-line JSON; None fields are left out rather than sent as null."""
        return self.model_dump_json(exclude_none=True)
