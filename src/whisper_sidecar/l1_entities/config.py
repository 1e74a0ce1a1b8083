"""Configuration Pydantic models: pure schema, no infrastructure defaults."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class EngineConfig(BaseModel):
    n_threads: int | None = Field(default=None, ge=1)  # None → whisper.cpp default


class AudioConfig(BaseModel):
    max_bytes: int | None = Field(default=None, ge=1)  # None → unbounded


class LoggingConfig(BaseModel):
    level: LogLevel
    file: str | None = None
    tag: str

    @field_validator('level', mode='before')
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class SidecarConfig(BaseModel):
    engine: EngineConfig
    audio: AudioConfig
    logging: LoggingConfig
