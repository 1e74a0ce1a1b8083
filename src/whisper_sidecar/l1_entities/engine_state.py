"""L1 entity: model lifecycle state."""

from __future__ import annotations

import enum


class EngineState(enum.Enum):
    UNLOADED = 'unloaded'
    LOADING = 'loading'
    LOADED = 'loaded'
    TRANSCRIBING = 'transcribing'
    UNLOADING = 'unloading'
