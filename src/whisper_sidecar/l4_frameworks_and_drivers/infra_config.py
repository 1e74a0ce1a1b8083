"""Sidecar defaults and config assembly: lives in L4, not domain."""

from __future__ import annotations

import copy

from whisper_sidecar.l1_entities.config import SidecarConfig
from whisper_sidecar.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

SIDECAR_CONFIG_DEFAULTS: dict = {
    'engine': {
        'n_threads': None,
    },
    'audio': {
        'max_bytes': 512 * 1024 * 1024,  # ~2.3 h of 16 kHz float32
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'tag': '[whisper-sidecar]',
    },
}


def build_sidecar_config(raw: dict) -> SidecarConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(SIDECAR_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return SidecarConfig.model_validate(merged)
