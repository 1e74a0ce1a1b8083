"""Diagnostic logging setup: stderr always, debug file optionally. Never stdout."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

ROOT_LOGGER = 'sidecar'


def setup_diagnostic_logging(
    level: str,
    tag: str,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Route the ``sidecar`` logger tree to stderr with a fixed line prefix."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.upper())
    root.propagate = False
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(f'{tag} %(message)s'))
    root.addHandler(handler)

    if log_file is not None:
        setup_file_logging(log_file)
    return root


def setup_file_logging(log_path: Path) -> None:
    """Add a timestamped debug log file next to the stderr handler."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
    handler.setLevel(logging.DEBUG)
    logging.getLogger(ROOT_LOGGER).addHandler(handler)
    logging.getLogger('sidecar.cli').info('Debug logging started → %s', log_path)
