"""CLI entry point for whisper-sidecar."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from whisper_sidecar import __version__
from whisper_sidecar.l4_frameworks_and_drivers.logging_setup import setup_diagnostic_logging
from whisper_sidecar.l4_frameworks_and_drivers.stdio import protocol_stdin, reserve_protocol_stdout

log = logging.getLogger('sidecar.cli')

EXIT_ERROR = 1


def _cli_overrides(log_level: str | None, log_file: str | None, max_audio_bytes: int | None) -> dict:
    """Translate CLI flags into a partial config dict."""
    overrides: dict = {}
    if log_level:
        overrides.setdefault('logging', {})['level'] = log_level.upper()
    if log_file:
        overrides.setdefault('logging', {})['file'] = log_file
    if max_audio_bytes is not None:
        overrides['audio'] = {'max_bytes': max_audio_bytes}
    return overrides


@click.command()
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to YAML config file.',
)
@click.option(
    '--log-level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Diagnostic verbosity on stderr.',
)
@click.option(
    '--log-file',
    default=None,
    type=click.Path(dir_okay=False),
    help='Also write timestamped diagnostics to this file.',
)
@click.option(
    '--max-audio-bytes',
    default=None,
    type=click.IntRange(min=1),
    help='Reject audio files larger than this many bytes.',
)
@click.version_option(version=__version__)
def cli(config_path, log_level, log_file, max_audio_bytes):
    """whisper-sidecar -- transcription worker speaking line-delimited JSON on stdin/stdout."""
    import yaml  # noqa: PLC0415 -- deferred: only needed to classify config errors

    from whisper_sidecar.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from whisper_sidecar.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_sidecar_config,
    )

    overrides = _cli_overrides(log_level, log_file, max_audio_bytes)
    try:
        raw = YamlConfigLoader().load_raw(config_path, overrides=overrides or None)
        config = build_sidecar_config(raw)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(EXIT_ERROR)

    setup_diagnostic_logging(
        level=config.logging.level,
        tag=config.logging.tag,
        log_file=Path(config.logging.file) if config.logging.file else None,
    )

    output = reserve_protocol_stdout()

    from whisper_sidecar.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: pywhispercpp not loaded for --help
        DependencyContainer,
    )

    container = DependencyContainer(config)
    loop = container.build_loop(protocol_stdin(), output)
    try:
        code = loop.run()
    except BrokenPipeError:
        log.error('Reply stream closed by host, exiting')
        code = EXIT_ERROR
    finally:
        container.close()
    sys.exit(code)
