"""Allow ``python -m whisper_sidecar`` so hosts can spawn the sidecar with their interpreter."""

from whisper_sidecar.l4_frameworks_and_drivers.cli import cli

if __name__ == '__main__':
    cli()
