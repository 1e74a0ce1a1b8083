"""Smoke test: drive a real sidecar process through load → transcribe → unload → shutdown.

Needs a ggml whisper model on disk:

    python scripts/smoke/sidecar_smoke.py /path/to/ggml-base.en.bin

One second of silence is sent, so the transcript is expected to be empty;
what matters is that every step gets a well-formed reply.
"""

from __future__ import annotations

import sys

import numpy as np

from whisper_sidecar.l3_interface_adapters.gateways.sidecar_client import SidecarClient


def main() -> None:
    if len(sys.argv) != 2:
        print('usage: sidecar_smoke.py MODEL_PATH')
        sys.exit(2)
    model_path = sys.argv[1]

    print('--- whisper-sidecar smoke test ---')
    client = SidecarClient()
    try:
        print('[1/5] Starting sidecar and checking health...')
        assert client.health() is False, 'FAIL: fresh sidecar reports a loaded model'
        print('       OK: no model loaded')

        print(f'[2/5] Loading {model_path}...')
        client.load_model(model_path)
        assert client.health() is True, 'FAIL: model not reported as loaded'
        print('       OK: model loaded')

        print('[3/5] Transcribing 1s of silence...')
        text = client.transcribe(np.zeros(16000, dtype=np.float32), language='en')
        print(f'       OK: transcript: {text!r}')

        print('[4/5] Unloading...')
        client.unload_model()
        assert client.health() is False, 'FAIL: model still loaded after unload'
        print('       OK: unloaded')
    finally:
        print('[5/5] Shutting down...')
        client.close()
        print('       OK: clean shutdown')

    print('\nSUCCESS: sidecar protocol round-trip works')


if __name__ == '__main__':
    main()
