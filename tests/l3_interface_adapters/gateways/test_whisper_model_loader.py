"""Tests for the whisper.cpp gateway: patches pywhispercpp.model.Model."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from whisper_sidecar.l1_entities.decoding import DecodingOptions
from whisper_sidecar.l1_entities.errors import ModelLoadError

MODULE = 'whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader'


@patch(f'{MODULE}.os.close')
@patch(f'{MODULE}.os.dup2')
@patch(f'{MODULE}.os.dup')
@patch(f'{MODULE}.os.open', return_value=99)
class TestSuppressCStdout:
    def test_redirects_and_restores_fds(self, mock_open, mock_dup, mock_dup2, mock_close):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import (
            _suppress_c_stdout,  # noqa: PLC2701 -- testing private helper
        )

        mock_dup.side_effect = [10, 11]  # saved stdout, saved stderr

        with _suppress_c_stdout():
            pass

        assert mock_dup2.call_count == 4  # 2 redirects in + 2 restores out
        assert mock_close.call_count == 3

    def test_restores_even_when_body_raises(self, mock_open, mock_dup, mock_dup2, mock_close):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import (
            _suppress_c_stdout,  # noqa: PLC2701 -- testing private helper
        )

        mock_dup.side_effect = [10, 11]

        with pytest.raises(RuntimeError), _suppress_c_stdout():
            raise RuntimeError('inference crashed')

        mock_dup2.assert_any_call(10, 1)
        mock_dup2.assert_any_call(11, 2)


class TestResolveModelFile:
    def test_missing_path(self, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import resolve_model_file

        with pytest.raises(ModelLoadError, match='Model path not found'):
            resolve_model_file(str(tmp_path / 'nope'))

    def test_file_returned_as_is(self, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import resolve_model_file

        f = tmp_path / 'custom.bin'
        f.write_bytes(b'x')
        assert resolve_model_file(str(f)) == f

    def test_directory_prefers_ggml_file(self, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import resolve_model_file

        (tmp_path / 'aaa.bin').write_bytes(b'x')
        (tmp_path / 'ggml-base.bin').write_bytes(b'x')
        (tmp_path / 'README.md').write_text('hi')
        assert resolve_model_file(str(tmp_path)).name == 'ggml-base.bin'

    def test_directory_without_model(self, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import resolve_model_file

        (tmp_path / 'config.json').write_text('{}')
        with pytest.raises(ModelLoadError, match='No ggml model file found'):
            resolve_model_file(str(tmp_path))


@patch(f'{MODULE}.os.close')
@patch(f'{MODULE}.os.dup2')
@patch(f'{MODULE}.os.dup', side_effect=[10, 11, 10, 11, 10, 11])
@patch(f'{MODULE}.os.open', return_value=99)
@patch(f'{MODULE}.Model')
class TestWhisperCppModelLoader:
    def test_calls_model_with_quiet_config(self, mock_model_cls, _open, _dup, _dup2, _close, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import WhisperCppModelLoader

        f = tmp_path / 'ggml-tiny.bin'
        f.write_bytes(b'x')
        WhisperCppModelLoader().load(str(f))

        mock_model_cls.assert_called_once_with(str(f), print_progress=False, print_realtime=False)

    def test_n_threads_forwarded(self, mock_model_cls, _open, _dup, _dup2, _close, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import WhisperCppModelLoader

        f = tmp_path / 'ggml-tiny.bin'
        f.write_bytes(b'x')
        WhisperCppModelLoader(n_threads=4).load(str(f))

        assert mock_model_cls.call_args.kwargs['n_threads'] == 4

    def test_model_constructor_failure_wrapped(self, mock_model_cls, _open, _dup, _dup2, _close, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import WhisperCppModelLoader

        f = tmp_path / 'ggml-tiny.bin'
        f.write_bytes(b'not a model')
        mock_model_cls.side_effect = RuntimeError('invalid model data (bad magic)')

        with pytest.raises(ModelLoadError, match='bad magic'):
            WhisperCppModelLoader().load(str(f))

    def test_missing_path_never_constructs_model(self, mock_model_cls, _open, _dup, _dup2, _close, tmp_path):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import WhisperCppModelLoader

        with pytest.raises(ModelLoadError):
            WhisperCppModelLoader().load(str(tmp_path / 'missing.bin'))
        mock_model_cls.assert_not_called()


@patch(f'{MODULE}.os.close')
@patch(f'{MODULE}.os.dup2')
@patch(f'{MODULE}.os.dup', side_effect=[10, 11, 10, 11])
@patch(f'{MODULE}.os.open', return_value=99)
class TestWhisperCppSession:
    def _session(self, raw_segments):
        from whisper_sidecar.l3_interface_adapters.gateways.whisper_model_loader import WhisperCppSession

        model = MagicMock()
        model.transcribe.return_value = raw_segments
        return WhisperCppSession(model), model

    def test_auto_language_and_token_filters(self, _open, _dup, _dup2, _close):
        session, model = self._session([])
        session.transcribe(np.zeros(16000, dtype=np.float32), DecodingOptions())

        kwargs = model.transcribe.call_args.kwargs
        assert kwargs == {'language': 'auto', 'no_timestamps': True, 'print_special': False}

    def test_explicit_language(self, _open, _dup, _dup2, _close):
        session, model = self._session([])
        session.transcribe(np.zeros(160, dtype=np.float32), DecodingOptions(language='nl'))
        assert model.transcribe.call_args.kwargs['language'] == 'nl'

    def test_centisecond_conversion_keeps_raw_text(self, _open, _dup, _dup2, _close):
        seg = MagicMock()
        seg.text = ' Hello world '
        seg.t0 = 100  # centiseconds → 1.0s
        seg.t1 = 250  # → 2.5s
        session, _model = self._session([seg])

        result = session.transcribe(np.zeros(16000, dtype=np.float32), DecodingOptions())

        assert len(result) == 1
        assert result[0].text == ' Hello world '
        assert result[0].start == pytest.approx(1.0)
        assert result[0].end == pytest.approx(2.5)

    def test_close_then_transcribe_raises(self, _open, _dup, _dup2, _close):
        session, _model = self._session([])
        session.close()
        with pytest.raises(RuntimeError, match='already closed'):
            session.transcribe(np.zeros(16, dtype=np.float32), DecodingOptions())

    def test_close_twice_is_noop(self, _open, _dup, _dup2, _close):
        session, _model = self._session([])
        session.close()
        session.close()  # second call must not touch fds again
        assert _dup.call_count == 2
