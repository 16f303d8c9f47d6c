"""Tests for WAV decoding."""

import io
import wave

import numpy as np
import pytest

from sawt.audio_io import decode_wav, duration_seconds
from sawt.exceptions import InvalidInput


def _wav(raw: bytes, sr: int, sampwidth: int, n_channels: int = 1) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(n_channels)
        wf.setsampwidth(sampwidth)
        wf.setframerate(sr)
        wf.writeframes(raw)
    return buf.getvalue()


class TestDecodeWav:
    def test_16bit_mono(self):
        samples = np.array([0, 16384, -16384, 32767, -32768], dtype=np.int16)
        decoded, sr = decode_wav(_wav(samples.tobytes(), 16000, 2))

        assert sr == 16000
        np.testing.assert_allclose(decoded, [0.0, 0.5, -0.5, 32767 / 32768, -1.0])

    def test_stereo_is_averaged(self):
        interleaved = np.array([16384, 0, -16384, -16384], dtype=np.int16)
        decoded, _ = decode_wav(_wav(interleaved.tobytes(), 8000, 2, n_channels=2))
        np.testing.assert_allclose(decoded, [0.25, -0.5])

    def test_8bit(self):
        raw = np.array([128, 255, 0], dtype=np.uint8).tobytes()
        decoded, _ = decode_wav(_wav(raw, 8000, 1))
        np.testing.assert_allclose(decoded, [0.0, 127 / 128, -1.0])

    def test_24bit_sign_extension(self):
        values = np.array([0, 4194304, -4194304, -1], dtype="<i4")
        raw = values.view(np.uint8).reshape(-1, 4)[:, :3].tobytes()
        decoded, _ = decode_wav(_wav(raw, 44100, 3))
        np.testing.assert_allclose(decoded, [0.0, 0.5, -0.5, -1 / 8388608.0])

    def test_32bit(self):
        values = np.array([1073741824, -1073741824], dtype="<i4")
        decoded, _ = decode_wav(_wav(values.tobytes(), 48000, 4))
        np.testing.assert_allclose(decoded, [0.5, -0.5])

    def test_invalid_buffer(self):
        with pytest.raises(InvalidInput):
            decode_wav(b"\x00" * 100)

    def test_empty_buffer(self):
        with pytest.raises(InvalidInput):
            decode_wav(b"")

    @pytest.mark.parametrize("sampwidth,n_channels", [(2, 1), (3, 1), (2, 2)])
    def test_data_cut_mid_frame(self, sampwidth, n_channels):
        raw = bytes(sampwidth * n_channels * 4000)
        with pytest.raises(InvalidInput, match="Truncated"):
            decode_wav(_wav(raw, 16000, sampwidth, n_channels)[:-1])

    def test_duration(self):
        assert duration_seconds(np.zeros(24000), 16000) == pytest.approx(1.5)
