"""Shared pytest fixtures for Sawt tests."""

import io
import wave

import numpy as np
import pytest

from sawt.types import (
    AnalysisReport,
    Confidence,
    FeatureMatrix,
    ForgeryVerdict,
    ScoringSummary,
    Verdict,
)


def make_wav(samples: np.ndarray, sr: int = 16000, n_channels: int = 1) -> bytes:
    """Encode float samples (interleaved if multi-channel) to 16-bit PCM WAV."""
    pcm = (np.clip(samples, -1, 1) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(n_channels)
        wf.setsampwidth(2)
        wf.setframerate(sr)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


def sine(freq: float = 440.0, duration: float = 1.0, sr: int = 16000, amp: float = 0.5) -> np.ndarray:
    t = np.arange(int(sr * duration)) / sr
    return amp * np.sin(2 * np.pi * freq * t)


# ---------------------------------------------------------------------------
# Signal fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def silent_signal():
    """One second of silence at 44.1 kHz."""
    return np.zeros(44100)


@pytest.fixture()
def tone_signal():
    """Two seconds of a 440 Hz tone at 16 kHz."""
    return sine(440.0, 2.0, 16000)


@pytest.fixture()
def spliced_signal():
    """One second of tone followed by one second of silence (16 kHz)."""
    return np.concatenate([sine(440.0, 1.0, 16000), np.zeros(16000)])


@pytest.fixture()
def sample_wav_bytes():
    """Generate a 0.5 s mono 16-bit PCM WAV at 16 kHz (440 Hz sine)."""
    return make_wav(sine(440.0, 0.5, 16000))


@pytest.fixture()
def natural_wav_bytes():
    """A longer WAV with harmonic content, jitter, and noise."""
    rng = np.random.default_rng(1234)
    sr = 16000
    n_samples = int(sr * 2.0)

    f0 = 120.0 * (1 + 0.01 * np.cumsum(rng.standard_normal(n_samples) * 0.005))
    phase = 2 * np.pi * np.cumsum(f0 / sr)

    signal = np.zeros(n_samples)
    for h in range(1, 6):
        amp = (1.0 / h) * (1 + 0.03 * rng.standard_normal(n_samples))
        signal += amp * np.sin(h * phase)

    signal += rng.standard_normal(n_samples) * 0.02
    signal = signal / (np.max(np.abs(signal)) + 1e-10) * 0.7
    return make_wav(signal, sr)


# ---------------------------------------------------------------------------
# Report fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_report():
    """Factory for small AnalysisReport objects."""

    def _make(file_name="clip.wav", score=0.9, verdict=Verdict.AUTHENTIC, rows=2):
        features = FeatureMatrix(np.arange(rows * 13, dtype=float).reshape(rows, 13), 16000,
                                 duration=1.5, frames_available=rows)
        summary = ScoringSummary(consistency=1.0, anomaly_ratio=0.0, pattern_variance=0.0,
                                 n_frames=rows, n_coefficients=13)
        return AnalysisReport(
            file_name=file_name,
            content_hash="ab" * 32,
            duration=1.5,
            sample_rate=16000,
            features=features,
            summary=summary,
            verdict=ForgeryVerdict(score, verdict, Confidence.LOW),
        )

    return _make
