"""Tests for ForgeryDetector."""

import hashlib
import io
import logging
import sqlite3
import wave

import numpy as np
import pytest

from sawt.detector import ForgeryDetector
from sawt.exceptions import InvalidInput
from sawt.history import AnalysisHistory
from sawt.types import (
    AnalysisOptions,
    Confidence,
    ForgeryVerdict,
    Verdict,
)


def _short_wav(n_samples: int = 1000, sr: int = 16000) -> bytes:
    """WAV shorter than one 2048-sample frame."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sr)
        wf.writeframes(np.zeros(n_samples, dtype=np.int16).tobytes())
    return buf.getvalue()


class _FixedClassifier:
    def __init__(self, value):
        self.value = value
        self.seen = []

    def predict(self, features):
        self.seen.append(features)
        return self.value


class _AssessingClassifier:
    def __init__(self):
        self.summaries = []

    def predict(self, features):
        raise AssertionError("assess should be preferred over predict")

    def assess(self, features, summary):
        self.summaries.append(summary)
        return ForgeryVerdict(0.1, Verdict.FORGED, Confidence.HIGH, "spliced", ["jump"], "remote")


class TestForgeryDetectorBasic:
    def test_analyze_wav(self, natural_wav_bytes):
        report = ForgeryDetector().analyze(natural_wav_bytes, file_name="natural.wav")

        assert report.file_name == "natural.wav"
        assert report.content_hash == hashlib.sha256(natural_wav_bytes).hexdigest()
        assert report.sample_rate == 16000
        assert report.duration == pytest.approx(2.0)
        assert report.features.values.shape == (58, 13)
        assert 0.0 <= report.verdict.authenticity_score <= 1.0
        assert report.verdict.source == "heuristic"
        assert report.record_id is None

    def test_deterministic_without_noise(self, natural_wav_bytes):
        a = ForgeryDetector().analyze(natural_wav_bytes)
        b = ForgeryDetector().analyze(natural_wav_bytes)
        assert a.verdict.authenticity_score == b.verdict.authenticity_score
        np.testing.assert_array_equal(a.features.values, b.features.values)

    def test_invalid_buffer(self):
        with pytest.raises(InvalidInput):
            ForgeryDetector().analyze(b"\x00" * 100)

    def test_short_audio_gives_empty_matrix(self):
        report = ForgeryDetector().analyze(_short_wav())
        assert report.features.n_frames == 0
        assert "Recording is shorter than one analysis frame" in report.verdict.detected_anomalies


class TestForgeryDetectorHeuristics:
    def test_silence_flagged_as_anomalous(self, silent_signal):
        report = ForgeryDetector().analyze_samples(silent_signal, 44100)

        assert report.summary.consistency == 1.0
        assert report.summary.anomaly_ratio == 1.0
        assert any("flat or spiky" in a for a in report.verdict.detected_anomalies)
        assert report.verdict.confidence is Confidence.LOW

    def test_splice_into_silence_detected(self, spliced_signal):
        report = ForgeryDetector().analyze_samples(spliced_signal, 16000)
        temporal = report.summary.temporal

        assert temporal.suspicious_frame_count >= 1
        assert any(27 <= f.frame <= 32 for f in temporal.suspicious_frames)
        assert any("splice" in a for a in report.verdict.detected_anomalies)

    def test_verdict_follows_score_brackets(self, tone_signal):
        for value, expected in ((0.9, Verdict.AUTHENTIC), (0.6, Verdict.UNCERTAIN),
                                (0.2, Verdict.FORGED)):
            detector = ForgeryDetector(classifier=_FixedClassifier(value))
            assert detector.analyze_samples(tone_signal, 16000).verdict.verdict is expected

    def test_classifier_score_is_clamped(self, tone_signal):
        detector = ForgeryDetector(classifier=_FixedClassifier(1.4))
        assert detector.analyze_samples(tone_signal, 16000).verdict.authenticity_score == 1.0


class TestForgeryDetectorStrategies:
    def test_predict_only_classifier(self, tone_signal):
        classifier = _FixedClassifier(0.5)
        report = ForgeryDetector(classifier=classifier).analyze_samples(tone_signal, 16000)

        assert classifier.seen[0] is report.features
        assert report.verdict.authenticity_score == 0.5

    def test_assessing_classifier_supplies_verdict(self, tone_signal):
        classifier = _AssessingClassifier()
        report = ForgeryDetector(classifier=classifier).analyze_samples(tone_signal, 16000)

        assert report.verdict.source == "remote"
        assert report.verdict.detected_anomalies == ["jump"]
        assert classifier.summaries[0] is report.summary


class TestForgeryDetectorHistory:
    def test_report_is_persisted(self, tmp_path, tone_signal):
        history = AnalysisHistory(tmp_path / "h.db")
        detector = ForgeryDetector(history=history)

        report = detector.analyze_samples(tone_signal, 16000, file_name="tone.wav", user_id="u1")

        assert report.record_id is not None
        record = history.get(report.record_id)
        assert record.file_name == "tone.wav"
        assert record.user_id == "u1"
        assert record.verdict is report.verdict.verdict

    def test_persist_can_be_disabled(self, tmp_path, tone_signal):
        history = AnalysisHistory(tmp_path / "h.db")
        report = ForgeryDetector(history=history).analyze_samples(
            tone_signal, 16000, options=AnalysisOptions(persist=False)
        )
        assert report.record_id is None
        assert history.list_analyses() == []

    def test_failed_write_keeps_report(self, tmp_path, silent_signal, caplog):
        db_path = tmp_path / "h.db"
        history = AnalysisHistory(db_path)
        with sqlite3.connect(str(db_path)) as conn:
            conn.execute("DROP TABLE audio_analyses")

        with caplog.at_level(logging.ERROR, logger="sawt.detector"):
            report = ForgeryDetector(history=history).analyze_samples(silent_signal, 44100)

        assert report.record_id is None
        assert report.features.n_frames == 82
        assert "Could not save analysis" in caplog.text
