"""
Heuristic scoring of MFCC matrices.

Signals derived from a FeatureMatrix, each a pure function of it:

  1. Temporal consistency: 1 - normalized frame-to-frame L1 drift
  2. Spectral anomaly:     share of rows whose coefficient variance is
                            implausibly flat (< 0.01) or spiky (> 100)
  3. Pattern variance:     mean row variance, clipped to [0, 1]
  4. Statistical summary:  per-coefficient mean/std/min/max plus
                            splice candidates (deltas above mean + 2 std)

Scores follow the [0, 1] convention: higher consistency means more
plausibly a single continuous recording.

Silent or constant input yields near-identical rows whose coefficient
variance is far outside the normal band, so every row is flagged as
anomalous.  Flat audio is indistinguishable from over-smooth synthetic
audio under these thresholds; they are kept literal.
"""

import logging
from typing import List, Optional

import numpy as np

from .exceptions import InvalidInput
from .types import (
    CoefficientStats,
    FeatureMatrix,
    ScoringSummary,
    SuspiciousFrame,
    TemporalStatistics,
)

logger = logging.getLogger(__name__)


def as_matrix(features) -> np.ndarray:
    """Coerce a FeatureMatrix or 2-D array-like to a float64 array."""
    if isinstance(features, FeatureMatrix):
        matrix = features.values
    else:
        try:
            matrix = np.asarray(features, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Feature matrix is not numeric: {e}") from e

    if matrix.ndim == 1 and matrix.size == 0:
        raise InvalidInput("Feature matrix has no columns")
    if matrix.ndim != 2:
        raise InvalidInput(f"Feature matrix must be two-dimensional, got shape {matrix.shape}")
    if matrix.shape[1] == 0:
        raise InvalidInput("Feature matrix has no columns")
    if not np.all(np.isfinite(matrix)):
        raise InvalidInput("Feature matrix contains NaN or infinite values")
    return matrix


def frame_deltas(matrix: np.ndarray) -> np.ndarray:
    """L1 distance between each row and its predecessor (length R - 1)."""
    if matrix.shape[0] < 2:
        return np.zeros(0)
    return np.sum(np.abs(np.diff(matrix, axis=0)), axis=1)


class HeuristicScorer:
    """Deterministic scoring of MFCC matrices.

    Scoring: consistency and anomaly ratio are both in [0, 1]:
        - consistency 1  = no frame-to-frame drift
        - anomaly 0      = every row has a plausible coefficient spread
    """

    # Weights for the combined authenticity score
    WEIGHTS = {
        'consistency': 0.7,
        'pattern': 0.3,
    }

    THRESHOLDS = {
        'drift_scale': 100.0,          # per-frame L1 drift that maps to "fully inconsistent"
        'row_variance_high': 100.0,    # row variance above this -> too spiky
        'row_variance_low': 0.01,      # row variance below this -> too flat
        'splice_sigma': 2.0,           # delta > mean + k*std -> splice candidate
        'max_reported_frames': 10,
        'noise_amplitude': 0.05,       # +/- range of optional perturbation
    }

    def __init__(self, thresholds: Optional[dict] = None):
        self.thresholds = dict(self.THRESHOLDS)
        if thresholds:
            self.thresholds.update(thresholds)

    def score(self, features, include_statistics: bool = True) -> ScoringSummary:
        """Score a feature matrix.

        Args:
            features: FeatureMatrix or 2-D array-like (rows = frames).
            include_statistics: Also compute per-coefficient statistics and
                splice candidates.

        Returns:
            ScoringSummary.  An empty (0-row) matrix yields consistency 1.0
            and anomaly ratio 0.0.

        Raises:
            InvalidInput: the matrix has no columns or non-finite entries.
        """
        matrix = as_matrix(features)
        n_frames, n_coeffs = matrix.shape

        summary = ScoringSummary(
            consistency=self.temporal_consistency(matrix),
            anomaly_ratio=self.anomaly_ratio(matrix),
            pattern_variance=self.pattern_variance(matrix),
            n_frames=n_frames,
            n_coefficients=n_coeffs,
            coefficient_stats=self.coefficient_stats(matrix) if include_statistics else [],
            temporal=self.temporal_statistics(matrix) if include_statistics else None,
        )
        logger.debug(f"Scored {n_frames}x{n_coeffs} matrix: consistency={summary.consistency:.4f}, "
                     f"anomaly_ratio={summary.anomaly_ratio:.4f}")
        return summary

    # ------------------------------------------------------------------
    # 1. Temporal consistency
    # ------------------------------------------------------------------
    def temporal_consistency(self, matrix: np.ndarray) -> float:
        """1 - clip(total L1 drift / (R * drift_scale), 0, 1); 1.0 when R < 2."""
        n_frames = matrix.shape[0]
        if n_frames < 2:
            return 1.0
        total = float(np.sum(frame_deltas(matrix)))
        normalized = float(np.clip(total / (n_frames * self.thresholds['drift_scale']), 0.0, 1.0))
        return 1.0 - normalized

    # ------------------------------------------------------------------
    # 2. Spectral anomaly
    # ------------------------------------------------------------------
    def anomaly_ratio(self, matrix: np.ndarray) -> float:
        """Share of rows whose population variance is out of the normal band."""
        n_frames = matrix.shape[0]
        if n_frames == 0:
            return 0.0
        row_var = np.var(matrix, axis=1)
        flagged = int(np.sum((row_var > self.thresholds['row_variance_high'])
                             | (row_var < self.thresholds['row_variance_low'])))
        return float(np.clip(flagged / n_frames, 0.0, 1.0))

    def pattern_variance(self, matrix: np.ndarray) -> float:
        """Mean row variance clipped to [0, 1]."""
        if matrix.shape[0] == 0:
            return 0.0
        return float(np.clip(np.mean(np.var(matrix, axis=1)), 0.0, 1.0))

    # ------------------------------------------------------------------
    # 3. Statistical summary
    # ------------------------------------------------------------------
    def coefficient_stats(self, matrix: np.ndarray) -> List[CoefficientStats]:
        if matrix.shape[0] == 0:
            return []
        means = matrix.mean(axis=0)
        stds = matrix.std(axis=0)
        mins = matrix.min(axis=0)
        maxs = matrix.max(axis=0)
        return [
            CoefficientStats(
                coefficient=c,
                mean=float(means[c]),
                std=float(stds[c]),
                min=float(mins[c]),
                max=float(maxs[c]),
            )
            for c in range(matrix.shape[1])
        ]

    def temporal_statistics(self, matrix: np.ndarray) -> TemporalStatistics:
        """Frame-to-frame deltas and the transitions that stand out from them."""
        deltas = frame_deltas(matrix)
        if deltas.size == 0:
            return TemporalStatistics(
                frame_deltas=[], avg_delta=0.0, max_delta=0.0, delta_variance=0.0,
                threshold=0.0, suspicious_frame_count=0, suspicious_frames=[],
            )

        avg = float(np.mean(deltas))
        variance = float(np.var(deltas))
        threshold = avg + self.thresholds['splice_sigma'] * float(np.sqrt(variance))
        flagged = np.flatnonzero(deltas > threshold)
        limit = int(self.thresholds['max_reported_frames'])

        return TemporalStatistics(
            frame_deltas=[float(d) for d in deltas],
            avg_delta=avg,
            max_delta=float(np.max(deltas)),
            delta_variance=variance,
            threshold=threshold,
            suspicious_frame_count=int(flagged.size),
            suspicious_frames=[
                SuspiciousFrame(frame=int(i), delta=float(deltas[i])) for i in flagged[:limit]
            ],
        )

    # ------------------------------------------------------------------
    # Combination
    # ------------------------------------------------------------------
    def authenticity(self, summary: ScoringSummary,
                     noise: Optional[np.random.Generator] = None) -> float:
        """Combine consistency and pattern variance into a score in [0, 1].

        When ``noise`` is given a uniform perturbation of +/- noise_amplitude
        is added, which makes the result non-deterministic unless the
        generator is seeded.
        """
        combined = (self.WEIGHTS['consistency'] * summary.consistency
                    + self.WEIGHTS['pattern'] * (1.0 - summary.pattern_variance))
        if noise is not None:
            amplitude = self.thresholds['noise_amplitude']
            combined += (noise.random() - 0.5) * 2.0 * amplitude
        return float(np.clip(combined, 0.0, 1.0))


class HeuristicClassifier:
    """Classifier backed by HeuristicScorer.

    Owns no global state: build one per session and pass it where needed.
    """

    def __init__(self, scorer: Optional[HeuristicScorer] = None,
                 noise: Optional[np.random.Generator] = None):
        self.scorer = scorer or HeuristicScorer()
        self.noise = noise

    def predict(self, features: FeatureMatrix) -> float:
        summary = self.scorer.score(features, include_statistics=False)
        return self.scorer.authenticity(summary, noise=self.noise)


def score(features, include_statistics: bool = True) -> ScoringSummary:
    """Score a feature matrix with the default thresholds."""
    return HeuristicScorer().score(features, include_statistics=include_statistics)
