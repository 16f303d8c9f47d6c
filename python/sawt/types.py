"""Type definitions for Sawt."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol

import numpy as np


class Verdict(Enum):
    """Overall judgment on a recording."""
    AUTHENTIC = "authentic"
    UNCERTAIN = "uncertain"
    FORGED = "forged"


class Confidence(Enum):
    """How much weight the verdict deserves."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Score brackets used by the results view
AUTHENTIC_THRESHOLD = 0.8
UNCERTAIN_THRESHOLD = 0.5


def classify_verdict(authenticity_score: float) -> Verdict:
    """Map an authenticity score in [0, 1] to a verdict."""
    if authenticity_score >= AUTHENTIC_THRESHOLD:
        return Verdict.AUTHENTIC
    if authenticity_score >= UNCERTAIN_THRESHOLD:
        return Verdict.UNCERTAIN
    return Verdict.FORGED


@dataclass(frozen=True, eq=False)
class FeatureMatrix:
    """MFCC matrix, one row per retained frame.

    The array is copied on construction and marked read-only, so a
    FeatureMatrix never changes after the pipeline returns it.
    """
    values: np.ndarray
    sample_rate: int
    duration: float = 0.0
    frames_available: int = 0
    degenerate_frames: int = 0

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64)
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    @property
    def n_frames(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_coefficients(self) -> int:
        return int(self.values.shape[1]) if self.values.ndim == 2 else 0

    def to_list(self) -> List[List[float]]:
        return self.values.tolist()


@dataclass(frozen=True)
class CoefficientStats:
    """Descriptive statistics of one MFCC column across frames."""
    coefficient: int
    mean: float
    std: float
    min: float
    max: float


@dataclass(frozen=True)
class SuspiciousFrame:
    """A frame transition whose L1 delta exceeds mean + 2 std.

    ``frame`` is the delta index i: the jump from frame i to frame i + 1.
    """
    frame: int
    delta: float


@dataclass(frozen=True)
class TemporalStatistics:
    """Frame-to-frame delta statistics used as splice evidence."""
    frame_deltas: List[float]
    avg_delta: float
    max_delta: float
    delta_variance: float
    threshold: float
    suspicious_frame_count: int
    suspicious_frames: List[SuspiciousFrame] = field(default_factory=list)


@dataclass(frozen=True)
class ScoringSummary:
    """Read-only aggregate signals derived from a FeatureMatrix."""
    consistency: float
    anomaly_ratio: float
    pattern_variance: float
    n_frames: int
    n_coefficients: int
    coefficient_stats: List[CoefficientStats] = field(default_factory=list)
    temporal: Optional[TemporalStatistics] = None


@dataclass
class ForgeryVerdict:
    """Final judgment from a classifier or the reasoning service."""
    authenticity_score: float
    verdict: Verdict
    confidence: Confidence
    reasoning: str = ""
    detected_anomalies: List[str] = field(default_factory=list)
    source: str = "heuristic"


@dataclass
class AnalysisReport:
    """Complete result of analysing one recording."""
    file_name: str
    content_hash: str
    duration: float
    sample_rate: int
    features: FeatureMatrix
    summary: ScoringSummary
    verdict: ForgeryVerdict
    record_id: Optional[str] = None


@dataclass
class AnalysisRecord:
    """A persisted history entry."""
    id: str
    file_name: str
    content_hash: str
    authenticity_score: float
    verdict: Verdict
    duration: Optional[float]
    sample_rate: Optional[int]
    created_at: str
    user_id: Optional[str] = None
    mfcc_data: List[List[float]] = field(default_factory=list)


@dataclass
class AnalysisOptions:
    """Options for a detector run."""
    include_statistics: bool = True
    persist: bool = True


class Classifier(Protocol):
    """Anything that turns a FeatureMatrix into an authenticity score in [0, 1].

    The heuristic scorer, the remote reasoning client and any learned model
    are interchangeable behind this interface.
    """

    def predict(self, features: FeatureMatrix) -> float:
        ...
