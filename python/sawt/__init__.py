"""
Sawt - Python Implementation

Sawt (صوت) means "Sound" in Arabic.
MFCC-based Audio Forgery Analysis Library
"""

from .detector import ForgeryDetector
from .exceptions import (
    SawtError,
    InvalidInput,
    ConfigurationError,
    ReasoningServiceError,
    RateLimitExceeded,
    CreditsExhausted,
)
from .types import (
    FeatureMatrix,
    ScoringSummary,
    CoefficientStats,
    TemporalStatistics,
    SuspiciousFrame,
    ForgeryVerdict,
    AnalysisReport,
    AnalysisRecord,
    AnalysisOptions,
    Classifier,
    Verdict,
    Confidence,
    classify_verdict,
)
from .features import MFCCExtractor, extract_features
from .scoring import HeuristicScorer, HeuristicClassifier, score
from .reasoning import ReasoningClient
from .history import AnalysisHistory
from .audio_io import decode_wav

__version__ = "0.1.0"
__all__ = [
    "ForgeryDetector",
    "SawtError",
    "InvalidInput",
    "ConfigurationError",
    "ReasoningServiceError",
    "RateLimitExceeded",
    "CreditsExhausted",
    "FeatureMatrix",
    "ScoringSummary",
    "CoefficientStats",
    "TemporalStatistics",
    "SuspiciousFrame",
    "ForgeryVerdict",
    "AnalysisReport",
    "AnalysisRecord",
    "AnalysisOptions",
    "Classifier",
    "Verdict",
    "Confidence",
    "classify_verdict",
    "MFCCExtractor",
    "extract_features",
    "HeuristicScorer",
    "HeuristicClassifier",
    "score",
    "ReasoningClient",
    "AnalysisHistory",
    "decode_wav",
]
