"""
Remote reasoning service client.

Sends MFCC statistics (never raw audio) to an OpenAI-compatible
chat-completions gateway and asks for a structured forgery verdict via a
forced tool call.  Retries are left to the caller.
"""

import json
import logging
import math
import os
from typing import Any, Dict, Optional

import requests

from .exceptions import (
    ConfigurationError,
    CreditsExhausted,
    RateLimitExceeded,
    ReasoningServiceError,
)
from .scoring import HeuristicScorer
from .types import (
    Confidence,
    FeatureMatrix,
    ForgeryVerdict,
    ScoringSummary,
    Verdict,
)

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-3-flash-preview"

TOOL_NAME = "report_forgery_analysis"

SYSTEM_PROMPT = """You are an expert audio forensics analyst specializing in detecting forged, spliced, or AI-generated audio.
You analyze MFCC (Mel-Frequency Cepstral Coefficient) statistical features extracted from audio files.

Your task: Given the MFCC statistics below, determine if the audio is likely authentic or forged.

Key indicators of forgery:
- Unusual sudden jumps in frame-to-frame MFCC deltas (splice points)
- Abnormally low variance in MFCC coefficients (synthetic/generated audio tends to be "too smooth")
- Inconsistent spectral patterns across time
- Anomalous coefficient distributions (extreme skew, bimodal patterns)

You MUST respond using the provided tool to return structured results."""

REPORT_TOOL = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Report the results of audio forgery analysis",
        "parameters": {
            "type": "object",
            "properties": {
                "authenticity_score": {
                    "type": "number",
                    "description": "Score from 0 to 1 where 0 means definitely forged and 1 means definitely authentic",
                },
                "confidence": {
                    "type": "string",
                    "enum": ["low", "medium", "high"],
                    "description": "Confidence level of the analysis",
                },
                "verdict": {
                    "type": "string",
                    "enum": ["authentic", "uncertain", "forged"],
                    "description": "Overall verdict",
                },
                "reasoning": {
                    "type": "string",
                    "description": "Brief explanation of the analysis findings (2-3 sentences)",
                },
                "detected_anomalies": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of specific anomalies detected, if any",
                },
            },
            "required": ["authenticity_score", "confidence", "verdict", "reasoning", "detected_anomalies"],
            "additionalProperties": False,
        },
    },
}


def build_analysis_data(features: FeatureMatrix, summary: ScoringSummary) -> Dict[str, Any]:
    """Statistics payload sent to the reasoning service (values rounded to 4 dp)."""
    temporal = summary.temporal
    return {
        "duration": round(features.duration, 2),
        "sampleRate": features.sample_rate,
        "numFrames": summary.n_frames,
        "numCoeffs": summary.n_coefficients,
        "coefficientStats": [
            {
                "coeff": s.coefficient,
                "mean": round(s.mean, 4),
                "std": round(s.std, 4),
                "min": round(s.min, 4),
                "max": round(s.max, 4),
            }
            for s in summary.coefficient_stats
        ],
        "temporalAnalysis": {
            "avgFrameDelta": round(temporal.avg_delta, 4) if temporal else 0.0,
            "maxFrameDelta": round(temporal.max_delta, 4) if temporal else 0.0,
            "deltaVariance": round(temporal.delta_variance, 4) if temporal else 0.0,
            "suspiciousFrameCount": temporal.suspicious_frame_count if temporal else 0,
            "suspiciousFrames": [
                {"frame": f.frame, "delta": round(f.delta, 4)}
                for f in (temporal.suspicious_frames if temporal else [])
            ],
        },
    }


def parse_verdict(arguments: Dict[str, Any]) -> ForgeryVerdict:
    """Validate the tool-call arguments returned by the model."""
    try:
        score = float(arguments["authenticity_score"])
        verdict = Verdict(arguments["verdict"])
        confidence = Confidence(arguments["confidence"])
    except (KeyError, TypeError, ValueError) as e:
        raise ReasoningServiceError(f"Malformed analysis from reasoning service: {e}") from e
    if not math.isfinite(score):
        raise ReasoningServiceError(f"Reasoning service returned a non-finite score: {score}")

    anomalies = arguments.get("detected_anomalies") or []
    return ForgeryVerdict(
        authenticity_score=min(max(score, 0.0), 1.0),
        verdict=verdict,
        confidence=confidence,
        reasoning=str(arguments.get("reasoning", "")),
        detected_anomalies=[str(a) for a in anomalies],
        source="remote",
    )


class ReasoningClient:
    """Client for the remote forgery-reasoning gateway.

    Configuration falls back to the environment:
        SAWT_GATEWAY_API_KEY  bearer token (required)
        SAWT_GATEWAY_URL      chat-completions endpoint
        SAWT_GATEWAY_MODEL    model identifier
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        scorer: Optional[HeuristicScorer] = None,
    ):
        self.api_key = api_key or os.environ.get("SAWT_GATEWAY_API_KEY")
        self.url = url or os.environ.get("SAWT_GATEWAY_URL", DEFAULT_URL)
        self.model = model or os.environ.get("SAWT_GATEWAY_MODEL", DEFAULT_MODEL)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.scorer = scorer or HeuristicScorer()

    def build_request(self, analysis_data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": "Analyze the following MFCC feature statistics for signs of audio forgery:\n\n"
                               + json.dumps(analysis_data, indent=2),
                },
            ],
            "tools": [REPORT_TOOL],
            "tool_choice": {"type": "function", "function": {"name": TOOL_NAME}},
        }

    def assess(self, features: FeatureMatrix,
               summary: Optional[ScoringSummary] = None) -> ForgeryVerdict:
        """Ask the gateway for a verdict on a feature matrix.

        Raises:
            ConfigurationError: no API key configured.
            RateLimitExceeded: HTTP 429.
            CreditsExhausted: HTTP 402.
            ReasoningServiceError: any other failure.
        """
        if not self.api_key:
            raise ConfigurationError("SAWT_GATEWAY_API_KEY is not configured")
        if summary is None or summary.temporal is None:
            summary = self.scorer.score(features, include_statistics=True)

        payload = self.build_request(build_analysis_data(features, summary))
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self.session.post(self.url, json=payload, headers=headers,
                                         timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Reasoning gateway unreachable: {e}")
            raise ReasoningServiceError(f"Reasoning gateway unreachable: {e}") from e

        if response.status_code == 429:
            raise RateLimitExceeded("Rate limit exceeded, please try again later.", 429)
        if response.status_code == 402:
            raise CreditsExhausted("Usage credits exhausted. Please add credits.", 402)
        if not response.ok:
            logger.error(f"Reasoning gateway error: {response.status_code} {response.text}")
            raise ReasoningServiceError("AI analysis failed", response.status_code)

        try:
            body = response.json()
            tool_call = body["choices"][0]["message"]["tool_calls"][0]
            arguments = json.loads(tool_call["function"]["arguments"])
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ReasoningServiceError("AI did not return structured analysis") from e

        verdict = parse_verdict(arguments)
        logger.debug(f"Remote verdict: {verdict.verdict.value} "
                     f"(score={verdict.authenticity_score:.3f}, confidence={verdict.confidence.value})")
        return verdict

    def predict(self, features: FeatureMatrix) -> float:
        return self.assess(features).authenticity_score
