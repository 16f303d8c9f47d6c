"""Command-line interface for Sawt."""
import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

from .detector import ForgeryDetector
from .exceptions import ConfigurationError, InvalidInput, ReasoningServiceError
from .features import MFCCExtractor
from .history import AnalysisHistory
from .reasoning import ReasoningClient
from .scoring import HeuristicClassifier, HeuristicScorer
from .types import Verdict

logger = logging.getLogger(__name__)


def report_to_dict(report):
    """JSON-friendly view of an AnalysisReport."""
    summary = report.summary
    temporal = summary.temporal
    return {
        "file": report.file_name,
        "content_hash": report.content_hash,
        "record_id": report.record_id,
        "duration": round(report.duration, 2),
        "sample_rate": report.sample_rate,
        "num_frames": report.features.n_frames,
        "num_coeffs": report.features.n_coefficients,
        "authenticity_score": report.verdict.authenticity_score,
        "verdict": report.verdict.verdict.value,
        "confidence": report.verdict.confidence.value,
        "source": report.verdict.source,
        "reasoning": report.verdict.reasoning,
        "detected_anomalies": report.verdict.detected_anomalies,
        "consistency": summary.consistency,
        "anomaly_ratio": summary.anomaly_ratio,
        "suspicious_frames": [
            {"frame": f.frame, "delta": f.delta}
            for f in (temporal.suspicious_frames if temporal else [])
        ],
    }


def analyze_command(args):
    """Analyse an audio file command."""
    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG)

    audio_path = Path(args.file)
    if not audio_path.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        sys.exit(1)

    scorer = HeuristicScorer()
    if getattr(args, "remote", False):
        classifier = ReasoningClient(scorer=scorer)
    else:
        seed = getattr(args, "seed", None)
        noise = np.random.default_rng(seed) if seed is not None else None
        classifier = HeuristicClassifier(scorer, noise=noise)

    db = getattr(args, "db", None)
    detector = ForgeryDetector(
        extractor=MFCCExtractor(max_workers=getattr(args, "workers", 1)),
        scorer=scorer,
        classifier=classifier,
        history=AnalysisHistory(db) if db else None,
    )

    try:
        report = detector.analyze(
            audio_path.read_bytes(),
            file_name=audio_path.name,
            user_id=getattr(args, "user", None),
        )
    except (InvalidInput, ConfigurationError, ReasoningServiceError) as e:
        logger.error(f"Analysis of {audio_path} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        verdict = report.verdict
        print(f"\n{'='*60}")
        print("  Audio Forgery Analysis Report")
        print(f"{'='*60}\n")
        print(f"File: {audio_path.resolve()}")
        print(f"Duration: {report.duration:.2f}s | Sample Rate: {report.sample_rate}Hz")
        print(f"Frames: {report.features.n_frames} x {report.features.n_coefficients} MFCC")
        print(f"Verdict: {verdict.verdict.value.upper()}")
        print(f"Authenticity: {verdict.authenticity_score * 100:.1f}% "
              f"(confidence: {verdict.confidence.value})")
        print(f"Temporal consistency: {report.summary.consistency:.3f}")
        print(f"Spectral anomaly ratio: {report.summary.anomaly_ratio:.3f}")

        if verdict.reasoning:
            print(f"\n{verdict.reasoning}")

        if verdict.detected_anomalies:
            print("\nDetected anomalies:")
            for anomaly in verdict.detected_anomalies:
                print(f"  • {anomaly}")

        if report.record_id:
            print(f"\nSaved to history as {report.record_id}")

        print(f"\n{'='*60}\n")

    sys.exit(0 if report.verdict.verdict is Verdict.AUTHENTIC else 1)


def history_command(args):
    """List past analyses command."""
    history = AnalysisHistory(args.db)
    records = history.list_analyses(user_id=args.user, limit=args.limit)

    if args.json:
        print(json.dumps([
            {
                "id": r.id,
                "file_name": r.file_name,
                "authenticity_score": r.authenticity_score,
                "verdict": r.verdict.value,
                "duration": r.duration,
                "sample_rate": r.sample_rate,
                "created_at": r.created_at,
            }
            for r in records
        ], indent=2))
        return

    if not records:
        print("No analyses recorded yet.")
        return

    for r in records:
        print(f"{r.created_at}  {r.verdict.value:<10} {r.authenticity_score * 100:5.1f}%  {r.file_name}")


def _positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sawt",
        description="CLI tool for MFCC-based audio forgery analysis"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyse a WAV file for forgery")
    analyze_parser.add_argument("file", help="WAV file to analyse")
    analyze_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    analyze_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    analyze_parser.add_argument("-r", "--remote", action="store_true",
                                help="Ask the remote reasoning service for the verdict")
    analyze_parser.add_argument("-s", "--seed", type=int, default=None,
                                help="Seed for the heuristic uncertainty perturbation (off when omitted)")
    analyze_parser.add_argument("-w", "--workers", type=_positive_int, default=1,
                                help="Number of parallel threads for frame processing (default: 1)")
    analyze_parser.add_argument("--db", help="SQLite history database to record the result in")
    analyze_parser.add_argument("--user", help="User id stored with the history record")
    analyze_parser.set_defaults(func=analyze_command)

    # History command
    history_parser = subparsers.add_parser("history", help="List past analyses")
    history_parser.add_argument("--db", default="sawt-history.db", help="SQLite history database")
    history_parser.add_argument("--user", help="Only show analyses of this user")
    history_parser.add_argument("-n", "--limit", type=_positive_int, default=20, help="Maximum rows to show")
    history_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    history_parser.set_defaults(func=history_command)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
