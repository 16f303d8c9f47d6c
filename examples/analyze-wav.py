import json
import os
import sys
from pathlib import Path

# Add python directory to path to import sawt
sys.path.append(os.path.join(os.path.dirname(__file__), '../python'))

from sawt.detector import ForgeryDetector
from sawt.cli import report_to_dict


def main():
    print("--- MFCC Forgery Analysis (Python) ---")

    if len(sys.argv) < 2:
        print(f"Usage: {sys.argv[0]} <file.wav>")
        sys.exit(1)

    audio_path = Path(sys.argv[1])
    if not audio_path.exists():
        print(f"Audio file not found: {audio_path}")
        sys.exit(1)

    audio_bytes = audio_path.read_bytes()
    print(f"Analysing: {audio_path.name}")
    print(f"File size: {len(audio_bytes)} bytes")

    report = ForgeryDetector().analyze(audio_bytes, file_name=audio_path.name)

    print("\n[Heuristic MFCC Analysis]")
    print(f"Verdict: {report.verdict.verdict.value}")
    print(f"Score: {report.verdict.authenticity_score:.3f}")
    print(f"Details: {json.dumps(report_to_dict(report), indent=2)}")


if __name__ == "__main__":
    main()
