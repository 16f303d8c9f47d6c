"""
MFCC feature pipeline.

Runs every retained frame through window -> spectrum -> mel -> DCT and
stacks the per-frame vectors into a bounded FeatureMatrix.
"""

import concurrent.futures
import logging
import numbers
from typing import Tuple

import numpy as np

from . import dsp
from .exceptions import InvalidInput
from .types import FeatureMatrix

logger = logging.getLogger(__name__)


def validate_signal(samples, sample_rate) -> np.ndarray:
    """Return samples as a float64 vector or raise InvalidInput."""
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, numbers.Integral):
        raise InvalidInput(f"sample_rate must be an integer, got {sample_rate!r}")
    if sample_rate <= 0:
        raise InvalidInput(f"sample_rate must be positive, got {sample_rate}")
    try:
        samples = np.asarray(samples, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Signal is not numeric: {e}") from e
    if samples.ndim != 1:
        raise InvalidInput(f"Signal must be one-dimensional, got shape {samples.shape}")
    if samples.size == 0:
        raise InvalidInput("Signal is empty")
    if not np.all(np.isfinite(samples)):
        raise InvalidInput("Signal contains NaN or infinite samples")
    return samples


class MFCCExtractor:
    """Frame-by-frame MFCC extraction.

    Defaults give at most 100 frames of 13 coefficients, using 2048-sample
    frames with a 512-sample hop and 26 mel bands.
    """

    FRAME_SIZE = 2048
    HOP_SIZE = 512
    N_FILTERS = 26
    N_COEFFICIENTS = 13
    MAX_FRAMES = 100

    def __init__(
        self,
        frame_size: int = FRAME_SIZE,
        hop_size: int = HOP_SIZE,
        n_filters: int = N_FILTERS,
        n_coefficients: int = N_COEFFICIENTS,
        max_frames: int = MAX_FRAMES,
        spectrum_method: str = "fft",
        max_workers: int = 1,
    ):
        """Initialize MFCCExtractor.

        Args:
            frame_size: Samples per frame.
            hop_size: Offset between consecutive frame starts.
            n_filters: Number of mel bands.
            n_coefficients: Cepstral coefficients kept per frame.
            max_frames: Upper bound on matrix rows (later frames are dropped).
            spectrum_method: ``"fft"`` or ``"direct"`` (naive DFT).
            max_workers: Threads used to process frames.  1 (default) runs
                sequentially; the output is identical either way.
        """
        for name, value in (("frame_size", frame_size), ("hop_size", hop_size),
                            ("n_filters", n_filters), ("n_coefficients", n_coefficients)):
            if value < 1:
                raise InvalidInput(f"{name} must be positive, got {value}")
        if max_frames < 0:
            raise InvalidInput(f"max_frames must be non-negative, got {max_frames}")
        if spectrum_method not in ("fft", "direct"):
            raise InvalidInput(f"Unknown spectrum method: {spectrum_method!r}")

        self.frame_size = frame_size
        self.hop_size = hop_size
        self.n_filters = n_filters
        self.n_coefficients = n_coefficients
        self.max_frames = max_frames
        self.spectrum_method = spectrum_method
        self._max_workers = max(1, max_workers)

    def extract(self, samples, sample_rate: int) -> FeatureMatrix:
        """Compute the MFCC matrix of a mono signal.

        Args:
            samples: Mono samples in [-1, 1].
            sample_rate: Sample rate in Hz.

        Returns:
            FeatureMatrix with at most ``max_frames`` rows and exactly
            ``n_coefficients`` columns.  Signals shorter than one frame
            give zero rows.

        Raises:
            InvalidInput: non-positive sample rate or empty/non-finite signal.
        """
        samples = validate_signal(samples, sample_rate)

        available = dsp.frame_count(len(samples), self.frame_size, self.hop_size)
        frames = list(dsp.iter_frames(samples, self.frame_size, self.hop_size,
                                      max_frames=self.max_frames))
        logger.debug(f"Extracting MFCC: {len(frames)} of {available} frames "
                     f"at {sample_rate} Hz")

        if self._max_workers > 1 and len(frames) > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                outputs = list(executor.map(lambda f: self.process_frame(f, sample_rate), frames))
        else:
            outputs = [self.process_frame(f, sample_rate) for f in frames]

        if outputs:
            values = np.vstack([mfcc for mfcc, _ in outputs])
        else:
            values = np.empty((0, self.n_coefficients))
        degenerate = sum(1 for _, is_degenerate in outputs if is_degenerate)
        if degenerate:
            logger.debug(f"{degenerate} frame(s) had no spectral energy in any mel band")

        return FeatureMatrix(
            values=values,
            sample_rate=int(sample_rate),
            duration=len(samples) / sample_rate,
            frames_available=available,
            degenerate_frames=degenerate,
        )

    def process_frame(self, frame: np.ndarray, sample_rate: int) -> Tuple[np.ndarray, bool]:
        """MFCC vector of one frame, plus whether every mel band hit the log floor."""
        windowed = dsp.apply_window(frame)
        spectrum = dsp.magnitude_spectrum(windowed, method=self.spectrum_method)
        mel = dsp.mel_band_energies(spectrum, sample_rate, self.n_filters)
        degenerate = bool(np.all(mel <= np.log(dsp.LOG_FLOOR)))
        return dsp.cepstral_coefficients(mel, self.n_coefficients), degenerate


def extract_features(signal, sample_rate: int, extractor: MFCCExtractor = None) -> FeatureMatrix:
    """Extract the default 13-coefficient MFCC matrix (at most 100 frames)."""
    if extractor is None:
        extractor = MFCCExtractor()
    return extractor.extract(signal, sample_rate)
