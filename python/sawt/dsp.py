"""
Per-frame MFCC building blocks.

Each stage works on one frame at a time and is a pure function of its
inputs:

  1. Frame Segmenter:    fixed-size overlapping frames, partial tail dropped
  2. Hamming Window:     0.54 - 0.46 cos(2 pi i / (N - 1))
  3. Magnitude Spectrum: non-redundant half of the DFT
  4. Mel Filterbank:     equal-width rectangular mel bands, log-compressed
  5. Cepstral Transform: unnormalized DCT-II of the log-mel energies

Basis matrices and masks are cached per shape, since the pipeline calls
every stage with the same parameters for all frames of a recording.
"""

from functools import lru_cache
from typing import Iterator, Optional

import numpy as np
from scipy.fft import rfft

from .exceptions import InvalidInput

# Added to every band sum before the log so silent bands stay finite
LOG_FLOOR = 1e-10


# ---------------------------------------------------------------------------
# Frame Segmenter
# ---------------------------------------------------------------------------

def frame_count(n_samples: int, frame_size: int, hop_size: int) -> int:
    """Number of frames: floor((n_samples - frame_size) / hop_size), never negative."""
    if frame_size < 1 or hop_size < 1:
        raise InvalidInput(
            f"frame_size and hop_size must be positive, got {frame_size} and {hop_size}"
        )
    return max(0, (n_samples - frame_size) // hop_size)


def iter_frames(samples: np.ndarray, frame_size: int = 2048, hop_size: int = 512,
                max_frames: Optional[int] = None) -> Iterator[np.ndarray]:
    """Yield read-only views of successive frames.

    Frame i covers ``samples[i * hop_size : i * hop_size + frame_size]``.
    ``max_frames`` truncates the sequence. Calling again restarts from frame 0.
    """
    n = frame_count(len(samples), frame_size, hop_size)
    if max_frames is not None:
        n = min(n, max_frames)
    for i in range(n):
        start = i * hop_size
        frame = samples[start:start + frame_size].view()
        frame.flags.writeable = False
        yield frame


# ---------------------------------------------------------------------------
# Hamming window
# ---------------------------------------------------------------------------

@lru_cache(maxsize=8)
def hamming_window(n: int) -> np.ndarray:
    """Hamming coefficients for a length-n frame (ones for n < 2)."""
    if n < 2:
        window = np.ones(max(n, 0))
    else:
        i = np.arange(n)
        window = 0.54 - 0.46 * np.cos(2.0 * np.pi * i / (n - 1))
    window.setflags(write=False)
    return window


def apply_window(frame: np.ndarray) -> np.ndarray:
    return np.asarray(frame, dtype=np.float64) * hamming_window(len(frame))


# ---------------------------------------------------------------------------
# Magnitude spectrum
# ---------------------------------------------------------------------------

def n_spectrum_bins(n: int) -> int:
    """Bins k in [0, n/2): the non-redundant half of an n-point DFT."""
    return (n + 1) // 2


@lru_cache(maxsize=4)
def _dft_basis(n: int) -> tuple:
    k = np.arange(n_spectrum_bins(n))[:, None]
    i = np.arange(n)[None, :]
    angle = 2.0 * np.pi * k * i / n
    cos_basis = np.cos(angle)
    sin_basis = np.sin(angle)
    cos_basis.setflags(write=False)
    sin_basis.setflags(write=False)
    return cos_basis, sin_basis


def direct_dft_magnitude(frame: np.ndarray) -> np.ndarray:
    """Magnitudes from the textbook O(N^2) DFT definition."""
    frame = np.asarray(frame, dtype=np.float64)
    cos_basis, sin_basis = _dft_basis(len(frame))
    real = cos_basis @ frame
    imag = -(sin_basis @ frame)
    return np.sqrt(real * real + imag * imag)


def magnitude_spectrum(frame: np.ndarray, method: str = "fft") -> np.ndarray:
    """Magnitude of DFT bins [0, N/2) of a windowed frame.

    ``method`` is ``"fft"`` (scipy) or ``"direct"``; both give the same
    values to floating-point tolerance.
    """
    if method == "direct":
        return direct_dft_magnitude(frame)
    if method != "fft":
        raise InvalidInput(f"Unknown spectrum method: {method!r}")
    frame = np.asarray(frame, dtype=np.float64)
    return np.abs(rfft(frame))[:n_spectrum_bins(len(frame))]


# ---------------------------------------------------------------------------
# Mel filterbank
# ---------------------------------------------------------------------------

def hz_to_mel(hz):
    return 2595.0 * np.log10(1.0 + np.asarray(hz, dtype=np.float64) / 700.0)


@lru_cache(maxsize=16)
def mel_band_mask(n_bins: int, sr: int, n_filters: int = 26) -> np.ndarray:
    """Boolean (n_filters x n_bins) membership matrix.

    Band i covers mel values [i * maxMel / M, (i + 1) * maxMel / M], closed at
    both ends, so a bin lying exactly on an edge is counted in both bands.
    """
    max_mel = hz_to_mel(sr / 2.0)
    edges = np.arange(n_filters + 1) * max_mel / n_filters
    freqs = np.arange(n_bins) * sr / (n_bins * 2.0)
    mels = hz_to_mel(freqs)
    mask = (mels[None, :] >= edges[:-1, None]) & (mels[None, :] <= edges[1:, None])
    mask.setflags(write=False)
    return mask


def mel_band_energies(spectrum: np.ndarray, sr: int, n_filters: int = 26) -> np.ndarray:
    """Log band energies, one per mel filter; each value >= log(LOG_FLOOR)."""
    spectrum = np.asarray(spectrum, dtype=np.float64)
    mask = mel_band_mask(len(spectrum), int(sr), n_filters)
    sums = np.where(mask, spectrum[None, :], 0.0).sum(axis=1)
    return np.log(sums + LOG_FLOOR)


# ---------------------------------------------------------------------------
# Cepstral transform
# ---------------------------------------------------------------------------

@lru_cache(maxsize=8)
def _dct_basis(n_inputs: int, n_coefficients: int) -> np.ndarray:
    k = np.arange(n_coefficients)[:, None]
    i = np.arange(n_inputs)[None, :]
    basis = np.cos(np.pi * k * (i + 0.5) / n_inputs)
    basis.setflags(write=False)
    return basis


def cepstral_coefficients(mel_energies: np.ndarray, n_coefficients: int = 13) -> np.ndarray:
    """Unnormalized DCT-II, truncated (or extended) to n_coefficients terms."""
    mel_energies = np.asarray(mel_energies, dtype=np.float64)
    return _dct_basis(len(mel_energies), n_coefficients) @ mel_energies
