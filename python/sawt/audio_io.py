"""WAV decoding to mono float samples."""

import io
import logging
import wave
from typing import Tuple

import numpy as np

from .exceptions import InvalidInput

logger = logging.getLogger(__name__)

# Full-scale magnitude for each supported PCM sample width (bytes)
FULL_SCALE = {
    1: 2.0 ** 7,
    2: 2.0 ** 15,
    3: 2.0 ** 23,
    4: 2.0 ** 31,
}


def _pcm_to_int(raw: bytes, sampwidth: int) -> np.ndarray:
    """Unpack little-endian PCM bytes to signed integers."""
    if sampwidth == 1:
        # 8-bit WAV is unsigned with a 128 offset
        return np.frombuffer(raw, dtype=np.uint8).astype(np.int32) - 128
    if sampwidth == 3:
        # Place each 3-byte sample in the high bytes of an int32, then shift
        # back down; the arithmetic shift restores the sign.
        widened = np.zeros((len(raw) // 3, 4), dtype=np.uint8)
        widened[:, 1:] = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3)
        return widened.view('<i4').ravel() >> 8
    return np.frombuffer(raw, dtype=f'<i{sampwidth}')


def decode_wav(audio_bytes: bytes) -> Tuple[np.ndarray, int]:
    """Decode a PCM WAV buffer.

    Multi-channel audio is mixed down by averaging.

    Returns:
        (samples, sample_rate): float32 mono samples in [-1, 1).

    Raises:
        InvalidInput: empty, unreadable or truncated buffer, or an
            unsupported sample width.
    """
    if not audio_bytes:
        raise InvalidInput("Audio buffer is empty")

    try:
        with wave.open(io.BytesIO(audio_bytes), 'rb') as wf:
            sr = wf.getframerate()
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            raw = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise InvalidInput(f"Not a readable WAV file: {e}") from e

    if sampwidth not in FULL_SCALE:
        raise InvalidInput(f"Unsupported sample width: {sampwidth}")

    frame_bytes = sampwidth * n_channels
    if len(raw) % frame_bytes:
        raise InvalidInput(
            f"Truncated WAV data: {len(raw)} bytes is not a whole number of "
            f"{frame_bytes}-byte frames"
        )

    samples = _pcm_to_int(raw, sampwidth).astype(np.float32) / np.float32(FULL_SCALE[sampwidth])
    if n_channels > 1:
        samples = samples.reshape(-1, n_channels).mean(axis=1, dtype=np.float32)

    logger.debug(f"Decoded WAV: {len(samples)} samples, {sr} Hz, "
                 f"{n_channels} channel(s), {8 * sampwidth}-bit")
    return samples, sr


def duration_seconds(samples: np.ndarray, sample_rate: int) -> float:
    return len(samples) / float(sample_rate) if sample_rate > 0 else 0.0
