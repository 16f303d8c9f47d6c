#!/usr/bin/env python3
"""
Generate sample WAV recordings for Sawt testing.
"""
import os
import wave

import numpy as np


def write_wav(samples, filename, sample_rate=16000):
    """Write float samples in [-1, 1] as 16-bit mono PCM."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    with wave.open(filename, 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())
    print(f"Created {filename}")


def create_natural_recording(filename, sample_rate=16000, seconds=3.0, seed=1234):
    """Harmonic tone with slow amplitude drift and a light noise floor."""
    rng = np.random.default_rng(seed)
    t = np.arange(int(sample_rate * seconds)) / sample_rate
    envelope = 0.6 + 0.2 * np.sin(2 * np.pi * 0.5 * t)
    voiced = sum(np.sin(2 * np.pi * 220 * k * t) / k for k in range(1, 5))
    samples = 0.3 * envelope * voiced + 0.01 * rng.standard_normal(t.size)
    write_wav(samples, filename, sample_rate)


def create_spliced_recording(filename, sample_rate=16000):
    """Two unrelated segments butted together with no crossfade."""
    t = np.arange(sample_rate) / sample_rate
    first = 0.5 * np.sin(2 * np.pi * 330 * t)
    rng = np.random.default_rng(99)
    second = 0.4 * rng.standard_normal(sample_rate)
    write_wav(np.concatenate([first, second]), filename, sample_rate)


def create_silent_recording(filename, sample_rate=44100):
    write_wav(np.zeros(sample_rate), filename, sample_rate)


def main():
    output_dir = os.path.join(os.path.dirname(__file__), '..', 'test-data')
    os.makedirs(output_dir, exist_ok=True)

    print("Generating test recordings...")
    create_natural_recording(os.path.join(output_dir, 'natural.wav'))
    create_spliced_recording(os.path.join(output_dir, 'spliced.wav'))
    create_silent_recording(os.path.join(output_dir, 'silence.wav'))
    print("\nTest recordings generated successfully!")


if __name__ == '__main__':
    main()
