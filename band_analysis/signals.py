# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Conversion between raw series and Sample buffers, plus a synthetic test signal.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidParameterError
from .types import Sample


def samples_from_pairs(pairs: Iterable[Tuple[float, float]]) -> List[Sample]:
    """
    Build samples from ``(time, amplitude)`` pairs.

    Args:
        pairs: Pairs in ascending time order

    Returns:
        Samples with ``filtered`` equal to ``original``

    Raises:
        InvalidParameterError: If a value is not finite or times do not increase
    """
    pairs = [(float(t), float(v)) for t, v in pairs]
    if not pairs:
        return []

    data = np.array(pairs, dtype=np.float64)
    if not np.all(np.isfinite(data)):
        raise InvalidParameterError("Samples must be finite")
    if len(data) > 1 and np.any(np.diff(data[:, 0]) <= 0):
        raise InvalidParameterError("Sample times must be strictly increasing")

    return [Sample(t, v) for t, v in pairs]


def samples_from_values(
    values: Sequence[float],
    sample_rate: float,
    start_time: float = 0.0
) -> List[Sample]:
    """
    Build samples from amplitudes at a uniform sample rate.

    Args:
        values: Amplitudes
        sample_rate: Sample rate in Hz
        start_time: Time of the first sample in seconds

    Returns:
        Samples at times ``start_time + i / sample_rate``
    """
    if sample_rate <= 0:
        raise InvalidParameterError(f"Sample rate must be positive, got {sample_rate}")
    values = np.asarray(values, dtype=np.float64)
    times = start_time + np.arange(len(values)) / sample_rate
    return samples_from_pairs(zip(times, values))


def samples_to_arrays(samples: Sequence[Sample]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Split samples into ``(time, original, filtered)`` arrays.
    """
    times = np.array([s.time for s in samples], dtype=np.float64)
    original = np.array([s.original for s in samples], dtype=np.float64)
    filtered = np.array([s.filtered for s in samples], dtype=np.float64)
    return times, original, filtered


def generate_signal(
    duration: float = 1.0,
    sample_rate: float = 1000.0,
    main_freq: float = 10.5,
    noise_level: float = 1.5,
    seed: Optional[int] = None
) -> List[Sample]:
    """
    Generate a noisy test signal around a main tone.

    The signal is a 5-unit sine at ``main_freq`` plus a 30 Hz interferer,
    uniform noise of width ``noise_level`` and a 0.5 Hz drift. ``filtered``
    holds the clean main tone, ``instantaneous_frequency`` wobbles 1 Hz
    around ``main_freq`` and ``amplitude`` is the magnitude of the tone.

    Args:
        duration: Signal length in seconds (both ends included)
        sample_rate: Sample rate in Hz
        main_freq: Frequency of the main tone in Hz
        noise_level: Peak-to-peak width of the uniform noise
        seed: Random seed for reproducibility

    Returns:
        Generated samples
    """
    if duration < 0 or sample_rate <= 0:
        raise InvalidParameterError("Duration must be non-negative and sample rate positive")

    rng = np.random.RandomState(seed)
    t = np.arange(int(round(duration * sample_rate)) + 1) / sample_rate

    main_signal = 5.0 * np.sin(2 * np.pi * main_freq * t)
    interferer = 2.0 * np.sin(2 * np.pi * 30.0 * t)
    noise = (rng.random_sample(len(t)) - 0.5) * noise_level
    drift = np.sin(2 * np.pi * 0.5 * t)

    original = main_signal + interferer + noise + drift
    inst_freq = main_freq + np.sin(2 * np.pi * t)

    return [
        Sample(t[i], original[i], main_signal[i], inst_freq[i], abs(main_signal[i]))
        for i in range(len(t))
    ]
