# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Instantaneous Analysis Module

This module derives instantaneous phase and frequency from a discrete
Hilbert transform, and the quality metrics (SNR, quality score, dominant
frequency) of a filtered buffer against its raw samples.
"""

import logging
from typing import List, Optional, Sequence, Union

import numpy as np
from scipy import signal as sp_signal

from .signals import samples_to_arrays
from .types import Metrics, Sample

ArrayLike = Union[Sequence[float], np.ndarray]


def hilbert_quadrature(values: ArrayLike) -> np.ndarray:
    """Quadrature component of the discrete Hilbert transform

    ``imag[i] = sum_{j != i} x[j] / (pi * (i - j))`` over the whole buffer,
    with no windowing or periodic extension. The sum is evaluated as a
    convolution with the kernel ``1 / (pi * m)``, which scipy computes
    directly for short inputs and via FFT for long ones; the direct sum
    is O(N^2).

    Parameters
    ----------
    values : array_like
        Real input signal

    Returns
    -------
    np.ndarray
        Quadrature signal of the same length
    """
    x = np.asarray(values, dtype=np.float64)
    n = len(x)
    if n == 0:
        return np.zeros(0, dtype=np.float64)

    offsets = np.arange(-(n - 1), n, dtype=np.float64)
    kernel = np.zeros_like(offsets)
    nonzero = offsets != 0
    kernel[nonzero] = 1.0 / (np.pi * offsets[nonzero])

    full = sp_signal.convolve(x, kernel, mode="full")
    return full[n - 1:2 * n - 1]


def analytic_signal(values: ArrayLike) -> np.ndarray:
    """Complex analytic signal ``x + j * hilbert_quadrature(x)``"""
    x = np.asarray(values, dtype=np.float64)
    return x + 1j * hilbert_quadrature(x)


def instantaneous_phase(values: ArrayLike) -> np.ndarray:
    """Instantaneous phase ``atan2(imag, real)`` in radians"""
    analytic = analytic_signal(values)
    return np.arctan2(analytic.imag, analytic.real)


def wrap_phase(delta: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Wrap a phase difference into (-pi, pi]"""
    return np.pi - np.mod(np.pi - delta, 2.0 * np.pi)


def instantaneous_frequency(values: ArrayLike, sample_rate: float) -> np.ndarray:
    """Instantaneous frequency from the wrapped phase difference

    Parameters
    ----------
    values : array_like
        Real input signal
    sample_rate : float
        Sample rate in Hz

    Returns
    -------
    np.ndarray
        Frequency in Hz per sample; the first sample is 0 by convention
    """
    phase = instantaneous_phase(values)
    frequency = np.zeros_like(phase)
    if len(phase) > 1:
        frequency[1:] = wrap_phase(np.diff(phase)) * sample_rate / (2.0 * np.pi)
    return frequency


def compute_snr(original: ArrayLike, filtered: ArrayLike) -> float:
    """Signal-to-noise ratio of a filtered buffer in dB

    ``10 log10(sum(filtered^2) / sum((original - filtered)^2))``; 0 when
    either power is 0.
    """
    original = np.asarray(original, dtype=np.float64)
    filtered = np.asarray(filtered, dtype=np.float64)
    signal_power = np.sum(filtered ** 2)
    noise_power = np.sum((original - filtered) ** 2)
    if noise_power == 0 or signal_power == 0:
        return 0.0
    return float(10.0 * np.log10(signal_power / noise_power))


def compute_quality(original: ArrayLike, filtered: ArrayLike) -> float:
    """Mean of ``|filtered| / (|filtered| + |original - filtered|)`` in percent

    Samples where both amplitudes are 0 contribute 0.
    """
    original = np.asarray(original, dtype=np.float64)
    filtered = np.asarray(filtered, dtype=np.float64)
    if original.size == 0:
        return 0.0
    signal_amp = np.abs(filtered)
    noise_amp = np.abs(original - filtered)
    total = signal_amp + noise_amp
    ratios = np.divide(signal_amp, total, out=np.zeros_like(total), where=total > 0)
    return float(np.mean(ratios) * 100.0)


def zero_crossing_frequency(times: ArrayLike, filtered: ArrayLike) -> float:
    """Dominant frequency from strict sign changes of the filtered signal

    ``(crossings / 2) / (times[-1] - times[0])``; 0 with fewer than two
    samples or a zero time span.
    """
    times = np.asarray(times, dtype=np.float64)
    filtered = np.asarray(filtered, dtype=np.float64)
    if len(filtered) < 2:
        return 0.0
    span = times[-1] - times[0]
    if span == 0:
        return 0.0
    crossings = np.count_nonzero(filtered[:-1] * filtered[1:] < 0)
    return float((crossings / 2.0) / span)


def compute_rms(values: ArrayLike) -> float:
    """Root-mean-square of a signal, 0 when empty"""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(values ** 2)))


def power_ratio_snr(signal: ArrayLike, noise: ArrayLike) -> float:
    """SNR in dB from separate signal and noise series, using mean powers

    Returns 0 when either series is empty or has zero power.
    """
    signal = np.asarray(signal, dtype=np.float64)
    noise = np.asarray(noise, dtype=np.float64)
    if signal.size == 0 or noise.size == 0:
        return 0.0
    signal_power = np.mean(signal ** 2)
    noise_power = np.mean(noise ** 2)
    if signal_power == 0 or noise_power == 0:
        return 0.0
    return float(10.0 * np.log10(signal_power / noise_power))


def compute_metrics(samples: Sequence[Sample]) -> Metrics:
    """SNR, quality and dominant frequency of a filtered buffer

    Parameters
    ----------
    samples : Sequence[Sample]
        Samples with ``filtered`` populated

    Returns
    -------
    Metrics
        All zeros for an empty buffer
    """
    if len(samples) == 0:
        return Metrics.empty()

    times, original, filtered = samples_to_arrays(samples)

    return Metrics(
        snr=compute_snr(original, filtered),
        quality=compute_quality(original, filtered),
        frequency=zero_crossing_frequency(times, filtered)
    )


class InstantaneousAnalyzer:
    """Instantaneous frequency estimation and metric computation

    Parameters
    ----------
    sample_rate : float, optional
        Sample rate in Hz, by default 1000.0
    logger : logging.Logger, optional
        Logger to use
    """

    def __init__(self, sample_rate: float = 1000.0, logger: Optional[logging.Logger] = None):
        self.sample_rate = sample_rate
        self.logger = logger or logging.getLogger("BandAnalysis.InstantaneousAnalyzer")

    def annotate(self, samples: Sequence[Sample]) -> List[Sample]:
        """Copy the samples with ``instantaneous_frequency`` set from the raw series

        Parameters
        ----------
        samples : Sequence[Sample]
            Input samples; they are not modified

        Returns
        -------
        List[Sample]
            Annotated copies
        """
        if len(samples) == 0:
            return []
        original = np.array([s.original for s in samples], dtype=np.float64)
        frequency = instantaneous_frequency(original, self.sample_rate)
        self.logger.debug(f"Estimated instantaneous frequency over {len(samples)} samples")
        return [s.copy(instantaneous_frequency=float(f)) for s, f in zip(samples, frequency)]

    def analyze(self, samples: Sequence[Sample]) -> Metrics:
        """Compute the metrics of a filtered buffer

        Parameters
        ----------
        samples : Sequence[Sample]
            Samples with ``filtered`` populated

        Returns
        -------
        Metrics
            All zeros for an empty buffer
        """
        return compute_metrics(samples)
