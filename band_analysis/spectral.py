# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Spectral Analysis Module

This module estimates the smoothed, peak-normalized magnitude spectrum of
the residual noise around the analysed band, and the peak frequency of a
raw series.

All transforms use ``numpy.fft.rfft`` (O(N log N)); the magnitudes equal
the direct discrete sum ``|sum_n x[n] exp(-2j pi k n / N)| / N``.
"""

import logging
from typing import List, Optional, Sequence, Union

import numpy as np

from .config import AnalyzerConfig
from .errors import InsufficientDataError
from .types import BandpassParams, Sample, SpectrumPoint

logger = logging.getLogger("BandAnalysis.Spectral")


def largest_power_of_two(n: int) -> int:
    """Largest power of two not exceeding ``n`` (0 for n < 1)"""
    if n < 1:
        return 0
    return 1 << (int(n).bit_length() - 1)


def hanning_window(n: int) -> np.ndarray:
    """Hanning window ``0.5 * (1 - cos(2 pi i / (n - 1)))``

    Parameters
    ----------
    n : int
        Window length

    Returns
    -------
    np.ndarray
        Window weights
    """
    return np.hanning(n)


def smooth_magnitudes(magnitudes: np.ndarray, half_width: int = 3) -> np.ndarray:
    """Centered moving average of a magnitude sequence

    Bins within ``half_width`` of either end pass through unchanged.
    Every other bin takes the mean of the full slice
    ``[i - half_width, i + half_width]``.

    Parameters
    ----------
    magnitudes : np.ndarray
        Input magnitudes
    half_width : int, optional
        Half-width of the averaging window, by default 3

    Returns
    -------
    np.ndarray
        Smoothed magnitudes
    """
    magnitudes = np.asarray(magnitudes, dtype=np.float64)
    n = len(magnitudes)
    smoothed = magnitudes.copy()
    for i in range(n):
        if i < half_width or i >= n - half_width:
            continue
        smoothed[i] = np.mean(magnitudes[i - half_width:i + half_width + 1])
    return smoothed


def normalize_magnitudes(magnitudes: np.ndarray, scale: float = 100.0) -> np.ndarray:
    """Scale magnitudes so the largest equals ``scale``; all zeros when the peak is 0"""
    magnitudes = np.asarray(magnitudes, dtype=np.float64)
    if magnitudes.size == 0:
        return magnitudes
    peak = np.max(magnitudes)
    if peak <= 0:
        return np.zeros_like(magnitudes)
    return magnitudes / peak * scale


def estimate_spectrum(
    samples: Sequence[Sample],
    band: BandpassParams,
    sample_rate: float = 1000.0,
    min_samples: int = 512,
    max_frequency: float = 30.0,
    smoothing_half_width: int = 3,
    strict: bool = False
) -> List[SpectrumPoint]:
    """Estimate the normalized noise spectrum of a sample buffer

    The buffer is truncated to the largest power-of-two length and
    windowed with a Hanning window. Samples whose time-implied frequency
    ``1 / (2 pi t)`` falls inside the band are zeroed, so the spectrum
    shows the residual noise rather than the signal. Bins above
    ``max_frequency`` are dropped, the rest are smoothed and scaled to
    0-100.

    Parameters
    ----------
    samples : Sequence[Sample]
        Buffer in ascending time order
    band : BandpassParams
        Band excluded from the spectrum
    sample_rate : float, optional
        Sample rate in Hz, by default 1000.0
    min_samples : int, optional
        Shortest buffer analysed, by default 512
    max_frequency : float, optional
        Highest frequency kept in Hz, by default 30.0
    smoothing_half_width : int, optional
        Moving-average half-width in bins, by default 3
    strict : bool, optional
        Raise instead of returning an empty list on a short buffer,
        by default False

    Returns
    -------
    List[SpectrumPoint]
        Spectrum in ascending frequency order, empty for a short buffer

    Raises
    ------
    InsufficientDataError
        If ``strict`` is set and the buffer is shorter than ``min_samples``
    """
    count = len(samples)
    if count < min_samples:
        if strict:
            raise InsufficientDataError(
                f"Spectrum needs at least {min_samples} samples, got {count}"
            )
        logger.debug(f"Skipping spectrum: {count} samples < {min_samples}")
        return []

    n = largest_power_of_two(count)
    times = np.fromiter((s.time for s in samples[:n]), dtype=np.float64, count=n)
    values = np.fromiter((s.original for s in samples[:n]), dtype=np.float64, count=n)

    with np.errstate(divide="ignore"):
        implied_freq = 1.0 / (2.0 * np.pi * times)
    in_band = band.contains(implied_freq)
    windowed = np.where(in_band, 0.0, values) * hanning_window(n)

    bins = np.arange(n // 2)
    frequencies = bins * sample_rate / n
    keep = frequencies <= max_frequency

    spectrum = np.fft.rfft(windowed)[:n // 2]
    magnitudes = np.abs(spectrum[keep]) / n

    magnitudes = smooth_magnitudes(magnitudes, smoothing_half_width)
    magnitudes = normalize_magnitudes(magnitudes)

    return [SpectrumPoint(f, m) for f, m in zip(frequencies[keep], magnitudes)]


def peak_frequency(values: Union[Sequence[float], np.ndarray], sample_rate: float) -> float:
    """Frequency of the largest FFT magnitude below Nyquist

    Parameters
    ----------
    values : array_like
        Raw signal
    sample_rate : float
        Sample rate in Hz

    Returns
    -------
    float
        Peak frequency in Hz, 0 for an empty signal
    """
    values = np.asarray(values, dtype=np.float64)
    n = len(values)
    if n < 2:
        return 0.0
    magnitudes = np.abs(np.fft.rfft(values)[:n // 2])
    return float(np.argmax(magnitudes) * sample_rate / n)


class SpectrumEstimator:
    """Spectrum estimator bound to an analyzer configuration

    Parameters
    ----------
    config : AnalyzerConfig, optional
        Configuration supplying sample rate, minimum length, frequency
        ceiling and smoothing width, by default the defaults
    logger : logging.Logger, optional
        Logger to use
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config if config is not None else AnalyzerConfig()
        self.logger = logger or logging.getLogger("BandAnalysis.SpectrumEstimator")

    def estimate(
        self,
        samples: Sequence[Sample],
        band: Optional[BandpassParams] = None,
        strict: bool = False
    ) -> List[SpectrumPoint]:
        """Estimate the spectrum of a buffer

        Parameters
        ----------
        samples : Sequence[Sample]
            Buffer in ascending time order
        band : BandpassParams, optional
            Excluded band, by default the configured band
        strict : bool, optional
            Raise on a short buffer, by default False

        Returns
        -------
        List[SpectrumPoint]
            Spectrum, empty for a short buffer
        """
        band = band if band is not None else self.config.filter_params.bandpass
        if len(samples) < self.config.min_spectrum_samples and not strict:
            self.logger.debug(
                f"Buffer of {len(samples)} samples is below the "
                f"{self.config.min_spectrum_samples}-sample spectrum minimum"
            )
        return estimate_spectrum(
            samples,
            band,
            sample_rate=self.config.sample_rate,
            min_samples=self.config.min_spectrum_samples,
            max_frequency=self.config.max_spectrum_frequency,
            smoothing_half_width=self.config.smoothing_half_width,
            strict=strict
        )
