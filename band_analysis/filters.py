# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Digital Filtering Module

This module provides the two filtering strategies of the analyzer:
an IIR cascade built from Butterworth analog prototypes (offline batch
analysis), and a per-sample resonant scalar response driven by each
sample's instantaneous frequency (live windowed replay). The two are not
numerically interchangeable.
"""

import logging
from enum import Enum
from typing import List, Sequence, Tuple, Union

import numpy as np
from scipy import signal as sp_signal

from .errors import InvalidParameterError
from .types import BandpassParams, FilterCoefficients, FilterParams, Sample

logger = logging.getLogger("BandAnalysis.Filters")

DEFAULT_ORDER = 4

# Smallest |1 - p|^2 accepted by the bilinear mapping
_MIN_DENOMINATOR = 1e-12


class FilterStrategy(Enum):
    """Filtering strategies, selected by caller context"""
    IIR_CASCADE = "iir"
    RESONANT = "resonant"


def _check_design_args(cutoff_hz: float, sample_rate_hz: float, order: int) -> None:
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)):
        raise InvalidParameterError(f"Filter order must be an integer, got {order!r}")
    if order <= 0:
        raise InvalidParameterError(f"Filter order must be at least 1, got {order}")
    if not np.isfinite(sample_rate_hz) or sample_rate_hz <= 0:
        raise InvalidParameterError(f"Sample rate must be positive, got {sample_rate_hz}")
    if not np.isfinite(cutoff_hz) or cutoff_hz <= 0:
        raise InvalidParameterError(f"Cutoff frequency must be positive, got {cutoff_hz}")
    if cutoff_hz >= sample_rate_hz / 2.0:
        raise InvalidParameterError(
            f"Cutoff frequency {cutoff_hz} Hz must be below the Nyquist frequency {sample_rate_hz / 2.0} Hz"
        )


def design_butterworth(
    cutoff_hz: float,
    sample_rate_hz: float,
    order: int = DEFAULT_ORDER
) -> FilterCoefficients:
    """Design a lowpass Butterworth approximation as a cascade of pole sections

    The cutoff is normalized to Nyquist and pre-warped with
    ``wc = tan(pi * normalized / 2)``. Analog poles sit on the left half of
    the circle of radius ``wc`` at ``theta_k = pi * (2k + 1) / (2 * order) - pi / 2``
    with real part ``-wc * cos(theta_k)`` and imaginary part
    ``wc * sin(theta_k)``. Each pole is mapped through the bilinear
    transform ``z = (1 + p) / (1 - p)`` to one section with a single
    feedforward gain and three feedback terms ``[1, -2 Re(z), |z|^2]``.
    Sections are emitted in pole order and are not merged into a single
    transfer function.

    Every conjugate pair is emitted once per pole, so the cascade has
    magnitude ``|H_butter|^2`` and the cutoff is its -6 dB point.

    Parameters
    ----------
    cutoff_hz : float
        Cutoff frequency in Hz
    sample_rate_hz : float
        Sample rate in Hz
    order : int, optional
        Number of analog poles, by default 4

    Returns
    -------
    FilterCoefficients
        One section per pole, unity gain at DC

    Raises
    ------
    InvalidParameterError
        If the cutoff is not in (0, sample_rate / 2) or order < 1
    """
    _check_design_args(cutoff_hz, sample_rate_hz, order)

    nyquist = sample_rate_hz / 2.0
    normalized_cutoff = cutoff_hz / nyquist
    wc = np.tan(np.pi * normalized_cutoff / 2.0)

    feedforward = []
    feedback = []
    for k in range(order):
        theta = np.pi * (2 * k + 1) / (2 * order) - np.pi / 2.0
        pole_real = -wc * np.cos(theta)
        pole_imag = wc * np.sin(theta)

        # Purely real poles (odd orders) still go through the guarded path
        denominator = max((1.0 - pole_real) ** 2 + pole_imag ** 2, _MIN_DENOMINATOR)
        z_real = (1.0 - pole_real ** 2 - pole_imag ** 2) / denominator
        z_imag = 2.0 * pole_imag / denominator

        a1 = -2.0 * z_real
        a2 = z_real ** 2 + z_imag ** 2
        feedforward.append(1.0 + a1 + a2)
        feedback.extend([1.0, a1, a2])

    logger.debug(f"Designed order-{order} Butterworth cascade at {cutoff_hz} Hz (fs={sample_rate_hz} Hz)")
    return FilterCoefficients(feedforward, feedback, num_sections=order)


def apply_filter(
    samples: Union[Sequence[float], np.ndarray],
    coeffs: FilterCoefficients
) -> np.ndarray:
    """Apply coefficients with the direct-form recurrence

    For each section, ``y[i] = (sum_j b[j] x[i-j] - sum_{j>=1} a[j] y[i-j]) / a[0]``
    with zero history before the start of the buffer. Sections are applied
    one after the other in pole order.

    Parameters
    ----------
    samples : array_like
        Input signal
    coeffs : FilterCoefficients
        Coefficients to apply

    Returns
    -------
    np.ndarray
        Filtered signal of the same length
    """
    output = np.asarray(samples, dtype=np.float64)
    if output.size == 0:
        return np.zeros(0, dtype=np.float64)

    for section in coeffs.sections():
        # lfilter normalizes by a[0] and starts from rest
        output = sp_signal.lfilter(section.feedforward, section.feedback, output)
    return output


def lowpass(
    samples: Union[Sequence[float], np.ndarray],
    cutoff_hz: float,
    sample_rate_hz: float,
    order: int = DEFAULT_ORDER
) -> np.ndarray:
    """Lowpass a signal with the Butterworth cascade

    Parameters
    ----------
    samples : array_like
        Input signal
    cutoff_hz : float
        Cutoff frequency in Hz
    sample_rate_hz : float
        Sample rate in Hz
    order : int, optional
        Filter order, by default 4

    Returns
    -------
    np.ndarray
        Filtered signal
    """
    coeffs = design_butterworth(cutoff_hz, sample_rate_hz, order)
    return apply_filter(samples, coeffs)


def highpass(
    samples: Union[Sequence[float], np.ndarray],
    cutoff_hz: float,
    sample_rate_hz: float,
    order: int = DEFAULT_ORDER
) -> np.ndarray:
    """Highpass a signal as ``input - lowpass(input)``

    Parameters
    ----------
    samples : array_like
        Input signal
    cutoff_hz : float
        Cutoff frequency in Hz
    sample_rate_hz : float
        Sample rate in Hz
    order : int, optional
        Filter order, by default 4

    Returns
    -------
    np.ndarray
        Filtered signal
    """
    data = np.asarray(samples, dtype=np.float64)
    return data - lowpass(data, cutoff_hz, sample_rate_hz, order)


def bandpass(
    samples: Union[Sequence[float], np.ndarray],
    low_hz: float,
    high_hz: float,
    sample_rate_hz: float,
    order: int = DEFAULT_ORDER
) -> np.ndarray:
    """Bandpass a signal by cascading a highpass at ``low_hz`` and a lowpass at ``high_hz``

    Parameters
    ----------
    samples : array_like
        Input signal
    low_hz : float
        Lower band edge in Hz
    high_hz : float
        Upper band edge in Hz
    sample_rate_hz : float
        Sample rate in Hz
    order : int, optional
        Filter order, by default 4

    Returns
    -------
    np.ndarray
        Filtered signal

    Raises
    ------
    InvalidParameterError
        If the band is empty or outside (0, sample_rate / 2)
    """
    FilterParams(low_hz, high_hz).validate(sample_rate_hz)
    highpassed = highpass(samples, low_hz, sample_rate_hz, order)
    return lowpass(highpassed, high_hz, sample_rate_hz, order)


def frequency_response(
    coeffs: FilterCoefficients,
    sample_rate_hz: float,
    num_points: int = 512
) -> Tuple[np.ndarray, np.ndarray]:
    """Get the magnitude response of a coefficient cascade

    Parameters
    ----------
    coeffs : FilterCoefficients
        Coefficients to evaluate
    sample_rate_hz : float
        Sample rate in Hz
    num_points : int, optional
        Number of frequency points, by default 512

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        Frequencies in Hz and magnitude response
    """
    frequencies, response = _complex_response(coeffs, sample_rate_hz, num_points)
    return frequencies, np.abs(response)


def _complex_response(
    coeffs: FilterCoefficients,
    sample_rate_hz: float,
    num_points: int
) -> Tuple[np.ndarray, np.ndarray]:
    frequencies = np.linspace(0.0, sample_rate_hz / 2.0, num_points, endpoint=False)
    response = np.ones(num_points, dtype=np.complex128)
    for section in coeffs.sections():
        _, h = sp_signal.freqz(section.feedforward, section.feedback, worN=frequencies, fs=sample_rate_hz)
        response *= h
    return frequencies, response


class ButterworthBandpass:
    """Band-pass IIR cascade with cached coefficients

    Parameters
    ----------
    band : BandpassParams
        Pass band
    sample_rate : float
        Sample rate in Hz
    order : int, optional
        Butterworth order of each stage, by default 4

    Raises
    ------
    InvalidParameterError
        If the band or order is invalid
    """

    def __init__(self, band: BandpassParams, sample_rate: float, order: int = DEFAULT_ORDER):
        FilterParams(band.low, band.high).validate(sample_rate)
        self.band = band
        self.sample_rate = sample_rate
        self.order = order
        self.low_coeffs = design_butterworth(band.low, sample_rate, order)
        self.high_coeffs = design_butterworth(band.high, sample_rate, order)

    def filter(self, signal: Union[Sequence[float], np.ndarray]) -> np.ndarray:
        """Apply the filter to a signal

        Parameters
        ----------
        signal : array_like
            Input signal

        Returns
        -------
        np.ndarray
            Filtered signal
        """
        data = np.asarray(signal, dtype=np.float64)
        highpassed = data - apply_filter(data, self.low_coeffs)
        return apply_filter(highpassed, self.high_coeffs)

    def get_frequency_response(self, num_points: int = 512) -> Tuple[np.ndarray, np.ndarray]:
        """Get the filter frequency response

        Parameters
        ----------
        num_points : int, optional
            Number of frequency points, by default 512

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            Frequencies in Hz and magnitude response
        """
        # Highpass stage is 1 - H_low, so it needs the complex response
        frequencies, low_response = _complex_response(self.low_coeffs, self.sample_rate, num_points)
        _, high_response = _complex_response(self.high_coeffs, self.sample_rate, num_points)
        return frequencies, np.abs((1.0 - low_response) * high_response)


# Resonant scalar strategy

def resonant_response(
    frequency: Union[float, np.ndarray],
    band: BandpassParams
) -> Union[float, np.ndarray]:
    """Gain of the resonant scalar model at the given frequency

    ``1 / (1 + ((f - center) / (bandwidth / 2))^2)``. A zero-width band
    passes only its centre frequency.

    Parameters
    ----------
    frequency : float or np.ndarray
        Frequency in Hz
    band : BandpassParams
        Pass band

    Returns
    -------
    float or np.ndarray
        Gain in [0, 1]
    """
    freq = np.asarray(frequency, dtype=np.float64)
    half_width = band.bandwidth / 2.0

    if half_width <= 0:
        response = np.where(freq == band.center, 1.0, 0.0)
    else:
        normalized = (freq - band.center) / half_width
        response = 1.0 / (1.0 + normalized ** 2)

    if np.ndim(frequency) == 0:
        return float(response)
    return response


def apply_resonant_filter(samples: Sequence[Sample], band: BandpassParams) -> List[Sample]:
    """Filter samples with the resonant scalar model

    Each sample is scaled by the response at its own instantaneous
    frequency. This is a per-sample approximation for interactive use and
    does not run any recurrence.

    Parameters
    ----------
    samples : Sequence[Sample]
        Input samples; they are not modified
    band : BandpassParams
        Pass band

    Returns
    -------
    List[Sample]
        Copies of the samples with ``filtered`` set
    """
    if len(samples) == 0:
        return []
    freqs = np.array([s.instantaneous_frequency for s in samples], dtype=np.float64)
    gains = resonant_response(freqs, band)
    return [s.copy(filtered=s.original * float(g)) for s, g in zip(samples, gains)]
