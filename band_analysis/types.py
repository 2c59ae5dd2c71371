# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Value types shared by the band analysis components.
"""

from typing import Any, Dict, Iterator, List, Optional, Sequence
import numpy as np

from .errors import InvalidParameterError


class Sample:
    """
    A single point of the analysed time series.

    Attributes:
        time (float): Sample time in seconds
        original (float): Raw amplitude as ingested
        filtered (float): Amplitude after the active filtering strategy
        instantaneous_frequency (float): Instantaneous frequency in Hz
        amplitude (float): Envelope amplitude
    """

    __slots__ = ("time", "original", "filtered", "instantaneous_frequency", "amplitude")

    def __init__(
        self,
        time: float,
        original: float,
        filtered: Optional[float] = None,
        instantaneous_frequency: float = 0.0,
        amplitude: Optional[float] = None
    ) -> None:
        self.time = float(time)
        self.original = float(original)
        self.filtered = self.original if filtered is None else float(filtered)
        self.instantaneous_frequency = float(instantaneous_frequency)
        self.amplitude = abs(self.original) if amplitude is None else float(amplitude)

    def copy(self, **changes: float) -> "Sample":
        """
        Return a copy of the sample with the given fields replaced.

        Args:
            **changes: Field values to override in the copy

        Returns:
            A new Sample
        """
        fields = {name: getattr(self, name) for name in self.__slots__}
        fields.update(changes)
        return Sample(**fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sample):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    def __repr__(self) -> str:
        return (
            f"Sample(time={self.time}, "
            f"original={self.original}, "
            f"filtered={self.filtered}, "
            f"instantaneous_frequency={self.instantaneous_frequency})"
        )


class FilterCoefficients:
    """
    Recursive filter coefficients.

    Coefficients produced by the Butterworth designer hold one section per
    analog pole: a single feedforward term and three feedback terms
    ``[1, a1, a2]``. Sections must be applied in pole order. A coefficient
    set built by hand is a single section of arbitrary length.

    Attributes:
        feedforward (np.ndarray): Numerator coefficients (read-only)
        feedback (np.ndarray): Denominator coefficients (read-only)
        num_sections (int): Number of cascaded sections
    """

    def __init__(
        self,
        feedforward: Sequence[float],
        feedback: Sequence[float],
        num_sections: int = 1
    ) -> None:
        feedforward = np.array(feedforward, dtype=np.float64)
        feedback = np.array(feedback, dtype=np.float64)

        if feedforward.ndim != 1 or feedback.ndim != 1 or feedforward.size == 0 or feedback.size == 0:
            raise InvalidParameterError("Coefficient sequences must be non-empty and one-dimensional")
        if num_sections < 1:
            raise InvalidParameterError("num_sections must be at least 1")
        if num_sections > 1 and (feedforward.size != num_sections or feedback.size != 3 * num_sections):
            raise InvalidParameterError(
                "Sectioned coefficients need one feedforward and three feedback terms per section"
            )
        if num_sections == 1 and feedback[0] == 0:
            raise InvalidParameterError("First feedback coefficient must be non-zero")

        feedforward.flags.writeable = False
        feedback.flags.writeable = False
        self.feedforward = feedforward
        self.feedback = feedback
        self.num_sections = int(num_sections)

    def sections(self) -> Iterator["FilterCoefficients"]:
        """Yield the per-pole coefficient sets in pole order."""
        if self.num_sections == 1:
            yield self
            return
        for k in range(self.num_sections):
            yield FilterCoefficients(
                self.feedforward[k:k + 1],
                self.feedback[3 * k:3 * k + 3]
            )

    def to_sos(self) -> np.ndarray:
        """
        Return the cascade as a scipy second-order-section matrix.

        Returns:
            Array of shape (num_sections, 6)
        """
        rows = []
        for section in self.sections():
            if section.feedforward.size > 3 or section.feedback.size > 3:
                raise InvalidParameterError("Section longer than second order cannot be expressed as SOS")
            b = np.zeros(3)
            a = np.zeros(3)
            b[:section.feedforward.size] = section.feedforward
            a[:section.feedback.size] = section.feedback
            rows.append(np.concatenate([b, a]) / a[0])
        return np.vstack(rows)

    def __repr__(self) -> str:
        return (
            f"FilterCoefficients(feedforward={self.feedforward.tolist()}, "
            f"feedback={self.feedback.tolist()}, "
            f"num_sections={self.num_sections})"
        )


class SpectrumPoint:
    """One bin of the normalized magnitude spectrum."""

    __slots__ = ("frequency", "magnitude")

    def __init__(self, frequency: float, magnitude: float) -> None:
        self.frequency = float(frequency)
        self.magnitude = float(magnitude)

    def to_dict(self) -> Dict[str, float]:
        return {"frequency": self.frequency, "magnitude": self.magnitude}

    def __repr__(self) -> str:
        return f"SpectrumPoint(frequency={self.frequency}, magnitude={self.magnitude})"


class Metrics:
    """
    Quality metrics of a filtered buffer.

    Attributes:
        snr (float): Signal-to-noise ratio in dB
        quality (float): Perceptual quality score, 0-100
        frequency (float): Dominant frequency in Hz from zero crossings
    """

    __slots__ = ("snr", "quality", "frequency")

    def __init__(self, snr: float = 0.0, quality: float = 0.0, frequency: float = 0.0) -> None:
        self.snr = float(snr)
        self.quality = float(quality)
        self.frequency = float(frequency)

    @classmethod
    def empty(cls) -> "Metrics":
        """Metrics reported for an empty buffer."""
        return cls(0.0, 0.0, 0.0)

    def to_dict(self) -> Dict[str, float]:
        return {"snr": self.snr, "quality": self.quality, "frequency": self.frequency}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metrics):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Metrics(snr={self.snr:.3f}, quality={self.quality:.3f}, frequency={self.frequency:.3f})"


class BandpassParams:
    """Lower and upper edge of the analysed band in Hz."""

    __slots__ = ("low", "high")

    def __init__(self, low: float, high: float) -> None:
        self.low = float(low)
        self.high = float(high)

    @property
    def center(self) -> float:
        return (self.low + self.high) / 2.0

    @property
    def bandwidth(self) -> float:
        return self.high - self.low

    def contains(self, frequency):
        """True where ``frequency`` lies inside the band, elementwise for arrays."""
        return (self.low <= frequency) & (frequency <= self.high)

    def __repr__(self) -> str:
        return f"BandpassParams(low={self.low}, high={self.high})"


class FilterParams:
    """
    User-adjustable filter parameters.

    Attributes:
        bandpass (BandpassParams): The pass band
    """

    def __init__(self, low: float = 7.6, high: float = 11.5) -> None:
        self.bandpass = BandpassParams(low, high)

    def validate(self, sample_rate: float) -> "FilterParams":
        """
        Check the band against the sample rate.

        Args:
            sample_rate: Sample rate in Hz

        Returns:
            self, to allow chaining

        Raises:
            InvalidParameterError: If the band is empty, non-positive, or
                reaches the Nyquist frequency
        """
        low, high = self.bandpass.low, self.bandpass.high
        if not (np.isfinite(low) and np.isfinite(high)):
            raise InvalidParameterError(f"Band edges must be finite, got ({low}, {high})")
        if low <= 0:
            raise InvalidParameterError(f"Lower band edge must be positive, got {low}")
        if low >= high:
            raise InvalidParameterError(f"Lower band edge {low} must be below upper edge {high}")
        if high >= sample_rate / 2.0:
            raise InvalidParameterError(
                f"Upper band edge {high} Hz must be below the Nyquist frequency {sample_rate / 2.0} Hz"
            )
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterParams":
        band = data.get("bandpass", data)
        try:
            return cls(band["low"], band["high"])
        except KeyError as e:
            raise InvalidParameterError(f"Missing band edge {e}") from e

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {"bandpass": {"low": self.bandpass.low, "high": self.bandpass.high}}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterParams):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"FilterParams(low={self.bandpass.low}, high={self.bandpass.high})"


class StreamState:
    """
    Read position of the streaming feeder.

    Instances are immutable; every transition returns a new state.

    Attributes:
        cursor (int): Index of the first sample of the next window
        window_size_samples (int): Number of samples per window
    """

    __slots__ = ("_cursor", "_window_size_samples")

    def __init__(self, cursor: int = 0, window_size_samples: int = 1000) -> None:
        if cursor < 0:
            raise InvalidParameterError(f"Cursor must be non-negative, got {cursor}")
        if window_size_samples < 1:
            raise InvalidParameterError(f"Window size must be at least one sample, got {window_size_samples}")
        self._cursor = int(cursor)
        self._window_size_samples = int(window_size_samples)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def window_size_samples(self) -> int:
        return self._window_size_samples

    def with_cursor(self, cursor: int) -> "StreamState":
        return StreamState(cursor, self._window_size_samples)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StreamState):
            return NotImplemented
        return (self.cursor, self.window_size_samples) == (other.cursor, other.window_size_samples)

    def __hash__(self) -> int:
        return hash((self.cursor, self.window_size_samples))

    def __repr__(self) -> str:
        return f"StreamState(cursor={self.cursor}, window_size_samples={self.window_size_samples})"


def coerce_samples(samples: Sequence[Sample]) -> List[Sample]:
    """Return the samples as a list, rejecting anything that is not a Sample."""
    samples = list(samples)
    for sample in samples:
        if not isinstance(sample, Sample):
            raise InvalidParameterError(f"Expected Sample, got {type(sample).__name__}")
    return samples
