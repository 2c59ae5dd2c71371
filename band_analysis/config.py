# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Analyzer configuration with JSON persistence.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import numpy as np

from .errors import InvalidParameterError
from .types import FilterParams

logger = logging.getLogger("BandAnalysis.Config")

DEFAULT_SAMPLE_RATE = 1000.0
DEFAULT_WINDOW_DURATION = 1.0
DEFAULT_TICK_INTERVAL_MS = 1000.0 / 30.0
DEFAULT_FILTER_ORDER = 4


class AnalyzerConfig:
    """
    Configuration surface of the analysis core.

    Attributes:
        sample_rate (float): Sample rate of the ingested series in Hz
        window_duration (float): Length of the streaming window in seconds
        tick_interval_ms (float): Target period between streaming ticks
        filter_params (FilterParams): Pass band edges
        filter_order (int): Butterworth order used by the IIR cascade
        max_band_frequency (float): Largest band edge accepted, in Hz
        min_spectrum_samples (int): Shortest buffer the spectrum is computed for
        max_spectrum_frequency (float): Highest frequency kept in the spectrum
        smoothing_half_width (int): Half-width of the spectrum moving average
        ticks_per_window (int): Ticks needed for the cursor to advance one window
    """

    FIELDS = (
        "sample_rate",
        "window_duration",
        "tick_interval_ms",
        "filter_order",
        "max_band_frequency",
        "min_spectrum_samples",
        "max_spectrum_frequency",
        "smoothing_half_width",
        "ticks_per_window",
    )

    def __init__(
        self,
        sample_rate: float = DEFAULT_SAMPLE_RATE,
        window_duration: float = DEFAULT_WINDOW_DURATION,
        tick_interval_ms: float = DEFAULT_TICK_INTERVAL_MS,
        filter_params: Optional[FilterParams] = None,
        filter_order: int = DEFAULT_FILTER_ORDER,
        max_band_frequency: float = 20.0,
        min_spectrum_samples: int = 512,
        max_spectrum_frequency: float = 30.0,
        smoothing_half_width: int = 3,
        ticks_per_window: int = 30
    ) -> None:
        self.sample_rate = float(sample_rate)
        self.window_duration = float(window_duration)
        self.tick_interval_ms = float(tick_interval_ms)
        self.filter_params = filter_params if filter_params is not None else FilterParams()
        self.filter_order = filter_order
        self.max_band_frequency = float(max_band_frequency)
        self.min_spectrum_samples = min_spectrum_samples
        self.max_spectrum_frequency = float(max_spectrum_frequency)
        self.smoothing_half_width = smoothing_half_width
        self.ticks_per_window = ticks_per_window
        self.validate()

    @property
    def window_size_samples(self) -> int:
        """Samples per streaming window (sample_rate * window_duration)."""
        return max(1, int(self.sample_rate * self.window_duration))

    def validate(self) -> "AnalyzerConfig":
        """
        Check every field, failing on the first bad value.

        Returns:
            self, to allow chaining

        Raises:
            InvalidParameterError: If any field is out of range
        """
        for name in ("sample_rate", "window_duration", "tick_interval_ms",
                     "max_band_frequency", "max_spectrum_frequency"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise InvalidParameterError(f"{name} must be a positive number, got {value}")

        for name in ("filter_order", "min_spectrum_samples", "ticks_per_window"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
                raise InvalidParameterError(f"{name} must be a positive integer, got {value!r}")

        if (isinstance(self.smoothing_half_width, bool)
                or not isinstance(self.smoothing_half_width, (int, np.integer))
                or self.smoothing_half_width < 0):
            raise InvalidParameterError(
                f"smoothing_half_width must be a non-negative integer, got {self.smoothing_half_width!r}"
            )

        self.filter_params.validate(self.sample_rate)
        if self.filter_params.bandpass.high > self.max_band_frequency:
            raise InvalidParameterError(
                f"Upper band edge {self.filter_params.bandpass.high} Hz exceeds "
                f"max_band_frequency {self.max_band_frequency} Hz"
            )
        return self

    def replace(self, **changes: Any) -> "AnalyzerConfig":
        """Return a validated copy with the given fields replaced."""
        values = {name: getattr(self, name) for name in self.FIELDS}
        values["filter_params"] = self.filter_params
        values.update(changes)
        return AnalyzerConfig(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in self.FIELDS}
        data.update(self.filter_params.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyzerConfig":
        """
        Build a configuration from a plain dictionary.

        Missing keys keep their defaults. The band may be given either as
        ``{"bandpass": {"low": .., "high": ..}}`` or as a ``filter_params``
        entry of the same shape.

        Raises:
            InvalidParameterError: On unknown keys or invalid values
        """
        data = dict(data)
        band = data.pop("bandpass", None)
        if "filter_params" in data:
            band = data.pop("filter_params")

        unknown = set(data) - set(cls.FIELDS)
        if unknown:
            raise InvalidParameterError(f"Unknown configuration keys: {sorted(unknown)}")

        kwargs = dict(data)
        if band is not None:
            kwargs["filter_params"] = FilterParams.from_dict(band)
        return cls(**kwargs)

    def __repr__(self) -> str:
        return (
            f"AnalyzerConfig(sample_rate={self.sample_rate}, "
            f"window_duration={self.window_duration}, "
            f"filter_params={self.filter_params!r}, "
            f"filter_order={self.filter_order})"
        )


def load_config(path: Optional[str] = None) -> AnalyzerConfig:
    """
    Load a configuration from a JSON file.

    Keys absent from the file keep their defaults. A missing path yields
    the default configuration.

    Args:
        path: Path of the JSON file, or None

    Returns:
        A validated AnalyzerConfig

    Raises:
        InvalidParameterError: If the file is not valid JSON or holds bad values
    """
    if path is None or not os.path.exists(path):
        if path is not None:
            logger.warning(f"Configuration file {path} not found, using defaults")
        return AnalyzerConfig()

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidParameterError(f"Configuration file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidParameterError(f"Configuration file {path} must hold a JSON object")

    logger.debug(f"Loaded configuration from {path}")
    return AnalyzerConfig.from_dict(data)


def save_config(config: AnalyzerConfig, path: str) -> None:
    """
    Write a configuration to a JSON file.

    Args:
        config: Configuration to save
        path: Destination path
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
