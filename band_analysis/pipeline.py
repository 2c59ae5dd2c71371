# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Offline batch pipeline: filter a whole buffer, then derive its spectrum and metrics.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import AnalyzerConfig
from .filters import ButterworthBandpass, FilterStrategy, apply_resonant_filter
from .instantaneous import InstantaneousAnalyzer, compute_metrics, compute_rms
from .signals import samples_to_arrays
from .spectral import SpectrumEstimator, peak_frequency
from .types import FilterParams, Metrics, Sample, SpectrumPoint, coerce_samples


class AnalysisResult:
    """
    Output of one offline analysis.

    Attributes:
        samples (List[Sample]): Annotated, filtered copies of the input
        spectrum (List[SpectrumPoint]): Normalized residual spectrum
        metrics (Metrics): Metrics of the filtered buffer
        peak_frequency (float): Largest FFT component of the raw series in Hz
        filtered_rms (float): RMS of the filtered series
        original_rms (float): RMS of the raw series
        strategy (FilterStrategy): Filtering strategy used
    """

    def __init__(
        self,
        samples: List[Sample],
        spectrum: List[SpectrumPoint],
        metrics: Metrics,
        peak_frequency: float,
        filtered_rms: float,
        original_rms: float,
        strategy: FilterStrategy
    ) -> None:
        self.samples = samples
        self.spectrum = spectrum
        self.metrics = metrics
        self.peak_frequency = peak_frequency
        self.filtered_rms = filtered_rms
        self.original_rms = original_rms
        self.strategy = strategy

    def to_dict(self) -> Dict[str, Any]:
        """Summary suitable for JSON output (samples are not included)."""
        return {
            "strategy": self.strategy.value,
            "num_samples": len(self.samples),
            "metrics": self.metrics.to_dict(),
            "peak_frequency": self.peak_frequency,
            "filtered_rms": self.filtered_rms,
            "original_rms": self.original_rms,
            "spectrum": [point.to_dict() for point in self.spectrum],
        }

    def __repr__(self) -> str:
        return (
            f"AnalysisResult(strategy={self.strategy.value}, samples={len(self.samples)}, "
            f"metrics={self.metrics!r}, peak_frequency={self.peak_frequency:.3f})"
        )


class BandAnalyzer:
    """
    Batch analysis of a complete buffer.

    The IIR cascade is the default strategy; the resonant strategy scales
    each sample by the response at its Hilbert instantaneous frequency.

    Attributes:
        config (AnalyzerConfig): Analyzer configuration
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None, logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize the analyzer.

        Args:
            config: Analyzer configuration, by default the defaults
            logger: Logger to use
        """
        self.config = config if config is not None else AnalyzerConfig()
        self.logger = logger or logging.getLogger("BandAnalysis.BandAnalyzer")
        self.instantaneous = InstantaneousAnalyzer(self.config.sample_rate)
        self.spectrum_estimator = SpectrumEstimator(self.config)
        self._bandpass = self._build_bandpass()

    def _build_bandpass(self) -> ButterworthBandpass:
        return ButterworthBandpass(
            self.config.filter_params.bandpass,
            self.config.sample_rate,
            self.config.filter_order
        )

    def set_filter_params(self, params: FilterParams) -> None:
        """
        Replace the band and redesign the cascade.

        Raises:
            InvalidParameterError: If the band is invalid for the configuration
        """
        self.config = self.config.replace(filter_params=params)
        self.spectrum_estimator.config = self.config
        self._bandpass = self._build_bandpass()
        self.logger.debug(f"Filter parameters set to {params!r}")

    def filter_samples(
        self,
        samples: Sequence[Sample],
        strategy: Union[FilterStrategy, str] = FilterStrategy.IIR_CASCADE
    ) -> List[Sample]:
        """
        Annotate and filter a buffer without computing metrics.

        Args:
            samples: Input samples; they are not modified
            strategy: Filtering strategy

        Returns:
            Copies with ``instantaneous_frequency`` and ``filtered`` set
        """
        strategy = FilterStrategy(strategy)
        annotated = self.instantaneous.annotate(coerce_samples(samples))
        if not annotated:
            return []

        if strategy is FilterStrategy.RESONANT:
            return apply_resonant_filter(annotated, self.config.filter_params.bandpass)

        _, original, _ = samples_to_arrays(annotated)
        filtered = self._bandpass.filter(original)
        return [s.copy(filtered=float(v)) for s, v in zip(annotated, filtered)]

    def analyze(
        self,
        samples: Sequence[Sample],
        strategy: Union[FilterStrategy, str] = FilterStrategy.IIR_CASCADE
    ) -> AnalysisResult:
        """
        Run the full offline analysis.

        Args:
            samples: Input samples in ascending time order
            strategy: Filtering strategy

        Returns:
            AnalysisResult for the buffer
        """
        strategy = FilterStrategy(strategy)
        processed = self.filter_samples(samples, strategy)
        _, original, filtered = samples_to_arrays(processed)

        spectrum = self.spectrum_estimator.estimate(processed)
        metrics = compute_metrics(processed)

        result = AnalysisResult(
            samples=processed,
            spectrum=spectrum,
            metrics=metrics,
            peak_frequency=peak_frequency(original, self.config.sample_rate),
            filtered_rms=compute_rms(filtered),
            original_rms=compute_rms(original),
            strategy=strategy
        )
        self.logger.info(
            f"Analyzed {len(processed)} samples ({strategy.value}): "
            f"SNR {metrics.snr:.2f} dB, quality {metrics.quality:.1f}%, "
            f"frequency {metrics.frequency:.2f} Hz"
        )
        return result
