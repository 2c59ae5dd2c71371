"""
Band Analysis Module

This package analyses a uniformly sampled scalar time series around a
configurable frequency band.

Key components:
- Butterworth filter design and IIR cascade filtering
- Resonant scalar filtering for live replay
- Windowed, smoothed and normalized spectrum estimation
- Hilbert instantaneous frequency and quality metrics
- Streaming window feeder with cyclic replay
"""

from .errors import (
    InvalidParameterError,
    InsufficientDataError,
    StreamStateError
)

from .types import (
    Sample,
    FilterCoefficients,
    SpectrumPoint,
    Metrics,
    BandpassParams,
    FilterParams,
    StreamState
)

from .config import (
    AnalyzerConfig,
    load_config,
    save_config
)

from .filters import (
    FilterStrategy,
    ButterworthBandpass,
    design_butterworth,
    apply_filter,
    lowpass,
    highpass,
    bandpass,
    frequency_response,
    resonant_response,
    apply_resonant_filter
)

from .spectral import (
    SpectrumEstimator,
    estimate_spectrum,
    hanning_window,
    smooth_magnitudes,
    normalize_magnitudes,
    peak_frequency
)

from .instantaneous import (
    InstantaneousAnalyzer,
    hilbert_quadrature,
    instantaneous_phase,
    instantaneous_frequency,
    compute_snr,
    compute_quality,
    zero_crossing_frequency,
    compute_metrics,
    compute_rms,
    power_ratio_snr
)

from .signals import (
    samples_from_pairs,
    samples_from_values,
    samples_to_arrays,
    generate_signal
)

from .streaming import (
    FeederState,
    TickResult,
    StreamingWindowFeeder,
    extract_window,
    advance_state,
    run_stream
)

from .pipeline import (
    AnalysisResult,
    BandAnalyzer
)

# Version information
__version__ = '0.1.0'
