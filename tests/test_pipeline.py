import numpy as np
import pytest
from band_analysis import (
    AnalysisResult,
    AnalyzerConfig,
    BandAnalyzer,
    FilterParams,
    FilterStrategy,
    InvalidParameterError,
    bandpass
)


class TestBandAnalyzer:
    def test_iir_analysis(self, synthetic_samples):
        result = BandAnalyzer().analyze(synthetic_samples)

        assert isinstance(result, AnalysisResult)
        assert result.strategy is FilterStrategy.IIR_CASCADE
        assert len(result.samples) == len(synthetic_samples)
        assert len(result.spectrum) > 0
        assert abs(result.peak_frequency - 10.5) < 1.0
        assert 9.0 < result.metrics.frequency < 12.0
        assert 0.0 <= result.metrics.quality <= 100.0
        assert result.original_rms > 0.0
        assert result.filtered_rms > 0.0

    def test_iir_matches_bandpass(self, synthetic_samples):
        result = BandAnalyzer().analyze(synthetic_samples)

        expected = bandpass([s.original for s in synthetic_samples], 7.6, 11.5, 1000.0, order=4)

        np.testing.assert_allclose([s.filtered for s in result.samples], expected)

    def test_resonant_analysis(self, synthetic_samples):
        result = BandAnalyzer().analyze(synthetic_samples, strategy="resonant")

        assert result.strategy is FilterStrategy.RESONANT
        for sample in result.samples:
            assert abs(sample.filtered) <= abs(sample.original) + 1e-12

    def test_strategies_differ(self, synthetic_samples):
        analyzer = BandAnalyzer()

        iir = analyzer.analyze(synthetic_samples, FilterStrategy.IIR_CASCADE)
        resonant = analyzer.analyze(synthetic_samples, FilterStrategy.RESONANT)

        assert not np.allclose([s.filtered for s in iir.samples], [s.filtered for s in resonant.samples])

    def test_annotates_instantaneous_frequency(self, make_sine):
        result = BandAnalyzer().analyze(make_sine(10.0, 1024))

        frequencies = [s.instantaneous_frequency for s in result.samples]
        assert np.median(frequencies[200:800]) == pytest.approx(10.0, abs=0.5)

    def test_input_not_modified(self, synthetic_samples):
        before = [(s.filtered, s.instantaneous_frequency) for s in synthetic_samples]

        BandAnalyzer().analyze(synthetic_samples)

        assert [(s.filtered, s.instantaneous_frequency) for s in synthetic_samples] == before

    def test_empty_input(self):
        result = BandAnalyzer().analyze([])

        assert result.samples == []
        assert result.spectrum == []
        assert result.metrics.to_dict() == {"snr": 0.0, "quality": 0.0, "frequency": 0.0}
        assert result.peak_frequency == 0.0

    def test_short_input_has_no_spectrum(self, make_sine):
        result = BandAnalyzer().analyze(make_sine(10.0, 300))

        assert result.spectrum == []
        assert len(result.samples) == 300

    def test_set_filter_params(self, synthetic_samples):
        analyzer = BandAnalyzer()

        analyzer.set_filter_params(FilterParams(9.0, 12.0))
        result = analyzer.analyze(synthetic_samples)

        expected = bandpass([s.original for s in synthetic_samples], 9.0, 12.0, 1000.0)
        np.testing.assert_allclose([s.filtered for s in result.samples], expected)

    def test_set_invalid_filter_params(self):
        analyzer = BandAnalyzer()

        with pytest.raises(InvalidParameterError):
            analyzer.set_filter_params(FilterParams(12.0, 9.0))

        assert analyzer.config.filter_params == FilterParams(7.6, 11.5)

    def test_custom_order(self, synthetic_samples):
        analyzer = BandAnalyzer(AnalyzerConfig(filter_order=2))

        result = analyzer.analyze(synthetic_samples)

        expected = bandpass([s.original for s in synthetic_samples], 7.6, 11.5, 1000.0, order=2)
        np.testing.assert_allclose([s.filtered for s in result.samples], expected)

    def test_unknown_strategy(self, synthetic_samples):
        with pytest.raises(ValueError):
            BandAnalyzer().analyze(synthetic_samples, strategy="fir")


class TestAnalysisResult:
    def test_to_dict(self, synthetic_samples):
        data = BandAnalyzer().analyze(synthetic_samples).to_dict()

        assert data["strategy"] == "iir"
        assert data["num_samples"] == len(synthetic_samples)
        assert set(data["metrics"]) == {"snr", "quality", "frequency"}
        assert set(data["spectrum"][0]) == {"frequency", "magnitude"}
        assert "samples" not in data
