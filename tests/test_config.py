import json

import pytest
from band_analysis import (
    AnalyzerConfig,
    FilterParams,
    InvalidParameterError,
    load_config,
    save_config
)


class TestAnalyzerConfig:
    def test_defaults(self):
        config = AnalyzerConfig()

        assert config.sample_rate == 1000.0
        assert config.window_duration == 1.0
        assert config.tick_interval_ms == pytest.approx(1000.0 / 30.0)
        assert config.filter_params == FilterParams(7.6, 11.5)
        assert config.filter_order == 4
        assert config.min_spectrum_samples == 512
        assert config.max_spectrum_frequency == 30.0
        assert config.smoothing_half_width == 3
        assert config.ticks_per_window == 30

    def test_window_size_samples(self):
        assert AnalyzerConfig().window_size_samples == 1000
        assert AnalyzerConfig(sample_rate=500.0, window_duration=2.0).window_size_samples == 1000

    @pytest.mark.parametrize("changes", [
        {"sample_rate": 0.0},
        {"window_duration": -1.0},
        {"tick_interval_ms": 0.0},
        {"filter_order": 0},
        {"filter_order": 2.5},
        {"min_spectrum_samples": 0},
        {"smoothing_half_width": -1},
        {"ticks_per_window": 0},
        {"filter_params": FilterParams(11.5, 7.6)},
        {"filter_params": FilterParams(8.0, 25.0)},
        {"filter_params": FilterParams(0.0, 10.0)},
    ])
    def test_invalid_values(self, changes):
        with pytest.raises(InvalidParameterError):
            AnalyzerConfig(**changes)

    def test_band_limited_by_sample_rate(self):
        with pytest.raises(InvalidParameterError):
            AnalyzerConfig(sample_rate=30.0, filter_params=FilterParams(10.0, 15.0))

    def test_replace(self):
        config = AnalyzerConfig()

        updated = config.replace(filter_order=2, filter_params=FilterParams(9.0, 11.0))

        assert updated.filter_order == 2
        assert updated.filter_params == FilterParams(9.0, 11.0)
        assert config.filter_order == 4

    def test_replace_validates(self):
        with pytest.raises(InvalidParameterError):
            AnalyzerConfig().replace(sample_rate=-1.0)

    def test_dict_round_trip(self):
        config = AnalyzerConfig(sample_rate=2000.0, filter_params=FilterParams(5.0, 15.0))

        data = config.to_dict()
        restored = AnalyzerConfig.from_dict(data)

        assert data["bandpass"] == {"low": 5.0, "high": 15.0}
        assert restored.to_dict() == data

    def test_from_dict_accepts_filter_params_key(self):
        config = AnalyzerConfig.from_dict({"filter_params": {"bandpass": {"low": 6.0, "high": 9.0}}})

        assert config.filter_params == FilterParams(6.0, 9.0)

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(InvalidParameterError):
            AnalyzerConfig.from_dict({"samplerate": 1000.0})

    def test_from_dict_missing_band_edge(self):
        with pytest.raises(InvalidParameterError):
            AnalyzerConfig.from_dict({"bandpass": {"low": 6.0}})


class TestConfigFiles:
    def test_save_and_load(self, temp_output_dir):
        path = str(temp_output_dir / "nested" / "config.json")
        config = AnalyzerConfig(filter_order=6, filter_params=FilterParams(8.0, 12.0))

        save_config(config, path)
        loaded = load_config(path)

        assert loaded.filter_order == 6
        assert loaded.filter_params == FilterParams(8.0, 12.0)

    def test_partial_file_keeps_defaults(self, temp_output_dir):
        path = temp_output_dir / "config.json"
        path.write_text(json.dumps({"bandpass": {"low": 9.0, "high": 10.0}}))

        config = load_config(str(path))

        assert config.filter_params == FilterParams(9.0, 10.0)
        assert config.sample_rate == 1000.0

    def test_missing_file_gives_defaults(self, temp_output_dir):
        config = load_config(str(temp_output_dir / "missing.json"))

        assert config.to_dict() == AnalyzerConfig().to_dict()
        assert load_config().to_dict() == AnalyzerConfig().to_dict()

    def test_invalid_json(self, temp_output_dir):
        path = temp_output_dir / "config.json"
        path.write_text("{not json")

        with pytest.raises(InvalidParameterError):
            load_config(str(path))

    def test_non_object_json(self, temp_output_dir):
        path = temp_output_dir / "config.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(InvalidParameterError):
            load_config(str(path))
