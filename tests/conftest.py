# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Global pytest configuration.
"""

import os
import sys

import numpy as np
import pytest

# Add the project root to the Python path so tests can import modules properly
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from band_analysis import generate_signal, samples_from_values  # noqa: E402


@pytest.fixture
def sample_rate():
    """Default sample rate of the analyzer."""
    return 1000.0


@pytest.fixture
def make_sine(sample_rate):
    """Factory fixture building sine samples at the default sample rate."""
    def _make_sine(freq, num_samples, amplitude=1.0, offset=0.0, phase=0.0):
        t = np.arange(num_samples) / sample_rate
        values = offset + amplitude * np.sin(2 * np.pi * freq * t + phase)
        return samples_from_values(values, sample_rate)
    return _make_sine


@pytest.fixture
def synthetic_samples():
    """Two seconds of the reproducible synthetic test signal."""
    return generate_signal(duration=2.0, seed=42)


@pytest.fixture
def temp_output_dir(tmp_path):
    """Fixture to provide a temporary directory for test outputs."""
    output_dir = tmp_path / "output"
    output_dir.mkdir()
    return output_dir
