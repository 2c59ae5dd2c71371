#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Band Analysis Example Script

This script demonstrates the band analysis capabilities
of the band_analysis package.

It shows:
1. Butterworth filter design and frequency response
2. Offline analysis with the IIR cascade and the resonant strategy
3. Residual noise spectrum estimation
4. Streaming replay with the window feeder
"""

import os
import sys
import time
import numpy as np
import matplotlib.pyplot as plt

# Add parent directory to path to import band_analysis module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from band_analysis import (
    AnalyzerConfig, BandAnalyzer, BandpassParams, ButterworthBandpass,
    FilterStrategy, StreamingWindowFeeder, design_butterworth,
    frequency_response, generate_signal, hilbert_quadrature, run_stream
)


def example_filter_design():
    """Plot the cascade responses for a few orders."""
    print("Filter Design Example")

    plt.figure(figsize=(10, 6))
    for order in (2, 4, 6):
        coeffs = design_butterworth(10.0, 1000.0, order)
        frequencies, magnitude = frequency_response(coeffs, 1000.0, num_points=2048)
        plt.plot(frequencies, magnitude, label=f'Lowpass, order {order}')

    band_filter = ButterworthBandpass(BandpassParams(7.6, 11.5), 1000.0)
    frequencies, magnitude = band_filter.get_frequency_response(num_points=2048)
    plt.plot(frequencies, magnitude, 'k--', label='Bandpass 7.6-11.5 Hz')

    plt.xlim(0, 40)
    plt.xlabel('Frequency (Hz)')
    plt.ylabel('Magnitude')
    plt.title('Butterworth Cascade Responses')
    plt.legend()
    plt.grid(True)


def example_offline_analysis(samples):
    """Compare the two filtering strategies on the same buffer."""
    print("\nOffline Analysis Example")

    analyzer = BandAnalyzer()
    times = np.array([s.time for s in samples])

    plt.figure(figsize=(12, 8))
    plt.subplot(3, 1, 1)
    plt.plot(times, [s.original for s in samples])
    plt.title('Original Signal')
    plt.grid(True)

    for i, strategy in enumerate(FilterStrategy):
        start_time = time.time()
        result = analyzer.analyze(samples, strategy)
        elapsed = time.time() - start_time

        print(f"{strategy.value:>9}: SNR {result.metrics.snr:6.2f} dB, "
              f"quality {result.metrics.quality:5.1f}%, "
              f"frequency {result.metrics.frequency:5.2f} Hz ({elapsed:.3f} s)")

        plt.subplot(3, 1, i + 2)
        plt.plot(times, [s.filtered for s in result.samples])
        plt.title(f'Filtered ({strategy.value})')
        plt.grid(True)

    plt.tight_layout()
    return result


def example_spectrum(result):
    """Plot the normalized residual spectrum."""
    print("\nSpectrum Example")
    print(f"Peak frequency of the raw signal: {result.peak_frequency:.2f} Hz")

    plt.figure(figsize=(10, 6))
    plt.plot([p.frequency for p in result.spectrum], [p.magnitude for p in result.spectrum])
    plt.xlabel('Frequency (Hz)')
    plt.ylabel('Magnitude (%)')
    plt.title('Residual Noise Spectrum')
    plt.grid(True)


def example_streaming(samples):
    """Replay the buffer through the window feeder."""
    print("\nStreaming Example")

    feeder = StreamingWindowFeeder(AnalyzerConfig())
    feeder.load(samples)
    feeder.start()

    history = []
    summary = run_stream(feeder, 60, callback=history.append)
    feeder.pause()

    print(f"Ticks: {summary['ticks']}, skipped: {summary['skipped']}, "
          f"elapsed: {summary['elapsed_s']:.2f} s")

    plt.figure(figsize=(10, 6))
    plt.plot([r.metrics.snr for r in history], label='SNR (dB)')
    plt.plot([r.metrics.frequency for r in history], label='Frequency (Hz)')
    plt.xlabel('Tick')
    plt.title('Streaming Window Metrics')
    plt.legend()
    plt.grid(True)


def performance_test():
    """Time the Hilbert quadrature for growing buffers."""
    print("\nPerformance Comparison")

    lengths = [1024, 4096, 16384, 65536]

    print("\nExecution Time (seconds)")
    print("=" * 40)
    print(f"{'Signal Length':<15} {'Hilbert':<12}")
    print("-" * 40)

    for length in lengths:
        signal = np.random.randn(length)
        start = time.time()
        hilbert_quadrature(signal)
        print(f"{length:<15} {time.time() - start:<12.6f}")

    print("=" * 40)


if __name__ == "__main__":
    print("Band Analysis Examples")
    print("=" * 50)

    samples = generate_signal(duration=4.0, seed=42)

    example_filter_design()
    result = example_offline_analysis(samples)
    example_spectrum(result)
    example_streaming(samples)
    performance_test()

    # Show all plots
    plt.show()
