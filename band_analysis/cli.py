# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Command-line interface for the band analyzer.
"""

import argparse
import json
import logging
import os
import sys
import time
from typing import Any, Dict, List, Optional

import numpy as np

from .config import AnalyzerConfig, load_config
from .errors import InsufficientDataError, InvalidParameterError
from .filters import FilterStrategy
from .pipeline import AnalysisResult, BandAnalyzer
from .signals import generate_signal, samples_from_pairs, samples_from_values
from .streaming import StreamingWindowFeeder, TickResult, run_stream
from .types import FilterParams, Sample

logger = logging.getLogger("BandAnalysis.CLI")


def load_samples(path: str, sample_rate: float) -> List[Sample]:
    """
    Load samples from a NumPy file.

    ``.npy`` files hold either a 1-D array of values at ``sample_rate`` or
    an N x 2 array of ``(time, value)`` rows. ``.npz`` files hold a
    ``values`` array and an optional ``time`` array.

    Args:
        path: Input file
        sample_rate: Sample rate used when no times are stored

    Returns:
        Loaded samples
    """
    if not os.path.exists(path):
        raise InvalidParameterError(f"Input file {path} not found")
    logger.debug(f"Loading samples from {path}")

    if path.endswith(".npz"):
        with np.load(path) as data:
            if "values" not in data:
                raise InvalidParameterError(f"{path} has no 'values' array")
            values = data["values"]
            if "time" in data:
                return samples_from_pairs(zip(data["time"], values))
            return samples_from_values(values, sample_rate)

    data = np.load(path)
    if data.ndim == 1:
        return samples_from_values(data, sample_rate)
    if data.ndim == 2 and data.shape[1] == 2:
        return samples_from_pairs(data)
    raise InvalidParameterError(f"Expected a 1-D or N x 2 array in {path}, got shape {data.shape}")


def build_config(args: argparse.Namespace) -> AnalyzerConfig:
    """
    Load the configuration file and apply command-line overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        A validated AnalyzerConfig
    """
    config = load_config(args.config)

    changes: Dict[str, Any] = {}
    if args.sample_rate is not None:
        changes["sample_rate"] = args.sample_rate
    if args.order is not None:
        changes["filter_order"] = args.order
    if args.low is not None or args.high is not None:
        band = config.filter_params.bandpass
        changes["filter_params"] = FilterParams(
            args.low if args.low is not None else band.low,
            args.high if args.high is not None else band.high
        )

    return config.replace(**changes) if changes else config


def stream_samples(samples: List[Sample], config: AnalyzerConfig, args: argparse.Namespace) -> Dict[str, Any]:
    """
    Replay the buffer through the streaming feeder.

    Args:
        samples: Raw buffer
        config: Analyzer configuration
        args: Command-line arguments

    Returns:
        Dictionary with the run summary and per-tick metrics
    """
    feeder = StreamingWindowFeeder(config)
    feeder.load(samples)
    feeder.start()

    ticks: List[Dict[str, Any]] = []

    def record(result: TickResult) -> None:
        ticks.append({
            "tick": len(ticks),
            "cursor": result.state.cursor,
            "metrics": result.metrics.to_dict(),
        })

    if args.no_pacing:
        summary = run_stream(feeder, args.stream_ticks, callback=record, sleep=lambda _: None)
    else:
        summary = run_stream(feeder, args.stream_ticks, callback=record)
    feeder.pause()

    return {"summary": summary, "ticks": ticks}


def save_results(result: AnalysisResult, stream: Optional[Dict[str, Any]], output_dir: str) -> None:
    """
    Write the analysis results as JSON.

    Args:
        result: Offline analysis result
        stream: Streaming replay output, or None
        output_dir: Directory for output files
    """
    os.makedirs(output_dir, exist_ok=True)

    summary = result.to_dict()
    spectrum = summary.pop("spectrum")

    metrics_file = os.path.join(output_dir, "metrics.json")
    with open(metrics_file, "w") as f:
        json.dump(summary, f, indent=2)
    print(f"Metrics saved to {metrics_file}")

    spectrum_file = os.path.join(output_dir, "spectrum.json")
    with open(spectrum_file, "w") as f:
        json.dump(spectrum, f, indent=2)
    print(f"Spectrum saved to {spectrum_file}")

    if stream is not None:
        stream_file = os.path.join(output_dir, "stream.json")
        with open(stream_file, "w") as f:
            json.dump(stream, f, indent=2)
        print(f"Stream metrics saved to {stream_file}")


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(description="Band-limited signal analysis")

    # Input
    parser.add_argument("--input", type=str, default=None,
                        help="Input .npy or .npz file (default: synthetic signal)")
    parser.add_argument("--duration", type=float, default=2.0,
                        help="Synthetic signal duration in seconds")
    parser.add_argument("--main-freq", type=float, default=10.5,
                        help="Synthetic main tone frequency in Hz")
    parser.add_argument("--noise-level", type=float, default=1.5,
                        help="Synthetic uniform noise width")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducibility")

    # Configuration
    parser.add_argument("--config", type=str, default=None,
                        help="JSON configuration file")
    parser.add_argument("--sample-rate", type=float, default=None,
                        help="Sample rate in Hz")
    parser.add_argument("--low", type=float, default=None,
                        help="Lower band edge in Hz")
    parser.add_argument("--high", type=float, default=None,
                        help="Upper band edge in Hz")
    parser.add_argument("--order", type=int, default=None,
                        help="Butterworth filter order")
    parser.add_argument("--strategy", choices=[s.value for s in FilterStrategy],
                        default=FilterStrategy.IIR_CASCADE.value, help="Filtering strategy")

    # Streaming
    parser.add_argument("--stream-ticks", type=int, default=0,
                        help="Number of streaming ticks to replay after the offline analysis")
    parser.add_argument("--no-pacing", action="store_true",
                        help="Run streaming ticks back to back instead of at the tick interval")

    # Output
    parser.add_argument("--output-dir", type=str, default="./output",
                        help="Directory for output files")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the band analyzer.

    Args:
        argv: Command-line arguments, by default ``sys.argv[1:]``

    Returns:
        Process exit status
    """
    args = create_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        config = build_config(args)
        if args.input:
            samples = load_samples(args.input, config.sample_rate)
            source = args.input
        else:
            samples = generate_signal(
                duration=args.duration,
                sample_rate=config.sample_rate,
                main_freq=args.main_freq,
                noise_level=args.noise_level,
                seed=args.seed
            )
            source = "synthetic"

        band = config.filter_params.bandpass
        print("Band Analysis Configuration:")
        print(f"  Source: {source}")
        print(f"  Samples: {len(samples)}")
        print(f"  Sample Rate: {config.sample_rate} Hz")
        print(f"  Band: {band.low} - {band.high} Hz")
        print(f"  Order: {config.filter_order}")
        print(f"  Strategy: {args.strategy}")
        print()

        start_time = time.time()
        result = BandAnalyzer(config).analyze(samples, args.strategy)

        stream = None
        if args.stream_ticks > 0:
            stream = stream_samples(samples, config, args)

        elapsed = time.time() - start_time
        print(f"Analysis completed in {elapsed:.2f} seconds")

        save_results(result, stream, args.output_dir)
    except (InvalidParameterError, InsufficientDataError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\nSummary:")
    print(f"  SNR: {result.metrics.snr:.2f} dB")
    print(f"  Quality: {result.metrics.quality:.1f}%")
    print(f"  Dominant Frequency: {result.metrics.frequency:.2f} Hz")
    print(f"  Peak Frequency: {result.peak_frequency:.2f} Hz")
    if stream is not None:
        print(f"  Stream Ticks: {stream['summary']['ticks']} ({stream['summary']['skipped']} skipped)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
