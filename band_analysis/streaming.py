# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Scott Friedman and Project Contributors

"""
Streaming window feeder for live replay of a loaded buffer.
"""

import logging
import time
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Union

import numpy as np

from .config import AnalyzerConfig
from .errors import InsufficientDataError, InvalidParameterError, StreamStateError
from .filters import apply_resonant_filter
from .instantaneous import InstantaneousAnalyzer, compute_metrics
from .types import FilterParams, Metrics, Sample, StreamState, coerce_samples


class FeederState(Enum):
    """Lifecycle of the streaming feeder"""
    IDLE = "idle"
    READY = "ready"
    RUNNING = "running"


def extract_window(buffer: Sequence[Sample], state: StreamState) -> List[Sample]:
    """
    Take ``window_size_samples`` samples starting at the cursor.

    Indices wrap around the end of the buffer; the wrapped part is taken
    from the start of the buffer, never padded.

    Args:
        buffer: Raw sample buffer
        state: Current stream state

    Returns:
        The window, in read order
    """
    n = len(buffer)
    if n == 0:
        return []
    indices = (state.cursor + np.arange(state.window_size_samples)) % n
    return [buffer[i] for i in indices]


def advance_state(state: StreamState, buffer_length: int, ticks_per_window: int = 30) -> StreamState:
    """
    Move the cursor forward by ``window_size_samples // ticks_per_window``.

    Args:
        state: Current stream state
        buffer_length: Length of the raw buffer
        ticks_per_window: Ticks needed to advance one full window

    Returns:
        The next stream state
    """
    if buffer_length <= 0:
        return state.with_cursor(0)
    step = state.window_size_samples // ticks_per_window
    return state.with_cursor((state.cursor + step) % buffer_length)


class TickResult:
    """
    Output of one feeder tick.

    Unpacks as ``window, metrics = result``.

    Attributes:
        window (List[Sample]): Filtered window samples
        metrics (Metrics): Metrics of the window
        state (StreamState): Stream state after the tick
    """

    __slots__ = ("window", "metrics", "state")

    def __init__(self, window: List[Sample], metrics: Metrics, state: StreamState) -> None:
        self.window = window
        self.metrics = metrics
        self.state = state

    def __iter__(self) -> Iterator[Union[List[Sample], Metrics]]:
        yield self.window
        yield self.metrics

    def __repr__(self) -> str:
        return f"TickResult(window={len(self.window)} samples, metrics={self.metrics!r}, state={self.state!r})"


class StreamingWindowFeeder:
    """
    Replays a raw buffer as a sliding window, one window per tick.

    Each tick filters the window with the resonant scalar model using every
    sample's own instantaneous frequency, computes the window metrics, and
    advances the cursor. The feeder does no threading or timing of its
    own; ``run_stream`` or an external scheduler drives ``tick``.

    Attributes:
        config (AnalyzerConfig): Analyzer configuration
        filter_params (FilterParams): Band applied from the next tick on
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        window_size_samples: Optional[int] = None,
        analyzer: Optional[InstantaneousAnalyzer] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        """
        Initialize an idle feeder.

        Args:
            config: Analyzer configuration, by default the defaults
            window_size_samples: Override for the window size derived from
                the configuration
            analyzer: Instantaneous analyzer used to annotate loaded buffers
            logger: Logger to use
        """
        self.config = config if config is not None else AnalyzerConfig()
        self.filter_params = self.config.filter_params
        self.analyzer = analyzer or InstantaneousAnalyzer(self.config.sample_rate)
        self.logger = logger or logging.getLogger("BandAnalysis.StreamingWindowFeeder")

        size = window_size_samples if window_size_samples is not None else self.config.window_size_samples
        self._stream = StreamState(0, size)
        self._buffer: List[Sample] = []
        self._state = FeederState.IDLE
        self._in_tick = False

    @property
    def state(self) -> FeederState:
        return self._state

    @property
    def stream_state(self) -> StreamState:
        return self._stream

    @property
    def buffer(self) -> List[Sample]:
        return list(self._buffer)

    def load(self, samples: Sequence[Sample], annotate: bool = True) -> None:
        """
        Replace the buffer and rewind the cursor.

        A running feeder stops. An empty buffer leaves the feeder idle.

        Args:
            samples: New raw buffer
            annotate: Recompute each sample's instantaneous frequency from
                the raw series before replay
        """
        samples = coerce_samples(samples)
        if annotate:
            samples = self.analyzer.annotate(samples)

        self._buffer = samples
        self._stream = self._stream.with_cursor(0)
        self._state = FeederState.READY if samples else FeederState.IDLE
        self.logger.debug(f"Loaded {len(samples)} samples, feeder {self._state.value}")

    def clear(self) -> None:
        """Drop the buffer and return to idle."""
        self._buffer = []
        self._stream = self._stream.with_cursor(0)
        self._state = FeederState.IDLE

    def start(self) -> None:
        """
        Begin ticking.

        Raises:
            InsufficientDataError: If no buffer is loaded
        """
        if not self._buffer:
            raise InsufficientDataError("Cannot start streaming without a loaded buffer")
        self._state = FeederState.RUNNING

    def pause(self) -> None:
        """Stop ticking, keeping the cursor."""
        if self._state is FeederState.RUNNING:
            self._state = FeederState.READY

    def seek(self, cursor: int) -> None:
        """
        Move the cursor within the loaded buffer.

        Raises:
            StreamStateError: If no buffer is loaded
            InvalidParameterError: If the cursor is outside the buffer
        """
        if self._state is FeederState.IDLE:
            raise StreamStateError("Cannot seek an idle feeder")
        if not 0 <= cursor < len(self._buffer):
            raise InvalidParameterError(f"Cursor {cursor} outside buffer of {len(self._buffer)} samples")
        self._stream = self._stream.with_cursor(cursor)

    def set_filter_params(self, params: FilterParams) -> None:
        """
        Change the band; takes effect on the next tick, cursor unchanged.

        Raises:
            InvalidParameterError: If the band is invalid for the sample rate
        """
        params.validate(self.config.sample_rate)
        self.filter_params = params

    def tick(self, state: Optional[StreamState] = None) -> TickResult:
        """
        Produce one filtered window and its metrics.

        Args:
            state: Stream state to read from instead of the feeder's own

        Returns:
            The filtered window, its metrics and the advanced stream state

        Raises:
            StreamStateError: If the feeder is not running or a tick is
                already in progress
        """
        if self._state is not FeederState.RUNNING:
            raise StreamStateError(f"tick() requires a running feeder, feeder is {self._state.value}")
        if self._in_tick:
            raise StreamStateError("tick() called while a previous tick is in progress")

        self._in_tick = True
        try:
            current = state if state is not None else self._stream
            if current.cursor >= len(self._buffer):
                current = current.with_cursor(current.cursor % len(self._buffer))

            window = extract_window(self._buffer, current)
            filtered = apply_resonant_filter(window, self.filter_params.bandpass)
            metrics = compute_metrics(filtered)

            self._stream = advance_state(current, len(self._buffer), self.config.ticks_per_window)
            return TickResult(filtered, metrics, self._stream)
        finally:
            self._in_tick = False


def run_stream(
    feeder: StreamingWindowFeeder,
    num_ticks: int,
    tick_interval_ms: Optional[float] = None,
    callback: Optional[Callable[[TickResult], None]] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep
) -> Dict[str, float]:
    """
    Drive a running feeder at a fixed cadence.

    Ticks never burst to catch up: when a tick overruns its period the
    missed slots are skipped and counted.

    Args:
        feeder: A feeder in the running state
        num_ticks: Number of ticks to perform
        tick_interval_ms: Period between ticks, by default the configured one
        callback: Function called with each tick result
        clock: Monotonic clock in seconds
        sleep: Sleep function in seconds

    Returns:
        Dictionary with ``ticks``, ``skipped`` and ``elapsed_s``
    """
    interval = (tick_interval_ms if tick_interval_ms is not None else feeder.config.tick_interval_ms) / 1000.0
    if interval <= 0:
        raise InvalidParameterError(f"Tick interval must be positive, got {interval * 1000.0} ms")

    start = clock()
    last = None
    ticks = 0
    skipped = 0

    while ticks < num_ticks and feeder.state is FeederState.RUNNING:
        now = clock()
        if last is not None:
            elapsed = now - last
            if elapsed < interval:
                sleep(interval - elapsed)
                now = clock()
            lost = int((now - last) // interval) - 1
            if lost > 0:
                skipped += lost
                feeder.logger.warning(f"Tick overran its period, skipped {lost} tick(s)")
        last = now

        result = feeder.tick()
        ticks += 1
        if callback is not None:
            callback(result)

    return {"ticks": ticks, "skipped": skipped, "elapsed_s": clock() - start}
