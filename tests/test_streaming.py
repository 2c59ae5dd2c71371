import numpy as np
import pytest
from band_analysis import (
    FeederState,
    FilterParams,
    InsufficientDataError,
    InvalidParameterError,
    Metrics,
    Sample,
    StreamState,
    StreamStateError,
    StreamingWindowFeeder,
    TickResult,
    advance_state,
    extract_window,
    run_stream
)
from band_analysis import streaming


def make_buffer(n, inst_freq=10.0):
    """Buffer where sample i has time i / 1000 and amplitude i + 1"""
    return [Sample(i / 1000.0, i + 1.0, instantaneous_frequency=inst_freq) for i in range(n)]


def buffer_index(sample):
    return int(round(sample.time * 1000.0))


@pytest.fixture
def running_feeder():
    feeder = StreamingWindowFeeder(window_size_samples=4)
    feeder.load(make_buffer(10), annotate=False)
    feeder.start()
    return feeder


class FakeClock:
    """Monotonic clock advanced only by sleep() and explicit work"""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestWindowTransitions:
    def test_extract_window_wraps(self):
        window = extract_window(make_buffer(10), StreamState(cursor=8, window_size_samples=4))

        assert [buffer_index(s) for s in window] == [8, 9, 0, 1]

    def test_extract_window_longer_than_buffer(self):
        window = extract_window(make_buffer(3), StreamState(cursor=1, window_size_samples=5))

        assert [buffer_index(s) for s in window] == [1, 2, 0, 1, 2]

    def test_extract_window_empty_buffer(self):
        assert extract_window([], StreamState(0, 4)) == []

    def test_advance_state(self):
        state = StreamState(cursor=990, window_size_samples=1000)

        advanced = advance_state(state, buffer_length=1000, ticks_per_window=30)

        assert advanced == StreamState(23, 1000)
        assert state.cursor == 990

    def test_advance_small_window(self):
        state = StreamState(cursor=8, window_size_samples=4)

        assert advance_state(state, 10) == state

    def test_stream_state_is_immutable(self):
        state = StreamState(3, 10)

        with pytest.raises(AttributeError):
            state.cursor = 4

        with pytest.raises(InvalidParameterError):
            StreamState(-1, 10)


class TestFeederStates:
    def test_initial_state(self):
        feeder = StreamingWindowFeeder()

        assert feeder.state is FeederState.IDLE
        assert feeder.stream_state == StreamState(0, 1000)

    def test_lifecycle(self):
        feeder = StreamingWindowFeeder(window_size_samples=4)

        feeder.load(make_buffer(10), annotate=False)
        assert feeder.state is FeederState.READY

        feeder.start()
        assert feeder.state is FeederState.RUNNING

        feeder.pause()
        assert feeder.state is FeederState.READY

        feeder.clear()
        assert feeder.state is FeederState.IDLE
        assert feeder.buffer == []

    def test_reload_resets_cursor(self, running_feeder):
        running_feeder.seek(6)

        running_feeder.load(make_buffer(12), annotate=False)

        assert running_feeder.state is FeederState.READY
        assert running_feeder.stream_state.cursor == 0

    def test_load_empty_buffer(self):
        feeder = StreamingWindowFeeder()

        feeder.load([])

        assert feeder.state is FeederState.IDLE

    def test_start_without_buffer(self):
        with pytest.raises(InsufficientDataError):
            StreamingWindowFeeder().start()

    def test_tick_requires_running(self):
        feeder = StreamingWindowFeeder(window_size_samples=4)
        with pytest.raises(StreamStateError):
            feeder.tick()

        feeder.load(make_buffer(10), annotate=False)
        with pytest.raises(StreamStateError):
            feeder.tick()

    def test_seek(self, running_feeder):
        running_feeder.seek(9)
        assert running_feeder.stream_state.cursor == 9

        with pytest.raises(InvalidParameterError):
            running_feeder.seek(10)

        with pytest.raises(StreamStateError):
            StreamingWindowFeeder().seek(0)

    def test_load_rejects_non_samples(self):
        with pytest.raises(InvalidParameterError):
            StreamingWindowFeeder().load([(0.0, 1.0)])


class TestTick:
    def test_wraparound_window(self, running_feeder):
        running_feeder.seek(8)

        window, metrics = running_feeder.tick()

        assert [buffer_index(s) for s in window] == [8, 9, 0, 1]
        assert isinstance(metrics, Metrics)

    def test_explicit_state(self, running_feeder):
        result = running_feeder.tick(StreamState(cursor=5, window_size_samples=3))

        assert isinstance(result, TickResult)
        assert [buffer_index(s) for s in result.window] == [5, 6, 7]
        assert running_feeder.stream_state == result.state

    def test_cursor_advances(self, synthetic_samples):
        feeder = StreamingWindowFeeder()
        feeder.load(synthetic_samples)
        feeder.start()

        first = feeder.tick()
        second = feeder.tick()

        assert len(first.window) == 1000
        assert first.state.cursor == 33
        assert second.state.cursor == 66
        assert buffer_index(second.window[0]) == 33

    def test_cursor_wraps_at_buffer_end(self):
        feeder = StreamingWindowFeeder(window_size_samples=60)
        feeder.load(make_buffer(5), annotate=False)
        feeder.start()
        feeder.seek(4)

        result = feeder.tick()

        # 60-sample window, advance 2
        assert len(result.window) == 60
        assert result.state.cursor == 1

    def test_resonant_filtering(self, running_feeder):
        window, _ = running_feeder.tick()

        # Resonant gain never exceeds 1
        for sample in window:
            assert abs(sample.filtered) <= abs(sample.original)

        running_feeder.set_filter_params(FilterParams(15.0, 19.0))
        shifted, _ = running_feeder.tick()

        # 10 Hz is 7 Hz below the centre of a 4 Hz band: gain 1 / (1 + 3.5^2)
        expected = [s.original / (1.0 + 3.5 ** 2) for s in shifted]
        assert [s.filtered for s in shifted] == pytest.approx(expected)

    def test_filter_change_keeps_cursor(self, running_feeder):
        running_feeder.seek(7)

        running_feeder.set_filter_params(FilterParams(9.0, 11.0))

        assert running_feeder.stream_state.cursor == 7

    def test_invalid_filter_params(self, running_feeder):
        with pytest.raises(InvalidParameterError):
            running_feeder.set_filter_params(FilterParams(12.0, 8.0))

    def test_buffer_is_not_modified(self, running_feeder):
        for _ in range(3):
            running_feeder.tick()

        assert all(s.filtered == s.original for s in running_feeder.buffer)

    def test_reentrant_tick(self, running_feeder, monkeypatch):
        errors = []

        def reentrant_metrics(samples):
            try:
                running_feeder.tick()
            except StreamStateError as e:
                errors.append(e)
            return Metrics.empty()

        monkeypatch.setattr(streaming, "compute_metrics", reentrant_metrics)

        running_feeder.tick()
        assert len(errors) == 1

        running_feeder.tick()
        assert len(errors) == 2

    def test_load_annotates_buffer(self, make_sine):
        feeder = StreamingWindowFeeder(window_size_samples=100)
        feeder.load(make_sine(10.0, 1000))

        frequencies = [s.instantaneous_frequency for s in feeder.buffer]

        assert frequencies[0] == 0.0
        assert np.median(frequencies[200:800]) == pytest.approx(10.0, abs=0.5)


class TestRunStream:
    def test_paced_ticks(self, running_feeder):
        clock = FakeClock()
        results = []

        summary = run_stream(running_feeder, 4, tick_interval_ms=10.0,
                             callback=results.append, clock=clock, sleep=clock.sleep)

        assert summary["ticks"] == 4
        assert summary["skipped"] == 0
        assert len(results) == 4
        assert clock.sleeps == pytest.approx([0.01, 0.01, 0.01])

    def test_overrun_skips_ticks(self, running_feeder):
        clock = FakeClock()

        def slow_first_tick(result):
            if clock.now == 0.0:
                clock.now += 0.035

        summary = run_stream(running_feeder, 3, tick_interval_ms=10.0,
                             callback=slow_first_tick, clock=clock, sleep=clock.sleep)

        assert summary["ticks"] == 3
        assert summary["skipped"] == 2

    def test_stops_when_paused(self, running_feeder):
        clock = FakeClock()
        results = []

        def pause_after_two(result):
            results.append(result)
            if len(results) == 2:
                running_feeder.pause()

        summary = run_stream(running_feeder, 10, tick_interval_ms=10.0,
                             callback=pause_after_two, clock=clock, sleep=clock.sleep)

        assert summary["ticks"] == 2

    def test_invalid_interval(self, running_feeder):
        with pytest.raises(InvalidParameterError):
            run_stream(running_feeder, 1, tick_interval_ms=0.0)
