"""Tests for the chunk sizing engine."""

import math
import warnings

import pytest

from getchunk.core.model import Auto, Bytes, MemoryBudget, Observation, Percent
from getchunk.core.sizing import chunk_length, next_size, MIN_CHUNK_SIZE

AMPLE = MemoryBudget(available=1e15)


def obs(size, duration):
    return Observation(size=float(size), duration=duration)


class TestAutoMode:
    """Test the latency feedback branch."""

    def test_first_step_default(self):
        """No history: 0.1% of the total length."""
        assert next_size(Auto(), None, None, 1_000_000, 1_000_000, AMPLE) == pytest.approx(1000.0)

    def test_single_observation_still_default(self):
        """One read is not enough history to compare durations."""
        assert next_size(Auto(), obs(1000, 0.5), None, 1_000_000, 999_000, AMPLE) == pytest.approx(1000.0)

    def test_zero_previous_duration_uses_default(self):
        assert next_size(Auto(), obs(5000, 0.5), obs(1000, 0.0), 1_000_000, 500_000, AMPLE) == pytest.approx(1000.0)

    def test_unmeasurable_now_holds(self):
        """A zero duration for the newest read keeps the size."""
        assert next_size(Auto(), obs(4321, 0.0), obs(1000, 0.2), 1_000_000, 500_000, AMPLE) == 4321.0

    def test_equal_durations_hold(self):
        assert next_size(Auto(), obs(2000, 0.3), obs(1000, 0.3), 1_000_000, 500_000, AMPLE) == 2000.0

    def test_faster_read_grows(self):
        """10% faster grows by 10%."""
        size = next_size(Auto(), obs(1000, 0.9), obs(1000, 1.0), 1e9, 1e9, AMPLE)
        assert size == pytest.approx(1100.0)

    def test_growth_capped_at_15_percent(self):
        size = next_size(Auto(), obs(1000, 0.1), obs(1000, 1.0), 1e9, 1e9, AMPLE)
        assert size == pytest.approx(1150.0)

    def test_tiny_size_grows_by_a_byte(self):
        """Growth below one byte is rounded up to a whole byte."""
        size = next_size(Auto(), obs(5, 0.9), obs(5, 1.0), 5000, 4990, AMPLE)
        assert chunk_length(size, 4990) == 6

    def test_slower_read_shrinks(self):
        """20% slower shrinks by 20%."""
        size = next_size(Auto(), obs(1000, 1.2), obs(1000, 1.0), 1e9, 1e9, AMPLE)
        assert size == pytest.approx(800.0)

    def test_shrink_capped_at_45_percent(self):
        size = next_size(Auto(), obs(1000, 10.0), obs(1000, 1.0), 1e9, 1e9, AMPLE)
        assert size == pytest.approx(550.0)

    def test_decreasing_durations_strictly_increase(self):
        """Each faster read grows the next chunk, never by more than 15%."""
        sizes = [1000.0]
        durations = [1.0, 0.9, 0.8, 0.5, 0.1, 0.05]
        for prev, now in zip(durations, durations[1:]):
            size = next_size(Auto(), obs(sizes[-1], now), obs(sizes[-1], prev), 1e12, 1e12, AMPLE)
            assert sizes[-1] < size <= sizes[-1] * 1.15 + 1e-9
            sizes.append(size)

    def test_increasing_durations_strictly_decrease(self):
        """Each slower read shrinks the next chunk, never by more than 45%."""
        sizes = [1e6]
        durations = [0.1, 0.2, 0.21, 0.5, 5.0]
        for prev, now in zip(durations, durations[1:]):
            size = next_size(Auto(), obs(sizes[-1], now), obs(sizes[-1], prev), 1e12, 1e12, AMPLE)
            assert sizes[-1] * 0.55 - 1e-9 <= size < sizes[-1]
            sizes.append(size)

    def test_growth_stops_at_memory_ceiling(self):
        budget = MemoryBudget(available=1000.0)
        size = next_size(Auto(), obs(1000, 0.5), obs(1000, 1.0), 1e9, 1e9, budget)
        assert size == pytest.approx(850.0)


class TestPercentMode:
    """Test percentage sizing and its clamp."""

    def test_basic_percent(self):
        assert next_size(Percent(25.0), None, None, 1000, 1000, AMPLE) == pytest.approx(250.0)

    def test_zero_behaves_as_minimum(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            low = next_size(Percent(0.0), None, None, 1_000_000, 1_000_000, AMPLE)
        assert low == next_size(Percent(0.1), None, None, 1_000_000, 1_000_000, AMPLE)
        assert low == pytest.approx(1000.0)

    def test_above_hundred_behaves_as_hundred(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            high = next_size(Percent(500.0), None, None, 1_000_000, 1_000_000, AMPLE)
        assert high == next_size(Percent(100.0), None, None, 1_000_000, 1_000_000, AMPLE)

    def test_clamp_warns(self):
        with pytest.warns(UserWarning, match="clamped"):
            next_size(Percent(500.0), None, None, 1000, 1000, AMPLE)

    def test_percent_capped_by_memory(self):
        budget = MemoryBudget(available=100.0)
        assert next_size(Percent(100.0), None, None, 1000, 1000, budget) == pytest.approx(85.0)


class TestBytesMode:
    """Test fixed byte sizing."""

    def test_requested_bytes(self):
        assert next_size(Bytes(250_000), None, None, 1_000_000, 1_000_000, AMPLE) == 250_000

    def test_larger_than_source(self):
        assert next_size(Bytes(5000), None, None, 1000, 1000, AMPLE) == 1000

    def test_not_percentage_scaled(self):
        """Guard against the divide-by-100 variant (100x undersized, or oversized by length)."""
        size = next_size(Bytes(500), None, None, 1000, 1000, AMPLE)
        assert size != 1000 * (500 / 100.0)
        assert size == 500

    def test_memory_cap(self):
        budget = MemoryBudget(available=200.0)
        assert next_size(Bytes(500), None, None, 1000, 1000, budget) == pytest.approx(170.0)

    def test_remaining_cap(self):
        assert next_size(Bytes(500), None, None, 1000, 120, AMPLE) == 120


class TestChunkLength:
    """Test conversion of computed sizes into byte counts."""

    def test_minimum_one_byte(self):
        assert chunk_length(0.01, 10) == MIN_CHUNK_SIZE

    def test_floor(self):
        assert chunk_length(99.9, 1000) == 99

    def test_never_exceeds_remaining(self):
        assert chunk_length(500.0, 7) == 7

    def test_infinite_size(self):
        assert chunk_length(math.inf, 42) == 42


class TestMemoryBudget:
    """Test the memory ceiling."""

    def test_ceiling(self):
        assert MemoryBudget(available=1000.0).ceiling == pytest.approx(850.0)

    def test_swap_flag_carried(self):
        assert MemoryBudget(available=1.0, include_swap=True).include_swap is True
