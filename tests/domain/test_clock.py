"""Tests for the clock abstraction."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from recon_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_fixed_time(self):
        t = datetime(2022, 3, 1, 9, 0, tzinfo=UTC)
        assert DeterministicClock(t).now() == t

    def test_advance(self):
        t = datetime(2022, 3, 1, 9, 0, tzinfo=UTC)
        clock = DeterministicClock(t)
        clock.advance(30)
        assert clock.now() == t + timedelta(seconds=30)

    def test_set_time(self):
        clock = DeterministicClock()
        t = datetime(2023, 1, 1, tzinfo=UTC)
        clock.set_time(t)
        assert clock.now() == t

    def test_normalized_to_utc(self):
        local = datetime(2022, 1, 31, 21, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert DeterministicClock(local).now().tzinfo == UTC

    def test_naive_time_rejected(self):
        with pytest.raises(ValueError):
            DeterministicClock(datetime(2022, 3, 1, 9, 0))

    def test_today_follows_now(self):
        clock = DeterministicClock(datetime(2022, 3, 31, 23, 59, tzinfo=UTC))
        clock.advance(120)
        assert clock.today() == date(2022, 4, 1)


class TestSystemClock:
    def test_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None
