"""Tests for the rest countdown."""

import threading

import pytest

from coach.core.rest_timer import RestTimer


class TestRestTimer:

    def test_counts_down(self, monotonic):
        timer = RestTimer(clock=monotonic)
        timer.start(90)
        monotonic.advance(30)
        assert timer.remaining() == pytest.approx(60)
        assert timer.is_running

    def test_remaining_never_negative(self, monotonic):
        timer = RestTimer(clock=monotonic)
        timer.start(10)
        monotonic.advance(25)
        assert timer.remaining() == 0.0
        assert not timer.is_running

    def test_add_time_extends(self, monotonic):
        timer = RestTimer(clock=monotonic)
        timer.start(60)
        monotonic.advance(50)
        assert timer.add_time(30) == pytest.approx(40)
        assert timer.duration == pytest.approx(90)

    def test_add_time_after_finish_does_nothing(self, monotonic):
        timer = RestTimer(clock=monotonic)
        timer.start(5)
        monotonic.advance(10)
        assert timer.add_time(30) == 0.0
        assert timer.remaining() == 0.0

    def test_negative_amounts_rejected(self, monotonic):
        timer = RestTimer(clock=monotonic)
        with pytest.raises(ValueError):
            timer.start(-1)
        timer.start(30)
        with pytest.raises(ValueError):
            timer.add_time(-10)

    def test_skip_cancels(self, monotonic):
        timer = RestTimer(clock=monotonic)
        timer.start(90)
        timer.skip()
        assert timer.remaining() == 0.0
        assert timer.skipped
        assert timer.wait(timeout=0.1)

    def test_wait_times_out_while_running(self, monotonic):
        timer = RestTimer(clock=monotonic)
        timer.start(90)
        assert timer.wait(timeout=0.05) is False

    def test_skip_from_another_thread_releases_wait(self, monotonic):
        timer = RestTimer(clock=monotonic)
        timer.start(90)
        threading.Timer(0.05, timer.skip).start()
        assert timer.wait(timeout=2.0)
