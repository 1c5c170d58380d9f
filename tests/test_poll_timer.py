"""Tests for the one-shot status poll timer."""

import threading
import time

from snapcap_panel.cover.poll_timer import PollTimer


def test_poll_fires_once():
    fired = threading.Event()
    timer = PollTimer(interval_ms=20)

    timer.schedule(fired.set)

    assert fired.wait(1.0)


def test_reschedule_cancels_pending_poll():
    """Only the most recent poll runs."""
    first = threading.Event()
    second = threading.Event()
    timer = PollTimer(interval_ms=100)

    timer.schedule(first.set)
    timer.schedule(second.set)

    assert second.wait(1.0)
    assert not first.is_set()


def test_cancel():
    fired = threading.Event()
    timer = PollTimer(interval_ms=50)

    timer.schedule(fired.set)
    assert timer.pending
    timer.cancel()

    assert not timer.pending
    time.sleep(0.15)
    assert not fired.is_set()


def test_failing_callback_is_contained():
    fired = threading.Event()
    timer = PollTimer(interval_ms=10)

    def failing():
        fired.set()
        raise RuntimeError("poll failed")

    timer.schedule(failing)

    assert fired.wait(1.0)
