import threading
import time

import pytest

from dockprov.provision.errors import CancelledError, CommandExecutionError, ReadinessTimeoutError
from dockprov.provision.poller import wait_for


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_returns_immediately_when_probe_is_ready():
    calls = []
    clock = FakeClock()

    attempts = wait_for(lambda: calls.append(1) or True, interval=1, timeout=5, clock=clock, sleep=clock.sleep)

    assert attempts == 1
    assert len(calls) == 1
    assert clock.sleeps == []


def test_retries_until_ready():
    answers = iter([False, False, True])
    clock = FakeClock()

    attempts = wait_for(lambda: next(answers), interval=2, timeout=60, clock=clock, sleep=clock.sleep)

    assert attempts == 3
    assert clock.sleeps == [2, 2]


def test_command_errors_count_as_not_ready():
    state = {"n": 0}

    def probe():
        state["n"] += 1
        if state["n"] == 1:
            raise CommandExecutionError("sudo docker version", exit_status=1)
        return True

    clock = FakeClock()
    assert wait_for(probe, interval=1, timeout=10, clock=clock, sleep=clock.sleep) == 2


def test_times_out_with_fake_clock():
    clock = FakeClock()
    with pytest.raises(ReadinessTimeoutError) as exc:
        wait_for(lambda: False, interval=1, timeout=5, clock=clock, sleep=clock.sleep)
    assert exc.value.attempts == 6
    assert clock.now <= 5


def test_times_out_in_real_time():
    start = time.monotonic()
    with pytest.raises(ReadinessTimeoutError):
        wait_for(lambda: False, interval=0.05, timeout=0.2)
    elapsed = time.monotonic() - start
    assert 0.1 <= elapsed < 1.0


def test_other_errors_propagate():
    def probe():
        raise ValueError("bug in probe")

    with pytest.raises(ValueError):
        wait_for(probe, interval=0.01, timeout=0.1)


def test_cancel_before_first_attempt():
    cancel = threading.Event()
    cancel.set()
    calls = []
    with pytest.raises(CancelledError):
        wait_for(lambda: calls.append(1), interval=0.01, timeout=1, cancel=cancel)
    assert calls == []


def test_cancel_interrupts_the_sleep():
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    start = time.monotonic()
    try:
        with pytest.raises(CancelledError):
            wait_for(lambda: False, interval=5, timeout=30, cancel=cancel)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 2
