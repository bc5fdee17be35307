"""Shared fakes: simulated time for the poll loop, scripted probers, stubbed clients."""

import boto3
import pytest


class FakeClock:
    """
    Monotonic clock and interruptible sleep over simulated time.

    ``cancel_at`` requests cancellation when simulated time reaches that
    instant, in the middle of whichever sleep crosses it.
    """

    def __init__(self, cancel_at=None):
        self.now = 0.0
        self.sleeps = []
        self.cancel_at = cancel_at
        self._cancelled = False

    def __call__(self):
        return self.now

    def wait(self, timeout=None):
        if self._cancelled:
            return True
        if self.cancel_at is not None and self.now + timeout >= self.cancel_at:
            self.now = max(self.now, self.cancel_at)
            self._cancelled = True
            return True
        self.now += timeout
        self.sleeps.append(timeout)
        return False

    def set(self):
        self._cancelled = True

    def is_set(self):
        return self._cancelled


class ScriptedProber:
    """Return snapshots in order, repeating the last; optionally take time per call."""

    def __init__(self, states, clock=None, duration=0.0):
        self.states = list(states)
        self.clock = clock
        self.duration = duration
        self.calls = 0

    def __call__(self):
        state = self.states[min(self.calls, len(self.states) - 1)]
        self.calls += 1
        if self.clock is not None:
            self.clock.now += self.duration
        if isinstance(state, Exception):
            raise state
        return dict(state)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def aws_env(monkeypatch):
    for var in ("AWS_PROFILE", "AWS_DEFAULT_PROFILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-central-1")


@pytest.fixture
def ec2(aws_env):
    return boto3.client("ec2", region_name="eu-central-1")


@pytest.fixture
def efs(aws_env):
    return boto3.client("efs", region_name="eu-central-1")
