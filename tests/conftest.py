"""Shared pytest fixtures for factorpool tests."""

import pytest

from factorpool.coordinator import Coordinator
from factorpool.hub import ConnectionHub


class FakeClock:
    """Manually advanced stand-in for time.time."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class MemorySink:
    """Result sink that keeps appended lines in a list."""

    def __init__(self):
        self.lines = []

    def append(self, line):
        self.lines.append(line)


class BrokenSink:
    def append(self, line):
        raise OSError("disk full")


def drain(channel):
    """Pop every queued (event, payload) pair off a worker channel."""
    out = []
    while not channel.events.empty():
        out.append(channel.events.get_nowait())
    return out


def events_named(channel, name):
    return [payload for event, payload in drain(channel) if event == name]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def hub():
    return ConnectionHub()


@pytest.fixture
def coordinator(hub, sink, clock):
    """Coordinator with the real range size and an in-memory result log."""
    return Coordinator(hub, sink, clock=clock)


@pytest.fixture
def small_coordinator(hub, sink, clock):
    """Coordinator with 10-wide ranges, so small targets span many ranges."""
    return Coordinator(hub, sink, range_size=10, clock=clock)
