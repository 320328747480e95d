"""
Shared test configuration.

Fakes stand in for the two remote checks so pipeline and CLI tests never
touch the network; the HTTP adapters are tested separately against
``httpx.MockTransport``.
"""

import asyncio
import sys
from pathlib import Path

# Allow running the suite without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from core.config import AppSettings


class FakeAvailabilityChecker:
    """Records every username it is asked about.

    ``results`` maps a username to a bool or to an exception to raise;
    unknown usernames are available. ``hold(name)`` makes the check for
    ``name`` wait until ``release(name)`` is called.
    """

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.calls = []
        self.cancelled = []
        self._gates = {}

    def hold(self, username):
        self._gates[username] = asyncio.Event()

    def release(self, username):
        self._gates[username].set()

    async def check(self, username):
        self.calls.append(username)
        gate = self._gates.get(username)
        try:
            if gate is not None:
                await gate.wait()
        except asyncio.CancelledError:
            self.cancelled.append(username)
            raise
        result = self.results.get(username, True)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeBreachChecker:
    """Reports passwords in ``breached`` as breached; never raises."""

    def __init__(self, breached=()):
        self.breached = set(breached)
        self.calls = []

    async def is_breached(self, password):
        self.calls.append(password)
        return password in self.breached

    async def breach_count(self, password):
        self.calls.append(password)
        return 42 if password in self.breached else 0


@pytest.fixture
def settings():
    """Settings with a short debounce window and no .env lookup."""
    return AppSettings(_env_file=None, username_debounce_seconds=0.05)


@pytest.fixture
def instant_settings():
    """Settings without debounce, for deterministic ordering tests."""
    return AppSettings(_env_file=None, username_debounce_seconds=0)


@pytest.fixture
def availability():
    return FakeAvailabilityChecker()


@pytest.fixture
def breach():
    return FakeBreachChecker(breached={"password1"})


@pytest.fixture
def fake_checker_types():
    """The fake classes, for tests that need to build their own instances."""
    return FakeAvailabilityChecker, FakeBreachChecker
