"""
tests.conftest

Shared fixtures for the gateway test suite.
"""

from __future__ import annotations

import pytest

from fakes import FakeClock, FakeUpstream


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
