"""Tests for the SQLite rate-limit counters."""

import pytest

from store.rate_limit_store import RateLimitStore


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limits(tmp_path, clock):
    return RateLimitStore(db_path=str(tmp_path / "limits.db"), clock=clock)


def test_allows_up_to_limit(limits):
    assert [limits.hit("contact:1.2.3.4", 3, 60) for _ in range(4)] == [True, True, True, False]


def test_keys_are_independent(limits):
    assert limits.hit("a", 1, 60)
    assert not limits.hit("a", 1, 60)
    assert limits.hit("b", 1, 60)


def test_window_resets(limits, clock):
    assert limits.hit("a", 1, 60)
    assert not limits.hit("a", 1, 60)
    clock.now += 61
    assert limits.hit("a", 1, 60)


def test_state_shared_across_instances(tmp_path, clock):
    path = str(tmp_path / "limits.db")
    assert RateLimitStore(db_path=path, clock=clock).hit("a", 1, 60)
    assert not RateLimitStore(db_path=path, clock=clock).hit("a", 1, 60)


def test_purge_expired(limits, clock):
    limits.hit("a", 5, 10)
    limits.hit("b", 5, 100)
    clock.now += 50
    assert limits.purge_expired() == 1
