from datetime import timedelta
from unittest import mock

import pytest

from trafficrefinery.servicemap.ipcache import IPCache


@pytest.fixture
def clock():
    now = [1000.0]
    with mock.patch("time.monotonic", lambda: now[0]):
        yield now


def test_insert_and_lookup(clock):
    c = IPCache(60, 3600)
    c.insert("1.1.1.1", [1, 2], 100)
    assert c.lookup("1.1.1.1") == [1, 2]


def test_missing_is_none(clock):
    c = IPCache(60, 3600)
    assert c.lookup("1.1.1.2") is None


def test_ttl_expiry(clock):
    c = IPCache(60, 3600)
    c.insert("1.1.1.1", [1], 5)
    clock[0] += 4
    assert c.lookup("1.1.1.1") == [1]
    clock[0] += 2
    assert c.lookup("1.1.1.1") is None


def test_zero_ttl_uses_evict_time(clock):
    c = IPCache(60, 30)
    c.insert("1.1.1.1", [3], 0)
    clock[0] += 29
    assert c.lookup("1.1.1.1") == [3]
    clock[0] += 2
    assert c.lookup("1.1.1.1") is None


def test_empty_services_are_cached(clock):
    c = IPCache(60, 3600)
    c.insert("8.8.8.8", [], 0)
    assert c.lookup("8.8.8.8") == []


def test_cleanup_sweeps_expired(clock):
    c = IPCache(10, 3600)
    c.insert("1.1.1.1", [1], 1)
    c.insert("2.2.2.2", [2], 1000)
    assert len(c) == 2
    clock[0] += 11
    c.insert("3.3.3.3", [3], 1000)
    assert len(c) == 2
    assert c.lookup("2.2.2.2") == [2]


def test_stored_list_is_a_copy(clock):
    c = IPCache(60, 3600)
    services = [1]
    c.insert("1.1.1.1", services, 100)
    services.append(2)
    assert c.lookup("1.1.1.1") == [1]


def test_timedelta_durations(clock):
    c = IPCache(timedelta(minutes=1), timedelta(seconds=20))
    assert c.evict_time == 20
    c.insert("1.1.1.1", [1], 0)
    clock[0] += 21
    assert c.lookup("1.1.1.1") is None