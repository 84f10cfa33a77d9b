from unittest import mock

import pytest

from trafficrefinery.servicemap.dnsmap import DNSAnswer, DNSMessage, DNSQuestion
from trafficrefinery.servicemap.service import Service, ServiceFilter
from trafficrefinery.servicemap.servicemap import ServiceMap, ServiceMapError

VIDEO_SERVICES = [
    ("YouTube", ["youtube.com", "googlevideo.com"], [], ["208.65.152.0/22"]),
    ("Netflix", ["netflix.com", "nflxvideo.net"], [r".*\.nflximg\.net"], ["23.246.0.0/18", "45.57.0.0/17"]),
    ("Twitch", ["twitch.tv", "ttvnw.net"], [], []),
]


def _services():
    return [
        Service(name, i, ServiceFilter(domains_string=ds, domains_regex=dr, prefixes=px))
        for i, (name, ds, dr, px) in enumerate(VIDEO_SERVICES)
    ]


def _response(ip, ttl, name):
    return DNSMessage(questions=[DNSQuestion(name.encode())], answers=[DNSAnswer(ip=ip, ttl=ttl)])


@pytest.fixture
def clock():
    now = [5000.0]
    with mock.patch("time.monotonic", lambda: now[0]):
        yield now


@pytest.fixture
def smap(clock):
    sm = ServiceMap(60, 3600)
    sm.config_service_map(_services())
    return sm


def test_dns_cache_insert(smap):
    smap.parse_dns_response(_response("1.1.1.1", 1000000, "api-global.netflix.com"))
    ids = smap.lookup_ip("1.1.1.1")
    assert ids
    assert smap.get_name(ids[0]) == "Netflix"


def test_dns_cache_not_found(smap):
    smap.parse_dns_response(_response("1.1.1.1", 1000000, "api-global.netflix.com"))
    assert smap.lookup_ip("1.1.1.2") == []


def test_ip_cache_expire(smap, clock):
    smap.parse_dns_response(_response("1.1.1.1", 1, "api-global.netflix.com"))
    clock[0] += 2
    assert smap.lookup_ip("1.1.1.1") == []


def test_ip_map_insert(smap):
    ids = smap.lookup_ip("23.246.1.1")
    assert ids
    assert smap.get_name(ids[0]) == "Netflix"


def test_ip_map_not_found(smap):
    assert smap.lookup_ip("1.1.1.1") == []


def test_prefix_hit_is_cached(smap):
    first = smap.lookup_ip("45.57.0.9")
    assert first == smap.lookup_ip("45.57.0.9")
    assert smap.get_name(first[0]) == "Netflix"


def test_regex_match_from_dns(smap):
    smap.parse_dns_response(_response("9.9.9.9", 600, "art.nflximg.net"))
    assert smap.get_name(smap.lookup_ip("9.9.9.9")[0]) == "Netflix"


def test_unmatched_dns_is_not_cached(smap):
    smap.parse_dns_response(_response("23.246.2.2", 600, "example.com"))
    assert smap.get_name(smap.lookup_ip("23.246.2.2")[0]) == "Netflix"


def test_name_and_id_lookups(smap):
    sid = smap.get_id("Twitch")
    assert smap.get_name(sid) == "Twitch"
    assert smap.get_service(sid).name == "Twitch"
    assert smap.get_id("Unknown") is None
    assert smap.get_name(99) is None
    assert smap.get_service(99) is None


def test_duplicate_id_rejected(clock):
    sm = ServiceMap(60, 3600)
    with pytest.raises(ServiceMapError):
        sm.config_service_map([Service("A", 1), Service("B", 1)])


def test_duplicate_name_rejected(clock):
    sm = ServiceMap(60, 3600)
    with pytest.raises(ServiceMapError):
        sm.config_service_map([Service("A", 1), Service("A", 2)])


def test_bad_prefix_rejected(clock):
    sm = ServiceMap(60, 3600)
    with pytest.raises(ServiceMapError):
        sm.config_service_map([Service("A", 1, ServiceFilter(prefixes=["bogus"]))])


def test_bad_regex_rejected(clock):
    sm = ServiceMap(60, 3600)
    with pytest.raises(ServiceMapError):
        sm.config_service_map([Service("A", 1, ServiceFilter(domains_regex=["[unclosed"]))])