import pytest

from trafficrefinery.servicemap.ipmap import IPMap
from trafficrefinery.servicemap.service import Service, ServiceFilter


def test_first_match_found():
    m = IPMap()
    m.add_service(1, ["10.0.0.0/8"])
    assert m.check_prefix_first_match("10.1.2.3") == [1]


def test_first_match_missing():
    m = IPMap()
    m.add_service(1, ["10.0.0.0/8"])
    assert m.check_prefix_first_match("11.0.0.1") is None


def test_invalid_ip_is_no_match():
    m = IPMap()
    m.add_service(1, ["10.0.0.0/8"])
    assert m.check_prefix_first_match("not-an-ip") is None
    assert m.check_prefix_all_matches("not-an-ip") == []


def test_same_prefix_merges_services():
    m = IPMap()
    m.add_service(1, ["10.0.0.0/8"])
    m.add_service(2, ["10.0.0.0/8"])
    assert m.check_prefix_first_match("10.0.0.5") == [1, 2]


def test_host_bits_are_ignored():
    m = IPMap()
    m.add_service(4, ["192.168.1.77/24"])
    assert m.check_prefix_first_match("192.168.1.200") == [4]


def test_all_matches_collects_nested_prefixes():
    m = IPMap()
    m.add_service(1, ["10.0.0.0/8"])
    m.add_service(2, ["10.1.0.0/16"])
    assert m.check_prefix_all_matches("10.1.0.1") == [1, 2]
    assert m.check_prefix_all_matches("10.2.0.1") == [1]
    assert m.check_prefix_first_match("10.1.0.1") == [1]


def test_ipv6_prefix():
    m = IPMap()
    m.add_service(7, ["2001:db8::/32"])
    assert m.check_prefix_first_match("2001:db8::1") == [7]
    assert m.check_prefix_first_match("10.0.0.1") is None


def test_bad_prefix_raises():
    m = IPMap()
    with pytest.raises(ValueError):
        m.add_service(1, ["10.0.0.0/33"])


def test_add_services_uses_filters():
    m = IPMap()
    m.add_services([
        Service("A", 0, ServiceFilter(prefixes=["1.2.3.0/24"])),
        Service("B", 1, ServiceFilter(prefixes=["5.6.0.0/16"])),
    ])
    assert m.check_prefix_first_match("1.2.3.4") == [0]
    assert m.check_prefix_first_match("5.6.7.8") == [1]


def test_returned_list_is_a_copy():
    m = IPMap()
    m.add_service(1, ["10.0.0.0/8"])
    m.check_prefix_first_match("10.0.0.1").append(99)
    assert m.check_prefix_first_match("10.0.0.1") == [1]