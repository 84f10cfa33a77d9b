import pytest

from trafficrefinery.servicemap.service import MAX_SERVICE_ID, Service, ServiceFilter


def test_filter_defaults_are_independent():
    a = ServiceFilter()
    b = ServiceFilter()
    a.domains_string.append("netflix.com")
    assert b.domains_string == []
    assert a.domains_string == ["netflix.com"]


def test_service_holds_filter():
    flt = ServiceFilter(domains_string=["netflix.com"], prefixes=["23.246.0.0/18"])
    s = Service("Netflix", 3, flt)
    assert s.service_filter.prefixes == ["23.246.0.0/18"]
    assert s.name == "Netflix"
    assert s.code == 3


def test_service_default_filter_empty():
    s = Service("Other", 0)
    assert s.service_filter == ServiceFilter()


@pytest.mark.parametrize("code", [-1, MAX_SERVICE_ID + 1])
def test_service_code_out_of_range(code):
    with pytest.raises(ValueError):
        Service("Bad", code)


def test_service_code_upper_bound_accepted():
    assert Service("Top", MAX_SERVICE_ID).code == MAX_SERVICE_ID