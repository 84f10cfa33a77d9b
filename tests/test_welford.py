import random
import statistics

import pytest

from trafficrefinery.welford import Welford


def test_single_add_value():
    w = Welford()
    w.add_value(1.0)
    assert w.n == 1
    assert w.avg == 1.0
    assert w.std_dev == 0.0


def test_single_check_and_add_value():
    w = Welford()
    assert w.check_and_add_value(1.0, 0, 0) is True
    assert w.n == 1
    assert w.avg == 1.0


def test_10000_add_value():
    rng = random.Random(1234)
    values = [rng.random() for _ in range(10000)]
    w = Welford()
    for v in values:
        w.add_value(v)
    assert w.avg > 0
    assert w.n == 10000
    assert w.avg == pytest.approx(statistics.fmean(values))
    assert w.var == pytest.approx(statistics.variance(values))
    assert w.std_dev == pytest.approx(statistics.stdev(values))


def test_10000_check_and_add_value():
    rng = random.Random(4321)
    w = Welford()
    for _ in range(10000):
        w.check_and_add_value(rng.random(), 1.0, 1.0)
    assert w.avg > 0
    # values in [0, 1) never exceed max_val, so all are accepted
    assert w.n == 10000


def test_check_and_add_rejects_outlier():
    w = Welford()
    w.check_and_add_value(1.0, 0, 0)
    assert w.check_and_add_value(100.0, 1.0, 1.0) is False
    assert w.n == 1
    assert w.avg == 1.0


def test_check_and_add_accepts_equal_value():
    w = Welford()
    w.check_and_add_value(1.0, 0, 0)
    assert w.check_and_add_value(1.0, 1.0, 1.0) is True
    assert w.n == 2
    assert w.avg == 1.0


def test_reset():
    w = Welford()
    for v in (2.0, 4.0, 9.0):
        w.add_value(v)
    w.reset()
    assert (w.n, w.avg, w.var, w.std_dev) == (0, 0, 0, 0)
    w.add_value(3.0)
    assert w.avg == 3.0
    assert w.var == 0.0