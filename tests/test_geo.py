import math
import pytest
from saferplace.core.geo import EARTH_RADIUS_KM, distance


def test_same_point_is_zero():
    assert distance(59.91, 10.75, 59.91, 10.75) == 0.0


@pytest.mark.parametrize("a,b", [
    ((0.0, 0.0), (1.0, 1.0)),
    ((59.91, 10.75), (60.39, 5.32)),
    ((-33.87, 151.21), (51.51, -0.13)),
])
def test_symmetric(a, b):
    assert distance(*a, *b) == distance(*b, *a)


def test_one_degree_of_latitude():
    expected = EARTH_RADIUS_KM * math.pi / 180
    assert distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected)


def test_antipodes():
    assert distance(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_KM)


def test_never_negative():
    assert distance(10.0, 10.0, -10.0, -10.0) > 0


def test_nan_propagates():
    assert math.isnan(distance(float("nan"), 0.0, 0.0, 0.0))
