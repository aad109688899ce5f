import math

import numpy as np
import pytest

from legonav.geometry import (
    ParameterError,
    create_polygon,
    normalize_angle,
    plane_transform_matrix,
    polygon_center,
    quaternion_from_yaw,
    require_param,
    yaw_from_quaternion,
)


def test_normalize_angle_boundaries():
    assert normalize_angle(-math.pi) == pytest.approx(math.pi)
    assert normalize_angle(math.pi) == pytest.approx(math.pi)
    assert normalize_angle(3 * math.pi) == pytest.approx(math.pi)


@pytest.mark.parametrize("angle", [-10.0, -4.0, -1.0, 0.0, 0.5, 2.0, 7.5, 100.0])
def test_normalize_angle_range_and_equivalence(angle):
    wrapped = normalize_angle(angle)
    assert -math.pi < wrapped <= math.pi
    assert math.cos(wrapped) == pytest.approx(math.cos(angle))
    assert math.sin(wrapped) == pytest.approx(math.sin(angle))


@pytest.mark.parametrize("yaw", [-3.0, -1.2, 0.0, 0.7, 2.9])
def test_quaternion_yaw_round_trip(yaw):
    q = quaternion_from_yaw(yaw)
    assert yaw_from_quaternion(*q) == pytest.approx(yaw)
    assert sum(c * c for c in q) == pytest.approx(1.0)


def test_identity_quaternion_has_zero_yaw():
    assert quaternion_from_yaw(0.0) == (0.0, 0.0, 0.0, 1.0)
    assert yaw_from_quaternion(0.0, 0.0, 0.0, 1.0) == 0.0


def test_create_polygon_lifts_points_to_ground():
    points = [(1.0, 2.0), (3.5, -1.0)]
    assert create_polygon(points) == [(1.0, 2.0, 0.0), (3.5, -1.0, 0.0)]
    assert create_polygon([]) == []


def test_create_polygon_accepts_attribute_points():
    class P:
        def __init__(self, x, y):
            self.x, self.y = x, y

    assert create_polygon([P(4, 5)]) == [(4.0, 5.0, 0.0)]


def test_polygon_center_of_square_and_single_point():
    square = [(0, 0), (2, 0), (2, 2), (0, 2)]
    assert polygon_center(square) == pytest.approx((1.0, 1.0))
    assert polygon_center([(3.0, -4.0)]) == (3.0, -4.0)


def test_polygon_center_empty_raises():
    with pytest.raises(ValueError):
        polygon_center([])


def test_plane_transform_matrix_row_major():
    values = list(range(9))
    m = plane_transform_matrix(values)
    assert m.shape == (3, 3)
    assert m[0, 2] == 2
    assert m[2, 0] == 6
    np.testing.assert_array_equal(m.ravel(), np.arange(9, dtype=float))


@pytest.mark.parametrize("n", [0, 8, 10])
def test_plane_transform_matrix_wrong_size(n):
    with pytest.raises(ValueError):
        plane_transform_matrix([1.0] * n)


def test_require_param_present_and_missing():
    params = {"/arena/w": 1.56}
    assert require_param(params, "/arena/w") == 1.56
    with pytest.raises(ParameterError, match="Did not load /arena/h"):
        require_param(params, "/arena/h")