import math

import numpy as np
import pytest

from legonav.calibration import (
    ArenaGeometry,
    camera_pose,
    flatten_plane_transform,
    quaternion_from_matrix,
    rodrigues,
)
from legonav.geometry import ParameterError, plane_transform_matrix, quaternion_from_yaw


def _params():
    return {
        "/config_folder": "/tmp/config",
        "/camera_calibration/fx": 500.0,
        "/camera_calibration/fy": 510.0,
        "/camera_calibration/cx": 320.0,
        "/camera_calibration/cy": 240.0,
        "/default_implementation/extrinsic_calib": True,
        "/camera_calibration/image_height": 480,
        "/camera_calibration/image_width": 640,
        "/arena/w": 2.0,
        "/arena/h": 1.5,
        "/arena/robot_height": 0.25,
    }


def test_arena_from_params_reads_values():
    arena = ArenaGeometry.from_params(_params())
    assert arena.config_folder == "/tmp/config"
    assert arena.default_implementation is True
    assert arena.camera_matrix.tolist() == [
        [500.0, 0.0, 320.0],
        [0.0, 510.0, 240.0],
        [0.0, 0.0, 1.0],
    ]


def test_arena_points():
    arena = ArenaGeometry.from_params(_params())
    assert arena.object_points_ground == [
        (0.0, 0.0, 0.0),
        (2.0, 0.0, 0.0),
        (2.0, 1.5, 0.0),
        (0.0, 1.5, 0.0),
    ]
    assert all(p[2] == pytest.approx(0.25) for p in arena.object_points_robot)
    assert [p[:2] for p in arena.object_points_robot] == [
        p[:2] for p in arena.object_points_ground
    ]
    assert arena.image_dest_points[2] == (640.0, 480.0)
    assert arena.image_dest_points[0] == (0.0, 0.0)


def test_arena_scale_fits_image():
    params = _params()
    params["/camera_calibration/image_width"] = 1000
    arena = ArenaGeometry.from_params(params)
    w, h = arena.image_dest_points[2]
    assert w <= 1000 + 1e-3
    assert h <= 480 + 1e-3
    assert h == pytest.approx(480.0)


def test_arena_missing_param():
    params = _params()
    del params["/arena/robot_height"]
    with pytest.raises(ParameterError, match="/arena/robot_height"):
        ArenaGeometry.from_params(params)


def test_rodrigues_zero_is_identity():
    assert np.allclose(rodrigues([0.0, 0.0, 0.0]), np.eye(3))


@pytest.mark.parametrize("rvec", [[0.1, -0.4, 0.7], [2.0, 0.5, -1.0], [0.0, 3.0, 0.0]])
def test_rodrigues_is_rotation_fixing_axis(rvec):
    r = rodrigues(rvec)
    assert np.allclose(r @ r.T, np.eye(3))
    assert np.linalg.det(r) == pytest.approx(1.0)
    assert np.allclose(r @ np.array(rvec), np.array(rvec))


def test_rodrigues_bad_size():
    with pytest.raises(ValueError):
        rodrigues([1.0, 2.0])


@pytest.mark.parametrize("yaw", [0.3, -1.2, 2.5])
def test_quaternion_from_matrix_about_z(yaw):
    q = quaternion_from_matrix(rodrigues([0.0, 0.0, yaw]))
    assert np.allclose(q, quaternion_from_yaw(yaw))


def test_quaternion_from_matrix_half_turn():
    q = quaternion_from_matrix(rodrigues([math.pi, 0.0, 0.0]))
    assert abs(q[0]) == pytest.approx(1.0)
    assert q[3] == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize("rvec", [[0.2, 0.3, -0.1], [2.5, -1.0, 0.8], [0.0, 3.1, 0.0]])
def test_quaternion_is_unit(rvec):
    q = np.array(quaternion_from_matrix(rodrigues(rvec)))
    assert np.linalg.norm(q) == pytest.approx(1.0)


def test_quaternion_bad_shape():
    with pytest.raises(ValueError):
        quaternion_from_matrix([[1.0, 0.0], [0.0, 1.0]])


def test_camera_pose_without_rotation():
    position, orientation = camera_pose([0.0, 0.0, 0.0], [1.0, 2.0, 3.0])
    assert np.allclose(position, [-1.0, -2.0, -3.0])
    assert np.allclose(orientation, (0.0, 0.0, 0.0, 1.0))


def test_camera_pose_maps_back_to_origin():
    rvec = [0.4, -0.2, 1.1]
    tvec = [0.5, -0.3, 2.0]
    position, _ = camera_pose(rvec, tvec)
    assert np.allclose(rodrigues(rvec) @ position + np.array(tvec), 0.0)


def test_flatten_plane_transform_round_trip():
    matrix = np.arange(9, dtype=float).reshape(3, 3) + 0.5
    values, scale = flatten_plane_transform(matrix, 320)
    assert scale == 320.0
    assert values[:3] == [0.5, 1.5, 2.5]
    assert np.array_equal(plane_transform_matrix(values), matrix)