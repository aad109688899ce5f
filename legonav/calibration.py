"""Extrinsic camera calibration geometry: arena model, rotations and camera pose."""

from __future__ import annotations

import math
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from legonav.geometry import Point2D, Point3D, Quaternion, require_param


def _f32(value: float) -> float:
    """Round a value to single precision, as the point lists are stored."""
    return float(np.float32(value))


@dataclass(frozen=True)
class ArenaGeometry:
    """Arena size, camera intrinsics and the reference points used for calibration."""

    arena_w: float
    arena_h: float
    robot_height: float
    image_width: int
    image_height: int
    fx: float
    fy: float
    cx: float
    cy: float
    config_folder: str = ""
    default_implementation: bool = True

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> ArenaGeometry:
        """Read arena and camera parameters from a parameter mapping."""
        config_folder = str(require_param(params, "/config_folder"))
        fx = float(require_param(params, "/camera_calibration/fx"))
        fy = float(require_param(params, "/camera_calibration/fy"))
        cx = float(require_param(params, "/camera_calibration/cx"))
        cy = float(require_param(params, "/camera_calibration/cy"))
        default_implementation = bool(
            require_param(params, "/default_implementation/extrinsic_calib")
        )
        image_height = int(require_param(params, "/camera_calibration/image_height"))
        image_width = int(require_param(params, "/camera_calibration/image_width"))
        arena_w = float(require_param(params, "/arena/w"))
        arena_h = float(require_param(params, "/arena/h"))
        robot_height = float(require_param(params, "/arena/robot_height"))
        return cls(
            arena_w=arena_w,
            arena_h=arena_h,
            robot_height=robot_height,
            image_width=image_width,
            image_height=image_height,
            fx=fx,
            fy=fy,
            cx=cx,
            cy=cy,
            config_folder=config_folder,
            default_implementation=default_implementation,
        )

    @property
    def scale(self) -> float:
        """Pixels per metre of the unwarped top view."""
        return min(self.image_height / self.arena_h, self.image_width / self.arena_w)

    @property
    def camera_matrix(self) -> np.ndarray:
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]]
        )

    def _corners(self, z: float) -> list[Point3D]:
        w, h, z = _f32(self.arena_w), _f32(self.arena_h), _f32(z)
        return [(0.0, 0.0, z), (w, 0.0, z), (w, h, z), (0.0, h, z)]

    @property
    def object_points_ground(self) -> list[Point3D]:
        """Arena corners on the ground plane, in metres."""
        return self._corners(0.0)

    @property
    def object_points_robot(self) -> list[Point3D]:
        """Arena corners lifted to the height of the robot's marker."""
        return self._corners(self.robot_height)

    @property
    def image_dest_points(self) -> list[Point2D]:
        """Corners of the unwarped image, in pixels."""
        w = _f32(self.arena_w * self.scale)
        h = _f32(self.arena_h * self.scale)
        return [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)]


def rodrigues(rvec: Sequence[float]) -> np.ndarray:
    """Convert a rotation vector (axis times angle) to a 3x3 rotation matrix."""
    r = np.asarray(rvec, dtype=float).ravel()
    if r.size != 3:
        raise ValueError(f"rotation vector needs 3 values, got {r.size}")
    theta = float(np.linalg.norm(r))
    if theta < sys.float_info.epsilon:
        return np.eye(3)
    k = r / theta
    skew = np.array(
        [[0.0, -k[2], k[1]], [k[2], 0.0, -k[0]], [-k[1], k[0], 0.0]]
    )
    c, s = math.cos(theta), math.sin(theta)
    return c * np.eye(3) + (1.0 - c) * np.outer(k, k) + s * skew


def quaternion_from_matrix(m: Sequence[Sequence[float]]) -> Quaternion:
    """Return the quaternion (x, y, z, w) of a 3x3 rotation matrix."""
    mat = np.asarray(m, dtype=float)
    if mat.shape != (3, 3):
        raise ValueError(f"rotation matrix must be 3x3, got shape {mat.shape}")
    trace = mat[0, 0] + mat[1, 1] + mat[2, 2]
    if trace > 0.0:
        s = math.sqrt(trace + 1.0)
        w = s * 0.5
        s = 0.5 / s
        return (
            float((mat[2, 1] - mat[1, 2]) * s),
            float((mat[0, 2] - mat[2, 0]) * s),
            float((mat[1, 0] - mat[0, 1]) * s),
            float(w),
        )

    if mat[0, 0] < mat[1, 1]:
        i = 2 if mat[1, 1] < mat[2, 2] else 1
    else:
        i = 2 if mat[0, 0] < mat[2, 2] else 0
    j = (i + 1) % 3
    k = (i + 2) % 3
    s = math.sqrt(mat[i, i] - mat[j, j] - mat[k, k] + 1.0)
    xyz = [0.0, 0.0, 0.0]
    xyz[i] = s * 0.5
    s = 0.5 / s
    w = (mat[k, j] - mat[j, k]) * s
    xyz[j] = (mat[j, i] + mat[i, j]) * s
    xyz[k] = (mat[k, i] + mat[i, k]) * s
    return (float(xyz[0]), float(xyz[1]), float(xyz[2]), float(w))


def camera_pose(
    rvec: Sequence[float], tvec: Sequence[float]
) -> tuple[np.ndarray, Quaternion]:
    """Return the camera position and orientation in arena coordinates."""
    t = np.asarray(tvec, dtype=float).ravel()
    if t.size != 3:
        raise ValueError(f"translation vector needs 3 values, got {t.size}")
    rotation = rodrigues(rvec).T
    position = -rotation @ t
    return position, quaternion_from_matrix(rotation)


def flatten_plane_transform(
    matrix: Sequence[Sequence[float]], scale: float
) -> tuple[list[float], float]:
    """Flatten a plane transform row by row, paired with its scale."""
    mat = np.asarray(matrix, dtype=float)
    if mat.ndim != 2:
        raise ValueError("plane transform must be a 2D matrix")
    return [float(v) for v in mat.ravel()], float(scale)