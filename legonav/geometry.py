"""Planar geometry helpers shared by the estimation and localization code."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import numpy as np

Point2D = tuple[float, float]
Point3D = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]


class ParameterError(LookupError):
    """Raised when a required configuration parameter is missing."""


def normalize_angle(angle: float) -> float:
    """Wrap an angle into the half-open interval (-pi, pi]."""
    while angle <= -math.pi:
        angle += 2 * math.pi
    while angle > math.pi:
        angle -= 2 * math.pi
    return angle


def yaw_from_quaternion(x: float, y: float, z: float, w: float) -> float:
    """Return the yaw (rotation about z) encoded by a quaternion."""
    return math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))


def quaternion_from_yaw(yaw: float) -> Quaternion:
    """Return the quaternion (x, y, z, w) of a pure rotation about z."""
    half = yaw / 2.0
    return (0.0, 0.0, math.sin(half), math.cos(half))


def _xy(point: Any) -> Point2D:
    if hasattr(point, "x") and hasattr(point, "y"):
        return float(point.x), float(point.y)
    px, py = point[0], point[1]
    return float(px), float(py)


def create_polygon(points: Iterable[Any]) -> list[Point3D]:
    """Lift 2D points onto the z = 0 plane."""
    return [(*_xy(point), 0.0) for point in points]


def polygon_center(points: Iterable[Any]) -> Point2D:
    """Return the mean of a polygon's vertices."""
    coords = [_xy(point) for point in points]
    if not coords:
        raise ValueError("polygon has no vertices")
    xs, ys = zip(*coords)
    return sum(xs) / len(coords), sum(ys) / len(coords)


def plane_transform_matrix(values: Sequence[float]) -> np.ndarray:
    """Build a 3x3 transform from nine row-major values."""
    flat = np.asarray(values, dtype=float).ravel()
    if flat.size != 9:
        raise ValueError(f"plane transform needs 9 values, got {flat.size}")
    return flat.reshape(3, 3)


def require_param(params: Mapping[str, Any], name: str) -> Any:
    """Fetch a required parameter, raising ParameterError when absent."""
    try:
        return params[name]
    except KeyError:
        raise ParameterError(f"Did not load {name}") from None