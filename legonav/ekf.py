"""Extended Kalman filter for a planar unicycle robot with absolute pose fixes."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from legonav.geometry import normalize_angle

_STRAIGHT_THRESHOLD = 1e-2


class ExtendedKalmanFilter:
    """Tracks the state (x, y, theta) and its covariance."""

    def __init__(self) -> None:
        self.initialized = False
        self.x = np.zeros(3)
        self.P = np.zeros((3, 3))
        self.timestamp = 0.0

    def reset(self) -> None:
        """Forget the current estimate; the next fix re-initializes the filter."""
        self.initialized = False

    def predict(self, u: Sequence[float], q: Sequence[Sequence[float]]) -> None:
        """Propagate the state with the motion u = (ds, dtheta) of covariance q."""
        if not self.initialized:
            return
        ds, dth = (float(v) for v in np.asarray(u, dtype=float).ravel()[:2])
        q = np.asarray(q, dtype=float).reshape(2, 2)
        px, py, theta = self.x

        jac = np.eye(3)
        if abs(dth) < _STRAIGHT_THRESHOLD:
            mid = theta + dth / 2
            new_x = px + ds * math.cos(mid)
            new_y = py + ds * math.sin(mid)
            jac[0, 2] = -ds * math.sin(mid)
            jac[1, 2] = ds * math.cos(mid)
        else:
            radius = ds / dth
            new_x = px + (math.sin(dth + theta) - math.sin(theta)) * radius
            new_y = py - (math.cos(dth + theta) - math.cos(theta)) * radius
            jac[0, 2] = radius * (math.cos(theta + dth) - math.cos(theta))
            jac[1, 2] = radius * (math.sin(theta + dth) - math.sin(theta))

        noise = np.zeros((3, 2))
        noise[0, 0] = math.cos(theta)
        noise[1, 0] = math.sin(theta)
        noise[2, 1] = 1.0

        self.P = jac @ self.P @ jac.T + noise @ q @ noise.T
        self.x = np.array([new_x, new_y, theta + dth])

    def update_gps(self, z: Sequence[float], r: Sequence[Sequence[float]]) -> None:
        """Correct the state with a full pose measurement z of covariance r."""
        z = np.asarray(z, dtype=float).reshape(3).copy()
        r = np.asarray(r, dtype=float).reshape(3, 3).copy()
        if not self.initialized:
            self.x = z
            self.P = r
            self.initialized = True
            return

        h = np.eye(3)
        innovation = z - h @ self.x
        s = h @ self.P @ h.T + r
        gain = self.P @ h.T @ np.linalg.inv(s)
        innovation[2] = normalize_angle(innovation[2])
        self.x = self.x + gain @ innovation
        self.P = (np.eye(3) - gain @ h) @ self.P

    def is_localized(self) -> bool:
        """Whether the filter holds an estimate."""
        return self.initialized