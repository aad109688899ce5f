"""Fuse wheel odometry with absolute pose fixes to publish odometry in the map frame."""

from __future__ import annotations

import logging
import math
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from legonav.ekf import ExtendedKalmanFilter
from legonav.geometry import Quaternion, normalize_angle, quaternion_from_yaw, require_param

log = logging.getLogger(__name__)

ARENA_MARGIN = 0.15
XY_MAX_ERROR = 0.1
YAW_MAX_ERROR = math.pi / 180 * 10
MAX_ODOMETRY_HISTORY = 200
_GPS_XY_COV = 0.005 * 0.005
_GPS_TH_COV = 0.1 * 0.1
_DS_STD_SCALE = 0.2
_DTH_STD_SCALE = 0.2


def _wrap(angle: float) -> float:
    while angle > math.pi:
        angle -= 2 * math.pi
    while angle < -math.pi:
        angle += 2 * math.pi
    return angle


@dataclass(frozen=True)
class RobotState:
    """A timestamped planar pose taken from the odometry."""

    stamp: float
    x: float
    y: float
    theta: float


@dataclass(frozen=True)
class MapPose:
    """Odometry pose expressed in the map frame."""

    stamp: float
    frame_id: str
    x: float
    y: float
    yaw: float

    @property
    def orientation(self) -> Quaternion:
        return quaternion_from_yaw(self.yaw)


class Localizer:
    """Keeps an odometry-to-map transform corrected by absolute pose fixes."""

    def __init__(self, arena_w: float, arena_h: float) -> None:
        self.arena_w = float(arena_w)
        self.arena_h = float(arena_h)
        self.ekf = ExtendedKalmanFilter()
        self.odometry: deque[RobotState] = deque()
        self.frame_id = ""
        self.rotation = np.eye(2)
        self.translation = np.zeros(2)
        self.has_transform = False
        self._has_new_gps = False
        self._gps_stamp = 0.0
        self._gps_x = 0.0
        self._gps_y = 0.0
        self._gps_yaw = 0.0

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> Localizer:
        """Build a localizer from the arena size parameters."""
        return cls(
            float(require_param(params, "/arena/w")),
            float(require_param(params, "/arena/h")),
        )

    def on_gps(self, stamp: float, x: float, y: float, yaw: float, frame_id: str) -> bool:
        """Store an absolute pose fix; return whether it was accepted."""
        if len(self.odometry) < 2:
            log.warning("Localization waiting for more odometry messages")
            return False

        self.frame_id = frame_id
        self._gps_stamp = stamp
        self._gps_x = x
        self._gps_y = y
        self._gps_yaw = yaw

        inside = (
            all(math.isfinite(v) for v in (x, y, yaw))
            and -ARENA_MARGIN <= x <= self.arena_w + ARENA_MARGIN
            and -ARENA_MARGIN <= y <= self.arena_h + ARENA_MARGIN
        )
        if not inside:
            log.warning("Discarding pose measurement outside the arena")
            return False

        self._has_new_gps = True
        return True

    def on_odom(self, stamp: float, x: float, y: float, yaw: float) -> MapPose | None:
        """Record an odometry pose and return it in the map frame, once known."""
        if not self.odometry or stamp > self.odometry[-1].stamp:
            self.odometry.append(RobotState(stamp, x, y, yaw))
            while len(self.odometry) > MAX_ODOMETRY_HISTORY:
                self._predict_between(self.odometry[0], self.odometry[1])
                self.odometry.popleft()

        self._update_filter()

        if not self.has_transform:
            return None
        p_map = self.rotation @ np.array([x, y]) + self.translation
        dth = math.atan2(self.rotation[0, 1], self.rotation[0, 0])
        if not (math.isfinite(p_map[0]) and math.isfinite(p_map[1]) and math.isfinite(dth)):
            return None
        return MapPose(stamp, self.frame_id, float(p_map[0]), float(p_map[1]), yaw - dth)

    def _predict_between(self, start: RobotState, end: RobotState) -> None:
        ds = math.hypot(end.x - start.x, end.y - start.y)
        dth = _wrap(end.theta - start.theta)
        ds_std = _DS_STD_SCALE * ds
        dth_std = _DTH_STD_SCALE * dth
        ds_cov = ds_std * ds_std + 0.001 * 0.0001
        dth_cov = dth_std * dth_std + 0.0001 * 0.0001
        self.ekf.predict((ds, dth), ((ds_cov, 0.0), (0.0, dth_cov)))

    def _update_filter(self) -> None:
        if not self._has_new_gps:
            return
        self._has_new_gps = False
        found = False
        removed: RobotState | None = None
        gps_stamp = self._gps_stamp

        if self.ekf.is_localized():
            if self.odometry[0].stamp <= gps_stamp < self.odometry[-1].stamp:
                while len(self.odometry) > 2 and not found:
                    following = self.odometry[1]
                    found = following.stamp > gps_stamp
                    self._predict_between(self.odometry[0], following)
                    if found:
                        removed = self.odometry[0]
                    self.odometry.popleft()
            else:
                if self.odometry[-1].stamp < gps_stamp:
                    log.warning("Pose measurement is newer than all odometry")
                    last = self.odometry[-1]
                    self.odometry.clear()
                    self.odometry.append(last)
                else:
                    log.warning("No odometry matches the pose measurement time")
                    return
                self.ekf.reset()

            dist_err = math.hypot(self._gps_x - self.ekf.x[0], self._gps_y - self.ekf.x[1])
            yaw_err = normalize_angle(self._gps_yaw - self.ekf.x[2])
            if dist_err > XY_MAX_ERROR or abs(yaw_err) > YAW_MAX_ERROR:
                log.warning("Resetting to measurement: position error %s, yaw error %s",
                            dist_err, yaw_err)
                self.ekf.reset()

        ekf_ok = self.ekf.is_localized()
        self.ekf.update_gps(
            (self._gps_x, self._gps_y, self._gps_yaw),
            np.diag([_GPS_XY_COV, _GPS_XY_COV, _GPS_TH_COV]),
        )

        if ekf_ok and found and removed is not None:
            self._update_transform(removed, self.odometry[0], gps_stamp)

    def _update_transform(self, before: RobotState, after: RobotState, stamp: float) -> None:
        scale = (stamp - before.stamp) / (after.stamp - before.stamp)
        x_i = before.x + (after.x - before.x) * scale
        y_i = before.y + (after.y - before.y) * scale
        yaw_i = before.theta + _wrap(after.theta - before.theta) * scale

        dth = yaw_i - self.ekf.x[2]
        c, s = math.cos(dth), math.sin(dth)
        self.rotation = np.array([[c, s], [-s, c]])
        self.translation = self.ekf.x[:2] - self.rotation @ np.array([x_i, y_i])
        self.has_transform = True