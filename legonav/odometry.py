"""Dead-reckoning integration of measured body velocities."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from legonav.geometry import Quaternion, quaternion_from_yaw

DEFAULT_INTEGRATION_TIME = 0.005
DEFAULT_FRAME_ID = "odom"


@dataclass(frozen=True)
class OdometryEstimate:
    """Integrated pose together with the twist it was computed from."""

    stamp: float
    frame_id: str
    child_frame_id: str
    x: float
    y: float
    yaw: float
    v: float
    yaw_rate: float
    twist_covariance: tuple[float, ...] = field(default=(0.0,) * 36)

    @property
    def orientation(self) -> Quaternion:
        return quaternion_from_yaw(self.yaw)


class OdometryIntegrator:
    """Integrates the last received twist at a fixed time step."""

    def __init__(
        self,
        integration_time: float = DEFAULT_INTEGRATION_TIME,
        frame_id: str = DEFAULT_FRAME_ID,
    ) -> None:
        self.integration_time = float(integration_time)
        self.frame_id = frame_id
        self.child_frame_id = ""
        self.x = 0.0
        self.y = 0.0
        self.yaw = 0.0
        self.v = 0.0
        self.yaw_rate = 0.0
        self.covariance: tuple[float, ...] = (0.0,) * 36
        self.speed_initialized = False

    def on_twist(
        self,
        v: float,
        yaw_rate: float,
        frame_id: str,
        covariance: Sequence[float] | None = None,
    ) -> None:
        """Store the latest measured linear and angular velocity."""
        self.v = float(v)
        self.yaw_rate = float(yaw_rate)
        self.child_frame_id = frame_id
        if covariance is not None:
            values = tuple(float(c) for c in covariance)
            if len(values) != 36:
                raise ValueError(f"twist covariance needs 36 values, got {len(values)}")
            self.covariance = values
        self.speed_initialized = True

    def step(self, stamp: float) -> OdometryEstimate | None:
        """Advance one integration step; None until a twist has been received."""
        if not self.speed_initialized:
            return None
        dt = self.integration_time
        ds = self.v * dt
        dth = self.yaw_rate * dt
        self.x += ds * math.cos(self.yaw + dth / 2.0)
        self.y += ds * math.sin(self.yaw + dth / 2.0)
        self.yaw += dth
        return OdometryEstimate(
            stamp=stamp,
            frame_id=self.frame_id,
            child_frame_id=self.child_frame_id,
            x=self.x,
            y=self.y,
            yaw=self.yaw,
            v=self.v,
            yaw_rate=self.yaw_rate,
            twist_covariance=self.covariance,
        )