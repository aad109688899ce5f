"""Kinematic simulation of a differential-drive robot with noisy actuation and sensing."""

from __future__ import annotations

import logging
import math
import random
import string
from dataclasses import dataclass, field

from legonav.geometry import Quaternion, quaternion_from_yaw, yaw_from_quaternion

log = logging.getLogger(__name__)

_ALPHANUM = string.digits + string.ascii_uppercase + string.ascii_lowercase
_V_EPS = 0.001
_TIME_EPS = 1e-6
MAX_UPDATES_WITHOUT_COMMAND = 20
DEFAULT_NOISE_ALPHA = 0.01


def random_name(length: int, rng: random.Random | None = None) -> str:
    """Return a random alphanumeric string of the given length."""
    rng = rng or random.Random()
    return "".join(rng.choice(_ALPHANUM) for _ in range(length))


def gaussian_noise_2d(
    mu1: float,
    sigma1: float,
    mu2: float,
    sigma2: float,
    rng: random.Random | None = None,
) -> tuple[float, float]:
    """Draw two independent normal samples with the Box-Muller transform."""
    rng = rng or random.Random()
    u = 1.0 - rng.random()  # in (0, 1], keeps the logarithm finite
    v = rng.random()
    radius = math.sqrt(-2.0 * math.log(u))
    x = radius * math.cos(2.0 * math.pi * v)
    y = radius * math.sin(2.0 * math.pi * v)
    return sigma1 * x + mu1, sigma2 * y + mu2


@dataclass(frozen=True)
class TwistReading:
    """A velocity measurement with its 6x6 row-major covariance."""

    stamp: float
    frame_id: str
    v: float
    yaw_rate: float
    covariance: tuple[float, ...] = field(default=(0.0,) * 36)


@dataclass(frozen=True)
class SimulationStep:
    """Ideal pose of the robot after one simulation step, plus the sensed twist."""

    stamp: float
    frame_id: str
    child_frame_id: str
    x: float
    y: float
    yaw: float
    v: float
    yaw_rate: float
    twist: TwistReading

    @property
    def orientation(self) -> Quaternion:
        return quaternion_from_yaw(self.yaw)

    @property
    def inverse_transform(self) -> tuple[float, float, float]:
        """Transform from the robot frame back to the map frame as (x, y, yaw)."""
        c, s = math.cos(self.yaw), math.sin(self.yaw)
        return (-(c * self.x + s * self.y), s * self.x - c * self.y, -self.yaw)


class LegoRobotModel:
    """Integrates commanded velocities and produces noisy velocity readings."""

    def __init__(
        self,
        x: float = 0.0,
        y: float = 0.0,
        yaw: float = 0.0,
        *,
        rng: random.Random | None = None,
        measure_alpha_v: float = DEFAULT_NOISE_ALPHA,
        measure_alpha_yaw_rate: float = DEFAULT_NOISE_ALPHA,
        actuation_alpha_v: float = DEFAULT_NOISE_ALPHA,
        actuation_alpha_yaw_rate: float = DEFAULT_NOISE_ALPHA,
        map_frame_id: str = "map",
        robot_frame_id: str = "robot_footprint",
    ) -> None:
        self.x = float(x)
        self.y = float(y)
        self.yaw = float(yaw)
        self.v = 0.0
        self.yaw_rate = 0.0
        self.rng = rng or random.Random()
        self.measure_alpha_v = measure_alpha_v
        self.measure_alpha_yaw_rate = measure_alpha_yaw_rate
        self.actuation_alpha_v = actuation_alpha_v
        self.actuation_alpha_yaw_rate = actuation_alpha_yaw_rate
        self.map_frame_id = map_frame_id
        self.robot_frame_id = robot_frame_id
        self.last_sim_time = 0.0
        self.updates_since_command = 0
        self._stop_warned = False

    def set_twist(self, v: float, yaw_rate: float) -> None:
        """Apply a velocity command, perturbed by actuation noise."""
        self.updates_since_command = 0
        self.v, self.yaw_rate = gaussian_noise_2d(
            v,
            self.actuation_alpha_v * v,
            yaw_rate,
            self.actuation_alpha_yaw_rate * yaw_rate,
            self.rng,
        )

    def set_initial_pose(
        self,
        frame_id: str,
        x: float,
        y: float,
        qx: float,
        qy: float,
        qz: float,
        qw: float,
    ) -> bool:
        """Teleport the robot; poses outside the map frame are ignored."""
        if frame_id != self.map_frame_id:
            return False
        self.x = float(x)
        self.y = float(y)
        self.yaw = yaw_from_quaternion(qx, qy, qz, qw)
        self.v = 0.0
        self.yaw_rate = 0.0
        return True

    def reset(self, x: float | None = None, y: float | None = None,
              yaw: float | None = None) -> None:
        """Stop the robot and restart the clock, keeping or replacing the pose."""
        self.updates_since_command = 0
        self.last_sim_time = 0.0
        if x is not None:
            self.x = float(x)
        if y is not None:
            self.y = float(y)
        if yaw is not None:
            self.yaw = float(yaw)
        self.v = 0.0
        self.yaw_rate = 0.0

    def _advance_clock(self, sim_time: float) -> float | None:
        dt = sim_time - self.last_sim_time
        if dt < 0.0:
            self.reset()
            return None
        if abs(dt) <= _TIME_EPS:
            return None
        self.last_sim_time = sim_time
        return dt

    def update(self, sim_time: float) -> SimulationStep | None:
        """Advance the simulation to sim_time; None when no time has passed."""
        dt = self._advance_clock(sim_time)
        if dt is None:
            return None

        if self.updates_since_command > MAX_UPDATES_WITHOUT_COMMAND:
            if not self._stop_warned:
                log.warning("Setting speed to 0: no command received")
                self._stop_warned = True
            self.v = 0.0
            self.yaw_rate = 0.0
        else:
            self._stop_warned = False

        yaw_rate = self.yaw_rate if abs(self.v) > _V_EPS else 0.0
        dth = yaw_rate * dt
        mid = self.yaw + dth / 2
        self.x += math.cos(mid) * self.v * dt
        self.y += math.sin(mid) * self.v * dt
        self.yaw += dth

        twist = self.measured_twist()
        self.updates_since_command += 1
        return SimulationStep(
            stamp=self.last_sim_time,
            frame_id=self.map_frame_id,
            child_frame_id=self.robot_frame_id,
            x=self.x,
            y=self.y,
            yaw=self.yaw,
            v=self.v,
            yaw_rate=self.yaw_rate,
            twist=twist,
        )

    def measured_twist(self) -> TwistReading:
        """Return the current velocity as a noisy sensor reading."""
        std_v = self.measure_alpha_v * self.v
        std_yr = self.measure_alpha_yaw_rate * self.yaw_rate
        measured_v, measured_yr = gaussian_noise_2d(
            self.v, std_v, self.yaw_rate, std_yr, self.rng
        )
        covariance = [0.0] * 36
        covariance[0] = std_v * std_v
        covariance[35] = std_yr * std_yr
        return TwistReading(
            stamp=self.last_sim_time,
            frame_id=self.robot_frame_id,
            v=measured_v,
            yaw_rate=measured_yr,
            covariance=tuple(covariance),
        )