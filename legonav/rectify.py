"""Camera intrinsic calibration and the gate that selects frames to rectify."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from legonav.geometry import require_param

SKIP_FRAMES = 3
MIN_IMAGE_DT = 0.01


class ResolutionMismatchError(ValueError):
    """Raised when a frame does not match the calibrated resolution."""


@dataclass(frozen=True)
class CameraCalibration:
    """Pinhole intrinsics with radial and tangential distortion."""

    fx: float
    fy: float
    cx: float
    cy: float
    k1: float
    k2: float
    k3: float
    p1: float
    p2: float
    image_width: int
    image_height: int
    config_folder: str = ""
    default_implementation: bool = True

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> CameraCalibration:
        """Read the calibration from a parameter mapping."""
        def calib(name: str) -> Any:
            return require_param(params, f"/camera_calibration/{name}")

        return cls(
            fx=float(calib("fx")),
            fy=float(calib("fy")),
            cx=float(calib("cx")),
            cy=float(calib("cy")),
            k1=float(calib("k1")),
            k2=float(calib("k2")),
            k3=float(calib("k3")),
            p1=float(calib("p1")),
            p2=float(calib("p2")),
            image_width=int(calib("image_width")),
            image_height=int(calib("image_height")),
            config_folder=str(require_param(params, "/config_folder")),
            default_implementation=bool(
                require_param(params, "/default_implementation/rectify")
            ),
        )

    @property
    def camera_matrix(self) -> np.ndarray:
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]]
        )

    @property
    def dist_coeffs(self) -> np.ndarray:
        return np.array([self.k1, self.k2, self.p1, self.p2, self.k3])


class FrameGate:
    """Drops frames to thin the stream and rejects frames too close in time."""

    def __init__(
        self,
        expected_width: int,
        expected_height: int,
        *,
        min_dt: float = MIN_IMAGE_DT,
        skip: int = SKIP_FRAMES,
        last_stamp: float = 0.0,
    ) -> None:
        self.expected_width = int(expected_width)
        self.expected_height = int(expected_height)
        self.min_dt = float(min_dt)
        self.skip = int(skip)
        self.last_stamp = float(last_stamp)
        self._skipped = 0

    def accept(self, width: int, height: int, stamp: float) -> bool:
        """Return whether this frame should be rectified."""
        if self._skipped < self.skip:
            self._skipped += 1
            return False
        self._skipped = 0

        if width != self.expected_width or height != self.expected_height:
            raise ResolutionMismatchError(
                f"frame {width}x{height} does not match calibration "
                f"{self.expected_width}x{self.expected_height}"
            )
        if math.fabs(self.last_stamp - stamp) < self.min_dt:
            return False
        self.last_stamp = float(stamp)
        return True