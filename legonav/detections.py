"""Package map and robot detections into stamped polygons, markers and poses."""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from legonav.geometry import (
    Point3D,
    Quaternion,
    create_polygon,
    plane_transform_matrix,
    polygon_center,
    quaternion_from_yaw,
)

DEFAULT_FRAME_ID = "map"
ROBOT_DETECTOR_SUFFIX = "/robot_detector"
MARKER_HEIGHT = 0.03
MARKER_SCALE = (0.3, 0.3, 0.1)
MARKER_COLOR = (0.0, 0.0, 0.0, 1.0)


@dataclass(frozen=True)
class PolygonArray:
    """A stamped collection of labelled polygons lying on the z = 0 plane."""

    stamp: float
    frame_id: str
    seq: int
    polygons: list[list[Point3D]] = field(default_factory=list)
    polygon_seqs: list[int] = field(default_factory=list)
    labels: list[int] = field(default_factory=list)
    likelihood: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class VictimMarker:
    """A text label showing a victim's number at the centre of its polygon."""

    stamp: float
    frame_id: str
    seq: int
    id: int
    x: float
    y: float
    text: str
    z: float = MARKER_HEIGHT
    scale: tuple[float, float, float] = MARKER_SCALE
    color: tuple[float, float, float, float] = MARKER_COLOR
    orientation: Quaternion = (0.0, 0.0, 0.0, 1.0)


@dataclass(frozen=True)
class RobotPose:
    """Detected robot pose together with the marker triangle it came from."""

    stamp: float
    frame_id: str
    x: float
    y: float
    theta: float
    triangle: list[Point3D] = field(default_factory=list)

    @property
    def orientation(self) -> Quaternion:
        return quaternion_from_yaw(self.theta)


class TransformStore:
    """Holds the latest plane transform and its scale."""

    def __init__(self) -> None:
        self.matrix: np.ndarray | None = None
        self.scale = 0.0
        self.has_transform = False

    def on_transform(self, matrix: Sequence[Any], scale: float) -> None:
        """Store a 3x3 transform given as nine row-major values."""
        self.matrix = plane_transform_matrix(matrix)
        self.scale = float(scale)
        self.has_transform = True


class DetectionPublisher:
    """Builds detection messages, numbering them from one shared sequence."""

    def __init__(self, frame_id: str = DEFAULT_FRAME_ID) -> None:
        self.frame_id = frame_id
        self._counter = itertools.count()

    def _next(self) -> int:
        return next(self._counter)

    def _labelled(
        self, polygons: Iterable[tuple[int, Iterable[Any]]], stamp: float
    ) -> PolygonArray:
        array = PolygonArray(stamp=stamp, frame_id=self.frame_id, seq=self._next())
        for label, points in polygons:
            array.polygon_seqs.append(self._next())
            array.polygons.append(create_polygon(points))
            array.labels.append(label)
            array.likelihood.append(1.0)
        return array

    def obstacles(
        self, polygons: Sequence[Iterable[Any]], stamp: float
    ) -> PolygonArray | None:
        """Return the obstacle array, or None when nothing was detected."""
        if not polygons:
            return None
        return self._labelled(enumerate(polygons), stamp)

    def gates(
        self, polygons: Sequence[Iterable[Any]], stamp: float
    ) -> PolygonArray | None:
        """Return the gate array, or None when no gate was detected."""
        if not polygons:
            return None
        return self._labelled(enumerate(polygons), stamp)

    def victims(
        self, victims: Sequence[tuple[int, Sequence[Any]]], stamp: float
    ) -> tuple[PolygonArray, list[VictimMarker]] | None:
        """Return the victim polygons labelled by number and their text markers."""
        if not victims:
            return None
        array = PolygonArray(stamp=stamp, frame_id=self.frame_id, seq=self._next())
        markers: list[VictimMarker] = []
        for number, points in victims:
            points = list(points)
            poly_seq = self._next()
            array.polygon_seqs.append(poly_seq)
            array.polygons.append(create_polygon(points))
            array.labels.append(number)
            array.likelihood.append(1.0)
            cx, cy = polygon_center(points)
            markers.append(
                VictimMarker(
                    stamp=stamp,
                    frame_id=self.frame_id,
                    seq=poly_seq,
                    id=self._next(),
                    x=cx,
                    y=cy,
                    text=str(number),
                )
            )
        return array, markers

    def perimeter(self, arena_w: float, arena_h: float, stamp: float) -> PolygonArray:
        """Return the arena boundary as a single rectangle."""
        corners = [(0.0, 0.0), (arena_w, 0.0), (arena_w, arena_h), (0.0, arena_h)]
        return self._labelled([(0, corners)], stamp)


def robot_detection(
    triangle: Iterable[Any],
    x: float,
    y: float,
    theta: float,
    stamp: float,
    frame_id: str = DEFAULT_FRAME_ID,
) -> RobotPose:
    """Package a robot detection as a stamped pose with its triangle."""
    return RobotPose(
        stamp=stamp,
        frame_id=frame_id,
        x=float(x),
        y=float(y),
        theta=float(theta),
        triangle=create_polygon(triangle),
    )


def strip_namespace(namespace: str, suffix: str = ROBOT_DETECTOR_SUFFIX) -> str:
    """Remove the first occurrence of suffix from a node namespace."""
    position = namespace.find(suffix)
    if position < 0:
        raise ValueError(f"{suffix!r} not found in namespace {namespace!r}")
    return namespace[:position] + namespace[position + len(suffix):]