"""Localization, odometry, simulation and vision bookkeeping for an arena robot."""

__version__ = "0.1.0"
__all__ = [
    "calibration",
    "detections",
    "ekf",
    "geometry",
    "localization",
    "odometry",
    "rectify",
    "simulator",
]