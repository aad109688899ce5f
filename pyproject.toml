[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "legonav"
version = "0.1.0"
description = "Localization, odometry, simulation and vision bookkeeping for a small differential-drive robot in a rectangular arena"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["robotics", "kalman filter", "localization", "odometry", "simulation", "camera calibration"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["legonav"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
