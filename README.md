# legonav

Building blocks for navigating a small differential-drive robot inside a
rectangular arena seen by an overhead camera.

## Modules

- `legonav.ekf` — `ExtendedKalmanFilter` over the pose `(x, y, theta)`.
  `predict(u, q)` propagates the state with a motion `u = (ds, dtheta)`;
  `update_gps(z, r)` corrects it with a full pose measurement (the first
  measurement initializes the filter); `reset()` and `is_localized()`.
- `legonav.localization` — `Localizer` fuses odometry poses (`on_odom`)
  with camera-based pose fixes (`on_gps`, which returns whether the fix was
  accepted; fixes outside the arena plus a 0.15 margin are discarded).
  Once a fix has been matched against the odometry history, `on_odom`
  returns a `MapPose`: the odometry pose re-expressed in the map frame.
  `Localizer.from_params` reads `"/arena/w"` and `"/arena/h"`.
- `legonav.odometry` — `OdometryIntegrator` stores the latest velocity
  reading (`on_twist`) and integrates it over a fixed time step (`step`),
  returning `OdometryEstimate` values, or `None` before any reading.
- `legonav.simulator` — `LegoRobotModel`, a kinematic robot with noisy
  actuation (`set_twist`) and noisy speed sensing (`measured_twist`).
  `update(sim_time)` advances it and returns a `SimulationStep`; the robot
  stops after more than 20 updates without a command. Also
  `gaussian_noise_2d` and `random_name`.
- `legonav.rectify` — `CameraCalibration` (intrinsics and distortion read
  with `from_params`) and `FrameGate`, which skips frames, rejects frames
  closer than 10 ms in time and raises `ResolutionMismatchError` for frames
  of the wrong size.
- `legonav.calibration` — `ArenaGeometry` (scale, arena corner points on the
  ground and at robot height, destination image corners), `rodrigues`,
  `quaternion_from_matrix`, `camera_pose` and `flatten_plane_transform`.
- `legonav.detections` — `DetectionPublisher` packages obstacles, gates,
  victims (with `VictimMarker` text labels) and the arena perimeter into
  `PolygonArray` records; `TransformStore` keeps the latest plane
  transform; `robot_detection` builds a `RobotPose`; `strip_namespace`
  removes a node suffix from a namespace.
- `legonav.geometry` — angle wrapping, yaw/quaternion conversion, polygon
  helpers, `plane_transform_matrix` and `require_param`.

Parameters such as arena size and camera intrinsics are read from plain
mappings keyed like `"/arena/w"`; a missing key raises
`legonav.geometry.ParameterError` naming it.

## Install

```
pip install .
```

## Examples

```python
import numpy as np
from legonav.ekf import ExtendedKalmanFilter

ekf = ExtendedKalmanFilter()
ekf.update_gps(np.array([0.5, 0.5, 0.0]), np.diag([2.5e-5, 2.5e-5, 0.01]))
ekf.predict(np.array([0.1, 0.0]), np.diag([4e-4, 1e-8]))
print(ekf.x, ekf.is_localized())
```

Feeding simulated speed readings into the odometry integrator:

```python
import random
from legonav.simulator import LegoRobotModel
from legonav.odometry import OdometryIntegrator

model = LegoRobotModel(rng=random.Random(0))
integrator = OdometryIntegrator()
model.set_twist(0.2, 0.0)
step = model.update(0.005)
reading = step.twist
integrator.on_twist(reading.v, reading.yaw_rate, reading.frame_id, reading.covariance)
print(integrator.step(step.stamp))
```

## What this package does not do

It does not read, undistort or unwarp camera images, and it does not find
obstacles, victims, gates or the robot in an image, nor solve the camera's
extrinsic parameters from one: it only handles the numbers and records on
either side of those steps. It has no message transport, no running nodes
and no command-line programs; callers feed values in and use what comes back.

## Tests

```
pip install .[test]
pytest
```