import math

import pytest

from legonav.odometry import OdometryIntegrator


def test_no_estimate_before_twist():
    integ = OdometryIntegrator()
    assert integ.step(0.0) is None
    assert (integ.x, integ.y, integ.yaw) == (0.0, 0.0, 0.0)


def test_defaults_follow_source():
    integ = OdometryIntegrator()
    integ.on_twist(0.0, 0.0, "robot_footprint")
    est = integ.step(1.0)
    assert integ.integration_time == 0.005
    assert est.frame_id == "odom"
    assert est.child_frame_id == "robot_footprint"


def test_straight_line_keeps_heading():
    integ = OdometryIntegrator(integration_time=0.1)
    integ.on_twist(0.5, 0.0, "base")
    est = None
    for k in range(10):
        est = integ.step(float(k))
    assert est.yaw == 0.0
    assert est.y == 0.0
    assert est.x == pytest.approx(10 * 0.1 * 0.5)


def test_rotation_in_place_does_not_translate():
    integ = OdometryIntegrator(integration_time=0.01)
    integ.on_twist(0.0, 1.0, "base")
    for k in range(50):
        est = integ.step(float(k))
    assert (est.x, est.y) == (0.0, 0.0)
    assert est.yaw == pytest.approx(50 * 0.01 * 1.0)


def test_constant_turn_stays_on_circle():
    v, w = 0.3, 0.6
    radius = v / w
    integ = OdometryIntegrator(integration_time=0.005)
    integ.on_twist(v, w, "base")
    for k in range(1000):
        est = integ.step(float(k))
        assert math.hypot(est.x, est.y - radius) == pytest.approx(radius, abs=1e-3)


def test_full_turn_returns_to_start():
    integ = OdometryIntegrator(integration_time=0.001)
    integ.on_twist(0.2, 2 * math.pi, "base")
    for k in range(1000):
        est = integ.step(float(k))
    assert est.x == pytest.approx(0.0, abs=1e-6)
    assert est.y == pytest.approx(0.0, abs=1e-6)


def test_covariance_passed_through():
    cov = [0.0] * 36
    cov[0] = 0.25
    cov[35] = 0.5
    integ = OdometryIntegrator()
    integ.on_twist(1.0, 0.0, "base", cov)
    est = integ.step(3.0)
    assert est.twist_covariance == tuple(cov)
    assert est.stamp == 3.0


def test_bad_covariance_length_raises():
    integ = OdometryIntegrator()
    with pytest.raises(ValueError):
        integ.on_twist(1.0, 0.0, "base", [0.0] * 5)


def test_latest_twist_wins():
    integ = OdometryIntegrator(integration_time=0.1)
    integ.on_twist(1.0, 0.0, "a")
    integ.on_twist(0.0, 0.0, "b")
    est = integ.step(0.0)
    assert est.x == 0.0
    assert est.child_frame_id == "b"


def test_orientation_matches_yaw():
    integ = OdometryIntegrator(integration_time=0.1)
    integ.on_twist(0.0, 1.0, "base")
    est = integ.step(0.0)
    _, _, qz, qw = est.orientation
    assert 2 * math.atan2(qz, qw) == pytest.approx(est.yaw)