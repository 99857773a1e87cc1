import math

import numpy as np
import pytest

from visodom.calib_yaml import PinholeParameters
from visodom.pinhole import PinholeCamera
from visodom.pinhole_pose import project_with_pose

IDENTITY = (0.0, 0.0, 0.0, 1.0)
ZERO = (0.0, 0.0, 0.0)
DISTORTED = [0.1, -0.05, 0.002, -0.001, 450.0, 460.0, 320.0, 240.0]


def _camera(values):
    k1, k2, p1, p2, fx, fy, cx, cy = values
    return PinholeCamera(
        PinholeParameters(
            image_width=640, image_height=480,
            k1=k1, k2=k2, p1=p1, p2=p2, fx=fx, fy=fy, cx=cx, cy=cy,
        )
    )


def test_identity_pose_without_distortion():
    params = [0, 0, 0, 0, 100.0, 200.0, 50.0, 60.0]
    p = project_with_pose(params, IDENTITY, ZERO, (1.0, 2.0, 4.0))
    assert np.allclose(p, [75.0, 160.0])


def test_matches_camera_model_with_distortion():
    point = (0.3, -0.2, 1.5)
    p = project_with_pose(DISTORTED, IDENTITY, ZERO, point)
    assert np.allclose(p, _camera(DISTORTED).space_to_plane(point))


def test_rotation_about_z():
    half = math.pi / 4
    q = (0.0, 0.0, math.sin(half), math.cos(half))
    p = project_with_pose(DISTORTED, q, ZERO, (0.4, 0.0, 2.0))
    assert np.allclose(p, _camera(DISTORTED).space_to_plane((0.0, 0.4, 2.0)))


def test_quaternion_scale_does_not_matter():
    q = np.array([0.1, 0.2, -0.3, 0.9])
    point = (0.2, 0.1, 3.0)
    a = project_with_pose(DISTORTED, q, ZERO, point)
    b = project_with_pose(DISTORTED, 5.0 * q, ZERO, point)
    assert np.allclose(a, b)


def test_translation_added_after_rotation():
    t = (0.1, -0.2, 0.5)
    point = np.array([0.3, 0.2, 2.0])
    p = project_with_pose(DISTORTED, IDENTITY, t, point)
    assert np.allclose(p, _camera(DISTORTED).space_to_plane(point + np.array(t)))


def test_wrong_parameter_count():
    with pytest.raises(ValueError):
        project_with_pose([1.0, 2.0], IDENTITY, ZERO, (0.0, 0.0, 1.0))


def test_zero_quaternion_rejected():
    with pytest.raises(ValueError):
        project_with_pose(DISTORTED, (0.0, 0.0, 0.0, 0.0), ZERO, (0.0, 0.0, 1.0))