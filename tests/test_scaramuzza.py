import numpy as np
import pytest

from visodom.calib_yaml import ScaramuzzaParameters
from visodom.scaramuzza import ScaramuzzaCamera


def make_params(**overrides):
    values = dict(
        camera_name="cam",
        image_width=64,
        image_height=48,
        poly=[-200.0, 0.0, 1e-3, 0.0, 0.0],
        inv_poly=[150.0, 80.0] + [0.0] * 18,
        C=1.0,
        D=0.0,
        E=0.0,
        center_x=32.0,
        center_y=24.0,
    )
    values.update(overrides)
    return ScaramuzzaParameters(**values)


def test_parameter_count_matches_layout():
    cam = ScaramuzzaCamera(make_params())
    assert cam.parameter_count() == 30
    assert len(cam.write_parameters()) == cam.parameter_count()


def test_read_write_round_trip():
    cam = ScaramuzzaCamera(make_params())
    values = [1.1, 0.1, 0.2, 30.0, 20.0] + [float(i) for i in range(25)]
    cam.read_parameters(values)
    assert cam.write_parameters() == values
    assert cam.parameters.center_x == 30.0


def test_read_parameters_wrong_length_raises():
    cam = ScaramuzzaCamera(make_params())
    with pytest.raises(ValueError):
        cam.read_parameters([1.0, 2.0])


def test_singular_affine_raises():
    with pytest.raises(ValueError):
        ScaramuzzaCamera(make_params(C=0.0))


def test_lift_projective_keeps_offset_from_center():
    params = make_params()
    cam = ScaramuzzaCamera(params)
    ray = cam.lift_projective((40.0, 30.0))
    assert ray[0] == pytest.approx(40.0 - params.center_x)
    assert ray[1] == pytest.approx(30.0 - params.center_y)


def test_lift_sphere_is_unit():
    cam = ScaramuzzaCamera(make_params())
    assert np.linalg.norm(cam.lift_sphere((5.0, 7.0))) == pytest.approx(1.0)


def test_lift_then_project_stays_on_same_radial_line():
    params = make_params()
    cam = ScaramuzzaCamera(params)
    pixel = np.array([50.0, 10.0])
    projected = cam.space_to_plane(cam.lift_projective(pixel))
    center = np.array([params.center_x, params.center_y])
    a = pixel - center
    b = projected - center
    assert a[0] * b[1] - a[1] * b[0] == pytest.approx(0.0, abs=1e-9)
    assert np.dot(a, b) > 0


def test_constant_inverse_polynomial_gives_circle():
    params = make_params(inv_poly=[10.0] + [0.0] * 19)
    cam = ScaramuzzaCamera(params)
    center = np.array([params.center_x, params.center_y])
    for point in [(1.0, 2.0, 3.0), (-4.0, 0.5, -1.0), (0.3, -0.7, 0.0)]:
        p = cam.space_to_plane(point)
        assert np.linalg.norm(p - center) == pytest.approx(10.0)


def test_space_to_plane_on_axis_raises():
    cam = ScaramuzzaCamera(make_params())
    with pytest.raises(ValueError):
        cam.space_to_plane((0.0, 0.0, 1.0))


def test_undist_to_plane_matches_space_to_plane():
    cam = ScaramuzzaCamera(make_params())
    expected = cam.space_to_plane((0.2, -0.3, 1.0))
    assert np.allclose(cam.undist_to_plane((0.2, -0.3)), expected)


def test_rectify_map_requires_focal_length():
    cam = ScaramuzzaCamera(make_params())
    with pytest.raises(ValueError):
        cam.init_undistort_rectify_map()


def test_rectify_map_shape_and_values():
    params = make_params()
    cam = ScaramuzzaCamera(params)
    map_x, map_y, k_rect = cam.init_undistort_rectify_map(fx=20.0, fy=25.0)
    assert map_x.shape == (params.image_height, params.image_width)
    assert map_y.shape == map_x.shape
    assert k_rect[0, 0] == 20.0
    assert k_rect[1, 1] == 25.0
    assert k_rect[0, 2] == params.image_width // 2
    assert k_rect[1, 2] == params.image_height // 2

    u, v = 10, 20
    ray = np.linalg.inv(k_rect.astype(float)) @ np.array([u, v, 1.0])
    expected = cam.space_to_plane(ray)
    assert map_x[v, u] == pytest.approx(expected[0], rel=1e-4)
    assert map_y[v, u] == pytest.approx(expected[1], rel=1e-4)


def test_rectify_map_custom_size_and_center():
    cam = ScaramuzzaCamera(make_params())
    map_x, _, k_rect = cam.init_undistort_rectify_map(
        fx=10.0, fy=10.0, image_size=(8, 6), cx=3.0, cy=2.0
    )
    assert map_x.shape == (6, 8)
    assert k_rect[0, 2] == 3.0
    assert k_rect[1, 2] == 2.0


def test_parameters_property_returns_copy():
    cam = ScaramuzzaCamera(make_params())
    copy = cam.parameters
    copy.poly[0] = 123.0
    assert cam.parameters.poly[0] == -200.0