import math
import random
import time

import pytest

from visodom.geometry import (
    bres_circle,
    bres_line,
    clamp,
    cube,
    d2r,
    fit_circle,
    hypot3,
    intersect_circles,
    normalize_theta,
    r2d,
    random_normal,
    random_uniform,
    sinc,
    square,
    time_in_microseconds,
    time_in_seconds,
    timestamp_diff,
)


def test_clamp_limits():
    assert clamp(5, 0, 3) == 3
    assert clamp(-2, 0, 3) == 0
    assert clamp(2, 0, 3) == 2


def test_square_cube_hypot3():
    assert square(7) == 49
    assert cube(-3) == -27
    assert hypot3(3.0, 4.0, 0.0) == pytest.approx(5.0)


def test_angle_conversion_round_trip():
    assert d2r(180.0) == pytest.approx(math.pi)
    for deg in (-720.0, -33.5, 0.0, 12.25, 359.0):
        assert r2d(d2r(deg)) == pytest.approx(deg)


def test_sinc_near_zero_is_one():
    assert sinc(1e-8) == pytest.approx(1.0)
    assert sinc(math.pi) == pytest.approx(0.0, abs=1e-12)


@pytest.mark.parametrize("theta", [-20.0, -math.pi - 0.1, 0.5, 4.0, 31.0])
def test_normalize_theta_range_and_equivalence(theta):
    out = normalize_theta(theta)
    assert -math.pi <= out <= math.pi
    turns = (theta - out) / (2.0 * math.pi)
    assert turns == pytest.approx(round(turns))


def test_random_uniform_in_range():
    random.seed(1)
    samples = [random_uniform(2.0, 5.0) for _ in range(1000)]
    assert all(2.0 <= s <= 5.0 for s in samples)


def test_random_normal_statistics():
    random.seed(42)
    samples = [random_normal(2.0) for _ in range(20000)]
    mean = sum(samples) / len(samples)
    var = sum((s - mean) ** 2 for s in samples) / len(samples)
    assert abs(mean) < 0.1
    assert math.sqrt(var) == pytest.approx(2.0, rel=0.05)


def test_time_functions_agree():
    now = time.time()
    secs = time_in_seconds()
    micros = time_in_microseconds()
    assert abs(secs - now) < 5.0
    assert abs(micros / 1e6 - secs) < 5.0


@pytest.mark.parametrize(
    "x0,y0,x1,y1", [(0, 0, 5, 2), (3, 3, -4, 7), (2, 2, 2, 2), (0, 0, 0, -6)]
)
def test_bres_line_invariants(x0, y0, x1, y1):
    cells = bres_line(x0, y0, x1, y1)
    assert cells[0] == (x0, y0)
    assert cells[-1] == (x1, y1)
    assert len(cells) == max(abs(x1 - x0), abs(y1 - y0)) + 1
    for (ax, ay), (bx, by) in zip(cells, cells[1:]):
        assert max(abs(ax - bx), abs(ay - by)) == 1


def test_bres_circle_zero_radius():
    assert bres_circle(4, -2, 0) == [(4, -2)]


def test_bres_circle_invariants():
    x0, y0, r = 10, 20, 5
    cells = bres_circle(x0, y0, r)
    cell_set = set(cells)
    assert len(cell_set) == len(cells)
    assert cells == sorted(cells)
    for cx, cy in cells:
        assert math.hypot(cx - x0, cy - y0) <= r + 1
        assert (2 * x0 - cx, cy) in cell_set
        assert (cx, 2 * y0 - cy) in cell_set
    for extreme in ((x0, y0 + r), (x0, y0 - r), (x0 + r, y0), (x0 - r, y0), (x0, y0)):
        assert extreme in cell_set


def test_bres_circle_negative_radius():
    with pytest.raises(ValueError):
        bres_circle(0, 0, -1)


def test_fit_circle_recovers_circle():
    cx, cy, r = 3.5, -1.25, 7.0
    pts = [
        (cx + r * math.cos(k * 0.3), cy + r * math.sin(k * 0.3)) for k in range(15)
    ]
    fx, fy, fr = fit_circle(pts)
    assert fx == pytest.approx(cx)
    assert fy == pytest.approx(cy)
    assert fr == pytest.approx(r)


def test_fit_circle_degenerate():
    with pytest.raises(ValueError):
        fit_circle([(0.0, 0.0), (1.0, 1.0), (2.0, 2.0)])
    with pytest.raises(ValueError):
        fit_circle([])


def test_intersect_circles_two_points():
    pts = intersect_circles(0.0, 0.0, 5.0, 6.0, 1.0, 4.0)
    assert len(pts) == 2
    for x, y in pts:
        assert math.hypot(x, y) == pytest.approx(5.0)
        assert math.hypot(x - 6.0, y - 1.0) == pytest.approx(4.0)


def test_intersect_circles_touching():
    pts = intersect_circles(0.0, 0.0, 2.0, 5.0, 0.0, 3.0)
    assert len(pts) == 1
    assert pts[0][0] == pytest.approx(2.0)
    assert pts[0][1] == pytest.approx(0.0)


def test_intersect_circles_separate_and_contained():
    assert intersect_circles(0.0, 0.0, 1.0, 10.0, 0.0, 1.0) == []
    assert intersect_circles(0.0, 0.0, 10.0, 1.0, 0.0, 1.0) == []


def test_timestamp_diff_signed():
    assert timestamp_diff(100, 250) == 150
    assert timestamp_diff(250, 100) == -150
    assert timestamp_diff(7, 7) == 0


def test_timestamp_diff_saturates():
    assert timestamp_diff(0, 2**64 - 1) == 2**63 - 1
    assert timestamp_diff(2**64 - 1, 0) == -(2**63)