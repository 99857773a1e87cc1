"""Small numeric helpers: angles, rasterised lines and circles, circle fitting."""

from __future__ import annotations

import math
import random
import time
from collections.abc import Iterable, Sequence

__all__ = [
    "clamp",
    "hypot3",
    "normalize_theta",
    "d2r",
    "r2d",
    "sinc",
    "square",
    "cube",
    "random_uniform",
    "random_normal",
    "time_in_microseconds",
    "time_in_seconds",
    "bres_line",
    "bres_circle",
    "fit_circle",
    "intersect_circles",
    "timestamp_diff",
]

_LONG_MAX = 2**63 - 1
_LONG_MIN = -(2**63)

Point = tuple[float, float]
Cell = tuple[int, int]


def clamp(v, a, b):
    """Limit ``v`` to the closed interval ``[a, b]``."""
    return min(b, max(a, v))


def hypot3(x: float, y: float, z: float) -> float:
    """Euclidean norm of a 3-vector."""
    return math.sqrt(x * x + y * y + z * z)


def normalize_theta(theta: float) -> float:
    """Wrap an angle in radians into ``[-pi, pi]``."""
    norm = theta
    while norm < -math.pi:
        norm += 2.0 * math.pi
    while norm > math.pi:
        norm -= 2.0 * math.pi
    return norm


def d2r(deg: float) -> float:
    """Degrees to radians."""
    return deg / 180.0 * math.pi


def r2d(rad: float) -> float:
    """Radians to degrees."""
    return rad / math.pi * 180.0


def sinc(theta: float) -> float:
    """Unnormalised sinc, ``sin(theta) / theta``."""
    return math.sin(theta) / theta


def square(x):
    """``x`` squared."""
    return x * x


def cube(x):
    """``x`` cubed."""
    return x * x * x


def random_uniform(a: float, b: float) -> float:
    """Uniform sample between ``a`` and ``b``."""
    return random.random() * (b - a) + a


def random_normal(sigma: float) -> float:
    """Zero-mean normal sample with deviation ``sigma`` (Marsaglia polar method)."""
    while True:
        x1 = 2.0 * random_uniform(0.0, 1.0) - 1.0
        x2 = 2.0 * random_uniform(0.0, 1.0) - 1.0
        w = x1 * x1 + x2 * x2
        if 0.0 < w < 1.0:
            break
    w = math.sqrt((-2.0 * math.log(w)) / w)
    return x1 * w * sigma


def time_in_microseconds() -> int:
    """Wall-clock time in whole microseconds since the epoch."""
    return time.time_ns() // 1000


def time_in_seconds() -> float:
    """Wall-clock time in seconds since the epoch."""
    return time.time_ns() / 1e9


def bres_line(x0: int, y0: int, x1: int, y1: int) -> list[Cell]:
    """Cells crossed by the line from ``(x0, y0)`` to ``(x1, y1)`` (Bresenham)."""
    cells: list[Cell] = []
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy
    while True:
        cells.append((x0, y0))
        if x0 == x1 and y0 == y1:
            return cells
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy


def bres_circle(x0: int, y0: int, r: int) -> list[Cell]:
    """Cells covered by the filled circle of radius ``r`` around ``(x0, y0)``.

    Cells are ordered by x, then by y.
    """
    if r < 0:
        raise ValueError("radius must be non-negative")
    size = 2 * r + 1
    mask = [[False] * size for _ in range(size)]

    def mark(line: Iterable[Cell]) -> None:
        for cx, cy in line:
            mask[cx - x0 + r][cy - y0 + r] = True

    mark(bres_line(x0, y0 - r, x0, y0 + r))
    mark(bres_line(x0 - r, y0, x0 + r, y0))

    f = 1 - r
    ddf_x = 1
    ddf_y = -2 * r
    x = 0
    y = r
    while x < y:
        if f >= 0:
            y -= 1
            ddf_y += 2
            f += ddf_y
        x += 1
        ddf_x += 2
        f += ddf_x

        mark(bres_line(x0 - x, y0 + y, x0 + x, y0 + y))
        mark(bres_line(x0 - x, y0 - y, x0 + x, y0 - y))
        mark(bres_line(x0 - y, y0 + x, x0 + y, y0 + x))
        mark(bres_line(x0 - y, y0 - x, x0 + y, y0 - x))

    return [
        (i - r + x0, j - r + y0)
        for i, column in enumerate(mask)
        for j, filled in enumerate(column)
        if filled
    ]


def fit_circle(points: Sequence[Point]) -> tuple[float, float, float]:
    """Fit a circle by modified least squares; returns ``(cx, cy, radius)``."""
    n = len(points)
    sum_x = sum_y = sum_xx = sum_xy = sum_yy = 0.0
    sum_xxx = sum_xxy = sum_xyy = sum_yyy = 0.0
    for x, y in points:
        sum_x += x
        sum_y += y
        sum_xx += x * x
        sum_xy += x * y
        sum_yy += y * y
        sum_xxx += x * x * x
        sum_xxy += x * x * y
        sum_xyy += x * y * y
        sum_yyy += y * y * y

    a = n * sum_xx - sum_x * sum_x
    b = n * sum_xy - sum_x * sum_y
    c = n * sum_yy - sum_y * sum_y
    d = 0.5 * (n * sum_xyy - sum_x * sum_yy + n * sum_xxx - sum_x * sum_xx)
    e = 0.5 * (n * sum_xxy - sum_y * sum_xx + n * sum_yyy - sum_y * sum_yy)

    denom = a * c - b * b
    if n == 0 or denom == 0.0:
        raise ValueError("points do not determine a circle")

    center_x = (d * c - b * e) / denom
    center_y = (a * e - b * d) / denom
    radius = sum(math.hypot(x - center_x, y - center_y) for x, y in points) / n
    return center_x, center_y, radius


def intersect_circles(
    x1: float, y1: float, r1: float, x2: float, y2: float, r2: float
) -> list[Point]:
    """Intersection points of two circles: none, one (touching) or two."""
    d = math.hypot(x1 - x2, y1 - y2)
    if d > r1 + r2:
        return []
    if d < abs(r1 - r2):
        return []

    a = (r1 * r1 - r2 * r2 + d * d) / (2.0 * d)
    h = math.sqrt(max(r1 * r1 - a * a, 0.0))
    x3 = x1 + a * (x2 - x1) / d
    y3 = y1 + a * (y2 - y1) / d

    if h < 1e-10:
        return [(x3, y3)]
    return [
        (x3 + h * (y2 - y1) / d, y3 - h * (x2 - x1) / d),
        (x3 - h * (y2 - y1) / d, y3 + h * (x2 - x1) / d),
    ]


def timestamp_diff(t1: int, t2: int) -> int:
    """Signed ``t2 - t1`` for unsigned 64-bit stamps, saturated to a signed 64-bit range."""
    if t2 > t1:
        return min(t2 - t1, _LONG_MAX)
    d = t1 - t2
    if d > _LONG_MAX:
        return _LONG_MIN
    return -d