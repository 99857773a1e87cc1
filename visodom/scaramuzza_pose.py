"""Scaramuzza projections driven by a flat parameter vector and a camera pose."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.polynomial import polynomial as _poly

from .calib_yaml import SCARAMUZZA_INV_POLY_SIZE, SCARAMUZZA_POLY_SIZE

__all__ = ["space_to_plane_with_pose", "space_to_sphere", "lift_to_sphere", "sphere_to_plane"]

_NUM_PARAMS = SCARAMUZZA_POLY_SIZE + SCARAMUZZA_INV_POLY_SIZE + 5
_INV_START = 5 + SCARAMUZZA_POLY_SIZE


def _params(params: Sequence[float]) -> np.ndarray:
    values = np.asarray(params, dtype=float).ravel()
    if len(values) != _NUM_PARAMS:
        raise ValueError(f"expected {_NUM_PARAMS} parameters, got {len(values)}")
    return values


def _rotate(q: Sequence[float], point: np.ndarray) -> np.ndarray:
    """Rotate by quaternion ``q`` given as ``(x, y, z, w)``; ``q`` need not be unit."""
    quat = np.asarray(q, dtype=float)
    norm = np.linalg.norm(quat)
    if norm == 0.0:
        raise ValueError("quaternion must be non-zero")
    x, y, z, w = quat / norm
    u = np.array([x, y, z])
    uv = np.cross(u, point)
    return point + 2.0 * w * uv + 2.0 * np.cross(u, uv)


def _to_camera(q, t, P) -> np.ndarray:
    return _rotate(q, np.asarray(P, dtype=float)[:3]) + np.asarray(t, dtype=float)[:3]


def _project(values: np.ndarray, point: np.ndarray) -> np.ndarray:
    c, d, e, cx, cy = values[:5]
    norm = float(np.hypot(point[0], point[1]))
    if norm == 0.0:
        raise ValueError("point lies on the optical axis")
    theta = np.arctan2(-point[2], norm)
    rho = _poly.polyval(theta, values[_INV_START:])
    xn0 = point[0] / norm * rho
    xn1 = point[1] / norm * rho
    return np.array([xn0 * c + xn1 * d + cx, xn0 * e + xn1 + cy])


def space_to_plane_with_pose(params, q, t, P) -> np.ndarray:
    """Project world point ``P`` into the image of a camera with pose ``(q, t)``."""
    values = _params(params)
    return _project(values, _to_camera(q, t, P))


def space_to_sphere(params, q, t, P) -> np.ndarray:
    """Direction of world point ``P`` on the unit sphere of a camera with pose ``(q, t)``."""
    _params(params)
    point = _to_camera(q, t, P)
    norm = np.linalg.norm(point)
    if norm == 0.0:
        raise ValueError("point coincides with the camera centre")
    return point / norm


def lift_to_sphere(params, p) -> np.ndarray:
    """Lift image point ``p`` onto the unit sphere; the linear polynomial term is ignored."""
    values = _params(params)
    c, d, e, cx, cy = values[:5]
    poly = values[5:_INV_START].copy()
    poly[1] = 0.0
    xc0 = float(p[0]) - cx
    xc1 = float(p[1]) - cy
    inv_scale = 1.0 / (c - d * e)
    xa0 = inv_scale * (xc0 - d * xc1)
    xa1 = inv_scale * (-e * xc0 + c * xc1)
    phi = float(np.hypot(xa0, xa1))
    z = float(_poly.polyval(phi, poly))
    point = np.array([xc0, xc1, -z])
    return point / np.linalg.norm(point)


def sphere_to_plane(params, P) -> np.ndarray:
    """Project a camera-frame point (usually on the unit sphere) into the image."""
    values = _params(params)
    return _project(values, np.asarray(P, dtype=float)[:3])