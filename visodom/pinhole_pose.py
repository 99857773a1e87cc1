"""Pinhole projection driven by a flat parameter vector and a camera pose."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

__all__ = ["project_with_pose"]

_NUM_PARAMS = 8


def _rotate(q: Sequence[float], point: np.ndarray) -> np.ndarray:
    """Rotate by quaternion ``q`` given as ``(x, y, z, w)``; ``q`` need not be unit."""
    quat = np.asarray(q, dtype=float).ravel()
    if len(quat) != 4:
        raise ValueError("quaternion needs four components")
    norm = np.linalg.norm(quat)
    if norm == 0.0:
        raise ValueError("quaternion must be non-zero")
    x, y, z, w = quat / norm
    axis = np.array([x, y, z])
    uv = np.cross(axis, point)
    return point + 2.0 * w * uv + 2.0 * np.cross(axis, uv)


def project_with_pose(params, q, t, P) -> np.ndarray:
    """Project world point ``P`` into a pinhole camera with pose ``(q, t)``.

    ``params`` is ``[k1, k2, p1, p2, fx, fy, cx, cy]``; ``q`` is ``(x, y, z, w)``.
    """
    values = np.asarray(params, dtype=float).ravel()
    if len(values) != _NUM_PARAMS:
        raise ValueError(f"expected {_NUM_PARAMS} parameters, got {len(values)}")
    k1, k2, p1, p2, fx, fy, cx, cy = values

    point = _rotate(q, np.asarray(P, dtype=float)[:3]) + np.asarray(t, dtype=float)[:3]
    if point[2] == 0.0:
        raise ValueError("point lies in the camera's focal plane")

    u = point[0] / point[2]
    v = point[1] / point[2]
    rho_sqr = u * u + v * v
    radial = 1.0 + k1 * rho_sqr + k2 * rho_sqr * rho_sqr
    du = 2.0 * p1 * u * v + p2 * (rho_sqr + 2.0 * u * u)
    dv = p1 * (rho_sqr + 2.0 * v * v) + 2.0 * p2 * u * v
    u = radial * u + du
    v = radial * v + dv
    return np.array([fx * u + cx, fy * v + cy])