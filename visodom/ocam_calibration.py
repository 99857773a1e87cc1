"""Initial intrinsic estimate for omnidirectional cameras from planar target views."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from numpy.polynomial import polynomial as _poly

from .calib_yaml import SCARAMUZZA_POLY_SIZE, ScaramuzzaParameters
from .scaramuzza import ScaramuzzaCamera

__all__ = ["polyfit", "estimate_intrinsics"]

_INV_POLY_FIT_ORDER = 4
_INV_POLY_STEP = 0.1


def polyfit(x, y, order: int) -> np.ndarray:
    """Least-squares polynomial coefficients, lowest power first."""
    xs = np.asarray(x, dtype=float).ravel()
    ys = np.asarray(y, dtype=float).ravel()
    if order <= 0:
        raise ValueError("polynomial order must be positive")
    if len(xs) <= order:
        raise ValueError("more samples than the polynomial order are needed")
    if len(xs) != len(ys):
        raise ValueError("x and y must have the same length")
    vander = np.vander(xs, order + 1, increasing=True)
    coeffs, *_ = np.linalg.lstsq(vander, ys, rcond=None)
    return coeffs


def _extrinsics(obj: np.ndarray, img: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Rotation and translation of one target view (up to the unknown t3)."""
    X, Y = obj[:, 0], obj[:, 1]
    u, v = img[:, 0], img[:, 1]
    M = np.column_stack([-v * X, -v * Y, u * X, u * Y, -v, u])
    _, _, vt = np.linalg.svd(M, full_matrices=True)
    h = -vt[5]
    sr11, sr12, sr21, sr22, st1, st2 = h

    aa = (sr11 * sr12 + sr21 * sr22) ** 2
    bb = sr11**2 + sr21**2
    cc = sr12**2 + sr22**2
    root = math.sqrt((cc - bb) ** 2 + 4.0 * aa)
    squared = [s for s in ((-(cc - bb) + root) / 2.0, (-(cc - bb) - root) / 2.0) if s > 0]
    if not squared:
        raise ValueError("cannot recover the target rotation from this view")

    pairs = []
    for sr32_sq in squared:
        for sign in (-1.0, 1.0):
            sr32 = sign * math.sqrt(sr32_sq)
            pairs.append((-(sr11 * sr12 + sr21 * sr22) / sr32, sr32))

    h_values = []
    for sr31, sr32 in pairs:
        lam = 1.0 / math.sqrt(sr11 * sr11 + sr21 * sr21 + sr31 * sr31)
        H = np.array([[sr11, sr12, st1], [sr21, sr22, st2], [sr31, sr32, 0.0]])
        h_values.extend([lam * H, -lam * H])

    rou = np.sqrt(u * u + v * v)
    candidates = []
    for H in h_values:
        r11, r12 = H[0, 0], H[0, 1]
        r21, r22 = H[1, 0], H[1, 1]
        r31, r32 = H[2, 0], H[2, 1]
        t1, t2 = H[0, 0], H[1, 0]
        a = r21 * X + r22 * Y + t2
        b = v * (r31 * X + r32 * Y)
        c = r11 * X + r12 * Y + t1
        d = u * (r31 * X + r32 * Y)
        rows = np.empty((2 * len(X), 4))
        rows[0::2] = np.column_stack([a, a * rou, a * rou * rou, -v])
        rows[1::2] = np.column_stack([c, c * rou, c * rou * rou, -u])
        rhs = np.empty(2 * len(X))
        rhs[0::2] = b
        rhs[1::2] = d
        sol, *_ = np.linalg.lstsq(rows, rhs, rcond=None)
        if sol[2] > 0 and sol[3] > 0:
            candidates.append(H)

    if len(candidates) != 1:
        raise ValueError(f"expected one valid pose candidate, found {len(candidates)}")
    H = candidates[0]
    R = np.column_stack([H[:, 0], H[:, 1], np.cross(H[:, 0], H[:, 1])])
    return R, H[:, 2].copy()


def estimate_intrinsics(
    camera: ScaramuzzaCamera,
    board_size: Sequence[int],
    object_points,
    image_points,
) -> ScaramuzzaParameters:
    """Estimate polynomial intrinsics from chessboard views and apply them to ``camera``.

    ``board_size`` is ``(width, height)`` in corners; object points lie on the plane z = 0.
    Returns the parameters that were set.
    """
    if len(image_points) == 0:
        raise ValueError("at least one view is needed")
    if len(object_points) != len(image_points):
        raise ValueError("object and image point lists differ in length")
    corners = int(board_size[0]) * int(board_size[1])

    views = []
    for obj_pts, img_pts in zip(object_points, image_points):
        obj = np.asarray(obj_pts, dtype=float).reshape(-1, 3)
        img = np.asarray(img_pts, dtype=float).reshape(-1, 2)
        if len(obj) != len(img):
            raise ValueError("a view has different numbers of object and image points")
        if len(obj) != corners:
            raise ValueError("a view does not have board width * height points")
        if np.any(obj[:, 2] != 0.0):
            raise ValueError("object points must lie on the plane z = 0")
        views.append((obj, img))

    poses = [_extrinsics(obj, img) for obj, img in views]

    n_views = len(views)
    n_poly = SCARAMUZZA_POLY_SIZE - 1
    A = np.zeros((2 * n_views * corners, n_poly + n_views))
    B = np.zeros(2 * n_views * corners)
    for i, ((obj, img), (R, T)) in enumerate(zip(views, poses)):
        X, Y = obj[:, 0], obj[:, 1]
        u, v = img[:, 0], img[:, 1]
        a = R[1, 0] * X + R[1, 1] * Y + T[1]
        b = v * (R[2, 0] * X + R[2, 1] * Y)
        c = R[0, 0] * X + R[0, 1] * Y + T[0]
        d = u * (R[2, 0] * X + R[2, 1] * Y)
        rou = np.sqrt(u * u + v * v)
        base = 2 * i * corners
        even = slice(base, base + 2 * corners, 2)
        odd = slice(base + 1, base + 2 * corners, 2)
        for k in range(1, n_poly + 1):
            power = np.ones_like(rou) if k == 1 else rou**k
            A[even, k - 1] = a * power
            A[odd, k - 1] = c * power
        A[even, n_poly + i] = -v
        A[odd, n_poly + i] = -u
        B[even] = b
        B[odd] = d

    sol, *_ = np.linalg.lstsq(A, B, rcond=None)
    poly = [float(sol[0]), 0.0, *(float(s) for s in sol[1:n_poly])]

    params = camera.parameters
    params.C = 1.0
    params.D = 0.0
    params.E = 0.0
    params.center_x = params.image_width / 2.0
    params.center_y = params.image_height / 2.0
    params.poly = poly

    limit = (params.image_width + params.image_height) // 2
    rous = []
    rou = 0.0
    while rou <= limit:
        rous.append(rou)
        rou += _INV_POLY_STEP
    rous_arr = np.array(rous)
    zs = _poly.polyval(rous_arr, poly)
    thetas = np.arctan2(-zs, rous_arr)
    inv = polyfit(thetas, rous_arr, _INV_POLY_FIT_ORDER)
    inv_poly = list(params.inv_poly)
    inv_poly[: _INV_POLY_FIT_ORDER + 1] = [float(c) for c in inv]
    params.inv_poly = inv_poly

    camera.parameters = params
    return camera.parameters