"""Feature depth from a lidar point cloud, via a range image and local plane fits."""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "depth_color",
    "pose_matrix",
    "transform_points",
    "downsample_range_image",
    "estimate_feature_depths",
]

DEFAULT_NUM_BINS = 360
_MIN_SPHERE_POINTS = 10
_MAX_DEPTH_SPREAD = 2.0
_MIN_PLANE_SCALE = 0.5
_MIN_VALID_DEPTH = 3.0


def depth_color(p: float, np: float) -> tuple[float, float, float]:
    """Rainbow colour ``(r, g, b)`` in 0..255 for value ``p`` on a scale of ``np``."""
    x = p * (6.0 / np)
    r = g = b = 0.0
    if 0 <= x <= 1 or 5 <= x <= 6:
        r = 1.0
    elif 4 <= x <= 5:
        r = x - 4
    elif 1 <= x <= 2:
        r = 1.0 - (x - 1)

    if 1 <= x <= 3:
        g = 1.0
    elif 0 <= x <= 1:
        g = x
    elif 3 <= x <= 4:
        g = 1.0 - (x - 3)

    if 3 <= x <= 5:
        b = 1.0
    elif 2 <= x <= 3:
        b = x - 2
    elif 5 <= x <= 6:
        b = 1.0 - (x - 5)
    return r * 255.0, g * 255.0, b * 255.0


def pose_matrix(x: float, y: float, z: float, roll: float, pitch: float, yaw: float) -> np.ndarray:
    """4x4 homogeneous transform with rotation ``Rz(yaw) Ry(pitch) Rx(roll)``."""
    cr, sr = math.cos(roll), math.sin(roll)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cy, sy = math.cos(yaw), math.sin(yaw)
    rx = np.array([[1.0, 0.0, 0.0], [0.0, cr, -sr], [0.0, sr, cr]])
    ry = np.array([[cp, 0.0, sp], [0.0, 1.0, 0.0], [-sp, 0.0, cp]])
    rz = np.array([[cy, -sy, 0.0], [sy, cy, 0.0], [0.0, 0.0, 1.0]])
    matrix = np.eye(4)
    matrix[:3, :3] = rz @ ry @ rx
    matrix[:3, 3] = (x, y, z)
    return matrix


def _as_cloud(points) -> np.ndarray:
    cloud = np.asarray(points, dtype=float)
    if cloud.size == 0:
        return cloud.reshape(0, cloud.shape[1] if cloud.ndim == 2 else 4)
    if cloud.ndim != 2 or cloud.shape[1] < 3:
        raise ValueError("points must be an (N, 3) or (N, 4) array")
    return cloud


def transform_points(points, matrix) -> np.ndarray:
    """Apply a 4x4 transform to the xyz columns; further columns are kept as they are."""
    cloud = _as_cloud(points)
    m = np.asarray(matrix, dtype=float)
    out = cloud.copy()
    out[:, :3] = cloud[:, :3] @ m[:3, :3].T + m[:3, 3]
    return out


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def downsample_range_image(cloud, num_bins: int = DEFAULT_NUM_BINS) -> np.ndarray:
    """Keep the closest point per cell of a forward-facing range image.

    Points behind the sensor or outside a steep viewing cone are dropped; the result
    is ordered by image row, then column.
    """
    pts = _as_cloud(cloud)
    if len(pts) == 0:
        return pts
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]
    bin_res = 180.0 / num_bins
    with np.errstate(divide="ignore", invalid="ignore"):
        keep = ~((x < 0) | (np.abs(y / x) > 10) | (np.abs(z / x) > 10))
        row_angle = np.degrees(np.arctan2(z, np.sqrt(x * x + y * y))) + 90.0
        col_angle = np.degrees(np.arctan2(x, y))
        row = _round_half_away(row_angle / bin_res)
        col = _round_half_away(col_angle / bin_res)
    keep &= (row >= 0) & (row < num_bins) & (col >= 0) & (col < num_bins)

    index = np.nonzero(keep)[0]
    if len(index) == 0:
        return pts[:0]
    cell = (row[index] * num_bins + col[index]).astype(np.int64)
    dist = np.sqrt(x[index] ** 2 + y[index] ** 2 + z[index] ** 2)
    order = np.lexsort((index, dist, cell))
    sorted_cells = cell[order]
    first = np.concatenate([[True], sorted_cells[1:] != sorted_cells[:-1]])
    return pts[index[order][first]]


def estimate_feature_depths(features, cloud, num_bins: int = DEFAULT_NUM_BINS) -> np.ndarray:
    """Depth of each normalised camera feature ``(x, y, 1)`` from a local lidar cloud.

    The cloud is in the body frame (x forward, y left, z up). Features without a
    reliable depth, or with a depth of at most 3, get ``-1``.
    """
    feats = np.asarray(features, dtype=float).reshape(-1, 3)
    depths = np.full(len(feats), -1.0)
    pts = _as_cloud(cloud)
    if len(pts) == 0 or len(feats) == 0:
        return depths

    local = downsample_range_image(pts, num_bins)
    xyz = local[:, :3]
    ranges = np.linalg.norm(xyz, axis=1)
    if len(xyz) < _MIN_SPHERE_POINTS:
        return depths
    with np.errstate(divide="ignore", invalid="ignore"):
        unit = xyz / ranges[:, None]
        directions = feats / np.linalg.norm(feats, axis=1)[:, None]
    sphere = np.column_stack([directions[:, 2], -directions[:, 0], -directions[:, 1]])

    bin_res = 180.0 / num_bins
    threshold = (math.sin(math.radians(bin_res)) * 5.0) ** 2

    for i, ray in enumerate(sphere):
        sq_dist = ((unit - ray) ** 2).sum(axis=1)
        nearest = np.argsort(sq_dist, kind="stable")[:3]
        if not sq_dist[nearest[2]] < threshold:
            continue
        r = ranges[nearest]
        a, b, c = unit[nearest] * r[:, None]
        normal = np.cross(a - b, b - c)
        with np.errstate(divide="ignore", invalid="ignore"):
            s = float(np.dot(normal, a) / np.dot(normal, ray))
        low, high = float(r.min()), float(r.max())
        if high - low > _MAX_DEPTH_SPREAD or s <= _MIN_PLANE_SCALE:
            continue
        if s > high:
            s = high
        elif s < low:
            s = low
        depth = ray[0] * s
        if depth > _MIN_VALID_DEPTH:
            depths[i] = depth
    return depths