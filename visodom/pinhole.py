"""Pinhole camera model with radial-tangential distortion."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

import numpy as np

from .calib_yaml import ModelType, PinholeParameters

__all__ = ["PinholeCamera"]

_PARAMETER_COUNT = 8
_UNDISTORT_ITERATIONS = 8


def _find_homography(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """Plane-to-image homography from point pairs (normalised DLT), scaled so H[2,2] = 1."""
    if len(src) < 4 or len(src) != len(dst):
        raise ValueError("a homography needs at least four matching point pairs")

    def normaliser(pts: np.ndarray) -> np.ndarray:
        mean = pts.mean(axis=0)
        spread = np.sqrt(((pts - mean) ** 2).sum(axis=1)).mean()
        scale = np.sqrt(2.0) / spread if spread > 0 else 1.0
        return np.array(
            [[scale, 0.0, -scale * mean[0]], [0.0, scale, -scale * mean[1]], [0.0, 0.0, 1.0]]
        )

    t_src = normaliser(src)
    t_dst = normaliser(dst)
    ones = np.ones((len(src), 1))
    s = (np.hstack([src, ones]) @ t_src.T)[:, :2]
    d = (np.hstack([dst, ones]) @ t_dst.T)[:, :2]

    x, y = s[:, 0], s[:, 1]
    u, v = d[:, 0], d[:, 1]
    zeros = np.zeros_like(x)
    one = np.ones_like(x)
    rows_u = np.column_stack([-x, -y, -one, zeros, zeros, zeros, u * x, u * y, u])
    rows_v = np.column_stack([zeros, zeros, zeros, -x, -y, -one, v * x, v * y, v])
    system = np.vstack([rows_u, rows_v])

    _, _, vt = np.linalg.svd(system)
    h = vt[-1].reshape(3, 3)
    homography = np.linalg.inv(t_dst) @ h @ t_src
    return homography / homography[2, 2]


class PinholeCamera:
    """Projection between image pixels and rays for a pinhole camera."""

    def __init__(self, params: PinholeParameters | None = None) -> None:
        if params is None:
            self._params = PinholeParameters()
            self._inv_k = (1.0, 0.0, 1.0, 0.0)
            self._no_distortion = True
        else:
            self.parameters = params

    @property
    def parameters(self) -> PinholeParameters:
        """A copy of the camera's intrinsics."""
        return replace(self._params)

    @parameters.setter
    def parameters(self, params: PinholeParameters) -> None:
        if params.fx == 0.0 or params.fy == 0.0:
            raise ValueError("focal lengths fx and fy must be non-zero")
        self._params = replace(params)
        self._no_distortion = all(
            value == 0.0 for value in (params.k1, params.k2, params.p1, params.p2)
        )
        self._inv_k = (
            1.0 / params.fx,
            -params.cx / params.fx,
            1.0 / params.fy,
            -params.cy / params.fy,
        )

    @property
    def model_type(self) -> ModelType:
        return ModelType.PINHOLE

    @property
    def camera_name(self) -> str:
        return self._params.camera_name

    @property
    def image_width(self) -> int:
        return self._params.image_width

    @property
    def image_height(self) -> int:
        return self._params.image_height

    def __str__(self) -> str:
        return str(self._params)

    def _distort(self, x, y):
        prm = self._params
        mx2 = x * x
        my2 = y * y
        mxy = x * y
        rho2 = mx2 + my2
        rad = prm.k1 * rho2 + prm.k2 * rho2 * rho2
        dx = x * rad + 2.0 * prm.p1 * mxy + prm.p2 * (rho2 + 2.0 * mx2)
        dy = y * rad + 2.0 * prm.p2 * mxy + prm.p1 * (rho2 + 2.0 * my2)
        return dx, dy

    def _to_pixels(self, x, y):
        if not self._no_distortion:
            dx, dy = self._distort(x, y)
            x = x + dx
            y = y + dy
        prm = self._params
        return prm.fx * x + prm.cx, prm.fy * y + prm.cy

    def lift_projective(self, p: Sequence[float]) -> np.ndarray:
        """Lift an image point to its projective ray ``(x, y, 1)``."""
        inv11, inv13, inv22, inv23 = self._inv_k
        mx_d = inv11 * float(p[0]) + inv13
        my_d = inv22 * float(p[1]) + inv23
        mx_u, my_u = mx_d, my_d
        if not self._no_distortion:
            for _ in range(_UNDISTORT_ITERATIONS):
                dx, dy = self._distort(mx_u, my_u)
                mx_u = mx_d - dx
                my_u = my_d - dy
        return np.array([mx_u, my_u, 1.0])

    def lift_sphere(self, p: Sequence[float]) -> np.ndarray:
        """Lift an image point onto the unit sphere."""
        ray = self.lift_projective(p)
        return ray / np.linalg.norm(ray)

    def space_to_plane(self, P: Sequence[float]) -> np.ndarray:
        """Project a 3D point onto the image plane."""
        x = float(P[0]) / float(P[2])
        y = float(P[1]) / float(P[2])
        return np.array(self._to_pixels(x, y))

    def undist_to_plane(self, p_u: Sequence[float]) -> np.ndarray:
        """Project an undistorted point of the normalised plane to pixels."""
        return np.array(self._to_pixels(float(p_u[0]), float(p_u[1])))

    def distortion(self, p_u: Sequence[float]) -> np.ndarray:
        """Distortion offset ``d_u`` such that the distorted point is ``p_u + d_u``."""
        return np.array(self._distort(float(p_u[0]), float(p_u[1])))

    def distortion_jacobian(self, p_u: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
        """Distortion offset and the 2x2 Jacobian of the distorted point."""
        prm = self._params
        x, y = float(p_u[0]), float(p_u[1])
        d_u = np.array(self._distort(x, y))

        mx2 = x * x
        my2 = y * y
        rho2 = mx2 + my2
        rad = prm.k1 * rho2 + prm.k2 * rho2 * rho2
        dxdmx = (
            1.0 + rad + prm.k1 * 2.0 * mx2 + prm.k2 * rho2 * 4.0 * mx2
            + 2.0 * prm.p1 * y + 6.0 * prm.p2 * x
        )
        dydmx = (
            prm.k1 * 2.0 * x * y + prm.k2 * 4.0 * rho2 * x * y
            + prm.p1 * 2.0 * x + 2.0 * prm.p2 * y
        )
        dxdmy = dydmx
        dydmy = (
            1.0 + rad + prm.k1 * 2.0 * my2 + prm.k2 * rho2 * 4.0 * my2
            + 6.0 * prm.p1 * y + 2.0 * prm.p2 * x
        )
        jacobian = np.array([[dxdmx, dxdmy], [dydmx, dydmy]])
        return d_u, jacobian

    def init_undistort_map(self, scale: float = 1.0) -> tuple[np.ndarray, np.ndarray]:
        """Pixel maps ``(map_x, map_y)`` from an undistorted image to this camera's image."""
        inv11, inv13, inv22, inv23 = self._inv_k
        u, v = np.meshgrid(
            np.arange(self._params.image_width, dtype=float),
            np.arange(self._params.image_height, dtype=float),
        )
        mx_u = inv11 / scale * u + inv13 / scale
        my_u = inv22 / scale * v + inv23 / scale
        map_x, map_y = self._to_pixels(mx_u, my_u)
        return map_x.astype(np.float32), map_y.astype(np.float32)

    def init_undistort_rectify_map(
        self,
        fx: float = -1.0,
        fy: float = -1.0,
        image_size: tuple[int, int] = (0, 0),
        cx: float = -1.0,
        cy: float = -1.0,
        rmat=None,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Rectification maps and the rectified camera matrix ``(map_x, map_y, K_rect)``.

        ``image_size`` is ``(width, height)``; ``(0, 0)`` means the camera's own size.
        A focal length or centre of ``-1`` falls back to the camera's value or the image centre.
        """
        width, height = int(image_size[0]), int(image_size[1])
        if (width, height) == (0, 0):
            width, height = self._params.image_width, self._params.image_height

        rotation = np.eye(3) if rmat is None else np.asarray(rmat, dtype=np.float32)
        rotation_inv = np.linalg.inv(rotation.astype(float))

        if cx == -1.0 or cy == -1.0:
            k_rect = np.array(
                [[fx, 0.0, width // 2], [0.0, fy, height // 2], [0.0, 0.0, 1.0]]
            )
        else:
            k_rect = np.array([[fx, 0.0, cx], [0.0, fy, cy], [0.0, 0.0, 1.0]])
        if fx == -1.0 or fy == -1.0:
            k_rect[0, 0] = self._params.fx
            k_rect[1, 1] = self._params.fy
        k_rect = k_rect.astype(np.float32)

        u, v = np.meshgrid(np.arange(width, dtype=float), np.arange(height, dtype=float))
        pixels = np.stack([u.ravel(), v.ravel(), np.ones(u.size)])
        rays = rotation_inv @ np.linalg.inv(k_rect.astype(float)) @ pixels
        map_x, map_y = self._to_pixels(rays[0] / rays[2], rays[1] / rays[2])
        return (
            map_x.reshape(height, width).astype(np.float32),
            map_y.reshape(height, width).astype(np.float32),
            k_rect,
        )

    def estimate_intrinsics(self, board_size, object_points, image_points) -> None:
        """Initial focal lengths from planar target views (principal point at image centre)."""
        params = self.parameters
        params.k1 = params.k2 = params.p1 = params.p2 = 0.0
        cx = params.image_width / 2.0
        cy = params.image_height / 2.0
        params.cx = cx
        params.cy = cy

        rows_a: list[list[float]] = []
        rows_b: list[float] = []
        for obj, img in zip(object_points, image_points):
            plane = np.asarray(obj, dtype=float)[:, :2]
            pixels = np.asarray(img, dtype=float)[:, :2]
            h = _find_homography(plane, pixels)
            h[0] -= h[2] * cx
            h[1] -= h[2] * cy

            col_h = h[:, 0]
            col_v = h[:, 1]
            d1 = (col_h + col_v) * 0.5
            d2 = (col_h - col_v) * 0.5
            col_h = col_h / np.linalg.norm(col_h)
            col_v = col_v / np.linalg.norm(col_v)
            d1 = d1 / np.linalg.norm(d1)
            d2 = d2 / np.linalg.norm(d2)

            rows_a.append([col_h[0] * col_v[0], col_h[1] * col_v[1]])
            rows_a.append([d1[0] * d2[0], d1[1] * d2[1]])
            rows_b.append(-col_h[2] * col_v[2])
            rows_b.append(-d1[2] * d2[2])

        if not rows_a:
            raise ValueError("at least one view is needed")
        a = np.array(rows_a)
        b = np.array(rows_b)
        f = np.linalg.solve(a.T @ a, a.T @ b)

        params.fx = float(np.sqrt(abs(1.0 / f[0])))
        params.fy = float(np.sqrt(abs(1.0 / f[1])))
        self.parameters = params

    def parameter_count(self) -> int:
        """Number of values in the flat parameter vector."""
        return _PARAMETER_COUNT

    def read_parameters(self, values: Sequence[float]) -> None:
        """Set intrinsics from ``[k1, k2, p1, p2, fx, fy, cx, cy]``."""
        if len(values) != self.parameter_count():
            raise ValueError(f"expected {self.parameter_count()} parameters, got {len(values)}")
        k1, k2, p1, p2, fx, fy, cx, cy = (float(v) for v in values)
        self.parameters = replace(
            self._params, k1=k1, k2=k2, p1=p1, p2=p2, fx=fx, fy=fy, cx=cx, cy=cy
        )

    def write_parameters(self) -> list[float]:
        """Intrinsics as ``[k1, k2, p1, p2, fx, fy, cx, cy]``."""
        prm = self._params
        return [prm.k1, prm.k2, prm.p1, prm.p2, prm.fx, prm.fy, prm.cx, prm.cy]