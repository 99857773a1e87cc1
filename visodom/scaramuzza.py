"""Omnidirectional camera in the Scaramuzza polynomial model."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

import numpy as np
from numpy.polynomial import polynomial as _poly

from .calib_yaml import (
    SCARAMUZZA_INV_POLY_SIZE,
    SCARAMUZZA_POLY_SIZE,
    ModelType,
    ScaramuzzaParameters,
)

__all__ = ["ScaramuzzaCamera", "SCARAMUZZA_CAMERA_NUM_PARAMS"]

SCARAMUZZA_CAMERA_NUM_PARAMS = SCARAMUZZA_POLY_SIZE + SCARAMUZZA_INV_POLY_SIZE + 2 + 3


class ScaramuzzaCamera:
    """Projection between image pixels and rays for an omnidirectional camera."""

    def __init__(self, params: ScaramuzzaParameters | None = None) -> None:
        if params is None:
            self._params = ScaramuzzaParameters()
            self._inv_scale = 0.0
        else:
            self.parameters = params

    @property
    def parameters(self) -> ScaramuzzaParameters:
        """A copy of the camera's intrinsics."""
        return replace(self._params)

    @parameters.setter
    def parameters(self, params: ScaramuzzaParameters) -> None:
        denom = params.C - params.D * params.E
        if denom == 0.0:
            raise ValueError("affine parameters are singular: C - D * E is zero")
        self._params = replace(params)
        self._inv_scale = 1.0 / denom

    @property
    def model_type(self) -> ModelType:
        return ModelType.SCARAMUZZA

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

    def _project(self, x, y, z):
        prm = self._params
        norm = np.hypot(x, y)
        theta = np.arctan2(-z, norm)
        rho = _poly.polyval(theta, prm.inv_poly)
        xn = x / norm * rho
        yn = y / norm * rho
        u = xn * prm.C + yn * prm.D + prm.center_x
        v = xn * prm.E + yn + prm.center_y
        return u, v

    def lift_projective(self, p: Sequence[float]) -> np.ndarray:
        """Lift an image point to a (non-normalised) ray through it."""
        prm = self._params
        xc0 = float(p[0]) - prm.center_x
        xc1 = float(p[1]) - prm.center_y
        xa0 = self._inv_scale * (xc0 - prm.D * xc1)
        xa1 = self._inv_scale * (-prm.E * xc0 + prm.C * xc1)
        phi = float(np.hypot(xa0, xa1))
        z = float(_poly.polyval(phi, prm.poly))
        return np.array([xc0, xc1, -z])

    def lift_sphere(self, p: Sequence[float]) -> np.ndarray:
        """Lift an image point onto the unit sphere."""
        ray = self.lift_projective(p)
        return ray / np.linalg.norm(ray)

    def space_to_plane(self, P: Sequence[float]) -> np.ndarray:
        """Project a 3D point onto the image plane."""
        x, y, z = float(P[0]), float(P[1]), float(P[2])
        if x == 0.0 and y == 0.0:
            raise ValueError("point lies on the optical axis")
        u, v = self._project(x, y, z)
        return np.array([float(u), float(v)])

    def undist_to_plane(self, p_u: Sequence[float]) -> np.ndarray:
        """Project a point of the normalised plane ``(x, y, 1)`` to pixels."""
        return self.space_to_plane((float(p_u[0]), float(p_u[1]), 1.0))

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
        A negative centre falls back to the image centre; focal lengths are required.
        """
        width, height = int(image_size[0]), int(image_size[1])
        if (width, height) == (0, 0):
            width, height = self._params.image_width, self._params.image_height

        k_rect = np.array(
            [
                [fx, 0.0, width // 2 if cx < 0 else cx],
                [0.0, fy, height // 2 if cy < 0 else cy],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float32,
        )
        if fx < 0 or fy < 0:
            raise ValueError("focal length must be specified")

        rotation = np.eye(3) if rmat is None else np.asarray(rmat, dtype=np.float32)
        rotation_inv = np.linalg.inv(rotation.astype(float))

        u, v = np.meshgrid(np.arange(width, dtype=float), np.arange(height, dtype=float))
        pixels = np.stack([u.ravel(), v.ravel(), np.ones(u.size)])
        rays = rotation_inv @ np.linalg.inv(k_rect.astype(float)) @ pixels
        with np.errstate(divide="ignore", invalid="ignore"):
            map_x, map_y = self._project(rays[0], rays[1], rays[2])
        return (
            np.asarray(map_x).reshape(height, width).astype(np.float32),
            np.asarray(map_y).reshape(height, width).astype(np.float32),
            k_rect,
        )

    def parameter_count(self) -> int:
        """Number of values in the flat parameter vector."""
        return SCARAMUZZA_CAMERA_NUM_PARAMS

    def read_parameters(self, values: Sequence[float]) -> None:
        """Set intrinsics from ``[C, D, E, cx, cy, poly..., inv_poly...]``."""
        if len(values) != self.parameter_count():
            raise ValueError(f"expected {self.parameter_count()} parameters, got {len(values)}")
        vals = [float(v) for v in values]
        start_inv = 5 + SCARAMUZZA_POLY_SIZE
        self.parameters = replace(
            self._params,
            C=vals[0],
            D=vals[1],
            E=vals[2],
            center_x=vals[3],
            center_y=vals[4],
            poly=vals[5:start_inv],
            inv_poly=vals[start_inv:],
        )

    def write_parameters(self) -> list[float]:
        """Intrinsics as ``[C, D, E, cx, cy, poly..., inv_poly...]``."""
        prm = self._params
        return [
            prm.C,
            prm.D,
            prm.E,
            prm.center_x,
            prm.center_y,
            *prm.poly,
            *prm.inv_poly,
        ]