"""Camera calibration files: reading and writing the YAML calibration format."""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml

__all__ = [
    "CalibrationFormatError",
    "ModelType",
    "load_calibration",
    "dump_calibration",
    "PinholeParameters",
    "ScaramuzzaParameters",
    "SCARAMUZZA_POLY_SIZE",
    "SCARAMUZZA_INV_POLY_SIZE",
]

PathLike = Union[str, "os.PathLike[str]"]

SCARAMUZZA_POLY_SIZE = 5
SCARAMUZZA_INV_POLY_SIZE = 20

_HEADER = "%YAML:1.0\n---\n"


class CalibrationFormatError(ValueError):
    """A calibration file cannot be parsed or describes another camera model."""


class ModelType(enum.Enum):
    """Camera projection models with a calibration file layout."""

    PINHOLE = "PINHOLE"
    SCARAMUZZA = "SCARAMUZZA"


class _CalibrationLoader(yaml.SafeLoader):
    """Safe loader that also accepts the ``!!opencv-*`` tags of calibration files."""


def _construct_opencv_node(loader: yaml.SafeLoader, _suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node, deep=True)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_scalar(node)


_CalibrationLoader.add_multi_constructor("tag:yaml.org,2002:opencv-", _construct_opencv_node)


def _strip_directive(text: str) -> str:
    lines = text.splitlines(keepends=True)
    while lines and lines[0].lstrip().startswith("%YAML:"):
        lines.pop(0)
    return "".join(lines)


def load_calibration(path: PathLike) -> dict[str, Any]:
    """Read a calibration file into a dictionary.

    The ``%YAML:1.0`` header line used by these files is accepted.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.load(_strip_directive(text), Loader=_CalibrationLoader)
    except yaml.YAMLError as exc:
        raise CalibrationFormatError(f"cannot parse {os.fspath(path)}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CalibrationFormatError(f"{os.fspath(path)} does not hold a mapping")
    return data


def dump_calibration(path: PathLike, data: Mapping[str, Any]) -> None:
    """Write ``data`` as a calibration file, keys in the given order."""
    body = yaml.safe_dump(dict(data), sort_keys=False, default_flow_style=False)
    Path(path).write_text(_HEADER + body, encoding="utf-8")


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise CalibrationFormatError(f"{key!r} must be a mapping")
    return value


def _as_float(value: Any, key: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float)):
        return float(value)
    raise CalibrationFormatError(f"{key!r} must be a number, got {value!r}")


def _as_int(value: Any, key: str) -> int:
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        return round(value)
    raise CalibrationFormatError(f"{key!r} must be a number, got {value!r}")


def _as_name(value: Any) -> str:
    return "" if value is None else str(value)


def _check_model(data: Mapping[str, Any], accepts) -> None:
    model = data.get("model_type")
    if model is not None and not accepts(str(model)):
        raise CalibrationFormatError(f"unexpected model_type {model!r}")


@dataclass
class PinholeParameters:
    """Intrinsics of a pinhole camera with radial-tangential distortion."""

    camera_name: str = ""
    image_width: int = 0
    image_height: int = 0
    k1: float = 0.0
    k2: float = 0.0
    p1: float = 0.0
    p2: float = 0.0
    fx: float = 0.0
    fy: float = 0.0
    cx: float = 0.0
    cy: float = 0.0

    @property
    def model_type(self) -> ModelType:
        return ModelType.PINHOLE

    @classmethod
    def from_yaml(cls, path: PathLike) -> PinholeParameters:
        """Load parameters from a calibration file of model ``PINHOLE``."""
        data = load_calibration(path)
        _check_model(data, lambda name: name == "PINHOLE")
        dist = _section(data, "distortion_parameters")
        proj = _section(data, "projection_parameters")
        return cls(
            camera_name=_as_name(data.get("camera_name")),
            image_width=_as_int(data.get("image_width"), "image_width"),
            image_height=_as_int(data.get("image_height"), "image_height"),
            **{k: _as_float(dist.get(k), k) for k in ("k1", "k2", "p1", "p2")},
            **{k: _as_float(proj.get(k), k) for k in ("fx", "fy", "cx", "cy")},
        )

    def to_yaml(self, path: PathLike) -> None:
        """Write the parameters as a calibration file."""
        dump_calibration(
            path,
            {
                "model_type": "PINHOLE",
                "camera_name": self.camera_name,
                "image_width": int(self.image_width),
                "image_height": int(self.image_height),
                "distortion_parameters": {
                    "k1": float(self.k1),
                    "k2": float(self.k2),
                    "p1": float(self.p1),
                    "p2": float(self.p2),
                },
                "projection_parameters": {
                    "fx": float(self.fx),
                    "fy": float(self.fy),
                    "cx": float(self.cx),
                    "cy": float(self.cy),
                },
            },
        )

    def __str__(self) -> str:
        lines = [
            "Camera Parameters:",
            "    model_type PINHOLE",
            f"   camera_name {self.camera_name}",
            f"   image_width {self.image_width}",
            f"  image_height {self.image_height}",
            "Distortion Parameters",
            *(f"            {k} {getattr(self, k):g}" for k in ("k1", "k2", "p1", "p2")),
            "Projection Parameters",
            *(f"            {k} {getattr(self, k):g}" for k in ("fx", "fy", "cx", "cy")),
        ]
        return "\n".join(lines) + "\n"


@dataclass
class ScaramuzzaParameters:
    """Intrinsics of an omnidirectional camera in the Scaramuzza model."""

    camera_name: str = ""
    image_width: int = 0
    image_height: int = 0
    poly: list[float] = field(default_factory=lambda: [0.0] * SCARAMUZZA_POLY_SIZE)
    inv_poly: list[float] = field(default_factory=lambda: [0.0] * SCARAMUZZA_INV_POLY_SIZE)
    C: float = 0.0
    D: float = 0.0
    E: float = 0.0
    center_x: float = 0.0
    center_y: float = 0.0

    def __post_init__(self) -> None:
        self.poly = [float(v) for v in self.poly]
        self.inv_poly = [float(v) for v in self.inv_poly]
        if len(self.poly) != SCARAMUZZA_POLY_SIZE:
            raise ValueError(f"poly needs {SCARAMUZZA_POLY_SIZE} coefficients")
        if len(self.inv_poly) != SCARAMUZZA_INV_POLY_SIZE:
            raise ValueError(f"inv_poly needs {SCARAMUZZA_INV_POLY_SIZE} coefficients")

    @property
    def model_type(self) -> ModelType:
        return ModelType.SCARAMUZZA

    @classmethod
    def from_yaml(cls, path: PathLike) -> ScaramuzzaParameters:
        """Load parameters from a calibration file of model ``scaramuzza`` (any case)."""
        data = load_calibration(path)
        _check_model(data, lambda name: name.lower() == "scaramuzza")
        poly = _section(data, "poly_parameters")
        inv_poly = _section(data, "inv_poly_parameters")
        affine = _section(data, "affine_parameters")
        return cls(
            camera_name=_as_name(data.get("camera_name")),
            image_width=_as_int(data.get("image_width"), "image_width"),
            image_height=_as_int(data.get("image_height"), "image_height"),
            poly=[_as_float(poly.get(f"p{i}"), f"p{i}") for i in range(SCARAMUZZA_POLY_SIZE)],
            inv_poly=[
                _as_float(inv_poly.get(f"p{i}"), f"p{i}")
                for i in range(SCARAMUZZA_INV_POLY_SIZE)
            ],
            C=_as_float(affine.get("ac"), "ac"),
            D=_as_float(affine.get("ad"), "ad"),
            E=_as_float(affine.get("ae"), "ae"),
            center_x=_as_float(affine.get("cx"), "cx"),
            center_y=_as_float(affine.get("cy"), "cy"),
        )

    def to_yaml(self, path: PathLike) -> None:
        """Write the parameters as a calibration file."""
        dump_calibration(
            path,
            {
                "model_type": "scaramuzza",
                "camera_name": self.camera_name,
                "image_width": int(self.image_width),
                "image_height": int(self.image_height),
                "poly_parameters": {f"p{i}": v for i, v in enumerate(self.poly)},
                "inv_poly_parameters": {f"p{i}": v for i, v in enumerate(self.inv_poly)},
                "affine_parameters": {
                    "ac": float(self.C),
                    "ad": float(self.D),
                    "ae": float(self.E),
                    "cx": float(self.center_x),
                    "cy": float(self.center_y),
                },
            },
        )

    def __str__(self) -> str:
        lines = [
            "Camera Parameters:",
            "    model_type scaramuzza",
            f"   camera_name {self.camera_name}",
            f"   image_width {self.image_width}",
            f"  image_height {self.image_height}",
            "Poly Parameters",
            *(f"p{i}: {v:.10f}" for i, v in enumerate(self.poly)),
            "Inverse Poly Parameters",
            *(f"p{i}: {v:.10f}" for i, v in enumerate(self.inv_poly)),
            "Affine Parameters",
            f"            ac {self.C:.10f}",
            f"            ad {self.D:.10f}",
            f"            ae {self.E:.10f}",
            f"            cx {self.center_x:.10f}",
            f"            cy {self.center_y:.10f}",
        ]
        return "\n".join(lines) + "\n"