"""Bookkeeping for tracked image features: pruning, spacing, ids and velocities.

A tracker runs one cycle per image. Flowed points go into ``forw_pts`` and
flow failures are dropped with :meth:`FeatureTracks.prune`. Every surviving
``track_cnt`` is then raised by one. Tracks are thinned with
:meth:`FeatureTracks.prioritize` and new corners are appended with
:meth:`FeatureTracks.add_points`. Finally :meth:`FeatureTracks.undistort`
commits the frame.
"""

from __future__ import annotations

import itertools
import math
import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar, Union

import numpy as np

from .calib_yaml import CalibrationFormatError, load_calibration
from .geometry import bres_circle

__all__ = [
    "TrackerConfig",
    "load_tracker_config",
    "in_border",
    "compress",
    "point_distance",
    "IdAllocator",
    "FeatureTracks",
]

PathLike = Union[str, "os.PathLike[str]"]
Point = tuple[float, float]
T = TypeVar("T")

_BORDER_SIZE = 1
_FREE = 255
_DEFAULT_FREQ = 100


@dataclass
class TrackerConfig:
    """Settings of the visual feature tracker."""

    project_name: str = ""
    image_topic: str = ""
    imu_topic: str = ""
    point_cloud_topic: str = ""
    use_lidar: int = 0
    lidar_skip: int = 0
    max_cnt: int = 0
    min_dist: int = 0
    row: int = 0
    col: int = 0
    freq: int = _DEFAULT_FREQ
    f_threshold: float = 0.0
    show_track: int = 0
    equalize: int = 0
    lidar_to_cam: tuple[float, float, float, float, float, float] = (0.0,) * 6
    fisheye: int = 0
    fisheye_mask: str = ""
    cam_names: list[str] = field(default_factory=list)
    window_size: int = 20
    stereo_track: bool = False
    focal_length: int = 460


def _number(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float)):
        return float(value)
    raise CalibrationFormatError(f"{key!r} must be a number, got {value!r}")


def _integer(data: dict[str, Any], key: str) -> int:
    return int(round(_number(data, key)))


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def load_tracker_config(path: PathLike) -> TrackerConfig:
    """Read tracker settings from a configuration file.

    ``fisheye_mask`` is kept as written in the file, relative to the project package.
    """
    data = load_calibration(path)
    freq = _integer(data, "freq")
    fisheye = _integer(data, "fisheye")
    return TrackerConfig(
        project_name=_text(data, "project_name"),
        image_topic=_text(data, "image_topic"),
        imu_topic=_text(data, "imu_topic"),
        point_cloud_topic=_text(data, "point_cloud_topic"),
        use_lidar=_integer(data, "use_lidar"),
        lidar_skip=_integer(data, "lidar_skip"),
        max_cnt=_integer(data, "max_cnt"),
        min_dist=_integer(data, "min_dist"),
        row=_integer(data, "image_height"),
        col=_integer(data, "image_width"),
        freq=freq if freq != 0 else _DEFAULT_FREQ,
        f_threshold=_number(data, "F_threshold"),
        show_track=_integer(data, "show_track"),
        equalize=_integer(data, "equalize"),
        lidar_to_cam=tuple(
            _number(data, f"lidar_to_cam_{axis}")
            for axis in ("tx", "ty", "tz", "rx", "ry", "rz")
        ),
        fisheye=fisheye,
        fisheye_mask=_text(data, "fisheye_mask") if fisheye == 1 else "",
        cam_names=[os.fspath(path)],
    )


def _pixel(point: Sequence[float]) -> tuple[int, int]:
    return round(float(point[0])), round(float(point[1]))


def in_border(point: Sequence[float], rows: int, cols: int) -> bool:
    """Whether a point rounds to a pixel at least one pixel inside the image."""
    x, y = _pixel(point)
    return (
        _BORDER_SIZE <= x < cols - _BORDER_SIZE
        and _BORDER_SIZE <= y < rows - _BORDER_SIZE
    )


def compress(items: Sequence[T], status: Sequence[Any]) -> list[T]:
    """Items whose status flag is true, in their original order."""
    if len(items) != len(status):
        raise ValueError(f"{len(items)} items but {len(status)} status flags")
    return [item for item, keep in zip(items, status) if keep]


def point_distance(p: Sequence[float], q: Sequence[float] | None = None) -> float:
    """Euclidean distance between the xyz parts of two points, or of ``p`` from the origin."""
    if q is None:
        q = (0.0, 0.0, 0.0)
    return math.dist([float(v) for v in p[:3]], [float(v) for v in q[:3]])


class IdAllocator:
    """Hands out feature ids 0, 1, 2, ..."""

    def __init__(self) -> None:
        self._counter = itertools.count()

    def next_id(self) -> int:
        """The next unused id."""
        return next(self._counter)


class FeatureTracks:
    """Parallel per-feature state of one camera's tracker."""

    def __init__(self) -> None:
        self.cur_pts: list[Point] = []
        self.forw_pts: list[Point] = []
        self.cur_un_pts: list[Point] = []
        self.pts_velocity: list[Point] = []
        self.ids: list[int] = []
        self.track_cnt: list[int] = []
        self.cur_un_pts_map: dict[int, Point] = {}
        self.prev_un_pts_map: dict[int, Point] = {}
        self.cur_time: float = 0.0
        self.prev_time: float = 0.0

    def __len__(self) -> int:
        return len(self.forw_pts)

    def prune(self, status: Sequence[Any]) -> None:
        """Drop every feature whose status flag is false.

        Empty lists are left as they are, so this works before the first frame.
        """
        for name in ("cur_pts", "forw_pts", "ids", "cur_un_pts", "track_cnt"):
            values = getattr(self, name)
            if values:
                setattr(self, name, compress(values, status))

    def add_points(self, points: Iterable[Sequence[float]]) -> None:
        """Append newly detected corners with no id and a track count of one."""
        for p in points:
            self.forw_pts.append((float(p[0]), float(p[1])))
            self.ids.append(-1)
            self.track_cnt.append(1)

    def prioritize(
        self, rows: int, cols: int, min_dist: int, base_mask=None
    ) -> np.ndarray:
        """Keep long-lived tracks at least ``min_dist`` apart; return the detection mask.

        Tracks are visited from the longest track count down. A track is kept when its
        pixel is still free (255) in the mask, and a filled circle of radius
        ``min_dist`` around it is then blocked (0). ``base_mask`` starts the mask in
        place of an all-free ``rows x cols`` image.
        """
        if base_mask is None:
            mask = np.full((rows, cols), _FREE, dtype=np.uint8)
        else:
            mask = np.array(base_mask, dtype=np.uint8)
            if mask.shape != (rows, cols):
                raise ValueError(f"mask shape {mask.shape} is not {(rows, cols)}")

        order = sorted(range(len(self.forw_pts)), key=lambda i: -self.track_cnt[i])
        entries = [(self.forw_pts[i], self.ids[i], self.track_cnt[i]) for i in order]
        self.forw_pts, self.ids, self.track_cnt = [], [], []

        for point, ident, count in entries:
            x, y = _pixel(point)
            if not (0 <= x < cols and 0 <= y < rows) or mask[y, x] != _FREE:
                continue
            self.forw_pts.append(point)
            self.ids.append(ident)
            self.track_cnt.append(count)
            for cx, cy in bres_circle(x, y, int(min_dist)):
                if 0 <= cx < cols and 0 <= cy < rows:
                    mask[cy, cx] = 0
        return mask

    def assign_id(self, index: int, allocator: IdAllocator) -> bool:
        """Give feature ``index`` an id if it has none; false when there is no such feature."""
        if not 0 <= index < len(self.ids):
            return False
        if self.ids[index] == -1:
            self.ids[index] = allocator.next_id()
        return True

    def undistort(
        self, lift: Callable[[Point], Sequence[float]], time: float
    ) -> None:
        """Commit the frame at ``time``: normalise points and compute their velocities.

        ``lift`` maps a pixel to its projective ray ``(x, y, z)``.
        """
        self.cur_time = float(time)
        self.cur_pts = list(self.forw_pts)
        self.cur_un_pts = []
        self.cur_un_pts_map = {}
        for point, ident in zip(self.cur_pts, self.ids):
            ray = lift(point)
            normalised = (float(ray[0]) / float(ray[2]), float(ray[1]) / float(ray[2]))
            self.cur_un_pts.append(normalised)
            self.cur_un_pts_map.setdefault(ident, normalised)

        self.pts_velocity = []
        if self.prev_un_pts_map:
            dt = self.cur_time - self.prev_time
            for point, ident in zip(self.cur_un_pts, self.ids):
                previous = self.prev_un_pts_map.get(ident) if ident != -1 else None
                if previous is None:
                    self.pts_velocity.append((0.0, 0.0))
                    continue
                if dt == 0.0:
                    raise ValueError("frame time must advance between frames")
                self.pts_velocity.append(
                    ((point[0] - previous[0]) / dt, (point[1] - previous[1]) / dt)
                )
        else:
            self.pts_velocity = [(0.0, 0.0)] * len(self.cur_pts)

        self.prev_un_pts_map = dict(self.cur_un_pts_map)
        self.prev_time = self.cur_time