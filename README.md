# visodom

Building blocks for a monocular visual-odometry front end, in plain Python
on top of NumPy and PyYAML.

| Module | What it holds |
| --- | --- |
| `visodom.calib_yaml` | Reading and writing YAML camera calibration files (`PinholeParameters`, `ScaramuzzaParameters`, `load_calibration`, `dump_calibration`) |
| `visodom.pinhole` | `PinholeCamera`, a radial–tangential pinhole model |
| `visodom.scaramuzza` | `ScaramuzzaCamera`, an omnidirectional polynomial model |
| `visodom.pinhole_pose`, `visodom.scaramuzza_pose` | Projections driven by a flat parameter vector and a camera pose |
| `visodom.ocam_calibration` | First intrinsic estimate for omnidirectional cameras, and `polyfit` |
| `visodom.tracking` | Feature-track bookkeeping and tracker settings |
| `visodom.depth` | Feature depth from a lidar point cloud |
| `visodom.geometry` | Angles, Bresenham lines and circles, circle fitting and intersection |
| `visodom.geodesy` | WGS84 latitude/longitude ↔ UTM |
| `visodom.colormaps` | Jet and autumn colour maps, depth-image colouring |

## Requirements

Python 3.10 or later, with `numpy` and `pyyaml`. Tests use `pytest`
(`pip install visodom[test]`).

## Calibration files

```python
from visodom.calib_yaml import PinholeParameters

params = PinholeParameters.from_yaml("camera.yaml")
params.to_yaml("copy.yaml")
print(params)            # human-readable summary
```

Files may start with a `%YAML:1.0` line. A file whose `model_type` names
another model, or that does not hold a mapping, raises
`CalibrationFormatError`. `PinholeParameters.from_yaml` expects
`model_type: PINHOLE`; `ScaramuzzaParameters.from_yaml` accepts
`scaramuzza` in any case. Missing values read as zero.

## Pinhole camera

```python
from visodom.pinhole import PinholeCamera

camera = PinholeCamera(params)

ray = camera.lift_projective((320.0, 240.0))   # (x, y, 1) on the normalised plane
unit = camera.lift_sphere((320.0, 240.0))      # the same ray, unit length
pixel = camera.space_to_plane(ray)             # back to image coordinates
```

Also available: `undist_to_plane`, `distortion`, `distortion_jacobian`,
`init_undistort_map(scale)` and
`init_undistort_rectify_map(fx, fy, image_size, cx, cy, rmat)`, which returns
`(map_x, map_y, K_rect)`. `write_parameters()` gives
`[k1, k2, p1, p2, fx, fy, cx, cy]` and `read_parameters(values)` loads such a
list back; a list of the wrong length raises `ValueError`.
`estimate_intrinsics(board_size, object_points, image_points)` sets a first
estimate of `fx` and `fy` from chessboard views, with the principal point at
the image centre and no distortion.

`visodom.pinhole_pose.project_with_pose(params, q, t, P)` projects a world
point through a rotation quaternion `q = (x, y, z, w)` and translation `t`.

## Omnidirectional camera

```python
from visodom.calib_yaml import ScaramuzzaParameters
from visodom.scaramuzza import ScaramuzzaCamera

camera = ScaramuzzaCamera(ScaramuzzaParameters.from_yaml("fisheye.yaml"))
direction = camera.lift_sphere((512.0, 384.0))
pixel = camera.space_to_plane(direction)
```

The flat parameter vector is `[C, D, E, cx, cy, poly..., inv_poly...]`
(30 values). `visodom.scaramuzza_pose` offers `space_to_plane_with_pose`,
`space_to_sphere`, `lift_to_sphere` and `sphere_to_plane` on such a vector.

`visodom.ocam_calibration.estimate_intrinsics(camera, board_size,
object_points, image_points)` estimates the polynomial from chessboard views
(object points on the plane z = 0), applies it to the camera and returns the
new parameters.

## Feature tracks

```python
from visodom.tracking import FeatureTracks, IdAllocator

tracks = FeatureTracks()
allocator = IdAllocator()

tracks.add_points([(100.0, 80.0), (300.0, 200.0)])  # new corners, id -1, count 1
mask = tracks.prioritize(480, 640, 30)              # 255 where new corners may go
for i in range(len(tracks.ids)):
    tracks.assign_id(i, allocator)
tracks.undistort(camera.lift_projective, time=0.0)  # commit the frame
```

`prune(status)` drops lost tracks from every list at once. `prioritize`
keeps tracks with the longest track count first, blocking a filled circle of
radius `min_dist` around each kept one. `undistort` fills `cur_un_pts` and
`pts_velocity`. `load_tracker_config(path)` reads tracker settings into a
`TrackerConfig`; helper functions are `in_border`, `compress` and
`point_distance`.

## Lidar depth

```python
from visodom.depth import estimate_feature_depths

depths = estimate_feature_depths(features, cloud)   # -1 where no depth
```

`features` are normalised camera points `(x, y, 1)`; `cloud` is an `(N, 3)`
or `(N, 4)` array in the body frame (x forward, y left, z up). The cloud is
thinned to the closest point per cell of a 360 × 360 range image
(`downsample_range_image`), and each feature's depth is taken from the plane
through its three nearest neighbours on the unit sphere. Depths of 3 or less
are reported as -1. `pose_matrix` and `transform_points` move clouds between
frames; `depth_color` gives a rainbow colour for a distance.

## Helpers

```python
from visodom.geodesy import ll_to_utm, utm_to_ll, utm_letter_designator
from visodom.geometry import bres_line, intersect_circles
from visodom.colormaps import colormap

utm = ll_to_utm(47.37, 8.54)                     # UTMCoordinate(northing, easting, zone)
lat, lon = utm_to_ll(utm.northing, utm.easting, utm.zone)
utm_letter_designator(47.37)                     # 'T'
cells = bres_line(0, 0, 4, 2)
points = intersect_circles(0.0, 0.0, 1.0, 1.0, 0.0, 1.0)
colormap("jet", 0)                               # (0.0, 0.0, 0.53125)
```

`color_depth_image(depth, min_range, max_range)` colours a float depth image
with the jet map into a BGR `uint8` image, leaving zero-depth pixels black.

## What the package does not do

It is a library with no command-line program. It does not read images or
point clouds from files, cameras or message streams, and it does not run
the image-processing steps of a tracker: optical flow, corner detection,
contrast equalisation and outlier rejection with a fundamental matrix are
left to the caller, whose results are passed to `FeatureTracks`. Nothing is
drawn or displayed.