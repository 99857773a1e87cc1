"""Camera models, calibration files, lidar feature depth and feature-track bookkeeping for visual odometry."""

__version__ = "0.1.0"