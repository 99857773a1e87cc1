[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "visodom"
version = "0.1.0"
description = "Camera models, calibration files, lidar feature depth and feature-track bookkeeping for visual odometry"
requires-python = ">=3.10"
keywords = [
    "visual odometry",
    "camera model",
    "pinhole",
    "omnidirectional",
    "scaramuzza",
    "calibration",
    "feature tracking",
    "lidar",
    "utm",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["visodom"]

[tool.hatch.build.targets.sdist]
include = ["visodom", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
