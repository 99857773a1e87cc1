"""Jet and autumn colour maps and depth-image colouring."""

from __future__ import annotations

import numpy as np

__all__ = ["colormap", "color_depth_image", "COLORMAP_SIZE"]

COLORMAP_SIZE = 128


def _autumn_entry(i: int) -> tuple[float, float, float]:
    green = 1.0 if i == COLORMAP_SIZE - 1 else float(f"{i / 127:.5g}")
    return (1.0, green, 0.0)


def _jet_entry(i: int) -> tuple[float, float, float]:
    if i < 16:
        return (0.0, 0.0, (17 + i) / 32)
    if i < 48:
        return (0.0, (i - 15) / 32, 1.0)
    if i < 80:
        step = (i - 47) / 32
        return (step, 1.0, 1.0 - step)
    if i < 112:
        return (1.0, 1.0 - (i - 79) / 32, 0.0)
    return (1.0 - (i - 111) / 32, 0.0, 0.0)


_MAPS: dict[str, tuple[tuple[float, float, float], ...]] = {
    "jet": tuple(_jet_entry(i) for i in range(COLORMAP_SIZE)),
    "autumn": tuple(_autumn_entry(i) for i in range(COLORMAP_SIZE)),
}

_JET = np.array(_MAPS["jet"], dtype=np.float32)


def colormap(name: str, idx: int) -> tuple[float, float, float]:
    """Colour ``(r, g, b)`` in 0..1 at entry ``idx`` (0..127) of map ``"jet"`` or ``"autumn"``."""
    try:
        table = _MAPS[name]
    except KeyError:
        raise ValueError(f"unknown colour map: {name!r}") from None
    if not 0 <= idx < COLORMAP_SIZE:
        raise IndexError(f"colour map index {idx} out of range 0..{COLORMAP_SIZE - 1}")
    return table[idx]


def color_depth_image(depth, min_range: float, max_range: float) -> np.ndarray:
    """Colour a float depth image with the jet map, near red, far blue.

    Returns an ``(H, W, 3)`` uint8 image in BGR order; pixels of depth 0 stay black.
    """
    depth_img = np.asarray(depth, dtype=np.float32)
    if depth_img.ndim != 2:
        raise ValueError("depth must be a 2-D array")
    span = np.float32(max_range) - np.float32(min_range)
    if span == 0:
        raise ValueError("max_range must differ from min_range")
    out = np.zeros(depth_img.shape + (3,), dtype=np.uint8)
    mask = depth_img != 0
    if not mask.any():
        return out
    values = depth_img[mask]
    scaled = np.minimum(values - np.float32(min_range), span) / span * np.float32(127.0)
    idx = 127 - np.trunc(scaled).astype(np.int64)
    idx = np.clip(idx, 0, COLORMAP_SIZE - 1)
    colours = _JET[idx][:, ::-1] * np.float32(255.0)
    out[mask] = np.trunc(colours).astype(np.uint8)
    return out