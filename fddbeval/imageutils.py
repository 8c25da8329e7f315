"""Matrix helpers and image loading used by the evaluator."""

from __future__ import annotations

import math
import sys
from os import PathLike
from typing import Union

import numpy as np
from PIL import Image

# Extension appended to image names listed in the annotation files.
IMAGE_FORMAT = ".jpg" if sys.platform.startswith("win") else ".ppm"

PathType = Union[str, "PathLike[str]"]


def read_image(path: PathType, color: bool = True) -> np.ndarray:
    """Load an image as an RGB (``color``) or single-channel uint8 array."""
    try:
        with Image.open(path) as img:
            converted = img.convert("RGB" if color else "L")
            return np.array(converted)
    except OSError as exc:
        raise OSError(f"could not read image from {path}") from exc


def mat_median(matrix) -> float:
    """Return the upper median of the first channel of ``matrix``."""
    values = np.asarray(matrix, dtype=float)
    if values.ndim == 3:
        values = values[..., 0]
    if values.size == 0:
        raise ValueError("median of an empty matrix")
    ordered = np.sort(values, axis=None)
    return float(ordered[ordered.size // 2])


def mat_normalize(matrix, min_val: float, max_val: float) -> np.ndarray:
    """Linearly rescale ``matrix`` so its values span ``[min_val, max_val]``."""
    values = np.asarray(matrix, dtype=float)
    low, high = float(values.min()), float(values.max())
    if high == low:
        raise ValueError("cannot normalize a constant matrix")
    scale = (max_val - min_val) / (high - low)
    return (values - low) * scale + min_val


def mat_copy_stuffed(src, shape) -> np.ndarray:
    """Copy ``src`` centred into a zero matrix of ``shape``, cropping or padding."""
    source = np.asarray(src)
    target = np.zeros(tuple(shape), dtype=source.dtype)
    src_rows, src_cols = source.shape[:2]
    dst_rows, dst_cols = target.shape[:2]

    if src_rows >= dst_rows:
        s_row, d_row = (src_rows - dst_rows) // 2, 0
    else:
        s_row, d_row = 0, (dst_rows - src_rows) // 2
    if src_cols >= dst_cols:
        s_col, d_col = (src_cols - dst_cols) // 2, 0
    else:
        s_col, d_col = 0, (dst_cols - src_cols) // 2

    rows = min(src_rows - s_row, dst_rows - d_row)
    cols = min(src_cols - s_col, dst_cols - d_col)
    if rows > 0 and cols > 0:
        target[d_row:d_row + rows, d_col:d_col + cols] = source[
            s_row:s_row + rows, s_col:s_col + cols
        ]
    return target


def mat_rotate(src, angle: float) -> np.ndarray:
    """Rotate a 2-D matrix about its centre by ``angle`` degrees (bilinear, edges replicated)."""
    source = np.asarray(src, dtype=float)
    if source.ndim != 2:
        raise ValueError("mat_rotate expects a two-dimensional matrix")
    height, width = source.shape
    if height == 0 or width == 0:
        return source.copy()

    radians = -angle * math.pi / 180.0
    cos_a, sin_a = math.cos(radians), math.sin(radians)
    centre_x, centre_y = (width - 1) * 0.5, (height - 1) * 0.5

    ys, xs = np.mgrid[0:height, 0:width].astype(float)
    dx, dy = xs - centre_x, ys - centre_y
    sample_x = cos_a * dx + sin_a * dy + centre_x
    sample_y = -sin_a * dx + cos_a * dy + centre_y
    return _bilinear(source, sample_x, sample_y)


def _bilinear(source: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    height, width = source.shape
    xs = np.clip(xs, 0, width - 1)
    ys = np.clip(ys, 0, height - 1)
    x0 = np.floor(xs).astype(int)
    y0 = np.floor(ys).astype(int)
    x1 = np.minimum(x0 + 1, width - 1)
    y1 = np.minimum(y0 + 1, height - 1)
    fx = xs - x0
    fy = ys - y0
    top = source[y0, x0] * (1 - fx) + source[y0, x1] * fx
    bottom = source[y1, x0] * (1 - fx) + source[y1, x1] * fx
    return top * (1 - fy) + bottom * fy