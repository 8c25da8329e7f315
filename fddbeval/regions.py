"""Elliptical and rectangular regions and per-image sets of them."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import KW_ONLY, dataclass, field
from os import PathLike
from typing import TextIO, Union

import numpy as np
from PIL import Image, ImageDraw

from .imageutils import read_image

REGION_MASK_VALUE = 10
FILLED = -1

Color = Union[int, Sequence[int]]


def _to_canvas(image) -> Image.Image:
    array = np.asarray(image)
    if array.dtype != np.uint8:
        array = np.clip(array, 0, 255).astype(np.uint8)
    array = np.ascontiguousarray(array).copy()
    if array.ndim == 2:
        return Image.fromarray(array, mode="L")
    if array.ndim == 3 and array.shape[2] == 3:
        return Image.fromarray(array, mode="RGB")
    raise ValueError(f"unsupported image shape {array.shape}")


def _ink(color: Color, mode: str):
    if isinstance(color, (int, float, np.integer, np.floating)):
        value = int(color)
        return value if mode == "L" else (value, value, value)
    channels = [int(c) for c in color]
    if mode == "L":
        return channels[0]
    return tuple((channels + [0, 0, 0])[:3])


@dataclass
class Region(ABC):
    """A region of an image with a detection score and a validity flag."""

    _: KW_ONLY
    det_score: float = 0.0
    valid: bool = True
    mask: np.ndarray | None = field(default=None, repr=False, compare=False)

    def intersect(self, other: Region) -> float:
        """Number of pixels set in both masks."""
        first, second = self._masks_with(other)
        return float(np.count_nonzero(np.logical_and(first, second)))

    def union(self, other: Region) -> float:
        """Number of pixels set in either mask."""
        first, second = self._masks_with(other)
        return float(np.count_nonzero(np.logical_or(first, second)))

    @abstractmethod
    def draw(self, image, color: Color, line_width: int, text: str | None = None) -> np.ndarray:
        """Return a copy of ``image`` with the region drawn on it; a negative width fills it."""

    def render_mask(self, shape) -> np.ndarray:
        """Return a uint8 mask of ``shape`` with the filled region set to REGION_MASK_VALUE."""
        canvas = np.zeros(tuple(shape)[:2], dtype=np.uint8)
        return self.draw(canvas, REGION_MASK_VALUE, FILLED, None)

    def _masks_with(self, other: Region) -> tuple[np.ndarray, np.ndarray]:
        if self.mask is None or other.mask is None:
            raise ValueError("both regions need a mask")
        if self.mask.shape != other.mask.shape:
            raise ValueError("region masks have different shapes")
        return self.mask, other.mask


@dataclass
class EllipseRegion(Region):
    """An ellipse given by centre, major-axis orientation and half-axes."""

    cx: float
    cy: float
    angle: float
    ra: float
    rb: float

    def draw(self, image, color: Color, line_width: int, text: str | None = None) -> np.ndarray:
        canvas = _to_canvas(image)
        pen = ImageDraw.Draw(canvas)
        ink = _ink(color, canvas.mode)
        points = self._outline_points()
        if line_width < 0:
            pen.polygon(points, fill=ink, outline=ink)
        else:
            pen.line(points + [points[0]], fill=ink, width=max(1, line_width), joint="curve")
        if text is not None:
            pen.text((round(self.cx), round(self.cy)), text, fill=ink)
        return np.array(canvas)

    def _outline_points(self) -> list[tuple[int, int]]:
        centre_x, centre_y = round(self.cx), round(self.cy)
        a, b = int(self.ra), int(self.rb)
        theta = math.radians(180 - self.angle)
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        points = []
        for degree in range(360):
            t = math.radians(degree)
            x = centre_x + a * math.cos(t) * cos_t - b * math.sin(t) * sin_t
            y = centre_y + a * math.cos(t) * sin_t + b * math.sin(t) * cos_t
            points.append((round(x), round(y)))
        return points


@dataclass
class RectangleRegion(Region):
    """An axis-aligned rectangle given by its top-left corner and size."""

    x: float
    y: float
    w: float
    h: float

    def draw(self, image, color: Color, line_width: int, text: str | None = None) -> np.ndarray:
        canvas = _to_canvas(image)
        pen = ImageDraw.Draw(canvas)
        ink = _ink(color, canvas.mode)
        x0, y0 = round(self.x), round(self.y)
        x1, y1 = round(self.x + self.w), round(self.y + self.h)
        box = [min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)]
        if line_width < 0:
            pen.rectangle(box, fill=ink)
        else:
            pen.rectangle(box, outline=ink, width=max(1, line_width))
        if text is not None:
            pen.text((x0, y0), text, fill=ink)
        return np.array(canvas)


def _numbers(line: str, required: int, total: int) -> list[float]:
    tokens = line.split()
    if len(tokens) < required:
        raise ValueError(f"expected at least {required} numbers in line {line!r}")
    values = [float(token) for token in tokens[:total]]
    return values + [0.0] * (total - len(values))


def _ellipse_angle(theta: float) -> float:
    return (math.pi - theta) * 180 / math.pi


class RegionSet(ABC):
    """The regions annotated or detected in one image."""

    _fields_per_record: int = 5

    def __init__(self, image) -> None:
        if image is None:
            raise ValueError("a region set needs an image")
        self.image = np.array(image)
        self._regions: list[Region] = []

    @classmethod
    def from_file(cls, path: Union[str, "PathLike[str]"]):
        """Create an empty set for the image stored at ``path``."""
        return cls(read_image(path, True))

    def read_file(self, path: Union[str, "PathLike[str]"]) -> None:
        """Append regions from whitespace-separated records filling a file."""
        with open(path, encoding="utf-8") as handle:
            tokens = handle.read().split()
        size = self._fields_per_record
        for start in range(0, len(tokens) - size + 1, size):
            try:
                values = [float(token) for token in tokens[start:start + size]]
            except ValueError:
                break
            self._regions.append(self._from_record(values))

    def read(self, stream: TextIO, count: int) -> None:
        """Append ``count`` regions, one per line, from ``stream``."""
        for _ in range(count):
            self._regions.append(self.parse_line(stream.readline()))

    @abstractmethod
    def parse_line(self, line: str) -> Region:
        """Build one region from a line of a region list."""

    @abstractmethod
    def _from_record(self, values: list[float]) -> Region:
        """Build one region from a record of a whole-file list."""

    def unique_scores(self) -> list[float]:
        """Sorted distinct detection scores of the regions."""
        return sorted({region.det_score for region in self._regions})

    def render(self) -> np.ndarray:
        """Return a copy of the image with every region outlined in red."""
        canvas = self.image
        for region in self._regions:
            canvas = region.draw(canvas, (255, 0, 0), 3, None)
        return np.array(canvas)

    def __len__(self) -> int:
        return len(self._regions)

    def __getitem__(self, index: int) -> Region:
        return self._regions[index]

    def __setitem__(self, index: int, region: Region) -> None:
        self._regions[index] = region

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)


class EllipseSet(RegionSet):
    """Elliptical regions: lines of ``ra rb theta cx cy score``."""

    def parse_line(self, line: str) -> EllipseRegion:
        ra, rb, theta, cx, cy, score = _numbers(line, 5, 6)
        return EllipseRegion(cx, cy, _ellipse_angle(theta), ra, rb, det_score=score)

    def read_file(self, path: Union[str, "PathLike[str]"]) -> None:
        """Append ellipses from ``ra rb theta cx cy`` records; a missing file adds nothing."""
        try:
            super().read_file(path)
        except OSError:
            return

    def _from_record(self, values: list[float]) -> EllipseRegion:
        ra, rb, theta, cx, cy = values
        return EllipseRegion(cx, cy, _ellipse_angle(theta), ra, rb)


class RectangleSet(RegionSet):
    """Rectangular regions: lines of ``x y w h score``."""

    def parse_line(self, line: str) -> RectangleRegion:
        x, y, w, h, score = _numbers(line, 4, 5)
        return RectangleRegion(x, y, w, h, det_score=score)

    def read_file(self, path: Union[str, "PathLike[str]"]) -> None:
        """Append rectangles from ``x y w h score`` records; raises OSError if unreadable."""
        try:
            super().read_file(path)
        except OSError as exc:
            raise OSError(f"could not open file {path}") from exc

    def _from_record(self, values: list[float]) -> RectangleRegion:
        x, y, w, h, score = values
        return RectangleRegion(x, y, w, h, det_score=score)