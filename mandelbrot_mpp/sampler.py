"""Mapping between image pixels and points of the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


class InvalidRegionError(ValueError):
    """Raised when a region of the complex plane is malformed."""


@dataclass(frozen=True)
class Region:
    """Rectangle of the complex plane, bounded by its four edges."""

    top: float
    left: float
    bottom: float
    right: float

    def __post_init__(self) -> None:
        for name in ("top", "left", "bottom", "right"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidRegionError(f"{name} must be a finite number, got {value!r}.")
        if not self.left < self.right:
            raise InvalidRegionError(f"left ({self.left}) must be smaller than right ({self.right}).")
        if not self.bottom < self.top:
            raise InvalidRegionError(f"bottom ({self.bottom}) must be smaller than top ({self.top}).")

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def center(self) -> complex:
        return complex((self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0)

    @classmethod
    def around(cls, center: complex, width: float, height: float) -> "Region":
        """Build the region of the given size centred on ``center``."""

        half_w = np.float64(width) / 2.0
        half_h = np.float64(height) / 2.0
        return cls(
            top=float(center.imag + half_h),
            left=float(center.real - half_w),
            bottom=float(center.imag - half_h),
            right=float(center.real + half_w),
        )

    def zoom(self, factor: float, center: complex | None = None) -> "Region":
        """Scale the region by ``factor`` about ``center`` (default: its own centre).

        Factors below one zoom in, factors above one zoom out.
        """

        if not factor > 0:
            raise InvalidRegionError(f"zoom factor must be positive, got {factor!r}.")
        focus = self.center if center is None else complex(center)
        return Region.around(focus, self.width * factor, self.height * factor)

    def as_query(self) -> dict[str, float]:
        return {"top": self.top, "left": self.left, "bottom": self.bottom, "right": self.right}


DEFAULT_REGION = Region(top=1.25, left=-2.0, bottom=-1.25, right=1.0)


@dataclass(frozen=True)
class SamplingMetadata:
    """Metadata describing the sampling grid for a rendered frame."""

    left: float
    top: float
    x_step: float
    y_step: float
    x_res: int
    y_res: int


class ComplexPlaneSampler:
    """Sample a :class:`Region` on an ``x_res`` by ``y_res`` pixel grid.

    Both edges of the region are sampled: column 0 lies on ``left`` and the
    last column on ``right``; row 0 lies on ``top`` and the last row on
    ``bottom``.
    """

    def __init__(self, region: Region, x_res: int, y_res: int):
        if int(x_res) < 1 or int(y_res) < 1:
            raise ValueError(f"resolution must be at least 1x1, got {x_res}x{y_res}.")
        self.region = region
        self.metadata = _compute_metadata(region, int(x_res), int(y_res))

    @property
    def shape(self) -> tuple[int, int]:
        return self.metadata.y_res, self.metadata.x_res

    def pixel_to_complex(self, row: int, col: int) -> complex:
        meta = self.metadata
        x = np.float64(meta.left) + np.float64(col) * np.float64(meta.x_step)
        y = np.float64(meta.top) - np.float64(row) * np.float64(meta.y_step)
        return complex(float(x), float(y))

    def complex_to_pixel(self, point: complex) -> tuple[int, int]:
        """Return the ``(row, col)`` of the grid sample nearest to ``point``."""

        meta = self.metadata
        col = round((point.real - meta.left) / meta.x_step) if meta.x_step else 0
        row = round((meta.top - point.imag) / meta.y_step) if meta.y_step else 0
        return int(row), int(col)

    def axes(self) -> tuple[np.ndarray, np.ndarray]:
        """Real and imaginary sample coordinates along each axis."""

        meta = self.metadata
        if meta.x_res > 1:
            xs = np.linspace(self.region.left, self.region.right, meta.x_res, dtype=np.float64)
        else:
            xs = np.array([meta.left], dtype=np.float64)
        if meta.y_res > 1:
            ys = np.linspace(self.region.top, self.region.bottom, meta.y_res, dtype=np.float64)
        else:
            ys = np.array([meta.top], dtype=np.float64)
        return xs, ys

    def grid(self) -> np.ndarray:
        xs, ys = self.axes()
        X, Y = np.meshgrid(xs, ys)
        return X + 1j * Y


def _compute_metadata(region: Region, x_res: int, y_res: int) -> SamplingMetadata:
    x_width = np.float64(region.width)
    y_width = np.float64(region.height)

    x_step = np.float64(x_width / (x_res - 1)) if x_res > 1 else np.float64(0.0)
    y_step = np.float64(y_width / (y_res - 1)) if y_res > 1 else np.float64(0.0)

    return SamplingMetadata(
        left=float(region.left),
        top=float(region.top),
        x_step=float(x_step),
        y_step=float(y_step),
        x_res=x_res,
        y_res=y_res,
    )
