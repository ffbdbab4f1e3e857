"""Utilities for moving and zooming the rendered region."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .renderer import PixelBuffer
from .sampler import ComplexPlaneSampler, Region

EASINGS = ("linear", "ease")


@dataclass(frozen=True)
class ZoomPlanner:
    """Maintain the region updates for a Mandelbrot zoom sequence."""

    lock_aspect: bool
    aspect: float

    def enforce_aspect(self, region: Region) -> Region:
        if not self.lock_aspect:
            return region
        return Region.around(region.center, region.width, float(np.float64(region.width) * np.float64(self.aspect)))

    def initialize_focus(self, buffer: PixelBuffer) -> Region:
        row, col = select_zoom_center(boundary_map(buffer.escape.inside))
        return self.enforce_aspect(recenter(buffer.region, _sampler_for(buffer), row, col))

    def update_after_frame(self, buffer: PixelBuffer, zoom_factor: float) -> Region:
        region = self.initialize_focus(buffer)
        return self.enforce_aspect(region.zoom(zoom_factor))


def compute_zoom_factors(frames: int, zoom_factor: float, *, final_zoom: float | None, easing: str) -> np.ndarray:
    """Compute per-frame zoom multipliers for the animation."""

    if frames <= 0:
        return np.array([], dtype=np.float64)

    if final_zoom is not None and final_zoom > 0:
        easing_mode = easing.lower()
        if easing_mode not in EASINGS:
            raise ValueError(f"Unknown easing '{easing}'. Valid choices: {', '.join(EASINGS)}.")

        def ease_in_out(t: float) -> float:
            return 3 * t ** 2 - 2 * t ** 3

        ease = (lambda u: u) if easing_mode == "linear" else ease_in_out
        if frames == 1:
            alphas = np.array([1.0], dtype=np.float64)
        else:
            alphas = np.array([ease(i / (frames - 1)) for i in range(frames)], dtype=np.float64)
        alphas = np.clip(alphas, 0.0, 1.0)
        increments = np.diff(np.concatenate(([0.0], alphas)))
        return np.exp(increments * np.log(final_zoom))

    return np.full(frames, np.float64(zoom_factor), dtype=np.float64)


def boundary_map(inside: np.ndarray) -> np.ndarray:
    """Pixels whose set membership differs from the pixel above or to the left."""

    inside = np.asarray(inside, dtype=bool)
    edges = np.zeros_like(inside)
    if inside.size == 0:
        return edges
    edges[1:, :] |= inside[1:, :] != inside[:-1, :]
    edges[:, 1:] |= inside[:, 1:] != inside[:, :-1]
    return edges


def select_zoom_center(edges: np.ndarray) -> tuple[int, int]:
    """Select a deterministic focus pixel near the center of the edge map."""

    if edges.size == 0:
        return edges.shape[0] // 2, edges.shape[1] // 2

    height, width = edges.shape
    center_row = height // 2
    center_col = width // 2

    for radius in range(max(height, width)):
        row_start = max(center_row - radius, 0)
        row_end = min(center_row + radius + 1, height)
        col_start = max(center_col - radius, 0)
        col_end = min(center_col + radius + 1, width)
        region = edges[row_start:row_end, col_start:col_end]
        if np.any(region):
            indices = np.argwhere(region)
            indices[:, 0] += row_start
            indices[:, 1] += col_start
            return _nearest_to_center(indices, edges.shape)

    return center_row, center_col


def _nearest_to_center(edge_indices: np.ndarray, shape: tuple[int, int]) -> tuple[int, int]:
    center = np.array([(shape[0] - 1) / 2.0, (shape[1] - 1) / 2.0], dtype=np.float64)
    distances = np.sum((edge_indices.astype(np.float64) - center) ** 2, axis=1)
    row, col = edge_indices[int(np.argmin(distances))]
    return int(row), int(col)


def recenter(region: Region, sampler: ComplexPlaneSampler, row: int, col: int) -> Region:
    """Move the centre of ``region`` onto the sample at ``(row, col)``."""

    return Region.around(sampler.pixel_to_complex(row, col), region.width, region.height)


def _sampler_for(buffer: PixelBuffer) -> ComplexPlaneSampler:
    return ComplexPlaneSampler(buffer.region, buffer.width, buffer.height)
