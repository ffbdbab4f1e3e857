"""Tone mapping of escape counts onto matplotlib colormaps."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from matplotlib import colormaps

from .color import Color
from .escape import EscapeResult

NORMALIZE_MODES = ("outside", "all")


def get_colormap(name: str):
    try:
        return colormaps[name]
    except KeyError:
        raise ValueError(f"Unknown colormap '{name}'.") from None


@dataclass(frozen=True)
class ColorMapper:
    """Convert escape results into RGB pixels.

    Smooth escape values are clipped to the ``clip_low``/``clip_high``
    percentiles, rescaled to ``[0, 1]``, gamma corrected and looked up in the
    colormap. Samples inside the set are painted with ``inside_color``.
    """

    colormap: str = "twilight_shifted"
    normalize: str = "outside"
    gamma: float = 0.85
    clip_low: float = 0.5
    clip_high: float = 99.5
    invert: bool = False
    inside_color: Color = field(default_factory=lambda: Color(0, 0, 0))

    def __post_init__(self) -> None:
        if self.normalize not in NORMALIZE_MODES:
            raise ValueError(f"normalize must be one of {', '.join(NORMALIZE_MODES)}, got '{self.normalize}'.")
        if not self.gamma > 0:
            raise ValueError(f"gamma must be positive, got {self.gamma!r}.")
        if not 0.0 <= self.clip_low < self.clip_high <= 100.0:
            raise ValueError("clip percentiles must satisfy 0 <= clip_low < clip_high <= 100.")
        get_colormap(self.colormap)

    def tone_map(self, result: EscapeResult) -> np.ndarray:
        """Normalised, gamma-corrected values in ``[0, 1]``."""

        inside = result.inside
        v = result.smooth.astype(np.float64, copy=True)
        eps = 1e-12

        selection = v[~inside] if self.normalize == 'outside' else v

        if selection.size:
            lo = np.percentile(selection, self.clip_low)
            hi = np.percentile(selection, self.clip_high)
            hi = max(hi, lo + eps)
            v = (np.clip(v, lo, hi) - lo) / (hi - lo)
        else:
            v.fill(0.0)

        return np.clip(v, 0.0, 1.0) ** self.gamma

    def map(self, result: EscapeResult) -> np.ndarray:
        """RGB pixels as a ``uint8`` array shaped ``(rows, cols, 3)``."""

        v = self.tone_map(result)
        cmap = get_colormap(self.colormap)
        cmap_input = 1.0 - v if self.invert else v
        rgba = np.array(cmap(cmap_input), copy=True)

        rgb = np.uint8(np.clip(rgba[..., :3] * 255, 0, 255))
        rgb[result.inside] = self.inside_color.as_tuple()
        return rgb

    def color_for(self, value: float) -> Color:
        """Color of a single tone-mapped value in ``[0, 1]``."""

        value = float(np.clip(value, 0.0, 1.0))
        cmap_input = 1.0 - value if self.invert else value
        red, green, blue = (int(np.clip(channel * 255, 0, 255)) for channel in get_colormap(self.colormap)(cmap_input)[:3])
        return Color(red, green, blue)
