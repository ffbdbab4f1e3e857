"""Rendering of Mandelbrot regions into pixel buffers."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional

import numpy as np
import PIL.Image

from .color import Color
from .colormap import ColorMapper
from .escape import EscapeIterator, EscapeResult
from .sampler import ComplexPlaneSampler, Region, SamplingMetadata


@dataclass(frozen=True)
class PixelBuffer:
    """Container for a rendered frame and the data it was computed from."""

    pixels: np.ndarray
    escape: EscapeResult
    region: Region
    metadata: SamplingMetadata

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def color_at(self, row: int, col: int) -> Color:
        red, green, blue = (int(channel) for channel in self.pixels[row, col])
        return Color(red, green, blue)


class Renderer:
    """Compose sampling, escape iteration and color mapping."""

    def __init__(self, iterator: EscapeIterator, mapper: ColorMapper, *, device: Optional[str] = None):
        if device is not None:
            iterator = EscapeIterator(iterator.max_iterations, iterator.escape_radius, device=device)
        self.iterator = iterator
        self.mapper = mapper

    def sampler(self, region: Region, width: int, height: int) -> ComplexPlaneSampler:
        return ComplexPlaneSampler(region, width, height)

    def render(self, region: Region, width: int, height: int) -> PixelBuffer:
        """Render ``region`` at ``width`` x ``height`` pixels."""

        sampler = self.sampler(region, width, height)
        escape = self.iterator.run(sampler.grid())
        pixels = self.mapper.map(escape)
        return PixelBuffer(pixels=pixels, escape=escape, region=region, metadata=sampler.metadata)


def pil_format_name(ext: str) -> str:
    upper = ext.upper().lstrip(".")
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


MEDIA_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
    "WEBP": "image/webp",
}


def media_type(image_format: str) -> str:
    return MEDIA_TYPES.get(pil_format_name(image_format), "application/octet-stream")


def to_image(buffer: PixelBuffer) -> PIL.Image.Image:
    return PIL.Image.fromarray(buffer.pixels)


def encode(buffer: PixelBuffer, image_format: str = "png") -> bytes:
    """Encode ``buffer`` with Pillow and return the file bytes."""

    stream = io.BytesIO()
    to_image(buffer).save(stream, format=pil_format_name(image_format))
    return stream.getvalue()
