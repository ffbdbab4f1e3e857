"""Public API for the shared Mandelbrot renderer."""

from .canvas import CanvasImageDrawer, FillRect
from .color import CanvasColorFactory, Color, ColorFactory, PillowColorFactory, get_color_factory
from .colormap import ColorMapper
from .config import RenderSettings, ServerSettings, load_settings
from .escape import EscapeIterator, EscapeResult, escape_count
from .navigation import ZoomPlanner, compute_zoom_factors, recenter, select_zoom_center
from .renderer import PixelBuffer, Renderer, encode, to_image
from .sampler import DEFAULT_REGION, ComplexPlaneSampler, InvalidRegionError, Region, SamplingMetadata
from .server import HttpImageServer

__all__ = [
    "CanvasColorFactory",
    "CanvasImageDrawer",
    "Color",
    "ColorFactory",
    "ColorMapper",
    "ComplexPlaneSampler",
    "DEFAULT_REGION",
    "EscapeIterator",
    "EscapeResult",
    "FillRect",
    "HttpImageServer",
    "InvalidRegionError",
    "PillowColorFactory",
    "PixelBuffer",
    "Region",
    "RenderSettings",
    "Renderer",
    "SamplingMetadata",
    "ServerSettings",
    "ZoomPlanner",
    "compute_zoom_factors",
    "encode",
    "escape_count",
    "get_color_factory",
    "load_settings",
    "recenter",
    "select_zoom_center",
    "to_image",
]
