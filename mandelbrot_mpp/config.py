"""Configuration objects and YAML loading for the renderer and the server."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

import yaml

from .color import Color
from .colormap import ColorMapper
from .escape import DEFAULT_ESCAPE_RADIUS, DEFAULT_MAX_ITERATIONS, EscapeIterator
from .renderer import Renderer
from .sampler import DEFAULT_REGION, Region


@dataclass(frozen=True)
class RenderSettings:
    """Everything that shapes a rendered frame."""

    width: int = 720
    height: int = 600
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    escape_radius: float = DEFAULT_ESCAPE_RADIUS
    colormap: str = "twilight_shifted"
    normalize: str = "outside"
    gamma: float = 0.85
    clip_low: float = 0.5
    clip_high: float = 99.5
    invert: bool = False
    inside_color: str = "#000000"
    image_format: str = "png"
    region: Region = DEFAULT_REGION

    def __post_init__(self) -> None:
        for name in ("width", "height", "max_iterations"):
            _require_type(self, name, int)
        for name in ("escape_radius", "gamma", "clip_low", "clip_high"):
            _require_type(self, name, (int, float))
        for name in ("colormap", "normalize", "inside_color", "image_format"):
            _require_type(self, name, str)
        if not isinstance(self.region, Region):
            raise ValueError(f"region must be a Region, got {self.region!r}.")
        if self.width < 1 or self.height < 1:
            raise ValueError(f"image size must be at least 1x1, got {self.width}x{self.height}.")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}.")
        if not (math.isfinite(self.escape_radius) and self.escape_radius > 0):
            raise ValueError(f"escape_radius must be a positive number, got {self.escape_radius!r}.")

    def color_mapper(self) -> ColorMapper:
        return ColorMapper(
            colormap=self.colormap,
            normalize=self.normalize,
            gamma=self.gamma,
            clip_low=self.clip_low,
            clip_high=self.clip_high,
            invert=self.invert,
            inside_color=Color.from_hex(self.inside_color),
        )

    def renderer(self, device: Optional[str] = None, max_iterations: Optional[int] = None) -> Renderer:
        iterator = EscapeIterator(
            self.max_iterations if max_iterations is None else max_iterations,
            self.escape_radius,
            device=device,
        )
        return Renderer(iterator, self.color_mapper())


@dataclass(frozen=True)
class ServerSettings:
    """Network binding and request limits of the HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8080
    max_pixels: int = 4_000_000
    max_iterations_limit: int = 10_000
    render: RenderSettings = field(default_factory=RenderSettings)

    def __post_init__(self) -> None:
        _require_type(self, "host", str)
        for name in ("port", "max_pixels", "max_iterations_limit"):
            _require_type(self, name, int)
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be in [0, 65535], got {self.port}.")
        if self.max_pixels < 1:
            raise ValueError("max_pixels must be positive.")
        if self.render.max_iterations > self.max_iterations_limit:
            raise ValueError(
                f"max_iterations ({self.render.max_iterations}) exceeds max_iterations_limit ({self.max_iterations_limit})."
            )


def load_settings(yaml_path: str | Path | None = None, **overrides: object) -> ServerSettings:
    """Read settings from ``yaml_path`` and apply keyword ``overrides``.

    The file holds an optional ``server`` section and an optional ``render``
    section. A ``region`` entry in ``render`` is a mapping with ``top``,
    ``left``, ``bottom`` and ``right``. ``None`` overrides are ignored so
    unset command-line flags keep the file's values.
    """

    cfg: Dict[str, object] = {}
    if yaml_path is not None:
        with open(yaml_path) as f:
            try:
                cfg = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"{yaml_path}: not valid YAML: {exc}") from None
        if not isinstance(cfg, dict):
            raise ValueError(f"{yaml_path}: expected a mapping at the top level.")

    unknown = set(cfg) - {"server", "render"}
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}.")

    render_data = _check_keys(_section(cfg, "render"), RenderSettings, "render")
    server_data = _check_keys(_section(cfg, "server"), ServerSettings, "server")
    server_data.pop("render", None)

    if "region" in render_data:
        render_data["region"] = _build_region(render_data["region"])

    render_keys = {f.name for f in fields(RenderSettings)}
    server_keys = {f.name for f in fields(ServerSettings)} - {"render"}
    for key, value in overrides.items():
        if value is None:
            continue
        if key in render_keys:
            render_data[key] = value
        elif key in server_keys:
            server_data[key] = value
        else:
            raise ValueError(f"Unknown setting '{key}'.")

    return ServerSettings(render=RenderSettings(**render_data), **server_data)  # type: ignore[arg-type]


def _require_type(settings: object, name: str, expected: type | tuple[type, ...]) -> None:
    value = getattr(settings, name)
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ValueError(f"{name} has the wrong type: {value!r}.")


def _section(cfg: Dict[str, object], name: str) -> Dict[str, object]:
    section = cfg.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping, got {section!r}.")
    return dict(section)


def _check_keys(data: Dict[str, object], cls: type, section: str) -> Dict[str, object]:
    allowed = {f.name for f in fields(cls)}
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in '{section}' section: {', '.join(sorted(unknown))}.")
    return data


def _build_region(entry: object) -> Region:
    if isinstance(entry, Region):
        return entry
    if not isinstance(entry, dict):
        raise ValueError(f"Unsupported region specification: {entry!r}")
    missing = {"top", "left", "bottom", "right"} - set(entry)
    if missing:
        raise ValueError(f"region must include {', '.join(sorted(missing))}.")
    try:
        bounds = {name: float(entry[name]) for name in ("top", "left", "bottom", "right")}
    except (TypeError, ValueError):
        raise ValueError(f"region bounds must be numbers, got {entry!r}.") from None
    return Region(**bounds)
