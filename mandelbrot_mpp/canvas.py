"""Drawing of rendered frames on a browser canvas."""

from __future__ import annotations

import json
from dataclasses import dataclass
from string import Template
from typing import Any, Optional

import numpy as np

from .color import ColorFactory, get_color_factory
from .renderer import PixelBuffer
from .sampler import Region

CANVAS_ENDPOINT = "/mandelbrot/canvas"


@dataclass(frozen=True)
class FillRect:
    """A single ``fillRect`` call with the ``fillStyle`` to set before it."""

    x: int
    y: int
    width: int
    height: int
    fill_style: Any

    def to_json(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "w": self.width, "h": self.height, "fill": self.fill_style}


class CanvasImageDrawer:
    """Translate pixel buffers into canvas drawing instructions."""

    def __init__(self, factory: Optional[ColorFactory] = None):
        self.factory = factory if factory is not None else get_color_factory("canvas")

    def draw_commands(self, buffer: PixelBuffer) -> list[FillRect]:
        """One rectangle per horizontal run of identically colored pixels."""

        commands: list[FillRect] = []
        pixels = buffer.pixels
        for row in range(buffer.height):
            line = pixels[row]
            if buffer.width > 1:
                changes = np.flatnonzero(np.any(line[1:] != line[:-1], axis=1)) + 1
            else:
                changes = np.array([], dtype=np.int64)
            starts = np.concatenate(([0], changes))
            ends = np.concatenate((changes, [buffer.width]))
            for start, end in zip(starts, ends):
                red, green, blue = (int(channel) for channel in line[start])
                commands.append(FillRect(
                    x=int(start),
                    y=row,
                    width=int(end - start),
                    height=1,
                    fill_style=self.factory.create(red, green, blue),
                ))
        return commands

    def image_data(self, buffer: PixelBuffer) -> dict[str, Any]:
        """Flat RGBA bytes, laid out the way ``ImageData`` expects them."""

        alpha = np.full(buffer.pixels.shape[:2] + (1,), 255, dtype=np.uint8)
        rgba = np.concatenate((buffer.pixels, alpha), axis=-1)
        return {"width": buffer.width, "height": buffer.height, "data": rgba.reshape(-1).tolist()}

    def payload(self, buffer: PixelBuffer) -> dict[str, Any]:
        return {
            "region": buffer.region.as_query(),
            "width": buffer.width,
            "height": buffer.height,
            "commands": [command.to_json() for command in self.draw_commands(buffer)],
        }

    def render_page(
        self,
        region: Region,
        width: int,
        height: int,
        *,
        buffer: Optional[PixelBuffer] = None,
        zoom_factor: float = 0.5,
    ) -> str:
        """HTML page holding a canvas and the script that draws on it.

        Without ``buffer`` the page fetches its frames from the server and
        zooms in around clicked points. With ``buffer`` the frame is embedded
        and the page works without a server.
        """

        embedded = json.dumps(self.payload(buffer)) if buffer is not None else "null"
        return _PAGE.substitute(
            width=int(width),
            height=int(height),
            region=json.dumps(region.as_query()),
            embedded=embedded.replace("</", "<\\/"),
            endpoint=CANVAS_ENDPOINT,
            zoom=json.dumps(float(zoom_factor)),
        )


_PAGE = Template("""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Mandelbrot</title>
<style>body { margin: 0; background: #111; } canvas { display: block; margin: 0 auto; cursor: crosshair; }</style>
</head>
<body>
<canvas id="mandelbrot" width="$width" height="$height"></canvas>
<script>
const canvas = document.getElementById("mandelbrot");
const ctx = canvas.getContext("2d");
const embedded = $embedded;
const zoom = $zoom;
let region = $region;

function draw(frame) {
  region = frame.region;
  canvas.width = frame.width;
  canvas.height = frame.height;
  for (const cmd of frame.commands) {
    ctx.fillStyle = cmd.fill;
    ctx.fillRect(cmd.x, cmd.y, cmd.w, cmd.h);
  }
}

function load() {
  const query = new URLSearchParams({
    top: region.top, left: region.left, bottom: region.bottom, right: region.right,
    width: canvas.width, height: canvas.height,
  });
  fetch("$endpoint?" + query)
    .then((response) => response.ok ? response.json() : Promise.reject(response.statusText))
    .then(draw)
    .catch((error) => console.error("render failed", error));
}

canvas.addEventListener("click", (event) => {
  if (embedded !== null) {
    return;
  }
  const rect = canvas.getBoundingClientRect();
  const col = event.clientX - rect.left;
  const row = event.clientY - rect.top;
  const re = region.left + col * (region.right - region.left) / Math.max(canvas.width - 1, 1);
  const im = region.top - row * (region.top - region.bottom) / Math.max(canvas.height - 1, 1);
  const halfW = (region.right - region.left) * zoom / 2;
  const halfH = (region.top - region.bottom) * zoom / 2;
  region = { top: im + halfH, left: re - halfW, bottom: im - halfH, right: re + halfW };
  load();
});

if (embedded !== null) {
  draw(embedded);
} else {
  load();
}
</script>
</body>
</html>
""")
