"""HTTP front end serving rendered regions as images and canvas payloads."""

from __future__ import annotations

import json
import threading
import traceback
from dataclasses import dataclass, field
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from . import diagnostics
from .canvas import CANVAS_ENDPOINT, CanvasImageDrawer
from .config import ServerSettings
from .renderer import Renderer, encode, media_type
from .sampler import Region

IMAGE_ENDPOINT = "/mandelbrot"
INDEX_ENDPOINT = "/"
REGION_PARAMS = ("top", "left", "bottom", "right")


class BadRequest(ValueError):
    """A request parameter is missing, malformed or out of range."""


@dataclass
class Response:
    status: int
    content_type: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def text(cls, status: int, message: str) -> "Response":
        return cls(status, "text/plain; charset=utf-8", (message + "\n").encode("utf-8"))


@dataclass(frozen=True)
class RenderRequest:
    region: Region
    width: int
    height: int
    max_iterations: int


class HttpImageServer:
    """Serve ``GET /mandelbrot`` images, canvas payloads and the canvas page."""

    def __init__(self, settings: Optional[ServerSettings] = None, *, device: Optional[str] = None):
        self.settings = settings if settings is not None else ServerSettings()
        self.device = device
        self.renderer = self.settings.render.renderer(device)
        self.drawer = CanvasImageDrawer()
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    # -- request handling -------------------------------------------------

    def handle(self, method: str, target: str) -> Response:
        """Produce the response for ``method`` on ``target`` (path plus query)."""

        url = urlsplit(target)
        path = url.path.rstrip("/") or INDEX_ENDPOINT
        if path not in (IMAGE_ENDPOINT, CANVAS_ENDPOINT, INDEX_ENDPOINT):
            return Response.text(HTTPStatus.NOT_FOUND, f"No such resource: {url.path}")
        if method not in ("GET", "HEAD"):
            response = Response.text(HTTPStatus.METHOD_NOT_ALLOWED, f"Method {method} not allowed.")
            response.headers["Allow"] = "GET, HEAD"
            return response

        try:
            request = self.parse_request(url.query)
        except ValueError as exc:
            return Response.text(HTTPStatus.BAD_REQUEST, str(exc))

        if path == INDEX_ENDPOINT:
            page = self.drawer.render_page(request.region, request.width, request.height)
            return Response(HTTPStatus.OK, "text/html; charset=utf-8", page.encode("utf-8"))

        try:
            buffer = self._renderer_for(request).render(request.region, request.width, request.height)
            if path == CANVAS_ENDPOINT:
                body = json.dumps(self.drawer.payload(buffer)).encode("utf-8")
                return Response(HTTPStatus.OK, "application/json", body)
            image_format = self.settings.render.image_format
            return Response(HTTPStatus.OK, media_type(image_format), encode(buffer, image_format))
        except Exception:
            diagnostics.error("Render failed for %s\n%s" % (target, traceback.format_exc()))
            return Response.text(HTTPStatus.INTERNAL_SERVER_ERROR, "Rendering failed.")

    def parse_request(self, query: str) -> RenderRequest:
        params = _single_values(query)
        render = self.settings.render

        supplied = [name for name in REGION_PARAMS if name in params]
        if supplied and len(supplied) != len(REGION_PARAMS):
            missing = [name for name in REGION_PARAMS if name not in params]
            raise BadRequest(f"Region requires all of top, left, bottom and right; missing {', '.join(missing)}.")
        if supplied:
            region = Region(**{name: _parse_float(params, name) for name in REGION_PARAMS})
        else:
            region = render.region

        width = _parse_int(params, "width", render.width)
        height = _parse_int(params, "height", render.height)
        if width < 1 or height < 1:
            raise BadRequest(f"width and height must be positive, got {width}x{height}.")
        if width * height > self.settings.max_pixels:
            raise BadRequest(f"Image of {width}x{height} exceeds the limit of {self.settings.max_pixels} pixels.")

        max_iterations = _parse_int(params, "iterations", render.max_iterations)
        if not 1 <= max_iterations <= self.settings.max_iterations_limit:
            raise BadRequest(f"iterations must be in [1, {self.settings.max_iterations_limit}], got {max_iterations}.")

        return RenderRequest(region=region, width=width, height=height, max_iterations=max_iterations)

    def _renderer_for(self, request: RenderRequest) -> Renderer:
        if request.max_iterations == self.renderer.iterator.max_iterations:
            return self.renderer
        return self.settings.render.renderer(self.device, request.max_iterations)

    # -- lifecycle --------------------------------------------------------

    @property
    def url(self) -> str:
        if self._httpd is None:
            return f"http://{self.settings.host}:{self.settings.port}"
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}"

    def bind(self) -> ThreadingHTTPServer:
        if self._httpd is None:
            self._httpd = ThreadingHTTPServer((self.settings.host, self.settings.port), _make_handler(self))
            self._httpd.daemon_threads = True
            diagnostics.log("Listening on %s" % self.url)
        return self._httpd

    def serve_forever(self) -> None:
        httpd = self.bind()
        try:
            httpd.serve_forever()
        finally:
            httpd.server_close()
            self._httpd = None

    def start(self) -> "HttpImageServer":
        """Serve from a background thread."""

        httpd = self.bind()
        self._thread = threading.Thread(target=httpd.serve_forever, name="mandelbrot-http", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._httpd = None

    def __enter__(self) -> "HttpImageServer":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()


def _make_handler(app: HttpImageServer) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        server_version = "MandelbrotHTTP/1.0"

        def _respond(self, send_body: bool = True) -> None:
            response = app.handle(self.command, self.path)
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(response.body)))
            for name, value in response.headers.items():
                self.send_header(name, value)
            self.end_headers()
            if send_body:
                self.wfile.write(response.body)

        def do_GET(self) -> None:
            self._respond()

        def do_HEAD(self) -> None:
            self._respond(send_body=False)

        def __getattr__(self, name: str):
            # any other method reaches handle(), which answers 405
            if name.startswith("do_"):
                return self.do_GET
            raise AttributeError(name)

        def log_message(self, format: str, *args) -> None:
            diagnostics.log("%s - %s" % (self.address_string(), format % args))

    return Handler


def _single_values(query: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for name, entries in parse_qs(query, keep_blank_values=True).items():
        if len(entries) != 1:
            raise BadRequest(f"Parameter '{name}' given more than once.")
        values[name] = entries[0]
    return values


def _parse_float(params: dict[str, str], name: str) -> float:
    try:
        return float(params[name])
    except ValueError:
        raise BadRequest(f"Parameter '{name}' must be a number, got '{params[name]}'.") from None


def _parse_int(params: dict[str, str], name: str, default: int) -> int:
    if name not in params:
        return default
    try:
        return int(params[name])
    except ValueError:
        raise BadRequest(f"Parameter '{name}' must be an integer, got '{params[name]}'.") from None
