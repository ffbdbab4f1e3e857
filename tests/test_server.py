"""Tests for the HTTP image server."""

import io
import json
import urllib.error
import urllib.request

import PIL.Image
import pytest

from mandelbrot_mpp import HttpImageServer


@pytest.fixture
def app(server_settings):
    return HttpImageServer(server_settings)


def test_default_view_is_a_png(app):
    response = app.handle("GET", "/mandelbrot")
    assert response.status == 200
    assert response.content_type == "image/png"
    assert PIL.Image.open(io.BytesIO(response.body)).size == (16, 12)


def test_sub_region(app):
    response = app.handle("GET", "/mandelbrot?top=0.5&left=-1.0&bottom=-0.5&right=0.25")
    assert response.status == 200
    assert response.body.startswith(b"\x89PNG")


def test_size_and_iterations_parameters(app):
    response = app.handle("GET", "/mandelbrot?width=8&height=4&iterations=16")
    assert response.status == 200
    assert PIL.Image.open(io.BytesIO(response.body)).size == (8, 4)


def test_trailing_slash_is_accepted(app):
    assert app.handle("GET", "/mandelbrot/").status == 200


@pytest.mark.parametrize(
    "query, fragment",
    [
        ("top=1&left=-2&bottom=-1", "missing right"),
        ("top=abc&left=-2&bottom=-1&right=1", "must be a number"),
        ("top=-1&left=-2&bottom=1&right=1", "bottom"),
        ("top=nan&left=-2&bottom=-1&right=1", "finite"),
        ("width=1000&height=1000", "exceeds"),
        ("width=0", "positive"),
        ("width=ten", "integer"),
        ("iterations=0", "iterations"),
        ("iterations=100000", "iterations"),
        ("top=1&top=2&left=-2&bottom=-1&right=1", "more than once"),
    ],
)
def test_bad_requests(app, query, fragment):
    response = app.handle("GET", "/mandelbrot?" + query)
    assert response.status == 400
    assert response.content_type.startswith("text/plain")
    assert fragment in response.body.decode("utf-8")


def test_unknown_path(app):
    assert app.handle("GET", "/julia").status == 404


def test_method_not_allowed(app):
    response = app.handle("POST", "/mandelbrot")
    assert response.status == 405
    assert response.headers["Allow"] == "GET, HEAD"


def test_canvas_payload(app):
    response = app.handle("GET", "/mandelbrot/canvas?width=6&height=4")
    assert response.status == 200
    assert response.content_type == "application/json"
    payload = json.loads(response.body)
    assert (payload["width"], payload["height"]) == (6, 4)
    assert sum(command["w"] for command in payload["commands"]) == 6 * 4


def test_index_page(app):
    response = app.handle("GET", "/")
    assert response.status == 200
    assert response.content_type.startswith("text/html")
    assert b"<canvas" in response.body


def test_render_failure_is_reported(app, monkeypatch):
    def explode(*args):
        raise RuntimeError("device lost")

    monkeypatch.setattr(app.renderer, "render", explode)
    response = app.handle("GET", "/mandelbrot")
    assert response.status == 500


def test_serves_over_http(server_settings):
    with HttpImageServer(server_settings) as server:
        assert not server.url.endswith(":0")
        with urllib.request.urlopen(server.url + "/mandelbrot?top=1&left=-2&bottom=-1&right=1", timeout=30) as response:
            assert response.status == 200
            assert response.headers["Content-Type"] == "image/png"
            body = response.read()
        assert int(response.headers["Content-Length"]) == len(body)

        with pytest.raises(urllib.error.HTTPError) as excinfo:
            urllib.request.urlopen(server.url + "/mandelbrot?top=1", timeout=30)
        assert excinfo.value.code == 400

        head = urllib.request.Request(server.url + "/mandelbrot", method="HEAD")
        with urllib.request.urlopen(head, timeout=30) as response:
            assert response.status == 200
            assert response.read() == b""


@pytest.mark.parametrize("method", ["OPTIONS", "PUT", "PROPFIND"])
def test_every_other_method_is_not_allowed_over_http(server_settings, method):
    with HttpImageServer(server_settings) as server:
        request = urllib.request.Request(server.url + "/mandelbrot", method=method)
        with pytest.raises(urllib.error.HTTPError) as excinfo:
            urllib.request.urlopen(request, timeout=30)
        assert excinfo.value.code == 405
        assert excinfo.value.headers["Allow"] == "GET, HEAD"
