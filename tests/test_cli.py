"""End-to-end tests of the command line."""

import PIL.Image
import pytest

import mandelbrot_server

SMALL = ["--width", "16", "--height", "12", "--max-iterations", "16"]


def test_render_single_image(tmp_path):
    output = tmp_path / "out" / "frame.png"
    mandelbrot_server.main(["render", "--output", str(output), *SMALL])
    assert PIL.Image.open(output).size == (16, 12)


def test_render_adds_missing_suffix(tmp_path):
    mandelbrot_server.main(["render", "--output", str(tmp_path / "frame"), "--format", "jpg", *SMALL])
    assert (tmp_path / "frame.jpg").exists()


def test_render_sub_region(tmp_path):
    output = tmp_path / "region.png"
    mandelbrot_server.main([
        "render", "--output", str(output), *SMALL,
        "--top", "0.1", "--left", "-0.8", "--bottom", "-0.1", "--right", "-0.6",
    ])
    assert output.exists()


def test_render_zoom_animation(tmp_path):
    output = tmp_path / "zoom.gif"
    mandelbrot_server.main([
        "render", "--output", str(output), *SMALL,
        "--frames", "3", "--zoom-factor", "0.5", "--lock-aspect",
    ])
    image = PIL.Image.open(output)
    assert image.n_frames >= 2


def test_canvas_page(tmp_path):
    output = tmp_path / "mandelbrot.html"
    mandelbrot_server.main(["canvas", "--output", str(output), *SMALL])
    page = output.read_text(encoding="utf-8")
    assert "<canvas" in page
    assert "const embedded = null;" not in page


def test_config_file_is_read(tmp_path):
    config = tmp_path / "settings.yaml"
    config.write_text("render:\n  width: 10\n  height: 6\n  max_iterations: 8\n")
    output = tmp_path / "frame.png"
    mandelbrot_server.main(["render", "--config", str(config), "--output", str(output)])
    assert PIL.Image.open(output).size == (10, 6)


@pytest.mark.parametrize(
    "extra",
    [
        ["--top", "1.0"],
        ["--top", "-1", "--left", "-2", "--bottom", "1", "--right", "1"],
        ["--inside-color", "black"],
        ["--colormap", "no-such-colormap"],
        ["--max-iterations", "0"],
        ["--escape-radius", "-1"],
    ],
)
def test_invalid_arguments_exit(tmp_path, extra):
    with pytest.raises(SystemExit):
        mandelbrot_server.main(["render", "--output", str(tmp_path / "x.png"), *SMALL, *extra])


def test_output_suffix_must_match(tmp_path):
    with pytest.raises(SystemExit):
        mandelbrot_server.main(["render", "--output", str(tmp_path / "x.png"), "--frames", "2", *SMALL])


@pytest.mark.parametrize("text", ["render:\n  width: ten\n", "render: [unclosed\n"])
def test_broken_config_file_exits(tmp_path, text):
    config = tmp_path / "settings.yaml"
    config.write_text(text)
    with pytest.raises(SystemExit):
        mandelbrot_server.main(["render", "--config", str(config), "--output", str(tmp_path / "x.png")])
