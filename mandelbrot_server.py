import os
import sys
import warnings
from argparse import ArgumentParser
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

import imageio
import numpy as np

from mandelbrot_mpp import (
    CanvasImageDrawer,
    HttpImageServer,
    Region,
    ZoomPlanner,
    compute_zoom_factors,
    load_settings,
    to_image,
)
from mandelbrot_mpp import diagnostics
from mandelbrot_mpp.renderer import pil_format_name


def _add_render_arguments(parser):
    parser.add_argument('--config', type=str, dest='config', metavar='CONFIG',
                        help='YAML file with "render" and "server" sections. Command-line flags take precedence.')

    parser.add_argument('--top', type=float, help='upper edge of the region in the complex plane')
    parser.add_argument('--left', type=float, help='left edge of the region in the complex plane')
    parser.add_argument('--bottom', type=float, help='lower edge of the region in the complex plane')
    parser.add_argument('--right', type=float, help='right edge of the region in the complex plane')

    parser.add_argument('--width', type=int,
                        dest='width', help='image width in pixels',
                        metavar='WIDTH')

    parser.add_argument('--height', type=int,
                        dest='height', help='image height in pixels',
                        metavar='HEIGHT')

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='maximum number of times to iterate the Mandelbrot map',
                        metavar='MAX_ITERATIONS')

    parser.add_argument('--escape-radius', type=float,
                        dest='escape_radius', help='modulus beyond which a point counts as escaped',
                        metavar='ESCAPE_RADIUS')

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap to colorize the fractal (e.g. "viridis", "inferno")',
                        metavar='COLORMAP')

    parser.add_argument('--format', type=str,
                        dest='image_format', help='file format for images. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT')

    parser.add_argument('--normalize', choices=['outside', 'all'],
                        help='Normalization strategy: "outside" uses only escaping points; "all" uses every sample.')
    parser.add_argument('--gamma', type=float, help='Gamma correction for tone mapping.')
    parser.add_argument('--clip-low', type=float, dest='clip_low', help='Lower percentile for normalization clipping.')
    parser.add_argument('--clip-high', type=float, dest='clip_high', help='Upper percentile for normalization clipping.')
    parser.add_argument('--invert', action='store_true', default=None, help='Invert the selected colormap.')
    parser.add_argument('--inside-color', type=str, dest='inside_color',
                        help='Hex color for points inside the Mandelbrot set.')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set as images, canvas pages or over HTTP.')
    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    serve = commands.add_parser('serve', help='serve GET /mandelbrot over HTTP')
    _add_render_arguments(serve)
    serve.add_argument('--host', type=str, help='interface to bind (default 127.0.0.1)')
    serve.add_argument('--port', type=int, help='port to bind, 0 picks a free one (default 8080)')
    serve.add_argument('--max-pixels', type=int, dest='max_pixels',
                       help='largest width*height a request may ask for')

    render = commands.add_parser('render', help='write a single image or a zoom animation')
    _add_render_arguments(render)
    render.add_argument('--output', dest='output', type=str, required=True,
                        help='Destination file. A GIF when --frames is greater than one.')
    render.add_argument('--frames', type=int, dest='frames', metavar='FRAMES', default=1,
                        help='number of frames to generate; more than one produces a zoom GIF')
    render.add_argument('--zoom-factor', type=float, dest='zoom_factor', metavar='ZOOM_FACTOR', default=0.8,
                        help='the factor by which to multiply the region size each frame. Choose < 1 for zoom in, >1 for zoom out')
    render.add_argument('--final-zoom', type=float, default=None,
                        help='Overall scale applied by the last frame (e.g., 1e-4 narrows the region by 10000x). If set, overrides --zoom-factor.')
    render.add_argument('--easing', choices=['linear', 'ease'], default='ease',
                        help='Temporal curve used for variable zoom: "linear" or "ease" for smooth ease-in-out.')
    render.add_argument('--lock-aspect', action='store_true',
                        help='Keeps the region height at width * (height/width pixels) to avoid stretching.')

    canvas = commands.add_parser('canvas', help='write a standalone HTML page that draws the region on a canvas')
    _add_render_arguments(canvas)
    canvas.add_argument('--output', dest='output', type=str, required=True, help='Destination .html file.')

    return parser


def resolve_settings(opt, parser):
    bounds = [getattr(opt, name) for name in ('top', 'left', 'bottom', 'right')]
    region = None
    if any(value is not None for value in bounds):
        if any(value is None for value in bounds):
            parser.error('--top, --left, --bottom and --right must be given together.')
        try:
            region = Region(*bounds)
        except ValueError as exc:
            parser.error(str(exc))

    overrides = {
        name: getattr(opt, name, None)
        for name in (
            'width', 'height', 'max_iterations', 'escape_radius', 'colormap', 'image_format',
            'normalize', 'gamma', 'clip_low', 'clip_high', 'invert', 'inside_color',
            'host', 'port', 'max_pixels',
        )
    }
    overrides['region'] = region
    try:
        settings = load_settings(opt.config, **overrides)
        settings.render.renderer()
    except (OSError, ValueError) as exc:
        parser.error(str(exc))
    return settings


def resolve_output_path(opt, parser, image_format):
    output_path = Path(opt.output).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error('--output must point to a file, not a directory.')

    if opt.command == 'canvas':
        expected_suffix = '.html'
    elif opt.frames > 1:
        expected_suffix = '.gif'
    else:
        expected_suffix = f'.{image_format}'

    if output_path.suffix:
        if output_path.suffix.lower() != expected_suffix.lower():
            parser.error(f'--output extension {output_path.suffix} does not match the expected {expected_suffix}.')
    else:
        output_path = output_path.with_suffix(expected_suffix)
    output_path = output_path.resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def write_zoom_animation(renderer, planner, region, settings, opt, output_path):
    """Render ``opt.frames`` frames zooming towards the set boundary into a GIF."""

    width, height = settings.width, settings.height
    focus = renderer.render(region, width, height)
    region = planner.initialize_focus(focus)

    per_frame_factors = compute_zoom_factors(opt.frames, opt.zoom_factor, final_zoom=opt.final_zoom, easing=opt.easing)

    writer = imageio.get_writer(str(output_path), mode='I', duration=100, loop=0)
    try:
        for i in range(opt.frames):
            diagnostics.log("frame {0} out of {1}".format(i, opt.frames))
            buffer = renderer.render(region, width, height)
            writer.append_data(buffer.pixels)
            if i < opt.frames - 1:
                region = planner.update_after_frame(buffer, per_frame_factors[i])
    finally:
        writer.close()


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    diagnostics.set_verbose(opt.verbose)
    diagnostics.quiet_tensorflow()

    settings = resolve_settings(opt, parser)
    device = diagnostics.select_device()

    if opt.command == 'serve':
        server = HttpImageServer(settings, device=device)
        server.bind()
        print("Serving Mandelbrot images at %s/mandelbrot" % server.url)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        return

    render_settings = settings.render
    renderer = render_settings.renderer(device)

    if opt.command == 'canvas':
        output_path = resolve_output_path(opt, parser, render_settings.image_format)
        buffer = renderer.render(render_settings.region, render_settings.width, render_settings.height)
        page = CanvasImageDrawer().render_page(
            render_settings.region, render_settings.width, render_settings.height, buffer=buffer
        )
        output_path.write_text(page, encoding='utf-8')
        print("Wrote %s" % output_path)
        return

    if opt.frames < 1:
        parser.error('--frames must be at least 1.')
    image_format = (render_settings.image_format or 'png').lower().lstrip('.')
    output_path = resolve_output_path(opt, parser, image_format)

    aspect = np.float64(render_settings.height / render_settings.width)
    planner = ZoomPlanner(lock_aspect=bool(opt.lock_aspect), aspect=float(aspect))
    region = planner.enforce_aspect(render_settings.region)

    if opt.frames > 1:
        write_zoom_animation(renderer, planner, region, render_settings, opt, output_path)
    else:
        buffer = renderer.render(region, render_settings.width, render_settings.height)
        to_image(buffer).save(str(output_path), format=pil_format_name(image_format))
    print("Wrote %s" % output_path)


if __name__ == '__main__':
    main()
