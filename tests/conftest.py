import pytest

from mandelbrot_mpp import RenderSettings, ServerSettings


@pytest.fixture
def render_settings():
    return RenderSettings(width=24, height=16, max_iterations=64)


@pytest.fixture
def renderer(render_settings):
    return render_settings.renderer()


@pytest.fixture
def server_settings():
    return ServerSettings(
        port=0,
        max_pixels=10_000,
        max_iterations_limit=500,
        render=RenderSettings(width=16, height=12, max_iterations=32),
    )
