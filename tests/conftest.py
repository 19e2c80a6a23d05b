import io
import os
import shutil

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from magick_api.config import Settings, get_settings
from magick_api.dependencies import get_magick
from magick_api.errors import TransformError
from magick_api.main import app
from magick_api.services.magick import MagickInvoker, build_args


class FakeMagick(MagickInvoker):
    """Records each transform and copies the input to the output path."""

    def __init__(self, fail: bool = False):
        super().__init__(binary="magick-not-used")
        self.fail = fail
        self.calls = []

    async def run(self, params, input_path, output_path):
        self.calls.append({
            "params": params,
            "input_path": input_path,
            "output_path": output_path,
            "args": build_args(params, input_path, output_path),
        })
        if self.fail:
            raise TransformError(
                "Image processing failed. The image could not be transformed.",
                detail="magick: no decode delegate for this image format `/secret/path.png'",
            )
        shutil.copyfile(input_path, output_path)

    async def version(self):
        return "Version: ImageMagick 7.1.1-test"


class SceneSplittingMagick(MagickInvoker):
    """Exits cleanly but writes ``<out>-0.png`` and ``<out>-1.png`` instead of ``<out>.png``,
    the way ImageMagick saves a multi-frame image to a single-frame format."""

    def __init__(self):
        super().__init__(binary="magick-not-used")

    async def execute(self, args):
        base, ext = os.path.splitext(args[-1].split(":", 1)[1])
        for n in range(2):
            with open(f"{base}-{n}{ext}", "wb") as f:
                f.write(b"frame")
        return "", ""


def make_image(width=120, height=80, fmt="PNG", color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_animated_gif(width=20, height=20) -> bytes:
    frames = [Image.new("RGB", (width, height), color) for color in ((255, 0, 0), (0, 0, 255))]
    buffer = io.BytesIO()
    frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:], duration=100, loop=0)
    return buffer.getvalue()


@pytest.fixture
def scratch_dir(tmp_path):
    return tmp_path / "scratch"


@pytest.fixture
def settings(scratch_dir):
    return Settings(_env_file=None, TEMP_DIR=str(scratch_dir), API_TOKEN=None, CLEANUP_DELAY=0)


@pytest.fixture
def fake_magick():
    return FakeMagick()


@pytest.fixture
def make_client():
    def _make(settings, magick=None):
        app.dependency_overrides[get_settings] = lambda: settings
        if magick is not None:
            app.dependency_overrides[get_magick] = lambda: magick
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, settings, fake_magick):
    return make_client(settings, fake_magick)


@pytest.fixture
def png_bytes():
    return make_image()


@pytest.fixture
def png_upload(png_bytes):
    return {"image": ("photo.png", png_bytes, "image/png")}
