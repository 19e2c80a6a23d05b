import logging
import os
import sys

import pytest
from pydantic import ValidationError as PydanticValidationError

from conftest import SceneSplittingMagick
from magick_api.errors import TransformError
from magick_api.schemas import (
    ResizeParams, ConvertParams, RotateParams, FlipParams,
    CropParams, TrimParams, OptimizeParams, TerminalParams,
)
from magick_api.services.magick import MagickInvoker, build_args, resize_geometry, source_path


# ============================================================================
# argument building
# ============================================================================

@pytest.mark.parametrize("width,height,expected", [
    (800, 600, "800x600!"),
    (800, None, "800x"),
    (None, 600, "x600"),
])
def test_resize_geometry(width, height, expected):
    assert resize_geometry(width, height) == expected


def test_resize_geometry_needs_a_dimension():
    with pytest.raises(TransformError):
        resize_geometry(None, None)


def test_resize_args():
    args = build_args(ResizeParams(format="png", width=800), "in.jpg", "out.png")
    assert args == ["in.jpg[0]", "-resize", "800x", "png:out.png"]


def test_convert_quality_only_for_lossy_formats():
    assert build_args(ConvertParams(format="jpg", quality=70), "in", "out") == ["in[0]", "-quality", "70", "jpg:out"]
    assert build_args(ConvertParams(format="webp", quality=70), "in", "out") == ["in", "-quality", "70", "webp:out"]
    assert build_args(ConvertParams(format="png", quality=70), "in", "out") == ["in[0]", "png:out"]


def test_rotate_and_flip_args():
    assert build_args(RotateParams(format="png", degrees=-90), "in", "out") == ["in[0]", "-rotate", "-90", "png:out"]
    assert build_args(FlipParams(format="jpg", direction="horizontal"), "in", "out") == ["in[0]", "-flop", "jpg:out"]
    assert build_args(FlipParams(format="jpg", direction="vertical"), "in", "out") == ["in[0]", "-flip", "jpg:out"]


def test_crop_and_trim_reset_page():
    crop = build_args(CropParams(format="png", width=500, height=500, x=100, y=50), "in", "out")
    assert crop == ["in[0]", "-crop", "500x500+100+50", "+repage", "png:out"]
    assert build_args(TrimParams(format="gif"), "in", "out") == ["in", "-trim", "+repage", "gif:out"]


def test_optimize_strips_metadata():
    assert build_args(OptimizeParams(format="jpg", quality=60), "in", "out") == ["in[0]", "-strip", "-quality", "60", "jpg:out"]


def test_terminal_dither_pipeline():
    args = build_args(TerminalParams(), "in.jpg", "out.png")
    assert args[0] == "in.jpg[0]"
    assert args[-1] == "png:out.png"
    assert args.index("-contrast-stretch") < args.index("-sharpen") < args.index("-dither")
    assert "FloydSteinberg" in args
    assert args[args.index("-depth") + 1] == "1"
    assert "-strip" in args


@pytest.mark.parametrize("fmt,expected", [
    ("png", "in.gif[0]"),
    ("jpg", "in.gif[0]"),
    ("bmp", "in.gif[0]"),
    ("svg", "in.gif[0]"),
    ("gif", "in.gif"),
    ("webp", "in.gif"),
    ("tiff", "in.gif"),
])
def test_single_frame_targets_read_first_frame(fmt, expected):
    assert source_path("in.gif", fmt) == expected


def test_params_are_immutable():
    params = ResizeParams(format="png", width=10)
    with pytest.raises(PydanticValidationError):
        params.width = 20


# ============================================================================
# subprocess execution, using the Python interpreter as a stand-in binary
# ============================================================================

def python_invoker(**kwargs) -> MagickInvoker:
    return MagickInvoker(binary=sys.executable, **kwargs)


@pytest.mark.asyncio
async def test_execute_returns_output():
    stdout, stderr = await python_invoker().execute(["-c", "print('7.1.1')"])
    assert stdout.strip() == "7.1.1"
    assert stderr == ""


@pytest.mark.asyncio
async def test_execute_nonzero_exit_wraps_stderr():
    script = "import sys; sys.stderr.write('no decode delegate'); sys.exit(1)"
    with pytest.raises(TransformError) as exc_info:
        await python_invoker().execute(["-c", script])
    assert exc_info.value.status_code == 500
    assert "no decode delegate" in exc_info.value.detail
    assert "no decode delegate" not in exc_info.value.message


@pytest.mark.asyncio
async def test_execute_stderr_on_success_is_a_warning(caplog):
    script = "import sys; sys.stderr.write('profile ignored')"
    with caplog.at_level(logging.WARNING):
        await python_invoker().execute(["-c", script])
    assert "profile ignored" in caplog.text
    assert any(record.levelno == logging.WARNING for record in caplog.records)


@pytest.mark.asyncio
async def test_execute_spawn_failure():
    invoker = MagickInvoker(binary="/nonexistent/magick")
    with pytest.raises(TransformError, match="not available"):
        await invoker.execute(["-version"])


@pytest.mark.asyncio
async def test_execute_timeout():
    with pytest.raises(TransformError, match="timed out"):
        await python_invoker(timeout=0.2).execute(["-c", "import time; time.sleep(5)"])


@pytest.mark.asyncio
async def test_execute_output_ceiling():
    with pytest.raises(TransformError, match="too large"):
        await python_invoker(max_buffer=100).execute(["-c", "print('x' * 1000)"])


@pytest.mark.asyncio
async def test_run_without_output_file_is_a_transform_error(tmp_path):
    output_path = str(tmp_path / "in_resized.png")
    with pytest.raises(TransformError, match="no output image"):
        await SceneSplittingMagick().run(ResizeParams(format="png", width=10), str(tmp_path / "in.gif"), output_path)
    assert sorted(os.listdir(tmp_path)) == ["in_resized-0.png", "in_resized-1.png"]


@pytest.mark.asyncio
async def test_version_falls_back_when_missing():
    assert await MagickInvoker(binary="/nonexistent/magick").version() == "Not available"
