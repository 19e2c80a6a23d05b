"""
ImageMagick invocation.

Builds the ``magick`` argument list for each transform and runs it as a
single subprocess without a shell. The input file is only ever read.
"""
import asyncio
import logging
import os
from typing import List, Tuple

from magick_api.errors import TransformError
from magick_api.schemas import (
    TransformParams, ResizeParams, ConvertParams, RotateParams, FlipParams,
    CropParams, TrimParams, OptimizeParams, TerminalParams,
)

logger = logging.getLogger(__name__)

QUALITY_FORMATS = ("jpg", "jpeg", "webp")
# targets that can hold several frames; anything else gets frame 0 only
MULTI_FRAME_FORMATS = ("gif", "webp", "tiff")


def resize_geometry(width, height) -> str:
    if width and height:
        return f"{width}x{height}!"  # exact, may distort
    if width:
        return f"{width}x"
    if height:
        return f"x{height}"
    raise TransformError("At least width or height must be specified")


def source_path(input_path: str, fmt: str) -> str:
    """Select frame 0 when the target format would otherwise split into scene files."""
    if fmt in MULTI_FRAME_FORMATS:
        return input_path
    return f"{input_path}[0]"


def build_args(params: TransformParams, input_path: str, output_path: str) -> List[str]:
    """Arguments after the binary name for one transform."""
    target = f"{params.format}:{output_path}"
    input_path = source_path(input_path, params.format)

    if isinstance(params, ResizeParams):
        return [input_path, "-resize", resize_geometry(params.width, params.height), target]
    if isinstance(params, ConvertParams):
        args = [input_path]
        if params.quality is not None and params.format in QUALITY_FORMATS:
            args += ["-quality", str(params.quality)]
        return args + [target]
    if isinstance(params, RotateParams):
        return [input_path, "-rotate", str(params.degrees), target]
    if isinstance(params, FlipParams):
        # -flop mirrors left-right, -flip mirrors top-bottom
        return [input_path, "-flop" if params.direction == "horizontal" else "-flip", target]
    if isinstance(params, CropParams):
        geometry = f"{params.width}x{params.height}+{params.x}+{params.y}"
        return [input_path, "-crop", geometry, "+repage", target]
    if isinstance(params, TrimParams):
        return [input_path, "-trim", "+repage", target]
    if isinstance(params, OptimizeParams):
        return [input_path, "-strip", "-quality", str(params.quality), target]
    if isinstance(params, TerminalParams):
        return [
            input_path,
            "-contrast-stretch", "0x10%",
            "-sharpen", "0x1",
            "-dither", "FloydSteinberg",
            "-remap", "pattern:gray50",
            "-depth", "1",
            "-strip",
            f"png:{output_path}",
        ]
    raise TypeError(f"Unsupported transform: {type(params).__name__}")


class MagickInvoker:
    def __init__(self, binary: str = "magick", timeout: float = 120.0, max_buffer: int = 50 * 1024 * 1024):
        self.binary = binary
        self.timeout = timeout
        self.max_buffer = max_buffer

    async def execute(self, args: List[str]) -> Tuple[str, str]:
        """Run ``binary *args`` once; return decoded (stdout, stderr)."""
        cmd = [self.binary, *args]
        logger.debug(f"Executing: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Could not start {self.binary}: {e}")
            raise TransformError("Image processing failed: ImageMagick is not available", detail=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error(f"ImageMagick timed out after {self.timeout}s: {' '.join(cmd)}")
            raise TransformError(f"Image processing timed out after {self.timeout:g} seconds")

        if len(stdout) + len(stderr) > self.max_buffer:
            logger.error(f"ImageMagick output exceeded {self.max_buffer} bytes")
            raise TransformError("Image processing failed: tool output too large")

        out = stdout.decode(errors="replace")
        err = stderr.decode(errors="replace")
        if process.returncode != 0:
            logger.error(f"ImageMagick command failed ({process.returncode}): {err.strip()}")
            raise TransformError("Image processing failed. The image could not be transformed.", detail=err)
        if err.strip():
            logger.warning(f"ImageMagick stderr: {err.strip()}")
        return out, err

    async def run(self, params: TransformParams, input_path: str, output_path: str):
        await self.execute(build_args(params, input_path, output_path))
        if not os.path.exists(output_path):
            logger.error(f"ImageMagick exited cleanly but wrote no {output_path}")
            raise TransformError("Image processing failed: no output image was produced")

    async def version(self) -> str:
        try:
            stdout, _ = await self.execute(["-version"])
        except TransformError:
            return "Not available"
        lines = stdout.splitlines()
        return lines[0] if lines else "Not available"
