"""
Terminal Dithering API Endpoint
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Query, UploadFile

from magick_api.config import Settings, get_settings
from magick_api.dependencies import get_magick, get_temp_files
from magick_api.schemas import ERROR_RESPONSES, ImageResponse, TerminalParams
from magick_api.services import validation
from magick_api.services.magick import MagickInvoker
from magick_api.services.response import image_response
from magick_api.services.temp_files import TempFileManager
from magick_api.utils.formats import extension_for_mimetype

logger = logging.getLogger(__name__)

router = APIRouter(tags=["terminal"])

@router.post("/terminal", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def terminal_dither(
    background_tasks: BackgroundTasks,
    image: Optional[UploadFile] = File(None, description="Image file"),
    responseMode: Optional[str] = Query(None, description="base64 (default) or binary"),
    settings: Settings = Depends(get_settings),
    temp_files: TempFileManager = Depends(get_temp_files),
    magick: MagickInvoker = Depends(get_magick),
):
    """Dither the image down to 1-bit black and white. Always returns PNG."""
    upload = await validation.accept_upload(image, settings.MAX_FILE_SIZE)
    params = TerminalParams()
    response_mode = validation.validate_response_mode(responseMode)

    input_path = output_path = None
    cleanup_scheduled = False
    try:
        input_path = await temp_files.write(upload.content, extension_for_mimetype(upload.content_type))
        output_path = temp_files.output_path(input_path, "out", "png")

        logger.info(f"Dithering {upload.filename}")
        await magick.run(params, input_path, output_path)
        image_bytes = await temp_files.read(output_path)

        metadata = {
            "format": "png",
            "effect": "terminal-dithering",
        }
        response = image_response(image_bytes, "png", metadata, "terminal-dithered.png", response_mode)

        background_tasks.add_task(temp_files.cleanup, [input_path, output_path])
        cleanup_scheduled = True
        return response
    finally:
        if not cleanup_scheduled:
            await temp_files.cleanup([input_path, output_path])
