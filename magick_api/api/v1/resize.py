"""
Resize API Endpoint
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile

from magick_api.config import Settings, get_settings
from magick_api.dependencies import get_magick, get_temp_files
from magick_api.schemas import ERROR_RESPONSES, ImageResponse
from magick_api.services import validation
from magick_api.services.magick import MagickInvoker
from magick_api.services.response import image_response
from magick_api.services.temp_files import TempFileManager
from magick_api.utils.formats import extension_for_mimetype

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resize"])

@router.post("/resize", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def resize_image(
    background_tasks: BackgroundTasks,
    image: Optional[UploadFile] = File(None, description="Image file"),
    width: Optional[str] = Form(None, description="Target width in pixels"),
    height: Optional[str] = Form(None, description="Target height in pixels"),
    format: Optional[str] = Form(None, description="Output format: png, jpg, webp, ..."),
    responseMode: Optional[str] = Query(None, description="base64 (default) or binary"),
    settings: Settings = Depends(get_settings),
    temp_files: TempFileManager = Depends(get_temp_files),
    magick: MagickInvoker = Depends(get_magick),
):
    """
    Resize an image.

    - both width and height: exact dimensions (may distort)
    - only width: height follows the aspect ratio
    - only height: width follows the aspect ratio
    """
    upload = await validation.accept_upload(image, settings.MAX_FILE_SIZE)
    params = validation.validate_resize(width, height, format)
    response_mode = validation.validate_response_mode(responseMode)

    input_path = output_path = None
    cleanup_scheduled = False
    try:
        input_path = await temp_files.write(upload.content, extension_for_mimetype(upload.content_type))
        output_path = temp_files.output_path(input_path, "resized", params.format)

        logger.info(f"Resizing {upload.filename} to {params.width or 'auto'}x{params.height or 'auto'} ({params.format})")
        await magick.run(params, input_path, output_path)
        image_bytes = await temp_files.read(output_path)

        metadata = {
            "format": params.format,
            "width": params.width or "auto",
            "height": params.height or "auto",
        }
        response = image_response(image_bytes, params.format, metadata, f"resized.{params.format}", response_mode)

        background_tasks.add_task(temp_files.cleanup, [input_path, output_path])
        cleanup_scheduled = True
        return response
    finally:
        if not cleanup_scheduled:
            await temp_files.cleanup([input_path, output_path])
