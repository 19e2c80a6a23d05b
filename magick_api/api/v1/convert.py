"""
Format Conversion API Endpoint
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

router = APIRouter(tags=["convert"])

@router.post("/convert", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def convert_image(
    background_tasks: BackgroundTasks,
    image: Optional[UploadFile] = File(None, description="Image file"),
    format: Optional[str] = Form(None, description="png, jpg, jpeg, webp, gif, bmp, tiff or svg"),
    quality: Optional[str] = Form(None, description="1-100, used for jpg and webp only"),
    responseMode: Optional[str] = Query(None, description="base64 (default) or binary"),
    settings: Settings = Depends(get_settings),
    temp_files: TempFileManager = Depends(get_temp_files),
    magick: MagickInvoker = Depends(get_magick),
):
    """Re-encode an image in another format."""
    upload = await validation.accept_upload(image, settings.MAX_FILE_SIZE)
    params = validation.validate_convert(format, quality)
    response_mode = validation.validate_response_mode(responseMode)

    input_path = output_path = None
    cleanup_scheduled = False
    try:
        input_path = await temp_files.write(upload.content, extension_for_mimetype(upload.content_type))
        output_path = temp_files.output_path(input_path, "converted", params.format)

        logger.info(f"Converting {upload.filename} from {upload.content_type} to {params.format}")
        await magick.run(params, input_path, output_path)
        image_bytes = await temp_files.read(output_path)

        metadata = {
            "format": params.format,
            "quality": params.quality or "default",
        }
        response = image_response(image_bytes, params.format, metadata, f"converted.{params.format}", response_mode)

        background_tasks.add_task(temp_files.cleanup, [input_path, output_path])
        cleanup_scheduled = True
        return response
    finally:
        if not cleanup_scheduled:
            await temp_files.cleanup([input_path, output_path])
