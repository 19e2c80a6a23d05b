"""
Crop / Trim API Endpoint
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile

from magick_api.config import Settings, get_settings
from magick_api.dependencies import get_magick, get_temp_files
from magick_api.schemas import ERROR_RESPONSES, ImageResponse, CropParams
from magick_api.services import validation
from magick_api.services.magick import MagickInvoker
from magick_api.services.response import image_response
from magick_api.services.temp_files import TempFileManager
from magick_api.utils.formats import extension_for_mimetype

logger = logging.getLogger(__name__)

router = APIRouter(tags=["crop"])

@router.post("/crop", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def crop_image(
    background_tasks: BackgroundTasks,
    image: Optional[UploadFile] = File(None, description="Image file"),
    mode: Optional[str] = Form(None, description="manual or trim"),
    format: Optional[str] = Form(None, description="Output format"),
    width: Optional[str] = Form(None, description="Crop width (manual)"),
    height: Optional[str] = Form(None, description="Crop height (manual)"),
    x: Optional[str] = Form(None, description="X offset (manual)"),
    y: Optional[str] = Form(None, description="Y offset (manual)"),
    responseMode: Optional[str] = Query(None, description="base64 (default) or binary"),
    settings: Settings = Depends(get_settings),
    temp_files: TempFileManager = Depends(get_temp_files),
    magick: MagickInvoker = Depends(get_magick),
):
    """
    Crop a rectangle (mode=manual) or strip uniform borders (mode=trim).
    """
    upload = await validation.accept_upload(image, settings.MAX_FILE_SIZE)
    params = validation.validate_crop(mode, format, width, height, x, y)
    response_mode = validation.validate_response_mode(responseMode)

    metadata = {"format": params.format}
    if isinstance(params, CropParams):
        metadata.update(mode="manual", width=params.width, height=params.height, x=params.x, y=params.y)
    else:
        metadata.update(mode="trim")

    input_path = output_path = None
    cleanup_scheduled = False
    try:
        input_path = await temp_files.write(upload.content, extension_for_mimetype(upload.content_type))
        output_path = temp_files.output_path(input_path, "cropped", params.format)

        logger.info(f"Cropping {upload.filename} ({metadata['mode']})")
        await magick.run(params, input_path, output_path)
        image_bytes = await temp_files.read(output_path)

        response = image_response(image_bytes, params.format, metadata, f"cropped.{params.format}", response_mode)

        background_tasks.add_task(temp_files.cleanup, [input_path, output_path])
        cleanup_scheduled = True
        return response
    finally:
        if not cleanup_scheduled:
            await temp_files.cleanup([input_path, output_path])
