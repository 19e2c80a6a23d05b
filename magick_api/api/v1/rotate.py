"""
Rotate / Flip API Endpoint
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile

from magick_api.config import Settings, get_settings
from magick_api.dependencies import get_magick, get_temp_files
from magick_api.schemas import ERROR_RESPONSES, ImageResponse, RotateParams
from magick_api.services import validation
from magick_api.services.magick import MagickInvoker
from magick_api.services.response import image_response
from magick_api.services.temp_files import TempFileManager
from magick_api.utils.formats import extension_for_mimetype

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rotate"])

@router.post("/rotate", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def rotate_image(
    background_tasks: BackgroundTasks,
    image: Optional[UploadFile] = File(None, description="Image file"),
    operation: Optional[str] = Form(None, description="rotate or flip"),
    value: Optional[str] = Form(None, description="Degrees (90, 180, 270, negatives) or horizontal/vertical"),
    format: Optional[str] = Form(None, description="Output format"),
    responseMode: Optional[str] = Query(None, description="base64 (default) or binary"),
    settings: Settings = Depends(get_settings),
    temp_files: TempFileManager = Depends(get_temp_files),
    magick: MagickInvoker = Depends(get_magick),
):
    """
    Rotate by a right angle, or mirror the image.

    flip=horizontal mirrors left-right, flip=vertical mirrors top-bottom.
    """
    upload = await validation.accept_upload(image, settings.MAX_FILE_SIZE)
    params = validation.validate_rotate(operation, value, format)
    response_mode = validation.validate_response_mode(responseMode)

    op = params.operation
    op_value = params.degrees if isinstance(params, RotateParams) else params.direction

    input_path = output_path = None
    cleanup_scheduled = False
    try:
        input_path = await temp_files.write(upload.content, extension_for_mimetype(upload.content_type))
        output_path = temp_files.output_path(input_path, op, params.format)

        logger.info(f"Applying {op} {op_value} to {upload.filename}")
        await magick.run(params, input_path, output_path)
        image_bytes = await temp_files.read(output_path)

        metadata = {
            "format": params.format,
            "operation": op,
            "value": op_value,
        }
        response = image_response(image_bytes, params.format, metadata, f"{op}.{params.format}", response_mode)

        background_tasks.add_task(temp_files.cleanup, [input_path, output_path])
        cleanup_scheduled = True
        return response
    finally:
        if not cleanup_scheduled:
            await temp_files.cleanup([input_path, output_path])
