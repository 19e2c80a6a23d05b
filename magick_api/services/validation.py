"""
Request validation for every transform endpoint.

Validators take the raw form strings exactly as they arrive and either
return a typed parameter model from ``magick_api.schemas`` or raise
``ValidationError``. Nothing here touches the filesystem or spawns
processes, so every check runs before a temp file exists.
"""
import math
from typing import Optional, Union

from fastapi import UploadFile

from magick_api.errors import ValidationError, PayloadTooLargeError
from magick_api.schemas import (
    Upload, ResizeParams, ConvertParams, RotateParams, FlipParams,
    CropParams, TrimParams, OptimizeParams,
)
from magick_api.utils.formats import SUPPORTED_MIME_TYPES, SUPPORTED_FORMATS, normalize_format

RESPONSE_MODES = ("base64", "binary")
ROTATION_DEGREES = (90, 180, 270, -90, -180, -270)
FLIP_DIRECTIONS = ("horizontal", "vertical")
CROP_MODES = ("manual", "trim")


def _is_missing(value: Optional[str]) -> bool:
    return value is None or str(value).strip() == ""


def require(**fields: Optional[str]) -> None:
    """Raise if any named field is absent or blank."""
    missing = [name for name, value in fields.items() if _is_missing(value)]
    if missing:
        raise ValidationError(f"Missing required parameters: {', '.join(missing)}")


def parse_number(name: str, raw: str) -> int:
    """Parse a non-negative number, keeping its integer part."""
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise ValidationError(f"Parameter '{name}' must be a positive number")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValidationError(f"Parameter '{name}' must be a positive number")
    return int(value)


def parse_quality(raw: str) -> int:
    quality = parse_number("quality", raw)
    if quality < 1 or quality > 100:
        raise ValidationError("Quality must be between 1 and 100")
    return quality


def parse_format(raw: str) -> str:
    fmt = str(raw).strip().lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ValidationError(f"Invalid format. Supported formats: {', '.join(SUPPORTED_FORMATS)}")
    return normalize_format(fmt)


def validate_response_mode(raw: Optional[str]) -> str:
    mode = raw or "base64"
    if mode not in RESPONSE_MODES:
        raise ValidationError('responseMode must be "base64" or "binary"')
    return mode


async def get_upload_file_size(upload_file: UploadFile) -> int:
    # seek to the end of the spooled file and restore the cursor
    current_position = upload_file.file.tell()
    upload_file.file.seek(0, 2)
    size = upload_file.file.tell()
    upload_file.file.seek(current_position)
    return size


async def accept_upload(image: Optional[UploadFile], max_size: int) -> Upload:
    """Check presence, MIME type and size of the ``image`` field, then read it."""
    if image is None or not image.filename:
        raise ValidationError('No image file provided. Please upload an image using the "image" field.')

    if image.content_type not in SUPPORTED_MIME_TYPES:
        raise ValidationError(f"Invalid file type. Supported formats: {', '.join(SUPPORTED_MIME_TYPES)}")

    size = await get_upload_file_size(image)
    if size > max_size:
        raise PayloadTooLargeError(f"File too large. Maximum size is {max_size} bytes.")

    content = await image.read()
    if not content:
        raise ValidationError("Uploaded image is empty")
    return Upload(content=content, content_type=image.content_type, filename=image.filename)


def validate_resize(width: Optional[str], height: Optional[str], format: Optional[str]) -> ResizeParams:
    require(format=format)
    target_width = None if _is_missing(width) else parse_number("width", width)
    target_height = None if _is_missing(height) else parse_number("height", height)
    # a zero dimension carries no geometry, same as leaving it out
    if not target_width and not target_height:
        raise ValidationError("At least one of width or height must be specified")
    return ResizeParams(
        format=parse_format(format),
        width=target_width or None,
        height=target_height or None,
    )


def validate_convert(format: Optional[str], quality: Optional[str]) -> ConvertParams:
    require(format=format)
    target_format = parse_format(format)
    target_quality = None if _is_missing(quality) else parse_quality(quality)
    return ConvertParams(format=target_format, quality=target_quality)


def validate_rotate(operation: Optional[str], value: Optional[str],
                    format: Optional[str]) -> Union[RotateParams, FlipParams]:
    require(operation=operation, value=value, format=format)
    op = operation.strip().lower()
    if op not in ("rotate", "flip"):
        raise ValidationError('Operation must be "rotate" or "flip"')
    target_format = parse_format(format)

    if op == "rotate":
        try:
            parsed = float(value.strip())
        except ValueError:
            parsed = math.nan
        # integer part, sign kept
        degrees = int(parsed) if math.isfinite(parsed) else None
        if degrees not in ROTATION_DEGREES:
            raise ValidationError("Rotation degrees must be 90, 180, or 270 (or negative equivalents)")
        return RotateParams(format=target_format, degrees=degrees)

    direction = value.strip().lower()
    if direction not in FLIP_DIRECTIONS:
        raise ValidationError('Flip direction must be "horizontal" or "vertical"')
    return FlipParams(format=target_format, direction=direction)


def validate_crop(mode: Optional[str], format: Optional[str], width: Optional[str] = None,
                  height: Optional[str] = None, x: Optional[str] = None,
                  y: Optional[str] = None) -> Union[CropParams, TrimParams]:
    require(mode=mode, format=format)
    crop_mode = mode.strip().lower()
    if crop_mode not in CROP_MODES:
        raise ValidationError('Mode must be "manual" or "trim"')
    target_format = parse_format(format)

    if crop_mode == "trim":
        return TrimParams(format=target_format)

    require(width=width, height=height, x=x, y=y)
    return CropParams(
        format=target_format,
        width=parse_number("width", width),
        height=parse_number("height", height),
        x=parse_number("x", x),
        y=parse_number("y", y),
    )


def validate_optimize(quality: Optional[str], format: Optional[str], default_format: str) -> OptimizeParams:
    """``default_format`` is the upload's own format, used when none is requested."""
    require(quality=quality)
    target_quality = parse_quality(quality)
    target_format = normalize_format(default_format) if _is_missing(format) else parse_format(format)
    return OptimizeParams(format=target_format, quality=target_quality)
