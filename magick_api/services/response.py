"""
Success and error envelopes.

A transform result leaves the service in one of two shapes selected by
``responseMode``: a JSON body with the base64 image, or the raw bytes with
the same metadata mirrored into ``X-Image-*`` headers.
"""
import base64
from typing import Any, Dict

from fastapi.responses import JSONResponse, Response

from magick_api.utils.formats import mimetype_for_format

HEADER_PREFIX = "X-Image-"


def success_payload(image_bytes: bytes, fmt: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": 1,
        "image": base64.b64encode(image_bytes).decode("ascii"),
        "mimetype": mimetype_for_format(fmt),
        **metadata,
    }


def error_payload(message: str) -> Dict[str, Any]:
    return {"success": 0, "errormessage": message}


def metadata_header(key: str) -> str:
    return HEADER_PREFIX + key[:1].upper() + key[1:]


def binary_response(image_bytes: bytes, fmt: str, metadata: Dict[str, Any], filename: str) -> Response:
    mimetype = mimetype_for_format(fmt)
    headers = {
        "Content-Length": str(len(image_bytes)),
        "Content-Disposition": f'attachment; filename="{filename}"',
        "X-Image-Success": "1",
        "X-Image-Mimetype": mimetype,
    }
    for key, value in metadata.items():
        headers[metadata_header(key)] = str(value)
    return Response(content=image_bytes, media_type=mimetype, headers=headers)


def image_response(image_bytes: bytes, fmt: str, metadata: Dict[str, Any],
                   filename: str, response_mode: str) -> Response:
    """Build the success response for either mode from the same metadata."""
    if response_mode == "binary":
        return binary_response(image_bytes, fmt, metadata, filename)
    return JSONResponse(content=success_payload(image_bytes, fmt, metadata))


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_payload(message))
