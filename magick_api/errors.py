"""
Error taxonomy shared by every route.

Each error carries the HTTP status it maps to; ``main.py`` turns them into
the ``{"success": 0, "errormessage": ...}`` envelope.
"""
from typing import Optional


class ImageApiError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ImageApiError):
    """Missing, malformed or out-of-range request input."""
    status_code = 400


class AuthMissingError(ImageApiError):
    status_code = 401


class AuthInvalidError(ImageApiError):
    status_code = 403


class PayloadTooLargeError(ImageApiError):
    status_code = 413


class TransformError(ImageApiError):
    """ImageMagick could not produce the output.

    ``detail`` holds the tool's diagnostic text. It is logged, never sent
    to the client.
    """
    status_code = 500

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.detail = detail
