from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, Union

class Params(BaseModel):
    """Validated, immutable parameter set for one transform."""
    model_config = ConfigDict(frozen=True)

class ResizeParams(Params):
    operation: Literal["resize"] = "resize"
    format: str
    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)

class ConvertParams(Params):
    operation: Literal["convert"] = "convert"
    format: str
    quality: Optional[int] = Field(None, ge=1, le=100)

class RotateParams(Params):
    operation: Literal["rotate"] = "rotate"
    format: str
    degrees: Literal[90, 180, 270, -90, -180, -270]

class FlipParams(Params):
    operation: Literal["flip"] = "flip"
    format: str
    direction: Literal["horizontal", "vertical"]

class CropParams(Params):
    operation: Literal["crop"] = "crop"
    format: str
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    x: int = Field(ge=0)
    y: int = Field(ge=0)

class TrimParams(Params):
    operation: Literal["trim"] = "trim"
    format: str

class OptimizeParams(Params):
    operation: Literal["optimize"] = "optimize"
    format: str
    quality: int = Field(ge=1, le=100)

class TerminalParams(Params):
    operation: Literal["terminal"] = "terminal"
    format: Literal["png"] = "png"

TransformParams = Union[
    ResizeParams, ConvertParams, RotateParams, FlipParams,
    CropParams, TrimParams, OptimizeParams, TerminalParams,
]

class Upload(BaseModel):
    content: bytes
    content_type: str
    filename: Optional[str] = None

class ErrorResponse(BaseModel):
    success: Literal[0] = 0
    errormessage: str

class ImageResponse(BaseModel):
    """base64 success envelope; operation metadata rides along as extra keys."""
    model_config = ConfigDict(extra="allow")

    success: Literal[1] = 1
    image: str = Field(description="Base64 encoded output image")
    mimetype: str
    format: str

class HealthResponse(BaseModel):
    success: Literal[1] = 1
    status: str
    timestamp: str
    uptime: float = Field(description="Seconds since the process started")
    imagemagick: str

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid parameters"},
    401: {"model": ErrorResponse, "description": "Authorization header missing"},
    403: {"model": ErrorResponse, "description": "Invalid API token"},
    413: {"model": ErrorResponse, "description": "Upload exceeds MAX_FILE_SIZE"},
    500: {"model": ErrorResponse, "description": "ImageMagick failed"},
}
