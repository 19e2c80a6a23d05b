import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from magick_api.auth import verify_token
from magick_api.config import get_settings
from magick_api.dependencies import get_magick
from magick_api.errors import ImageApiError, TransformError
from magick_api.schemas import HealthResponse
from magick_api.services.magick import MagickInvoker
from magick_api.services.response import error_response
from magick_api.services.temp_files import TempFileManager
from magick_api.api.v1 import terminal, resize, convert, rotate, crop, optimize

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

START_TIME = time.monotonic()

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Image resize, conversion, rotation, cropping, optimization and dithering backed by ImageMagick",
    docs_url="/",
)

origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",")] if settings.CORS_ALLOW_ORIGINS else ["*"]
app.add_middleware(CORSMiddleware, allow_origins=origins, allow_credentials=True, allow_methods=["*"], allow_headers=["*"])

for module in (terminal, resize, convert, rotate, crop, optimize):
    app.include_router(module.router, dependencies=[Depends(verify_token)])

# headroom for multipart boundaries and the other form fields
MULTIPART_OVERHEAD = 64 * 1024

@app.middleware("http")
async def reject_oversized_bodies(request: Request, call_next):
    """Refuse a body whose declared Content-Length already exceeds the upload ceiling."""
    current = request.app.dependency_overrides.get(get_settings, get_settings)()
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > current.MAX_FILE_SIZE + MULTIPART_OVERHEAD:
        logger.warning(f"Rejected {request.method} {request.url.path}: body of {declared} bytes")
        return error_response(f"File too large. Maximum size is {current.MAX_FILE_SIZE} bytes.", 413)
    return await call_next(request)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.monotonic()
    response = await call_next(request)
    duration_ms = int((time.monotonic() - started) * 1000)
    ip = request.client.host if request.client else "unknown"
    logger.info(f"{ip} -> {request.method} {request.url.path} - {response.status_code} ({duration_ms}ms)")
    return response

@app.exception_handler(ImageApiError)
async def image_api_error_handler(request: Request, exc: ImageApiError):
    if isinstance(exc, TransformError) and exc.detail:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail.strip()}")
    return error_response(exc.message, exc.status_code)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        message = f"Endpoint {request.method} {request.url.path} not found"
    elif exc.status_code == 405:
        message = f"Method {request.method} not allowed for {request.url.path}"
    else:
        message = str(exc.detail)
    return error_response(message, exc.status_code)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return error_response(f"Invalid request: {problems}", 400)

# Global exception handler, never leaks internals to the client
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response("Internal server error", 500)

@app.on_event("startup")
async def startup():
    TempFileManager(settings.TEMP_DIR).ensure_directory()
    logger.info(
        f"{settings.APP_NAME} ready: authentication {'enabled' if settings.auth_enabled else 'disabled'}, "
        f"max file size {settings.MAX_FILE_SIZE // (1024 * 1024)} MB, temp dir {settings.TEMP_DIR}"
    )

@app.get("/health", response_model=HealthResponse)
async def health(magick: MagickInvoker = Depends(get_magick)):
    """Health check endpoint - no auth required"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.monotonic() - START_TIME, 3),
        imagemagick=await magick.version(),
    )

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
