from fastapi import Depends

from magick_api.config import Settings, get_settings
from magick_api.services.magick import MagickInvoker
from magick_api.services.temp_files import TempFileManager

def get_temp_files(settings: Settings = Depends(get_settings)) -> TempFileManager:
    return TempFileManager(settings.TEMP_DIR, cleanup_delay_ms=settings.CLEANUP_DELAY)

def get_magick(settings: Settings = Depends(get_settings)) -> MagickInvoker:
    return MagickInvoker(
        binary=settings.MAGICK_BINARY,
        timeout=settings.MAGICK_TIMEOUT,
        max_buffer=settings.MAX_OUTPUT_BUFFER,
    )
