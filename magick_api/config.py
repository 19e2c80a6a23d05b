from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    APP_NAME: str = "ImageMagick API"
    API_TOKEN: Optional[str] = None  # blank or unset disables auth
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ALLOW_ORIGINS: str = "*"
    TEMP_DIR: str = "tmpfiles"
    MAX_FILE_SIZE: int = 50 * 1024 * 1024  # bytes
    CLEANUP_DELAY: int = 0  # milliseconds
    MAGICK_BINARY: str = "magick"
    MAGICK_TIMEOUT: float = 120.0  # seconds
    MAX_OUTPUT_BUFFER: int = 50 * 1024 * 1024  # stdout + stderr, bytes
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", frozen=True)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.API_TOKEN and self.API_TOKEN.strip())

@lru_cache
def get_settings() -> Settings:
    return Settings()
