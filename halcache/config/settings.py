from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------
class HalSettings(BaseSettings):
    """
    Cache and persistence policy managed by Pydantic.
    Reads from HAL_-prefixed environment variables and/or .env file.
    """
    # Storage keys
    PREFIX: str = ""

    # Persistence
    AUTO_DUMP: bool = True
    AUTO_DUMP_DELAY: float = Field(1.0, ge=0)      # quiet window, seconds
    DUMP_INTERVAL: Optional[float] = Field(None, gt=0)  # periodic dump, seconds

    # Handle cache
    ENABLE_CACHE: bool = False

    # Transport
    HTTP_TIMEOUT: float = 30.0

    # Config to read from .env file if available
    model_config = SettingsConfigDict(
        env_prefix="HAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
        )
