# crudui/core/config.py
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import orjson
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from crudui import __version__
from crudui.core.exceptions import ConfigurationError
from crudui.models.config import AdminConfig

# Configure logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Process settings loaded from environment variables and .env"""
    # Application info
    PROJECT_NAME: str = "CrudUI"
    VERSION: str = __version__

    # Static table/column configuration file (JSON)
    CRUDUI_CONFIG_FILE: Path = Path("crudui.json")

    # Overrides database.url from the config file when set
    DATABASE_URL: Optional[str] = None

    # Database engine settings. One pooled connection is shared by all requests.
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 1
    DB_MAX_OVERFLOW: int = 0
    DB_CONNECT_TIMEOUT: int = 10  # Seconds

    # Server settings
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    RELOAD: bool = False
    LOG_LEVEL: str = "info"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


# Cache the settings instance
@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def load_admin_config(path: Optional[Union[str, Path]] = None,
                      settings: Optional[Settings] = None) -> AdminConfig:
    """Read the static admin configuration, falling back to defaults when the file is missing"""
    settings = settings or get_settings()
    config_path = Path(path) if path else settings.CRUDUI_CONFIG_FILE

    if config_path.exists():
        try:
            raw = orjson.loads(config_path.read_bytes())
            config = AdminConfig.model_validate(raw)
            logger.info(f"Loaded admin configuration from {config_path}")
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid configuration file {config_path}: {e}") from e
    else:
        logger.warning(f"Configuration file {config_path} not found, using defaults")
        config = AdminConfig()

    if settings.DATABASE_URL:
        database = config.database.model_copy(update={"url": settings.DATABASE_URL})
        config = config.model_copy(update={"database": database})

    return config
