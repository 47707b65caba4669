"""Application configuration from environment variables."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    svgeom_env: str = "development"
    svgeom_log_level: str = "info"

    # Significant digits for Decimal geometry
    svgeom_decimal_precision: int = 80

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install the root log handler. Library code never calls this itself."""
    load_dotenv()
    name = (level or settings.svgeom_log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def default_decimal_precision() -> int:
    return settings.svgeom_decimal_precision
