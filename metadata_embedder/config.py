"""
Configuration for the metadata embedder.

Settings are read from environment variables, with a .env file in the
working directory loaded first.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
DEFAULT_IPTC_CHARSET = "utf_8"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class EmbedderSettings:
    """Runtime settings for embedding."""
    max_workers: int = DEFAULT_MAX_WORKERS
    iptc_charset: str = DEFAULT_IPTC_CHARSET
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str | None = None


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


def get_settings() -> EmbedderSettings:
    """
    Build settings from environment variables.

    Variables:
        EMBED_MAX_WORKERS: Thread pool size for batch embedding.
        EMBED_IPTC_CHARSET: Character set for IPTC records.
        EMBED_LOG_LEVEL: Log level used by the CLI when not verbose.
        EMBED_LOG_FILE: Optional log file for the CLI.

    Returns:
        EmbedderSettings instance.

    Raises:
        ValueError: If a numeric variable is not a positive integer.
    """
    settings = EmbedderSettings(
        max_workers=_get_int("EMBED_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        iptc_charset=os.getenv("EMBED_IPTC_CHARSET") or DEFAULT_IPTC_CHARSET,
        log_level=(os.getenv("EMBED_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        log_file=os.getenv("EMBED_LOG_FILE") or None,
    )
    logger.debug(f"Loaded settings: {settings}")
    return settings
