"""Configuration loading for the user service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger("userservice.config")

DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "INFO"


class ConfigurationError(RuntimeError):
    """Raised when the service configuration cannot be loaded."""


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the ``.env`` file and the environment."""

    env_file: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    csv_file_path: Optional[Path] = None


def resolve_env_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the ``.env`` file."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "env"
    return (base_dir / ".env").resolve(strict=False)


def _parse_port(raw: Optional[str]) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_PORT
    try:
        port = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"API_PORT must be an integer, got {raw!r}") from exc
    if port < 1 or port > 65535:
        raise ConfigurationError(f"API_PORT must be between 1 and 65535, got {port}")
    return port


def _parse_log_level(raw: Optional[str]) -> str:
    if raw is None or not raw.strip():
        return DEFAULT_LOG_LEVEL
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"LOG_LEVEL {raw!r} is not a known logging level")
    return level


def load_settings(env_file: Optional[str | Path] = None) -> Settings:
    """Load the ``.env`` file into the environment and build :class:`Settings`.

    A missing file is fatal. Variables already present in the process
    environment take precedence over values from the file.
    """

    if env_file is None:
        path = resolve_env_path(os.getenv("USERSERVICE_ENV_FILE"))
    else:
        path = resolve_env_path(str(env_file))

    if not path.is_file():
        raise ConfigurationError(f"Environment file not found: {path}")

    load_dotenv(path, override=False)
    logger.debug("Loaded environment from %s", path)

    host = os.getenv("API_HOST", "").strip() or DEFAULT_HOST
    csv_path = os.getenv("CSV_FILE_PATH", "").strip()

    return Settings(
        env_file=path,
        host=host,
        port=_parse_port(os.getenv("API_PORT")),
        log_level=_parse_log_level(os.getenv("LOG_LEVEL")),
        csv_file_path=Path(csv_path).expanduser() if csv_path else None,
    )


__all__ = [
    "ConfigurationError",
    "DEFAULT_HOST",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PORT",
    "Settings",
    "load_settings",
    "resolve_env_path",
]
