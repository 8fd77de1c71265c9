"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_APP_URL = "http://localhost:3000/"
DEFAULT_GRAFANA_COM_URL = "https://grafana.com"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json: Whether to emit JSON-formatted log lines.
        diagnostic_tags: Comma-separated diagnostic tags to enable.
    """

    level: str = "INFO"
    json: bool = False
    diagnostic_tags: str = ""


@dataclass(frozen=True)
class ServerConfig:
    """Public URLs of the application.

    Attributes:
        app_url: Root URL of the application, used to build OAuth redirect URLs.
        grafana_com_url: Base URL of the Grafana.com identity provider.
    """

    app_url: str = DEFAULT_APP_URL
    grafana_com_url: str = DEFAULT_GRAFANA_COM_URL


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation.
    """

    logging_config: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Path of the YAML file declaring OAuth providers (optional)
    oauth_config_path: Path | None = None

    # Timeout in seconds for outbound HTTP calls
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @property
    def oauth_configured(self) -> bool:
        """Check if an OAuth provider configuration file is set."""
        return self.oauth_config_path is not None


def _parse_positive_float(value: str, name: str, default: float) -> float:
    """Parse a string as a positive float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive float, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = float(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %f is not positive, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.

    Logs a warning if the value is invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid DASHSYNC_LOG_LEVEL: '%s' is not valid, using default '%s'. Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Args:
        value: The string value to parse.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def _validate_url(value: str, name: str, default: str) -> str:
    """Validate that a URL uses the http or https scheme.

    Logs a warning and returns ``default`` if it does not.
    """
    if not value.startswith(("http://", "https://")):
        logging.warning(
            "Invalid %s: '%s' is not an http(s) URL, using default '%s'",
            name,
            value,
            default,
        )
        return default
    return value


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Values are validated and defaults are used for invalid inputs:
    - LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL
    - URLs must use the http or https scheme
    - HTTP_TIMEOUT must be a positive number
    """
    # Load .env file if it exists
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    log_level = _validate_log_level(os.getenv("DASHSYNC_LOG_LEVEL", "INFO"))
    log_json = _parse_bool(os.getenv("DASHSYNC_LOG_JSON", ""))
    diagnostic_tags = os.getenv("DASHSYNC_DIAGNOSTIC_TAGS", "")

    app_url = _validate_url(
        os.getenv("DASHSYNC_APP_URL", DEFAULT_APP_URL),
        "DASHSYNC_APP_URL",
        DEFAULT_APP_URL,
    )
    grafana_com_url = _validate_url(
        os.getenv("DASHSYNC_GRAFANA_COM_URL", DEFAULT_GRAFANA_COM_URL),
        "DASHSYNC_GRAFANA_COM_URL",
        DEFAULT_GRAFANA_COM_URL,
    )

    oauth_config = os.getenv("DASHSYNC_OAUTH_CONFIG", "")
    oauth_config_path = Path(oauth_config) if oauth_config else None

    http_timeout = _parse_positive_float(
        os.getenv("DASHSYNC_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT)),
        "DASHSYNC_HTTP_TIMEOUT",
        DEFAULT_HTTP_TIMEOUT,
    )

    return Config(
        logging_config=LoggingConfig(
            level=log_level,
            json=log_json,
            diagnostic_tags=diagnostic_tags,
        ),
        server=ServerConfig(
            app_url=app_url,
            grafana_com_url=grafana_com_url,
        ),
        oauth_config_path=oauth_config_path,
        http_timeout=http_timeout,
    )
