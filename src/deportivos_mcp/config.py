"""Configuration management for Deportivos MCP server."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager with environment variables and file fallback."""

    def __init__(self, config_path: str | None = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file (optional)
        """
        self.config_path = config_path or os.getenv(
            "DEPORTIVOS_CONFIG_PATH", "config/config.json"
        )
        self._config_data: dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file if it exists."""
        config_file = Path(self.config_path)
        if config_file.exists():
            try:
                with open(config_file, encoding="utf-8") as f:
                    self._config_data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load config file {self.config_path}: {e}")
                self._config_data = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with priority: env vars > config file > default.

        Args:
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value
        """
        env_value = os.getenv(key.upper())
        if env_value is not None:
            return env_value

        if key in self._config_data:
            return self._config_data[key]

        return default

    @property
    def base_url(self) -> str:
        """Get base URL of the reservations backend."""
        return str(self.get("DEPORTIVOS_BASE_URL", "http://localhost:4000")).rstrip(
            "/"
        )

    @property
    def request_timeout(self) -> int:
        """Get HTTP request timeout in seconds."""
        return int(self.get("DEPORTIVOS_REQUEST_TIMEOUT", "30"))

    @property
    def retry_attempts(self) -> int:
        """Get number of retry attempts for failed requests."""
        return int(self.get("DEPORTIVOS_RETRY_ATTEMPTS", "2"))

    @property
    def retry_delay(self) -> float:
        """Get delay between retry attempts in seconds."""
        return float(self.get("DEPORTIVOS_RETRY_DELAY", "0.5"))

    @property
    def lookup_debounce_ms(self) -> int:
        """Get quiet period before a reservation code lookup, in milliseconds."""
        return int(self.get("DEPORTIVOS_LOOKUP_DEBOUNCE_MS", "800"))

    @property
    def default_amount(self) -> str:
        """Get default total amount for a new reservation."""
        return str(self.get("DEPORTIVOS_DEFAULT_AMOUNT", "100.00"))

    @property
    def default_start_time(self) -> str:
        """Get default start time for a new reservation."""
        return str(self.get("DEPORTIVOS_DEFAULT_START_TIME", "08:00"))

    @property
    def default_end_time(self) -> str:
        """Get default end time for a new reservation."""
        return str(self.get("DEPORTIVOS_DEFAULT_END_TIME", "10:00"))

    @property
    def max_form_sessions(self) -> int:
        """Get maximum number of reservation forms open at once."""
        return int(self.get("DEPORTIVOS_MAX_FORM_SESSIONS", "100"))

    @property
    def form_idle_timeout(self) -> float:
        """Get seconds after which an untouched reservation form is closed."""
        return float(self.get("DEPORTIVOS_FORM_IDLE_TIMEOUT", "1800"))

    @property
    def enable_debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return str(self.get("DEPORTIVOS_DEBUG", "false")).lower() == "true"

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "base_url": self.base_url,
            "request_timeout": self.request_timeout,
            "retry_attempts": self.retry_attempts,
            "retry_delay": self.retry_delay,
            "lookup_debounce_ms": self.lookup_debounce_ms,
            "default_amount": self.default_amount,
            "default_start_time": self.default_start_time,
            "default_end_time": self.default_end_time,
            "max_form_sessions": self.max_form_sessions,
            "form_idle_timeout": self.form_idle_timeout,
            "enable_debug_mode": self.enable_debug_mode,
        }


# Global configuration instance
config = Config()
