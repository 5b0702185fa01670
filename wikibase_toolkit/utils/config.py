"""Configuration management for environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

from wikibase_toolkit.utils.exceptions import ConfigurationError
from wikibase_toolkit.utils.logger import LOG_FORMATS

DEFAULT_API_URL = "https://www.wikidata.org/w/api.php"
DEFAULT_SITE_IRI = "http://www.wikidata.org/entity/"


def get_required_env(key: str) -> str:
    """Get required environment variable or raise error.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ConfigurationError: If variable is not set
    """
    value = os.getenv(key)
    if not value:
        raise ConfigurationError(f"{key} environment variable is not set")
    return value


class Config:
    """Toolkit configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Load configuration from .env file and environment."""
        env_path = Path(".env")
        if env_path.exists():
            load_dotenv(env_path)

        self.api_url = self.get_optional("WIKIBASE_API_URL") or DEFAULT_API_URL
        self.site_iri = self.get_optional("WIKIBASE_SITE_IRI") or DEFAULT_SITE_IRI
        self.user_agent = self.get_optional("WIKIBASE_USER_AGENT")
        self.connect_timeout_ms = self._get_int("WIKIBASE_CONNECT_TIMEOUT_MS", -1)
        self.read_timeout_ms = self._get_int("WIKIBASE_READ_TIMEOUT_MS", -1)

        # Credentials, at most one login method is used
        self.username = self.get_optional("WIKIBASE_USERNAME")
        self.password = self.get_optional("WIKIBASE_PASSWORD")
        self.access_token = self.get_optional("WIKIBASE_ACCESS_TOKEN")

        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_format = os.getenv("LOG_FORMAT", "json").lower()
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got {self.log_format!r}"
            )

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable.

        Raises:
            ConfigurationError: If the value is not an integer
        """
        value = self.get_optional(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e

    @property
    def has_password_credentials(self) -> bool:
        return bool(self.username and self.password)

    @staticmethod
    def get_optional(key: str, default: str | None = None) -> str | None:
        """Get optional environment variable with default value.

        Args:
            key: Environment variable name
            default: Default value if not set

        Returns:
            Environment variable value or default
        """
        return os.getenv(key, default)
