"""Shared utilities for CLI commands."""

import structlog

from wikibase_toolkit.api.basic_connection import BasicApiConnection
from wikibase_toolkit.api.connection import ApiConnection
from wikibase_toolkit.api.token_connection import TokenApiConnection
from wikibase_toolkit.utils.config import Config

logger = structlog.get_logger(__name__)


def build_connection(config: Config, login: bool = True) -> ApiConnection:
    """Create a connection configured from the environment.

    An access token takes precedence over user name and password. Without
    credentials, or with login=False, the connection stays anonymous.

    Args:
        config: Loaded configuration
        login: Whether to log in with the configured credentials

    Returns:
        Configured connection

    Raises:
        AuthError: If logging in fails
    """
    connection: ApiConnection
    if config.access_token:
        connection = TokenApiConnection(config.api_url, config.access_token if login else None)
    else:
        connection = BasicApiConnection(config.api_url)

    connection.connect_timeout_ms = config.connect_timeout_ms
    connection.read_timeout_ms = config.read_timeout_ms
    if config.user_agent:
        connection.user_agent = config.user_agent

    if login:
        if isinstance(connection, TokenApiConnection):
            connection.login()
        elif config.has_password_credentials and isinstance(connection, BasicApiConnection):
            connection.login(config.username, config.password)  # type: ignore[arg-type]

    logger.debug(
        "connection_built",
        api_url=config.api_url,
        connection_type=type(connection).__name__,
        logged_in=connection.logged_in,
    )
    return connection
