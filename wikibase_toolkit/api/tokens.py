"""Per-connection cache of API tokens."""

from collections.abc import Callable, Mapping

import structlog

logger = structlog.get_logger(__name__)

TOKEN_CSRF = "csrf"
TOKEN_LOGIN = "login"


class TokenCache:
    """Cached tokens keyed by token type ("csrf", "login", ...).

    The cache does not detect stale tokens. A caller that gets a token error
    from the API clears the token and decides itself whether to retry.
    """

    def __init__(
        self,
        fetch_token: Callable[[str], str],
        tokens: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            fetch_token: Called with the token type on a cache miss
            tokens: Tokens restored from a saved session
        """
        self._fetch_token = fetch_token
        self._tokens: dict[str, str] = dict(tokens or {})

    def get_or_fetch(self, token_type: str) -> str:
        """Return the cached token, fetching and caching it on a miss."""
        cached = self._tokens.get(token_type)
        if cached is not None:
            return cached

        value = self._fetch_token(token_type)
        self._tokens[token_type] = value
        logger.debug("token_fetched", token_type=token_type)
        return value

    def clear(self, token_type: str) -> None:
        self._tokens.pop(token_type, None)

    def clear_all(self) -> None:
        self._tokens.clear()

    def as_dict(self) -> dict[str, str]:
        return dict(self._tokens)

    def __contains__(self, token_type: object) -> bool:
        return token_type in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
