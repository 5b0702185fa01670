"""Connection authenticated with a pre-issued OAuth 2 access token."""

from collections.abc import Mapping
from typing import Any

import requests
import structlog

from wikibase_toolkit.api.connection import PARAM_ACTION, ApiConnection
from wikibase_toolkit.api.state import ConnectionState, TokenConnectionState
from wikibase_toolkit.utils.exceptions import AuthError, WikibaseToolkitError

logger = structlog.get_logger(__name__)


class TokenApiConnection(ApiConnection):
    """Session that sends ``Authorization: Bearer <token>`` with every request.

    The access token is issued out of band (e.g. an owner-only OAuth
    consumer); logging in only asks the server who the token belongs to.
    """

    STATE_MODEL = TokenConnectionState

    def __init__(
        self,
        api_base_url: str,
        access_token: str | None = None,
        tokens: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(api_base_url, tokens)
        self._access_token = access_token

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        if self._access_token:
            session.headers["Authorization"] = f"Bearer {self._access_token}"
        return session

    def login(self, access_token: str | None = None) -> None:
        """Authenticate with an access token.

        Args:
            access_token: Token to use; defaults to the one given at construction

        Raises:
            AuthError: If there is no token, the server treats it as anonymous,
                or the request fails
        """
        if access_token is not None:
            self._access_token = access_token
            self._invalidate_session()
        if not self._access_token:
            raise AuthError("No access token to log in with")

        try:
            root = self.send_json_request("POST", {PARAM_ACTION: "query", "meta": "userinfo"})
        except WikibaseToolkitError as e:
            logger.error("token_login_failed", error=str(e))
            raise AuthError(f"Could not verify access token: {e.message}") from e

        query = root.get("query")
        userinfo = query.get("userinfo") if isinstance(query, dict) else None
        if not isinstance(userinfo, dict) or "anon" in userinfo or not userinfo.get("name"):
            logger.warning("token_login_rejected", userinfo=userinfo)
            raise AuthError("Access token was not accepted by the server")

        self._complete_login(str(userinfo["name"]))

    def _clear_credentials(self) -> None:
        self._access_token = None
        self._invalidate_session()

    def _extra_state(self) -> dict[str, Any]:
        return {"access_token": self._access_token}

    @classmethod
    def from_state(cls, state: ConnectionState) -> "TokenApiConnection":
        access_token = state.access_token if isinstance(state, TokenConnectionState) else None
        connection = cls(state.base_url, access_token, state.tokens)
        connection._restore_state(state)
        return connection
