"""Connection that logs in with a user name and (bot) password."""

from collections.abc import Mapping
from typing import Any

import requests
import structlog
from requests.cookies import RequestsCookieJar

from wikibase_toolkit.api.connection import (
    PARAM_ACTION,
    URL_TEST_WIKIDATA_API,
    URL_WIKIDATA_API,
    URL_WIKIMEDIA_COMMONS_API,
    ApiConnection,
)
from wikibase_toolkit.api.state import BasicConnectionState, ConnectionState, CookieState
from wikibase_toolkit.api.tokens import TOKEN_LOGIN
from wikibase_toolkit.utils.exceptions import AuthError, WikibaseToolkitError

logger = structlog.get_logger(__name__)

LOGIN_RESULT_SUCCESS = "Success"


def _failure_reason(login_node: Mapping[str, Any]) -> str:
    reason = login_node.get("reason")
    if isinstance(reason, dict):
        reason = reason.get("text") or reason.get("code")
    return str(reason or login_node.get("result") or "no login result in response")


class BasicApiConnection(ApiConnection):
    """Password based session; the login lives in the session cookies.

    The cookie jar belongs to the connection, so it survives rebuilding the
    HTTP session after a timeout or user agent change.
    """

    STATE_MODEL = BasicConnectionState

    def __init__(
        self,
        api_base_url: str,
        tokens: Mapping[str, str] | None = None,
        cookies: RequestsCookieJar | None = None,
    ) -> None:
        super().__init__(api_base_url, tokens)
        self._cookies = cookies if cookies is not None else RequestsCookieJar()

    @classmethod
    def get_wikidata_api_connection(cls) -> "BasicApiConnection":
        return cls(URL_WIKIDATA_API)

    @classmethod
    def get_test_wikidata_api_connection(cls) -> "BasicApiConnection":
        return cls(URL_TEST_WIKIDATA_API)

    @classmethod
    def get_wikimedia_commons_api_connection(cls) -> "BasicApiConnection":
        return cls(URL_WIKIMEDIA_COMMONS_API)

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.cookies = self._cookies
        return session

    def login(self, username: str, password: str) -> None:
        """Log in with a user name and password.

        Bot passwords ("User@botname") are the usual credentials here.

        Raises:
            AuthError: If the credentials are rejected or the request fails
        """
        try:
            token = self.get_or_fetch_token(TOKEN_LOGIN)
            root = self.send_json_request(
                "POST",
                {
                    PARAM_ACTION: "login",
                    "lgname": username,
                    "lgpassword": password,
                    "lgtoken": token,
                },
            )
        except WikibaseToolkitError as e:
            self.clear_token(TOKEN_LOGIN)
            logger.error("login_request_failed", username=username, error=str(e))
            raise AuthError(f"Login of {username} failed: {e.message}") from e

        login_node = root.get("login")
        if not isinstance(login_node, dict):
            login_node = {}
        if login_node.get("result") != LOGIN_RESULT_SUCCESS:
            self.clear_token(TOKEN_LOGIN)
            reason = _failure_reason(login_node)
            logger.warning("login_rejected", username=username, reason=reason)
            raise AuthError(f"Login of {username} failed: {reason}")

        self._complete_login(str(login_node.get("lgusername") or username))

    def _clear_credentials(self) -> None:
        self._cookies.clear()

    def _extra_state(self) -> dict[str, Any]:
        return {
            "cookies": [
                CookieState(
                    name=cookie.name,
                    value=cookie.value or "",
                    domain=cookie.domain,
                    path=cookie.path,
                )
                for cookie in self._cookies
            ]
        }

    @classmethod
    def from_state(cls, state: ConnectionState) -> "BasicApiConnection":
        cookies = RequestsCookieJar()
        if isinstance(state, BasicConnectionState):
            for cookie in state.cookies:
                cookies.set(cookie.name, cookie.value, domain=cookie.domain, path=cookie.path)

        connection = cls(state.base_url, state.tokens, cookies)
        connection._restore_state(state)
        return connection
