"""Connection to the web API of a Wikibase site."""

import json
import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, ClassVar, NamedTuple

import requests
import structlog

from wikibase_toolkit.api.errors import classify_error
from wikibase_toolkit.api.state import DEFAULT_USER_AGENT, ConnectionState
from wikibase_toolkit.api.tokens import TOKEN_CSRF, TokenCache
from wikibase_toolkit.utils.exceptions import ParseError, TransportError, WikibaseToolkitError

logger = structlog.get_logger(__name__)

URL_WIKIDATA_API = "https://www.wikidata.org/w/api.php"
URL_TEST_WIKIDATA_API = "https://test.wikidata.org/w/api.php"
URL_WIKIMEDIA_COMMONS_API = "https://commons.wikimedia.org/w/api.php"

PARAM_ACTION = "action"
PARAM_FORMAT = "format"
PARAM_ASSERT = "assert"


class FileAttachment(NamedTuple):
    """File uploaded with a multipart POST request."""

    remote_name: str
    path: str | os.PathLike[str]


@dataclass(frozen=True)
class _HttpClient:
    session: requests.Session
    timeout: tuple[float | None, float | None]


def _timeout_seconds(timeout_ms: int) -> float | None:
    return None if timeout_ms <= 0 else timeout_ms / 1000


def _as_dict(node: Any) -> dict[str, Any]:
    return node if isinstance(node, dict) else {}


class ApiConnection(ABC):
    """Session with one MediaWiki/Wikibase API endpoint.

    Holds the login state, the token cache and the HTTP client settings.
    The ``requests.Session`` is built lazily; changing a timeout or the user
    agent drops it so that the next request uses a new one with the new
    settings. Instances are meant to be used by a single logical session at
    a time.
    """

    STATE_MODEL: ClassVar[type[ConnectionState]] = ConnectionState

    def __init__(self, api_base_url: str, tokens: Mapping[str, str] | None = None) -> None:
        """Initialize the connection.

        Args:
            api_base_url: URL of the API, e.g. "https://www.wikidata.org/w/api.php"
            tokens: Tokens already acquired for this session
        """
        self.api_base_url = api_base_url
        self._logged_in = False
        self._username = ""
        self._token_cache = TokenCache(self._fetch_token, tokens)
        self._connect_timeout_ms = -1
        self._read_timeout_ms = -1
        self._user_agent = DEFAULT_USER_AGENT
        self._client: _HttpClient | None = None

    @abstractmethod
    def _create_session(self) -> requests.Session:
        """Create the HTTP session carrying this connection's credentials."""

    @abstractmethod
    def _clear_credentials(self) -> None:
        """Forget transport level credentials (cookies, access tokens)."""

    @classmethod
    @abstractmethod
    def from_state(cls, state: ConnectionState) -> "ApiConnection":
        """Rebuild a connection from saved state without logging in again."""

    @property
    def logged_in(self) -> bool:
        """Local login state; use check_credentials() to ask the server."""
        return self._logged_in

    @property
    def username(self) -> str:
        """Name of the logged in user, empty when logged out."""
        return self._username

    @property
    def tokens(self) -> dict[str, str]:
        return self._token_cache.as_dict()

    @property
    def connect_timeout_ms(self) -> int:
        """Connect timeout in milliseconds, zero or negative for none."""
        return self._connect_timeout_ms

    @connect_timeout_ms.setter
    def connect_timeout_ms(self, timeout: int) -> None:
        self._connect_timeout_ms = timeout
        self._client = None

    @property
    def read_timeout_ms(self) -> int:
        """Read timeout in milliseconds, zero or negative for none."""
        return self._read_timeout_ms

    @read_timeout_ms.setter
    def read_timeout_ms(self, timeout: int) -> None:
        self._read_timeout_ms = timeout
        self._client = None

    @property
    def user_agent(self) -> str:
        return self._user_agent

    @user_agent.setter
    def user_agent(self, user_agent: str) -> None:
        self._user_agent = user_agent
        self._client = None

    def _invalidate_session(self) -> None:
        self._client = None

    def _get_client(self) -> _HttpClient:
        client = self._client
        if client is None:
            session = self._create_session()
            session.headers["User-Agent"] = self._user_agent
            client = _HttpClient(
                session=session,
                timeout=(
                    _timeout_seconds(self._connect_timeout_ms),
                    _timeout_seconds(self._read_timeout_ms),
                ),
            )
            self._client = client
            logger.debug(
                "http_client_built",
                base_url=self.api_base_url,
                connect_timeout_ms=self._connect_timeout_ms,
                read_timeout_ms=self._read_timeout_ms,
            )
        return client

    # Login state

    def _complete_login(self, username: str) -> None:
        """Switch to the logged in state; tokens of the old session are dropped."""
        self._logged_in = True
        self._username = username
        self._token_cache.clear_all()
        logger.info("login_succeeded", base_url=self.api_base_url, username=username)

    def logout(self) -> None:
        """Log the current user out.

        Idempotent. The local state is reset even when the logout request
        fails on the server or in transport.
        """
        if self._logged_in:
            try:
                token = self.get_or_fetch_token(TOKEN_CSRF)
                self.send_json_request("POST", {PARAM_ACTION: "logout", "token": token})
            except WikibaseToolkitError as e:
                logger.warning("logout_request_failed", username=self._username, error=str(e))

        self._logged_in = False
        self._username = ""
        self._token_cache.clear_all()
        self._clear_credentials()

    def check_credentials(self) -> None:
        """Ask the server whether the session is still authenticated.

        Raises:
            AssertUserFailedError: If the server no longer knows our login
        """
        self.send_json_request("POST", {PARAM_ACTION: "query"})

    # Tokens

    def get_or_fetch_token(self, token_type: str) -> str:
        """Return a token of the given type ("csrf", "login"), fetching it if needed."""
        return self._token_cache.get_or_fetch(token_type)

    def clear_token(self, token_type: str) -> None:
        """Forget a cached token, e.g. after the API rejected it as stale."""
        self._token_cache.clear(token_type)

    def _fetch_token(self, token_type: str) -> str:
        params = {PARAM_ACTION: "query", "meta": "tokens", "type": token_type}
        root = self.send_json_request("POST", params)
        token = _as_dict(_as_dict(root.get("query")).get("tokens")).get(f"{token_type}token")
        if not isinstance(token, str):
            logger.error("token_response_unparsable", token_type=token_type)
            raise ParseError(f"No {token_type} token in API response", body=json.dumps(root))
        return token

    # Requests

    def send_json_request(
        self,
        method: str,
        params: Mapping[str, str],
        files: Mapping[str, FileAttachment] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the parsed JSON response.

        Forces ``format=json`` and, when logged in, ``assert=user`` so that a
        lost session fails on the server. Warnings are logged, errors raised.

        Args:
            method: "GET" or "POST"
            params: Request parameters, not modified
            files: Files to upload by form field name (POST only)

        Returns:
            The response object

        Raises:
            TransportError: On connection failure or non-2xx status
            ParseError: If the body is not a JSON object
            MediaWikiApiError: If the response carries an error
        """
        request_params = dict(params)
        request_params[PARAM_FORMAT] = "json"
        if self._logged_in:
            request_params[PARAM_ASSERT] = "user"

        response = self.send_request(method, request_params, files)
        try:
            self._check_response(response)
            return self._parse_response(response)
        finally:
            response.close()

    def send_request(
        self,
        method: str,
        params: Mapping[str, str],
        files: Mapping[str, FileAttachment] | None = None,
    ) -> requests.Response:
        """Send a request as is and return the raw response.

        Most callers want send_json_request(), which also handles the
        response format, errors and warnings.

        Raises:
            ValueError: For methods other than GET and POST, or files with GET
            TransportError: If the request could not be completed
        """
        method = method.upper()
        if method not in ("GET", "POST"):
            raise ValueError(f"Expected the request method to be GET or POST, got {method}")
        if method == "GET" and files:
            raise ValueError("Files can only be uploaded with POST requests")

        client = self._get_client()
        try:
            if method == "GET":
                return client.session.request(
                    "GET", self.api_base_url, params=dict(params), timeout=client.timeout
                )
            if files:
                with ExitStack() as stack:
                    multipart = {
                        field: (
                            attachment.remote_name,
                            stack.enter_context(open(attachment.path, "rb")),
                        )
                        for field, attachment in files.items()
                    }
                    return client.session.request(
                        "POST",
                        self.api_base_url,
                        data=dict(params),
                        files=multipart,
                        timeout=client.timeout,
                    )
            return client.session.request(
                "POST", self.api_base_url, data=dict(params), timeout=client.timeout
            )
        except requests.RequestException as e:
            logger.error("http_request_error", method=method, url=self.api_base_url, error=str(e))
            raise TransportError(f"HTTP request to {self.api_base_url} failed: {e}") from e

    def _check_response(self, response: requests.Response) -> None:
        if not response.ok:
            logger.error(
                "http_request_failed",
                status_code=response.status_code,
                headers=dict(response.headers),
            )
            raise TransportError(
                f"Unexpected HTTP status: {response.status_code} {response.reason}",
                status_code=response.status_code,
                headers=response.headers,
            )

    def _parse_response(self, response: requests.Response) -> dict[str, Any]:
        body = response.text
        try:
            root = json.loads(body)
        except json.JSONDecodeError as e:
            logger.error(
                "json_parse_failed",
                status_code=response.status_code,
                headers=dict(response.headers),
                body=body,
            )
            raise ParseError(f"API response is not valid JSON: {e}", body=body) from e

        if not isinstance(root, dict):
            logger.error("json_parse_failed", status_code=response.status_code, body=body)
            raise ParseError("API response is not a JSON object", body=body)

        self._check_errors(root)
        self._log_warnings(root)
        return root

    def _check_errors(self, root: Mapping[str, Any]) -> None:
        if "error" in root:
            raise classify_error(_as_dict(root["error"]))

    def _log_warnings(self, root: Mapping[str, Any]) -> None:
        for warning in self.get_warnings(root):
            logger.warning("api_warning", warning=warning)

    @staticmethod
    def get_warnings(root: Mapping[str, Any]) -> list[str]:
        """Extract warnings of an API response as "[module]: text" strings.

        Module order and message order are kept.
        """
        warnings: list[str] = []
        for module, module_node in _as_dict(root.get("warnings")).items():
            if isinstance(module_node, dict):
                outputs = list(module_node.values())
            elif isinstance(module_node, list):
                outputs = module_node
            else:
                warnings.append(_not_understood(module, module_node))
                continue

            for output in outputs:
                if isinstance(output, str):
                    warnings.append(f"[{module}]: {output}")
                elif isinstance(output, list):
                    for message in output:
                        warnings.append(f"[{module}]: {_message_text(message)}")
                else:
                    warnings.append(_not_understood(module, output))
        return warnings

    @staticmethod
    def implode_objects(objects: Iterable[Any]) -> str:
        """Join objects with "|" for multi-value API parameters.

        No escaping is done; items must not contain "|".
        """
        return "|".join(str(o) for o in objects)

    # Persistence

    def _extra_state(self) -> dict[str, Any]:
        return {}

    def get_state(self) -> ConnectionState:
        """Snapshot of the session for saving."""
        return self.STATE_MODEL.model_validate(
            {
                "base_url": self.api_base_url,
                "logged_in": self._logged_in,
                "username": self._username,
                "tokens": self._token_cache.as_dict(),
                "connect_timeout_ms": self._connect_timeout_ms,
                "read_timeout_ms": self._read_timeout_ms,
                "user_agent": self._user_agent,
                **self._extra_state(),
            }
        )

    def _restore_state(self, state: ConnectionState) -> None:
        self._logged_in = state.logged_in
        self._username = state.username
        self._connect_timeout_ms = state.connect_timeout_ms
        self._read_timeout_ms = state.read_timeout_ms
        self._user_agent = state.user_agent
        self._client = None

    def to_json(self) -> str:
        return self.get_state().to_json()

    @classmethod
    def from_json(cls, text: str) -> "ApiConnection":
        """Restore a connection saved with to_json()."""
        return cls.from_state(cls.STATE_MODEL.model_validate_json(text))


def _message_text(message: Any) -> str:
    if isinstance(message, dict):
        html = message.get("html")
        if isinstance(html, dict) and isinstance(html.get("*"), str):
            return html["*"]
    if isinstance(message, str):
        return message
    return json.dumps(message)


def _not_understood(module: str, node: Any) -> str:
    return f"[{module}]: Warning was not understood. JSON source: {json.dumps(node)}"
