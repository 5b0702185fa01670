"""Classification of MediaWiki API error payloads.

The API reports failures as an ``error`` object in an otherwise successful
HTTP response::

    {"error": {"code": "maxlag", "info": "Waiting for db1: 5 seconds lagged",
               "lag": 5.2, "messages": [...]}}

``classify_error`` turns that object into one exception of a closed set of
kinds. The exceptions are raised by the connection layer and are never
retried there.
"""

from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from wikibase_toolkit.utils.exceptions import WikibaseToolkitError

logger = structlog.get_logger(__name__)

ERROR_MAXLAG = "maxlag"
ERROR_ASSERT_USER_FAILED = "assertuserfailed"
ERROR_EDIT_CONFLICT = "editconflict"
ERROR_INVALID_TOKEN = "badtoken"
ERROR_NO_TOKEN = "notoken"
ERROR_NO_SUCH_ENTITY = "no-such-entity"
ERROR_TAGS = "badtags"

DEFAULT_CODE = "UNKNOWN"
DEFAULT_INFO = "No details provided"


class MediaWikiErrorMessage(BaseModel):
    """One structured sub-message of an API error."""

    model_config = ConfigDict(extra="ignore")

    name: str
    parameters: list[Any] = Field(default_factory=list)
    html: dict[str, Any] = Field(default_factory=dict)

    @property
    def html_text(self) -> str:
        return str(self.html.get("*", ""))


_MESSAGES_ADAPTER = TypeAdapter(list[MediaWikiErrorMessage])


class ApiErrorKind(str, Enum):
    """Discriminator of the API error union."""

    GENERIC = "generic"
    MAXLAG = "maxlag"
    ASSERT_USER_FAILED = "assert_user_failed"
    EDIT_CONFLICT = "edit_conflict"
    BAD_TOKEN = "bad_token"
    NO_SUCH_ENTITY = "no_such_entity"
    TAGS = "tags"


class MediaWikiApiError(WikibaseToolkitError):
    """Error reported by the API, also used for codes without a dedicated kind."""

    kind = ApiErrorKind.GENERIC

    def __init__(
        self,
        code: str,
        info: str,
        details: Sequence[MediaWikiErrorMessage] = (),
        is_retryable: bool = False,
    ) -> None:
        super().__init__(f"[{code}] {info}", is_retryable=is_retryable)
        self.code = code
        self.info = info
        self.details = list(details)


class MaxlagError(MediaWikiApiError):
    """Server replication lag is above the requested ``maxlag``."""

    kind = ApiErrorKind.MAXLAG

    def __init__(
        self, info: str, lag: float, details: Sequence[MediaWikiErrorMessage] = ()
    ) -> None:
        super().__init__(ERROR_MAXLAG, info, details, is_retryable=True)
        self.lag = lag


class AssertUserFailedError(MediaWikiApiError):
    """The session is no longer authenticated on the server."""

    kind = ApiErrorKind.ASSERT_USER_FAILED

    def __init__(self, info: str, details: Sequence[MediaWikiErrorMessage] = ()) -> None:
        super().__init__(ERROR_ASSERT_USER_FAILED, info, details)


class EditConflictError(MediaWikiApiError):
    """The entity was modified since the base revision of the edit."""

    kind = ApiErrorKind.EDIT_CONFLICT

    def __init__(self, info: str, details: Sequence[MediaWikiErrorMessage] = ()) -> None:
        super().__init__(ERROR_EDIT_CONFLICT, info, details)


class TokenError(MediaWikiApiError):
    """Missing or stale token; clear it on the connection before retrying."""

    kind = ApiErrorKind.BAD_TOKEN


class NoSuchEntityError(MediaWikiApiError):
    kind = ApiErrorKind.NO_SUCH_ENTITY

    def __init__(self, info: str, details: Sequence[MediaWikiErrorMessage] = ()) -> None:
        super().__init__(ERROR_NO_SUCH_ENTITY, info, details)


class TagsError(MediaWikiApiError):
    kind = ApiErrorKind.TAGS

    def __init__(self, info: str, details: Sequence[MediaWikiErrorMessage] = ()) -> None:
        super().__init__(ERROR_TAGS, info, details)


ErrorFactory = Callable[[str, list[MediaWikiErrorMessage]], MediaWikiApiError]

ERROR_TABLE: dict[str, ErrorFactory] = {
    ERROR_MAXLAG: lambda info, details: MaxlagError(info, 0.0, details),
    ERROR_ASSERT_USER_FAILED: AssertUserFailedError,
    ERROR_EDIT_CONFLICT: EditConflictError,
    ERROR_INVALID_TOKEN: lambda info, details: TokenError(ERROR_INVALID_TOKEN, info, details),
    ERROR_NO_TOKEN: lambda info, details: TokenError(ERROR_NO_TOKEN, info, details),
    ERROR_NO_SUCH_ENTITY: NoSuchEntityError,
    ERROR_TAGS: TagsError,
}


def _text(node: Any, default: str) -> str:
    if node is None or isinstance(node, (dict, list)):
        return default
    return str(node)


def parse_messages(messages: Any) -> list[MediaWikiErrorMessage]:
    """Parse the ``messages`` array of an error, keeping server order.

    Malformed messages are logged and dropped as a whole.
    """
    try:
        return _MESSAGES_ADAPTER.validate_python(messages)
    except PydanticValidationError as e:
        logger.warning("api_error_messages_unparsable", error=str(e))
        return []


def classify_error(error_node: Mapping[str, Any]) -> MediaWikiApiError:
    """Map the ``error`` object of an API response to an exception.

    A ``maxlag`` code with a numeric ``lag`` always yields ``MaxlagError``
    carrying that lag, before the code table is consulted.

    Args:
        error_node: The ``error`` object of the response

    Returns:
        The exception to raise
    """
    code = _text(error_node.get("code"), DEFAULT_CODE)
    info = _text(error_node.get("info"), DEFAULT_INFO)

    details: list[MediaWikiErrorMessage] = []
    if "messages" in error_node:
        details = parse_messages(error_node["messages"])

    if code == ERROR_MAXLAG and "lag" in error_node:
        try:
            return MaxlagError(info, float(error_node["lag"]), details)
        except (TypeError, ValueError):
            logger.warning("api_error_lag_unparsable", lag=error_node["lag"])

    factory = ERROR_TABLE.get(code)
    if factory is None:
        return MediaWikiApiError(code, info, details)
    return factory(info, details)
