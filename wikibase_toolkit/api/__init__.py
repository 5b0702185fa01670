"""Wikibase web API: connections, error taxonomy, reading and editing entities."""

from wikibase_toolkit.api.basic_connection import BasicApiConnection
from wikibase_toolkit.api.connection import (
    URL_TEST_WIKIDATA_API,
    URL_WIKIDATA_API,
    URL_WIKIMEDIA_COMMONS_API,
    ApiConnection,
    FileAttachment,
)
from wikibase_toolkit.api.data_editor import WikibaseDataEditor
from wikibase_toolkit.api.data_fetcher import DocumentFilter, WikibaseDataFetcher
from wikibase_toolkit.api.edit_action import WbEditEntityAction
from wikibase_toolkit.api.errors import (
    ApiErrorKind,
    AssertUserFailedError,
    EditConflictError,
    MaxlagError,
    MediaWikiApiError,
    MediaWikiErrorMessage,
    NoSuchEntityError,
    TagsError,
    TokenError,
    classify_error,
)
from wikibase_toolkit.api.token_connection import TokenApiConnection
from wikibase_toolkit.api.tokens import TokenCache

__all__ = [
    "ApiConnection",
    "ApiErrorKind",
    "AssertUserFailedError",
    "BasicApiConnection",
    "classify_error",
    "DocumentFilter",
    "EditConflictError",
    "FileAttachment",
    "MaxlagError",
    "MediaWikiApiError",
    "MediaWikiErrorMessage",
    "NoSuchEntityError",
    "TagsError",
    "TokenApiConnection",
    "TokenCache",
    "TokenError",
    "URL_TEST_WIKIDATA_API",
    "URL_WIKIDATA_API",
    "URL_WIKIMEDIA_COMMONS_API",
    "WbEditEntityAction",
    "WikibaseDataEditor",
    "WikibaseDataFetcher",
]
