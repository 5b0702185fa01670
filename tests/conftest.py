"""Pytest configuration and shared fixtures."""

import json
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from wikibase_toolkit.api.basic_connection import BasicApiConnection

API_URL = "https://wikibase.test/w/api.php"
SITE_IRI = "http://www.wikidata.org/entity/"

ResponseFactory = Callable[..., requests.Response]


def build_response(
    payload: Any = None,
    status_code: int = 200,
    text: str | None = None,
    headers: dict[str, str] | None = None,
) -> requests.Response:
    """Build a real requests.Response with the given body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    body = text if text is not None else json.dumps(payload)
    response._content = body.encode("utf-8")
    response._content_consumed = True
    response.encoding = "utf-8"
    response.headers.update(headers or {"Content-Type": "application/json; charset=utf-8"})
    response.url = API_URL
    return response


@pytest.fixture
def make_response() -> ResponseFactory:
    """Return the response builder."""
    return build_response


@pytest.fixture
def api_url() -> str:
    return API_URL


@pytest.fixture
def site_iri() -> str:
    return SITE_IRI


@pytest.fixture
def connection() -> BasicApiConnection:
    """Anonymous connection to the test API."""
    return BasicApiConnection(API_URL)


@pytest.fixture
def logged_in_connection() -> BasicApiConnection:
    """Connection restored in a logged in state."""
    return BasicApiConnection.from_json(
        json.dumps({"baseUrl": API_URL, "loggedIn": True, "username": "Bot"})
    )


@pytest.fixture
def item_json() -> dict[str, Any]:
    """Item document as found in dumps and API responses."""
    return {
        "type": "item",
        "id": "Q42",
        "lastrevid": 1234,
        "labels": {"en": {"language": "en", "value": "Douglas Adams"}},
        "descriptions": {"en": {"language": "en", "value": "English writer"}},
        "aliases": {"en": [{"language": "en", "value": "Douglas Noel Adams"}]},
        "claims": {
            "P31": [
                {
                    "id": "Q42$F078E5B3-F9A8-480E-B7AC-D97778CBBEF9",
                    "type": "statement",
                    "rank": "normal",
                    "mainsnak": {
                        "snaktype": "value",
                        "property": "P31",
                        "datatype": "wikibase-item",
                        "datavalue": {
                            "type": "wikibase-entityid",
                            "value": {"entity-type": "item", "numeric-id": 5, "id": "Q5"},
                        },
                    },
                    "qualifiers": [],
                    "references": [],
                }
            ]
        },
        "sitelinks": {"enwiki": {"site": "enwiki", "title": "Douglas Adams", "badges": []}},
    }


@pytest.fixture
def mock_request() -> Iterator[MagicMock]:
    """Patch the HTTP layer; set return_value or side_effect to responses."""
    with patch("requests.Session.request") as mock:
        yield mock
