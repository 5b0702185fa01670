"""Unit tests for the wbeditentity action."""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from wikibase_toolkit.api.basic_connection import BasicApiConnection
from wikibase_toolkit.api.edit_action import WbEditEntityAction
from wikibase_toolkit.api.errors import EditConflictError, MaxlagError, TokenError
from wikibase_toolkit.datamodel.documents import ItemDocument
from wikibase_toolkit.utils.exceptions import NoLoginError, ParseError

ResponseFactory = Callable[..., requests.Response]

CSRF_RESPONSE = {"query": {"tokens": {"csrftoken": "csrf+\\"}}}


@pytest.fixture
def action(logged_in_connection: BasicApiConnection, site_iri: str) -> WbEditEntityAction:
    return WbEditEntityAction(logged_in_connection, site_iri)


class TestWbEditEntity:
    """Test request building and response handling."""

    def test_requires_login(
        self, connection: BasicApiConnection, site_iri: str, mock_request: MagicMock
    ) -> None:
        """Test nothing is sent when the connection is anonymous."""
        action = WbEditEntityAction(connection, site_iri)

        with pytest.raises(NoLoginError):
            action.wb_edit_entity(data="{}", new_type="item")

        mock_request.assert_not_called()

    @pytest.mark.parametrize(
        "target",
        [
            {},
            {"entity_id": "Q42", "new_type": "item"},
            {"entity_id": "Q42", "site": "enwiki", "title": "Douglas Adams"},
            {"site": "enwiki"},
            {"title": "Douglas Adams"},
        ],
    )
    def test_invalid_target(
        self, action: WbEditEntityAction, mock_request: MagicMock, target: dict[str, Any]
    ) -> None:
        """Test exactly one complete target is required."""
        with pytest.raises(ValueError):
            action.wb_edit_entity(data="{}", **target)

        mock_request.assert_not_called()

    def test_create_item(
        self,
        action: WbEditEntityAction,
        mock_request: MagicMock,
        make_response: ResponseFactory,
        site_iri: str,
    ) -> None:
        """Test a new entity request and the returned document."""
        mock_request.side_effect = [
            make_response(CSRF_RESPONSE),
            make_response(
                {
                    "entity": {
                        "type": "item",
                        "id": "Q1001",
                        "lastrevid": 77,
                        "labels": {"en": {"language": "en", "value": "New item"}},
                        "descriptions": [],
                        "aliases": [],
                        "claims": [],
                        "sitelinks": [],
                    },
                    "success": 1,
                }
            ),
        ]
        data = json.dumps({"labels": {"en": {"language": "en", "value": "New item"}}})

        document = action.wb_edit_entity(data=data, new_type="item", bot=True, summary="Create")

        params = mock_request.call_args.kwargs["data"]
        assert params["action"] == "wbeditentity"
        assert params["new"] == "item"
        assert params["data"] == data
        assert params["bot"] == "true"
        assert params["summary"] == "Create"
        assert params["token"] == "csrf+\\"
        assert params["assert"] == "user"
        assert "id" not in params
        assert "clear" not in params
        assert isinstance(document, ItemDocument)
        assert document.id == "Q1001"
        assert document.last_revision_id == 77
        assert document.site_iri == site_iri

    def test_edit_by_id(
        self,
        action: WbEditEntityAction,
        mock_request: MagicMock,
        make_response: ResponseFactory,
        item_json: dict[str, Any],
    ) -> None:
        """Test an edit sends id, base revision, clear and maxlag."""
        mock_request.side_effect = [
            make_response(CSRF_RESPONSE),
            make_response({"entity": item_json, "success": 1}),
        ]

        action.wb_edit_entity(
            data="{}", entity_id="Q42", base_revision_id=1233, clear=True, max_lag=5
        )

        params = mock_request.call_args.kwargs["data"]
        assert params["id"] == "Q42"
        assert params["baserevid"] == "1233"
        assert params["clear"] == "true"
        assert params["maxlag"] == "5"
        assert "bot" not in params

    def test_edit_by_site_and_title(
        self,
        action: WbEditEntityAction,
        mock_request: MagicMock,
        make_response: ResponseFactory,
        item_json: dict[str, Any],
    ) -> None:
        mock_request.side_effect = [
            make_response(CSRF_RESPONSE),
            make_response({"entity": item_json, "success": 1}),
        ]

        action.wb_edit_entity(data="{}", site="enwiki", title="Douglas Adams")

        params = mock_request.call_args.kwargs["data"]
        assert params["site"] == "enwiki"
        assert params["title"] == "Douglas Adams"

    def test_edit_conflict_surfaces(
        self,
        action: WbEditEntityAction,
        mock_request: MagicMock,
        make_response: ResponseFactory,
    ) -> None:
        """Test edit conflicts reach the caller with their details."""
        mock_request.side_effect = [
            make_response(CSRF_RESPONSE),
            make_response(
                {
                    "error": {
                        "code": "editconflict",
                        "info": "Edit conflict.",
                        "messages": [{"name": "edit-conflict", "parameters": []}],
                    }
                }
            ),
        ]

        with pytest.raises(EditConflictError) as exc_info:
            action.wb_edit_entity(data="{}", entity_id="Q42", base_revision_id=1)

        assert exc_info.value.details[0].name == "edit-conflict"

    def test_maxlag_is_not_retried(
        self,
        action: WbEditEntityAction,
        mock_request: MagicMock,
        make_response: ResponseFactory,
    ) -> None:
        """Test a lagged server fails the edit after a single attempt."""
        mock_request.side_effect = [
            make_response(CSRF_RESPONSE),
            make_response({"error": {"code": "maxlag", "info": "lagged", "lag": 7}}),
        ]

        with pytest.raises(MaxlagError):
            action.wb_edit_entity(data="{}", entity_id="Q42", max_lag=5)

        assert mock_request.call_count == 2

    def test_stale_token_can_be_refreshed(
        self,
        action: WbEditEntityAction,
        logged_in_connection: BasicApiConnection,
        mock_request: MagicMock,
        make_response: ResponseFactory,
        item_json: dict[str, Any],
    ) -> None:
        """Test clearing the token after badtoken makes the retry use a new one."""
        mock_request.side_effect = [
            make_response(CSRF_RESPONSE),
            make_response({"error": {"code": "badtoken", "info": "Invalid CSRF token."}}),
            make_response({"query": {"tokens": {"csrftoken": "fresh+\\"}}}),
            make_response({"entity": item_json, "success": 1}),
        ]

        with pytest.raises(TokenError):
            action.wb_edit_entity(data="{}", entity_id="Q42")
        logged_in_connection.clear_token("csrf")
        action.wb_edit_entity(data="{}", entity_id="Q42")

        assert mock_request.call_args.kwargs["data"]["token"] == "fresh+\\"

    def test_response_without_entity(
        self,
        action: WbEditEntityAction,
        mock_request: MagicMock,
        make_response: ResponseFactory,
    ) -> None:
        mock_request.side_effect = [make_response(CSRF_RESPONSE), make_response({"success": 1})]

        with pytest.raises(ParseError):
            action.wb_edit_entity(data="{}", entity_id="Q42")
