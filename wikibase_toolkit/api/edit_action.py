"""The wbeditentity API action."""

import json
from typing import Any

import structlog

from wikibase_toolkit.api.connection import PARAM_ACTION, ApiConnection
from wikibase_toolkit.api.tokens import TOKEN_CSRF
from wikibase_toolkit.datamodel.deserializer import JsonDeserializer
from wikibase_toolkit.datamodel.documents import AnyEntityDocument
from wikibase_toolkit.utils.exceptions import NoLoginError, ParseError

logger = structlog.get_logger(__name__)


class WbEditEntityAction:
    """Creates and updates entities with wbeditentity.

    API errors are not retried here. On a TokenError the caller may call
    ``connection.clear_token("csrf")`` and send the edit again; an
    EditConflictError means the entity changed since ``base_revision_id``.
    """

    def __init__(self, connection: ApiConnection, site_iri: str) -> None:
        """Initialize the action.

        Args:
            connection: Logged in API connection
            site_iri: IRI of the site, attached to returned documents
        """
        self.connection = connection
        self.deserializer = JsonDeserializer(site_iri)

    def wb_edit_entity(
        self,
        data: str,
        entity_id: str | None = None,
        site: str | None = None,
        title: str | None = None,
        new_type: str | None = None,
        base_revision_id: int | None = None,
        clear: bool = False,
        bot: bool = False,
        summary: str | None = None,
        max_lag: int | None = None,
    ) -> AnyEntityDocument:
        """Create or modify an entity.

        Exactly one target must be given: an entity id, a site and page
        title, or the type of a new entity.

        Args:
            data: JSON serialization of the (partial) entity document
            entity_id: Id of the entity to edit
            site: Site key of the page linked to the entity, with title
            title: Title of the page linked to the entity, with site
            new_type: Type of the entity to create ("item", "property", ...)
            base_revision_id: Revision the edit is based on, for conflict detection
            clear: Replace the existing data instead of merging into it
            bot: Flag the edit as a bot edit
            summary: Edit summary
            max_lag: maxlag parameter sent with the request

        Returns:
            The entity document as stored by the server

        Raises:
            ValueError: If the target is missing or ambiguous
            NoLoginError: If the connection is not logged in; nothing is sent
            MediaWikiApiError: As classified from the API response
        """
        targets = (entity_id, site or title, new_type)
        if sum(target is not None for target in targets) != 1:
            raise ValueError("Exactly one of entity_id, site/title or new_type must be given")
        if (site is None) != (title is None):
            raise ValueError("site and title must be given together")

        if not self.connection.logged_in:
            raise NoLoginError("Entities can only be edited when logged in")

        params: dict[str, str] = {PARAM_ACTION: "wbeditentity"}
        if entity_id is not None:
            params["id"] = entity_id
        elif new_type is not None:
            params["new"] = new_type
        else:
            params["site"] = site  # type: ignore[assignment]
            params["title"] = title  # type: ignore[assignment]

        params["data"] = data
        if base_revision_id is not None:
            params["baserevid"] = str(base_revision_id)
        if clear:
            params["clear"] = "true"
        if bot:
            params["bot"] = "true"
        if summary is not None:
            params["summary"] = summary
        if max_lag is not None:
            params["maxlag"] = str(max_lag)

        params["token"] = self.connection.get_or_fetch_token(TOKEN_CSRF)

        root = self.connection.send_json_request("POST", params)
        return self._read_entity(root, entity_id or new_type or f"{site}:{title}")

    def _read_entity(self, root: dict[str, Any], target: str) -> AnyEntityDocument:
        entity = root.get("entity")
        if not isinstance(entity, dict):
            logger.error("edit_response_without_entity", target=target)
            raise ParseError("No entity document in wbeditentity response", body=json.dumps(root))

        document = self.deserializer.deserialize_entity_document(entity)
        logger.info(
            "entity_edited",
            target=target,
            entity_id=entity.get("id"),
            revision_id=entity.get("lastrevid"),
        )
        return document
