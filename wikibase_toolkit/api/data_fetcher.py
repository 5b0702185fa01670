"""Fetching entity documents with the wbgetentities API action."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from wikibase_toolkit.api.connection import PARAM_ACTION, ApiConnection
from wikibase_toolkit.datamodel.deserializer import JsonDeserializer
from wikibase_toolkit.datamodel.documents import AnyEntityDocument
from wikibase_toolkit.utils.exceptions import DeserializationError

logger = structlog.get_logger(__name__)

DEFAULT_PROPS = ("info", "datatype", "labels", "aliases", "descriptions", "claims", "sitelinks")

# wbgetentities limit for non-bot users
MAX_ENTITIES_PER_REQUEST = 50


@dataclass
class DocumentFilter:
    """Restricts the data requested with each entity.

    None means no restriction. An empty property filter drops all statements.
    """

    languages: set[str] | None = None
    site_links: set[str] | None = None
    properties: set[str] | None = None
    props: Sequence[str] = field(default_factory=lambda: list(DEFAULT_PROPS))

    def requested_props(self) -> list[str]:
        props = list(self.props)
        if self.properties is not None and not self.properties:
            props = [p for p in props if p != "claims"]
        return props


def _chunked(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class WikibaseDataFetcher:
    """Reads entity documents from the web API."""

    def __init__(self, connection: ApiConnection, site_iri: str) -> None:
        self.connection = connection
        self.deserializer = JsonDeserializer(site_iri)
        self.filter = DocumentFilter()

    def get_entity_document(self, entity_id: str) -> AnyEntityDocument | None:
        """Fetch one entity; None if it does not exist."""
        return self.get_entity_documents(entity_id).get(entity_id)

    def get_entity_documents(self, *entity_ids: str) -> dict[str, AnyEntityDocument]:
        """Fetch entities by id.

        Returns:
            Documents keyed by the requested id; missing entities are left out
        """
        results: dict[str, AnyEntityDocument] = {}
        for batch in _chunked(list(entity_ids), MAX_ENTITIES_PER_REQUEST):
            params = self._base_params()
            params["ids"] = ApiConnection.implode_objects(batch)
            for key, document in self._fetch(params):
                results[key] = document
        return results

    def get_entity_document_by_title(self, site_key: str, title: str) -> AnyEntityDocument | None:
        """Fetch the entity linked to a page, e.g. ("enwiki", "Douglas Adams")."""
        return self.get_entity_documents_by_title(site_key, title).get(title)

    def get_entity_documents_by_title(
        self, site_key: str, *titles: str
    ) -> dict[str, AnyEntityDocument]:
        """Fetch entities by the titles of their linked pages on one site.

        Returns:
            Documents keyed by page title; titles without entity are left out
        """
        results: dict[str, AnyEntityDocument] = {}
        for batch in _chunked(list(titles), MAX_ENTITIES_PER_REQUEST):
            params = self._base_params()
            params["sites"] = site_key
            params["titles"] = ApiConnection.implode_objects(batch)
            # The site link is needed to map results back to titles
            site_filter = self.filter.site_links
            if site_filter is not None and site_key not in site_filter:
                site_filter = site_filter | {site_key}
                params["sitefilter"] = ApiConnection.implode_objects(sorted(site_filter))
            for _, document in self._fetch(params):
                title = _linked_title(document, site_key)
                if title is not None:
                    results[title] = document
        return results

    def _base_params(self) -> dict[str, str]:
        params = {
            PARAM_ACTION: "wbgetentities",
            "props": ApiConnection.implode_objects(self.filter.requested_props()),
        }
        if self.filter.languages is not None:
            params["languages"] = ApiConnection.implode_objects(sorted(self.filter.languages))
        if self.filter.site_links is not None:
            params["sitefilter"] = ApiConnection.implode_objects(sorted(self.filter.site_links))
        return params

    def _fetch(self, params: dict[str, str]) -> Iterator[tuple[str, AnyEntityDocument]]:
        root = self.connection.send_json_request("POST", params)
        entities = root.get("entities")
        if not isinstance(entities, dict):
            logger.warning("entities_missing_in_response", params=params)
            return

        for key, entity in entities.items():
            if not isinstance(entity, dict) or "missing" in entity:
                logger.debug("entity_missing", key=key)
                continue
            try:
                document = self.deserializer.deserialize_entity_document(
                    self._apply_property_filter(entity)
                )
            except DeserializationError as e:
                logger.error("entity_deserialization_failed", key=key, error=e.message)
                continue
            yield key, document

    def _apply_property_filter(self, entity: dict[str, Any]) -> dict[str, Any]:
        properties = self.filter.properties
        if not properties:
            return entity
        claims = entity.get("claims")
        if not isinstance(claims, dict):
            return entity
        return {**entity, "claims": {p: s for p, s in claims.items() if p in properties}}


def _linked_title(document: AnyEntityDocument, site_key: str) -> str | None:
    sitelinks = getattr(document, "sitelinks", None)
    if not sitelinks or site_key not in sitelinks:
        return None
    return sitelinks[site_key].title
