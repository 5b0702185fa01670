"""Entity document models and their JSON deserialization."""

from wikibase_toolkit.datamodel.deserializer import JsonDeserializer
from wikibase_toolkit.datamodel.documents import (
    SITE_WIKIDATA,
    SITE_WIKIMEDIA_COMMONS,
    AnyEntityDocument,
    EntityDocument,
    EntityIdValue,
    EntityRedirectDocument,
    ItemDocument,
    LexemeDocument,
    MediaInfoDocument,
    PropertyDocument,
)

__all__ = [
    "AnyEntityDocument",
    "EntityDocument",
    "EntityIdValue",
    "EntityRedirectDocument",
    "ItemDocument",
    "JsonDeserializer",
    "LexemeDocument",
    "MediaInfoDocument",
    "PropertyDocument",
    "SITE_WIKIDATA",
    "SITE_WIKIMEDIA_COMMONS",
]
