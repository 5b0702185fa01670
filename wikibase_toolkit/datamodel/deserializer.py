"""Deserialization of entity documents from their JSON representation."""

import json
from collections.abc import Mapping
from typing import IO, Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from wikibase_toolkit.datamodel.documents import (
    DOCUMENT_TYPES,
    AnyEntityDocument,
    EntityRedirectDocument,
    ItemDocument,
    LexemeDocument,
    MediaInfoDocument,
    PropertyDocument,
    SiteBoundDocument,
)
from wikibase_toolkit.utils.exceptions import DeserializationError, DeserializationErrorKind

JsonSource = str | bytes | bytearray | IO[str] | IO[bytes] | Mapping[str, Any]

DocumentT = TypeVar("DocumentT", bound=SiteBoundDocument)


class JsonDeserializer:
    """Reads entity documents for one site.

    Sources can be JSON text, bytes, a readable file object, or an already
    decoded JSON object. Failures raise DeserializationError whose kind tells
    malformed JSON (PARSE), JSON of the wrong shape (MAPPING) and unreadable
    sources (IO) apart.
    """

    def __init__(self, site_iri: str) -> None:
        """Initialize the deserializer.

        Args:
            site_iri: Root IRI of the site, e.g. "http://www.wikidata.org/entity/"
        """
        self.site_iri = site_iri

    def deserialize_item_document(self, source: JsonSource) -> ItemDocument:
        return self._read(source, ItemDocument)

    def deserialize_property_document(self, source: JsonSource) -> PropertyDocument:
        return self._read(source, PropertyDocument)

    def deserialize_lexeme_document(self, source: JsonSource) -> LexemeDocument:
        return self._read(source, LexemeDocument)

    def deserialize_media_info_document(self, source: JsonSource) -> MediaInfoDocument:
        return self._read(source, MediaInfoDocument)

    def deserialize_entity_redirect_document(self, source: JsonSource) -> EntityRedirectDocument:
        return self._read(source, EntityRedirectDocument)

    def deserialize_entity_document(self, source: JsonSource) -> AnyEntityDocument:
        """Read a document whose kind is not known in advance.

        Redirects are recognised by their "redirect" key, other documents
        by their "type".
        """
        data = self._load(source)
        if "redirect" in data:
            return self._validate(data, EntityRedirectDocument)

        entity_type = data.get("type")
        document_class = DOCUMENT_TYPES.get(entity_type) if isinstance(entity_type, str) else None
        if document_class is None:
            raise DeserializationError(
                f"Unknown entity type: {entity_type!r}", DeserializationErrorKind.MAPPING
            )
        return self._validate(data, document_class)  # type: ignore[return-value]

    def _read(self, source: JsonSource, document_class: type[DocumentT]) -> DocumentT:
        return self._validate(self._load(source), document_class)

    def _load(self, source: JsonSource) -> Mapping[str, Any]:
        if isinstance(source, Mapping):
            return dict(source)

        if hasattr(source, "read"):
            try:
                source = source.read()
            except (OSError, UnicodeDecodeError) as e:
                raise DeserializationError(
                    f"Failed to read JSON source: {e}", DeserializationErrorKind.IO
                ) from e

        try:
            data = json.loads(source)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
            raise DeserializationError(
                f"Malformed JSON: {e}", DeserializationErrorKind.PARSE
            ) from e

        if not isinstance(data, dict):
            raise DeserializationError(
                f"Expected a JSON object, got {type(data).__name__}",
                DeserializationErrorKind.MAPPING,
            )
        return data

    def _validate(self, data: Mapping[str, Any], document_class: type[DocumentT]) -> DocumentT:
        try:
            document = document_class.model_validate(data)
        except PydanticValidationError as e:
            raise DeserializationError(
                f"JSON does not match {document_class.__name__}: {e}",
                DeserializationErrorKind.MAPPING,
            ) from e
        document.with_site_iri(self.site_iri)
        return document
