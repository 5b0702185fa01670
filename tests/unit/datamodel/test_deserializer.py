"""Unit tests for JSON deserialization of entity documents."""

import io
import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from wikibase_toolkit.datamodel.deserializer import JsonDeserializer
from wikibase_toolkit.datamodel.documents import (
    EntityRedirectDocument,
    ItemDocument,
    LexemeDocument,
    MediaInfoDocument,
    PropertyDocument,
)
from wikibase_toolkit.utils.exceptions import DeserializationError, DeserializationErrorKind

LEXEME_JSON = {
    "type": "lexeme",
    "id": "L7",
    "lexicalCategory": "Q1084",
    "language": "Q1860",
    "lemmas": {"en": {"language": "en", "value": "cat"}},
    "claims": [],
    "forms": [
        {
            "id": "L7-F1",
            "representations": {"en": {"language": "en", "value": "cats"}},
            "grammaticalFeatures": ["Q146786"],
            "claims": [],
        }
    ],
    "senses": [{"id": "L7-S1", "glosses": {"en": {"language": "en", "value": "a feline"}}}],
}


@pytest.fixture
def deserializer(site_iri: str) -> JsonDeserializer:
    return JsonDeserializer(site_iri)


class TestTypedDeserialization:
    """Test the per-type entry points."""

    def test_item_from_text(
        self, deserializer: JsonDeserializer, item_json: dict[str, Any], site_iri: str
    ) -> None:
        """Test an item is read from JSON text and bound to the site."""
        document = deserializer.deserialize_item_document(json.dumps(item_json))

        assert document.id == "Q42"
        assert document.last_revision_id == 1234
        assert document.site_iri == site_iri
        assert document.aliases["en"][0].value == "Douglas Noel Adams"
        assert document.sitelinks["enwiki"].title == "Douglas Adams"
        statement = document.claims["P31"][0]
        assert statement.mainsnak.datavalue is not None
        assert statement.mainsnak.datavalue["value"]["id"] == "Q5"

    def test_empty_array_read_as_empty_mapping(
        self, deserializer: JsonDeserializer, item_json: dict[str, Any]
    ) -> None:
        """Test [] in place of a map is an empty map, also in nested objects."""
        item_json["labels"] = []
        item_json["sitelinks"] = []

        document = deserializer.deserialize_item_document(item_json)

        assert document.labels == {}
        assert document.sitelinks == {}
        assert document.claims["P31"][0].qualifiers == {}

    def test_property_from_bytes(self, deserializer: JsonDeserializer) -> None:
        source = b'{"type": "property", "id": "P31", "datatype": "wikibase-item", "labels": []}'

        document = deserializer.deserialize_property_document(source)

        assert document.datatype == "wikibase-item"

    def test_lexeme_from_file(self, deserializer: JsonDeserializer) -> None:
        document = deserializer.deserialize_lexeme_document(io.StringIO(json.dumps(LEXEME_JSON)))

        assert document.lexical_category == "Q1084"
        assert document.forms[0].grammatical_features == ["Q146786"]
        assert document.senses[0].glosses["en"].value == "a feline"
        assert document.claims == {}

    def test_media_info(self, deserializer: JsonDeserializer) -> None:
        document = deserializer.deserialize_media_info_document(
            {"type": "mediainfo", "id": "M123", "labels": [], "statements": []}
        )

        assert document.id == "M123"
        assert document.statements == {}

    def test_redirect(self, deserializer: JsonDeserializer, site_iri: str) -> None:
        document = deserializer.deserialize_entity_redirect_document(
            '{"entity": "Q100", "redirect": "Q42"}'
        )

        assert document.entity_id.iri == f"{site_iri}Q100"
        assert document.target_id.id == "Q42"

    def test_unknown_fields_kept(
        self, deserializer: JsonDeserializer, item_json: dict[str, Any]
    ) -> None:
        """Test fields outside the model survive serialization."""
        item_json["pageid"] = 138
        item_json["modified"] = "2024-01-01T00:00:00Z"

        document = deserializer.deserialize_item_document(item_json)

        written = json.loads(document.to_json())
        assert written["pageid"] == 138
        assert written["lastrevid"] == 1234
        assert written["claims"]["P31"][0]["mainsnak"]["property"] == "P31"


class TestEntityDispatch:
    """Test deserialization of documents of unknown kind."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ({"type": "item", "id": "Q1"}, ItemDocument),
            ({"type": "property", "id": "P1", "datatype": "string"}, PropertyDocument),
            (LEXEME_JSON, LexemeDocument),
            ({"type": "mediainfo", "id": "M1"}, MediaInfoDocument),
            ({"entity": "Q1", "redirect": "Q2"}, EntityRedirectDocument),
        ],
    )
    def test_dispatch(
        self, deserializer: JsonDeserializer, source: dict[str, Any], expected: type
    ) -> None:
        assert isinstance(deserializer.deserialize_entity_document(source), expected)

    def test_unknown_type(self, deserializer: JsonDeserializer) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_entity_document({"type": "form", "id": "L1-F1"})

        assert exc_info.value.kind is DeserializationErrorKind.MAPPING


class TestDeserializationErrors:
    """Test the error kinds."""

    @pytest.mark.parametrize("source", ["{not json", b"\x80\x81", ""])
    def test_malformed_json(self, deserializer: JsonDeserializer, source: str | bytes) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_item_document(source)

        assert exc_info.value.kind is DeserializationErrorKind.PARSE

    @pytest.mark.parametrize("source", ["[1, 2, 3]", '{"type": "item", "labels": {"en": 5}}'])
    def test_wrong_shape(self, deserializer: JsonDeserializer, source: str) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_item_document(source)

        assert exc_info.value.kind is DeserializationErrorKind.MAPPING

    def test_missing_required_field(self, deserializer: JsonDeserializer) -> None:
        """Test a property without datatype is rejected."""
        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_property_document('{"type": "property", "id": "P1"}')

        assert exc_info.value.kind is DeserializationErrorKind.MAPPING

    def test_type_mismatch(self, deserializer: JsonDeserializer) -> None:
        """Test a property is not accepted as an item."""
        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_item_document('{"type": "property", "datatype": "string"}')

        assert exc_info.value.kind is DeserializationErrorKind.MAPPING

    def test_unreadable_source(self, deserializer: JsonDeserializer) -> None:
        source = MagicMock()
        source.read.side_effect = OSError("disk gone")

        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_item_document(source)

        assert exc_info.value.kind is DeserializationErrorKind.IO

    def test_undecodable_text_file(self, deserializer: JsonDeserializer) -> None:
        source = io.TextIOWrapper(io.BytesIO(b'{"type": "item", "id": "Q1\xff"}'), encoding="utf-8")

        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_item_document(source)

        assert exc_info.value.kind is DeserializationErrorKind.IO

    def test_nesting_too_deep(self, deserializer: JsonDeserializer) -> None:
        text = '{"type": "item", "id": "Q1", "x": ' + "[" * 200_000 + "]" * 200_000 + "}"

        with pytest.raises(DeserializationError) as exc_info:
            deserializer.deserialize_item_document(text)

        assert exc_info.value.kind is DeserializationErrorKind.PARSE
