"""Entity document models (items, properties, lexemes, media info, redirects).

Models follow the Wikibase JSON format. Fields not modelled here are kept
as extra fields so that documents survive a read/write round trip.
"""

from dataclasses import dataclass
from types import UnionType
from typing import Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

SITE_WIKIDATA = "http://www.wikidata.org/entity/"
SITE_WIKIMEDIA_COMMONS = "https://commons.wikimedia.org/entity/"


def _is_mapping_type(annotation: Any) -> bool:
    if get_origin(annotation) is dict:
        return True
    # Optional mappings, e.g. dict[str, Any] | None
    if get_origin(annotation) not in (Union, UnionType):
        return False
    return any(get_origin(arg) is dict for arg in get_args(annotation))


class DatamodelObject(BaseModel):
    """Base of all datamodel objects.

    Accepts an empty JSON array wherever a mapping is expected; older
    Wikibase versions serialized empty maps that way (phabricator T138104).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def empty_lists_as_mappings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized = data
        for name, field in cls.model_fields.items():
            if not _is_mapping_type(field.annotation):
                continue
            key = field.alias or name
            if normalized.get(key) == []:
                if normalized is data:
                    normalized = dict(data)
                normalized[key] = {}
        return normalized


@dataclass(frozen=True)
class EntityIdValue:
    """Entity id qualified by the IRI of the site it belongs to."""

    id: str
    site_iri: str

    @property
    def iri(self) -> str:
        return f"{self.site_iri}{self.id}"


class MonolingualTextValue(DatamodelObject):
    language: str
    value: str


class SiteLink(DatamodelObject):
    site: str
    title: str
    badges: list[str] = Field(default_factory=list)


class Snak(DatamodelObject):
    """Property/value pair; ``datavalue`` is absent for somevalue/novalue snaks."""

    snaktype: Literal["value", "somevalue", "novalue"]
    property: str
    hash: str | None = None
    datatype: str | None = None
    datavalue: dict[str, Any] | None = None


class Reference(DatamodelObject):
    hash: str | None = None
    snaks: dict[str, list[Snak]] = Field(default_factory=dict)
    snaks_order: list[str] = Field(default_factory=list, alias="snaks-order")


class Statement(DatamodelObject):
    mainsnak: Snak
    id: str | None = None
    type: Literal["statement", "claim"] = "statement"
    rank: Literal["preferred", "normal", "deprecated"] = "normal"
    qualifiers: dict[str, list[Snak]] = Field(default_factory=dict)
    qualifiers_order: list[str] = Field(default_factory=list, alias="qualifiers-order")
    references: list[Reference] = Field(default_factory=list)


class SiteBoundDocument(DatamodelObject):
    """Document whose ids are interpreted relative to a site IRI.

    The IRI never appears in the JSON; the deserializer attaches it.
    """

    _site_iri: str = PrivateAttr(default="")

    @property
    def site_iri(self) -> str:
        return self._site_iri

    def with_site_iri(self, site_iri: str) -> "SiteBoundDocument":
        self._site_iri = site_iri
        return self

    def to_json(self) -> str:
        """Serialize to the JSON format used by the API and dumps."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class EntityDocument(SiteBoundDocument):
    """Common part of item, property, lexeme and media info documents.

    ``id`` is None for documents that are yet to be created.
    """

    type: str
    id: str | None = None
    last_revision_id: int | None = Field(default=None, alias="lastrevid")

    @property
    def entity_id(self) -> EntityIdValue | None:
        if self.id is None:
            return None
        return EntityIdValue(self.id, self._site_iri)


class ItemDocument(EntityDocument):
    type: Literal["item"] = "item"
    labels: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    descriptions: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    aliases: dict[str, list[MonolingualTextValue]] = Field(default_factory=dict)
    claims: dict[str, list[Statement]] = Field(default_factory=dict)
    sitelinks: dict[str, SiteLink] = Field(default_factory=dict)


class PropertyDocument(EntityDocument):
    type: Literal["property"] = "property"
    datatype: str
    labels: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    descriptions: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    aliases: dict[str, list[MonolingualTextValue]] = Field(default_factory=dict)
    claims: dict[str, list[Statement]] = Field(default_factory=dict)


class FormDocument(DatamodelObject):
    id: str | None = None
    representations: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    grammatical_features: list[str] = Field(default_factory=list, alias="grammaticalFeatures")
    claims: dict[str, list[Statement]] = Field(default_factory=dict)


class SenseDocument(DatamodelObject):
    id: str | None = None
    glosses: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    claims: dict[str, list[Statement]] = Field(default_factory=dict)


class LexemeDocument(EntityDocument):
    type: Literal["lexeme"] = "lexeme"
    lexical_category: str = Field(alias="lexicalCategory")
    language: str
    lemmas: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    claims: dict[str, list[Statement]] = Field(default_factory=dict)
    forms: list[FormDocument] = Field(default_factory=list)
    senses: list[SenseDocument] = Field(default_factory=list)


class MediaInfoDocument(EntityDocument):
    """Structured data of a media file; statements live under "statements"."""

    type: Literal["mediainfo"] = "mediainfo"
    labels: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    descriptions: dict[str, MonolingualTextValue] = Field(default_factory=dict)
    statements: dict[str, list[Statement]] = Field(default_factory=dict)


class EntityRedirectDocument(SiteBoundDocument):
    """Marker that ``entity`` now redirects to ``redirect``."""

    entity: str
    redirect: str
    last_revision_id: int | None = Field(default=None, alias="lastrevid")

    @property
    def entity_id(self) -> EntityIdValue:
        return EntityIdValue(self.entity, self._site_iri)

    @property
    def target_id(self) -> EntityIdValue:
        return EntityIdValue(self.redirect, self._site_iri)


AnyEntityDocument = (
    ItemDocument | PropertyDocument | LexemeDocument | MediaInfoDocument | EntityRedirectDocument
)

DOCUMENT_TYPES: dict[str, type[EntityDocument]] = {
    "item": ItemDocument,
    "property": PropertyDocument,
    "lexeme": LexemeDocument,
    "mediainfo": MediaInfoDocument,
}
