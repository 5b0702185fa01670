"""Receiver of the entity documents produced by revision processing."""

from wikibase_toolkit.datamodel.documents import (
    EntityRedirectDocument,
    ItemDocument,
    LexemeDocument,
    MediaInfoDocument,
    PropertyDocument,
)


class EntityDocumentProcessor:
    """Handlers for each kind of entity document; all default to doing nothing.

    Handlers must not raise. Errors inside a handler are the handler's own
    business and are not retried.
    """

    def process_item_document(self, document: ItemDocument) -> None:
        pass

    def process_property_document(self, document: PropertyDocument) -> None:
        pass

    def process_lexeme_document(self, document: LexemeDocument) -> None:
        pass

    def process_media_info_document(self, document: MediaInfoDocument) -> None:
        pass

    def process_entity_redirect_document(self, document: EntityRedirectDocument) -> None:
        pass
