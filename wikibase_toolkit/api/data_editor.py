"""Convenience layer for creating and editing entity documents."""

from typing import TypeVar

from wikibase_toolkit.api.connection import ApiConnection
from wikibase_toolkit.api.edit_action import WbEditEntityAction
from wikibase_toolkit.datamodel.documents import (
    AnyEntityDocument,
    EntityDocument,
    ItemDocument,
    PropertyDocument,
)

DocumentT = TypeVar("DocumentT", bound=EntityDocument)


class WikibaseDataEditor:
    """Writes entity documents to a Wikibase site.

    Attributes:
        edit_as_bot: Flag edits as bot edits (the account needs the bot right)
        max_lag: maxlag value sent with every edit, None to omit it
    """

    DEFAULT_MAX_LAG = 5

    def __init__(self, connection: ApiConnection, site_iri: str) -> None:
        self.wb_edit_entity_action = WbEditEntityAction(connection, site_iri)
        self.site_iri = site_iri
        self.edit_as_bot = False
        self.max_lag: int | None = self.DEFAULT_MAX_LAG

    def create_item_document(
        self, document: ItemDocument, summary: str | None = None
    ) -> ItemDocument:
        """Create a new item; the id of the given document is ignored.

        Returns:
            The created item with its new id
        """
        return self._create(document, summary)

    def create_property_document(
        self, document: PropertyDocument, summary: str | None = None
    ) -> PropertyDocument:
        return self._create(document, summary)

    def edit_item_document(
        self, document: ItemDocument, clear: bool = False, summary: str | None = None
    ) -> ItemDocument:
        """Write an existing item.

        Args:
            document: Item with id; its lastrevid is used to detect edit conflicts
            clear: Replace all existing data with the document
            summary: Edit summary
        """
        return self._edit(document, clear, summary)

    def edit_property_document(
        self, document: PropertyDocument, clear: bool = False, summary: str | None = None
    ) -> PropertyDocument:
        return self._edit(document, clear, summary)

    def edit_entity_document(
        self, document: EntityDocument, clear: bool = False, summary: str | None = None
    ) -> AnyEntityDocument:
        """Create (id is None) or edit an entity document of any type."""
        if document.id is None:
            return self._send(document, summary=summary, new_type=document.type)
        return self._send(document, clear=clear, summary=summary, entity_id=document.id)

    def _create(self, document: DocumentT, summary: str | None) -> DocumentT:
        new_document = document.model_copy(update={"id": None, "last_revision_id": None})
        return self._send(  # type: ignore[return-value]
            new_document, summary=summary, new_type=document.type
        )

    def _edit(self, document: DocumentT, clear: bool, summary: str | None) -> DocumentT:
        if document.id is None:
            raise ValueError("Cannot edit a document without an id; create it instead")
        return self._send(  # type: ignore[return-value]
            document, clear=clear, summary=summary, entity_id=document.id
        )

    def _send(
        self,
        document: EntityDocument,
        summary: str | None,
        clear: bool = False,
        entity_id: str | None = None,
        new_type: str | None = None,
    ) -> AnyEntityDocument:
        return self.wb_edit_entity_action.wb_edit_entity(
            data=document.to_json(),
            entity_id=entity_id,
            new_type=new_type,
            base_revision_id=document.last_revision_id if entity_id is not None else None,
            clear=clear,
            bot=self.edit_as_bot,
            summary=summary,
            max_lag=self.max_lag,
        )
