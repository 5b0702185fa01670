"""Revision processor that turns Wikibase revisions into entity documents."""

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from wikibase_toolkit.datamodel.deserializer import JsonDeserializer
from wikibase_toolkit.datamodel.documents import SiteBoundDocument
from wikibase_toolkit.dumpfiles.revision import (
    MODEL_WIKIBASE_ITEM,
    MODEL_WIKIBASE_LEXEME,
    MODEL_WIKIBASE_PROPERTY,
    MwRevision,
    MwRevisionProcessor,
)
from wikibase_toolkit.dumpfiles.sink import EntityDocumentProcessor
from wikibase_toolkit.utils.exceptions import DeserializationError
from wikibase_toolkit.utils.logger import get_logger

# Substring check on the raw text, done before parsing
REDIRECT_MARKER = '"redirect":'


class RevisionOutcome(str, Enum):
    DOCUMENT = "document"
    REDIRECT = "redirect"
    IGNORED = "ignored"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RevisionResult:
    """What happened to one revision.

    Attributes:
        outcome: Forwarded document, forwarded redirect, ignored content model,
            or skipped because the text could not be deserialized
        document: The document forwarded to the sink, if any
        reason: Why the revision was skipped
    """

    outcome: RevisionOutcome
    document: SiteBoundDocument | None = None
    reason: str | None = None


@dataclass
class RevisionStatistics:
    """Counters of one processing run."""

    documents: int = 0
    redirects: int = 0
    ignored: int = 0
    failed: int = 0
    by_model: dict[str, int] = field(default_factory=dict)
    start_time: float = 0.0
    end_time: float = 0.0

    def record(self, model: str, outcome: RevisionOutcome) -> None:
        if outcome is RevisionOutcome.DOCUMENT:
            self.documents += 1
        elif outcome is RevisionOutcome.REDIRECT:
            self.redirects += 1
        elif outcome is RevisionOutcome.IGNORED:
            self.ignored += 1
            return
        else:
            self.failed += 1
        self.by_model[model] = self.by_model.get(model, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "documents": self.documents,
            "redirects": self.redirects,
            "ignored": self.ignored,
            "failed": self.failed,
            "by_model": dict(self.by_model),
            "duration_seconds": round(max(self.end_time - self.start_time, 0.0), 3),
        }


@dataclass(frozen=True)
class _Route:
    label: str
    deserialize: Callable[[str], SiteBoundDocument]
    forward: Callable[[Any], None]


class WikibaseRevisionProcessor(MwRevisionProcessor):
    """Parses item, property and lexeme revisions and forwards the documents.

    Revisions of other content models are ignored. A revision whose text
    cannot be deserialized is logged and skipped; processing continues with
    the next revision.
    """

    def __init__(self, entity_document_processor: EntityDocumentProcessor, site_iri: str) -> None:
        """Initialize the processor.

        Args:
            entity_document_processor: Sink receiving the documents
            site_iri: IRI of the site the revisions come from; it cannot be
                read from the revisions themselves
        """
        self.logger = get_logger(__name__, component="wikibase_revision_processor")
        self.sink = entity_document_processor
        self.deserializer = JsonDeserializer(site_iri)
        self.site_name: str | None = None
        self.base_url: str | None = None
        self.namespaces: dict[int, str] = {}
        self.stats = RevisionStatistics()
        self._started = False

        self._routes: dict[str, _Route] = {
            MODEL_WIKIBASE_ITEM: _Route(
                "item",
                self.deserializer.deserialize_item_document,
                self.sink.process_item_document,
            ),
            MODEL_WIKIBASE_PROPERTY: _Route(
                "property",
                self.deserializer.deserialize_property_document,
                self.sink.process_property_document,
            ),
            MODEL_WIKIBASE_LEXEME: _Route(
                "lexeme",
                self.deserializer.deserialize_lexeme_document,
                self.sink.process_lexeme_document,
            ),
        }

    def start_revision_processing(
        self,
        site_name: str,
        namespaces: Mapping[int, str],
        base_url: str | None = None,
    ) -> None:
        """Record the site metadata of the dump and reset the counters."""
        self.site_name = site_name
        self.base_url = base_url
        self.namespaces = dict(namespaces)
        self.stats = RevisionStatistics(start_time=time.time())
        self._started = True
        self.logger.info("revision_processing_started", site_name=site_name, base_url=base_url)

    def process_revision(self, revision: MwRevision) -> RevisionResult:
        """Process one revision. Never raises for bad revision text.

        Returns:
            RevisionResult describing what was done with the revision
        """
        if not self._started:
            self.logger.warning("revision_before_start", title=revision.title)

        route = self._routes.get(revision.model)
        if route is None:
            result = RevisionResult(RevisionOutcome.IGNORED)
        elif self.is_redirect(revision):
            result = self._process_redirect(revision)
        else:
            result = self._process_document(revision, route)

        self.stats.record(revision.model, result.outcome)
        return result

    @staticmethod
    def is_redirect(revision: MwRevision) -> bool:
        """Fast check for redirect revisions.

        Matches any text containing ``"redirect":``, also when the key
        appears somewhere other than the top level.
        """
        return REDIRECT_MARKER in revision.text

    def _process_document(self, revision: MwRevision, route: _Route) -> RevisionResult:
        try:
            document = route.deserialize(revision.text)
        except DeserializationError as e:
            return self._skip(revision, route.label, e)
        route.forward(document)
        return RevisionResult(RevisionOutcome.DOCUMENT, document=document)

    def _process_redirect(self, revision: MwRevision) -> RevisionResult:
        try:
            document = self.deserializer.deserialize_entity_redirect_document(revision.text)
        except DeserializationError as e:
            return self._skip(revision, "redirect", e)
        self.sink.process_entity_redirect_document(document)
        return RevisionResult(RevisionOutcome.REDIRECT, document=document)

    def _skip(
        self, revision: MwRevision, label: str, error: DeserializationError
    ) -> RevisionResult:
        self.logger.error(
            "revision_deserialization_failed",
            title=revision.title,
            content_model=revision.model,
            document_kind=label,
            error_kind=error.kind.value,
            error=error.message,
        )
        return RevisionResult(RevisionOutcome.SKIPPED, reason=error.message)

    def finish_revision_processing(self) -> None:
        self.stats.end_time = time.time()
        self._started = False
        self.logger.info("revision_processing_complete", **self.stats.to_dict())
