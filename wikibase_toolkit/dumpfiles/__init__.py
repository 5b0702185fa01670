"""Processing of entity revisions read from dumps."""

from wikibase_toolkit.dumpfiles.revision import MwRevision, MwRevisionProcessor
from wikibase_toolkit.dumpfiles.revision_processor import (
    RevisionOutcome,
    RevisionResult,
    WikibaseRevisionProcessor,
)
from wikibase_toolkit.dumpfiles.sink import EntityDocumentProcessor

__all__ = [
    "EntityDocumentProcessor",
    "MwRevision",
    "MwRevisionProcessor",
    "RevisionOutcome",
    "RevisionResult",
    "WikibaseRevisionProcessor",
]
