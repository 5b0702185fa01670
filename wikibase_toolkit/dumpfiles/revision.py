"""Page revisions as delivered by dump readers, and their processor interface."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

MODEL_WIKIBASE_ITEM = "wikibase-item"
MODEL_WIKIBASE_PROPERTY = "wikibase-property"
MODEL_WIKIBASE_LEXEME = "wikibase-lexeme"
MODEL_WIKIBASE_MEDIAINFO = "wikibase-mediainfo"
MODEL_WIKITEXT = "wikitext"


@dataclass(frozen=True)
class MwRevision:
    """One revision of a page.

    Attributes:
        title: Prefixed page title, e.g. "Property:P31"
        namespace: Namespace number of the page
        model: Content model of the revision text
        text: Raw revision text, JSON for Wikibase content models
        revision_id: Revision id, if known
        timestamp: ISO 8601 timestamp, if known
    """

    title: str
    namespace: int
    model: str
    text: str
    revision_id: int | None = None
    timestamp: str | None = None


class MwRevisionProcessor(ABC):
    """Consumer of a revision stream.

    start_revision_processing() is called once before the first revision
    and finish_revision_processing() once after the last.
    """

    @abstractmethod
    def start_revision_processing(
        self,
        site_name: str,
        namespaces: Mapping[int, str],
        base_url: str | None = None,
    ) -> None:
        pass

    @abstractmethod
    def process_revision(self, revision: MwRevision) -> object:
        pass

    @abstractmethod
    def finish_revision_processing(self) -> None:
        pass
