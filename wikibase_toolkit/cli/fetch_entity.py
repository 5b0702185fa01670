"""CLI command for fetching entity documents from the web API."""

import click
import structlog

from wikibase_toolkit.api.data_fetcher import WikibaseDataFetcher
from wikibase_toolkit.cli.utils import build_connection
from wikibase_toolkit.utils.config import Config
from wikibase_toolkit.utils.exceptions import WikibaseToolkitError

logger = structlog.get_logger(__name__)


@click.command("fetch-entity")
@click.argument("entity_ids", nargs=-1, required=True)
@click.option(
    "--language",
    "languages",
    multiple=True,
    help="Only keep terms in this language (repeatable)",
)
@click.option(
    "--site-filter",
    "site_links",
    multiple=True,
    help="Only keep site links to this site, e.g. enwiki (repeatable)",
)
@click.option("--login/--no-login", default=False, help="Log in with configured credentials")
def fetch_entity(
    entity_ids: tuple[str, ...],
    languages: tuple[str, ...],
    site_links: tuple[str, ...],
    login: bool,
) -> None:
    """Fetch entities by id and print them as JSON, one document per line.

    Args:
        entity_ids: Ids such as Q42, P31 or L1
        languages: Language filter
        site_links: Site link filter
        login: Whether to log in before fetching
    """
    config = Config()

    try:
        connection = build_connection(config, login=login)
        fetcher = WikibaseDataFetcher(connection, config.site_iri)
        if languages:
            fetcher.filter.languages = set(languages)
        if site_links:
            fetcher.filter.site_links = set(site_links)

        documents = fetcher.get_entity_documents(*entity_ids)
    except WikibaseToolkitError as e:
        logger.error("fetch_entity_failed", entity_ids=list(entity_ids), error=str(e))
        click.echo(f"Error: {e}", err=True)
        raise click.Abort from e

    for entity_id in entity_ids:
        document = documents.get(entity_id)
        if document is None:
            click.echo(f"Entity not found: {entity_id}", err=True)
            continue
        click.echo(document.to_json())


if __name__ == "__main__":
    fetch_entity()
