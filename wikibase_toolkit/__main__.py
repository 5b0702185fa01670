"""Main entry point for the wikibase-toolkit command line."""

import click

from wikibase_toolkit import __version__
from wikibase_toolkit.cli.fetch_entity import fetch_entity
from wikibase_toolkit.utils.config import Config
from wikibase_toolkit.utils.logger import configure_logging


@click.group()
@click.version_option(__version__)
def cli() -> None:
    """Work with Wikibase sites from the command line."""
    config = Config()
    configure_logging(config.log_level, config.log_format)


cli.add_command(fetch_entity)


if __name__ == "__main__":
    cli()
