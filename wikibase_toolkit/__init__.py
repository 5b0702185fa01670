"""Client for Wikibase sites: web API sessions, edits and dump revision processing."""

__version__ = "0.1.0"
