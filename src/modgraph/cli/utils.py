"""
CLI Utilities - Shared helpers for modgraph commands.

Formatted printing, logging setup and loading the canonical graph from a
row source.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click

from ..config import GraphSettings
from ..core.exceptions import GraphNotFoundError, LoadError
from ..core.graph import CanonicalGraph
from ..core.loader import GraphLoader
from ..core.storage import HttpRowSource, RowSource, SQLiteRowSource

DEFAULT_DB_PATH = ".modgraph/modgraph.db"


def echo_success(message: str) -> None:
    """Print a success message with a green checkmark."""
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """Print an error message with a red cross."""
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    click.echo(click.style(f"⚠️  {message}", fg="yellow"), err=True)


def echo_info(message: str) -> None:
    click.echo(click.style(f"   {message}", dim=True))


def configure_logging(verbose: bool, level: str = "WARNING") -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def open_source(location: str) -> RowSource:
    """
    Open a row source from a database path or an http(s) URL.

    Raises:
        GraphNotFoundError: If the database file does not exist.
    """
    if location.startswith(("http://", "https://")):
        return HttpRowSource(location)
    path = Path(location)
    if not path.exists():
        raise GraphNotFoundError(location)
    return SQLiteRowSource(path, create=False)


def load_canonical_graph(
    location: str,
    package_id: Optional[str] = None,
    settings: Optional[GraphSettings] = None,
) -> CanonicalGraph:
    """
    Load the canonical graph synchronously.

    Raises:
        GraphNotFoundError: If the source does not exist.
        LoadError: If fetching rows fails.
    """
    loader = GraphLoader.from_settings(open_source(location), settings or GraphSettings())
    outcome = asyncio.run(loader.load(package_id))
    if outcome.is_err():
        raise outcome.error
    if outcome.is_aborted():
        raise LoadError(location, f"load aborted: {outcome.reason}")
    return outcome.unwrap()
