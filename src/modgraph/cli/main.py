"""
modgraph CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import os

import click

from ..config import ENV_LOG_LEVEL
from .commands import cycles, isolate, stats, view
from .utils import configure_logging


@click.group()
@click.version_option(package_name="modgraph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """modgraph: module dependency graph engine.

    \b
    Quick Start:
      modgraph stats --db .modgraph/modgraph.db
      modgraph view --collapse dir:web:src/legacy --json
      modgraph isolate src/app.ts
    """
    configure_logging(verbose, os.getenv(ENV_LOG_LEVEL, "WARNING"))


main.add_command(stats.stats)
main.add_command(view.view)
main.add_command(isolate.isolate)
main.add_command(cycles.cycles)

if __name__ == "__main__":
    main()
