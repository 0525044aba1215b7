"""
Cycles Command - List import cycles.
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...core.exceptions import ModgraphError
from ...graph.cycles import find_cycles
from ..utils import DEFAULT_DB_PATH, echo_error, echo_success, load_canonical_graph

console = Console()


@click.command()
@click.option("-d", "--db", "db_path", default=DEFAULT_DB_PATH,
              help="Path to the module database or an http(s) row API")
@click.option("-p", "--package", "package_id", default=None, help="Only load this package")
def cycles(db_path: str, package_id: Optional[str]) -> None:
    """
    List strongly connected groups of modules.

    Exits with status 1 when any cycle exists, so it can gate CI.
    """
    try:
        graph = load_canonical_graph(db_path, package_id)
    except ModgraphError as e:
        echo_error(str(e))
        sys.exit(1)

    found = find_cycles(graph)
    if not found:
        echo_success("No import cycles")
        return

    table = Table(title=f"Import Cycles ({len(found)})", show_header=True, header_style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Modules", style="cyan")
    for cycle in found:
        paths = sorted(graph.modules[mid].relative_path for mid in cycle.member_ids)
        table.add_row(str(cycle.size), "\n".join(paths))
    console.print(table)
    sys.exit(1)
