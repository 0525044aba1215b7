"""
Stats Command - Summarize the canonical import graph.
"""

import sys
from collections import Counter
from typing import List, Optional

import click
from pydantic import BaseModel, Field
from rich.console import Console
from rich.table import Table

from ...core.exceptions import ModgraphError
from ...graph.cycles import find_cycles
from ..utils import DEFAULT_DB_PATH, echo_error, load_canonical_graph

console = Console()


class FanInEntry(BaseModel):
    module: str
    importers: int


class StatsResponse(BaseModel):
    modules: int
    edges: int
    packages: int
    cycles: int
    modules_in_cycles: int
    top_fan_in: List[FanInEntry] = Field(default_factory=list)


@click.command()
@click.option("-d", "--db", "db_path", default=DEFAULT_DB_PATH,
              help="Path to the module database or an http(s) row API")
@click.option("-p", "--package", "package_id", default=None, help="Only load this package")
@click.option("--top", default=5, type=int, help="Number of most-imported modules to list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(db_path: str, package_id: Optional[str], top: int, as_json: bool) -> None:
    """
    Show module, edge and cycle counts.
    """
    try:
        graph = load_canonical_graph(db_path, package_id)
    except ModgraphError as e:
        echo_error(str(e))
        sys.exit(1)

    cycles = find_cycles(graph)
    fan_in = Counter({mid: len(graph.predecessors(mid)) for mid in graph.node_ids})
    response = StatsResponse(
        modules=len(graph),
        edges=graph.edge_count,
        packages=len({m.package_id for m in graph.modules.values()}),
        cycles=len(cycles),
        modules_in_cycles=sum(c.size for c in cycles),
        top_fan_in=[
            FanInEntry(module=graph.modules[mid].relative_path, importers=count)
            for mid, count in sorted(fan_in.items(), key=lambda item: (-item[1], item[0]))[:top]
            if count > 0
        ],
    )

    if as_json:
        click.echo(response.model_dump_json(indent=2))
        return

    table = Table(title="Import Graph", show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Modules", str(response.modules))
    table.add_row("Import edges", str(response.edges))
    table.add_row("Packages", str(response.packages))
    table.add_row("Cycles", str(response.cycles))
    table.add_row("Modules in cycles", str(response.modules_in_cycles))
    console.print(table)

    if response.top_fan_in:
        fan_table = Table(title="Most Imported", show_header=True, header_style="bold")
        fan_table.add_column("Module", style="cyan")
        fan_table.add_column("Importers", justify="right")
        for row in response.top_fan_in:
            fan_table.add_row(row.module, str(row.importers))
        console.print(fan_table)
