"""
View Command - Build the visual graph for the current settings.
"""

import json
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from ...config import load_settings
from ...core.exceptions import ModgraphError
from ...core.types import LayoutDirection, NodeKind
from ...graph.pipeline import rebuild_visual_graph
from ..utils import DEFAULT_DB_PATH, echo_error, echo_success, echo_warning, load_canonical_graph

console = Console()


@click.command()
@click.option("-d", "--db", "db_path", default=DEFAULT_DB_PATH,
              help="Path to the module database or an http(s) row API")
@click.option("-p", "--package", "package_id", default=None, help="Only load this package")
@click.option("-c", "--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Config file (default: .modgraph/config.yaml)")
@click.option("--collapse", "collapse", multiple=True, help="Folder id to collapse (repeatable)")
@click.option("--direction", type=click.Choice([d.value for d in LayoutDirection]), default=None,
              help="Layout flow direction for highway handles")
@click.option("--no-cluster", is_flag=True, help="Do not group modules into folders")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Write the visual graph as JSON to this file")
@click.option("--json", "as_json", is_flag=True, help="Print the visual graph as JSON")
def view(
    db_path: str,
    package_id: Optional[str],
    config_path: Optional[Path],
    collapse: Tuple[str, ...],
    direction: Optional[str],
    no_cluster: bool,
    output: Optional[Path],
    as_json: bool,
) -> None:
    """
    Build the render-ready visual graph.
    """
    try:
        settings = load_settings(config_path)
        overrides = {}
        if collapse:
            overrides["collapsed_folder_ids"] = settings.collapsed_folder_ids | frozenset(collapse)
        if direction:
            overrides["direction"] = LayoutDirection(direction)
        if no_cluster:
            overrides["cluster_by_folder"] = False
        if overrides:
            settings = settings.model_copy(update=overrides)

        graph = load_canonical_graph(db_path, package_id, settings)
        visual = rebuild_visual_graph(graph, settings)
    except ModgraphError as e:
        echo_error(str(e))
        sys.exit(1)

    known_folders = {node.id for node in visual.nodes_of_kind(NodeKind.GROUP)}
    for meta in visual.collapsed_meta.values():
        known_folders.update(meta.child_ids)
    for folder in sorted(set(collapse) - known_folders):
        echo_warning(f"Unknown folder id: {folder}")

    if as_json:
        click.echo(json.dumps(visual.to_dict(), indent=2))
        return

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(visual.to_dict(), indent=2))
        echo_success(f"Visual graph written to {output}")

    summary = visual.stats()
    table = Table(title="Visual Graph", show_header=True, header_style="bold")
    table.add_column("Node kind", style="cyan")
    table.add_column("Count", justify="right")
    for kind, count in sorted(summary["nodes_by_kind"].items()):
        table.add_row(kind, str(count))
    console.print(table)
    console.print(
        f"{summary['nodes']} nodes, {summary['edges']} edges "
        f"([dim]{summary['hidden_edges']} hidden[/dim])"
    )
