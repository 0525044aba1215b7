"""
Isolate Command - Show a module's 1-hop neighborhood.
"""

import sys
from typing import List

import click
from pydantic import BaseModel, Field

from ...config import load_settings
from ...core.exceptions import ModgraphError, NodeNotFoundError
from ...graph.traversal import isolate as isolate_neighborhood
from ..utils import DEFAULT_DB_PATH, echo_error, echo_info, load_canonical_graph


class IsolateResponse(BaseModel):
    node_id: str
    path: str
    inbound: List[str] = Field(default_factory=list)
    outbound: List[str] = Field(default_factory=list)
    bidirectional: List[str] = Field(default_factory=list)
    folders: List[str] = Field(default_factory=list)
    visible_nodes: int = 0
    visible_edges: int = 0


@click.command()
@click.argument("node")
@click.option("-d", "--db", "db_path", default=DEFAULT_DB_PATH,
              help="Path to the module database or an http(s) row API")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def isolate(node: str, db_path: str, as_json: bool) -> None:
    """
    Show what NODE imports and what imports it.

    NODE may be a module id or a relative path.
    """
    try:
        settings = load_settings()
        graph = load_canonical_graph(db_path, settings=settings)
        node_id = graph.resolve_node_id(node)
        if node_id is None:
            raise NodeNotFoundError(node)
        result = isolate_neighborhood(node_id, graph, settings)
    except ModgraphError as e:
        echo_error(str(e))
        sys.exit(1)

    def paths(ids: List[str]) -> List[str]:
        return sorted(graph.modules[i].relative_path for i in ids)

    response = IsolateResponse(
        node_id=node_id,
        path=graph.modules[node_id].relative_path,
        inbound=paths(result.inbound_only),
        outbound=paths(result.outbound_only),
        bidirectional=paths(result.bidirectional),
        folders=sorted(result.traversal.containing_folders),
        visible_nodes=len(result.view.nodes),
        visible_edges=len(result.view.edges),
    )

    if as_json:
        click.echo(response.model_dump_json(indent=2))
        return

    click.echo(click.style(response.path, bold=True))
    for label, items in (
        ("Imported by", response.inbound),
        ("Imports", response.outbound),
        ("Both directions", response.bidirectional),
    ):
        if items:
            click.echo(f"\n{label}:")
            for item in items:
                click.echo(f"  • {item}")
    if not (response.inbound or response.outbound or response.bidirectional):
        echo_info("No internal imports in either direction")
