"""
Exception hierarchy for modgraph.

Unresolved or ambiguous imports are not errors and never raise; these cover
configuration problems, missing inputs and broken graph invariants.
"""


class ModgraphError(Exception):
    """Base class for all modgraph errors."""


class ConfigError(ModgraphError):
    """
    Raised when a config file cannot be loaded.

    Attributes:
        path: Path of the offending file.
        message: Human-readable error message.
    """

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Config '{path}': {message}")


class GraphNotFoundError(ModgraphError):
    """Raised when no graph data exists at the given location."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"No graph data found at: {location}")


class NodeNotFoundError(ModgraphError):
    """Raised when a node id cannot be found in the graph."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class GraphInvariantError(ModgraphError):
    """
    Raised in dev mode when a transform produced an inconsistent graph,
    e.g. an edge whose endpoint is not in the node set.
    """

    def __init__(self, edge_id: str, missing: str):
        self.edge_id = edge_id
        self.missing = missing
        super().__init__(f"Edge '{edge_id}' references unknown node '{missing}'")


class LoadError(ModgraphError):
    """
    Raised (or wrapped in Err) when fetching rows from a row source fails.

    Attributes:
        source: Description of the row source.
        message: Human-readable error message.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"Failed to load rows from {source}: {message}")
