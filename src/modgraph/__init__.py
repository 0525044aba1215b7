"""
modgraph: dependency graph engine for module import structure.

Resolves import specifiers into a canonical module graph and projects it
into a render-ready visual graph.
"""

__version__ = "0.1.0"
