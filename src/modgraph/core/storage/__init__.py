"""
Row sources for modgraph.

Read adapters over the external persistence layer:
- SQLiteRowSource: Local SQLite database
- HttpRowSource: JSON API serving module and import rows
- MemoryRowSource: In-memory rows for tests and fixtures
"""

from .base import RowSource
from .http import HttpRowSource
from .memory import MemoryRowSource
from .sqlite import SQLiteRowSource

__all__ = ["RowSource", "SQLiteRowSource", "HttpRowSource", "MemoryRowSource"]
