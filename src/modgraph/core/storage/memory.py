"""In-memory row source."""

from typing import Iterable, List, Optional

from ..rows import ImportRow, ModuleRow
from .base import RowSource


class MemoryRowSource(RowSource):
    """Serves rows from lists held in memory. Mostly useful in tests."""

    def __init__(self, modules: Iterable[ModuleRow] = (), imports: Iterable[ImportRow] = ()):
        self.modules: List[ModuleRow] = list(modules)
        self.imports: List[ImportRow] = list(imports)
        self.fetch_count = 0

    def fetch_modules(self, package_id: Optional[str] = None) -> List[ModuleRow]:
        self.fetch_count += 1
        if package_id is None:
            return list(self.modules)
        return [row for row in self.modules if row["package_id"] == package_id]

    def fetch_imports(self, package_id: Optional[str] = None) -> List[ImportRow]:
        self.fetch_count += 1
        if package_id is None:
            return list(self.imports)
        module_ids = {row["id"] for row in self.modules if row["package_id"] == package_id}
        return [
            row for row in self.imports
            if row.get("package_id") == package_id
            or ("package_id" not in row and row["module_id"] in module_ids)
        ]
