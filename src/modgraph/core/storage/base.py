"""Abstract row source interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..rows import ImportRow, ModuleRow


class RowSource(ABC):
    """
    A blocking source of raw module and import rows.

    When `package_id` is given, both fetches are restricted to that package.
    """

    @abstractmethod
    def fetch_modules(self, package_id: Optional[str] = None) -> List[ModuleRow]:
        ...

    @abstractmethod
    def fetch_imports(self, package_id: Optional[str] = None) -> List[ImportRow]:
        ...

    def describe(self) -> str:
        return type(self).__name__
