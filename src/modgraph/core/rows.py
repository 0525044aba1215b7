"""
Row schemas and the normalization adapter.

Rows come from a generic row store where booleans and integers may arrive
as strings. They are coerced here, once, so everything downstream works with
ModuleMeta / ImportRecord only.
"""

import logging
from typing import Any, Iterable, List, NotRequired, Optional, TypedDict

from .types import ImportRecord, ModuleMeta

logger = logging.getLogger(__name__)


class ModuleRow(TypedDict):
    """Raw module row as returned by the persistence layer."""
    id: str
    package_id: str
    name: str
    directory: NotRequired[str]
    relative_path: str
    is_barrel: NotRequired[Any]
    line_count: NotRequired[Any]


class ImportRow(TypedDict):
    """Raw import row. `source` is the specifier exactly as written."""
    id: str
    module_id: str
    source: str
    is_type_only: NotRequired[Any]
    package_id: NotRequired[str]


def to_bool(value: Any) -> bool:
    """True only for True, 1, "1" and "true" (any case). Everything else is False."""
    if value is True:
        return True
    if isinstance(value, int) and not isinstance(value, bool):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    return False


def to_int(value: Any, default: int = 0) -> int:
    """Coerce a number-like value to int, falling back to `default`."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return default
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except (ValueError, OverflowError):
            return default
    return default


def module_from_row(row: ModuleRow) -> ModuleMeta:
    relative_path = row["relative_path"]
    directory = row.get("directory")
    if directory is None:
        directory = relative_path.rsplit("/", 1)[0] if "/" in relative_path else ""
    return ModuleMeta(
        id=str(row["id"]),
        package_id=str(row["package_id"]),
        name=row["name"],
        directory=directory,
        relative_path=relative_path,
        is_barrel=to_bool(row.get("is_barrel")),
        line_count=to_int(row.get("line_count")),
    )


def import_from_row(row: ImportRow) -> ImportRecord:
    package_id = row.get("package_id")
    return ImportRecord(
        id=str(row["id"]),
        module_id=str(row["module_id"]),
        specifier=row["source"],
        is_type_only=to_bool(row.get("is_type_only")),
        package_id=str(package_id) if package_id is not None else None,
    )


def normalize_rows(
    module_rows: Iterable[ModuleRow],
    import_rows: Iterable[ImportRow],
    package_id: Optional[str] = None,
) -> tuple[List[ModuleMeta], List[ImportRecord]]:
    """
    Normalize both row sets, keeping only rows of `package_id` when given.

    Imports are matched to the package through their own package_id column
    when present, otherwise through the importing module.
    """
    modules = [module_from_row(r) for r in module_rows]
    imports = [import_from_row(r) for r in import_rows]

    if package_id is None:
        return modules, imports

    modules = [m for m in modules if m.package_id == package_id]
    module_ids = {m.id for m in modules}
    kept = [
        i for i in imports
        if (i.package_id == package_id) or (i.package_id is None and i.module_id in module_ids)
    ]
    logger.debug(
        f"Package filter {package_id}: {len(modules)} modules, {len(kept)} imports"
    )
    return modules, kept
