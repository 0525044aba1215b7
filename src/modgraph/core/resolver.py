"""
Module Path Resolver.

Resolves an import specifier, relative to its importing module, to zero or
one internal module id.

Resolution Strategy:
    1. Relative specifiers (`./x`, `../x`, `/x`) are joined with the
       importer's directory.
    2. Alias specifiers (`@/x`, `src/x`) are mapped onto the source root,
       both globally and under the importer's package prefix.
    3. Any other bare specifier (`lodash`, `react/jsx-runtime`) is external.

Each base path is expanded into candidates (literal, `+ext`, `/index.ext`)
and looked up in the package-scoped table first, then in the global table.
A global key claimed by more than one module is ambiguous and never used.
Anything that does not match is simply unresolved (None): a missed edge is
preferred over a wrong one.
"""

from __future__ import annotations

import logging
import posixpath
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..config import ROOT_ALIAS_PREFIX, SOURCE_EXTENSIONS, SOURCE_ROOT
from .types import ModuleMeta

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """
    Normalize a module path to forward slashes with `.`/`..` collapsed.

    Leading `..` segments that would escape the root are dropped, as is any
    leading `./`. A leading `/` is preserved.
    """
    path = path.replace("\\", "/")
    is_absolute = path.startswith("/")
    segments: List[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)
    normalized = "/".join(segments)
    return f"/{normalized}" if is_absolute else normalized


def has_source_extension(path: str) -> bool:
    return posixpath.splitext(path)[1] in SOURCE_EXTENSIONS


def strip_extension(path: str) -> str:
    """Drop a recognized source extension; other paths are returned unchanged."""
    root, ext = posixpath.splitext(path)
    return root if ext in SOURCE_EXTENSIONS else path


def file_keys(relative_path: str) -> List[str]:
    """The normalized path and, for source files, the path without extension."""
    normalized = normalize_path(relative_path)
    keys = [normalized]
    without_ext = strip_extension(normalized)
    if without_ext != normalized:
        keys.append(without_ext)
    return keys


def barrel_keys(relative_path: str) -> List[str]:
    """The directory key of a `dir/index.<ext>` barrel file, if it is one."""
    normalized = normalize_path(relative_path)
    without_ext = strip_extension(normalized)
    if without_ext != normalized and posixpath.basename(without_ext) == "index":
        directory = posixpath.dirname(without_ext)
        if directory:
            return [directory]
    return []


def path_variants(relative_path: str) -> List[str]:
    """
    Keys under which a module is registered in the lookup tables.

    `src/utils/index.ts` registers as `src/utils/index.ts`,
    `src/utils/index` and `src/utils`, so a barrel file and its directory
    resolve to the same module.
    """
    return file_keys(relative_path) + barrel_keys(relative_path)


def expand_candidates(base_path: str) -> List[str]:
    """
    Expand a base path into lookup candidates, in fixed precedence order:
    the literal path, then `path + ext`, then `path/index + ext`.
    """
    base = normalize_path(base_path)
    if has_source_extension(base):
        return [base]
    candidates: List[str] = []
    # An empty base is the root directory: only its barrel can match.
    if base:
        candidates.append(base)
        candidates.extend(f"{base}{ext}" for ext in SOURCE_EXTENSIONS)
    candidates.extend(normalize_path(f"{base}/index{ext}") for ext in SOURCE_EXTENSIONS)
    return candidates


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith(".") or specifier.startswith("/")


def package_prefix(importing_path: str) -> Optional[str]:
    """
    The part of the importer's path that precedes its `src/` directory,
    e.g. `packages/web` for `packages/web/src/app.ts`.
    """
    normalized = normalize_path(importing_path)
    marker = f"/{SOURCE_ROOT}/"
    index = normalized.find(marker)
    if index <= 0:
        return None
    return normalized[:index]


def alias_base_paths(importing_path: str, specifier: str) -> List[str]:
    """
    Base paths for an alias specifier, or [] if the specifier is external.
    The global (prefix-less) form is tried before the package-local one.
    """
    if specifier.startswith(ROOT_ALIAS_PREFIX):
        remainder = specifier[len(ROOT_ALIAS_PREFIX):]
    elif specifier.startswith(f"{SOURCE_ROOT}/"):
        remainder = specifier[len(SOURCE_ROOT) + 1:]
    else:
        return []

    bases = [f"{SOURCE_ROOT}/{remainder}"]
    prefix = package_prefix(importing_path)
    if prefix:
        bases.append(f"{prefix}/{SOURCE_ROOT}/{remainder}")
    return bases


def candidate_paths(importing_path: str, specifier: str) -> List[str]:
    """All candidate lookup keys for a specifier, in precedence order."""
    if not specifier:
        return []

    if is_relative_specifier(specifier):
        if specifier.startswith("/"):
            bases = [specifier.lstrip("/")]
        else:
            importer_dir = posixpath.dirname(normalize_path(importing_path))
            bases = [posixpath.join(importer_dir, specifier)]
    else:
        bases = alias_base_paths(importing_path, specifier)

    seen: Set[str] = set()
    candidates: List[str] = []
    for base in bases:
        for candidate in expand_candidates(base):
            if candidate not in seen:
                seen.add(candidate)
                candidates.append(candidate)
    return candidates


class PathLookup:
    """
    Package-scoped and global path tables built once per module set.

    File keys (`src/a.ts`, `src/a`) take precedence over barrel directory
    keys (`src/shared` for `src/shared/index.ts`), so a file and a
    same-named barrel directory never compete for the same key.

    Indexing is O(modules); every subsequent lookup is O(candidates).
    """

    def __init__(self, modules: Iterable[ModuleMeta]):
        # One (package table, global table) pair per precedence tier
        self._tiers: List[Tuple[Dict[str, Dict[str, str]], Dict[str, Set[str]]]] = [
            (defaultdict(dict), defaultdict(set)),
            (defaultdict(dict), defaultdict(set)),
        ]
        count = 0
        for module in modules:
            count += 1
            keys_by_tier = (file_keys(module.relative_path), barrel_keys(module.relative_path))
            for (by_package, global_table), keys in zip(self._tiers, keys_by_tier):
                package_table = by_package[module.package_id]
                for key in keys:
                    # First module to claim a key within a package keeps it
                    package_table.setdefault(key, module.id)
                    global_table[key].add(module.id)
        logger.debug(f"Indexed {count} modules into {len(self._tiers[0][1])} path keys")

    def find(self, candidate: str, package_id: Optional[str]) -> Optional[str]:
        """Look up one candidate: package tables first, then an unambiguous global match."""
        if package_id is not None:
            for by_package, _ in self._tiers:
                scoped = by_package.get(package_id)
                if scoped is not None and candidate in scoped:
                    return scoped[candidate]
        for _, global_table in self._tiers:
            claimants = global_table.get(candidate)
            if claimants:
                return next(iter(claimants)) if len(claimants) == 1 else None
        return None

    def is_ambiguous(self, candidate: str) -> bool:
        for _, global_table in self._tiers:
            claimants = global_table.get(candidate)
            if claimants:
                return len(claimants) > 1
        return False


def resolve(
    importing_path: str,
    specifier: str,
    package_id: Optional[str],
    lookup: PathLookup,
) -> Optional[str]:
    """
    Resolve a specifier to a module id.

    Args:
        importing_path: relative_path of the importing module.
        specifier: The raw import specifier.
        package_id: Package of the importing module.
        lookup: Path tables over the analyzed module set.

    Returns:
        The target module id, or None when the specifier is external,
        ambiguous or points outside the analyzed set.
    """
    for candidate in candidate_paths(importing_path, specifier):
        module_id = lookup.find(candidate, package_id)
        if module_id is not None:
            return module_id
    return None
