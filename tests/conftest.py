"""Shared fixtures for modgraph tests."""

import pytest

from modgraph.core.graph import build_canonical_graph


@pytest.fixture
def module_row():
    """Factory for raw module rows keyed by relative path."""
    def _make(module_id, relative_path, package_id="pkg", **extra):
        directory = relative_path.rsplit("/", 1)[0] if "/" in relative_path else ""
        name = relative_path.rsplit("/", 1)[-1]
        row = {
            "id": module_id,
            "package_id": package_id,
            "name": name,
            "directory": directory,
            "relative_path": relative_path,
            "is_barrel": False,
            "line_count": 10,
        }
        row.update(extra)
        return row
    return _make


@pytest.fixture
def import_row():
    """Factory for raw import rows."""
    counter = {"n": 0}

    def _make(module_id, source, **extra):
        counter["n"] += 1
        row = {"id": f"imp-{counter['n']}", "module_id": module_id, "source": source, "is_type_only": False}
        row.update(extra)
        return row
    return _make


@pytest.fixture
def cycle_rows(module_row, import_row):
    """a.ts -> b.ts -> c.ts -> a.ts"""
    modules = [module_row("a", "a.ts"), module_row("b", "b.ts"), module_row("c", "c.ts")]
    imports = [import_row("a", "./b"), import_row("b", "./c"), import_row("c", "./a")]
    return modules, imports


@pytest.fixture
def layered_graph(module_row, import_row):
    """
    Two folders under src/ plus a shared util:

        src/app/main.ts   -> src/lib/a.ts, src/lib/b.ts
        src/app/view.ts   -> src/lib/a.ts
        src/lib/a.ts      -> src/lib/b.ts
        src/lib/b.ts      -> src/util.ts
    """
    modules = [
        module_row("main", "src/app/main.ts"),
        module_row("view", "src/app/view.ts"),
        module_row("a", "src/lib/a.ts"),
        module_row("b", "src/lib/b.ts"),
        module_row("util", "src/util.ts"),
    ]
    imports = [
        import_row("main", "../lib/a"),
        import_row("main", "@/lib/b"),
        import_row("view", "../lib/a"),
        import_row("a", "./b"),
        import_row("b", "../util"),
    ]
    return build_canonical_graph(modules, imports)
