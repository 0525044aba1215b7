"""Unit tests for CLI helpers."""

from unittest.mock import MagicMock, patch

import pytest

from modgraph.cli.utils import load_canonical_graph, open_source
from modgraph.core.exceptions import GraphNotFoundError, LoadError
from modgraph.core.storage import HttpRowSource, SQLiteRowSource


class TestOpenSource:
    def test_http_url(self):
        source = open_source("https://graph.example.com/api")
        assert isinstance(source, HttpRowSource)

    def test_existing_database(self, tmp_path):
        SQLiteRowSource(tmp_path / "graph.db")
        assert isinstance(open_source(str(tmp_path / "graph.db")), SQLiteRowSource)

    def test_missing_database(self, tmp_path):
        with pytest.raises(GraphNotFoundError):
            open_source(str(tmp_path / "missing.db"))


class TestLoadCanonicalGraph:
    def test_loads_from_sqlite(self, tmp_path, cycle_rows):
        modules, imports = cycle_rows
        source = SQLiteRowSource(tmp_path / "graph.db")
        source.save_modules_batch(modules)
        source.save_imports_batch(imports)

        graph = load_canonical_graph(str(source.db_path))
        assert graph.node_ids == {"a", "b", "c"}

    @patch("modgraph.core.storage.http.requests.get")
    def test_http_failure_raises_load_error(self, mock_get):
        mock_get.return_value = MagicMock(ok=False, status_code=500)
        with pytest.raises(LoadError):
            load_canonical_graph("http://graph.local")
