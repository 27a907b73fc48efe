"""Tests for file relationships, dependents and signature checks."""

import tempfile
from pathlib import Path

import pytest

from callmap.core.exceptions import InvalidArgumentError
from callmap.core.indexer import Indexer
from callmap.core.models import ClassDecl, FileRelationship, ParsedFile, RelationType
from callmap.core.storage import (
    IndexContext,
    RelationshipStore,
    file_relationships,
    resolve_import_path,
)
from callmap.languages import JavaScriptExtractor, PhpExtractor

APP = """import { fmt } from './util';
import express from 'express';

class App extends Base {
  run() {
    fmt(1);
  }
}
"""

ORDER = """class Order:
    def save(self, force):
        pass
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td).resolve()


@pytest.fixture
def indexer():
    idx = Indexer()
    yield idx
    idx.clear_cache()


def write(directory: Path, name: str, content: str) -> Path:
    file_path = directory / name
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content)
    return file_path


class TestResolveImportPath:
    """Tests for resolve_import_path."""

    @pytest.mark.parametrize(
        "specifier,expected",
        [
            ("./util", "/src/web/util"),
            ("../lib/db.js", "/src/lib/db.js"),
            ("express", "express"),
            (".jobs", ".jobs"),
            ("app.jobs", "app.jobs"),
        ],
    )
    def test_resolve(self, specifier: str, expected: str) -> None:
        assert resolve_import_path(specifier, "/src/web/app.js") == expected


class TestFileRelationships:
    """Tests for the edges derived from a parsed file."""

    def test_imports_then_bases(self) -> None:
        parsed = JavaScriptExtractor().extract(APP, "/src/app.js")

        assert file_relationships(parsed) == [
            FileRelationship("/src/app.js", "/src/util", RelationType.IMPORT),
            FileRelationship("/src/app.js", "express", RelationType.IMPORT),
            FileRelationship("/src/app.js:App", "Base", RelationType.EXTENDS),
        ]

    def test_implements(self) -> None:
        source = "class Repo extends Base implements Store, Closeable {\n}\n"
        parsed = JavaScriptExtractor("typescript").extract(source, "/src/repo.ts")

        assert [(r.target, r.kind) for r in file_relationships(parsed)] == [
            ("Base", RelationType.EXTENDS),
            ("Store", RelationType.IMPLEMENTS),
            ("Closeable", RelationType.IMPLEMENTS),
        ]

    def test_php_interfaces(self) -> None:
        source = "<?php\nclass Order extends Model implements Loggable, Countable {\n}\n"
        parsed = PhpExtractor().extract(source, "/src/Order.php")

        assert [(r.source, r.target, r.kind.value) for r in file_relationships(parsed)] == [
            ("/src/Order.php:Order", "Model", "extends"),
            ("/src/Order.php:Order", "Loggable", "implements"),
            ("/src/Order.php:Order", "Countable", "implements"),
        ]

    def test_no_edges(self) -> None:
        parsed = ParsedFile(
            path="/src/a.py", language="python", classes=[ClassDecl(name="A", line=1)]
        )

        assert file_relationships(parsed) == []


class TestRelationshipStore:
    """Tests for the per-file edge store."""

    def test_get_returns_copy(self) -> None:
        store = RelationshipStore()
        edge = FileRelationship("/a.js", "/b", RelationType.IMPORT)
        store.set("/a.js", [edge])

        store.get("/a.js").clear()

        assert store.get("/a.js") == [edge]
        assert store.get("/missing.js") == []

    def test_dependents_match_extensionless_and_index_imports(self) -> None:
        store = RelationshipStore()
        store.set("/src/a.js", [FileRelationship("/src/a.js", "/src/util", RelationType.IMPORT)])
        store.set("/src/b.js", [FileRelationship("/src/b.js", "/src/lib", RelationType.IMPORT)])
        store.set(
            "/src/c.js",
            [FileRelationship("/src/c.js:C", "/src/util", RelationType.EXTENDS)],
        )

        assert store.dependents_of("/src/util.js") == ["/src/a.js"]
        assert store.dependents_of("/src/lib/index.js") == ["/src/b.js"]
        assert store.dependents_of("/src/other.js") == []

    def test_context_keeps_store_in_step(self) -> None:
        with IndexContext() as ctx:
            ctx.store(JavaScriptExtractor().extract(APP, "/src/app.js"))
            assert ctx.relations.count() == 3

            ctx.delete_file("/src/app.js")

            assert "/src/app.js" not in ctx.relations
            assert ctx.get_stats()["relationships"] == 0


class TestDependents:
    """Tests for Indexer.get_file_relationships and get_dependents."""

    def test_get_file_relationships(self, indexer: Indexer, temp_dir: Path) -> None:
        app = write(temp_dir, "app.js", APP)
        indexer.analyze_file(app)

        relationships = indexer.get_file_relationships(app)

        assert [(r.target, r.kind) for r in relationships] == [
            (str(temp_dir / "util"), RelationType.IMPORT),
            ("express", RelationType.IMPORT),
            ("Base", RelationType.EXTENDS),
        ]
        assert indexer.get_file_relationships(temp_dir / "missing.js") == []

    def test_get_dependents(self, indexer: Indexer, temp_dir: Path) -> None:
        write(temp_dir, "util.js", "export function fmt(x) {\n  return x;\n}\n")
        write(temp_dir, "app.js", APP)
        write(temp_dir, "lib/index.js", "export const version = 1;\n")
        write(temp_dir, "main.js", "const lib = require('./lib');\n")
        indexer.index_directory(temp_dir)

        assert indexer.get_dependents(temp_dir / "util.js") == [str(temp_dir / "app.js")]
        assert indexer.get_dependents(temp_dir / "lib" / "index.js") == [
            str(temp_dir / "main.js")
        ]
        assert indexer.get_dependents(temp_dir / "app.js") == []

    def test_cleared_file_no_longer_depends(self, indexer: Indexer, temp_dir: Path) -> None:
        util = write(temp_dir, "util.js", "export function fmt(x) {\n  return x;\n}\n")
        app = write(temp_dir, "app.js", APP)
        indexer.index_directory(temp_dir)

        indexer.clear_cache(app)

        assert indexer.get_dependents(util) == []


class TestCompareMethodSignatures:
    """Tests for Indexer.compare_method_signatures."""

    @pytest.fixture
    def order_file(self, indexer: Indexer, temp_dir: Path) -> Path:
        path = write(temp_dir, "order.py", ORDER)
        indexer.analyze_file(path)
        return path

    def test_too_many_arguments(
        self, indexer: Indexer, temp_dir: Path, order_file: Path
    ) -> None:
        client = write(
            temp_dir,
            "client.py",
            "def submit(order):\n    order.save(True)\n    order.save(True, 1)\n",
        )
        indexer.analyze_file(client)

        check = indexer.compare_method_signatures(client, "Order", "save")

        assert not check.match
        assert check.expected.qualified_name == "Order::save"
        assert [(c.callee, c.line) for c in check.calls] == [
            ("order::save", 2),
            ("order::save", 3),
        ]
        assert check.issues == ["line 3: 2 arguments, Order::save takes 1"]

    def test_matching_calls(self, indexer: Indexer, temp_dir: Path, order_file: Path) -> None:
        client = write(
            temp_dir,
            "client.py",
            "def submit(order):\n    order.save(True)\n    Order.save()\n",
        )
        indexer.analyze_file(client)

        check = indexer.compare_method_signatures(client, "Order", "save")

        assert check.match
        assert check.issues == []
        assert len(check.calls) == 2

    def test_continued_arguments_not_counted(
        self, indexer: Indexer, temp_dir: Path, order_file: Path
    ) -> None:
        client = write(
            temp_dir,
            "client.py",
            "def submit(order):\n    order.save(True,\n               1, 2)\n",
        )
        indexer.analyze_file(client)

        check = indexer.compare_method_signatures(client, "Order", "save")

        assert check.match
        assert [c.line for c in check.calls] == [2]

    def test_no_calls(self, indexer: Indexer, temp_dir: Path, order_file: Path) -> None:
        client = write(temp_dir, "client.py", "def submit(order):\n    order.load()\n")
        indexer.analyze_file(client)

        check = indexer.compare_method_signatures(client, "Order", "save")

        assert not check.match
        assert check.issues == ["No calls to Order::save"]

    def test_calling_file_not_analyzed(self, indexer: Indexer, temp_dir: Path) -> None:
        check = indexer.compare_method_signatures(temp_dir / "client.py", "Order", "save")

        assert not check.match
        assert check.expected is None
        assert check.issues == ["Calling file not analyzed"]

    def test_definition_not_found(self, indexer: Indexer, order_file: Path) -> None:
        check = indexer.compare_method_signatures(order_file, "Order", "drop")

        assert not check.match
        assert check.issues == ["Method definition not found: Order::drop"]

    @pytest.mark.parametrize("class_name,method", [("", "save"), ("Order", " ")])
    def test_empty_names(self, indexer: Indexer, class_name: str, method: str) -> None:
        with pytest.raises(InvalidArgumentError):
            indexer.compare_method_signatures("/src/client.py", class_name, method)
