"""
test_kg.py

Tests for the DeclKG orchestrator and result types:
  BuildStats, LookupResult, DeclKG
"""

from __future__ import annotations

import json
import os
import textwrap
from pathlib import Path

import pytest

from decl_kg.declkg import DECL_KINDS
from decl_kg.errors import ConfigError, RootNotFoundError
from decl_kg.index import Embedder
from decl_kg.kg import BuildStats, DeclKG, LookupResult

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeEmbedder(Embedder):
    dim = 4

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [[0.1, 0.2, 0.3, 0.4] for _ in texts]


def _write_repo(tmp_path: Path, files: dict) -> Path:
    for rel, src in files.items():
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(textwrap.dedent(src))
    return tmp_path


_FILES = {
    "index.ts": """\
        export * from './utils';
        export const VERSION = '1.0';
        export let counter = 0;
        """,
    "core/types.ts": """\
        export interface Bar {}
        export interface Foo extends Bar { a: string }
        export enum Level { Low, High }
        """,
    "utils/fns.ts": """\
        export function nopal(x: number): number { return x; }
        export const LIMIT: number = 10;
        """,
}


def _make_kg(tmp_path: Path, files: dict = _FILES, **kwargs) -> DeclKG:
    repo = tmp_path / "repo"
    repo.mkdir(parents=True, exist_ok=True)
    _write_repo(repo, files)
    return DeclKG(repo, **kwargs)


def _bump_mtime(path: Path) -> None:
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 5_000_000_000))


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_missing_root_raises(tmp_path):
    with pytest.raises(RootNotFoundError):
        DeclKG(tmp_path / "missing")


def test_repr_before_and_after_build(tmp_path):
    kg = _make_kg(tmp_path)
    assert "not yet built" in repr(kg)
    kg.build()
    assert "declarations=" in repr(kg)


def test_store_requires_db_path(tmp_path):
    kg = _make_kg(tmp_path)
    with pytest.raises(ConfigError):
        _ = kg.store


def test_index_requires_lancedb_dir(tmp_path):
    kg = _make_kg(tmp_path, embedder=FakeEmbedder())
    with pytest.raises(ConfigError):
        _ = kg.index


# ---------------------------------------------------------------------------
# build() / BuildStats
# ---------------------------------------------------------------------------


def test_build_stats(tmp_path):
    stats = _make_kg(tmp_path).build()
    assert isinstance(stats, BuildStats)
    assert stats.files == 3
    assert stats.total_declarations == 8
    assert list(stats.by_kind) == list(DECL_KINDS)
    assert sum(stats.by_kind.values()) == stats.total_declarations
    assert stats.failures == 0
    assert stats.from_cache is False
    assert len(stats.fingerprint) == 40


def test_buildstats_to_dict_and_str(tmp_path):
    stats = _make_kg(tmp_path).build()
    d = stats.to_dict()
    assert d["total_declarations"] == 8
    assert "by_kind" in d
    assert "8" in str(stats)


def test_queries_build_lazily(tmp_path):
    kg = _make_kg(tmp_path)
    assert kg.last_build is None
    assert len(kg.all()) == 8
    assert kg.last_build is not None


def test_build_uses_snapshot_when_unchanged(tmp_path):
    db = tmp_path / "decls.sqlite"
    first = _make_kg(tmp_path, db_path=db)
    first.build()
    expected = [d.to_dict() for d in first.all()]
    first.close()

    second = DeclKG(tmp_path / "repo", db_path=db)
    stats = second.build()
    assert stats.from_cache is True
    assert [d.to_dict() for d in second.all()] == expected
    second.close()


def test_build_force_rescans(tmp_path):
    db = tmp_path / "decls.sqlite"
    kg = _make_kg(tmp_path, db_path=db)
    kg.build()
    assert kg.build(force=True).from_cache is False
    kg.close()


def test_build_rescans_after_change(tmp_path):
    db = tmp_path / "decls.sqlite"
    kg = _make_kg(tmp_path, db_path=db)
    kg.build()
    (tmp_path / "repo" / "extra.ts").write_text("export type Extra = number;\n")
    stats = kg.build()
    assert stats.from_cache is False
    assert kg.find_by_name("Extra") is not None
    kg.close()


def test_refresh_detects_changes(tmp_path):
    kg = _make_kg(tmp_path)
    assert kg.refresh() is True
    assert kg.refresh() is False
    path = tmp_path / "repo" / "index.ts"
    path.write_text("export const VERSION = '2.0';\n")
    _bump_mtime(path)
    assert kg.refresh() is True
    assert kg.find_by_name("counter") is None


def test_malformed_file_is_reported(tmp_path):
    kg = _make_kg(
        tmp_path,
        {
            "good1.ts": "export interface One {}\n",
            "broken.ts": "export class {{{\n",
            "good2.ts": "export interface Two {}\n",
        },
    )
    assert [d.name for d in kg.all()] == ["One", "Two"]
    assert [f.file for f in kg.failures] == ["broken.ts"]
    assert kg.last_build.failures == 1


def test_empty_tree(tmp_path):
    kg = _make_kg(tmp_path, {})
    assert kg.build().total_declarations == 0
    assert kg.all() == []
    assert kg.statistics().total_declarations == 0


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def test_find_by_name_scenario(tmp_path):
    kg = _make_kg(tmp_path)
    bar = kg.find_by_name("Bar")
    assert bar is not None
    assert bar.kind == "interface"
    assert "Foo" in kg.hierarchy("Bar").children
    assert "Bar" in kg.hierarchy("Foo").parents


def test_lookup_not_found_with_suggestions(tmp_path):
    kg = _make_kg(tmp_path)
    assert kg.find_by_name("Nope") is None
    result = kg.lookup("Nope")
    assert isinstance(result, LookupResult)
    assert not result.found
    assert kg.fuzzy_search("Nop", 5)
    assert "nopal" in [s.declaration.name for s in kg.fuzzy_search("Nop", 5)]


def test_lookup_found(tmp_path):
    result = _make_kg(tmp_path).lookup("Level")
    assert result.found
    assert result.suggestions == []
    data = json.loads(result.to_json())
    assert data["declaration"]["name"] == "Level"
    assert data["found"] is True


def test_lookup_to_dict_suggestions(tmp_path):
    d = _make_kg(tmp_path).lookup("Nopa").to_dict()
    assert d["found"] is False
    assert d["declaration"] is None
    assert d["suggestions"][0]["name"] == "nopal"
    assert set(d["suggestions"][0]) == {"name", "kind", "module", "score"}


def test_declarations_filters(tmp_path):
    kg = _make_kg(tmp_path)
    assert [d.name for d in kg.declarations(module="CORE")] == ["Bar", "Foo", "Level"]
    assert [d.name for d in kg.declarations(kind="variable")] == ["VERSION", "counter", "LIMIT"]
    assert [d.name for d in kg.declarations("utils", "function")] == ["nopal"]
    with pytest.raises(ValueError):
        kg.declarations(kind="widget")


def test_constants_only_const(tmp_path):
    kg = _make_kg(tmp_path)
    assert [d.name for d in kg.constants()] == ["VERSION", "LIMIT"]
    assert [d.name for d in kg.constants("index")] == ["VERSION"]


def test_kind_shortcuts(tmp_path):
    kg = _make_kg(tmp_path)
    assert [d.name for d in kg.enums()] == ["Level"]
    assert [d.name for d in kg.interfaces()] == ["Bar", "Foo"]
    assert [d.name for d in kg.functions()] == ["nopal"]


def test_exports_by_module(tmp_path):
    exports = _make_kg(tmp_path).exports_by_module()
    assert list(exports) == ["index", "core", "utils"]
    assert exports["index"] == {"variable": ["VERSION", "counter"], "re-export": ["*"]}
    assert exports["core"] == {"interface": ["Bar", "Foo"], "enum": ["Level"]}


def test_dependencies_scenario(tmp_path):
    deps = _make_kg(tmp_path).dependencies()
    assert "./utils" in deps["index"].re_exports_from
    assert "*" not in deps["index"].exports


def test_statistics(tmp_path):
    stats = _make_kg(tmp_path).statistics(top_n=1)
    assert stats.total_declarations == 8
    assert stats.top_interfaces == ["Foo"]


def test_fuzzy_search_limit_monotonic(tmp_path):
    kg = _make_kg(tmp_path)
    previous: list = []
    for n in range(1, 10):
        current = [s.declaration for s in kg.fuzzy_search("e", n)]
        assert current[: len(previous)] == previous
        previous = current


def test_determinism_across_instances(tmp_path):
    kg1 = _make_kg(tmp_path)
    kg2 = DeclKG(tmp_path / "repo")
    assert [d.to_dict() for d in kg1.all()] == [d.to_dict() for d in kg2.all()]


def test_parallel_workers_same_result(tmp_path):
    kg1 = _make_kg(tmp_path)
    kg2 = DeclKG(tmp_path / "repo", workers=4)
    assert kg1.all() == kg2.all()


# ---------------------------------------------------------------------------
# Semantic index
# ---------------------------------------------------------------------------


def test_build_index_requires_paths(tmp_path):
    kg = _make_kg(tmp_path, embedder=FakeEmbedder())
    with pytest.raises(ConfigError):
        kg.build_index()
    with pytest.raises(ConfigError):
        kg.semantic_search("x")


def test_build_index_and_semantic_search(tmp_path):
    kg = _make_kg(
        tmp_path,
        db_path=tmp_path / "decls.sqlite",
        lancedb_dir=tmp_path / "ldb",
        embedder=FakeEmbedder(),
    )
    stats = kg.build_index(wipe=True)
    # everything except the single re-export
    assert stats["indexed_rows"] == 7
    hits = kg.semantic_search("severity levels", k=3)
    assert len(hits) == 3
    assert [h.rank for h in hits] == [0, 1, 2]
    kg.close()


def test_context_manager_closes_store(tmp_path):
    with _make_kg(tmp_path, db_path=tmp_path / "decls.sqlite") as kg:
        kg.build()
        assert kg.store._con is not None
    assert kg.store._con is None
