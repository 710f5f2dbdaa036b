"""
test_graph.py

Tests for DeclGraph and the extract_tree / extract_sources fan-out.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from decl_kg.declkg import DECL_KINDS, locate_sources
from decl_kg.errors import RootNotFoundError, ScanTimeoutError
from decl_kg.graph import DeclGraph, extract_sources, extract_tree


def _write_repo(tmp_path: Path, files: dict) -> Path:
    for rel, src in files.items():
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(textwrap.dedent(src))
    return tmp_path


_FILES = {
    "index.ts": "export * from './utils';\nexport const VERSION = '1.0';\n",
    "types.ts": "export interface Bar {}\nexport interface Foo extends Bar { x: number }\n",
    "utils/strings.ts": "export function trim(s: string): string { return s; }\n",
    "utils/enums.ts": "export enum Mode { A, B }\n",
}


# ---------------------------------------------------------------------------
# extract_tree
# ---------------------------------------------------------------------------


def test_extract_tree_enumeration_order(tmp_path):
    _write_repo(tmp_path, _FILES)
    result = extract_tree(tmp_path)
    assert [d.file for d in result.declarations] == [
        "index.ts",
        "index.ts",
        "types.ts",
        "types.ts",
        "utils/enums.ts",
        "utils/strings.ts",
    ]
    assert [d.module for d in result.declarations][-2:] == ["utils", "utils"]
    assert result.failures == []
    assert len(result.files) == 4


def test_extract_tree_parallel_matches_sequential(tmp_path):
    _write_repo(tmp_path, _FILES)
    seq = extract_tree(tmp_path, workers=1)
    par = extract_tree(tmp_path, workers=4)
    assert [d.to_dict() for d in seq.declarations] == [d.to_dict() for d in par.declarations]


def test_extract_tree_is_deterministic(tmp_path):
    _write_repo(tmp_path, _FILES)
    first = extract_tree(tmp_path).declarations
    second = extract_tree(tmp_path).declarations
    assert first == second


def test_extract_tree_malformed_file_is_recorded(tmp_path):
    _write_repo(
        tmp_path,
        {
            "a.ts": "export interface A {}\n",
            "b.ts": "export function (((\n",
            "c.ts": "export type C = string;\n",
        },
    )
    result = extract_tree(tmp_path)
    assert [d.name for d in result.declarations] == ["A", "C"]
    assert {d.file for d in result.declarations} == {"a.ts", "c.ts"}
    assert len(result.failures) == 1
    assert result.failures[0].file == "b.ts"
    assert result.failures[0].module == "b"


def test_extract_tree_missing_root(tmp_path):
    with pytest.raises(RootNotFoundError):
        extract_tree(tmp_path / "missing")


def test_extract_sources_timeout(tmp_path):
    _write_repo(tmp_path, _FILES)
    sources = locate_sources(tmp_path)
    with pytest.raises(ScanTimeoutError) as exc_info:
        extract_sources(sources, timeout=-1.0)
    assert exc_info.value.total == len(sources)
    assert exc_info.value.scanned == 0


# ---------------------------------------------------------------------------
# DeclGraph
# ---------------------------------------------------------------------------


def test_declgraph_repr_before_extract(tmp_path):
    g = DeclGraph(tmp_path)
    assert "not yet extracted" in repr(g)


def test_declgraph_repr_after_extract(tmp_path):
    _write_repo(tmp_path, _FILES)
    g = DeclGraph(tmp_path).extract()
    r = repr(g)
    assert "declarations=6" in r
    assert "failures=0" in r


def test_declgraph_resolves_root(tmp_path):
    g = DeclGraph(str(tmp_path))
    assert g.root == tmp_path.resolve()


def test_declgraph_extract_returns_self(tmp_path):
    g = DeclGraph(tmp_path)
    assert g.extract() is g


def test_declgraph_declarations_trigger_extract(tmp_path):
    _write_repo(tmp_path, _FILES)
    g = DeclGraph(tmp_path)
    assert len(g.declarations) == 6


def test_declgraph_extract_cached(tmp_path):
    _write_repo(tmp_path, _FILES)
    g = DeclGraph(tmp_path).extract()
    first = g.result()
    (tmp_path / "new.ts").write_text("export const late = 1;\n")
    g.extract()
    assert g.result() is first


def test_declgraph_extract_force_reruns(tmp_path):
    _write_repo(tmp_path, _FILES)
    g = DeclGraph(tmp_path).extract()
    (tmp_path / "new.ts").write_text("export const late = 1;\n")
    g.extract(force=True)
    assert "late" in [d.name for d in g.declarations]


def test_declgraph_stats(tmp_path):
    _write_repo(tmp_path, _FILES)
    s = DeclGraph(tmp_path).stats()
    assert set(s) == {"root", "files", "total_declarations", "by_kind", "failures"}
    assert s["files"] == 4
    assert s["total_declarations"] == 6
    assert list(s["by_kind"]) == list(DECL_KINDS)
    assert sum(s["by_kind"].values()) == s["total_declarations"]
    assert s["by_kind"]["interface"] == 2


def test_declgraph_empty_root(tmp_path):
    g = DeclGraph(tmp_path)
    assert g.declarations == []
    assert g.stats()["files"] == 0
