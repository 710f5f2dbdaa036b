"""
test_cli.py

Tests for the command-line entry points: declkg-build-sqlite, declkg-query
and the ``python -m decl_kg`` dispatcher.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from decl_kg import __main__ as dispatcher
from decl_kg import build_declkg_sqlite, declkg_query


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in (
        "DECLKG_ROOT",
        "DECLKG_EXTENSIONS",
        "DECLKG_WORKERS",
        "DECLKG_SCAN_TIMEOUT",
        "DECLKG_DB",
        "DECLKG_LANCEDB",
        "DECLKG_MODEL",
        "DECLKG_VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    (root / "core").mkdir(parents=True)
    (root / "index.ts").write_text("export * from './core';\n")
    (root / "core" / "types.ts").write_text(
        "export interface Shape { area(): number }\n"
        "export class Square implements Shape { area(): number { return 1; } }\n"
    )
    return root


def _query(capsys, *argv: str) -> tuple[int, object]:
    with pytest.raises(SystemExit) as exc_info:
        declkg_query.main(list(argv))
    out = capsys.readouterr().out
    return exc_info.value.code, json.loads(out) if out.strip() else None


# ---------------------------------------------------------------------------
# declkg-build-sqlite
# ---------------------------------------------------------------------------


def test_build_sqlite_writes_snapshot(repo, tmp_path, monkeypatch, capsys):
    db = tmp_path / "out.sqlite"
    monkeypatch.setattr(sys, "argv", ["declkg-build-sqlite", "--root", str(repo), "--db", str(db)])
    build_declkg_sqlite.main()
    out = capsys.readouterr().out
    assert out.startswith("OK:")
    assert "declarations=3" in out
    assert "cached=False" in out
    assert db.exists()

    build_declkg_sqlite.main()
    assert "cached=True" in capsys.readouterr().out


def test_build_sqlite_missing_root(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["declkg-build-sqlite", "--root", str(tmp_path / "nope")])
    with pytest.raises(SystemExit) as exc_info:
        build_declkg_sqlite.main()
    assert exc_info.value.code == 1
    assert "ERROR" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# declkg-query
# ---------------------------------------------------------------------------


def test_query_list(repo, capsys):
    code, data = _query(capsys, "--root", str(repo), "list", "--kind", "class")
    assert code == 0
    assert [d["name"] for d in data] == ["Square"]


def test_query_find_found_and_missing(repo, capsys):
    code, data = _query(capsys, "--root", str(repo), "find", "Shape")
    assert code == 0
    assert data["found"] is True

    code, data = _query(capsys, "--root", str(repo), "find", "Shap")
    assert code == 1
    assert data["suggestions"][0]["name"] == "Shape"


def test_query_search(repo, capsys):
    code, data = _query(capsys, "--root", str(repo), "search", "squ", "--limit", "1")
    assert code == 0
    assert len(data) == 1
    assert data[0]["name"] == "Square"


def test_query_hierarchy(repo, capsys):
    code, data = _query(capsys, "--root", str(repo), "hierarchy", "Shape")
    assert code == 0
    assert data["children"] == ["Square"]


def test_query_deps_stats_failures(repo, capsys):
    _, deps = _query(capsys, "--root", str(repo), "deps")
    assert deps["index"]["re_exports_from"] == ["./core"]
    _, stats = _query(capsys, "--root", str(repo), "stats", "--top", "1")
    assert stats["total_declarations"] == 3
    _, failures = _query(capsys, "--root", str(repo), "failures")
    assert failures == []


def test_query_bad_kind_exits_2(repo, capsys):
    with pytest.raises(SystemExit) as exc_info:
        declkg_query.main(["--root", str(repo), "list", "--kind", "widget"])
    assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# python -m decl_kg
# ---------------------------------------------------------------------------


def test_dispatcher_help(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["decl_kg"])
    with pytest.raises(SystemExit) as exc_info:
        dispatcher.main()
    assert exc_info.value.code == 0
    assert "build-sqlite" in capsys.readouterr().out


def test_dispatcher_unknown(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["decl_kg", "frobnicate"])
    with pytest.raises(SystemExit) as exc_info:
        dispatcher.main()
    assert exc_info.value.code == 1
    assert "unknown subcommand" in capsys.readouterr().err


def test_dispatcher_routes_query(repo, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["decl_kg", "query", "--root", str(repo), "find", "Square"])
    with pytest.raises(SystemExit) as exc_info:
        dispatcher.main()
    assert exc_info.value.code == 0
    assert json.loads(capsys.readouterr().out)["declaration"]["name"] == "Square"
