#!/usr/bin/env python3
"""
store.py

DeclStore — SQLite snapshot of one full declaration scan.

The snapshot is keyed by the tree fingerprint: when the located files are
unchanged, a build loads it instead of rescanning.  Every write replaces
the whole snapshot.
No embeddings, no LanceDB, no parsing.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from decl_kg.declkg import Declaration, ParseFailure, declaration_from_dict

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS declarations (
  seq      INTEGER PRIMARY KEY,
  id       TEXT NOT NULL,
  kind     TEXT NOT NULL,
  name     TEXT NOT NULL,
  module   TEXT NOT NULL,
  file     TEXT NOT NULL,
  line     INTEGER,
  payload  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS parse_failures (
  seq      INTEGER PRIMARY KEY,
  file     TEXT NOT NULL,
  module   TEXT NOT NULL,
  line     INTEGER,
  message  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS meta (
  key    TEXT PRIMARY KEY,
  value  TEXT
);

CREATE INDEX IF NOT EXISTS idx_decl_kind   ON declarations(kind);
CREATE INDEX IF NOT EXISTS idx_decl_name   ON declarations(name);
CREATE INDEX IF NOT EXISTS idx_decl_module ON declarations(module);
"""


# ---------------------------------------------------------------------------
# DeclStore
# ---------------------------------------------------------------------------


class DeclStore:
    """
    SQLite-backed snapshot cache for a declaration scan.

    Example::

        store = DeclStore("declkg.sqlite")
        store.write(decls, failures, fingerprint=fp, root="/path/to/src")
        print(store.stats())

        # reload in original order
        decls = store.declarations()

    :param db_path: Path to the SQLite database file (created if absent).
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._con: Optional[sqlite3.Connection] = None

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    @property
    def con(self) -> sqlite3.Connection:
        """Lazy SQLite connection (created on first access)."""
        if self._con is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._con = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._con.executescript(_SCHEMA_SQL)
        return self._con

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        if self._con is not None:
            self._con.close()
            self._con = None

    def __enter__(self) -> "DeclStore":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Delete the snapshot (declarations, failures and metadata)."""
        with self.con:
            self.con.execute("DELETE FROM declarations;")
            self.con.execute("DELETE FROM parse_failures;")
            self.con.execute("DELETE FROM meta;")

    def write(
        self,
        declarations: Sequence[Declaration],
        failures: Sequence[ParseFailure] = (),
        *,
        fingerprint: str,
        root: str,
    ) -> None:
        """
        Replace the snapshot in a single transaction.

        :param declarations: Declarations in extraction order.
        :param failures: Parse failures of the same scan.
        :param fingerprint: Tree fingerprint the scan was taken at.
        :param root: Source root that was scanned.
        """
        decl_rows = [
            (
                seq,
                d.id,
                d.kind,
                d.name,
                d.module,
                d.file,
                d.line,
                json.dumps(d.to_dict(), ensure_ascii=False),
            )
            for seq, d in enumerate(declarations)
        ]
        failure_rows = [
            (seq, f.file, f.module, f.line, f.message) for seq, f in enumerate(failures)
        ]
        meta_rows = [
            ("fingerprint", fingerprint),
            ("root", root),
            ("built_at", datetime.now(timezone.utc).isoformat(timespec="seconds")),
        ]
        with self.con:
            self.con.execute("DELETE FROM declarations;")
            self.con.execute("DELETE FROM parse_failures;")
            self.con.execute("DELETE FROM meta;")
            self.con.executemany(
                """
                INSERT INTO declarations
                  (seq, id, kind, name, module, file, line, payload)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                decl_rows,
            )
            self.con.executemany(
                "INSERT INTO parse_failures (seq, file, module, line, message) VALUES (?, ?, ?, ?, ?)",
                failure_rows,
            )
            self.con.executemany("INSERT INTO meta (key, value) VALUES (?, ?)", meta_rows)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def meta(self, key: str) -> Optional[str]:
        row = self.con.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def fingerprint(self) -> Optional[str]:
        """Fingerprint of the stored snapshot, or ``None`` if empty."""
        return self.meta("fingerprint")

    def declarations(self) -> List[Declaration]:
        """Stored declarations in their original extraction order."""
        rows = self.con.execute("SELECT payload FROM declarations ORDER BY seq").fetchall()
        return [declaration_from_dict(json.loads(r[0])) for r in rows]

    def failures(self) -> List[ParseFailure]:
        rows = self.con.execute(
            "SELECT file, module, line, message FROM parse_failures ORDER BY seq"
        ).fetchall()
        return [ParseFailure(file=r[0], module=r[1], line=r[2], message=r[3]) for r in rows]

    def query_rows(
        self,
        *,
        kinds: Optional[Sequence[str]] = None,
        module: Optional[str] = None,
    ) -> List[dict]:
        """
        Return declaration dicts matching optional filters.

        :param kinds: Restrict to these kinds (e.g. ``["interface", "class"]``).
        :param module: Restrict to this module (exact match).
        :return: List of :meth:`Declaration.to_dict` dicts plus ``id``.
        """
        clauses: List[str] = []
        params: List[object] = []

        if kinds:
            placeholders = ",".join("?" for _ in kinds)
            clauses.append(f"kind IN ({placeholders})")
            params.extend(kinds)

        if module is not None:
            clauses.append("module = ?")
            params.append(module)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.con.execute(
            f"SELECT id, payload FROM declarations {where} ORDER BY seq",
            params,
        ).fetchall()
        return [{"id": r[0], **json.loads(r[1])} for r in rows]

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        """
        Return declaration counts by kind plus snapshot metadata.

        :return: dict with ``db_path``, ``total_declarations``,
                 ``kind_counts``, ``failures``, ``fingerprint``, ``root``,
                 ``built_at``.
        """
        kind_rows = self.con.execute(
            "SELECT kind, COUNT(*) FROM declarations GROUP BY kind"
        ).fetchall()
        total = self.con.execute("SELECT COUNT(*) FROM declarations").fetchone()[0]
        failures = self.con.execute("SELECT COUNT(*) FROM parse_failures").fetchone()[0]
        return {
            "db_path": str(self.db_path),
            "total_declarations": total,
            "kind_counts": {r[0]: r[1] for r in kind_rows},
            "failures": failures,
            "fingerprint": self.meta("fingerprint"),
            "root": self.meta("root"),
            "built_at": self.meta("built_at"),
        }

    def __repr__(self) -> str:
        return f"DeclStore(db_path={self.db_path!r})"
