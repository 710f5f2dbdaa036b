#!/usr/bin/env python3
"""
index.py

SemanticIndex — LanceDB vector index over declarations.

Derived from the SQLite snapshot; disposable and rebuildable at any time.
The snapshot (DeclStore) remains the source the index is built from.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

from decl_kg.declkg import DECL_KINDS, KIND_RE_EXPORT

if TYPE_CHECKING:
    from decl_kg.store import DeclStore

# ---------------------------------------------------------------------------
# Embedder interface (pluggable)
# ---------------------------------------------------------------------------


class Embedder:
    """
    Abstract embedding backend.

    Subclass and implement :meth:`embed_texts` to plug in any model.

    :param dim: Embedding dimension (must be set by subclass ``__init__``).
    """

    dim: int

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """
        Embed a list of strings.

        :param texts: Input strings.
        :return: List of float32 vectors, one per input.
        """
        raise NotImplementedError

    def embed_query(self, query: str) -> List[float]:
        """Embed a single query string via :meth:`embed_texts`."""
        return self.embed_texts([query])[0]


class SentenceTransformerEmbedder(Embedder):
    """
    Local embedding via ``sentence-transformers``.

    :param model_name: HuggingFace model name or local path.
                       Defaults to ``"all-MiniLM-L6-v2"``.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2") -> None:
        from sentence_transformers import SentenceTransformer

        self.model = SentenceTransformer(model_name)
        self.model_name = model_name
        self.dim: int = self.model.get_sentence_embedding_dimension()

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        vecs = self.model.encode(texts, normalize_embeddings=True, show_progress_bar=False)
        return [np.asarray(v, dtype="float32").tolist() for v in vecs]

    def embed_query(self, query: str) -> List[float]:
        vec = self.model.encode([query], normalize_embeddings=True)[0]
        return np.asarray(vec, dtype="float32").tolist()

    def __repr__(self) -> str:
        return f"SentenceTransformerEmbedder(model={self.model_name!r}, dim={self.dim})"


# ---------------------------------------------------------------------------
# Hit returned by SemanticIndex.search()
# ---------------------------------------------------------------------------


@dataclass
class SemanticHit:
    """
    A single result from a semantic vector search.

    :param id: Declaration id.
    :param kind: Declaration kind.
    :param name: Declaration name.
    :param module: Module id.
    :param file: Root-relative file.
    :param line: 1-based line.
    :param signature: Header text.
    :param distance: Vector distance (lower = more similar).
    :param rank: Zero-based rank in the result list.
    """

    id: str
    kind: str
    name: str
    module: str
    file: str
    line: int
    signature: str
    distance: float
    rank: int

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# SemanticIndex
# ---------------------------------------------------------------------------

_DEFAULT_TABLE = "declkg_declarations"
DEFAULT_INDEX_KINDS = tuple(k for k in DECL_KINDS if k != KIND_RE_EXPORT)


class SemanticIndex:
    """
    LanceDB-backed semantic vector index over declarations.

    Reads declarations from a :class:`~decl_kg.store.DeclStore`, embeds a
    canonical text per declaration and stores the vectors in LanceDB.

    Example::

        idx = SemanticIndex("./lancedb", embedder=SentenceTransformerEmbedder())
        idx.build(store, wipe=True)

        for h in idx.search("http retry options", k=8):
            print(h.name, h.distance)

    :param lancedb_dir: Directory for the LanceDB database.
    :param embedder: Embedding backend.  Defaults to
                     :class:`SentenceTransformerEmbedder`.
    :param table: LanceDB table name.
    :param index_kinds: Declaration kinds to embed (re-exports are skipped
                        by default; they carry no text of their own).
    """

    def __init__(
        self,
        lancedb_dir: str | Path,
        *,
        embedder: Optional[Embedder] = None,
        table: str = _DEFAULT_TABLE,
        index_kinds: Sequence[str] = DEFAULT_INDEX_KINDS,
    ) -> None:
        self.lancedb_dir = Path(lancedb_dir)
        self.embedder: Embedder = embedder or SentenceTransformerEmbedder()
        self.table_name = table
        self.index_kinds = tuple(index_kinds)
        self._tbl = None

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(
        self,
        store: "DeclStore",
        *,
        wipe: bool = False,
        batch_size: int = 256,
    ) -> dict:
        """
        Build (or rebuild) the vector index from *store*.

        :param store: Snapshot :class:`~decl_kg.store.DeclStore`.
        :param wipe: If ``True``, delete all existing vectors first.
        :param batch_size: Number of declarations to embed per batch.
        :return: Stats dict with ``indexed_rows``, ``dim``, ``table``,
                 ``lancedb_dir``, ``kinds``.
        """
        rows_in = store.query_rows(kinds=list(self.index_kinds))
        tbl = self._open_table(wipe=wipe)

        indexed = 0
        for i in range(0, len(rows_in), batch_size):
            chunk = rows_in[i : i + batch_size]
            texts = [_build_index_text(d) for d in chunk]
            vecs = self.embedder.embed_texts(texts)

            # upsert: delete existing ids then add fresh rows
            ids = [d["id"] for d in chunk]
            if ids:
                tbl.delete(" OR ".join(f"id = '{_escape(did)}'" for did in ids))

            rows = [
                {
                    "id": d["id"],
                    "kind": d["kind"],
                    "name": d["name"],
                    "module": d["module"],
                    "file": d["file"],
                    "line": int(d["line"]),
                    "signature": d.get("signature") or "",
                    "text": text,
                    "vector": vec,
                }
                for d, text, vec in zip(chunk, texts, vecs)
            ]
            tbl.add(rows)
            indexed += len(rows)

        self._tbl = tbl
        return {
            "indexed_rows": indexed,
            "dim": self.embedder.dim,
            "table": self.table_name,
            "lancedb_dir": str(self.lancedb_dir),
            "kinds": list(self.index_kinds),
        }

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, query: str, k: int = 8) -> List[SemanticHit]:
        """
        Semantic vector search.

        :param query: Natural-language query string.
        :param k: Number of results to return.
        :return: List of :class:`SemanticHit` ordered by ascending distance.
        """
        tbl = self._get_table()
        qvec = self.embedder.embed_query(query)
        raw = tbl.search(qvec).limit(k).to_list()

        hits: List[SemanticHit] = []
        for rank, row in enumerate(raw):
            hits.append(
                SemanticHit(
                    id=row["id"],
                    kind=row.get("kind", ""),
                    name=row.get("name", ""),
                    module=row.get("module", ""),
                    file=row.get("file", ""),
                    line=int(row.get("line", 0)),
                    signature=row.get("signature", ""),
                    distance=_extract_distance(row, rank),
                    rank=rank,
                )
            )
        return hits

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open_table(self, *, wipe: bool = False):
        """Open or create the LanceDB table."""
        import lancedb

        self.lancedb_dir.mkdir(parents=True, exist_ok=True)
        db = lancedb.connect(str(self.lancedb_dir))

        if self.table_name in db.table_names():
            tbl = db.open_table(self.table_name)
            if wipe:
                tbl.delete("id != ''")
            return tbl

        # Create with a dummy row to establish schema, then remove it
        dummy = {
            "id": "__dummy__",
            "kind": "dummy",
            "name": "__dummy__",
            "module": "",
            "file": "",
            "line": 0,
            "signature": "",
            "text": "__dummy__",
            "vector": np.zeros((self.embedder.dim,), dtype="float32").tolist(),
        }
        tbl = db.create_table(self.table_name, data=[dummy])
        tbl.delete("id = '__dummy__'")
        return tbl

    def _get_table(self):
        if self._tbl is None:
            import lancedb

            db = lancedb.connect(str(self.lancedb_dir))
            self._tbl = db.open_table(self.table_name)
        return self._tbl

    def __repr__(self) -> str:
        return (
            f"SemanticIndex(lancedb_dir={self.lancedb_dir!r}, "
            f"table={self.table_name!r}, embedder={self.embedder!r})"
        )


# ---------------------------------------------------------------------------
# Internal utilities
# ---------------------------------------------------------------------------


def _build_index_text(d: dict) -> str:
    """
    Canonical text document used for embedding.

    Stable — changing this invalidates the index.
    """
    parts = [f"KIND: {d['kind']}", f"NAME: {d['name']}"]
    if d.get("module"):
        parts.append(f"MODULE: {d['module']}")
    if d.get("file"):
        parts.append(f"FILE: {d['file']}")
    if d.get("line") is not None:
        parts.append(f"LINE: {d['line']}")
    if d.get("signature"):
        parts.append(f"SIGNATURE: {d['signature']}")
    if d.get("docs"):
        parts.append("DOCS:\n" + d["docs"].strip())
    return "\n".join(parts)


def _extract_distance(row: dict, fallback_rank: int) -> float:
    """Extract a distance value from a LanceDB result row."""
    for key in ("_distance", "distance"):
        if key in row and row[key] is not None:
            return float(row[key])
    if "score" in row and row["score"] is not None:
        return 1.0 / (1.0 + float(row["score"]))
    return float(fallback_rank)


def _escape(s: str) -> str:
    """Escape single quotes for LanceDB delete predicates."""
    return s.replace("'", "''")
