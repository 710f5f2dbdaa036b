#!/usr/bin/env python3
"""
kg.py

DeclKG — top-level orchestrator for the Declaration Knowledge Graph.

Owns the full pipeline:
    root → DeclGraph → DeclarationIndex → (DeclStore) → (SemanticIndex)

and the synchronous query surface over the built index.  Also defines the
structured result types:
    BuildStats, LookupResult

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from decl_kg.analysis import (
    DependencyInfo,
    Hierarchy,
    LibraryStatistics,
    analyze_dependencies,
    compute_statistics,
    resolve_hierarchy,
)
from decl_kg.catalog import DeclarationIndex, group_by_module
from decl_kg.declkg import (
    DECL_KINDS,
    KIND_ENUM,
    KIND_FUNCTION,
    KIND_INTERFACE,
    KIND_VARIABLE,
    SOURCE_EXTENSIONS,
    Declaration,
    ParseFailure,
    locate_sources,
    normalize_kind,
    tree_fingerprint,
)
from decl_kg.errors import ConfigError, RootNotFoundError
from decl_kg.graph import DeclGraph
from decl_kg.index import Embedder, SemanticHit, SemanticIndex, SentenceTransformerEmbedder
from decl_kg.logging import get_logger
from decl_kg.search import ScoredDeclaration, fuzzy_search
from decl_kg.store import DeclStore

logger = get_logger("kg")

DEFAULT_MODEL = "all-MiniLM-L6-v2"
DEFAULT_TABLE = "declkg_declarations"

# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class BuildStats:
    """
    Statistics returned by :meth:`DeclKG.build`.

    :param root: Source root that was analysed.
    :param files: Number of located source files.
    :param total_declarations: Declarations in the index.
    :param by_kind: Declaration counts for every kind.
    :param failures: Number of files that failed to parse.
    :param fingerprint: Tree fingerprint of the build.
    :param from_cache: True when loaded from the SQLite snapshot.
    :param elapsed: Wall-clock seconds spent building.
    """

    root: str
    files: int
    total_declarations: int
    by_kind: dict[str, int]
    failures: int
    fingerprint: str
    from_cache: bool = False
    elapsed: float = 0.0

    def to_dict(self) -> dict:
        return {
            "root": self.root,
            "files": self.files,
            "total_declarations": self.total_declarations,
            "by_kind": self.by_kind,
            "failures": self.failures,
            "fingerprint": self.fingerprint,
            "from_cache": self.from_cache,
            "elapsed": round(self.elapsed, 3),
        }

    def __str__(self) -> str:
        source = "snapshot" if self.from_cache else "scan"
        return "\n".join(
            [
                f"root         : {self.root}",
                f"files        : {self.files}",
                f"declarations : {self.total_declarations}  {self.by_kind}",
                f"failures     : {self.failures}",
                f"fingerprint  : {self.fingerprint}  ({source}, {self.elapsed:.2f}s)",
            ]
        )


@dataclass
class LookupResult:
    """
    Result of :meth:`DeclKG.lookup`: an exact hit, or fuzzy suggestions.

    :param query: Name that was looked up.
    :param declaration: The first exact match, or None.
    :param suggestions: Fuzzy matches, filled only when not found.
    """

    query: str
    declaration: Declaration | None = None
    suggestions: list[ScoredDeclaration] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.declaration is not None

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "found": self.found,
            "declaration": self.declaration.to_dict() if self.declaration else None,
            "suggestions": [
                {
                    "name": s.declaration.name,
                    "kind": s.declaration.kind,
                    "module": s.declaration.module,
                    "score": round(s.score, 3),
                }
                for s in self.suggestions
            ],
        }

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# ---------------------------------------------------------------------------
# DeclKG orchestrator
# ---------------------------------------------------------------------------


class DeclKG:
    """
    Top-level engine for the Declaration Knowledge Graph.

    Coordinates:

    * :class:`~decl_kg.graph.DeclGraph` — tree-sitter extraction
    * :class:`~decl_kg.catalog.DeclarationIndex` — in-memory query surface
    * :class:`~decl_kg.store.DeclStore` — optional SQLite snapshot cache
    * :class:`~decl_kg.index.SemanticIndex` — optional LanceDB vectors

    Typical usage::

        kg = DeclKG("/path/to/src", db_path=".declkg/decls.sqlite")
        print(kg.build())

        kg.find_by_name("Config")
        kg.hierarchy("BaseClient")
        kg.statistics().to_json()

    :param root: Source root directory.
    :param extensions: Accepted file suffixes.
    :param workers: Extraction threads.
    :param scan_timeout: Wall-clock budget for a scan, in seconds.
    :param db_path: SQLite snapshot path (None disables the cache).
    :param lancedb_dir: LanceDB directory for semantic search.
    :param model: Sentence-transformer model name.
    :param table: LanceDB table name.
    :param embedder: Embedding backend (defaults to *model*).
    :raises RootNotFoundError: if *root* is not a directory.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        extensions: Iterable[str] = SOURCE_EXTENSIONS,
        workers: int = 1,
        scan_timeout: float | None = None,
        db_path: str | Path | None = None,
        lancedb_dir: str | Path | None = None,
        model: str = DEFAULT_MODEL,
        table: str = DEFAULT_TABLE,
        embedder: Embedder | None = None,
    ) -> None:
        path = Path(root)
        if not path.is_dir():
            raise RootNotFoundError(str(root))
        self.root = path.resolve()
        self.extensions = tuple(extensions)
        self.workers = workers
        self.scan_timeout = scan_timeout
        self.db_path = Path(db_path) if db_path is not None else None
        self.lancedb_dir = Path(lancedb_dir) if lancedb_dir is not None else None
        self.model_name = model
        self.table_name = table

        # Lazy-initialised layers
        self._graph: DeclGraph | None = None
        self._store: DeclStore | None = None
        self._index: SemanticIndex | None = None
        self._embedder: Embedder | None = embedder

        # Build state
        self._catalog: DeclarationIndex | None = None
        self._failures: list[ParseFailure] = []
        self._fingerprint: str | None = None
        self._last_build: BuildStats | None = None

    # ------------------------------------------------------------------
    # Layer accessors (lazy init)
    # ------------------------------------------------------------------

    @property
    def graph(self) -> DeclGraph:
        """Extraction layer (lazy)."""
        if self._graph is None:
            self._graph = DeclGraph(
                self.root,
                extensions=self.extensions,
                workers=self.workers,
                timeout=self.scan_timeout,
            )
        return self._graph

    @property
    def store(self) -> DeclStore:
        """SQLite snapshot layer (lazy); requires ``db_path``."""
        if self._store is None:
            if self.db_path is None:
                raise ConfigError("No db_path configured for the snapshot store")
            self._store = DeclStore(self.db_path)
        return self._store

    @property
    def embedder(self) -> Embedder:
        """Embedding backend (lazy)."""
        if self._embedder is None:
            self._embedder = SentenceTransformerEmbedder(self.model_name)
        return self._embedder

    @property
    def index(self) -> SemanticIndex:
        """LanceDB semantic index (lazy); requires ``lancedb_dir``."""
        if self._index is None:
            if self.lancedb_dir is None:
                raise ConfigError("No lancedb_dir configured for the semantic index")
            self._index = SemanticIndex(
                self.lancedb_dir, embedder=self.embedder, table=self.table_name
            )
        return self._index

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self, *, force: bool = False) -> BuildStats:
        """
        Scan the tree (or load the matching snapshot) and rebuild the index.

        :param force: Rescan even when the snapshot fingerprint matches.
        :return: :class:`BuildStats`.
        """
        t0 = time.perf_counter()
        sources = locate_sources(self.root, self.extensions)
        fingerprint = tree_fingerprint(sources)

        from_cache = False
        if self.db_path is not None and not force and self.store.fingerprint() == fingerprint:
            decls = self.store.declarations()
            failures = self.store.failures()
            from_cache = True
        else:
            result = self.graph.extract(force=True, sources=sources).result()
            decls, failures = result.declarations, result.failures
            if self.db_path is not None:
                self.store.write(decls, failures, fingerprint=fingerprint, root=str(self.root))

        self._catalog = DeclarationIndex(decls)
        self._failures = list(failures)
        self._fingerprint = fingerprint

        counts = {k: 0 for k in DECL_KINDS}
        for d in decls:
            counts[d.kind] += 1
        self._last_build = BuildStats(
            root=str(self.root),
            files=len(sources),
            total_declarations=len(decls),
            by_kind=counts,
            failures=len(failures),
            fingerprint=fingerprint,
            from_cache=from_cache,
            elapsed=time.perf_counter() - t0,
        )
        logger.info(
            "Indexed %d declarations from %d files (%d failures, %s)",
            len(decls),
            len(sources),
            len(failures),
            "snapshot" if from_cache else "scan",
        )
        return self._last_build

    def refresh(self, *, force: bool = False) -> bool:
        """
        Rebuild when the tree fingerprint changed since the last build.

        :param force: Rebuild unconditionally.
        :return: True if a rebuild happened.
        """
        if self._catalog is None:
            self.build(force=force)
            return True
        fingerprint = tree_fingerprint(locate_sources(self.root, self.extensions))
        if force or fingerprint != self._fingerprint:
            logger.debug("Tree changed; rebuilding %s", self.root)
            self.build(force=force)
            return True
        return False

    @property
    def catalog(self) -> DeclarationIndex:
        """The built :class:`DeclarationIndex` (builds on first access)."""
        if self._catalog is None:
            self.build()
        return self._catalog  # type: ignore[return-value]

    @property
    def failures(self) -> list[ParseFailure]:
        """Files that failed to parse in the current build."""
        if self._catalog is None:
            self.build()
        return list(self._failures)

    @property
    def last_build(self) -> BuildStats | None:
        return self._last_build

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def all(self) -> list[Declaration]:
        return self.catalog.all()

    def by_module(self, module: str) -> list[Declaration]:
        return self.catalog.by_module(module)

    def by_kind(self, kind: str) -> list[Declaration]:
        return self.catalog.by_kind(kind)

    def find_by_name(self, name: str) -> Declaration | None:
        return self.catalog.find_by_name(name)

    def fuzzy_search(self, query: str, limit: int = 20) -> list[ScoredDeclaration]:
        return fuzzy_search(self.catalog, query, limit)

    def hierarchy(self, name: str) -> Hierarchy | None:
        return resolve_hierarchy(self.catalog, name)

    def dependencies(self) -> dict[str, DependencyInfo]:
        return analyze_dependencies(self.catalog)

    def statistics(self, top_n: int = 10) -> LibraryStatistics:
        return compute_statistics(self.catalog, top_n=top_n)

    def lookup(self, name: str, suggestions: int = 5) -> LookupResult:
        """
        Exact lookup with "did you mean" suggestions on a miss.

        :param name: Exact, case-sensitive name.
        :param suggestions: Maximum fuzzy suggestions.
        """
        decl = self.find_by_name(name)
        if decl is not None:
            return LookupResult(query=name, declaration=decl)
        return LookupResult(query=name, suggestions=self.fuzzy_search(name, suggestions))

    def declarations(
        self, module: str | None = None, kind: str | None = None
    ) -> list[Declaration]:
        """
        Declarations filtered by module and/or kind.

        :raises ValueError: on an unknown kind.
        """
        decls = self.catalog.by_module(module) if module else self.catalog.all()
        if kind:
            k = normalize_kind(kind)
            decls = [d for d in decls if d.kind == k]
        return decls

    def exports_by_module(self) -> dict[str, dict[str, list[str]]]:
        """``{module: {kind: [names]}}``; kinds in canonical order, empty kinds omitted."""
        out: dict[str, dict[str, list[str]]] = {}
        for module, decls in group_by_module(self.catalog).items():
            by_kind: dict[str, list[str]] = {}
            for kind in DECL_KINDS:
                names = [d.name for d in decls if d.kind == kind]
                if names:
                    by_kind[kind] = names
            out[module] = by_kind
        return out

    def constants(self, module: str | None = None) -> list[Declaration]:
        """``const`` variables."""
        return [
            d
            for d in self.declarations(module, KIND_VARIABLE)
            if getattr(d, "declaration_kind", None) == "const"
        ]

    def enums(self, module: str | None = None) -> list[Declaration]:
        return self.declarations(module, KIND_ENUM)

    def interfaces(self, module: str | None = None) -> list[Declaration]:
        return self.declarations(module, KIND_INTERFACE)

    def functions(self, module: str | None = None) -> list[Declaration]:
        return self.declarations(module, KIND_FUNCTION)

    # ------------------------------------------------------------------
    # Semantic index
    # ------------------------------------------------------------------

    def build_index(self, *, wipe: bool = False) -> dict:
        """
        Snapshot → LanceDB.  Requires ``db_path`` and ``lancedb_dir``.

        :param wipe: Delete existing vectors before indexing.
        :return: Index stats dict.
        """
        if self.db_path is None or self.lancedb_dir is None:
            raise ConfigError("build_index requires both db_path and lancedb_dir")
        self.refresh()
        return self.index.build(self.store, wipe=wipe)

    def semantic_search(self, query: str, k: int = 8) -> list[SemanticHit]:
        """Vector search over the LanceDB index."""
        if self.lancedb_dir is None:
            raise ConfigError("semantic_search requires lancedb_dir")
        return self.index.search(query, k=k)

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        if self._store is not None:
            self._store.close()

    def __enter__(self) -> DeclKG:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = (
            f"declarations={len(self._catalog)}" if self._catalog is not None else "not yet built"
        )
        return f"DeclKG(root={self.root!r}, db_path={self.db_path!r}, {state})"
