#!/usr/bin/env python3
"""
graph.py

DeclGraph — pure tree extraction class.

Locates the source files of a root, fans the per-file extractor out over
them (optionally on a thread pool) and fans the results back in, in file
enumeration order.  Files that fail to parse are recorded, not raised.
No persistence, no embeddings.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import time
from collections import Counter
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from pathlib import Path

from decl_kg.declkg import (
    DECL_KINDS,
    SOURCE_EXTENSIONS,
    Declaration,
    ParseFailure,
    SourceFile,
    locate_sources,
)
from decl_kg.errors import FileParseError, ScanTimeoutError
from decl_kg.extractor import extract_file
from decl_kg.logging import get_logger

logger = get_logger("graph")


@dataclass
class ExtractionResult:
    """Merged output of one full scan."""

    declarations: list[Declaration] = field(default_factory=list)
    failures: list[ParseFailure] = field(default_factory=list)
    files: list[SourceFile] = field(default_factory=list)


def _extract_one(source: SourceFile) -> list[Declaration] | ParseFailure:
    try:
        return extract_file(source)
    except FileParseError as exc:
        return ParseFailure(
            file=source.rel_path, module=source.module, line=exc.line, message=exc.message
        )


def extract_sources(
    sources: list[SourceFile],
    *,
    workers: int = 1,
    timeout: float | None = None,
) -> ExtractionResult:
    """
    Extract already-located files.

    :param sources: Files in enumeration order.
    :param workers: Thread count; ``1`` extracts sequentially.
    :param timeout: Wall-clock budget in seconds, or None.
    :raises ScanTimeoutError: when the budget is exceeded.
    """
    result = ExtractionResult(files=list(sources))
    outcomes: list[list[Declaration] | ParseFailure] = []

    if workers > 1 and len(sources) > 1:
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="declkg")
        try:
            # map() yields in submission order, not completion order
            for outcome in pool.map(_extract_one, sources, timeout=timeout):
                outcomes.append(outcome)
        except FuturesTimeout as exc:
            pool.shutdown(wait=False, cancel_futures=True)
            raise ScanTimeoutError(timeout or 0.0, len(outcomes), len(sources)) from exc
        pool.shutdown()
    else:
        start = time.monotonic()
        for source in sources:
            if timeout is not None and time.monotonic() - start > timeout:
                raise ScanTimeoutError(timeout, len(outcomes), len(sources))
            outcomes.append(_extract_one(source))

    for outcome in outcomes:
        if isinstance(outcome, ParseFailure):
            where = f"{outcome.file}:{outcome.line}" if outcome.line else outcome.file
            logger.warning("Skipping %s: %s", where, outcome.message)
            result.failures.append(outcome)
        else:
            result.declarations.extend(outcome)
    return result


def extract_tree(
    root: str | Path,
    *,
    extensions: Iterable[str] = SOURCE_EXTENSIONS,
    workers: int = 1,
    timeout: float | None = None,
) -> ExtractionResult:
    """
    Locate and extract every source file under *root*.

    :param root: Source root directory.
    :param extensions: Accepted file suffixes.
    :param workers: Thread count for extraction.
    :param timeout: Wall-clock budget in seconds, or None.
    :raises RootNotFoundError: if *root* is not a directory.
    :raises ScanTimeoutError: when the budget is exceeded.
    """
    return extract_sources(locate_sources(root, extensions), workers=workers, timeout=timeout)


class DeclGraph:
    """
    Pure, deterministic declaration extraction from a TypeScript tree.

    Wraps :func:`extract_tree` with a cached, object-oriented interface.
    Calling :meth:`extract` twice on an unchanged root returns the same
    result.

    Example::

        graph = DeclGraph("/path/to/src")
        graph.extract()
        print(f"{len(graph.declarations)} declarations")

    :param root: Path to the source root directory.
    :param extensions: Accepted file suffixes.
    :param workers: Thread count for extraction.
    :param timeout: Wall-clock budget in seconds, or None.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        extensions: Iterable[str] = SOURCE_EXTENSIONS,
        workers: int = 1,
        timeout: float | None = None,
    ) -> None:
        self.root: Path = Path(root).resolve()
        self.extensions = tuple(extensions)
        self.workers = workers
        self.timeout = timeout
        self._result: ExtractionResult | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(
        self, *, force: bool = False, sources: list[SourceFile] | None = None
    ) -> DeclGraph:
        """
        Run extraction (cached after first call).

        :param force: Re-extract even if already cached.
        :param sources: Already-located files of this root; located afresh if None.
        :return: self (for chaining)
        """
        if self._result is None or force:
            if sources is None:
                sources = locate_sources(self.root, self.extensions)
            self._result = extract_sources(
                sources, workers=self.workers, timeout=self.timeout
            )
        return self

    @property
    def declarations(self) -> list[Declaration]:
        """Extracted declarations (calls :meth:`extract` if needed)."""
        return self.result().declarations

    @property
    def failures(self) -> list[ParseFailure]:
        """Files that failed to parse."""
        return self.result().failures

    def result(self) -> ExtractionResult:
        if self._result is None:
            self.extract()
        return self._result  # type: ignore[return-value]

    def stats(self) -> dict:
        """
        Return a summary of extracted declarations by kind.

        :return: dict with ``root``, ``files``, ``total_declarations``,
                 ``by_kind`` and ``failures``.
        """
        counts = Counter(d.kind for d in self.declarations)
        return {
            "root": str(self.root),
            "files": len(self.result().files),
            "total_declarations": len(self.declarations),
            "by_kind": {k: counts.get(k, 0) for k in DECL_KINDS},
            "failures": len(self.failures),
        }

    def __repr__(self) -> str:
        if self._result is not None:
            return (
                f"DeclGraph(root={self.root!r}, "
                f"declarations={len(self._result.declarations)}, "
                f"failures={len(self._result.failures)})"
            )
        return f"DeclGraph(root={self.root!r}, not yet extracted)"
