#!/usr/bin/env python3
"""
analysis.py

Read-only analyses over a :class:`~decl_kg.catalog.DeclarationIndex`:

- resolve_hierarchy    parents / children of one named declaration
- analyze_dependencies per-module exports vs re-export origins
- compute_statistics   counts by kind and module plus top-N rankings

Every function takes the index explicitly; nothing is cached here.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import asdict, dataclass, field

from decl_kg.catalog import DeclarationIndex, strip_type_arguments
from decl_kg.declkg import (
    DECL_KINDS,
    KIND_FUNCTION,
    KIND_INTERFACE,
    KIND_RE_EXPORT,
    KIND_TYPE_ALIAS,
    Declaration,
)

TOP_N = 10

# ----------------------------------------------------------------------------
# Result types
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class Hierarchy:
    """
    Inheritance view of one declaration.

    :param type: The resolved declaration.
    :param parents: Its own heritage refs (extends then implements).
    :param children: Names of declarations that list it as a parent.
    :param unresolved: Parents with no matching declaration in the index.
    """

    type: Declaration
    parents: tuple[str, ...] = ()
    children: tuple[str, ...] = ()
    unresolved: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "type": self.type.to_dict(),
            "parents": list(self.parents),
            "children": list(self.children),
            "unresolved": list(self.unresolved),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class DependencyInfo:
    module: str
    exports: tuple[str, ...] = ()
    re_exports_from: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "module": self.module,
            "exports": list(self.exports),
            "re_exports_from": list(self.re_exports_from),
        }


@dataclass(frozen=True)
class ModuleStatistics:
    module: str
    total: int
    counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class LibraryStatistics:
    """Aggregate counts; ``by_kind`` and every module's ``counts`` cover all kinds."""

    total_declarations: int
    by_kind: dict[str, int]
    by_module: list[ModuleStatistics]
    top_interfaces: list[str]
    top_types: list[str]
    top_functions: list[str]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


# ----------------------------------------------------------------------------
# Hierarchy
# ----------------------------------------------------------------------------


def resolve_hierarchy(index: DeclarationIndex, name: str) -> Hierarchy | None:
    """
    Resolve parents and children of the first declaration named *name*.

    :param index: Declaration index.
    :param name: Exact, case-sensitive name.
    :return: None when no declaration has that name.
    """
    decl = index.find_by_name(name)
    if decl is None:
        return None
    children = []
    for child in index.children_of(name):
        if child is decl or child.name in children:
            continue
        children.append(child.name)
    unresolved = tuple(
        p for p in decl.parents if index.find_by_name(strip_type_arguments(p)) is None
    )
    return Hierarchy(
        type=decl,
        parents=decl.parents,
        children=tuple(children),
        unresolved=unresolved,
    )


# ----------------------------------------------------------------------------
# Dependencies
# ----------------------------------------------------------------------------


def analyze_dependencies(index: DeclarationIndex) -> dict[str, DependencyInfo]:
    """
    One :class:`DependencyInfo` per module, modules in first-seen order.

    ``exports`` lists non-re-export names in index order; ``re_exports_from``
    lists distinct re-export sources in first-appearance order.
    """
    exports: dict[str, list[str]] = {}
    sources: dict[str, list[str]] = {}
    for d in index:
        exports.setdefault(d.module, [])
        sources.setdefault(d.module, [])
        if d.kind == KIND_RE_EXPORT:
            if d.source not in sources[d.module]:  # type: ignore[attr-defined]
                sources[d.module].append(d.source)  # type: ignore[attr-defined]
        else:
            exports[d.module].append(d.name)
    return {
        m: DependencyInfo(module=m, exports=tuple(exports[m]), re_exports_from=tuple(sources[m]))
        for m in exports
    }


# ----------------------------------------------------------------------------
# Statistics
# ----------------------------------------------------------------------------


def _top(decls: list[Declaration], top_n: int) -> list[str]:
    ranked = sorted(decls, key=lambda d: (-d.member_count, d.name))
    names: list[str] = []
    if top_n <= 0:
        return names
    for d in ranked:
        if d.name not in names:
            names.append(d.name)
        if len(names) >= top_n:
            break
    return names


def compute_statistics(index: DeclarationIndex, top_n: int = TOP_N) -> LibraryStatistics:
    """
    Counts by kind and by module, plus the top-N rankings.

    Interfaces and type aliases rank by member count, functions by
    parameter count; ties break on name.

    :param index: Declaration index.
    :param top_n: Length cap of each top list.
    """
    by_kind = Counter(d.kind for d in index)
    per_module: dict[str, Counter] = {}
    for d in index:
        per_module.setdefault(d.module, Counter())[d.kind] += 1

    return LibraryStatistics(
        total_declarations=len(index),
        by_kind={k: by_kind.get(k, 0) for k in DECL_KINDS},
        by_module=[
            ModuleStatistics(
                module=m,
                total=sum(c.values()),
                counts={k: c.get(k, 0) for k in DECL_KINDS},
            )
            for m, c in per_module.items()
        ],
        top_interfaces=_top(index.by_kind(KIND_INTERFACE), top_n),
        top_types=_top(index.by_kind(KIND_TYPE_ALIAS), top_n),
        top_functions=_top(index.by_kind(KIND_FUNCTION), top_n),
    )
