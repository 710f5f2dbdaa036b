#!/usr/bin/env python3
"""
catalog.py

DeclarationIndex — in-memory query surface over one build's declarations.

Insertion order is the extraction order and is preserved by every query.
The parent -> children multimap used by the hierarchy resolver is built
once here, at construction.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from decl_kg.declkg import Declaration, normalize_kind

_TYPE_ARGS = re.compile(r"<.*>$", re.DOTALL)


def strip_type_arguments(ref: str) -> str:
    """``"Bar<T, U>"`` -> ``"Bar"``; other strings are returned trimmed."""
    return _TYPE_ARGS.sub("", ref.strip()).strip()


def group_by_module(decls: Iterable[Declaration]) -> dict[str, list[Declaration]]:
    """
    Group declarations by module, modules in first-seen order.

    :param decls: Declarations in index order.
    """
    groups: dict[str, list[Declaration]] = {}
    for d in decls:
        groups.setdefault(d.module, []).append(d)
    return groups


class DeclarationIndex:
    """
    Ordered, read-only collection of declarations with lookup helpers.

    :param declarations: Declarations in extraction order.
    """

    def __init__(self, declarations: Iterable[Declaration] = ()) -> None:
        self._decls: list[Declaration] = list(declarations)
        self._by_name: dict[str, list[Declaration]] = {}
        self._children: dict[str, list[Declaration]] = {}
        for d in self._decls:
            self._by_name.setdefault(d.name, []).append(d)
            for ref in d.parents:
                keys = {ref.strip(), strip_type_arguments(ref)}
                for key in keys:
                    self._children.setdefault(key, []).append(d)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def all(self) -> list[Declaration]:
        return list(self._decls)

    def by_module(self, name: str) -> list[Declaration]:
        """Declarations whose module equals *name*, ignoring case."""
        want = name.lower()
        return [d for d in self._decls if d.module.lower() == want]

    def by_kind(self, kind: str) -> list[Declaration]:
        """
        Declarations of one kind.

        :param kind: Kind string; ``"type"`` is accepted for ``"type-alias"``.
        :raises ValueError: on an unknown kind.
        """
        k = normalize_kind(kind)
        return [d for d in self._decls if d.kind == k]

    def find_by_name(self, name: str) -> Declaration | None:
        """First declaration named exactly *name* (case-sensitive), or None."""
        matches = self._by_name.get(name)
        return matches[0] if matches else None

    def find_all(self, name: str) -> list[Declaration]:
        return list(self._by_name.get(name, ()))

    def modules(self) -> list[str]:
        """Module ids in first-seen order."""
        return list(dict.fromkeys(d.module for d in self._decls))

    def children_of(self, name: str) -> list[Declaration]:
        """
        Declarations naming *name* in their heritage, in index order.

        Heritage refs match either exactly or with type arguments
        stripped.  Each declaration appears once.
        """
        seen: set[int] = set()
        out = []
        for d in self._children.get(name, ()):
            if id(d) not in seen:
                seen.add(id(d))
                out.append(d)
        return out

    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._decls)

    def __iter__(self) -> Iterator[Declaration]:
        return iter(self._decls)

    def __repr__(self) -> str:
        return f"DeclarationIndex(declarations={len(self._decls)}, modules={len(self.modules())})"
