#!/usr/bin/env python3
"""
declkg.py

Foundational declaration primitives and the source locator.

    root -> SourceFile(path, rel_path, module) -> Declaration records

Declarations are a closed family of frozen dataclasses, one per kind,
each carrying only the fields meaningful to that kind.  Cross references
(``extends`` / ``implements``) are raw strings resolved lazily by name.

NO parsing
NO persistence
NO type checking

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import dataclasses
import hashlib
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from decl_kg.errors import RootNotFoundError

# ============================================================================
# Constants
# ============================================================================

KIND_INTERFACE = "interface"
KIND_TYPE_ALIAS = "type-alias"
KIND_ENUM = "enum"
KIND_FUNCTION = "function"
KIND_CLASS = "class"
KIND_VARIABLE = "variable"
KIND_NAMESPACE = "namespace"
KIND_RE_EXPORT = "re-export"

# canonical order, used wherever kinds are enumerated
DECL_KINDS: tuple[str, ...] = (
    KIND_INTERFACE,
    KIND_TYPE_ALIAS,
    KIND_ENUM,
    KIND_FUNCTION,
    KIND_CLASS,
    KIND_VARIABLE,
    KIND_NAMESPACE,
    KIND_RE_EXPORT,
)

_KIND_ALIASES = {"type": KIND_TYPE_ALIAS, "type_alias": KIND_TYPE_ALIAS}

_ID_PREFIX = {
    KIND_INTERFACE: "iface",
    KIND_TYPE_ALIAS: "type",
    KIND_ENUM: "enum",
    KIND_FUNCTION: "fn",
    KIND_CLASS: "cls",
    KIND_VARIABLE: "var",
    KIND_NAMESPACE: "ns",
    KIND_RE_EXPORT: "rex",
}

SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".mts", ".cts")

SKIP_DIRS = {
    "node_modules",
    "dist",
    "coverage",
}

WILDCARD = "*"


def normalize_kind(kind: str) -> str:
    """
    Map a user-supplied kind string onto a canonical kind.

    :param kind: Kind name; ``"type"`` is accepted for ``"type-alias"``.
    :raises ValueError: if the kind is unknown.
    """
    k = kind.strip().lower()
    k = _KIND_ALIASES.get(k, k)
    if k not in DECL_KINDS:
        raise ValueError(f"Unknown declaration kind {kind!r}; expected one of {DECL_KINDS}")
    return k


# ============================================================================
# Record primitives
# ============================================================================


@dataclass(frozen=True)
class TypeParameter:
    """
    Generic type parameter.

    :param name: Parameter name (``T``)
    :param constraint: Text after ``extends`` (may be None)
    :param default: Text after ``=`` (may be None)
    """

    name: str
    constraint: str | None = None
    default: str | None = None


@dataclass(frozen=True)
class PropertyInfo:
    """
    A member of an interface, class or object-literal type.

    :param name: Member name (``[key: string]`` for index signatures)
    :param type: Member type text (return type for callables)
    :param optional: Declared with ``?``
    :param readonly: Declared ``readonly`` (or a getter without setter)
    :param is_method: Method or method signature
    :param is_call_signature: Call / construct signature
    :param is_index_signature: Index signature
    :param parameters: Parameter texts, in order
    :param return_type: Return type text for callables
    :param docs: JSDoc description
    """

    name: str
    type: str
    optional: bool = False
    readonly: bool = False
    is_method: bool = False
    is_call_signature: bool = False
    is_index_signature: bool = False
    parameters: tuple[str, ...] = ()
    return_type: str | None = None
    docs: str | None = None

    def render(self) -> str:
        """Single-line display form of the member."""
        if self.is_method or self.is_call_signature:
            opt = "?" if self.optional else ""
            return f"{self.name}{opt}({', '.join(self.parameters)}): {self.return_type or self.type}"
        if self.is_index_signature:
            return f"{self.name}: {self.type}"
        readonly = "readonly " if self.readonly else ""
        opt = "?" if self.optional else ""
        return f"{readonly}{self.name}{opt}: {self.type}"


@dataclass(frozen=True)
class ParseFailure:
    """
    A file that contributed no declarations because it could not be parsed.

    :param file: Root-relative path
    :param module: Module id of the file
    :param line: First error line (1-based), if known
    :param message: Reason
    """

    file: str
    module: str
    line: int | None
    message: str

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


# ============================================================================
# Declarations (one variant per kind)
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class Declaration:
    """
    Common shape of every extracted declaration.

    :param name: Exported name (qualified ``NS.name`` inside namespaces)
    :param module: Module id derived from the file location
    :param file: Root-relative source path
    :param line: 1-based line of the declaration
    :param signature: Verbatim header text, for display only
    :param docs: Leading JSDoc description (may be None)
    """

    kind: ClassVar[str] = ""

    name: str
    module: str
    file: str
    line: int
    signature: str
    docs: str | None = None

    @property
    def id(self) -> str:
        """Stable id, e.g. ``iface:utils/config.ts:Config@12``."""
        return f"{_ID_PREFIX[self.kind]}:{self.file}:{self.name}@{self.line}"

    @property
    def parents(self) -> tuple[str, ...]:
        """Heritage names (extends then implements); empty for most kinds."""
        return ()

    @property
    def member_count(self) -> int:
        """Ranking weight used by the statistics top lists."""
        return 0

    def to_dict(self) -> dict:
        """JSON-ready dict, including ``kind``; inverse of :func:`declaration_from_dict`."""
        d: dict[str, Any] = {"kind": self.kind}
        d.update(dataclasses.asdict(self))
        return d


@dataclass(frozen=True, kw_only=True)
class InterfaceDecl(Declaration):
    kind: ClassVar[str] = KIND_INTERFACE

    type_parameters: tuple[TypeParameter, ...] = ()
    extends: tuple[str, ...] = ()
    properties: tuple[PropertyInfo, ...] = ()
    methods: tuple[PropertyInfo, ...] = ()

    @property
    def parents(self) -> tuple[str, ...]:
        return self.extends

    @property
    def member_count(self) -> int:
        return len(self.properties) + len(self.methods)


@dataclass(frozen=True, kw_only=True)
class TypeAliasDecl(Declaration):
    """Type alias; members are only filled for object-literal right-hand sides."""

    kind: ClassVar[str] = KIND_TYPE_ALIAS

    type_parameters: tuple[TypeParameter, ...] = ()
    properties: tuple[PropertyInfo, ...] = ()
    methods: tuple[PropertyInfo, ...] = ()

    @property
    def member_count(self) -> int:
        return len(self.properties) + len(self.methods)


@dataclass(frozen=True, kw_only=True)
class EnumDecl(Declaration):
    kind: ClassVar[str] = KIND_ENUM

    members: tuple[str, ...] = ()
    is_const: bool = False

    @property
    def member_count(self) -> int:
        return len(self.members)


@dataclass(frozen=True, kw_only=True)
class FunctionDecl(Declaration):
    """Function; further overload signatures in the same file land in ``overloads``."""

    kind: ClassVar[str] = KIND_FUNCTION

    type_parameters: tuple[TypeParameter, ...] = ()
    parameters: tuple[str, ...] = ()
    return_type: str | None = None
    overloads: tuple[str, ...] = ()

    @property
    def member_count(self) -> int:
        return len(self.parameters)


@dataclass(frozen=True, kw_only=True)
class ClassDecl(Declaration):
    kind: ClassVar[str] = KIND_CLASS

    type_parameters: tuple[TypeParameter, ...] = ()
    extends: tuple[str, ...] = ()
    implements: tuple[str, ...] = ()
    properties: tuple[PropertyInfo, ...] = ()
    methods: tuple[PropertyInfo, ...] = ()
    is_abstract: bool = False

    @property
    def parents(self) -> tuple[str, ...]:
        return self.extends + self.implements

    @property
    def member_count(self) -> int:
        return len(self.properties) + len(self.methods)


@dataclass(frozen=True, kw_only=True)
class VariableDecl(Declaration):
    """Variable / constant; ``value`` is set only for literal initializers."""

    kind: ClassVar[str] = KIND_VARIABLE

    type: str = "unknown"
    value: str | None = None
    declaration_kind: str = "const"


@dataclass(frozen=True, kw_only=True)
class NamespaceDecl(Declaration):
    """Namespace; its exported members are emitted separately as ``NS.member``."""

    kind: ClassVar[str] = KIND_NAMESPACE

    members: tuple[str, ...] = ()

    @property
    def member_count(self) -> int:
        return len(self.members)


@dataclass(frozen=True, kw_only=True)
class ReExportDecl(Declaration):
    """Forwarded name; ``name == "*"`` for a bare ``export * from``."""

    kind: ClassVar[str] = KIND_RE_EXPORT

    source: str = ""
    imported_name: str = WILDCARD


DECLARATION_TYPES: dict[str, type[Declaration]] = {
    cls.kind: cls
    for cls in (
        InterfaceDecl,
        TypeAliasDecl,
        EnumDecl,
        FunctionDecl,
        ClassDecl,
        VariableDecl,
        NamespaceDecl,
        ReExportDecl,
    )
}


def declaration_from_dict(data: dict) -> Declaration:
    """
    Rebuild a declaration from :meth:`Declaration.to_dict` output.

    :param data: Dict with a ``kind`` key (lists are accepted for tuples).
    :raises ValueError: on unknown kind.
    """
    cls = DECLARATION_TYPES.get(normalize_kind(data["kind"]))
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        if f.name == "type_parameters":
            value = tuple(TypeParameter(**tp) for tp in value)
        elif f.name in ("properties", "methods"):
            value = tuple(_property_from_dict(p) for p in value)
        elif isinstance(value, list):
            value = tuple(value)
        kwargs[f.name] = value
    return cls(**kwargs)


def _property_from_dict(data: dict) -> PropertyInfo:
    d = dict(data)
    d["parameters"] = tuple(d.get("parameters") or ())
    return PropertyInfo(**d)


# ============================================================================
# Source locator
# ============================================================================


@dataclass(frozen=True)
class SourceFile:
    """
    A candidate source file.

    :param path: Absolute path
    :param rel_path: Root-relative, ``/``-separated path
    :param module: Module id (see :func:`module_id`)
    """

    path: Path
    rel_path: str
    module: str
    stat: tuple[int, int] = field(default=(0, 0), compare=False)


def iter_source_files(
    root: Path, extensions: Iterable[str] = SOURCE_EXTENSIONS
) -> Iterator[Path]:
    """
    Yield source files under *root* in a deterministic order.

    Files of a directory come first (sorted), then its subdirectories
    (sorted).  Dot-directories and :data:`SKIP_DIRS` are pruned.

    :param root: Source root
    :param extensions: Accepted file suffixes
    """
    exts = tuple(extensions)
    for dirpath, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS and not d.startswith("."))
        for f in sorted(files):
            if f.endswith(exts) and not f.startswith("."):
                yield Path(dirpath) / f


def rel_source_path(path: Path, root: Path) -> str:
    """
    Convert file path to root-relative, ``/``-separated form.

    :param path: Absolute file path
    :param root: Source root
    """
    return str(path.relative_to(root)).replace("\\", "/")


def module_id(rel_path: str, extensions: Iterable[str] = SOURCE_EXTENSIONS) -> str:
    """
    Derive the module id of a file.

    Files below a subdirectory belong to the top-level subdirectory
    (``utils/a/b.ts`` -> ``utils``).  Root-level files use their base name
    without the source extension or a ``.d`` suffix
    (``index.ts`` -> ``index``, ``types.d.ts`` -> ``types``).

    :param rel_path: Root-relative path
    :param extensions: Accepted file suffixes
    """
    parts = rel_path.split("/")
    if len(parts) > 1:
        return parts[0]
    name = parts[0]
    for ext in sorted(extensions, key=len, reverse=True):
        if name.endswith(ext):
            name = name[: -len(ext)]
            break
    if name.endswith(".d"):
        name = name[:-2]
    return name


def locate_sources(
    root: str | Path, extensions: Iterable[str] = SOURCE_EXTENSIONS
) -> list[SourceFile]:
    """
    Enumerate ``(path, module)`` pairs under *root*.

    :param root: Source root
    :param extensions: Accepted file suffixes
    :raises RootNotFoundError: if *root* is missing or not a directory.
    :return: Source files in enumeration order (may be empty).
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise RootNotFoundError(str(root))
    exts = tuple(extensions)
    sources: list[SourceFile] = []
    for path in iter_source_files(root_path, exts):
        rel = rel_source_path(path, root_path)
        st = path.stat()
        sources.append(
            SourceFile(
                path=path,
                rel_path=rel,
                module=module_id(rel, exts),
                stat=(st.st_size, st.st_mtime_ns),
            )
        )
    return sources


def tree_fingerprint(sources: Iterable[SourceFile]) -> str:
    """
    Fingerprint of a located tree: SHA-1 over path, size and mtime of every file.

    :param sources: Output of :func:`locate_sources`
    """
    h = hashlib.sha1()
    for src in sources:
        size, mtime = src.stat
        h.update(f"{src.rel_path}\0{size}\0{mtime}\n".encode("utf-8"))
    return h.hexdigest()
