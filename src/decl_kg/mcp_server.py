#!/usr/bin/env python3
"""
mcp_server.py — DeclKG MCP Server

Exposes the declaration index of a TypeScript source tree as Model
Context Protocol (MCP) tools, so any MCP-compatible agent can look up
interfaces, types, functions and their relationships directly.

Every tool re-checks the tree fingerprint first and rebuilds the index
when files changed, then returns a JSON string.

Tools
-----
extract_declarations(module, kind)   declarations, optionally filtered
find_declaration(name)               exact lookup with suggestions
fuzzy_search(query, limit)           ranked approximate matches
list_exports()                       module -> kind -> names
list_by_kind(kind, module)           declarations of one kind
list_constants(module)               ``const`` variables with values
type_hierarchy(name)                 parents / children of a type
library_statistics()                 counts and top lists
module_dependencies()                exports vs re-export origins
list_enums(module)                   enums with their members
list_interfaces(module, detailed)    interfaces, optionally with members
list_functions(module)               functions with signatures
semantic_search(q, k)                LanceDB vector search
list_parse_failures()                files skipped because of syntax errors

Usage
-----
Install the package, then run::

    declkg-mcp --root /path/to/src --db .declkg/decls.sqlite

Or configure in an MCP client's config::

    {
      "mcpServers": {
        "declkg": {
          "command": "declkg-mcp",
          "args": ["--root", "/path/to/src", "--db", "/path/to/src/.declkg/decls.sqlite"]
        }
      }
    }

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Lazy MCP import: clear error if the package is absent
# ---------------------------------------------------------------------------

try:
    from mcp.server.fastmcp import FastMCP
except ImportError:
    print(
        "ERROR: 'mcp' package not found.\n"
        "Install it with:  pip install mcp\n"
        "Or add it to your project:  poetry add mcp",
        file=sys.stderr,
    )
    sys.exit(1)

from decl_kg.config import load_config
from decl_kg.declkg import Declaration
from decl_kg.errors import DeclKGError
from decl_kg.kg import DeclKG
from decl_kg.logging import configure_logging

# ---------------------------------------------------------------------------
# Global state, initialised in main() before the server starts
# ---------------------------------------------------------------------------

_kg: DeclKG | None = None


def _get_kg() -> DeclKG:
    if _kg is None:
        raise RuntimeError(
            "DeclKG not initialised.  Run the server via 'declkg-mcp --root ...'"
        )
    _kg.refresh()
    return _kg


def _dumps(obj: object) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _summary(d: Declaration) -> dict:
    return {
        "name": d.name,
        "kind": d.kind,
        "module": d.module,
        "file": d.file,
        "line": d.line,
        "signature": d.signature,
    }


def _suggestions(kg: DeclKG, name: str, limit: int = 5) -> list[str]:
    return [s.declaration.name for s in kg.fuzzy_search(name, limit)]


# ---------------------------------------------------------------------------
# MCP server
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "declkg",
    instructions=(
        "DeclKG indexes the exported declarations of a TypeScript source tree. "
        "Use find_declaration for exact names, fuzzy_search when unsure of the "
        "spelling, and type_hierarchy / module_dependencies for structure."
    ),
)


@mcp.tool()
def extract_declarations(module: str = "", kind: str = "") -> str:
    """
    List declarations, optionally restricted to one module and/or kind.

    :param module: Module name (case-insensitive); empty for all modules.
    :param kind: interface, type-alias (or type), enum, function, class,
                 variable, namespace or re-export; empty for all kinds.
    :return: JSON string with ``count`` and ``declarations``.
    """
    kg = _get_kg()
    try:
        decls = kg.declarations(module or None, kind or None)
    except ValueError as exc:
        return _dumps({"error": str(exc)})
    return _dumps(
        {
            "module": module or None,
            "kind": kind or None,
            "count": len(decls),
            "declarations": [d.to_dict() for d in decls],
        }
    )


@mcp.tool()
def find_declaration(name: str) -> str:
    """
    Look up a declaration by exact name.

    :param name: Case-sensitive declaration name, e.g. ``"ClientOptions"``.
    :return: JSON with the full declaration, or an error plus suggestions.
    """
    result = _get_kg().lookup(name)
    if not result.found:
        return _dumps(
            {
                "error": f"Declaration not found: {name!r}",
                "suggestions": [s["name"] for s in result.to_dict()["suggestions"]],
            }
        )
    return _dumps(result.declaration.to_dict())  # type: ignore[union-attr]


@mcp.tool()
def fuzzy_search(query: str, limit: int = 20) -> str:
    """
    Approximate search over names, docs and signatures.

    :param query: Free text, e.g. ``"retry option"``.
    :param limit: Maximum results (default 20).
    :return: JSON list of declarations with a ``score``, best first.
    """
    hits = _get_kg().fuzzy_search(query, limit)
    return _dumps([{"score": round(h.score, 3), **_summary(h.declaration)} for h in hits])


@mcp.tool()
def list_exports() -> str:
    """
    Exported names of every module, grouped by kind.

    :return: JSON ``{module: {kind: [names]}}``.
    """
    return _dumps(_get_kg().exports_by_module())


@mcp.tool()
def list_by_kind(kind: str, module: str = "") -> str:
    """
    Declarations of one kind.

    :param kind: Declaration kind (``type`` is accepted for ``type-alias``).
    :param module: Optional module filter.
    :return: JSON list of declaration summaries.
    """
    try:
        decls = _get_kg().declarations(module or None, kind)
    except ValueError as exc:
        return _dumps({"error": str(exc)})
    return _dumps([_summary(d) for d in decls])


@mcp.tool()
def list_constants(module: str = "") -> str:
    """
    ``const`` variables with their types and literal values.

    :param module: Optional module filter.
    :return: JSON list.
    """
    return _dumps(
        [
            {**_summary(d), "type": d.type, "value": d.value}  # type: ignore[attr-defined]
            for d in _get_kg().constants(module or None)
        ]
    )


@mcp.tool()
def type_hierarchy(name: str) -> str:
    """
    Parents and children of a class or interface.

    :param name: Exact declaration name.
    :return: JSON with ``type``, ``parents``, ``children``, ``unresolved``.
    """
    kg = _get_kg()
    h = kg.hierarchy(name)
    if h is None:
        return _dumps(
            {"error": f"Declaration not found: {name!r}", "suggestions": _suggestions(kg, name)}
        )
    return h.to_json()


@mcp.tool()
def library_statistics() -> str:
    """
    Declaration counts by kind and module, plus the largest interfaces,
    type aliases and functions.

    :return: JSON statistics.
    """
    return _get_kg().statistics().to_json()


@mcp.tool()
def module_dependencies() -> str:
    """
    For every module: the names it declares and the sources it re-exports from.

    :return: JSON ``{module: {exports, re_exports_from}}``.
    """
    deps = _get_kg().dependencies()
    return _dumps({m: info.to_dict() for m, info in deps.items()})


@mcp.tool()
def list_enums(module: str = "") -> str:
    """
    Enums with their members.

    :param module: Optional module filter.
    :return: JSON list.
    """
    return _dumps(
        [
            {**_summary(d), "members": list(d.members), "is_const": d.is_const}  # type: ignore[attr-defined]
            for d in _get_kg().enums(module or None)
        ]
    )


@mcp.tool()
def list_interfaces(module: str = "", detailed: bool = False) -> str:
    """
    Interfaces, optionally with their full member lists.

    :param module: Optional module filter.
    :param detailed: Include properties and methods (default False).
    :return: JSON list.
    """
    out = []
    for d in _get_kg().interfaces(module or None):
        if detailed:
            out.append(d.to_dict())
        else:
            out.append(
                {
                    **_summary(d),
                    "extends": list(d.parents),
                    "members": d.member_count,
                }
            )
    return _dumps(out)


@mcp.tool()
def list_functions(module: str = "") -> str:
    """
    Functions with parameters, return types and overloads.

    :param module: Optional module filter.
    :return: JSON list.
    """
    return _dumps(
        [
            {
                **_summary(d),
                "parameters": list(d.parameters),  # type: ignore[attr-defined]
                "return_type": d.return_type,  # type: ignore[attr-defined]
                "overloads": list(d.overloads),  # type: ignore[attr-defined]
            }
            for d in _get_kg().functions(module or None)
        ]
    )


@mcp.tool()
def semantic_search(q: str, k: int = 8) -> str:
    """
    Natural-language vector search (requires a built LanceDB index).

    :param q: Query, e.g. ``"options controlling request retries"``.
    :param k: Number of hits (default 8).
    :return: JSON list of hits ordered by distance.
    """
    try:
        hits = _get_kg().semantic_search(q, k=k)
    except DeclKGError as exc:
        return _dumps({"error": str(exc)})
    return _dumps([h.to_dict() for h in hits])


@mcp.tool()
def list_parse_failures() -> str:
    """
    Files that were skipped because they failed to parse.

    :return: JSON list of ``{file, module, line, message}``.
    """
    return _dumps([f.to_dict() for f in _get_kg().failures])


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _parse_args(argv: list | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="declkg-mcp",
        description="DeclKG MCP server — exposes TypeScript declaration tools to AI agents.",
    )
    p.add_argument("--root", default=None, help="Source root directory (default: $DECLKG_ROOT or .)")
    p.add_argument("--db", default=None, help="SQLite snapshot path (optional cache)")
    p.add_argument("--lancedb", default=None, help="LanceDB directory (enables semantic_search)")
    p.add_argument("--model", default=None, help="Sentence-transformer model name")
    p.add_argument("--workers", type=int, default=None, help="Extraction threads")
    p.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="MCP transport: stdio (default) or sse (HTTP)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def main(argv: list | None = None) -> None:
    """
    CLI entry point for the DeclKG MCP server.

    Builds the DeclKG instance and starts the MCP server using the
    requested transport.
    """
    global _kg

    args = _parse_args(argv)
    try:
        cfg = load_config()
    except DeclKGError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)
    configure_logging(verbose=args.verbose or cfg.verbose)

    root = Path(args.root or cfg.root or ".").resolve()
    db = Path(args.db) if args.db else cfg.db_path
    lancedb_dir = Path(args.lancedb) if args.lancedb else cfg.lancedb_dir
    model = args.model or cfg.model

    print(
        f"DeclKG MCP server starting\n"
        f"  root     : {root}\n"
        f"  db       : {db}\n"
        f"  lancedb  : {lancedb_dir}\n"
        f"  model    : {model}\n"
        f"  transport: {args.transport}",
        file=sys.stderr,
    )

    try:
        _kg = DeclKG(
            root,
            extensions=cfg.extensions,
            workers=args.workers or cfg.workers,
            scan_timeout=cfg.scan_timeout,
            db_path=db,
            lancedb_dir=lancedb_dir,
            model=model,
        )
    except DeclKGError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    mcp.run(transport=args.transport)


if __name__ == "__main__":
    main()
