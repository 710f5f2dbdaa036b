#!/usr/bin/env python3
"""
declkg_query.py

Structural queries over a TypeScript source tree, printed as JSON.

Subcommands:
- list       declarations, filtered by --module / --kind
- find       exact lookup with suggestions
- search     fuzzy search
- hierarchy  parents / children of a type
- deps       per-module exports and re-export origins
- stats      counts and top lists
- failures   files skipped because they did not parse

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from decl_kg.config import load_config
from decl_kg.errors import DeclKGError
from decl_kg.kg import DeclKG
from decl_kg.logging import configure_logging


def _emit(obj: object) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Query the declarations of a TypeScript source tree.")
    p.add_argument("--root", default=None, help="Source root (default: $DECLKG_ROOT or .)")
    p.add_argument("--db", default=None, help="Optional SQLite snapshot used as a cache")
    p.add_argument("--workers", type=int, default=None, help="Extraction threads")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("list", help="List declarations")
    s.add_argument("--module", default=None)
    s.add_argument("--kind", default=None)

    s = sub.add_parser("find", help="Exact lookup by name")
    s.add_argument("name")

    s = sub.add_parser("search", help="Fuzzy search")
    s.add_argument("query")
    s.add_argument("--limit", type=int, default=20)

    s = sub.add_parser("hierarchy", help="Type hierarchy of a declaration")
    s.add_argument("name")

    sub.add_parser("deps", help="Module dependencies")

    s = sub.add_parser("stats", help="Library statistics")
    s.add_argument("--top", type=int, default=10)

    sub.add_parser("failures", help="Files that failed to parse")
    return p


def run(kg: DeclKG, args: argparse.Namespace) -> int:
    """Execute one subcommand against *kg*; returns the exit code."""
    if args.command == "list":
        _emit([d.to_dict() for d in kg.declarations(args.module, args.kind)])
    elif args.command == "find":
        result = kg.lookup(args.name)
        _emit(result.to_dict())
        return 0 if result.found else 1
    elif args.command == "search":
        _emit([s.to_dict() for s in kg.fuzzy_search(args.query, args.limit)])
    elif args.command == "hierarchy":
        h = kg.hierarchy(args.name)
        if h is None:
            _emit(kg.lookup(args.name).to_dict())
            return 1
        _emit(h.to_dict())
    elif args.command == "deps":
        _emit({m: info.to_dict() for m, info in kg.dependencies().items()})
    elif args.command == "stats":
        _emit(kg.statistics(top_n=args.top).to_dict())
    elif args.command == "failures":
        _emit([f.to_dict() for f in kg.failures])
    return 0


def main(argv: list | None = None) -> None:
    args = _parser().parse_args(argv)
    try:
        cfg = load_config()
        configure_logging(verbose=args.verbose or cfg.verbose)
        root = Path(args.root or cfg.root or ".")
        with DeclKG(
            root,
            extensions=cfg.extensions,
            workers=args.workers or cfg.workers,
            scan_timeout=cfg.scan_timeout,
            db_path=Path(args.db) if args.db else cfg.db_path,
        ) as kg:
            code = run(kg, args)
    except (DeclKGError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)
    sys.exit(code)


if __name__ == "__main__":
    main()
