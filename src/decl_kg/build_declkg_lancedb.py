#!/usr/bin/env python3
"""
build_declkg_lancedb.py

CLI entry point: SQLite snapshot → LanceDB semantic index

Uses the DeclStore + SemanticIndex classes.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from decl_kg.config import load_config
from decl_kg.declkg import normalize_kind
from decl_kg.errors import DeclKGError
from decl_kg.index import DEFAULT_INDEX_KINDS, SemanticIndex, SentenceTransformerEmbedder
from decl_kg.kg import DEFAULT_TABLE
from decl_kg.logging import configure_logging
from decl_kg.store import DeclStore


def main() -> None:
    p = argparse.ArgumentParser(
        description="Build a LanceDB semantic index from an existing declkg SQLite snapshot."
    )
    p.add_argument("--root", default=None, help="Source root (default: $DECLKG_ROOT or .)")
    p.add_argument(
        "--sqlite",
        default=None,
        help="Path to the snapshot (default: $DECLKG_DB or <root>/.declkg/decls.sqlite)",
    )
    p.add_argument(
        "--lancedb",
        default=None,
        help="Directory for LanceDB (default: $DECLKG_LANCEDB or <root>/.declkg/lancedb)",
    )
    p.add_argument("--table", default=DEFAULT_TABLE, help="LanceDB table name")
    p.add_argument("--model", default=None, help="SentenceTransformer model name")
    p.add_argument("--wipe", action="store_true", help="Delete existing vectors first")
    p.add_argument(
        "--kinds",
        default=",".join(DEFAULT_INDEX_KINDS),
        help="Comma-separated declaration kinds to index",
    )
    p.add_argument("--batch", type=int, default=256, help="Embedding batch size")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = p.parse_args()

    try:
        cfg = load_config()
        configure_logging(verbose=args.verbose or cfg.verbose)
        root = Path(args.root or cfg.root or ".").resolve()
        sqlite = Path(args.sqlite) if args.sqlite else cfg.db_path or root / ".declkg" / "decls.sqlite"
        lancedb_dir = (
            Path(args.lancedb) if args.lancedb else cfg.lancedb_dir or root / ".declkg" / "lancedb"
        )
        kinds = tuple(normalize_kind(k) for k in args.kinds.split(",") if k.strip())
    except (DeclKGError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)

    if not sqlite.exists():
        print(
            f"ERROR: snapshot not found at '{sqlite}'. Run 'declkg-build-sqlite' first.",
            file=sys.stderr,
        )
        sys.exit(1)

    embedder = SentenceTransformerEmbedder(args.model or cfg.model)
    with DeclStore(sqlite) as store:
        idx = SemanticIndex(lancedb_dir, embedder=embedder, table=args.table, index_kinds=kinds)
        stats = idx.build(store, wipe=args.wipe, batch_size=args.batch)

    print(
        "OK:",
        f"indexed_rows={stats['indexed_rows']}",
        f"dim={stats['dim']}",
        f"table={stats['table']}",
        f"lancedb_dir={stats['lancedb_dir']}",
        f"kinds={','.join(stats['kinds'])}",
    )


if __name__ == "__main__":
    main()
