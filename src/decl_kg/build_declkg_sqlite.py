#!/usr/bin/env python3
"""
build_declkg_sqlite.py

CLI entry point: source tree → tree-sitter → SQLite snapshot

Uses the DeclKG engine so the snapshot carries the tree fingerprint.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from decl_kg.config import load_config
from decl_kg.errors import DeclKGError
from decl_kg.kg import DeclKG
from decl_kg.logging import configure_logging


def main() -> None:
    p = argparse.ArgumentParser(
        description="Extract TypeScript declarations from a source tree and store them in SQLite."
    )
    p.add_argument("--root", default=None, help="Source root (default: $DECLKG_ROOT or .)")
    p.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: $DECLKG_DB or <root>/.declkg/decls.sqlite)",
    )
    p.add_argument("--workers", type=int, default=None, help="Extraction threads")
    p.add_argument("--timeout", type=float, default=None, help="Scan budget in seconds")
    p.add_argument("--force", action="store_true", help="Rescan even if the snapshot is current")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    args = p.parse_args()

    try:
        cfg = load_config()
        configure_logging(verbose=args.verbose or cfg.verbose, log_file=args.log_file)
        root = Path(args.root or cfg.root or ".").resolve()
        db = Path(args.db) if args.db else cfg.db_path or root / ".declkg" / "decls.sqlite"
        with DeclKG(
            root,
            extensions=cfg.extensions,
            workers=args.workers or cfg.workers,
            scan_timeout=args.timeout if args.timeout is not None else cfg.scan_timeout,
            db_path=db,
        ) as kg:
            stats = kg.build(force=args.force)
    except DeclKGError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    print(
        f"OK: declarations={stats.total_declarations} files={stats.files} "
        f"failures={stats.failures} cached={stats.from_cache} db={db}"
    )


if __name__ == "__main__":
    main()
