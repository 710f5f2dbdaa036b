#!/usr/bin/env python3
"""
declkg_viz.py — CLI launcher for the DeclKG Streamlit explorer.

Usage:
    declkg-viz [--root PATH] [--db PATH] [--port PORT]

Launches `streamlit run app.py` from the package root.
"""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Launch the DeclKG Streamlit explorer.")
    parser.add_argument("--root", default=".", help="TypeScript source root (default: .)")
    parser.add_argument("--db", default="", help="Optional SQLite snapshot used as a cache")
    parser.add_argument("--port", default="8501", help="Streamlit server port (default: 8501)")
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Do not open a browser window automatically",
    )
    args = parser.parse_args()

    # Locate app.py: CWD first, then the package root
    app_path = Path("app.py")
    if not app_path.exists():
        app_path = Path(__file__).parent.parent.parent / "app.py"

    if not app_path.exists():
        print(
            "ERROR: Could not find app.py. Run declkg-viz from the decl_kg repository root.",
            file=sys.stderr,
        )
        sys.exit(1)

    cmd = [
        sys.executable, "-m", "streamlit", "run",
        str(app_path),
        "--server.port", args.port,
        "--",
        "--root", args.root,
    ]
    if args.db:
        cmd += ["--db", args.db]
    if args.no_browser:
        cmd[4:4] = ["--server.headless", "true"]

    print(f"Launching DeclKG Explorer on http://localhost:{args.port}")
    print(f"  app   : {app_path}")
    print(f"  root  : {args.root}")
    print("  Press Ctrl+C to stop.\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
