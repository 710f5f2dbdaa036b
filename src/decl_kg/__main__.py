"""Dispatcher for ``python -m decl_kg <subcommand> [args…]``.

Allows DeclKG to be invoked without activating a virtual environment or
relying on ``poetry run``, as long as the package is installed in the
active Python environment (e.g. via ``pip install decl-kg``).

Subcommands
-----------
build-sqlite    Scan a source tree into the SQLite snapshot
build-lancedb   Build the LanceDB semantic index
query           Run a structural query (list, find, search, ...)
viz             Launch the Streamlit explorer
mcp             Start the MCP server
"""

import sys

_COMMANDS: dict[str, str] = {
    "build-sqlite": "decl_kg.build_declkg_sqlite",
    "build-lancedb": "decl_kg.build_declkg_lancedb",
    "query": "decl_kg.declkg_query",
    "viz": "decl_kg.declkg_viz",
    "mcp": "decl_kg.mcp_server",
}

_HELP = """\
usage: python -m decl_kg <subcommand> [options]

subcommands:
  build-sqlite    Scan a source tree into the SQLite snapshot
  build-lancedb   Build the LanceDB semantic index
  query           Run a structural query (list, find, search, ...)
  viz             Launch the Streamlit explorer
  mcp             Start the MCP server

Run  python -m decl_kg <subcommand> --help  for per-command options.
"""


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(_HELP, end="")
        sys.exit(0)

    subcommand = sys.argv[1]
    if subcommand not in _COMMANDS:
        print(f"error: unknown subcommand '{subcommand}'\n", file=sys.stderr)
        print(_HELP, end="", file=sys.stderr)
        sys.exit(1)

    # Rewrite argv so the target module's argparse sees a clean sys.argv:
    #   ["decl_kg", "query", "find", "Foo"]
    #   → ["python -m decl_kg query", "find", "Foo"]
    sys.argv = [f"python -m decl_kg {subcommand}", *sys.argv[2:]]

    import importlib

    mod = importlib.import_module(_COMMANDS[subcommand])
    mod.main()


if __name__ == "__main__":
    main()
