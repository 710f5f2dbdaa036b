#!/usr/bin/env python3
"""
app.py — DeclKG Streamlit Explorer

Interactive browser for the declarations of a TypeScript source tree:
  • Sidebar: source root, optional SQLite snapshot, graph display options
  • Overview tab: counts by kind and by module, top-N rankings
  • Browse tab: filter declarations by module and kind
  • Search tab: fuzzy search plus exact lookup with suggestions
  • Hierarchy tab: pyvis graph of parents and children of one type
  • Dependencies tab: pyvis graph of module re-export relationships

Run with:
    streamlit run app.py -- --root path/to/src [--db path/to/decls.sqlite]
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import tempfile
from pathlib import Path

import pandas as pd
import streamlit as st
from pyvis.network import Network

from decl_kg.config import load_config
from decl_kg.declkg import DECL_KINDS
from decl_kg.errors import DeclKGError

# ---------------------------------------------------------------------------
# Colours and shapes per declaration kind
# ---------------------------------------------------------------------------

_KIND_COLOR: dict[str, str] = {
    "interface": "#4A90D9",  # blue
    "type-alias": "#16A085",  # teal
    "enum": "#F1C40F",  # yellow
    "function": "#27AE60",  # green
    "class": "#E67E22",  # orange
    "variable": "#8E44AD",  # purple
    "namespace": "#C0392B",  # red
    "re-export": "#95A5A6",  # grey
}

_KIND_SHAPE: dict[str, str] = {
    "interface": "box",
    "type-alias": "ellipse",
    "enum": "database",
    "function": "ellipse",
    "class": "diamond",
    "variable": "dot",
    "namespace": "box",
    "re-export": "triangle",
}

_MODULE_COLOR = "#4A90D9"
_EXTERNAL_COLOR = "#95A5A6"


def _cli_defaults() -> dict:
    """Defaults from ``streamlit run app.py -- --root X --db Y`` and ``DECLKG_*``."""
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument("--root", default=None)
    p.add_argument("--db", default=None)
    args, _ = p.parse_known_args(sys.argv[1:])
    try:
        cfg = load_config()
    except DeclKGError:
        cfg = None
    root = args.root or (str(cfg.root) if cfg and cfg.root else ".")
    db = args.db or (str(cfg.db_path) if cfg and cfg.db_path else "")
    return {"root": root, "db": db}


_DEFAULTS = _cli_defaults()

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="DeclKG Explorer",
    page_icon="🧭",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
    <style>
    .stTabs [data-baseweb="tab-list"] { gap: 12px; }
    .stTabs [data-baseweb="tab"] { font-size: 1rem; padding: 6px 18px; }
    .decl-card {
        background: #1e1e2e;
        border-left: 4px solid #4A90D9;
        border-radius: 6px;
        padding: 10px 14px;
        margin-bottom: 8px;
        font-family: monospace;
        font-size: 0.85rem;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

# ---------------------------------------------------------------------------
# DeclKG helper (cached per (root, db_path))
# ---------------------------------------------------------------------------


@st.cache_resource(show_spinner="Scanning TypeScript sources…")
def _load_kg(root: str, db_path: str):
    from decl_kg import DeclKG  # local import to avoid top-level cost

    kg = DeclKG(root, db_path=db_path or None)
    kg.build()
    return kg


# ---------------------------------------------------------------------------
# pyvis graph builder
# ---------------------------------------------------------------------------


def _build_pyvis(
    nodes: list[dict],
    edges: list[dict],
    *,
    height: str = "560px",
    focus: str | None = None,
    physics: bool = True,
) -> str:
    """
    Build a pyvis Network from node/edge dicts and return the HTML string.

    Node dicts carry ``id``, ``label``, ``color``, ``shape`` and ``title``;
    edge dicts carry ``src``, ``dst`` and ``label``.  The *focus* node is
    drawn with a gold border.
    """
    net = Network(
        height=height,
        width="100%",
        bgcolor="#0e1117",
        font_color="#e0e0e0",
        directed=True,
        notebook=False,
    )
    net.set_options(
        json.dumps(
            {
                "physics": {
                    "enabled": physics,
                    "barnesHut": {
                        "gravitationalConstant": -8000,
                        "centralGravity": 0.3,
                        "springLength": 120,
                        "springConstant": 0.04,
                        "damping": 0.09,
                    },
                    "stabilization": {"iterations": 150},
                },
                "edges": {
                    "smooth": {"type": "dynamic"},
                    "arrows": {"to": {"enabled": True, "scaleFactor": 0.6}},
                    "font": {"size": 10, "color": "#aaaaaa"},
                },
                "interaction": {"hover": True, "tooltipDelay": 80, "navigationButtons": True},
            }
        )
    )

    for n in nodes:
        label = n["label"]
        if len(label) > 28:
            label = label[:25] + "…"
        is_focus = n["id"] == focus
        net.add_node(
            n["id"],
            label=label,
            title=n.get("title", n["label"]),
            color={
                "background": n["color"],
                "border": "#FFD700" if is_focus else n["color"],
                "highlight": {"background": n["color"], "border": "#FFFFFF"},
            },
            shape=n.get("shape", "dot"),
            size=18 if is_focus else 12,
            borderWidth=3 if is_focus else 1,
            font={"size": 11},
        )
    for e in edges:
        net.add_edge(e["src"], e["dst"], label=e.get("label", ""), width=1.5)

    # Write to a temp file and read back as HTML string
    with tempfile.NamedTemporaryFile(suffix=".html", delete=False, mode="w") as f:
        tmp_path = f.name
    net.save_graph(tmp_path)
    html = Path(tmp_path).read_text(encoding="utf-8")
    os.unlink(tmp_path)
    return html


def _show_graph(html: str, height: str) -> None:
    st.components.v1.html(html, height=int(height.replace("px", "")), scrolling=False)


def _decl_frame(decls: list) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "kind": d.kind,
                "name": d.name,
                "module": d.module,
                "file": d.file,
                "line": d.line,
                "signature": d.signature,
            }
            for d in decls
        ]
    )


def _render_decl(decl) -> None:
    color = _KIND_COLOR.get(decl.kind, "#95A5A6")
    st.markdown(
        f'<div class="decl-card" style="border-left-color:{color}">'
        f"<b>{decl.kind}</b> {decl.name}<br/>"
        f"<span style='color:#aaa'>{decl.file}:{decl.line} · module {decl.module}</span>"
        f"</div>",
        unsafe_allow_html=True,
    )
    st.code(decl.signature, language="typescript")
    if decl.docs:
        st.markdown(decl.docs)
    with st.expander("Raw record"):
        st.json(decl.to_dict())


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------


def _render_sidebar() -> dict:
    st.sidebar.title("🧭 DeclKG Explorer")
    st.sidebar.markdown("---")

    st.sidebar.subheader("📂 Sources")
    root = st.sidebar.text_input("Source root", value=_DEFAULTS["root"])
    db_path = st.sidebar.text_input(
        "SQLite snapshot (optional)",
        value=_DEFAULTS["db"],
        help="Reused as a cache when the source tree has not changed.",
    )
    rescan = st.sidebar.button("🔄 Rescan", help="Force a fresh scan of the source tree")

    kg = None
    try:
        kg = _load_kg(root, db_path)
        if rescan:
            kg.build(force=True)
        else:
            kg.refresh()
    except DeclKGError as exc:
        st.sidebar.error(str(exc))

    if kg is not None and kg.last_build is not None:
        b = kg.last_build
        st.sidebar.success(
            f"✅ {b.total_declarations} declarations · {b.files} files"
            + (" (snapshot)" if b.from_cache else "")
        )
        if b.failures:
            st.sidebar.warning(f"{b.failures} file(s) failed to parse")

    st.sidebar.markdown("---")
    st.sidebar.subheader("🗺️ Graph display")
    physics_on = st.sidebar.checkbox("Physics simulation", value=True)
    graph_height = st.sidebar.select_slider(
        "Graph height",
        options=["400px", "560px", "720px", "900px"],
        value="560px",
    )
    return {"kg": kg, "physics_on": physics_on, "graph_height": graph_height}


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------


def _tab_overview(cfg: dict) -> None:
    st.header("📊 Library statistics")
    kg = cfg["kg"]
    top_n = st.slider("Top-N", min_value=1, max_value=30, value=10, key="overview_top")
    stats = kg.statistics(top_n=top_n)

    st.metric("Total declarations", stats.total_declarations)
    kinds_df = pd.DataFrame(
        [{"kind": k, "count": v} for k, v in stats.by_kind.items()]
    ).set_index("kind")
    st.bar_chart(kinds_df)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.subheader("Interfaces")
        st.write(stats.top_interfaces or "—")
    with col2:
        st.subheader("Type aliases")
        st.write(stats.top_types or "—")
    with col3:
        st.subheader("Functions")
        st.write(stats.top_functions or "—")

    st.subheader("By module")
    df = pd.DataFrame(
        [{"module": m.module, "total": m.total, **m.counts} for m in stats.by_module]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)

    failures = kg.failures
    if failures:
        with st.expander(f"⚠️ Parse failures ({len(failures)})"):
            st.dataframe(
                pd.DataFrame([f.to_dict() for f in failures]),
                use_container_width=True,
                hide_index=True,
            )


def _tab_browse(cfg: dict) -> None:
    st.header("📚 Browse declarations")
    kg = cfg["kg"]
    col1, col2 = st.columns(2)
    with col1:
        module = st.selectbox("Module", options=["(all)", *kg.catalog.modules()], key="browse_mod")
    with col2:
        kind = st.selectbox("Kind", options=["(all)", *DECL_KINDS], key="browse_kind")

    decls = kg.declarations(
        None if module == "(all)" else module,
        None if kind == "(all)" else kind,
    )
    st.caption(f"**{len(decls)}** declarations")
    if not decls:
        st.info("No declarations match the current filters.")
        return
    st.dataframe(_decl_frame(decls), use_container_width=True, hide_index=True)

    names = [f"{d.name} ({d.kind}, {d.file}:{d.line})" for d in decls]
    pick = st.selectbox("Details", options=range(len(decls)), format_func=lambda i: names[i])
    _render_decl(decls[pick])


def _tab_search(cfg: dict) -> None:
    st.header("🔍 Search")
    kg = cfg["kg"]
    col1, col2 = st.columns([4, 1])
    with col1:
        query = st.text_input("Query", value="", key="search_q")
    with col2:
        limit = st.number_input("Limit", min_value=1, max_value=200, value=20, key="search_n")
    if not query.strip():
        st.info("Enter a name, a fragment of a name, or words from a doc comment.")
        return

    result = kg.lookup(query.strip())
    if result.found:
        st.success("Exact match")
        _render_decl(result.declaration)
    elif result.suggestions:
        st.warning(
            "No exact match. Did you mean: "
            + ", ".join(f"`{s.declaration.name}`" for s in result.suggestions)
        )

    hits = kg.fuzzy_search(query, int(limit))
    if not hits:
        st.info("No fuzzy matches.")
        return
    df = _decl_frame([h.declaration for h in hits])
    df.insert(0, "score", [h.score for h in hits])
    st.dataframe(df, use_container_width=True, hide_index=True)


def _tab_hierarchy(cfg: dict) -> None:
    st.header("🧬 Type hierarchy")
    kg = cfg["kg"]
    name = st.text_input("Interface or class name", value="", key="hier_name")
    if not name.strip():
        return
    h = kg.hierarchy(name.strip())
    if h is None:
        result = kg.lookup(name.strip())
        st.warning(
            f"`{name}` not found."
            + (
                " Did you mean: " + ", ".join(s.declaration.name for s in result.suggestions)
                if result.suggestions
                else ""
            )
        )
        return

    def _node(label: str) -> dict:
        d = kg.find_by_name(label)
        kind = d.kind if d is not None else None
        return {
            "id": label,
            "label": label,
            "color": _KIND_COLOR.get(kind, _EXTERNAL_COLOR),
            "shape": _KIND_SHAPE.get(kind, "dot"),
            "title": d.signature if d is not None else f"{label} (unresolved)",
        }

    focus = h.type.name
    nodes = {focus: _node(focus)}
    edges = []
    for parent in h.parents:
        nodes.setdefault(parent, _node(parent))
        edges.append({"src": focus, "dst": parent, "label": "extends"})
    for child in h.children:
        nodes.setdefault(child, _node(child))
        edges.append({"src": child, "dst": focus, "label": "extends"})

    st.caption(
        f"**{len(h.parents)}** parents · **{len(h.children)}** children"
        + (f" · unresolved: {', '.join(h.unresolved)}" if h.unresolved else "")
    )
    html = _build_pyvis(
        list(nodes.values()),
        edges,
        height=cfg["graph_height"],
        focus=focus,
        physics=cfg["physics_on"],
    )
    _show_graph(html, cfg["graph_height"])
    with st.expander("JSON"):
        st.code(h.to_json(), language="json")


def _tab_dependencies(cfg: dict) -> None:
    st.header("🔗 Module dependencies")
    kg = cfg["kg"]
    deps = kg.dependencies()
    if not deps:
        st.info("No modules found.")
        return

    nodes: dict[str, dict] = {}
    edges = []
    for module, info in deps.items():
        nodes[module] = {
            "id": module,
            "label": module,
            "color": _MODULE_COLOR,
            "shape": "box",
            "title": f"{module}: {len(info.exports)} exports",
        }
    for module, info in deps.items():
        for source in info.re_exports_from:
            nodes.setdefault(
                source,
                {
                    "id": source,
                    "label": source,
                    "color": _EXTERNAL_COLOR,
                    "shape": "triangle",
                    "title": source,
                },
            )
            edges.append({"src": module, "dst": source, "label": "re-exports"})

    html = _build_pyvis(
        list(nodes.values()),
        edges,
        height=cfg["graph_height"],
        physics=cfg["physics_on"],
    )
    _show_graph(html, cfg["graph_height"])

    df = pd.DataFrame(
        [
            {
                "module": m,
                "exports": len(info.exports),
                "re_exports_from": ", ".join(info.re_exports_from),
            }
            for m, info in deps.items()
        ]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    cfg = _render_sidebar()

    st.title("🧭 DeclKG Explorer")
    st.caption(
        "Declaration browser for TypeScript source trees. Powered by tree-sitter, "
        "Streamlit and pyvis."
    )

    if cfg["kg"] is None:
        st.warning("No source tree loaded. Set the source root in the sidebar.")
        return

    tab1, tab2, tab3, tab4, tab5 = st.tabs(
        [
            "📊 Overview",
            "📚 Browse",
            "🔍 Search",
            "🧬 Hierarchy",
            "🔗 Dependencies",
        ]
    )

    with tab1:
        _tab_overview(cfg)

    with tab2:
        _tab_browse(cfg)

    with tab3:
        _tab_search(cfg)

    with tab4:
        _tab_hierarchy(cfg)

    with tab5:
        _tab_dependencies(cfg)


if __name__ == "__main__":
    main()
