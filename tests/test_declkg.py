"""
test_declkg.py

Tests for the declaration primitives and the source locator:
  normalize_kind, PropertyInfo, Declaration variants, declaration_from_dict,
  iter_source_files, module_id, locate_sources, tree_fingerprint
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from decl_kg.declkg import (
    DECL_KINDS,
    ClassDecl,
    EnumDecl,
    FunctionDecl,
    InterfaceDecl,
    NamespaceDecl,
    ParseFailure,
    PropertyInfo,
    ReExportDecl,
    TypeAliasDecl,
    TypeParameter,
    VariableDecl,
    declaration_from_dict,
    iter_source_files,
    locate_sources,
    module_id,
    normalize_kind,
    tree_fingerprint,
)
from decl_kg.errors import DeclKGError, RootNotFoundError

_COMMON = {"module": "core", "file": "core/a.ts", "line": 3, "signature": "x"}


def _touch(root: Path, rel: str, text: str = "") -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text)
    return p


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


def test_decl_kinds_canonical_order():
    assert DECL_KINDS == (
        "interface",
        "type-alias",
        "enum",
        "function",
        "class",
        "variable",
        "namespace",
        "re-export",
    )


def test_normalize_kind_accepts_type_alias_spellings():
    assert normalize_kind("type") == "type-alias"
    assert normalize_kind("type_alias") == "type-alias"
    assert normalize_kind(" Interface ") == "interface"


def test_normalize_kind_unknown_raises():
    with pytest.raises(ValueError):
        normalize_kind("struct")


# ---------------------------------------------------------------------------
# PropertyInfo.render
# ---------------------------------------------------------------------------


def test_property_render_plain():
    p = PropertyInfo(name="port", type="number", optional=True, readonly=True)
    assert p.render() == "readonly port?: number"


def test_property_render_method():
    p = PropertyInfo(
        name="get",
        type="string",
        is_method=True,
        parameters=("key: string",),
        return_type="string",
    )
    assert p.render() == "get(key: string): string"


def test_property_render_index_signature():
    p = PropertyInfo(name="[key: string]", type="unknown", is_index_signature=True)
    assert p.render() == "[key: string]: unknown"


# ---------------------------------------------------------------------------
# Declaration variants
# ---------------------------------------------------------------------------


def test_declaration_id_format():
    d = InterfaceDecl(name="Config", **_COMMON)
    assert d.id == "iface:core/a.ts:Config@3"


def test_declaration_is_frozen():
    d = EnumDecl(name="Color", **_COMMON)
    with pytest.raises(dataclasses.FrozenInstanceError):
        d.name = "Other"  # type: ignore[misc]


def test_interface_parents_and_member_count():
    d = InterfaceDecl(
        name="Foo",
        extends=("Bar", "Baz<T>"),
        properties=(PropertyInfo(name="a", type="string"),),
        methods=(PropertyInfo(name="m", type="void", is_method=True),),
        **_COMMON,
    )
    assert d.parents == ("Bar", "Baz<T>")
    assert d.member_count == 2


def test_class_parents_are_extends_then_implements():
    d = ClassDecl(name="C", extends=("Base",), implements=("I1", "I2"), **_COMMON)
    assert d.parents == ("Base", "I1", "I2")


def test_non_heritage_kinds_have_no_parents():
    assert FunctionDecl(name="f", **_COMMON).parents == ()
    assert VariableDecl(name="v", **_COMMON).parents == ()


def test_function_member_count_is_parameter_count():
    d = FunctionDecl(name="f", parameters=("a: string", "b?: number"), **_COMMON)
    assert d.member_count == 2


def test_to_dict_includes_kind():
    d = VariableDecl(name="VERSION", type="string", value="'1.0'", **_COMMON)
    out = d.to_dict()
    assert out["kind"] == "variable"
    assert out["name"] == "VERSION"
    assert out["declaration_kind"] == "const"


def test_declaration_from_dict_restores_nested_records():
    d = InterfaceDecl(
        name="Box",
        type_parameters=(TypeParameter(name="T", constraint="object"),),
        extends=("Base",),
        properties=(PropertyInfo(name="value", type="T", parameters=()),),
        **_COMMON,
    )
    back = declaration_from_dict(d.to_dict())
    assert back == d
    assert isinstance(back.type_parameters[0], TypeParameter)


def test_declaration_from_dict_all_kinds():
    decls = [
        InterfaceDecl(name="I", **_COMMON),
        TypeAliasDecl(name="T", **_COMMON),
        EnumDecl(name="E", members=("A", "B"), is_const=True, **_COMMON),
        FunctionDecl(name="f", parameters=("x: number",), overloads=("function f(): void",), **_COMMON),
        ClassDecl(name="C", implements=("I",), is_abstract=True, **_COMMON),
        VariableDecl(name="v", type="number", value="1", declaration_kind="let", **_COMMON),
        NamespaceDecl(name="N", members=("a",), **_COMMON),
        ReExportDecl(name="*", source="./utils", **_COMMON),
    ]
    for d in decls:
        assert declaration_from_dict(d.to_dict()) == d


def test_parse_failure_to_dict():
    f = ParseFailure(file="bad.ts", module="bad", line=2, message="syntax error")
    assert f.to_dict() == {"file": "bad.ts", "module": "bad", "line": 2, "message": "syntax error"}


# ---------------------------------------------------------------------------
# module_id
# ---------------------------------------------------------------------------


def test_module_id_root_file():
    assert module_id("index.ts") == "index"


def test_module_id_declaration_file():
    assert module_id("types.d.ts") == "types"


def test_module_id_nested_uses_top_directory():
    assert module_id("utils/a/b.ts") == "utils"


def test_module_id_tsx():
    assert module_id("App.tsx") == "App"


# ---------------------------------------------------------------------------
# Source locator
# ---------------------------------------------------------------------------


def test_iter_source_files_order_files_before_subdirs(tmp_path):
    _touch(tmp_path, "b.ts")
    _touch(tmp_path, "a.ts")
    _touch(tmp_path, "core/z.ts")
    _touch(tmp_path, "api/y.ts")
    rels = [p.relative_to(tmp_path).as_posix() for p in iter_source_files(tmp_path)]
    assert rels == ["a.ts", "b.ts", "api/y.ts", "core/z.ts"]


def test_iter_source_files_skips_dot_dirs_and_node_modules(tmp_path):
    _touch(tmp_path, ".git/x.ts")
    _touch(tmp_path, "node_modules/pkg/index.ts")
    _touch(tmp_path, "src.ts")
    rels = [p.relative_to(tmp_path).as_posix() for p in iter_source_files(tmp_path)]
    assert rels == ["src.ts"]


def test_iter_source_files_ignores_other_extensions(tmp_path):
    _touch(tmp_path, "a.js")
    _touch(tmp_path, "README.md")
    _touch(tmp_path, "a.ts")
    assert [p.name for p in iter_source_files(tmp_path)] == ["a.ts"]


def test_locate_sources_modules(tmp_path):
    _touch(tmp_path, "index.ts")
    _touch(tmp_path, "utils/strings.ts")
    sources = locate_sources(tmp_path)
    assert [(s.rel_path, s.module) for s in sources] == [
        ("index.ts", "index"),
        ("utils/strings.ts", "utils"),
    ]


def test_locate_sources_empty_root(tmp_path):
    assert locate_sources(tmp_path) == []


def test_locate_sources_missing_root_raises(tmp_path):
    with pytest.raises(RootNotFoundError) as exc_info:
        locate_sources(tmp_path / "nope")
    assert isinstance(exc_info.value, DeclKGError)
    assert isinstance(exc_info.value, FileNotFoundError)


def test_locate_sources_file_root_raises(tmp_path):
    f = _touch(tmp_path, "a.ts")
    with pytest.raises(RootNotFoundError):
        locate_sources(f)


# ---------------------------------------------------------------------------
# tree_fingerprint
# ---------------------------------------------------------------------------


def test_tree_fingerprint_stable(tmp_path):
    _touch(tmp_path, "a.ts", "export const a = 1;\n")
    assert tree_fingerprint(locate_sources(tmp_path)) == tree_fingerprint(
        locate_sources(tmp_path)
    )


def test_tree_fingerprint_changes_on_new_file(tmp_path):
    _touch(tmp_path, "a.ts", "export const a = 1;\n")
    before = tree_fingerprint(locate_sources(tmp_path))
    _touch(tmp_path, "b.ts", "export const b = 2;\n")
    assert tree_fingerprint(locate_sources(tmp_path)) != before


def test_tree_fingerprint_changes_on_size(tmp_path):
    p = _touch(tmp_path, "a.ts", "export const a = 1;\n")
    before = tree_fingerprint(locate_sources(tmp_path))
    p.write_text("export const a = 12345;\n")
    assert tree_fingerprint(locate_sources(tmp_path)) != before
