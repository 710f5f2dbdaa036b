#!/usr/bin/env python3
"""
extractor.py

Declaration Extractor: one TypeScript file -> list of Declaration records.

Parses with tree-sitter (``tree-sitter-typescript``) and walks the
top-level statements twice:

1. collect non-exported local declarations and imports by name
2. emit every exported construct (``export <decl>``, ``export {a, b}``,
   ``export ... from``), resolving local export clauses against pass 1

Namespaces are flattened: members are emitted as ``N.member`` right after
the :class:`~decl_kg.declkg.NamespaceDecl` itself.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import dataclasses
from functools import lru_cache
from pathlib import Path

import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser

from decl_kg.declkg import (
    WILDCARD,
    ClassDecl,
    Declaration,
    EnumDecl,
    FunctionDecl,
    InterfaceDecl,
    NamespaceDecl,
    PropertyInfo,
    ReExportDecl,
    SourceFile,
    TypeAliasDecl,
    TypeParameter,
    VariableDecl,
)
from decl_kg.errors import FileParseError
from decl_kg.logging import get_logger

logger = get_logger("extractor")

# ============================================================================
# Constants
# ============================================================================

DIALECT_TYPESCRIPT = "typescript"
DIALECT_TSX = "tsx"

_FUNCTION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
}
_CLASS_TYPES = {"class_declaration", "abstract_class_declaration"}
_VARIABLE_TYPES = {"lexical_declaration", "variable_declaration"}
_NAMESPACE_TYPES = {"internal_module", "module"}

_DECLARATION_TYPES = (
    _FUNCTION_TYPES
    | _CLASS_TYPES
    | _VARIABLE_TYPES
    | _NAMESPACE_TYPES
    | {"interface_declaration", "type_alias_declaration", "enum_declaration"}
)

_METHOD_TYPES = {"method_definition", "method_signature", "abstract_method_signature"}

_LITERAL_TYPES = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
}


def dialect_for(path: str | Path) -> str:
    """Grammar to use for a file: ``tsx`` for ``.tsx``, ``typescript`` otherwise."""
    return DIALECT_TSX if str(path).endswith(".tsx") else DIALECT_TYPESCRIPT


@lru_cache(maxsize=None)
def _language(dialect: str) -> Language:
    if dialect == DIALECT_TSX:
        return Language(tsts.language_tsx())
    if dialect == DIALECT_TYPESCRIPT:
        return Language(tsts.language_typescript())
    raise ValueError(f"Unknown dialect: {dialect!r}")


# ============================================================================
# Node helpers
# ============================================================================


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _text(node: Node, src: bytes) -> str:
    return src[node.start_byte : node.end_byte].decode("utf-8")


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def _child_of_type(node: Node, *types: str) -> Node | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


def _has_child(node: Node, child_type: str) -> bool:
    return any(c.type == child_type for c in node.children)


def _annotation(node: Node | None, src: bytes) -> str | None:
    """Text of a type annotation without its leading ``:``."""
    if node is None:
        return None
    text = _text(node, src).strip()
    if text.startswith(":"):
        text = text[1:]
    return text.strip() or None


def _last_named_text(node: Node | None, src: bytes) -> str | None:
    if node is None or node.named_child_count == 0:
        return None
    return _text(node.named_children[-1], src)


def _header(node: Node, src: bytes, body: Node | None) -> str:
    """Declaration text from its first non-decorator token up to *body*."""
    start = node.start_byte
    for child in node.children:
        if child.type != "decorator":
            start = child.start_byte
            break
    end = body.start_byte if body is not None else node.end_byte
    return src[start:end].decode("utf-8").strip().rstrip(";").rstrip()


def _jsdoc(anchor: Node, src: bytes) -> str | None:
    """Description of the ``/** ... */`` comment immediately preceding *anchor*."""
    prev = anchor.prev_sibling
    if prev is None or prev.type != "comment":
        return None
    raw = _text(prev, src)
    if not raw.startswith("/**") or not raw.endswith("*/") or len(raw) < 5:
        return None
    lines = []
    for line in raw[3:-2].splitlines():
        line = line.strip()
        if line.startswith("*"):
            line = line[1:].strip()
        lines.append(line)
    doc = "\n".join(lines).strip()
    return doc or None


def _clause_names(clause: Node | None, src: bytes) -> tuple[str, ...]:
    """
    Type names listed in an extends/implements clause.

    Comments between the entries are dropped. A class ``extends_clause``
    carries each entry's ``type_arguments`` as a separate sibling, which is
    appended to the preceding name.
    """
    if clause is None:
        return ()
    names: list[str] = []
    for child in clause.named_children:
        if child.type == "comment":
            continue
        text = " ".join(_text(child, src).split())
        if child.type == "type_arguments" and names:
            names[-1] += text
        else:
            names.append(text)
    return tuple(names)


def _type_parameters(node: Node, src: bytes) -> tuple[TypeParameter, ...]:
    tps = node.child_by_field_name("type_parameters")
    if tps is None:
        return ()
    out = []
    for tp in tps.named_children:
        if tp.type != "type_parameter":
            continue
        name = tp.child_by_field_name("name")
        out.append(
            TypeParameter(
                name=_text(name, src) if name is not None else _text(tp, src),
                constraint=_last_named_text(tp.child_by_field_name("constraint"), src),
                default=_last_named_text(tp.child_by_field_name("value"), src),
            )
        )
    return tuple(out)


def _parameters(node: Node | None, src: bytes) -> tuple[str, ...]:
    if node is None:
        return ()
    return tuple(
        " ".join(_text(p, src).split()) for p in node.named_children if p.type != "comment"
    )


def _first_error_line(node: Node) -> int | None:
    if node.type == "ERROR" or node.is_missing:
        return _line(node)
    for child in node.children:
        if child.has_error or child.is_missing:
            line = _first_error_line(child)
            if line is not None:
                return line
    return None


# ============================================================================
# Variable type inference
# ============================================================================


def infer_type(value: Node | None, src: bytes) -> str:
    """
    Syntactic type of an initializer expression.

    Literals map to their primitive type, arrays and simple objects are
    inferred element-wise, function expressions render as
    ``(params) => R``, ``new C()`` as ``C`` and ``x as T`` as ``T``.
    ``x satisfies T`` is inferred from ``x``, falling back to ``T``.
    Everything else is ``unknown``.
    """
    if value is None:
        return "unknown"
    t = value.type
    if t in _LITERAL_TYPES:
        return _LITERAL_TYPES[t]
    if t == "unary_expression" and _is_negative_number(value, src):
        return "number"
    if t == "parenthesized_expression" and value.named_child_count == 1:
        return infer_type(value.named_children[0], src)
    if t == "array":
        elems = [infer_type(c, src) for c in value.named_children if c.type != "comment"]
        distinct = list(dict.fromkeys(elems))
        if not distinct:
            return "unknown[]"
        if len(distinct) == 1:
            return f"{distinct[0]}[]"
        return f"({' | '.join(distinct)})[]"
    if t == "object":
        fields = []
        for c in value.named_children:
            if c.type == "pair":
                key = c.child_by_field_name("key")
                fields.append(
                    f"{_unquote(_text(key, src))}: {infer_type(c.child_by_field_name('value'), src)}"
                )
            elif c.type == "shorthand_property_identifier":
                fields.append(f"{_text(c, src)}: unknown")
        return "{ " + "; ".join(fields) + " }" if fields else "{}"
    if t in ("arrow_function", "function_expression", "function"):
        params = value.child_by_field_name("parameters")
        if params is not None:
            ptext = " ".join(_text(params, src).split())
        else:
            single = value.child_by_field_name("parameter")
            ptext = f"({_text(single, src)})" if single is not None else "()"
        ret = _annotation(value.child_by_field_name("return_type"), src) or "unknown"
        return f"{ptext} => {ret}"
    if t == "new_expression":
        ctor = value.child_by_field_name("constructor")
        if ctor is None:
            return "unknown"
        targs = value.child_by_field_name("type_arguments")
        return _text(ctor, src) + (_text(targs, src) if targs is not None else "")
    if t == "as_expression":
        named = value.named_children
        if len(named) >= 2:
            return _text(named[-1], src)
        if named:
            # ``x as const``
            return infer_type(named[0], src)
    if t == "satisfies_expression":
        named = value.named_children
        if named:
            inner = infer_type(named[0], src)
            if inner == "unknown" and len(named) >= 2:
                return _text(named[-1], src)
            return inner
    return "unknown"


def _is_negative_number(node: Node, src: bytes) -> bool:
    op = node.child_by_field_name("operator")
    arg = node.child_by_field_name("argument")
    return op is not None and _text(op, src) == "-" and arg is not None and arg.type == "number"


def is_literal(node: Node, src: bytes) -> bool:
    """True for literal initializers and arrays / objects built only from literals."""
    t = node.type
    if t in ("string", "number", "true", "false", "null", "undefined"):
        return True
    if t == "template_string":
        return not any(c.type == "template_substitution" for c in node.named_children)
    if t == "unary_expression":
        return _is_negative_number(node, src)
    if t == "array":
        return all(is_literal(c, src) for c in node.named_children if c.type != "comment")
    if t == "object":
        for c in node.named_children:
            if c.type == "comment":
                continue
            if c.type != "pair":
                return False
            v = c.child_by_field_name("value")
            if v is None or not is_literal(v, src):
                return False
        return True
    return False


# ============================================================================
# Per-file extraction
# ============================================================================


def _unwrap(node: Node) -> Node | None:
    """Return the declaration inside ``declare ...`` / namespace statements."""
    if node.type == "ambient_declaration":
        for c in node.named_children:
            if c.type in _DECLARATION_TYPES:
                return c
        return None
    if node.type == "expression_statement":
        if node.named_child_count and node.named_children[0].type in _NAMESPACE_TYPES:
            return node.named_children[0]
        return None
    return node if node.type in _DECLARATION_TYPES else None


class _FileExtractor:
    """Stateful walk over one parsed file; use :func:`extract_declarations`."""

    def __init__(self, src: bytes, *, file: str, module: str) -> None:
        self.src = src
        self.file = file
        self.module = module
        self.decls: list[Declaration] = []
        self._functions: dict[str, int] = {}
        self._locals: dict[str, list[tuple[Node, Node]]] = {}
        self._imports: dict[str, tuple[str, str]] = {}

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def run(self, root: Node) -> list[Declaration]:
        statements = [c for c in root.named_children if c.type != "comment"]
        for stmt in statements:
            self._collect(stmt)
        for stmt in statements:
            if stmt.type == "export_statement":
                self._export(stmt)
        return self.decls

    def _collect(self, stmt: Node) -> None:
        if stmt.type == "import_statement":
            self._collect_import(stmt)
            return
        if stmt.type == "export_statement":
            return
        node = _unwrap(stmt)
        if node is None:
            return
        if node.type in _VARIABLE_TYPES:
            for d in node.named_children:
                name = d.child_by_field_name("name") if d.type == "variable_declarator" else None
                if name is not None and name.type == "identifier":
                    self._locals.setdefault(_text(name, self.src), []).append((d, stmt))
            return
        name = node.child_by_field_name("name")
        if name is not None and name.type != "string":
            self._locals.setdefault(_text(name, self.src), []).append((node, stmt))

    def _collect_import(self, stmt: Node) -> None:
        src_node = stmt.child_by_field_name("source")
        clause = _child_of_type(stmt, "import_clause")
        if clause is None:
            req = _child_of_type(stmt, "import_require_clause")
            if req is not None:
                ident = _child_of_type(req, "identifier")
                source = req.child_by_field_name("source") or src_node
                if ident is not None and source is not None:
                    self._imports[_text(ident, self.src)] = (
                        _unquote(_text(source, self.src)),
                        WILDCARD,
                    )
            return
        if src_node is None:
            return
        source = _unquote(_text(src_node, self.src))
        for child in clause.named_children:
            if child.type == "identifier":
                self._imports[_text(child, self.src)] = (source, "default")
            elif child.type == "namespace_import":
                ident = _child_of_type(child, "identifier")
                if ident is not None:
                    self._imports[_text(ident, self.src)] = (source, WILDCARD)
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name = _unquote(_text(spec.child_by_field_name("name"), self.src))
                    alias = spec.child_by_field_name("alias")
                    local = _text(alias, self.src) if alias is not None else name
                    self._imports[local] = (source, name)

    # ------------------------------------------------------------------
    # Export statements
    # ------------------------------------------------------------------

    def _export(self, stmt: Node, *, prefix: str = "", ambient: bool = False) -> list[str]:
        decl = stmt.child_by_field_name("declaration")
        if decl is not None:
            node = _unwrap(decl)
            if node is None:
                logger.debug("%s:%d: skipping export of %s", self.file, _line(stmt), decl.type)
                return []
            return self._emit(
                node,
                stmt,
                prefix=prefix,
                ambient=ambient or decl.type == "ambient_declaration",
            )
        source = stmt.child_by_field_name("source")
        if source is not None and not prefix:
            return self._re_export(stmt, _unquote(_text(source, self.src)))
        clause = _child_of_type(stmt, "export_clause")
        if clause is not None and not prefix:
            return self._export_locals(clause)
        logger.debug("%s:%d: skipping export statement", self.file, _line(stmt))
        return []

    def _re_export(self, stmt: Node, source: str) -> list[str]:
        docs = _jsdoc(stmt, self.src)
        clause = _child_of_type(stmt, "export_clause")
        ns = _child_of_type(stmt, "namespace_export")
        if clause is not None:
            names = []
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = _unquote(_text(spec.child_by_field_name("name"), self.src))
                alias_node = spec.child_by_field_name("alias")
                alias = _unquote(_text(alias_node, self.src)) if alias_node is not None else None
                shown = f"{name} as {alias}" if alias else name
                self._add_re_export(
                    alias or name,
                    imported=name,
                    source=source,
                    line=_line(spec),
                    signature=f"export {{ {shown} }} from '{source}'",
                    docs=docs,
                )
                names.append(alias or name)
            return names
        if ns is not None:
            alias = _unquote(_text(ns.named_children[-1], self.src))
            self._add_re_export(
                alias,
                imported=WILDCARD,
                source=source,
                line=_line(stmt),
                signature=f"export * as {alias} from '{source}'",
                docs=docs,
            )
            return [alias]
        self._add_re_export(
            WILDCARD,
            imported=WILDCARD,
            source=source,
            line=_line(stmt),
            signature=f"export * from '{source}'",
            docs=docs,
        )
        return [WILDCARD]

    def _add_re_export(
        self,
        name: str,
        *,
        imported: str,
        source: str,
        line: int,
        signature: str,
        docs: str | None,
    ) -> None:
        self.decls.append(
            ReExportDecl(
                name=name,
                module=self.module,
                file=self.file,
                line=line,
                signature=signature,
                docs=docs,
                source=source,
                imported_name=imported,
            )
        )

    def _export_locals(self, clause: Node) -> list[str]:
        names: list[str] = []
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            name = _unquote(_text(spec.child_by_field_name("name"), self.src))
            alias_node = spec.child_by_field_name("alias")
            exported = _unquote(_text(alias_node, self.src)) if alias_node is not None else name
            if name in self._locals:
                for node, anchor in self._locals[name]:
                    names.extend(self._emit(node, anchor, rename=exported))
            elif name in self._imports:
                source, imported = self._imports[name]
                shown = f"{name} as {exported}" if exported != name else name
                self._add_re_export(
                    exported,
                    imported=imported,
                    source=source,
                    line=_line(spec),
                    signature=f"export {{ {shown} }}",
                    docs=None,
                )
                names.append(exported)
            else:
                logger.debug("%s:%d: unresolved export %r", self.file, _line(spec), name)
        return names

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _emit(
        self,
        node: Node,
        anchor: Node,
        *,
        prefix: str = "",
        rename: str | None = None,
        ambient: bool = False,
    ) -> list[str]:
        """Emit declarations for *node*; returns the unqualified names emitted."""
        if node.type in _VARIABLE_TYPES:
            names = []
            for d in node.named_children:
                if d.type == "variable_declarator":
                    names.extend(self._emit(d, anchor, prefix=prefix, rename=rename))
            return names

        if node.type == "variable_declarator":
            name_node = node.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                logger.debug("%s:%d: skipping destructuring export", self.file, _line(node))
                return []
            name = rename or _text(name_node, self.src)
            self.decls.append(self._variable(node, anchor, prefix + name))
            return [name]

        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type == "string":
            logger.debug("%s:%d: skipping unnamed %s", self.file, _line(node), node.type)
            return []
        name = rename or _text(name_node, self.src)
        qualified = prefix + name

        if node.type in _NAMESPACE_TYPES:
            self._namespace(node, anchor, qualified, ambient=ambient)
            return [name]
        if node.type in _FUNCTION_TYPES:
            return [name] if self._function(node, anchor, qualified) else []

        if node.type == "interface_declaration":
            decl: Declaration = self._interface(node, anchor, qualified)
        elif node.type in _CLASS_TYPES:
            decl = self._class(node, anchor, qualified)
        elif node.type == "type_alias_declaration":
            decl = self._type_alias(node, anchor, qualified)
        elif node.type == "enum_declaration":
            decl = self._enum(node, anchor, qualified)
        else:
            return []
        self.decls.append(decl)
        return [name]

    def _common(self, node: Node, anchor: Node, name: str, signature: str) -> dict:
        return {
            "name": name,
            "module": self.module,
            "file": self.file,
            "line": _line(node),
            "signature": signature,
            "docs": _jsdoc(anchor, self.src),
        }

    def _interface(self, node: Node, anchor: Node, name: str) -> InterfaceDecl:
        body = node.child_by_field_name("body")
        properties, methods = self._members(body)
        return InterfaceDecl(
            **self._common(node, anchor, name, _header(node, self.src, body)),
            type_parameters=_type_parameters(node, self.src),
            extends=_clause_names(_child_of_type(node, "extends_type_clause"), self.src),
            properties=properties,
            methods=methods,
        )

    def _class(self, node: Node, anchor: Node, name: str) -> ClassDecl:
        body = node.child_by_field_name("body")
        heritage = _child_of_type(node, "class_heritage")
        extends: tuple[str, ...] = ()
        implements: tuple[str, ...] = ()
        if heritage is not None:
            extends = _clause_names(_child_of_type(heritage, "extends_clause"), self.src)
            implements = _clause_names(_child_of_type(heritage, "implements_clause"), self.src)
        properties, methods = self._class_members(body, name.rsplit(".", 1)[-1])
        return ClassDecl(
            **self._common(node, anchor, name, _header(node, self.src, body)),
            type_parameters=_type_parameters(node, self.src),
            extends=extends,
            implements=implements,
            properties=properties,
            methods=methods,
            is_abstract=node.type == "abstract_class_declaration",
        )

    def _type_alias(self, node: Node, anchor: Node, name: str) -> TypeAliasDecl:
        value = node.child_by_field_name("value")
        properties: tuple[PropertyInfo, ...] = ()
        methods: tuple[PropertyInfo, ...] = ()
        if value is not None and value.type == "object_type":
            properties, methods = self._members(value)
        return TypeAliasDecl(
            **self._common(node, anchor, name, _header(node, self.src, None)),
            type_parameters=_type_parameters(node, self.src),
            properties=properties,
            methods=methods,
        )

    def _enum(self, node: Node, anchor: Node, name: str) -> EnumDecl:
        body = node.child_by_field_name("body")
        members: list[str] = []
        if body is not None:
            for child in body.named_children:
                if child.type == "comment":
                    continue
                target = child.child_by_field_name("name") if child.type == "enum_assignment" else child
                if target is not None:
                    members.append(_unquote(_text(target, self.src)))
        return EnumDecl(
            **self._common(node, anchor, name, _header(node, self.src, body)),
            members=tuple(members),
            is_const=_has_child(node, "const"),
        )

    def _function(self, node: Node, anchor: Node, name: str) -> bool:
        """Emit or merge a function; returns False when folded into an earlier one."""
        body = node.child_by_field_name("body")
        signature = _header(node, self.src, body)
        existing = self._functions.get(name)
        if existing is not None:
            if node.type == "function_signature":
                prev = self.decls[existing]
                self.decls[existing] = dataclasses.replace(
                    prev, overloads=prev.overloads + (signature,)
                )
            return False
        self._functions[name] = len(self.decls)
        self.decls.append(
            FunctionDecl(
                **self._common(node, anchor, name, signature),
                type_parameters=_type_parameters(node, self.src),
                parameters=_parameters(node.child_by_field_name("parameters"), self.src),
                return_type=_annotation(node.child_by_field_name("return_type"), self.src),
            )
        )
        return True

    def _variable(self, declarator: Node, anchor: Node, name: str) -> VariableDecl:
        parent = declarator.parent
        kind = "var"
        if parent is not None and parent.type == "lexical_declaration":
            kind_node = parent.child_by_field_name("kind")
            kind = _text(kind_node, self.src) if kind_node is not None else "const"
        value = declarator.child_by_field_name("value")
        vtype = _annotation(declarator.child_by_field_name("type"), self.src) or infer_type(
            value, self.src
        )
        literal = _text(value, self.src) if value is not None and is_literal(value, self.src) else None
        return VariableDecl(
            **self._common(declarator, anchor, name, f"{kind} {name}: {vtype}"),
            type=vtype,
            value=literal,
            declaration_kind=kind,
        )

    def _namespace(self, node: Node, anchor: Node, name: str, *, ambient: bool) -> None:
        body = node.child_by_field_name("body")
        index = len(self.decls)
        self.decls.append(
            NamespaceDecl(**self._common(node, anchor, name, _header(node, self.src, body)))
        )
        members: list[str] = []
        prefix = f"{name}."
        for stmt in body.named_children if body is not None else ():
            if stmt.type == "export_statement":
                emitted = self._export(stmt, prefix=prefix, ambient=ambient)
            elif ambient and (inner := _unwrap(stmt)) is not None:
                # members of ``declare namespace`` are implicitly exported
                emitted = self._emit(inner, stmt, prefix=prefix, ambient=True)
            else:
                continue
            members.extend(m for m in emitted if m not in members)
        self.decls[index] = dataclasses.replace(self.decls[index], members=tuple(members))

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def _members(
        self, body: Node | None
    ) -> tuple[tuple[PropertyInfo, ...], tuple[PropertyInfo, ...]]:
        """Members of an ``interface_body`` / ``object_type``."""
        properties: list[PropertyInfo] = []
        methods: dict[str, PropertyInfo] = {}
        calls: list[PropertyInfo] = []
        if body is None:
            return (), ()
        for child in body.named_children:
            docs = _jsdoc(child, self.src)
            if child.type == "property_signature":
                properties.append(
                    PropertyInfo(
                        name=_text(child.child_by_field_name("name"), self.src),
                        type=_annotation(child.child_by_field_name("type"), self.src) or "any",
                        optional=_has_child(child, "?"),
                        readonly=_has_child(child, "readonly"),
                        docs=docs,
                    )
                )
            elif child.type == "index_signature":
                properties.append(self._index_signature(child, docs))
            elif child.type == "method_signature":
                name = _text(child.child_by_field_name("name"), self.src)
                if name not in methods:
                    methods[name] = self._method(child, name, docs)
            elif child.type in ("call_signature", "construct_signature"):
                is_new = child.type == "construct_signature"
                ret = _annotation(
                    child.child_by_field_name("type" if is_new else "return_type"), self.src
                )
                calls.append(
                    PropertyInfo(
                        name="new" if is_new else "",
                        type=ret or "any",
                        is_call_signature=True,
                        parameters=_parameters(child.child_by_field_name("parameters"), self.src),
                        return_type=ret,
                        docs=docs,
                    )
                )
        return tuple(properties), tuple(methods.values()) + tuple(calls)

    def _class_members(
        self, body: Node | None, class_name: str
    ) -> tuple[tuple[PropertyInfo, ...], tuple[PropertyInfo, ...]]:
        """Externally visible members of a ``class_body``."""
        properties: dict[str, PropertyInfo] = {}
        methods: dict[str, PropertyInfo] = {}
        setters: set[str] = set()
        if body is None:
            return (), ()
        for child in body.named_children:
            if child.type == "index_signature":
                prop = self._index_signature(child, _jsdoc(child, self.src))
                properties[prop.name] = prop
                continue
            if child.type not in _METHOD_TYPES and child.type != "public_field_definition":
                continue
            name_node = child.child_by_field_name("name")
            if name_node is None or name_node.type == "private_property_identifier":
                continue
            modifier = _child_of_type(child, "accessibility_modifier")
            if modifier is not None and _text(modifier, self.src) == "private":
                continue
            name = _text(name_node, self.src)
            docs = _jsdoc(child, self.src)

            if child.type == "public_field_definition":
                value = child.child_by_field_name("value")
                properties[name] = PropertyInfo(
                    name=name,
                    type=_annotation(child.child_by_field_name("type"), self.src)
                    or infer_type(value, self.src),
                    optional=_has_child(child, "?"),
                    readonly=_has_child(child, "readonly"),
                    docs=docs,
                )
            elif _has_child(child, "get") or _has_child(child, "set"):
                is_setter = _has_child(child, "set")
                if is_setter:
                    setters.add(name)
                    params = child.child_by_field_name("parameters")
                    first = params.named_children[0] if params is not None and params.named_children else None
                    ptype = _annotation(first.child_by_field_name("type"), self.src) if first is not None else None
                else:
                    ptype = _annotation(child.child_by_field_name("return_type"), self.src)
                prev = properties.get(name)
                properties[name] = PropertyInfo(
                    name=name,
                    type=(prev.type if prev is not None and prev.type != "any" else None)
                    or ptype
                    or "any",
                    readonly=name not in setters,
                    docs=(prev.docs if prev is not None else None) or docs,
                )
            elif name not in methods:
                method = self._method(child, name, docs)
                if name == "constructor":
                    method = dataclasses.replace(method, type=class_name)
                    for prop in self._parameter_properties(child):
                        properties.setdefault(prop.name, prop)
                methods[name] = method
        return tuple(properties.values()), tuple(methods.values())

    def _parameter_properties(self, ctor: Node) -> list[PropertyInfo]:
        """Non-private ``public``/``protected``/``readonly`` constructor parameters."""
        params = ctor.child_by_field_name("parameters")
        if params is None:
            return []
        out = []
        for param in params.named_children:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            modifier = _child_of_type(param, "accessibility_modifier")
            readonly = _has_child(param, "readonly")
            if modifier is None and not readonly:
                continue
            if modifier is not None and _text(modifier, self.src) == "private":
                continue
            pattern = param.child_by_field_name("pattern")
            if pattern is None or pattern.type != "identifier":
                continue
            out.append(
                PropertyInfo(
                    name=_text(pattern, self.src),
                    type=_annotation(param.child_by_field_name("type"), self.src)
                    or infer_type(param.child_by_field_name("value"), self.src),
                    optional=param.type == "optional_parameter",
                    readonly=readonly,
                    docs=_jsdoc(param, self.src),
                )
            )
        return out

    def _method(self, node: Node, name: str, docs: str | None) -> PropertyInfo:
        ret = _annotation(node.child_by_field_name("return_type"), self.src)
        return PropertyInfo(
            name=name,
            type=ret or "any",
            optional=_has_child(node, "?"),
            is_method=True,
            parameters=_parameters(node.child_by_field_name("parameters"), self.src),
            return_type=ret,
            docs=docs,
        )

    def _index_signature(self, node: Node, docs: str | None) -> PropertyInfo:
        type_node = node.child_by_field_name("type")
        end = type_node.start_byte if type_node is not None else node.end_byte
        key = self.src[node.start_byte : end].decode("utf-8").strip()
        readonly = key.startswith("readonly")
        if readonly:
            key = key[len("readonly") :].strip()
        return PropertyInfo(
            name=key,
            type=_annotation(type_node, self.src) or "any",
            readonly=readonly,
            is_index_signature=True,
            docs=docs,
        )


# ============================================================================
# Public API
# ============================================================================


def extract_declarations(
    source: str | bytes,
    *,
    file: str,
    module: str,
    dialect: str = DIALECT_TYPESCRIPT,
) -> list[Declaration]:
    """
    Extract the exported declarations of one source file.

    :param source: File contents (``bytes`` must be UTF-8).
    :param file: Root-relative path, recorded on every declaration.
    :param module: Module id, recorded on every declaration.
    :param dialect: ``"typescript"`` or ``"tsx"``.
    :raises FileParseError: on invalid UTF-8 or a syntax error.
    :return: Declarations in source order.
    """
    if isinstance(source, str):
        src = source.encode("utf-8")
    else:
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FileParseError(file, f"not valid UTF-8: {exc.reason}") from exc
        src = source

    tree = Parser(_language(dialect)).parse(src)
    root = tree.root_node
    if root.has_error:
        raise FileParseError(file, "syntax error", _first_error_line(root))
    return _FileExtractor(src, file=file, module=module).run(root)


def extract_file(source: SourceFile) -> list[Declaration]:
    """
    Read and extract one located file.

    :raises FileParseError: if the file cannot be read or parsed.
    """
    try:
        data = source.path.read_bytes()
    except OSError as exc:
        raise FileParseError(source.rel_path, f"unreadable: {exc}") from exc
    return extract_declarations(
        data,
        file=source.rel_path,
        module=source.module,
        dialect=dialect_for(source.rel_path),
    )
