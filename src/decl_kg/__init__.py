"""
decl_kg: A declaration knowledge graph for TypeScript source trees.

tree-sitter extraction → in-memory index → SQLite snapshot → LanceDB (optional).

Public API
----------
Primary entry point::

    from decl_kg import DeclKG

    kg = DeclKG("/path/to/src", db_path=".declkg/decls.sqlite")
    stats = kg.build()
    kg.find_by_name("ClientOptions")
    kg.fuzzy_search("retry", limit=5)
    kg.hierarchy("BaseClient")
    kg.statistics().to_json()

Individual layers::

    from decl_kg import DeclGraph, DeclarationIndex, DeclStore, SemanticIndex

Analyses (take an index explicitly)::

    from decl_kg import resolve_hierarchy, analyze_dependencies, compute_statistics

Declaration records::

    from decl_kg import Declaration, InterfaceDecl, ClassDecl, FunctionDecl, ...
"""

__version__ = "0.1.0"
__author__ = "Eric G. Suchanek, PhD"

# Declaration records and source location
from decl_kg.declkg import (
    DECL_KINDS,
    ClassDecl,
    Declaration,
    EnumDecl,
    FunctionDecl,
    InterfaceDecl,
    NamespaceDecl,
    ParseFailure,
    PropertyInfo,
    ReExportDecl,
    SourceFile,
    TypeAliasDecl,
    TypeParameter,
    VariableDecl,
    declaration_from_dict,
    locate_sources,
    module_id,
)
from decl_kg.errors import (
    ConfigError,
    DeclKGError,
    FileParseError,
    RootNotFoundError,
    ScanTimeoutError,
)
from decl_kg.extractor import extract_declarations

# Layered classes
from decl_kg.graph import DeclGraph, ExtractionResult, extract_tree
from decl_kg.catalog import DeclarationIndex
from decl_kg.search import ScoredDeclaration, fuzzy_rank, fuzzy_search
from decl_kg.analysis import (
    DependencyInfo,
    Hierarchy,
    LibraryStatistics,
    ModuleStatistics,
    analyze_dependencies,
    compute_statistics,
    resolve_hierarchy,
)
from decl_kg.store import DeclStore
from decl_kg.index import Embedder, SemanticHit, SemanticIndex, SentenceTransformerEmbedder

# Orchestrator + result types
from decl_kg.kg import BuildStats, DeclKG, LookupResult

__all__ = [
    # records
    "DECL_KINDS",
    "Declaration",
    "InterfaceDecl",
    "TypeAliasDecl",
    "EnumDecl",
    "FunctionDecl",
    "ClassDecl",
    "VariableDecl",
    "NamespaceDecl",
    "ReExportDecl",
    "PropertyInfo",
    "TypeParameter",
    "ParseFailure",
    "SourceFile",
    "declaration_from_dict",
    "locate_sources",
    "module_id",
    # errors
    "DeclKGError",
    "RootNotFoundError",
    "FileParseError",
    "ScanTimeoutError",
    "ConfigError",
    # layers
    "extract_declarations",
    "extract_tree",
    "ExtractionResult",
    "DeclGraph",
    "DeclarationIndex",
    "DeclStore",
    "Embedder",
    "SentenceTransformerEmbedder",
    "SemanticIndex",
    "SemanticHit",
    # analyses
    "ScoredDeclaration",
    "fuzzy_rank",
    "fuzzy_search",
    "Hierarchy",
    "DependencyInfo",
    "ModuleStatistics",
    "LibraryStatistics",
    "resolve_hierarchy",
    "analyze_dependencies",
    "compute_statistics",
    # orchestrator
    "DeclKG",
    "BuildStats",
    "LookupResult",
]
