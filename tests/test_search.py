"""
test_search.py

Tests for the fuzzy matcher: score_declaration, fuzzy_rank, fuzzy_search.
"""

from __future__ import annotations

from decl_kg.declkg import FunctionDecl, InterfaceDecl, VariableDecl
from decl_kg.search import (
    EXACT_WEIGHT,
    ScoredDeclaration,
    fuzzy_rank,
    fuzzy_search,
    score_declaration,
)


def _decl(name: str, *, docs: str | None = None, signature: str | None = None, cls=InterfaceDecl):
    return cls(
        name=name,
        module="m",
        file="m.ts",
        line=1,
        signature=signature or f"interface {name}",
        docs=docs,
    )


_DECLS = [
    _decl("ClientOptions", docs="Options for the HTTP client."),
    _decl("Client"),
    _decl("RetryPolicy", docs="Controls client retries."),
    _decl("Nopal"),
    _decl("parseConfig", cls=FunctionDecl, signature="function parseConfig(s: string): Config"),
    _decl("VERSION", cls=VariableDecl, signature="const VERSION: string"),
]


# ---------------------------------------------------------------------------
# score_declaration
# ---------------------------------------------------------------------------


def test_exact_match_scores_highest():
    exact = score_declaration(_decl("Client"), "client")
    prefix = score_declaration(_decl("ClientOptions"), "client")
    assert exact > prefix
    assert exact >= EXACT_WEIGHT


def test_prefix_beats_substring():
    prefix = score_declaration(_decl("ClientOptions"), "client")
    substring = score_declaration(_decl("HttpClientX"), "client")
    assert prefix > substring > 0


def test_docs_and_signature_contribute():
    assert score_declaration(_decl("Zzz", docs="handles retries"), "retries") > 0
    assert (
        score_declaration(_decl("Zzz", signature="function zzz(): Retries"), "retries") > 0
    )


def test_no_match_scores_zero():
    assert score_declaration(_decl("Alpha"), "qqqq") == 0.0


def test_empty_query_scores_zero():
    assert score_declaration(_decl("Alpha"), "") == 0.0


# ---------------------------------------------------------------------------
# fuzzy_rank / fuzzy_search
# ---------------------------------------------------------------------------


def test_rank_is_case_insensitive():
    assert [s.declaration.name for s in fuzzy_rank(_DECLS, "CLIENT")][:2] == [
        "Client",
        "ClientOptions",
    ]


def test_rank_sorted_descending():
    ranked = fuzzy_rank(_DECLS, "client")
    scores = [s.score for s in ranked]
    assert scores == sorted(scores, reverse=True)
    assert all(s > 0 for s in scores)


def test_rank_ties_keep_input_order():
    a = _decl("Same", cls=FunctionDecl, signature="x")
    b = _decl("Same", cls=VariableDecl, signature="x")
    ranked = fuzzy_rank([a, b], "same")
    assert [s.declaration for s in ranked] == [a, b]


def test_blank_query_returns_empty():
    assert fuzzy_rank(_DECLS, "   ") == []
    assert fuzzy_search(_DECLS, "") == []


def test_trigram_suggestion():
    names = [s.declaration.name for s in fuzzy_search(_DECLS, "Nop", 5)]
    assert "Nopal" in names


def test_limit_zero_or_negative():
    assert fuzzy_search(_DECLS, "client", 0) == []
    assert fuzzy_search(_DECLS, "client", -3) == []


def test_limit_monotonic():
    previous: list = []
    for n in range(1, 8):
        current = [s.declaration for s in fuzzy_search(_DECLS, "c", n)]
        assert current[: len(previous)] == previous
        assert len(current) <= n
        previous = current


def test_scored_declaration_to_dict():
    sd = ScoredDeclaration(_decl("Client"), 123.45678)
    d = sd.to_dict()
    assert d["score"] == 123.457
    assert d["name"] == "Client"
    assert d["kind"] == "interface"
