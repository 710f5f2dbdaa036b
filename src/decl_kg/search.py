#!/usr/bin/env python3
"""
search.py

Fuzzy Matcher: additive, case-insensitive scoring of declarations against
free text, with a stable ranking.

Score components (summed)::

    name == query                         +100
    name startswith query                  +60
    query inside name (not as prefix)      +50
    token inside name (token != query)     +15 each
    query inside docs                      +10
    query inside signature                  +5
    token inside docs or signature          +3 each
    distinct query trigram inside name      +4 each
    SequenceMatcher ratio >= 0.6            +20 * ratio

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable
from dataclasses import dataclass

from decl_kg.declkg import Declaration

EXACT_WEIGHT = 100.0
PREFIX_WEIGHT = 60.0
SUBSTRING_WEIGHT = 50.0
TOKEN_NAME_WEIGHT = 15.0
DOCS_WEIGHT = 10.0
SIGNATURE_WEIGHT = 5.0
TOKEN_TEXT_WEIGHT = 3.0
TRIGRAM_WEIGHT = 4.0
SIMILARITY_WEIGHT = 20.0
SIMILARITY_CUTOFF = 0.6


@dataclass(frozen=True)
class ScoredDeclaration:
    """A declaration and its fuzzy score."""

    declaration: Declaration
    score: float

    def to_dict(self) -> dict:
        return {"score": round(self.score, 3), **self.declaration.to_dict()}


def _trigrams(text: str) -> set[str]:
    return {text[i : i + 3] for i in range(len(text) - 2)}


def score_declaration(decl: Declaration, query: str) -> float:
    """
    Score one declaration against an already-normalised (trimmed, lower-case) query.

    :return: 0.0 when nothing matches.
    """
    if not query:
        return 0.0
    name = decl.name.lower()
    docs = (decl.docs or "").lower()
    signature = decl.signature.lower()
    tokens = [t for t in query.split() if t != query]

    score = 0.0
    if name == query:
        score += EXACT_WEIGHT
    if name.startswith(query):
        score += PREFIX_WEIGHT
    elif query in name:
        score += SUBSTRING_WEIGHT
    for token in tokens:
        if token in name:
            score += TOKEN_NAME_WEIGHT
    if query in docs:
        score += DOCS_WEIGHT
    if query in signature:
        score += SIGNATURE_WEIGHT
    for token in tokens:
        if token in docs or token in signature:
            score += TOKEN_TEXT_WEIGHT
    score += TRIGRAM_WEIGHT * sum(1 for tri in _trigrams(query) if tri in name)
    ratio = difflib.SequenceMatcher(None, name, query).ratio()
    if ratio >= SIMILARITY_CUTOFF:
        score += SIMILARITY_WEIGHT * ratio
    return score


def fuzzy_rank(declarations: Iterable[Declaration], query: str) -> list[ScoredDeclaration]:
    """
    Every declaration scoring above zero, best first.

    Ties keep their input order.  A blank query yields ``[]``.
    """
    q = query.strip().lower()
    if not q:
        return []
    scored = []
    for d in declarations:
        s = score_declaration(d, q)
        if s > 0:
            scored.append(ScoredDeclaration(d, s))
    scored.sort(key=lambda sd: -sd.score)
    return scored


def fuzzy_search(
    declarations: Iterable[Declaration], query: str, limit: int = 20
) -> list[ScoredDeclaration]:
    """
    The first *limit* entries of :func:`fuzzy_rank`.

    :param limit: Maximum results; ``<= 0`` yields ``[]``.
    """
    if limit <= 0:
        return []
    return fuzzy_rank(declarations, query)[:limit]
