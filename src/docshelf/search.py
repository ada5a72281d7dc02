"""Inverted full-text index over document metadata.

Each document contributes its title, description and preview. Scoring is
BM25+ per field with per-field weights; query terms are OR-combined and can
expand to indexed terms by prefix and (optionally) by edit distance.
Ranking ties are broken by lower document id.
"""

from __future__ import annotations

import bisect
import math
import re
from collections import Counter
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

FIELDS = ("title", "description", "preview")

_TOKEN_RE = re.compile(r"[^\W_]+")

# BM25+ parameters
_K1 = 1.2
_B = 0.7
_DELTA = 0.5

_PREFIX_WEIGHT = 0.375
_FUZZY_WEIGHT = 0.45
_FUZZY_MIN_LENGTH = 5


def tokenize(text: str | None) -> list[str]:
    """Split on whitespace and punctuation, lowercase. ``"Bun.build"`` → ``["bun", "build"]``."""
    if not text:
        return []
    return _TOKEN_RE.findall(text.lower())


@dataclass(frozen=True)
class SearchHit:
    document_id: int
    score: float


@dataclass
class _FieldStats:
    total_length: int = 0
    documents: int = 0

    @property
    def average_length(self) -> float:
        return self.total_length / self.documents if self.documents else 0.0


class SearchIndex:
    """In-memory inverted index. Not thread-safe; the owning store serialises writes."""

    def __init__(
        self,
        *,
        title_boost: float = 2.0,
        max_results: int = 50,
        prefix: bool = True,
        fuzzy: bool = True,
    ) -> None:
        self.title_boost = title_boost
        self.max_results = max_results
        self.prefix = prefix
        self.fuzzy = fuzzy

        # term → document id → field → term frequency
        self._postings: dict[str, dict[int, dict[str, int]]] = {}
        # document id → field → token count
        self._field_lengths: dict[int, dict[str, int]] = {}
        self._field_stats = {name: _FieldStats() for name in FIELDS}
        # sorted vocabulary for prefix expansion
        self._terms: list[str] = []

    def __len__(self) -> int:
        return len(self._field_lengths)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._field_lengths

    def add(self, document_id: int, fields: dict[str, str | None]) -> None:
        """Index one document. Tokenises everything before mutating any structure."""
        if document_id in self._field_lengths:
            raise ValueError(f"Document {document_id} is already indexed")

        tokens = {name: tokenize(fields.get(name)) for name in FIELDS}

        lengths: dict[str, int] = {}
        for name, field_tokens in tokens.items():
            if not field_tokens:
                continue
            lengths[name] = len(field_tokens)
            stats = self._field_stats[name]
            stats.total_length += len(field_tokens)
            stats.documents += 1
            for term, frequency in Counter(field_tokens).items():
                postings = self._postings.get(term)
                if postings is None:
                    postings = self._postings[term] = {}
                    bisect.insort(self._terms, term)
                postings.setdefault(document_id, {})[name] = frequency
        self._field_lengths[document_id] = lengths

    def search(self, query: str) -> list[SearchHit]:
        """Return hits best-first, truncated to ``max_results``. Empty query → no hits."""
        query_terms = list(dict.fromkeys(tokenize(query)))
        if not query_terms or not self._field_lengths:
            return []

        scores: dict[int, float] = {}
        for query_term in query_terms:
            for term, weight in self._expand(query_term):
                self._accumulate(term, weight, scores)

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        return [
            SearchHit(document_id=document_id, score=score)
            for document_id, score in ranked[: self.max_results]
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _expand(self, query_term: str) -> list[tuple[str, float]]:
        """Map a query term to (indexed term, weight) pairs."""
        expansions: dict[str, float] = {}
        if query_term in self._postings:
            expansions[query_term] = 1.0

        if self.prefix:
            start = bisect.bisect_left(self._terms, query_term)
            for term in self._terms[start:]:
                if not term.startswith(query_term):
                    break
                if term != query_term:
                    weight = _PREFIX_WEIGHT * len(query_term) / len(term)
                    expansions[term] = max(expansions.get(term, 0.0), weight)

        if self.fuzzy and len(query_term) >= _FUZZY_MIN_LENGTH:
            for term in self._terms:
                if term in expansions:
                    continue
                distance = Levenshtein.distance(query_term, term, score_cutoff=1)
                if distance <= 1:
                    weight = _FUZZY_WEIGHT * len(query_term) / (len(term) + distance)
                    expansions[term] = weight

        return list(expansions.items())

    def _accumulate(self, term: str, weight: float, scores: dict[int, float]) -> None:
        postings = self._postings[term]
        total_documents = len(self._field_lengths)
        matching = len(postings)
        idf = math.log(1 + (total_documents - matching + 0.5) / (matching + 0.5))

        for document_id, frequencies in postings.items():
            lengths = self._field_lengths[document_id]
            score = 0.0
            for name, frequency in frequencies.items():
                average = self._field_stats[name].average_length or 1.0
                norm = 1 - _B + _B * lengths[name] / average
                tf = frequency * (_K1 + 1) / (frequency + _K1 * norm)
                boost = self.title_boost if name == "title" else 1.0
                score += boost * idf * (tf + _DELTA)
            scores[document_id] = scores.get(document_id, 0.0) + weight * score
