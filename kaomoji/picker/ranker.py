"""Filtering and fuzzy ranking of catalog entries."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
from rapidfuzz import fuzz

from .config import SearchConfig
from .models import Entry, Query

# Match tiers, best first
EXACT = 0
PREFIX = 1
SUBSTRING = 2
FUZZY = 3

_LITERAL_SIMILARITY = {EXACT: 100.0, PREFIX: 98.0, SUBSTRING: 95.0}

# Fuzzy similarity stays below every literal band
FUZZY_CEILING = 90.0


@dataclass(frozen=True)
class MatchScore:
    """How well an entry matched a text query. Lower sort_key is better."""
    tier: int
    similarity: float

    @property
    def sort_key(self) -> Tuple[int, float]:
        return self.tier, -self.similarity


def match_field(word: str, text: str) -> Tuple[int, float]:
    """Return (tier, similarity) of a lowercase word against a field value."""
    text = text.lower()
    if not text:
        return FUZZY, 0.0
    if word == text:
        return EXACT, _LITERAL_SIMILARITY[EXACT]
    if text.startswith(word):
        return PREFIX, _LITERAL_SIMILARITY[PREFIX]
    if word in text:
        return SUBSTRING, _LITERAL_SIMILARITY[SUBSTRING]
    return FUZZY, min(fuzz.ratio(word, text), FUZZY_CEILING)


class Ranker:
    """
    Applies structured filters as hard predicates, then ranks the
    survivors against the free text with field weights
    tags > category > glyph.
    """

    def __init__(self, config: Optional[SearchConfig] = None):
        self.config = config or SearchConfig()

    def rank(self, entries: Sequence[Entry], query: Query) -> List[Entry]:
        """Produce the ordered result set for a parsed query."""
        candidates = list(entries)
        if query.is_empty:
            return candidates
        if query.has_filters:
            candidates = [
                entry for entry in candidates
                if all(f.matches(entry) for f in query.filters)
            ]
        if not query.residual:
            return candidates
        return self.rank_text(candidates, query.residual)

    def rank_text(self, entries: Sequence[Entry], text: str) -> List[Entry]:
        """Fuzzy-rank entries against text; stable on ties."""
        if not text.split():
            return list(entries)

        scored = []
        for position, entry in enumerate(entries):
            score = self.score(entry, text)
            if score is not None:
                scored.append((score.sort_key, position, entry))

        scored.sort(key=lambda item: item[:2])
        return [entry for _, _, entry in scored]

    def score(self, entry: Entry, text: str) -> Optional[MatchScore]:
        """Score a single entry, or None when it does not match."""
        words = text.lower().split()
        if not words:
            return MatchScore(tier=EXACT, similarity=100.0)
        return self._score_words(entry, words)

    def _score_words(self, entry: Entry, words: List[str]) -> Optional[MatchScore]:
        worst_tier = EXACT
        total = 0.0
        for word in words:
            best = self._best_field_match(entry, word)
            if best is None:
                return None
            tier, weighted = best
            worst_tier = max(worst_tier, tier)
            total += weighted
        return MatchScore(tier=worst_tier, similarity=total / len(words))

    def _fields(self, entry: Entry) -> Iterable[Tuple[str, float]]:
        for tag in entry.tags:
            yield tag, self.config.tag_weight
        yield entry.category, self.config.category_weight
        yield entry.glyph, self.config.glyph_weight

    def _best_field_match(self, entry: Entry, word: str) -> Optional[Tuple[int, float]]:
        best = None
        for text, weight in self._fields(entry):
            tier, similarity = match_field(word, text)
            if tier == FUZZY and similarity < self.config.score_cutoff:
                continue
            candidate = (tier, similarity * weight)
            if best is None or (candidate[0], -candidate[1]) < (best[0], -best[1]):
                best = candidate
        return best
