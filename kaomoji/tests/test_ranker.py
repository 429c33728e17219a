"""Tests for filtering and fuzzy ranking."""

import pytest

from kaomoji.picker.config import SearchConfig
from kaomoji.picker.models import Entry
from kaomoji.picker.query import parse_query
from kaomoji.picker.ranker import Ranker, match_field, EXACT, PREFIX, SUBSTRING, FUZZY


@pytest.fixture
def ranker():
    return Ranker(SearchConfig())


def rank(ranker, entries, raw):
    return ranker.rank(entries, parse_query(raw))


def glyphs(entries):
    return [e.glyph for e in entries]


class TestMatchField:
    """Literal tiers and fuzzy similarity."""

    def test_tiers(self):
        assert match_field("happy", "happy")[0] == EXACT
        assert match_field("hap", "happy")[0] == PREFIX
        assert match_field("app", "happy")[0] == SUBSTRING
        assert match_field("hapy", "happy")[0] == FUZZY

    def test_case_insensitive_field(self):
        assert match_field("joy", "Joy")[0] == EXACT

    def test_fuzzy_stays_below_literal_band(self):
        _, similarity = match_field("happyy", "happy")
        assert similarity <= 90


class TestUnfilteredQueries:
    """Queries without cat:/tag: tokens."""

    def test_empty_query_returns_full_catalog_in_order(self, ranker, happy, sad):
        assert rank(ranker, [sad, happy], "") == [sad, happy]
        assert rank(ranker, [sad, happy], "   ") == [sad, happy]

    def test_tag_search(self, ranker, happy, sad):
        assert rank(ranker, [happy, sad], "happy") == [happy]

    def test_typo_is_tolerated(self, ranker, happy, sad):
        assert rank(ranker, [sad, happy], "hapy") == [happy]

    def test_distant_text_is_excluded(self, ranker, happy, sad):
        assert rank(ranker, [happy, sad], "zzzzqq") == []

    def test_literal_matches_outrank_fuzzy(self, ranker):
        fuzzy = Entry(glyph="(a)", tags=["brush"], category="X")
        prefix = Entry(glyph="(b)", tags=["blusher"], category="X")
        exact = Entry(glyph="(c)", tags=["blush"], category="X")
        assert rank(ranker, [fuzzy, prefix, exact], "blush") == [exact, prefix, fuzzy]

    def test_tags_outrank_category_outrank_glyph(self, ranker):
        by_glyph = Entry(glyph="happy!", tags=[], category="Other")
        by_category = Entry(glyph="(x)", tags=[], category="Happy")
        by_tag = Entry(glyph="(y)", tags=["happy"], category="Joy")
        result = rank(ranker, [by_glyph, by_category, by_tag], "happy")
        assert result == [by_tag, by_category, by_glyph]

    def test_ties_keep_catalog_order(self, ranker):
        first = Entry(glyph="(1)", tags=["cat"], category="Animals")
        second = Entry(glyph="(2)", tags=["cat"], category="Animals")
        assert rank(ranker, [first, second], "cat") == [first, second]
        assert rank(ranker, [second, first], "cat") == [second, first]

    def test_every_word_must_match(self, ranker):
        both = Entry(glyph="(1)", tags=["happy", "blush"], category="Joy")
        one = Entry(glyph="(2)", tags=["happy"], category="Joy")
        assert rank(ranker, [one, both], "happy blush") == [both]

    def test_glyph_text_is_searchable(self, ranker, happy, sad):
        assert rank(ranker, [happy, sad], "T_T") == [sad]


class TestStructuredQueries:
    """Queries with cat:/tag: filters."""

    @pytest.fixture
    def catalog(self):
        return [
            Entry(glyph="(1)", tags=["blush", "happyish"], category="Joy"),
            Entry(glyph="(2)", tags=["sad"], category="Sadness"),
            Entry(glyph="(3)", tags=["blush", "happy"], category="Joy"),
            Entry(glyph="(4)", tags=["happy"], category="Joy"),
            Entry(glyph="(5)", tags=["blush", "happy"], category="Love"),
        ]

    def test_category_filter_keeps_catalog_order(self, ranker, catalog):
        assert glyphs(rank(ranker, catalog, "cat:Joy")) == ["(1)", "(3)", "(4)"]

    def test_category_filter_is_case_insensitive(self, ranker, catalog):
        assert glyphs(rank(ranker, catalog, "cat:JOY")) == ["(1)", "(3)", "(4)"]

    def test_filters_combine_with_and(self, ranker, catalog):
        assert glyphs(rank(ranker, catalog, "cat:joy tag:blush")) == ["(1)", "(3)"]

    def test_filters_are_exact_not_fuzzy(self, ranker, catalog):
        assert rank(ranker, catalog, "tag:happ") == []

    def test_residual_reranks_filtered_subset(self, ranker, catalog):
        result = rank(ranker, catalog, "cat:Joy tag:blush happy")
        assert glyphs(result) == ["(3)", "(1)"]

    def test_residual_results_are_subset_of_filtered(self, ranker, catalog):
        filtered = rank(ranker, catalog, "tag:happy")
        ranked = rank(ranker, catalog, "tag:happy blush")
        assert set(glyphs(ranked)) <= set(glyphs(filtered))
        assert glyphs(ranked) == ["(3)", "(5)"]

    def test_empty_filter_value_matches_nothing(self, ranker, catalog):
        assert rank(ranker, catalog, "cat:!!!") == []
        assert rank(ranker, catalog, "happy tag:") == []

    def test_unknown_category_is_tolerated(self, ranker):
        odd = Entry(glyph="(?)", tags=["odd"], category="Mystery Box")
        assert rank(ranker, [odd], "odd") == [odd]
        assert rank(ranker, [odd], "cat:mystery") == []


def test_score_orders_literal_before_fuzzy(ranker, happy):
    exact = ranker.score(happy, "happy")
    fuzzy = ranker.score(happy, "hapy")
    assert exact.tier == EXACT
    assert fuzzy.tier == FUZZY
    assert exact.sort_key < fuzzy.sort_key
    assert ranker.score(happy, "zzzzqq") is None


def test_indic_tag_filter_matches(ranker):
    cat = Entry(glyph="(=^･ω･^=)", tags=["बिल्ली"], category="Animals")
    assert rank(ranker, [cat], "tag:बिल्ली") == [cat]
    assert rank(ranker, [cat], "tag:बलल") == []
