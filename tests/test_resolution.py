"""
Tests for catalog resolution: alias and full-text scoring, candidate
merging, decision thresholds and degradation on lookup failures.
"""
import threading
import time
from unittest.mock import Mock

import pytest

from catalog_resolver.exceptions import LookupUnavailableError
from catalog_resolver.models import Alias, AliasKind, CatalogItem
from catalog_resolver.resolution import (
    AliasMatch,
    AliasMatcher,
    CatalogResolver,
    DecisionPolicy,
    FullTextMatcher,
    TextMatch,
    create_resolver,
    merge_candidates,
    rank_candidates,
)
from catalog_resolver.schemas import Candidate, MultipleMatches, NoMatch, SingleMatch


def make_item(item_id, title_norm, brand_norm=None, model_norm=None):
    return CatalogItem(
        item_id=item_id,
        tenant_id="t",
        title=title_norm.title(),
        url=f"https://example.com/{item_id}",
        title_norm=title_norm,
        brand_norm=brand_norm,
        model_norm=model_norm,
    )


def make_alias(item_id, alias_norm, kind):
    return Alias(item_id=item_id, tenant_id="t", alias=alias_norm, alias_norm=alias_norm, kind=kind)


def make_candidate(item_id, total, alias=None, fts=0.0):
    alias = min(total, 1.0) if alias is None else alias
    return Candidate(item=make_item(item_id, item_id), alias_score=alias, fts_score=fts, total_score=total)


class TestAliasMatcher:
    """Tests for graded alias scoring."""

    def test_exact_match_scores_one(self):
        matcher = AliasMatcher()
        assert matcher.score("g3", make_alias("g3", "g3", AliasKind.MODEL_ONLY)) == (1.0, "exact")

    def test_contained_alias_scores_partial(self):
        matcher = AliasMatcher()
        alias = make_alias("g3", "iviskin g3", AliasKind.BRAND_MODEL)
        assert matcher.score("hvor mye veier iviskin g3?", alias) == (0.8, "contained")

    def test_shared_brand_alias_scores_lower(self):
        matcher = AliasMatcher()
        alias = make_alias("g3", "iviskin", AliasKind.BRAND_ONLY)
        assert matcher.score("iviskin battery", alias, shared_brand=True) == (0.5, "contained")
        assert matcher.score("iviskin battery", alias, shared_brand=False) == (0.8, "contained")

    def test_fuzzy_match_corrects_typo(self):
        matcher = AliasMatcher()
        alias = make_alias("g3", "iviskin g3", AliasKind.BRAND_MODEL)

        score, strategy = matcher.score("iviskn g3 weight", alias)

        assert strategy == "fuzzy"
        assert 0.75 < score < 1.0

    def test_fuzzy_rejects_contradicting_model_code(self):
        """A G4 alias must never fuzzily match a question that names the G3."""
        matcher = AliasMatcher()
        alias = make_alias("g4", "iviskin g4", AliasKind.BRAND_MODEL)
        assert matcher.score("iviskin g3", alias) is None

    def test_short_alias_needs_close_match(self):
        matcher = AliasMatcher()
        alias = make_alias("wix", "wix", AliasKind.BRAND_ONLY)
        assert matcher.score("what is the weather", alias) is None

    def test_unrelated_alias_does_not_match(self):
        matcher = AliasMatcher()
        alias = make_alias("pl5", "braun", AliasKind.BRAND_ONLY)
        assert matcher.score("g3 vekt", alias) is None

    def test_empty_inputs(self):
        matcher = AliasMatcher()
        assert matcher.score("", make_alias("g3", "g3", AliasKind.MODEL_ONLY)) is None
        assert matcher.score("g3", make_alias("g3", "", AliasKind.MODEL_ONLY)) is None

    def test_match_keeps_best_alias_per_item(self):
        matcher = AliasMatcher()
        aliases = [
            make_alias("g3", "iviskin", AliasKind.BRAND_ONLY),
            make_alias("g3", "g3", AliasKind.MODEL_ONLY),
            make_alias("g4", "iviskin", AliasKind.BRAND_ONLY),
            make_alias("g4", "g4", AliasKind.MODEL_ONLY),
        ]

        best = matcher.match("iviskin g3", aliases)

        assert best["g3"] == (0.8, "g3", "contained")
        assert best["g4"] == (0.5, "iviskin", "contained")

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            AliasMatcher(fuzzy_min_similarity=1.5)


class TestFullTextMatcher:
    """Tests for field relevance scoring."""

    def test_all_terms_required(self):
        matcher = FullTextMatcher()
        item = make_item("g3", "iviskin g3", "iviskin", "g3")
        assert matcher.score("g3 vekt", item) == (0.0, None)

    def test_short_field_fully_covered_scores_one(self):
        matcher = FullTextMatcher()
        item = make_item("g3", "iviskin g3", "iviskin", "g3")
        assert matcher.score("g3", item) == (1.0, "model")

    def test_score_normalized_by_field_length(self):
        matcher = FullTextMatcher()
        item = make_item("pl5", "braun silk-expert pro5", "braun", "pl5")
        score, field = matcher.score("silk", item)
        assert field == "title"
        assert score == pytest.approx(0.25)

    def test_empty_query(self):
        assert FullTextMatcher().score("", make_item("g3", "iviskin g3")) == (0.0, None)


class TestScoring:
    """Tests for merging and ranking."""

    def test_merge_combines_weighted_scores(self):
        g3 = make_item("g3", "iviskin g3")
        candidates = merge_candidates(
            [AliasMatch(item=g3, score=0.8, alias_norm="g3", strategy="contained")],
            [TextMatch(item=g3, score=0.5, field="title")],
        )

        assert len(candidates) == 1
        assert candidates[0].total_score == pytest.approx(0.8 + 0.5 * 0.7)

    def test_item_found_by_one_lookup_only(self):
        g3 = make_item("g3", "iviskin g3")
        g4 = make_item("g4", "iviskin g4")
        candidates = merge_candidates(
            [AliasMatch(item=g3, score=1.0, alias_norm="g3", strategy="exact")],
            [TextMatch(item=g4, score=1.0, field="title")],
        )

        by_id = {c.item.item_id: c for c in candidates}
        assert by_id["g3"].fts_score == 0.0
        assert by_id["g4"].alias_score == 0.0
        assert [c.item.item_id for c in candidates] == ["g3", "g4"]

    def test_ties_break_on_alias_then_title(self):
        a = Candidate(item=make_item("a", "zeta"), alias_score=0.7, fts_score=0.0, total_score=0.7)
        b = Candidate(item=make_item("b", "beta"), alias_score=0.0, fts_score=1.0, total_score=0.7)
        c = Candidate(item=make_item("c", "alpha"), alias_score=0.7, fts_score=0.0, total_score=0.7)

        assert [x.item.item_id for x in rank_candidates([a, b, c])] == ["c", "a", "b"]

    def test_raising_a_score_never_lowers_rank(self):
        items = [make_item(i, f"item {i}") for i in ("a", "b", "c")]
        alias_scores = {"a": 0.9, "b": 0.6, "c": 0.3}

        def rank_of(target, boost):
            matches = [
                AliasMatch(item=item, score=alias_scores[item.item_id] + (boost if item.item_id == target else 0),
                           alias_norm=item.title_norm, strategy="fuzzy")
                for item in items
            ]
            ranked = merge_candidates(matches, [])
            return [c.item.item_id for c in ranked].index(target)

        for target in ("a", "b", "c"):
            assert rank_of(target, 0.05) <= rank_of(target, 0.0)


class TestDecisionPolicy:
    """Tests for decision thresholds."""

    def test_no_candidates(self):
        outcome = DecisionPolicy().decide([], "q")
        assert isinstance(outcome, NoMatch)
        assert outcome.reason == "no_candidates"

    def test_clear_winner_is_single(self):
        outcome = DecisionPolicy().decide([make_candidate("a", 0.71), make_candidate("b", 0.49)], "q")

        assert isinstance(outcome, SingleMatch)
        assert outcome.winner.item.item_id == "a"
        assert outcome.runner_up_gap == pytest.approx(0.22)

    def test_small_gap_is_multiple(self):
        outcome = DecisionPolicy().decide([make_candidate("a", 0.71), make_candidate("b", 0.55)], "q")

        assert isinstance(outcome, MultipleMatches)
        assert [c.item.item_id for c in outcome.candidates] == ["a", "b"]

    def test_gap_exactly_at_threshold_is_not_single(self):
        """0.7 - 0.5 carries float noise; rounding keeps it at the boundary."""
        outcome = DecisionPolicy().decide([make_candidate("a", 0.7), make_candidate("b", 0.5)], "q")
        assert isinstance(outcome, MultipleMatches)

    def test_lone_candidate_uses_zero_runner_up(self):
        outcome = DecisionPolicy().decide([make_candidate("a", 0.75)], "q")

        assert isinstance(outcome, SingleMatch)
        assert outcome.runner_up_gap == pytest.approx(0.75)

    def test_lone_weak_candidate_is_none(self):
        outcome = DecisionPolicy().decide([make_candidate("a", 0.6)], "q")

        assert isinstance(outcome, NoMatch)
        assert outcome.reason == "low_confidence"

    def test_weak_set_is_none(self):
        outcome = DecisionPolicy().decide([make_candidate("a", 0.4), make_candidate("b", 0.3)], "q")
        assert isinstance(outcome, NoMatch)

    def test_multiple_capped_at_three(self):
        candidates = [make_candidate(i, 0.6) for i in ("a", "b", "c", "d", "e")]
        outcome = DecisionPolicy().decide(candidates, "q")

        assert isinstance(outcome, MultipleMatches)
        assert len(outcome.candidates) == 3

    def test_sorts_unordered_input(self):
        outcome = DecisionPolicy().decide([make_candidate("b", 0.3), make_candidate("a", 0.9)], "q")

        assert isinstance(outcome, SingleMatch)
        assert outcome.winner.item.item_id == "a"

    def test_inconsistent_thresholds_rejected(self):
        with pytest.raises(ValueError):
            DecisionPolicy(single_min_score=0.3, multiple_min_score=0.5)


class TestCatalogResolver:
    """End-to-end resolution against the in-memory catalog."""

    def test_model_code_query_resolves_single(self, resolver, tenant_id):
        outcome = resolver.resolve("G3 vekt", tenant_id)

        assert isinstance(outcome, SingleMatch)
        assert outcome.winner.item.item_id == "g3"
        assert outcome.query_norm == "g3 vekt"
        assert "g4" not in [c.item.item_id for c in outcome.candidates]

    def test_separated_model_code_resolves(self, resolver, tenant_id):
        outcome = resolver.resolve("Hvor lenge varer batteriet på IVISKIN G-4?", tenant_id)

        assert isinstance(outcome, SingleMatch)
        assert outcome.winner.item.item_id == "g4"

    def test_exact_brand_model(self, resolver, tenant_id):
        outcome = resolver.resolve("iviskin g4", tenant_id)

        assert isinstance(outcome, SingleMatch)
        assert outcome.winner.alias_score == 1.0
        assert outcome.winner.fts_score == 1.0

    def test_shared_brand_asks_for_clarification(self, resolver, tenant_id):
        outcome = resolver.resolve("IVISKIN", tenant_id)

        assert isinstance(outcome, MultipleMatches)
        assert [c.item.item_id for c in outcome.candidates] == ["g3", "g4"]

    def test_brand_without_models_resolves(self, resolver, tenant_id):
        outcome = resolver.resolve("wix", tenant_id)

        assert isinstance(outcome, SingleMatch)
        assert outcome.winner.item.item_id == "wix"

    def test_off_catalog_query_is_none(self, resolver, tenant_id):
        outcome = resolver.resolve("What is the weather tomorrow?", tenant_id)
        assert isinstance(outcome, NoMatch)

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query(self, resolver, tenant_id, query):
        outcome = resolver.resolve(query, tenant_id)

        assert isinstance(outcome, NoMatch)
        assert outcome.reason == "empty_query"

    def test_other_tenant_sees_nothing(self, resolver):
        assert isinstance(resolver.resolve("G3 vekt", "other-tenant"), NoMatch)

    def test_resolve_item_by_id(self, resolver, tenant_id):
        outcome = resolver.resolve_item_by_id("g4", tenant_id)

        assert isinstance(outcome, SingleMatch)
        assert outcome.winner.item.item_id == "g4"
        assert outcome.winner.alias_score == 1.0

    def test_resolve_unknown_item_by_id(self, resolver, tenant_id):
        outcome = resolver.resolve_item_by_id("missing", tenant_id)

        assert isinstance(outcome, NoMatch)
        assert outcome.reason == "not_found"

    def test_emits_telemetry(self, store, catalog, tenant_id):
        telemetry = Mock()
        resolver = create_resolver(store=store, telemetry=telemetry)

        resolver.resolve("G3 vekt", tenant_id)
        resolver.close()

        record = telemetry.emit.call_args[0][0]
        assert record["decision"] == "single"
        assert record["query_norm"] == "g3 vekt"
        assert record["top_candidates"][0]["item_id"] == "g3"
        assert record["filter_applied"] is False

    def test_telemetry_can_be_suppressed(self, store, catalog, tenant_id):
        telemetry = Mock()
        resolver = create_resolver(store=store, telemetry=telemetry)

        resolver.resolve("G3 vekt", tenant_id, emit_telemetry=False)
        resolver.close()

        telemetry.emit.assert_not_called()

    def test_broken_telemetry_does_not_fail_resolution(self, resolver, tenant_id):
        telemetry = Mock()
        telemetry.emit.side_effect = RuntimeError("sink down")
        resolver._telemetry = telemetry

        assert isinstance(resolver.resolve("G3 vekt", tenant_id), SingleMatch)


class TestLookupFailures:
    """Lookup failures degrade to NoMatch, never to an exception."""

    def _resolver(self, alias_lookup, fulltext_search, timeout=2.0):
        return CatalogResolver(alias_lookup, fulltext_search, lookup_timeout_seconds=timeout)

    def test_alias_lookup_error(self):
        alias_lookup = Mock()
        alias_lookup.lookup.side_effect = LookupUnavailableError("database is locked")
        fulltext = Mock()
        fulltext.search.return_value = []
        resolver = self._resolver(alias_lookup, fulltext)

        outcome = resolver.resolve("G3 vekt", "t")
        resolver.close()

        assert isinstance(outcome, NoMatch)
        assert outcome.reason == "lookup_unavailable"

    def test_unexpected_provider_error(self):
        alias_lookup = Mock()
        alias_lookup.lookup.return_value = []
        fulltext = Mock()
        fulltext.search.side_effect = RuntimeError("connection reset")
        resolver = self._resolver(alias_lookup, fulltext)

        outcome = resolver.resolve("G3 vekt", "t")
        resolver.close()

        assert outcome.reason == "lookup_unavailable"

    def test_slow_lookup_times_out(self):
        release = threading.Event()
        alias_lookup = Mock()
        alias_lookup.lookup.side_effect = lambda *_: release.wait(5) and []
        fulltext = Mock()
        fulltext.search.return_value = []
        resolver = self._resolver(alias_lookup, fulltext, timeout=0.05)

        try:
            outcome = resolver.resolve("G3 vekt", "t")
        finally:
            release.set()
            resolver.close()

        assert isinstance(outcome, NoMatch)
        assert outcome.reason == "lookup_unavailable"

    def test_expired_deadline_skips_lookups(self):
        alias_lookup = Mock()
        fulltext = Mock()
        resolver = self._resolver(alias_lookup, fulltext)

        outcome = resolver.resolve("G3 vekt", "t", deadline=time.monotonic() - 1)
        resolver.close()

        assert outcome.reason == "lookup_unavailable"
        alias_lookup.lookup.assert_not_called()

    def test_results_from_providers_are_merged(self):
        g3 = make_item("g3", "iviskin g3", "iviskin", "g3")
        alias_lookup = Mock()
        alias_lookup.lookup.return_value = [AliasMatch(item=g3, score=0.8, alias_norm="g3", strategy="contained")]
        fulltext = Mock()
        fulltext.search.return_value = []
        resolver = self._resolver(alias_lookup, fulltext)

        outcome = resolver.resolve("G-3 weight", "t")
        resolver.close()

        assert isinstance(outcome, SingleMatch)
        alias_lookup.lookup.assert_called_once_with("g3 weight", "t")
