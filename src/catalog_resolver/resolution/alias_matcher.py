"""
Graded alias matching using rapidfuzz.

Scoring per alias, strongest first:
- exact: normalized alias equals the normalized query (1.0)
- contained: every alias token occurs in the query (0.8; 0.5 for a
  brand-only alias that several items share)
- fuzzy: best rapidfuzz ratio against the whole query or any run of query
  tokens as long as the alias, above the similarity floor (the similarity
  itself; capped like a contained hit for shared brand aliases)

A fuzzy hit is rejected when the alias names a model code and the query
names other model codes only: "iviskin g4" must never fuzzily match a
question about the g3.
"""
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from rapidfuzz import fuzz

from ..models import Alias, AliasKind
from ..normalization import extract_model_codes

_TOKEN_RE = re.compile(r"\w+")


def tokenize(text: Optional[str]) -> List[str]:
    """Split normalized text into word tokens."""
    if not text:
        return []
    return _TOKEN_RE.findall(text)


class AliasMatcher:
    """
    Scores normalized aliases against a normalized query.

    Usage:
        matcher = AliasMatcher()
        best = matcher.match("g3 vekt", aliases)
        score, alias_norm, strategy = best["item-id"]
    """

    def __init__(
        self,
        contained_score: float = 0.8,
        shared_brand_score: float = 0.5,
        fuzzy_min_similarity: float = 0.75,
        short_alias_fuzzy_min_similarity: float = 0.85,
        short_alias_max_length: int = 4,
    ):
        """
        :param contained_score: Score when all alias tokens occur in the query
        :param shared_brand_score: Contained score for a brand alias shared by several items
        :param fuzzy_min_similarity: Similarity a fuzzy hit must exceed
        :param short_alias_fuzzy_min_similarity: Lower floor for short aliases ("wix", "g3")
        :param short_alias_max_length: Longest alias treated as short
        """
        for name, value in (
            ("contained_score", contained_score),
            ("shared_brand_score", shared_brand_score),
            ("fuzzy_min_similarity", fuzzy_min_similarity),
            ("short_alias_fuzzy_min_similarity", short_alias_fuzzy_min_similarity),
        ):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")

        self.contained_score = contained_score
        self.shared_brand_score = shared_brand_score
        self.fuzzy_min_similarity = fuzzy_min_similarity
        self.short_alias_fuzzy_min_similarity = short_alias_fuzzy_min_similarity
        self.short_alias_max_length = short_alias_max_length

    def score(
        self,
        query_norm: str,
        alias: Alias,
        shared_brand: bool = False,
    ) -> Optional[Tuple[float, str]]:
        """
        Score one alias.

        :param query_norm: Normalized query
        :param alias: Alias with its normalized form
        :param shared_brand: Whether this brand-only alias belongs to several items
        :return: (score, strategy) or None when the alias does not match
        """
        alias_norm = alias.alias_norm
        if not query_norm or not alias_norm:
            return None

        if alias_norm == query_norm:
            return 1.0, "exact"

        alias_tokens = tokenize(alias_norm)
        query_tokens = tokenize(query_norm)
        shared = alias.kind == AliasKind.BRAND_ONLY and shared_brand

        if alias_tokens and set(alias_tokens) <= set(query_tokens):
            if shared:
                return self.shared_brand_score, "contained"
            return self.contained_score, "contained"

        if _contradicts_model_code(alias_norm, query_norm):
            return None

        similarity = _best_similarity(alias_norm, alias_tokens, query_norm, query_tokens)
        if len(alias_norm) <= self.short_alias_max_length:
            floor = self.short_alias_fuzzy_min_similarity
        else:
            floor = self.fuzzy_min_similarity

        if similarity > floor:
            if shared:
                similarity = min(similarity, self.shared_brand_score)
            return similarity, "fuzzy"

        return None

    def match(
        self,
        query_norm: str,
        aliases: Iterable[Alias],
    ) -> Dict[str, Tuple[float, str, str]]:
        """
        Best alias hit per item.

        :param query_norm: Normalized query
        :param aliases: All aliases of one tenant
        :return: item_id -> (score, alias_norm, strategy)
        """
        aliases = list(aliases)
        shared = _shared_brand_aliases(aliases)

        best: Dict[str, Tuple[float, str, str]] = {}
        for alias in aliases:
            is_shared = alias.kind == AliasKind.BRAND_ONLY and alias.alias_norm in shared
            result = self.score(query_norm, alias, shared_brand=is_shared)
            if result is None:
                continue

            score, strategy = result
            current = best.get(alias.item_id)
            if current is None or score > current[0]:
                best[alias.item_id] = (score, alias.alias_norm, strategy)

        return best


def _shared_brand_aliases(aliases: List[Alias]) -> Set[str]:
    owners: Dict[str, Set[str]] = defaultdict(set)
    for alias in aliases:
        if alias.kind == AliasKind.BRAND_ONLY:
            owners[alias.alias_norm].add(alias.item_id)
    return {alias_norm for alias_norm, items in owners.items() if len(items) > 1}


def _best_similarity(
    alias_norm: str,
    alias_tokens: List[str],
    query_norm: str,
    query_tokens: List[str],
) -> float:
    best = fuzz.ratio(alias_norm, query_norm)
    width = len(alias_tokens)
    if width:
        alias_text = " ".join(alias_tokens)
        for start in range(len(query_tokens) - width + 1):
            window = " ".join(query_tokens[start:start + width])
            best = max(best, fuzz.ratio(alias_text, window))
    return best / 100.0


def _contradicts_model_code(alias_norm: str, query_norm: str) -> bool:
    alias_codes = set(extract_model_codes(alias_norm))
    if not alias_codes:
        return False
    query_codes = set(extract_model_codes(query_norm))
    return bool(query_codes) and not (alias_codes & query_codes)
