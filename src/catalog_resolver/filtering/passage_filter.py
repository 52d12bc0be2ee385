"""
Passage post-filter.

After a single winner is resolved, narrows retrieved passages to those that
mention the winner's brand and/or model, so that specifications of a sibling
product (G4 when the user asked about G3) never reach the answer step.

Stages, first non-empty wins:
1. brand and model present: passages mentioning both (brand_model)
2. model present: passages mentioning the model (model_only, fallback when
   stage 1 was attempted)
3. brand only: passages mentioning the brand (brand_model)
4. nothing survives: empty result, method none

An empty result is a refusal signal. The filter never re-ranks, rewrites or
adds passages.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from langchain_core.documents import Document

from ..models import CatalogItem
from ..normalization import extract_model_codes, normalize_text
from ..schemas import DetailedFilterResult, FilterMatchStats, FilterMethod, FilterResult

logger = logging.getLogger(__name__)

SAMPLE_MATCH_LIMIT = 3
SAMPLE_EXCERPT_LENGTH = 100


def can_filter(winner: CatalogItem) -> bool:
    """Whether the winner carries enough identity (brand or model) to filter on."""
    return bool(winner.brand_norm or winner.model_norm)


def should_use_strict_filtering(winner: CatalogItem, query: str) -> bool:
    """Strict brand+model filtering applies when both exist and the query names a model code."""
    return bool(winner.brand_norm and winner.model_norm and extract_model_codes(query))


def _mentions(passage: Document, brand_norm: Optional[str], model_norm: Optional[str]) -> Tuple[bool, bool]:
    content_norm = normalize_text(passage.page_content)
    has_brand = bool(brand_norm) and brand_norm in content_norm
    has_model = bool(model_norm) and model_norm in content_norm
    return has_brand, has_model


def filter_passages(passages: Sequence[Document], winner: CatalogItem) -> FilterResult:
    """
    Keep only passages attributable to the winning item.

    :param passages: Retrieved passages in upstream rank order
    :param winner: Resolved catalog item
    :return: FilterResult; ``kept`` preserves input order
    """
    passages = list(passages)
    original_count = len(passages)
    brand_norm = winner.brand_norm or None
    model_norm = winner.model_norm or None

    if not brand_norm and not model_norm:
        logger.info(f"Item {winner.item_id} has neither brand nor model; no passage can be attributed")
        return FilterResult(kept=(), method=FilterMethod.NONE, used_fallback=False, original_count=original_count)

    mentions = [(passage, *_mentions(passage, brand_norm, model_norm)) for passage in passages]

    attempted_brand_model = False
    if brand_norm and model_norm:
        attempted_brand_model = True
        kept = tuple(p for p, has_brand, has_model in mentions if has_brand and has_model)
        if kept:
            return FilterResult(
                kept=kept,
                method=FilterMethod.BRAND_MODEL,
                used_fallback=False,
                original_count=original_count,
            )

    if model_norm:
        kept = tuple(p for p, _, has_model in mentions if has_model)
        if kept:
            return FilterResult(
                kept=kept,
                method=FilterMethod.MODEL_ONLY,
                used_fallback=attempted_brand_model,
                original_count=original_count,
            )
    elif brand_norm:
        kept = tuple(p for p, has_brand, _ in mentions if has_brand)
        if kept:
            return FilterResult(
                kept=kept,
                method=FilterMethod.BRAND_MODEL,
                used_fallback=False,
                original_count=original_count,
            )

    return FilterResult(kept=(), method=FilterMethod.NONE, used_fallback=False, original_count=original_count)


def filter_passages_detailed(passages: Sequence[Document], winner: CatalogItem) -> DetailedFilterResult:
    """
    filter_passages plus brand/model match counts and a few excerpts, for
    debugging over-strict or over-lenient filtering.
    """
    passages = list(passages)
    result = filter_passages(passages, winner)

    brand_matches = model_matches = both_matches = neither_matches = 0
    samples: List[str] = []
    for passage in passages:
        has_brand, has_model = _mentions(passage, winner.brand_norm, winner.model_norm)
        brand_matches += has_brand
        model_matches += has_model
        both_matches += has_brand and has_model
        neither_matches += not has_brand and not has_model

        if (has_brand or has_model) and len(samples) < SAMPLE_MATCH_LIMIT:
            content = passage.page_content
            if len(content) > SAMPLE_EXCERPT_LENGTH:
                content = content[:SAMPLE_EXCERPT_LENGTH] + "..."
            samples.append(content)

    stats = FilterMatchStats(
        brand_matches=brand_matches,
        model_matches=model_matches,
        both_matches=both_matches,
        neither_matches=neither_matches,
    )
    return DetailedFilterResult(result=result, stats=stats, sample_matches=tuple(samples))


def log_filter_result(query: str, winner: CatalogItem, result: FilterResult) -> None:
    logger.info(
        f"Passage filter for '{(query or '')[:50]}' "
        f"(brand={winner.brand_norm}, model={winner.model_norm}): "
        f"kept {len(result.kept)}/{result.original_count}, "
        f"method={result.method.value}, fallback={result.used_fallback}"
    )
