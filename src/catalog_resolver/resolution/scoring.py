"""
Merge alias and full-text matches into ranked candidates.
"""
from typing import Dict, Iterable, List

from ..schemas import Candidate
from .lookup import AliasMatch, TextMatch

ALIAS_WEIGHT = 1.0
FTS_WEIGHT = 0.7


def total_score(
    alias_score: float,
    fts_score: float,
    alias_weight: float = ALIAS_WEIGHT,
    fts_weight: float = FTS_WEIGHT,
) -> float:
    return alias_score * alias_weight + fts_score * fts_weight


def candidate_order(candidate: Candidate) -> tuple:
    """Sort key: total desc, alias desc, title_norm asc, item_id asc."""
    return (
        -candidate.total_score,
        -candidate.alias_score,
        candidate.item.title_norm,
        candidate.item.item_id,
    )


def rank_candidates(candidates: Iterable[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=candidate_order)


def merge_candidates(
    alias_matches: Iterable[AliasMatch],
    text_matches: Iterable[TextMatch],
    alias_weight: float = ALIAS_WEIGHT,
    fts_weight: float = FTS_WEIGHT,
) -> List[Candidate]:
    """
    Combine both lookups by item and rank the result.

    An item found by only one lookup scores 0.0 on the other. Duplicate
    matches for the same item keep their highest score.

    :return: Candidates ordered best first
    """
    scores: Dict[str, dict] = {}

    for match in alias_matches:
        entry = scores.setdefault(match.item.item_id, {"item": match.item, "alias": 0.0, "fts": 0.0})
        entry["alias"] = max(entry["alias"], match.score)

    for match in text_matches:
        entry = scores.setdefault(match.item.item_id, {"item": match.item, "alias": 0.0, "fts": 0.0})
        entry["fts"] = max(entry["fts"], match.score)

    candidates = [
        Candidate(
            item=entry["item"],
            alias_score=entry["alias"],
            fts_score=entry["fts"],
            total_score=total_score(entry["alias"], entry["fts"], alias_weight, fts_weight),
        )
        for entry in scores.values()
        if entry["alias"] > 0 or entry["fts"] > 0
    ]
    return rank_candidates(candidates)
