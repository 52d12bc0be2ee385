"""
Decision policy for catalog resolution.

Turns ranked candidates into one of three outcomes. The thresholds are
hand-tuned; re-validate them with the evaluation harness before changing.
"""
from typing import Sequence

from ..schemas import Candidate, MultipleMatches, NoMatch, ResolutionOutcome, SingleMatch
from .scoring import rank_candidates


class DecisionPolicy:
    """
    Rules, first match wins:
    - no candidates: NoMatch
    - top >= single_min_score and gap > single_min_gap: SingleMatch
    - more than one candidate and top > multiple_min_score: MultipleMatches
    - otherwise: NoMatch
    """

    def __init__(
        self,
        single_min_score: float = 0.7,
        single_min_gap: float = 0.2,
        multiple_min_score: float = 0.4,
        max_alternatives: int = 3,
    ):
        if multiple_min_score > single_min_score:
            raise ValueError(
                f"multiple_min_score ({multiple_min_score}) must not exceed "
                f"single_min_score ({single_min_score})"
            )
        if max_alternatives < 1:
            raise ValueError(f"max_alternatives must be at least 1, got {max_alternatives}")

        self.single_min_score = single_min_score
        self.single_min_gap = single_min_gap
        self.multiple_min_score = multiple_min_score
        self.max_alternatives = max_alternatives

    def decide(self, candidates: Sequence[Candidate], query_norm: str) -> ResolutionOutcome:
        """
        :param candidates: Scored candidates (any order)
        :param query_norm: Normalized query, carried into the outcome
        :return: SingleMatch, MultipleMatches or NoMatch
        """
        ranked = rank_candidates(candidates)
        if not ranked:
            return NoMatch(query_norm=query_norm, reason="no_candidates")

        top = ranked[0].total_score
        second = ranked[1].total_score if len(ranked) > 1 else 0.0
        gap = round(top - second, 9)
        shortlist = tuple(ranked[:self.max_alternatives])

        if top >= self.single_min_score and gap > self.single_min_gap:
            return SingleMatch(
                winner=ranked[0],
                runner_up_gap=gap,
                query_norm=query_norm,
                candidates=shortlist,
            )

        if len(ranked) > 1 and top > self.multiple_min_score:
            return MultipleMatches(candidates=shortlist, query_norm=query_norm)

        return NoMatch(query_norm=query_norm, reason="low_confidence", candidates=shortlist)
