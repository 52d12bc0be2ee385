"""
Resolution record for telemetry.

One record per resolution (optionally with the passage filter outcome), used
to tune thresholds and to audit refusals.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..schemas import FilterResult, NoMatch, ResolutionOutcome


@dataclass
class ResolutionRecord:
    """
    Append-only telemetry record.

    Tracks:
    - Original and normalized query
    - Decision and, for NoMatch, its reason
    - Top candidate scores
    - Passage filter method, fallback and kept/original counts
    """
    tenant_id: str
    query: str
    query_norm: str
    decision: str
    reason: Optional[str] = None
    top_candidates: List[dict] = field(default_factory=list)
    filter_applied: bool = False
    filter_method: Optional[str] = None
    used_fallback: Optional[bool] = None
    kept_passages: Optional[int] = None
    original_passages: Optional[int] = None

    @classmethod
    def from_outcome(
        cls,
        tenant_id: str,
        query: str,
        outcome: ResolutionOutcome,
        filter_result: Optional[FilterResult] = None,
        max_candidates: int = 3,
    ) -> "ResolutionRecord":
        record = cls(
            tenant_id=tenant_id,
            query=query or "",
            query_norm=outcome.query_norm,
            decision=outcome.decision,
            reason=outcome.reason if isinstance(outcome, NoMatch) else None,
            top_candidates=[c.to_dict() for c in outcome.candidates[:max_candidates]],
        )

        if filter_result is not None:
            record.filter_applied = True
            record.filter_method = filter_result.method.value
            record.used_fallback = filter_result.used_fallback
            record.kept_passages = len(filter_result.kept)
            record.original_passages = filter_result.original_count

        return record

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "tenant_id": self.tenant_id,
            "query": self.query,
            "query_norm": self.query_norm,
            "decision": self.decision,
            "reason": self.reason,
            "top_candidates": list(self.top_candidates),
            "filter_applied": self.filter_applied,
            "filter_method": self.filter_method,
            "used_fallback": self.used_fallback,
            "kept_passages": self.kept_passages,
            "original_passages": self.original_passages,
        }
