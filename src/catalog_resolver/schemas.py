from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from langchain_core.documents import Document

from .models import CatalogItem


@dataclass(frozen=True)
class Candidate:
    """A catalog item scored against one query. Never persisted."""
    item: CatalogItem
    alias_score: float
    fts_score: float
    total_score: float

    def __post_init__(self):
        for name in ("alias_score", "fts_score"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")

    def to_dict(self) -> dict:
        return {
            "item_id": self.item.item_id,
            "title": self.item.title,
            "alias_score": round(self.alias_score, 4),
            "fts_score": round(self.fts_score, 4),
            "total_score": round(self.total_score, 4),
        }


@dataclass(frozen=True)
class SingleMatch:
    """One clear winner, separated from the runner-up."""
    winner: Candidate
    runner_up_gap: float
    query_norm: str
    candidates: Tuple[Candidate, ...] = ()

    decision = "single"


@dataclass(frozen=True)
class MultipleMatches:
    """Several plausible items; the caller should ask for clarification."""
    candidates: Tuple[Candidate, ...]
    query_norm: str

    decision = "multiple"


@dataclass(frozen=True)
class NoMatch:
    """No item can be named safely."""
    query_norm: str
    reason: str = "no_candidates"
    candidates: Tuple[Candidate, ...] = ()

    decision = "none"


ResolutionOutcome = Union[SingleMatch, MultipleMatches, NoMatch]


class FilterMethod(str, Enum):
    BRAND_MODEL = "brand_model"
    MODEL_ONLY = "model_only"
    NONE = "none"


@dataclass(frozen=True)
class FilterResult:
    """
    Result of the passage post-filter.

    An empty ``kept`` is a refusal signal, never "no filtering needed".
    """
    kept: Tuple[Document, ...]
    method: FilterMethod
    used_fallback: bool
    original_count: int

    @property
    def exhausted(self) -> bool:
        return not self.kept


@dataclass(frozen=True)
class FilterMatchStats:
    brand_matches: int = 0
    model_matches: int = 0
    both_matches: int = 0
    neither_matches: int = 0


@dataclass(frozen=True)
class DetailedFilterResult:
    result: FilterResult
    stats: FilterMatchStats
    sample_matches: Tuple[str, ...] = ()


class AnswerStatus(str, Enum):
    ANSWER = "answer"
    CLARIFY = "clarify"
    REFUSE = "refuse"
    UNRESOLVED = "unresolved"
    OUT_OF_DOMAIN = "out_of_domain"


@dataclass
class AnswerContext:
    """What the answer-generation step is allowed to use for one query."""
    status: AnswerStatus
    query: str
    outcome: Optional[ResolutionOutcome] = None
    filter_result: Optional[FilterResult] = None
    passages: List[Document] = field(default_factory=list)
    message: Optional[str] = None
    latency_ms: Optional[int] = None

    @property
    def product(self) -> Optional[CatalogItem]:
        if isinstance(self.outcome, SingleMatch):
            return self.outcome.winner.item
        return None
