"""
Catalog resolver.

Maps a free-text query to SingleMatch, MultipleMatches or NoMatch by running
alias lookup and full-text lookup concurrently, merging their scores and
applying the decision policy.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional, Tuple

from ..exceptions import LookupUnavailableError
from ..normalization import normalize_text
from ..schemas import Candidate, FilterResult, NoMatch, ResolutionOutcome, SingleMatch
from .lookup import AliasLookupProvider, AliasMatch, FullTextSearchProvider, TextMatch
from .resolution_metadata import ResolutionRecord
from .resolution_policy import DecisionPolicy
from .scoring import ALIAS_WEIGHT, FTS_WEIGHT, merge_candidates, total_score

logger = logging.getLogger(__name__)


class CatalogResolver:
    """
    Resolves product mentions against one tenant's catalog.

    Never raises for lookup problems: a failed or timed-out lookup degrades
    to NoMatch(reason="lookup_unavailable").

    Usage:
        resolver = create_resolver(config, store)
        outcome = resolver.resolve("G3 vekt", tenant_id="shop-1")
        if outcome.decision == "single":
            item = outcome.winner.item
    """

    def __init__(
        self,
        alias_lookup: AliasLookupProvider,
        fulltext_search: FullTextSearchProvider,
        policy: Optional[DecisionPolicy] = None,
        telemetry=None,
        item_source=None,
        alias_weight: float = ALIAS_WEIGHT,
        fts_weight: float = FTS_WEIGHT,
        max_candidates: int = 10,
        lookup_timeout_seconds: float = 2.0,
    ):
        """
        :param alias_lookup: Alias lookup provider
        :param fulltext_search: Full-text lookup provider
        :param policy: Decision thresholds (defaults if omitted)
        :param telemetry: Optional sink with an ``emit(dict)`` method
        :param item_source: Optional store used by resolve_item_by_id
        :param alias_weight: Weight of the alias score in the total
        :param fts_weight: Weight of the full-text score in the total
        :param max_candidates: Candidates kept after ranking
        :param lookup_timeout_seconds: Upper bound for both lookups together
        """
        self._alias_lookup = alias_lookup
        self._fulltext_search = fulltext_search
        self._policy = policy or DecisionPolicy()
        self._telemetry = telemetry
        self._item_source = item_source
        self._alias_weight = alias_weight
        self._fts_weight = fts_weight
        self._max_candidates = max_candidates
        self._lookup_timeout = lookup_timeout_seconds
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="catalog-lookup")

    @property
    def policy(self) -> DecisionPolicy:
        return self._policy

    def resolve(
        self,
        query: str,
        tenant_id: str,
        deadline: Optional[float] = None,
        emit_telemetry: bool = True,
    ) -> ResolutionOutcome:
        """
        Resolve a query to a catalog decision.

        :param query: Raw user query
        :param tenant_id: Tenant whose catalog is searched
        :param deadline: Optional absolute ``time.monotonic()`` deadline
        :param emit_telemetry: Emit a resolution record (callers that log a
            combined record with the filter outcome pass False)
        :return: SingleMatch, MultipleMatches or NoMatch
        """
        query_norm = normalize_text(query)

        if not query_norm:
            logger.info("Empty query after normalization, nothing to resolve")
            outcome: ResolutionOutcome = NoMatch(query_norm=query_norm, reason="empty_query")
        else:
            outcome = self._resolve_normalized(query_norm, tenant_id, deadline)

        if emit_telemetry:
            self.record(tenant_id, query, outcome)
        return outcome

    def resolve_item_by_id(self, item_id: str, tenant_id: str) -> ResolutionOutcome:
        """
        Explicit selection, e.g. after the user picked one clarification option.

        :return: SingleMatch scored as an exact alias hit, or NoMatch
        """
        if self._item_source is None:
            return NoMatch(query_norm="", reason="lookup_unavailable")

        try:
            item = self._item_source.get_item(item_id, tenant_id)
        except Exception as e:
            logger.warning(f"Item lookup failed for {item_id}: {e}")
            return NoMatch(query_norm="", reason="lookup_unavailable")

        if item is None:
            return NoMatch(query_norm="", reason="not_found")

        winner = Candidate(
            item=item,
            alias_score=1.0,
            fts_score=0.0,
            total_score=total_score(1.0, 0.0, self._alias_weight, self._fts_weight),
        )
        return SingleMatch(
            winner=winner,
            runner_up_gap=round(winner.total_score, 9),
            query_norm=item.title_norm,
            candidates=(winner,),
        )

    def record(
        self,
        tenant_id: str,
        query: str,
        outcome: ResolutionOutcome,
        filter_result: Optional[FilterResult] = None,
    ) -> None:
        """Hand one record to the telemetry sink without blocking the caller."""
        if self._telemetry is None:
            return

        try:
            record = ResolutionRecord.from_outcome(tenant_id, query, outcome, filter_result)
            self._telemetry.emit(record.to_dict())
        except Exception as e:
            logger.warning(f"Dropping resolution telemetry record: {e}")

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def _resolve_normalized(
        self,
        query_norm: str,
        tenant_id: str,
        deadline: Optional[float],
    ) -> ResolutionOutcome:
        try:
            alias_matches, text_matches = self._run_lookups(query_norm, tenant_id, deadline)
        except LookupUnavailableError as e:
            logger.warning(f"Catalog lookup unavailable for '{query_norm}': {e}")
            return NoMatch(query_norm=query_norm, reason="lookup_unavailable")

        candidates = merge_candidates(
            alias_matches,
            text_matches,
            alias_weight=self._alias_weight,
            fts_weight=self._fts_weight,
        )[:self._max_candidates]

        for candidate in candidates[:3]:
            logger.debug(
                f"Candidate {candidate.item.title_norm}: alias={candidate.alias_score:.3f} "
                f"fts={candidate.fts_score:.3f} total={candidate.total_score:.3f}"
            )

        outcome = self._policy.decide(candidates, query_norm)
        logger.info(f"Resolved '{query_norm}' for tenant {tenant_id}: {outcome.decision}")
        return outcome

    def _run_lookups(
        self,
        query_norm: str,
        tenant_id: str,
        deadline: Optional[float],
    ) -> Tuple[List[AliasMatch], List[TextMatch]]:
        timeout = self._lookup_timeout
        if deadline is not None:
            timeout = min(timeout, deadline - time.monotonic())
        if timeout <= 0:
            raise LookupUnavailableError("Deadline expired before catalog lookup")

        alias_future = self._executor.submit(self._alias_lookup.lookup, query_norm, tenant_id)
        text_future = self._executor.submit(self._fulltext_search.search, query_norm, tenant_id)

        _, not_done = wait([alias_future, text_future], timeout=timeout)
        if not_done:
            for future in not_done:
                future.cancel()
            raise LookupUnavailableError(f"Catalog lookup timed out after {timeout:.2f}s")

        try:
            return alias_future.result(), text_future.result()
        except LookupUnavailableError:
            raise
        except Exception as e:
            raise LookupUnavailableError(f"{type(e).__name__}: {e}") from e
