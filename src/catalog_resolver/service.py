import logging
from time import time
from typing import List, Optional, Sequence

from langchain_core.documents import Document

from .filtering import filter_passages, log_filter_result
from .resolution import CatalogResolver, DomainVocabularyBuilder
from .schemas import (
    AnswerContext,
    AnswerStatus,
    FilterResult,
    MultipleMatches,
    ResolutionOutcome,
    SingleMatch,
)
from .tools.retriever_tool import PassageRetriever

logger = logging.getLogger(__name__)

REFUSAL_MESSAGE = "I don't have specific information about {title} in the available documentation."
CLARIFY_MESSAGE = "Which product do you mean: {options}?"
UNRESOLVED_MESSAGE = (
    "I couldn't tell which product you mean. "
    "Could you tell me the brand or model you're asking about?"
)
OUT_OF_DOMAIN_MESSAGE = "I can only help with questions about the products in this catalog."


class CatalogAnswerService:
    """
    Facade over resolution and passage filtering.

    Decides, per query, what the answer-generation step may use: filtered
    passages for one product, a clarification prompt, or a refusal.
    """

    def __init__(
        self,
        resolver: CatalogResolver,
        retriever: Optional[PassageRetriever] = None,
        vocabulary: Optional[DomainVocabularyBuilder] = None,
        enable_domain_gate: bool = False,
        passage_top_k: int = 8,
    ):
        self._resolver = resolver
        self._retriever = retriever
        self._vocabulary = vocabulary
        self._enable_domain_gate = enable_domain_gate
        self._passage_top_k = passage_top_k

    # ----------------------------
    # Query handling
    # ----------------------------
    def prepare_context(
        self,
        query: str,
        tenant_id: str,
        passages: Optional[Sequence[Document]] = None,
        deadline: Optional[float] = None,
    ) -> AnswerContext:
        """
        Resolve the query and build the answer context.

        :param query: Raw user query
        :param tenant_id: Tenant whose catalog is searched
        :param passages: Retrieved passages; fetched from the retriever if None
        :param deadline: Optional absolute ``time.monotonic()`` deadline for lookups
        :return: AnswerContext with status answer, clarify, refuse, unresolved or out_of_domain
        """
        start_time = time()

        if self._enable_domain_gate and not self._in_domain(query, tenant_id):
            snippet = (query or "")[:50]
            logger.info(f"Query outside catalog domain for tenant {tenant_id}: '{snippet}'")
            return AnswerContext(
                status=AnswerStatus.OUT_OF_DOMAIN,
                query=query,
                message=OUT_OF_DOMAIN_MESSAGE,
                latency_ms=int((time() - start_time) * 1000),
            )

        outcome = self._resolver.resolve(query, tenant_id, deadline=deadline, emit_telemetry=False)
        context = self._build_context(query, tenant_id, outcome, passages)
        context.latency_ms = int((time() - start_time) * 1000)
        return context

    def select_item(
        self,
        item_id: str,
        tenant_id: str,
        query: str,
        passages: Optional[Sequence[Document]] = None,
    ) -> AnswerContext:
        """Answer context for an item the user picked from a clarification."""
        start_time = time()
        outcome = self._resolver.resolve_item_by_id(item_id, tenant_id)
        context = self._build_context(query, tenant_id, outcome, passages)
        context.latency_ms = int((time() - start_time) * 1000)
        return context

    # ----------------------------
    # Dependency injection setters
    # ----------------------------
    def set_retriever(self, retriever: PassageRetriever) -> None:
        self._retriever = retriever

    def set_vocabulary_builder(self, vocabulary: DomainVocabularyBuilder) -> None:
        self._vocabulary = vocabulary

    # ----------------------------
    # Internals
    # ----------------------------
    def _build_context(
        self,
        query: str,
        tenant_id: str,
        outcome: ResolutionOutcome,
        passages: Optional[Sequence[Document]],
    ) -> AnswerContext:
        filter_result: Optional[FilterResult] = None

        if isinstance(outcome, SingleMatch):
            winner = outcome.winner.item
            if passages is None:
                passages = self._retrieve(query)

            filter_result = filter_passages(passages, winner)
            log_filter_result(query, winner, filter_result)

            if filter_result.exhausted:
                context = AnswerContext(
                    status=AnswerStatus.REFUSE,
                    query=query,
                    outcome=outcome,
                    filter_result=filter_result,
                    message=REFUSAL_MESSAGE.format(title=winner.title),
                )
            else:
                context = AnswerContext(
                    status=AnswerStatus.ANSWER,
                    query=query,
                    outcome=outcome,
                    filter_result=filter_result,
                    passages=list(filter_result.kept),
                )
        elif isinstance(outcome, MultipleMatches):
            options = ", ".join(c.item.title for c in outcome.candidates)
            context = AnswerContext(
                status=AnswerStatus.CLARIFY,
                query=query,
                outcome=outcome,
                message=CLARIFY_MESSAGE.format(options=options),
            )
        else:
            context = AnswerContext(
                status=AnswerStatus.UNRESOLVED,
                query=query,
                outcome=outcome,
                message=UNRESOLVED_MESSAGE,
            )

        self._resolver.record(tenant_id, query, outcome, filter_result)
        return context

    def _retrieve(self, query: str) -> List[Document]:
        if self._retriever is None:
            logger.warning("No passage retriever configured; answering from zero passages")
            return []
        return list(self._retriever.retrieve(query, k=self._passage_top_k))

    def _in_domain(self, query: str, tenant_id: str) -> bool:
        if self._vocabulary is None:
            return True
        terms = self._vocabulary.get_terms(tenant_id)
        return self._vocabulary.is_in_domain(query, terms)
