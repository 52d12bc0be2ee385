"""
Public application facade for the catalog resolver.

This is the single stable entry point for the library.
All internal structure can change freely, but this API remains stable.
"""
import logging
from typing import List, Optional, Sequence

from langchain_core.documents import Document

from .catalog_store import SQLiteCatalogStore
from .config import ResolverConfig
from .data_loader import CatalogDataLoader
from .exceptions import ServiceNotInitializedError
from .models import CatalogItem, CatalogItemDraft
from .resolution import CatalogResolver, DomainVocabularyBuilder, create_resolver
from .schemas import AnswerContext, ResolutionOutcome
from .service import CatalogAnswerService
from .telemetry import StoreTelemetryWriter, TelemetrySink
from .tools.retriever_tool import PassageRetriever

logger = logging.getLogger(__name__)


class CatalogResolverApp:
    """
    Public application facade.

    All dependency wiring and factory usage is encapsulated here.

    Usage:
        config = load_config_from_env()
        app = CatalogResolverApp(config)
        app.initialize()
        context = app.prepare_context("G3 vekt", passages=docs)
    """

    def __init__(self, config: Optional[ResolverConfig] = None, retriever: Optional[PassageRetriever] = None):
        """
        :param config: ResolverConfig instance (defaults if omitted)
        :param retriever: Optional upstream passage search
        """
        self._config = config or ResolverConfig()
        self._retriever = retriever
        self._store: Optional[SQLiteCatalogStore] = None
        self._telemetry: Optional[TelemetrySink] = None
        self._resolver: Optional[CatalogResolver] = None
        self._vocabulary: Optional[DomainVocabularyBuilder] = None
        self._service: Optional[CatalogAnswerService] = None

    def initialize(self) -> None:
        """
        Open the store, load the CSV catalog if configured, and wire the
        resolver, telemetry, vocabulary cache and answer service.

        Call this once before using the query methods.
        """
        if self._service:
            return

        self._store = SQLiteCatalogStore(self._config.database_path)

        if self._config.enable_telemetry:
            self._telemetry = TelemetrySink(
                StoreTelemetryWriter(self._store),
                max_queue_size=self._config.telemetry_queue_size,
            )

        self._vocabulary = DomainVocabularyBuilder(
            self._store,
            ttl_seconds=self._config.vocabulary_ttl_seconds,
            max_terms=self._config.vocabulary_max_terms,
        )
        self._store.add_change_listener(self._vocabulary.invalidate)

        if self._config.catalog_csv_path:
            drafts = CatalogDataLoader(self._config.catalog_csv_path).load_items(
                self._config.default_tenant_id
            )
            self._store.save_items(drafts)
            logger.info(f"Loaded {len(drafts)} catalog items from {self._config.catalog_csv_path}")

        self._resolver = create_resolver(self._config, self._store, self._telemetry)
        self._service = CatalogAnswerService(
            self._resolver,
            retriever=self._retriever,
            vocabulary=self._vocabulary,
            enable_domain_gate=self._config.enable_domain_gate,
            passage_top_k=self._config.passage_top_k,
        )

    # ----------------------------
    # Queries
    # ----------------------------
    def resolve(self, query: str, tenant_id: Optional[str] = None) -> ResolutionOutcome:
        self._require_initialized()
        return self._resolver.resolve(query, tenant_id or self._config.default_tenant_id)

    def prepare_context(
        self,
        query: str,
        tenant_id: Optional[str] = None,
        passages: Optional[Sequence[Document]] = None,
    ) -> AnswerContext:
        self._require_initialized()
        return self._service.prepare_context(
            query, tenant_id or self._config.default_tenant_id, passages=passages
        )

    def select_item(
        self,
        item_id: str,
        query: str,
        tenant_id: Optional[str] = None,
        passages: Optional[Sequence[Document]] = None,
    ) -> AnswerContext:
        self._require_initialized()
        return self._service.select_item(
            item_id, tenant_id or self._config.default_tenant_id, query, passages=passages
        )

    # ----------------------------
    # Catalog management
    # ----------------------------
    def add_item(self, draft: CatalogItemDraft) -> CatalogItem:
        self._require_initialized()
        return self._store.save_item(draft)

    def list_items(self, tenant_id: Optional[str] = None) -> List[CatalogItem]:
        self._require_initialized()
        return self._store.list_items(tenant_id or self._config.default_tenant_id)

    def recent_resolutions(self, tenant_id: Optional[str] = None, limit: int = 20) -> List[dict]:
        """Flushes pending telemetry first so the newest records are visible."""
        self._require_initialized()
        if self._telemetry is not None:
            self._telemetry.flush()
        return self._store.recent_resolutions(tenant_id or self._config.default_tenant_id, limit)

    def close(self) -> None:
        if self._telemetry is not None:
            self._telemetry.close()
        if self._resolver is not None:
            self._resolver.close()
        if self._store is not None:
            self._store.close()
        self._service = None

    def _require_initialized(self) -> None:
        if not self._service:
            raise ServiceNotInitializedError("App not initialized. Call initialize() first.")
