"""
Factory for creating catalog resolvers.

Wires store-backed lookups, matchers and the decision policy from config.
"""
from typing import Optional

from ..catalog_store import SQLiteCatalogStore
from ..config import ResolverConfig
from .alias_matcher import AliasMatcher
from .catalog_lookups import CatalogAliasLookup, CatalogFullTextSearch
from .catalog_resolver import CatalogResolver
from .resolution_policy import DecisionPolicy


def create_resolver(
    config: Optional[ResolverConfig] = None,
    store: Optional[SQLiteCatalogStore] = None,
    telemetry=None,
) -> CatalogResolver:
    """
    Factory function to create a CatalogResolver.

    :param config: ResolverConfig instance (defaults if omitted)
    :param store: Catalog store; opened from config.database_path if omitted
    :param telemetry: Optional TelemetrySink
    :return: Configured CatalogResolver
    """
    config = config or ResolverConfig()
    store = store or SQLiteCatalogStore(config.database_path)

    matcher = AliasMatcher(
        contained_score=config.contained_alias_score,
        shared_brand_score=config.shared_brand_alias_score,
        fuzzy_min_similarity=config.fuzzy_min_similarity,
        short_alias_fuzzy_min_similarity=config.short_alias_fuzzy_min_similarity,
        short_alias_max_length=config.short_alias_max_length,
    )
    policy = DecisionPolicy(
        single_min_score=config.single_min_score,
        single_min_gap=config.single_min_gap,
        multiple_min_score=config.multiple_min_score,
        max_alternatives=config.max_alternatives,
    )

    return CatalogResolver(
        alias_lookup=CatalogAliasLookup(store, matcher, limit=config.lookup_limit),
        fulltext_search=CatalogFullTextSearch(store, limit=config.lookup_limit),
        policy=policy,
        telemetry=telemetry,
        item_source=store,
        alias_weight=config.alias_weight,
        fts_weight=config.fts_weight,
        max_candidates=config.max_candidates,
        lookup_timeout_seconds=config.lookup_timeout_seconds,
    )
