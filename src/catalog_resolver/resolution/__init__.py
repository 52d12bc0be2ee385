"""
Catalog resolution layer.

Maps a free-text query to one catalog item, a short list of candidates, or
nothing.

Key components:
- AliasLookupProvider / FullTextSearchProvider: lookup protocols
- AliasMatcher / FullTextMatcher: graded scoring per alias and per field
- DecisionPolicy: Single / Multiple / None thresholds
- CatalogResolver: concurrent lookups, merge, decision, telemetry
- DomainVocabularyBuilder: cached in-domain terms per tenant
"""
from .lookup import AliasLookupProvider, AliasMatch, FullTextSearchProvider, TextMatch
from .alias_matcher import AliasMatcher
from .fulltext_matcher import FullTextMatcher
from .catalog_lookups import CatalogAliasLookup, CatalogFullTextSearch
from .scoring import merge_candidates, rank_candidates, total_score
from .resolution_policy import DecisionPolicy
from .resolution_metadata import ResolutionRecord
from .catalog_resolver import CatalogResolver
from .resolver_factory import create_resolver
from .vocabulary_builder import DocumentTermProvider, DocumentTerms, DomainVocabularyBuilder

__all__ = [
    "AliasLookupProvider",
    "AliasMatch",
    "FullTextSearchProvider",
    "TextMatch",
    "AliasMatcher",
    "FullTextMatcher",
    "CatalogAliasLookup",
    "CatalogFullTextSearch",
    "merge_candidates",
    "rank_candidates",
    "total_score",
    "DecisionPolicy",
    "ResolutionRecord",
    "CatalogResolver",
    "create_resolver",
    "DocumentTermProvider",
    "DocumentTerms",
    "DomainVocabularyBuilder",
]
