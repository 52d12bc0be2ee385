"""
Core abstractions for catalog lookups.

The resolver consumes two independent lookup providers: alias matching and
full-text search over item fields. Both return scored matches in [0, 1].
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from ..models import CatalogItem


@dataclass(frozen=True)
class AliasMatch:
    """
    Best alias hit for one item.

    Attributes:
        item: Matched catalog item
        score: Alias match quality between 0.0 and 1.0
        alias_norm: The normalized alias that produced the score
        strategy: "exact", "contained" or "fuzzy"
    """
    item: CatalogItem
    score: float
    alias_norm: str
    strategy: str

    def __post_init__(self):
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Alias score must be between 0.0 and 1.0, got {self.score}")


@dataclass(frozen=True)
class TextMatch:
    """Full-text relevance of one item; ``field`` is the best-scoring field."""
    item: CatalogItem
    score: float
    field: str

    def __post_init__(self):
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Text score must be between 0.0 and 1.0, got {self.score}")


class AliasLookupProvider(ABC):
    """Returns scored alias matches for a normalized query."""

    @abstractmethod
    def lookup(self, query_norm: str, tenant_id: str) -> List[AliasMatch]:
        """
        :param query_norm: Normalized query
        :param tenant_id: Tenant whose catalog is searched
        :return: At most one match per item
        :raises: LookupUnavailableError if the catalog cannot be read
        """
        pass


class FullTextSearchProvider(ABC):
    """Returns items whose title/brand/model fields match a normalized query."""

    @abstractmethod
    def search(self, query_norm: str, tenant_id: str) -> List[TextMatch]:
        """
        :param query_norm: Normalized query
        :param tenant_id: Tenant whose catalog is searched
        :return: At most one match per item
        :raises: LookupUnavailableError if the catalog cannot be read
        """
        pass
