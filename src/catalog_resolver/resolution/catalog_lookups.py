"""
Lookup providers backed by SQLiteCatalogStore.
"""
import logging
import sqlite3
from typing import Dict, List, Optional

from ..catalog_store import SQLiteCatalogStore
from ..exceptions import LookupUnavailableError
from ..models import CatalogItem
from .alias_matcher import AliasMatcher
from .fulltext_matcher import FullTextMatcher
from .lookup import AliasLookupProvider, AliasMatch, FullTextSearchProvider, TextMatch

logger = logging.getLogger(__name__)


def _match_order(match) -> tuple:
    return (-match.score, match.item.title_norm, match.item.item_id)


class CatalogAliasLookup(AliasLookupProvider):
    """Scores every alias of the tenant with an AliasMatcher."""

    def __init__(
        self,
        store: SQLiteCatalogStore,
        matcher: Optional[AliasMatcher] = None,
        limit: int = 50,
    ):
        self._store = store
        self._matcher = matcher or AliasMatcher()
        self._limit = limit

    def lookup(self, query_norm: str, tenant_id: str) -> List[AliasMatch]:
        try:
            aliases = self._store.list_aliases(tenant_id)
            items: Dict[str, CatalogItem] = {
                item.item_id: item for item in self._store.list_items(tenant_id)
            }
        except sqlite3.Error as e:
            raise LookupUnavailableError(f"Alias lookup failed for tenant {tenant_id}: {e}") from e

        matches = [
            AliasMatch(item=items[item_id], score=score, alias_norm=alias_norm, strategy=strategy)
            for item_id, (score, alias_norm, strategy) in self._matcher.match(query_norm, aliases).items()
            if item_id in items
        ]
        matches.sort(key=_match_order)

        logger.debug(
            f"Alias lookup '{query_norm}': "
            + ", ".join(f"{m.item.title_norm}={m.score:.3f}({m.strategy})" for m in matches[:5])
        )
        return matches[:self._limit]


class CatalogFullTextSearch(FullTextSearchProvider):
    """Scores every item of the tenant with a FullTextMatcher."""

    def __init__(
        self,
        store: SQLiteCatalogStore,
        matcher: Optional[FullTextMatcher] = None,
        limit: int = 50,
    ):
        self._store = store
        self._matcher = matcher or FullTextMatcher()
        self._limit = limit

    def search(self, query_norm: str, tenant_id: str) -> List[TextMatch]:
        try:
            items = self._store.list_items(tenant_id)
        except sqlite3.Error as e:
            raise LookupUnavailableError(f"Full-text lookup failed for tenant {tenant_id}: {e}") from e

        matches = []
        for item in items:
            score, field = self._matcher.score(query_norm, item)
            if score > 0:
                matches.append(TextMatch(item=item, score=score, field=field))
        matches.sort(key=_match_order)

        logger.debug(f"Full-text lookup '{query_norm}': {len(matches)} items matched")
        return matches[:self._limit]
