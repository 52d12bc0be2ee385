from collections import Counter
from typing import Optional, Tuple

from ..models import CatalogItem
from .alias_matcher import tokenize

SEARCH_FIELDS = ("title", "brand", "model")


class FullTextMatcher:
    """
    Term-frequency relevance over an item's normalized title, brand and model.

    A field matches only when every query term occurs in it. Its score is the
    number of query-term occurrences divided by the field length, capped at
    1.0, so a short field fully covered by the query scores highest. The item
    score is the best field score.
    """

    def score(self, query_norm: str, item: CatalogItem) -> Tuple[float, Optional[str]]:
        """
        :param query_norm: Normalized query
        :param item: Catalog item with normalized fields
        :return: (score, field) with field None when nothing matched
        """
        query_terms = set(tokenize(query_norm))
        if not query_terms:
            return 0.0, None

        best_score, best_field = 0.0, None
        for field in SEARCH_FIELDS:
            field_tokens = tokenize(getattr(item, f"{field}_norm"))
            if not field_tokens:
                continue

            counts = Counter(field_tokens)
            if any(counts[term] == 0 for term in query_terms):
                continue

            occurrences = sum(counts[term] for term in query_terms)
            field_score = min(1.0, occurrences / len(field_tokens))
            if field_score > best_score:
                best_score, best_field = field_score, field

        return best_score, best_field
