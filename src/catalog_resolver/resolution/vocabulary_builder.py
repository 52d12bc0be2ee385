"""
In-domain vocabulary builder.

Builds, per tenant, the set of terms that mark a query as being about the
tenant's catalog: brands, model codes, title words, aliases and optional
document terms. Terms are cached with a TTL and invalidated on catalog writes.
"""
import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Protocol, Set, Tuple

from cachetools import TTLCache

from ..models import AliasKind
from ..normalization import normalize_text
from .alias_matcher import tokenize

logger = logging.getLogger(__name__)

STOPWORDS = frozenset("""
the and for are but not you all can has have had her his its our out get new now see two way who
did let put say she too use with from this that these those there here about into onto your their
more most less least very some any each other only also just than then when what which why how
where whom will shall should would could may might must do does done a an of to in on at by as it
is be was were been or if so no yes ok okay
og i jeg det at en et den til er som paa de med han av ikke der saa var meg seg men ett har om vi
min mitt ha hadde hun naa over da ved fra du ut sin dem oss opp man mot aa deg kan kun kom noe
ville skal skulle kunne dette disse hva hvor hvem hvorfor hvordan naar hvilken hvilke hvilket eller
baade enten hverken altsaa saann slik
best top vs review reviews price prices cost cheap expensive budget buy deal offers guide usage
free trial demo rank ranking compare comparison pros cons benefits drawbacks latest update
beste topp anmeldelse anmeldelser pris priser kostnad billig dyr budsjett kjoep tilbud bruk gratis
proeve demonstrasjon sammenlign sammenligning fordeler ulemper oppdatert ny
""".split())

MONTHS = frozenset("""
january february march april may june july august september october november december
januar februar mars mai juni juli oktober desember
""".split())

_NUMBER_RE = re.compile(r"^\d+$")
_YEAR_RE = re.compile(r"^(19|20)\d{2}$")
_YEAR_ANYWHERE_RE = re.compile(r"(19|20)\d{2}")
_SHORT_MODEL_CODE_RE = re.compile(r"^(?:[a-z]{1,2}\d{1,3}|\d{1,3}[a-z]{1,2})$")
_DIGIT_RE = re.compile(r"\d")

VOCABULARY_ALIAS_KINDS = (AliasKind.BRAND_MODEL, AliasKind.MODEL_ONLY, AliasKind.BRAND_ONLY)


@dataclass
class DocumentTerms:
    """Terms extracted from one piece of tenant documentation."""
    intent_keywords: List[str] = field(default_factory=list)
    primary_products: List[str] = field(default_factory=list)
    category: Optional[str] = None
    brand_terms: List[str] = field(default_factory=list)
    model_codes: List[str] = field(default_factory=list)


class DocumentTermProvider(Protocol):
    def get_document_terms(self, tenant_id: str) -> Iterable[DocumentTerms]:
        ...


def to_term(text: Optional[str]) -> str:
    """Normalize text and drop punctuation, leaving space-separated tokens."""
    return " ".join(tokenize(normalize_text(text)))


def is_noise_term(term: str) -> bool:
    if not term:
        return True
    return (
        term in STOPWORDS
        or term in MONTHS
        or bool(_NUMBER_RE.match(term))
        or bool(_YEAR_RE.match(term))
    )


def is_short_model_code(token: str) -> bool:
    """Short alphanumeric codes such as g4, x90 or 90x."""
    return len(token) <= 6 and bool(_SHORT_MODEL_CODE_RE.match(token))


def title_tokens(title_norm: str) -> List[str]:
    return [
        token for token in tokenize(title_norm)
        if len(token) >= 3 and not is_noise_term(token)
    ]


class DomainVocabularyBuilder:
    """
    Read-through cache of in-domain terms per tenant.

    Usage:
        builder = DomainVocabularyBuilder(store)
        store.add_change_listener(builder.invalidate)
        terms = builder.get_terms("shop-1")
        builder.is_in_domain("g4 batteri", terms)
    """

    def __init__(
        self,
        store,
        document_terms: Optional[DocumentTermProvider] = None,
        ttl_seconds: int = 900,
        max_terms: int = 1000,
        max_tenants: int = 1024,
    ):
        """
        :param store: Catalog store (list_items / list_aliases)
        :param document_terms: Optional provider of documentation-derived terms
        :param ttl_seconds: Cache lifetime of one tenant's vocabulary
        :param max_terms: Upper bound on terms per tenant
        :param max_tenants: Cache capacity
        """
        self._store = store
        self._document_terms = document_terms
        self._max_terms = max_terms
        self._cache: TTLCache = TTLCache(maxsize=max_tenants, ttl=ttl_seconds)
        self._lock = threading.Lock()
        # Bumped on invalidation; a build only caches if nothing changed meanwhile
        self._generations: Dict[str, int] = {}
        self._global_generation = 0

    def get_terms(self, tenant_id: str) -> FrozenSet[str]:
        with self._lock:
            cached = self._cache.get(tenant_id)
            started_at = self._generation(tenant_id)
        if cached is not None:
            return cached

        terms = self.build_terms(tenant_id)
        with self._lock:
            if self._generation(tenant_id) == started_at:
                self._cache[tenant_id] = terms
            else:
                logger.debug(f"Catalog changed while building vocabulary for {tenant_id}; not caching")
        return terms

    def invalidate(self, tenant_id: str) -> None:
        with self._lock:
            self._cache.pop(tenant_id, None)
            self._generations[tenant_id] = self._generations.get(tenant_id, 0) + 1
        logger.debug(f"Invalidated domain vocabulary for tenant {tenant_id}")

    def invalidate_all(self) -> None:
        with self._lock:
            self._cache.clear()
            self._global_generation += 1

    def _generation(self, tenant_id: str) -> Tuple[int, int]:
        # Caller holds self._lock
        return self._global_generation, self._generations.get(tenant_id, 0)

    def build_terms(self, tenant_id: str) -> FrozenSet[str]:
        """Collect and filter terms from every source, bypassing the cache."""
        terms: Set[str] = set()
        brand_singles: Set[str] = set()

        self._collect_from_items(tenant_id, terms, brand_singles)
        self._collect_from_aliases(tenant_id, terms, brand_singles)
        if self._document_terms is not None:
            self._collect_from_documents(tenant_id, terms, brand_singles)

        accepted = sorted(
            term for term in (_accept_term(t, brand_singles) for t in terms) if term
        )[:self._max_terms]

        if not accepted:
            logger.warning(
                f"No domain terms for tenant {tenant_id}; every query will be treated as off-topic"
            )
        else:
            logger.info(f"Built {len(accepted)} domain terms for tenant {tenant_id}")

        return frozenset(accepted)

    def is_in_domain(self, query: str, terms: Iterable[str]) -> bool:
        return bool(self.match_domain_terms(query, terms, max_matches=1))

    def match_domain_terms(
        self,
        query: str,
        terms: Iterable[str],
        max_matches: int = 50,
    ) -> List[str]:
        """
        Terms found in the query: multi-word terms as whole-word phrases,
        single terms as query tokens.
        """
        query_term = to_term(query)
        if not query_term:
            return []

        padded = f" {query_term} "
        query_tokens = set(query_term.split())
        matches = []
        for term in sorted(terms):
            if " " in term:
                if f" {term} " in padded:
                    matches.append(term)
            elif term in query_tokens:
                matches.append(term)
            if len(matches) >= max_matches:
                break
        return matches

    def _collect_from_items(self, tenant_id: str, terms: Set[str], brand_singles: Set[str]) -> None:
        try:
            items = self._store.list_items(tenant_id, limit=500)
        except Exception as e:
            logger.warning(f"Skipping catalog items for domain terms of {tenant_id}: {e}")
            return

        for item in items:
            brand = to_term(item.brand_norm)
            model = to_term(item.model_norm)
            if brand and not is_noise_term(brand):
                terms.add(brand)
                brand_singles.add(brand)
            if model and not is_noise_term(model):
                terms.add(model)
            terms.update(title_tokens(item.title_norm))

    def _collect_from_aliases(self, tenant_id: str, terms: Set[str], brand_singles: Set[str]) -> None:
        try:
            aliases = self._store.list_aliases(tenant_id, kinds=VOCABULARY_ALIAS_KINDS)
        except Exception as e:
            logger.warning(f"Skipping aliases for domain terms of {tenant_id}: {e}")
            return

        for alias in aliases:
            term = to_term(alias.alias_norm)
            if not term or is_noise_term(term):
                continue
            terms.add(term)
            if " " not in term and not _DIGIT_RE.search(term):
                brand_singles.add(term)

    def _collect_from_documents(self, tenant_id: str, terms: Set[str], brand_singles: Set[str]) -> None:
        try:
            documents = list(self._document_terms.get_document_terms(tenant_id))
        except Exception as e:
            logger.warning(f"Skipping document terms for {tenant_id}: {e}")
            return

        for doc in documents:
            for keyword in doc.intent_keywords:
                term = to_term(keyword)
                if not term or is_noise_term(term):
                    continue
                if " " in term or _DIGIT_RE.search(term) or len(term) >= 4:
                    terms.add(term)

            for value in list(doc.primary_products) + list(doc.model_codes) + [doc.category]:
                term = to_term(value)
                if term and not is_noise_term(term):
                    terms.add(term)

            for value in doc.brand_terms:
                term = to_term(value)
                if term and not is_noise_term(term):
                    terms.add(term)
                    brand_singles.add(term)


def _accept_term(term: str, brand_singles: Set[str]) -> Optional[str]:
    if not term or is_noise_term(term) or _YEAR_ANYWHERE_RE.search(term):
        return None

    if " " in term:
        for token in term.split():
            if _DIGIT_RE.search(token) and not (is_short_model_code(token) or token in brand_singles):
                return None
        return term

    if _DIGIT_RE.search(term):
        if term in brand_singles or is_short_model_code(term):
            return term
        return None

    if term in brand_singles or len(term) >= 3:
        return term
    return None
