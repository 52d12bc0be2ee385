from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from langchain_core.documents import Document


class AliasKind(str, Enum):
    """Kinds of alias rows stored per catalog item."""

    TITLE_EXACT = "title_exact"
    BRAND_MODEL = "brand_model"
    MODEL_ONLY = "model_only"
    BRAND_ONLY = "brand_only"
    MANUAL = "manual"


DERIVED_ALIAS_KINDS = (
    AliasKind.TITLE_EXACT,
    AliasKind.BRAND_MODEL,
    AliasKind.MODEL_ONLY,
    AliasKind.BRAND_ONLY,
)


@dataclass
class CatalogItemDraft:
    """Raw catalog fields as written by catalog management."""
    tenant_id: str
    title: str
    url: str
    brand: Optional[str] = None
    model: Optional[str] = None
    description: Optional[str] = None
    item_id: Optional[str] = None
    manual_aliases: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CatalogItem:
    """
    A stored catalog item.

    Normalized fields are derived by the storage layer on every write and are
    read-only for the resolver and the passage filter.
    """
    item_id: str
    tenant_id: str
    title: str
    url: str
    title_norm: str
    brand: Optional[str] = None
    model: Optional[str] = None
    brand_norm: Optional[str] = None
    model_norm: Optional[str] = None
    description: Optional[str] = None

    @property
    def has_brand(self) -> bool:
        return bool(self.brand_norm)

    @property
    def has_model(self) -> bool:
        return bool(self.model_norm)


@dataclass(frozen=True)
class Alias:
    item_id: str
    tenant_id: str
    alias: str
    alias_norm: str
    kind: AliasKind


def make_passage(content: str, source: str, **metadata: Any) -> Document:
    """
    Build a passage as returned by the upstream search provider.

    :param content: Passage text
    :param source: Source label (document title, URL, chunk id)
    :return: LangChain Document with ``metadata["source"]`` set
    """
    return Document(page_content=content, metadata={"source": source, **metadata})
