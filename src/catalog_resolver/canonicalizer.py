from typing import Iterable, List

from langchain_core.documents import Document

from .models import CatalogItem, make_passage


class CatalogCanonicalizer:
    @staticmethod
    def to_text(item: CatalogItem) -> str:
        parts = [f"Product: {item.title}"]

        if item.brand:
            parts.append(f"Brand: {item.brand}")

        if item.model:
            parts.append(f"Model: {item.model}")

        if item.description:
            parts.append(item.description.rstrip("."))

        return ". ".join(parts) + "."


def build_documents(items: Iterable[CatalogItem]) -> List[Document]:
    """
    Render catalog items as passages, one per item, sourced by URL.

    Useful as a minimal passage corpus when no documentation is indexed.
    """
    documents: List[Document] = []

    for item in items:
        documents.append(
            make_passage(
                CatalogCanonicalizer.to_text(item),
                source=item.url,
                item_id=item.item_id,
                title=item.title,
            )
        )

    return documents
