from typing import List, Protocol

from langchain_core.documents import Document


class PassageRetriever(Protocol):
    """Upstream search provider returning passages in rank order."""
    def retrieve(self, query: str, k: int = 5) -> List[Document]:
        ...
