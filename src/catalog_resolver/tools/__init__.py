from .retriever_tool import PassageRetriever
from .catalog_tools import CatalogContextTool

__all__ = [
    "PassageRetriever",
    "CatalogContextTool",
]
