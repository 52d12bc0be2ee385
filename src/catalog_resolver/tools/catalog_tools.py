from typing import Any

from langchain_core.tools import BaseTool
from pydantic import BaseModel, Field

from ..schemas import AnswerStatus


class CatalogContextArgs(BaseModel):
    query: str = Field(description="The user's question about a product, in their own words")


class CatalogContextTool(BaseTool):
    """
    Agent entry point to the catalog engine.

    Returns product passages the agent may answer from, or a clarification
    question / refusal it should relay to the user verbatim.
    """

    name: str = "catalog_context"
    description: str = (
        "Look up documentation for the product a question is about. "
        "Returns passages about exactly one product, or a message to relay "
        "to the user when the product is ambiguous or undocumented."
    )
    args_schema: type[BaseModel] = CatalogContextArgs

    service: Any = Field(default=None)
    tenant_id: str = Field(default="default")

    def __init__(self, service, tenant_id: str = "default", **kwargs):
        super().__init__(**kwargs)
        self.service = service
        self.tenant_id = tenant_id

    def _run(self, query: str) -> str:
        context = self.service.prepare_context(query, self.tenant_id)

        if context.status != AnswerStatus.ANSWER:
            return context.message or "No product information available."

        product = context.product
        lines = [f"Product: {product.title} ({product.url})"]
        for doc in context.passages:
            source = doc.metadata.get("source", "unknown")
            lines.append(f"[{source}] {doc.page_content}")
        return "\n".join(lines)

    async def _arun(self, *args, **kwargs) -> str:
        return self._run(*args, **kwargs)
