import csv
import logging
import re
from typing import List, Optional

from .models import CatalogItemDraft

logger = logging.getLogger(__name__)

_ALIAS_SEPARATOR_RE = re.compile(r"[,|]")


class CatalogDataLoader:
    """
    Loads catalog items from CSV.

    Expected columns: Title, Brand, Model, URL, Description, Aliases
    (aliases separated by "|" or ","). An optional ID column sets the item id.
    Rows without a title or URL are skipped.
    """
    def __init__(self, csv_path: str):
        self.csv_path = csv_path

    def load_items(self, tenant_id: str) -> List[CatalogItemDraft]:
        drafts: List[CatalogItemDraft] = []
        skipped = 0

        with open(self.csv_path, newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                draft = self._row_to_draft(row, tenant_id)
                if draft is None:
                    skipped += 1
                    continue
                drafts.append(draft)

        if skipped:
            logger.warning(f"Skipped {skipped} rows without Title or URL in {self.csv_path}")
        return drafts

    def _row_to_draft(self, row: dict, tenant_id: str) -> Optional[CatalogItemDraft]:
        title = _cell(row, "Title")
        url = _cell(row, "URL")
        if not (title and url):
            return None

        return CatalogItemDraft(
            tenant_id=tenant_id,
            title=title,
            url=url,
            brand=_cell(row, "Brand"),
            model=_cell(row, "Model"),
            description=_cell(row, "Description"),
            item_id=_cell(row, "ID"),
            manual_aliases=_split_aliases(_cell(row, "Aliases")),
        )


def _cell(row: dict, column: str) -> Optional[str]:
    value = (row.get(column) or "").strip()
    return value or None


def _split_aliases(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in _ALIAS_SEPARATOR_RE.split(value) if part.strip()]
