"""
SQLite-backed catalog store.

Holds catalog items, their aliases and the append-only resolution log.
Normalized columns are derived in SQL through the ``normalize_text`` function,
which is the query-path normalizer registered on the connection, so stored
and query-time forms cannot drift apart.
"""
import json
import logging
import sqlite3
import threading
import uuid
from typing import Callable, Iterable, List, Optional, Tuple

from .exceptions import CatalogItemNotFoundError, DuplicateModelError, ItemTenantConflictError
from .models import Alias, AliasKind, CatalogItem, CatalogItemDraft
from .normalization import normalize_text

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS catalog_items (
    item_id TEXT PRIMARY KEY,
    tenant_id TEXT NOT NULL,
    title TEXT NOT NULL,
    title_norm TEXT NOT NULL,
    brand TEXT,
    brand_norm TEXT,
    model TEXT,
    model_norm TEXT,
    url TEXT NOT NULL,
    description TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS ix_catalog_items_tenant
    ON catalog_items(tenant_id, title_norm);

CREATE UNIQUE INDEX IF NOT EXISTS ux_catalog_items_tenant_model
    ON catalog_items(tenant_id, model_norm)
    WHERE model_norm IS NOT NULL;

CREATE TABLE IF NOT EXISTS catalog_aliases (
    alias_id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id TEXT NOT NULL REFERENCES catalog_items(item_id) ON DELETE CASCADE,
    tenant_id TEXT NOT NULL,
    alias TEXT NOT NULL,
    alias_norm TEXT NOT NULL,
    alias_kind TEXT NOT NULL CHECK (
        alias_kind IN ('title_exact', 'brand_model', 'model_only', 'brand_only', 'manual')
    ),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (item_id, alias_kind, alias_norm)
);

CREATE INDEX IF NOT EXISTS ix_catalog_aliases_tenant_norm
    ON catalog_aliases(tenant_id, alias_norm);

CREATE TABLE IF NOT EXISTS resolution_log (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    tenant_id TEXT NOT NULL,
    query TEXT NOT NULL,
    query_norm TEXT NOT NULL,
    decision TEXT NOT NULL CHECK (decision IN ('single', 'multiple', 'none')),
    reason TEXT,
    top_candidates TEXT,
    filter_applied INTEGER NOT NULL DEFAULT 0,
    filter_method TEXT,
    used_fallback INTEGER,
    kept_passages INTEGER,
    original_passages INTEGER,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS ix_resolution_log_tenant
    ON resolution_log(tenant_id, log_id);
"""

_ITEM_COLUMNS = (
    "item_id, tenant_id, title, title_norm, brand, brand_norm, "
    "model, model_norm, url, description"
)

MIN_BRAND_ALIAS_LENGTH = 2
MIN_TITLE_TOKEN_ALIAS_LENGTH = 3


class SQLiteCatalogStore:
    """
    Catalog items, aliases and resolution log in one SQLite database.

    Writes regenerate derived aliases and notify change listeners (used to
    invalidate the in-domain vocabulary cache). Reads never mutate.
    """

    def __init__(self, database_path: str = ":memory:"):
        """
        :param database_path: SQLite file path, or ":memory:" for tests
        """
        self._database_path = database_path
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(database_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.create_function("normalize_text", 1, normalize_text, deterministic=True)
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(SCHEMA)
        self._listeners: List[Callable[[str], None]] = []

    # ----------------------------
    # Writes
    # ----------------------------
    def save_item(self, draft: CatalogItemDraft) -> CatalogItem:
        """
        Insert or replace a catalog item and regenerate its derived aliases.

        Manual aliases already stored for the item are kept; the draft's
        ``manual_aliases`` are added on top.

        :param draft: Raw item fields
        :return: Stored item with normalized fields
        :raises: DuplicateModelError if the tenant already has the normalized model
        :raises: ItemTenantConflictError if the item id belongs to another tenant
        """
        if not draft.title or not draft.title.strip():
            raise ValueError("Catalog item title is required")
        if not draft.url or not draft.url.strip():
            raise ValueError("Catalog item url is required")

        item_id = draft.item_id or uuid.uuid4().hex

        with self._lock:
            existing = self.get_item(item_id)
            if existing is not None and existing.tenant_id != draft.tenant_id:
                raise ItemTenantConflictError(
                    f"Item id {item_id!r} already belongs to tenant {existing.tenant_id!r}"
                )

            try:
                with self._conn:
                    self._conn.execute(
                        """
                        INSERT INTO catalog_items (
                            item_id, tenant_id, title, title_norm, brand, brand_norm,
                            model, model_norm, url, description
                        ) VALUES (
                            ?, ?, ?, normalize_text(?), ?, NULLIF(normalize_text(?), ''),
                            ?, NULLIF(normalize_text(?), ''), ?, ?
                        )
                        ON CONFLICT(item_id) DO UPDATE SET
                            title = excluded.title,
                            title_norm = excluded.title_norm,
                            brand = excluded.brand,
                            brand_norm = excluded.brand_norm,
                            model = excluded.model,
                            model_norm = excluded.model_norm,
                            url = excluded.url,
                            description = excluded.description,
                            updated_at = CURRENT_TIMESTAMP
                        WHERE catalog_items.tenant_id = excluded.tenant_id
                        """,
                        (
                            item_id, draft.tenant_id, draft.title, draft.title,
                            draft.brand, draft.brand, draft.model, draft.model,
                            draft.url, draft.description,
                        ),
                    )
                    self._conn.execute(
                        "DELETE FROM catalog_aliases WHERE item_id = ? AND alias_kind != ?",
                        (item_id, AliasKind.MANUAL.value),
                    )
                    for alias, kind in derive_aliases(draft):
                        self._insert_alias(item_id, draft.tenant_id, alias, kind)
                    for alias in draft.manual_aliases:
                        self._insert_alias(item_id, draft.tenant_id, alias, AliasKind.MANUAL)
            except sqlite3.IntegrityError as e:
                # SQLite names the indexed columns, not the index
                if "catalog_items.model_norm" not in str(e):
                    raise
                raise DuplicateModelError(
                    f"Tenant {draft.tenant_id!r} already has an item with model "
                    f"{normalize_text(draft.model)!r}"
                ) from e

            item = self.get_item(item_id)

        logger.debug(f"Saved catalog item {item_id} ({item.title_norm}) for tenant {item.tenant_id}")
        self._notify(item.tenant_id)
        return item

    def save_items(self, drafts: Iterable[CatalogItemDraft]) -> List[CatalogItem]:
        return [self.save_item(draft) for draft in drafts]

    def add_manual_alias(self, item_id: str, alias: str) -> Optional[Alias]:
        """
        Attach a curated alias to an item.

        :return: The stored alias, or None if it normalizes to nothing or already exists
        :raises: CatalogItemNotFoundError if the item does not exist
        """
        item = self.get_item(item_id)
        if item is None:
            raise CatalogItemNotFoundError(f"Catalog item {item_id!r} not found")

        with self._lock:
            with self._conn:
                inserted = self._insert_alias(item_id, item.tenant_id, alias, AliasKind.MANUAL)
            if not inserted:
                return None
            row = self._conn.execute(
                """
                SELECT item_id, tenant_id, alias, alias_norm, alias_kind
                FROM catalog_aliases
                WHERE item_id = ? AND alias_kind = ? AND alias_norm = normalize_text(?)
                """,
                (item_id, AliasKind.MANUAL.value, alias),
            ).fetchone()

        self._notify(item.tenant_id)
        return _row_to_alias(row)

    def delete_item(self, item_id: str) -> bool:
        """Delete an item; its aliases go with it."""
        item = self.get_item(item_id)
        if item is None:
            return False

        with self._lock:
            with self._conn:
                self._conn.execute("DELETE FROM catalog_items WHERE item_id = ?", (item_id,))

        logger.debug(f"Deleted catalog item {item_id} for tenant {item.tenant_id}")
        self._notify(item.tenant_id)
        return True

    def record_resolution(self, record: dict) -> None:
        """Append one resolution telemetry record."""
        with self._lock:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO resolution_log (
                        tenant_id, query, query_norm, decision, reason, top_candidates,
                        filter_applied, filter_method, used_fallback,
                        kept_passages, original_passages
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record["tenant_id"],
                        record["query"],
                        record["query_norm"],
                        record["decision"],
                        record.get("reason"),
                        json.dumps(record.get("top_candidates", [])),
                        int(bool(record.get("filter_applied", False))),
                        record.get("filter_method"),
                        _optional_int(record.get("used_fallback")),
                        record.get("kept_passages"),
                        record.get("original_passages"),
                    ),
                )

    # ----------------------------
    # Reads
    # ----------------------------
    def get_item(self, item_id: str, tenant_id: Optional[str] = None) -> Optional[CatalogItem]:
        sql = f"SELECT {_ITEM_COLUMNS} FROM catalog_items WHERE item_id = ?"
        params: Tuple = (item_id,)
        if tenant_id is not None:
            sql += " AND tenant_id = ?"
            params = (item_id, tenant_id)

        with self._lock:
            row = self._conn.execute(sql, params).fetchone()
        return _row_to_item(row) if row else None

    def list_items(self, tenant_id: str, limit: Optional[int] = None) -> List[CatalogItem]:
        sql = f"SELECT {_ITEM_COLUMNS} FROM catalog_items WHERE tenant_id = ? ORDER BY title_norm, item_id"
        params: Tuple = (tenant_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (tenant_id, limit)

        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_item(row) for row in rows]

    def list_aliases(
        self,
        tenant_id: str,
        kinds: Optional[Iterable[AliasKind]] = None,
    ) -> List[Alias]:
        sql = (
            "SELECT item_id, tenant_id, alias, alias_norm, alias_kind "
            "FROM catalog_aliases WHERE tenant_id = ?"
        )
        params: list = [tenant_id]
        if kinds is not None:
            kind_values = [AliasKind(kind).value for kind in kinds]
            sql += f" AND alias_kind IN ({', '.join('?' for _ in kind_values)})"
            params.extend(kind_values)
        sql += " ORDER BY item_id, alias_kind, alias_norm"

        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_alias(row) for row in rows]

    def normalize(self, text: Optional[str]) -> Optional[str]:
        """Normalize through the SQL function used for stored columns."""
        with self._lock:
            row = self._conn.execute("SELECT normalize_text(?)", (text,)).fetchone()
        return row[0]

    def recent_resolutions(self, tenant_id: str, limit: int = 20) -> List[dict]:
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT tenant_id, query, query_norm, decision, reason, top_candidates,
                       filter_applied, filter_method, used_fallback,
                       kept_passages, original_passages, created_at
                FROM resolution_log
                WHERE tenant_id = ?
                ORDER BY log_id DESC
                LIMIT ?
                """,
                (tenant_id, limit),
            ).fetchall()

        records = []
        for row in rows:
            record = dict(row)
            record["top_candidates"] = json.loads(record["top_candidates"] or "[]")
            record["filter_applied"] = bool(record["filter_applied"])
            if record["used_fallback"] is not None:
                record["used_fallback"] = bool(record["used_fallback"])
            records.append(record)
        return records

    # ----------------------------
    # Change notification
    # ----------------------------
    def add_change_listener(self, listener: Callable[[str], None]) -> None:
        """Register a callback invoked with the tenant id after every write."""
        self._listeners.append(listener)

    def _notify(self, tenant_id: str) -> None:
        for listener in self._listeners:
            try:
                listener(tenant_id)
            except Exception as e:
                logger.warning(f"Catalog change listener failed for tenant {tenant_id}: {e}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _insert_alias(self, item_id: str, tenant_id: str, alias: str, kind: AliasKind) -> bool:
        cursor = self._conn.execute(
            """
            INSERT OR IGNORE INTO catalog_aliases (item_id, tenant_id, alias, alias_norm, alias_kind)
            SELECT ?, ?, ?, normalize_text(?), ?
            WHERE normalize_text(?) != ''
            """,
            (item_id, tenant_id, alias, alias, kind.value, alias),
        )
        return cursor.rowcount > 0


def derive_aliases(draft: CatalogItemDraft) -> List[Tuple[str, AliasKind]]:
    """
    Alias variants generated automatically for an item.

    When the brand is missing or too short, the first title token stands in
    as the brand-only alias.
    """
    brand = (draft.brand or "").strip()
    model = (draft.model or "").strip()

    aliases = [(draft.title.strip(), AliasKind.TITLE_EXACT)]

    if brand and model:
        aliases.append((f"{brand} {model}", AliasKind.BRAND_MODEL))

    if model:
        aliases.append((model, AliasKind.MODEL_ONLY))

    if len(normalize_text(brand)) >= MIN_BRAND_ALIAS_LENGTH:
        aliases.append((brand, AliasKind.BRAND_ONLY))
    else:
        tokens = draft.title.split()
        if tokens and len(normalize_text(tokens[0])) >= MIN_TITLE_TOKEN_ALIAS_LENGTH:
            aliases.append((tokens[0], AliasKind.BRAND_ONLY))

    return aliases


def _row_to_item(row: sqlite3.Row) -> CatalogItem:
    return CatalogItem(
        item_id=row["item_id"],
        tenant_id=row["tenant_id"],
        title=row["title"],
        url=row["url"],
        title_norm=row["title_norm"],
        brand=row["brand"],
        model=row["model"],
        brand_norm=row["brand_norm"],
        model_norm=row["model_norm"],
        description=row["description"],
    )


def _row_to_alias(row: sqlite3.Row) -> Alias:
    return Alias(
        item_id=row["item_id"],
        tenant_id=row["tenant_id"],
        alias=row["alias"],
        alias_norm=row["alias_norm"],
        kind=AliasKind(row["alias_kind"]),
    )


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(bool(value))
