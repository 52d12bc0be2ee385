#!/usr/bin/env python3
"""
View and summarize the resolution log.

Usage:
    PYTHONPATH=src python demo/view_logs.py [database_path] [tenant_id]

Defaults come from CATALOG_DB_PATH and CATALOG_TENANT_ID.
"""
import sys
from collections import Counter

from catalog_resolver.catalog_store import SQLiteCatalogStore
from catalog_resolver.config_loader import load_config_from_env


def print_entry(entry: dict, index: int):
    """Print a log entry in a readable format."""
    print(f"\n{'=' * 80}")
    print(f"[{index}] {entry['decision'].upper()} - {entry.get('created_at', '')}")
    print(f"{'=' * 80}")
    print(f"Query: {entry['query']}  (normalized: '{entry['query_norm']}')")

    if entry.get("reason"):
        print(f"Reason: {entry['reason']}")

    for candidate in entry.get("top_candidates", []):
        print(
            f"  {candidate['title']}: alias={candidate['alias_score']} "
            f"fts={candidate['fts_score']} total={candidate['total_score']}"
        )

    if entry.get("filter_applied"):
        print(
            f"Filter: {entry['filter_method']}, kept {entry['kept_passages']}/"
            f"{entry['original_passages']}, fallback={entry['used_fallback']}"
        )


def print_summary(entries):
    """Decision counts and refusal rate, for threshold tuning."""
    decisions = Counter(e["decision"] for e in entries)
    filtered = [e for e in entries if e.get("filter_applied")]
    refused = [e for e in filtered if not e.get("kept_passages")]
    fallbacks = [e for e in filtered if e.get("used_fallback")]

    print(f"\n{'=' * 80}")
    print("SUMMARY")
    print(f"{'=' * 80}")
    print(f"Total resolutions: {len(entries)}")
    for decision in ("single", "multiple", "none"):
        print(f"  {decision}: {decisions.get(decision, 0)}")
    print(f"Filter refusals: {len(refused)}/{len(filtered)}")
    print(f"Model-only fallbacks: {len(fallbacks)}/{len(filtered)}")


def main():
    config = load_config_from_env()
    database_path = sys.argv[1] if len(sys.argv) > 1 else config.database_path
    tenant_id = sys.argv[2] if len(sys.argv) > 2 else config.default_tenant_id

    store = SQLiteCatalogStore(database_path)
    try:
        entries = store.recent_resolutions(tenant_id, limit=200)
    finally:
        store.close()

    if not entries:
        print(f"No resolution log entries for tenant '{tenant_id}' in {database_path}")
        return 0

    for index, entry in enumerate(reversed(entries), 1):
        print_entry(entry, index)
    print_summary(entries)
    return 0


if __name__ == "__main__":
    sys.exit(main())
