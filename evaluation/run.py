from catalog_resolver.catalog_store import SQLiteCatalogStore
from catalog_resolver.config_loader import load_config_from_env
from catalog_resolver.models import CatalogItemDraft
from catalog_resolver.resolution import create_resolver
from evaluation.cases import EVAL_CASES, EVAL_CATALOG
from evaluation.metrics import calculate_metrics
from evaluation.runner import run_evaluation

TENANT_ID = "eval"

# Step 1 - Thresholds from the environment, catalog in memory
config = load_config_from_env()
config.database_path = ":memory:"
store = SQLiteCatalogStore(config.database_path)
store.save_items(CatalogItemDraft(tenant_id=TENANT_ID, **row) for row in EVAL_CATALOG)

# Step 2 - Resolver without telemetry
resolver = create_resolver(config, store)

# Step 3 - Run labelled queries
results = run_evaluation(resolver, EVAL_CASES, tenant_id=TENANT_ID)

for r in results:
    print(f"{r['id']}: {r['decision']} {r['winner'] or ''} ({r['latency_ms']} ms)")
    for c in r["candidates"]:
        print(f"    {c['title']}: alias={c['alias_score']} fts={c['fts_score']} total={c['total_score']}")

print("-" * 50)
print(calculate_metrics(results, EVAL_CASES))

resolver.close()
store.close()
