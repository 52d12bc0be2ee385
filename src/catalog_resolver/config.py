from dataclasses import dataclass
from typing import Optional


@dataclass
class ResolverConfig:
    # Storage
    database_path: str = ":memory:"
    catalog_csv_path: Optional[str] = None
    default_tenant_id: str = "default"

    # Scoring weights
    alias_weight: float = 1.0
    fts_weight: float = 0.7

    # Decision thresholds (re-validate against resolution logs)
    single_min_score: float = 0.7
    single_min_gap: float = 0.2
    multiple_min_score: float = 0.4
    max_alternatives: int = 3

    # Alias scoring
    contained_alias_score: float = 0.8
    shared_brand_alias_score: float = 0.5
    fuzzy_min_similarity: float = 0.75
    short_alias_fuzzy_min_similarity: float = 0.85
    short_alias_max_length: int = 4

    # Lookups
    lookup_limit: int = 50
    max_candidates: int = 10
    lookup_timeout_seconds: float = 2.0

    # Telemetry
    enable_telemetry: bool = True
    telemetry_queue_size: int = 1000

    # In-domain vocabulary
    enable_domain_gate: bool = False
    vocabulary_ttl_seconds: int = 900
    vocabulary_max_terms: int = 1000

    # Passages fetched per answer when no passages are supplied
    passage_top_k: int = 8
