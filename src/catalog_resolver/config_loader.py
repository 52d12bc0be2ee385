"""
Configuration loader with validation.

Reads ``CATALOG_*`` environment variables (and a local .env file) into a
ResolverConfig.
"""
from dotenv import load_dotenv

from .config import ResolverConfig
from .config_validator import (
    get_bool_env,
    get_float_env,
    get_int_env,
    get_optional_env,
    validate_path,
    validate_unit_interval,
)
from .exceptions import ConfigurationError


def load_config_from_env(use_dotenv: bool = True) -> ResolverConfig:
    """
    Load configuration from environment variables with validation.

    Usage:
        config = load_config_from_env()
        app = CatalogResolverApp(config)
        app.initialize()

    :param use_dotenv: Load a .env file first (local development)
    :return: Validated ResolverConfig instance
    :raises: ConfigurationError if values are malformed or out of range
    """
    if use_dotenv:
        load_dotenv()

    defaults = ResolverConfig()
    config = ResolverConfig(
        database_path=get_optional_env("CATALOG_DB_PATH", default=defaults.database_path),
        catalog_csv_path=get_optional_env("CATALOG_CSV_PATH"),
        default_tenant_id=get_optional_env("CATALOG_TENANT_ID", default=defaults.default_tenant_id),
        alias_weight=get_float_env("CATALOG_ALIAS_WEIGHT", defaults.alias_weight),
        fts_weight=get_float_env("CATALOG_FTS_WEIGHT", defaults.fts_weight),
        single_min_score=get_float_env("CATALOG_SINGLE_MIN_SCORE", defaults.single_min_score),
        single_min_gap=get_float_env("CATALOG_SINGLE_MIN_GAP", defaults.single_min_gap),
        multiple_min_score=get_float_env("CATALOG_MULTIPLE_MIN_SCORE", defaults.multiple_min_score),
        max_alternatives=get_int_env("CATALOG_MAX_ALTERNATIVES", defaults.max_alternatives, minimum=1),
        lookup_limit=get_int_env("CATALOG_LOOKUP_LIMIT", defaults.lookup_limit, minimum=1),
        max_candidates=get_int_env("CATALOG_MAX_CANDIDATES", defaults.max_candidates, minimum=1),
        lookup_timeout_seconds=get_float_env(
            "CATALOG_LOOKUP_TIMEOUT_SECONDS", defaults.lookup_timeout_seconds
        ),
        enable_telemetry=get_bool_env("CATALOG_ENABLE_TELEMETRY", defaults.enable_telemetry),
        telemetry_queue_size=get_int_env(
            "CATALOG_TELEMETRY_QUEUE_SIZE", defaults.telemetry_queue_size, minimum=1
        ),
        enable_domain_gate=get_bool_env("CATALOG_ENABLE_DOMAIN_GATE", defaults.enable_domain_gate),
        vocabulary_ttl_seconds=get_int_env(
            "CATALOG_VOCABULARY_TTL_SECONDS", defaults.vocabulary_ttl_seconds, minimum=1
        ),
        passage_top_k=get_int_env("CATALOG_PASSAGE_TOP_K", defaults.passage_top_k, minimum=1),
    )

    validate_config(config)

    if config.catalog_csv_path:
        validate_path(config.catalog_csv_path, "CATALOG_CSV_PATH", must_exist=True)

    return config


def validate_config(config: ResolverConfig) -> ResolverConfig:
    """
    Check ranges and the shape of the decision rule.

    :raises: ConfigurationError on invalid values
    """
    for name in (
        "fts_weight",
        "single_min_score",
        "single_min_gap",
        "multiple_min_score",
        "contained_alias_score",
        "shared_brand_alias_score",
        "fuzzy_min_similarity",
        "short_alias_fuzzy_min_similarity",
    ):
        validate_unit_interval(getattr(config, name), name)

    if config.alias_weight <= 0:
        raise ConfigurationError(f"alias_weight must be positive, got {config.alias_weight}")

    if config.multiple_min_score > config.single_min_score:
        raise ConfigurationError(
            "multiple_min_score must not exceed single_min_score "
            f"({config.multiple_min_score} > {config.single_min_score})"
        )

    if config.lookup_timeout_seconds <= 0:
        raise ConfigurationError(
            f"lookup_timeout_seconds must be positive, got {config.lookup_timeout_seconds}"
        )

    return config
