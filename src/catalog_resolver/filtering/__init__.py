from .passage_filter import (
    can_filter,
    filter_passages,
    filter_passages_detailed,
    log_filter_result,
    should_use_strict_filtering,
)

__all__ = [
    "can_filter",
    "filter_passages",
    "filter_passages_detailed",
    "log_filter_result",
    "should_use_strict_filtering",
]
