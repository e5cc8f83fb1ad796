"""Query capability analyzers for predicate push-down."""

from .capabilities import (
    FilterCapabilities,
    PaginationCapabilities,
    QueryCapabilities,
    SortCapabilities,
    has_query_capabilities,
    on_demand_sync_warning,
)
from .graphql_analysis import analyze_graphql_query_capabilities, infer_predicate_mapping_preset
from .openapi_analysis import analyze_query_parameters

__all__ = [
    "FilterCapabilities",
    "PaginationCapabilities",
    "QueryCapabilities",
    "SortCapabilities",
    "analyze_graphql_query_capabilities",
    "analyze_query_parameters",
    "has_query_capabilities",
    "infer_predicate_mapping_preset",
    "on_demand_sync_warning",
]
