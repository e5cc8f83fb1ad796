"""Query capability results shared by the GraphQL and OpenAPI analyzers."""

from dataclasses import dataclass, field
from typing import Literal

PredicateMappingPreset = Literal["hasura", "prisma", "jsonapi", "rest-simple"]
FilterStyle = Literal["hasura", "prisma", "jsonapi", "rest-simple", "custom"]
PaginationStyle = Literal["relay", "cursor", "offset", "page", "none"]


@dataclass
class FilterCapabilities:
    has_filtering: bool = False
    filter_style: FilterStyle | None = None
    # GraphQL: name of the filter input object type
    filter_input_type: str | None = None
    # OpenAPI: query parameters that act as filters
    filter_params: list[str] = field(default_factory=list)


@dataclass
class SortCapabilities:
    has_sorting: bool = False
    sort_param: str | None = None
    order_by_input_type: str | None = None


@dataclass
class PaginationCapabilities:
    style: PaginationStyle = "none"
    limit_param: str | None = None
    offset_param: str | None = None
    page_param: str | None = None
    per_page_param: str | None = None


@dataclass
class QueryCapabilities:
    """What a list query lets a caller push down to the backend."""
    filter: FilterCapabilities = field(default_factory=FilterCapabilities)
    sort: SortCapabilities = field(default_factory=SortCapabilities)
    pagination: PaginationCapabilities = field(default_factory=PaginationCapabilities)


def has_query_capabilities(capabilities: QueryCapabilities) -> bool:
    """Check if the query has any filtering/sorting/pagination capabilities."""
    return (
        capabilities.filter.has_filtering
        or capabilities.sort.has_sorting
        or capabilities.pagination.style != "none"
    )


def on_demand_sync_warning(entity: str, capabilities: QueryCapabilities) -> str | None:
    """Warning for an on-demand entity whose query cannot push predicates down."""
    if has_query_capabilities(capabilities):
        return None
    return (
        f'Entity "{entity}" configured for on-demand sync, but no filtering arguments '
        "detected on the query field. Collection will fetch all data regardless of predicates."
    )
