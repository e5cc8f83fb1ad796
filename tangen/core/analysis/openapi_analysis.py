"""OpenAPI query parameter analysis for predicate push-down.

Detects, from an operation's query parameters:
- Filtering (JSON:API filter[field][op], REST-simple field_op or bare fields)
- Sorting (sort / orderBy / $orderby ...)
- Pagination (cursor, page-based, offset-based)
"""

import re
from typing import Any, Iterable

from .capabilities import (
    FilterCapabilities,
    PaginationCapabilities,
    QueryCapabilities,
    SortCapabilities,
)

REST_SIMPLE_OPERATOR_SUFFIXES = [
    "_eq", "_ne", "_lt", "_lte", "_gt", "_gte", "_in", "_nin", "_like", "_contains",
]

SORT_PARAM_NAMES = ["sort", "sortBy", "sort_by", "orderBy", "order_by", "$orderby", "order"]
LIMIT_PARAM_NAMES = ["limit", "$top", "per_page", "perPage", "pageSize"]
OFFSET_PARAM_NAMES = ["offset", "$skip", "start"]
PAGE_PARAM_NAMES = ["page", "pageNumber", "page_number"]
PER_PAGE_PARAM_NAMES = ["per_page", "perPage", "pageSize", "limit"]
CURSOR_PARAM_NAMES = ["cursor", "after", "before"]

_SPECIAL_PARAMS = {
    name.lower()
    for name in SORT_PARAM_NAMES
    + LIMIT_PARAM_NAMES
    + OFFSET_PARAM_NAMES
    + PAGE_PARAM_NAMES
    + CURSOR_PARAM_NAMES
}

_JSON_API_FIELD_RE = re.compile(r"^filter\[([^\]]+)\]")
_JSON_API_OPERATOR_RE = re.compile(r"^filter\[[^\]]+\]\[([^\]]+)\]")


def _names(params: Iterable[dict[str, Any] | str]) -> list[str]:
    return [p if isinstance(p, str) else p["name"] for p in params]


def _find(names: list[str], candidates: Iterable[str]) -> str | None:
    """First candidate present (case-insensitive), returned with its original casing."""
    by_lower = {name.lower(): name for name in names}
    for candidate in candidates:
        if candidate.lower() in by_lower:
            return by_lower[candidate.lower()]
    return None


def _is_plain_filter(name: str) -> bool:
    return name.lower() not in _SPECIAL_PARAMS and not name.startswith("$") and "[" not in name


def analyze_query_parameters(params: Iterable[dict[str, Any]]) -> QueryCapabilities:
    """Analyze an operation's query parameter objects."""
    params = list(params)
    return QueryCapabilities(
        filter=analyze_filter_capabilities(params),
        sort=analyze_sort_capabilities(params),
        pagination=analyze_pagination_capabilities(params),
    )


def analyze_filter_capabilities(params) -> FilterCapabilities:
    names = _names(params)

    json_api = [n for n in names if n.startswith("filter[") and n.endswith("]")]
    if json_api:
        return FilterCapabilities(has_filtering=True, filter_style="jsonapi", filter_params=json_api)

    suffixed = [n for n in names if any(n.endswith(s) for s in REST_SIMPLE_OPERATOR_SUFFIXES)]
    if suffixed:
        return FilterCapabilities(has_filtering=True, filter_style="rest-simple", filter_params=suffixed)

    plain = [n for n in names if _is_plain_filter(n)]
    if plain:
        return FilterCapabilities(has_filtering=True, filter_style="rest-simple", filter_params=plain)
    return FilterCapabilities()


def detect_filter_style(param_names: list[str]) -> str | None:
    if any(name.startswith("filter[") for name in param_names):
        return "jsonapi"
    if any(name.endswith(s) for name in param_names for s in REST_SIMPLE_OPERATOR_SUFFIXES):
        return "rest-simple"
    if any(_is_plain_filter(name) for name in param_names):
        return "rest-simple"
    return None


def analyze_sort_capabilities(params) -> SortCapabilities:
    sort_param = _find(_names(params), SORT_PARAM_NAMES)
    if sort_param:
        return SortCapabilities(has_sorting=True, sort_param=sort_param)
    return SortCapabilities()


def analyze_pagination_capabilities(params) -> PaginationCapabilities:
    names = _names(params)

    if _find(names, CURSOR_PARAM_NAMES):
        return PaginationCapabilities(style="cursor", limit_param=_find(names, LIMIT_PARAM_NAMES))

    page_param = _find(names, PAGE_PARAM_NAMES)
    if page_param:
        return PaginationCapabilities(
            style="page",
            page_param=page_param,
            per_page_param=_find(names, PER_PAGE_PARAM_NAMES),
        )

    limit_param = _find(names, LIMIT_PARAM_NAMES)
    offset_param = _find(names, OFFSET_PARAM_NAMES)
    if limit_param or offset_param:
        return PaginationCapabilities(style="offset", limit_param=limit_param, offset_param=offset_param)
    return PaginationCapabilities()


# =============================================================================
# Filter parameter decomposition
# =============================================================================


def extract_json_api_filter_field(param_name: str) -> str | None:
    """e.g. "filter[price][gte]" -> "price"."""
    match = _JSON_API_FIELD_RE.match(param_name)
    return match.group(1) if match else None


def extract_json_api_filter_operator(param_name: str) -> str | None:
    """e.g. "filter[price][gte]" -> "gte"; "filter[status]" -> None (equality)."""
    match = _JSON_API_OPERATOR_RE.match(param_name)
    return match.group(1) if match else None


def extract_rest_simple_filter(param_name: str) -> tuple[str, str]:
    """Split a REST-simple filter into (field, operator).

    "price_gte" -> ("price", "gte"); an unsuffixed name is an equality filter.
    """
    for suffix in REST_SIMPLE_OPERATOR_SUFFIXES:
        if param_name.endswith(suffix):
            return param_name[: -len(suffix)], suffix[1:]
    return param_name, "eq"
