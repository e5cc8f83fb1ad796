"""GraphQL query argument analysis for predicate push-down.

Detects, from a query field's arguments:
- Filtering (Hasura-style bool_exp, Prisma-style WhereInput, custom)
- Sorting (order_by / orderBy / sort arguments)
- Pagination (Relay cursors, Prisma take/skip, limit/offset)
"""

import re
from typing import Iterable

from graphql import (
    GraphQLArgument,
    GraphQLField,
    GraphQLInputObjectType,
    is_input_object_type,
    is_list_type,
    is_non_null_type,
)

from .capabilities import (
    FilterCapabilities,
    PaginationCapabilities,
    QueryCapabilities,
    SortCapabilities,
)

HASURA_FILTER_PATTERNS = [re.compile(r"_bool_exp$"), re.compile(r"_where$")]
HASURA_FILTER_FIELDS = ["_eq", "_neq", "_lt", "_lte", "_gt", "_gte", "_in", "_nin", "_and", "_or", "_not"]

PRISMA_FILTER_PATTERNS = [re.compile(r"WhereInput$"), re.compile(r"WhereUniqueInput$")]
PRISMA_FILTER_FIELDS = [
    "equals", "not", "in", "notIn", "lt", "lte", "gt", "gte", "contains", "startsWith", "endsWith",
]

HASURA_ORDER_BY_PATTERNS = [re.compile(r"_order_by$")]
PRISMA_ORDER_BY_PATTERNS = [re.compile(r"OrderByInput$"), re.compile(r"OrderByWithRelationInput$")]

FILTER_ARG_NAMES = ["where", "filter", "filters"]
SORT_ARG_NAMES = ["order_by", "orderBy", "sort", "sortBy"]
LIMIT_ARG_NAMES = ["limit", "first", "take"]
OFFSET_ARG_NAMES = ["offset", "skip"]


def _arguments(args) -> list[tuple[str, GraphQLArgument]]:
    """Normalize graphql-core's name -> argument mapping to ordered pairs."""
    if isinstance(args, dict):
        return list(args.items())
    return list(args)


def _find(args: list[tuple[str, GraphQLArgument]], name: str) -> tuple[str, GraphQLArgument] | None:
    lower = name.lower()
    for arg_name, arg in args:
        if arg_name.lower() == lower:
            return arg_name, arg
    return None


def _find_name(args: list[tuple[str, GraphQLArgument]], names: Iterable[str]) -> str | None:
    for name in names:
        found = _find(args, name)
        if found:
            return found[0]
    return None


def unwrap_type(gql_type):
    """Strip NonNull and List wrappers."""
    while is_non_null_type(gql_type) or is_list_type(gql_type):
        gql_type = gql_type.of_type
    return gql_type


def analyze_graphql_query_capabilities(field: GraphQLField) -> QueryCapabilities:
    """Analyze a query field's arguments for filter, sort and pagination support."""
    args = _arguments(field.args)
    return QueryCapabilities(
        filter=analyze_filter_capabilities(args),
        sort=analyze_sort_capabilities(args),
        pagination=analyze_pagination_capabilities(args),
    )


# =============================================================================
# Filter analysis
# =============================================================================


def analyze_filter_capabilities(args) -> FilterCapabilities:
    args = _arguments(args)
    for arg_name in FILTER_ARG_NAMES:
        found = _find(args, arg_name)
        if not found:
            continue
        input_type = unwrap_type(found[1].type)
        if is_input_object_type(input_type):
            return FilterCapabilities(
                has_filtering=True,
                filter_style=detect_filter_style(input_type),
                filter_input_type=input_type.name,
            )
    return FilterCapabilities()


def detect_filter_style(input_type: GraphQLInputObjectType) -> str:
    """Classify a filter input type as hasura, prisma or custom.

    Type-name patterns are checked before field names for each style.
    """
    type_name = input_type.name
    field_names = set(input_type.fields)
    if any(pattern.search(type_name) for pattern in HASURA_FILTER_PATTERNS):
        return "hasura"
    if any(name in field_names for name in HASURA_FILTER_FIELDS):
        return "hasura"
    if any(pattern.search(type_name) for pattern in PRISMA_FILTER_PATTERNS):
        return "prisma"
    if any(name in field_names for name in PRISMA_FILTER_FIELDS):
        return "prisma"
    return "custom"


def detect_filter_style_from_type_name(type_name: str) -> str | None:
    if any(pattern.search(type_name) for pattern in HASURA_FILTER_PATTERNS):
        return "hasura"
    if any(pattern.search(type_name) for pattern in PRISMA_FILTER_PATTERNS):
        return "prisma"
    return None


# =============================================================================
# Sort analysis
# =============================================================================


def analyze_sort_capabilities(args) -> SortCapabilities:
    args = _arguments(args)
    for arg_name in SORT_ARG_NAMES:
        found = _find(args, arg_name)
        if not found:
            continue
        input_type = unwrap_type(found[1].type)
        return SortCapabilities(
            has_sorting=True,
            sort_param=found[0],
            order_by_input_type=input_type.name if is_input_object_type(input_type) else None,
        )
    return SortCapabilities()


def detect_order_by_style(type_name: str) -> str | None:
    if any(pattern.search(type_name) for pattern in HASURA_ORDER_BY_PATTERNS):
        return "hasura"
    if any(pattern.search(type_name) for pattern in PRISMA_ORDER_BY_PATTERNS):
        return "prisma"
    return None


# =============================================================================
# Pagination analysis
# =============================================================================


def analyze_pagination_capabilities(args) -> PaginationCapabilities:
    args = _arguments(args)
    names = {arg_name.lower() for arg_name, _ in args}

    # Relay: first/last together with after/before
    if names & {"first", "last"} and names & {"after", "before"}:
        return PaginationCapabilities(
            style="relay",
            limit_param=_find_name(args, ["first"]) or _find_name(args, ["last"]),
        )

    if names & {"take", "skip"}:
        return PaginationCapabilities(
            style="offset",
            limit_param=_find_name(args, ["take"]),
            offset_param=_find_name(args, ["skip"]),
        )

    limit_param = _find_name(args, LIMIT_ARG_NAMES)
    offset_param = _find_name(args, OFFSET_ARG_NAMES)
    if limit_param or offset_param:
        return PaginationCapabilities(
            style="offset", limit_param=limit_param, offset_param=offset_param
        )
    return PaginationCapabilities()


def infer_predicate_mapping_preset(capabilities: QueryCapabilities) -> str | None:
    """Infer the push-down preset from detected capabilities."""
    filter_caps = capabilities.filter
    if filter_caps.has_filtering and filter_caps.filter_style and filter_caps.filter_style != "custom":
        return filter_caps.filter_style
    if capabilities.sort.order_by_input_type:
        return detect_order_by_style(capabilities.sort.order_by_input_type)
    return None
