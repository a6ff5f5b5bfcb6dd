"""
Query Sanitizer: strips every column reference the caller is not entitled to

Filters, sort entries, group-by columns and selected columns are all cut down
to `permitted_columns` before anything reaches query construction, logging or
the response. Unauthorized references are dropped silently, never rejected.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from scopegrid.services.filter_tree import (
    Connector, FilterNode, Leaf, SortSpec,
    empty_filter, filter_to_wire, parse_filter_tree, parse_sort, sort_to_wire,
)


@dataclass
class SanitizedQuery:
    columns: List[str]
    filters: FilterNode = field(default_factory=empty_filter)
    sort: List[SortSpec] = field(default_factory=list)
    group_by: List[str] = field(default_factory=list)

    @property
    def applied_filters(self):
        return filter_to_wire(self.filters)

    @property
    def applied_sorting(self):
        return sort_to_wire(self.sort)

    @property
    def applied_grouping(self):
        return list(self.group_by)


def sanitize_filter_node(node: FilterNode, permitted: Iterable[str]) -> Optional[FilterNode]:
    """Drop unauthorized leaves; connectors survive with whatever children remain."""
    allowed = set(permitted)
    if isinstance(node, Leaf):
        return node if node.column in allowed else None

    children = []
    for child in node.children:
        cleaned = sanitize_filter_node(child, allowed)
        if cleaned is not None:
            children.append(cleaned)
    return Connector(node.kind, children, node.implicit)


def sanitize_filters(raw: Any, permitted: Iterable[str]) -> FilterNode:
    cleaned = sanitize_filter_node(parse_filter_tree(raw), permitted)
    return cleaned if cleaned is not None else empty_filter()


def sanitize_sort(raw: Any, permitted: Iterable[str]) -> List[SortSpec]:
    allowed = set(permitted)
    return [spec for spec in parse_sort(raw) if spec.column in allowed]


def sanitize_group_by(raw: Any, permitted: Iterable[str]) -> List[str]:
    if not isinstance(raw, list):
        return []
    allowed = set(permitted)
    return [column for column in raw if isinstance(column, str) and column in allowed]


def sanitize_columns(raw: Any, permitted: Iterable[str]) -> List[str]:
    if not isinstance(raw, list):
        return []
    allowed = set(permitted)
    return [column for column in raw if isinstance(column, str) and column in allowed]


def unauthorized_columns(raw: Any, permitted: Iterable[str]) -> List[str]:
    """Requested column names outside the permitted set (used to reject view definitions)."""
    if not isinstance(raw, list):
        return []
    allowed = set(permitted)
    return [column for column in raw if not isinstance(column, str) or column not in allowed]


def sanitize_query(
    columns: Any,
    filters: Any,
    sort: Any,
    group_by: Any,
    permitted: List[str],
) -> SanitizedQuery:
    group_columns = sanitize_group_by(group_by, permitted)
    sort_specs = sanitize_sort(sort, permitted)
    if group_columns:
        # grouped reads can only order by their group columns
        sort_specs = [spec for spec in sort_specs if spec.column in group_columns]
    return SanitizedQuery(
        columns=sanitize_columns(columns, permitted),
        filters=sanitize_filters(filters, permitted),
        sort=sort_specs,
        group_by=group_columns,
    )
