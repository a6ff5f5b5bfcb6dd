"""
Filter Tree: typed representation of client filter / sort JSON

Wire format (Prisma-style, as stored on views and sent by clients):

    {"price": {"gte": 100}}                                  leaf
    {"website": {"contains": "blog", "mode": "insensitive"}}  leaf with modifier
    {"AND": [{...}, {...}]}                                   connector
    {"price": {"gte": 1}, "OR": [...]}                        implicit AND of both

Parsing is total: anything that is not a JSON object parses to an empty tree,
and non-object members of a connector list are dropped.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

CONNECTOR_KINDS = ("AND", "OR", "NOT")
SORT_DIRECTIONS = ("asc", "desc")
INSENSITIVE_MODE = "insensitive"


@dataclass(frozen=True)
class Leaf:
    column: str
    operator: str
    value: Any
    insensitive: bool = False


@dataclass(frozen=True)
class Connector:
    kind: str
    children: List["FilterNode"] = field(default_factory=list)
    # Several keys of one JSON object, rendered back as a single object
    implicit: bool = False


FilterNode = Union[Leaf, Connector]


@dataclass(frozen=True)
class SortSpec:
    column: str
    direction: str

    def to_wire(self) -> Dict[str, str]:
        return {self.column: self.direction}


def empty_filter() -> Connector:
    return Connector("AND", [], implicit=True)


# ============================================================================
# Parsing
# ============================================================================

def parse_filter_tree(raw: Any) -> FilterNode:
    if not isinstance(raw, dict):
        return empty_filter()

    nodes: List[FilterNode] = []
    for key, value in raw.items():
        if key in CONNECTOR_KINDS:
            items = value if isinstance(value, list) else [value]
            children = [parse_filter_tree(item) for item in items if isinstance(item, dict)]
            nodes.append(Connector(key, children))
        else:
            nodes.extend(_parse_leaves(key, value))

    if len(nodes) == 1:
        return nodes[0]
    return Connector("AND", nodes, implicit=True)


def _parse_leaves(column: str, condition: Any) -> List[Leaf]:
    if not isinstance(condition, dict):
        return [Leaf(column, "equals", condition)]
    insensitive = condition.get("mode") == INSENSITIVE_MODE
    return [
        Leaf(column, operator, value, insensitive)
        for operator, value in condition.items()
        if operator != "mode"
    ]


def parse_sort(raw: Any) -> List[SortSpec]:
    """
    Accepts `[{"price": "desc"}]`, `[{"column": "price", "direction": "desc"}]`
    or a single object of either shape. Entries with an unknown direction are dropped.
    """
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        return []

    specs: List[SortSpec] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        if "column" in item and "direction" in item:
            pairs = [(item["column"], item["direction"])]
        else:
            pairs = list(item.items())
        for column, direction in pairs:
            if isinstance(column, str) and direction in SORT_DIRECTIONS:
                specs.append(SortSpec(column, direction))
    return specs


# ============================================================================
# Serialization
# ============================================================================

def filter_to_wire(node: FilterNode) -> Dict[str, Any]:
    if isinstance(node, Leaf):
        condition: Dict[str, Any] = {node.operator: node.value}
        if node.insensitive:
            condition["mode"] = INSENSITIVE_MODE
        return {node.column: condition}

    rendered = [filter_to_wire(child) for child in node.children]
    if not node.implicit:
        return {node.kind: rendered}

    merged: Dict[str, Any] = {}
    for part in rendered:
        for key, value in part.items():
            if key not in merged:
                merged[key] = value
            elif key not in CONNECTOR_KINDS and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = {**merged[key], **value}
            else:
                return {"AND": rendered}
    return merged


def sort_to_wire(specs: List[SortSpec]) -> List[Dict[str, str]]:
    return [spec.to_wire() for spec in specs]


# ============================================================================
# Inspection
# ============================================================================

def referenced_columns(node: Optional[FilterNode]) -> List[str]:
    """Every column name a tree mentions, in first-seen order."""
    seen: List[str] = []

    def walk(current: FilterNode):
        if isinstance(current, Leaf):
            if current.column not in seen:
                seen.append(current.column)
            return
        for child in current.children:
            walk(child)

    if node is not None:
        walk(node)
    return seen
