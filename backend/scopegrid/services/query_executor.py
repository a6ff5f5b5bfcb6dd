"""
Query Executor: runs a sanitized query against a registered business table

- Flat reads: COUNT(*) under the filters, then one page of the selected columns
- Grouped reads: GROUP BY the group columns with a per-group row count,
  returned as a mapping keyed by the first group column
"""
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import and_, func, not_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.types import Date, DateTime
from loguru import logger

from scopegrid.core.exceptions import ExecutionError, ValidationError
from scopegrid.services.filter_tree import Connector, FilterNode, Leaf
from scopegrid.services.query_sanitizer import SanitizedQuery
from scopegrid.services.resource_registry import ResourceHandler

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
GROUP_COUNT_LABEL = "_count"


# ============================================================================
# Pagination
# ============================================================================

def _positive_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def parse(cls, page: Any = None, page_size: Any = None, default_page_size: int = DEFAULT_PAGE_SIZE):
        """Absent, non-numeric or non-positive values fall back to the defaults."""
        return cls(
            page=_positive_int(page, DEFAULT_PAGE),
            page_size=_positive_int(page_size, default_page_size),
        )

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def take(self) -> int:
        return self.page_size


@dataclass
class QueryResult:
    data: Union[List[Dict[str, Any]], Dict[str, List[Dict[str, Any]]]]
    total_records: int
    page: int
    page_size: int
    grouped: bool = False


# ============================================================================
# Filter compilation
# ============================================================================

def _coerce(column, value: Any) -> Any:
    if isinstance(value, str) and isinstance(column.type, (DateTime, Date)):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid date value for column '{column.name}'")
        if isinstance(column.type, DateTime):
            return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed
        return parsed.date()
    return value


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _compile_condition(column, operator: str, value: Any, insensitive: bool):
    if operator == "equals":
        if value is None:
            return column.is_(None)
        if insensitive and isinstance(value, str):
            return func.lower(column) == value.lower()
        return column == _coerce(column, value)

    if operator == "not":
        if isinstance(value, dict):
            nested_insensitive = insensitive or value.get("mode") == "insensitive"
            parts = [
                _compile_condition(column, nested_op, nested_value, nested_insensitive)
                for nested_op, nested_value in value.items()
                if nested_op != "mode"
            ]
            return not_(and_(*parts)) if parts else None
        if value is None:
            return column.isnot(None)
        return column != _coerce(column, value)

    if operator == "in":
        return column.in_([_coerce(column, item) for item in _as_list(value)])
    if operator == "notIn":
        return column.notin_([_coerce(column, item) for item in _as_list(value)])

    if operator in ("lt", "lte", "gt", "gte"):
        if value is None:
            raise ValidationError(f"Operator '{operator}' requires a value")
        coerced = _coerce(column, value)
        return {
            "lt": column < coerced,
            "lte": column <= coerced,
            "gt": column > coerced,
            "gte": column >= coerced,
        }[operator]

    if operator in ("contains", "startsWith", "endsWith"):
        text_value = "" if value is None else str(value)
        if operator == "contains":
            method = column.icontains if insensitive else column.contains
        elif operator == "startsWith":
            method = column.istartswith if insensitive else column.startswith
        else:
            method = column.iendswith if insensitive else column.endswith
        return method(text_value, autoescape=True)

    raise ValidationError(f"Unsupported filter operator '{operator}'")


def compile_filter(node: FilterNode, handler: ResourceHandler):
    """Translate a sanitized filter tree into a SQLAlchemy clause (None = no constraint)."""
    if isinstance(node, Leaf):
        column = handler.column(node.column)
        if column is None:
            raise ValidationError(f"Unknown column '{node.column}'")
        return _compile_condition(column, node.operator, node.value, node.insensitive)

    parts = [part for part in (compile_filter(child, handler) for child in node.children) if part is not None]
    if not parts:
        return None
    if node.kind == "OR":
        return or_(*parts)
    if node.kind == "NOT":
        # every listed condition must be false
        return and_(*[not_(part) for part in parts])
    return and_(*parts)


def _group_key(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


# ============================================================================
# Executor
# ============================================================================

class QueryExecutor:
    """Runs sanitized queries. Callers must sanitize first; this class trusts its input."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        handler: ResourceHandler,
        query: SanitizedQuery,
        pagination: Optional[Pagination] = None,
    ) -> QueryResult:
        pagination = pagination or Pagination()
        criterion = compile_filter(query.filters, handler)
        try:
            if query.group_by:
                return self._execute_grouped(handler, query, criterion, pagination)
            return self._execute_flat(handler, query, criterion, pagination)
        except SQLAlchemyError as e:
            reference = uuid.uuid4().hex[:12]
            logger.error(f"Query on '{handler.table_id}' failed [ref {reference}]: {e}")
            raise ExecutionError("Error fetching data", detail=f"ref:{reference}")

    def _order_clauses(self, handler: ResourceHandler, query: SanitizedQuery, restrict_to=None):
        clauses = []
        for spec in query.sort:
            if restrict_to is not None and spec.column not in restrict_to:
                continue
            column = handler.column(spec.column)
            if column is None:
                continue
            clauses.append(column.desc() if spec.direction == "desc" else column.asc())
        return clauses

    def _execute_flat(self, handler, query, criterion, pagination) -> QueryResult:
        selected = [handler.column(name) for name in query.columns]
        selected = [column for column in selected if column is not None]
        if not selected:
            raise ValidationError("No readable columns selected")

        count_query = self.db.query(func.count()).select_from(handler.model)
        if criterion is not None:
            count_query = count_query.filter(criterion)
        total = count_query.scalar() or 0

        data_query = self.db.query(*selected)
        if criterion is not None:
            data_query = data_query.filter(criterion)
        # OFFSET requires a deterministic ORDER BY on SQL Server
        order_by = self._order_clauses(handler, query) or [pk.asc() for pk in handler.primary_key]
        rows = (
            data_query.order_by(*order_by)
            .offset(pagination.skip)
            .limit(pagination.take)
            .all()
        )
        names = [column.name for column in selected]
        data = [dict(zip(names, row)) for row in rows]

        logger.debug(
            f"Flat read on '{handler.table_id}': {len(data)} of {total} rows "
            f"(page {pagination.page}, size {pagination.page_size})"
        )
        return QueryResult(data=data, total_records=total, page=pagination.page, page_size=pagination.page_size)

    def _execute_grouped(self, handler, query, criterion, pagination) -> QueryResult:
        group_columns = [handler.column(name) for name in query.group_by]
        group_columns = [column for column in group_columns if column is not None]
        names = [column.name for column in group_columns]

        grouped_query = self.db.query(*group_columns, func.count().label(GROUP_COUNT_LABEL))
        if criterion is not None:
            grouped_query = grouped_query.filter(criterion)
        order_by = self._order_clauses(handler, query, restrict_to=set(names)) or [c.asc() for c in group_columns]
        rows = grouped_query.group_by(*group_columns).order_by(*order_by).all()

        data: Dict[str, List[Dict[str, Any]]] = {}
        for row in rows:
            record = dict(zip(names, row[:-1]))
            record[GROUP_COUNT_LABEL] = row[-1]
            data.setdefault(_group_key(record[names[0]]), []).append(record)

        logger.debug(f"Grouped read on '{handler.table_id}' by {names}: {len(rows)} groups")
        return QueryResult(
            data=data,
            total_records=len(rows),
            page=pagination.page,
            page_size=pagination.page_size,
            grouped=True,
        )
