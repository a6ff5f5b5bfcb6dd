"""
Resource Registry: route resource segment -> business table handler

Only registered resources can be read; an unknown segment is a 404, never a
dynamic model lookup.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from sqlalchemy import BigInteger, Boolean, DateTime, Date, Float, Integer, Numeric

from scopegrid.core.exceptions import NotFound
from scopegrid.models.business import MasterData, Site


def grant_prefix_of(resource_key: str) -> str:
    """`Site_Admin` -> `site`: the lower-cased segment before the first underscore."""
    return resource_key.split("_")[0].lower()


def backend_type_name(column) -> str:
    """Storage type name reported to clients in `availableColumns`."""
    column_type = column.type
    # BigInteger subclasses Integer, so it must be tested first
    if isinstance(column_type, BigInteger):
        return "BigInt"
    if isinstance(column_type, Integer):
        return "Int"
    if isinstance(column_type, Float):
        return "Float"
    if isinstance(column_type, Numeric):
        return "Decimal"
    if isinstance(column_type, Boolean):
        return "Boolean"
    if isinstance(column_type, (DateTime, Date)):
        return "DateTime"
    return "String"


@dataclass(frozen=True)
class ResourceHandler:
    table_id: str       # canonical route segment, e.g. "sites"
    model: Type
    grant_prefix: str   # matches resource grant keys such as "Site_Sales"

    @property
    def required_permission(self) -> str:
        return f"VIEW_{self.table_id.upper()}_ROUTE"

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.model.__table__.columns]

    @property
    def primary_key(self):
        return list(self.model.__table__.primary_key.columns)

    def column(self, name: str):
        return self.model.__table__.columns.get(name)

    def matches_grant(self, resource_key: str) -> bool:
        return grant_prefix_of(resource_key) == self.grant_prefix

    def column_types(self, columns: List[str]) -> Dict[str, str]:
        types = {}
        for name in columns:
            column = self.column(name)
            if column is not None:
                types[name] = backend_type_name(column)
        return types


class ResourceRegistry:
    """Explicit table registry, built once at import time."""

    def __init__(self, handlers: List[ResourceHandler]):
        self._handlers = {handler.table_id: handler for handler in handlers}

    def find(self, resource: str) -> Optional[ResourceHandler]:
        return self._handlers.get((resource or "").lower())

    def get(self, resource: str) -> ResourceHandler:
        handler = self.find(resource)
        if handler is None:
            raise NotFound("Resource not found")
        return handler

    def table_ids(self) -> List[str]:
        return list(self._handlers)


registry = ResourceRegistry([
    ResourceHandler(table_id="sites", model=Site, grant_prefix="site"),
    ResourceHandler(table_id="masterdata", model=MasterData, grant_prefix="masterdata"),
])


def get_resource_registry() -> ResourceRegistry:
    return registry
