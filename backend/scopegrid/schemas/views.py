"""
View Pydantic Schemas: saved view definitions and ad-hoc queries

Filter and sort payloads are accepted as raw JSON; they are parsed and
sanitized against the caller's permitted columns by the service layer.
"""
from typing import Any, List, Optional
from pydantic import AliasChoices, BaseModel, Field


class ViewCreate(BaseModel):
    view_name: str = Field(..., min_length=1, max_length=200, validation_alias=AliasChoices("viewName", "view_name"))
    columns: List[str]
    filters: Any = Field(default_factory=dict)
    sort: Any = Field(default_factory=list, validation_alias=AliasChoices("sort", "sorting"))
    group_by: Any = Field(default_factory=list, validation_alias=AliasChoices("groupBy", "grouping", "group_by"))


class ViewUpdate(BaseModel):
    view_name: Optional[str] = Field(None, min_length=1, max_length=200, validation_alias=AliasChoices("viewName", "view_name"))
    columns: Optional[List[str]] = None
    filters: Any = None
    sort: Any = Field(None, validation_alias=AliasChoices("sort", "sorting"))
    group_by: Any = Field(None, validation_alias=AliasChoices("groupBy", "grouping", "group_by"))


class AdHocQuery(BaseModel):
    columns: Optional[List[str]] = None
    filters: Any = None
    sort: Any = Field(None, validation_alias=AliasChoices("sort", "sorting"))
    group_by: Any = Field(None, validation_alias=AliasChoices("groupBy", "grouping", "group_by"))
    page: Any = None
    page_size: Any = Field(None, validation_alias=AliasChoices("pageSize", "page_size"))
