"""
Models for planned and listed log views.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from logviews.models.catalog import ColumnCategory

VIEW_TYPE = "logs"


class ColumnMetadata(BaseModel):
    """
    Column metadata exposed to callers.
    """

    key: str
    category: Optional[ColumnCategory] = None
    geo_type: Optional[str] = None


class CompiledView(BaseModel):
    """
    The final view query with its named bind parameters.
    """

    sql: str
    params: Dict[str, Any] = Field(default_factory=dict)


class CacheDependency(BaseModel):
    """
    A cache table the view reads from.
    """

    kind: Literal["log"] = "log"
    cache_id: int


class ViewPlan(BaseModel):
    """
    How to source a log view and the query that reads it.
    """

    view_id: str
    compiled_view: CompiledView
    exposed_columns: Dict[str, ColumnMetadata]
    cache_dependencies: List[CacheDependency] = Field(default_factory=list)
    is_internal_only: bool = False
    foreign_connections: List[str] = Field(default_factory=list)

    # Exactly one of these is set
    fast_view: Optional[str] = None
    cache_id: Optional[int] = None


class ViewInfo(BaseModel):
    """
    Identity of an addressable log view.
    """

    id: str
    type: Literal["logs"] = VIEW_TYPE
    category: str
    log_type: str
    tenant_id: int


class ViewDescriptor(BaseModel):
    """
    A log view as listed for discovery.
    """

    name: str
    view: ViewInfo
    columns: Optional[Dict[str, ColumnMetadata]] = None
