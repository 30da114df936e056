"""
Models for log type catalogs: columns, dimension joins and source views.
"""

import re
from enum import StrEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from logviews.errors import CatalogValidationException, InvalidLogTypeException
from logviews.models.access import AccessTier
from logviews.models.tenant import OwnerKind

BIND_PARAMETER = re.compile(r"(?<![:\w]):(\w+)")


class ColumnCategory(StrEnum):
    """
    Column categories surfaced to discovery UIs.
    """

    STRING = "String"
    NUMERIC = "Numeric"
    DATE = "Date"


class JoinKind(StrEnum):
    """
    Supported dimension join types.
    """

    LEFT = "left"
    INNER = "inner"


class JoinSpec(BaseModel):
    """
    A join from the log source (aliased ``log``) onto a dimension view.
    """

    kind: JoinKind = JoinKind.LEFT
    target_view: str
    left_column: str
    right_column: str

    model_config = {"frozen": True}


class ColumnSpec(BaseModel):
    """
    A column of a log type.

    When ``alias_for`` is set only ``access_tier`` is read from this spec, everything
    else comes from the aliased column.
    """

    name: str
    category: Optional[ColumnCategory] = None
    geo_type: Optional[str] = None
    access_tier: Optional[AccessTier] = None

    # Physical type in cache tables, absent for derived columns
    storage_type: Optional[str] = None

    # Expression over the raw logs, defaults to the column itself or SUM(column)
    source_expression: Optional[str] = None

    # Expression over a fast view or cache table, may reference joined views
    presentation_expression: Optional[str] = None

    depends_on: List[str] = Field(default_factory=list)
    alias_for: Optional[str] = None
    is_aggregate: bool = False
    cross_join_clause: Optional[str] = None
    joins_required: List[JoinSpec] = Field(default_factory=list)

    # Fast views already holding this column, ascending by cardinality
    fast_view_candidates: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def tier(self) -> int:
        """
        Access tier as an integer; untiered columns are public.
        """
        return int(self.access_tier) if self.access_tier is not None else 0


class RenderedView(BaseModel):
    """
    A source view rendered for a tenant, ready to be used as a FROM item.
    """

    sql: str
    params: Dict[str, Any] = Field(default_factory=dict)
    connection: Optional[str] = None


class SourceView(BaseModel):
    """
    A precomputed view over live dimension tables, used either as a fast view that
    replaces the raw logs or as the target of a dimension join.

    ``query`` is the body of the FROM item. ``{connection}`` is replaced by the quoted
    foreign connection name and ``:agency_id`` / ``:advertiser_id`` are bound at
    execution time.
    """

    name: str
    alias: str
    query: str
    connection: Optional[str] = None
    cardinality: int = 0

    model_config = {"frozen": True}

    def render(self, agency_id: int, advertiser_id: Optional[int]) -> RenderedView:
        """
        Render the view for a tenant.
        """
        sql = self.query
        if self.connection:
            quoted = self.connection.replace("'", "''")
            sql = sql.replace("{connection}", f"'{quoted}'")
        values = {"agency_id": agency_id, "advertiser_id": advertiser_id}
        params = {
            name: values[name]
            for name in BIND_PARAMETER.findall(sql)
            if name in values
        }
        return RenderedView(
            sql=f"({sql.strip()}) AS {self.alias}",
            params=params,
            connection=self.connection,
        )


class LogTypeCatalog(BaseModel):
    """
    The columns of one log type along with where its raw rows live.
    """

    id: str
    display_name: str
    category: str = "logs"
    source_table: str
    owner_kind: OwnerKind
    tenant_column: str = "customer_id"
    columns: Dict[str, ColumnSpec]

    @model_validator(mode="before")
    @classmethod
    def name_columns(cls, data: Any) -> Any:
        """
        Columns are keyed by name in catalog files; copy the key into each spec.
        """
        if isinstance(data, dict) and isinstance(data.get("columns"), dict):
            data = dict(data)
            data["columns"] = {
                name: (
                    {"name": name, **spec}
                    if isinstance(spec, dict)
                    else spec
                )
                for name, spec in data["columns"].items()
            }
        return data

    def target(self, name: str) -> ColumnSpec:
        """
        The spec that defines a column, following one alias hop.
        """
        column = self.columns[name]
        return self.columns[column.alias_for] if column.alias_for else column


class Catalog(BaseModel):
    """
    Every addressable log type and source view, built once at startup.
    """

    log_types: Dict[str, LogTypeCatalog]
    views: Dict[str, SourceView] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_references(self) -> "Catalog":
        """
        Aliases, dependencies, joins and fast views must point at defined entries.
        """
        problems = []
        for log_type in self.log_types.values():
            for name, column in log_type.columns.items():
                where = f"{log_type.id}.{name}"
                if column.name != name:
                    problems.append(f"{where} is named {column.name}")
                if column.alias_for:
                    target = log_type.columns.get(column.alias_for)
                    if target is None:
                        problems.append(
                            f"{where} is an alias for unknown column {column.alias_for}",
                        )
                    elif target.alias_for:
                        problems.append(f"{where} is an alias for alias {target.name}")
                for dependency in column.depends_on:
                    if dependency not in log_type.columns:
                        problems.append(f"{where} depends on unknown column {dependency}")
                for join in column.joins_required:
                    if join.target_view not in self.views:
                        problems.append(f"{where} joins unknown view {join.target_view}")
                cardinalities = []
                for candidate in column.fast_view_candidates:
                    if candidate not in self.views:
                        problems.append(f"{where} lists unknown fast view {candidate}")
                    else:
                        cardinalities.append(self.views[candidate].cardinality)
                if cardinalities != sorted(cardinalities):
                    problems.append(
                        f"{where} fast views are not ordered by ascending cardinality",
                    )
        if problems:
            raise CatalogValidationException(problems)
        return self

    def get_log_type(self, log_type: str) -> LogTypeCatalog:
        """
        Get a log type or fail with ``InvalidLogTypeException``.
        """
        if log_type not in self.log_types:
            raise InvalidLogTypeException(log_type)
        return self.log_types[log_type]
