"""
Planning of log views: choose where a view's rows come from and compile the query
that reads them.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from logviews.config import Settings
from logviews.construction.extraction import compile_extraction
from logviews.construction.fast_views import select_fast_views
from logviews.construction.resolver import resolve_columns
from logviews.construction.view import (
    cache_table_source,
    compile_view,
    fast_view_source,
    present_columns,
    render_join,
)
from logviews.database.logview import LogViewCache
from logviews.errors import (
    AccessDeniedException,
    ColumnCountOutOfBoundsException,
    UnknownColumnException,
)
from logviews.internal.cache_registry import lookup_or_create
from logviews.internal.connections import (
    DblinkConnector,
    ForeignConnector,
    establish_connections,
)
from logviews.internal.listing import (
    filter_view_columns,
    make_view_id,
    public_view_columns,
)
from logviews.internal.tenants import TenantDirectory
from logviews.models.access import AccessContext, AccessTier
from logviews.models.catalog import Catalog, LogTypeCatalog
from logviews.models.query import QueryRequest
from logviews.models.tenant import OwnerKind
from logviews.models.view import CacheDependency, CompiledView, ViewPlan
from logviews.utils import get_settings

logger = logging.getLogger(__name__)

DEFAULT_TIME_ZONE = "UTC"


class ViewPlanner:
    """
    Plans log views against one catalog.

    Views are read either from a fast view, when one holds every column a query
    needs, or from the tenant's durable cache of those columns, which is created on
    first use.
    """

    def __init__(
        self,
        catalog: Catalog,
        tenants: TenantDirectory,
        settings: Optional[Settings] = None,
    ):
        self.catalog = catalog
        self.tenants = tenants
        self.settings = settings or get_settings()

    def connector(self, session: AsyncSession) -> ForeignConnector:
        """
        Connector opening foreign connections on the session that runs the view.
        """
        return DblinkConnector(
            session,
            self.settings.foreign_connections,
            self.settings.application_name,
        )

    def check_column_count(self, cache_columns: List[str]) -> None:
        """
        Views are bounded in width to bound cache tables and extraction cost.
        """
        minimum = self.settings.min_view_columns
        maximum = self.settings.max_view_columns
        if not minimum <= len(cache_columns) <= maximum:
            raise ColumnCountOutOfBoundsException(len(cache_columns), minimum, maximum)

    def cache_table(self, cache: LogViewCache) -> str:
        """
        Qualified name of a cache's physical table.
        """
        schema = self.settings.cache_schema
        return f"{schema}.{cache.table_name}" if schema else cache.table_name

    async def plan_view(
        self,
        session: AsyncSession,
        access: AccessContext,
        request: QueryRequest,
        connector: Optional[ForeignConnector] = None,
    ) -> ViewPlan:
        """
        Plan the view of ``request.log_type`` for ``request.tenant_id``.

        Foreign connections required by the plan are opened before it is returned,
        any failure along the way fails the whole plan.
        """
        log_type = self.catalog.get_log_type(request.log_type)
        tenant_id = request.tenant_id
        if not access.allows_tenant(tenant_id):
            raise AccessDeniedException(tenant_id)
        advertisers = await self.tenants.get_tenants(
            access.whitelabel_scope,
            frozenset([tenant_id]),
            OwnerKind.ADVERTISER,
        )
        if not advertisers:
            raise AccessDeniedException(
                tenant_id,
                reason=f"No advertiser found for tenant {tenant_id}",
            )
        advertiser_id = advertisers[0].id

        view_id = make_view_id(log_type.id, tenant_id)
        access_tier = access.access_tier
        resolved = resolve_columns(
            view_id,
            log_type.columns,
            request.expression_tree,
            access_tier,
        )
        cache_columns = resolved.cache_columns
        self.check_column_count(cache_columns)
        for name in cache_columns:
            if name not in log_type.columns:
                raise UnknownColumnException(log_type.id, name)

        params: Dict[str, Any] = {}
        connections = set()
        cache_dependencies = []
        fast_view = next(iter(select_fast_views(log_type.columns, cache_columns)), None)
        cache_id = None
        if fast_view:
            logger.info("Using fast view %s for %s", fast_view, view_id)
            rendered = self.catalog.views[fast_view].render(tenant_id, advertiser_id)
            source = fast_view_source(rendered)
            params.update(rendered.params)
            if rendered.connection:
                connections.add(rendered.connection)
        else:
            extraction_tenant = (
                advertiser_id
                if log_type.owner_kind == OwnerKind.ADVERTISER
                else tenant_id
            )
            cache = await lookup_or_create(
                session,
                log_type,
                tenant_id,
                cache_columns,
                lambda: compile_extraction(
                    log_type,
                    extraction_tenant,
                    cache_columns,
                    self.settings.excluded_view_columns,
                ),
                excluded_columns=self.settings.excluded_view_columns,
                attempts=self.settings.cache_create_attempts,
            )
            cache_id = cache.id
            cache_dependencies.append(CacheDependency(cache_id=cache_id))
            logger.info("Using cache %s for %s", cache_id, view_id)
            source = cache_table_source(self.cache_table(cache))
            params["time_zone"] = (
                await self.tenants.get_tenant_time_zone(tenant_id)
                or DEFAULT_TIME_ZONE
            )

        view_columns = present_columns(log_type, resolved.query_columns)
        join_clauses = []
        for join in view_columns.joins.values():
            view = self.catalog.views[join.target_view]
            rendered = view.render(tenant_id, advertiser_id)
            join_clauses.append(render_join(join, rendered, view.alias))
            params.update(rendered.params)
            if rendered.connection:
                connections.add(rendered.connection)

        foreign_connections = await establish_connections(
            connector or self.connector(session),
            connections,
        )
        return ViewPlan(
            view_id=view_id,
            compiled_view=CompiledView(
                sql=compile_view(view_columns, source, join_clauses),
                params=params,
            ),
            exposed_columns=self.exposed_columns(
                log_type,
                access_tier,
                resolved.query_columns,
            ),
            cache_dependencies=cache_dependencies,
            is_internal_only=resolved.min_access_tier >= AccessTier.INTERNAL,
            foreign_connections=foreign_connections,
            fast_view=fast_view,
            cache_id=cache_id,
        )

    @staticmethod
    def exposed_columns(
        log_type: LogTypeCatalog,
        access_tier: int,
        query_columns: List[str],
    ):
        """
        Metadata of the query columns a caller of ``access_tier`` may see listed.
        """
        return filter_view_columns(
            public_view_columns(log_type, access_tier),
            query_columns,
        )
