"""
Tenant directory: which tenants exist, who owns them and where they are.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Union

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from logviews.internal.caching.interface import CacheInterface, build_cache_key
from logviews.internal.caching.noop_cache import noop_cache
from logviews.models.access import UNRESTRICTED, Scope
from logviews.models.tenant import OwnerKind, Tenant

logger = logging.getLogger(__name__)


class TenantDirectory(ABC):
    """
    Lookups against the tenant directory.
    """

    @abstractmethod
    async def get_tenants(
        self,
        whitelabel_ids: Scope = UNRESTRICTED,
        parent_ids: Scope = UNRESTRICTED,
        owner_kind: OwnerKind = OwnerKind.AGENCY,
    ) -> List[Tenant]:
        """
        Active tenants of one kind.

        ``parent_ids`` selects agencies by id when listing agencies and advertisers by
        their agency when listing advertisers.
        """

    @abstractmethod
    async def get_tenant_time_zone(self, tenant_id: int) -> Optional[str]:
        """
        The tenant's configured time zone.
        """


def tenant_table(name: str) -> sa.TableClause:
    """
    Lightweight table clause over the tenant directory, ``name`` may be schema
    qualified.
    """
    schema, _, table_name = name.rpartition(".")
    return sa.table(
        table_name,
        sa.column("customerid", sa.Integer),
        sa.column("companyname", sa.String),
        sa.column("agencyid", sa.Integer),
        sa.column("whitelabelid", sa.Integer),
        sa.column("isactive", sa.Boolean),
        sa.column("timezone", sa.String),
        schema=schema or None,
    )


class SQLTenantDirectory(TenantDirectory):
    """
    Tenant directory over the relational tenant table. Agencies have no agency of
    their own (``agencyid = 0``) and tenants outside any whitelabel are ignored.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        table_name: str = "public.customers",
        cache: CacheInterface = noop_cache,
        timeout: int = 600,
    ):
        self.session_factory = session_factory
        self.table = tenant_table(table_name)
        self.cache = cache
        self.timeout = timeout

    def tenants_query(
        self,
        whitelabel_ids: Scope,
        parent_ids: Scope,
        owner_kind: OwnerKind,
    ) -> sa.Select:
        """
        Build the tenant listing query.
        """
        columns = self.table.c
        statement = (
            sa.select(columns.customerid, columns.companyname)
            .where(columns.isactive)
            .where(columns.whitelabelid != 0)
            .order_by(columns.customerid)
        )
        if owner_kind == OwnerKind.AGENCY:
            statement = statement.where(columns.agencyid == 0)
            parent_column = columns.customerid
        else:
            statement = statement.where(columns.agencyid != 0)
            parent_column = columns.agencyid
        if parent_ids != UNRESTRICTED:
            statement = statement.where(parent_column.in_(sorted(parent_ids)))
        if whitelabel_ids != UNRESTRICTED:
            statement = statement.where(
                columns.whitelabelid.in_(sorted(whitelabel_ids)),
            )
        return statement

    async def get_tenants(
        self,
        whitelabel_ids: Scope = UNRESTRICTED,
        parent_ids: Scope = UNRESTRICTED,
        owner_kind: OwnerKind = OwnerKind.AGENCY,
    ) -> List[Tenant]:
        key = build_cache_key(
            "tenants",
            {
                "whitelabel_ids": _scope_key(whitelabel_ids),
                "parent_ids": _scope_key(parent_ids),
                "owner_kind": owner_kind.value,
            },
        )
        cached = self.cache.get(key)
        if cached is not None:
            return [Tenant.model_validate(tenant) for tenant in cached]

        statement = self.tenants_query(whitelabel_ids, parent_ids, owner_kind)
        async with self.session_factory() as session:
            rows = (await session.execute(statement)).all()
        tenants = [Tenant(id=row.customerid, name=row.companyname) for row in rows]
        logger.debug(
            "Found %s %s tenants for parents %s",
            len(tenants),
            owner_kind,
            _scope_key(parent_ids),
        )
        self.cache.set(
            key,
            [tenant.model_dump() for tenant in tenants],
            timeout=self.timeout,
        )
        return tenants

    async def get_tenant_time_zone(self, tenant_id: int) -> Optional[str]:
        key = build_cache_key("tenant_time_zone", {"tenant_id": tenant_id})
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        statement = (
            sa.select(self.table.c.timezone)
            .where(self.table.c.customerid == tenant_id)
            .limit(1)
        )
        async with self.session_factory() as session:
            time_zone = (await session.execute(statement)).scalar_one_or_none()
        if time_zone is not None:
            self.cache.set(key, time_zone, timeout=self.timeout)
        return time_zone


def _scope_key(scope: Scope) -> Union[str, List[int]]:
    return scope if scope == UNRESTRICTED else sorted(scope)
