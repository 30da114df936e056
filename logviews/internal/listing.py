"""
Listing and describing the log views a caller can address.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from logviews.constants import VIEW_ID_PATTERN, VIEW_ID_PREFIX
from logviews.errors import AccessDeniedException, InvalidViewIdentifierException
from logviews.internal.tenants import TenantDirectory
from logviews.models.access import AccessContext, AccessTier
from logviews.models.catalog import Catalog, LogTypeCatalog
from logviews.models.tenant import OwnerKind, Tenant
from logviews.models.view import ColumnMetadata, ViewDescriptor, ViewInfo

logger = logging.getLogger(__name__)


def make_view_id(log_type: str, tenant_id: int) -> str:
    """
    Identifier of a tenant's view of a log type.
    """
    return f"{VIEW_ID_PREFIX}_{log_type}_{tenant_id}"


def parse_view_id(catalog: Catalog, view_id: str) -> Tuple[LogTypeCatalog, int]:
    """
    Split a view identifier into its log type and tenant id.
    """
    match = VIEW_ID_PATTERN.match(view_id)
    if not match or not int(match.group(2)):
        raise InvalidViewIdentifierException(view_id)
    return catalog.get_log_type(match.group(1)), int(match.group(2))


def public_view_columns(
    log_type: LogTypeCatalog,
    access_tier: int,
) -> Dict[str, ColumnMetadata]:
    """
    Columns exposed at an access tier, sorted by name.

    Public columns, tiered at 0 or untiered, are always exposed, other tiered ones
    only to callers of exactly that tier. Aliases describe themselves with their target's metadata.
    """
    exposed = {}
    for name in sorted(log_type.columns):
        column = log_type.columns[name]
        if column.tier not in (AccessTier.PUBLIC, access_tier):
            continue
        target = log_type.target(name)
        exposed[name] = ColumnMetadata(
            key=name,
            category=target.category,
            geo_type=target.geo_type,
        )
    return exposed


def filter_view_columns(
    columns: Dict[str, ColumnMetadata],
    query_columns: Iterable[str],
) -> Dict[str, ColumnMetadata]:
    """
    Restrict exposed columns to the ones a query uses, in query order.
    """
    return {name: columns[name] for name in query_columns if name in columns}


def describe_view(
    log_type: LogTypeCatalog,
    tenant: Tenant,
    access: AccessContext,
    include_columns: bool = True,
) -> ViewDescriptor:
    """
    Describe a tenant's view of a log type.
    """
    return ViewDescriptor(
        name=f"{log_type.display_name} - {tenant.name} ({tenant.id})",
        view=ViewInfo(
            id=make_view_id(log_type.id, tenant.id),
            category=log_type.category,
            log_type=log_type.id,
            tenant_id=tenant.id,
        ),
        columns=(
            public_view_columns(log_type, access.access_tier)
            if include_columns
            else None
        ),
    )


async def list_views(
    catalog: Catalog,
    tenants: TenantDirectory,
    access: AccessContext,
    categories: Optional[Iterable[str]] = None,
    include_columns: bool = True,
) -> List[ViewDescriptor]:
    """
    Every view in the caller's scope: each visible tenant crossed with each log
    type, optionally restricted to some log type categories.
    """
    categories = set(categories) if categories is not None else None
    log_types = [
        log_type
        for log_type in catalog.log_types.values()
        if categories is None or log_type.category in categories
    ]
    agencies = await tenants.get_tenants(
        access.whitelabel_scope,
        access.tenant_scope,
        OwnerKind.AGENCY,
    )
    logger.debug(
        "Listing %s log types for %s tenants",
        len(log_types),
        len(agencies),
    )
    return [
        describe_view(log_type, tenant, access, include_columns)
        for tenant in agencies
        for log_type in log_types
    ]


async def get_view(
    catalog: Catalog,
    tenants: TenantDirectory,
    access: AccessContext,
    view_id: str,
) -> ViewDescriptor:
    """
    Describe one view, with its columns, after checking the caller may see it.
    """
    log_type, tenant_id = parse_view_id(catalog, view_id)
    if not access.allows_tenant(tenant_id):
        raise AccessDeniedException(tenant_id)
    agencies = await tenants.get_tenants(
        access.whitelabel_scope,
        frozenset([tenant_id]),
        OwnerKind.AGENCY,
    )
    if not agencies:
        raise AccessDeniedException(tenant_id)
    return describe_view(log_type, agencies[0], access)
