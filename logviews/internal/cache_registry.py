"""
Registry of durable log view caches.

A cache is identified by ``(log type, tenant, column fingerprint)``. Records are
created lazily with an insert that ignores conflicts, so concurrent planners asking
for the same cache converge on one record and one physical table without locking:
whoever loses the insert reads the winner's record back.
"""

import logging
from typing import Callable, Collection, Iterable, List, Optional

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from logviews.constants import TIME_PARTITION_COLUMNS
from logviews.database.logview import (
    LogViewCache,
    cache_table_name,
    compute_view_fingerprint,
)
from logviews.errors import (
    CacheRegistryException,
    ErrorCode,
    LogViewError,
    UnknownColumnException,
)
from logviews.models.cache import CachedColumn
from logviews.models.catalog import LogTypeCatalog

logger = logging.getLogger(__name__)

STORAGE_TYPES = {
    "int": sa.Integer,
    "integer": sa.Integer,
    "smallint": sa.SmallInteger,
    "bigint": sa.BigInteger,
    "real": sa.REAL,
    "double precision": sa.Double,
    "numeric": sa.Numeric,
    "text": sa.Text,
    "varchar": sa.String,
    "boolean": sa.Boolean,
    "date": sa.Date,
    "timestamptz": lambda: sa.DateTime(timezone=True),
}

INSERT_CONSTRUCTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def describe_columns(
    log_type: LogTypeCatalog,
    cache_columns: Iterable[str],
    excluded_columns: Collection[str] = TIME_PARTITION_COLUMNS,
) -> List[CachedColumn]:
    """
    Physical columns of the cache table for a set of cache columns: grouping
    columns first, then aggregates, each sorted by name.
    """
    described = []
    for name in sorted(set(cache_columns)):
        if name in excluded_columns:
            continue
        if name not in log_type.columns:
            raise UnknownColumnException(log_type.id, name)
        column = log_type.columns[name]
        if not column.storage_type or column.storage_type not in STORAGE_TYPES:
            raise CacheRegistryException(
                errors=[
                    LogViewError(
                        code=ErrorCode.CACHE_REGISTRY_ERROR,
                        message=(
                            f"Column {name} of {log_type.id} has no usable storage "
                            f"type: {column.storage_type}"
                        ),
                        context=name,
                    ),
                ],
            )
        described.append(
            CachedColumn(
                name=name,
                storage_type=column.storage_type,
                is_aggregate=column.is_aggregate,
            ),
        )
    return sorted(described, key=lambda column: column.is_aggregate)


def cache_table(
    table_name: str,
    columns: List[CachedColumn],
    metadata: Optional[sa.MetaData] = None,
) -> sa.Table:
    """
    The physical cache table: a synthetic id, the ``date`` and ``hour`` partition
    columns, then the cached columns.
    """
    return sa.Table(
        table_name,
        metadata or sa.MetaData(),
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("hour", sa.SmallInteger(), nullable=False),
        *[
            sa.Column(column.name, STORAGE_TYPES[column.storage_type]())
            for column in columns
        ],
    )


async def insert_or_ignore(session: AsyncSession, **values) -> Optional[int]:
    """
    Insert a cache record unless one exists for the same key.

    Returns:
        The new record's id, or None when the insert was a no-op
    """
    dialect = session.get_bind().dialect.name
    if dialect not in INSERT_CONSTRUCTS:
        raise CacheRegistryException(f"Unsupported cache store dialect: {dialect}")
    statement = (
        INSERT_CONSTRUCTS[dialect](LogViewCache)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["log_type", "tenant_id", "view_hash"])
        .returning(LogViewCache.id)
    )
    result = await session.execute(statement)
    return result.scalar_one_or_none()


async def lookup_or_create(
    session: AsyncSession,
    log_type: LogTypeCatalog,
    tenant_id: int,
    cache_columns: Iterable[str],
    extraction_query: Callable[[], str],
    excluded_columns: Collection[str] = TIME_PARTITION_COLUMNS,
    attempts: int = 3,
) -> LogViewCache:
    """
    Find the cache of a tenant's log type for a set of columns, or create it.

    Creating inserts the record and creates its table in one transaction.
    ``extraction_query`` is only called when a record is about to be created. When
    a concurrent request wins the insert, the winner's record is read back.
    """
    cache_columns = list(cache_columns)
    view_hash = compute_view_fingerprint(cache_columns, excluded_columns)

    for attempt in range(1, attempts + 1):
        record = await LogViewCache.get_by_fingerprint(
            session,
            log_type.id,
            tenant_id,
            view_hash,
        )
        if record:
            logger.info(
                "Found cache %s for %s of tenant %s",
                record.id,
                log_type.id,
                tenant_id,
            )
            return record

        columns = describe_columns(log_type, cache_columns, excluded_columns)
        try:
            cache_id = await insert_or_ignore(
                session,
                log_type=log_type.id,
                tenant_id=tenant_id,
                view_hash=view_hash,
                cache_columns=columns,
                extraction_query=extraction_query(),
            )
            if cache_id is None:
                await session.rollback()
                logger.info(
                    "Cache for %s of tenant %s was created concurrently (attempt %s)",
                    log_type.id,
                    tenant_id,
                    attempt,
                )
                continue
            table = cache_table(cache_table_name(cache_id), columns)
            await session.run_sync(
                lambda sync_session: table.create(
                    sync_session.connection(),
                    checkfirst=True,
                ),
            )
            await session.commit()
        except IntegrityError:
            await session.rollback()
            logger.info(
                "Cache for %s of tenant %s conflicted on insert (attempt %s)",
                log_type.id,
                tenant_id,
                attempt,
            )
            continue

        logger.info(
            "Created cache %s for %s of tenant %s with columns %s",
            cache_id,
            log_type.id,
            tenant_id,
            [column.name for column in columns],
        )
        return await session.get(LogViewCache, cache_id)

    record = await LogViewCache.get_by_fingerprint(
        session,
        log_type.id,
        tenant_id,
        view_hash,
    )
    if record:
        return record
    raise CacheRegistryException(
        errors=[
            LogViewError(
                code=ErrorCode.CACHE_REGISTRY_ERROR,
                message=(
                    f"Could not create or find the cache for {log_type.id} of "
                    f"tenant {tenant_id} after {attempts} attempts"
                ),
                debug={"view_hash": view_hash},
            ),
        ],
    )
