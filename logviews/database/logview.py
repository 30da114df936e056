"""Log view cache records."""

import base64
import hashlib
import json
from datetime import datetime, timezone
from functools import partial
from typing import Collection, Iterable, List, Optional

import sqlalchemy as sa
from sqlalchemy import DateTime, String, Text, UniqueConstraint, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from logviews.constants import CACHE_TABLE_PREFIX, TIME_PARTITION_COLUMNS
from logviews.database.base import Base, PydanticListType
from logviews.models.cache import CachedColumn


def compute_view_fingerprint(
    columns: Iterable[str],
    excluded_columns: Collection[str] = TIME_PARTITION_COLUMNS,
) -> str:
    """
    Compute the fingerprint of an unordered set of cache columns.

    Time partition columns are left out since every cache table stores them.

    Args:
        columns: Cache column names, in any order
        excluded_columns: Columns that do not contribute to the fingerprint

    Returns:
        Base64-encoded SHA-256 digest of the sorted column names
    """
    names = sorted({column for column in columns if column not in excluded_columns})
    digest = hashlib.sha256(json.dumps(names).encode()).digest()
    return base64.b64encode(digest).decode()


def cache_table_name(cache_id: int) -> str:
    """
    Name of the physical table owned by a cache record.
    """
    return f"{CACHE_TABLE_PREFIX}{cache_id}"


class LogViewCache(Base):
    """
    A durable cache of one tenant's logs, restricted to a set of columns.

    Each record owns the physical table ``log_view_<id>``, created along with the
    record and filled by the extraction scheduler, which runs ``extraction_query``
    for every new time range.
    """

    __tablename__ = "log_views"
    __table_args__ = (
        UniqueConstraint(
            "log_type",
            "tenant_id",
            "view_hash",
            name="uq_log_views_log_type_tenant_id_view_hash",
        ),
    )

    id: Mapped[int] = mapped_column(
        sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    log_type: Mapped[str] = mapped_column(String, nullable=False)
    tenant_id: Mapped[int] = mapped_column(sa.BigInteger(), nullable=False)

    # Fingerprint of the cache columns, see compute_view_fingerprint
    view_hash: Mapped[str] = mapped_column(String, nullable=False)

    # Physical schema of the cache table, time partition columns excluded
    cache_columns: Mapped[List[CachedColumn]] = mapped_column(
        PydanticListType(CachedColumn),
        nullable=False,
    )

    # Templated query run against the raw logs to fill the cache table
    extraction_query: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=partial(datetime.now, timezone.utc),
        nullable=False,
    )

    @property
    def table_name(self) -> str:
        """Name of the cache table owned by this record."""
        return cache_table_name(self.id)

    @classmethod
    async def get_by_fingerprint(
        cls,
        session: AsyncSession,
        log_type: str,
        tenant_id: int,
        view_hash: str,
    ) -> Optional["LogViewCache"]:
        """
        Get the cache record of a tenant's log type for a column fingerprint.
        """
        statement = select(cls).where(
            cls.log_type == log_type,
            cls.tenant_id == tenant_id,
            cls.view_hash == view_hash,
        )
        result = await session.execute(statement)
        return result.scalar_one_or_none()
