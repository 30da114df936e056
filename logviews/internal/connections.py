"""
Foreign database connections needed by fast views and dimension joins.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Mapping

import sqlalchemy as sa
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from logviews.config import ForeignConnectionConfig
from logviews.errors import ForeignConnectionException

logger = logging.getLogger(__name__)

# SQLSTATE duplicate_object: dblink already holds a connection under this name
DUPLICATE_OBJECT = "42710"


class ForeignConnector(ABC):
    """
    Makes a named foreign connection available to the queries that follow.
    """

    @abstractmethod
    async def connect(self, name: str) -> None:
        """
        Open the connection ``name``; opening an open connection succeeds.
        """


def _sqlstate(error: DBAPIError) -> str | None:
    original = error.orig
    return getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)


class DblinkConnector(ForeignConnector):
    """
    Opens dblink connections on the session that will execute the view.

    dblink connections belong to a database session, so calls are serialized on it
    and each attempt runs in a savepoint that a failure rolls back.
    """

    def __init__(
        self,
        session: AsyncSession,
        connections: Mapping[str, ForeignConnectionConfig],
        application_name: str,
    ):
        self.session = session
        self.connections = connections
        self.application_name = application_name
        self._lock = asyncio.Lock()

    async def connect(self, name: str) -> None:
        if name not in self.connections:
            logger.error("No settings for foreign connection %s", name)
            raise ForeignConnectionException(name)
        conninfo = self.connections[name].conninfo(self.application_name)

        async with self._lock:
            try:
                async with self.session.begin_nested():
                    status = (
                        await self.session.execute(
                            sa.text("SELECT dblink_connect(:name, :conninfo)"),
                            {"name": name, "conninfo": conninfo},
                        )
                    ).scalar_one()
            except DBAPIError as exc:
                if _sqlstate(exc) == DUPLICATE_OBJECT:
                    logger.debug("Foreign connection %s is already open", name)
                    return
                logger.error(
                    "Failed to open foreign connection %s (sqlstate %s)",
                    name,
                    _sqlstate(exc),
                )
                raise ForeignConnectionException(name) from None
        if status != "OK":
            logger.error("Foreign connection %s returned %s", name, status)
            raise ForeignConnectionException(name)
        logger.info("Opened foreign connection %s", name)


async def establish_connections(
    connector: ForeignConnector,
    names: Iterable[str],
) -> List[str]:
    """
    Open each distinct connection once, all at the same time. The first failure
    fails the whole call.

    Returns:
        The distinct connection names, sorted
    """
    distinct = sorted(set(names))
    if distinct:
        await asyncio.gather(*(connector.connect(name) for name in distinct))
    return distinct
