"""
Tests for ``logviews.internal.connections``.
"""

import asyncio
from typing import List

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.exc import DBAPIError

from logviews.config import ForeignConnectionConfig
from logviews.errors import ForeignConnectionException
from logviews.internal.connections import (
    DblinkConnector,
    ForeignConnector,
    establish_connections,
)
from tests.conftest import RecordingConnector

CONNECTIONS = {
    "atom": ForeignConnectionConfig(
        host="atom-replica",
        database="atom",
        user="reader",
        password="s3cret",
    ),
}


class PGError(Exception):
    """
    Driver error carrying a SQLSTATE.
    """

    def __init__(self, sqlstate: str):
        super().__init__(f"error {sqlstate}: password=s3cret")
        self.sqlstate = sqlstate


def dbapi_error(sqlstate: str) -> DBAPIError:
    """
    A wrapped driver error.
    """
    return DBAPIError("SELECT dblink_connect(...)", {}, PGError(sqlstate))


def dblink_session(mocker: MockerFixture, result=None, error=None):
    """
    A session whose ``dblink_connect`` calls return ``result`` or raise ``error``.
    """
    session = mocker.MagicMock()
    execute_result = mocker.MagicMock()
    execute_result.scalar_one.return_value = result
    session.execute = mocker.AsyncMock(
        return_value=execute_result,
        side_effect=error,
    )
    savepoint = mocker.MagicMock()
    savepoint.__aenter__ = mocker.AsyncMock()
    savepoint.__aexit__ = mocker.AsyncMock(return_value=False)
    session.begin_nested.return_value = savepoint
    return session


def test_conninfo() -> None:
    """
    Connection strings carry the credentials and the application name.
    """
    assert CONNECTIONS["atom"].conninfo("logviews-test") == (
        "host=atom-replica port=5432 dbname=atom user=reader password=s3cret "
        "connect_timeout=30 application_name=logviews-test options=-csearch_path="
    )


@pytest.mark.asyncio
async def test_dblink_connect(mocker: MockerFixture) -> None:
    """
    Connections are opened with ``dblink_connect`` in a savepoint.
    """
    session = dblink_session(mocker, result="OK")
    connector = DblinkConnector(session, CONNECTIONS, "logviews-test")
    await connector.connect("atom")

    statement, params = session.execute.call_args.args
    assert str(statement) == "SELECT dblink_connect(:name, :conninfo)"
    assert params == {
        "name": "atom",
        "conninfo": CONNECTIONS["atom"].conninfo("logviews-test"),
    }
    session.begin_nested.assert_called_once()


@pytest.mark.asyncio
async def test_dblink_already_connected(mocker: MockerFixture) -> None:
    """
    A connection that is already open is not an error.
    """
    session = dblink_session(mocker, error=dbapi_error("42710"))
    connector = DblinkConnector(session, CONNECTIONS, "logviews-test")
    await connector.connect("atom")


@pytest.mark.asyncio
async def test_dblink_failures(mocker: MockerFixture) -> None:
    """
    Failures name the connection and nothing else.
    """
    session = dblink_session(mocker, error=dbapi_error("08001"))
    connector = DblinkConnector(session, CONNECTIONS, "logviews-test")
    with pytest.raises(ForeignConnectionException) as exc_info:
        await connector.connect("atom")
    assert exc_info.value.http_status_code == 502
    assert "s3cret" not in str(exc_info.value)
    assert exc_info.value.__cause__ is None
    assert exc_info.value.__suppress_context__

    session = dblink_session(mocker, result="ERROR")
    connector = DblinkConnector(session, CONNECTIONS, "logviews-test")
    with pytest.raises(ForeignConnectionException):
        await connector.connect("atom")

    with pytest.raises(ForeignConnectionException) as exc_info:
        await connector.connect("locus")
    assert exc_info.value.connection_name == "locus"


class SlowConnector(ForeignConnector):
    """
    Connector tracking how many connections are being opened at once.
    """

    def __init__(self):
        self.opening = 0
        self.most_opening = 0
        self.connected: List[str] = []

    async def connect(self, name: str) -> None:
        self.opening += 1
        self.most_opening = max(self.most_opening, self.opening)
        await asyncio.sleep(0.01)
        self.opening -= 1
        self.connected.append(name)


@pytest.mark.asyncio
async def test_establish_connections() -> None:
    """
    Distinct connections are opened once each, concurrently.
    """
    connector = SlowConnector()
    names = await establish_connections(connector, ["b", "a", "b", "c", "a"])
    assert names == ["a", "b", "c"]
    assert sorted(connector.connected) == ["a", "b", "c"]
    assert connector.most_opening == 3

    assert await establish_connections(connector, []) == []


@pytest.mark.asyncio
async def test_establish_connections_failure() -> None:
    """
    Any failed connection fails the whole call.
    """
    with pytest.raises(ForeignConnectionException):
        await establish_connections(RecordingConnector(failing=["b"]), ["a", "b"])
