"""
SQL Server connection factory.

Builds an ODBC connection string (TLS always required), opens the connection
on a worker thread and wraps it in a session owned by a single task.
"""

import asyncio
import logging
import platform
from typing import Any, List, Optional, Sequence

import pyodbc

from config.settings import ConnectionConfig, get_connection_config
from shared.errors import (DatabaseConnectionError, DriverError, NetworkError,
                           AuthenticationError)
from shared.models import AuthType, DataSourceInfo, ServerConnectionParams
from .ssrp import resolve_endpoint

logger = logging.getLogger(__name__)

MASTER_DATABASE = "master"

# SQLSTATEs reported by the driver for transport failures
_NETWORK_SQLSTATES = ('HYT00', 'HYT01')


def _quote_odbc_value(value: str) -> str:
    """Brace-quote values that would otherwise break the key=value list."""
    if any(ch in value for ch in ';{}') or value != value.strip():
        return '{' + value.replace('}', '}}') + '}'
    return value


def build_connection_string(params: ServerConnectionParams, host: str, port: int,
                            database: str, config: ConnectionConfig) -> str:
    """
    Build the ODBC connection string for a resolved endpoint.

    Raises:
        AuthenticationError: Windows authentication requested on a non-Windows host
    """
    parts = [
        f"Driver={{{config.odbc_driver}}}",
        f"Server=tcp:{host},{port}",
        f"Database={_quote_odbc_value(database)}",
    ]

    if params.auth_type == AuthType.WINDOWS:
        if platform.system() != "Windows":
            raise AuthenticationError("Windows Authentication is only supported on Windows")
        parts.append("Trusted_Connection=yes")
    else:
        parts.append(f"UID={_quote_odbc_value(params.username or '')}")
        parts.append(f"PWD={_quote_odbc_value(params.password or '')}")

    parts.append("Encrypt=yes")
    if params.trust_server_certificate:
        parts.append("TrustServerCertificate=yes")

    if config.app_name:
        parts.append(f"APP={_quote_odbc_value(config.app_name)}")

    return ";".join(parts) + ";"


def translate_driver_error(error: Exception) -> DatabaseConnectionError:
    """Map a pyodbc error onto the connection error taxonomy."""
    sqlstate = error.args[0] if error.args and isinstance(error.args[0], str) else ''
    message = error.args[1] if len(error.args) > 1 else str(error)

    if sqlstate.startswith('08') or sqlstate in _NETWORK_SQLSTATES:
        return NetworkError(message)
    if sqlstate == '28000':
        return DriverError(f"Login failed: {message}")
    return DriverError(message)


class SqlServerSession:
    """
    One open connection. Blocking driver calls run on worker threads so the
    event loop stays responsive; the session must not be shared between tasks.
    """

    def __init__(self, connection: Any, database: str):
        self.connection = connection
        self.database = database

    async def execute(self, query: str) -> Any:
        cursor = self.connection.cursor()
        try:
            await asyncio.to_thread(cursor.execute, query)
        except BaseException:
            cursor.close()
            raise
        return cursor

    async def fetch_batch(self, cursor: Any, size: int) -> Sequence[Sequence[Any]]:
        return await asyncio.to_thread(cursor.fetchmany, size)

    async def close(self):
        if self.connection is not None:
            connection, self.connection = self.connection, None
            await asyncio.to_thread(connection.close)
            logger.debug(f"Closed session on {self.database}")

    async def __aenter__(self) -> 'SqlServerSession':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def _connect(connection_string: str, timeout: int) -> Any:
    try:
        conn = pyodbc.connect(connection_string, timeout=timeout, autocommit=True)
    except pyodbc.Error as e:
        raise translate_driver_error(e) from e

    conn.setdecoding(pyodbc.SQL_CHAR, encoding='utf-8')
    return conn


async def open_session(params: ServerConnectionParams, database: Optional[str] = None,
                       config: Optional[ConnectionConfig] = None) -> SqlServerSession:
    """
    Resolve the endpoint, authenticate over TLS and return a live session.

    Args:
        params: Server, credentials and certificate policy
        database: Target database, ``master`` when omitted
        config: Connection settings, loaded from the environment when omitted

    Raises:
        DatabaseConnectionError: Any resolution, network, TLS or login failure
    """
    config = config or get_connection_config()
    database = database or MASTER_DATABASE

    host, port = await resolve_endpoint(params.server)
    connection_string = build_connection_string(params, host, port, database, config)

    logger.info(f"Connecting to {host},{port} (database={database}, auth={params.auth_type.value})")
    try:
        connection = await asyncio.to_thread(_connect, connection_string, config.login_timeout)
    except OSError as e:
        raise NetworkError(str(e)) from e

    return SqlServerSession(connection, database)


def list_data_sources() -> List[DataSourceInfo]:
    """Enumerate ODBC data sources configured on this machine."""
    try:
        sources = pyodbc.dataSources()
    except pyodbc.Error as e:
        raise DriverError(f"Failed to enumerate data sources: {e}") from e

    return [DataSourceInfo(name=name, description=driver)
            for name, driver in sorted(sources.items())]
