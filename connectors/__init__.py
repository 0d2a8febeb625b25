"""
Connectors - endpoint resolution and SQL Server sessions
"""

from .ssrp import ServerAddress, parse_server_address, resolve_endpoint, resolve_instance_port
from .mssql_connector import (SqlServerSession, open_session, build_connection_string,
                              list_data_sources, MASTER_DATABASE)

__all__ = [
    "ServerAddress",
    "parse_server_address",
    "resolve_endpoint",
    "resolve_instance_port",
    "SqlServerSession",
    "open_session",
    "build_connection_string",
    "list_data_sources",
    "MASTER_DATABASE",
]
