"""
Shared components - schema graph data model and error taxonomy
"""

from .models import (Column, TableNode, ViewNode, RelationshipEdge, ProcedureParameter,
                     Trigger, StoredProcedure, ScalarFunction, SchemaGraph, AuthType,
                     ConnectionParams, ServerConnectionParams, DataSourceInfo)
from .errors import (SsrpError, HostResolutionError, SsrpTimeoutError, InvalidResponseError,
                     PortNotFoundError, SsrpIoError, DatabaseConnectionError, DriverError,
                     NetworkError, AuthenticationError, InstanceResolutionError,
                     SchemaError, SchemaConnectionError, SchemaQueryError)

__all__ = [
    "Column",
    "TableNode",
    "ViewNode",
    "RelationshipEdge",
    "ProcedureParameter",
    "Trigger",
    "StoredProcedure",
    "ScalarFunction",
    "SchemaGraph",
    "AuthType",
    "ConnectionParams",
    "ServerConnectionParams",
    "DataSourceInfo",
    "SsrpError",
    "HostResolutionError",
    "SsrpTimeoutError",
    "InvalidResponseError",
    "PortNotFoundError",
    "SsrpIoError",
    "DatabaseConnectionError",
    "DriverError",
    "NetworkError",
    "AuthenticationError",
    "InstanceResolutionError",
    "SchemaError",
    "SchemaConnectionError",
    "SchemaQueryError",
]
