"""
Error taxonomy for endpoint resolution, connection setup and schema loading.
Every error's str() is the message shown to the user.
"""

from typing import Optional


# ============================================================================
# SSRP (SQL Server Browser) ERRORS
# ============================================================================

class SsrpError(Exception):
    """Base class for SQL Server Browser lookup failures"""


class HostResolutionError(SsrpError):
    def __init__(self, host: str):
        self.host = host
        super().__init__(f"Could not resolve host `{host}` for SQL Server Browser lookup")


class SsrpTimeoutError(SsrpError):
    def __init__(self):
        super().__init__("Timed out waiting for SQL Server Browser response on UDP 1434")


class InvalidResponseError(SsrpError):
    def __init__(self):
        super().__init__("SQL Server Browser returned an invalid response")


class PortNotFoundError(SsrpError):
    def __init__(self, instance: str):
        self.instance = instance
        super().__init__(
            f"SQL Server Browser did not return a TCP port for instance `{instance}`"
        )


class SsrpIoError(SsrpError):
    def __init__(self, error: OSError):
        self.error = error
        super().__init__(f"Network error during SQL Server Browser lookup: {error}")


# ============================================================================
# CONNECTION ERRORS
# ============================================================================

class DatabaseConnectionError(Exception):
    """Base class for failures while opening a session"""


class DriverError(DatabaseConnectionError):
    """Protocol or login failure reported by the ODBC driver"""

    def __init__(self, message: str):
        super().__init__(f"Database driver error: {message}")


class NetworkError(DatabaseConnectionError):
    def __init__(self, message: str):
        super().__init__(f"Network error: {message}")


class AuthenticationError(DatabaseConnectionError):
    def __init__(self, message: str):
        super().__init__(f"Authentication error: {message}")


class InstanceResolutionError(DatabaseConnectionError):
    """Named instance could not be mapped to a TCP port"""

    def __init__(self, server: str, instance: str, reason: str):
        self.server = server
        self.instance = instance
        self.reason = reason
        super().__init__(
            f"Could not resolve SQL Server instance `{instance}` on `{server}`: {reason}. "
            f"Make sure the SQL Server Browser service is running and UDP port 1434 "
            f"is open in the firewall, or connect with an explicit port using "
            f"`{server},<port>`."
        )


# ============================================================================
# SCHEMA ERRORS
# ============================================================================

class SchemaError(Exception):
    """Base class for schema load failures"""


class SchemaConnectionError(SchemaError):
    """Session could not be established"""

    def __init__(self, connection_error: DatabaseConnectionError):
        self.connection_error = connection_error
        super().__init__(str(connection_error))


class SchemaQueryError(SchemaError):
    """A catalog query failed or returned unreadable data"""

    def __init__(self, message: str, query_name: Optional[str] = None):
        self.query_name = query_name
        self.detail = message
        if query_name:
            message = f"{query_name}: {message}"
        super().__init__(f"Database driver error: {message}")
