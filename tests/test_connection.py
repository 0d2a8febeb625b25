import types
import unittest
from unittest.mock import AsyncMock, MagicMock, Mock, patch

from config.settings import ConnectionConfig
from connectors.mssql_connector import (SqlServerSession, _connect, build_connection_string,
                                        list_data_sources, open_session, translate_driver_error)
from shared.errors import (AuthenticationError, DriverError, InstanceResolutionError, NetworkError)
from shared.models import AuthType, ServerConnectionParams


CONFIG = ConnectionConfig(odbc_driver="ODBC Driver 18 for SQL Server", login_timeout=15,
                          app_name="schema-graph")


class FakePyodbcError(Exception):
    pass


class TestConnectionString(unittest.TestCase):
    """ODBC connection string assembly."""

    def test_sql_server_auth(self):
        params = ServerConnectionParams(server="db01", username="sa", password="secret")

        result = build_connection_string(params, "db01", 1433, "Sales", CONFIG)

        self.assertEqual(
            result,
            "Driver={ODBC Driver 18 for SQL Server};Server=tcp:db01,1433;Database=Sales;"
            "UID=sa;PWD=secret;Encrypt=yes;APP=schema-graph;"
        )

    def test_trust_server_certificate(self):
        params = ServerConnectionParams(server="db01", username="sa", password="x",
                                        trust_server_certificate=True)

        result = build_connection_string(params, "db01", 1444, "master", CONFIG)

        self.assertIn("Encrypt=yes;TrustServerCertificate=yes;", result)
        self.assertIn("Server=tcp:db01,1444;", result)

    def test_special_characters_are_brace_quoted(self):
        params = ServerConnectionParams(server="db01", username="sa", password="p;w}d")

        result = build_connection_string(params, "db01", 1433, "Sales", CONFIG)

        self.assertIn("PWD={p;w}}d};", result)

    @patch('connectors.mssql_connector.platform.system', return_value="Linux")
    def test_windows_auth_rejected_off_windows(self, _):
        params = ServerConnectionParams(server="db01", auth_type=AuthType.WINDOWS)

        with self.assertRaises(AuthenticationError) as ctx:
            build_connection_string(params, "db01", 1433, "Sales", CONFIG)

        self.assertIn("Windows Authentication is only supported on Windows", str(ctx.exception))

    @patch('connectors.mssql_connector.platform.system', return_value="Windows")
    def test_windows_auth_on_windows(self, _):
        params = ServerConnectionParams(server="db01", auth_type=AuthType.WINDOWS)

        result = build_connection_string(params, "db01", 1433, "Sales", CONFIG)

        self.assertIn("Trusted_Connection=yes;", result)
        self.assertNotIn("UID=", result)

    def test_password_not_in_repr(self):
        params = ServerConnectionParams(server="db01", username="sa", password="hunter2")
        self.assertNotIn("hunter2", repr(params))


class TestDriverErrors(unittest.TestCase):

    def test_network_sqlstate(self):
        error = translate_driver_error(FakePyodbcError('08001', 'TCP Provider: timeout'))
        self.assertIsInstance(error, NetworkError)
        self.assertIn("TCP Provider: timeout", str(error))

    def test_login_timeout(self):
        self.assertIsInstance(translate_driver_error(FakePyodbcError('HYT00', 'Login timeout')),
                              NetworkError)

    def test_login_failed(self):
        error = translate_driver_error(FakePyodbcError('28000', "Login failed for user 'sa'"))
        self.assertIsInstance(error, DriverError)
        self.assertIn("Login failed", str(error))

    def test_other_errors_are_driver_errors(self):
        error = translate_driver_error(FakePyodbcError('IM002', 'Data source name not found'))
        self.assertIsInstance(error, DriverError)
        self.assertTrue(str(error).startswith("Database driver error: "))


class TestSession(unittest.IsolatedAsyncioTestCase):

    async def test_execute_returns_cursor(self):
        connection = MagicMock()
        session = SqlServerSession(connection, "Sales")

        cursor = await session.execute("SELECT 1")

        self.assertIs(cursor, connection.cursor.return_value)
        cursor.execute.assert_called_once_with("SELECT 1")

    async def test_failed_execute_closes_cursor(self):
        connection = MagicMock()
        connection.cursor.return_value.execute.side_effect = FakePyodbcError('42S02', 'Invalid object')
        session = SqlServerSession(connection, "Sales")

        with self.assertRaises(FakePyodbcError):
            await session.execute("SELECT * FROM nope")

        connection.cursor.return_value.close.assert_called_once()

    async def test_context_manager_closes_once(self):
        connection = MagicMock()

        async with SqlServerSession(connection, "Sales") as session:
            pass
        await session.close()

        connection.close.assert_called_once()


class TestOpenSession(unittest.IsolatedAsyncioTestCase):

    async def test_connects_to_resolved_endpoint(self):
        params = ServerConnectionParams(server="db01\\SQLEXPRESS", username="sa", password="x")
        connection = MagicMock()

        with patch('connectors.mssql_connector.resolve_endpoint',
                   new=AsyncMock(return_value=("db01", 50123))), \
                patch('connectors.mssql_connector._connect', return_value=connection) as connect:
            session = await open_session(params, config=CONFIG)

        self.assertIs(session.connection, connection)
        self.assertEqual(session.database, "master")
        connection_string, timeout = connect.call_args[0]
        self.assertIn("Server=tcp:db01,50123;", connection_string)
        self.assertIn("Database=master;", connection_string)
        self.assertEqual(timeout, 15)

    async def test_instance_resolution_failure_propagates(self):
        params = ServerConnectionParams(server="db01\\SQLEXPRESS")
        failure = InstanceResolutionError("db01", "SQLEXPRESS", "timed out")

        with patch('connectors.mssql_connector.resolve_endpoint', new=AsyncMock(side_effect=failure)):
            with self.assertRaises(InstanceResolutionError):
                await open_session(params, "Sales", CONFIG)

    async def test_socket_errors_become_network_errors(self):
        params = ServerConnectionParams(server="db01", username="sa", password="x")

        with patch('connectors.mssql_connector._connect', side_effect=ConnectionRefusedError("refused")):
            with self.assertRaises(NetworkError):
                await open_session(params, "Sales", CONFIG)


class TestConnect(unittest.TestCase):

    def fake_pyodbc(self, **kwargs):
        return types.SimpleNamespace(Error=FakePyodbcError, SQL_CHAR=1, connect=Mock(**kwargs))

    def test_connect_sets_utf8_decoding(self):
        fake_pyodbc = self.fake_pyodbc()

        with patch('connectors.mssql_connector.pyodbc', fake_pyodbc):
            conn = _connect("Driver={x};", 15)

        fake_pyodbc.connect.assert_called_once_with("Driver={x};", timeout=15, autocommit=True)
        conn.setdecoding.assert_called_once_with(1, encoding='utf-8')

    def test_connect_failure_is_translated(self):
        fake_pyodbc = self.fake_pyodbc(side_effect=FakePyodbcError('08001', 'Server not found'))

        with patch('connectors.mssql_connector.pyodbc', fake_pyodbc):
            with self.assertRaises(NetworkError):
                _connect("Driver={x};", 15)


class TestDataSources(unittest.TestCase):

    def test_sorted_by_name(self):
        fake_pyodbc = types.SimpleNamespace(
            Error=FakePyodbcError,
            dataSources=Mock(return_value={"Warehouse": "ODBC Driver 18 for SQL Server",
                                           "Analytics": "ODBC Driver 17 for SQL Server"}),
        )

        with patch('connectors.mssql_connector.pyodbc', fake_pyodbc):
            sources = list_data_sources()

        self.assertEqual([s.name for s in sources], ["Analytics", "Warehouse"])
        self.assertEqual(sources[0].description, "ODBC Driver 17 for SQL Server")

    def test_driver_manager_failure(self):
        fake_pyodbc = types.SimpleNamespace(
            Error=FakePyodbcError,
            dataSources=Mock(side_effect=FakePyodbcError('IM001', 'not supported')),
        )

        with patch('connectors.mssql_connector.pyodbc', fake_pyodbc):
            with self.assertRaises(DriverError):
                list_data_sources()


if __name__ == '__main__':
    unittest.main()
