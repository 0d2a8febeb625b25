import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from api.routes import app
from shared.errors import (DriverError, InstanceResolutionError, SchemaConnectionError,
                           SchemaQueryError)
from shared.models import AuthType, DataSourceInfo, SchemaGraph, TableNode


class TestApi(unittest.TestCase):
    """HTTP command facade."""

    def setUp(self):
        self.client = TestClient(app)
        self.body = {
            "server": "db01\\SQLEXPRESS",
            "database": "Sales",
            "authType": "sqlServer",
            "username": "sa",
            "password": "secret",
            "trustServerCertificate": True,
        }

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    @patch('api.routes.load_schema', new_callable=AsyncMock)
    def test_schema(self, load_schema):
        load_schema.return_value = SchemaGraph(tables=[TableNode("dbo.A", "A", "dbo")])

        response = self.client.post("/api/schema", json=self.body)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["tables"][0]["id"], "dbo.A")
        params = load_schema.call_args[0][0]
        self.assertEqual(params.database, "Sales")
        self.assertEqual(params.auth_type, AuthType.SQL_SERVER)
        self.assertTrue(params.trust_server_certificate)

    @patch('api.routes.load_schema', new_callable=AsyncMock)
    def test_schema_connection_error_message(self, load_schema):
        cause = InstanceResolutionError("db01", "SQLEXPRESS", "timed out")
        load_schema.side_effect = SchemaConnectionError(cause)

        response = self.client.post("/api/schema", json=self.body)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], str(cause))

    @patch('api.routes.load_schema', new_callable=AsyncMock)
    def test_schema_query_error(self, load_schema):
        load_schema.side_effect = SchemaQueryError("Invalid object name", "tables_and_columns")

        response = self.client.post("/api/schema", json=self.body)

        self.assertEqual(response.status_code, 500)
        self.assertIn("Invalid object name", response.json()["detail"])

    def test_schema_requires_database(self):
        del self.body["database"]
        response = self.client.post("/api/schema", json=self.body)
        self.assertEqual(response.status_code, 422)

    @patch('api.routes.list_databases', new_callable=AsyncMock)
    def test_databases(self, list_databases):
        list_databases.return_value = ["Inventory", "Sales"]
        del self.body["database"]

        response = self.client.post("/api/databases", json=self.body)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), ["Inventory", "Sales"])
        self.assertEqual(list_databases.call_args[0][0].server, "db01\\SQLEXPRESS")

    @patch('api.routes.list_databases', new_callable=AsyncMock)
    def test_databases_error(self, list_databases):
        list_databases.side_effect = DriverError("Login failed")

        response = self.client.post("/api/databases", json={"server": "db01"})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Database driver error: Login failed")

    def test_mock(self):
        response = self.client.get("/api/schema/mock", params={"size": "small"})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data["tables"]), 10)
        self.assertEqual(len(data["views"]), 3)
        self.assertIn("sourceTable", data["views"][0]["columns"][0])

    @patch('api.routes.list_data_sources')
    def test_data_sources(self, list_data_sources):
        list_data_sources.return_value = [DataSourceInfo("Warehouse", "ODBC Driver 18 for SQL Server")]

        response = self.client.get("/api/data-sources")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [{"name": "Warehouse",
                                            "description": "ODBC Driver 18 for SQL Server"}])


if __name__ == '__main__':
    unittest.main()
