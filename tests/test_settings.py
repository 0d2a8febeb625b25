import os
import unittest
from unittest.mock import patch

from config.settings import DiscoveryConfig, LoggingConfig, Settings, get_env_bool, get_env_int


class TestSettings(unittest.TestCase):
    """Environment-driven configuration."""

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        settings = Settings.from_env()
        settings.validate()

        self.assertEqual(settings.connection.odbc_driver, "ODBC Driver 18 for SQL Server")
        self.assertEqual(settings.connection.login_timeout, 15)
        self.assertEqual(settings.discovery.fetch_batch_size, 1000)
        self.assertEqual(settings.api.port, 8000)
        self.assertFalse(settings.logging.log_to_file)

    @patch.dict(os.environ, {"MSSQL_ODBC_DRIVER": "ODBC Driver 17 for SQL Server",
                             "CATALOG_FETCH_BATCH_SIZE": "250",
                             "LOG_TO_FILE": "yes"}, clear=True)
    def test_overrides(self):
        settings = Settings.from_env()

        self.assertEqual(settings.connection.odbc_driver, "ODBC Driver 17 for SQL Server")
        self.assertEqual(settings.discovery.fetch_batch_size, 250)
        self.assertTrue(settings.logging.log_to_file)

    @patch.dict(os.environ, {"API_PORT": "not-a-port"}, clear=True)
    def test_invalid_integer_uses_default(self):
        self.assertEqual(get_env_int("API_PORT", 8000), 8000)

    @patch.dict(os.environ, {"FLAG": "off"}, clear=True)
    def test_bool_parsing(self):
        self.assertFalse(get_env_bool("FLAG", True))
        self.assertTrue(get_env_bool("MISSING", True))

    def test_validation(self):
        with self.assertRaises(ValueError):
            DiscoveryConfig(fetch_batch_size=0).validate()
        with self.assertRaises(ValueError):
            LoggingConfig(level="LOUD", log_dir=None, log_to_file=False).validate()


if __name__ == '__main__':
    unittest.main()
