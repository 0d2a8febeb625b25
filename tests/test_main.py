import json
import tempfile
import unittest
from pathlib import Path

from main import build_parser, cmd_mock


class TestCli(unittest.TestCase):

    def test_schema_arguments(self):
        args = build_parser().parse_args(
            ["schema", "-s", "db01\\SQLEXPRESS", "-d", "Sales", "--auth", "windows",
             "--trust-server-certificate"])

        self.assertEqual(args.server, "db01\\SQLEXPRESS")
        self.assertEqual(args.database, "Sales")
        self.assertEqual(args.auth, "windows")
        self.assertTrue(args.trust_server_certificate)

    def test_mock_writes_json_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "graph.json"
            args = build_parser().parse_args(["mock", "--size", "small", "-o", str(output)])

            self.assertEqual(cmd_mock(args), 0)

            data = json.loads(output.read_text(encoding='utf-8'))
        self.assertEqual(len(data["tables"]), 10)
        self.assertEqual(len(data["storedProcedures"]), 5)


if __name__ == '__main__':
    unittest.main()
