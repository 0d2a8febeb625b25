#!/usr/bin/env python3
"""
SQL Server Schema Graph Introspector
Main CLI Entry Point

Commands:
    python main.py schema -s HOST -d DB -u USER -p PASS   # Load a schema graph
    python main.py databases -s HOST -u USER -p PASS      # List databases
    python main.py mock --size medium                     # Deterministic mock graph
    python main.py data-sources                           # ODBC data sources
    python main.py serve                                  # Start the HTTP API
    python main.py config                                 # Show configuration
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from config.settings import get_settings
from connectors import list_data_sources
from discovery import load_schema, list_databases, load_schema_mock
from discovery.mock_generator import PRESETS
from shared.errors import DatabaseConnectionError, SchemaError
from shared.models import AuthType, ConnectionParams, SchemaGraph, ServerConnectionParams
from utils.logging_config import setup_logging, get_logger

logger = get_logger(__name__)

# Summaries go to stderr so stdout carries only JSON
console = Console(stderr=True)


def _write_json(data: Any, output: Optional[str]):
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text, encoding='utf-8')
        console.print(f"[green]✓[/green] Results saved to: {output}")
    else:
        print(text)


def _print_summary(title: str, graph: SchemaGraph):
    table = Table(title=title)
    table.add_column("Objects")
    table.add_column("Count", justify="right")
    for name, count in graph.summary().items():
        table.add_row(name.replace('_', ' ').title(), str(count))
    console.print(table)


def _server_params(args) -> ServerConnectionParams:
    return ServerConnectionParams(
        server=args.server,
        auth_type=AuthType(args.auth),
        username=args.username,
        password=args.password,
        trust_server_certificate=args.trust_server_certificate,
    )


def cmd_schema(args):
    """Load the schema graph of one database"""
    params = ConnectionParams(
        server=args.server,
        database=args.database,
        auth_type=AuthType(args.auth),
        username=args.username,
        password=args.password,
        trust_server_certificate=args.trust_server_certificate,
    )

    try:
        graph = asyncio.run(load_schema(params))
    except SchemaError as e:
        logger.error(f"Schema load failed: {e}")
        console.print(f"\n[red]❌ Schema load failed:[/red] {e}")
        return 1

    _print_summary(f"{args.server} / {args.database}", graph)
    _write_json(graph.to_dict(), args.output)
    return 0


def cmd_databases(args):
    """List databases on a server"""
    try:
        names = asyncio.run(list_databases(_server_params(args)))
    except DatabaseConnectionError as e:
        logger.error(f"Database listing failed: {e}")
        console.print(f"\n[red]❌ Database listing failed:[/red] {e}")
        return 1

    console.print(f"Found {len(names)} databases on {args.server}")
    _write_json(names, args.output)
    return 0


def cmd_mock(args):
    """Generate a deterministic mock graph"""
    graph = load_schema_mock(args.size)
    _print_summary(f"Mock schema ({args.size})", graph)
    _write_json(graph.to_dict(), args.output)
    return 0


def cmd_data_sources(args):
    """List configured ODBC data sources"""
    try:
        sources = list_data_sources()
    except DatabaseConnectionError as e:
        console.print(f"\n[red]❌ Could not list data sources:[/red] {e}")
        return 1

    table = Table(title="ODBC Data Sources")
    table.add_column("Name")
    table.add_column("Driver")
    for source in sources:
        table.add_row(source.name, source.description)
    console.print(table)
    return 0


def cmd_serve(args):
    """Run the HTTP API"""
    import uvicorn

    settings = get_settings()
    host = args.host or settings.api.host
    port = args.port or settings.api.port

    logger.info(f"Starting API on {host}:{port}")
    uvicorn.run("api.routes:app", host=host, port=port, log_config=None)
    return 0


def cmd_config(args):
    """Show current configuration"""
    settings = get_settings()

    if args.json:
        config_dict = {
            'connection': {
                'odbc_driver': settings.connection.odbc_driver,
                'login_timeout': settings.connection.login_timeout,
                'app_name': settings.connection.app_name,
            },
            'discovery': {
                'fetch_batch_size': settings.discovery.fetch_batch_size,
            },
            'api': {
                'host': settings.api.host,
                'port': settings.api.port,
            },
            'logging': {
                'level': settings.logging.level,
                'log_dir': str(settings.logging.log_dir),
                'log_to_file': settings.logging.log_to_file,
            },
        }
        print(json.dumps(config_dict, indent=2, ensure_ascii=False))
    else:
        print(settings.summary())

    return 0


def _add_connection_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '-s', '--server',
        required=True,
        help='host, host,port, host:port or host\\instance'
    )
    parser.add_argument(
        '--auth',
        choices=[a.value for a in AuthType],
        default=AuthType.SQL_SERVER.value,
        help='Authentication type (default: sqlServer)'
    )
    parser.add_argument('-u', '--username', help='SQL Server login')
    parser.add_argument('-p', '--password', help='SQL Server password')
    parser.add_argument(
        '--trust-server-certificate',
        action='store_true',
        help='Skip TLS certificate validation'
    )
    parser.add_argument('-o', '--output', help='Write JSON to this file instead of stdout')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='SQL Server Schema Graph Introspector',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Live schema load
  python main.py schema -s sql01\\SQLEXPRESS -d Sales -u sa -p secret
  python main.py schema -s sql01,1444 -d Sales --auth windows -o graph.json

  # Server-level
  python main.py databases -s sql01 -u sa -p secret --trust-server-certificate

  # Mock data for UI work
  python main.py mock --size stress -o stress.json

  # Utilities
  python main.py data-sources
  python main.py serve --port 8080
  python main.py config --json
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # ============================================================================
    # SCHEMA COMMAND
    # ============================================================================
    schema_parser = subparsers.add_parser('schema', help='Load the schema graph of a database')
    _add_connection_arguments(schema_parser)
    schema_parser.add_argument('-d', '--database', required=True, help='Database to introspect')
    schema_parser.set_defaults(func=cmd_schema)

    # ============================================================================
    # DATABASES COMMAND
    # ============================================================================
    databases_parser = subparsers.add_parser('databases', help='List databases on a server')
    _add_connection_arguments(databases_parser)
    databases_parser.set_defaults(func=cmd_databases)

    # ============================================================================
    # MOCK COMMAND
    # ============================================================================
    mock_parser = subparsers.add_parser('mock', help='Generate a deterministic mock schema graph')
    mock_parser.add_argument(
        '--size',
        choices=list(PRESETS),
        default='small',
        help='Size preset (default: small)'
    )
    mock_parser.add_argument('-o', '--output', help='Write JSON to this file instead of stdout')
    mock_parser.set_defaults(func=cmd_mock)

    # ============================================================================
    # DATA-SOURCES COMMAND
    # ============================================================================
    sources_parser = subparsers.add_parser('data-sources', help='List configured ODBC data sources')
    sources_parser.set_defaults(func=cmd_data_sources)

    # ============================================================================
    # SERVE COMMAND
    # ============================================================================
    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', help='Listen address (default: API_HOST)')
    serve_parser.add_argument('--port', type=int, help='Listen port (default: API_PORT)')
    serve_parser.set_defaults(func=cmd_serve)

    # ============================================================================
    # CONFIG COMMAND
    # ============================================================================
    config_parser = subparsers.add_parser('config', help='Show current configuration')
    config_parser.add_argument(
        '--json',
        action='store_true',
        help='Output configuration as JSON'
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main():
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    try:
        setup_logging(get_settings().logging)
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        console.print("\n\n⚠️  Interrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
