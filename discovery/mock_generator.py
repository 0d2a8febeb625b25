"""
Mock Generator - deterministic schema graphs for UI development and tests.

Every choice comes from one integer hash of (seed, index), so a preset always
produces the same graph. No I/O.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from shared.models import (Column, TableNode, ViewNode, RelationshipEdge, ProcedureParameter,
                           Trigger, StoredProcedure, ScalarFunction, SchemaGraph)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MockConfig:
    tables: int
    views: int
    relationships: int
    triggers: int
    procedures: int
    functions: int


PRESETS: Dict[str, MockConfig] = {
    "small": MockConfig(tables=10, views=3, relationships=15, triggers=5, procedures=5, functions=5),
    "medium": MockConfig(tables=100, views=20, relationships=150, triggers=30, procedures=20,
                         functions=20),
    "large": MockConfig(tables=500, views=50, relationships=750, triggers=100, procedures=50,
                        functions=50),
    "stress": MockConfig(tables=2000, views=200, relationships=3000, triggers=300, procedures=150,
                         functions=150),
}
DEFAULT_PRESET = "small"

SCHEMAS = ["dbo", "sales", "inventory", "hr"]

TABLE_PREFIXES = [
    "Customer", "Order", "Product", "Category", "Employee", "Department", "Invoice", "Payment",
    "Shipment", "Supplier", "Warehouse", "Stock", "Account", "Transaction", "Report", "Log",
    "Audit", "Config", "Setting", "User",
]

TABLE_SUFFIXES = ["", "s", "Detail", "History", "Archive", "Temp", "Backup", "Master", "Ref", "Lookup"]

COLUMN_NAMES = [
    "Id", "Name", "Description", "Status", "Type", "Code", "Value", "Amount", "Quantity", "Price",
    "Date", "CreatedAt", "UpdatedAt", "DeletedAt", "IsActive", "IsDeleted", "Priority", "Sequence",
    "Notes", "Comments", "Email", "Phone", "Address", "City", "Country", "PostalCode", "Rating",
    "Score", "Level", "Version",
]

DATA_TYPES = [
    "int", "bigint", "nvarchar(100)", "nvarchar(255)", "decimal(18,2)", "datetime2", "bit",
    "uniqueidentifier", "float", "nvarchar(max)",
]

TRIGGER_TYPES = ["AFTER", "INSTEAD OF"]
PROCEDURE_PREFIXES = ["Get", "Update", "Delete", "Insert", "Calculate", "Process", "Validate"]
WRITING_PROCEDURE_PREFIXES = ("Update", "Delete", "Insert")
FUNCTION_PREFIXES = ["fn_Get", "fn_Calculate", "fn_Format", "fn_Validate", "fn_Convert"]
FUNCTION_RETURN_TYPES = ["int", "decimal(18,2)", "nvarchar(100)", "bit", "datetime2"]

MIN_COLUMNS = 5
MAX_COLUMNS = 300
WIDE_COLUMN_TIERS = [100, 150, 200, 250, 300]
TABLE_COLUMN_SEED = 200
VIEW_COLUMN_SEED = 400

_HASH_MULTIPLIER = 2654435761
_MASK_64 = 0xFFFFFFFFFFFFFFFF


def simple_hash(seed: int, index: int) -> int:
    """Multiplicative hash with 64-bit wrap-around."""
    h = ((seed + index) * _HASH_MULTIPLIER) & _MASK_64
    return h ^ (h >> 16)


def generate_column_count(index: int, seed: int) -> int:
    # the first objects are always wide so the UI gets exercised
    if index < len(WIDE_COLUMN_TIERS):
        return WIDE_COLUMN_TIERS[index]
    return MIN_COLUMNS + simple_hash(seed, index) % (MAX_COLUMNS - MIN_COLUMNS + 1)


def generate_tables(config: MockConfig) -> List[TableNode]:
    tables = []

    for i in range(config.tables):
        schema = SCHEMAS[i % len(SCHEMAS)]
        prefix = TABLE_PREFIXES[simple_hash(i, 0) % len(TABLE_PREFIXES)]
        suffix = TABLE_SUFFIXES[simple_hash(i, 1) % len(TABLE_SUFFIXES)]
        name = f"{prefix}{suffix}{i}"

        columns = [Column(name="Id", data_type="int", is_nullable=False, is_primary_key=True)]
        for c in range(1, generate_column_count(i, TABLE_COLUMN_SEED)):
            key = i * 100 + c
            columns.append(Column(
                name=f"{COLUMN_NAMES[simple_hash(key, 3) % len(COLUMN_NAMES)]}{c}",
                data_type=DATA_TYPES[simple_hash(key, 4) % len(DATA_TYPES)],
                is_nullable=simple_hash(key, 5) % 2 == 0,
            ))

        tables.append(TableNode(id=f"{schema}.{name}", name=name, schema=schema, columns=columns))

    return tables


def generate_relationships(tables: List[TableNode], config: MockConfig) -> List[RelationshipEdge]:
    if len(tables) < 2:
        return []

    relationships = []
    for i in range(min(config.relationships, len(tables) * 2)):
        from_idx = simple_hash(i, 10) % len(tables)
        to_idx = simple_hash(i, 11) % len(tables)
        if to_idx == from_idx:
            to_idx = (to_idx + 1) % len(tables)

        from_table, to_table = tables[from_idx], tables[to_idx]
        relationships.append(RelationshipEdge(
            id=f"FK_{from_table.name}_{to_table.name}_{i}",
            from_id=from_table.id,
            to_id=to_table.id,
            from_column=f"{to_table.name.rstrip('0123456789')}Id",
            to_column="Id",
        ))

    return relationships


def generate_views(tables: List[TableNode], config: MockConfig) -> List[ViewNode]:
    if not tables:
        return []

    views = []
    for i in range(config.views):
        schema = SCHEMAS[i % len(SCHEMAS)]
        name = f"vw_Report{i}"

        source_count = 1 + simple_hash(i, 20) % min(3, len(tables))
        start_idx = simple_hash(i, 21) % len(tables)
        sources = [tables[(start_idx + offset) % len(tables)] for offset in range(source_count)]

        columns = []
        for c in range(generate_column_count(i, VIEW_COLUMN_SEED)):
            key = i * 1000 + c
            source_table = sources[simple_hash(key, 22) % len(sources)]
            source_column = source_table.columns[simple_hash(key, 23) % len(source_table.columns)]
            columns.append(Column(
                name=f"{source_table.name}_{source_column.name}_{c + 1}",
                data_type=source_column.data_type,
                is_nullable=source_column.is_nullable,
                source_table=source_table.id,
                source_column=source_column.name,
            ))

        views.append(ViewNode(
            id=f"{schema}.{name}",
            name=name,
            schema=schema,
            columns=columns,
            definition=f"CREATE VIEW {name} AS\nSELECT * FROM {sources[0].id} -- Mock view",
            referenced_tables=[t.id for t in sources],
        ))

    return views


def generate_triggers(tables: List[TableNode], config: MockConfig) -> List[Trigger]:
    if not tables:
        return []

    triggers = []
    for i in range(config.triggers):
        table_idx = simple_hash(i, 30) % len(tables)
        table = tables[table_idx]
        name = f"TR_{table.name}_{i}"

        fires_on_insert = simple_hash(i, 32) % 2 == 0
        fires_on_update = simple_hash(i, 33) % 2 == 0 or not fires_on_insert
        fires_on_delete = simple_hash(i, 34) % 3 == 0

        affected_tables = []
        if simple_hash(i, 35) % 2 == 0 and len(tables) > 1:
            affected_idx = (table_idx + 1 + simple_hash(i, 36)) % len(tables)
            affected_tables.append(tables[affected_idx].id)

        triggers.append(Trigger(
            id=f"{table.id}.{name}",
            name=name,
            schema=table.schema,
            table_id=table.id,
            trigger_type=TRIGGER_TYPES[simple_hash(i, 31) % len(TRIGGER_TYPES)],
            is_disabled=simple_hash(i, 37) % 5 == 0,
            fires_on_insert=fires_on_insert,
            fires_on_update=fires_on_update,
            fires_on_delete=fires_on_delete,
            definition=f"CREATE TRIGGER {name} ON {table.id} -- Mock trigger {i}",
            affected_tables=affected_tables,
        ))

    return triggers


def _pick_tables(tables: List[TableNode], i: int, count: int, salt: int) -> List[str]:
    picked = []
    for n in range(count):
        table_id = tables[simple_hash(i * 10 + n, salt) % len(tables)].id
        if table_id not in picked:
            picked.append(table_id)
    return picked


def generate_procedures(tables: List[TableNode], config: MockConfig) -> List[StoredProcedure]:
    procedures = []

    for i in range(config.procedures):
        schema = SCHEMAS[i % len(SCHEMAS)]
        prefix = PROCEDURE_PREFIXES[simple_hash(i, 40) % len(PROCEDURE_PREFIXES)]
        name = f"{prefix}Data{i}"

        param_count = 1 + simple_hash(i, 41) % 4
        parameters = []
        for p in range(param_count):
            key = i * 10 + p
            parameters.append(ProcedureParameter(
                name=f"@{COLUMN_NAMES[simple_hash(key, 42) % len(COLUMN_NAMES)]}",
                data_type=DATA_TYPES[simple_hash(key, 43) % len(DATA_TYPES)],
                is_output=p == param_count - 1 and simple_hash(i, 44) % 3 == 0,
            ))

        referenced_tables, affected_tables = [], []
        if tables:
            referenced_tables = _pick_tables(tables, i, simple_hash(i, 45) % 3, 46)
            if prefix in WRITING_PROCEDURE_PREFIXES:
                affected_tables = _pick_tables(tables, i, 1 + simple_hash(i, 47) % 2, 48)

        procedures.append(StoredProcedure(
            id=f"{schema}.{name}",
            name=name,
            schema=schema,
            procedure_type="SQL_STORED_PROCEDURE",
            parameters=parameters,
            definition=f"CREATE PROCEDURE {name} -- Mock procedure {i}",
            referenced_tables=referenced_tables,
            affected_tables=affected_tables,
        ))

    return procedures


def generate_functions(tables: List[TableNode], config: MockConfig) -> List[ScalarFunction]:
    functions = []

    for i in range(config.functions):
        schema = SCHEMAS[i % len(SCHEMAS)]
        prefix = FUNCTION_PREFIXES[simple_hash(i, 50) % len(FUNCTION_PREFIXES)]
        name = f"{prefix}Value{i}"

        parameters = []
        for p in range(1 + simple_hash(i, 51) % 3):
            key = i * 10 + p
            parameters.append(ProcedureParameter(
                name=f"@{COLUMN_NAMES[simple_hash(key, 52) % len(COLUMN_NAMES)]}",
                data_type=DATA_TYPES[simple_hash(key, 53) % len(DATA_TYPES)],
            ))

        referenced_tables = []
        if tables and simple_hash(i, 55) % 2 == 0:
            referenced_tables.append(tables[simple_hash(i, 56) % len(tables)].id)

        functions.append(ScalarFunction(
            id=f"{schema}.{name}",
            name=name,
            schema=schema,
            function_type="SQL_SCALAR_FUNCTION",
            parameters=parameters,
            return_type=FUNCTION_RETURN_TYPES[simple_hash(i, 54) % len(FUNCTION_RETURN_TYPES)],
            definition=f"CREATE FUNCTION {name} -- Mock function {i}",
            referenced_tables=referenced_tables,
        ))

    return functions


def load_schema_mock(size: str) -> SchemaGraph:
    """
    Build the mock graph for a size preset (small, medium, large, stress).
    Unknown presets fall back to small.
    """
    config = PRESETS.get(size)
    if config is None:
        logger.info(f"Unknown mock size '{size}', using '{DEFAULT_PRESET}'")
        config = PRESETS[DEFAULT_PRESET]

    tables = generate_tables(config)
    graph = SchemaGraph(
        tables=tables,
        views=generate_views(tables, config),
        relationships=generate_relationships(tables, config),
        triggers=generate_triggers(tables, config),
        stored_procedures=generate_procedures(tables, config),
        scalar_functions=generate_functions(tables, config),
    )
    logger.debug(f"Generated mock schema '{size}': {graph.summary()}")
    return graph
