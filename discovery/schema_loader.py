"""
Schema Assembler - loads one database's catalog into a SchemaGraph.

Tables and views are mandatory: any failure aborts the load. View column
lineage, foreign keys, triggers, procedures and functions are enrichments:
a failure leaves that part empty (lineage keeps the rows read before the
failure) and the rest of the graph is still returned.
"""

import logging
from contextlib import aclosing
from typing import Dict, List, Optional, Set, Tuple

from config.settings import Settings, get_settings
from connectors import open_session, MASTER_DATABASE
from shared.errors import (DatabaseConnectionError, DriverError, SchemaError,
                           SchemaConnectionError, SchemaQueryError)
from shared.models import (Column, TableNode, ViewNode, RelationshipEdge, ProcedureParameter,
                           Trigger, StoredProcedure, ScalarFunction, SchemaGraph,
                           ConnectionParams, ServerConnectionParams)
from .catalog_queries import (LIST_DATABASES_QUERY, TABLES_AND_COLUMNS_QUERY, FOREIGN_KEYS_QUERY,
                              VIEWS_AND_COLUMNS_QUERY, VIEW_COLUMN_SOURCES_QUERY, TRIGGERS_QUERY,
                              STORED_PROCEDURES_QUERY, SCALAR_FUNCTIONS_QUERY)
from .reference_extractor import (build_name_index, extract_references, extract_read_references,
                                  find_ambiguous_names)
from .row_stream import DEFAULT_BATCH_SIZE, stream_rows
from .type_formatter import format_data_type

logger = logging.getLogger(__name__)

# (view id, view column) -> [(source table, source column), ...]
ViewColumnSources = Dict[Tuple[str, str], List[Tuple[str, str]]]


class SchemaLoader:
    """Runs the catalog queries sequentially on one session."""

    def __init__(self, session, batch_size: int = DEFAULT_BATCH_SIZE):
        self.session = session
        self.batch_size = batch_size

    def _rows(self, query: str, query_name: str):
        return aclosing(stream_rows(self.session, query, self.batch_size, query_name))

    async def load(self) -> SchemaGraph:
        """Load the full graph. Raises SchemaError if tables or views fail."""
        tables = await self.load_tables()
        views = await self.load_views()
        logger.info(f"Loaded {len(tables)} tables and {len(views)} views")

        name_index = build_name_index(tables, views)

        for view in views:
            view.referenced_tables = extract_read_references(view.definition, name_index)

        sources = await self.load_view_column_sources()
        apply_view_lineage(views, sources, name_index, find_ambiguous_names(tables, views))

        table_ids = {t.id for t in tables}
        relationships = await self._load_optional("foreign keys", self.load_foreign_keys(table_ids))
        triggers = await self._load_optional("triggers", self.load_triggers(table_ids, name_index))
        procedures = await self._load_optional("stored procedures",
                                               self.load_stored_procedures(name_index))
        functions = await self._load_optional("scalar functions",
                                              self.load_scalar_functions(name_index))

        return SchemaGraph(
            tables=tables,
            views=views,
            relationships=relationships,
            triggers=triggers,
            stored_procedures=procedures,
            scalar_functions=functions,
        )

    async def _load_optional(self, label: str, loader) -> list:
        try:
            items = await loader
        except SchemaError as e:
            logger.warning(f"Skipping {label}: {e}")
            return []
        logger.info(f"Loaded {len(items)} {label}")
        return items

    # ------------------------------------------------------------------
    # Mandatory
    # ------------------------------------------------------------------

    async def load_tables(self) -> List[TableNode]:
        tables: Dict[str, TableNode] = {}

        async with self._rows(TABLES_AND_COLUMNS_QUERY, "tables_and_columns") as rows:
            async for row in rows:
                schema, name = row.get_str(0), row.get_str(1)
                table_id = f"{schema}.{name}"

                table = tables.get(table_id)
                if table is None:
                    table = tables[table_id] = TableNode(id=table_id, name=name, schema=schema)

                table.columns.append(Column(
                    name=row.get_str(2),
                    data_type=format_data_type(row.get_str(3), row.get_i16(4),
                                               row.get_u8(5), row.get_u8(6)),
                    is_nullable=row.get_bool(7),
                    is_primary_key=row.get_bool(8),
                ))

        return list(tables.values())

    async def load_views(self) -> List[ViewNode]:
        views: Dict[str, ViewNode] = {}

        async with self._rows(VIEWS_AND_COLUMNS_QUERY, "views_and_columns") as rows:
            async for row in rows:
                schema, name = row.get_str(0), row.get_str(1)
                view_id = f"{schema}.{name}"

                view = views.get(view_id)
                if view is None:
                    view = views[view_id] = ViewNode(id=view_id, name=name, schema=schema,
                                                     definition=row.get_str_or(8))

                view.columns.append(Column(
                    name=row.get_str(2),
                    data_type=format_data_type(row.get_str(3), row.get_i16(4),
                                               row.get_u8(5), row.get_u8(6)),
                    is_nullable=row.get_bool(7),
                ))

        return list(views.values())

    # ------------------------------------------------------------------
    # Best effort
    # ------------------------------------------------------------------

    async def load_view_column_sources(self) -> ViewColumnSources:
        """
        Read view column lineage. The DMV can fail part way through on views
        with broken dependencies; rows read up to that point are kept.
        """
        sources: ViewColumnSources = {}
        count = 0

        try:
            async with self._rows(VIEW_COLUMN_SOURCES_QUERY, "view_column_sources") as rows:
                async for row in rows:
                    view_id = f"{row.get_str(0)}.{row.get_str(1)}"
                    key = (view_id, row.get_str(2))
                    sources.setdefault(key, []).append((row.get_str(3), row.get_str(4)))
                    count += 1
        except SchemaError as e:
            logger.warning(f"View column lineage incomplete, kept {count} rows: {e}")

        return sources

    async def load_foreign_keys(self, table_ids: Set[str]) -> List[RelationshipEdge]:
        relationships = []

        async with self._rows(FOREIGN_KEYS_QUERY, "foreign_keys") as rows:
            async for row in rows:
                edge = RelationshipEdge(
                    id=row.get_str(0),
                    from_id=f"{row.get_str(1)}.{row.get_str(2)}",
                    to_id=f"{row.get_str(4)}.{row.get_str(5)}",
                    from_column=row.get_str(3),
                    to_column=row.get_str(6),
                )
                if edge.from_id not in table_ids or edge.to_id not in table_ids:
                    logger.warning(f"Dropping foreign key {edge.id}: "
                                   f"{edge.from_id} -> {edge.to_id} is not between loaded tables")
                    continue
                relationships.append(edge)

        return relationships

    async def load_triggers(self, table_ids: Set[str], name_index: Dict[str, str]) -> List[Trigger]:
        triggers = []

        async with self._rows(TRIGGERS_QUERY, "triggers") as rows:
            async for row in rows:
                schema, table_name, name = row.get_str(0), row.get_str(1), row.get_str(2)
                table_id = f"{schema}.{table_name}"
                if table_id not in table_ids:
                    logger.warning(f"Dropping trigger {name}: table {table_id} is not loaded")
                    continue

                definition = row.get_str_or(8)
                reads, writes = extract_references(definition, name_index)
                triggers.append(Trigger(
                    id=f"{table_id}.{name}",
                    name=name,
                    schema=schema,
                    table_id=table_id,
                    trigger_type=row.get_str(3),
                    is_disabled=row.get_bool(4),
                    fires_on_insert=row.get_bool(5),
                    fires_on_update=row.get_bool(6),
                    fires_on_delete=row.get_bool(7),
                    definition=definition,
                    referenced_tables=reads,
                    affected_tables=writes,
                ))

        return triggers

    async def load_stored_procedures(self, name_index: Dict[str, str]) -> List[StoredProcedure]:
        procedures: Dict[str, StoredProcedure] = {}

        async with self._rows(STORED_PROCEDURES_QUERY, "stored_procedures") as rows:
            async for row in rows:
                schema, name = row.get_str(0), row.get_str(1)
                procedure_id = f"{schema}.{name}"

                procedure = procedures.get(procedure_id)
                if procedure is None:
                    procedure = procedures[procedure_id] = StoredProcedure(
                        id=procedure_id,
                        name=name,
                        schema=schema,
                        procedure_type=row.get_str(2),
                        definition=row.get_str_or(6),
                    )

                parameter_name = row.get_str_or(3)
                if parameter_name:
                    procedure.parameters.append(ProcedureParameter(
                        name=parameter_name,
                        data_type=row.get_str_or(4),
                        is_output=row.get_bool_or(5),
                    ))

        for procedure in procedures.values():
            procedure.referenced_tables, procedure.affected_tables = extract_references(
                procedure.definition, name_index)

        return list(procedures.values())

    async def load_scalar_functions(self, name_index: Dict[str, str]) -> List[ScalarFunction]:
        functions: Dict[str, ScalarFunction] = {}

        async with self._rows(SCALAR_FUNCTIONS_QUERY, "scalar_functions") as rows:
            async for row in rows:
                schema, name = row.get_str(0), row.get_str(1)
                function_id = f"{schema}.{name}"

                function = functions.get(function_id)
                if function is None:
                    function = functions[function_id] = ScalarFunction(
                        id=function_id,
                        name=name,
                        schema=schema,
                        function_type=row.get_str(2),
                        return_type=row.get_str_or(6),
                        definition=row.get_str_or(7),
                    )

                parameter_name = row.get_str_or(3)
                if parameter_name:
                    function.parameters.append(ProcedureParameter(
                        name=parameter_name,
                        data_type=row.get_str_or(4),
                        is_output=row.get_bool_or(5),
                    ))

        for function in functions.values():
            function.referenced_tables, function.affected_tables = extract_references(
                function.definition, name_index)

        return list(functions.values())


def _pick_source(column_name: str, candidates: List[Tuple[str, str]]) -> Tuple[str, str]:
    """Prefer the source column with the same name as the view column."""
    for source_table, source_column in candidates:
        if source_column.lower() == column_name.lower():
            return source_table, source_column
    return candidates[0]


def _resolve_source_table(view: ViewNode, source_table: str, name_index: Dict[str, str],
                          ambiguous: Set[str]) -> str:
    """
    Canonical id for a lineage table name, which the catalog reports without
    its schema.

    A name shared by several schemas resolves to the one the view reads, then
    to the one in the view's own schema; failing both the raw name is kept.
    """
    key = source_table.lower()
    if key not in ambiguous:
        return name_index.get(key, source_table)

    read = [t for t in view.referenced_tables if t.split(".", 1)[-1].lower() == key]
    if len(read) == 1:
        return read[0]

    return name_index.get(f"{view.schema}.{source_table}".lower(), source_table)


def apply_view_lineage(views: List[ViewNode], sources: ViewColumnSources,
                       name_index: Dict[str, str], ambiguous: Set[str]):
    """
    Set source_table/source_column on view columns that have lineage rows.

    Run after the views' referenced_tables are known.
    """
    if not sources:
        return

    for view in views:
        for column in view.columns:
            candidates = sources.get((view.id, column.name))
            if not candidates:
                continue
            source_table, source_column = _pick_source(column.name, candidates)
            column.source_table = _resolve_source_table(view, source_table, name_index, ambiguous)
            column.source_column = source_column


# ============================================================================
# ENTRY POINTS
# ============================================================================

async def load_schema(params: ConnectionParams, settings: Optional[Settings] = None) -> SchemaGraph:
    """
    Introspect ``params.database`` and return its schema graph.

    Raises:
        SchemaConnectionError: The session could not be established
        SchemaQueryError: Tables or views could not be read
    """
    settings = settings or get_settings()

    try:
        session = await open_session(params.for_server(), params.database, settings.connection)
    except DatabaseConnectionError as e:
        logger.error(f"Connection to {params.server} failed: {e}")
        raise SchemaConnectionError(e) from e

    async with session:
        loader = SchemaLoader(session, settings.discovery.fetch_batch_size)
        graph = await loader.load()

    logger.info(f"Schema load of {params.database} complete: {graph.summary()}")
    return graph


async def list_databases(params: ServerConnectionParams,
                         settings: Optional[Settings] = None) -> List[str]:
    """
    List the user databases the login can access.

    Raises:
        DatabaseConnectionError: Connection failed or the listing query failed
    """
    settings = settings or get_settings()
    session = await open_session(params, MASTER_DATABASE, settings.connection)

    names = []
    async with session:
        try:
            async with aclosing(stream_rows(session, LIST_DATABASES_QUERY,
                                            settings.discovery.fetch_batch_size,
                                            "list_databases")) as rows:
                async for row in rows:
                    names.append(row.get_str(0))
        except SchemaQueryError as e:
            raise DriverError(e.detail) from e

    logger.info(f"Found {len(names)} databases on {params.server}")
    return names
