#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data Models - Schema graph entities and connection parameters
Entities reference each other by canonical id ("schema.name"), never by object.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional


# ============================================================================
# SCHEMA GRAPH
# ============================================================================

@dataclass
class Column:
    """Table or view column"""
    name: str
    data_type: str
    is_nullable: bool
    is_primary_key: bool = False
    source_table: Optional[str] = None    # view lineage only
    source_column: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "dataType": self.data_type,
            "isNullable": self.is_nullable,
            "isPrimaryKey": self.is_primary_key,
        }
        if self.source_table is not None:
            data["sourceTable"] = self.source_table
        if self.source_column is not None:
            data["sourceColumn"] = self.source_column
        return data


@dataclass
class TableNode:
    id: str
    name: str
    schema: str
    columns: List[Column] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "schema": self.schema,
            "columns": [c.to_dict() for c in self.columns],
        }


@dataclass
class ViewNode:
    id: str
    name: str
    schema: str
    columns: List[Column] = field(default_factory=list)
    definition: str = ""
    referenced_tables: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "schema": self.schema,
            "columns": [c.to_dict() for c in self.columns],
            "definition": self.definition,
            "referencedTables": list(self.referenced_tables),
        }


@dataclass
class RelationshipEdge:
    """Foreign key column pair, keyed by the constraint name"""
    id: str
    from_id: str
    to_id: str
    from_column: str
    to_column: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from": self.from_id,
            "to": self.to_id,
            "fromColumn": self.from_column,
            "toColumn": self.to_column,
        }


@dataclass
class ProcedureParameter:
    name: str           # includes the leading '@'
    data_type: str
    is_output: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dataType": self.data_type,
            "isOutput": self.is_output,
        }


@dataclass
class Trigger:
    id: str             # schema.table.trigger
    name: str
    schema: str
    table_id: str
    trigger_type: str
    is_disabled: bool = False
    fires_on_insert: bool = False
    fires_on_update: bool = False
    fires_on_delete: bool = False
    definition: str = ""
    referenced_tables: List[str] = field(default_factory=list)
    affected_tables: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "schema": self.schema,
            "tableId": self.table_id,
            "triggerType": self.trigger_type,
            "isDisabled": self.is_disabled,
            "firesOnInsert": self.fires_on_insert,
            "firesOnUpdate": self.fires_on_update,
            "firesOnDelete": self.fires_on_delete,
            "definition": self.definition,
            "referencedTables": list(self.referenced_tables),
            "affectedTables": list(self.affected_tables),
        }


@dataclass
class StoredProcedure:
    id: str
    name: str
    schema: str
    procedure_type: str
    parameters: List[ProcedureParameter] = field(default_factory=list)
    definition: str = ""
    referenced_tables: List[str] = field(default_factory=list)
    affected_tables: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "schema": self.schema,
            "procedureType": self.procedure_type,
            "parameters": [p.to_dict() for p in self.parameters],
            "definition": self.definition,
            "referencedTables": list(self.referenced_tables),
            "affectedTables": list(self.affected_tables),
        }


@dataclass
class ScalarFunction:
    id: str
    name: str
    schema: str
    function_type: str
    parameters: List[ProcedureParameter] = field(default_factory=list)
    return_type: str = ""
    definition: str = ""
    referenced_tables: List[str] = field(default_factory=list)
    affected_tables: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "schema": self.schema,
            "functionType": self.function_type,
            "parameters": [p.to_dict() for p in self.parameters],
            "returnType": self.return_type,
            "definition": self.definition,
            "referencedTables": list(self.referenced_tables),
            "affectedTables": list(self.affected_tables),
        }


@dataclass
class SchemaGraph:
    """Everything one schema load produces"""
    tables: List[TableNode] = field(default_factory=list)
    views: List[ViewNode] = field(default_factory=list)
    relationships: List[RelationshipEdge] = field(default_factory=list)
    triggers: List[Trigger] = field(default_factory=list)
    stored_procedures: List[StoredProcedure] = field(default_factory=list)
    scalar_functions: List[ScalarFunction] = field(default_factory=list)

    def object_ids(self) -> List[str]:
        """Ids of every object in the graph, in category order"""
        ids = [t.id for t in self.tables]
        ids.extend(v.id for v in self.views)
        ids.extend(t.id for t in self.triggers)
        ids.extend(p.id for p in self.stored_procedures)
        ids.extend(f.id for f in self.scalar_functions)
        return ids

    def summary(self) -> Dict[str, int]:
        return {
            "tables": len(self.tables),
            "views": len(self.views),
            "relationships": len(self.relationships),
            "triggers": len(self.triggers),
            "stored_procedures": len(self.stored_procedures),
            "scalar_functions": len(self.scalar_functions),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": [t.to_dict() for t in self.tables],
            "views": [v.to_dict() for v in self.views],
            "relationships": [r.to_dict() for r in self.relationships],
            "triggers": [t.to_dict() for t in self.triggers],
            "storedProcedures": [p.to_dict() for p in self.stored_procedures],
            "scalarFunctions": [f.to_dict() for f in self.scalar_functions],
        }


# ============================================================================
# CONNECTION PARAMETERS
# ============================================================================

class AuthType(str, Enum):
    SQL_SERVER = "sqlServer"
    WINDOWS = "windows"


@dataclass
class ServerConnectionParams:
    """Server-level connection (database listing runs against master)"""
    server: str
    auth_type: AuthType = AuthType.SQL_SERVER
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    trust_server_certificate: bool = False


@dataclass
class ConnectionParams:
    """Database-level connection used for a schema load"""
    server: str
    database: str
    auth_type: AuthType = AuthType.SQL_SERVER
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    trust_server_certificate: bool = False

    def for_server(self) -> ServerConnectionParams:
        return ServerConnectionParams(
            server=self.server,
            auth_type=self.auth_type,
            username=self.username,
            password=self.password,
            trust_server_certificate=self.trust_server_certificate,
        )


@dataclass
class DataSourceInfo:
    """Configured ODBC data source"""
    name: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description}
