import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from connectors import list_data_sources
from discovery import load_schema, list_databases, load_schema_mock
from shared.errors import DatabaseConnectionError, SchemaError
from shared.models import AuthType, ConnectionParams, ServerConnectionParams

logger = logging.getLogger(__name__)

app = FastAPI(title="Schema Graph API", version="1.0.0")


class ServerConnectionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    server: str
    auth_type: AuthType = AuthType.SQL_SERVER
    username: Optional[str] = None
    password: Optional[str] = None
    trust_server_certificate: bool = False

    def to_params(self) -> ServerConnectionParams:
        return ServerConnectionParams(**self.model_dump())


class ConnectionRequest(ServerConnectionRequest):
    database: str

    def to_params(self) -> ConnectionParams:
        return ConnectionParams(**self.model_dump())


@app.post("/api/schema")
async def schema(request: ConnectionRequest):
    """Load the schema graph of one database."""
    try:
        graph = await load_schema(request.to_params())
    except SchemaError as e:
        logger.error(f"Schema load failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return graph.to_dict()


@app.post("/api/databases")
async def databases(request: ServerConnectionRequest):
    """List databases on a server."""
    try:
        return await list_databases(request.to_params())
    except DatabaseConnectionError as e:
        logger.error(f"Database listing failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/schema/mock")
async def schema_mock(size: str = "small"):
    """Deterministic mock graph for UI development."""
    return load_schema_mock(size).to_dict()


@app.get("/api/data-sources")
async def data_sources():
    """ODBC data sources configured on this machine."""
    try:
        sources = await asyncio.to_thread(list_data_sources)
    except DatabaseConnectionError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return [s.to_dict() for s in sources]


@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
