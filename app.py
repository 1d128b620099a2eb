"""
Tapestry FastAPI Application

A local REST surface for the Tapestry persistence engine.
The editor shell pushes working-copy snapshots here and drives model
creation, opening, import, conflict resolution and disk saves.
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tapestry.config import Config
from tapestry.models import Conflict, ConflictResolution, Failed, ModelData
from tapestry.services import InMemoryWorkingCopy, PersistenceEngine
from tapestry.utils.exceptions import NotFoundError, StorageWriteFailure, ValidationError
from tapestry.utils.logger import configure_logging, get_logger

# Global engine instance
engine: PersistenceEngine | None = None
working_copy: InMemoryWorkingCopy | None = None
logger = get_logger(__name__)


# Pydantic models for API
class CreateModelRequest(BaseModel):
    """Request model for creating (or saving as) a model."""

    name: str = Field(..., min_length=1, description="Model name")
    description: str = Field(default="", description="Optional description")


class ResolveConflictRequest(BaseModel):
    """Request model for resolving a pending import conflict."""

    resolution: ConflictResolution


class StatusResponse(BaseModel):
    """Active model status."""

    active_model_id: str | None
    current_model_name: str
    has_unsaved_changes: bool
    has_pending_conflict: bool
    lifecycle: str
    schema_changes: list[str]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    engine_initialized: bool
    storage_backend: str
    file_bridge: str


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _require_engine() -> PersistenceEngine:
    if not engine:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global engine, working_copy

    # Load configuration from environment or use defaults
    config = Config.from_env()

    # Initialize logging with config
    configure_logging(config.logging)

    logger.info("Starting Tapestry server")
    logger.info(
        f"Configuration: Storage={config.storage.backend}, "
        f"FileBridge={config.file_bridge.mode}, Autosave={config.autosave.enabled}"
    )

    working_copy = InMemoryWorkingCopy()
    engine = PersistenceEngine.from_config(config, working_copy=working_copy)
    app.state.config = config

    await engine.initialize()
    logger.info("Tapestry engine initialized")

    yield

    # Cleanup
    logger.info("Shutting down Tapestry server")
    await engine.close()
    engine = None
    working_copy = None
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="Tapestry Persistence API",
    description="Local-first model persistence for the Tapestry knowledge-graph editor",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint."""
    config: Config | None = getattr(request.app.state, "config", None)
    return HealthResponse(
        status="healthy" if engine else "initializing",
        engine_initialized=engine is not None,
        storage_backend=config.storage.backend if config else "unknown",
        file_bridge=type(engine.file_bridge).__name__ if engine else "unknown",
    )


@app.get("/status", response_model=StatusResponse)
async def get_status():
    """Report the active model and whether it has unsaved changes."""
    current = _require_engine()
    return StatusResponse(
        active_model_id=current.active_model_id,
        current_model_name=current.current_model_name,
        has_unsaved_changes=current.has_unsaved_changes,
        has_pending_conflict=current.pending_conflict is not None,
        lifecycle=current.session.lifecycle.value,
        schema_changes=current.session.schema_changes,
    )


# Model endpoints
@app.get("/models")
async def list_models():
    """List registered models (metadata only)."""
    current = _require_engine()
    return [_dump(m) for m in current.list_models()]


@app.post("/models", status_code=201)
async def create_model(request: CreateModelRequest):
    """Create a new empty model and open it."""
    current = _require_engine()
    try:
        metadata = await current.create_model(request.name, request.description)
        return _dump(metadata)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except StorageWriteFailure as e:
        logger.error(f"Error creating model: {e}")
        raise HTTPException(status_code=507, detail=e.message) from e


@app.post("/models/{model_id}/open")
async def open_model(model_id: str):
    """Open a locally stored model into the working copy."""
    current = _require_engine()
    try:
        loaded = await current.load_model(model_id)
        return {
            "metadata": _dump(loaded.metadata),
            "schemaChanges": current.consume_schema_changes(),
        }
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e


# Working copy endpoints
@app.get("/working-copy")
async def get_working_copy():
    """Return the current working copy."""
    _require_engine()
    return working_copy.get_working_copy().to_json_dict()


@app.put("/working-copy")
async def put_working_copy(data: ModelData):
    """
    Replace the working copy with the editor's latest snapshot.

    Triggers an autosave cycle; the store is only written when the content
    hash changed.
    """
    current = _require_engine()
    working_copy.apply_working_copy(data)
    try:
        committed = await current.autosave()
    except StorageWriteFailure as e:
        logger.error(f"Autosave failed: {e}")
        raise HTTPException(status_code=507, detail=e.message) from e
    metadata = current.active_metadata
    return {
        "committed": committed,
        "contentHash": metadata.content_hash if metadata else None,
    }


# Save endpoints
@app.post("/save")
async def disk_save():
    """Write the active model to its external file."""
    current = _require_engine()
    try:
        outcome = await current.disk_save()
        return outcome.model_dump(mode="json")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except StorageWriteFailure as e:
        logger.error(f"Disk save failed: {e}")
        raise HTTPException(status_code=507, detail=e.message) from e


@app.post("/save-as", status_code=201)
async def save_as(request: CreateModelRequest):
    """Clone the working copy into a new model."""
    current = _require_engine()
    try:
        metadata = await current.save_as(request.name, request.description)
        return _dump(metadata)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except StorageWriteFailure as e:
        raise HTTPException(status_code=507, detail=e.message) from e


# Import endpoints
@app.post("/import")
async def import_file(request: Request, filename: str | None = Query(default=None)):
    """
    Import a model file sent as the raw request body.

    Returns 200 with the loaded model, 409 with the conflict descriptor when
    the file disagrees with the local copy, or 400/507 when it failed.
    """
    current = _require_engine()
    body = await request.body()
    outcome = await current.import_file(body, filename=filename)

    if isinstance(outcome, Failed):
        status = 507 if outcome.error_type == "StorageWriteFailure" else 400
        return JSONResponse(status_code=status, content=_dump(outcome))
    if isinstance(outcome, Conflict):
        return JSONResponse(status_code=409, content=_dump(outcome))

    return {
        **_dump(outcome),
        "schemaChanges": current.consume_schema_changes(),
    }


@app.get("/conflict")
async def get_conflict():
    """Return the pending import conflict, if any."""
    current = _require_engine()
    if current.pending_conflict is None:
        raise HTTPException(status_code=404, detail="No pending import conflict")
    return _dump(current.pending_conflict)


@app.post("/conflict/resolve")
async def resolve_conflict(request: ResolveConflictRequest):
    """Keep the local model, adopt the imported file, or cancel the import."""
    current = _require_engine()
    try:
        loaded = await current.resolve_conflict(request.resolution)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except StorageWriteFailure as e:
        raise HTTPException(status_code=507, detail=e.message) from e

    if loaded is None:
        return {"resolution": request.resolution.value, "loaded": None}
    return {"resolution": request.resolution.value, "loaded": _dump(loaded)}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Tapestry Persistence API",
        "version": "1.0.0",
        "description": "Local-first model persistence for the Tapestry knowledge-graph editor",
        "docs": "/docs",
        "health": "/health",
    }
