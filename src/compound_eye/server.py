"""
Compound Eye HTTP API

FastAPI application exposing the observation store, project registry,
action log and repository scanner as JSON endpoints under /api.

Every store shares the one CompoundEyeDatabase passed to create_app().
Route handlers are async so they run one at a time on the event loop and
never interleave transactions on the shared connection.
"""

import logging
from typing import Annotated, Any

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, StrictInt
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException

from . import __version__
from .config import get_db_path, get_scanner_config, get_server_config, load_config
from .database import (
    ActionFilters,
    ActionLog,
    CompoundEyeDatabase,
    ObservationFilters,
    ObservationStore,
    ObservationUpdate,
    ProjectRegistry,
    is_valid_disposition,
)
from .discovery import RepositoryScanner
from .errors import ScanError, ValidationError
from .export import build_export_markdown

logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value
SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1

RowId = Annotated[StrictInt, Field(ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at process start."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class ObservationCreateRequest(BaseModel):
    text: str | None = None
    source: str | None = None
    project: str | None = None


class ObservationUpdateRequest(BaseModel):
    text: str | None = None
    source: str | None = None
    disposition: str | None = None
    project: str | None = None


class ExportRequest(BaseModel):
    ids: list[RowId] | None = None


class ProjectCreateRequest(BaseModel):
    name: str | None = None
    names: list[Any] | None = None


class ScanRequest(BaseModel):
    path: str | None = None


class ActionCreateRequest(BaseModel):
    description: str | None = None
    observation_ids: list[RowId] | None = None
    source: str | None = None
    reference: str | None = None
    project: str | None = None


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _clean(value: str | None) -> str | None:
    """Trim a string field; blank becomes None."""
    if value is None:
        return None
    return value.strip() or None


def _to_row_id(raw: str) -> int | None:
    """Parse an integer id that fits an SQLite INTEGER, or return None."""
    try:
        value = int(raw)
    except ValueError:
        return None
    if not SQLITE_INT_MIN <= value <= SQLITE_INT_MAX:
        return None
    return value


def _parse_id(raw: str) -> int:
    value = _to_row_id(raw)
    if value is None:
        raise HTTPException(status_code=400, detail="Invalid id")
    return value


def _observations(request: Request) -> ObservationStore:
    return request.app.state.observations


def _projects(request: Request) -> ProjectRegistry:
    return request.app.state.projects


def _actions(request: Request) -> ActionLog:
    return request.app.state.actions


router = APIRouter()


# --- Observation routes ---


@router.post("/observations")
async def create_observation(request: Request, body: ObservationCreateRequest):
    text = _clean(body.text)
    if not text:
        return _error("text is required", 400)

    project = _clean(body.project)
    if not project:
        return _error("project is required", 400)

    observation = _observations(request).create(
        text, source=_clean(body.source), project=project
    )
    return JSONResponse(observation.to_dict(), status_code=201)


@router.get("/observations")
async def list_observations(
    request: Request,
    disposition: str | None = None,
    source: str | None = None,
    project: str | None = None,
):
    if disposition and not is_valid_disposition(disposition):
        return _error("Invalid disposition", 400)

    filters = ObservationFilters(
        disposition=disposition or None,
        source=source or None,
        project=project or None,
    )
    return [o.to_dict() for o in _observations(request).list(filters)]


@router.post("/observations/export")
async def export_observations(request: Request, body: ExportRequest):
    if not body.ids:
        return _error("ids must be a non-empty array", 400)

    observations = _observations(request).get_by_ids(body.ids)
    if not observations:
        return _error("No observations found", 404)

    return {"markdown": build_export_markdown(observations)}


@router.patch("/observations/{observation_id}")
async def update_observation(
    request: Request, observation_id: str, body: ObservationUpdateRequest
):
    obs_id = _parse_id(observation_id)

    if body.disposition is not None and not is_valid_disposition(body.disposition):
        return _error("Invalid disposition", 400)

    updates = ObservationUpdate(
        text=body.text.strip() if body.text is not None else None,
        source=_clean(body.source),
        disposition=body.disposition,
        project=_clean(body.project),
    )
    observation = _observations(request).update(obs_id, updates)
    if observation is None:
        return _error("Not found", 404)

    return observation.to_dict()


@router.delete("/observations/{observation_id}")
async def delete_observation(request: Request, observation_id: str):
    obs_id = _parse_id(observation_id)
    if not _observations(request).delete(obs_id):
        return _error("Not found", 404)
    return Response(status_code=204)


@router.get("/observations/{observation_id}/actions")
async def list_observation_actions(request: Request, observation_id: str):
    obs_id = _parse_id(observation_id)
    return [a.to_dict() for a in _actions(request).list_for_observation(obs_id)]


# --- Project routes ---


@router.get("/projects")
async def list_projects(request: Request):
    return [p.to_dict() for p in _projects(request).list()]


@router.post("/projects")
async def create_projects(request: Request, body: ProjectCreateRequest):
    name = _clean(body.name)
    if name:
        project = _projects(request).create(name)
        return JSONResponse(project.to_dict(), status_code=201)

    if body.names:
        valid_names = [n.strip() for n in body.names if isinstance(n, str) and n.strip()]
        if not valid_names:
            return _error("No valid names provided", 400)
        created = _projects(request).create_bulk(valid_names)
        return JSONResponse([p.to_dict() for p in created], status_code=201)

    return _error("name (string) or names (string[]) required", 400)


@router.delete("/projects/{project_id}")
async def delete_project(request: Request, project_id: str):
    if not _projects(request).delete(_parse_id(project_id)):
        return _error("Not found", 404)
    return Response(status_code=204)


@router.post("/projects/scan")
async def scan_projects(request: Request, body: ScanRequest):
    path = _clean(body.path)
    if not path:
        return _error("path is required", 400)

    scanner: RepositoryScanner = request.app.state.scanner
    try:
        candidates = await run_in_threadpool(scanner.scan, path)
    except ScanError as e:
        logger.warning(f"Scan failed: {e}")
        return _error(f"Scan failed: {e}", 500)
    return {"candidates": candidates}


# --- Action routes ---


@router.post("/actions")
async def create_action(request: Request, body: ActionCreateRequest):
    description = _clean(body.description)
    if not description:
        return _error("description is required", 400)
    if not body.observation_ids:
        return _error("observation_ids must be a non-empty array", 400)

    action = _actions(request).create(
        description,
        body.observation_ids,
        source=_clean(body.source),
        reference=_clean(body.reference),
        project=_clean(body.project),
    )
    return JSONResponse(action.to_dict(), status_code=201)


@router.get("/actions")
async def list_actions(
    request: Request, project: str | None = None, observation_id: str | None = None
):
    obs_id = None
    if observation_id:
        obs_id = _to_row_id(observation_id)
        if obs_id is None:
            return _error("Invalid observation_id", 400)

    filters = ActionFilters(project=project or None, observation_id=obs_id)
    return [a.to_dict() for a in _actions(request).list(filters)]


def create_app(
    db: CompoundEyeDatabase, scanner: RepositoryScanner | None = None
) -> FastAPI:
    """
    Build the API application around an open database.

    Args:
        db: Shared database handle (file-backed or ":memory:")
        scanner: Repository scanner; defaults to RepositoryScanner()

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(title="Compound Eye", version=__version__)
    app.state.db = db
    app.state.observations = ObservationStore(db)
    app.state.projects = ProjectRegistry(db)
    app.state.actions = ActionLog(db)
    app.state.scanner = scanner or RepositoryScanner()

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = first.get("msg", "Invalid request")
        return _error(f"{field}: {message}" if field else message, 400)

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return _error(str(exc), 400)

    @app.get("/")
    async def health_check():
        return {"status": "ok", "service": "compound-eye", "version": __version__}

    app.include_router(router, prefix="/api")
    return app


def run_server(
    config_path: str | None = None,
    host: str | None = None,
    port: int | None = None,
    db_path: str | None = None,
) -> None:
    """
    Load configuration, open the database and serve the API with uvicorn.

    Explicit arguments override configuration values. A failed schema
    migration propagates and aborts startup.
    """
    config = load_config(config_path)
    server_config = get_server_config(config)
    configure_logging(server_config["log_level"])

    db = CompoundEyeDatabase(db_path or get_db_path(config))
    scanner = RepositoryScanner(git_timeout=get_scanner_config(config)["git_timeout"])
    app = create_app(db, scanner)

    host = host or server_config["host"]
    port = port or server_config["port"]
    logger.info(f"compound-eye running at http://{host}:{port}")
    try:
        uvicorn.run(app, host=host, port=port, log_level=server_config["log_level"].lower())
    finally:
        db.close()
        logger.info("Database closed")
