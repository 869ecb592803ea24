"""
Todo List HTTP service.

Starlette application exposing CRUD over Todo items:

    GET    /api/todolist        list (Admin: whole tenant, others: own Todos)
    GET    /api/todolist/{id}   one Todo from the caller's tenant
    POST   /api/todolist        create
    PATCH  /api/todolist/{id}   update (absent fields keep stored values)
    DELETE /api/todolist/{id}   delete (idempotent)

Every request goes through the same pipeline:

    1. auth.validate_token() verifies the Bearer JWT
    2. identity.extract_identity() builds the IdentityContext from its claims
    3. access.evaluate() returns an Allow/Deny Decision for the operation
    4. On Allow, the handler reads or writes the TodoStore owned by the app

Denials become 401 (missing role or scope, bad token, unusable claims) or
404 (no such Todo in the caller's tenant). Every decision is logged as a
structured JSON line.

Running the server:
    python -m todolist.server
"""

import json
import logging
import sys
import uuid

import uvicorn
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from todolist.access import Decision, Denial, evaluate, owner_for_new_todo, visible_todos
from todolist.auth import AuthError, validate_token
from todolist.config import settings
from todolist.identity import ClaimError, IdentityContext, extract_identity
from todolist.policies import Operation
from todolist.store import Todo, TodoStore

# ---------------------------------------------------------------------------
# Structured JSON Logging
# ---------------------------------------------------------------------------


class JSONLogFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Example output:

        {"timestamp": "2026-02-06 10:30:00,120", "level": "INFO", "logger": "todolist-server",
         "message": "Access decision", "operation": "create", "decision": "allowed"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Structured fields passed via logger.info("msg", extra={"auth_data": {...}})
        if hasattr(record, "auth_data"):
            log_entry.update(record.auth_data)
        return json.dumps(log_entry, default=str)


handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(JSONLogFormatter())

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    handlers=[handler],
)
logger = logging.getLogger("todolist-server")


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class TodoCreate(BaseModel):
    title: str = Field(min_length=1)
    # Only honored for Admin callers.
    owner: str | None = None


class TodoUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    title: str | None = Field(default=None, min_length=1)
    owner: str | None = None
    # Accepted for compatibility and always overwritten with the caller's tenant.
    tenant_id: str | None = Field(default=None, alias="tenantId")


# ---------------------------------------------------------------------------
# Authentication & response helpers
# ---------------------------------------------------------------------------


def _unauthorized() -> JSONResponse:
    return JSONResponse(
        {"error": "unauthorized"},
        status_code=401,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _not_found() -> JSONResponse:
    return JSONResponse({"error": "not_found"}, status_code=404)


def _bad_request(detail) -> JSONResponse:
    return JSONResponse({"error": "invalid_request", "detail": detail}, status_code=400)


def _identify(request: Request, request_id: str) -> IdentityContext | None:
    """
    Authenticate the request and derive the caller's IdentityContext.

    Returns None (after logging the reason) when the token or its claims
    are unusable; the caller answers with 401.
    """
    try:
        principal = validate_token(request.headers.get("authorization"))
        identity = extract_identity(principal)
    except AuthError as e:
        logger.warning(
            "Authentication failed",
            extra={
                "auth_data": {
                    "request_id": request_id,
                    "decision": "rejected",
                    "reason": "authentication_failed",
                    "detail": e.message,
                }
            },
        )
        return None
    except ClaimError as e:
        logger.warning(
            "Identity extraction failed",
            extra={
                "auth_data": {
                    "request_id": request_id,
                    "decision": "rejected",
                    "reason": "claim_error",
                    "claim": e.claim,
                    "detail": e.message,
                }
            },
        )
        return None

    return identity


def _log_decision(
    request_id: str,
    identity: IdentityContext,
    operation: Operation,
    decision: Decision,
    todo_id: int | None = None,
) -> None:
    auth_data = {
        "request_id": request_id,
        "subject": identity.username,
        "tenant_id": identity.tenant_id,
        "roles": sorted(r.value for r in identity.roles),
        "scopes": sorted(identity.scopes),
        "operation": operation.value,
        "decision": "allowed" if decision.allowed else "denied",
    }
    if todo_id is not None:
        auth_data["todo_id"] = todo_id
    if decision.allowed:
        logger.info("Access decision", extra={"auth_data": auth_data})
    else:
        auth_data["reason"] = decision.reason
        logger.warning("Access decision", extra={"auth_data": auth_data})


def _deny(decision: Decision) -> JSONResponse:
    if decision.denial is Denial.NOT_FOUND:
        return _not_found()
    return _unauthorized()


async def _read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


def _store(request: Request) -> TodoStore:
    return request.app.state.store


# ---------------------------------------------------------------------------
# Todo handlers
# ---------------------------------------------------------------------------


async def list_todos(request: Request) -> Response:
    request_id = str(uuid.uuid4())[:8]
    identity = _identify(request, request_id)
    if identity is None:
        return _unauthorized()

    decision = evaluate(identity, Operation.LIST)
    _log_decision(request_id, identity, Operation.LIST, decision)
    if not decision.allowed:
        return _deny(decision)

    todos = visible_todos(identity, _store(request).list(identity.tenant_id))
    return JSONResponse([t.to_dict() for t in todos])


async def get_todo(request: Request) -> Response:
    request_id = str(uuid.uuid4())[:8]
    todo_id = request.path_params["todo_id"]
    identity = _identify(request, request_id)
    if identity is None:
        return _unauthorized()

    target = _store(request).get(todo_id, identity.tenant_id)
    decision = evaluate(identity, Operation.READ, target)
    _log_decision(request_id, identity, Operation.READ, decision, todo_id)
    if not decision.allowed:
        return _deny(decision)

    return JSONResponse(target.to_dict())


async def create_todo(request: Request) -> Response:
    request_id = str(uuid.uuid4())[:8]
    identity = _identify(request, request_id)
    if identity is None:
        return _unauthorized()

    decision = evaluate(identity, Operation.CREATE)
    _log_decision(request_id, identity, Operation.CREATE, decision)
    if not decision.allowed:
        return _deny(decision)

    try:
        payload = TodoCreate.model_validate(await _read_json(request))
    except ValidationError as e:
        return _bad_request(e.errors(include_url=False, include_context=False, include_input=False))

    created = _store(request).create(
        Todo(
            id=0,
            title=payload.title,
            owner=owner_for_new_todo(identity, payload.owner),
            tenant_id=identity.tenant_id,
        )
    )
    logger.info(
        "Todo created",
        extra={
            "auth_data": {
                "request_id": request_id,
                "todo_id": created.id,
                "owner": created.owner,
                "tenant_id": created.tenant_id,
            }
        },
    )
    return JSONResponse(created.to_dict(), status_code=201)


async def update_todo(request: Request) -> Response:
    request_id = str(uuid.uuid4())[:8]
    todo_id = request.path_params["todo_id"]
    identity = _identify(request, request_id)
    if identity is None:
        return _unauthorized()

    store = _store(request)
    target = store.get(todo_id, identity.tenant_id)
    decision = evaluate(identity, Operation.UPDATE, target)
    _log_decision(request_id, identity, Operation.UPDATE, decision, todo_id)
    if not decision.allowed:
        return _deny(decision)

    try:
        payload = TodoUpdate.model_validate(await _read_json(request))
    except ValidationError as e:
        return _bad_request(e.errors(include_url=False, include_context=False, include_input=False))

    # A body addressing a different Todo than the URL is treated as not found.
    if payload.id is not None and payload.id != todo_id:
        return _not_found()

    updated = store.replace(
        todo_id,
        Todo(
            id=todo_id,
            title=payload.title if payload.title is not None else target.title,
            owner=payload.owner if payload.owner is not None else target.owner,
            tenant_id=identity.tenant_id,
        ),
        identity.tenant_id,
    )
    if updated is None:
        # Deleted between lookup and write.
        return _not_found()

    return JSONResponse(updated.to_dict())


async def delete_todo(request: Request) -> Response:
    request_id = str(uuid.uuid4())[:8]
    todo_id = request.path_params["todo_id"]
    identity = _identify(request, request_id)
    if identity is None:
        return _unauthorized()

    decision = evaluate(identity, Operation.DELETE)
    _log_decision(request_id, identity, Operation.DELETE, decision, todo_id)
    if not decision.allowed:
        return _deny(decision)

    _store(request).delete(todo_id, identity.tenant_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Health and Readiness Endpoints
# ---------------------------------------------------------------------------
# Plain probes for the orchestrator; they carry no Todo data and need no token.


async def health_check(request: Request) -> Response:
    """Liveness probe: is the server process alive and responsive?"""
    return JSONResponse({"status": "healthy"})


async def readiness_check(request: Request) -> Response:
    """Readiness probe: is the Todo store attached?"""
    if getattr(request.app.state, "store", None) is None:
        return JSONResponse(
            {"status": "not_ready", "reason": "store not initialized"},
            status_code=503,
        )
    return JSONResponse({"status": "ready"})


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(store: TodoStore | None = None) -> Starlette:
    """
    Build the ASGI application around a TodoStore.

    When no store is passed a fresh one is created and, if
    TODO_SEED_TENANT_ID is configured, seeded with the sample Todos.
    """
    if store is None:
        store = TodoStore()
        if settings.seed_tenant_id:
            seeded = store.seed(settings.seed_tenant_id, settings.seed_owner)
            logger.info(
                "Seeded sample Todos",
                extra={
                    "auth_data": {
                        "tenant_id": settings.seed_tenant_id,
                        "owner": settings.seed_owner,
                        "count": len(seeded),
                    }
                },
            )

    app = Starlette(
        routes=[
            Route("/api/todolist", list_todos, methods=["GET"]),
            Route("/api/todolist", create_todo, methods=["POST"]),
            Route("/api/todolist/{todo_id:int}", get_todo, methods=["GET"]),
            Route("/api/todolist/{todo_id:int}", update_todo, methods=["PATCH"]),
            Route("/api/todolist/{todo_id:int}", delete_todo, methods=["DELETE"]),
            Route("/health", health_check, methods=["GET"]),
            Route("/ready", readiness_check, methods=["GET"]),
        ],
    )
    app.state.store = store
    return app


app = create_app()


if __name__ == "__main__":
    logger.info(
        "Starting Todo List service on %s:%d (auth=enabled)",
        settings.host,
        settings.port,
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )
