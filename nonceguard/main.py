from __future__ import annotations

import logging
import re
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response
from jsonschema import ValidationError

from .admin import config as admin_config
from .admin import health as admin_health
from .admin import stats as admin_stats
from .config import ServerConfig, get_server_config
from .guard.context import RequestContext
from .guard.nonce import NonceGuard
from .guard.origins import TrustedHostPolicy
from .guard.tokens import StaticSaltProvider
from .sessions import build_session_backend
from .validation.validator import SchemaRegistry, get_schema_registry

logger = logging.getLogger(__name__)

# secrets.token_urlsafe(32) output
_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]{43}$")


def build_nonce_guard(server_config: ServerConfig) -> NonceGuard:
    salt = server_config.nonce.salt
    if not salt:
        logger.warning(
            "[startup] no salt configured; using an ephemeral per-process salt, "
            "set NONCEGUARD_SALT to keep nonces valid across restarts"
        )
        salt = secrets.token_hex(32)
    host_policy = TrustedHostPolicy(
        current_host=server_config.host.current_host,
        trusted_hosts=server_config.host.trusted_hosts,
        trusted_host_check=server_config.host.trusted_host_check,
    )
    return NonceGuard(
        build_session_backend(server_config),
        host_policy,
        StaticSaltProvider(salt),
        default_ttl_seconds=server_config.nonce.default_ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    server_config = get_server_config()
    app.state.server_config = server_config
    app.state.schema_registry = get_schema_registry()
    app.state.nonce_guard = build_nonce_guard(server_config)
    app.state.start_time = datetime.now(timezone.utc)
    logger.info("[startup] current host %s", server_config.host.current_host or "<unset>")

    yield


app = FastAPI(
    title="Nonce Guard",
    version="1.0.0",
    docs_url="/docs",
    lifespan=lifespan,
)

app.include_router(admin_health.router)
app.include_router(admin_stats.router)
app.include_router(admin_config.router)


# Dependency helpers ---------------------------------------------------------


def get_server_settings(request: Request) -> ServerConfig:
    return request.app.state.server_config


def get_schema_service(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


def get_nonce_guard(request: Request) -> NonceGuard:
    return request.app.state.nonce_guard


def get_request_context(
    request: Request,
    settings: ServerConfig = Depends(get_server_settings),
) -> RequestContext:
    session_id = request.cookies.get(settings.session.cookie_name, "")
    if session_id and not _SESSION_ID.match(session_id):
        logger.info("[csrf] ignoring malformed session cookie")
        session_id = ""
    return RequestContext.from_headers(session_id, request.headers)


def _validate(schemas: SchemaRegistry, name: str, payload: Any) -> None:
    try:
        schemas.validate(name, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc.message)) from exc


# Routes ---------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root(settings: ServerConfig = Depends(get_server_settings)) -> dict[str, Any]:
    return {
        "service": "nonceguard",
        "version": app.version,
        "nonce": {"default_ttl_seconds": settings.nonce.default_ttl_seconds},
        "session": {
            "backend": settings.session.backend,
            "cookie_name": settings.session.cookie_name,
        },
    }


@app.get("/csrf/ping", tags=["csrf"])
async def ping() -> dict[str, Any]:
    return {"status": "ok", "version": app.version}


@app.post("/csrf/nonce", tags=["csrf"])
async def issue_nonce(
    response: Response,
    payload: dict[str, Any] = Body(...),
    context: RequestContext = Depends(get_request_context),
    guard: NonceGuard = Depends(get_nonce_guard),
    schemas: SchemaRegistry = Depends(get_schema_service),
    settings: ServerConfig = Depends(get_server_settings),
) -> dict[str, Any]:
    _validate(schemas, "nonce_request", payload)
    if not context.session_id:
        session_id = secrets.token_urlsafe(32)
        context = RequestContext(session_id, context.referrer, context.origin)
        response.set_cookie(
            settings.session.cookie_name,
            session_id,
            httponly=True,
            samesite="lax",
            secure=settings.session.cookie_secure,
        )
    # JSON Schema "integer" also admits 1.0
    ttl_seconds = int(payload.get("ttl_seconds", settings.nonce.default_ttl_seconds))
    nonce = await guard.get_nonce(context, payload["identifier"], ttl_seconds)
    return {
        "identifier": payload["identifier"],
        "nonce": nonce,
        "ttl_seconds": ttl_seconds,
    }


@app.post("/csrf/verify", tags=["csrf"])
async def verify_nonce(
    payload: dict[str, Any] = Body(...),
    context: RequestContext = Depends(get_request_context),
    guard: NonceGuard = Depends(get_nonce_guard),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> dict[str, bool]:
    _validate(schemas, "verify_request", payload)
    valid = await guard.verify_nonce(context, payload["identifier"], payload["nonce"])
    return {"valid": valid}


@app.post("/csrf/discard", tags=["csrf"])
async def discard_nonce(
    payload: dict[str, Any] = Body(...),
    context: RequestContext = Depends(get_request_context),
    guard: NonceGuard = Depends(get_nonce_guard),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> dict[str, str]:
    _validate(schemas, "discard_request", payload)
    await guard.discard_nonce(context, payload["identifier"])
    return {"status": "discarded"}
