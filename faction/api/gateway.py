"""
Dashboard auth gateway.

Answers one question, "does this password match the configured digest?", and
hands successful callers a signed, expiring session token. Nothing is persisted
server-side; every request is evaluated on its own against immutable config.
"""

from __future__ import annotations

import logging
import os
import time
import traceback
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from faction.auth.config import GatewayConfig, load_gateway_config
from faction.auth.deps import authenticate_request
from faction.auth.errors import BadRequest, ForbiddenOrigin, GatewayError, NotConfigured, TooManyAttempts, Unauthorized
from faction.auth.hasher import looks_like_digest, verify_password
from faction.auth.origin import cors_origins, is_origin_allowed
from faction.auth.rate_limit import RateLimiter
from faction.auth.session import encode_session, session_cookie_kwargs
from faction.auth.util import client_identifier, random_token

logger = logging.getLogger(__name__)

# Forget stale limiter entries once this many identifiers are being tracked.
_LIMITER_PRUNE_THRESHOLD = 1024

router = APIRouter()


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    expires_in: int


def error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return error_response(exc)


async def log_requests(request: Request, call_next):
    """Log all incoming HTTP requests and enforce the origin allowlist."""
    start_time = time.time()
    logger.debug("%s %s", request.method, request.url.path)
    try:
        cfg: GatewayConfig = request.app.state.config
        origin = request.headers.get("origin")

        # Reject before any route (or CORS preflight) runs, so no credential is ever compared.
        if not is_origin_allowed(cfg, origin):
            logger.warning("Rejected %s %s from disallowed origin %r", request.method, request.url.path, origin)
            return error_response(ForbiddenOrigin())

        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
        return response
    except Exception as e:
        process_time = time.time() - start_time
        # Exception messages can echo request data (including the credential): log type and frames only.
        logger.error(
            "%s %s - ERROR after %.3fs: %s\n%s",
            request.method,
            request.url.path,
            process_time,
            type(e).__name__,
            "".join(traceback.format_tb(e.__traceback__)),
        )
        raise


async def _read_password(request: Request) -> str:
    try:
        body = await request.json()
    except ValueError:
        raise BadRequest()
    password = body.get("password") if isinstance(body, dict) else None
    if not isinstance(password, str) or not password:
        raise BadRequest()
    return password


@router.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@router.post("/login", response_model=LoginResponse)
async def login(request: Request) -> JSONResponse:
    """
    Check the submitted password against the configured digest.

    400 when the password is missing/empty/not a string, 429 when the caller is
    throttled, 401 on mismatch. On success the caller receives a session token
    (JSON body and HttpOnly cookie).
    """
    cfg: GatewayConfig = request.app.state.config
    password = await _read_password(request)

    identifier = client_identifier(request, cfg.trust_forwarded_for)
    limiter: Optional[RateLimiter] = request.app.state.rate_limiter
    if limiter is not None:
        if len(limiter) > _LIMITER_PRUNE_THRESHOLD:
            limiter.prune()
        allowed, _ = limiter.check_and_increment(identifier)
        if not allowed:
            logger.info("Login throttled for %s", identifier)
            raise TooManyAttempts()

    if not cfg.configured:
        raise NotConfigured()

    # bcrypt is slow on purpose; keep it off the event loop.
    ok = await run_in_threadpool(verify_password, password, cfg.password_hash)
    if not ok:
        logger.info("Failed login from %s", identifier)
        raise Unauthorized()

    if limiter is not None:
        limiter.reset(identifier)

    token = encode_session(request.app.state.session_secret)
    resp = JSONResponse(content=LoginResponse(token=token, expires_in=cfg.session_ttl_seconds).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**session_cookie_kwargs(cfg, token))
    logger.info("Successful login from %s", identifier)
    return resp


@router.get("/session")
async def session_info(request: Request) -> Dict[str, Any]:
    session = authenticate_request(request)
    if session is None:
        # No `WWW-Authenticate`: browsers would pop a native auth dialog over the login form.
        raise Unauthorized("Unauthorized")
    return session.to_dict()


@router.post("/logout")
async def logout(request: Request) -> JSONResponse:
    cfg: GatewayConfig = request.app.state.config
    resp = JSONResponse(content={"success": True})
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**session_cookie_kwargs(cfg, "", max_age=0))
    return resp


def create_app(cfg: Optional[GatewayConfig] = None) -> FastAPI:
    """Build a gateway app bound to one (immutable) configuration."""
    cfg = cfg or load_gateway_config()

    if not cfg.configured:
        logger.warning("AUTH_PASSWORD_HASH is not set; every login will be answered with 500")
    elif not looks_like_digest(cfg.password_hash):
        logger.warning("AUTH_PASSWORD_HASH does not look like a bcrypt digest; logins will fail")
    if not cfg.session_secret:
        logger.warning("AUTH_SESSION_SECRET is not set; using a per-process key (sessions end on restart)")

    app = FastAPI(title="Faction auth gateway")
    app.state.config = cfg
    app.state.session_secret = cfg.session_secret or random_token()
    app.state.rate_limiter = (
        RateLimiter(max_attempts=cfg.rate_limit_max_attempts, window_seconds=cfg.rate_limit_window_seconds)
        if cfg.rate_limit_enabled
        else None
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(cfg),
        allow_credentials=cfg.origin_check_enabled,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    # Registered after CORS so it wraps it: disallowed preflights get the same 403 JSON.
    app.middleware("http")(log_requests)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.include_router(router)
    return app


def run(host: Optional[str] = None, port: Optional[int] = None) -> None:
    import uvicorn

    # Configure logging for the application
    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    cfg = load_gateway_config()
    bind_host = host or cfg.host
    bind_port = port or cfg.port
    app = create_app(cfg)

    logger.info("Starting auth gateway on %s:%d (log_level=%s)", bind_host, bind_port, log_level)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=uvicorn_log_level)
