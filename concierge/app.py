"""FastAPI application: JSON endpoint for the cleaning concierge.

Endpoints:

  POST /mcp       Tool protocol: initialize, tools/list, tools/call
  GET  /health    Health check

``tools/call`` with ``{"name": "request_cleaning", "arguments": {...}}`` runs
the booking through the RequestDispatcher. Every response carries the
security headers below; bodies over ``max_body_bytes`` are refused before
parsing.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from concierge import __version__
from concierge.config import Settings, settings as default_settings
from concierge.dispatcher import RequestDispatcher
from concierge.logging_setup import LOG_FORMAT, configure_logging, log_request
from concierge.models.booking import DispatchResult, DispatchState, FailureKind
from concierge.notifiers.base import Notifier
from concierge.notifiers.resend import ResendNotifier
from concierge.tools.request_cleaning import RequestCleaningTool

log = logging.getLogger("concierge.app")

PROTOCOL_VERSION = "0.1.0"
SERVER_NAME = "IRL"

_START_TIME = time.time()

SECURITY_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'none'",
}

_FAILURE_STATUS = {
    FailureKind.ADMISSION_DENIED: 429,
    FailureKind.INVALID_INPUT: 400,
    FailureKind.NOTIFIER_UNAVAILABLE: 500,
    FailureKind.INTERNAL_ERROR: 500,
}


def client_identifier(request: Request) -> str:
    """Best-effort client identity for rate limiting."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip", "")
    if real_ip.strip():
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def result_to_response(result: DispatchResult) -> JSONResponse:
    """Map a dispatcher result onto the wire format and status code."""
    if result.state is DispatchState.FAILED:
        status = _FAILURE_STATUS.get(result.failure, 500)
        return JSONResponse({"error": result.message}, status_code=status)
    return JSONResponse({"content": [{"type": "text", "text": result.message}]})


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(
    settings: Optional[Settings] = None,
    notifier: Optional[Notifier] = None,
    dispatcher: Optional[RequestDispatcher] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``notifier`` and ``dispatcher`` default to ones built from ``settings``;
    tests pass their own.
    """
    settings = settings or default_settings
    if dispatcher is None:
        notifier = notifier or ResendNotifier(
            api_key=settings.resend_api_key,
            api_url=settings.resend_api_url,
            timeout=settings.notify_timeout_seconds,
        )
        dispatcher = RequestDispatcher.from_settings(settings, notifier)
    tool = RequestCleaningTool(dispatcher, region_name=settings.region_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if notifier is not None:
            await notifier.close()

    app = FastAPI(
        title="Cleaning Concierge",
        description="Cleaning service requests with region screening and partner notification",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    app.state.tool = tool

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for key, value in SECURITY_HEADERS.items():
            response.headers[key] = value
        return response

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check; confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({"status": "ok", "uptime": uptime})

    # ── Tool endpoint ──────────────────────────────────────────

    @app.options("/mcp")
    async def mcp_preflight() -> Response:
        return Response(status_code=200)

    @app.post("/mcp")
    async def mcp(request: Request) -> JSONResponse:
        client = client_identifier(request)

        raw = await request.body()
        if len(raw) > settings.max_body_bytes:
            log_request(log, "BODY_TOO_LARGE", client, None, False)
            return _error("Request too large", 413)

        try:
            body = json.loads(raw or b"null")
        except ValueError:
            log_request(log, "INVALID_JSON", client, None, False)
            return _error("Invalid JSON", 400)

        if not isinstance(body, dict):
            log_request(log, "INVALID_BODY", client, None, False)
            return _error("Invalid request body", 400)

        method = body.get("method")
        params = body.get("params") if isinstance(body.get("params"), dict) else {}

        if method == "initialize":
            return JSONResponse({
                "protocolVersion": PROTOCOL_VERSION,
                "serverName": SERVER_NAME,
                "serverVersion": __version__,
                "metadata": {
                    "displayName": SERVER_NAME,
                    "description": f"{settings.region_name} Concierge",
                },
            })

        if method == "tools/list":
            log_request(log, "tools/list", client, None, True)
            return JSONResponse({"tools": [tool.describe()]})

        if method == "tools/call" and params.get("name") == tool.name:
            arguments = params.get("arguments")
            if not isinstance(arguments, dict):
                arguments = {}
            fields = {k: arguments.get(k) for k in ("name", "phone", "address")}
            result = await tool.execute(client_id=client, **fields)
            log_request(log, "tools/call", client, _summary(arguments, result), result.ok)
            return result_to_response(result)

        log_request(log, "UNKNOWN_METHOD", client, {"method": method}, False)
        return _error("Unknown method", 400)

    return app


def _summary(arguments: dict[str, Any], result: DispatchResult) -> dict[str, Any]:
    """Log-safe view of one tool call."""
    return {
        "hasName": bool(arguments.get("name")),
        "hasPhone": bool(arguments.get("phone")),
        "hasAddress": bool(arguments.get("address")),
        "state": result.state.value,
        "field": result.field,
        "reason": result.reason.value if result.reason else None,
    }


def main() -> None:
    """Validate configuration and serve the app with uvicorn."""
    import uvicorn

    load_dotenv()
    settings = Settings()
    configure_logging(settings.log_level)

    try:
        warnings = settings.validate_startup()
    except ValueError as e:
        log.error("Configuration error: %s", e)
        sys.exit(1)
    for warning in warnings:
        log.warning(warning)
    log.info("Environment validation passed")

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = LOG_FORMAT

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=log_config,
    )


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    main()
