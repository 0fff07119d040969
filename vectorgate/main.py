"""
FastAPI application, the vectorgate entry point.

    POST /api/insert/    embed rows and upsert them into the vector index
    POST /api/query/     embed a query and return its nearest matches
    GET  /api/generate/  hand out a fresh namespace identifier
    anything else        404 {"success": false, "error": "Route not found"}
"""

import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vectorgate import __version__
from vectorgate.config import get_config
from vectorgate.gateway import Gateway


# ---------------------------------------------------------------------------
# Globals, initialized at startup
# ---------------------------------------------------------------------------
gateway: Gateway | None = None


def _setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        from pathlib import Path
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global gateway

    logger = logging.getLogger(__name__)

    try:
        cfg = get_config()
        _setup_logging(cfg)
        gateway = Gateway.from_config(cfg)
    except Exception as e:
        gateway = None
        _setup_logging({})
        logger.error("Gateway failed to initialise: %s", e)
    else:
        logger.info(
            "vectorgate started: embedder %r, index %s, topK=%d",
            gateway.embedder,
            type(gateway.index).__name__,
            gateway.top_k,
        )

    yield

    logger.info("vectorgate shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="vectorgate",
    description="Embed text, store it in a vector index, query it back.",
    version=__version__,
    lifespan=lifespan,
)

NOT_FOUND = {"success": False, "error": "Route not found"}


@app.exception_handler(StarletteHTTPException)
async def route_not_found(request: Request, exc: StarletteHTTPException):
    # Methods the catch-all does not list surface here as 404 or 405.
    if exc.status_code in (404, 405):
        return JSONResponse(NOT_FOUND, status_code=404)
    return await http_exception_handler(request, exc)


def _not_ready() -> JSONResponse:
    return JSONResponse({"success": False, "error": "Gateway not initialized"}, status_code=503)


async def _read_json(request: Request):
    """Parse the request body. Raises ValueError if it isn't JSON."""
    raw = await request.body()
    if not raw:
        return None
    return json.loads(raw)


def _resolve_user_id(request: Request, body) -> str | None:
    """user_id from the query string, then the body, then the X-User-Id header."""
    user_id = request.query_params.get("user_id")
    if not user_id and isinstance(body, dict):
        user_id = body.get("user_id")
    if not user_id:
        user_id = request.headers.get("x-user-id")
    return user_id


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

@app.post("/api/insert/")
async def insert(request: Request):
    """
    Embed rows and upsert them.
    Body: [{"data": ..., "metadata": ...}, ...]  (user id in ?user_id=)
       or {"user_id": ..., "rows": [...]}
    """
    if gateway is None:
        return _not_ready()
    try:
        body = await _read_json(request)
    except ValueError:
        return JSONResponse({"success": False, "error": "Invalid JSON body"})

    user_id = _resolve_user_id(request, body)
    rows = body.get("rows") if isinstance(body, dict) else body
    return JSONResponse(await gateway.insert(rows, user_id))


@app.post("/api/query/")
async def query(request: Request):
    """Nearest matches for {"query": "..."}."""
    if gateway is None:
        return _not_ready()
    try:
        body = await _read_json(request)
    except ValueError:
        return JSONResponse({"success": False, "error": "Invalid JSON body"})

    text = body.get("query") if isinstance(body, dict) else None
    return JSONResponse(await gateway.query(text))


@app.get("/api/generate/")
async def generate():
    """A fresh namespace identifier. No side effects."""
    if gateway is None:
        return _not_ready()
    return JSONResponse(gateway.generate())


# ---------------------------------------------------------------------------
# Catch-all: every other path, under every method, is a 404.
# MUST be the last route registered.
# ---------------------------------------------------------------------------

@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"],
    include_in_schema=False,
)
async def catch_all(path: str):
    return JSONResponse(NOT_FOUND, status_code=404)


# ---------------------------------------------------------------------------
# Run with: python -m vectorgate.main
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    cfg = get_config()
    uvicorn.run(
        "vectorgate.main:app",
        host=cfg["server"]["host"],
        port=cfg["server"]["port"],
        reload=False,
    )
