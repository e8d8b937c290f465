"""
server.py — aiohttp web server exposing the relay API and the built frontend.

Endpoints:
  POST /api/analyze-skin     { images: [base64, ...] }
  POST /api/analyze-hair     { images: [base64, ...] }
  POST /api/recommend-skin   { analysis, goals }
  POST /api/recommend-hair   { analysis, profile, goals }
  POST /api/doctor-report    { analysis, type: "skin" | "hair" }
  POST /api/chat             { query, context }
  GET  /health               plain-text health check
  GET  /*                    static files from STATIC_DIR, index.html fallback

Errors are always JSON: {"error": "...", "details": "..."}.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

from aiohttp import web
from pydantic import BaseModel, ValidationError

import analysis
import config
import recommender
from catalog.base import CatalogUnavailableError
from catalog.cache import CatalogCache
from catalog.partition import ProductClassifier
from providers.base import GenerationError, ModelOutputError, PoolExhaustedError
from providers.manager import FailoverInvoker
from schemas import (
    ChatRequest, DoctorReportRequest, HairRecommendRequest, ImagesRequest,
    SkinRecommendRequest,
)

logger = logging.getLogger(__name__)

INVOKER_KEY    = web.AppKey("invoker", FailoverInvoker)
CACHE_KEY      = web.AppKey("catalog_cache", CatalogCache)
CLASSIFIER_KEY = web.AppKey("classifier", ProductClassifier)


class BadRequest(Exception):
    pass


def _error(status: int, message: str, details: Optional[str] = None) -> web.Response:
    body = {"error": message}
    if details:
        body["details"] = details
    return web.json_response(body, status=status)


async def _parse(request: web.Request, model: type[BaseModel]) -> BaseModel:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise BadRequest(f"Request body is not valid JSON: {exc}") from exc
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or "body"
        raise BadRequest(f"Invalid '{field}': {first['msg']}") from exc


# ── Middleware ─────────────────────────────────────────────────────────────────

@web.middleware
async def cors_middleware(request: web.Request, handler: Callable[[web.Request], Awaitable]) -> web.StreamResponse:
    if request.method == "OPTIONS":
        response = web.Response(status=204)
    else:
        response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


@web.middleware
async def error_middleware(request: web.Request, handler: Callable[[web.Request], Awaitable]) -> web.StreamResponse:
    """Map service exceptions onto JSON error responses."""
    action = request.match_info.get("action", "process request").replace("-", " ")
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except BadRequest as exc:
        return _error(400, str(exc))
    except ModelOutputError as exc:
        logger.error("[%s] Bad model output: %s", action, exc)
        return _error(502, f"Failed to {action}: unexpected model output", str(exc))
    except PoolExhaustedError as exc:
        logger.error("[%s] %s", action, exc)
        return _error(503, f"Failed to {action}: AI service unavailable", str(exc))
    except CatalogUnavailableError as exc:
        logger.error("[%s] %s", action, exc)
        return _error(503, f"Failed to {action}: product catalog unavailable", str(exc))
    except GenerationError as exc:
        logger.error("[%s] Model call failed: %s", action, exc)
        return _error(500, f"Failed to {action}", str(exc))
    except Exception as exc:
        logger.exception("[%s] Unexpected error", action)
        return _error(500, f"Failed to {action}", str(exc))


# ── Request handlers ───────────────────────────────────────────────────────────

async def _images(request: web.Request) -> list[str]:
    body = await _parse(request, ImagesRequest)
    return body.images


async def handle_analyze_skin(request: web.Request) -> web.Response:
    images = await _images(request)
    try:
        result = await analysis.analyze_skin(request.app[INVOKER_KEY], images)
    except analysis.InvalidImageError as exc:
        raise BadRequest(str(exc)) from exc
    return web.json_response(result)


async def handle_analyze_hair(request: web.Request) -> web.Response:
    images = await _images(request)
    try:
        result = await analysis.analyze_hair(request.app[INVOKER_KEY], images)
    except analysis.InvalidImageError as exc:
        raise BadRequest(str(exc)) from exc
    return web.json_response(result)


async def handle_recommend_skin(request: web.Request) -> web.Response:
    body = await _parse(request, SkinRecommendRequest)
    result = await recommender.recommend_skin(
        request.app[INVOKER_KEY], request.app[CACHE_KEY], request.app[CLASSIFIER_KEY],
        body.analysis, body.goals,
    )
    return web.json_response(result)


async def handle_recommend_hair(request: web.Request) -> web.Response:
    body = await _parse(request, HairRecommendRequest)
    result = await recommender.recommend_hair(
        request.app[INVOKER_KEY], request.app[CACHE_KEY], request.app[CLASSIFIER_KEY],
        body.analysis, body.profile, body.goals,
    )
    return web.json_response(result)


async def handle_doctor_report(request: web.Request) -> web.Response:
    body = await _parse(request, DoctorReportRequest)
    result = await analysis.doctor_report(request.app[INVOKER_KEY], body.analysis, body.type)
    return web.json_response(result)


async def handle_chat(request: web.Request) -> web.Response:
    body = await _parse(request, ChatRequest)
    result = await analysis.chat(request.app[INVOKER_KEY], body.query, body.context)
    return web.json_response(result)


async def handle_health(request: web.Request) -> web.Response:
    """Health check — returns 200 OK. Use with uptime monitors."""
    cache = request.app[CACHE_KEY]
    state = "catalog loaded" if cache.loaded else "catalog not loaded"
    return web.Response(
        text=f"OK — {len(request.app[INVOKER_KEY].pool)} key(s), {state}",
        content_type="text/plain",
    )


def _spa_handler(static_dir: Path):
    """Serve a file from the frontend build, falling back to index.html."""
    root = static_dir.resolve()

    async def handle_static(request: web.Request) -> web.StreamResponse:
        rel = request.match_info.get("path", "")
        candidate = (root / rel).resolve()
        if rel and candidate.is_file() and root in candidate.parents:
            return web.FileResponse(candidate)
        index = root / "index.html"
        if index.is_file():
            return web.FileResponse(index)
        raise web.HTTPNotFound(text="Frontend build not found.", content_type="text/plain")

    return handle_static


# ── App factory ────────────────────────────────────────────────────────────────

def build_web_app(
    invoker: FailoverInvoker,
    cache: CatalogCache,
    classifier: ProductClassifier,
    static_dir: Optional[str] = None,
) -> web.Application:
    app = web.Application(
        middlewares=[cors_middleware, error_middleware],
        client_max_size=config.MAX_BODY_MB * 1024 * 1024,
    )
    app[INVOKER_KEY] = invoker
    app[CACHE_KEY] = cache
    app[CLASSIFIER_KEY] = classifier

    app.router.add_post("/api/{action:analyze-skin}",   handle_analyze_skin)
    app.router.add_post("/api/{action:analyze-hair}",   handle_analyze_hair)
    app.router.add_post("/api/{action:recommend-skin}", handle_recommend_skin)
    app.router.add_post("/api/{action:recommend-hair}", handle_recommend_hair)
    app.router.add_post("/api/{action:doctor-report}",  handle_doctor_report)
    app.router.add_post("/api/{action:chat}",           handle_chat)
    app.router.add_get("/health",                       handle_health)
    app.router.add_get("/{path:.*}", _spa_handler(Path(static_dir or config.STATIC_DIR)))
    return app


async def start_server(app: web.Application) -> web.AppRunner:
    """Start the web server. Returns runner so caller can shut it down cleanly."""
    runner = web.AppRunner(app, access_log=logger)
    await runner.setup()
    site = web.TCPSite(runner, config.HOST, config.PORT)
    await site.start()
    logger.info("Server running on http://localhost:%d", config.PORT)
    for route in ("analyze-skin", "analyze-hair", "recommend-skin", "recommend-hair", "doctor-report", "chat"):
        logger.info("- POST /api/%s", route)
    return runner
