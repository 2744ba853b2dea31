"""
HTTP boundary for the annotation store.

Routes (paths come from ``ServerSettings``):
- PUT  /annotations  - store one annotation
- GET  /annotations  - query by tags and time window, or everything with ``all``
- GET  /metrics      - Prometheus scrape endpoint

Example::

    curl -XPUT -d '{"message": "build: web server", "tags": ["build"]}' localhost:9119/annotations
    curl 'localhost:9119/annotations?range=3600&tags=build&tags=deploy'
"""

from __future__ import annotations

import time

from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST

from annostore import __version__
from annostore.core.config_schema import ServerSettings
from annostore.core.exceptions import InvalidAnnotationError
from annostore.query import get_all_posts, get_posts
from annostore.storage.base import AnnotationStore, StorageError

from .metrics import ServerMetrics
from .schemas import parse_annotation

DEFAULT_RANGE_SECONDS = 3600


def _int_param(request: Request, name: str) -> int:
    """Integer query parameter; missing or unparsable values read as 0."""
    try:
        return int(request.query_params.get(name, "") or 0)
    except ValueError:
        return 0


def _result(code: int, result: str) -> JSONResponse:
    return JSONResponse(status_code=code, content={"result": result})


def create_app(store: AnnotationStore, settings: ServerSettings | None = None) -> FastAPI:
    """Build the FastAPI app around an already-open store.

    The caller owns the store and closes it on shutdown.
    """
    settings = settings or ServerSettings()
    metrics = ServerMetrics(store)

    app = FastAPI(title="annostore", version=__version__, docs_url=None, redoc_url=None)
    app.state.store = store
    app.state.settings = settings
    app.state.metrics = metrics

    instrumented = {settings.endpoint, settings.metrics_endpoint}

    @app.middleware("http")
    async def log_and_measure(request: Request, call_next):
        logger.info(f"Request: {request.method}  {request.url.path}")
        start = time.perf_counter()
        response = await call_next(request)
        path = request.url.path if request.url.path in instrumented else "other"
        metrics.observe(request.method, path, response.status_code, time.perf_counter() - start)
        return response

    @app.get(settings.metrics_endpoint)
    def get_metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)

    @app.put(settings.endpoint)
    async def put_annotation(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            annotation = parse_annotation(body, now=int(time.time()))
        except InvalidAnnotationError as e:
            logger.warning(f"Rejected annotation {body[:200]!r}: {e}")
            return _result(400, "invalid_json")

        try:
            await run_in_threadpool(store.add, annotation)
        except StorageError as e:
            logger.error(f"Storing annotation failed: {e}")
            return _result(500, f"err: {e}")
        return _result(200, "ok")

    @app.get(settings.endpoint)
    async def get_annotations(request: Request) -> JSONResponse:
        now = int(time.time())
        try:
            if request.query_params.get("all"):
                posts = await run_in_threadpool(get_all_posts, store, now)
            else:
                range_seconds = _int_param(request, "range") or DEFAULT_RANGE_SECONDS
                until = _int_param(request, "until") or now
                tags = request.query_params.getlist("tags") + request.query_params.getlist("tags[]")
                posts = await run_in_threadpool(get_posts, store, tags, range_seconds, until)
        except StorageError as e:
            logger.error(f"Query failed: {e}")
            return _result(500, f"err: {e}")
        return JSONResponse(content=posts.to_dict())

    return app
