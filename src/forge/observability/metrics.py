from __future__ import annotations

"""Prometheus metrics for the Forge API.

Adds an HTTP middleware that records request latency per method/path/status,
plus counters for streamed generations.
"""

import time
from typing import Awaitable, Callable

from prometheus_client import Counter, Histogram
from starlette.requests import Request
from starlette.responses import Response

# Histogram buckets chosen for web latencies (seconds)
REQUEST_LATENCY = Histogram(
    "forge_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("method", "path", "status"),
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

GENERATIONS = Counter(
    "forge_generations_total",
    "Streamed generations by public model id and outcome",
    labelnames=("model", "outcome"),
)

STREAM_CHUNKS = Counter(
    "forge_stream_chunks_total",
    "Text chunks written to generation streams",
    labelnames=("model",),
)


def sanitize_path(path: str) -> str:
    """Reduce high-cardinality paths (e.g. /api/chats/{id}) to a coarse label."""
    if not path:
        return "/"
    segs = [s for s in path.split("?")[0].split("/") if s]
    if not segs:
        return "/"
    if segs[0] == "api" and len(segs) > 1:
        return f"/api/{segs[1]}"
    return "/" + segs[0]


def record_generation(model: str, outcome: str) -> None:
    GENERATIONS.labels(model=model, outcome=outcome).inc()


def record_chunk(model: str) -> None:
    STREAM_CHUNKS.labels(model=model).inc()


def metrics_middleware_factory() -> Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]:
    async def middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        if request.url.path.startswith("/metrics"):
            return await call_next(request)
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        REQUEST_LATENCY.labels(
            method=request.method,
            path=sanitize_path(request.url.path),
            status=str(response.status_code),
        ).observe(elapsed)
        return response

    return middleware
