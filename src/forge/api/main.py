from __future__ import annotations

import os
from datetime import UTC, datetime

from dotenv import load_dotenv
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from ..observability.metrics import metrics_middleware_factory
from ..security.auth import JwtConfig
from .routers.auth import router as auth_router
from .routers.chats import router as chats_router
from .routers.generate import router as generate_router
from .routers.models import router as models_router
from .routers.preview import router as preview_router

load_dotenv()  # Load environment variables from .env if present (JWT_SECRET, GOOGLE_API_KEY, etc.)

# JWT_SECRET is required when FORGE_ENV=production.
JwtConfig.from_env()

API_NAME = "Forge API"
API_VERSION = "0.1.0"

app = FastAPI(title=API_NAME, version=API_VERSION)

# Observability: request latency histogram
app.middleware("http")(metrics_middleware_factory())

app.include_router(auth_router, prefix="/api")
app.include_router(chats_router, prefix="/api")
app.include_router(generate_router, prefix="/api")
app.include_router(models_router, prefix="/api")
app.include_router(preview_router, prefix="/api")


def _cors_origins() -> list[str]:
    raw = os.getenv("FORGE_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"name": API_NAME, "version": API_VERSION}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "components": {
            "api": "ok",
            "store": "in-memory",
        },
    }


@app.get("/metrics")
def metrics() -> Response:
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
