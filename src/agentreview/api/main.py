from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentreview.api.routes_evaluations import router as evaluations_router
from agentreview.api.routes_runs import router as runs_router
from agentreview.db.engine import build_engine, ping_db
from agentreview.logging_config import configure_logging

configure_logging()

app = FastAPI(title="agentreview")

# Local dev CORS (same-origin in production)
cors_env = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
cors_origins = [o.strip() for o in cors_env.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(runs_router, prefix="/api")
app.include_router(evaluations_router, prefix="/api")


@app.get("/api/health")
def health() -> dict:
    engine = build_engine()
    db = ping_db(engine)
    return {
        "status": "ok" if db.ok else "degraded",
        "db": {"ok": db.ok, "detail": db.detail},
    }


@app.get("/health")
def health_root() -> dict:
    return health()
