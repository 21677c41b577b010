"""Thin wrapper for the ASGI entrypoint (`uvicorn api.main:app`)."""

from __future__ import annotations

from agentreview.api.main import app

__all__ = ["app"]
