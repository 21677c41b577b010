"""Logging setup shared by the CLI and API entry points."""

from __future__ import annotations

import logging

from agentreview.config.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)


def mask_secret(value: str | None) -> str:
    """Render a credential for logs: first and last four characters only."""
    if not value:
        return "(unset)"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}…{value[-4:]}"
