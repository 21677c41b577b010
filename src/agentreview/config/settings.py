from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized config.

    Key idea:
    - read from env first (so tests/CI can override),
    - otherwise default to local dev values.
    """

    model_config = SettingsConfigDict(env_prefix="AGENTREVIEW_", extra="ignore")

    # SQLite file by default (foreign keys + ON DELETE CASCADE)
    db_url: str = "sqlite:///data/agentreview.db"

    # Where `tdx agent pull` materializes agents/<project>/<agent>/
    agents_root: str = "."
    tdx_bin: str = "tdx"
    default_project: str | None = None

    # External process budgets
    test_timeout_s: float = 300.0
    recovery_timeout_s: float = 60.0

    # The tdx CLI and the judge API share one credential; the CLI expects TD_API_KEY.
    td_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AGENTREVIEW_TD_API_KEY", "TD_API_KEY"),
    )

    # LLM judge session API
    llm_base_url: str = "https://llm-api-development.us01.treasuredata.com/api"
    evaluator_agent_id: str = "019ae82f-b843-79f5-95c6-c7968262b2c2"
    judge_poll_interval_s: float = 1.0
    judge_max_wait_s: float = 60.0
    judge_request_timeout_s: float = 60.0

    # Read-after-write retry budget
    read_retry_attempts: int = 3
    read_retry_delay_s: float = 0.5

    # Extra env var names forwarded to subprocesses (comma separated)
    env_passthrough: str = ""

    log_level: str = "INFO"


settings = Settings()
