"""Global test fixtures."""

import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from agentreview.config.settings import settings  # noqa: E402
from agentreview.db.engine import build_engine  # noqa: E402
from agentreview.db.init_db import init_db  # noqa: E402
from agentreview.models.domain import CommandResult  # noqa: E402


SAMPLE_OUTPUT = """Running tests for agents/projA/agentB
Test 1/2: Greeting
  Round 1/1... ✓ (2.1s)
  Evaluating... ✓ (6.7s)
✓ PASS: The agent greeted the user politely.
Conversation URL: https://console.example.com/chats/abc

Test 2/2: Simple Addition
  Round 1/1... ✓ (1.4s)
  Evaluating... ✓ (3.2s)
✓ PASS: The agent answered 42.
https://console.example.com/chats/def

Test Summary: 2 passed, 0 failed
"""


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    # Never touch the real DB, agents directory or judge API from tests.
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TD_API_KEY", raising=False)
    monkeypatch.setattr(settings, "db_url", f"sqlite:///{tmp_path / 'agentreview.db'}")
    monkeypatch.setattr(settings, "agents_root", str(tmp_path / "workspace"))
    monkeypatch.setattr(settings, "td_api_key", None)
    monkeypatch.setattr(settings, "default_project", None)
    yield


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def SessionLocal(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def session(SessionLocal):
    s = SessionLocal()
    yield s
    s.close()


class FakeRunner:
    """Returns queued CommandResults in order and records every command."""

    def __init__(self, *results: CommandResult):
        self.results = list(results)
        self.calls = []

    def __call__(self, command, timeout_s=120.0, cwd=None, api_key=None):
        self.calls.append(command)
        if not self.results:
            raise AssertionError(f"unexpected command: {command}")
        return self.results.pop(0)

    def test_calls(self):
        return [c for c in self.calls if " agent test " in c]


@pytest.fixture
def sample_output() -> str:
    return SAMPLE_OUTPUT
