"""Tests for the external process runner."""

import logging

from agentreview.services.process_runner import build_subprocess_env, execute_command


def test_zero_exit_captures_stdout():
    result = execute_command("echo hello", timeout_s=10)
    assert result.exit_code == 0
    assert result.stdout.strip() == "hello"
    assert result.stderr == ""
    assert result.timed_out is False


def test_non_zero_exit_is_data_not_exception():
    result = execute_command("echo out; echo err 1>&2; exit 3", timeout_s=10)
    assert result.exit_code == 3
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"


def test_timeout_kills_and_keeps_partial_output():
    result = execute_command("echo started; sleep 5", timeout_s=0.5)
    assert result.timed_out is True
    assert result.exit_code != 0
    assert result.stdout is not None
    assert result.stderr is not None
    assert "started" in result.stdout
    assert result.duration_ms < 5000


def test_missing_working_directory_reports_instead_of_raising(tmp_path):
    result = execute_command("echo hi", timeout_s=10, cwd=str(tmp_path / "nope"))
    assert result.exit_code == 127
    assert result.stdout == ""
    assert result.stderr


def test_env_is_allow_listed_and_forwards_credential():
    source = {"PATH": "/usr/bin", "HOME": "/home/x", "AWS_SECRET_ACCESS_KEY": "nope"}
    env = build_subprocess_env(api_key="key-1234567890", source=source)
    assert env["PATH"] == "/usr/bin"
    assert env["TD_API_KEY"] == "key-1234567890"
    assert "AWS_SECRET_ACCESS_KEY" not in env


def test_env_passthrough_names_from_settings(monkeypatch):
    from agentreview.config.settings import settings

    monkeypatch.setattr(settings, "env_passthrough", "EXTRA_ONE, EXTRA_TWO")
    env = build_subprocess_env(source={"EXTRA_ONE": "1", "EXTRA_TWO": "2", "OTHER": "3"})
    assert env == {"EXTRA_ONE": "1", "EXTRA_TWO": "2"}


def test_credential_reaches_child_but_not_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="agentreview.services.process_runner")
    result = execute_command('echo "$TD_API_KEY"', timeout_s=10, api_key="secret-abcdef-123456")
    assert result.stdout.strip() == "secret-abcdef-123456"
    assert "secret-abcdef-123456" not in caplog.text
    assert "secr…3456" in caplog.text
