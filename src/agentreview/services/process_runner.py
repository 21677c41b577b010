"""Run external commands without treating a non-zero exit as an exception."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from typing import Iterable, Mapping, Optional, Protocol

from agentreview.config.settings import settings
from agentreview.logging_config import mask_secret
from agentreview.models.domain import CommandResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 120.0
CREDENTIAL_ENV = "TD_API_KEY"

# Variables a subprocess needs to behave like it was started from a login shell.
BASE_ENV_ALLOWLIST = (
    "PATH",
    "HOME",
    "USER",
    "LANG",
    "LC_ALL",
    "TERM",
    "TMPDIR",
    "SHELL",
    "NODE_PATH",
    "NODE_EXTRA_CA_CERTS",
    "HTTPS_PROXY",
    "HTTP_PROXY",
    "NO_PROXY",
    "SSL_CERT_FILE",
)


class CommandRunner(Protocol):
    """Anything that can run a shell command and hand back a CommandResult."""

    def __call__(
        self,
        command: str,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        cwd: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> CommandResult:
        ...


def build_subprocess_env(
    api_key: Optional[str] = None,
    extra_names: Iterable[str] = (),
    source: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """
    Environment for the child: allow-listed names only, plus the API credential.
    """
    source = os.environ if source is None else source
    names = list(BASE_ENV_ALLOWLIST)
    names.extend(n.strip() for n in settings.env_passthrough.split(",") if n.strip())
    names.extend(extra_names)

    env = {name: source[name] for name in names if name in source}
    key = api_key or settings.td_api_key or source.get(CREDENTIAL_ENV)
    if key:
        env[CREDENTIAL_ENV] = key
    return env


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def execute_command(
    command: str,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    cwd: Optional[str] = None,
    api_key: Optional[str] = None,
) -> CommandResult:
    """
    Run `command` through the shell and capture its output.

    The exit code is returned as data. On timeout the whole process group is
    killed and the partial output comes back with timed_out=True and the kill
    signal as a negative exit code.
    """
    env = build_subprocess_env(api_key=api_key)
    logger.info("Executing: %s (timeout=%ss, %s=%s)", command, timeout_s, CREDENTIAL_ENV, mask_secret(env.get(CREDENTIAL_ENV)))

    started = time.monotonic()
    try:
        proc = subprocess.Popen(
            command,
            shell=True,
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        logger.error("Could not start command %r: %s", command, e)
        return CommandResult(stdout="", stderr=str(e), exit_code=127, duration_ms=0)

    timed_out = False
    try:
        out, err = proc.communicate(timeout=timeout_s)
    except subprocess.TimeoutExpired:
        timed_out = True
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        out, err = proc.communicate()

    duration_ms = int((time.monotonic() - started) * 1000)
    exit_code = proc.returncode if proc.returncode is not None else -signal.SIGKILL
    stdout, stderr = _decode(out), _decode(err)

    if timed_out:
        logger.error("Command timed out after %sms: %s", duration_ms, command)
    else:
        logger.info("Completed in %sms, exit code: %s", duration_ms, exit_code)
    if exit_code != 0:
        logger.debug("stdout:\n%s", stdout or "(empty)")
        logger.warning("stderr:\n%s", stderr or "(empty)")

    return CommandResult(
        stdout=stdout,
        stderr=stderr,
        exit_code=exit_code,
        timed_out=timed_out,
        duration_ms=duration_ms,
    )
