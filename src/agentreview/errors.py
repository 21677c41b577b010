"""Domain errors raised by the test pipeline and its stores."""


class AgentReviewError(Exception):
    """Base exception for agentreview failures."""


class ProcessTimeout(AgentReviewError):
    """The external test runner exceeded its time budget. Fatal to the run."""

    def __init__(self, command: str, timeout_s: float, stdout: str = "", stderr: str = ""):
        super().__init__(f"Command timed out after {timeout_s:g}s: {command}")
        self.command = command
        self.timeout_s = timeout_s
        self.stdout = stdout
        self.stderr = stderr


class ProcessNonZeroExit(AgentReviewError):
    """The runner exited non-zero and its output held no usable results."""

    def __init__(self, exit_code: int, stdout: str = "", stderr: str = ""):
        super().__init__(f"Test execution failed with exit code {exit_code}")
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class MissingTestDefinitions(AgentReviewError):
    """The agent has no test definitions; triggers one-shot recovery."""


class ParseFailure(AgentReviewError):
    """
    Runner output could not be turned into test cases.

    Never raised: parsing is total, and output without cases completes the run
    with zero cases and a warning. Kept so callers can name the condition.
    """


class EvaluationError(AgentReviewError):
    """The LLM judge session failed for a single test case."""


class EvaluationTimeout(EvaluationError):
    """No judge response arrived within the polling budget."""


class ValidationError(AgentReviewError):
    """A rating/notes update was rejected."""


class NotFoundError(AgentReviewError):
    """A requested record does not exist."""


class ReadConsistencyExhausted(AgentReviewError):
    """Reads kept failing after the retry budget was spent."""
