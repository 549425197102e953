# errors.py
"""Exception hierarchy for test runs.

Only step errors (browser-control failures) abort a run. Assertion errors are
caught per Test step and recorded with the outcome they carry.
"""

PASS = "PASS"
FAIL = "FAIL"
ERROR = "ERROR"


class RunnerError(Exception):
    """Base class for every error raised by analytics_runner."""


class InvalidInput(RunnerError):
    """Malformed test definition or options. No browser is launched."""


class UnrecognizedStep(InvalidInput):
    def __init__(self, action, index=None):
        self.action = action
        self.index = index
        where = f" at step {index}" if index is not None else ""
        super().__init__(f"Unrecognized step action{where}: {action!r}")


class StepExecutionError(RunnerError):
    """Browser-control failure during a step; aborts the remaining steps."""


class NavigationError(StepExecutionError):
    pass


class ElementNotFound(StepExecutionError):
    def __init__(self, selector: str, detail: str = ""):
        self.selector = selector
        message = f"Element not found: {selector}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class CaptureTimeout(StepExecutionError):
    def __init__(self, tracker: str, expected: int, captured: int, timeout_ms: int):
        self.tracker = tracker
        self.expected = expected
        self.captured = captured
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Timed out after {timeout_ms}ms waiting for {expected} request(s) "
            f"on tracker '{tracker}' ({captured} captured)"
        )


class AssertionEvaluationError(RunnerError):
    """Failure inside a Test step. ``outcome`` is what gets recorded."""

    outcome = ERROR


class DecodeError(AssertionEvaluationError):
    pass


class NoRequestsCaptured(AssertionEvaluationError):
    outcome = FAIL

    def __init__(self, tracker: str):
        self.tracker = tracker
        super().__init__(f"No requests captured for tracker '{tracker}'")


class DataLayerUnavailable(AssertionEvaluationError):
    outcome = FAIL

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Page has no '{name}' event layer")


class UnknownTracker(AssertionEvaluationError):
    def __init__(self, tracker: str):
        self.tracker = tracker
        super().__init__(f"Tracker '{tracker}' is not configured")


class InvalidPattern(AssertionEvaluationError):
    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f"Invalid match pattern {pattern!r}: {reason}")
