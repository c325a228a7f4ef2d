"""Exception types raised and recorded by specrunner."""

from typing import Any, Optional


class SpecRunnerError(Exception):
    """Base class for specrunner errors."""

    pass


class SpecBuildError(SpecRunnerError):
    """Raised when the spec tree is declared incorrectly.

    Build errors happen before any scheduler exists, so they are never
    recorded as results and abort the caller.
    """

    pass


class AssertionOutsideTestError(SpecBuildError):
    """Raised when an assertion is made while no test or hook is running."""

    pass


class AssertionFailure(AssertionError):
    """Diagnostic attached to a failed comparison."""

    def __init__(self, message: str, actual: Any = None, expected: Any = None):
        super().__init__(message)
        self.message = message
        self.actual = actual
        self.expected = expected


class TestTimeoutError(SpecRunnerError, TimeoutError):
    """Synthesized when a test or hook does not complete in time."""

    __test__ = False

    def __init__(self, timeout_ms: float, context: str = ""):
        self.timeout_ms = timeout_ms
        self.context = context
        super().__init__(f"Test timed out after {timeout_ms:g}ms")


class HookError(SpecRunnerError):
    """Wraps a failure raised by a before/after hook."""

    def __init__(self, kind: str, context: str, cause: Optional[BaseException] = None):
        self.kind = kind
        self.context = context
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{kind} hook failed in '{context}'{detail}")
