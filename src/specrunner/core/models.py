"""Data models for assertion results and test execution state."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from specrunner.errors import SpecBuildError

if TYPE_CHECKING:
    from specrunner.core.tree import SpecNode, TestCase


class TestStatus(str, Enum):
    """Lifecycle of a single test or hook execution."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    REPORTED = "reported"

    @property
    def is_terminal(self) -> bool:
        return self not in (TestStatus.PENDING, TestStatus.RUNNING)


@dataclass
class Result:
    """Outcome of one assertion, or of a test/hook that failed on its own.

    ``passed`` is ``None`` when evaluating the assertion itself raised.
    """

    passed: Optional[bool]
    context: str
    message: str = ""
    error: Optional[BaseException] = None
    test_error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.passed is not True

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "passed": self.passed,
            "context": self.context,
            "message": self.message,
            "error": _describe_error(self.error),
            "test_error": _describe_error(self.test_error),
        }


def _describe_error(error: Optional[BaseException]) -> Optional[dict]:
    if error is None:
        return None
    return {"type": type(error).__name__, "message": str(error)}


@dataclass
class Attempt:
    """One execution of a test body or hook during a run.

    The spec tree stays read-only while running; everything that changes
    while a definer executes lives here.
    """

    context: str
    timeout_ms: float
    test: Optional["TestCase"] = None
    node: Optional["SpecNode"] = None
    hook_kind: Optional[str] = None
    status: TestStatus = TestStatus.PENDING
    outcome: Optional[TestStatus] = None
    results: list[Result] = field(default_factory=list)
    test_error: Optional[BaseException] = None
    started_at: Optional[float] = None
    # Set by the scheduler while waiting, so a new timeout moves the deadline.
    rearm: Optional[Callable[[], None]] = field(default=None, repr=False)

    @property
    def finished(self) -> bool:
        return self.status.is_terminal

    @property
    def is_hook(self) -> bool:
        return self.hook_kind is not None

    def record(self, result: Result) -> None:
        self.results.append(result)

    def change_timeout(self, delay_ms: float) -> None:
        """Replace the timeout. The deadline still counts from the start."""
        if delay_ms <= 0:
            raise SpecBuildError("Timeout must be greater than 0 ms")
        if self.finished:
            return
        self.timeout_ms = delay_ms
        if self.rearm is not None:
            self.rearm()
