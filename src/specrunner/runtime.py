"""The runtime object that tests are declared, asserted and run through.

A ``Runtime`` is called directly: with a name and a definer it registers a
test, with a single value it starts an assertion::

    o = Runtime()

    def math():
        def add():
            o(1 + 1).equals(2)

        o("add", add)

    o.spec("math", math)
    exit_code = o.run()
"""

import asyncio
import inspect
import logging
from contextvars import ContextVar
from typing import Any, Callable, Optional

from specrunner.config import SpecRunnerConfig, configure_logging, get_default_config
from specrunner.core.assertions import Assertion
from specrunner.core.models import Attempt, Result
from specrunner.core.scheduler import Scheduler
from specrunner.core.spy import Spy
from specrunner.core.tree import Definer, SpecNode
from specrunner.errors import AssertionOutsideTestError, SpecBuildError
from specrunner.report.console import ConsoleReporter, Reporter

logger = logging.getLogger(__name__)

_MISSING = object()


class Runtime:
    """An isolated spec tree together with the means to run it."""

    def __init__(self, config: Optional[SpecRunnerConfig] = None):
        """Initialize a runtime.

        Args:
            config: Configuration (defaults apply when omitted)
        """
        self.config = config or get_default_config()
        if config is not None:
            configure_logging(self.config)

        self.root = SpecNode(name="")
        self._building = self.root
        self._current: ContextVar[Optional[Attempt]] = ContextVar(
            f"specrunner_current_{id(self):x}", default=None
        )
        self._scheduler: Optional[Scheduler] = None

        self.report: Reporter = ConsoleReporter(self.config.report)
        self.results: list[Result] = []

    def __call__(self, subject: Any, definer: Any = _MISSING) -> Any:
        if definer is _MISSING:
            return Assertion(subject, self._resolve_attempt)

        self._require_building("test")
        if not isinstance(subject, str):
            raise SpecBuildError(f"Test names must be strings, got {type(subject).__name__}")
        self._building.add_test(subject, definer)
        return None

    def only(self, name: str, definer: Definer) -> None:
        """Register a test and run only tests registered this way."""
        self._require_building("only")
        self._building.add_test(name, definer, only=True)

    def spec(self, name: str, builder: Callable[[], Any]) -> None:
        """Declare a group of tests; ``builder`` runs immediately."""
        self._require_building("spec")
        if not callable(builder):
            raise SpecBuildError(f"The body of spec '{name}' must be callable")

        parent = self._building
        self._building = parent.add_spec(name)
        try:
            returned = builder()
        finally:
            self._building = parent

        if inspect.isawaitable(returned):
            if inspect.iscoroutine(returned):
                returned.close()
            raise SpecBuildError(f"The body of spec '{name}' must be synchronous")

    def before(self, definer: Definer) -> None:
        self._add_hook("before", definer)

    def after(self, definer: Definer) -> None:
        self._add_hook("after", definer)

    def before_each(self, definer: Definer) -> None:
        self._add_hook("before_each", definer)

    def after_each(self, definer: Definer) -> None:
        self._add_hook("after_each", definer)

    def timeout(self, delay_ms: float) -> None:
        """Change the timeout of the test or hook that is currently running."""
        attempt = self._current.get()
        if attempt is None:
            raise SpecBuildError(
                "timeout() must be called while a test is running; use spec_timeout() in a spec"
            )
        attempt.change_timeout(delay_ms)

    def spec_timeout(self, delay_ms: float) -> None:
        """Set the default timeout for tests and hooks in the spec being built."""
        self._require_building("spec_timeout")
        if delay_ms <= 0:
            raise SpecBuildError("Timeout must be greater than 0 ms")
        self._building.spec_timeout = delay_ms

    @staticmethod
    def spy(fn: Optional[Callable[..., Any]] = None) -> Spy:
        """Return a callable that records its calls and delegates to ``fn``."""
        return Spy(fn)

    def run(self, reporter: Optional[Reporter] = None) -> int:
        """Run all tests and return the reporter's exit status."""
        return asyncio.run(self.run_async(reporter))

    async def run_async(self, reporter: Optional[Reporter] = None) -> int:
        """Run all tests on the current event loop."""
        if self.is_running:
            raise SpecBuildError("run() cannot be called while tests are running")

        self._scheduler = Scheduler(
            self.root,
            default_timeout_ms=self.config.runner.default_timeout_ms,
            current=self._current,
        )
        logger.debug("Running %d declared tests", self.root.count_tests())
        try:
            self.results = await self._scheduler.run()
        finally:
            self._building = self.root

        return (reporter or self.report)(self.results)

    def new(self) -> "Runtime":
        """Return an independent runtime sharing this one's configuration."""
        return Runtime(self.config)

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def _add_hook(self, kind: str, definer: Definer) -> None:
        self._require_building(kind)
        self._building.set_hook(kind, definer)

    def _require_building(self, what: str) -> None:
        if self.is_running:
            raise SpecBuildError(f"{what}() cannot be called while tests are running")

    def _resolve_attempt(self) -> Optional[Attempt]:
        attempt = self._current.get()
        if attempt is None:
            # Work that was never bound to an attempt, such as a plain thread.
            if self.is_running:
                return None
            raise AssertionOutsideTestError("Assertions must be made from within a test or hook")
        if attempt.finished:
            return None
        return attempt
