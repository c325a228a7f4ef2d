"""Assertion engine.

An ``Assertion`` is started by calling the runtime with a single value. Each
terminal method evaluates one comparison synchronously, records exactly one
``Result`` against the attempt that is currently running, and returns an
``AssertionDescriber`` for labelling that result.
"""

import logging
from typing import Any, Callable, Optional, Union

from specrunner.core.comparison import deep_equal, error_matches, serialize, strict_equal
from specrunner.core.models import Attempt, Result
from specrunner.errors import AssertionFailure

logger = logging.getLogger(__name__)

# Returns the attempt an assertion belongs to, or None when it must be dropped.
AttemptResolver = Callable[[], Optional[Attempt]]

_NOTHING_RAISED = object()


class AssertionDescriber:
    """Labels the single result produced by an assertion."""

    def __init__(self, result: Result):
        self._result = result

    def __call__(self, description: str) -> None:
        self._result.message = f"{description}\n\n{self._result.message}"


class Assertion:
    """Comparison chain bound to an actual value."""

    def __init__(self, actual: Any, resolve: AttemptResolver):
        self.actual = actual
        self._resolve = resolve

    def equals(self, expected: Any) -> AssertionDescriber:
        return self._check("should equal", expected, lambda a, b: strict_equal(a, b))

    def not_equals(self, value: Any) -> AssertionDescriber:
        return self._check("should not equal", value, lambda a, b: not strict_equal(a, b))

    def deep_equals(self, expected: Any) -> AssertionDescriber:
        return self._check("should deep equal", expected, lambda a, b: deep_equal(a, b))

    def not_deep_equals(self, value: Any) -> AssertionDescriber:
        return self._check("should not deep equal", value, lambda a, b: not deep_equal(a, b))

    def throws(self, error_spec: Union[str, type]) -> AssertionDescriber:
        def check(fn: Any, spec: Union[str, type]) -> bool:
            raised = _invoke(fn)
            return raised is not _NOTHING_RAISED and error_matches(raised, spec)

        return self._check("should throw", error_spec, check)

    def not_throws(self, error_spec: Union[str, type]) -> AssertionDescriber:
        def check(fn: Any, spec: Union[str, type]) -> bool:
            raised = _invoke(fn)
            return raised is _NOTHING_RAISED or not error_matches(raised, spec)

        return self._check("should not throw", error_spec, check)

    def _check(
        self,
        verb: str,
        expected: Any,
        compare: Callable[[Any, Any], bool],
    ) -> AssertionDescriber:
        attempt = self._resolve()
        message = f"{serialize(self.actual)}\n  {verb}\n{serialize(expected)}"
        result = Result(passed=True, context=attempt.context if attempt else "", message=message)

        try:
            if not compare(self.actual, expected):
                result.passed = False
                result.error = AssertionFailure(message, actual=self.actual, expected=expected)
        except Exception as e:
            result.passed = None
            result.error = e

        if attempt is None:
            logger.debug("Dropping assertion made after its test finished: %s", verb)
        else:
            attempt.record(result)
        return AssertionDescriber(result)


def _invoke(fn: Any) -> Any:
    if not callable(fn):
        raise TypeError(f"expected a callable, got {type(fn).__name__}")
    try:
        fn()
    except Exception as e:
        return e
    return _NOTHING_RAISED
