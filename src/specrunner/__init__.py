"""
specrunner - a hierarchical test-execution runtime.

This package provides:
- Nested specs with before/after and before_each/after_each hooks
- Synchronous, callback and awaitable tests with timeouts
- Assertions that record results instead of raising
- Spies for recording calls
- A reporter that reduces results to an exit status
"""

from specrunner.core.models import Result, TestStatus
from specrunner.core.spy import Call, Spy
from specrunner.report.console import ConsoleReporter, report, summarize
from specrunner.runtime import Runtime

__version__ = "0.1.0"
__author__ = "specrunner Team"

o = Runtime()

__all__ = [
    "Call",
    "ConsoleReporter",
    "Result",
    "Runtime",
    "Spy",
    "TestStatus",
    "o",
    "report",
    "summarize",
]
