"""Core test runtime functionality."""

from specrunner.core.assertions import Assertion, AssertionDescriber
from specrunner.core.scheduler import Scheduler
from specrunner.core.spy import Spy
from specrunner.core.tree import SpecNode, TestCase

__all__ = ["Assertion", "AssertionDescriber", "Scheduler", "SpecNode", "Spy", "TestCase"]
