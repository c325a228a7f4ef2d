"""Tests for the default reporter."""

from io import StringIO

from rich.console import Console

from specrunner import Runtime
from specrunner.config import ReportConfig, RunnerConfig, SpecRunnerConfig
from specrunner.core.models import Result
from specrunner.errors import AssertionFailure
from specrunner.report.console import ConsoleReporter, summarize


def make_console():
    return Console(file=StringIO(), width=120, color_system=None)


def sample_results():
    return [
        Result(passed=True, context="math add", message="2\n  should equal\n2"),
        Result(
            passed=False,
            context="math add",
            message="1\n  should equal\n2",
            error=AssertionFailure("1 should equal 2", actual=1, expected=2),
        ),
        Result(passed=None, context="math throws", message="5\n  should throw\nValueError", error=TypeError("x")),
        Result(passed=True, context="strings upper", message="'A'\n  should equal\n'A'"),
    ]


class TestSummarize:
    """Tests for summarize."""

    def test_counts(self):
        """Test totals and failure counts."""
        summary = summarize(sample_results())

        assert summary.total == 4
        assert summary.passed == 2
        assert summary.failed == 2
        assert summary.errored == 1

    def test_grouped_by_context_in_order(self):
        """Test grouping keeps first-seen context order."""
        summary = summarize(sample_results())

        assert list(summary.contexts) == ["math add", "math throws", "strings upper"]
        add = summary.contexts["math add"]
        assert (add.passed, add.failed, add.errored) == (1, 1, 0)
        assert not add.ok
        assert summary.contexts["strings upper"].ok

    def test_empty(self):
        """Test summarizing no results."""
        summary = summarize([])

        assert summary.total == 0
        assert summary.failed == 0
        assert summary.contexts == {}

    def test_to_dict(self):
        """Test converting the summary to a dictionary."""
        d = summarize(sample_results()).to_dict()

        assert d["failed"] == 2
        assert d["contexts"]["math throws"] == {"passed": 0, "failed": 0, "errored": 1}


class TestConsoleReporter:
    """Tests for ConsoleReporter."""

    def test_returns_failure_count(self):
        """Test that the exit status is the number of failing results."""
        reporter = ConsoleReporter(output=make_console())

        assert reporter(sample_results()) == 2
        assert reporter([]) == 0
        assert reporter([Result(passed=True, context="a")]) == 0

    def test_prints_failures_and_summary(self):
        """Test that failing contexts and messages are printed."""
        output = make_console()
        reporter = ConsoleReporter(ReportConfig(title="Nightly"), output=output)

        reporter(sample_results())
        text = output.file.getvalue()

        assert "math add" in text
        assert "should equal" in text
        assert "malformed assertion" in text
        assert "TypeError: x" in text
        assert "Nightly" in text
        assert "2 failing in 2 context(s)" in text
        assert "strings upper" not in text

    def test_show_passed(self):
        """Test listing passing contexts."""
        output = make_console()
        reporter = ConsoleReporter(ReportConfig(show_passed=True), output=output)

        reporter(sample_results())

        assert "strings upper (1)" in output.file.getvalue()

    def test_all_passed(self):
        """Test the all-pass message."""
        output = make_console()
        ConsoleReporter(output=output)([Result(passed=True, context="a")])

        assert "All assertions passed!" in output.file.getvalue()

    def test_traceback_of_test_error(self):
        """Test that test errors with tracebacks are printed when enabled."""
        o = Runtime()

        def body():
            raise ValueError("exploded")

        o("explodes", body)

        output = make_console()
        assert o.run(ConsoleReporter(output=output)) == 1
        text = output.file.getvalue()
        assert "exploded" in text
        assert "Traceback" in text

        quiet = make_console()
        o.run(ConsoleReporter(ReportConfig(show_tracebacks=False), output=quiet))
        assert "Traceback" not in quiet.file.getvalue()


class TestRuntimeReporting:
    """Tests for reporting through a Runtime."""

    def test_default_reporter_from_config(self):
        """Test that the runtime's default reporter uses its config."""
        config = SpecRunnerConfig(
            runner=RunnerConfig(default_timeout_ms=50),
            report=ReportConfig(title="Configured"),
        )
        o = Runtime(config)
        o.report.console = make_console()
        o("fails", lambda: o(1).equals(2))

        assert o.run() == 1
        assert "Configured" in o.report.console.file.getvalue()

    def test_custom_reporter(self):
        """Test substituting a reducer."""
        o = Runtime()
        o("passes", lambda: o(1).equals(1))
        seen = []

        def reporter(results):
            seen.extend(results)
            return 42

        assert o.run(reporter) == 42
        assert len(seen) == 1
