"""Default reporter: prints results with rich and returns an exit status."""

from dataclasses import dataclass, field
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.traceback import Traceback

from specrunner.config import ReportConfig
from specrunner.core.models import Result

# Reduces the full result sequence to a process exit status.
Reporter = Callable[[list[Result]], int]

console = Console()


@dataclass
class ContextSummary:
    """Counts for the results sharing one context."""

    context: str
    passed: int = 0
    failed: int = 0
    errored: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.errored

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.errored == 0


@dataclass
class ReportSummary:
    """Aggregated view of a run."""

    contexts: dict[str, ContextSummary] = field(default_factory=dict)
    failures: list[Result] = field(default_factory=list)
    total: int = 0
    passed: int = 0

    @property
    def failed(self) -> int:
        """Results that did not pass, including malformed assertions."""
        return len(self.failures)

    @property
    def errored(self) -> int:
        return sum(summary.errored for summary in self.contexts.values())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errored": self.errored,
            "contexts": {
                name: {"passed": s.passed, "failed": s.failed, "errored": s.errored}
                for name, s in self.contexts.items()
            },
        }


def summarize(results: list[Result]) -> ReportSummary:
    """Group results by context, keeping first-seen context order."""
    summary = ReportSummary()
    for result in results:
        group = summary.contexts.get(result.context)
        if group is None:
            group = summary.contexts[result.context] = ContextSummary(context=result.context)

        summary.total += 1
        if result.passed is True:
            group.passed += 1
            summary.passed += 1
        elif result.passed is None:
            group.errored += 1
            summary.failures.append(result)
        else:
            group.failed += 1
            summary.failures.append(result)
    return summary


class ConsoleReporter:
    """Prints failures and a pass/fail summary to a rich console."""

    def __init__(self, config: Optional[ReportConfig] = None, output: Optional[Console] = None):
        """Initialize the reporter.

        Args:
            config: Report configuration (defaults apply when omitted)
            output: Console to print to (the shared stdout console when omitted)
        """
        self.config = config or ReportConfig()
        self.console = output or console

    def __call__(self, results: list[Result]) -> int:
        summary = summarize(results)

        for result in summary.failures:
            self._print_failure(result)

        self._print_summary(summary)
        return summary.failed

    def _print_failure(self, result: Result) -> None:
        label = "[yellow]malformed assertion[/yellow]" if result.passed is None else "[red]✗[/red]"
        self.console.print(f"\n{label} [bold]{escape(result.context or '(no context)')}[/bold]")
        self.console.print(escape(result.message), highlight=False)

        if result.passed is None and result.error is not None:
            self.console.print(f"[dim]{escape(type(result.error).__name__)}: {escape(str(result.error))}[/dim]")

        error = result.test_error
        if error is not None and self.config.show_tracebacks and error.__traceback__ is not None:
            self.console.print(Traceback.from_exception(type(error), error, error.__traceback__))

    def _print_summary(self, summary: ReportSummary) -> None:
        self.console.print("\n" + "=" * 50)
        self.console.print(f"[bold]{escape(self.config.title)}[/bold]")
        self.console.print("=" * 50)

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("Assertions", str(summary.total))
        table.add_row("Passed", f"[green]{summary.passed}[/green]")
        table.add_row("Failed", f"[red]{summary.failed}[/red]")
        if summary.errored:
            table.add_row("Malformed", f"[yellow]{summary.errored}[/yellow]")

        self.console.print(table)

        if self.config.show_passed:
            for group in summary.contexts.values():
                if group.ok:
                    self.console.print(f"  [green]✓[/green] {escape(group.context)} ({group.passed})")

        if summary.failed:
            failing = [group for group in summary.contexts.values() if not group.ok]
            self.console.print(f"\n[red]{summary.failed} failing in {len(failing)} context(s)[/red]")
        else:
            self.console.print("\n[green]All assertions passed![/green]")


def report(results: list[Result]) -> int:
    """Default reporter used by ``run()``."""
    return ConsoleReporter()(results)
