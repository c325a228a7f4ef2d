"""Result reporting."""

from specrunner.report.console import ConsoleReporter, ReportSummary, report, summarize

__all__ = ["ConsoleReporter", "ReportSummary", "report", "summarize"]
