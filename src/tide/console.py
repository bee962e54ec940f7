from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from tide.metrics import RunReport

BANNER = r"""
████████╗██╗██████╗ ███████╗
╚══██╔══╝██║██╔══██╗██╔════╝
   ██║   ██║██║  ██║█████╗
   ██║   ██║██║  ██║██╔══╝
   ██║   ██║██████╔╝███████╗
   ╚═╝   ╚═╝╚═════╝ ╚══════╝
"""

LABEL_WIDTH = 25
MIN_VALUE_WIDTH = 40

NO_REQUESTS_MESSAGE = "No requests were completed. Please check your network or target URL."


def create_separator(label_width: int, value_width: int) -> str:
    return f"+{'-' * (label_width + 2)}+{'-' * (value_width + 2)}+"


def render_report(report: RunReport) -> list[str]:
    """Render the summary table, one string per line.

    Returns an empty list when no request completed; callers print
    NO_REQUESTS_MESSAGE instead.
    """
    stats = report.stats
    if stats is None:
        return []
    value_width = max(MIN_VALUE_WIDTH, len(report.target_url))
    separator = create_separator(LABEL_WIDTH, value_width)
    rows = [
        ("Target URL", report.target_url),
        ("Concurrency", str(report.concurrency)),
        ("Duration", f"{report.elapsed_sec:.3f}s"),
        ("Total Requests", str(report.total_requests)),
        ("Successful Requests", str(report.successful_requests)),
        ("Failed Requests", str(report.failed_requests)),
        ("Min Request Time", _ms(stats.min_ns)),
        ("Median Request Time", _ms(stats.median_ns)),
        ("Max Request Time", _ms(stats.max_ns)),
        ("Avg Request Time", _ms(stats.avg_ns)),
        ("P95 Request Time", _ms(stats.p95_ns)),
        ("P99 Request Time", _ms(stats.p99_ns)),
    ]
    lines = [separator]
    for label, value in rows:
        lines.append(f"| {label:<{LABEL_WIDTH}} | {value:<{value_width}} |")
        lines.append(separator)
    return lines


def print_report(report: RunReport, console: Console) -> None:
    lines = render_report(report)
    if not lines:
        console.print(f"\n[red]{NO_REQUESTS_MESSAGE}[/red]")
        return
    console.print("\n[bold]*** Summary Report ***[/bold]")
    for line in lines:
        console.print(escape(line), highlight=False, soft_wrap=True)


def _ms(ns: int) -> str:
    return f"{ns / 1e6:.3f}ms"
