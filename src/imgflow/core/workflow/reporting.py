# core/workflow/reporting.py
"""
Validation Reporting
====================

Prints a ValidationReport for people and logs it for machines.
"""

from typing import List, Optional

from rich.console import Console
from rich.table import Table

from imgflow.core.logger import get_logger

from .loader import CatalogEntry
from .validator import ValidationReport

logger = get_logger(__name__)

__all__ = ["report_validation", "format_report", "print_workflow_list"]


def _summary_line(report: ValidationReport) -> str:
    if report.errors:
        return f"Workflow validation failed with {len(report.errors)} error(s)"
    return "Workflow validation passed"


def format_report(report: ValidationReport) -> str:
    """
    Render a report as plain text.

    Errors come first, then warnings, then one closing status line.
    """
    lines: List[str] = []
    if report.errors:
        lines.append(f"Errors ({len(report.errors)}):")
        lines.extend(f"  - {error}" for error in report.errors)
    if report.warnings:
        lines.append(f"Warnings ({len(report.warnings)}):")
        lines.extend(f"  - {warning}" for warning in report.warnings)
    lines.append(_summary_line(report))
    return "\n".join(lines)


def report_validation(report: ValidationReport, console: Optional[Console] = None) -> bool:
    """
    Print a validation report.

    Args:
        report: Report to print
        console: Rich console to print to (defaults to stderr)

    Returns:
        True if the report has no errors
    """
    console = console or Console(stderr=True)

    if report.errors:
        console.print(f"[red]Errors ({len(report.errors)}):[/red]")
        for error in report.errors:
            console.print(f"  - {error}", markup=False, highlight=False)
            logger.error(str(error))

    if report.warnings:
        console.print(f"[yellow]Warnings ({len(report.warnings)}):[/yellow]")
        for warning in report.warnings:
            console.print(f"  - {warning}", markup=False, highlight=False)
            logger.warning(str(warning))

    summary = _summary_line(report)
    if report.errors:
        console.print(f"[red]✗[/red] {summary}")
    else:
        console.print(f"[green]✓[/green] {summary}")
        logger.info(summary)

    return report.success


def print_workflow_list(entries: List[CatalogEntry], console: Optional[Console] = None) -> None:
    """Print catalog workflows as a table."""
    console = console or Console()

    if not entries:
        console.print("[yellow]![/yellow] No workflows found")
        return

    table = Table(title="Available Workflows", show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Origin")
    table.add_column("Path", overflow="fold")
    for entry in entries:
        table.add_row(entry.name, entry.origin, str(entry.path))
    console.print(table)
