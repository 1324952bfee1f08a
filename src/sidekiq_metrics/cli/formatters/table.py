# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Table formatter using Rich for terminal output.
"""

from typing import Dict, Union

from rich.table import Table

from ...aggregator import LATENCY_METRIC, MetricKind
from .base import BaseFormatter, console, err_console


class TableFormatter(BaseFormatter):
    """Format output as tables using Rich."""

    def format_snapshot(self, snapshot: Dict[str, Union[int, float]]):
        """Format a metrics snapshot as two tables: stats and queue latency."""
        table = Table(title="Sidekiq Stats", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", justify="right")

        for kind in MetricKind:
            if kind.value not in snapshot:
                continue
            table.add_row(kind.value.title(), self._format_number(snapshot[kind.value]))

        console.print(table)

        prefix = LATENCY_METRIC + "."
        latencies = {
            name[len(prefix):]: value
            for name, value in snapshot.items()
            if name.startswith(prefix)
        }
        if not latencies:
            console.print("[yellow]No queues found[/yellow]")
            return

        latency_table = Table(title="Queue Latency", show_header=True, header_style="bold magenta")
        latency_table.add_column("Queue", style="cyan", no_wrap=True)
        latency_table.add_column("Latency", justify="right")

        for queue, value in sorted(latencies.items()):
            color = "red" if value >= 300 else "yellow" if value >= 60 else "green"
            latency_table.add_row(queue, f"[{color}]{self._format_duration(value)}[/{color}]")

        console.print(latency_table)

    def format_error(self, error: str):
        """Format error message."""
        err_console.print(f"[red]Error:[/red] {error}")
