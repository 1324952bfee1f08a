# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Base formatter class for output formatting.
"""

from abc import ABC, abstractmethod
from typing import Dict, Union
from rich.console import Console

console = Console()
err_console = Console(stderr=True)


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format_snapshot(self, snapshot: Dict[str, Union[int, float]]):
        """Format a metrics snapshot for output."""
        pass

    @abstractmethod
    def format_error(self, error: str):
        """Format error message for output."""
        pass

    def _format_number(self, value: float, decimals: int = 0) -> str:
        """Format a number with optional decimal places."""
        if decimals == 0:
            return f"{int(value):,}"
        else:
            return f"{value:,.{decimals}f}"

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        sign = "-" if seconds < 0 else ""
        seconds = abs(seconds)
        if seconds < 60:
            return f"{sign}{seconds:.1f}s"
        elif seconds < 3600:
            minutes = seconds / 60
            return f"{sign}{minutes:.1f}m"
        else:
            hours = seconds / 3600
            return f"{sign}{hours:.1f}h"
