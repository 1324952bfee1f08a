# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
JSON formatter for structured output.
"""

import json
from typing import Any, Dict, Union
from rich.syntax import Syntax

from .base import BaseFormatter, console, err_console


class JSONFormatter(BaseFormatter):
    """Format output as JSON for scripting and automation."""

    def __init__(self, pretty: bool = True, colored: bool = False):
        """Initialize JSON formatter.

        Args:
            pretty: Whether to pretty-print JSON
            colored: Whether to use syntax highlighting
        """
        self.pretty = pretty
        self.colored = colored

    def format_snapshot(self, snapshot: Dict[str, Union[int, float]]):
        """Format a metrics snapshot as JSON."""
        self._print_json({"metrics": dict(sorted(snapshot.items()))})

    def format_error(self, error: str):
        """Format error message as JSON."""
        output = {
            "error": error,
            "success": False
        }
        self._print_json(output, stderr=True)

    def _print_json(self, data: Any, stderr: bool = False):
        """Print JSON with optional formatting and coloring."""
        if self.pretty:
            json_str = json.dumps(data, indent=2, sort_keys=False, default=str)
        else:
            json_str = json.dumps(data, default=str)

        target = err_console if stderr else console
        if self.colored:
            target.print(Syntax(json_str, "json", theme="monokai"))
        else:
            target.print(json_str, markup=False, highlight=False, emoji=False, soft_wrap=True)
