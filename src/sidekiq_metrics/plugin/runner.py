# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Plugin runner for mackerel-agent style metric output.

Handles:
- Graph definition output in meta mode
- Per-minute rates for cumulative counters, using the previous run's values
- Persisting raw values to a state file between runs
- Writing "name<TAB>value<TAB>epoch" lines
"""

import json
import logging
import os
import re
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO, Tuple

from .graphs import GraphMetric

logger = logging.getLogger(__name__)

META_ENV = "MACKEREL_AGENT_PLUGIN_META"
META_HEADER = "# mackerel-agent-plugin"
LAST_TIME_KEY = "_lastTime"

# Counters diffed over a longer gap are considered stale
MAX_DIFF_SECONDS = 600


def default_tempfile(prefix: str) -> Path:
    """Default state file path for a metric key prefix."""
    return Path(tempfile.gettempdir()) / f"mackerel-plugin-{prefix}"


class PluginRunner:
    """Runs a plugin once and writes its output."""

    def __init__(
        self,
        plugin,
        tempfile_path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
        stream: Optional[TextIO] = None
    ):
        """
        Initialize the runner.

        Args:
            plugin: Plugin providing graph_definition, fetch_metrics, metric_key_prefix
            tempfile_path: State file path (default derived from the prefix)
            clock: Returns the current Unix time in seconds
            stream: Output stream (stdout if not provided)
        """
        self.plugin = plugin
        self.tempfile_path = Path(tempfile_path) if tempfile_path else default_tempfile(plugin.metric_key_prefix())
        self.clock = clock
        self.stream = stream or sys.stdout

    def run(self) -> None:
        """Write graph definitions in meta mode, metric values otherwise."""
        if os.environ.get(META_ENV, "") != "":
            self.output_definitions()
        else:
            self.output_values()

    def output_definitions(self) -> None:
        """Write the graph definitions as JSON."""
        prefix = self.plugin.metric_key_prefix()
        title = prefix[:1].upper() + prefix[1:]

        graphs = {}
        for key, graph in self.plugin.graph_definition().items():
            definition = graph.to_dict()
            if not definition["label"].startswith(title):
                definition["label"] = f"{title} {definition['label']}"
            graphs[f"{prefix}.{key}" if key else prefix] = definition

        self.stream.write(META_HEADER + "\n")
        self.stream.write(json.dumps({"graphs": graphs}) + "\n")

    def output_values(self) -> None:
        """Fetch a snapshot, write its metric lines and save it as the new state."""
        stats = self.plugin.fetch_metrics()
        now = int(self.clock())
        last_stats, last_time = self.load_state()

        for key, graph in self.plugin.graph_definition().items():
            for metric in graph.metrics:
                if metric.is_wildcard:
                    self._format_wildcard(key, metric, stats, last_stats, now, last_time)
                else:
                    self._format_value(key, metric, metric.name, stats, last_stats, now, last_time)

        self.save_state(stats, now)

    def load_state(self) -> Tuple[Dict[str, Any], Optional[int]]:
        """
        Load the previous run's raw values.

        Returns:
            Tuple of (values, timestamp); ({}, None) if unavailable
        """
        if not self.tempfile_path.exists():
            return {}, None

        try:
            with open(self.tempfile_path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state file {self.tempfile_path}: {e}")
            return {}, None

        if not isinstance(data, dict):
            return {}, None

        last_time = data.pop(LAST_TIME_KEY, None)
        if not isinstance(last_time, (int, float)):
            return {}, None
        return data, int(last_time)

    def save_state(self, stats: Dict[str, Any], now: int) -> None:
        """Persist raw values for the next run."""
        data = dict(stats)
        data[LAST_TIME_KEY] = now

        self.tempfile_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.tempfile_path, "w") as f:
            json.dump(data, f)

    def _format_wildcard(self, graph_key, metric, stats, last_stats, now, last_time):
        pattern = re.escape(graph_key) + r"\." + re.escape(metric.name)
        pattern = pattern.replace(r"\*", "[-a-zA-Z0-9_]+").replace(r"\#", "[-a-zA-Z0-9_]+")
        matcher = re.compile(pattern)

        for name in sorted(stats):
            if matcher.match(name):
                self._format_value("", metric, name, stats, last_stats, now, last_time)

    def _format_value(self, graph_key, metric: GraphMetric, name, stats, last_stats, now, last_time):
        if name not in stats:
            return
        value = stats[name]

        if metric.diff:
            if name not in last_stats or last_time is None:
                logger.info(f"{name} does not exist at last fetch")
                return
            value = self._calc_diff(metric, value, now, last_stats[name], last_time)
            if value is None:
                return

        parts = [self.plugin.metric_key_prefix()]
        if graph_key:
            parts.append(graph_key)
        parts.append(name)
        self._print_value(".".join(parts), value, now)

    def _calc_diff(self, metric: GraphMetric, value, now: int, last_value, last_time: int) -> Optional[float]:
        elapsed = now - last_time
        if elapsed <= 0:
            logger.warning(f"Skipping {metric.name}: no time elapsed since last fetch")
            return None
        if elapsed > MAX_DIFF_SECONDS:
            logger.warning(f"Skipping {metric.name}: last fetch is {elapsed}s old")
            return None
        if isinstance(last_value, bool) or not isinstance(last_value, (int, float)):
            logger.warning(f"Skipping {metric.name}: last value {last_value!r} is not a number")
            return None
        if metric.type == "uint64" and last_value > value:
            logger.warning(f"Skipping {metric.name}: counter seems to be reset")
            return None
        return (value - last_value) * 60.0 / elapsed

    def _print_value(self, key: str, value, now: int) -> None:
        if isinstance(value, float):
            formatted = f"{value:f}"
        else:
            formatted = str(int(value))
        self.stream.write(f"{key}\t{formatted}\t{now}\n")
