# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Graph definitions for the Sidekiq metrics.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..aggregator import LATENCY_METRIC, MetricKind


@dataclass
class GraphMetric:
    """One metric within a graph."""

    name: str
    label: str
    diff: bool = False
    type: str = "float64"  # float64 or uint64
    stacked: bool = False

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.name or "#" in self.name

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "label": self.label, "stacked": self.stacked}


@dataclass
class Graph:
    """A graph grouping related metrics."""

    label: str
    unit: str
    metrics: List[GraphMetric] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "unit": self.unit,
            "metrics": [m.to_dict() for m in self.metrics],
        }


GRAPH_DEFINITIONS: Dict[str, Graph] = {
    "ProcessedANDFailed": Graph(
        label="Sidekiq processed and failed count",
        unit="integer",
        metrics=[
            GraphMetric(MetricKind.PROCESSED.value, "Processed", diff=True, type="uint64"),
            GraphMetric(MetricKind.FAILED.value, "Failed", diff=True, type="uint64"),
        ],
    ),
    "Stats": Graph(
        label="Sidekiq stats",
        unit="integer",
        metrics=[
            GraphMetric(MetricKind.BUSY.value, "Busy", type="uint64"),
            GraphMetric(MetricKind.ENQUEUED.value, "Enqueued", type="uint64"),
            GraphMetric(MetricKind.SCHEDULE.value, "Schedule", type="uint64"),
            GraphMetric(MetricKind.RETRY.value, "Retry", type="uint64"),
            GraphMetric(MetricKind.DEAD.value, "Dead", type="uint64"),
        ],
    ),
    LATENCY_METRIC: Graph(
        label="Sidekiq queue latency",
        unit="float",
        metrics=[
            GraphMetric("*", "%1"),
        ],
    ),
}
