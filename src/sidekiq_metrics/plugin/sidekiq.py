# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Sidekiq plugin: binds the metrics aggregator to its graph definitions.
"""

from typing import Dict

from ..aggregator import MetricsAggregator
from .graphs import Graph, GRAPH_DEFINITIONS

DEFAULT_METRIC_KEY_PREFIX = "sidekiq"


class SidekiqPlugin:
    """Plugin exposing Sidekiq snapshots under a metric key prefix."""

    def __init__(self, aggregator: MetricsAggregator, prefix: str = DEFAULT_METRIC_KEY_PREFIX):
        self.aggregator = aggregator
        self.prefix = prefix or DEFAULT_METRIC_KEY_PREFIX

    def graph_definition(self) -> Dict[str, Graph]:
        return GRAPH_DEFINITIONS

    def fetch_metrics(self):
        return self.aggregator.collect()

    def metric_key_prefix(self) -> str:
        return self.prefix
