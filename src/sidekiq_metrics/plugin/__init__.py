# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Monitoring plugin runtime.

Provides:
- Graph definitions for the Sidekiq metrics
- The Sidekiq plugin binding a snapshot source to those graphs
- A runner that diffs counters against the previous run and writes metric lines
"""

from .graphs import Graph, GraphMetric, GRAPH_DEFINITIONS
from .sidekiq import SidekiqPlugin, DEFAULT_METRIC_KEY_PREFIX
from .runner import PluginRunner, default_tempfile

__all__ = [
    'Graph',
    'GraphMetric',
    'GRAPH_DEFINITIONS',
    'SidekiqPlugin',
    'DEFAULT_METRIC_KEY_PREFIX',
    'PluginRunner',
    'default_tempfile',
]
