# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""Exceptions raised by sidekiq-metrics."""


class SidekiqMetricsError(Exception):
    """Base class for all sidekiq-metrics errors."""


class SnapshotError(SidekiqMetricsError):
    """A snapshot could not be collected because a Redis read failed."""


class ConfigError(SidekiqMetricsError):
    """Configuration is invalid."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
