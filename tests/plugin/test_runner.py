# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for the plugin runner: output lines, counter diffs, state file and
graph definitions.
"""

import io
import json

import pytest

from sidekiq_metrics.aggregator import MetricsAggregator
from sidekiq_metrics.plugin import (
    GRAPH_DEFINITIONS,
    PluginRunner,
    SidekiqPlugin,
    default_tempfile,
)
from sidekiq_metrics.plugin.runner import LAST_TIME_KEY, META_ENV

NOW = 1700000000


def parse_lines(output):
    result = {}
    for line in output.strip().splitlines():
        name, value, epoch = line.split("\t")
        result[name] = (value, int(epoch))
    return result


@pytest.fixture
def seeded_store(store):
    store.strings["stat:processed"] = "1000"
    store.strings["stat:failed"] = "10"
    store.sets["processes"] = {"p1"}
    store.hashes["p1"] = {"busy": "2"}
    store.sets["queues"] = {"default", "low"}
    store.push_job("queue:default", enqueued_at=NOW - 12)
    store.zsets["retry"] = 1
    return store


def make_runner(store, tmp_path, prefix="sidekiq", now=NOW):
    aggregator = MetricsAggregator(store, clock=lambda: now)
    plugin = SidekiqPlugin(aggregator, prefix=prefix)
    stream = io.StringIO()
    runner = PluginRunner(plugin, tempfile_path=tmp_path / "state", clock=lambda: now, stream=stream)
    return runner, stream


class TestOutputValues:
    """Test metric line output."""

    def test_first_run_skips_counters(self, seeded_store, tmp_path, monkeypatch):
        monkeypatch.delenv(META_ENV, raising=False)
        runner, stream = make_runner(seeded_store, tmp_path)

        runner.run()

        lines = parse_lines(stream.getvalue())
        assert "sidekiq.ProcessedANDFailed.processed" not in lines
        assert lines["sidekiq.Stats.busy"] == ("2", NOW)
        assert lines["sidekiq.Stats.enqueued"] == ("1", NOW)
        assert lines["sidekiq.Stats.retry"] == ("1", NOW)
        assert lines["sidekiq.Stats.dead"] == ("0", NOW)
        assert lines["sidekiq.QueueLatency.default"] == ("12.000000", NOW)
        assert lines["sidekiq.QueueLatency.low"] == ("0.000000", NOW)

    def test_state_file_is_written(self, seeded_store, tmp_path):
        runner, _ = make_runner(seeded_store, tmp_path)

        runner.output_values()

        state = json.loads((tmp_path / "state").read_text())
        assert state["processed"] == 1000
        assert state[LAST_TIME_KEY] == NOW

    def test_second_run_outputs_per_minute_rate(self, seeded_store, tmp_path):
        first, _ = make_runner(seeded_store, tmp_path, now=NOW)
        first.output_values()

        seeded_store.strings["stat:processed"] = "1060"
        seeded_store.strings["stat:failed"] = "13"
        second, stream = make_runner(seeded_store, tmp_path, now=NOW + 30)
        second.output_values()

        lines = parse_lines(stream.getvalue())
        assert lines["sidekiq.ProcessedANDFailed.processed"] == ("120.000000", NOW + 30)
        assert lines["sidekiq.ProcessedANDFailed.failed"] == ("6.000000", NOW + 30)

    def test_counter_reset_is_skipped(self, seeded_store, tmp_path):
        first, _ = make_runner(seeded_store, tmp_path, now=NOW)
        first.output_values()

        seeded_store.strings["stat:processed"] = "5"
        second, stream = make_runner(seeded_store, tmp_path, now=NOW + 60)
        second.output_values()

        lines = parse_lines(stream.getvalue())
        assert "sidekiq.ProcessedANDFailed.processed" not in lines
        assert lines["sidekiq.ProcessedANDFailed.failed"] == ("0.000000", NOW + 60)

    def test_stale_state_is_skipped(self, seeded_store, tmp_path):
        first, _ = make_runner(seeded_store, tmp_path, now=NOW)
        first.output_values()

        second, stream = make_runner(seeded_store, tmp_path, now=NOW + 3600)
        second.output_values()

        assert "sidekiq.ProcessedANDFailed.processed" not in parse_lines(stream.getvalue())

    def test_corrupt_state_file_is_ignored(self, seeded_store, tmp_path):
        (tmp_path / "state").write_text("{garbage")
        runner, stream = make_runner(seeded_store, tmp_path)

        runner.output_values()

        assert "sidekiq.Stats.busy" in parse_lines(stream.getvalue())
        assert json.loads((tmp_path / "state").read_text())[LAST_TIME_KEY] == NOW

    def test_custom_prefix(self, seeded_store, tmp_path):
        runner, stream = make_runner(seeded_store, tmp_path, prefix="jobs")

        runner.output_values()

        lines = parse_lines(stream.getvalue())
        assert "jobs.Stats.busy" in lines
        assert "jobs.QueueLatency.default" in lines

    def test_no_elapsed_time_skips_counters(self, seeded_store, tmp_path):
        first, _ = make_runner(seeded_store, tmp_path, now=NOW)
        first.output_values()

        second, stream = make_runner(seeded_store, tmp_path, now=NOW)
        second.output_values()

        lines = parse_lines(stream.getvalue())
        assert not any(name.startswith("sidekiq.ProcessedANDFailed.") for name in lines)
        assert "sidekiq.Stats.busy" in lines

    def test_non_numeric_state_value_is_skipped(self, seeded_store, tmp_path):
        (tmp_path / "state").write_text(json.dumps({
            "processed": "lots",
            "failed": 4,
            LAST_TIME_KEY: NOW - 60,
        }))
        runner, stream = make_runner(seeded_store, tmp_path)

        runner.output_values()

        lines = parse_lines(stream.getvalue())
        assert "sidekiq.ProcessedANDFailed.processed" not in lines
        assert lines["sidekiq.ProcessedANDFailed.failed"] == ("6.000000", NOW)


class TestOutputDefinitions:
    """Test graph definition output in meta mode."""

    def test_meta_mode_prints_definitions(self, store, tmp_path, monkeypatch):
        monkeypatch.setenv(META_ENV, "1")
        runner, stream = make_runner(store, tmp_path)

        runner.run()

        header, body = stream.getvalue().splitlines()
        assert header == "# mackerel-agent-plugin"
        graphs = json.loads(body)["graphs"]
        assert set(graphs) == {f"sidekiq.{key}" for key in GRAPH_DEFINITIONS}
        assert graphs["sidekiq.Stats"]["label"] == "Sidekiq stats"
        assert graphs["sidekiq.QueueLatency"]["metrics"] == [
            {"name": "*", "label": "%1", "stacked": False}
        ]
        assert not (tmp_path / "state").exists()

    def test_custom_prefix_labels(self, store, tmp_path):
        runner, stream = make_runner(store, tmp_path, prefix="jobs")

        runner.output_definitions()

        graphs = json.loads(stream.getvalue().splitlines()[1])["graphs"]
        assert graphs["jobs.Stats"]["label"] == "Jobs Sidekiq stats"


def test_default_tempfile_uses_prefix():
    assert default_tempfile("sidekiq").name == "mackerel-plugin-sidekiq"
