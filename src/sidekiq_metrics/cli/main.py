# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Main CLI entry point for sidekiq-metrics.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from ..aggregator import MetricsAggregator
from ..errors import SidekiqMetricsError
from ..plugin import PluginRunner, SidekiqPlugin
from ..store import RedisQueueStore
from .formatters import get_formatter
from .utils.client import create_redis_client, ping_redis
from .utils.config import Config, OUTPUT_FORMATS

# Metric lines go to stdout; everything else goes to stderr
console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(level: str = "WARNING") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr
    )


@click.command()
@click.version_option(version=__version__, prog_name="sidekiq-metrics")
@click.option("--host", help="Redis hostname [default: localhost]")
@click.option("--port", type=int, help="Redis port [default: 6379]")
@click.option("--password", envvar="SIDEKIQ_PASSWORD", help="Redis password")
@click.option("--db", type=int, help="Redis database index [default: 0]")
@click.option("--redis-namespace", "namespace", help="Redis namespace Sidekiq uses")
@click.option("--metric-key-prefix", help="Metric key prefix [default: sidekiq]")
@click.option("--tempfile", help="State file for counter diffs")
@click.option(
    "--format", "-f",
    type=click.Choice(OUTPUT_FORMATS),
    help="Output format [default: mackerel]"
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.yaml"
)
@click.option("--check", is_flag=True, help="Test the Redis connection and exit")
@click.option("--debug", envvar="SIDEKIQ_METRICS_DEBUG", is_flag=True, help="Enable debug logging")
def cli(
    host: Optional[str],
    port: Optional[int],
    password: Optional[str],
    db: Optional[int],
    namespace: Optional[str],
    metric_key_prefix: Optional[str],
    tempfile: Optional[str],
    format: Optional[str],
    config_path: Optional[Path],
    check: bool,
    debug: bool
):
    """
    Fetch a Sidekiq metrics snapshot from Redis.

    Examples:
        sidekiq-metrics --host redis.local --redis-namespace myapp
        sidekiq-metrics --format table
        MACKEREL_AGENT_PLUGIN_META=1 sidekiq-metrics
    """
    config = Config(config_path=config_path)
    config.apply_overrides(
        host=host,
        port=port,
        password=password,
        db=db,
        namespace=namespace,
        metric_key_prefix=metric_key_prefix,
        tempfile=tempfile,
        default_format=format,
        debug=debug or None,
    )
    config.validate()

    setup_logging("DEBUG" if config.debug else "WARNING")
    logger.debug(f"Using config: {config.to_dict()}")

    client = create_redis_client(config)

    if check:
        if ping_redis(client):
            console.print("[green]✓[/green] Redis is reachable")
            return
        console.print("[red]✗[/red] Cannot reach Redis", style="bold red")
        sys.exit(1)

    aggregator = MetricsAggregator(RedisQueueStore(client), namespace=config.namespace)

    try:
        if config.default_format == "mackerel":
            plugin = SidekiqPlugin(aggregator, prefix=config.metric_key_prefix)
            PluginRunner(plugin, tempfile_path=config.tempfile).run()
        else:
            formatter = get_formatter(config.default_format)
            try:
                snapshot = aggregator.collect()
            except SidekiqMetricsError as e:
                formatter.format_error(str(e))
                sys.exit(1)
            formatter.format_snapshot(snapshot)
    finally:
        client.close()


def main():
    """Main entry point for the CLI."""
    try:
        exit_code = cli(standalone_mode=False)
    except (KeyboardInterrupt, click.exceptions.Abort):
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except Exception as e:
        if os.environ.get("SIDEKIQ_METRICS_DEBUG"):
            console.print_exception()
        else:
            console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    sys.exit(exit_code or 0)


if __name__ == "__main__":
    main()
