# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Metrics aggregator for Sidekiq queue state.

Translates the Sidekiq key layout into one flat snapshot:
- Cumulative counters (processed, failed)
- Gauges summed over dynamic member sets (busy, enqueued)
- Sorted set sizes (schedule, retry, dead)
- Per-queue latency derived from the oldest pending job
"""

import json
import logging
import time
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Union

import redis

from . import keys
from .errors import SnapshotError

logger = logging.getLogger(__name__)

Number = Union[int, float]

LATENCY_METRIC = "QueueLatency"


class MetricKind(Enum):
    """Fixed-name metrics, valued by their snapshot key."""

    PROCESSED = "processed"
    FAILED = "failed"
    BUSY = "busy"
    ENQUEUED = "enqueued"
    SCHEDULE = "schedule"
    RETRY = "retry"
    DEAD = "dead"


def metric_name(*names: str) -> str:
    """Join metric name segments with dots."""
    return ".".join(names)


def _parse_uint(value: Optional[str], key: str) -> int:
    if value is None:
        return 0
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-integer value at {key}: {value!r}")
        return 0
    if parsed < 0:
        logger.warning(f"Ignoring negative value at {key}: {value!r}")
        return 0
    return parsed


def _read_counter(logical_key: str):
    def read(store, namespace: str) -> int:
        key = keys.resolve(namespace, logical_key)
        return _parse_uint(store.get(key), key)
    return read


def _read_cardinality(logical_key: str):
    def read(store, namespace: str) -> int:
        return store.zcard(keys.resolve(namespace, logical_key))
    return read


def _read_busy(store, namespace: str) -> int:
    processes = store.smembers(keys.resolve(namespace, keys.PROCESSES_KEY))
    total = 0
    for identity in processes:
        key = keys.process_key(namespace, identity)
        total += _parse_uint(store.hget(key, keys.BUSY_FIELD), key)
    return total


def _read_enqueued(store, namespace: str) -> int:
    queues = store.smembers(keys.resolve(namespace, keys.QUEUES_KEY))
    return sum(store.llen(keys.queue_key(namespace, name)) for name in queues)


# Each reader takes (store, namespace) and returns one value
METRIC_READERS: Dict[MetricKind, Callable[..., int]] = {
    MetricKind.PROCESSED: _read_counter(keys.PROCESSED_KEY),
    MetricKind.FAILED: _read_counter(keys.FAILED_KEY),
    MetricKind.BUSY: _read_busy,
    MetricKind.ENQUEUED: _read_enqueued,
    MetricKind.SCHEDULE: _read_cardinality(keys.SCHEDULE_KEY),
    MetricKind.RETRY: _read_cardinality(keys.RETRY_KEY),
    MetricKind.DEAD: _read_cardinality(keys.DEAD_KEY),
}


class MetricsAggregator:
    """
    Collects a metrics snapshot from a Sidekiq installation.

    The store is any object exposing get, zcard, smembers, hget, llen and
    lrange with RedisQueueStore semantics. Reads are issued sequentially;
    Sidekiq may change state between them.
    """

    def __init__(
        self,
        store,
        namespace: str = "",
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the aggregator.

        Args:
            store: Store access object (e.g., RedisQueueStore)
            namespace: Redis namespace Sidekiq was configured with
            clock: Returns the current Unix time in seconds
        """
        self.store = store
        self.namespace = namespace or ""
        self.clock = clock

    def collect(self) -> Dict[str, Number]:
        """
        Collect a complete snapshot.

        Returns:
            Dictionary of metric_name -> value

        Raises:
            SnapshotError: If any Redis read fails
        """
        snapshot: Dict[str, Number] = {}
        snapshot.update(self.collect_kinds(MetricKind))
        snapshot.update(self.collect_queue_latency())
        logger.debug(f"Collected {len(snapshot)} metrics")
        return snapshot

    def collect_kinds(self, kinds: Iterable[MetricKind]) -> Dict[str, int]:
        """
        Collect the selected fixed-name metrics.

        Args:
            kinds: Metric kinds to read

        Returns:
            Dictionary of metric_name -> value
        """
        result = {}
        try:
            for kind in kinds:
                result[kind.value] = METRIC_READERS[kind](self.store, self.namespace)
        except redis.RedisError as e:
            logger.error(f"Redis read failed: {e}")
            raise SnapshotError(f"Failed to read Sidekiq stats from Redis: {e}") from e
        return result

    def collect_queue_latency(self) -> Dict[str, float]:
        """
        Collect the latency of every known queue.

        Latency is the age of the job at the tail of the queue list, which
        is the next one a worker will pop. Queues whose tail entry cannot be
        decoded are omitted.

        Returns:
            Dictionary of "QueueLatency.<queue>" -> seconds
        """
        latency = {}
        try:
            queues = self.store.smembers(keys.resolve(self.namespace, keys.QUEUES_KEY))
            for name in sorted(queues):
                tail = self.store.lrange(keys.queue_key(self.namespace, name), -1, -1)
                value = self._latency_of(name, tail)
                if value is not None:
                    latency[metric_name(LATENCY_METRIC, name)] = value
        except redis.RedisError as e:
            logger.error(f"Redis read failed: {e}")
            raise SnapshotError(f"Failed to read Sidekiq queues from Redis: {e}") from e
        return latency

    def _latency_of(self, queue_name: str, tail) -> Optional[float]:
        if not tail:
            return 0.0

        try:
            job = json.loads(tail[0])
        except ValueError as e:
            logger.warning(f"Skipping latency for queue {queue_name}: invalid job payload ({e})")
            return None

        if not isinstance(job, dict):
            logger.warning(f"Skipping latency for queue {queue_name}: job payload is not an object")
            return None

        now = float(int(self.clock()))
        enqueued_at = job.get("enqueued_at")
        if enqueued_at is None:
            return 0.0
        if isinstance(enqueued_at, bool) or not isinstance(enqueued_at, (int, float)):
            logger.warning(f"Skipping latency for queue {queue_name}: enqueued_at is not a number")
            return None

        return now - float(enqueued_at)
