# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Sidekiq Redis Key Names.

Centralized definitions for the logical keys Sidekiq maintains in Redis, and
the namespace composition applied to every one of them.
"""

from typing import Optional

# =============================================================================
# COUNTERS
# =============================================================================

# Cumulative job counters, incremented by Sidekiq itself
PROCESSED_KEY = "stat:processed"
FAILED_KEY = "stat:failed"

# =============================================================================
# PROCESSES AND QUEUES
# =============================================================================

# Set of process identities; each identity is also the key of a hash
# carrying the process heartbeat, including its "busy" count
PROCESSES_KEY = "processes"
BUSY_FIELD = "busy"

# Set of queue names; each queue is a list stored under "queue:<name>"
QUEUES_KEY = "queues"
QUEUE_PREFIX = "queue:"

# =============================================================================
# SORTED SETS
# =============================================================================

SCHEDULE_KEY = "schedule"
RETRY_KEY = "retry"
DEAD_KEY = "dead"


def resolve(namespace: Optional[str], logical_key: str) -> str:
    """
    Build the Redis key for a logical key under an optional namespace.

    Args:
        namespace: Namespace prefix (e.g., "myapp"); empty or None for none
        logical_key: Logical key name (e.g., "stat:processed")

    Returns:
        Full key (e.g., "myapp:stat:processed")
    """
    if not namespace:
        return logical_key
    return f"{namespace}:{logical_key}"


def queue_key(namespace: Optional[str], queue_name: str) -> str:
    """Key of the job list for a queue, e.g. "myapp:queue:default"."""
    return resolve(namespace, QUEUE_PREFIX) + queue_name


def process_key(namespace: Optional[str], identity: str) -> str:
    """Key of the heartbeat hash for a process identity."""
    return resolve(namespace, identity)
