# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Read-only Redis access for Sidekiq data structures.

Every read distinguishes a missing key (None or an empty collection) from a
transport failure, which is left to propagate as a redis.RedisError.
"""

import logging
from typing import List, Optional, Set

import redis

logger = logging.getLogger(__name__)


class RedisQueueStore:
    """
    Thin read-only view over a Redis client.

    The client should be created with decode_responses=True; bytes replies
    are decoded here as a fallback.
    """

    def __init__(self, redis_client: redis.Redis):
        """
        Initialize the store.

        Args:
            redis_client: Redis client instance
        """
        self.redis_client = redis_client

    def get(self, key: str) -> Optional[str]:
        """Get a string value, or None if the key does not exist."""
        logger.debug(f"GET {key}")
        return _decode(self.redis_client.get(key))

    def zcard(self, key: str) -> int:
        """Cardinality of a sorted set (0 if missing)."""
        logger.debug(f"ZCARD {key}")
        return int(self.redis_client.zcard(key) or 0)

    def smembers(self, key: str) -> Set[str]:
        """Members of a set (empty if missing)."""
        logger.debug(f"SMEMBERS {key}")
        members = self.redis_client.smembers(key) or set()
        return {_decode(m) for m in members}

    def hget(self, key: str, field: str) -> Optional[str]:
        """Get a hash field, or None if the key or field does not exist."""
        logger.debug(f"HGET {key} {field}")
        return _decode(self.redis_client.hget(key, field))

    def llen(self, key: str) -> int:
        """Length of a list (0 if missing)."""
        logger.debug(f"LLEN {key}")
        return int(self.redis_client.llen(key) or 0)

    def lrange(self, key: str, start: int, end: int) -> List[str]:
        """Range of list entries, inclusive on both ends."""
        logger.debug(f"LRANGE {key} {start} {end}")
        return [_decode(v) for v in self.redis_client.lrange(key, start, end) or []]


def _decode(value):
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value
