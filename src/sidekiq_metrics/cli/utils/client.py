# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Redis client construction for the CLI.
"""

import logging

import redis

from .config import Config

logger = logging.getLogger(__name__)


def create_redis_client(config: Config) -> redis.Redis:
    """
    Create a Redis client from configuration.

    No connection is made until the first command.

    Args:
        config: CLI configuration

    Returns:
        Redis client decoding replies to str
    """
    logger.debug(f"Connecting to Redis at {config.host}:{config.port} db={config.db}")
    return redis.Redis(
        host=config.host,
        port=config.port,
        db=config.db,
        password=config.password or None,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_connect_timeout,
        decode_responses=True,
        encoding_errors="replace",
    )


def ping_redis(client: redis.Redis) -> bool:
    """Check whether Redis answers a PING."""
    try:
        return bool(client.ping())
    except redis.RedisError as e:
        logger.debug(f"Redis ping failed: {e}")
        return False
