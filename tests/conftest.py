# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Shared fixtures: an in-memory stand-in for the Redis store.
"""

import json

import pytest


class InMemoryStore:
    """Dictionary-backed store with RedisQueueStore read semantics."""

    def __init__(self):
        self.strings = {}
        self.sets = {}
        self.hashes = {}
        self.lists = {}
        self.zsets = {}
        self.calls = []

    # Writers used by tests to seed data

    def lpush(self, key, *values):
        """Push to the head, as Sidekiq does when enqueueing."""
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)

    def push_job(self, key, **job):
        self.lpush(key, json.dumps(job))

    # Reads

    def get(self, key):
        self.calls.append(("get", key))
        return self.strings.get(key)

    def zcard(self, key):
        self.calls.append(("zcard", key))
        return self.zsets.get(key, 0)

    def smembers(self, key):
        self.calls.append(("smembers", key))
        return set(self.sets.get(key, set()))

    def hget(self, key, field):
        self.calls.append(("hget", key, field))
        return self.hashes.get(key, {}).get(field)

    def llen(self, key):
        self.calls.append(("llen", key))
        return len(self.lists.get(key, []))

    def lrange(self, key, start, end):
        self.calls.append(("lrange", key, start, end))
        items = self.lists.get(key, [])
        size = len(items)
        if start < 0:
            start = max(size + start, 0)
        if end < 0:
            end = size + end
        return items[start:end + 1]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    """Fixed clock at a whole-second Unix time."""
    return lambda: 1700000000.0
