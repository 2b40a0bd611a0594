"""
In-process caches.

- **ttl_store.py**: KeyValueStore protocol and its in-memory TTL implementation.
- **channel_cache.py**: monitored channel sets with TTL-based reload.
"""
