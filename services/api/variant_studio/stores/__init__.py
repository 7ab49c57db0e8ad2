"""Data stores for caching.

Stores handle:
- Redis: reference-data caching, TTL policies

No variant logic in stores - that belongs in services.
"""
