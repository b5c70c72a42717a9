"""Store module for RifsRedis."""

from .store import KVStore

__all__ = ["KVStore"]
