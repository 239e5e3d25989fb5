"""Key-value storage backends."""
from .kv import MemoryKeyValueStore, SQLiteKeyValueStore

__all__ = ["MemoryKeyValueStore", "SQLiteKeyValueStore"]
