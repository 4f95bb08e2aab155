from brackets.storage.base import TABLES, Record, Storage
from brackets.storage.memory import MemoryStorage
from brackets.storage.sql import SqlStorage

__all__ = ["TABLES", "Record", "Storage", "MemoryStorage", "SqlStorage"]
