"""
Persistence interface consumed by the bracket services.

Records travel as plain dicts keyed by column name. Tables are addressed by
name so the services never import a backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

Record = Dict[str, Any]

TABLES = ("stage", "group", "round", "match", "match_game", "participant")


class Storage(ABC):
    @abstractmethod
    async def select(
        self, table: str, filter_or_id: Union[int, Record, None] = None
    ) -> Union[Optional[Record], List[Record]]:
        """
        Select records.

        An int selects one record by id and returns None when absent.
        A dict (or None) selects every record whose fields equal the filter,
        ordered by id; the list is empty when nothing matches.
        """

    @abstractmethod
    async def select_first(self, table: str, filter: Record) -> Optional[Record]:
        """Return the first record matching the filter, or None"""

    @abstractmethod
    async def insert(self, table: str, record: Union[Record, List[Record]]) -> Union[Optional[int], bool]:
        """
        Insert one record and return its new id (None when no id was assigned),
        or insert a list of records and return whether all of them were stored.
        """

    @abstractmethod
    async def update(self, table: str, id: int, record: Record) -> bool:
        """Overwrite the fields of an existing record. False when it does not exist."""

    @abstractmethod
    async def delete(self, table: str, filter: Record) -> bool:
        """Delete every record matching the filter"""


def matches_filter(record: Record, filter: Optional[Record]) -> bool:
    if not filter:
        return True
    return all(record.get(key) == value for key, value in filter.items())


def ensure_table(table: str) -> None:
    if table not in TABLES:
        raise KeyError(f"Unknown table: {table}")
