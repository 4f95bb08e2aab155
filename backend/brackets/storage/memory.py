"""
In-memory storage. Used by tests and by callers that only need a bracket
layout without a database.
"""

import copy
from typing import Dict, List, Optional, Union

from brackets.storage.base import TABLES, Record, Storage, ensure_table, matches_filter


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self.tables: Dict[str, Dict[int, Record]] = {table: {} for table in TABLES}
        self._next_ids: Dict[str, int] = {table: 1 for table in TABLES}

    async def select(
        self, table: str, filter_or_id: Union[int, Record, None] = None
    ) -> Union[Optional[Record], List[Record]]:
        ensure_table(table)
        rows = self.tables[table]

        if isinstance(filter_or_id, int):
            row = rows.get(filter_or_id)
            return copy.deepcopy(row) if row is not None else None

        return [copy.deepcopy(rows[row_id]) for row_id in sorted(rows) if matches_filter(rows[row_id], filter_or_id)]

    async def select_first(self, table: str, filter: Record) -> Optional[Record]:
        found = await self.select(table, filter)
        return found[0] if found else None

    async def insert(self, table: str, record: Union[Record, List[Record]]) -> Union[Optional[int], bool]:
        ensure_table(table)

        if isinstance(record, list):
            for item in record:
                self._insert_one(table, item)
            return True

        return self._insert_one(table, record)

    def _insert_one(self, table: str, record: Record) -> int:
        row_id = self._next_ids[table]
        self._next_ids[table] += 1

        row = copy.deepcopy(record)
        row["id"] = row_id
        self.tables[table][row_id] = row
        return row_id

    async def update(self, table: str, id: int, record: Record) -> bool:
        ensure_table(table)
        if id not in self.tables[table]:
            return False

        row = copy.deepcopy(record)
        row["id"] = id
        self.tables[table][id] = row
        return True

    async def delete(self, table: str, filter: Record) -> bool:
        ensure_table(table)
        rows = self.tables[table]
        for row_id in [row_id for row_id, row in rows.items() if matches_filter(row, filter)]:
            del rows[row_id]
        return True
