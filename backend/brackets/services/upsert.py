"""
Insert-or-update keyed by structural identity.

Every bracket entity is identified by its parent plus an ordinal number
(round_id + number for a match, parent_id + number for a match game, ...).
In update mode the engine looks the entity up by that key and merges into it,
so running the same build twice never creates a second row for the same key.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Callable, Tuple

from brackets.errors import PersistenceError, ValidationError
from brackets.services.match_state import get_updated_match_results, with_inferred_result
from brackets.storage.base import Record, Storage

logger = logging.getLogger(__name__)

MergeRule = Callable[[Record, Record, bool], Record]


def _unchanged(record: Record) -> Record:
    return record


def merge_settings(incoming: Record, existing: Record, enable_byes: bool) -> Record:
    """Overwrite fields, shallow-merge the settings blob."""
    merged = {**existing, **{key: value for key, value in incoming.items() if key != "id"}}
    if "settings" in incoming or "settings" in existing:
        merged["settings"] = {**(existing.get("settings") or {}), **(incoming.get("settings") or {})}
    return merged


@dataclass(frozen=True)
class EntityKind:
    table: str
    key_fields: Tuple[str, ...]
    merge: MergeRule = merge_settings
    # Applied to a record before it is inserted
    normalize: Callable[[Record], Record] = _unchanged
    # Update mode refuses to create the entity when the key is not found
    must_exist: bool = False

    def key_of(self, record: Record) -> Record:
        return {field: record[field] for field in self.key_fields}


STAGE = EntityKind("stage", ("id",), must_exist=True)
GROUP = EntityKind("group", ("stage_id", "number"))
ROUND = EntityKind("round", ("group_id", "number"))
MATCH = EntityKind(
    "match", ("round_id", "number"), merge=get_updated_match_results, normalize=with_inferred_result
)
MATCH_GAME = EntityKind(
    "match_game", ("parent_id", "number"), merge=get_updated_match_results, normalize=with_inferred_result
)


class Upserter:
    def __init__(self, storage: Storage, update_mode: bool = False, enable_byes: bool = False):
        self.storage = storage
        self.update_mode = update_mode
        self.enable_byes = enable_byes

    async def upsert(self, kind: EntityKind, record: Record) -> int:
        """Insert or merge the record; returns its id."""
        return (await self.upsert_record(kind, record))["id"]

    async def upsert_record(self, kind: EntityKind, record: Record) -> Record:
        """Insert or merge the record; returns the record as persisted, id included."""
        if not self.update_mode:
            return await self._insert(kind, record)

        key = kind.key_of(record)
        existing = await self.storage.select_first(kind.table, key)

        if existing is None:
            if kind.must_exist:
                raise ValidationError(f"{kind.table.capitalize()} not found: {key}")
            return await self._insert(kind, record)

        merged = kind.merge(record, existing, self.enable_byes)
        merged["id"] = existing["id"]

        incoming_status = record.get("status")
        if incoming_status is not None and merged.get("status", incoming_status) > incoming_status:
            logger.debug(
                "Kept status %s on %s %s (incoming %s)",
                merged["status"],
                kind.table,
                existing["id"],
                incoming_status,
            )

        if not await self.storage.update(kind.table, existing["id"], merged):
            raise PersistenceError(f"Could not update the {kind.table} {existing['id']}.")
        return merged

    async def _insert(self, kind: EntityKind, record: Record) -> Record:
        values = {key: copy.deepcopy(value) for key, value in kind.normalize(record).items() if key != "id"}
        new_id = await self.storage.insert(kind.table, values)
        if new_id is None or isinstance(new_id, bool):
            raise PersistenceError(f"Could not insert the {kind.table}.")
        values["id"] = new_id
        return values
