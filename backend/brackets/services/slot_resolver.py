"""
Turn a stage seeding into the ordered participant slots of the first round.

Seeding by name registers missing participants for the tournament.
Seeding by id only reads. A bare size yields to-be-determined slots.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from brackets.errors import PersistenceError, ValidationError
from brackets.schemas import InputStage, SeedingEntry
from brackets.storage.base import Record, Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticipantSlot:
    """A seat in a round: a participant id, or None while to be determined."""
    id: Optional[int] = None
    position: Optional[int] = None  # Seed origin, 1-based


# None stands for a BYE
Slot = Optional[ParticipantSlot]


def _seed_key(entry: SeedingEntry):
    return entry.get("name") if isinstance(entry, dict) else entry


def ensure_no_duplicates(seeding: Sequence[SeedingEntry]) -> None:
    keys = [_seed_key(entry) for entry in seeding if entry is not None]
    if len(keys) != len(set(keys)):
        raise ValidationError("The seeding has a duplicate participant.")


def fix_seeding(seeding: Sequence[SeedingEntry], size: int) -> List[SeedingEntry]:
    """Pad the seeding with BYEs up to the stage size."""
    if len(seeding) > size:
        raise ValidationError(
            f"The seeding has more participants ({len(seeding)}) than the size of the stage ({size})."
        )
    return list(seeding) + [None] * (size - len(seeding))


def is_seeding_with_ids(seeding: Sequence[SeedingEntry]) -> bool:
    return any(isinstance(entry, int) and not isinstance(entry, bool) for entry in seeding)


def extract_participants_from_seeding(tournament_id: int, seeding: Sequence[SeedingEntry]) -> List[Record]:
    """Distinct participants named in the seeding, in seeding order."""
    participants: List[Record] = []
    seen = set()
    for entry in seeding:
        if entry is None:
            continue
        name = entry["name"] if isinstance(entry, dict) else str(entry)
        if name in seen:
            continue
        seen.add(name)
        participants.append({"tournament_id": tournament_id, "name": name})
    return participants


def map_participants_to_slots(
    seeding: Sequence[SeedingEntry], participants: Sequence[Record], prop: str
) -> List[Slot]:
    """
    Map each seeding entry to the stored participant whose `prop` equals it.

    BYEs stay None. Each slot records its 1-based seat as position.
    """
    by_prop = {participant[prop]: participant for participant in participants}
    slots: List[Slot] = []
    for index, entry in enumerate(seeding):
        if entry is None:
            slots.append(None)
            continue

        key = _seed_key(entry)
        found = by_prop.get(key)
        if found is None:
            raise ValidationError(f"Participant {prop} not found in database: {key!r}")
        slots.append(ParticipantSlot(id=found["id"], position=index + 1))
    return slots


class SlotResolver:
    def __init__(self, storage: Storage, stage: InputStage):
        self.storage = storage
        self.stage = stage
        self.seeding: Optional[List[SeedingEntry]] = (
            list(stage.seeding_ids) if stage.seeding_ids is not None else stage.seeding
        )
        self._prepared = False

    @property
    def size(self) -> int:
        return self.stage.settings.size or (len(self.seeding) if self.seeding else 0)

    @property
    def by_ids(self) -> bool:
        return self.stage.seeding_ids is not None or is_seeding_with_ids(self.seeding or [])

    def prepare(self) -> int:
        """
        Validate the seeding without touching storage. Returns the stage size.

        Writes the size back onto the stage settings, even when it was only
        inferred from the seeding length.
        """
        size = self.size

        if not self.seeding:
            if not size:
                raise ValidationError("Either size or seeding must be given.")
            self._prepared = True
            return size

        self.stage.settings.size = size
        ensure_no_duplicates(self.seeding)
        self.seeding = fix_seeding(self.seeding, size)
        self._prepared = True
        return size

    async def resolve(self) -> List[Slot]:
        if not self._prepared:
            self.prepare()

        if not self.seeding:
            return [ParticipantSlot(id=None, position=i + 1) for i in range(self.size)]

        if self.by_ids:
            return await self._slots_using_ids()
        return await self._slots_using_names()

    async def _slots_using_names(self) -> List[Slot]:
        participants = extract_participants_from_seeding(self.stage.tournament_id, self.seeding)

        if not await self.register_participants(participants):
            raise PersistenceError("Error registering the participants.")

        added = await self.storage.select("participant", {"tournament_id": self.stage.tournament_id})
        if not added:
            raise PersistenceError("Error getting registered participants.")

        return map_participants_to_slots(self.seeding, added, "name")

    async def _slots_using_ids(self) -> List[Slot]:
        participants = await self.storage.select("participant", {"tournament_id": self.stage.tournament_id})
        if not participants:
            raise ValidationError(f"No available participants in tournament {self.stage.tournament_id}.")

        return map_participants_to_slots(self.seeding, participants, "id")

    async def register_participants(self, participants: List[Record]) -> bool:
        """Insert the participants the tournament does not have yet."""
        existing = await self.storage.select("participant", {"tournament_id": self.stage.tournament_id})

        if not existing:
            logger.info(
                "Registering %d participants for tournament %s", len(participants), self.stage.tournament_id
            )
            return bool(await self.storage.insert("participant", participants))

        known = {participant["name"] for participant in existing}
        missing = [participant for participant in participants if participant["name"] not in known]
        for participant in missing:
            if await self.storage.insert("participant", participant) is None:
                return False

        if missing:
            logger.info("Registered %d missing participants for tournament %s", len(missing), self.stage.tournament_id)
        return True
