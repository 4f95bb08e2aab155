"""
Entry point for callers: create, update, read and delete gymnastics
elimination stages against one storage backend.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from brackets.errors import PersistenceError, ValidationError
from brackets.schemas import InputStage
from brackets.services.slot_resolver import ParticipantSlot, Slot
from brackets.services.stage_creator import EliminationStageCreator
from brackets.storage.base import Record, Storage

logger = logging.getLogger(__name__)


@dataclass
class StageData:
    stage: Record
    groups: List[Record] = field(default_factory=list)
    rounds: List[Record] = field(default_factory=list)
    matches: List[Record] = field(default_factory=list)
    match_games: List[Record] = field(default_factory=list)
    participants: List[Record] = field(default_factory=list)


class BracketsManager:
    def __init__(self, storage: Storage, **creator_options):
        self.storage = storage
        # contest_size / required_size / advancement, forwarded to every creator
        self.creator_options = creator_options

    async def create_stage(self, stage: InputStage) -> Record:
        creator = EliminationStageCreator(self.storage, stage, **self.creator_options)
        return await creator.run()

    async def update_stage(self, stage_id: int, stage: InputStage, enable_byes: bool = False) -> Record:
        """Rerun the build against an existing stage, reconciling with stored rows."""
        creator = EliminationStageCreator(self.storage, stage, **self.creator_options)
        creator.set_existing(stage_id, enable_byes)
        return await creator.run()

    async def get_stage(self, stage_id: int) -> Record:
        stage = await self.storage.select("stage", stage_id)
        if stage is None:
            raise ValidationError(f"Stage not found: {stage_id}")
        return stage

    async def get_stage_data(self, stage_id: int) -> StageData:
        stage = await self.get_stage(stage_id)

        match_games = await self.storage.select("match_game", {"stage_id": stage_id})
        return StageData(
            stage=stage,
            groups=await self.storage.select("group", {"stage_id": stage_id}),
            rounds=sorted(await self.storage.select("round", {"stage_id": stage_id}), key=lambda r: r["number"]),
            matches=await self._sorted_matches(stage_id),
            match_games=sorted(match_games, key=lambda g: (g["parent_id"], g["number"])),
            participants=await self.storage.select("participant", {"tournament_id": stage["tournament_id"]}),
        )

    async def get_seeding(self, stage_id: int) -> List[Slot]:
        """First-round slots in seat order, rebuilt from the stored matches."""
        await self.get_stage(stage_id)

        group = await self.storage.select_first("group", {"stage_id": stage_id, "number": 1})
        if group is None:
            return []
        first_round = await self.storage.select_first("round", {"group_id": group["id"], "number": 1})
        if first_round is None:
            return []

        matches = await self.storage.select("match", {"round_id": first_round["id"]})
        seeding: List[Slot] = []
        for match in sorted(matches, key=lambda m: m["number"]):
            for side in ("opponent1", "opponent2"):
                opponent = match.get(side)
                if opponent is None:
                    seeding.append(None)
                else:
                    seeding.append(ParticipantSlot(id=opponent.get("id"), position=opponent.get("position")))
        return seeding

    async def find_match(self, group_id: int, round_number: int, match_number: int) -> Optional[Record]:
        round_ = await self.storage.select_first("round", {"group_id": group_id, "number": round_number})
        if round_ is None:
            return None
        return await self.storage.select_first("match", {"round_id": round_["id"], "number": match_number})

    async def delete_stage(self, stage_id: int) -> None:
        """Delete a stage and everything below it. Participants are kept."""
        await self.get_stage(stage_id)

        for table in ("match_game", "match", "round", "group"):
            if not await self.storage.delete(table, {"stage_id": stage_id}):
                raise PersistenceError(f"Could not delete the {table} rows of stage {stage_id}.")
        if not await self.storage.delete("stage", {"id": stage_id}):
            raise PersistenceError(f"Could not delete the stage {stage_id}.")

        logger.info("Deleted stage %s", stage_id)

    async def _sorted_matches(self, stage_id: int) -> List[Record]:
        rounds = {r["id"]: r["number"] for r in await self.storage.select("round", {"stage_id": stage_id})}
        matches = await self.storage.select("match", {"stage_id": stage_id})
        return sorted(matches, key=lambda m: (rounds.get(m["round_id"], 0), m["number"]))
