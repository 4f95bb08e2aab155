"""
Gymnastics elimination stage creator.

Lays out an NCAA women's gymnastics style bracket: competitors meet in
contests of four, the top half of every contest advances, and the field
halves each round until a single contest remains (32 -> 16 -> 8 -> 4).

Matches only hold two opponents, so each contest is stored as
contest_size / 2 matches: competitors {1, 2} and {3, 4} of a contest of four.

Re-running against an existing stage (set_existing) reconciles instead of
inserting: every row is upserted by its structural key and recorded progress
is never rolled back.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from brackets.errors import InternalError, ValidationError
from brackets.models.stage import STAGE_TYPE_GYMNASTICS_ELIMINATION
from brackets.schemas import InputStage
from brackets.services.match_state import get_match_status, to_result, to_result_with_position
from brackets.services.slot_resolver import Slot, SlotResolver
from brackets.services.upsert import GROUP, MATCH, MATCH_GAME, ROUND, STAGE, Upserter
from brackets.storage.base import Record, Storage

logger = logging.getLogger(__name__)

CONTEST_SIZE = 4
REQUIRED_SIZE = 32


@dataclass
class ContestResults:
    """Slots leaving a contest (or a whole round), split by outcome."""
    advancing: List[Slot] = field(default_factory=list)
    eliminated: List[Slot] = field(default_factory=list)


AdvancementPolicy = Callable[[Sequence[Slot]], ContestResults]


def split_contest(contest: Sequence[Slot]) -> ContestResults:
    """
    Default advancement: the first half of the contest advances.

    Scores do not drive this split. BYEs keep their seat so the next round
    keeps its shape.
    """
    half = len(contest) // 2
    return ContestResults(advancing=list(contest[:half]), eliminated=list(contest[half:]))


def partition_contests(slots: Sequence[Slot], contest_size: int) -> List[List[Slot]]:
    """Contiguous blocks in seeding order. No serpentine."""
    return [list(slots[start:start + contest_size]) for start in range(0, len(slots), contest_size)]


def round_count(size: int, contest_size: int) -> int:
    """Rounds until a single contest remains: 32 competitors in fours -> 4 rounds."""
    return (size // contest_size).bit_length()


def validate_geometry(contest_size: int, required_size: int) -> None:
    if contest_size < 2 or contest_size % 2 != 0:
        raise ValidationError(f"contest_size must be an even number >= 2, got {contest_size}")

    contests, remainder = divmod(required_size, contest_size)
    if remainder or contests < 1 or contests & (contests - 1):
        raise ValidationError(
            f"required_size must be contest_size times a power of two, got {required_size} for contests of {contest_size}"
        )


class EliminationStageCreator:
    def __init__(
        self,
        storage: Storage,
        stage: InputStage,
        contest_size: int = CONTEST_SIZE,
        required_size: int = REQUIRED_SIZE,
        advancement: AdvancementPolicy = split_contest,
    ):
        if not stage.name:
            raise ValidationError("You must provide a name for the stage.")

        if stage.tournament_id is None:
            raise ValidationError("You must provide a tournament id for the stage.")

        validate_geometry(contest_size, required_size)

        self.storage = storage
        self.stage = stage.model_copy(deep=True)
        self.contest_size = contest_size
        self.required_size = required_size
        self.advancement = advancement

        self.update_mode = False
        self.enable_byes_in_update = False
        self.current_stage_id: Optional[int] = None

        self.upserter = Upserter(storage)
        self.rounds: List[ContestResults] = []

    @property
    def round_count(self) -> int:
        return round_count(self.required_size, self.contest_size)

    @property
    def matches_per_contest(self) -> int:
        return self.contest_size // 2

    def set_existing(self, stage_id: int, enable_byes: bool) -> None:
        """
        Switch to update mode against an existing stage.

        enable_byes: whether a BYE in the new seeding may replace an opponent
        already stored on a match.
        """
        self.update_mode = True
        self.current_stage_id = stage_id
        self.enable_byes_in_update = enable_byes

    async def run(self) -> Record:
        self.upserter = Upserter(self.storage, self.update_mode, self.enable_byes_in_update)

        stage = await self._create_gymnastics_elimination()

        if stage.get("id") is None:
            raise InternalError("Something went wrong when creating the stage.")

        return stage

    async def _create_gymnastics_elimination(self) -> Record:
        resolver = SlotResolver(self.storage, self.stage)

        # Everything that can reject the input runs before the first write
        size = resolver.prepare()
        if size != self.required_size:
            raise ValidationError(f"Gymnastics elimination requires exactly {self.required_size} teams, got {size}.")

        stage_number = await self._get_stage_number()

        slots = await resolver.resolve()
        if len(slots) != self.required_size:
            raise ValidationError(
                f"Gymnastics elimination requires exactly {self.required_size} teams, got {len(slots)}."
            )

        stage = await self._create_stage(stage_number)

        # A single group holds every round
        group_id = await self.upserter.upsert(GROUP, {"stage_id": stage["id"], "number": 1})

        self.rounds = []
        for round_number in range(1, self.round_count + 1):
            results = await self.create_round(stage["id"], group_id, round_number, slots)
            self.rounds.append(results)
            slots = results.advancing

        logger.info(
            "%s gymnastics elimination stage %s (tournament %s): %d rounds",
            "Updated" if self.update_mode else "Created",
            stage["id"],
            stage["tournament_id"],
            self.round_count,
        )
        return stage

    async def create_round(self, stage_id: int, group_id: int, round_number: int, slots: Sequence[Slot]) -> ContestResults:
        """
        Create one round from its input slots.

        Returns the slots every contest of the round sends forward and back,
        concatenated contest by contest.
        """
        round_id = await self.upserter.upsert(
            ROUND, {"number": round_number, "stage_id": stage_id, "group_id": group_id}
        )

        results = ContestResults()
        for index, contest in enumerate(partition_contests(slots, self.contest_size)):
            if len(contest) != self.contest_size:
                raise InternalError(
                    f"Round {round_number} contest {index + 1} holds {len(contest)} slots, expected {self.contest_size}"
                )

            await self._create_contest(stage_id, group_id, round_id, index, contest)

            outcome = self.advancement(contest)
            results.advancing.extend(outcome.advancing)
            results.eliminated.extend(outcome.eliminated)

        logger.debug(
            "Round %d: %d contests, %d advancing, %d eliminated",
            round_number,
            len(slots) // self.contest_size,
            len(results.advancing),
            len(results.eliminated),
        )
        return results

    async def _create_contest(
        self, stage_id: int, group_id: int, round_id: int, contest_index: int, contest: Sequence[Slot]
    ) -> None:
        for pair_index in range(self.matches_per_contest):
            await self.create_match(
                stage_id,
                group_id,
                round_id,
                contest_index * self.matches_per_contest + pair_index + 1,
                contest[2 * pair_index: 2 * pair_index + 2],
                self.stage.settings.matches_child_count,
            )

    async def create_match(
        self,
        stage_id: int,
        group_id: int,
        round_id: int,
        match_number: int,
        opponents: Sequence[Slot],
        child_count: int,
    ) -> Record:
        """
        Upsert a match and its match games.

        Opponents are sent as seated; inferred results (a win against a BYE)
        are applied by the upsert on insert and again after a merge.
        """
        match = await self.upserter.upsert_record(
            MATCH,
            {
                "number": match_number,
                "stage_id": stage_id,
                "group_id": group_id,
                "round_id": round_id,
                "child_count": child_count,
                "status": int(get_match_status(opponents)),
                "opponent1": to_result_with_position(opponents[0]),
                "opponent2": to_result_with_position(opponents[1]),
            },
        )

        # A stored child_count wins over the configured one
        for game_number in range(1, (match.get("child_count") or 0) + 1):
            await self.upserter.upsert(
                MATCH_GAME,
                {
                    "number": game_number,
                    "stage_id": stage_id,
                    "parent_id": match["id"],
                    "status": match["status"],
                    "opponent1": to_result(opponents[0]),
                    "opponent2": to_result(opponents[1]),
                },
            )

        return match

    async def _create_stage(self, stage_number: int) -> Record:
        record: Record = {
            "tournament_id": self.stage.tournament_id,
            "name": self.stage.name,
            "type": STAGE_TYPE_GYMNASTICS_ELIMINATION,
            "number": stage_number,
            "settings": self.stage.settings.model_dump(exclude_none=True),
        }
        if self.update_mode:
            record["id"] = self.current_stage_id

        return await self.upserter.upsert_record(STAGE, record)

    async def _get_stage_number(self) -> int:
        """
        Number of the stage within its tournament.

        An explicit number must not collide with another stage. Otherwise the
        next free number is used, or the current one in update mode.
        """
        stages = await self.storage.select("stage", {"tournament_id": self.stage.tournament_id})

        current: Optional[Record] = None
        if self.update_mode:
            current = await self.storage.select("stage", self.current_stage_id)
            if current is None:
                raise ValidationError(f"Stage not found: {self.current_stage_id}")

        other_numbers = [
            stage.get("number") or 0 for stage in stages if current is None or stage["id"] != current["id"]
        ]

        if self.stage.number is not None:
            if self.stage.number in other_numbers:
                raise ValidationError(f"The given stage number already exists: {self.stage.number}")
            return self.stage.number

        if current is not None:
            return current["number"]

        if not other_numbers:
            return 1
        return max(other_numbers) + 1
