"""
Tests for the BracketsManager entry point.
"""

import pytest

from brackets.errors import PersistenceError, ValidationError
from brackets.models.match import Status
from brackets.schemas import InputStage, StageSettings
from brackets.services.manager import BracketsManager
from brackets.services.slot_resolver import ParticipantSlot
from brackets.services.stage_creator import ContestResults
from brackets.storage.memory import MemoryStorage


def _stage(count: int = 32, **kwargs) -> InputStage:
    fields = {
        "name": "NCAA Gymnastics Tournament",
        "tournament_id": 3,
        "seeding": [f"Team {i}" for i in range(1, count + 1)],
    }
    fields.update(kwargs)
    return InputStage(**fields)


@pytest.fixture(name="manager")
def manager_fixture(storage: MemoryStorage):
    return BracketsManager(storage)


class TestCreateAndRead:
    async def test_stage_data(self, manager: BracketsManager):
        stage = await manager.create_stage(_stage(settings=StageSettings(matches_child_count=1)))

        data = await manager.get_stage_data(stage["id"])

        assert data.stage == stage
        assert len(data.groups) == 1
        assert [r["number"] for r in data.rounds] == [1, 2, 3, 4]
        assert len(data.matches) == 30
        assert len(data.match_games) == 30
        assert len(data.participants) == 32

    async def test_matches_ordered_by_round_then_number(self, manager: BracketsManager, storage: MemoryStorage):
        stage = await manager.create_stage(_stage())

        data = await manager.get_stage_data(stage["id"])

        round_numbers = {r["id"]: r["number"] for r in data.rounds}
        order = [(round_numbers[m["round_id"]], m["number"]) for m in data.matches]
        assert order == sorted(order)
        assert order[0] == (1, 1)
        assert order[-1] == (4, 2)

    async def test_stage_data_for_missing_stage(self, manager: BracketsManager):
        with pytest.raises(ValidationError, match="Stage not found"):
            await manager.get_stage_data(7)

    async def test_seeding_round_trip(self, manager: BracketsManager, storage: MemoryStorage):
        seeding = [f"Team {i}" for i in range(1, 32)] + [None]
        stage = await manager.create_stage(_stage(seeding=seeding))

        slots = await manager.get_seeding(stage["id"])

        names = {p["id"]: p["name"] for p in await storage.select("participant")}
        assert len(slots) == 32
        assert slots[-1] is None
        assert [names[slot.id] for slot in slots[:-1]] == seeding[:-1]
        assert [slot.position for slot in slots[:3]] == [1, 2, 3]

    async def test_seeding_of_size_only_stage(self, manager: BracketsManager):
        stage = await manager.create_stage(InputStage(name="Regionals", tournament_id=3, settings=StageSettings(size=32)))

        slots = await manager.get_seeding(stage["id"])

        assert slots[0] == ParticipantSlot(id=None, position=1)
        assert all(slot.id is None for slot in slots)

    async def test_find_match(self, manager: BracketsManager):
        stage = await manager.create_stage(_stage())
        group = (await manager.get_stage_data(stage["id"])).groups[0]

        final = await manager.find_match(group["id"], 4, 2)

        assert final is not None
        assert final["opponent1"]["position"] == 17
        assert final["status"] == Status.READY
        assert await manager.find_match(group["id"], 5, 1) is None
        assert await manager.find_match(group["id"], 1, 17) is None


class TestUpdate:
    async def test_update_stage_reconciles(self, manager: BracketsManager, storage: MemoryStorage):
        stage = await manager.create_stage(_stage())
        match_ids = [m["id"] for m in await storage.select("match")]

        updated = await manager.update_stage(stage["id"], _stage(name="Renamed"))

        assert updated["name"] == "Renamed"
        assert [m["id"] for m in await storage.select("match")] == match_ids

    async def test_update_missing_stage(self, manager: BracketsManager):
        with pytest.raises(ValidationError):
            await manager.update_stage(99, _stage())


class TestDelete:
    async def test_delete_removes_stage_rows_only(self, manager: BracketsManager, storage: MemoryStorage):
        first = await manager.create_stage(_stage(settings=StageSettings(matches_child_count=2)))
        second = await manager.create_stage(_stage(name="Nationals"))

        await manager.delete_stage(first["id"])

        assert await storage.select("stage", first["id"]) is None
        assert await storage.select("match_game") == []
        assert len(await storage.select("match")) == 30
        assert {m["stage_id"] for m in await storage.select("match")} == {second["id"]}
        assert len(await storage.select("participant")) == 32

    async def test_delete_missing_stage(self, manager: BracketsManager):
        with pytest.raises(ValidationError):
            await manager.delete_stage(1)

    async def test_delete_failure_is_persistence_error(self, manager: BracketsManager, storage: MemoryStorage):
        stage = await manager.create_stage(_stage())

        async def refuse(table, filter):
            return False

        storage.delete = refuse

        with pytest.raises(PersistenceError, match="match_game"):
            await manager.delete_stage(stage["id"])


async def test_creator_options_are_forwarded(storage: MemoryStorage):
    def bottom_half_advances(contest):
        half = len(contest) // 2
        return ContestResults(advancing=list(contest[half:]), eliminated=list(contest[:half]))

    manager = BracketsManager(storage, contest_size=2, required_size=8, advancement=bottom_half_advances)
    stage = await manager.create_stage(_stage(8))

    data = await manager.get_stage_data(stage["id"])
    assert len(data.rounds) == 3
    assert len(data.matches) == 7
    final = data.matches[-1]
    assert final["opponent1"]["position"] == 4
