"""
SqlStorage against an in-memory SQLite database.

Same contract as MemoryStorage; the build and rebuild of a full stage is run
end to end to check that JSON opponents and settings survive the round trip.
"""

from brackets.models.match import Status
from brackets.schemas import InputStage, StageSettings
from brackets.services.manager import BracketsManager
from brackets.storage.sql import SqlStorage


def _stage(**kwargs) -> InputStage:
    fields = {
        "name": "NCAA Gymnastics Tournament",
        "tournament_id": 1,
        "seeding": [f"Team {i}" for i in range(1, 33)],
    }
    fields.update(kwargs)
    return InputStage(**fields)


class TestContract:
    async def test_insert_and_select_by_id(self, sql_storage: SqlStorage):
        new_id = await sql_storage.insert("participant", {"tournament_id": 1, "name": "Utah"})

        assert new_id == 1
        assert await sql_storage.select("participant", new_id) == {"id": 1, "tournament_id": 1, "name": "Utah"}
        assert await sql_storage.select("participant", 99) is None

    async def test_select_by_filter_is_ordered(self, sql_storage: SqlStorage):
        assert await sql_storage.insert(
            "participant",
            [
                {"tournament_id": 1, "name": "Utah"},
                {"tournament_id": 2, "name": "LSU"},
                {"tournament_id": 1, "name": "Florida"},
            ],
        )

        rows = await sql_storage.select("participant", {"tournament_id": 1})

        assert [r["name"] for r in rows] == ["Utah", "Florida"]
        assert await sql_storage.select("participant", {"tournament_id": 5}) == []
        assert (await sql_storage.select_first("participant", {"name": "LSU"}))["tournament_id"] == 2

    async def test_update(self, sql_storage: SqlStorage):
        stage_id = await sql_storage.insert(
            "stage",
            {"tournament_id": 1, "name": "Old", "type": "gymnastics_elimination", "number": 1, "settings": {"size": 32}},
        )

        assert await sql_storage.update("stage", stage_id, {"name": "New", "settings": {"size": 32, "venue": "Provo"}})
        assert not await sql_storage.update("stage", 42, {"name": "Ghost"})

        stored = await sql_storage.select("stage", stage_id)
        assert stored["name"] == "New"
        assert stored["settings"] == {"size": 32, "venue": "Provo"}

    async def test_unique_key_violation_is_reported(self, sql_storage: SqlStorage):
        await sql_storage.insert("participant", {"tournament_id": 1, "name": "Utah"})

        assert await sql_storage.insert("participant", {"tournament_id": 1, "name": "Utah"}) is None
        # The session is usable again after the rollback
        assert await sql_storage.insert("participant", {"tournament_id": 1, "name": "LSU"}) is not None

    async def test_delete_by_filter(self, sql_storage: SqlStorage):
        await sql_storage.insert("participant", [{"tournament_id": 1, "name": "Utah"}, {"tournament_id": 2, "name": "LSU"}])

        assert await sql_storage.delete("participant", {"tournament_id": 1})

        assert [r["name"] for r in await sql_storage.select("participant")] == ["LSU"]


class TestStageOnDatabase:
    async def test_create_32_teams(self, sql_storage: SqlStorage):
        manager = BracketsManager(sql_storage)

        stage = await manager.create_stage(_stage(settings=StageSettings(matches_child_count=2)))
        data = await manager.get_stage_data(stage["id"])

        assert stage["settings"] == {"size": 32, "matches_child_count": 2}
        assert len(data.rounds) == 4
        assert len(data.matches) == 30
        assert len(data.match_games) == 60
        assert {m["status"] for m in data.matches} == {Status.READY}
        assert data.matches[0]["opponent1"]["position"] == 1

    async def test_update_keeps_rows_and_progress(self, sql_storage: SqlStorage):
        manager = BracketsManager(sql_storage)
        stage = await manager.create_stage(_stage())

        match = (await manager.get_stage_data(stage["id"])).matches[0]
        match["opponent1"] = {**match["opponent1"], "score": 197.9, "result": "win"}
        match["opponent2"] = {**match["opponent2"], "score": 197.1, "result": "loss"}
        match["status"] = int(Status.COMPLETED)
        assert await sql_storage.update("match", match["id"], match)

        await manager.update_stage(stage["id"], _stage())
        await manager.update_stage(stage["id"], _stage())

        data = await manager.get_stage_data(stage["id"])
        assert len(data.matches) == 30
        assert len(await sql_storage.select("stage")) == 1
        assert len(await sql_storage.select("participant")) == 32
        stored = await sql_storage.select("match", match["id"])
        assert stored["status"] == Status.COMPLETED
        assert stored["opponent1"]["result"] == "win"

    async def test_delete_stage(self, sql_storage: SqlStorage):
        manager = BracketsManager(sql_storage)
        stage = await manager.create_stage(_stage(settings=StageSettings(matches_child_count=1)))

        await manager.delete_stage(stage["id"])

        for table in ("stage", "group", "round", "match", "match_game"):
            assert await sql_storage.select(table) == []
