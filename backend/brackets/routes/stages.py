from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from brackets.database import get_session
from brackets.errors import BracketError, ValidationError
from brackets.schemas import InputStage
from brackets.services.manager import BracketsManager
from brackets.storage.base import Storage
from brackets.storage.sql import SqlStorage

router = APIRouter()


async def get_storage(session: AsyncSession = Depends(get_session)) -> Storage:
    return SqlStorage(session)


class StageDataResponse(BaseModel):
    stage: Dict[str, Any]
    groups: List[Dict[str, Any]]
    rounds: List[Dict[str, Any]]
    matches: List[Dict[str, Any]]
    match_games: List[Dict[str, Any]]
    participants: List[Dict[str, Any]]


class SlotResponse(BaseModel):
    id: Optional[int] = None
    position: Optional[int] = None


def _to_http_error(exc: BracketError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


async def _require_stage(storage: Storage, stage_id: int) -> Dict[str, Any]:
    stage = await storage.select("stage", stage_id)
    if not stage:
        raise HTTPException(status_code=404, detail="Stage not found")
    return stage


@router.post("/stages", status_code=201)
async def create_stage(payload: InputStage, storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    """
    Create a gymnastics elimination stage.

    The seeding must resolve to exactly the required number of teams; the
    stage, its group, rounds, matches and match games are created in one call.
    """
    try:
        return await BracketsManager(storage).create_stage(payload)
    except BracketError as e:
        raise _to_http_error(e)


@router.put("/stages/{stage_id}")
async def update_stage(
    stage_id: int,
    payload: InputStage,
    enable_byes: bool = False,
    storage: Storage = Depends(get_storage),
) -> Dict[str, Any]:
    """Rerun the build against an existing stage. Recorded progress is kept."""
    await _require_stage(storage, stage_id)
    try:
        return await BracketsManager(storage).update_stage(stage_id, payload, enable_byes=enable_byes)
    except BracketError as e:
        raise _to_http_error(e)


@router.get("/stages/{stage_id}", response_model=StageDataResponse)
async def get_stage_data(stage_id: int, storage: Storage = Depends(get_storage)) -> StageDataResponse:
    await _require_stage(storage, stage_id)
    data = await BracketsManager(storage).get_stage_data(stage_id)
    return StageDataResponse(**asdict(data))


@router.get("/stages/{stage_id}/seeding", response_model=List[Optional[SlotResponse]])
async def get_stage_seeding(stage_id: int, storage: Storage = Depends(get_storage)) -> List[Optional[SlotResponse]]:
    """First-round seats; null is a BYE"""
    await _require_stage(storage, stage_id)
    seeding = await BracketsManager(storage).get_seeding(stage_id)
    return [SlotResponse(id=slot.id, position=slot.position) if slot is not None else None for slot in seeding]


@router.delete("/stages/{stage_id}")
async def delete_stage(stage_id: int, storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    await _require_stage(storage, stage_id)
    try:
        await BracketsManager(storage).delete_stage(stage_id)
    except BracketError as e:
        raise _to_http_error(e)
    return {"deleted": True, "stage_id": stage_id}
