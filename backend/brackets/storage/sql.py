"""
SQLModel-backed storage over an async session.

Each mutation commits immediately: the bracket services are not transactional
and rely on reruns converging on rows that were already written.
"""

import copy
import logging
from typing import Dict, List, Optional, Type, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from brackets.models.group import Group
from brackets.models.match import Match, MatchGame
from brackets.models.participant import Participant
from brackets.models.round import Round
from brackets.models.stage import Stage
from brackets.storage.base import Record, Storage

logger = logging.getLogger(__name__)

MODELS: Dict[str, Type[SQLModel]] = {
    "stage": Stage,
    "group": Group,
    "round": Round,
    "match": Match,
    "match_game": MatchGame,
    "participant": Participant,
}


def _model_for(table: str) -> Type[SQLModel]:
    try:
        return MODELS[table]
    except KeyError:
        raise KeyError(f"Unknown table: {table}") from None


def _to_record(row: SQLModel) -> Record:
    return copy.deepcopy(row.model_dump())


def _to_row(model: Type[SQLModel], record: Record) -> SQLModel:
    values = {
        key: copy.deepcopy(value)
        for key, value in record.items()
        if key in model.model_fields and key != "id"
    }
    return model(**values)


class SqlStorage(Storage):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def select(
        self, table: str, filter_or_id: Union[int, Record, None] = None
    ) -> Union[Optional[Record], List[Record]]:
        model = _model_for(table)

        if isinstance(filter_or_id, int):
            row = await self.session.get(model, filter_or_id)
            return _to_record(row) if row is not None else None

        query = select(model)
        if filter_or_id:
            query = query.filter_by(**filter_or_id)
        rows = (await self.session.exec(query.order_by(model.id))).all()
        return [_to_record(row) for row in rows]

    async def select_first(self, table: str, filter: Record) -> Optional[Record]:
        model = _model_for(table)
        query = select(model).filter_by(**filter).order_by(model.id)
        row = (await self.session.exec(query)).first()
        return _to_record(row) if row is not None else None

    async def insert(self, table: str, record: Union[Record, List[Record]]) -> Union[Optional[int], bool]:
        model = _model_for(table)

        if isinstance(record, list):
            rows = [_to_row(model, item) for item in record]
            self.session.add_all(rows)
            return await self._commit(table, "bulk insert")

        row = _to_row(model, record)
        self.session.add(row)
        if not await self._commit(table, "insert"):
            return None
        await self.session.refresh(row)
        return row.id

    async def update(self, table: str, id: int, record: Record) -> bool:
        model = _model_for(table)
        row = await self.session.get(model, id)
        if row is None:
            return False

        for key, value in record.items():
            if key in model.model_fields and key != "id":
                setattr(row, key, copy.deepcopy(value))
        self.session.add(row)
        return await self._commit(table, f"update of {id}")

    async def delete(self, table: str, filter: Record) -> bool:
        model = _model_for(table)
        rows = (await self.session.exec(select(model).filter_by(**filter))).all()
        for row in rows:
            await self.session.delete(row)
        return await self._commit(table, "delete")

    async def _commit(self, table: str, action: str) -> bool:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            logger.error("Failed %s on table %s: %s", action, table, exc)
            await self.session.rollback()
            return False
        return True
