from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Group(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("stage_id", "number", name="uq_stage_group_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    stage_id: int = Field(foreign_key="stage.id", index=True)
    number: int
