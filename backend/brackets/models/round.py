from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Round(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("group_id", "number", name="uq_group_round_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    stage_id: int = Field(foreign_key="stage.id", index=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    number: int
