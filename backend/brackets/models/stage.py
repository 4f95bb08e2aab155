from typing import Any, Dict, Optional

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel

STAGE_TYPE_GYMNASTICS_ELIMINATION = "gymnastics_elimination"


class Stage(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "number", name="uq_tournament_stage_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(index=True)
    name: str
    type: str = Field(default=STAGE_TYPE_GYMNASTICS_ELIMINATION)
    number: int
    # { "size": 32, "matches_child_count": 0, ... } - shallow-merged on update
    settings: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
