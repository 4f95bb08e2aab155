from enum import IntEnum
from typing import Any, Dict, Optional

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class Status(IntEnum):
    """Match status. Ordered: a higher value is a more advanced match."""

    LOCKED = 0  # Both opponents unknown, or a bye is involved
    WAITING = 1  # One opponent known
    READY = 2  # Both opponents known, not started
    RUNNING = 3  # Scores are being entered
    COMPLETED = 4
    ARCHIVED = 5


class MatchResult:
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("round_id", "number", name="uq_round_match_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    stage_id: int = Field(foreign_key="stage.id", index=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    round_id: int = Field(foreign_key="round.id", index=True)
    number: int
    child_count: int = Field(default=0)
    status: int = Field(default=Status.LOCKED)

    # null = BYE, {"id": null} = to be determined, {"id": 12, ...} = participant
    opponent1: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    opponent2: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))


class MatchGame(SQLModel, table=True):
    __tablename__ = "match_game"
    __table_args__ = (SAUniqueConstraint("parent_id", "number", name="uq_match_game_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    stage_id: int = Field(foreign_key="stage.id", index=True)
    parent_id: int = Field(foreign_key="match.id", index=True)
    number: int
    status: int = Field(default=Status.LOCKED)

    opponent1: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    opponent2: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
