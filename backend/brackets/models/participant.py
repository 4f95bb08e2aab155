from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Participant(SQLModel, table=True):
    __table_args__ = (
        # Names are the natural key when a seeding is given by name
        SAUniqueConstraint("tournament_id", "name", name="uq_tournament_participant_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(index=True)
    name: str
