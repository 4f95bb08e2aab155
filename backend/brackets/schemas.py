from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# A seeding entry is a participant name, a participant id, a participant dict
# carrying a "name", or None for a BYE
SeedingEntry = Union[int, str, Dict[str, Any], None]


class StageSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    size: Optional[int] = None
    matches_child_count: int = 0


class InputStage(BaseModel):
    name: Optional[str] = None
    tournament_id: Optional[int] = None
    number: Optional[int] = None
    seeding: Optional[List[SeedingEntry]] = None
    seeding_ids: Optional[List[Optional[int]]] = None
    settings: StageSettings = Field(default_factory=StageSettings)
