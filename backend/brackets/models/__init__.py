from brackets.models.group import Group
from brackets.models.match import Match, MatchGame, MatchResult, Status
from brackets.models.participant import Participant
from brackets.models.round import Round
from brackets.models.stage import STAGE_TYPE_GYMNASTICS_ELIMINATION, Stage

__all__ = [
    "STAGE_TYPE_GYMNASTICS_ELIMINATION",
    "Stage",
    "Group",
    "Round",
    "Match",
    "MatchGame",
    "MatchResult",
    "Status",
    "Participant",
]
