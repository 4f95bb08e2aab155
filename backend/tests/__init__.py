# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from brackets.models.group import Group  # noqa: F401
from brackets.models.match import Match, MatchGame  # noqa: F401
from brackets.models.participant import Participant  # noqa: F401
from brackets.models.round import Round  # noqa: F401
from brackets.models.stage import Stage  # noqa: F401
