from cupmanager.models.event import Event
from cupmanager.models.event_team import EventTeam
from cupmanager.models.match import Match
from cupmanager.models.team import Team

__all__ = [
    "Event",
    "EventTeam",
    "Match",
    "Team",
]
