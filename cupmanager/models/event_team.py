from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from cupmanager.models.event import Event
    from cupmanager.models.team import Team

# Counter columns recomputed from finished group matches; never edited directly.
STAT_FIELDS = (
    "matches_played",
    "wins",
    "draws",
    "losses",
    "goals_for",
    "goals_against",
    "goal_difference",
    "yellow_cards",
    "red_cards",
    "points",
)


class EventTeam(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("event_id", "team_id", name="uq_event_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    group_name: Optional[str] = Field(default=None, index=True)  # "A".."F", set by the draw

    # Denormalized standings cache
    matches_played: int = Field(default=0)
    wins: int = Field(default=0)
    draws: int = Field(default=0)
    losses: int = Field(default=0)
    goals_for: int = Field(default=0)
    goals_against: int = Field(default=0)
    goal_difference: int = Field(default=0)
    yellow_cards: int = Field(default=0)
    red_cards: int = Field(default=0)
    points: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="event_teams")
    team: "Team" = Relationship(back_populates="enrollments")
