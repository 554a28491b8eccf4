from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from cupmanager.models.event_team import EventTeam
    from cupmanager.models.match import Match


class Event(SQLModel, table=True):
    """A tournament instance. Owns its enrollments and fixtures."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    date: date
    location: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event_teams: List["EventTeam"] = Relationship(back_populates="event")
    matches: List["Match"] = Relationship(back_populates="event")
