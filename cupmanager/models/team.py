from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from cupmanager.models.event_team import EventTeam


class Team(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("name", name="uq_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    logo_url: Optional[str] = None
    description: Optional[str] = None
    founded_year: Optional[int] = None
    colors: Optional[str] = None  # free text, e.g. "red/white"
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    enrollments: List["EventTeam"] = Relationship(back_populates="team")
