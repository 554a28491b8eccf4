from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from cupmanager.models.event import Event

PHASE_GROUP = "group"
PHASE_ROUND_OF_16 = "round_of_16"
PHASE_QUARTER_FINAL = "quarter_final"
PHASE_SEMI_FINAL = "semi_final"
PHASE_FINAL = "final"

# Display/sort order of phases
PHASES = (PHASE_GROUP, PHASE_ROUND_OF_16, PHASE_QUARTER_FINAL, PHASE_SEMI_FINAL, PHASE_FINAL)

STATUS_SCHEDULED = "scheduled"
STATUS_IN_PROGRESS = "in_progress"
STATUS_FINISHED = "finished"

STATUSES = (STATUS_SCHEDULED, STATUS_IN_PROGRESS, STATUS_FINISHED)


class Match(SQLModel, table=True):
    __table_args__ = (CheckConstraint("home_team_id <> away_team_id", name="ck_match_distinct_teams"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    home_team_id: int = Field(foreign_key="team.id")
    away_team_id: int = Field(foreign_key="team.id")
    phase: str = Field(default=PHASE_GROUP)  # group | round_of_16 | quarter_final | semi_final | final
    group_name: Optional[str] = Field(default=None)
    match_number: Optional[int] = Field(default=None)

    # Null scores mean "not played yet"
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    home_yellow_cards: int = Field(default=0)
    home_red_cards: int = Field(default=0)
    away_yellow_cards: int = Field(default=0)
    away_red_cards: int = Field(default=0)

    match_date: Optional[datetime] = Field(default=None)
    status: str = Field(default=STATUS_SCHEDULED)  # scheduled | in_progress | finished
    referee_user_id: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="matches")

    @property
    def is_played(self) -> bool:
        return self.home_score is not None and self.away_score is not None
