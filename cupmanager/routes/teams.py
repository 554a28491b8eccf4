"""
Team catalog API routes.
Teams exist independently of any event and are referenced by id elsewhere.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from cupmanager.database import get_session
from cupmanager.models.event_team import EventTeam
from cupmanager.models.match import Match
from cupmanager.models.team import Team

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    name: str
    logo_url: Optional[str] = None
    description: Optional[str] = None
    founded_year: Optional[int] = None
    colors: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None
    founded_year: Optional[int] = None
    colors: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip() if v else v


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    logo_url: Optional[str] = None
    description: Optional[str] = None
    founded_year: Optional[int] = None
    colors: Optional[str] = None
    created_at: datetime


# ============================================================================
# Team CRUD Endpoints
# ============================================================================


@router.get("/teams", response_model=List[TeamResponse])
def list_teams(session: Session = Depends(get_session)):
    """List all teams ordered by name"""
    return session.exec(select(Team).order_by(Team.name)).all()


@router.get("/teams/{team_id}", response_model=TeamResponse)
def get_team(team_id: int, session: Session = Depends(get_session)):
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


@router.post("/teams", response_model=TeamResponse, status_code=201)
def create_team(request: TeamCreateRequest, session: Session = Depends(get_session)):
    """Create a catalog team. Names are unique."""
    team = Team(**request.model_dump())
    try:
        session.add(team)
        session.commit()
        session.refresh(team)
        return team
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Team with name '{request.name}' already exists")


@router.patch("/teams/{team_id}", response_model=TeamResponse)
def update_team(team_id: int, request: TeamUpdateRequest, session: Session = Depends(get_session)):
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(team, field, value)

    try:
        session.add(team)
        session.commit()
        session.refresh(team)
        return team
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Team with name '{request.name}' already exists")


@router.delete("/teams/{team_id}", status_code=204)
def delete_team(team_id: int, session: Session = Depends(get_session)):
    """Delete a team. Refused while the team is enrolled in an event or has matches."""
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    enrollments = session.exec(select(func.count(EventTeam.id)).where(EventTeam.team_id == team_id)).one()
    fixtures = session.exec(
        select(func.count(Match.id)).where((Match.home_team_id == team_id) | (Match.away_team_id == team_id))
    ).one()
    if enrollments or fixtures:
        raise HTTPException(status_code=409, detail="Team is enrolled in an event; remove it from the event first")

    session.delete(team)
    session.commit()
    return None
