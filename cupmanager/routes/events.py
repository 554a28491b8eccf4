from datetime import date as date_type
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from cupmanager.database import get_session
from cupmanager.models.event import Event
from cupmanager.models.event_team import EventTeam
from cupmanager.models.match import Match
from cupmanager.routes.tournament import get_draw_locks
from cupmanager.services.tournament_service import DrawLocks

router = APIRouter()


class EventCreate(BaseModel):
    title: str
    description: Optional[str] = None
    date: date_type
    location: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[date_type] = None
    location: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip() if v else v


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    date: date_type
    location: Optional[str] = None
    created_at: datetime


@router.get("/events", response_model=List[EventResponse])
def list_events(session: Session = Depends(get_session)):
    """List events, most recent first"""
    return session.exec(select(Event).order_by(Event.date.desc())).all()


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(event_data: EventCreate, session: Session = Depends(get_session)):
    event = Event(**event_data.model_dump())
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(event_id: int, session: Session = Depends(get_session)):
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.patch("/events/{event_id}", response_model=EventResponse)
def update_event(event_id: int, event_data: EventUpdate, session: Session = Depends(get_session)):
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    for field, value in event_data.model_dump(exclude_unset=True).items():
        setattr(event, field, value)

    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@router.delete("/events/{event_id}", status_code=204)
def delete_event(
    event_id: int,
    session: Session = Depends(get_session),
    draw_locks: DrawLocks = Depends(get_draw_locks),
):
    """Delete an event with its enrollments and matches"""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    try:
        # Children first
        for match in session.exec(select(Match).where(Match.event_id == event_id)).all():
            session.delete(match)
        for event_team in session.exec(select(EventTeam).where(EventTeam.event_id == event_id)).all():
            session.delete(event_team)
        session.flush()
        session.delete(event)
        session.commit()
    except Exception as e:
        session.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete event: {str(e)}")

    draw_locks.discard(event_id)
    return Response(status_code=204)
