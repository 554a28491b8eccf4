"""
Tournament engine API routes.
Enrollment, draw, match results, standings and knockout generation for an event.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from cupmanager.database import get_session
from cupmanager.services.errors import (
    AlreadyEnrolledError,
    IncompleteStandingsError,
    NotFoundError,
    PersistenceError,
    TournamentError,
)
from cupmanager.services.store import TournamentStore
from cupmanager.services.tournament_service import DrawLocks, TournamentService

router = APIRouter()


def get_draw_locks(request: Request) -> DrawLocks:
    return request.app.state.draw_locks


def get_tournament_service(
    session: Session = Depends(get_session), draw_locks: DrawLocks = Depends(get_draw_locks)
) -> TournamentService:
    return TournamentService(TournamentStore(session), draw_locks=draw_locks)


def to_http_exception(exc: TournamentError) -> HTTPException:
    """Map engine errors: bad input 4xx, not ready 409, store failure 503 (retry)."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AlreadyEnrolledError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, IncompleteStandingsError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=422, detail=str(exc))


# ============================================================================
# Request/Response Models
# ============================================================================


class EventTeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    team_id: int
    group_name: Optional[str] = None
    matches_played: int
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int
    goal_difference: int
    yellow_cards: int
    red_cards: int
    points: int
    created_at: datetime


class AddTeamsRequest(BaseModel):
    team_ids: List[int]


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    home_team_id: int
    away_team_id: int
    phase: str
    group_name: Optional[str] = None
    match_number: Optional[int] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_yellow_cards: int
    home_red_cards: int
    away_yellow_cards: int
    away_red_cards: int
    match_date: Optional[datetime] = None
    status: str
    referee_user_id: Optional[str] = None
    created_at: datetime


class MatchCreateRequest(BaseModel):
    home_team_id: int
    away_team_id: int
    phase: str
    match_number: Optional[int] = None
    group_name: Optional[str] = None
    match_date: Optional[datetime] = None


class MatchUpdateRequest(BaseModel):
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_yellow_cards: Optional[int] = None
    home_red_cards: Optional[int] = None
    away_yellow_cards: Optional[int] = None
    away_red_cards: Optional[int] = None
    match_date: Optional[datetime] = None
    status: Optional[str] = None
    match_number: Optional[int] = None


class MatchResultRequest(BaseModel):
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    home_yellow_cards: int = Field(default=0, ge=0)
    home_red_cards: int = Field(default=0, ge=0)
    away_yellow_cards: int = Field(default=0, ge=0)
    away_red_cards: int = Field(default=0, ge=0)


class RefereeAssignRequest(BaseModel):
    referee_user_id: str


class DrawResponse(BaseModel):
    groups: Dict[str, List[int]]
    matches_created: int


class DeleteMatchesResponse(BaseModel):
    deleted: int


# ============================================================================
# Enrollment
# ============================================================================


@router.get("/events/{event_id}/teams", response_model=List[EventTeamResponse])
def list_event_teams(event_id: int, service: TournamentService = Depends(get_tournament_service)):
    """Enrolled teams ordered by group, then points"""
    try:
        return service.list_event_teams(event_id)
    except TournamentError as e:
        raise to_http_exception(e)


@router.post("/events/{event_id}/teams", response_model=List[EventTeamResponse], status_code=201)
def add_event_teams(
    event_id: int, request: AddTeamsRequest, service: TournamentService = Depends(get_tournament_service)
):
    try:
        return service.add_teams(event_id, request.team_ids)
    except TournamentError as e:
        raise to_http_exception(e)


@router.delete("/events/{event_id}/teams/{event_team_id}", status_code=204)
def remove_event_team(
    event_id: int, event_team_id: int, service: TournamentService = Depends(get_tournament_service)
):
    try:
        service.remove_team(event_id, event_team_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return None


# ============================================================================
# Draw and matches
# ============================================================================


@router.post("/events/{event_id}/draw", response_model=DrawResponse, status_code=201)
def generate_draw(event_id: int, service: TournamentService = Depends(get_tournament_service)):
    """
    Draw groups and create the group stage fixtures.
    Replaces any existing matches of the event.
    """
    try:
        draw = service.generate_draw(event_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return DrawResponse(groups=draw.groups(), matches_created=len(draw.fixtures))


@router.get("/events/{event_id}/matches", response_model=List[MatchResponse])
def list_matches(event_id: int, service: TournamentService = Depends(get_tournament_service)):
    """Matches ordered by phase, then match number"""
    try:
        return service.list_matches(event_id)
    except TournamentError as e:
        raise to_http_exception(e)


@router.post("/events/{event_id}/matches", response_model=MatchResponse, status_code=201)
def create_match(
    event_id: int, request: MatchCreateRequest, service: TournamentService = Depends(get_tournament_service)
):
    try:
        return service.create_match(event_id, **request.model_dump())
    except TournamentError as e:
        raise to_http_exception(e)


@router.delete("/events/{event_id}/matches", response_model=DeleteMatchesResponse)
def delete_matches(event_id: int, service: TournamentService = Depends(get_tournament_service)):
    try:
        return DeleteMatchesResponse(deleted=service.delete_matches(event_id))
    except TournamentError as e:
        raise to_http_exception(e)


@router.patch("/matches/{match_id}", response_model=MatchResponse)
def update_match(
    match_id: int, request: MatchUpdateRequest, service: TournamentService = Depends(get_tournament_service)
):
    try:
        return service.update_match(match_id, request.model_dump(exclude_unset=True))
    except TournamentError as e:
        raise to_http_exception(e)


@router.post("/matches/{match_id}/result", response_model=MatchResponse)
def record_result(
    match_id: int, request: MatchResultRequest, service: TournamentService = Depends(get_tournament_service)
):
    """Record the final score and cards; standings are recomputed."""
    try:
        return service.record_result(match_id, **request.model_dump())
    except TournamentError as e:
        raise to_http_exception(e)


@router.put("/matches/{match_id}/referee", response_model=MatchResponse)
def assign_referee(
    match_id: int, request: RefereeAssignRequest, service: TournamentService = Depends(get_tournament_service)
):
    try:
        return service.assign_referee(match_id, request.referee_user_id)
    except TournamentError as e:
        raise to_http_exception(e)


@router.delete("/matches/{match_id}/referee", response_model=MatchResponse)
def unassign_referee(match_id: int, service: TournamentService = Depends(get_tournament_service)):
    try:
        return service.unassign_referee(match_id)
    except TournamentError as e:
        raise to_http_exception(e)


# ============================================================================
# Standings and knockout
# ============================================================================


@router.post("/events/{event_id}/standings/recompute", response_model=List[EventTeamResponse])
def recompute_standings(event_id: int, service: TournamentService = Depends(get_tournament_service)):
    """Rebuild all counters from match history (repair)."""
    try:
        service.recompute_statistics(event_id)
        return service.list_event_teams(event_id)
    except TournamentError as e:
        raise to_http_exception(e)


@router.get("/events/{event_id}/standings", response_model=Dict[str, List[EventTeamResponse]])
def get_standings(event_id: int, service: TournamentService = Depends(get_tournament_service)):
    """Group tables, each ranked with the tie-break rules"""
    try:
        return service.group_standings(event_id)
    except TournamentError as e:
        raise to_http_exception(e)


@router.post("/events/{event_id}/knockout", response_model=List[MatchResponse], status_code=201)
def generate_knockout(event_id: int, service: TournamentService = Depends(get_tournament_service)):
    try:
        return service.generate_knockout(event_id)
    except TournamentError as e:
        raise to_http_exception(e)
