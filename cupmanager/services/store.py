"""
Persistence collaborator for the tournament engine.

Thin data access over a SQLModel session. Every database failure is rolled
back and surfaced as ``PersistenceError``; write methods take ``commit`` so
the orchestrator can group several writes into one transaction.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from cupmanager.models.event import Event
from cupmanager.models.event_team import STAT_FIELDS, EventTeam
from cupmanager.models.match import PHASE_GROUP, PHASES, Match
from cupmanager.models.team import Team
from cupmanager.services.errors import AlreadyEnrolledError, PersistenceError

logger = logging.getLogger(__name__)


def match_sort_key(match: Match):
    """Phase order, then match number (unnumbered last), then id."""
    phase_rank = PHASES.index(match.phase) if match.phase in PHASES else len(PHASES)
    return (
        phase_rank,
        (match.match_number is None, match.match_number or 0),
        match.id or 0,
    )


def event_team_sort_key(event_team: EventTeam):
    """Group label (unassigned last), then points descending."""
    return (
        (event_team.group_name is None, event_team.group_name or ""),
        -event_team.points,
        event_team.id or 0,
    )


class TournamentStore:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, action: str, commit: bool = False):
        try:
            yield
            if commit:
                self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Persistence failure while trying to %s", action)
            raise PersistenceError(f"Failed to {action}: {exc}") from exc

    def commit(self) -> None:
        with self._guard("commit transaction", commit=True):
            pass

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_event(self, event_id: int) -> Optional[Event]:
        with self._guard("load event"):
            return self.session.get(Event, event_id)

    def get_match(self, match_id: int) -> Optional[Match]:
        with self._guard("load match"):
            return self.session.get(Match, match_id)

    def existing_team_ids(self, team_ids: Iterable[int]) -> Set[int]:
        ids = list(team_ids)
        if not ids:
            return set()
        with self._guard("load teams"):
            return set(self.session.exec(select(Team.id).where(Team.id.in_(ids))).all())

    # ------------------------------------------------------------------
    # Enrolled teams
    # ------------------------------------------------------------------

    def list_enrolled_teams(self, event_id: int, group_name: Optional[str] = None) -> List[EventTeam]:
        query = select(EventTeam).where(EventTeam.event_id == event_id)
        if group_name is not None:
            query = query.where(EventTeam.group_name == group_name)
        with self._guard("list enrolled teams"):
            rows = self.session.exec(query).all()
        return sorted(rows, key=event_team_sort_key)

    def get_enrolled_team(self, event_team_id: int) -> Optional[EventTeam]:
        with self._guard("load enrolled team"):
            return self.session.get(EventTeam, event_team_id)

    def insert_enrolled_teams(self, event_id: int, team_ids: Sequence[int], commit: bool = True) -> List[EventTeam]:
        """Insert enrollments with no group. Duplicate (event, team) pairs raise AlreadyEnrolledError."""
        rows = [EventTeam(event_id=event_id, team_id=team_id) for team_id in team_ids]
        try:
            with self._guard("enroll teams", commit=commit):
                for row in rows:
                    self.session.add(row)
                self.session.flush()
        except PersistenceError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise AlreadyEnrolledError(event_id, team_ids) from exc.__cause__
            raise
        if commit:
            for row in rows:
                self.session.refresh(row)
        return rows

    def upsert_enrolled_teams(self, event_id: int, group_assignment: Dict[int, str], commit: bool = True) -> None:
        """Set group labels, creating enrollments that do not exist yet."""
        with self._guard("assign groups", commit=commit):
            existing = {
                row.team_id: row
                for row in self.session.exec(select(EventTeam).where(EventTeam.event_id == event_id)).all()
            }
            for team_id, group_name in group_assignment.items():
                row = existing.get(team_id)
                if row is None:
                    row = EventTeam(event_id=event_id, team_id=team_id)
                row.group_name = group_name
                self.session.add(row)

    def delete_enrolled_team(self, event_team: EventTeam, commit: bool = True) -> None:
        with self._guard("remove enrolled team", commit=commit):
            self.session.delete(event_team)

    def save_statistics(self, event_id: int, stats: Dict[int, object], commit: bool = True) -> None:
        """Write recomputed counters onto the enrollment rows."""
        with self._guard("save statistics", commit=commit):
            rows = self.session.exec(select(EventTeam).where(EventTeam.event_id == event_id)).all()
            for row in rows:
                entry = stats.get(row.team_id)
                if entry is None:
                    continue
                for field in STAT_FIELDS:
                    setattr(row, field, getattr(entry, field))
                self.session.add(row)

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def list_matches(
        self,
        event_id: int,
        phase: Optional[str] = None,
        group_name: Optional[str] = None,
        finished_only: bool = False,
    ) -> List[Match]:
        query = select(Match).where(Match.event_id == event_id)
        if phase is not None:
            query = query.where(Match.phase == phase)
        if group_name is not None:
            query = query.where(Match.group_name == group_name)
        if finished_only:
            query = query.where(Match.home_score.is_not(None), Match.away_score.is_not(None))
        with self._guard("list matches"):
            rows = self.session.exec(query).all()
        return sorted(rows, key=match_sort_key)

    def find_head_to_head(self, event_id: int, team_a_id: int, team_b_id: int) -> Optional[Match]:
        """The played group match between two teams, if any."""
        query = (
            select(Match)
            .where(
                Match.event_id == event_id,
                Match.phase == PHASE_GROUP,
                Match.home_score.is_not(None),
                Match.away_score.is_not(None),
                (
                    ((Match.home_team_id == team_a_id) & (Match.away_team_id == team_b_id))
                    | ((Match.home_team_id == team_b_id) & (Match.away_team_id == team_a_id))
                ),
            )
            .order_by(Match.id)
        )
        with self._guard("load head-to-head match"):
            return self.session.exec(query).first()

    def insert_matches(self, event_id: int, skeletons: Iterable, commit: bool = True) -> List[Match]:
        rows = [
            Match(
                event_id=event_id,
                home_team_id=skeleton.home_team_id,
                away_team_id=skeleton.away_team_id,
                phase=skeleton.phase,
                group_name=skeleton.group_name,
                match_number=skeleton.match_number,
            )
            for skeleton in skeletons
        ]
        with self._guard("insert matches", commit=commit):
            for row in rows:
                self.session.add(row)
            self.session.flush()
        if commit:
            for row in rows:
                self.session.refresh(row)
        return rows

    def add_match(self, match: Match, commit: bool = True) -> Match:
        with self._guard("create match", commit=commit):
            self.session.add(match)
            self.session.flush()
        if commit:
            self.session.refresh(match)
        return match

    def update_match(self, match: Match, fields: Dict[str, object], commit: bool = True) -> Match:
        with self._guard("update match", commit=commit):
            for key, value in fields.items():
                setattr(match, key, value)
            self.session.add(match)
        if commit:
            self.session.refresh(match)
        return match

    def delete_matches(self, event_id: int, phase: Optional[str] = None, commit: bool = True) -> int:
        """Delete an event's matches (optionally one phase). Enrollments are kept."""
        query = select(Match).where(Match.event_id == event_id)
        if phase is not None:
            query = query.where(Match.phase == phase)
        with self._guard("delete matches", commit=commit):
            rows = self.session.exec(query).all()
            for row in rows:
                self.session.delete(row)
            self.session.flush()
        return len(rows)

    def replace_group_stage(
        self,
        event_id: int,
        group_assignment: Dict[int, str],
        stats: Dict[int, object],
        skeletons: Iterable,
    ) -> int:
        """
        Swap in a new draw atomically: delete every match, set the groups,
        reset counters and insert the fixtures. Returns the deleted count.
        """
        deleted = self.delete_matches(event_id, commit=False)
        self.upsert_enrolled_teams(event_id, group_assignment, commit=False)
        self.save_statistics(event_id, stats, commit=False)
        self.insert_matches(event_id, skeletons, commit=False)
        self.commit()
        return deleted
