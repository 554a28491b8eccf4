"""
Tournament orchestrator.

Ties the draw, standings, tie-break and knockout components to the
persistence collaborator. Stateless apart from the injected store, format,
random source and draw lock registry; construct one per request.

Lifecycle of an event:
1. add teams
2. generate the draw once exactly ``fmt.team_count`` teams are enrolled
3. record results (statistics are recomputed after each one)
4. generate the knockout round once every group match is finished
"""

import logging
import random
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from cupmanager.models.event import Event
from cupmanager.models.event_team import EventTeam
from cupmanager.models.match import (
    PHASE_GROUP,
    PHASES,
    STATUS_FINISHED,
    STATUS_SCHEDULED,
    STATUSES,
    Match,
)
from cupmanager.services.draw_generator import DrawResult, generate_draw
from cupmanager.services.errors import (
    AlreadyEnrolledError,
    IncompleteStandingsError,
    InvalidInputError,
    NotFoundError,
    WrongTeamCountError,
)
from cupmanager.services.knockout_generator import generate_knockout
from cupmanager.services.standings import TeamStats, compute_statistics
from cupmanager.services.store import TournamentStore
from cupmanager.services.tiebreak import compare_scores, rank_teams
from cupmanager.services.tournament_format import DEFAULT_FORMAT, TournamentFormat

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("home_score", "away_score")
CARD_FIELDS = ("home_yellow_cards", "home_red_cards", "away_yellow_cards", "away_red_cards")
EDITABLE_MATCH_FIELDS = SCORE_FIELDS + CARD_FIELDS + ("match_date", "status", "match_number")


class DrawLocks:
    """
    Per-event locks serializing draw generation within one process.

    One registry lives on the application state and is shared by every
    request's service; entries are dropped when their event is deleted.
    """

    def __init__(self):
        self._locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, event_id: int) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(event_id, threading.Lock())

    def discard(self, event_id: int) -> None:
        with self._guard:
            self._locks.pop(event_id, None)

    def __contains__(self, event_id: int) -> bool:
        return event_id in self._locks


def _validate_count(name: str, value: Any, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidInputError(f"{name} must be a non-negative integer, got {value!r}")


class TournamentService:
    def __init__(
        self,
        store: TournamentStore,
        fmt: TournamentFormat = DEFAULT_FORMAT,
        rng: Optional[random.Random] = None,
        draw_locks: Optional[DrawLocks] = None,
    ):
        self.store = store
        self.fmt = fmt
        self.rng = rng or random.Random()
        self.draw_locks = draw_locks if draw_locks is not None else DrawLocks()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_event(self, event_id: int) -> Event:
        event = self.store.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        return event

    def _require_match(self, match_id: int) -> Match:
        match = self.store.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    def _head_to_head(self, event_id: int):
        def lookup(team_a_id: int, team_b_id: int) -> int:
            match = self.store.find_head_to_head(event_id, team_a_id, team_b_id)
            if match is None:
                return 0
            return compare_scores(match, team_a_id)

        return lookup

    # ------------------------------------------------------------------
    # Enrollment
    # ------------------------------------------------------------------

    def list_event_teams(self, event_id: int) -> List[EventTeam]:
        self._require_event(event_id)
        return self.store.list_enrolled_teams(event_id)

    def add_teams(self, event_id: int, team_ids: Sequence[int]) -> List[EventTeam]:
        """Enroll catalog teams with no group yet."""
        self._require_event(event_id)
        team_ids = list(team_ids)
        if not team_ids:
            raise InvalidInputError("At least one team must be selected")
        if len(set(team_ids)) != len(team_ids):
            raise InvalidInputError("Team ids must be distinct")

        missing = set(team_ids) - self.store.existing_team_ids(team_ids)
        if missing:
            raise NotFoundError(f"Teams not found: {sorted(missing)}")

        enrolled = {row.team_id for row in self.store.list_enrolled_teams(event_id)}
        duplicates = enrolled.intersection(team_ids)
        if duplicates:
            raise AlreadyEnrolledError(event_id, duplicates)

        rows = self.store.insert_enrolled_teams(event_id, team_ids)
        logger.info("Enrolled %d teams in event %d", len(rows), event_id)
        return rows

    def remove_team(self, event_id: int, event_team_id: int) -> None:
        event_team = self.store.get_enrolled_team(event_team_id)
        if event_team is None or event_team.event_id != event_id:
            raise NotFoundError(f"Enrollment {event_team_id} not found in event {event_id}")
        team_id = event_team.team_id
        self.store.delete_enrolled_team(event_team)
        # Matches against the removed team no longer count for anyone
        self.recompute_statistics(event_id)
        logger.info("Removed team %d from event %d", team_id, event_id)

    # ------------------------------------------------------------------
    # Draw
    # ------------------------------------------------------------------

    def generate_draw(self, event_id: int) -> DrawResult:
        """
        Draw groups and group fixtures for an event.

        Existing matches are deleted and all counters reset in the same
        transaction that stores the new groups and fixtures, so a failure
        leaves the previous draw in place and the call can be retried.
        """
        self._require_event(event_id)
        enrolled = self.store.list_enrolled_teams(event_id)
        if len(enrolled) != self.fmt.team_count:
            raise WrongTeamCountError(self.fmt.team_count, len(enrolled))

        team_ids = [row.team_id for row in enrolled]
        draw = generate_draw(team_ids, self.fmt, self.rng)

        with self.draw_locks.get(event_id):
            deleted = self.store.replace_group_stage(
                event_id,
                draw.group_assignment,
                compute_statistics([], team_ids),
                draw.fixtures,
            )

        logger.info(
            "Generated draw for event %d: %d fixtures (%d previous matches removed)",
            event_id,
            len(draw.fixtures),
            deleted,
        )
        return draw

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def list_matches(self, event_id: int) -> List[Match]:
        self._require_event(event_id)
        return self.store.list_matches(event_id)

    def create_match(
        self,
        event_id: int,
        home_team_id: int,
        away_team_id: int,
        phase: str,
        match_number: Optional[int] = None,
        group_name: Optional[str] = None,
        match_date: Optional[datetime] = None,
    ) -> Match:
        """Manually add a fixture, e.g. quarter-finals onwards."""
        self._require_event(event_id)
        if phase not in PHASES:
            raise InvalidInputError(f"Invalid phase: {phase}")
        if home_team_id == away_team_id:
            raise InvalidInputError("A team cannot play against itself")
        enrolled = {row.team_id for row in self.store.list_enrolled_teams(event_id)}
        not_enrolled = {home_team_id, away_team_id} - enrolled
        if not_enrolled:
            raise InvalidInputError(f"Teams not enrolled in event {event_id}: {sorted(not_enrolled)}")
        _validate_count("match_number", match_number, allow_none=True)

        match = Match(
            event_id=event_id,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            phase=phase,
            group_name=group_name,
            match_number=match_number,
            match_date=match_date,
        )
        return self.store.add_match(match)

    def update_match(self, match_id: int, fields: Dict[str, Any]) -> Match:
        """
        Partial update of a match.

        Both scores present means played: status becomes ``finished``.
        Clearing a score of a finished match puts it back to ``scheduled``.
        Statistics are recomputed when scores or cards change.
        """
        match = self._require_match(match_id)
        unknown = set(fields) - set(EDITABLE_MATCH_FIELDS)
        if unknown:
            raise InvalidInputError(f"Fields cannot be edited: {sorted(unknown)}")

        for name in SCORE_FIELDS + ("match_number",):
            if name in fields:
                _validate_count(name, fields[name], allow_none=True)
        for name in CARD_FIELDS:
            if name in fields:
                _validate_count(name, fields[name])

        changes = dict(fields)
        status = changes.get("status", match.status)
        if status not in STATUSES:
            raise InvalidInputError(f"Invalid status: {status}")

        home_score = changes.get("home_score", match.home_score)
        away_score = changes.get("away_score", match.away_score)
        if home_score is not None and away_score is not None:
            changes["status"] = STATUS_FINISHED
        elif status == STATUS_FINISHED:
            if changes.get("status") == STATUS_FINISHED:
                raise InvalidInputError("Both scores are required to finish a match")
            changes["status"] = STATUS_SCHEDULED

        match = self.store.update_match(match, changes)
        if any(name in fields for name in SCORE_FIELDS + CARD_FIELDS):
            self.recompute_statistics(match.event_id)
        return match

    def record_result(
        self,
        match_id: int,
        home_score: int,
        away_score: int,
        home_yellow_cards: int = 0,
        home_red_cards: int = 0,
        away_yellow_cards: int = 0,
        away_red_cards: int = 0,
    ) -> Match:
        """Store a final score and cards, mark the match finished and refresh standings."""
        match = self._require_match(match_id)
        fields = {
            "home_score": home_score,
            "away_score": away_score,
            "home_yellow_cards": home_yellow_cards,
            "home_red_cards": home_red_cards,
            "away_yellow_cards": away_yellow_cards,
            "away_red_cards": away_red_cards,
        }
        for name, value in fields.items():
            _validate_count(name, value)
        fields["status"] = STATUS_FINISHED

        match = self.store.update_match(match, fields)
        logger.info(
            "Recorded result for match %d (event %d): %d-%d",
            match.id,
            match.event_id,
            home_score,
            away_score,
        )
        self.recompute_statistics(match.event_id)
        return match

    def assign_referee(self, match_id: int, referee_user_id: str) -> Match:
        match = self._require_match(match_id)
        if not referee_user_id:
            raise InvalidInputError("referee_user_id is required")
        return self.store.update_match(match, {"referee_user_id": referee_user_id})

    def unassign_referee(self, match_id: int) -> Match:
        match = self._require_match(match_id)
        return self.store.update_match(match, {"referee_user_id": None})

    def delete_matches(self, event_id: int) -> int:
        """Delete every match of the event; enrollments stay and counters go back to zero."""
        self._require_event(event_id)
        deleted = self.store.delete_matches(event_id, commit=False)
        team_ids = [row.team_id for row in self.store.list_enrolled_teams(event_id)]
        self.store.save_statistics(event_id, compute_statistics([], team_ids), commit=False)
        self.store.commit()
        logger.info("Deleted %d matches from event %d", deleted, event_id)
        return deleted

    # ------------------------------------------------------------------
    # Standings
    # ------------------------------------------------------------------

    def recompute_statistics(self, event_id: int) -> Dict[int, TeamStats]:
        """Rebuild every enrolled team's counters from the played group matches."""
        matches = self.store.list_matches(event_id, phase=PHASE_GROUP, finished_only=True)
        team_ids = [row.team_id for row in self.store.list_enrolled_teams(event_id)]
        stats = compute_statistics(matches, team_ids)
        self.store.save_statistics(event_id, stats)
        logger.debug("Recomputed statistics for event %d from %d matches", event_id, len(matches))
        return stats

    def group_standings(self, event_id: int) -> Dict[str, List[EventTeam]]:
        """Group label -> enrollments ranked with the tie-break rules."""
        self._require_event(event_id)
        head_to_head = self._head_to_head(event_id)
        return {
            label: rank_teams(self.store.list_enrolled_teams(event_id, group_name=label), head_to_head)
            for label in self.fmt.group_labels
        }

    # ------------------------------------------------------------------
    # Knockout
    # ------------------------------------------------------------------

    def generate_knockout(self, event_id: int) -> List[Match]:
        """
        Create the first knockout round from the final group tables.

        Raises:
            IncompleteStandingsError: no draw yet, group matches unplayed,
                or a group without enough teams
            InvalidInputError: the knockout round already exists
        """
        self._require_event(event_id)
        if self.store.list_matches(event_id, phase=self.fmt.knockout_phase):
            raise InvalidInputError(f"{self.fmt.knockout_phase} matches already exist for event {event_id}")

        group_matches = self.store.list_matches(event_id, phase=PHASE_GROUP)
        if not group_matches:
            raise IncompleteStandingsError(f"Event {event_id} has no group matches; generate the draw first")
        pending = [m for m in group_matches if not m.is_played]
        if pending:
            raise IncompleteStandingsError(f"{len(pending)} group matches still have no result")

        self.recompute_statistics(event_id)
        standings = self.group_standings(event_id)
        fixtures = generate_knockout(standings, self.fmt)
        matches = self.store.insert_matches(event_id, fixtures)
        logger.info("Generated %d %s matches for event %d", len(matches), self.fmt.knockout_phase, event_id)
        return matches
