"""
Tournament engine error taxonomy.

Every error carries a ``category`` so callers can tell apart
"fix your input" (``input``), "data not ready yet" (``not_ready``)
and "retry the operation" (``retry``).
"""

CATEGORY_INPUT = "input"
CATEGORY_NOT_READY = "not_ready"
CATEGORY_RETRY = "retry"


class TournamentError(Exception):
    """Base class for tournament engine errors"""

    category = CATEGORY_INPUT


class InvalidInputError(TournamentError):
    """Raised for malformed or wrong-count input"""

    category = CATEGORY_INPUT


class WrongTeamCountError(InvalidInputError):
    """Raised when a tournament does not have the number of teams its format needs"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Exactly {expected} teams are required, got {actual}")


class AlreadyEnrolledError(InvalidInputError):
    """Raised when a team is added twice to the same tournament"""

    def __init__(self, event_id: int, team_ids):
        self.event_id = event_id
        self.team_ids = sorted(team_ids)
        super().__init__(f"Teams already enrolled in event {event_id}: {self.team_ids}")


class NotFoundError(InvalidInputError):
    """Raised when an event, team or match does not exist"""


class IncompleteStandingsError(TournamentError):
    """Raised when knockout pairings are requested before the groups are resolved"""

    category = CATEGORY_NOT_READY


class PersistenceError(TournamentError):
    """Opaque data store failure. The operation can be retried."""

    category = CATEGORY_RETRY
