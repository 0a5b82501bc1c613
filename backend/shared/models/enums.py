"""Domain enumerations for the Matchday platform."""
from __future__ import annotations

from enum import Enum


class Venue(str, Enum):
    HOME = "Home"
    AWAY = "Away"


class Role(str, Enum):
    """Which side of a fixture the tracked team plays on."""
    HOME = "home"
    AWAY = "away"

    @property
    def separator(self) -> str:
        return "vs" if self == Role.HOME else "@"

    @property
    def venue(self) -> Venue:
        return Venue.HOME if self == Role.HOME else Venue.AWAY


class MatchStatus(str, Enum):
    """football-data.org match status filter values."""
    SCHEDULED = "SCHEDULED"
    FINISHED = "FINISHED"


class SyncPhase(str, Enum):
    SCORES = "scores"
    LINEUPS = "lineups"
    FIXTURES = "fixtures"


class OutcomeKind(str, Enum):
    UPDATED = "updated"
    CREATED = "created"
    LINKED = "linked"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    UNPARSED_TITLE = "unparsed_title"
    NO_MATCH = "no_match"
    NO_FINAL_SCORE = "no_final_score"
    NO_OPPONENT = "no_opponent"
    EXTERNAL_ID_CLAIMED = "external_id_claimed"
    LINEUP_UNAVAILABLE = "lineup_unavailable"
    TEAM_NOT_IN_MATCH = "team_not_in_match"
    FEED_ERROR = "feed_error"
    TRANSFORM_FAILED = "transform_failed"
    ALREADY_LINKED = "already_linked"
    DUPLICATE = "duplicate"
