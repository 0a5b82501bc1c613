"""
Pydantic v2 domain models shared across all Matchday services.
Canonical wire and internal representations, separate from the ORM models.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.models.enums import OutcomeKind, Role, SkipReason, SyncPhase, Venue


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TrackedTeam(DomainModel):
    """The team whose calendar is being synchronized."""
    id: int
    name: str


# ── Fixture identity ────────────────────────────────────────────────────
class Fixture(DomainModel):
    """Structured (role, opponent) pair; the display title is rendered from it."""
    role: Role
    opponent: str

    def render_title(self, team_name: str) -> str:
        return f"{team_name} {self.role.separator} {self.opponent}"

    @classmethod
    def parse_title(cls, team_name: str, title: str) -> Optional["Fixture"]:
        """Recover fixture identity from a canonical title, or None if it is not one."""
        for role in Role:
            prefix = f"{team_name} {role.separator} "
            if title.startswith(prefix):
                opponent = title[len(prefix):].strip()
                if opponent:
                    return cls(role=role, opponent=opponent)
        return None


# ── Lineup ──────────────────────────────────────────────────────────────
class GridCell(DomainModel):
    """Cell on the logical 5x5 pitch grid. Row 1 is the goalkeeper line."""
    row: int = Field(ge=1, le=5)
    col: int = Field(ge=0, le=4)


class PlayerPosition(DomainModel):
    id: Optional[int] = None
    name: str
    jersey_number: Optional[int] = None
    position: str
    position_abbr: str
    grid_position: GridCell


class Coach(DomainModel):
    name: str
    nationality: Optional[str] = None


class Lineup(DomainModel):
    event_id: uuid.UUID
    formation: str
    players: list[PlayerPosition] = Field(default_factory=list)
    coach: Optional[Coach] = None
    last_updated: datetime = Field(default_factory=utcnow)


# ── Event ───────────────────────────────────────────────────────────────
def _check_score_pair(home: Optional[int], away: Optional[int]) -> None:
    if (home is None) != (away is None):
        raise ValueError("home_score and away_score must be set together")


class Event(DomainModel):
    """A fixture or plain calendar entry."""
    id: uuid.UUID
    title: str
    fixture: Optional[Fixture] = None
    date: datetime
    start_time: str
    end_time: str
    description: Optional[str] = None
    venue: Optional[Venue] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    external_id: Optional[int] = None
    lineup: Optional[Lineup] = None

    @model_validator(mode="after")
    def scores_set_together(self) -> "Event":
        _check_score_pair(self.home_score, self.away_score)
        return self

    @property
    def has_score(self) -> bool:
        return self.home_score is not None


class NewEvent(DomainModel):
    """Fields for creating an event. Title is rendered when a fixture is given."""
    title: str
    fixture: Optional[Fixture] = None
    date: datetime
    start_time: str
    end_time: str
    description: Optional[str] = None
    venue: Optional[Venue] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    external_id: Optional[int] = None

    @model_validator(mode="after")
    def scores_set_together(self) -> "NewEvent":
        _check_score_pair(self.home_score, self.away_score)
        return self


class EventUpdate(DomainModel):
    """Partial update; only explicitly set fields are written."""
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    venue: Optional[Venue] = None
    external_id: Optional[int] = None

    @model_validator(mode="after")
    def scores_set_together(self) -> "EventUpdate":
        fields = self.model_fields_set
        if ("home_score" in fields) != ("away_score" in fields):
            raise ValueError("home_score and away_score must be updated together")
        _check_score_pair(self.home_score, self.away_score)
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ── Feed payloads (football-data.org v4) ────────────────────────────────
class FeedCoach(DomainModel):
    id: Optional[int] = None
    name: Optional[str] = None
    nationality: Optional[str] = None


class FeedTeam(DomainModel):
    id: Optional[int] = None
    name: str = ""
    short_name: Optional[str] = Field(default=None, alias="shortName")
    formation: Optional[str] = None
    coach: Optional[FeedCoach] = None
    # Kept raw: malformed entries are reported per event by the lineup phase.
    lineup: list[Any] = Field(default_factory=list)

    @field_validator("lineup", mode="before")
    @classmethod
    def none_lineup_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def match_name(self) -> str:
        """Short name when the feed has one, otherwise the full name."""
        return self.short_name or self.name


class FeedScoreLine(DomainModel):
    home: Optional[int] = None
    away: Optional[int] = None


class FeedScore(DomainModel):
    full_time: FeedScoreLine = Field(default_factory=FeedScoreLine, alias="fullTime")

    @field_validator("full_time", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class FeedCompetition(DomainModel):
    id: Optional[int] = None
    name: Optional[str] = None


class FeedMatch(DomainModel):
    id: int
    utc_date: datetime = Field(alias="utcDate")
    status: Optional[str] = None
    competition: Optional[FeedCompetition] = None
    home_team: FeedTeam = Field(alias="homeTeam")
    away_team: FeedTeam = Field(alias="awayTeam")
    score: FeedScore = Field(default_factory=FeedScore)

    @field_validator("score", mode="before")
    @classmethod
    def none_score_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def final_score(self) -> Optional[tuple[int, int]]:
        """(home, away) full-time score, or None until the feed publishes one."""
        ft = self.score.full_time
        if ft.home is None or ft.away is None:
            return None
        return ft.home, ft.away

    def role_of(self, team_id: int) -> Role:
        return Role.HOME if self.home_team.id == team_id else Role.AWAY

    def side_of(self, team_id: int) -> Optional[FeedTeam]:
        if self.home_team.id == team_id:
            return self.home_team
        if self.away_team.id == team_id:
            return self.away_team
        return None


# ── Sync reporting ──────────────────────────────────────────────────────
class SyncOutcome(DomainModel):
    """One action or skip taken by a reconciliation phase."""
    phase: SyncPhase
    kind: OutcomeKind
    title: str
    event_id: Optional[uuid.UUID] = None
    external_id: Optional[int] = None
    reason: Optional[SkipReason] = None
    detail: Optional[str] = None

    def message(self) -> str:
        if self.kind == OutcomeKind.SKIPPED:
            text = f"  Skipped ({self.reason.value if self.reason else 'unknown'}): {self.title}"
        else:
            text = f"  {self.kind.value.capitalize()}: {self.title}"
        if self.detail:
            text += f" ({self.detail})" if self.kind == OutcomeKind.SKIPPED else f" -> {self.detail}"
        return text


class SyncReport(DomainModel):
    ok: bool
    log: list[str] = Field(default_factory=list)
    outcomes: list[SyncOutcome] = Field(default_factory=list)
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
