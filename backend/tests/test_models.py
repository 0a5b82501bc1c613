"""Domain model invariants: fixture titles, score pairs, feed payload parsing."""
from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from shared.models.domain import Event, EventUpdate, FeedMatch, Fixture, SyncOutcome
from shared.models.enums import OutcomeKind, Role, SkipReason, SyncPhase, Venue

from conftest import utc


def test_fixture_titles_round_trip() -> None:
    home = Fixture(role=Role.HOME, opponent="Fulham")
    away = Fixture(role=Role.AWAY, opponent="Brighton & Hove Albion")
    assert home.render_title("Man Utd") == "Man Utd vs Fulham"
    assert away.render_title("Man Utd") == "Man Utd @ Brighton & Hove Albion"
    assert Fixture.parse_title("Man Utd", "Man Utd @ Brighton & Hove Albion") == away


@pytest.mark.parametrize("title", ["Man Utd training", "Man Utd vs ", "Fulham vs Man Utd", "Dentist"])
def test_non_fixture_titles_do_not_parse(title: str) -> None:
    assert Fixture.parse_title("Man Utd", title) is None


def test_role_maps_to_venue() -> None:
    assert Role.HOME.venue == Venue.HOME
    assert Role.AWAY.venue == Venue.AWAY


def test_event_rejects_half_score() -> None:
    with pytest.raises(ValidationError):
        Event(id=uuid.uuid4(), title="Man Utd vs Fulham", date=utc(2026, 2, 1), start_time="14:00",
              end_time="16:00", home_score=1)


def test_update_rejects_half_score() -> None:
    with pytest.raises(ValidationError):
        EventUpdate(home_score=1)


def test_update_changes_only_set_fields() -> None:
    assert EventUpdate(external_id=5).changes() == {"external_id": 5}


def test_feed_match_tolerates_nulls() -> None:
    match = FeedMatch.model_validate({
        "id": 1,
        "utcDate": "2026-02-01T14:00:00Z",
        "homeTeam": {"id": 66, "name": "Manchester United FC", "shortName": None, "lineup": None},
        "awayTeam": {"id": 63, "name": "Fulham FC"},
        "score": None,
    })
    assert match.final_score is None
    assert match.home_team.match_name == "Manchester United FC"
    assert match.home_team.lineup == []
    assert match.role_of(66) == Role.HOME
    assert match.side_of(1) is None


def test_skip_message_includes_reason_and_detail() -> None:
    outcome = SyncOutcome(
        phase=SyncPhase.SCORES,
        kind=OutcomeKind.SKIPPED,
        title="Man Utd vs Everton",
        reason=SkipReason.NO_MATCH,
        detail="no finished match against Everton",
    )
    assert outcome.message() == "  Skipped (no_match): Man Utd vs Everton (no finished match against Everton)"
