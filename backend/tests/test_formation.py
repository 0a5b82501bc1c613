"""
Unit tests for formation layout.

Run: pytest backend/tests/test_formation.py -v
"""
from __future__ import annotations

import pytest

from shared.models.domain import GridCell
from sync.errors import TransformFailure
from sync.formation import (
    FALLBACK_CELL,
    map_position,
    position_abbreviation,
    transform_lineup,
)

from conftest import FULL_XI_4231, player


# ── Abbreviations ───────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "position, expected",
    [
        ("Goalkeeper", "GK"),
        ("Centre-Back", "CB"),
        ("Defensive Midfield", "CDM"),
        ("Attacking Midfield", "CAM"),
        ("Centre-Forward", "ST"),
        ("Striker", "ST"),
    ],
)
def test_known_positions_use_table(position: str, expected: str) -> None:
    assert position_abbreviation(position) == expected


def test_unknown_position_keeps_first_three_letters() -> None:
    assert position_abbreviation("Sweeper") == "SWE"


def test_short_unknown_position_is_uppercased() -> None:
    assert position_abbreviation("wb") == "WB"


# ── map_position ────────────────────────────────────────────────────────

def test_goalkeeper_on_first_row() -> None:
    assert map_position("Goalkeeper", "4-2-3-1", 0) == GridCell(row=1, col=2)


def test_repeated_role_uses_occurrence_index() -> None:
    assert map_position("Centre-Back", "4-4-2", 0) == GridCell(row=2, col=1)
    assert map_position("Centre-Back", "4-4-2", 1) == GridCell(row=2, col=3)


def test_wingers_sit_on_forward_line_in_4_3_3() -> None:
    assert map_position("Left Wing", "4-3-3", 0) == GridCell(row=5, col=0)
    assert map_position("Left Wing", "4-2-3-1", 0) == GridCell(row=4, col=0)


def test_index_past_table_falls_back() -> None:
    row, col = FALLBACK_CELL
    assert map_position("Centre-Back", "4-4-2", 2) == GridCell(row=row, col=col)


def test_unknown_formation_uses_generic_table() -> None:
    assert map_position("Attacking Midfield", "5-3-2", 0) == GridCell(row=4, col=2)
    assert map_position("Defensive Midfield", "5-3-2", 0) == GridCell(row=3, col=2)


def test_unknown_position_falls_back() -> None:
    assert map_position("Sweeper", "4-4-2", 0) == GridCell(row=3, col=2)


def test_role_missing_from_formation_falls_back() -> None:
    # 4-4-2 has no attacking midfielder
    assert map_position("Attacking Midfield", "4-4-2", 0) == GridCell(row=3, col=2)


# ── transform_lineup ────────────────────────────────────────────────────

def test_transform_full_xi_preserves_order_and_counts_roles() -> None:
    players = transform_lineup(FULL_XI_4231, "4-2-3-1")

    assert [p.name for p in players] == [p["name"] for p in FULL_XI_4231]
    by_name = {p.name: p for p in players}
    assert by_name["Matthijs de Ligt"].grid_position == GridCell(row=2, col=1)
    assert by_name["Lisandro Martínez"].grid_position == GridCell(row=2, col=3)
    assert by_name["Casemiro"].grid_position == GridCell(row=3, col=1)
    assert by_name["Kobbie Mainoo"].grid_position == GridCell(row=3, col=3)
    assert by_name["Rasmus Højlund"].position_abbr == "ST"
    assert by_name["André Onana"].jersey_number == 24


def test_transform_counts_shared_abbreviation_across_positions() -> None:
    # Striker and Centre-Forward share ST, so the second one is the second ST.
    players = transform_lineup(
        [player(1, "A", "Striker"), player(2, "B", "Centre-Forward")],
        "4-4-2",
    )
    assert [p.grid_position for p in players] == [GridCell(row=5, col=1), GridCell(row=5, col=3)]


def test_transform_rejects_non_mapping_entry() -> None:
    with pytest.raises(TransformFailure):
        transform_lineup([player(1, "A", "Goalkeeper"), "not a player"], "4-4-2")


def test_transform_rejects_nameless_entry() -> None:
    with pytest.raises(TransformFailure):
        transform_lineup([{"id": 1, "position": "Goalkeeper"}], "4-4-2")


def test_transform_missing_position_still_places_player() -> None:
    players = transform_lineup([{"id": 1, "name": "A"}], "4-4-2")
    assert players[0].grid_position == GridCell(row=3, col=2)


def test_non_text_position_is_a_transform_failure() -> None:
    with pytest.raises(TransformFailure, match="non-text position"):
        transform_lineup([{"id": 1, "name": "Keeper", "position": 1}], "4-4-2")
