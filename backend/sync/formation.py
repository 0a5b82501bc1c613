"""
Formation layout: place starting players on a logical 5x5 pitch grid.

Rows run from 1 (goalkeeper line) to 5 (forward line); columns 0-4 run left to
right. Repeated roles (two centre-backs, three central midfielders) are told
apart by the order the feed lists them in, which is best effort only.
"""
from __future__ import annotations

from typing import Any, Mapping, Sequence

from shared.models.domain import GridCell, PlayerPosition

from sync.errors import TransformFailure

POSITION_ABBREVIATIONS: dict[str, str] = {
    "Goalkeeper": "GK",
    "Centre-Back": "CB",
    "Left-Back": "LB",
    "Right-Back": "RB",
    "Defensive Midfield": "CDM",
    "Central Midfield": "CM",
    "Attacking Midfield": "CAM",
    "Left Midfield": "LM",
    "Right Midfield": "RM",
    "Left Wing": "LW",
    "Right Wing": "RW",
    "Centre-Forward": "ST",
    "Striker": "ST",
}

FALLBACK_CELL = (3, 2)

FormationTable = dict[str, list[tuple[int, int]]]

FORMATIONS: dict[str, FormationTable] = {
    "4-2-3-1": {
        "GK": [(1, 2)],
        "LB": [(2, 0)],
        "CB": [(2, 1), (2, 3)],
        "RB": [(2, 4)],
        "CDM": [(3, 1), (3, 3)],
        "LW": [(4, 0)],
        "CAM": [(4, 2)],
        "RW": [(4, 4)],
        "ST": [(5, 2)],
    },
    "4-3-3": {
        "GK": [(1, 2)],
        "LB": [(2, 0)],
        "CB": [(2, 1), (2, 3)],
        "RB": [(2, 4)],
        "CM": [(3, 1), (3, 2), (3, 3)],
        "CDM": [(3, 2)],
        "LW": [(5, 0)],
        "ST": [(5, 2)],
        "RW": [(5, 4)],
    },
    "3-4-3": {
        "GK": [(1, 2)],
        "CB": [(2, 1), (2, 2), (2, 3)],
        "LM": [(3, 0)],
        "CM": [(3, 1), (3, 3)],
        "RM": [(3, 4)],
        "LW": [(5, 0)],
        "ST": [(5, 2)],
        "RW": [(5, 4)],
    },
    "4-4-2": {
        "GK": [(1, 2)],
        "LB": [(2, 0)],
        "CB": [(2, 1), (2, 3)],
        "RB": [(2, 4)],
        "LM": [(3, 0)],
        "CM": [(3, 1), (3, 3)],
        "RM": [(3, 4)],
        "ST": [(5, 1), (5, 3)],
    },
}

GENERIC_FORMATION: FormationTable = {
    "GK": [(1, 2)],
    "LB": [(2, 0)],
    "CB": [(2, 1), (2, 3)],
    "RB": [(2, 4)],
    "CDM": [(3, 2)],
    "CM": [(3, 1), (3, 3)],
    "CAM": [(4, 2)],
    "LW": [(4, 0)],
    "RW": [(4, 4)],
    "ST": [(5, 2)],
}


def position_abbreviation(position: str) -> str:
    """Map a full position name to its short form; unknown names keep their first three letters."""
    return POSITION_ABBREVIATIONS.get(position) or position[:3].upper()


def formation_table(formation: str) -> FormationTable:
    return FORMATIONS.get(formation, GENERIC_FORMATION)


def map_position(position: str, formation: str, occurrence_index: int) -> GridCell:
    """
    Locate one player on the grid.

    Never raises: an unknown role, an unknown formation or an index past the
    cells registered for the role all degrade to a fixed centre cell.
    """
    cells = formation_table(formation).get(position_abbreviation(position), [])
    if 0 <= occurrence_index < len(cells):
        row, col = cells[occurrence_index]
    else:
        row, col = FALLBACK_CELL
    return GridCell(row=row, col=col)


def transform_lineup(players: Sequence[Any], formation: str) -> list[PlayerPosition]:
    """
    Convert a feed lineup into positioned players, preserving input order.

    Raises:
        TransformFailure: if an entry is not a player object, lacks a name or
            carries a non-text position.
    """
    counts: dict[str, int] = {}
    result: list[PlayerPosition] = []
    for idx, raw in enumerate(players):
        if not isinstance(raw, Mapping) or not raw.get("name"):
            raise TransformFailure(f"lineup entry {idx} is not a named player")
        position = raw.get("position") or ""
        if not isinstance(position, str):
            raise TransformFailure(f"lineup entry {idx} has a non-text position")
        abbr = position_abbreviation(position)
        occurrence = counts.get(abbr, 0)
        counts[abbr] = occurrence + 1
        try:
            result.append(PlayerPosition(
                id=raw.get("id"),
                name=raw["name"],
                jersey_number=raw.get("shirtNumber"),
                position=position,
                position_abbr=abbr,
                grid_position=map_position(position, formation, occurrence),
            ))
        except ValueError as exc:
            raise TransformFailure(f"lineup entry {idx}: {exc}") from exc
    return result
