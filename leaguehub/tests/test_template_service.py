"""
Unit tests for spreadsheet template generation.
"""

import io

import pytest
from openpyxl import load_workbook
from leaguehub.services import template_service


def _rows(content: bytes):
    wb = load_workbook(io.BytesIO(content))
    ws = wb.active
    return ws.title, [list(row) for row in ws.iter_rows(values_only=True)]


@pytest.mark.parametrize(
    "builder,filename,sheet,headers",
    [
        (template_service.player_template, "player-template.xlsx", "Players", ["Name", "Email", "Gender", "Level"]),
        (template_service.team_template, "team-template.xlsx", "Teams", ["Team Name", "Category"]),
        (
            template_service.league_template,
            "league-template.xlsx",
            "Leagues",
            ["League Name", "League Type", "Category", "Season"],
        ),
    ],
)
def test_templates_have_header_and_two_examples(builder, filename, sheet, headers):
    name, content = builder()
    assert name == filename
    title, rows = _rows(content)
    assert title == sheet
    assert rows[0] == headers
    assert len(rows) == 3


def test_header_row_is_bold():
    _, content = template_service.player_template()
    ws = load_workbook(io.BytesIO(content)).active
    assert all(cell.font.bold for cell in ws[1])


def test_doubles_league_template_lists_teams():
    filename, content = template_service.league_members_template(
        {"format": "DOUBLES", "category": "FEMALE"}
    )
    assert filename == "team-template.xlsx"
    _, rows = _rows(content)
    assert rows[0] == ["Team Name", "Category", "Max Players"]
    assert [r[1] for r in rows[1:]] == ["FEMALE", "FEMALE"]


def test_individual_league_template_lists_players():
    filename, content = template_service.league_members_template(
        {"format": "INDIVIDUAL", "category": "MIXED"}
    )
    assert filename == "player-template.xlsx"
    _, rows = _rows(content)
    assert rows[0] == ["Email", "Name"]
    assert len(rows) == 3
