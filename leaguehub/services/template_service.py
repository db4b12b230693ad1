"""
Spreadsheet templates for bulk uploads.

Each template is a single-sheet .xlsx workbook with a bold header row and
two example rows showing the expected values.
"""

import io
from typing import Dict, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from leaguehub.database.models import LeagueFormat

PLAYER_TEMPLATE_HEADERS = ["Name", "Email", "Gender", "Level"]
TEAM_TEMPLATE_HEADERS = ["Team Name", "Category"]
LEAGUE_TEMPLATE_HEADERS = ["League Name", "League Type", "Category", "Season"]
LEAGUE_TEAM_TEMPLATE_HEADERS = ["Team Name", "Category", "Max Players"]
LEAGUE_PLAYER_TEMPLATE_HEADERS = ["Email", "Name"]


def build_workbook(sheet_title: str, headers: List[str], rows: List[List]) -> bytes:
    """
    Render a one-sheet workbook to .xlsx bytes.

    Args:
        sheet_title: Worksheet name
        headers: Column headers for row 1
        rows: Data rows, in header order

    Returns:
        The workbook serialized as .xlsx
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    ws.append(headers)
    for row in rows:
        ws.append(row)

    bold = Font(bold=True)
    for cell in ws[1]:
        cell.font = bold

    for col_idx in range(1, len(headers) + 1):
        max_len = max(
            len(str(ws.cell(row=r, column=col_idx).value or ""))
            for r in range(1, ws.max_row + 1)
        )
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max(max_len + 2, 10), 40)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def player_template() -> Tuple[str, bytes]:
    """Players upload template (superadmin)."""
    content = build_workbook(
        "Players",
        PLAYER_TEMPLATE_HEADERS,
        [
            ["John Smith", "john@example.com", "MALE", "A"],
            ["Jane Doe", "jane@example.com", "FEMALE", "B"],
        ],
    )
    return "player-template.xlsx", content


def team_template() -> Tuple[str, bytes]:
    """Teams upload template (captain)."""
    content = build_workbook(
        "Teams",
        TEAM_TEMPLATE_HEADERS,
        [
            ["Men's Team 1", "MALE"],
            ["Women's Team 1", "FEMALE"],
        ],
    )
    return "team-template.xlsx", content


def league_template() -> Tuple[str, bytes]:
    """Leagues upload template (manager)."""
    content = build_workbook(
        "Leagues",
        LEAGUE_TEMPLATE_HEADERS,
        [
            ["2024-2025 Men's Intra-Team League", "INTRA_TEAM", "MALE", "2024-2025"],
            ["2024-2025 Women's Club League", "CLUB", "FEMALE", "2024-2025"],
        ],
    )
    return "league-template.xlsx", content


def league_members_template(league: Dict) -> Tuple[str, bytes]:
    """
    Members upload template for one league.

    Doubles leagues enroll teams (pre-filled with the league's category);
    individual leagues enroll players by email.
    """
    if league["format"] == LeagueFormat.DOUBLES.value:
        content = build_workbook(
            "Teams",
            LEAGUE_TEAM_TEMPLATE_HEADERS,
            [
                ["Team 1", league["category"], 10],
                ["Team 2", league["category"], 12],
            ],
        )
        return "team-template.xlsx", content

    content = build_workbook(
        "Players",
        LEAGUE_PLAYER_TEMPLATE_HEADERS,
        [
            ["player1@example.com", "John Smith"],
            ["player2@example.com", "Jane Doe"],
        ],
    )
    return "player-template.xlsx", content
