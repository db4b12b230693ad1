"""
Bulk uploads from spreadsheets.

Accepts the .xlsx templates from template_service (first worksheet, header
row first) or the same columns as .csv. Headers are matched case-insensitively.
Every upload is all-rows-checked: bad rows are reported as "Row N: ..."
and skipped, good rows are saved together.
"""

import csv
import io
import secrets
import zipfile
from typing import Dict, List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from leaguehub.database.models import (
    League,
    LeagueFormat,
    LeaguePlayer,
    LeagueStatus,
    Team,
    User,
    UserRole,
    UserStatus,
)
from leaguehub.services import auth_service
from leaguehub.services.exceptions import PermissionDeniedError
from leaguehub.services.league_service import LEAGUE_MANAGER_ROLES, load_managed_league
from leaguehub.services.team_service import check_player_fits_category, parse_max_players
import logging

logger = logging.getLogger(__name__)

PLAYER_COLUMNS = {
    "name": ("name", "player"),
    "email": ("email", "e-mail"),
    "gender": ("gender",),
    "level": ("level",),
}
LEAGUE_PLAYER_COLUMNS = {
    "email": ("email", "e-mail"),
    "name": ("name", "player"),
}
TEAM_COLUMNS = {
    "name": ("team name", "name"),
    "category": ("category",),
    "max_players": ("max players", "maxplayers", "max_players"),
}
LEAGUE_COLUMNS = {
    "name": ("league name", "name"),
    "type": ("league type", "type"),
    "category": ("category",),
    "season": ("season",),
    "format": ("league format", "format"),
}

GENDER_ALIASES = {"MALE": "MALE", "M": "MALE", "FEMALE": "FEMALE", "F": "FEMALE"}
LEVEL_ALIASES = {"MASTER": "MASTER", "A": "A", "B": "B", "C": "C", "D": "D"}
CATEGORY_ALIASES = {"MALE": "MALE", "FEMALE": "FEMALE", "MIXED": "MIXED", "MIX": "MIXED"}
LEAGUE_TYPE_ALIASES = {"INTRA_TEAM": "INTRA_TEAM", "INTRA-TEAM": "INTRA_TEAM", "CLUB": "CLUB"}
LEAGUE_FORMATS = {f.value for f in LeagueFormat}


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _raw_rows(filename: str, content: bytes) -> List[List[str]]:
    if filename.lower().endswith(".csv"):
        text = content.decode("utf-8-sig")
        first_line = text.split("\n", 1)[0]
        delimiter = ";" if ";" in first_line else "\t" if "\t" in first_line else ","
        reader = csv.reader(io.StringIO(text), delimiter=delimiter)
        return [[cell.strip() for cell in row] for row in reader]

    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError):
        raise ValueError("Could not read the spreadsheet; upload an .xlsx or .csv file")
    try:
        sheet = workbook.worksheets[0]
        return [[_cell_text(v) for v in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_rows(filename: str, content: bytes, columns: Dict[str, tuple]) -> List[Dict]:
    """
    Read an uploaded sheet into dicts keyed by field name.

    Args:
        filename: Uploaded file name (".csv" selects the CSV reader)
        content: File bytes
        columns: field -> accepted header names (lowercase)

    Returns:
        One dict per non-empty data row, with its 1-based sheet row under "_row"

    Raises:
        ValueError: If the file is empty or unreadable
    """
    if not content:
        raise ValueError("No file provided")
    raw = _raw_rows(filename or "", content)
    if not raw:
        raise ValueError("The file is empty")

    positions = {}
    for index, header in enumerate(raw[0]):
        normalized = _cell_text(header).lower()
        for field, aliases in columns.items():
            if normalized in aliases and field not in positions:
                positions[field] = index

    rows = []
    for row_number, values in enumerate(raw[1:], start=2):
        row = {
            field: _cell_text(values[index]) if index < len(values) else ""
            for field, index in positions.items()
        }
        if any(row.values()):
            row["_row"] = row_number
            rows.append(row)
    return rows


async def import_players(session: AsyncSession, rows: List[Dict]) -> Dict:
    """
    Create PENDING player accounts from uploaded rows.

    Each account gets a random temporary password, returned once in
    "accounts" so the superadmin can pass it on.

    Returns:
        {"created": n, "errors": [...], "accounts": [{"email", "temporary_password"}]}
    """
    errors, accounts, seen = [], [], set()
    for row in rows:
        prefix = f"Row {row['_row']}"
        email = auth_service.normalize_email(row.get("email", ""))
        name = row.get("name", "")
        if not email or not name:
            errors.append(f"{prefix}: email and name are required")
            continue
        if not auth_service.validate_email(email):
            errors.append(f"{prefix}: invalid email {email}")
            continue
        gender_text = row.get("gender", "").upper()
        if gender_text and gender_text not in GENDER_ALIASES:
            errors.append(f"{prefix}: invalid gender {row['gender']}")
            continue
        level_text = row.get("level", "").upper()
        if level_text and level_text not in LEVEL_ALIASES:
            errors.append(f"{prefix}: invalid level {row['level']}")
            continue

        existing = await session.execute(select(User.id).where(User.email == email))
        if email in seen or existing.scalar_one_or_none() is not None:
            errors.append(f"{prefix}: {email} already exists")
            continue
        seen.add(email)

        temporary_password = secrets.token_urlsafe(12)
        session.add(
            User(
                email=email,
                password_hash=auth_service.hash_password(temporary_password),
                name=name,
                gender=GENDER_ALIASES.get(gender_text),
                level=LEVEL_ALIASES.get(level_text),
                role=UserRole.PLAYER.value,
                status=UserStatus.PENDING.value,
            )
        )
        accounts.append({"email": email, "temporary_password": temporary_password})

    await session.commit()
    logger.info(f"Player upload: {len(accounts)} created, {len(errors)} rejected")
    return {"created": len(accounts), "errors": errors, "accounts": accounts}


async def import_league_players(
    session: AsyncSession, league_id: int, user_id: int, role: str, rows: List[Dict]
) -> Dict:
    """
    Enroll existing players in an individual league, found by email or else by name.

    Raises:
        NotFoundError: If the league does not exist
        PermissionDeniedError: If the caller does not manage the league
        ValueError: If the league is not an individual league
    """
    league = await load_managed_league(session, league_id, user_id, role)
    if league.format != LeagueFormat.INDIVIDUAL.value:
        raise ValueError("Players can only be uploaded to individual leagues")

    enrolled = await session.execute(
        select(LeaguePlayer.player_id).where(LeaguePlayer.league_id == league_id)
    )
    enrolled_ids = set(enrolled.scalars().all())

    errors, created = [], 0
    for row in rows:
        prefix = f"Row {row['_row']}"
        email = auth_service.normalize_email(row.get("email", ""))
        name = row.get("name", "")
        if email:
            query = select(User).where(User.email == email)
        elif name:
            query = select(User).where(User.name == name).order_by(User.id).limit(1)
        else:
            errors.append(f"{prefix}: email or name is required")
            continue

        player = (await session.execute(query)).scalar_one_or_none()
        if not player:
            errors.append(f"{prefix}: player not found: {email or name}")
            continue
        if player.status != UserStatus.APPROVED.value:
            errors.append(f"{prefix}: player not approved: {player.name}")
            continue
        try:
            check_player_fits_category(league.category, player.gender, noun="league")
        except ValueError as e:
            errors.append(f"{prefix}: {e}: {player.name}")
            continue
        if player.id in enrolled_ids:
            errors.append(f"{prefix}: already in league: {player.name}")
            continue

        session.add(LeaguePlayer(league_id=league_id, player_id=player.id))
        enrolled_ids.add(player.id)
        created += 1

    await session.commit()
    logger.info(f"League {league_id} player upload: {created} added, {len(errors)} rejected")
    return {"created": created, "errors": errors}


async def import_league_teams(
    session: AsyncSession, league_id: int, user_id: int, role: str, rows: List[Dict]
) -> Dict:
    """
    Create teams inside a doubles league, captained by the uploading manager.

    A blank category takes the league's; any other category must match it.

    Raises:
        NotFoundError: If the league does not exist
        PermissionDeniedError: If the caller does not manage the league
        ValueError: If the league is not a doubles league
    """
    league = await load_managed_league(session, league_id, user_id, role)
    if league.format != LeagueFormat.DOUBLES.value:
        raise ValueError("Teams can only be uploaded to doubles leagues")

    errors, created = [], 0
    for row in rows:
        prefix = f"Row {row['_row']}"
        name = row.get("name", "")
        if not name:
            errors.append(f"{prefix}: team name is required")
            continue
        category_text = row.get("category", "").upper()
        category = CATEGORY_ALIASES.get(category_text) if category_text else league.category
        if category is None:
            errors.append(f"{prefix}: invalid category {row['category']}")
            continue
        if category != league.category:
            errors.append(f"{prefix}: team category does not match league category")
            continue
        try:
            max_players = parse_max_players(row.get("max_players") or None)
        except ValueError as e:
            errors.append(f"{prefix}: {e}")
            continue

        session.add(
            Team(
                name=name,
                category=category,
                captain_id=user_id,
                league_id=league_id,
                max_players=max_players,
            )
        )
        created += 1

    await session.commit()
    logger.info(f"League {league_id} team upload: {created} created, {len(errors)} rejected")
    return {"created": created, "errors": errors}


async def import_leagues(session: AsyncSession, user_id: int, role: str, rows: List[Dict]) -> Dict:
    """
    Create DRAFT leagues managed by the caller.

    Name and season are required; the format column is optional and
    defaults to INDIVIDUAL.

    Raises:
        PermissionDeniedError: If the caller is not a MANAGER or SUPERADMIN
    """
    if role not in LEAGUE_MANAGER_ROLES:
        raise PermissionDeniedError("Only managers can create leagues")

    errors, created = [], 0
    for row in rows:
        prefix = f"Row {row['_row']}"
        name, season = row.get("name", ""), row.get("season", "")
        if not name:
            errors.append(f"{prefix}: league name is required")
            continue
        if not season:
            errors.append(f"{prefix}: season is required")
            continue
        league_type = LEAGUE_TYPE_ALIASES.get(row.get("type", "").upper())
        if league_type is None:
            errors.append(f"{prefix}: invalid league type {row.get('type', '')}")
            continue
        category = CATEGORY_ALIASES.get(row.get("category", "").upper())
        if category is None:
            errors.append(f"{prefix}: invalid category {row.get('category', '')}")
            continue
        league_format = row.get("format", "").upper() or LeagueFormat.INDIVIDUAL.value
        if league_format not in LEAGUE_FORMATS:
            errors.append(f"{prefix}: invalid league format {row['format']}")
            continue

        session.add(
            League(
                name=name,
                type=league_type,
                category=category,
                format=league_format,
                season=season,
                status=LeagueStatus.DRAFT.value,
                created_by=user_id,
            )
        )
        created += 1

    await session.commit()
    logger.info(f"User {user_id} league upload: {created} created, {len(errors)} rejected")
    return {"created": created, "errors": errors}
