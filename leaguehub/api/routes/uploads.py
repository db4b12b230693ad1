"""Spreadsheet uploads: players (superadmin), leagues and league members (manager)."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import upload_service
from leaguehub.api.auth_dependencies import require_manager, require_superadmin
from leaguehub.models.schemas import UploadResult

logger = logging.getLogger(__name__)
router = APIRouter()


async def _read_upload(file: UploadFile, columns: dict):
    content = await file.read()
    return upload_service.read_rows(file.filename or "", content, columns)


@router.post("/api/admin/upload-players", response_model=UploadResult)
async def upload_players(
    file: UploadFile = File(...),
    user: dict = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create pending player accounts from the players template."""
    try:
        rows = await _read_upload(file, upload_service.PLAYER_COLUMNS)
        return await upload_service.import_players(session, rows)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error uploading players: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/manager/upload-leagues", response_model=UploadResult)
async def upload_leagues(
    file: UploadFile = File(...),
    user: dict = Depends(require_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Create DRAFT leagues from the leagues template."""
    try:
        rows = await _read_upload(file, upload_service.LEAGUE_COLUMNS)
        return await upload_service.import_leagues(session, user["id"], user["role"], rows)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error uploading leagues: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/manager/leagues/{league_id}/upload-players", response_model=UploadResult)
async def upload_league_players(
    league_id: int,
    file: UploadFile = File(...),
    user: dict = Depends(require_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Enroll existing players in an individual league."""
    try:
        rows = await _read_upload(file, upload_service.LEAGUE_PLAYER_COLUMNS)
        return await upload_service.import_league_players(
            session, league_id, user["id"], user["role"], rows
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error uploading players to league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/manager/leagues/{league_id}/upload-teams", response_model=UploadResult)
async def upload_league_teams(
    league_id: int,
    file: UploadFile = File(...),
    user: dict = Depends(require_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Create teams in a doubles league."""
    try:
        rows = await _read_upload(file, upload_service.TEAM_COLUMNS)
        return await upload_service.import_league_teams(
            session, league_id, user["id"], user["role"], rows
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error uploading teams to league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
