"""Spreadsheet template downloads for captains and managers."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.api.routes.admin import xlsx_attachment
from leaguehub.database.db import get_db_session
from leaguehub.services import league_service, template_service
from leaguehub.api.auth_dependencies import require_captain, require_manager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/captain/download-template")
async def download_team_template(user: dict = Depends(require_captain)):
    """Teams upload template."""
    filename, content = template_service.team_template()
    return xlsx_attachment(filename, content)


@router.get("/api/manager/download-template")
async def download_league_template(user: dict = Depends(require_manager)):
    """Leagues upload template."""
    filename, content = template_service.league_template()
    return xlsx_attachment(filename, content)


@router.get("/api/manager/leagues/{league_id}/download-template")
async def download_league_members_template(
    league_id: int,
    user: dict = Depends(require_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Members upload template for a league the caller manages."""
    try:
        league = await league_service.get_managed_league(
            session, league_id, user["id"], user["role"]
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error loading league {league_id} for template: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    filename, content = template_service.league_members_template(league)
    return xlsx_attachment(filename, content)
