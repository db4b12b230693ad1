"""Notification route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import notification_service
from leaguehub.api.auth_dependencies import require_user
from leaguehub.models.schemas import NotificationResponse, NotificationCountResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/notifications", response_model=List[NotificationResponse])
async def get_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """The caller's 50 most recent notifications."""
    try:
        return await notification_service.get_user_notifications(
            session, user["id"], unread_only=unread_only
        )
    except Exception as e:
        logger.error(f"Error fetching notifications: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/api/notifications/count",
    response_model=NotificationCountResponse,
    response_model_by_alias=True,
)
async def get_notification_count(
    user: dict = Depends(require_user), session: AsyncSession = Depends(get_db_session)
):
    """Badge count: unread notifications, pending invitations and match requests."""
    try:
        return await notification_service.get_notification_counts(
            session, user["id"], user["role"]
        )
    except Exception as e:
        logger.error(f"Error fetching notification count: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/notifications/read-all")
async def mark_all_notifications_as_read(
    user: dict = Depends(require_user), session: AsyncSession = Depends(get_db_session)
):
    """Mark all of the caller's notifications as read."""
    try:
        count = await notification_service.mark_all_as_read(session, user["id"])
        return {"success": True, "count": count}
    except Exception as e:
        logger.error(f"Error marking all notifications as read: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_as_read(
    notification_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Mark a single notification as read."""
    try:
        return await notification_service.mark_as_read(session, notification_id, user["id"])
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error marking notification as read: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
